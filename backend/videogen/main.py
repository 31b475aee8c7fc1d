"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from videogen.api import router
from videogen.core.log_service import configure_logging
from videogen.core.settings import APP_VERSION, ENV_LOG_LEVEL, ENV_LOG_TO_FILE, PATHS
from videogen.schemas.config import AppConfig
from videogen.services.config_store import load_config
from videogen.services.history import ProjectHistory
from videogen.services.lipsync import LipSyncOrchestrator
from videogen.services.sync_client import SyncClient

logger = logging.getLogger(__name__)


def create_app(
    *,
    config: Optional[AppConfig] = None,
    orchestrator: Optional[LipSyncOrchestrator] = None,
    setup_logging: bool = True,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if setup_logging:
            log_dir = PATHS.log_dir if os.environ.get(ENV_LOG_TO_FILE) == "1" else None
            configure_logging(os.environ.get(ENV_LOG_LEVEL, "INFO"), log_dir=log_dir)

        app_config = config if config is not None else load_config()
        client: Optional[SyncClient] = None
        if orchestrator is None:
            # A missing API key raises ConfigurationError here and aborts startup.
            client = SyncClient(app_config.sync)
            app.state.orchestrator = LipSyncOrchestrator(
                client,
                poll_interval_s=app_config.sync.poll_interval_s,
                default_voice=app_config.sync.default_voice,
            )
            logger.info("Using lip sync API at %s", client.base_url)
        else:
            app.state.orchestrator = orchestrator
        app.state.config = app_config
        app.state.history = ProjectHistory()

        try:
            yield
        finally:
            if client is not None:
                await client.aclose()

    app = FastAPI(title="VideoGen Studio", version=APP_VERSION, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    return app


app = create_app()
