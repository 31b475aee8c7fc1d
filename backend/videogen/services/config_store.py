"""Load configuration from the optional JSON file and the environment."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping, Optional

from videogen.core.settings import ENV_API_KEY, ENV_API_URL, ENV_POLL_INTERVAL, PATHS
from videogen.schemas.config import AppConfig


def _load_file(path: Path) -> AppConfig:
    if not path.exists():
        return AppConfig()
    data = json.loads(path.read_text(encoding="utf-8"))
    return AppConfig.model_validate(data)


def apply_env_overrides(config: AppConfig, environ: Mapping[str, str]) -> AppConfig:
    updates: dict[str, object] = {}
    api_key = environ.get(ENV_API_KEY, "").strip()
    if api_key:
        updates["api_key"] = api_key
    base_url = environ.get(ENV_API_URL, "").strip()
    if base_url:
        updates["base_url"] = base_url
    poll_interval = environ.get(ENV_POLL_INTERVAL, "").strip()
    if poll_interval:
        try:
            updates["poll_interval_s"] = float(poll_interval)
        except ValueError as exc:
            raise ValueError(f"{ENV_POLL_INTERVAL} must be a number, got {poll_interval!r}") from exc

    if not updates:
        return config
    merged = config.sync.model_dump() | updates
    return config.model_copy(update={"sync": type(config.sync).model_validate(merged)})


def load_config(path: Path = PATHS.config_path, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    config = _load_file(path)
    return apply_env_overrides(config, os.environ if environ is None else environ)
