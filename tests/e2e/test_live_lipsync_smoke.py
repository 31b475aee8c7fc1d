import asyncio
import os
from pathlib import Path

import pytest

from videogen.services.config_store import load_config
from videogen.services.lipsync import LipSyncOrchestrator, LipSyncRequest, MediaFile
from videogen.services.sync_client import SyncClient


@pytest.mark.skipif(
    os.environ.get("RUN_E2E") != "1",
    reason="Set RUN_E2E=1, SYNCSO_API_KEY and E2E_VIDEO_PATH to run against the live API.",
)
def test_live_tts_lipsync_smoke() -> None:
    video_path = Path(os.environ["E2E_VIDEO_PATH"])
    config = load_config()
    errors: list[str] = []
    results: list[str] = []

    async def scenario() -> None:
        client = SyncClient(config.sync)
        try:
            orchestrator = LipSyncOrchestrator(client, poll_interval_s=config.sync.poll_interval_s)
            await orchestrator.start(
                LipSyncRequest(
                    source_video=MediaFile(video_path.read_bytes(), video_path.name, "video/mp4"),
                    script="Hello from the smoke test.",
                ),
                on_complete=results.append,
                on_error=errors.append,
            )
        finally:
            await client.aclose()

    asyncio.run(scenario())

    assert errors == []
    assert len(results) == 1
