from __future__ import annotations

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from videogen.core.constants import RemoteJobStatus, WorkflowPhase
from videogen.main import create_app
from videogen.schemas.config import AppConfig, StudioConfig, SyncConfig
from videogen.schemas.lipsync import JobCreated, RemoteJobSnapshot, UploadResult, WorkflowState
from videogen.services.lipsync import LipSyncOrchestrator
from videogen.services.sync_client import ConfigurationError

VIDEO_FILE = ("clip.mp4", b"fake-video-bytes", "video/mp4")
AUDIO_FILE = ("voice.wav", b"fake-audio-bytes", "audio/wav")


class FakeSyncClient:
    def __init__(self, final: Optional[RemoteJobSnapshot] = None) -> None:
        self.calls: list[str] = []
        self.final = final or RemoteJobSnapshot(
            id="job1", status=RemoteJobStatus.COMPLETED, progress_percent=100, result_url="https://x/out.mp4"
        )

    async def upload_video(self, content: bytes, *, filename: str, content_type: str) -> UploadResult:
        self.calls.append("upload_video")
        return UploadResult(id="vid1")

    async def upload_audio(self, content: bytes, *, filename: str, content_type: str) -> UploadResult:
        self.calls.append("upload_audio")
        return UploadResult(id="rec1")

    async def synthesize_speech(self, text: str, voice: str) -> UploadResult:
        self.calls.append(f"synthesize_speech:{voice}")
        return UploadResult(id="aud1")

    async def create_job(self, video_id: str, audio_id: str) -> JobCreated:
        self.calls.append("create_job")
        return JobCreated(id="job1", status=RemoteJobStatus.PENDING)

    async def query_job(self, job_id: str) -> RemoteJobSnapshot:
        self.calls.append("query_job")
        return self.final


async def _no_sleep(delay: float) -> None:
    return None


def _make_client(fake: FakeSyncClient, *, max_upload_mb: int = 300) -> tuple[TestClient, LipSyncOrchestrator]:
    orchestrator = LipSyncOrchestrator(fake, sleep=_no_sleep)
    config = AppConfig(
        sync=SyncConfig(api_key="sk-test-key-123"),
        studio=StudioConfig(max_upload_mb=max_upload_mb),
    )
    app = create_app(config=config, orchestrator=orchestrator, setup_logging=False)
    return TestClient(app), orchestrator


@pytest.fixture
def fake() -> FakeSyncClient:
    return FakeSyncClient()


@pytest.fixture
def client(fake: FakeSyncClient) -> TestClient:
    test_client, _ = _make_client(fake)
    with test_client:
        yield test_client


def test_health_and_voices(client: TestClient) -> None:
    health = client.get("/api/health")
    assert health.status_code == 200
    assert health.json()["active"] is False
    assert health.json()["phase"] == "idle"

    voices = client.get("/api/voices")
    assert voices.status_code == 200
    assert [voice["id"] for voice in voices.json()] == ["sarah", "david", "maria", "james"]


def test_config_masks_api_key(client: TestClient) -> None:
    response = client.get("/api/config")
    assert response.status_code == 200
    assert response.json()["sync"]["api_key"] == "sk-t***"


def test_tts_run_completes_and_is_recorded(client: TestClient, fake: FakeSyncClient) -> None:
    response = client.post(
        "/api/lipsync",
        data={"script": "Hello", "voice": "maria"},
        files={"video_file": VIDEO_FILE},
    )
    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["accepted"] is True
    assert payload["audio_mode"] == "tts"
    assert payload["estimated_seconds"] == 1

    state = client.get("/api/lipsync").json()
    assert state["phase"] == "succeeded"
    assert state["is_active"] is False
    assert state["result_url"] == "https://x/out.mp4"
    assert state["progress_percent"] == 100
    assert fake.calls == ["upload_video", "synthesize_speech:maria", "create_job", "query_job"]

    history = client.get("/api/lipsync/history").json()
    assert len(history) == 1
    assert history[0]["name"] == "Project 1"
    assert history[0]["voice"] == "maria"
    assert history[0]["result_url"] == "https://x/out.mp4"


def test_recording_run_uploads_audio(client: TestClient, fake: FakeSyncClient) -> None:
    response = client.post(
        "/api/lipsync",
        files={"video_file": VIDEO_FILE, "audio_file": AUDIO_FILE},
    )
    assert response.status_code == 200, response.text
    assert response.json()["audio_mode"] == "upload"
    assert response.json()["estimated_seconds"] is None
    assert fake.calls == ["upload_video", "upload_audio", "create_job", "query_job"]


def test_missing_audio_source_is_rejected(client: TestClient, fake: FakeSyncClient) -> None:
    response = client.post("/api/lipsync", data={"script": "   "}, files={"video_file": VIDEO_FILE})
    assert response.status_code == 400
    assert response.json()["detail"] == "Either audio file or script must be provided"
    assert fake.calls == []


def test_wrong_media_type_is_rejected(client: TestClient, fake: FakeSyncClient) -> None:
    response = client.post(
        "/api/lipsync",
        data={"script": "Hello"},
        files={"video_file": ("notes.txt", b"text", "text/plain")},
    )
    assert response.status_code == 415
    assert fake.calls == []


def test_oversize_upload_is_rejected(fake: FakeSyncClient) -> None:
    test_client, _ = _make_client(fake, max_upload_mb=1)
    with test_client:
        response = test_client.post(
            "/api/lipsync",
            data={"script": "Hello"},
            files={"video_file": ("big.mp4", b"0" * (1024 * 1024 + 1), "video/mp4")},
        )
    assert response.status_code == 413
    assert fake.calls == []


def test_busy_orchestrator_returns_conflict(fake: FakeSyncClient) -> None:
    test_client, orchestrator = _make_client(fake)
    orchestrator._state = WorkflowState(phase=WorkflowPhase.POLLING, is_active=True, job_id="job0")  # noqa: SLF001
    with test_client:
        response = test_client.post("/api/lipsync", data={"script": "Hello"}, files={"video_file": VIDEO_FILE})
        assert response.status_code == 409

        reset = test_client.post("/api/lipsync/reset")
        assert reset.status_code == 200
        assert reset.json()["phase"] == "idle"
        assert reset.json()["job_id"] is None
    assert fake.calls == []


def test_remote_failure_is_visible_in_state() -> None:
    fake = FakeSyncClient(
        final=RemoteJobSnapshot(id="job1", status=RemoteJobStatus.FAILED, progress_percent=10, error_message="bad video")
    )
    test_client, _ = _make_client(fake)
    with test_client:
        response = test_client.post("/api/lipsync", data={"script": "Hello"}, files={"video_file": VIDEO_FILE})
        assert response.status_code == 200

        state = test_client.get("/api/lipsync").json()
        assert state["phase"] == "failed"
        assert state["last_error"] == "bad video"
        assert state["current_step"] == "Failed"
        assert test_client.get("/api/lipsync/history").json() == []


def test_event_stream_ends_when_idle(client: TestClient) -> None:
    response = client.get("/api/lipsync/events")
    assert response.status_code == 200
    assert "event: state" in response.text
    assert "event: end" in response.text


def test_startup_without_api_key_fails() -> None:
    app = create_app(config=AppConfig(), setup_logging=False)
    with pytest.raises(ConfigurationError):
        with TestClient(app):
            pass
