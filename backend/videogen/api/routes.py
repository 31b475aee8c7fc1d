"""FastAPI route definitions."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Request, UploadFile
from sse_starlette.sse import EventSourceResponse

from videogen.core.constants import VOICES
from videogen.core.settings import APP_VERSION
from videogen.schemas.config import AppConfig
from videogen.schemas.lipsync import ProjectRecord, StartResponse, VoiceOut, WorkflowState
from videogen.services.history import ProjectHistory
from videogen.services.lipsync import (
    InvalidRequestError,
    LipSyncOrchestrator,
    LipSyncRequest,
    MediaFile,
    WorkflowBusyError,
    validate_request,
)
from videogen.services.script_text import estimate_speech_seconds, normalize_script

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

STATE_STREAM_INTERVAL_S = 1.0


def get_orchestrator(request: Request) -> LipSyncOrchestrator:
    return request.app.state.orchestrator


def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_history(request: Request) -> ProjectHistory:
    return request.app.state.history


async def _read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    written = 0
    while True:
        chunk = await upload.read(1024 * 1024)
        if not chunk:
            break
        written += len(chunk)
        if written > max_bytes:
            raise HTTPException(status_code=413, detail="Uploaded file exceeds max size")
        chunks.append(chunk)
    return b"".join(chunks)


async def _to_media_file(upload: UploadFile, *, field: str, prefix: str, max_bytes: int) -> MediaFile:
    content_type = (upload.content_type or "").lower()
    if not content_type.startswith(prefix):
        raise HTTPException(status_code=415, detail=f"{field} must be a {prefix}* file, got {content_type or 'unknown'}")
    content = await _read_upload(upload, max_bytes)
    filename = Path(upload.filename or field).name
    return MediaFile(content=content, filename=filename, content_type=content_type)


async def _run_workflow(
    orchestrator: LipSyncOrchestrator,
    lipsync_request: LipSyncRequest,
    history: ProjectHistory,
    voice: str,
) -> None:
    def on_complete(result_url: str) -> None:
        history.add(voice=voice, audio_mode=lipsync_request.audio_mode, result_url=result_url)

    try:
        await orchestrator.start(lipsync_request, on_complete=on_complete)
    except WorkflowBusyError:
        logger.warning("Dropped a lip sync request: another run started first")


@router.get("/health")
def health(orchestrator: LipSyncOrchestrator = Depends(get_orchestrator)) -> dict[str, object]:
    state = orchestrator.state
    return {
        "version": APP_VERSION,
        "active": state.is_active,
        "phase": state.phase.value,
    }


@router.get("/config", response_model=AppConfig)
def get_config(config: AppConfig = Depends(get_app_config)) -> AppConfig:
    return config.masked()


@router.get("/voices", response_model=list[VoiceOut])
def list_voices() -> list[VoiceOut]:
    return [VoiceOut(**voice) for voice in VOICES]


@router.post("/lipsync", response_model=StartResponse)
async def start_lipsync(
    background_tasks: BackgroundTasks,
    video_file: UploadFile = File(...),
    audio_file: Optional[UploadFile] = File(None),
    script: str = Form(""),
    voice: str = Form(""),
    orchestrator: LipSyncOrchestrator = Depends(get_orchestrator),
    config: AppConfig = Depends(get_app_config),
    history: ProjectHistory = Depends(get_history),
) -> StartResponse:
    if orchestrator.is_active:
        raise HTTPException(status_code=409, detail="A lip sync run is already in progress")

    max_bytes = int(config.studio.max_upload_mb) * 1024 * 1024
    video = await _to_media_file(video_file, field="video_file", prefix="video/", max_bytes=max_bytes)
    audio: Optional[MediaFile] = None
    if audio_file is not None and audio_file.filename:
        audio = await _to_media_file(audio_file, field="audio_file", prefix="audio/", max_bytes=max_bytes)

    lipsync_request = LipSyncRequest(
        source_video=video,
        audio_file=audio,
        script=normalize_script(script) or None,
        voice=voice.strip() or None,
    )
    resolved_voice = lipsync_request.voice or config.sync.default_voice
    try:
        validated_script = validate_request(lipsync_request, resolved_voice)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    estimated_seconds = None
    if lipsync_request.audio_mode == "tts":
        estimated_seconds = estimate_speech_seconds(validated_script)

    background_tasks.add_task(_run_workflow, orchestrator, lipsync_request, history, resolved_voice)
    return StartResponse(
        accepted=True,
        phase=orchestrator.state.phase,
        audio_mode=lipsync_request.audio_mode,
        estimated_seconds=estimated_seconds,
    )


@router.get("/lipsync", response_model=WorkflowState)
def get_lipsync_state(orchestrator: LipSyncOrchestrator = Depends(get_orchestrator)) -> WorkflowState:
    return orchestrator.state


@router.post("/lipsync/reset", response_model=WorkflowState)
def reset_lipsync(orchestrator: LipSyncOrchestrator = Depends(get_orchestrator)) -> WorkflowState:
    return orchestrator.reset()


@router.get("/lipsync/history", response_model=list[ProjectRecord])
def list_history(history: ProjectHistory = Depends(get_history)) -> list[ProjectRecord]:
    return history.records()


@router.get("/lipsync/events")
async def stream_lipsync_events(
    orchestrator: LipSyncOrchestrator = Depends(get_orchestrator),
) -> EventSourceResponse:
    async def event_generator():
        last_state: Optional[WorkflowState] = None
        while True:
            state = orchestrator.state
            if state != last_state:
                last_state = state
                yield {"event": "state", "data": state.model_dump_json()}

            if not state.is_active:
                yield {"event": "end", "data": json.dumps({"phase": state.phase.value})}
                break

            await asyncio.sleep(STATE_STREAM_INTERVAL_S)

    return EventSourceResponse(event_generator())
