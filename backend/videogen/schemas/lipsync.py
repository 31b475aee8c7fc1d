"""Pydantic schemas for the remote API payloads and the workflow snapshot."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from videogen.core.constants import RemoteJobStatus, WorkflowPhase


class UploadResult(BaseModel):
    """Response of the upload and TTS endpoints."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    location_url: Optional[str] = Field(default=None, alias="url")
    status: Optional[str] = None


class JobCreated(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    status: RemoteJobStatus
    progress_percent: int = Field(default=0, ge=0, le=100, alias="progress")


class RemoteJobSnapshot(BaseModel):
    """Point-in-time status of a remote lip-sync job."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Optional[str] = None
    status: RemoteJobStatus
    progress_percent: int = Field(default=0, ge=0, le=100, alias="progress")
    result_url: Optional[str] = None
    error_message: Optional[str] = Field(default=None, alias="error")


class WorkflowState(BaseModel):
    """Read-only snapshot of the orchestrator, replaced wholesale on every event."""

    model_config = ConfigDict(frozen=True)

    phase: WorkflowPhase = WorkflowPhase.IDLE
    is_active: bool = False
    progress_percent: int = 0
    current_step: str = ""
    last_error: Optional[str] = None
    result_url: Optional[str] = None
    job_id: Optional[str] = None


class VoiceOut(BaseModel):
    id: str
    name: str
    accent: str
    gender: str


class StartResponse(BaseModel):
    accepted: bool
    phase: WorkflowPhase
    audio_mode: str
    estimated_seconds: Optional[int] = None


class ProjectRecord(BaseModel):
    id: str
    name: str
    voice: str
    audio_mode: str
    result_url: str
    created_at: datetime
