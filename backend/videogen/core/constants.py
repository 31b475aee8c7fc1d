"""Project-wide constants and state definitions."""

from __future__ import annotations

from enum import Enum


class WorkflowPhase(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    ACQUIRING_AUDIO = "acquiring_audio"
    CREATING_JOB = "creating_job"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RemoteJobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Every phase may fall to FAILED; reset() returns to IDLE from anywhere.
PHASE_TRANSITIONS: dict[WorkflowPhase, set[WorkflowPhase]] = {
    WorkflowPhase.IDLE: {WorkflowPhase.UPLOADING, WorkflowPhase.FAILED},
    WorkflowPhase.UPLOADING: {WorkflowPhase.ACQUIRING_AUDIO, WorkflowPhase.FAILED},
    WorkflowPhase.ACQUIRING_AUDIO: {WorkflowPhase.CREATING_JOB, WorkflowPhase.FAILED},
    WorkflowPhase.CREATING_JOB: {WorkflowPhase.POLLING, WorkflowPhase.FAILED},
    WorkflowPhase.POLLING: {WorkflowPhase.SUCCEEDED, WorkflowPhase.FAILED},
    WorkflowPhase.SUCCEEDED: set(),
    WorkflowPhase.FAILED: set(),
}

STEP_UPLOADING_VIDEO = "Uploading source video..."
STEP_PROCESSING_AUDIO = "Processing audio..."
STEP_GENERATING_SPEECH = "Generating speech..."
STEP_STARTING_LIPSYNC = "Starting lip sync..."
STEP_PROCESSING_LIPSYNC = "Processing lip sync..."
STEP_COMPLETED = "Completed!"
STEP_FAILED = "Failed"
STEP_ERROR = "Error"

PROGRESS_UPLOADING_VIDEO = 10
PROGRESS_PROCESSING_AUDIO = 30
PROGRESS_GENERATING_SPEECH = 40
PROGRESS_STARTING_LIPSYNC = 60
PROGRESS_DONE = 100

DEFAULT_VOICE = "sarah"
DEFAULT_PROCESSING_FAILURE = "Processing failed"
UNKNOWN_ERROR = "Unknown error occurred"

VOICES = [
    {"id": "sarah", "name": "Sarah", "accent": "American", "gender": "Female"},
    {"id": "david", "name": "David", "accent": "British", "gender": "Male"},
    {"id": "maria", "name": "Maria", "accent": "Spanish", "gender": "Female"},
    {"id": "james", "name": "James", "accent": "Australian", "gender": "Male"},
]

VOICE_IDS = {voice["id"] for voice in VOICES}

# Characters of script per estimated second of speech.
SCRIPT_CHARS_PER_SECOND = 160


def processing_label(percent: int) -> str:
    return f"Processing... {percent}%"
