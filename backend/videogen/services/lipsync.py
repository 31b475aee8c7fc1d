"""Lip-sync workflow: upload video, acquire audio, create the remote job, poll it to the end."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol, Union

from videogen.core.constants import (
    DEFAULT_PROCESSING_FAILURE,
    DEFAULT_VOICE,
    PHASE_TRANSITIONS,
    PROGRESS_DONE,
    PROGRESS_GENERATING_SPEECH,
    PROGRESS_PROCESSING_AUDIO,
    PROGRESS_STARTING_LIPSYNC,
    PROGRESS_UPLOADING_VIDEO,
    STEP_COMPLETED,
    STEP_ERROR,
    STEP_FAILED,
    STEP_GENERATING_SPEECH,
    STEP_PROCESSING_AUDIO,
    STEP_PROCESSING_LIPSYNC,
    STEP_STARTING_LIPSYNC,
    STEP_UPLOADING_VIDEO,
    UNKNOWN_ERROR,
    RemoteJobStatus,
    WorkflowPhase,
    processing_label,
)
from videogen.schemas.lipsync import JobCreated, RemoteJobSnapshot, UploadResult, WorkflowState
from videogen.services.script_text import is_known_voice, normalize_script
from videogen.services.sync_client import SyncAPIError

logger = logging.getLogger(__name__)


class LipSyncAPI(Protocol):
    async def upload_video(self, content: bytes, *, filename: str, content_type: str) -> UploadResult: ...

    async def upload_audio(self, content: bytes, *, filename: str, content_type: str) -> UploadResult: ...

    async def synthesize_speech(self, text: str, voice: str) -> UploadResult: ...

    async def create_job(self, video_id: str, audio_id: str) -> JobCreated: ...

    async def query_job(self, job_id: str) -> RemoteJobSnapshot: ...


class WorkflowError(RuntimeError):
    """A run-terminating failure that is not a transport error."""

    step_label = STEP_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(WorkflowError):
    pass


class RemoteJobFailedError(WorkflowError):
    step_label = STEP_FAILED


class ContractViolationError(RemoteJobFailedError):
    def __init__(self, message: str = "Lip sync completed without a result URL") -> None:
        super().__init__(message)


class WorkflowBusyError(RuntimeError):
    pass


class IllegalTransitionError(RuntimeError):
    pass


@dataclass(frozen=True)
class MediaFile:
    content: bytes
    filename: str
    content_type: str


@dataclass(frozen=True)
class LipSyncRequest:
    """Input of one run. A recording takes precedence over a script when both are given."""

    source_video: Optional[MediaFile]
    audio_file: Optional[MediaFile] = None
    script: Optional[str] = None
    voice: Optional[str] = None

    @property
    def audio_mode(self) -> str:
        return "upload" if self.audio_file is not None else "tts"


@dataclass(frozen=True)
class ProgressEvent:
    phase: WorkflowPhase
    percent: int
    label: str


@dataclass(frozen=True)
class JobAcceptedEvent:
    job_id: str
    label: str = STEP_PROCESSING_LIPSYNC


@dataclass(frozen=True)
class CompletedEvent:
    result_url: str


@dataclass(frozen=True)
class FailedEvent:
    message: str
    label: str = STEP_ERROR


WorkflowEvent = Union[ProgressEvent, JobAcceptedEvent, CompletedEvent, FailedEvent]

ProgressCallback = Callable[[int, str], None]
CompleteCallback = Callable[[str], None]
ErrorCallback = Callable[[str], None]


@dataclass(frozen=True)
class WorkflowCallbacks:
    on_progress: Optional[ProgressCallback] = None
    on_complete: Optional[CompleteCallback] = None
    on_error: Optional[ErrorCallback] = None

    def deliver(self, event: WorkflowEvent) -> None:
        if isinstance(event, ProgressEvent):
            if self.on_progress:
                self.on_progress(event.percent, event.label)
        elif isinstance(event, CompletedEvent):
            if self.on_complete:
                self.on_complete(event.result_url)
        elif isinstance(event, FailedEvent):
            if self.on_error:
                self.on_error(event.message)


def _check_transition(current: WorkflowPhase, target: WorkflowPhase) -> None:
    if current == target:
        return
    if target not in PHASE_TRANSITIONS[current]:
        raise IllegalTransitionError(f"cannot move from {current.value} to {target.value}")


def project_state(state: WorkflowState, event: WorkflowEvent) -> WorkflowState:
    """Return the snapshot that results from applying ``event`` to ``state``.

    Progress never decreases within a run: the snapshot keeps the highest percent
    seen so far even when the remote service reports a lower value.
    """
    if isinstance(event, ProgressEvent):
        _check_transition(state.phase, event.phase)
        return state.model_copy(
            update={
                "phase": event.phase,
                "is_active": True,
                "progress_percent": max(state.progress_percent, min(event.percent, PROGRESS_DONE)),
                "current_step": event.label,
            }
        )
    if isinstance(event, JobAcceptedEvent):
        if state.phase != WorkflowPhase.CREATING_JOB or state.job_id is not None:
            raise IllegalTransitionError(f"job accepted while {state.phase.value}")
        return state.model_copy(
            update={"phase": WorkflowPhase.POLLING, "job_id": event.job_id, "current_step": event.label}
        )
    if isinstance(event, CompletedEvent):
        _check_transition(state.phase, WorkflowPhase.SUCCEEDED)
        return state.model_copy(
            update={
                "phase": WorkflowPhase.SUCCEEDED,
                "is_active": False,
                "progress_percent": PROGRESS_DONE,
                "current_step": STEP_COMPLETED,
                "result_url": event.result_url,
                "last_error": None,
            }
        )
    _check_transition(state.phase, WorkflowPhase.FAILED)
    return state.model_copy(
        update={
            "phase": WorkflowPhase.FAILED,
            "is_active": False,
            "current_step": event.label,
            "last_error": event.message,
            "result_url": None,
        }
    )


def validate_request(request: LipSyncRequest, voice: str) -> str:
    """Check the request before any remote call and return the normalized script."""
    if request.source_video is None or not request.source_video.content:
        raise InvalidRequestError("A source video is required")

    script = normalize_script(request.script)
    if request.audio_file is not None:
        if not request.audio_file.content:
            raise InvalidRequestError("Audio file is empty")
        return script

    if not script:
        raise InvalidRequestError("Either audio file or script must be provided")
    if not is_known_voice(voice):
        raise InvalidRequestError(f"Unknown voice: {voice}")
    return script


class LipSyncOrchestrator:
    """Drives one lip-sync run at a time and exposes its state as a snapshot.

    Every state change goes through ``_emit``: the event is projected onto the
    snapshot and then handed to the caller's callbacks. Each run carries a token;
    ``reset()`` bumps it, so continuations of an older run find themselves stale
    after their next suspension point and finish without any effect.
    """

    def __init__(
        self,
        client: LipSyncAPI,
        *,
        poll_interval_s: float = 2.0,
        default_voice: str = DEFAULT_VOICE,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._poll_interval_s = poll_interval_s
        self._default_voice = default_voice
        self._sleep = sleep
        self._state = WorkflowState()
        self._run_token = 0

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    def reset(self) -> WorkflowState:
        self._run_token += 1
        if self._state.phase != WorkflowPhase.IDLE:
            logger.info("Lip sync state reset from %s", self._state.phase.value)
        self._state = WorkflowState()
        return self._state

    async def start(
        self,
        request: LipSyncRequest,
        *,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """Run the workflow until it succeeds, fails, or is superseded by ``reset()``.

        Outcomes are reported through the callbacks and ``state``; the coroutine
        itself returns nothing. Raises ``WorkflowBusyError`` if a run is active.
        """
        if self._state.is_active:
            raise WorkflowBusyError("A lip sync run is already in progress")

        self._run_token += 1
        token = self._run_token
        self._state = WorkflowState()
        callbacks = WorkflowCallbacks(on_progress, on_complete, on_error)

        outcome: Optional[Union[CompletedEvent, FailedEvent]]
        try:
            outcome = await self._run(token, request, callbacks)
        except SyncAPIError as exc:
            outcome = FailedEvent(str(exc), STEP_ERROR)
        except WorkflowError as exc:
            outcome = FailedEvent(exc.message, exc.step_label)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Lip sync run failed unexpectedly")
            outcome = FailedEvent(str(exc) or UNKNOWN_ERROR, STEP_ERROR)

        if outcome is None or not self._is_current(token):
            return
        if isinstance(outcome, FailedEvent):
            logger.warning("Lip sync run failed: %s", outcome.message)
        else:
            logger.info("Lip sync run completed: %s", outcome.result_url)
        self._emit(token, outcome, callbacks)

    def _is_current(self, token: int, job_id: Optional[str] = None) -> bool:
        if token != self._run_token:
            return False
        return job_id is None or self._state.job_id == job_id

    def _emit(self, token: int, event: WorkflowEvent, callbacks: WorkflowCallbacks) -> bool:
        if not self._is_current(token):
            logger.debug("Dropping %s from a superseded run", type(event).__name__)
            return False
        previous = self._state.phase
        self._state = project_state(self._state, event)
        if self._state.phase != previous:
            logger.info("Lip sync phase %s -> %s", previous.value, self._state.phase.value)
        callbacks.deliver(event)
        return True

    async def _run(
        self,
        token: int,
        request: LipSyncRequest,
        callbacks: WorkflowCallbacks,
    ) -> Optional[CompletedEvent]:
        voice = request.voice or self._default_voice
        script = validate_request(request, voice)
        video = request.source_video
        assert video is not None

        self._emit(
            token,
            ProgressEvent(WorkflowPhase.UPLOADING, PROGRESS_UPLOADING_VIDEO, STEP_UPLOADING_VIDEO),
            callbacks,
        )
        video_upload = await self._client.upload_video(
            video.content, filename=video.filename, content_type=video.content_type
        )
        if not self._emit(
            token,
            ProgressEvent(WorkflowPhase.ACQUIRING_AUDIO, PROGRESS_PROCESSING_AUDIO, STEP_PROCESSING_AUDIO),
            callbacks,
        ):
            return None

        if request.audio_file is not None:
            audio = request.audio_file
            audio_upload = await self._client.upload_audio(
                audio.content, filename=audio.filename, content_type=audio.content_type
            )
        else:
            self._emit(
                token,
                ProgressEvent(WorkflowPhase.ACQUIRING_AUDIO, PROGRESS_GENERATING_SPEECH, STEP_GENERATING_SPEECH),
                callbacks,
            )
            audio_upload = await self._client.synthesize_speech(script, voice)

        if not self._emit(
            token,
            ProgressEvent(WorkflowPhase.CREATING_JOB, PROGRESS_STARTING_LIPSYNC, STEP_STARTING_LIPSYNC),
            callbacks,
        ):
            return None
        job = await self._client.create_job(video_upload.id, audio_upload.id)
        if not self._emit(token, JobAcceptedEvent(job.id), callbacks):
            return None

        logger.info("Lip sync job %s created", job.id)
        return await self._poll(token, job.id, callbacks)

    async def _poll(self, token: int, job_id: str, callbacks: WorkflowCallbacks) -> Optional[CompletedEvent]:
        # Strictly sequential: the next query is issued only after the previous one returned.
        while True:
            snapshot = await self._client.query_job(job_id)
            if not self._is_current(token, job_id):
                logger.debug("Discarding stale poll result for job %s", job_id)
                return None

            percent = snapshot.progress_percent
            self._emit(token, ProgressEvent(WorkflowPhase.POLLING, percent, processing_label(percent)), callbacks)

            if snapshot.status == RemoteJobStatus.COMPLETED:
                if not snapshot.result_url:
                    raise ContractViolationError()
                return CompletedEvent(snapshot.result_url)
            if snapshot.status == RemoteJobStatus.FAILED:
                raise RemoteJobFailedError(snapshot.error_message or DEFAULT_PROCESSING_FAILURE)

            await self._sleep(self._poll_interval_s)
            if not self._is_current(token, job_id):
                logger.debug("Poll for job %s fired after reset", job_id)
                return None
