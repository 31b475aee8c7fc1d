"""Async HTTP client for the sync.so lip-sync API."""

from __future__ import annotations

import logging
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from videogen.schemas.config import SyncConfig
from videogen.schemas.lipsync import JobCreated, RemoteJobSnapshot, UploadResult

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ConfigurationError(RuntimeError):
    """Raised when the client cannot be built from the given configuration."""


class SyncAPIError(RuntimeError):
    """A failed call to the remote API: non-2xx response, network error or unreadable body."""

    def __init__(self, operation: str, *, status_code: Optional[int] = None, body: str = "") -> None:
        self.operation = operation
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"{operation} failed: {body}"
        else:
            message = f"{operation} failed: {status_code} - {body[:500]}"
        super().__init__(message)


class SyncClient:
    """Translates the five remote operations into authenticated HTTP requests.

    The client holds no state besides the credentials and base address read from
    ``SyncConfig`` at construction. It never retries.
    """

    def __init__(self, cfg: SyncConfig, *, http_client: Optional[httpx.AsyncClient] = None) -> None:
        api_key = cfg.api_key.strip()
        if not api_key:
            raise ConfigurationError("Sync.so API key not found. Please check your environment variables.")
        base_url = cfg.base_url.strip().rstrip("/")
        if not base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Sync.so API url must include scheme and host: {cfg.base_url!r}")

        self._api_key = api_key
        self._base_url = base_url
        self._model = cfg.model
        self._quality = cfg.quality
        self._client = http_client or httpx.AsyncClient(timeout=cfg.timeout_s)
        self._owns_client = http_client is None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _headers(self, *, json_body: bool = True) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        json_body: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, tuple[str, bytes, str]]] = None,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        logger.debug("%s: %s %s", operation, method, path)
        try:
            if files is not None:
                response = await self._client.request(
                    method, url, headers=self._headers(json_body=False), files=files
                )
            else:
                response = await self._client.request(method, url, headers=self._headers(), json=json_body)
        except httpx.TimeoutException as exc:
            logger.warning("%s timed out: %s", operation, exc)
            raise SyncAPIError(operation, body=f"Request timed out: {exc}") from exc
        except httpx.RequestError as exc:
            logger.warning("%s could not reach the API: %s", operation, exc)
            raise SyncAPIError(operation, body=f"Request failed: {exc}") from exc

        if not response.is_success:
            logger.warning("%s rejected: HTTP %s", operation, response.status_code)
            raise SyncAPIError(operation, status_code=response.status_code, body=response.text)
        return response

    @staticmethod
    def _parse(operation: str, response: httpx.Response, model: type[ModelT]) -> ModelT:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise SyncAPIError(
                operation,
                status_code=response.status_code,
                body=f"Invalid response: {exc}",
            ) from exc

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------
    async def upload_video(
        self,
        content: bytes,
        *,
        filename: str = "video.mp4",
        content_type: str = "video/mp4",
    ) -> UploadResult:
        operation = "Upload video"
        response = await self._request(
            operation, "POST", "/upload/video", files={"video": (filename, content, content_type)}
        )
        return self._parse(operation, response, UploadResult)

    async def upload_audio(
        self,
        content: bytes,
        *,
        filename: str = "audio.wav",
        content_type: str = "audio/wav",
    ) -> UploadResult:
        operation = "Upload audio"
        response = await self._request(
            operation, "POST", "/upload/audio", files={"audio": (filename, content, content_type)}
        )
        return self._parse(operation, response, UploadResult)

    async def synthesize_speech(self, text: str, voice: str) -> UploadResult:
        operation = "Generate speech"
        payload = {"text": text, "voice": voice, "format": "wav"}
        response = await self._request(operation, "POST", "/tts", json_body=payload)
        return self._parse(operation, response, UploadResult)

    async def create_job(self, video_id: str, audio_id: str) -> JobCreated:
        operation = "Create lip sync job"
        payload = {
            "video_id": video_id,
            "audio_id": audio_id,
            "model": self._model,
            "quality": self._quality,
        }
        response = await self._request(operation, "POST", "/lipsync", json_body=payload)
        return self._parse(operation, response, JobCreated)

    async def query_job(self, job_id: str) -> RemoteJobSnapshot:
        operation = "Query job"
        response = await self._request(operation, "GET", f"/jobs/{job_id}")
        return self._parse(operation, response, RemoteJobSnapshot)
