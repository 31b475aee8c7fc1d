"""Pydantic schemas for app configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SyncConfig(BaseModel):
    base_url: str = "https://api.sync.so/v1"
    api_key: str = ""
    model: str = "wav2lip"
    quality: str = "high"
    default_voice: str = "sarah"
    poll_interval_s: float = Field(default=2.0, gt=0)
    timeout_s: int = 120


class StudioConfig(BaseModel):
    max_upload_mb: int = Field(default=300, ge=1)


class AppConfig(BaseModel):
    sync: SyncConfig = Field(default_factory=SyncConfig)
    studio: StudioConfig = Field(default_factory=StudioConfig)

    def masked(self) -> "AppConfig":
        key = self.sync.api_key
        shown = f"{key[:4]}***" if len(key) > 8 else ("***" if key else "")
        return self.model_copy(update={"sync": self.sync.model_copy(update={"api_key": shown})})
