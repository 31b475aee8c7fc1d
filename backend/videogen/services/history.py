"""In-memory record of runs completed during this process."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from videogen.schemas.lipsync import ProjectRecord


class ProjectHistory:
    def __init__(self) -> None:
        self._records: list[ProjectRecord] = []

    def add(self, *, voice: str, audio_mode: str, result_url: str) -> ProjectRecord:
        record = ProjectRecord(
            id=uuid.uuid4().hex,
            name=f"Project {len(self._records) + 1}",
            voice=voice,
            audio_mode=audio_mode,
            result_url=result_url,
            created_at=datetime.now(timezone.utc),
        )
        self._records.insert(0, record)
        return record

    def records(self) -> list[ProjectRecord]:
        return list(self._records)
