"""Helpers for text-to-speech scripts and voice selection."""

from __future__ import annotations

import math
from typing import Optional

from videogen.core.constants import SCRIPT_CHARS_PER_SECOND, VOICE_IDS


def normalize_script(script: Optional[str]) -> str:
    if script is None:
        return ""
    return script.strip()


def estimate_speech_seconds(script: str) -> int:
    return math.ceil(len(script) / SCRIPT_CHARS_PER_SECOND)


def is_known_voice(voice: str) -> bool:
    return voice in VOICE_IDS
