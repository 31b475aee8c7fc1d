"""Runtime paths and static app settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppPaths:
    project_root: Path
    backend_root: Path
    runtime_root: Path
    config_path: Path
    log_dir: Path


def build_paths() -> AppPaths:
    backend_root = Path(__file__).resolve().parents[2]
    project_root = backend_root.parent
    runtime_root = project_root / "runtime"

    return AppPaths(
        project_root=project_root,
        backend_root=backend_root,
        runtime_root=runtime_root,
        config_path=runtime_root / "config.json",
        log_dir=runtime_root / "logs",
    )


APP_VERSION = "0.1.0"
PATHS = build_paths()

ENV_API_KEY = "SYNCSO_API_KEY"
ENV_API_URL = "SYNCSO_API_URL"
ENV_POLL_INTERVAL = "SYNCSO_POLL_INTERVAL_S"
ENV_LOG_LEVEL = "VIDEOGEN_LOG_LEVEL"
ENV_LOG_TO_FILE = "VIDEOGEN_LOG_TO_FILE"
