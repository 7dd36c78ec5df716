"""
Runtime configuration for the TimeBlock client core.

Values come from environment variables, optionally loaded from a ``.env``
file in the working directory.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


# Service URL - configurable via environment variable
TIMEBLOCK_SERVICE_URL = os.getenv("TIMEBLOCK_SERVICE_URL", "http://localhost:8004")

# Timeout for CRUD calls against the service (in seconds)
STANDARD_TIMEOUT = 30.0

STORAGE_MODES = ("remote", "local", "auto")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class Settings:
    service_url: str
    storage_mode: str
    data_dir: Path
    user_id: str
    timeout: float
    log_level: str

    @property
    def local_store_path(self) -> Path:
        return self.data_dir / "local_store.json"

    @property
    def flags_path(self) -> Path:
        return self.data_dir / "flags.json"


def load_settings() -> Settings:
    load_dotenv()

    service_url = os.getenv("TIMEBLOCK_SERVICE_URL", TIMEBLOCK_SERVICE_URL).strip().rstrip("/")
    storage_mode = os.getenv("TIMEBLOCK_STORAGE", "auto").strip().lower()
    data_dir = Path(os.getenv("TIMEBLOCK_DATA_DIR", "~/.timeblock").strip()).expanduser()
    user_id = os.getenv("TIMEBLOCK_USER_ID", "demo-user-id").strip()
    timeout_raw = os.getenv("TIMEBLOCK_TIMEOUT", str(STANDARD_TIMEOUT)).strip()
    log_level = os.getenv("TIMEBLOCK_LOG_LEVEL", "WARNING").strip().upper()

    if storage_mode not in STORAGE_MODES:
        raise RuntimeError(f"TIMEBLOCK_STORAGE must be one of {', '.join(STORAGE_MODES)}, got {storage_mode!r}")
    if not user_id:
        raise RuntimeError("TIMEBLOCK_USER_ID must not be empty")
    try:
        timeout = float(timeout_raw)
    except ValueError:
        raise RuntimeError(f"TIMEBLOCK_TIMEOUT must be a number, got {timeout_raw!r}")
    if timeout <= 0:
        raise RuntimeError("TIMEBLOCK_TIMEOUT must be positive")
    if log_level not in LOG_LEVELS:
        raise RuntimeError(f"TIMEBLOCK_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")

    return Settings(
        service_url=service_url,
        storage_mode=storage_mode,
        data_dir=data_dir,
        user_id=user_id,
        timeout=timeout,
        log_level=log_level,
    )
