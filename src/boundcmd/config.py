from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    log_level: str
    limits_path: Optional[Path]
    transcript_dir: Optional[Path]
    unquoted_strings: bool


def _opt_path(value: str) -> Optional[Path]:
    value = value.strip()
    return Path(value) if value else None


def load_settings() -> Settings:
    load_dotenv(override=False)

    host = os.getenv("BOUNDCMD_HOST", "127.0.0.1")
    port = int(os.getenv("BOUNDCMD_PORT", "9100"))
    log_level = os.getenv("BOUNDCMD_LOG_LEVEL", "INFO").upper()
    limits_path = _opt_path(os.getenv("BOUNDCMD_LIMITS", ""))
    transcript_dir = _opt_path(os.getenv("BOUNDCMD_TRANSCRIPT_DIR", ""))
    unquoted_strings = os.getenv("BOUNDCMD_UNQUOTED_STRINGS", "0").strip().lower() in {"1", "true", "yes", "on"}

    return Settings(
        host=host,
        port=port,
        log_level=log_level,
        limits_path=limits_path,
        transcript_dir=transcript_dir,
        unquoted_strings=unquoted_strings,
    )
