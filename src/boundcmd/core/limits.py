from __future__ import annotations

import importlib.resources as importlib_resources
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ParserLimits(BaseModel):
    """Instantiation-time size bounds. All bounds are inclusive."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_commands: int = Field(default=16, ge=0, le=4096)
    max_command_args: int = Field(default=4, ge=0, le=64)
    max_command_name_length: int = Field(default=10, ge=1, le=256)
    max_command_arg_size: int = Field(default=32, ge=1, le=65536)
    max_response_size: int = Field(default=64, ge=1, le=65536)

    @property
    def max_line_size(self) -> int:
        """Longest request line worth buffering.

        Room for the name plus, per argument, a separator and the larger of a
        fully hex-escaped quoted string and a 64-digit binary integer, plus
        slack for repeated separators.
        """
        per_arg = 1 + max(4 * self.max_command_arg_size + 2, 67)
        return self.max_command_name_length + self.max_command_args * per_arg + 64


def _read_yaml(text: str) -> Dict[str, Any]:
    raw = yaml.safe_load(text) or {}
    if not isinstance(raw, dict):
        raise ValueError("limits file must contain a mapping")
    # Allow either a bare mapping or one nested under "limits:"
    return raw.get("limits", raw) or {}


def _limits_source(path: Optional[Path]) -> Optional[Path]:
    if path is not None:
        if not path.exists():
            raise FileNotFoundError(f"limits file not found: {path}")
        return path

    env_path = os.getenv("BOUNDCMD_LIMITS", "").strip()
    if env_path:
        p = Path(env_path)
        if not p.exists():
            raise FileNotFoundError(f"BOUNDCMD_LIMITS file not found: {p}")
        return p

    dev = Path("boundcmd.yaml")
    if dev.exists():
        return dev
    return None


def load_limits(path: Optional[Path] = None) -> ParserLimits:
    """Load parser limits with fallbacks.

    Order:
    1) Explicit path arg (must exist)
    2) BOUNDCMD_LIMITS env var (if set, must exist)
    3) CWD-relative boundcmd.yaml
    4) Packaged default (boundcmd/resources/limits.yaml)
    5) Built-in defaults
    """
    src = _limits_source(path)
    if src is not None:
        raw = _read_yaml(src.read_text(encoding="utf-8"))
        try:
            return ParserLimits.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid limits YAML: {src}\n{e}") from e

    try:
        txt = importlib_resources.files("boundcmd").joinpath("resources/limits.yaml").read_text(encoding="utf-8")
    except Exception:
        return ParserLimits()
    return ParserLimits.model_validate(_read_yaml(txt))
