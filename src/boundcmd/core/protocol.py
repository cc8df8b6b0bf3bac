from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

# ==== Argument type tags ====
ARG_DOUBLE = "d"
ARG_INT64 = "i"
ARG_UINT64 = "u"
ARG_STRING = "s"

ARG_TYPES = frozenset({ARG_DOUBLE, ARG_INT64, ARG_UINT64, ARG_STRING})

# Names used in "invalid <type> for arg N" messages
ARG_TYPE_NAMES: Dict[str, str] = {
    ARG_DOUBLE: "double",
    ARG_INT64: "int64_t",
    ARG_UINT64: "uint64_t",
    ARG_STRING: "string",
}

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MAX = (1 << 64) - 1

SEPARATOR = 0x20  # b" "
TERMINATOR = 0x00  # b"\0", end of input also terminates

# ==== Error taxonomy (frozen) ====
E_UNKNOWN_CMD = "E_UNKNOWN_CMD"
E_MISSING_WS = "E_MISSING_WS"
E_BAD_ARG = "E_BAD_ARG"
E_TOO_MANY_ARGS = "E_TOO_MANY_ARGS"
E_BAD_ARGTYPE = "E_BAD_ARGTYPE"
E_LINE_TOO_LONG = "E_LINE_TOO_LONG"  # framing check in host transports, not the parser

# ==== Error message formats (wire compatible) ====
MSG_UNKNOWN_CMD = "parse error: unknown command name %s"
MSG_MISSING_WS = "parse error: missing whitespace before arg %d"
MSG_BAD_ARG = "parse error: invalid %s for arg %d"
MSG_TOO_MANY_ARGS = "parse error: too many args (expected %d)"
MSG_BAD_ARGTYPE = "parse error: invalid argtype %c for arg %d"
MSG_LINE_TOO_LONG = "parse error: line too long (max %d bytes)"


def is_arg_end(buf: bytes, pos: int) -> bool:
    """True when ``pos`` sits on a separator or the line terminator."""
    if pos >= len(buf):
        return True
    b = buf[pos]
    return b == SEPARATOR or b == TERMINATOR


def at_terminator(buf: bytes, pos: int) -> bool:
    return pos >= len(buf) or buf[pos] == TERMINATOR


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    error_code: Optional[str]
    response: str
    command: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "ok": self.ok,
            "error_code": self.error_code,
            "response": self.response,
        }
        if self.command is not None:
            d["meta"] = {"cmd": self.command}
        return d


def line_too_long(max_line: int, response_size: int) -> CommandResult:
    """Result for a request line over ``max_line`` bytes, never handed to a parser."""
    return CommandResult(
        ok=False,
        error_code=E_LINE_TOO_LONG,
        response=(MSG_LINE_TOO_LONG % max_line)[:response_size],
    )
