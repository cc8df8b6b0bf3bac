from __future__ import annotations

import logging
from typing import Optional, Union

from .arguments import ArgumentArray
from .limits import ParserLimits
from .numbers import parse_double, parse_int64, parse_uint64
from .protocol import (
    ARG_DOUBLE,
    ARG_INT64,
    ARG_STRING,
    ARG_TYPE_NAMES,
    ARG_UINT64,
    E_BAD_ARG,
    E_BAD_ARGTYPE,
    E_MISSING_WS,
    E_TOO_MANY_ARGS,
    E_UNKNOWN_CMD,
    MSG_BAD_ARG,
    MSG_BAD_ARGTYPE,
    MSG_MISSING_WS,
    MSG_TOO_MANY_ARGS,
    MSG_UNKNOWN_CMD,
    SEPARATOR,
    TERMINATOR,
    CommandResult,
    at_terminator,
)
from .registry import CommandRegistry, Handler, Name
from .response import ResponseBuffer, Text
from .strings import parse_string

_LOGGER = logging.getLogger(__name__)

Line = Union[str, bytes, bytearray]


def _line_bytes(line: Line) -> bytes:
    if isinstance(line, str):
        return line.encode("utf-8")
    return bytes(line)


class CommandParser:
    """Parses ``NAME ARG1 ARG2 ...`` lines and dispatches to registered handlers.

    One instance owns the registry, the argument slots and a response buffer,
    all sized once from ``limits``. Slots and buffer are reused by every call,
    so an instance must only process one line at a time.
    """

    def __init__(self, limits: Optional[ParserLimits] = None, *, allow_unquoted_strings: bool = False) -> None:
        self.limits = limits or ParserLimits()
        self.allow_unquoted_strings = allow_unquoted_strings
        self.registry = CommandRegistry(self.limits)
        self.args = ArgumentArray(self.limits.max_command_args, self.limits.max_command_arg_size)
        self.response = ResponseBuffer(self.limits.max_response_size)
        self.last_error_code: Optional[str] = None
        self.last_command_name: bytes = b""

    def register_command(self, name: Name, arg_types: str, handler: Optional[Handler]) -> bool:
        return self.registry.register(name, arg_types, handler)

    def _fail(self, response: ResponseBuffer, code: str, message: Text) -> bool:
        self.last_error_code = code
        response.set(message)
        _LOGGER.debug("rejected %r: %s", self.last_command_name, response.text)
        return False

    def process_command(self, line: Line, response: ResponseBuffer) -> bool:
        """Parse one line and invoke its handler.

        Returns True once the handler ran (``response`` holds whatever it
        wrote, possibly nothing). Returns False with the parse error message
        in ``response`` otherwise; no handler is called in that case.
        """
        buf = _line_bytes(line)
        n = len(buf)
        lim = self.limits

        # command name: up to the first space/terminator, truncated at the bound
        pos = 0
        while pos < lim.max_command_name_length and pos < n and buf[pos] != SEPARATOR and buf[pos] != TERMINATOR:
            pos += 1
        name = buf[:pos]
        self.last_command_name = name

        cmd = self.registry.lookup(name)
        if cmd is None:
            return self._fail(response, E_UNKNOWN_CMD, MSG_UNKNOWN_CMD.encode("ascii") % name)

        for i, arg_type in enumerate(cmd.arg_types):
            argno = i + 1
            if pos >= n or buf[pos] != SEPARATOR:
                return self._fail(response, E_MISSING_WS, MSG_MISSING_WS % argno)
            while pos < n and buf[pos] == SEPARATOR:
                pos += 1

            slot = self.args[i]
            if arg_type == ARG_DOUBLE:
                got = parse_double(buf, pos)
                if got is not None:
                    slot.set_double(got[0])
            elif arg_type == ARG_UINT64:
                got = parse_uint64(buf, pos)
                if got is not None:
                    slot.set_uint64(got[0])
            elif arg_type == ARG_INT64:
                got = parse_int64(buf, pos)
                if got is not None:
                    slot.set_int64(got[0])
            elif arg_type == ARG_STRING:
                got = parse_string(
                    buf,
                    pos,
                    slot.string_buffer,
                    lim.max_command_arg_size,
                    allow_unquoted=self.allow_unquoted_strings,
                )
                if got is not None:
                    slot.commit_string(got[0])
            else:
                # unreachable through register(), which validates tags
                return self._fail(response, E_BAD_ARGTYPE, MSG_BAD_ARGTYPE % (arg_type, argno))

            if got is None:
                return self._fail(response, E_BAD_ARG, MSG_BAD_ARG % (ARG_TYPE_NAMES[arg_type], argno))
            pos = got[1]

        while pos < n and buf[pos] == SEPARATOR:
            pos += 1
        if not at_terminator(buf, pos):
            return self._fail(response, E_TOO_MANY_ARGS, MSG_TOO_MANY_ARGS % cmd.arity)

        self.last_error_code = None
        response.clear()
        cmd.handler(self.args, response)
        return True

    def process(self, line: Line) -> CommandResult:
        """Process ``line`` into the parser's own response buffer."""
        ok = self.process_command(line, self.response)
        return CommandResult(
            ok=ok,
            error_code=self.last_error_code,
            response=self.response.text,
            command=self.last_command_name.decode("utf-8", errors="replace"),
        )

