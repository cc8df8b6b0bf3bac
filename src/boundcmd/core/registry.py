from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Union

from .arguments import ArgumentArray
from .limits import ParserLimits
from .protocol import ARG_TYPES
from .response import ResponseBuffer

_LOGGER = logging.getLogger(__name__)

Handler = Callable[[ArgumentArray, ResponseBuffer], None]
Name = Union[str, bytes]


def _name_bytes(name: Name) -> bytes:
    if isinstance(name, str):
        return name.encode("utf-8")
    return bytes(name)


@dataclass(frozen=True)
class CommandDefinition:
    name: bytes
    arg_types: str
    handler: Handler

    @property
    def arity(self) -> int:
        return len(self.arg_types)


class CommandRegistry:
    """Insertion-ordered, fixed-capacity table of command definitions.

    Populated once at startup; there is no unregister. Duplicate names are
    accepted but only the first one is ever looked up.
    """

    def __init__(self, limits: ParserLimits) -> None:
        self.limits = limits
        self._commands: List[CommandDefinition] = []

    def _reject(self, name: Name, reason: str) -> bool:
        _LOGGER.debug("register %r rejected: %s", name, reason)
        return False

    def register(self, name: Name, arg_types: str, handler: Optional[Handler]) -> bool:
        lim = self.limits
        if len(self._commands) >= lim.max_commands:
            return self._reject(name, f"registry full ({lim.max_commands} commands)")

        if not isinstance(name, (str, bytes, bytearray)):
            return self._reject(name, "name must be str or bytes")
        if not isinstance(arg_types, (str, bytes, bytearray)):
            return self._reject(name, "argtypes must be str or bytes")

        raw_name = _name_bytes(name)
        if len(raw_name) > lim.max_command_name_length:
            return self._reject(name, f"name longer than {lim.max_command_name_length} bytes")

        if isinstance(arg_types, (bytes, bytearray)):
            arg_types = arg_types.decode("ascii", errors="replace")
        if len(arg_types) > lim.max_command_args:
            return self._reject(name, f"more than {lim.max_command_args} args")
        for t in arg_types:
            if t not in ARG_TYPES:
                return self._reject(name, f"unknown argtype {t!r}")

        if handler is None or not callable(handler):
            return self._reject(name, "handler is not callable")

        self._commands.append(CommandDefinition(raw_name, arg_types, handler))
        _LOGGER.debug("registered %r (%s)", raw_name, arg_types or "no args")
        return True

    def lookup(self, name: bytes) -> Optional[CommandDefinition]:
        for cmd in self._commands:
            if cmd.name == name:
                return cmd
        return None

    @property
    def full(self) -> bool:
        return len(self._commands) >= self.limits.max_commands

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[CommandDefinition]:
        return iter(self._commands)
