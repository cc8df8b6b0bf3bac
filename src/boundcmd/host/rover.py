from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from boundcmd.core.arguments import ArgumentArray
from boundcmd.core.limits import ParserLimits
from boundcmd.core.parser import CommandParser
from boundcmd.core.response import ResponseBuffer


@dataclass
class RoverState:
    x: int = 0
    y: int = 0
    speed: float = 1.0
    mask: int = 0
    jumps: int = 0
    last_message: bytes = b""


class Rover:
    """Small simulated device driven through the command parser.

    Each handler consumes already-typed arguments and writes a short reply.
    """

    def __init__(self, state: Optional[RoverState] = None) -> None:
        self.state = state or RoverState()

    def move(self, args: ArgumentArray, response: ResponseBuffer) -> None:
        s = self.state
        s.x += args[0].as_int64
        s.y += args[1].as_int64
        response.printf("pos %d %d", s.x, s.y)

    def say(self, args: ArgumentArray, response: ResponseBuffer) -> None:
        self.state.last_message = args[0].as_bytes
        response.set(self.state.last_message)

    def jump(self, args: ArgumentArray, response: ResponseBuffer) -> None:
        self.state.jumps += 1
        response.printf("jumps %d", self.state.jumps)

    def set_speed(self, args: ArgumentArray, response: ResponseBuffer) -> None:
        self.state.speed = args[0].as_double
        response.printf("speed %g", self.state.speed)

    def set_mask(self, args: ArgumentArray, response: ResponseBuffer) -> None:
        self.state.mask = args[0].as_uint64
        response.printf("mask 0x%x", self.state.mask)

    def status(self, args: ArgumentArray, response: ResponseBuffer) -> None:
        s = self.state
        response.printf("x=%d y=%d speed=%g mask=0x%x jumps=%d", s.x, s.y, s.speed, s.mask, s.jumps)


def register_rover_commands(parser: CommandParser, rover: Rover) -> bool:
    """Register the rover command set. Returns False if any registration failed."""
    table = [
        ("move", "ii", rover.move),
        ("say", "s", rover.say),
        ("jump", "", rover.jump),
        ("speed", "d", rover.set_speed),
        ("mask", "u", rover.set_mask),
        ("status", "", rover.status),
    ]
    ok = True
    for name, arg_types, handler in table:
        ok = parser.register_command(name, arg_types, handler) and ok
    return ok


def make_rover_parser(limits: Optional[ParserLimits] = None, *, allow_unquoted_strings: bool = False) -> Tuple[CommandParser, Rover]:
    parser = CommandParser(limits, allow_unquoted_strings=allow_unquoted_strings)
    rover = Rover()
    if not register_rover_commands(parser, rover):
        raise ValueError("limits too small for the rover command set")
    return parser, rover
