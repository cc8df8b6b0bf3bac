from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union

from .protocol import ARG_DOUBLE, ARG_INT64, ARG_STRING, ARG_UINT64

ArgValue = Union[float, int, bytes]


@dataclass
class Argument:
    """One reusable argument slot.

    Holds exactly one of double / int64 / uint64 / bounded byte string; ``kind``
    names the active field. Slots are overwritten on every processed line and
    the inactive fields keep whatever an earlier line left there.
    """

    capacity: int
    kind: Optional[str] = None
    as_double: float = 0.0
    as_int64: int = 0
    as_uint64: int = 0
    _buf: bytearray = field(init=False, repr=False)
    _len: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        self._buf = bytearray(self.capacity)

    def set_double(self, v: float) -> None:
        self.kind = ARG_DOUBLE
        self.as_double = v

    def set_int64(self, v: int) -> None:
        self.kind = ARG_INT64
        self.as_int64 = v

    def set_uint64(self, v: int) -> None:
        self.kind = ARG_UINT64
        self.as_uint64 = v

    @property
    def string_buffer(self) -> bytearray:
        """Raw storage the string decoder writes into."""
        return self._buf

    def commit_string(self, length: int) -> None:
        self.kind = ARG_STRING
        self._len = length

    @property
    def as_bytes(self) -> bytes:
        return bytes(self._buf[: self._len])

    @property
    def as_string(self) -> str:
        # Grammar is byte-oriented; undecodable bytes survive as surrogates
        return self.as_bytes.decode("utf-8", errors="surrogateescape")

    @property
    def value(self) -> Optional[ArgValue]:
        if self.kind == ARG_DOUBLE:
            return self.as_double
        if self.kind == ARG_INT64:
            return self.as_int64
        if self.kind == ARG_UINT64:
            return self.as_uint64
        if self.kind == ARG_STRING:
            return self.as_bytes
        return None


class ArgumentArray:
    """Fixed-size array of argument slots sized to the maximum arity."""

    def __init__(self, count: int, arg_size: int) -> None:
        self._slots: List[Argument] = [Argument(arg_size) for _ in range(count)]

    def __getitem__(self, i: int) -> Argument:
        return self._slots[i]

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[Argument]:
        return iter(self._slots)

    def values(self, arity: int) -> List[Optional[ArgValue]]:
        """Active values of the first ``arity`` slots."""
        return [self._slots[i].value for i in range(arity)]
