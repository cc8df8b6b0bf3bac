from __future__ import annotations

from typing import Any, Union

Text = Union[str, bytes, bytearray]


def _as_bytes(text: Text) -> bytes:
    if isinstance(text, str):
        return text.encode("utf-8")
    return bytes(text)


class ResponseBuffer:
    """Fixed-capacity response storage, allocated once and reused.

    Writes are truncated at ``size`` bytes; the buffer never grows.
    """

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError("response buffer size must be >= 1")
        self.size = size
        self._buf = bytearray(size)
        self._len = 0

    def clear(self) -> None:
        self._len = 0

    def set(self, text: Text) -> int:
        """Replace the contents (snprintf semantics). Returns bytes stored."""
        self._len = 0
        return self.append(text)

    def append(self, text: Text) -> int:
        data = _as_bytes(text)
        n = min(len(data), self.size - self._len)
        self._buf[self._len:self._len + n] = data[:n]
        self._len += n
        return n

    def printf(self, fmt: str, *args: Any) -> int:
        return self.set(fmt % args)

    @property
    def value(self) -> bytes:
        return bytes(self._buf[: self._len])

    @property
    def text(self) -> str:
        # Truncation may split a multi-byte sequence
        return self.value.decode("utf-8", errors="replace")

    @property
    def full(self) -> bool:
        return self._len == self.size

    def __len__(self) -> int:
        return self._len

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"ResponseBuffer(size={self.size}, value={self.value!r})"
