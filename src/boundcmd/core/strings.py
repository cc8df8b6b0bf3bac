from __future__ import annotations

from typing import Optional, Tuple

from .protocol import TERMINATOR, is_arg_end

QUOTE = 0x22  # "
BACKSLASH = 0x5C  # \

_SIMPLE_ESCAPES = {
    ord("n"): 0x0A,
    ord("r"): 0x0D,
    ord("t"): 0x09,
    QUOTE: QUOTE,
    BACKSLASH: BACKSLASH,
}


def _hex_value(b: int) -> int:
    if 0x30 <= b <= 0x39:
        return b - 0x30
    b |= 0x20
    if 0x61 <= b <= 0x66:
        return b - 0x61 + 10
    return -1


def _decode_escape(buf: bytes, pos: int) -> Optional[Tuple[int, int]]:
    """Decode the escape whose selector byte is at ``pos`` (just past the backslash).

    Returns (byte, next_pos) or None for an unknown or truncated escape.
    """
    n = len(buf)
    if pos >= n:
        return None
    sel = buf[pos]
    simple = _SIMPLE_ESCAPES.get(sel)
    if simple is not None:
        return simple, pos + 1
    if sel == ord("x"):
        if pos + 2 >= n:
            return None
        hi = _hex_value(buf[pos + 1])
        lo = _hex_value(buf[pos + 2])
        if hi < 0 or lo < 0:
            return None
        return (hi << 4) | lo, pos + 3
    return None


def parse_quoted_string(buf: bytes, pos: int, out: bytearray, capacity: int) -> Optional[Tuple[int, int]]:
    """Decode a double-quoted string literal starting at ``pos`` into ``out``.

    At most ``capacity`` bytes are decoded. Running out of room before the
    closing quote counts the same as never closing it. Returns
    (length, end) where ``end`` is just past the closing quote.
    """
    n = len(buf)
    if pos >= n or buf[pos] != QUOTE:
        return None
    pos += 1

    i = 0
    while i < capacity and pos < n and buf[pos] != QUOTE and buf[pos] != TERMINATOR:
        b = buf[pos]
        if b == BACKSLASH:
            got = _decode_escape(buf, pos + 1)
            if got is None:
                return None
            out[i], pos = got
        else:
            out[i] = b
            pos += 1
        i += 1

    if pos >= n or buf[pos] != QUOTE:
        return None
    return i, pos + 1


def parse_bare_string(buf: bytes, pos: int, out: bytearray, capacity: int) -> Optional[Tuple[int, int]]:
    """Legacy unquoted form: a run of non-space bytes, escapes allowed.

    Over-length input fails rather than truncating, like the quoted form.
    """
    i = 0
    while not is_arg_end(buf, pos):
        if i == capacity:
            return None
        b = buf[pos]
        if b == BACKSLASH:
            got = _decode_escape(buf, pos + 1)
            if got is None:
                return None
            out[i], pos = got
        else:
            out[i] = b
            pos += 1
        i += 1
    if i == 0:
        return None
    return i, pos


def parse_string(buf: bytes, pos: int, out: bytearray, capacity: int, *, allow_unquoted: bool = False) -> Optional[Tuple[int, int]]:
    if pos < len(buf) and buf[pos] == QUOTE:
        return parse_quoted_string(buf, pos, out, capacity)
    if allow_unquoted:
        return parse_bare_string(buf, pos, out, capacity)
    return None
