from __future__ import annotations

import re
from typing import Optional, Tuple

from .protocol import INT64_MAX, UINT64_MAX, is_arg_end

_PREFIX_BASES = {ord("b"): 2, ord("o"): 8, ord("x"): 16}

# Decimal / exponential float grammar. The exponent group only matches when
# it carries digits, so "1e" consumes just "1" (as strtod does).
_DOUBLE_RE = re.compile(rb"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def _digit_value(b: int) -> int:
    """Value of an ASCII digit byte in base 36, or 99 for non-digits."""
    if 0x30 <= b <= 0x39:
        return b - 0x30
    b |= 0x20  # fold to lowercase
    if 0x61 <= b <= 0x7A:
        return b - 0x61 + 10
    return 99


def _read_sign(buf: bytes, pos: int) -> Tuple[bool, int]:
    if pos < len(buf) and buf[pos] in (0x2B, 0x2D):  # + -
        return buf[pos] == 0x2D, pos + 1
    return False, pos


def _read_base(buf: bytes, pos: int) -> Tuple[int, int]:
    if pos + 1 < len(buf) and buf[pos] == 0x30:
        base = _PREFIX_BASES.get(buf[pos + 1] | 0x20)
        if base is not None:
            return base, pos + 2
    return 10, pos


def _accumulate(buf: bytes, pos: int, base: int, limit: int) -> Optional[Tuple[int, int]]:
    """Read digits of ``base`` into a magnitude no larger than ``limit``.

    Overflow is detected before the multiply and before the add, so the
    parse fails at the first digit that would leave the range.
    """
    acc = 0
    start = pos
    max_before_mul = limit // base
    n = len(buf)
    while pos < n:
        d = _digit_value(buf[pos])
        if d >= base:
            break
        if acc > max_before_mul:
            return None
        acc *= base
        if acc > limit - d:
            return None
        acc += d
        pos += 1
    if pos == start:
        return None
    return acc, pos


def parse_int64(buf: bytes, pos: int) -> Optional[Tuple[int, int]]:
    """Parse a signed 64-bit integer at ``pos``. Returns (value, end) or None."""
    negative, pos = _read_sign(buf, pos)
    base, pos = _read_base(buf, pos)
    limit = INT64_MAX + 1 if negative else INT64_MAX
    got = _accumulate(buf, pos, base, limit)
    if got is None:
        return None
    mag, end = got
    if not is_arg_end(buf, end):
        return None
    return (-mag if negative else mag), end


def parse_uint64(buf: bytes, pos: int) -> Optional[Tuple[int, int]]:
    """Parse an unsigned 64-bit integer at ``pos``. A leading '-' is rejected."""
    negative, pos = _read_sign(buf, pos)
    if negative:
        return None
    base, pos = _read_base(buf, pos)
    got = _accumulate(buf, pos, base, UINT64_MAX)
    if got is None:
        return None
    value, end = got
    if not is_arg_end(buf, end):
        return None
    return value, end


def parse_double(buf: bytes, pos: int) -> Optional[Tuple[float, int]]:
    """Parse a decimal/exponential double at ``pos``. Returns (value, end) or None."""
    m = _DOUBLE_RE.match(buf, pos)
    if m is None:
        return None
    end = m.end()
    if not is_arg_end(buf, end):
        return None
    # float() rounds like strtod and yields inf on overflow
    return float(m.group(0).decode("ascii")), end
