"""Small number-to-text and text-to-number helpers used when formatting frames."""

from __future__ import annotations

import re
import struct

POINTER_BITS = struct.calcsize("P") * 8
ULONG_BITS = struct.calcsize("L") * 8
ULONG_MAX = (1 << ULONG_BITS) - 1

_DEC_PREFIX = re.compile(r"[ \t\n\v\f\r]*([+-]?)([0-9]+)", re.ASCII)


def to_dec(value: int) -> str:
    """Return the decimal representation of a non-negative integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"value must be non-negative, got {value}")
    return str(value)


def to_hex(addr: int | None) -> str:
    """Format an address as ``0x`` followed by zero-padded upper-case hex digits.

    The width is that of a native pointer; ``None`` stands for the null address.
    Values outside the pointer range wrap around as an unsigned pointer would.
    """
    value = 0 if addr is None else int(addr)
    value &= (1 << POINTER_BITS) - 1
    return f"0x{value:0{POINTER_BITS // 4}X}"


def try_dec_convert(s: str) -> int | None:
    """Parse ``s`` as an unsigned decimal number the way ``strtoul`` does.

    Leading whitespace and a sign are accepted, negative numbers wrap around,
    overflow saturates. Returns ``None`` when characters remain after the number.
    """
    match = _DEC_PREFIX.match(s)
    if match is None:
        # Nothing was converted: the parse only counts as complete for "".
        return 0 if s == "" else None
    if match.end() != len(s):
        return None
    sign, digits = match.groups()
    magnitude = int(digits)
    if magnitude > ULONG_MAX:
        return ULONG_MAX
    if sign == "-":
        return (-magnitude) & ULONG_MAX
    return magnitude