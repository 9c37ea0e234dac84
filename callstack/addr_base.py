"""Finding the load base of a mapped region from a ``/proc/<pid>/maps`` table."""

from __future__ import annotations

import re
from dataclasses import dataclass

from callstack.numconv import POINTER_BITS

_POINTER_MASK = (1 << POINTER_BITS) - 1
_HEX = re.compile(r"[ \t\n\v\f\r]*([+-]?)(?:0[xX])?([0-9a-fA-F]+)", re.ASCII)


@dataclass(frozen=True)
class MappingEntry:
    """One address range of a memory map and its offset in the mapped file."""

    start: int = 0
    end: int = 0
    offset_from_base: int = 0

    def contains_addr(self, addr: int) -> bool:
        """Whether ``addr`` lies in the half-open range ``[start, end)``."""
        return self.start <= addr < self.end


def hex_str_to_int(s: str) -> int:
    """Convert a whole hexadecimal string to an integer.

    Raises ValueError if the string is not entirely a hexadecimal number.
    """
    match = _HEX.fullmatch(s)
    if match is None:
        raise ValueError(f"can't convert '{s}' to hex")
    sign, digits = match.groups()
    value = int(digits, 16)
    if value > _POINTER_MASK:
        raise ValueError(f"can't convert '{s}' to hex")
    return (-value) & _POINTER_MASK if sign == "-" else value


def parse_proc_maps_line(line: str) -> MappingEntry:
    """Parse the range and file offset of a maps line.

    A line looks like
    ``7fb60d1ea000-7fb60d20c000 r--p 00000000 103:02 120327460  /usr/lib/libc.so.6``.
    Lines that cannot be parsed give an empty entry.
    """
    fields = line.split(" ", 3)
    if len(fields) < 3 or not fields[0] or (len(fields) == 3 and not fields[2]):
        return MappingEntry()
    range_str, _permissions, offset_str = fields[:3]
    start_str, separator, end_str = range_str.partition("-")
    if not separator or not end_str:
        return MappingEntry()
    try:
        return MappingEntry(
            start=hex_str_to_int(start_str),
            end=hex_str_to_int(end_str),
            offset_from_base=hex_str_to_int(offset_str),
        )
    except ValueError:
        return MappingEntry()


def get_own_proc_addr_base(addr: int, maps_path: str = "/proc/self/maps") -> int:
    """Return the load base of the mapping holding ``addr``, or 0 if none does."""
    try:
        with open(maps_path, encoding="utf-8", errors="replace") as maps_file:
            for line in maps_file:
                mapping = parse_proc_maps_line(line.rstrip("\n"))
                if mapping.contains_addr(addr):
                    return (mapping.start - mapping.offset_from_base) & _POINTER_MASK
    except OSError:
        return 0
    return 0