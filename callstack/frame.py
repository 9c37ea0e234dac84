"""Frames of a call stack: addresses that can later be resolved to names and lines.

An address is an integer. Addresses of Python code are handed out by
:func:`address_of`, which registers the code object and packs its index together
with the bytecode offset. Unregistered addresses are kept and compared like any
other address, but resolve to nothing.
"""

from __future__ import annotations

import functools
import threading
from types import CodeType, FrameType
from typing import Iterable

from callstack.numconv import POINTER_BITS, to_dec, to_hex

_OFFSET_BITS = 24
_OFFSET_LIMIT = 1 << _OFFSET_BITS
_INDEX_LIMIT = 1 << (POINTER_BITS - _OFFSET_BITS)
_POINTER_LIMIT = 1 << POINTER_BITS

_lock = threading.Lock()
_codes: list[CodeType] = []
_index_by_id: dict[int, int] = {}


def _code_of(obj: object) -> CodeType:
    if isinstance(obj, CodeType):
        return obj
    code = getattr(obj, "__code__", None)
    if isinstance(code, CodeType):
        return code
    raise TypeError(f"expected a code object or a function, got {type(obj).__name__}")


def address_of(code: object, offset: int = 0) -> int:
    """Return the address standing for ``offset`` in ``code``.

    ``code`` is a code object or anything with a ``__code__`` attribute.
    The same code object and offset always give the same non-zero address.
    """
    code_obj = _code_of(code)
    if isinstance(offset, bool) or not isinstance(offset, int):
        raise TypeError(f"offset must be an integer, got {type(offset).__name__}")
    if not 0 <= offset < _OFFSET_LIMIT:
        raise ValueError(f"offset out of range: {offset}")
    with _lock:
        index = _index_by_id.get(id(code_obj))
        if index is None:
            index = len(_codes) + 1
            if index >= _INDEX_LIMIT:
                raise OverflowError("too many code objects registered")
            # Holding the code object keeps its id from being reused.
            _codes.append(code_obj)
            _index_by_id[id(code_obj)] = index
    return (index << _OFFSET_BITS) | offset


def resolve(address: int) -> tuple[CodeType, int] | None:
    """Return ``(code, offset)`` for an address from :func:`address_of`, else ``None``."""
    if not address or address < 0:
        return None
    index, offset = divmod(address, _OFFSET_LIMIT)
    with _lock:
        if 1 <= index <= len(_codes):
            return _codes[index - 1], offset
    return None


def _line_of(code: CodeType, offset: int) -> int:
    for start, end, line in code.co_lines():
        if start <= offset < end:
            return line or 0
    return 0


@functools.total_ordering
class Frame:
    """One frame of a call stack, identified by its address.

    Built from nothing (the null frame), an integer address, a Python frame
    object, a code object or a function.
    """

    __slots__ = ("_address",)

    def __init__(self, target: object = None) -> None:
        if target is None:
            address = 0
        elif isinstance(target, bool):
            raise TypeError("a frame address cannot be a bool")
        elif isinstance(target, int):
            if not 0 <= target < _POINTER_LIMIT:
                raise ValueError(f"address out of range: {target}")
            address = target
        elif isinstance(target, FrameType):
            address = address_of(target.f_code, max(target.f_lasti, 0))
        else:
            address = address_of(_code_of(target), 0)
        self._address = address

    @property
    def address(self) -> int:
        """The address this frame references."""
        return self._address

    def empty(self) -> bool:
        """Whether the frame references the null address."""
        return not self._address

    def __bool__(self) -> bool:
        return not self.empty()

    def name(self) -> str:
        """Function name of the frame, or an empty string if unknown."""
        resolved = resolve(self._address)
        if resolved is None:
            return ""
        code = resolved[0]
        return getattr(code, "co_qualname", code.co_name)

    def source_line(self) -> int:
        """Source line of the frame, or 0 if unknown."""
        resolved = resolve(self._address)
        if resolved is None:
            return 0
        return _line_of(*resolved)

    def source_file(self) -> str:
        """Source file of the frame; empty whenever :meth:`source_line` is 0."""
        resolved = resolve(self._address)
        if resolved is None or not _line_of(*resolved):
            return ""
        return resolved[0].co_filename

    def location(self) -> str:
        """File the frame's code was loaded from, or an empty string if unknown."""
        resolved = resolve(self._address)
        return "" if resolved is None else resolved[0].co_filename

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Frame):
            return NotImplemented
        return self._address == other._address

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Frame):
            return NotImplemented
        return self._address < other._address

    def __hash__(self) -> int:
        return self._address

    def __repr__(self) -> str:
        return f"Frame({to_hex(self._address)})"

    def __str__(self) -> str:
        return frame_to_string(self)


def _describe(frame: Frame) -> str:
    res = frame.name() or to_hex(frame.address)
    source_file = frame.source_file()
    line = frame.source_line()
    if source_file and line:
        return f"{res} at {source_file}:{to_dec(line)}"
    location = frame.location()
    if location:
        return f"{res} in {location}"
    return res


def frame_to_string(frame: Frame) -> str:
    """Human readable description of one frame; empty for the null frame."""
    if not frame:
        return ""
    return _describe(frame)


def frames_to_string(frames: Iterable[Frame]) -> str:
    """Numbered, one-per-line description of a sequence of frames."""
    lines = []
    for index, frame in enumerate(frames):
        pad = " " if index < 10 else ""
        lines.append(f"{pad}{to_dec(index)}# {_describe(frame)}\n")
    return "".join(lines)