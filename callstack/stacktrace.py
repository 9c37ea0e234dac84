"""Call stacks captured as sequences of frames.

A :class:`Stacktrace` is built by capturing the current stack, by reading a
binary dump (see :mod:`callstack.dump`) or from the trace recorded for the
exception being handled (see :mod:`callstack.exceptions`).
"""

from __future__ import annotations

import functools
import io
import sys
from collections.abc import Sequence
from typing import BinaryIO, Iterable, Iterator, overload

from callstack.dump import POINTER_SIZE, collect, unpack_frames
from callstack.exceptions import current_exception_stacktrace
from callstack.frame import Frame, frames_to_string

_MAX_DUMP_FRAMES = 1024


def _frames_count_from_buffer_size(buffer_size: int) -> int:
    count = buffer_size // POINTER_SIZE if buffer_size > POINTER_SIZE else 0
    # Suspiciously big sizes are capped.
    return min(count, _MAX_DUMP_FRAMES)


def _check_count(value: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{what} must be non-negative, got {value}")
    return value


@functools.total_ordering
class Stacktrace(Sequence):
    """An immutable sequence of frames; index 0 is where the trace was taken.

    ``Stacktrace()`` captures the whole stack of the caller.
    ``Stacktrace(skip, max_depth)`` keeps frames ``[skip, skip + max_depth)``.
    """

    __slots__ = ("_frames",)

    def __init__(self, skip: int = 0, max_depth: int | None = None) -> None:
        _check_count(skip, "skip")
        if max_depth is None:
            max_depth = sys.maxsize
        _check_count(max_depth, "max_depth")
        if not max_depth:
            self._frames: tuple[Frame, ...] = ()
            return
        addresses = collect(max_depth, skip + 1)
        self._frames = tuple(Frame(address) for address in addresses if address)

    @classmethod
    def _of(cls, frames: Iterable[Frame]) -> "Stacktrace":
        trace = cls.__new__(cls)
        trace._frames = tuple(frames)
        return trace

    def __len__(self) -> int:
        return len(self._frames)

    @overload
    def __getitem__(self, index: int) -> Frame: ...

    @overload
    def __getitem__(self, index: slice) -> list[Frame]: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return list(self._frames[index])
        return self._frames[index]

    def __iter__(self) -> Iterator[Frame]:
        return iter(self._frames)

    def __reversed__(self) -> Iterator[Frame]:
        return reversed(self._frames)

    def __bool__(self) -> bool:
        return not self.empty()

    def empty(self) -> bool:
        """Whether no frames were captured."""
        return not self._frames

    def as_list(self) -> list[Frame]:
        """The frames as a new list."""
        return list(self._frames)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Stacktrace):
            return NotImplemented
        return self._frames == other._frames

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Stacktrace):
            return NotImplemented
        if len(self) != len(other):
            return len(self) < len(other)
        return self._frames < other._frames

    def __hash__(self) -> int:
        return hash(tuple(frame.address for frame in self._frames))

    def __repr__(self) -> str:
        return f"Stacktrace({list(self._frames)!r})"

    def __str__(self) -> str:
        return to_string(self)

    @classmethod
    def from_dump(cls, data: bytes) -> "Stacktrace":
        """Build a trace from dump bytes; the terminating zero frame is dropped."""
        view = memoryview(data).cast("B")
        frames_count = _frames_count_from_buffer_size(len(view))
        if not frames_count:
            return cls._of(())
        addresses = unpack_frames(view[: frames_count * POINTER_SIZE])
        return cls._of(Frame(address) for address in addresses)

    @classmethod
    def from_stream(cls, stream: BinaryIO) -> "Stacktrace":
        """Read a dump from a binary stream, starting at its current position."""
        try:
            position = stream.tell()
            total = stream.seek(0, io.SEEK_END)
            stream.seek(position)
        except (OSError, ValueError, AttributeError):
            total = None
        if total is not None and not _frames_count_from_buffer_size(total):
            return cls._of(())
        data = stream.read()
        if not data:
            return cls._of(())
        return cls._of(Frame(address) for address in unpack_frames(data))

    @classmethod
    def from_current_exception(cls) -> "Stacktrace":
        """Trace captured where the exception being handled was first raised.

        Empty when no exception is handled, capturing is disabled for this
        thread, or the exception carries no trace.
        """
        trace = current_exception_stacktrace()
        if trace:
            return cls.from_dump(trace)
        return cls._of(())


def to_string(trace: Stacktrace) -> str:
    """Human readable, numbered description of a trace; empty for an empty one."""
    if not trace:
        return ""
    return frames_to_string(trace)