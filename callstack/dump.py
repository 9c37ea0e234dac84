"""Capturing the current call stack and storing it as a binary dump.

A dump is a sequence of native-endian, pointer-sized unsigned integers, one per
frame, followed by a terminating zero word.
"""

from __future__ import annotations

import os
import struct
import sys
from typing import BinaryIO, Iterable, Union

from callstack.frame import Frame

MAX_FRAMES_DUMP = 128
POINTER_SIZE = struct.calcsize("P")

DumpTarget = Union[str, bytes, "os.PathLike[str]", int, BinaryIO]


def _check_count(value: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{what} must be non-negative, got {value}")
    return value


def collect(max_frames_count: int, skip: int = 0) -> list[int]:
    """Return addresses of at most ``max_frames_count`` frames of the current stack.

    The first address belongs to the caller of this function, unless ``skip``
    more frames are dropped from the top. Returns an empty list when the stack
    is shorter than ``skip``.
    """
    _check_count(max_frames_count, "max_frames_count")
    _check_count(skip, "skip")
    if not max_frames_count:
        return []
    frame = sys._getframe(1)
    for _ in range(skip):
        if frame is None:
            return []
        frame = frame.f_back
    addresses: list[int] = []
    while frame is not None and len(addresses) < max_frames_count:
        addresses.append(Frame(frame).address)
        frame = frame.f_back
    return addresses


def pack_frames(frames: Iterable[int]) -> bytes:
    """Serialise addresses as native pointer-sized words, without adding a terminator."""
    values = list(frames)
    try:
        return struct.pack(f"{len(values)}P", *values)
    except struct.error as exc:
        raise ValueError(f"cannot pack frame addresses: {exc}") from exc


def unpack_frames(data: bytes) -> list[int]:
    """Read addresses from a dump up to the first zero word or the end of the data.

    A trailing partial word is ignored.
    """
    view = memoryview(data).cast("B")
    whole = len(view) - len(view) % POINTER_SIZE
    frames: list[int] = []
    for (value,) in struct.iter_unpack("P", view[:whole]):
        if not value:
            break
        frames.append(value)
    return frames


def _write_fd(fd: int, payload: bytes) -> bool:
    # A single write, no retry: a short or interrupted write is not repeated.
    try:
        os.write(fd, payload)
    except OSError:
        return False
    return True


def dump(file: DumpTarget, frames: Iterable[int]) -> int:
    """Write the addresses to ``file`` and return how many were written.

    ``file`` is a path (created or truncated, readable and writable by the
    owner only), an open file descriptor, or a binary stream. Returns 0 when
    writing fails.
    """
    values = list(frames)
    payload = pack_frames(values)
    if isinstance(file, bool):
        raise TypeError("file cannot be a bool")
    if isinstance(file, int):
        return len(values) if _write_fd(file, payload) else 0
    if isinstance(file, (str, bytes, os.PathLike)):
        try:
            fd = os.open(file, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o600)
        except OSError:
            return 0
        try:
            return len(values) if _write_fd(fd, payload) else 0
        finally:
            os.close(fd)
    try:
        file.write(payload)
    except (OSError, ValueError):
        return 0
    return len(values)


def dump_to_buffer(size: int, skip: int = 0) -> bytes:
    """Capture the caller's stack into at most ``size`` bytes of dump data.

    The result holds as many frames as fit followed by a zero word; its length
    divided by the pointer size is the stored depth including the terminator.
    Returns empty bytes when ``size`` cannot hold even the terminator.
    """
    _check_count(size, "size")
    _check_count(skip, "skip")
    if size < POINTER_SIZE:
        return b""
    frames = collect(size // POINTER_SIZE - 1, skip + 1)
    frames.append(0)
    return pack_frames(frames)


def safe_dump_to(file: DumpTarget, skip: int = 0, max_depth: int = MAX_FRAMES_DUMP) -> int:
    """Write the caller's stack to ``file`` as a dump.

    At most ``max_depth`` frames are stored, capped at :data:`MAX_FRAMES_DUMP`.
    Returns the stored depth including the terminating zero frame, or 0 when
    writing fails.
    """
    _check_count(skip, "skip")
    _check_count(max_depth, "max_depth")
    max_depth = min(max_depth, MAX_FRAMES_DUMP)
    frames = collect(max_depth, skip + 1)
    frames.append(0)
    return dump(file, frames)