"""Capturing the call stack at the point where an exception is raised.

Python offers no hook into exception creation, so the raising code marks the
exception with :func:`record_throw`::

    raise record_throw(ValueError("bad value"))

The captured stack is stored as a dump (see :mod:`callstack.dump`) alongside
the exception. While that exception is being handled,
:func:`current_exception_stacktrace` returns it. Capturing is switched on or
off for each thread with :func:`set_capture_stacktraces_at_throw`.
"""

from __future__ import annotations

import threading
import weakref

from callstack.dump import dump_to_buffer

STACKTRACE_DUMP_SIZE = 4096

_TRACE_ATTRIBUTE = "__callstack_dump__"

_settings = threading.local()

# Exceptions that refuse new attributes keep their dumps here instead,
# keyed by id and holding only a weak reference to the exception.
_registry_lock = threading.Lock()
_registry: dict[int, tuple[weakref.ref, bytes]] = {}


def set_capture_stacktraces_at_throw(enable: bool = True) -> None:
    """Enable or disable capturing by the current thread in :func:`record_throw`."""
    _settings.capture = bool(enable)


def get_capture_stacktraces_at_throw() -> bool:
    """Whether the current thread captures stacks in :func:`record_throw`."""
    return getattr(_settings, "capture", True)


def _prune_locked() -> None:
    dead = [key for key, (ref, _) in _registry.items() if ref() is None]
    for key in dead:
        del _registry[key]


def _stored_dump(exc: BaseException) -> bytes | None:
    stored = exc.__dict__.get(_TRACE_ATTRIBUTE) if hasattr(exc, "__dict__") else None
    if stored is not None:
        return stored
    with _registry_lock:
        entry = _registry.get(id(exc))
        if entry is not None and entry[0]() is exc:
            return entry[1]
    return None


def _store_dump(exc: BaseException, data: bytes) -> None:
    try:
        setattr(exc, _TRACE_ATTRIBUTE, data)
        return
    except (AttributeError, TypeError):
        pass
    try:
        ref = weakref.ref(exc)
    except TypeError:
        # Neither an attribute nor a weak reference can be attached: no trace.
        return
    with _registry_lock:
        _prune_locked()
        _registry[id(exc)] = (ref, data)


def record_throw(exc: BaseException) -> BaseException:
    """Capture the caller's stack into ``exc`` and return ``exc``.

    Nothing is captured when capturing is disabled for this thread. An
    exception that already holds a trace keeps it, so raising it again does
    not alter the captured stack.
    """
    if not isinstance(exc, BaseException):
        raise TypeError(f"expected an exception, got {type(exc).__name__}")
    if not get_capture_stacktraces_at_throw():
        return exc
    if _stored_dump(exc) is not None:
        return exc
    data = dump_to_buffer(STACKTRACE_DUMP_SIZE, skip=1)
    _store_dump(exc, data)
    return exc


def current_exception_stacktrace() -> bytes | None:
    """Dump captured for the exception being handled, or ``None``.

    ``None`` is returned when capturing is disabled for this thread, when no
    exception is being handled, or when the exception carries no trace.
    """
    if not get_capture_stacktraces_at_throw():
        return None
    import sys

    exc = sys.exc_info()[1]
    if exc is None:
        return None
    return _stored_dump(exc)


def assert_no_pending_traces() -> None:
    """Raise AssertionError if traces remain stored for exceptions still alive
    outside their own attributes."""
    with _registry_lock:
        _prune_locked()
        pending = len(_registry)
    if pending:
        raise AssertionError(f"{pending} stacktrace(s) still pending")