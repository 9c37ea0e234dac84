import gc
import threading

import pytest

from callstack.dump import POINTER_SIZE, unpack_frames
from callstack.exceptions import (
    STACKTRACE_DUMP_SIZE,
    assert_no_pending_traces,
    current_exception_stacktrace,
    get_capture_stacktraces_at_throw,
    record_throw,
    set_capture_stacktraces_at_throw,
)
from callstack.frame import Frame


@pytest.fixture(autouse=True)
def _restore_capture():
    set_capture_stacktraces_at_throw(True)
    yield
    set_capture_stacktraces_at_throw(True)


def in_test_throw_1(msg):
    raise record_throw(RuntimeError(msg))


def in_test_throw_2(msg):
    raise record_throw(ValueError(msg))


def in_test_rethrow_1(msg):
    try:
        in_test_throw_1(msg)
    except RuntimeError as exc:
        raise record_throw(exc)


def _names(data):
    return [Frame(address).name() for address in unpack_frames(data)]


def test_capture_enabled_by_default():
    assert get_capture_stacktraces_at_throw() is True


def test_no_trace_when_disabled():
    set_capture_stacktraces_at_throw(False)
    assert get_capture_stacktraces_at_throw() is False
    try:
        in_test_throw_1("testing basic")
    except RuntimeError:
        assert current_exception_stacktrace() is None


def test_no_exception_gives_none():
    assert current_exception_stacktrace() is None


def test_trace_from_exception():
    try:
        in_test_throw_1("testing basic")
    except RuntimeError:
        data = current_exception_stacktrace()
    assert data is not None and len(data) == STACKTRACE_DUMP_SIZE - STACKTRACE_DUMP_SIZE % POINTER_SIZE or data
    names = _names(data)
    assert names[0].endswith("in_test_throw_1")
    assert any(name.endswith("test_trace_from_exception") for name in names)


def test_after_other_exception():
    try:
        in_test_throw_1("first")
    except RuntimeError:
        try:
            in_test_throw_2("second")
        except ValueError:
            pass
        names = _names(current_exception_stacktrace())
    assert any(name.endswith("in_test_throw_1") for name in names)
    assert not any(name.endswith("in_test_throw_2") for name in names)


def test_rethrow_keeps_original_trace():
    try:
        in_test_rethrow_1("test rethrow")
    except RuntimeError:
        names = _names(current_exception_stacktrace())
    assert names[0].endswith("in_test_throw_1")
    assert any(name.endswith("in_test_rethrow_1") for name in names)


def test_nested_handler_sees_inner_exception():
    try:
        in_test_throw_1("outer")
    except RuntimeError:
        try:
            in_test_throw_2("inner")
        except ValueError:
            names = _names(current_exception_stacktrace())
    assert names[0].endswith("in_test_throw_2")
    assert not any(name.endswith("in_test_throw_1") for name in names)


def test_trace_survives_across_threads():
    holder = []

    def worker():
        try:
            in_test_throw_2("from thread")
        except ValueError as exc:
            holder.append(exc)

    thread = threading.Thread(target=worker)
    thread.start()
    thread.join()
    try:
        raise holder[0]
    except ValueError:
        names = _names(current_exception_stacktrace())
    assert names[0].endswith("in_test_throw_2")


def test_capture_flag_is_per_thread():
    set_capture_stacktraces_at_throw(False)
    seen = []
    thread = threading.Thread(target=lambda: seen.append(get_capture_stacktraces_at_throw()))
    thread.start()
    thread.join()
    assert seen == [True]
    assert get_capture_stacktraces_at_throw() is False


def test_record_throw_returns_same_exception():
    exc = KeyError("k")
    assert record_throw(exc) is exc


def test_record_throw_rejects_non_exception():
    with pytest.raises(TypeError):
        record_throw("not an exception")


class _Frozen(Exception):
    def __setattr__(self, name, value):
        raise AttributeError(name)


def test_pending_traces_for_frozen_exceptions():
    exc = record_throw(_Frozen("frozen"))
    try:
        raise exc
    except _Frozen:
        assert current_exception_stacktrace()
    with pytest.raises(AssertionError):
        assert_no_pending_traces()
    del exc
    gc.collect()
    assert_no_pending_traces()
    assert current_exception_stacktrace() is None