# callstack

Capture the call stack of the running Python program as a list of frames,
compare and hash it, save it to a compact binary dump and read it back
later, and print it in a readable numbered form.

## Installing

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Capturing a stack

```python
from callstack.stacktrace import Stacktrace, to_string

trace = Stacktrace()
print(to_string(trace))
```

A `Stacktrace` is an immutable sequence of `Frame` objects: it has a
length, can be indexed, sliced and iterated, and is false when nothing was
captured (`empty()` says the same). Index 0 is the function that took the
trace. Two traces compare equal when their frames are equal; a shorter
trace orders before a longer one, and traces can be hashed. `as_list()`
returns the frames as a new list.

`Stacktrace(skip, max_depth)` leaves out the `skip` innermost frames and
keeps at most `max_depth` of the rest; `Stacktrace(0, 0)` is always empty.

## Frames

`callstack.frame.Frame` holds one integer address. It is built from
nothing (the null frame), an integer address, a Python frame object, a
code object or a function. Addresses of Python code are handed out by
`address_of(code, offset)` and turned back into `(code, offset)` by
`resolve(address)`; other addresses are kept and compared, but resolve to
nothing.

Each frame gives `name()` (the qualified function name), `source_file()`,
`source_line()` and `location()` (the file the code came from). A null or
unresolvable frame gives an empty name, an empty file and line `0`.
Frames compare and hash by address. `frame_to_string` formats one frame
as `name at file:line`, and `frames_to_string` formats a numbered list:

```
 0# inner at /path/to/app.py:12
 1# outer at /path/to/app.py:20
```

## Dumping and reloading

`callstack.dump` writes a stack as native pointer-sized words followed by
a terminating zero word:

```python
from callstack.dump import safe_dump_to
from callstack.stacktrace import Stacktrace

safe_dump_to("./backtrace.dump", 0, 128)

# later, for example on the next start of the program
with open("./backtrace.dump", "rb") as stream:
    previous = Stacktrace.from_stream(stream)
print(previous)
```

`safe_dump_to(file, skip, max_depth)` accepts a path (created or
truncated with owner-only permissions), an open file descriptor or a
binary stream, stores at most `MAX_FRAMES_DUMP` (128) frames and returns
the stored depth including the terminator, or 0 when writing fails.
`dump_to_buffer(size, skip)` returns the dump as bytes of at most `size`
bytes, and `Stacktrace.from_dump` reads such bytes back. `collect`,
`pack_frames`, `unpack_frames` and `dump` work with addresses and the
binary form directly.

Addresses of Python code are only meaningful inside the process that
produced them, so a dump reloaded in a new process keeps its addresses
but cannot name them.

## Stack traces of exceptions

`callstack.exceptions` remembers where an exception was first raised,
when the raising code marks it with `record_throw`:

```python
from callstack.exceptions import record_throw
from callstack.stacktrace import Stacktrace

try:
    raise record_throw(ValueError("bad value"))
except ValueError:
    trace = Stacktrace.from_current_exception()
```

Passing the same exception to `record_throw` again keeps the trace of its
first raise. `set_capture_stacktraces_at_throw(False)` switches capturing
off for the current thread, and `get_capture_stacktraces_at_throw()`
reports whether it is on; with it off, `from_current_exception()` returns
an empty trace. `current_exception_stacktrace()` returns the raw dump, and
`assert_no_pending_traces()` raises `AssertionError` if traces kept for
exceptions that refuse attributes are still held.

## Native addresses

Helpers for addresses of native code on Linux:

- `callstack.addr2line` runs the `addr2line` tool (`/usr/bin/addr2line`,
  or the absolute path in the `CALLSTACK_ADDR2LINE` environment variable)
  on the running executable: `run_addr2line`, `own_executable`,
  `source_location`, `name`, `source_file` and `source_line`.
- `callstack.addr_base` reads a `/proc/<pid>/maps` table:
  `MappingEntry`, `hex_str_to_int`, `parse_proc_maps_line` and
  `get_own_proc_addr_base`.
- `callstack.numconv` has `to_dec`, `to_hex` (pointer-width, upper-case)
  and `try_dec_convert` (a `strtoul`-style parse).

## Command line

```
callstack
```

prints the call stack of the command itself. Options:

- `--format full|compact|numbered`: `full` (the default) is the numbered
  form from `to_string`; `compact` prints the addresses on one line, each
  followed by a comma; `numbered` prints the index and function name only.
- `--skip N`: leave out the `N` innermost frames.
- `--max-depth N`: print at most `N` frames.

## What it does not do

Frames captured by `Stacktrace` and `callstack.dump` are frames of Python
code only. The package does not walk the native stack of the interpreter
or of extension modules, and it does not install signal or crash handlers
of its own; dumping on a crash is left to the program calling
`safe_dump_to`.