"""Resolving addresses to names and source positions with the addr2line tool."""

from __future__ import annotations

import os
import subprocess
import sys

from callstack.addr_base import get_own_proc_addr_base
from callstack.numconv import POINTER_BITS, to_hex, try_dec_convert

ADDR2LINE_ENV = "CALLSTACK_ADDR2LINE"
DEFAULT_ADDR2LINE = "/usr/bin/addr2line"

_POINTER_MASK = (1 << POINTER_BITS) - 1


def _is_abs_path(path: str) -> bool:
    return any(ch in ":/" for ch in path)


def _program() -> str:
    program = os.environ.get(ADDR2LINE_ENV) or DEFAULT_ADDR2LINE
    if not _is_abs_path(program):
        # Running through PATH lookup would let the environment pick the tool.
        raise ValueError(f"{ADDR2LINE_ENV} must be an absolute path, got {program!r}")
    return program


def run_addr2line(flag: str, exec_path: str, addr: int) -> str:
    """Run addr2line for one address and return its output without trailing newlines.

    Returns an empty string when the tool cannot be run.
    """
    argv = [_program(), flag, exec_path, to_hex(addr)]
    try:
        completed = subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except (OSError, subprocess.SubprocessError):
        return ""
    return completed.stdout.decode("utf-8", errors="replace").rstrip("\r\n")


def own_executable() -> str:
    """Path of the running executable, or an empty string if it is unknown."""
    try:
        return os.readlink("/proc/self/exe")
    except OSError:
        pass
    executable = sys.executable or ""
    return executable if "/" in executable else ""


def _query(flag: str, addr: int, position_independent: bool) -> str:
    base = get_own_proc_addr_base(addr) if position_independent else 0
    offset = (addr - base) & _POINTER_MASK
    exec_path = own_executable()
    if not exec_path:
        return ""
    return run_addr2line(flag, exec_path, offset)


def source_location(addr: int, position_independent: bool) -> str:
    """``function at file:line`` for the address, or an empty string if unknown."""
    line = _query("-Cpe", addr, position_independent)
    if not line or line.startswith("?"):
        return ""
    return line


def name(addr: int, position_independent: bool) -> str:
    """Demangled function name at the address, or an empty string if unknown."""
    res = _query("-Cfe", addr, position_independent)
    newline = res.rfind("\n")
    if newline != -1:
        res = res[:newline]
    return "" if res == "??" else res


def source_file(addr: int, position_independent: bool) -> str:
    """Source file holding the address, or an empty string if unknown."""
    res = _query("-e", addr, position_independent)
    colon = res.rfind(":")
    if colon != -1:
        res = res[:colon]
    return "" if res == "??" else res


def source_line(addr: int, position_independent: bool) -> int:
    """Source line of the address, or 0 if unknown."""
    res = _query("-e", addr, position_independent)
    colon = res.rfind(":")
    if colon == -1:
        return 0
    line_num = try_dec_convert(res[colon + 1:])
    return 0 if line_num is None else line_num