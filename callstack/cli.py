"""Command line entry point that prints the call stack it was started from."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from callstack.stacktrace import Stacktrace, to_string

FORMATS = ("full", "compact", "numbered")


def dump_compact(trace: Stacktrace) -> str:
    """Addresses of the frames, each followed by a comma, on one line."""
    return "".join(f"{hex(frame.address)}," for frame in trace)


def format_numbered(trace: Stacktrace) -> str:
    """One line per frame: the index right-aligned in two columns, then the name."""
    return "".join(f"{index:>2}# {frame.name()}\n" for index, frame in enumerate(trace))


def _non_negative(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative: {value}")
    return value


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="callstack",
        description="Print the call stack of this command.",
    )
    parser.add_argument(
        "--format",
        choices=FORMATS,
        default="full",
        help="output format (default: full)",
    )
    parser.add_argument(
        "--skip",
        type=_non_negative,
        default=0,
        help="number of top frames to leave out",
    )
    parser.add_argument(
        "--max-depth",
        type=_non_negative,
        default=None,
        help="maximum number of frames to print",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Capture the current stack and print it in the chosen format."""
    args = _parser().parse_args(argv)
    trace = Stacktrace(args.skip, args.max_depth)
    if args.format == "compact":
        print(dump_compact(trace))
    elif args.format == "numbered":
        sys.stdout.write(format_numbered(trace))
    else:
        print(to_string(trace))
    return 0


if __name__ == "__main__":
    sys.exit(main())