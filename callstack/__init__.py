"""Capture, store, reload and print call stacks of the running program."""

__version__ = "1.0.0"