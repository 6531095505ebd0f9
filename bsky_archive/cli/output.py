"""Terminal output for the bsky-archive CLI.

Colour is decided per stream: progress goes to stdout, errors to stderr,
and each is only coloured when it is a TTY and ``NO_COLOR`` is unset.
"""

from __future__ import annotations

import os
import sys
from typing import TextIO

_STYLES = {
    "bold": "1",
    "dim": "2",
    "ok": "32",
    "warn": "33",
    "error": "31",
    "command": "36",
}


def _colour_enabled(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _paint(style: str, text: str, stream: TextIO | None = None) -> str:
    if not _colour_enabled(stream or sys.stdout):
        return text
    return f"\033[{_STYLES[style]}m{text}\033[0m"


def dim(text: str) -> str:
    return _paint("dim", text)


def header(title: str) -> None:
    print(f"\n{_paint('bold', title)}")


def success(msg: str) -> None:
    print(f"  {_paint('ok', '✓')} {msg}")


def warn(msg: str) -> None:
    print(f"  {_paint('warn', '!')} {msg}")


def error(msg: str) -> None:
    print(f"  {_paint('error', '✗', sys.stderr)} {msg}", file=sys.stderr)


def info(msg: str) -> None:
    print(f"  {msg}")


def kv(key: str, value: object) -> None:
    print(f"  {dim(key + ':')}  {value}")


def next_step(command: str, description: str = "") -> None:
    """Print a suggested command with an optional hint."""
    hint = f"  {dim(description)}" if description else ""
    print(f"    {_paint('command', command)}{hint}")
