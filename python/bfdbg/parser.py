"""Lightweight command parsing helpers for bfdbg."""

from __future__ import annotations

import shlex
from typing import List


def split_command(line: str) -> List[str]:
    """Split a command line into argv tokens using shlex rules."""
    if not line:
        return []
    try:
        return shlex.split(line, comments=True, posix=True)
    except ValueError as exc:
        # Keep the raw line so callers can print a friendlier error.
        return ["#parse-error", line.strip(), str(exc)]


def parse_int(text: str) -> int:
    """Parse a decimal, hex (``0x``) or binary (``0b``) integer.

    Plain digit strings are always decimal, so ``016`` is sixteen.
    """
    text = text.strip()
    if text.lstrip("+-").isdigit():
        return int(text, 10)
    return int(text, 0)
