"""Tape inspection command."""

from __future__ import annotations

import argparse
from typing import List, Optional

from .base import Command
from ..context import DebuggerContext, DebuggerError
from ..output import emit_error, emit_result, render_tape
from ..parser import parse_int


class MemoryCommand(Command):
    def __init__(self) -> None:
        super().__init__("mem", "Inspect tape cells", aliases=("memory", "x"), usage="mem [start] [count]")
        parser = argparse.ArgumentParser(prog="mem", add_help=False)
        parser.add_argument("start", nargs="?", type=parse_int)
        parser.add_argument("count", nargs="?", type=parse_int)
        self._parser = parser

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        try:
            args = self._parser.parse_args(argv)
        except SystemExit:
            return 1
        try:
            session = ctx.ensure_session()
        except DebuggerError as exc:
            emit_error(ctx, message=str(exc))
            return 2
        count: Optional[int] = args.count if args.count is not None else ctx.config.tape_window
        if count < 0:
            emit_error(ctx, message=f"count must be non-negative, got {count}")
            return 1
        start = args.start if args.start is not None else 0
        try:
            cells = session.tape_window(start, count)
        except ValueError as exc:
            emit_error(ctx, message=str(exc))
            return 1
        dp = session.machine.state.data_pointer
        if ctx.json_output:
            emit_result(ctx, message="tape", data={"start": start, "cells": cells, "dp": dp})
            return 0
        for line in render_tape(start, cells, dp):
            print(line)
        return 0
