"""Execution control commands (step/run/reset)."""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from typing import List

from .base import Command
from ..context import DebuggerContext, DebuggerError
from ..output import emit_error, emit_result, render_result
from ..parser import parse_int

LOGGER = logging.getLogger("bfdbg.commands.control")


class StepCommand(Command):
    def __init__(self) -> None:
        super().__init__("step", "Execute instructions", aliases=("s", "next"), usage="step [count]")
        self._parser = argparse.ArgumentParser(prog="step", add_help=False)
        self._parser.add_argument("count", nargs="?", type=parse_int, default=1, help="Instruction count (default 1)")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        try:
            args = self._parser.parse_args(argv)
        except SystemExit:
            return 1
        if args.count < 0:
            emit_error(ctx, message=f"step count must be non-negative, got {args.count}")
            return 1
        try:
            session = ctx.ensure_session()
        except DebuggerError as exc:
            emit_error(ctx, message=str(exc))
            return 2
        result = session.step_n(args.count)
        render_result(ctx, result)
        return 0


class RunCommand(Command):
    def __init__(self) -> None:
        super().__init__("run", "Run until the program stops", aliases=("r", "continue", "c"))

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        if argv:
            emit_error(ctx, message="run takes no arguments")
            return 1
        try:
            session = ctx.ensure_session()
        except DebuggerError as exc:
            emit_error(ctx, message=str(exc))
            return 2
        previous = None
        if threading.current_thread() is threading.main_thread():
            previous = signal.signal(signal.SIGINT, lambda *_: session.request_break())
        try:
            result = session.run_to_halt()
        finally:
            if previous is not None:
                signal.signal(signal.SIGINT, previous)
        render_result(ctx, result)
        return 0


class ResetCommand(Command):
    def __init__(self) -> None:
        super().__init__("reset", "Restart the program from the beginning", aliases=("restart",))

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        try:
            ctx.reset_session()
        except DebuggerError as exc:
            emit_error(ctx, message=str(exc))
            return 2
        LOGGER.debug("session reset")
        emit_result(ctx, message="Program restarted", data={"result": "reset"})
        return 0
