"""Watchpoint command."""

from __future__ import annotations

import argparse
from typing import List

from .base import Command
from ..context import DebuggerContext, DebuggerError
from ..output import emit_error, emit_result
from ..parser import parse_int


class WatchCommand(Command):
    def __init__(self) -> None:
        super().__init__(
            "watch",
            "Stop when a tape cell holds a value",
            aliases=("w",),
            usage="watch <cell> <value> | watch [list]",
        )
        parser = argparse.ArgumentParser(prog="watch", add_help=False)
        parser.add_argument("cell", type=parse_int)
        parser.add_argument("value", type=parse_int)
        self._parser = parser

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        if not argv or argv == ["list"]:
            return self._handle_list(ctx)
        if len(argv) != 2:
            emit_error(ctx, message=f"usage: {self.usage}")
            return 1
        try:
            args = self._parser.parse_args(argv)
        except SystemExit:
            emit_error(ctx, message="cell and value must be integers")
            return 1
        return self._handle_add(ctx, args.cell, args.value)

    def _handle_add(self, ctx: DebuggerContext, cell: int, value: int) -> int:
        try:
            session = ctx.ensure_session()
        except DebuggerError as exc:
            emit_error(ctx, message=str(exc))
            return 2
        try:
            watch = session.add_watchpoint(cell, value)
        except ValueError as exc:
            emit_error(ctx, message=str(exc))
            return 1
        emit_result(
            ctx,
            message=f"watch: cell {watch.cell} == {watch.value}",
            data={"watch": {"cell": watch.cell, "value": watch.value}},
        )
        return 0

    def _handle_list(self, ctx: DebuggerContext) -> int:
        try:
            session = ctx.ensure_session()
        except DebuggerError as exc:
            emit_error(ctx, message=str(exc))
            return 2
        watches = [{"cell": w.cell, "value": w.value} for w in session.watchpoints()]
        if ctx.json_output:
            emit_result(ctx, message="watches", data={"watches": watches})
            return 0
        print("watches:")
        if not watches:
            print("  (none)")
        for index, entry in enumerate(watches, start=1):
            current = session.machine.tape[entry["cell"]]
            print(f"  {index}: cell {entry['cell']} == {entry['value']} (now {current})")
        return 0
