"""Breakpoint management command."""

from __future__ import annotations

import argparse
from typing import List

from .base import Command
from ..context import DebuggerContext, DebuggerError
from ..output import emit_error, emit_result
from ..parser import parse_int


class BreakpointCommand(Command):
    def __init__(self) -> None:
        super().__init__(
            "break",
            "Manage breakpoints",
            aliases=("bp",),
            usage="break add <index> | break clear <index> | break [list]",
        )
        parser = argparse.ArgumentParser(prog="break", add_help=False)
        sub = parser.add_subparsers(dest="subcmd")
        sub.required = True

        add = sub.add_parser("add", add_help=False)
        add.add_argument("index", type=parse_int)

        clear = sub.add_parser("clear", add_help=False)
        clear.add_argument("index", type=parse_int)

        sub.add_parser("list", add_help=False)

        self._parser = parser

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        try:
            args = self._parser.parse_args(argv or ["list"])
        except SystemExit:
            return 1
        try:
            session = ctx.ensure_session()
        except DebuggerError as exc:
            emit_error(ctx, message=str(exc))
            return 2
        if args.subcmd == "add":
            return self._handle_add(ctx, session, args.index)
        if args.subcmd == "clear":
            return self._handle_clear(ctx, session, args.index)
        return self._handle_list(ctx, session)

    def _handle_add(self, ctx: DebuggerContext, session, index: int) -> int:
        try:
            added = session.add_breakpoint(index)
        except ValueError as exc:
            emit_error(ctx, message=str(exc))
            return 1
        location = ctx.location_of(index)
        state = "set" if added else "already set"
        emit_result(
            ctx,
            message=f"Breakpoint #{index} ({location}) {state}",
            data={"index": index, "location": location, "added": added},
        )
        return 0

    def _handle_clear(self, ctx: DebuggerContext, session, index: int) -> int:
        manager = session.breakpoints
        if manager.is_inline(index):
            emit_error(ctx, message=f"breakpoint #{index} is marked in the source and cannot be cleared")
            return 1
        if not session.remove_breakpoint(index):
            emit_error(ctx, message=f"no breakpoint at #{index}")
            return 1
        emit_result(ctx, message=f"Breakpoint #{index} cleared", data={"index": index})
        return 0

    def _handle_list(self, ctx: DebuggerContext, session) -> int:
        manager = session.breakpoints
        rows = [
            {"index": index, "location": ctx.location_of(index), "inline": manager.is_inline(index)}
            for index in manager.breakpoints()
        ]
        if ctx.json_output:
            emit_result(ctx, message="breakpoints", data={"breakpoints": rows})
            return 0
        print("breakpoints:")
        if not rows:
            print("  (none)")
        for row in rows:
            marker = " (source)" if row["inline"] else ""
            print(f"  #{row['index']:<4} {row['location']}{marker}")
        return 0
