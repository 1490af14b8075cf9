"""Program loading command."""

from __future__ import annotations

import argparse
from typing import List

from .base import Command
from ..context import DebuggerContext, DebuggerError
from ..loader import LoadError
from ..output import emit_error, emit_result


class LoadCommand(Command):
    def __init__(self) -> None:
        super().__init__("load", "Load a program (and optional input file)", usage="load <source> [input]")
        parser = argparse.ArgumentParser(prog="load", add_help=False)
        parser.add_argument("source")
        parser.add_argument("input", nargs="?")
        self._parser = parser

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        try:
            args = self._parser.parse_args(argv)
        except SystemExit:
            return 1
        # A new program gets a new session; breakpoints do not carry over.
        previous = (ctx.program, ctx.input_data, ctx.source_path, ctx.input_path, ctx.session)
        ctx.discard_session()
        try:
            ctx.load_files(args.source, args.input)
        except LoadError as exc:
            ctx.restore(*previous)
            emit_error(ctx, message=f"parse error: {exc}", data=exc.to_dict())
            return 1
        except DebuggerError as exc:
            ctx.restore(*previous)
            emit_error(ctx, message=str(exc))
            return 2
        emit_result(ctx, message=f"Loaded {args.source}", data=dict(ctx.describe()))
        return 0
