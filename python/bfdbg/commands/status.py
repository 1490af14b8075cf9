"""Session status command."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import DebuggerContext
from ..output import emit_result, render_snapshot


class ShowCommand(Command):
    def __init__(self) -> None:
        super().__init__("show", "Show program, tape and output", aliases=("info", "status"))

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        session = ctx.session
        if session is None:
            emit_result(ctx, message="No program loaded", data={"status": "empty"})
            return 0
        render_snapshot(ctx, session.snapshot())
        return 0
