"""Interactive REPL for bfdbg."""

from __future__ import annotations

import logging
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, History, InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from .commands import CommandRegistry
from .commands.help import HelpCommand
from .completion import DebuggerCompleter
from .context import DebuggerContext
from .output import render_snapshot
from .parser import split_command

LOGGER = logging.getLogger("bfdbg.repl")

PROMPT = "(bfdbg) "


class DebuggerREPL:
    """prompt_toolkit REPL; an empty line steps once."""

    def __init__(
        self,
        ctx: DebuggerContext,
        registry: CommandRegistry,
        *,
        history_path: Optional[str] = None,
    ) -> None:
        self.ctx = ctx
        self.registry = registry
        self.history_path = history_path
        help_command = self.registry.get("help")
        if isinstance(help_command, HelpCommand):
            help_command.bind(registry)

    def _history(self) -> History:
        if self.history_path:
            try:
                return FileHistory(self.history_path)
            except OSError as exc:
                LOGGER.warning("cannot open history file %s: %s", self.history_path, exc)
        return InMemoryHistory()

    def run(self) -> int:
        completer = DebuggerCompleter(self.ctx, self.registry)
        session = PromptSession(PROMPT, history=self._history(), completer=completer, complete_while_typing=True)
        if self.ctx.session is not None:
            render_snapshot(self.ctx, self.ctx.session.snapshot())
        buffer: list[str] = []
        while True:
            try:
                with patch_stdout():
                    line = session.prompt()
            except (EOFError, KeyboardInterrupt):
                print()
                return 0
            if self._handle_multiline(buffer, line):
                continue
            payload = " ".join(buffer) if buffer else line
            buffer.clear()
            self.dispatch(payload)

    def dispatch(self, line: str) -> int:
        stripped = line.strip()
        if not stripped:
            stripped = "step"
        argv = split_command(stripped)
        if not argv:
            return 0
        cmd_name, *cmd_args = argv
        if cmd_name.startswith("#parse-error"):
            print(f"Parse error: {cmd_args[-1] if cmd_args else cmd_name}")
            return 1
        command = self.registry.get(cmd_name)
        if not command:
            print(f"Unknown command: {cmd_name}")
            return 1
        try:
            return command.run(self.ctx, cmd_args)
        except SystemExit:
            raise
        except Exception as exc:
            LOGGER.exception("command failed")
            print(f"Command '{cmd_name}' failed: {exc}")
            return 2

    def _handle_multiline(self, buffer: list[str], line: str) -> bool:
        stripped = line.rstrip()
        if stripped.endswith("\\"):
            buffer.append(stripped[:-1])
            return True
        if buffer:
            buffer.append(stripped)
        return False
