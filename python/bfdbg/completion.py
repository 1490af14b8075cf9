"""prompt_toolkit completer for bfdbg."""

from __future__ import annotations

import shlex
from typing import Dict, Iterable, List, Sequence

from prompt_toolkit.completion import Completer, Completion, PathCompleter
from prompt_toolkit.document import Document

from .commands import CommandRegistry
from .context import DebuggerContext

SUBCOMMANDS: Dict[str, Sequence[str]] = {
    "break": ("add", "clear", "list"),
    "watch": ("list",),
}
PATH_COMMANDS = {"load"}


def _normalise_tokens(text: str) -> List[str]:
    if not text:
        return []
    try:
        tokens = shlex.split(text, posix=True)
        trailing = text[-1].isspace()
    except ValueError:
        tokens = text.strip().split()
        trailing = text.endswith((" ", "\t"))
    if trailing:
        tokens.append("")
    return tokens


class DebuggerCompleter(Completer):
    """Completes command names, subcommands and file paths for ``load``."""

    def __init__(self, ctx: DebuggerContext, registry: CommandRegistry) -> None:
        self.ctx = ctx
        self.registry = registry
        self._path = PathCompleter(expanduser=True)

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        tokens = _normalise_tokens(document.text_before_cursor)
        if len(tokens) <= 1:
            prefix = tokens[0] if tokens else ""
            yield from self._complete(self.registry.names(), prefix)
            return
        command = self.registry.get(tokens[0])
        if command is None:
            return
        if command.name in PATH_COMMANDS:
            # PathCompleter works on the word under the cursor only.
            word = Document(tokens[-1], cursor_position=len(tokens[-1]))
            yield from self._path.get_completions(word, complete_event)
            return
        if len(tokens) == 2 and command.name in SUBCOMMANDS:
            yield from self._complete(SUBCOMMANDS[command.name], tokens[1])
            return
        if command.name == "break" and len(tokens) == 3 and tokens[1] == "clear":
            session = self.ctx.session
            if session is not None:
                candidates = [
                    str(index) for index in session.breakpoints.breakpoints() if not session.breakpoints.is_inline(index)
                ]
                yield from self._complete(candidates, tokens[2])

    @staticmethod
    def _complete(candidates: Iterable[str], prefix: str) -> Iterable[Completion]:
        needle = prefix.lower()
        for entry in sorted(dict.fromkeys(candidates)):
            if entry.lower().startswith(needle):
                yield Completion(entry, start_position=-len(prefix))
