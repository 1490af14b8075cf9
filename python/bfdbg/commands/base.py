"""Command base classes for bfdbg."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from ..context import DebuggerContext
from ..parser import split_command


@dataclass
class Command:
    """Abstract command description."""

    name: str
    description: str
    aliases: Sequence[str] = field(default_factory=tuple)
    usage: str = ""

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        raise NotImplementedError("Command must implement run()")

    def format_help(self) -> str:
        text = f"{self.name:<12} {self.description}"
        if self.aliases:
            text += f" (aliases: {', '.join(self.aliases)})"
        return text

    def parse(self, line: str) -> List[str]:
        return split_command(line)
