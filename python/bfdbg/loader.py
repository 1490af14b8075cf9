"""Program loader: source text -> immutable instruction table.

Non-instruction characters are comments.  The ``!`` marker emits nothing and
flags the nearest following instruction as a code breakpoint; a marker with
no instruction after it is dropped.  Loop targets are resolved once here with
a bracket stack so the machine never searches for a matching bracket.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from .opcodes import BREAKPOINT_MARKER, Opcode, opcode_for

LOGGER = logging.getLogger("bfdbg.loader")


class LoadError(ValueError):
    """Raised when the source text cannot be turned into a program."""

    kind = "load_error"

    def __init__(self, message: str, *, offset: int, line: int, column: int) -> None:
        super().__init__(f"{message} at {line}:{column}")
        self.offset = offset
        self.line = line
        self.column = column

    def to_dict(self) -> dict:
        return {"error": self.kind, "offset": self.offset, "line": self.line, "column": self.column}


class UnmatchedLoopOpen(LoadError):
    kind = "unmatched_loop_open"

    def __init__(self, *, offset: int, line: int, column: int) -> None:
        super().__init__("no matching ']' for '['", offset=offset, line=line, column=column)


class UnmatchedLoopClose(LoadError):
    kind = "unmatched_loop_close"

    def __init__(self, *, offset: int, line: int, column: int) -> None:
        super().__init__("no matching '[' for ']'", offset=offset, line=line, column=column)


@dataclass(frozen=True)
class Instruction:
    """One executable instruction and where it came from."""

    opcode: Opcode
    offset: int
    line: int
    column: int
    is_breakpoint: bool = False
    jump_target: Optional[int] = None

    @property
    def location(self) -> str:
        return f"{self.line}:{self.column}"

    def __str__(self) -> str:
        return self.opcode.symbol


class Program(Sequence[Instruction]):
    """Ordered, immutable instruction table."""

    def __init__(self, instructions: Sequence[Instruction]) -> None:
        self._instructions: Tuple[Instruction, ...] = tuple(instructions)

    def __getitem__(self, index):  # type: ignore[override]
        return self._instructions[index]

    def __len__(self) -> int:
        return len(self._instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instructions)

    def __repr__(self) -> str:
        return f"Program({self.text()!r})"

    def text(self) -> str:
        """Instruction characters without comments or markers."""
        return "".join(ins.opcode.symbol for ins in self._instructions)

    def breakpoint_positions(self) -> List[int]:
        return [index for index, ins in enumerate(self._instructions) if ins.is_breakpoint]


def _iter_source(source_text: str) -> Iterator[Tuple[int, int, int, str]]:
    offset = 0
    # Only '\n' ends a line; other separators count as ordinary characters.
    for line_no, line in enumerate(source_text.split("\n"), start=1):
        for column, char in enumerate(line):
            yield offset, line_no, column, char
            offset += 1
        offset += 1


def load(source_text: str) -> Program:
    """Parse *source_text* into a :class:`Program`.

    Raises :class:`UnmatchedLoopOpen` or :class:`UnmatchedLoopClose` when the
    brackets do not nest.
    """
    # Instructions are frozen; collect mutable rows and freeze at the end.
    rows: List[dict] = []
    open_stack: List[int] = []
    pending_break = False

    for offset, line, column, char in _iter_source(source_text):
        if char == BREAKPOINT_MARKER:
            pending_break = True
            continue
        opcode = opcode_for(char)
        if opcode is None:
            continue
        index = len(rows)
        row = {
            "opcode": opcode,
            "offset": offset,
            "line": line,
            "column": column,
            "is_breakpoint": pending_break,
            "jump_target": None,
        }
        pending_break = False
        if opcode is Opcode.LOOP_OPEN:
            open_stack.append(index)
        elif opcode is Opcode.LOOP_CLOSE:
            if not open_stack:
                raise UnmatchedLoopClose(offset=offset, line=line, column=column)
            start = open_stack.pop()
            rows[start]["jump_target"] = index
            row["jump_target"] = start
        rows.append(row)

    if open_stack:
        start = rows[open_stack[-1]]
        raise UnmatchedLoopOpen(offset=start["offset"], line=start["line"], column=start["column"])
    if pending_break:
        LOGGER.debug("breakpoint marker at end of source has no instruction to attach to")

    program = Program([Instruction(**row) for row in rows])
    LOGGER.debug("loaded %d instructions (%d breakpoints)", len(program), len(program.breakpoint_positions()))
    return program


__all__ = ["Instruction", "LoadError", "Program", "UnmatchedLoopClose", "UnmatchedLoopOpen", "load"]
