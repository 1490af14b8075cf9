"""Shared opcode definitions for the bfdbg toolchain.

Keeping the canonical mapping in a single module prevents drift between the
loader, the machine and the renderers in the command layer.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple


class Opcode(Enum):
    MOVE_RIGHT = ">"
    MOVE_LEFT = "<"
    INCREMENT = "+"
    DECREMENT = "-"
    OUTPUT = "."
    INPUT = ","
    LOOP_OPEN = "["
    LOOP_CLOSE = "]"

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def is_jump(self) -> bool:
        return self in (Opcode.LOOP_OPEN, Opcode.LOOP_CLOSE)


# Ordered list so docs and tooling can iterate in a stable order.
OPCODE_LIST: Tuple[Tuple[str, Opcode], ...] = tuple((op.value, op) for op in Opcode)

OPCODES: Dict[str, Opcode] = dict(OPCODE_LIST)

BREAKPOINT_MARKER = "!"

CELL_MASK = 0xFF


def opcode_for(char: str) -> Opcode | None:
    """Return the opcode for *char*, or ``None`` for comment characters."""
    return OPCODES.get(char)


__all__ = ["Opcode", "OPCODE_LIST", "OPCODES", "BREAKPOINT_MARKER", "CELL_MASK", "opcode_for"]
