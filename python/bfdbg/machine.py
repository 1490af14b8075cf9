"""Tape machine: memory tape, pointers and single-instruction execution."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from .config import EofPolicy
from .loader import Instruction, Program
from .opcodes import CELL_MASK, Opcode


class OutcomeKind(str, Enum):
    NORMAL = "normal"
    NATURAL_END = "natural_end"
    RUNTIME_ERROR = "runtime_error"
    INPUT_EXHAUSTED = "input_exhausted"


class RuntimeErrorKind(str, Enum):
    NEGATIVE_POINTER = "negative_pointer"


class Tape:
    """Growable tape of 8-bit cells.

    Every index at or above zero reads as 0 until written; the backing store
    only grows to the right as the data pointer moves there.
    """

    def __init__(self, cells: Optional[bytes] = None) -> None:
        self._cells = bytearray(cells or b"\x00")

    def __len__(self) -> int:
        return len(self._cells)

    def __getitem__(self, index: int) -> int:
        if index < 0:
            raise IndexError(f"negative tape index {index}")
        if index >= len(self._cells):
            return 0
        return self._cells[index]

    def __setitem__(self, index: int, value: int) -> None:
        if index < 0:
            raise IndexError(f"negative tape index {index}")
        self.ensure(index)
        self._cells[index] = value & CELL_MASK

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Tape):
            return self._cells == other._cells
        return NotImplemented

    def __repr__(self) -> str:
        return f"Tape({list(self._cells)!r})"

    def ensure(self, index: int) -> None:
        missing = index + 1 - len(self._cells)
        if missing > 0:
            self._cells.extend(bytes(missing))

    def window(self, start: int = 0, count: Optional[int] = None) -> List[int]:
        start = max(0, int(start))
        if count is None:
            count = max(len(self._cells) - start, 0)
        return [self[index] for index in range(start, start + max(0, int(count)))]

    def to_bytes(self) -> bytes:
        return bytes(self._cells)

    def copy(self) -> "Tape":
        return Tape(bytes(self._cells))


@dataclass
class ExecutionState:
    """Architectural state of one run."""

    instruction_pointer: int = 0
    data_pointer: int = 0
    steps: int = 0

    def copy(self) -> "ExecutionState":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {"ip": self.instruction_pointer, "dp": self.data_pointer, "steps": self.steps}


@dataclass(frozen=True)
class StepOutcome:
    kind: OutcomeKind
    executed: Optional[Instruction] = None
    position: Optional[int] = None
    error: Optional[RuntimeErrorKind] = None
    input_exhausted: bool = False

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.NORMAL


@dataclass
class TapeMachine:
    """Executes one instruction at a time against an owned tape."""

    program: Program
    input_data: bytes = b""
    eof_policy: EofPolicy = EofPolicy.ZERO
    tape: Tape = field(default_factory=Tape)
    state: ExecutionState = field(default_factory=ExecutionState)
    output: bytearray = field(default_factory=bytearray)
    input_pos: int = 0

    @property
    def finished(self) -> bool:
        return self.state.instruction_pointer >= len(self.program)

    @property
    def current_cell(self) -> int:
        return self.tape[self.state.data_pointer]

    def next_instruction(self) -> Optional[Instruction]:
        if self.finished:
            return None
        return self.program[self.state.instruction_pointer]

    def step(self) -> StepOutcome:
        """Execute the instruction at the instruction pointer.

        Failures are returned in the outcome and leave the state untouched.
        """
        state = self.state
        ip = state.instruction_pointer
        if ip >= len(self.program):
            return StepOutcome(OutcomeKind.NATURAL_END, position=ip)

        ins = self.program[ip]
        op = ins.opcode
        dp = state.data_pointer
        next_ip = ip + 1
        exhausted = False

        if op is Opcode.MOVE_RIGHT:
            dp += 1
            self.tape.ensure(dp)
        elif op is Opcode.MOVE_LEFT:
            if dp == 0:
                return StepOutcome(
                    OutcomeKind.RUNTIME_ERROR,
                    executed=ins,
                    position=ip,
                    error=RuntimeErrorKind.NEGATIVE_POINTER,
                )
            dp -= 1
        elif op is Opcode.INCREMENT:
            self.tape[dp] = self.tape[dp] + 1
        elif op is Opcode.DECREMENT:
            self.tape[dp] = self.tape[dp] - 1
        elif op is Opcode.OUTPUT:
            self.output.append(self.tape[dp])
        elif op is Opcode.INPUT:
            if self.input_pos < len(self.input_data):
                self.tape[dp] = self.input_data[self.input_pos]
                self.input_pos += 1
            elif self.eof_policy is EofPolicy.HALT:
                return StepOutcome(OutcomeKind.INPUT_EXHAUSTED, executed=ins, position=ip, input_exhausted=True)
            else:
                self.tape[dp] = 0
                exhausted = True
        elif op is Opcode.LOOP_OPEN:
            if self.tape[dp] == 0:
                next_ip = ins.jump_target + 1
        elif op is Opcode.LOOP_CLOSE:
            if self.tape[dp] != 0:
                next_ip = ins.jump_target + 1

        state.instruction_pointer = next_ip
        state.data_pointer = dp
        state.steps += 1
        return StepOutcome(OutcomeKind.NORMAL, executed=ins, position=ip, input_exhausted=exhausted)

    def reset(self) -> None:
        self.tape = Tape()
        self.state = ExecutionState()
        self.output = bytearray()
        self.input_pos = 0


__all__ = ["ExecutionState", "OutcomeKind", "RuntimeErrorKind", "StepOutcome", "Tape", "TapeMachine"]
