"""Breakpoint and watchpoint evaluation.

After every step the manager decides whether the session must stop.  The
precedence is fixed: a terminal step outcome (runtime error, natural end,
input exhausted under the halt policy) wins over a code breakpoint, which
wins over watchpoints.  Among watchpoints the first registered match wins.

Code breakpoints fire when execution arrives at the marked instruction, so
the reported state is the one the instruction is about to run against.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from .config import WatchMode
from .loader import Program
from .machine import ExecutionState, OutcomeKind, RuntimeErrorKind, StepOutcome, Tape
from .opcodes import CELL_MASK

LOGGER = logging.getLogger("bfdbg.watch")


class HaltKind(str, Enum):
    NATURAL_END = "natural_end"
    CODE_BREAKPOINT = "code_breakpoint"
    WATCHPOINT = "watchpoint"
    STEP_BUDGET_EXHAUSTED = "step_budget_exhausted"
    INPUT_EXHAUSTED = "input_exhausted"
    RUNTIME_ERROR = "runtime_error"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class HaltReason:
    """Why a ``step_n``/``run_to_halt`` call stopped."""

    kind: HaltKind
    position: Optional[int] = None
    cell: Optional[int] = None
    value: Optional[int] = None
    error: Optional[RuntimeErrorKind] = None

    @classmethod
    def natural_end(cls) -> "HaltReason":
        return cls(HaltKind.NATURAL_END)

    @classmethod
    def code_breakpoint(cls, position: int) -> "HaltReason":
        return cls(HaltKind.CODE_BREAKPOINT, position=position)

    @classmethod
    def watchpoint(cls, cell: int, value: int) -> "HaltReason":
        return cls(HaltKind.WATCHPOINT, cell=cell, value=value)

    @classmethod
    def budget_exhausted(cls) -> "HaltReason":
        return cls(HaltKind.STEP_BUDGET_EXHAUSTED)

    @classmethod
    def input_exhausted(cls, position: Optional[int] = None) -> "HaltReason":
        return cls(HaltKind.INPUT_EXHAUSTED, position=position)

    @classmethod
    def runtime_error(cls, error: RuntimeErrorKind, position: Optional[int] = None) -> "HaltReason":
        return cls(HaltKind.RUNTIME_ERROR, position=position, error=error)

    @classmethod
    def interrupted(cls) -> "HaltReason":
        return cls(HaltKind.INTERRUPTED)

    @property
    def is_error(self) -> bool:
        return self.kind is HaltKind.RUNTIME_ERROR

    def to_dict(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {"reason": self.kind.value}
        if self.position is not None:
            info["position"] = self.position
        if self.cell is not None:
            info["cell"] = self.cell
            info["value"] = self.value
        if self.error is not None:
            info["error"] = self.error.value
        return info


@dataclass(frozen=True)
class Watchpoint:
    cell: int
    value: int

    def matches(self, tape: Tape) -> bool:
        return tape[self.cell] == self.value


class BreakpointManager:
    """Tracks code breakpoints and value watchpoints for one program."""

    def __init__(self, program: Program, *, watch_mode: WatchMode = WatchMode.LEVEL) -> None:
        self.program = program
        self.watch_mode = WatchMode(watch_mode)
        self._inline: Set[int] = set(program.breakpoint_positions())
        self._dynamic: Set[int] = set()
        self._watchpoints: List[Watchpoint] = []
        self._last_values: Dict[Watchpoint, int] = {}

    # ------------------------------------------------------------------
    # Code breakpoints

    def add_breakpoint(self, position: int) -> bool:
        """Break when execution reaches instruction *position*.

        Returns ``False`` if a breakpoint is already set there.
        """
        position = int(position)
        if position < 0 or position >= len(self.program):
            raise ValueError(f"instruction index {position} out of range 0..{len(self.program) - 1}")
        if self.is_breakpoint(position):
            return False
        self._dynamic.add(position)
        return True

    def remove_breakpoint(self, position: int) -> bool:
        """Remove a breakpoint added with :meth:`add_breakpoint`.

        Inline ``!`` markers are part of the program and stay in place.
        """
        if position in self._dynamic:
            self._dynamic.discard(position)
            return True
        return False

    def is_breakpoint(self, position: int) -> bool:
        return position in self._inline or position in self._dynamic

    def is_inline(self, position: int) -> bool:
        return position in self._inline

    def breakpoints(self) -> List[int]:
        return sorted(self._inline | self._dynamic)

    # ------------------------------------------------------------------
    # Watchpoints

    def add_watchpoint(self, cell: int, value: int, *, tape: Optional[Tape] = None) -> Watchpoint:
        cell = int(cell)
        value = int(value)
        if cell < 0:
            raise ValueError(f"cell index must be non-negative, got {cell}")
        if value < 0 or value > CELL_MASK:
            raise ValueError(f"watch value must be in 0..{CELL_MASK}, got {value}")
        watch = Watchpoint(cell, value)
        if watch in self._watchpoints:
            return watch
        self._watchpoints.append(watch)
        self._last_values[watch] = tape[cell] if tape is not None else 0
        LOGGER.debug("watchpoint added: cell %d == %d", cell, value)
        return watch

    def watchpoints(self) -> List[Watchpoint]:
        return list(self._watchpoints)

    def rearm(self, tape: Tape) -> None:
        """Forget edge history, e.g. after the tape was reset."""
        for watch in self._watchpoints:
            self._last_values[watch] = tape[watch.cell]

    def _first_watch_hit(self, tape: Tape) -> Optional[Watchpoint]:
        hit: Optional[Watchpoint] = None
        edge = self.watch_mode is WatchMode.EDGE
        for watch in self._watchpoints:
            current = tape[watch.cell]
            previous = self._last_values.get(watch)
            self._last_values[watch] = current
            if current != watch.value:
                continue
            if edge and previous == current:
                continue
            if hit is None:
                hit = watch
        return hit

    # ------------------------------------------------------------------
    # Halt evaluation

    def check_entry(self, state: ExecutionState) -> Optional[HaltReason]:
        """Breakpoint on the very first instruction, before anything ran."""
        ip = state.instruction_pointer
        if state.steps == 0 and ip < len(self.program) and self.is_breakpoint(ip):
            return HaltReason.code_breakpoint(ip)
        return None

    def should_halt_after_step(
        self,
        state: ExecutionState,
        tape: Tape,
        outcome: StepOutcome,
    ) -> Optional[HaltReason]:
        if outcome.kind is OutcomeKind.NATURAL_END:
            return HaltReason.natural_end()
        if outcome.kind is OutcomeKind.RUNTIME_ERROR:
            return HaltReason.runtime_error(outcome.error, outcome.position)
        if outcome.kind is OutcomeKind.INPUT_EXHAUSTED:
            return HaltReason.input_exhausted(outcome.position)

        # Watch state is refreshed every step so edge detection stays accurate
        # even when a breakpoint takes precedence.
        watch = self._first_watch_hit(tape)
        ip = state.instruction_pointer
        if ip < len(self.program) and self.is_breakpoint(ip):
            return HaltReason.code_breakpoint(ip)
        if watch is not None:
            return HaltReason.watchpoint(watch.cell, watch.value)
        if ip >= len(self.program):
            return HaltReason.natural_end()
        return None


__all__ = ["BreakpointManager", "HaltKind", "HaltReason", "Watchpoint"]
