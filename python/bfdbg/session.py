"""Debugging session: binds the tape machine to breakpoint evaluation."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .config import EngineConfig
from .loader import Program, load
from .machine import ExecutionState, OutcomeKind, TapeMachine
from .trace import encode_trace_record
from .watch import BreakpointManager, HaltReason, Watchpoint

LOGGER = logging.getLogger("bfdbg.session")

TraceSink = Callable[[Mapping[str, Any]], None]


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of a session between steps."""

    instruction_pointer: int
    data_pointer: int
    steps: int
    tape_start: int
    tape_view: Tuple[int, ...]
    tape_length: int
    output_so_far: bytes
    finished: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip": self.instruction_pointer,
            "dp": self.data_pointer,
            "steps": self.steps,
            "tape_start": self.tape_start,
            "tape": list(self.tape_view),
            "tape_length": self.tape_length,
            "output": self.output_so_far.decode("latin-1"),
            "finished": self.finished,
        }


@dataclass(frozen=True)
class SessionResult:
    """What one ``step_n``/``run_to_halt`` call did and why it stopped."""

    halt: HaltReason
    state: ExecutionState
    tape_start: int
    tape_view: Tuple[int, ...]
    output: bytes
    steps_executed: int
    input_exhausted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "halt": self.halt.to_dict(),
            "state": self.state.to_dict(),
            "tape_start": self.tape_start,
            "tape": list(self.tape_view),
            "output": self.output.decode("latin-1"),
            "steps_executed": self.steps_executed,
        }
        if self.input_exhausted:
            info["input_exhausted"] = True
        return info


class Session:
    """Owns one run of one program.

    Sessions share nothing, so any number can coexist in a process.
    """

    def __init__(
        self,
        program: Program,
        input_data: bytes = b"",
        *,
        config: Optional[EngineConfig] = None,
        trace: Optional[TraceSink] = None,
    ) -> None:
        self.program = program
        self.input_data = bytes(input_data)
        self.config = config or EngineConfig()
        self.trace = trace
        self.machine = TapeMachine(program, self.input_data, eof_policy=self.config.eof_policy)
        self.breakpoints = BreakpointManager(program, watch_mode=self.config.watch_mode)
        self._break_requested = threading.Event()
        self._failure: Optional[HaltReason] = None
        self._entry_checked = False
        self._reported_output = 0
        self.last_halt: Optional[HaltReason] = None

    # ------------------------------------------------------------------
    # Execution

    def step_n(self, count: int) -> SessionResult:
        """Execute up to *count* instructions."""
        count = int(count)
        if count < 0:
            raise ValueError(f"step count must be non-negative, got {count}")
        if count == 0:
            if self._failure is not None:
                return self._result(self._failure, 0, False)
            halt = HaltReason.natural_end() if self.machine.finished else HaltReason.budget_exhausted()
            return self._result(halt, 0, False)
        return self._execute(count)

    def run_to_halt(self) -> SessionResult:
        """Execute until the program ends, a breakpoint or watchpoint fires, or an error occurs."""
        return self._execute(None)

    def request_break(self) -> None:
        """Ask a running ``run_to_halt``/``step_n`` to stop before its next step."""
        self._break_requested.set()

    def _execute(self, budget: Optional[int]) -> SessionResult:
        if self._failure is not None:
            return self._result(self._failure, 0, False)

        machine = self.machine
        manager = self.breakpoints
        if not self._entry_checked:
            self._entry_checked = True
            entry = manager.check_entry(machine.state)
            if entry is not None:
                return self._finish(entry, 0, False)

        executed = 0
        exhausted = False
        halt: Optional[HaltReason] = None
        while budget is None or executed < budget:
            if self._break_requested.is_set():
                self._break_requested.clear()
                halt = HaltReason.interrupted()
                break
            outcome = machine.step()
            if outcome.kind is OutcomeKind.NORMAL:
                executed += 1
                if self.trace is not None:
                    self.trace(encode_trace_record(machine.state.steps, outcome, machine.state, machine.tape))
            if outcome.input_exhausted:
                exhausted = True
            halt = manager.should_halt_after_step(machine.state, machine.tape, outcome)
            if halt is not None:
                break
        if halt is None:
            halt = HaltReason.budget_exhausted()
        if halt.is_error:
            self._failure = halt
        return self._finish(halt, executed, exhausted)

    def _finish(self, halt: HaltReason, executed: int, exhausted: bool) -> SessionResult:
        self.last_halt = halt
        LOGGER.debug("halt after %d step(s): %s", executed, halt.to_dict())
        return self._result(halt, executed, exhausted)

    def _result(self, halt: HaltReason, executed: int, exhausted: bool) -> SessionResult:
        start, view = self._tape_view()
        output = bytes(self.machine.output[self._reported_output :])
        self._reported_output = len(self.machine.output)
        return SessionResult(
            halt=halt,
            state=self.machine.state.copy(),
            tape_start=start,
            tape_view=view,
            output=output,
            steps_executed=executed,
            input_exhausted=exhausted,
        )

    # ------------------------------------------------------------------
    # Breakpoints and watchpoints

    def add_watchpoint(self, cell_index: int, target_value: int) -> Watchpoint:
        return self.breakpoints.add_watchpoint(cell_index, target_value, tape=self.machine.tape)

    def watchpoints(self) -> List[Watchpoint]:
        return self.breakpoints.watchpoints()

    def add_breakpoint(self, position: int) -> bool:
        return self.breakpoints.add_breakpoint(position)

    def remove_breakpoint(self, position: int) -> bool:
        return self.breakpoints.remove_breakpoint(position)

    # ------------------------------------------------------------------
    # Inspection

    def _tape_view(self) -> Tuple[int, Tuple[int, ...]]:
        width = self.config.tape_window
        tape = self.machine.tape
        dp = self.machine.state.data_pointer
        start = max(0, min(dp - width // 2, len(tape) - width))
        return start, tuple(tape.window(start, width))

    def tape_window(self, start: int, count: int) -> List[int]:
        if start < 0:
            raise ValueError(f"cell index must be non-negative, got {start}")
        return self.machine.tape.window(start, count)

    def snapshot(self) -> Snapshot:
        start, view = self._tape_view()
        state = self.machine.state
        return Snapshot(
            instruction_pointer=state.instruction_pointer,
            data_pointer=state.data_pointer,
            steps=state.steps,
            tape_start=start,
            tape_view=view,
            tape_length=len(self.machine.tape),
            output_so_far=bytes(self.machine.output),
            finished=self.machine.finished,
        )

    @property
    def failed(self) -> bool:
        return self._failure is not None

    def reset(self) -> None:
        """Restart from the initial state, keeping breakpoints and watchpoints."""
        self.machine.reset()
        self._failure = None
        self._entry_checked = False
        self._reported_output = 0
        self._break_requested.clear()
        self.last_halt = None
        self.breakpoints.rearm(self.machine.tape)


def new_session(
    program: Program,
    input_bytes: bytes = b"",
    *,
    config: Optional[EngineConfig] = None,
    trace: Optional[TraceSink] = None,
) -> Session:
    return Session(program, input_bytes, config=config, trace=trace)


def session_from_source(source_text: str, input_bytes: bytes = b"", **kwargs: Any) -> Session:
    """Load *source_text* and open a session on it."""
    return new_session(load(source_text), input_bytes, **kwargs)


__all__ = ["Session", "SessionResult", "Snapshot", "new_session", "session_from_source"]
