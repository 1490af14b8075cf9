"""Output helpers for bfdbg."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .context import DebuggerContext
from .loader import Program
from .session import SessionResult, Snapshot
from .watch import HaltKind, HaltReason

CODE_WINDOW = 64


def _json_dump(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)


def emit_result(ctx: DebuggerContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit a successful command result."""
    if ctx.json_output:
        payload: Dict[str, Any] = {"status": "ok"}
        if data is not None:
            payload["result"] = data
        else:
            payload["message"] = message
        print(_json_dump(payload))
    else:
        print(message)


def emit_error(ctx: DebuggerContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit an error message respecting JSON mode."""
    payload: Dict[str, Any] = {"status": "error", "error": message}
    if data:
        payload["details"] = dict(data)
    if ctx.json_output:
        print(_json_dump(payload))
    else:
        print(f"error: {message}")


def format_halt(ctx: DebuggerContext, halt: HaltReason) -> str:
    kind = halt.kind
    if kind is HaltKind.NATURAL_END:
        return "program finished"
    if kind is HaltKind.CODE_BREAKPOINT:
        return f"stopped at breakpoint #{halt.position} ({ctx.location_of(halt.position)})"
    if kind is HaltKind.WATCHPOINT:
        return f"stopped on watchpoint: cell {halt.cell} == {halt.value}"
    if kind is HaltKind.STEP_BUDGET_EXHAUSTED:
        return "step budget exhausted"
    if kind is HaltKind.INPUT_EXHAUSTED:
        return f"input exhausted at #{halt.position} ({ctx.location_of(halt.position)})"
    if kind is HaltKind.RUNTIME_ERROR:
        error = halt.error.value.replace("_", " ") if halt.error else "runtime error"
        return f"runtime error: {error} at #{halt.position} ({ctx.location_of(halt.position)})"
    if kind is HaltKind.INTERRUPTED:
        return "interrupted"
    return kind.value


def format_output(data: bytes) -> str:
    return data.decode("latin-1")


def render_program(program: Program, ip: int, breakpoints: Iterable[int] = ()) -> List[str]:
    """Program text with a marker line: ``^`` at the IP, ``*`` at breakpoints."""
    text = program.text()
    if not text:
        return ["code: (empty)"]
    start = max(0, min(ip - CODE_WINDOW // 2, len(text) - CODE_WINDOW))
    end = min(len(text), start + CODE_WINDOW)
    marks = [" "] * (end - start + 1)
    for pos in breakpoints:
        if start <= pos < end:
            marks[pos - start] = "*"
    if start <= ip <= end:
        marks[ip - start] = "^"
    prefix = "..." if start > 0 else ""
    suffix = "..." if end < len(text) else ""
    return [
        f"code: {prefix}{text[start:end]}{suffix}",
        f"      {' ' * len(prefix)}{''.join(marks).rstrip()}",
    ]


def render_tape(start: int, cells: Sequence[int], dp: Optional[int] = None) -> List[str]:
    """Two aligned rows: cell values and their indices; ``[ ]`` marks the data pointer."""
    values = []
    indices = []
    for offset, value in enumerate(cells):
        index = start + offset
        if index == dp:
            values.append(f"[{value:3}]")
            indices.append(f"[{index:3}]")
        else:
            values.append(f" {value:3} ")
            indices.append(f" {index:3} ")
    return ["mem: " + "".join(values).rstrip(), "ind: " + "".join(indices).rstrip()]


def render_snapshot(ctx: DebuggerContext, snapshot: Snapshot) -> None:
    session = ctx.ensure_session()
    if ctx.json_output:
        data = dict(snapshot.to_dict())
        if session.last_halt is not None:
            data["halt"] = session.last_halt.to_dict()
        print(_json_dump({"status": "ok", "result": data}))
        return
    ip = snapshot.instruction_pointer
    for line in render_program(session.program, ip, session.breakpoints.breakpoints()):
        print(line)
    print(f"source: {ctx.location_of(ip)}")
    for line in render_tape(snapshot.tape_start, snapshot.tape_view, snapshot.data_pointer):
        print(line)
    state = "finished" if snapshot.finished else "paused"
    if session.last_halt is not None:
        state = format_halt(ctx, session.last_halt)
    print(f"{state}. steps: {snapshot.steps}")
    print(f"output: {format_output(snapshot.output_so_far)}")


def render_result(ctx: DebuggerContext, result: SessionResult) -> None:
    """Report what a step/run call did, then the resulting state."""
    if ctx.json_output:
        print(_json_dump({"status": "ok", "result": result.to_dict()}))
        return
    print(format_halt(ctx, result.halt))
    if result.input_exhausted and result.halt.kind is not HaltKind.INPUT_EXHAUSTED:
        print("note: input exhausted, read 0")
    if result.output:
        print(f"new output: {format_output(result.output)}")
    render_snapshot(ctx, ctx.ensure_session().snapshot())


__all__ = [
    "emit_result",
    "emit_error",
    "format_halt",
    "format_output",
    "render_program",
    "render_tape",
    "render_snapshot",
    "render_result",
]
