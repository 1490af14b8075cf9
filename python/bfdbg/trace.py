"""Per-step trace records.

Trace records are plain JSON dictionaries tagged with the ``bfdbg.trace/1``
format.  ``ip`` is the index of the instruction that ran, ``next_ip`` and
``dp`` describe the state after it, ``cell`` is the value under the data
pointer after the step.
"""

from __future__ import annotations

import json
from typing import Any, Dict, IO, Mapping

from .machine import ExecutionState, StepOutcome, Tape

TRACE_FORMAT_VERSION = "bfdbg.trace/1"

_REQUIRED_FIELDS = ("seq", "ip", "op", "next_ip", "dp", "cell")


def encode_trace_record(seq: int, outcome: StepOutcome, state: ExecutionState, tape: Tape) -> Dict[str, Any]:
    executed = outcome.executed
    record: Dict[str, Any] = {
        "format": TRACE_FORMAT_VERSION,
        "seq": int(seq),
        "ip": outcome.position,
        "op": executed.opcode.symbol if executed is not None else None,
        "next_ip": state.instruction_pointer,
        "dp": state.data_pointer,
        "cell": tape[state.data_pointer],
        "outcome": outcome.kind.value,
    }
    if executed is not None:
        record["line"] = executed.line
        record["column"] = executed.column
    if outcome.input_exhausted:
        record["input_exhausted"] = True
    return record


def validate_trace_record(record: Mapping[str, Any]) -> None:
    missing = [name for name in _REQUIRED_FIELDS if name not in record]
    if missing:
        raise ValueError(f"trace record missing fields: {', '.join(missing)}")
    if record.get("format", TRACE_FORMAT_VERSION) != TRACE_FORMAT_VERSION:
        raise ValueError(f"unsupported trace format {record.get('format')!r}")


class TraceWriter:
    """Writes trace records to a text stream, one JSON object per line."""

    def __init__(self, stream: IO[str]) -> None:
        self.stream = stream
        self.records = 0

    def __call__(self, record: Mapping[str, Any]) -> None:
        self.stream.write(json.dumps(record, sort_keys=True) + "\n")
        self.records += 1

    def flush(self) -> None:
        self.stream.flush()


__all__ = ["TRACE_FORMAT_VERSION", "TraceWriter", "encode_trace_record", "validate_trace_record"]
