import pytest

from bfdbg.loader import load
from bfdbg.machine import TapeMachine
from bfdbg.trace import TRACE_FORMAT_VERSION, TraceWriter, encode_trace_record, validate_trace_record


def test_encode_trace_record_describes_step() -> None:
    machine = TapeMachine(load("\n >+"))
    outcome = machine.step()
    record = encode_trace_record(1, outcome, machine.state, machine.tape)
    assert record["format"] == TRACE_FORMAT_VERSION
    assert (record["ip"], record["op"], record["next_ip"], record["dp"]) == (0, ">", 1, 1)
    assert (record["line"], record["column"]) == (2, 1)
    validate_trace_record(record)


def test_input_exhaustion_is_flagged() -> None:
    machine = TapeMachine(load(","))
    outcome = machine.step()
    record = encode_trace_record(1, outcome, machine.state, machine.tape)
    assert record["input_exhausted"] is True


def test_validate_missing_required_field_raises() -> None:
    with pytest.raises(ValueError):
        validate_trace_record({"seq": 1, "ip": 0})


def test_validate_rejects_foreign_format() -> None:
    record = {"seq": 1, "ip": 0, "op": "+", "next_ip": 1, "dp": 0, "cell": 1, "format": "other/1"}
    with pytest.raises(ValueError):
        validate_trace_record(record)


def test_trace_writer_emits_json_lines(tmp_path) -> None:
    path = tmp_path / "trace.jsonl"
    with path.open("w", encoding="utf-8") as handle:
        writer = TraceWriter(handle)
        writer({"seq": 1})
        writer({"seq": 2})
        writer.flush()
    assert writer.records == 2
    assert path.read_text(encoding="utf-8").splitlines() == ['{"seq": 1}', '{"seq": 2}']
