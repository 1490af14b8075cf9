"""End-to-end tests for the bfdbg command line."""

from __future__ import annotations

import json

from bfdbg.cli import _run_script, build_arg_parser, main
from bfdbg.commands import build_registry
from bfdbg.context import DebuggerContext

EXAMPLE = "++++[>++++<-]>!."


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_single_command_runs_to_breakpoint(tmp_path, capsys):
    source = _write(tmp_path, "mul.b", EXAMPLE)
    rc = main([str(source), "-c", "run", "--log-level", "WARNING"])
    assert rc == 0
    assert "stopped at breakpoint #14" in capsys.readouterr().out


def test_repeated_commands_share_the_session(tmp_path, capsys):
    source = _write(tmp_path, "mul.b", EXAMPLE)
    rc = main([str(source), "-c", "watch 1 16", "-c", "run", "-c", "mem 0 2", "--log-level", "WARNING"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "stopped on watchpoint: cell 1 == 16" in out
    assert " 16" in out.splitlines()[-2]


def test_input_file_feeds_program(tmp_path, capsys):
    source = _write(tmp_path, "echo.b", ",[.,]")
    data = tmp_path / "in.txt"
    data.write_bytes(b"ok")
    rc = main([str(source), str(data), "-c", "run", "--log-level", "WARNING"])
    assert rc == 0
    assert "new output: ok" in capsys.readouterr().out


def test_eof_halt_policy_flag(tmp_path, capsys):
    source = _write(tmp_path, "read.b", ",")
    rc = main([str(source), "--eof", "halt", "-c", "run", "--log-level", "WARNING"])
    assert rc == 0
    assert "input exhausted at #0 (1:0)" in capsys.readouterr().out


def test_unmatched_bracket_fails_to_load(tmp_path, capsys):
    source = _write(tmp_path, "bad.b", "+]")
    rc = main([str(source), "-c", "run", "--log-level", "WARNING"])
    assert rc == 1
    assert "Parser error: no matching '[' for ']' at 1:1" in capsys.readouterr().out


def test_missing_source_file(tmp_path, capsys):
    rc = main([str(tmp_path / "nope.b"), "-c", "run", "--log-level", "WARNING"])
    assert rc == 2
    assert "cannot read source file" in capsys.readouterr().out


def test_json_flag(tmp_path, capsys):
    source = _write(tmp_path, "mul.b", EXAMPLE)
    rc = main([str(source), "--json", "-c", "step 4", "--log-level", "WARNING"])
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["result"]["state"]["ip"] == 4


def test_trace_file_written(tmp_path, capsys):
    source = _write(tmp_path, "two.b", "+>")
    trace = tmp_path / "trace.jsonl"
    rc = main([str(source), "--trace", str(trace), "-c", "run", "--log-level", "WARNING"])
    assert rc == 0
    lines = trace.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["op"] for line in lines] == ["+", ">"]


def test_script_executes_commands(tmp_path, capsys):
    ctx = DebuggerContext()
    ctx.load_source(EXAMPLE)
    script = _write(tmp_path, "script.txt", "# comment\n\nwatch 1 16\nbreak add 2\n")
    rc = _run_script(ctx, build_registry(), str(script))
    assert rc == 0
    assert len(ctx.session.watchpoints()) == 1
    assert 2 in ctx.session.breakpoints.breakpoints()


def test_script_reports_failure(tmp_path, capsys):
    ctx = DebuggerContext()
    script = _write(tmp_path, "script.txt", "unknowncmd\n")
    assert _run_script(ctx, build_registry(), str(script)) != 0


def test_script_missing_file_returns_error(tmp_path, capsys):
    ctx = DebuggerContext()
    assert _run_script(ctx, build_registry(), str(tmp_path / "missing.txt")) != 0


def test_arg_parser_defaults():
    args = build_arg_parser().parse_args(["prog.b"])
    assert args.eof == "zero"
    assert args.watch_mode == "level"
    assert args.command == []


def test_undecodable_source_file_returns_error(tmp_path, capsys):
    source = tmp_path / "bad.b"
    source.write_bytes(b"+\xff\xfe")
    rc = main([str(source), "-c", "run", "--log-level", "WARNING"])
    assert rc == 2
    assert "cannot read source file" in capsys.readouterr().out


def test_exit_stops_the_command_chain(tmp_path, capsys):
    source = _write(tmp_path, "mul.b", EXAMPLE)
    rc = main([str(source), "-c", "exit", "-c", "run", "--log-level", "WARNING"])
    assert rc == 0
    assert "stopped at breakpoint" not in capsys.readouterr().out


def test_failing_command_returns_engine_error(tmp_path, capsys, monkeypatch):
    source = _write(tmp_path, "mul.b", EXAMPLE)

    def boom(self, count):
        raise RuntimeError("engine fault")

    monkeypatch.setattr("bfdbg.session.Session.step_n", boom)
    rc = main([str(source), "-c", "step", "--log-level", "CRITICAL"])
    assert rc == 2
    assert "Command 'step' failed: engine fault" in capsys.readouterr().out
