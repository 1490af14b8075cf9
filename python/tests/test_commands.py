"""Unit tests for bfdbg commands."""

from __future__ import annotations

import json

import pytest

from bfdbg.commands import build_registry
from bfdbg.commands.breakpoints import BreakpointCommand
from bfdbg.commands.control import ResetCommand, RunCommand, StepCommand
from bfdbg.commands.exit import ExitCommand
from bfdbg.commands.help import HelpCommand
from bfdbg.commands.load import LoadCommand
from bfdbg.commands.memory import MemoryCommand
from bfdbg.commands.status import ShowCommand
from bfdbg.commands.watch import WatchCommand
from bfdbg.context import DebuggerContext
from bfdbg.repl import DebuggerREPL

EXAMPLE = "++++[>++++<-]>!."


def _ctx(source: str = EXAMPLE, *, json_output: bool = False, data: bytes = b"") -> DebuggerContext:
    ctx = DebuggerContext(json_output=json_output)
    ctx.load_source(source, input_data=data)
    return ctx


def test_step_command_reports_budget_and_state(capsys):
    ctx = _ctx()
    assert StepCommand().run(ctx, ["3"]) == 0
    out = capsys.readouterr().out
    assert "step budget exhausted" in out
    assert "steps: 3" in out
    assert "mem:" in out and "ind:" in out


def test_step_command_defaults_to_one(capsys):
    ctx = _ctx()
    assert StepCommand().run(ctx, []) == 0
    assert ctx.session.snapshot().steps == 1


def test_step_command_rejects_bad_count(capsys):
    ctx = _ctx()
    assert StepCommand().run(ctx, ["-2"]) == 1
    assert "non-negative" in capsys.readouterr().out
    assert StepCommand().run(ctx, ["many"]) == 1


def test_run_command_stops_at_source_breakpoint(capsys):
    ctx = _ctx()
    assert RunCommand().run(ctx, []) == 0
    out = capsys.readouterr().out
    assert "stopped at breakpoint #14 (1:15)" in out
    assert "source: 1:15" in out


def test_run_command_prints_new_output(capsys):
    ctx = _ctx("+" * 72 + ".")
    assert RunCommand().run(ctx, []) == 0
    out = capsys.readouterr().out
    assert "program finished" in out
    assert "new output: H" in out


def test_run_command_reports_runtime_error(capsys):
    ctx = _ctx("+<")
    assert RunCommand().run(ctx, []) == 0
    out = capsys.readouterr().out
    assert "runtime error: negative pointer at #1 (1:1)" in out


def test_watch_add_list_and_fire(capsys):
    ctx = _ctx()
    cmd = WatchCommand()
    assert cmd.run(ctx, ["1", "16"]) == 0
    assert cmd.run(ctx, ["list"]) == 0
    assert RunCommand().run(ctx, []) == 0
    out = capsys.readouterr().out
    assert "watch: cell 1 == 16" in out
    assert "1: cell 1 == 16 (now 0)" in out
    assert "stopped on watchpoint: cell 1 == 16" in out


def test_watch_rejects_invalid_arguments(capsys):
    ctx = _ctx()
    cmd = WatchCommand()
    assert cmd.run(ctx, ["1"]) == 1
    assert cmd.run(ctx, ["1", "x"]) == 1
    assert cmd.run(ctx, ["1", "300"]) == 1
    out = capsys.readouterr().out
    assert "usage: watch" in out
    assert "must be integers" in out
    assert "0..255" in out
    assert ctx.session.watchpoints() == []


def test_watch_accepts_hex_values(capsys):
    ctx = _ctx()
    assert WatchCommand().run(ctx, ["0x1", "0x10"]) == 0
    watch = ctx.session.watchpoints()[0]
    assert (watch.cell, watch.value) == (1, 16)


def test_break_add_list_clear(capsys):
    ctx = _ctx()
    cmd = BreakpointCommand()
    assert cmd.run(ctx, ["add", "5"]) == 0
    assert cmd.run(ctx, []) == 0
    out = capsys.readouterr().out
    assert "Breakpoint #5 (1:5) set" in out
    assert "#5" in out and "#14" in out and "(source)" in out
    assert cmd.run(ctx, ["clear", "5"]) == 0
    assert ctx.session.breakpoints.breakpoints() == [14]


def test_break_clear_refuses_source_marker(capsys):
    ctx = _ctx()
    cmd = BreakpointCommand()
    assert cmd.run(ctx, ["clear", "14"]) == 1
    assert cmd.run(ctx, ["clear", "3"]) == 1
    assert cmd.run(ctx, ["add", "99"]) == 1
    out = capsys.readouterr().out
    assert "cannot be cleared" in out
    assert "no breakpoint at #3" in out


def test_show_without_program(capsys):
    ctx = DebuggerContext()
    assert ShowCommand().run(ctx, []) == 0
    assert "No program loaded" in capsys.readouterr().out


def test_show_renders_program_marker(capsys):
    ctx = _ctx("+-")
    assert ShowCommand().run(ctx, []) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "code: +-"
    assert lines[1] == "      ^"
    assert "paused. steps: 0" in lines


def test_commands_without_program_fail(capsys):
    ctx = DebuggerContext()
    assert StepCommand().run(ctx, []) == 2
    assert RunCommand().run(ctx, []) == 2
    assert WatchCommand().run(ctx, ["0", "1"]) == 2
    assert "error: no program loaded" in capsys.readouterr().out


def test_mem_command_window(capsys):
    ctx = _ctx(">+++>++")
    ctx.session.run_to_halt()
    assert MemoryCommand().run(ctx, ["0", "4"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0].split() == ["mem:", "0", "3", "[", "2]", "0"]
    assert MemoryCommand().run(ctx, ["-1"]) == 1


def test_reset_command(capsys):
    ctx = _ctx()
    ctx.session.run_to_halt()
    assert ResetCommand().run(ctx, []) == 0
    assert ctx.session.snapshot().steps == 0
    assert "Program restarted" in capsys.readouterr().out


def test_load_command_replaces_program(tmp_path, capsys):
    source = tmp_path / "echo.b"
    source.write_text(",.", encoding="utf-8")
    data = tmp_path / "input.bin"
    data.write_bytes(b"Z")
    ctx = _ctx()
    assert LoadCommand().run(ctx, [str(source), str(data)]) == 0
    assert ctx.session.run_to_halt().output == b"Z"


def test_load_command_keeps_previous_program_on_error(tmp_path, capsys):
    bad = tmp_path / "bad.b"
    bad.write_text("[[", encoding="utf-8")
    ctx = _ctx()
    session = ctx.session
    assert LoadCommand().run(ctx, [str(bad)]) == 1
    assert LoadCommand().run(ctx, [str(tmp_path / "missing.b")]) == 2
    assert ctx.session is session
    out = capsys.readouterr().out
    assert "parse error" in out


def test_json_output_for_step(capsys):
    ctx = _ctx(json_output=True)
    assert StepCommand().run(ctx, ["2"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "ok"
    assert payload["result"]["halt"]["reason"] == "step_budget_exhausted"
    assert payload["result"]["state"]["steps"] == 2


def test_json_output_for_watch_list(capsys):
    ctx = _ctx(json_output=True)
    ctx.session.add_watchpoint(2, 7)
    assert WatchCommand().run(ctx, []) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["result"]["watches"] == [{"cell": 2, "value": 7}]


def test_help_lists_commands(capsys):
    registry = build_registry()
    help_cmd = registry.get("help")
    assert isinstance(help_cmd, HelpCommand)
    assert help_cmd.run(DebuggerContext(), []) == 0
    assert help_cmd.run(DebuggerContext(), ["watch"]) == 0
    out = capsys.readouterr().out
    assert "step" in out and "watch" in out and "exit" in out
    assert "usage: watch <cell> <value>" in out


def test_registry_resolves_aliases():
    registry = build_registry()
    assert registry.get("q") is registry.get("exit")
    assert registry.get("quit") is registry.get("exit")
    assert registry.get("s") is registry.get("step")
    assert registry.get("bp") is registry.get("break")


def test_exit_command_raises_system_exit():
    with pytest.raises(SystemExit):
        ExitCommand().run(DebuggerContext(), [])


def test_repl_empty_line_steps_once(capsys):
    ctx = _ctx()
    repl = DebuggerREPL(ctx, build_registry())
    assert repl.dispatch("") == 0
    assert repl.dispatch("   ") == 0
    assert ctx.session.snapshot().steps == 2


def test_repl_unknown_and_parse_errors(capsys):
    ctx = _ctx()
    repl = DebuggerREPL(ctx, build_registry())
    assert repl.dispatch("frobnicate") == 1
    assert repl.dispatch('watch "1') == 1
    out = capsys.readouterr().out
    assert "Unknown command: frobnicate" in out
    assert "Parse error" in out


def test_repl_quit_aliases_exit():
    repl = DebuggerREPL(_ctx(), build_registry())
    for word in ("quit", "q", "exit"):
        with pytest.raises(SystemExit):
            repl.dispatch(word)


def test_load_command_keeps_previous_program_on_undecodable_file(tmp_path, capsys):
    bad = tmp_path / "bad.b"
    bad.write_bytes(b"+\xff\xfe")
    ctx = _ctx("+++")
    session = ctx.session
    repl = DebuggerREPL(ctx, build_registry())
    assert repl.dispatch(f"load {bad}") == 2
    assert ctx.session is session
    assert ctx.program.text() == "+++"
    assert "cannot read source file" in capsys.readouterr().out
    assert repl.dispatch("step") == 0


def test_watch_reads_leading_zero_as_decimal(capsys):
    ctx = _ctx()
    assert WatchCommand().run(ctx, ["1", "016"]) == 0
    watch = ctx.session.watchpoints()[0]
    assert (watch.cell, watch.value) == (1, 16)
