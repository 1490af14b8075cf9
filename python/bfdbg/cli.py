"""bfdbg CLI entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import List, Optional

from .commands import CommandRegistry, build_registry
from .config import DEFAULT_TAPE_WINDOW, EngineConfig, EofPolicy, WatchMode
from .context import DebuggerContext, DebuggerError
from .loader import LoadError
from .parser import split_command
from .repl import DebuggerREPL
from .trace import TraceWriter

LOG = logging.getLogger("bfdbg.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interactive tape-machine debugger")
    parser.add_argument("source", nargs="?", help="Program source file")
    parser.add_argument("input", nargs="?", help="File whose bytes feed the ',' instruction")
    parser.add_argument("--json", action="store_true", help="Emit JSON output when supported")
    parser.add_argument("--log-level", default=os.environ.get("BFDBG_LOG", "INFO"), help="Logging level (default INFO)")
    parser.add_argument(
        "-c",
        "--command",
        action="append",
        default=[],
        help="Execute a command non-interactively (quote the command string; may repeat)",
    )
    parser.add_argument("--script", type=Path, help="Execute commands from a file, one per line")
    parser.add_argument(
        "--history",
        type=Path,
        default=Path.home() / ".bfdbg-history",
        help="Path to command history file",
    )
    parser.add_argument(
        "--eof",
        choices=[policy.value for policy in EofPolicy],
        default=EofPolicy.ZERO.value,
        help="Behaviour of ',' after the input is exhausted (default: store 0)",
    )
    parser.add_argument(
        "--watch-mode",
        choices=[mode.value for mode in WatchMode],
        default=WatchMode.LEVEL.value,
        help="level: fire on every matching step; edge: only when the cell changes into the value",
    )
    parser.add_argument("--tape-window", type=int, default=DEFAULT_TAPE_WINDOW, help="Cells shown around the data pointer")
    parser.add_argument("--trace", type=Path, help="Write a JSON-lines execution trace to this file")
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    try:
        config = EngineConfig(eof_policy=args.eof, watch_mode=args.watch_mode, tape_window=args.tape_window)
    except ValueError as exc:
        parser.error(str(exc))
    with ExitStack() as stack:
        trace = None
        if args.trace:
            trace = TraceWriter(stack.enter_context(args.trace.open("w", encoding="utf-8")))
        ctx = DebuggerContext(json_output=args.json, config=config, trace=trace)
        if args.source:
            rc = _load_program(ctx, args.source, args.input)
            if rc:
                return rc
        registry = build_registry()
        try:
            if args.script:
                return _run_script(ctx, registry, str(args.script))
            if args.command:
                for command_line in args.command:
                    rc = _run_single_command(ctx, registry, command_line)
                    if rc:
                        return rc
                return 0
        except SystemExit as exc:
            # `exit` ends the whole command chain.
            return int(exc.code or 0)
        repl = DebuggerREPL(ctx, registry, history_path=str(args.history) if args.history else None)
        try:
            return repl.run()
        except SystemExit as exc:
            return int(exc.code or 0)
        except KeyboardInterrupt:
            print()
            return 0


def _load_program(ctx: DebuggerContext, source: str, input_file: Optional[str]) -> int:
    try:
        ctx.load_files(source, input_file)
    except LoadError as exc:
        print(f"Parser error: {exc}")
        return 1
    except DebuggerError as exc:
        print(f"Error: {exc}")
        return 2
    return 0


def _run_single_command(ctx: DebuggerContext, registry: CommandRegistry, command_line: str) -> int:
    argv = split_command(command_line)
    if not argv:
        return 0
    cmd_name, *cmd_args = argv
    if cmd_name.startswith("#parse-error"):
        print(f"Parse error: {' '.join(cmd_args)}")
        return 1
    command = registry.get(cmd_name)
    if not command:
        print(f"Unknown command: {cmd_name}")
        return 1
    try:
        return command.run(ctx, cmd_args)
    except Exception as exc:
        LOG.exception("command failed")
        print(f"Command '{cmd_name}' failed: {exc}")
        return 2


def _run_script(ctx: DebuggerContext, registry: CommandRegistry, path: str) -> int:
    """Run each non-empty line of *path* as a command; stop at the first failure."""
    try:
        lines = Path(path).expanduser().read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        print(f"Error: cannot read script {path}: {exc}")
        return 2
    for number, line in enumerate(lines, start=1):
        if not split_command(line):
            continue
        rc = _run_single_command(ctx, registry, line)
        if rc:
            LOG.warning("script %s stopped at line %d (rc=%d)", path, number, rc)
            return rc
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
