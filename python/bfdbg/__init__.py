"""
bfdbg: stepping debugger for tape-machine programs.

The engine (``load``, ``Session``) can be used on its own; ``bfdbg`` on the
command line starts the interactive debugger.
"""

from __future__ import annotations

from .config import EngineConfig, EofPolicy, WatchMode
from .loader import Instruction, LoadError, Program, UnmatchedLoopClose, UnmatchedLoopOpen, load
from .machine import ExecutionState, RuntimeErrorKind, Tape
from .session import Session, SessionResult, Snapshot, new_session, session_from_source
from .watch import HaltKind, HaltReason, Watchpoint

__all__ = [
    "EngineConfig",
    "EofPolicy",
    "ExecutionState",
    "HaltKind",
    "HaltReason",
    "Instruction",
    "LoadError",
    "Program",
    "RuntimeErrorKind",
    "Session",
    "SessionResult",
    "Snapshot",
    "Tape",
    "UnmatchedLoopClose",
    "UnmatchedLoopOpen",
    "WatchMode",
    "Watchpoint",
    "load",
    "new_session",
    "session_from_source",
]
__version__ = "0.1.0"
