"""Debugger context and session helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from .config import EngineConfig
from .loader import Program, load
from .session import Session, TraceSink

LOGGER = logging.getLogger("bfdbg.context")


class DebuggerError(RuntimeError):
    """Raised by the command layer for user-facing failures."""


@dataclass
class DebuggerContext:
    """Holds shared CLI debugger state."""

    json_output: bool = False
    config: EngineConfig = field(default_factory=EngineConfig)
    source_path: Optional[Path] = None
    input_path: Optional[Path] = None
    trace: Optional[TraceSink] = None
    program: Optional[Program] = field(default=None, repr=False)
    input_data: bytes = field(default=b"", repr=False)
    _session: Optional[Session] = field(default=None, init=False, repr=False)

    def load_source(self, source_text: str, *, input_data: bytes = b"") -> Session:
        """Load a program from text and start a fresh session on it."""
        self.program = load(source_text)
        self.input_data = bytes(input_data)
        return self.reset_session()

    def load_files(self, source: str, input_file: Optional[str] = None) -> Session:
        source_path = Path(source).expanduser()
        try:
            text = source_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DebuggerError(f"cannot read source file {source_path}: {exc}") from exc
        data = b""
        input_path = None
        if input_file:
            input_path = Path(input_file).expanduser()
            try:
                data = input_path.read_bytes()
            except OSError as exc:
                raise DebuggerError(f"cannot read input file {input_path}: {exc}") from exc
        session = self.load_source(text, input_data=data)
        self.source_path = source_path
        self.input_path = input_path
        LOGGER.info("loaded %s (%d instructions, %d input bytes)", source_path, len(self.program or ()), len(data))
        return session

    def ensure_session(self) -> Session:
        if self._session is None:
            raise DebuggerError("no program loaded")
        return self._session

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def reset_session(self) -> Session:
        """Start the loaded program over, keeping breakpoints and watchpoints."""
        if self.program is None:
            raise DebuggerError("no program loaded")
        if self._session is not None:
            self._session.reset()
            return self._session
        self._session = Session(self.program, self.input_data, config=self.config, trace=self.trace)
        return self._session

    def discard_session(self) -> None:
        self._session = None

    def restore(
        self,
        program: Optional[Program],
        input_data: bytes,
        source_path: Optional[Path],
        input_path: Optional[Path],
        session: Optional[Session],
    ) -> None:
        """Put back a previously loaded program after a failed reload."""
        self.program = program
        self.input_data = input_data
        self.source_path = source_path
        self.input_path = input_path
        self._session = session

    def location_of(self, position: Optional[int]) -> str:
        """Source ``line:column`` for an instruction index, or ``-``."""
        if position is None or self.program is None:
            return "-"
        if 0 <= position < len(self.program):
            return self.program[position].location
        return "end"

    def describe(self) -> Mapping[str, Any]:
        return {
            "source": str(self.source_path) if self.source_path else None,
            "input": str(self.input_path) if self.input_path else None,
            "instructions": len(self.program) if self.program is not None else 0,
            "eof_policy": self.config.eof_policy.value,
            "watch_mode": self.config.watch_mode.value,
        }
