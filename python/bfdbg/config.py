"""Engine configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EofPolicy(str, Enum):
    """What ``,`` does once the input stream is exhausted."""

    ZERO = "zero"
    HALT = "halt"


class WatchMode(str, Enum):
    """When a watchpoint whose cell holds the target value fires."""

    LEVEL = "level"  # after every step on which the cell matches
    EDGE = "edge"  # only on the step that changes the cell into the value


DEFAULT_TAPE_WINDOW = 16


@dataclass(frozen=True)
class EngineConfig:
    eof_policy: EofPolicy = EofPolicy.ZERO
    watch_mode: WatchMode = WatchMode.LEVEL
    tape_window: int = DEFAULT_TAPE_WINDOW

    def __post_init__(self) -> None:
        # Accept the plain strings argparse hands us.
        object.__setattr__(self, "eof_policy", EofPolicy(self.eof_policy))
        object.__setattr__(self, "watch_mode", WatchMode(self.watch_mode))
        if int(self.tape_window) < 1:
            raise ValueError("tape_window must be at least 1")
        object.__setattr__(self, "tape_window", int(self.tape_window))


__all__ = ["DEFAULT_TAPE_WINDOW", "EngineConfig", "EofPolicy", "WatchMode"]
