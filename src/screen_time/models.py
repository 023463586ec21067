"""Domain models for tracked working time."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional


class PauseOrigin(str, Enum):
    """Who paused the session; user pauses are never resumed by system signals."""

    NONE = "none"
    USER = "user"
    SYSTEM = "system"


@dataclass(slots=True)
class Lap:
    """One contiguous interval of tracked work."""

    start_time: int
    end_time: Optional[int] = None
    duration: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def close(self, end_time: int, duration: int) -> None:
        if self.duration is not None:
            raise ValueError("Lap is already closed")
        self.end_time = end_time
        self.duration = duration


@dataclass(slots=True)
class DayRecord:
    """Accounting for a single calendar day (UTC)."""

    date: str
    total_duration: int = 0
    laps: list[Lap] = field(default_factory=list)
    is_active: bool = True

    @property
    def open_lap(self) -> Optional[Lap]:
        if self.laps and self.laps[-1].is_open:
            return self.laps[-1]
        return None

    def closed_duration(self) -> int:
        return sum(lap.duration for lap in self.laps if lap.duration is not None)

    def copy(self) -> "DayRecord":
        return replace(self, laps=[replace(lap) for lap in self.laps])


@dataclass(slots=True)
class Session:
    """The single in-memory tracker of "now".

    ``last_activity_time`` is a monotonic reading and drives all accounting.
    ``current_lap_start_timestamp`` is wall-clock and only used for display.
    """

    day_key: str
    last_activity_time: float
    accumulated_seconds: float = 0.0
    is_paused: bool = False
    pause_origin: PauseOrigin = PauseOrigin.NONE
    current_lap_start_timestamp: Optional[int] = None


@dataclass(slots=True, frozen=True)
class Status:
    day_key: str
    current_lap_duration: int
    total_session_duration: int
    is_active: bool
    pause_origin: PauseOrigin = PauseOrigin.NONE
