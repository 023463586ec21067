"""Configuration models and helpers for the screen time tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the session tracker and its background threads."""

    poll_interval: timedelta = timedelta(seconds=1)
    gap_threshold: timedelta = timedelta(seconds=5)
    short_lap_threshold: timedelta = timedelta(seconds=3)
    min_lap_duration: timedelta = timedelta(seconds=1)
    snapshot_interval: timedelta = timedelta(seconds=30)
    lock_timeout: timedelta = timedelta(seconds=2)
    lock_debounce_samples: int = 2
    sleep_debounce_samples: int = 1

    def __post_init__(self) -> None:
        if self.lock_debounce_samples < 1 or self.sleep_debounce_samples < 1:
            raise ValueError("debounce sample counts must be at least 1")
        if self.poll_interval >= self.gap_threshold:
            raise ValueError("poll_interval must be shorter than gap_threshold")

    @classmethod
    def from_intervals(
        cls,
        poll_seconds: float = 1.0,
        gap_seconds: float = 5.0,
        snapshot_seconds: float | None = None,
        short_lap_seconds: float = 3.0,
        min_lap_seconds: float = 1.0,
        lock_debounce: int = 2,
        sleep_debounce: int = 1,
    ) -> "TrackerSettings":
        snapshot = snapshot_seconds if snapshot_seconds is not None else max(poll_seconds * 30, 30.0)
        return cls(
            poll_interval=timedelta(seconds=poll_seconds),
            gap_threshold=timedelta(seconds=gap_seconds),
            short_lap_threshold=timedelta(seconds=short_lap_seconds),
            min_lap_duration=timedelta(seconds=min_lap_seconds),
            snapshot_interval=timedelta(seconds=snapshot),
            lock_debounce_samples=lock_debounce,
            sleep_debounce_samples=sleep_debounce,
        )
