from __future__ import annotations

import pytest

from screen_time.config import TrackerSettings
from screen_time.tracker import SessionTracker, day_key_for

# 2025-10-09 08:53:20 UTC
START_WALL = 1_760_000_000


class FakeClock:
    """Deterministic wall + monotonic clock pair."""

    def __init__(self, wall: float = START_WALL, mono: float = 1_000.0) -> None:
        self.wall = wall
        self.mono = mono

    def monotonic(self) -> float:
        return self.mono

    def timestamp(self) -> int:
        return int(self.wall)

    def day_key(self) -> str:
        return day_key_for(self.wall)

    def advance(self, seconds: float) -> None:
        self.wall += seconds
        self.mono += seconds


def run_for(tracker: SessionTracker, clock: FakeClock, seconds: int) -> None:
    """Advance in one-second ticks, the way the dispatcher keeps accounting current."""
    for _ in range(seconds):
        clock.advance(1)
        tracker.tick()


def assert_open_lap_is_last(laps) -> None:
    open_indexes = [index for index, lap in enumerate(laps) if lap.end_time is None]
    assert len(open_indexes) <= 1
    if open_indexes:
        assert open_indexes[0] == len(laps) - 1


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> TrackerSettings:
    return TrackerSettings()


@pytest.fixture
def tracker(settings: TrackerSettings, clock: FakeClock) -> SessionTracker:
    return SessionTracker(settings=settings, clock=clock)
