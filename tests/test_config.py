from __future__ import annotations

from datetime import timedelta

import pytest

from screen_time.config import TrackerSettings


def test_defaults() -> None:
    settings = TrackerSettings()
    assert settings.gap_threshold == timedelta(seconds=5)
    assert settings.short_lap_threshold == timedelta(seconds=3)
    assert settings.min_lap_duration == timedelta(seconds=1)
    assert settings.lock_debounce_samples == 2


def test_from_intervals() -> None:
    settings = TrackerSettings.from_intervals(poll_seconds=0.5, gap_seconds=8, short_lap_seconds=2)
    assert settings.poll_interval == timedelta(seconds=0.5)
    assert settings.gap_threshold == timedelta(seconds=8)
    assert settings.short_lap_threshold == timedelta(seconds=2)
    assert settings.snapshot_interval == timedelta(seconds=30)


def test_rejects_invalid_debounce() -> None:
    with pytest.raises(ValueError):
        TrackerSettings(lock_debounce_samples=0)


def test_poll_must_be_faster_than_gap() -> None:
    with pytest.raises(ValueError):
        TrackerSettings.from_intervals(poll_seconds=5, gap_seconds=5)
