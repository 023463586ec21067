from __future__ import annotations

import pytest

from screen_time.errors import RecordNotFound
from screen_time.ledger import DayLedger
from screen_time.models import DayRecord, Lap

DAY = "2025-10-09"


def test_begin_day_creates_record_with_open_lap() -> None:
    ledger = DayLedger()
    record = ledger.begin_day(DAY, 100)

    assert DAY in ledger
    assert len(ledger) == 1
    assert record.is_active is True
    assert record.laps == [Lap(start_time=100)]


def test_begin_day_reopens_finalized_record() -> None:
    ledger = DayLedger()
    ledger.begin_day(DAY, 100)
    ledger.close_open_lap(DAY, 110, 10)
    ledger.finalize(DAY)

    record = ledger.begin_day(DAY, 200)

    assert record.is_active is True
    assert [lap.start_time for lap in record.laps] == [100, 200]


def test_open_lap_refuses_second_open_lap() -> None:
    ledger = DayLedger()
    ledger.begin_day(DAY, 100)
    with pytest.raises(RuntimeError):
        ledger.open_lap(DAY, 105)


def test_close_open_lap_updates_total() -> None:
    ledger = DayLedger()
    ledger.begin_day(DAY, 100)

    lap = ledger.close_open_lap(DAY, 130, 30)

    assert lap == Lap(start_time=100, end_time=130, duration=30)
    assert ledger.get(DAY).total_duration == 30
    assert ledger.close_open_lap(DAY, 140, 10) is None


def test_closed_lap_duration_is_immutable() -> None:
    lap = Lap(start_time=1, end_time=2, duration=1)
    with pytest.raises(ValueError):
        lap.close(5, 4)


def test_discard_open_lap_removes_it() -> None:
    ledger = DayLedger()
    ledger.begin_day(DAY, 100)
    ledger.close_open_lap(DAY, 110, 10)
    ledger.open_lap(DAY, 120)

    discarded = ledger.discard_open_lap(DAY)

    assert discarded.start_time == 120
    assert len(ledger.laps(DAY)) == 1
    assert ledger.discard_open_lap(DAY) is None


def test_closed_total_ignores_open_lap() -> None:
    ledger = DayLedger()
    ledger.begin_day(DAY, 100)
    ledger.close_open_lap(DAY, 104, 4)
    ledger.open_lap(DAY, 110)

    assert ledger.closed_total(DAY) == 4
    assert ledger.closed_total("2000-01-01") == 0


def test_finalize_returns_independent_copy() -> None:
    ledger = DayLedger()
    ledger.begin_day(DAY, 100)
    ledger.close_open_lap(DAY, 105, 5)

    record = ledger.finalize(DAY)
    record.laps.clear()

    assert record.is_active is False
    assert ledger.get(DAY).is_active is False
    assert len(ledger.get(DAY).laps) == 1


def test_require_missing_record_raises() -> None:
    with pytest.raises(RecordNotFound):
        DayLedger().require(DAY)


def test_laps_for_unknown_day_is_empty() -> None:
    assert DayLedger().laps(DAY) == []


def test_replace_all_swaps_records() -> None:
    ledger = DayLedger({DAY: DayRecord(date=DAY)})
    ledger.replace_all({"2025-10-10": DayRecord(date="2025-10-10")})

    assert list(ledger) == ["2025-10-10"]
