"""Day ledger: date key to that day's lap record."""

from __future__ import annotations

import logging
from typing import Iterator, Mapping, Optional

from .errors import RecordNotFound
from .models import DayRecord, Lap

logger = logging.getLogger(__name__)


class DayLedger:
    """Holds every DayRecord. Callers are expected to serialize access."""

    def __init__(self, records: Optional[Mapping[str, DayRecord]] = None) -> None:
        self._records: dict[str, DayRecord] = dict(records or {})

    def __contains__(self, day_key: object) -> bool:
        return day_key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def get(self, day_key: str) -> Optional[DayRecord]:
        return self._records.get(day_key)

    def require(self, day_key: str) -> DayRecord:
        record = self._records.get(day_key)
        if record is None:
            raise RecordNotFound(f"Day record not found for {day_key}")
        return record

    def begin_day(self, day_key: str, start_time: int) -> DayRecord:
        """Create the record for ``day_key`` (or reopen it) with a fresh open lap."""
        record = self._records.get(day_key)
        if record is None:
            record = DayRecord(date=day_key)
            self._records[day_key] = record
        else:
            logger.info("Reopening day record for %s with %d laps.", day_key, len(record.laps))
            record.is_active = True
        self.open_lap(day_key, start_time)
        return record

    def open_lap(self, day_key: str, start_time: int) -> Lap:
        record = self.require(day_key)
        if record.open_lap is not None:
            raise RuntimeError(f"Day {day_key} already has an open lap")
        lap = Lap(start_time=start_time)
        record.laps.append(lap)
        return lap

    def close_open_lap(self, day_key: str, end_time: int, duration: int) -> Optional[Lap]:
        record = self.require(day_key)
        lap = record.open_lap
        if lap is None:
            return None
        lap.close(end_time, duration)
        record.total_duration = record.closed_duration()
        return lap

    def discard_open_lap(self, day_key: str) -> Optional[Lap]:
        record = self.require(day_key)
        if record.open_lap is None:
            return None
        return record.laps.pop()

    def closed_total(self, day_key: str) -> int:
        record = self._records.get(day_key)
        return record.closed_duration() if record else 0

    def finalize(self, day_key: str) -> DayRecord:
        record = self.require(day_key)
        record.total_duration = record.closed_duration()
        record.is_active = False
        return record.copy()

    def laps(self, day_key: str) -> list[Lap]:
        record = self._records.get(day_key)
        if record is None:
            return []
        return record.copy().laps

    def copy_records(self) -> dict[str, DayRecord]:
        return {key: record.copy() for key, record in self._records.items()}

    def replace_all(self, records: Mapping[str, DayRecord]) -> None:
        self._records = dict(records)
