"""JSON snapshot persistence for the tracker state."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import TrackerError
from .models import DayRecord, Lap, PauseOrigin, Session
from .tracker import SessionTracker

logger = logging.getLogger(__name__)


class LapModel(BaseModel):
    start_time: int
    end_time: Optional[int] = None
    duration: Optional[int] = None

    model_config = ConfigDict(extra="ignore")


class DayRecordModel(BaseModel):
    date: str
    total_duration: int = 0
    laps: list[LapModel] = Field(default_factory=list)
    is_active: bool = False

    model_config = ConfigDict(extra="ignore")

    def to_record(self) -> DayRecord:
        return DayRecord(
            date=self.date,
            total_duration=self.total_duration,
            laps=[Lap(**lap.model_dump()) for lap in self.laps],
            is_active=self.is_active,
        )

    @classmethod
    def from_record(cls, record: DayRecord) -> "DayRecordModel":
        return cls(
            date=record.date,
            total_duration=record.total_duration,
            laps=[
                LapModel(start_time=lap.start_time, end_time=lap.end_time, duration=lap.duration)
                for lap in record.laps
            ],
            is_active=record.is_active,
        )


class SessionModel(BaseModel):
    day_key: str
    current_lap_start_timestamp: Optional[int] = None
    accumulated_seconds: float = 0.0
    is_paused: bool = True
    pause_origin: PauseOrigin = PauseOrigin.SYSTEM

    model_config = ConfigDict(extra="ignore")

    def to_session(self) -> Session:
        # The monotonic reference is meaningless across processes; restore resets it.
        return Session(
            day_key=self.day_key,
            last_activity_time=0.0,
            accumulated_seconds=self.accumulated_seconds,
            is_paused=self.is_paused,
            pause_origin=self.pause_origin,
            current_lap_start_timestamp=self.current_lap_start_timestamp,
        )

    @classmethod
    def from_session(cls, session: Session) -> "SessionModel":
        return cls(
            day_key=session.day_key,
            current_lap_start_timestamp=session.current_lap_start_timestamp,
            accumulated_seconds=session.accumulated_seconds,
            is_paused=session.is_paused,
            pause_origin=session.pause_origin,
        )


class SnapshotModel(BaseModel):
    current_session: Optional[SessionModel] = None
    day_records: dict[str, DayRecordModel] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")


class SnapshotStore:
    """Reads and writes tracker snapshots. Failures are logged, never raised."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._write_lock = threading.Lock()

    def read(self) -> Optional[SnapshotModel]:
        if not self.path.exists():
            return None
        try:
            return SnapshotModel.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError):
            logger.exception("Failed to read snapshot %s; starting empty.", self.path)
            return None

    def load_into(self, tracker: SessionTracker) -> Optional[Session]:
        snapshot = self.read()
        if snapshot is None:
            return None
        records = {key: model.to_record() for key, model in snapshot.day_records.items()}
        session = snapshot.current_session.to_session() if snapshot.current_session else None
        restored = tracker.restore(session, records)
        logger.info(
            "Loaded snapshot from %s (%d day records, session %s).",
            self.path,
            len(records),
            restored.day_key if restored else "none",
        )
        return restored

    def save(self, tracker: SessionTracker) -> bool:
        """Capture and write the tracker state.

        Capture and write happen under one lock, so concurrent savers reach
        the disk in the order their state was captured.
        """
        with self._write_lock:
            try:
                session, records = tracker.export_state()
            except TrackerError:
                logger.exception("Could not capture tracker state for snapshot.")
                return False
            snapshot = SnapshotModel(
                current_session=SessionModel.from_session(session) if session else None,
                day_records={key: DayRecordModel.from_record(record) for key, record in records.items()},
            )
            return self._write_locked(snapshot)

    def write(self, snapshot: SnapshotModel) -> bool:
        with self._write_lock:
            return self._write_locked(snapshot)

    def _write_locked(self, snapshot: SnapshotModel) -> bool:
        payload = snapshot.model_dump_json(indent=2)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError:
            logger.exception("Failed to write snapshot %s; state kept in memory.", self.path)
            return False
        logger.debug("Snapshot written to %s", self.path)
        return True

    def run_until_stopped(
        self, tracker: SessionTracker, stop_event: threading.Event
    ) -> None:
        """Save on a fixed interval until the event is set, then save once more."""
        interval = tracker.settings.snapshot_interval.total_seconds()
        try:
            while not stop_event.wait(interval):
                self.save(tracker)
        finally:
            self.save(tracker)
