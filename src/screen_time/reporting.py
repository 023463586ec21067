"""Console rendering of persisted day records."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .models import DayRecord
from .snapshot import SnapshotModel, SnapshotStore


class SummaryPrinter:
    """Render human-readable summaries from the snapshot file."""

    def __init__(self, snapshot_path: Path) -> None:
        self.store = SnapshotStore(snapshot_path)

    def print_day(self, day_key: str) -> None:
        snapshot = self.store.read()
        record = _find_record(snapshot, day_key)
        if record is None:
            print(f"No laps recorded for {day_key}.")
            return
        for line in render_day(record):
            print(line)

    def print_current(self, today: str) -> None:
        snapshot = self.store.read()
        session = snapshot.current_session if snapshot else None
        if session is None:
            print("No active session.")
        else:
            state = "paused" if session.is_paused else "running"
            print(f"Session for {session.day_key} ({state}, origin: {session.pause_origin.value})")
        self.print_day(session.day_key if session else today)


def render_day(record: DayRecord) -> list[str]:
    lines = [
        f"Summary for {record.date}{' (active)' if record.is_active else ''}",
        "-" * 40,
        f"Total: {format_duration(record.closed_duration())}",
        "",
    ]
    for index, lap in enumerate(record.laps, start=1):
        start = format_clock(lap.start_time)
        if lap.is_open:
            lines.append(f"  Lap {index:<3} {start} - ongoing")
        else:
            end = format_clock(lap.end_time)
            lines.append(f"  Lap {index:<3} {start} - {end}  {format_duration(lap.duration or 0)}")
    return lines


def _find_record(snapshot: Optional[SnapshotModel], day_key: str) -> Optional[DayRecord]:
    if snapshot is None:
        return None
    model = snapshot.day_records.get(day_key)
    return model.to_record() if model else None


def format_clock(timestamp: Optional[int]) -> str:
    if timestamp is None:
        return "--:--:--"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%H:%M:%S")


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
