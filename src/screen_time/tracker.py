"""Session tracker: the time-accounting state machine."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterator, Mapping, Optional

from .config import TrackerSettings
from .errors import AlreadyActive, AlreadyPaused, LockAcquisitionFailed, NoSession
from .ledger import DayLedger
from .models import DayRecord, Lap, PauseOrigin, Session, Status

logger = logging.getLogger(__name__)

DAY_FMT = "%Y-%m-%d"
NO_SESSION_MESSAGE = "No active session"


def day_key_for(timestamp: float) -> str:
    """Day keys use UTC day boundaries."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(DAY_FMT)


def whole_seconds(value: float) -> int:
    return int(round(value))


class SystemClock:
    """Wall clock for display timestamps, monotonic clock for accounting."""

    def monotonic(self) -> float:
        return time.monotonic()

    def timestamp(self) -> int:
        return int(time.time())

    def day_key(self) -> str:
        return day_key_for(time.time())


class SessionTracker:
    """Owns the single active session and the day ledger.

    Every public operation runs as one critical section holding both the
    session lock and the ledger lock (always in that order). The optional
    state-change callback runs after the locks are released, so it is safe
    for it to do blocking I/O.
    """

    def __init__(
        self,
        settings: Optional[TrackerSettings] = None,
        clock: Optional[SystemClock] = None,
        ledger: Optional[DayLedger] = None,
    ) -> None:
        self.settings = settings or TrackerSettings()
        self._clock = clock or SystemClock()
        self._ledger = ledger or DayLedger()
        self._session: Optional[Session] = None
        self._session_lock = threading.Lock()
        self._ledger_lock = threading.Lock()
        self._on_state_change: Optional[Callable[[], None]] = None

    # ----- Callbacks -----
    def set_on_state_change(self, fn: Optional[Callable[[], None]]) -> None:
        self._on_state_change = fn

    def _emit_state_change(self) -> None:
        if self._on_state_change:
            self._on_state_change()

    @contextmanager
    def _guarded(self) -> Iterator[None]:
        timeout = self.settings.lock_timeout.total_seconds()
        if not self._session_lock.acquire(timeout=timeout):
            raise LockAcquisitionFailed()
        try:
            if not self._ledger_lock.acquire(timeout=timeout):
                raise LockAcquisitionFailed()
            try:
                yield
            finally:
                self._ledger_lock.release()
        finally:
            self._session_lock.release()

    # ----- Day lifecycle -----
    def start_day(self) -> str:
        with self._guarded():
            if self._session is not None:
                raise AlreadyActive()
            day_key = self._clock.day_key()
            now_ts = self._clock.timestamp()
            self._ledger.begin_day(day_key, now_ts)
            self._session = Session(
                day_key=day_key,
                last_activity_time=self._clock.monotonic(),
                current_lap_start_timestamp=now_ts,
            )
        logger.info("Started tracking for %s", day_key)
        self._emit_state_change()
        return f"Started tracking for {day_key}"

    def end_day(self) -> DayRecord:
        with self._guarded():
            session = self._session
            if session is None:
                raise NoSession()
            self._ledger.require(session.day_key)
            self._close_open_lap(session)
            record = self._ledger.finalize(session.day_key)
            self._session = None
        logger.info(
            "Ended day %s: %d laps, %d seconds.",
            record.date,
            len(record.laps),
            record.total_duration,
        )
        self._emit_state_change()
        return record

    # ----- System signals -----
    def handle_screen_lock(self) -> str:
        return self._system_pause("Screen locked - timer paused")

    def handle_screen_unlock(self) -> str:
        return self._system_resume("Screen unlocked - new lap started")

    def handle_system_sleep(self) -> str:
        return self._system_pause("System asleep - timer paused")

    def handle_system_wake(self) -> str:
        return self._system_resume("System awake - new lap started")

    def _system_pause(self, message: str) -> str:
        with self._guarded():
            session = self._session
            if session is None:
                return NO_SESSION_MESSAGE
            if session.is_paused:
                return f"Already paused ({session.pause_origin.value})"
            self._close_open_lap(session)
            self._pause(session, PauseOrigin.SYSTEM)
        logger.info(message)
        self._emit_state_change()
        return message

    def _system_resume(self, message: str) -> str:
        with self._guarded():
            session = self._session
            if session is None:
                return NO_SESSION_MESSAGE
            if not session.is_paused:
                return "Session already running"
            if session.pause_origin is PauseOrigin.USER:
                logger.debug("Ignoring system resume; session paused by user.")
                return "Paused by user - not resuming"
            self._resume(session)
        logger.info(message)
        self._emit_state_change()
        return message

    # ----- User laps -----
    def add_lap(self) -> str:
        with self._guarded():
            session = self._session
            if session is None:
                raise NoSession()
            if not session.is_paused:
                elapsed = self._accrue(session)
                if elapsed > self.settings.min_lap_duration.total_seconds():
                    self._close_open_lap(session)
                else:
                    self._ledger.discard_open_lap(session.day_key)
                    logger.debug("Dropped %.1fs lap before starting a new one.", elapsed)
            self._resume(session)
        logger.info("New lap started for %s", session.day_key)
        self._emit_state_change()
        return "New lap added successfully"

    def stop_lap(self) -> str:
        with self._guarded():
            session = self._session
            if session is None:
                raise NoSession()
            if session.is_paused:
                raise AlreadyPaused()
            elapsed = self._accrue(session)
            if elapsed < self.settings.short_lap_threshold.total_seconds():
                self._ledger.discard_open_lap(session.day_key)
                session.accumulated_seconds = 0.0
                message = "Lap discarded - too short"
            else:
                self._close_open_lap(session)
                message = "Lap stopped successfully"
            self._pause(session, PauseOrigin.USER)
        logger.info("%s (%.1fs)", message, elapsed)
        self._emit_state_change()
        return message

    # ----- Queries -----
    def get_current_status(self) -> Optional[Status]:
        with self._guarded():
            session = self._session
            if session is None:
                return None
            closed = self._ledger.closed_total(session.day_key)
            if session.is_paused:
                return Status(
                    day_key=session.day_key,
                    current_lap_duration=0,
                    total_session_duration=closed,
                    is_active=False,
                    pause_origin=session.pause_origin,
                )
            live = whole_seconds(self._accrue(session))
            return Status(
                day_key=session.day_key,
                current_lap_duration=live,
                total_session_duration=closed + live,
                is_active=True,
                pause_origin=session.pause_origin,
            )

    def get_current_day_laps(self) -> list[Lap]:
        with self._guarded():
            if self._session is None:
                return []
            return self._ledger.laps(self._session.day_key)

    def tick(self) -> Optional[float]:
        """Advance accounting for the active session, if any."""
        with self._guarded():
            if self._session is None:
                return None
            return self._accrue(self._session)

    # ----- Persistence hooks -----
    def export_state(self) -> tuple[Optional[Session], dict[str, DayRecord]]:
        with self._guarded():
            session = None
            if self._session is not None:
                self._accrue(self._session)
                session = replace(self._session)
            return session, self._ledger.copy_records()

    def restore(
        self, session: Optional[Session], records: Mapping[str, DayRecord]
    ) -> Optional[Session]:
        """Load persisted state. A restored session is always paused by the system."""
        with self._guarded():
            if self._session is not None:
                raise AlreadyActive("Cannot restore over an active session")
            self._ledger.replace_all(records)
            self._session = self._restore_session(session)
            restored = replace(self._session) if self._session else None
        self._emit_state_change()
        return restored

    def _restore_session(self, session: Optional[Session]) -> Optional[Session]:
        if session is None:
            return None
        record = self._ledger.get(session.day_key)
        if record is None:
            logger.warning("Discarding persisted session; no record for %s.", session.day_key)
            return None

        duration = whole_seconds(session.accumulated_seconds)
        lap = record.open_lap
        if lap is not None:
            self._ledger.close_open_lap(session.day_key, lap.start_time + duration, duration)

        if session.day_key != self._clock.day_key():
            self._ledger.finalize(session.day_key)
            logger.info("Persisted session for %s is stale; day finalized.", session.day_key)
            return None

        logger.info("Restored session for %s as paused.", session.day_key)
        return replace(
            session,
            is_paused=True,
            pause_origin=PauseOrigin.SYSTEM,
            last_activity_time=self._clock.monotonic(),
        )

    # ----- Accounting internals -----
    def _accrue(self, session: Session) -> float:
        """Add elapsed monotonic time, skipping gaps that look like a suspend."""
        if session.is_paused:
            return session.accumulated_seconds
        now = self._clock.monotonic()
        elapsed = now - session.last_activity_time
        if elapsed > self.settings.gap_threshold.total_seconds():
            logger.debug("Skipping %.1fs gap; treating it as an undetected suspend.", elapsed)
        elif elapsed > 0:
            session.accumulated_seconds += elapsed
        session.last_activity_time = now
        return session.accumulated_seconds

    def _close_open_lap(self, session: Session) -> Optional[Lap]:
        duration = whole_seconds(self._accrue(session))
        return self._ledger.close_open_lap(session.day_key, self._clock.timestamp(), duration)

    def _pause(self, session: Session, origin: PauseOrigin) -> None:
        session.is_paused = True
        session.pause_origin = origin
        session.current_lap_start_timestamp = None

    def _resume(self, session: Session) -> None:
        now_ts = self._clock.timestamp()
        self._ledger.open_lap(session.day_key, now_ts)
        session.accumulated_seconds = 0.0
        session.last_activity_time = self._clock.monotonic()
        session.is_paused = False
        session.pause_origin = PauseOrigin.NONE
        session.current_lap_start_timestamp = now_ts
