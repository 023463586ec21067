"""Lock/sleep detection and dispatch of machine-state events to the tracker."""

from __future__ import annotations

import logging
import queue
import sys
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Protocol

import psutil

from .config import TrackerSettings
from .errors import TrackerError
from .tracker import SessionTracker

logger = logging.getLogger(__name__)

_LOCK_PROCESS_NAMES: dict[str, tuple[str, ...]] = {
    "darwin": ("ScreenSaverEngine",),
    "win32": ("LogonUI.exe",),
    "linux": (
        "gnome-screensaver-dialog",
        "i3lock",
        "swaylock",
        "xscreensaver-auth",
        "light-locker",
        "kscreenlocker_greet",
    ),
}


class SignalEvent(str, Enum):
    LOCK_DETECTED = "lock"
    UNLOCK_DETECTED = "unlock"
    SLEEP_DETECTED = "sleep"
    WAKE_DETECTED = "wake"


@dataclass(slots=True, frozen=True)
class SignalSample:
    locked: bool
    asleep: bool


class SignalProbe(Protocol):
    def poll(self) -> SignalSample: ...


def default_lock_process_names(platform: str = sys.platform) -> tuple[str, ...]:
    for prefix, names in _LOCK_PROCESS_NAMES.items():
        if platform.startswith(prefix):
            return names
    return ()


class ProcessSignalProbe:
    """Infers lock state from running processes and sleep from clock drift.

    The monotonic clock stops while the machine is suspended and the wall
    clock does not, so a sample that sees the wall clock run ahead by more
    than ``sleep_gap`` reports ``asleep`` for the next ``asleep_samples``
    samples, enough for a sleep debouncer of that length to fire.
    """

    def __init__(
        self,
        sleep_gap: float,
        lock_process_names: Optional[Iterable[str]] = None,
        wall_clock: Callable[[], float] = time.time,
        monotonic_clock: Callable[[], float] = time.monotonic,
        asleep_samples: int = 1,
    ) -> None:
        if asleep_samples < 1:
            raise ValueError("asleep_samples must be at least 1")
        names = lock_process_names if lock_process_names is not None else default_lock_process_names()
        self._lock_names = {name.lower() for name in names}
        self._sleep_gap = sleep_gap
        self._wall_clock = wall_clock
        self._monotonic_clock = monotonic_clock
        self._last_wall: Optional[float] = None
        self._last_monotonic: Optional[float] = None
        self._asleep_samples = asleep_samples
        self._asleep_remaining = 0

    def poll(self) -> SignalSample:
        return SignalSample(locked=self._is_locked(), asleep=self._is_asleep())

    def _is_locked(self) -> bool:
        if not self._lock_names:
            return False
        for proc in psutil.process_iter(["name"]):
            name = proc.info.get("name")
            if name and name.lower() in self._lock_names:
                return True
        return False

    def _is_asleep(self) -> bool:
        if self._woke_from_suspend():
            self._asleep_remaining = self._asleep_samples
        if self._asleep_remaining > 0:
            self._asleep_remaining -= 1
            return True
        return False

    def _woke_from_suspend(self) -> bool:
        wall = self._wall_clock()
        mono = self._monotonic_clock()
        last_wall, last_mono = self._last_wall, self._last_monotonic
        self._last_wall, self._last_monotonic = wall, mono
        if last_wall is None or last_mono is None:
            return False
        drift = (wall - last_wall) - (mono - last_mono)
        return drift > self._sleep_gap


class Debouncer:
    """Reports a state change only after ``samples`` consecutive agreeing readings."""

    def __init__(self, samples: int, initial: bool = False) -> None:
        if samples < 1:
            raise ValueError("samples must be at least 1")
        self.samples = samples
        self.state = initial
        self._candidate = initial
        self._count = 0

    def update(self, value: bool) -> Optional[bool]:
        if value == self.state:
            self._candidate = value
            self._count = 0
            return None
        if value != self._candidate:
            self._candidate = value
            self._count = 0
        self._count += 1
        if self._count >= self.samples:
            self.state = value
            self._count = 0
            return value
        return None


class SignalPoller:
    """Samples a probe at a fixed interval and emits debounced edge events."""

    def __init__(
        self,
        probe: SignalProbe,
        settings: TrackerSettings,
        emit: Callable[[SignalEvent], None],
    ) -> None:
        self._probe = probe
        self._settings = settings
        self._emit = emit
        self._lock_state = Debouncer(settings.lock_debounce_samples)
        self._sleep_state = Debouncer(settings.sleep_debounce_samples)

    def sample_once(self) -> list[SignalEvent]:
        try:
            sample = self._probe.poll()
        except (psutil.Error, OSError):
            logger.exception("Failed to sample lock/sleep state; skipping.")
            return []

        events: list[SignalEvent] = []
        locked = self._lock_state.update(sample.locked)
        if locked is not None:
            events.append(SignalEvent.LOCK_DETECTED if locked else SignalEvent.UNLOCK_DETECTED)
        asleep = self._sleep_state.update(sample.asleep)
        if asleep is not None:
            events.append(SignalEvent.SLEEP_DETECTED if asleep else SignalEvent.WAKE_DETECTED)

        for event in events:
            logger.debug("Signal edge: %s", event.value)
            self._emit(event)
        return events

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        logger.info("Starting signal poller.")
        interval = self._settings.poll_interval.total_seconds()
        while not stop_event.is_set():
            self.sample_once()
            stop_event.wait(interval)
        logger.info("Signal poller stopped.")


class EventDispatcher:
    """Single consumer applying queued signal events to the tracker in order."""

    def __init__(
        self,
        tracker: SessionTracker,
        events: Optional["queue.Queue[SignalEvent]"] = None,
    ) -> None:
        self._tracker = tracker
        self.events: "queue.Queue[SignalEvent]" = events if events is not None else queue.Queue()
        self._handlers: dict[SignalEvent, Callable[[], str]] = {
            SignalEvent.LOCK_DETECTED: tracker.handle_screen_lock,
            SignalEvent.UNLOCK_DETECTED: tracker.handle_screen_unlock,
            SignalEvent.SLEEP_DETECTED: tracker.handle_system_sleep,
            SignalEvent.WAKE_DETECTED: tracker.handle_system_wake,
        }

    def submit(self, event: SignalEvent) -> None:
        self.events.put(event)

    def dispatch(self, event: SignalEvent) -> Optional[str]:
        try:
            message = self._handlers[event]()
        except TrackerError:
            logger.exception("Tracker rejected %s event.", event.value)
            return None
        except Exception:
            logger.exception("Unexpected failure handling %s event.", event.value)
            return None
        logger.debug("Handled %s: %s", event.value, message)
        return message

    def drain(self) -> int:
        handled = 0
        while True:
            try:
                event = self.events.get_nowait()
            except queue.Empty:
                return handled
            self.dispatch(event)
            handled += 1

    def tick(self) -> None:
        try:
            self._tracker.tick()
        except TrackerError:
            logger.exception("Tracker tick failed.")
        except Exception:
            logger.exception("Unexpected failure during tracker tick.")

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        interval = self._tracker.settings.poll_interval.total_seconds()
        while not stop_event.is_set():
            try:
                event = self.events.get(timeout=interval)
            except queue.Empty:
                pass
            else:
                self.dispatch(event)
                self.drain()
            self.tick()
        self.drain()
