"""Lifecycle of the background threads that feed and persist the tracker."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .signals import EventDispatcher, SignalPoller, SignalProbe
from .snapshot import SnapshotStore
from .tracker import SessionTracker

logger = logging.getLogger(__name__)


class TrackerRuntime:
    """Run the signal poller, event dispatcher and snapshot writer in daemon threads."""

    def __init__(
        self,
        tracker: SessionTracker,
        store: SnapshotStore,
        probe: SignalProbe,
    ) -> None:
        self.tracker = tracker
        self.store = store
        self.dispatcher = EventDispatcher(tracker)
        self.poller = SignalPoller(probe, tracker.settings, self.dispatcher.submit)
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []
        self._stop_event: Optional[threading.Event] = None

    def start(self) -> None:
        with self._lock:
            if self._threads and any(thread.is_alive() for thread in self._threads):
                return
            stop_event = threading.Event()
            targets: dict[str, Callable[[threading.Event], None]] = {
                "signal-poller": self.poller.run_until_stopped,
                "event-dispatcher": self.dispatcher.run_until_stopped,
                "snapshot-writer": self._run_snapshot_writer,
            }
            threads = [
                threading.Thread(target=target, args=(stop_event,), name=name, daemon=True)
                for name, target in targets.items()
            ]
            self._threads = threads
            self._stop_event = stop_event
            for thread in threads:
                thread.start()
            logger.info("Tracker background threads started.")

    def stop(self) -> None:
        with self._lock:
            if not self._threads or not self._stop_event:
                return
            self._stop_event.set()
            threads = self._threads
            self._threads = []
            self._stop_event = None
        for thread in threads:
            thread.join(timeout=10)
        logger.info("Tracker background threads stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return any(thread.is_alive() for thread in self._threads)

    def _run_snapshot_writer(self, stop_event: threading.Event) -> None:
        self.store.run_until_stopped(self.tracker, stop_event)
