"""FastAPI application exposing the tracker operations over local HTTP."""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import TrackerSettings
from .errors import RecordNotFound, TrackerError
from .paths import get_snapshot_path
from .runtime import TrackerRuntime
from .signals import ProcessSignalProbe, SignalProbe
from .snapshot import SnapshotStore
from .tracker import SessionTracker, SystemClock

logger = logging.getLogger(__name__)


def create_app(
    *,
    snapshot_path: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    clock: Optional[SystemClock] = None,
    probe: Optional[SignalProbe] = None,
    run_background: bool = True,
) -> FastAPI:
    """Instantiate the FastAPI application and wire the tracker to its store."""
    resolved_settings = settings or TrackerSettings()
    store = SnapshotStore(Path(snapshot_path or get_snapshot_path()))
    tracker = SessionTracker(settings=resolved_settings, clock=clock)
    resolved_probe = probe or ProcessSignalProbe(
        sleep_gap=resolved_settings.gap_threshold.total_seconds(),
        asleep_samples=resolved_settings.sleep_debounce_samples,
    )
    runtime = TrackerRuntime(tracker, store, resolved_probe)

    app = FastAPI(title="Screen Time Tracker", version="0.3.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.tracker = tracker
    app.state.store = store
    app.state.runtime = runtime

    @app.exception_handler(TrackerError)
    async def _tracker_error(request: Request, exc: TrackerError) -> JSONResponse:
        if isinstance(exc, RecordNotFound):
            logger.error("Tracker invariant broken: %s", exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": type(exc).__name__},
        )

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        store.load_into(tracker)
        tracker.set_on_state_change(lambda: store.save(tracker))
        if run_background:
            runtime.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        runtime.stop()
        tracker.set_on_state_change(None)
        store.save(tracker)

    @app.get("/api/runtime")
    def runtime_info(request: Request) -> Dict[str, Any]:
        return {
            "background_running": request.app.state.runtime.is_running(),
            "snapshot_path": str(request.app.state.store.path),
            "poll_seconds": resolved_settings.poll_interval.total_seconds(),
            "gap_seconds": resolved_settings.gap_threshold.total_seconds(),
            "snapshot_seconds": resolved_settings.snapshot_interval.total_seconds(),
        }

    @app.post("/api/day/start")
    def start_day(request: Request) -> Dict[str, Any]:
        return {"message": request.app.state.tracker.start_day()}

    @app.post("/api/day/end")
    def end_day(request: Request) -> Dict[str, Any]:
        return asdict(request.app.state.tracker.end_day())

    @app.post("/api/signals/lock")
    def screen_lock(request: Request) -> Dict[str, Any]:
        return {"message": request.app.state.tracker.handle_screen_lock()}

    @app.post("/api/signals/unlock")
    def screen_unlock(request: Request) -> Dict[str, Any]:
        return {"message": request.app.state.tracker.handle_screen_unlock()}

    @app.post("/api/signals/sleep")
    def system_sleep(request: Request) -> Dict[str, Any]:
        return {"message": request.app.state.tracker.handle_system_sleep()}

    @app.post("/api/signals/wake")
    def system_wake(request: Request) -> Dict[str, Any]:
        return {"message": request.app.state.tracker.handle_system_wake()}

    @app.get("/api/status")
    def status(request: Request) -> Optional[Dict[str, Any]]:
        current = request.app.state.tracker.get_current_status()
        if current is None:
            return None
        payload = asdict(current)
        payload["pause_origin"] = current.pause_origin.value
        return payload

    @app.get("/api/laps")
    def laps(request: Request) -> List[Dict[str, Any]]:
        return [asdict(lap) for lap in request.app.state.tracker.get_current_day_laps()]

    @app.post("/api/laps")
    def add_lap(request: Request) -> Dict[str, Any]:
        return {"message": request.app.state.tracker.add_lap()}

    @app.post("/api/laps/stop")
    def stop_lap(request: Request) -> Dict[str, Any]:
        return {"message": request.app.state.tracker.stop_lap()}

    return app
