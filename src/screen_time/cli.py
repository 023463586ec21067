"""Command-line interface for the screen time tracker."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from .config import TrackerSettings
from .paths import get_snapshot_path
from .server_runner import run_server
from .tracker import DAY_FMT, SystemClock

app = typer.Typer(help="Daily screen time tracker with automatic pause on lock and sleep.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the command API."),
    port: int = typer.Option(
        8766, "--port", min=1, max=65535, help="TCP port for the command API."
    ),
    snapshot_path: Optional[Path] = typer.Option(
        None, "--state", path_type=Path, help="Location of the JSON state snapshot."
    ),
    poll_seconds: float = typer.Option(
        1.0,
        "--interval",
        min=0.1,
        max=1.0,
        help="Lock/sleep polling interval in seconds.",
    ),
    gap_seconds: float = typer.Option(
        5.0,
        "--gap-threshold",
        min=2.0,
        help="Seconds between accounting ticks treated as an undetected suspend.",
    ),
    snapshot_seconds: Optional[float] = typer.Option(
        None,
        "--snapshot-interval",
        min=1.0,
        help="Periodic snapshot interval in seconds (defaults to 30).",
    ),
    short_lap_seconds: float = typer.Option(
        3.0,
        "--short-lap",
        min=0.0,
        help="Laps stopped before this many seconds are discarded.",
    ),
    lock_debounce: int = typer.Option(
        2, "--lock-debounce", min=1, help="Consecutive samples required for a lock edge."
    ),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the interactive API docs in your default browser.",
    ),
) -> None:
    """Run the command API with the signal poller and snapshot writer."""
    settings = TrackerSettings.from_intervals(
        poll_seconds=poll_seconds,
        gap_seconds=gap_seconds,
        snapshot_seconds=snapshot_seconds,
        short_lap_seconds=short_lap_seconds,
        lock_debounce=lock_debounce,
    )
    run_server(
        host=host,
        port=port,
        snapshot_path=snapshot_path or get_snapshot_path(),
        settings=settings,
        open_browser=open_browser,
    )


@app.command()
def status(
    snapshot_path: Optional[Path] = typer.Option(
        None, "--state", path_type=Path, help="Location of the JSON state snapshot."
    ),
) -> None:
    """Print the persisted session and today's laps."""
    from .reporting import SummaryPrinter

    printer = SummaryPrinter(snapshot_path or get_snapshot_path())
    printer.print_current(SystemClock().day_key())


@app.command()
def summary(
    date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD, UTC) to summarize. Defaults to today.",
    ),
    snapshot_path: Optional[Path] = typer.Option(
        None, "--state", path_type=Path, help="Location of the JSON state snapshot."
    ),
) -> None:
    """Print the laps recorded for a specific day."""
    from .reporting import SummaryPrinter

    if date:
        try:
            datetime.strptime(date, DAY_FMT)
        except ValueError as exc:
            raise typer.BadParameter("Expected YYYY-MM-DD", param_hint="--date") from exc
    day_key = date or SystemClock().day_key()
    SummaryPrinter(snapshot_path or get_snapshot_path()).print_day(day_key)
