from __future__ import annotations

from typer.testing import CliRunner

from screen_time.cli import app
from screen_time.models import DayRecord, Lap
from screen_time.reporting import SummaryPrinter, format_clock, format_duration, render_day
from screen_time.snapshot import SnapshotStore
from screen_time.tracker import SessionTracker

from conftest import START_WALL, run_for

runner = CliRunner()


def test_format_duration() -> None:
    assert format_duration(0) == "00:00:00"
    assert format_duration(3_725) == "01:02:05"


def test_format_clock_is_utc() -> None:
    assert format_clock(START_WALL) == "08:53:20"
    assert format_clock(None) == "--:--:--"


def test_render_day_lists_laps() -> None:
    record = DayRecord(
        date="2025-10-09",
        total_duration=90,
        laps=[Lap(START_WALL, START_WALL + 90, 90), Lap(START_WALL + 200)],
        is_active=True,
    )

    lines = render_day(record)

    assert lines[0] == "Summary for 2025-10-09 (active)"
    assert lines[2] == "Total: 00:01:30"
    assert lines[4] == "  Lap 1   08:53:20 - 08:54:50  00:01:30"
    assert lines[5] == "  Lap 2   08:56:40 - ongoing"


def _write_snapshot(path, clock) -> None:
    tracker = SessionTracker(clock=clock)
    tracker.start_day()
    run_for(tracker, clock, 5)
    tracker.stop_lap()
    SnapshotStore(path).save(tracker)


def test_print_current(tmp_path, clock, capsys) -> None:
    path = tmp_path / "state.json"
    _write_snapshot(path, clock)

    SummaryPrinter(path).print_current("2025-10-09")

    out = capsys.readouterr().out
    assert "Session for 2025-10-09 (paused, origin: user)" in out
    assert "Total: 00:00:05" in out


def test_print_day_without_record(tmp_path, capsys) -> None:
    SummaryPrinter(tmp_path / "missing.json").print_day("2025-10-09")
    assert "No laps recorded for 2025-10-09." in capsys.readouterr().out


def test_cli_summary(tmp_path, clock) -> None:
    path = tmp_path / "state.json"
    _write_snapshot(path, clock)

    result = runner.invoke(app, ["summary", "--date", "2025-10-09", "--state", str(path)])

    assert result.exit_code == 0
    assert "Lap 1" in result.output


def test_cli_summary_rejects_bad_date(tmp_path) -> None:
    result = runner.invoke(app, ["summary", "--date", "09/10/2025", "--state", str(tmp_path / "s.json")])
    assert result.exit_code != 0
