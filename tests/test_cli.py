"""Tests for the TimeBlock command line, run against local storage."""
from pathlib import Path

import pytest
from click.testing import CliRunner

from calendar_core.local_storage import LocalStorage
from timeblock_cli.run import main


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("TIMEBLOCK_STORAGE", "local")
    monkeypatch.setenv("TIMEBLOCK_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TIMEBLOCK_USER_ID", "demo-user-id")
    monkeypatch.setenv("TIMEBLOCK_LOG_LEVEL", "WARNING")
    return tmp_path


def _storage(data_dir: Path) -> LocalStorage:
    return LocalStorage(data_dir / "local_store.json", "demo-user-id")


def test_add_then_schedule_into_hour(data_dir: Path) -> None:
    runner = CliRunner()

    added = runner.invoke(main, ["add", "Write report", "-p", "high"])
    assert added.exit_code == 0, added.output
    assert "Note created" in added.output
    note = _storage(data_dir).list_notes()[0]

    listed = runner.invoke(main, ["notes"])
    assert "Write report" in listed.output

    scheduled = runner.invoke(main, ["schedule", note.id, "2026-10-19", "--hour", "14"])
    assert scheduled.exit_code == 0, scheduled.output

    storage = _storage(data_dir)
    assert storage.list_notes() == []
    task = storage.list_tasks("2026-10-19")[0]
    assert (task.start_time, task.duration) == ("14:00", 60)

    day = runner.invoke(main, ["day", "2026-10-19"])
    assert "Write report" in day.output


def test_blank_note_fails(data_dir: Path) -> None:
    result = CliRunner().invoke(main, ["add", "   "])

    assert result.exit_code == 1
    assert "Empty note" in result.output


def test_move_task_to_quarter_then_unschedule(data_dir: Path) -> None:
    task = _storage(data_dir).create_task({"title": "Call", "date": "2026-10-19", "start_time": "09:00", "duration": 60})
    runner = CliRunner()

    moved = runner.invoke(main, ["move", task.id, "2026-10-20", "--hour", "9", "--quarter", "2"])
    assert moved.exit_code == 0, moved.output
    assert _storage(data_dir).list_tasks("2026-10-20")[0].start_time == "09:30"

    unscheduled = runner.invoke(main, ["move", task.id, "2026-10-21"])
    assert unscheduled.exit_code == 0, unscheduled.output
    assert _storage(data_dir).list_tasks("2026-10-21")[0].start_time is None


def test_tour_skip_silences_first_run_hint(data_dir: Path) -> None:
    runner = CliRunner()

    first = runner.invoke(main, ["month", "2026-10"])
    assert "Welcome to TimeBlock" in first.output
    assert "October 2026" in first.output

    runner.invoke(main, ["tour", "--skip"])
    again = runner.invoke(main, ["month", "2026-10"])
    assert "Welcome to TimeBlock" not in again.output


def test_first_run_hint_shown_once_but_tour_still_available(data_dir: Path) -> None:
    runner = CliRunner()

    first = runner.invoke(main, ["notes"])
    second = runner.invoke(main, ["notes"])
    tour = runner.invoke(main, ["tour"])

    assert "Welcome to TimeBlock" in first.output
    assert "Welcome to TimeBlock" not in second.output
    assert "Welcome to TimeBlock" in tour.output
    assert "All set!" in tour.output


def test_invalid_storage_mode_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TIMEBLOCK_STORAGE", "cloud")

    result = CliRunner().invoke(main, ["notes"])

    assert result.exit_code == 1
    assert "TIMEBLOCK_STORAGE" in result.output
