"""End-to-end tests of the app shell: views, drop zones and drag-and-drop."""
from datetime import date
from pathlib import Path

from calendar_core.app_state import TimeBlockApp, create_app
from calendar_core.config import Settings
from calendar_core.drag_drop import DRAG_MIME, day_zone, hour_zone, quarter_zone
from calendar_core.walkthrough import WALKTHROUGH_DONE_FLAG, MemoryFlagStore

TODAY = date(2026, 10, 19)


def test_drop_zones_follow_the_view(app: TimeBlockApp) -> None:
    assert len(app.drag.zones) == 42
    assert day_zone("2026-10-19").zone_id in app.drag.zones

    app.click_date(TODAY)
    assert len(app.drag.zones) == 24
    assert hour_zone("2026-10-19", 0).zone_id in app.drag.zones

    app.click_hour(9)
    assert set(app.drag.zones) == {quarter_zone("2026-10-19", 9, q).zone_id for q in range(4)}

    app.step()
    assert quarter_zone("2026-10-19", 10, 0).zone_id in app.drag.zones

    app.close_view()
    app.close_view()
    assert len(app.drag.zones) == 42


def test_write_report_scenario(app: TimeBlockApp) -> None:
    """Capture a note, open the day, drop it on 2 PM; it becomes a one hour task."""
    app.drawer.open_composer()
    app.drawer.draft.title = "Write report"
    note = app.drawer.submit()
    assert [n.id for n in app.drawer_notes()] == [note.id]

    app.click_date(TODAY)
    assert app.drag_note(note.id) is True
    assert DRAG_MIME in app.transfer
    zone_id = hour_zone("2026-10-19", 14).zone_id
    app.enter_zone(zone_id)
    assert app.drag.highlighted == {zone_id}

    task = app.drop_on(zone_id)

    assert task is not None
    assert (task.date, task.start_time, task.duration) == ("2026-10-19", "14:00", 60)
    assert app.drawer_notes() == []
    assert [t.id for t in app.planner.tasks_for_hour(TODAY, 14)] == [task.id]
    assert app.drag.state == "idle"
    descriptions = [notice.description for notice in app.drain_notices()]
    assert descriptions[-1] == "Task scheduled at 2:00 PM."


def test_month_drop_gives_unscheduled_task(app: TimeBlockApp) -> None:
    note = app.planner.create_note("Someday")
    app.drag_note(note.id)

    task = app.drop_on(day_zone("2026-10-23").zone_id)

    assert task.start_time is None
    cells = {day: tasks for day, _, tasks in app.month_cells()}
    assert [t.id for t in cells[date(2026, 10, 23)]] == [task.id]


def test_month_cells_mark_days_outside_month(app: TimeBlockApp) -> None:
    cells = app.month_cells()

    assert len(cells) == 42
    assert cells[0] == (date(2026, 9, 28), False, [])
    assert all(in_month for day, in_month, _ in cells if day.month == 10)


def test_tasks_cannot_be_dragged_in_month_view(app: TimeBlockApp) -> None:
    task = app.planner.create_task({"title": "Call", "date": "2026-10-19", "start_time": "09:00", "duration": 60})

    assert app.drag_task(task.id) is False

    app.click_date(TODAY)
    app.click_hour(11)
    assert app.drag_task(task.id) is True
    moved = app.drop_on(quarter_zone("2026-10-19", 11, 1).zone_id)
    assert (moved.start_time, moved.duration) == ("11:15", 15)


def test_drag_unknown_note_reports_error(app: TimeBlockApp) -> None:
    assert app.drag_note("missing") is False
    assert app.drain_notices()[-1].description == "That note no longer exists."


def test_cancelled_drag_leaves_no_payload(app: TimeBlockApp) -> None:
    note = app.planner.create_note("Maybe")
    app.drag_note(note.id)

    app.cancel_drag()

    assert app.drag.state == "idle"
    assert app.drop_on(day_zone("2026-10-19").zone_id) is None
    assert app.drawer_notes()[0].id == note.id


def test_walkthrough_launches_on_fresh_client(app: TimeBlockApp, flags: MemoryFlagStore) -> None:
    app.start()
    assert app.walkthrough.active

    app.walkthrough.skip()
    assert flags.get(WALKTHROUGH_DONE_FLAG) == "true"


def test_create_app_with_local_storage(tmp_path: Path) -> None:
    settings = Settings(
        service_url="http://localhost:8004",
        storage_mode="local",
        data_dir=tmp_path,
        user_id="demo-user-id",
        timeout=1.0,
        log_level="WARNING",
    )
    app = create_app(settings, today=lambda: TODAY)
    app.planner.create_note("On disk")
    app.walkthrough.skip()

    reopened = create_app(settings, today=lambda: TODAY)
    reopened.start()

    assert [n.title for n in reopened.drawer_notes()] == ["On disk"]
    assert reopened.walkthrough.active is False
