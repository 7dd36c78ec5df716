"""Tests for planner queries, mutations and drop handling."""
from datetime import date, datetime, timezone

import httpx
import pytest

from calendar_core.drag_drop import day_zone, hour_zone, quarter_zone
from calendar_core.local_storage import LocalStorage
from calendar_core.notices import NoticeBoard
from calendar_core.planner import NOTES_KEY, Planner
from calendar_core.query_cache import QueryCache
from calendar_core.storage_port import FallbackStorage, RemoteStorage
from timeblock_server.errors import NotFoundError, ValidationError
from timeblock_server.models import Note
from timeblock_server.store import MemStore

USER_ID = "demo-user-id"


def test_create_note_trims_input(planner: Planner) -> None:
    note = planner.create_note("  Write report  ", "   ", "high")

    assert note.title == "Write report"
    assert note.description is None
    assert note.priority == "high"
    assert planner.notes() == [note]


@pytest.mark.parametrize("title", ["", "   ", None])
def test_create_note_blank_title_stores_nothing(planner: Planner, title: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        planner.create_note(title)
    assert excinfo.value.message == "Please enter a note title."
    assert planner.notes() == []


def test_mutations_invalidate_cached_lists(planner: Planner) -> None:
    """A cached list is re-queried after a mutation, never patched."""
    assert planner.notes() == []
    assert NOTES_KEY in planner.cache

    note = planner.create_note("Fresh")

    assert NOTES_KEY not in planner.cache
    assert planner.notes() == [note]


def test_schedule_note_on_hour(planner: Planner, mem_store: MemStore) -> None:
    """Dropping "Write report" on 2 PM makes a one hour task and removes the note."""
    note = planner.create_note("Write report", "Quarterly numbers", "high")

    task = planner.schedule_note(note, hour_zone("2026-10-19", 14))

    assert task.title == "Write report"
    assert task.description == "Quarterly numbers"
    assert task.priority == "high"
    assert task.note_id == note.id
    assert task.date == "2026-10-19"
    assert task.start_time == "14:00"
    assert task.duration == 60
    assert planner.notes() == []
    assert mem_store.list_tasks(USER_ID) == [task]
    notice = planner.notices.drain()[-1]
    assert notice.title == "Task scheduled"
    assert notice.description == "Task scheduled at 2:00 PM."


def test_schedule_note_on_quarter(planner: Planner) -> None:
    note = planner.create_note("Stand-up")

    task = planner.schedule_note(note, quarter_zone("2026-10-19", 9, 2))

    assert task.start_time == "09:30"
    assert task.duration == 15
    assert planner.notices.drain()[-1].description == "Task scheduled at 09:30."


def test_schedule_note_on_day_is_unscheduled(planner: Planner) -> None:
    note = planner.create_note("Someday")

    task = planner.schedule_note(note, day_zone("2026-10-20"))

    assert task.start_time is None
    assert task.duration is None
    assert [t.id for t in planner.tasks("2026-10-20")] == [task.id]
    assert planner.notices.drain()[-1].description == "Scheduled for Oct 20."


def test_schedule_keeps_task_when_note_already_deleted(planner: Planner, mem_store: MemStore) -> None:
    note = planner.create_note("Race")
    mem_store.delete_note(note.id)

    task = planner.schedule_note(note, day_zone("2026-10-19"))

    assert mem_store.list_tasks(USER_ID) == [task]
    assert planner.notes() == []


def test_reschedule_task_between_zones(planner: Planner) -> None:
    task = planner.create_task({"title": "Call", "date": "2026-10-19", "start_time": "09:00", "duration": 30})

    moved = planner.reschedule_task(task, hour_zone("2026-10-21", 16))
    assert (moved.date, moved.start_time, moved.duration) == ("2026-10-21", "16:00", 30)

    moved = planner.reschedule_task(moved, quarter_zone("2026-10-21", 16, 3))
    assert (moved.start_time, moved.duration) == ("16:45", 15)

    moved = planner.reschedule_task(moved, day_zone("2026-10-22"))
    assert (moved.date, moved.start_time, moved.duration) == ("2026-10-22", None, None)
    assert moved.id == task.id


def test_task_queries_by_day_hour_and_quarter(planner: Planner) -> None:
    day = date(2026, 10, 19)
    loose = planner.create_task({"title": "Loose", "date": "2026-10-19"})
    nine = planner.create_task({"title": "Nine", "date": "2026-10-19", "start_time": "09:15", "duration": 15})
    planner.create_task({"title": "Other day", "date": "2026-10-20", "start_time": "09:15", "duration": 15})

    assert [t.id for t in planner.unscheduled_tasks(day)] == [loose.id]
    assert [t.id for t in planner.scheduled_tasks(day)] == [nine.id]
    assert [t.id for t in planner.tasks_for_hour(day, 9)] == [nine.id]
    assert planner.task_for_quarter(day, 9, 1).id == nine.id
    assert planner.task_for_quarter(day, 9, 0) is None

    grouped = planner.tasks_by_day([day, date(2026, 10, 21)])
    assert [t.id for t in grouped["2026-10-19"]] == [nine.id, loose.id]
    assert grouped["2026-10-21"] == []


def test_update_task_with_no_changes_is_idempotent(planner: Planner) -> None:
    task = planner.create_task({"title": "Plan", "date": "2026-10-19"})

    assert planner.update_task(task.id, {}) == task
    assert planner.tasks() == [task]


def test_update_task_rejects_blank_title(planner: Planner) -> None:
    task = planner.create_task({"title": "Plan", "date": "2026-10-19"})

    with pytest.raises(ValidationError):
        planner.update_task(task.id, {"title": "  "})
    assert planner.find_task(task.id).title == "Plan"


def test_toggles_and_deletes(planner: Planner) -> None:
    note = planner.create_note("Toggle me")
    task = planner.create_task({"title": "Toggle task", "date": "2026-10-19"})

    assert planner.toggle_note_complete(note).completed == 1
    assert planner.toggle_note_complete(planner.find_note(note.id)).completed == 0
    assert planner.toggle_task_complete(task).completed == 1

    planner.delete_task(task.id)
    assert planner.tasks() == []
    with pytest.raises(NotFoundError):
        planner.delete_task(task.id)


def test_schedule_reports_note_left_behind_when_service_fails_mid_way(tmp_path) -> None:
    """The task is created remotely but the note delete hits an outage."""
    calls = []

    def service(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        if request.method == "POST":
            return httpx.Response(201, json={
                "id": "t1", "userId": USER_ID, "noteId": "n1", "title": "Write report",
                "priority": "high", "date": "2026-10-19", "startTime": "14:00", "duration": 60,
                "completed": 0, "createdAt": "2026-10-19T09:00:00Z",
            })
        return httpx.Response(503, text="unavailable")

    remote = RemoteStorage("http://timeblock.test", timeout=1.0, transport=httpx.MockTransport(service))
    storage = FallbackStorage(remote, LocalStorage(tmp_path / "store.json", USER_ID))
    planner = Planner(storage, QueryCache(), NoticeBoard())
    note = Note(id="n1", user_id=USER_ID, title="Write report", created_at=datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc), priority="high")

    task = planner.schedule_note(note, hour_zone("2026-10-19", 14))

    assert task.id == "t1"
    assert calls == [("POST", "/api/tasks"), ("DELETE", "/api/notes/n1")]
    notices = planner.notices.drain()
    assert [n.title for n in notices] == ["Task scheduled", "Note not removed"]
    assert notices[-1].variant == "destructive"
