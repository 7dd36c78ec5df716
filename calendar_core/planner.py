"""
Planner: the mutations and queries behind the calendar views.

Every mutation goes through the storage port, then invalidates the affected
cached collections so the next read re-queries them. Nothing here edits a
cached list in place.
"""
from __future__ import annotations

import logging
import typing as t
from datetime import date

from timeblock_server.errors import NotFoundError, TransportError, ValidationError
from timeblock_server.models import Note, Task

from .date_utils import (
    date_key,
    format_hour_label,
    format_short_date,
    hour_of,
    parse_date_key,
    start_time_for,
)
from .drag_drop import DragPayload, DropZone, NoteDrag
from .notices import NoticeBoard
from .query_cache import QueryCache
from .storage_port import StoragePort

logger = logging.getLogger(__name__)

NOTES_KEY = ("notes",)
TASKS_KEY = ("tasks",)

HOUR_BLOCK_MINUTES = 60
QUARTER_BLOCK_MINUTES = 15


class Planner:
    def __init__(self, storage: StoragePort, cache: QueryCache, notices: NoticeBoard) -> None:
        self.storage = storage
        self.cache = cache
        self.notices = notices

    # ---- queries ----
    def notes(self) -> list[Note]:
        return self.cache.get(NOTES_KEY, self.storage.list_notes)

    def find_note(self, note_id: str) -> t.Optional[Note]:
        return next((note for note in self.notes() if note.id == note_id), None)

    def tasks(self, day: t.Optional[str] = None) -> list[Task]:
        """All tasks, or the tasks of one date key, in store order."""
        if day is None:
            return self.cache.get(TASKS_KEY + (None,), self.storage.list_tasks)
        return self.cache.get(TASKS_KEY + (day,), lambda: self.storage.list_tasks(day))

    def find_task(self, task_id: str) -> t.Optional[Task]:
        return next((task for task in self.tasks() if task.id == task_id), None)

    def tasks_for_day(self, day: date) -> list[Task]:
        return self.tasks(date_key(day))

    def unscheduled_tasks(self, day: date) -> list[Task]:
        return [task for task in self.tasks_for_day(day) if task.start_time is None]

    def scheduled_tasks(self, day: date) -> list[Task]:
        return [task for task in self.tasks_for_day(day) if task.start_time is not None]

    def tasks_for_hour(self, day: date, hour: int) -> list[Task]:
        return [task for task in self.scheduled_tasks(day) if hour_of(task.start_time) == hour]

    def task_for_quarter(self, day: date, hour: int, quarter: int) -> t.Optional[Task]:
        """The task starting exactly at the quarter's start time, if any."""
        slot = start_time_for(hour, quarter)
        return next((task for task in self.tasks_for_day(day) if task.start_time == slot), None)

    def tasks_by_day(self, days: t.Iterable[date]) -> dict[str, list[Task]]:
        """Tasks grouped by date key for a set of grid cells (one query)."""
        grouped: dict[str, list[Task]] = {date_key(day): [] for day in days}
        for task in self.tasks():
            if task.date in grouped:
                grouped[task.date].append(task)
        return grouped

    # ---- note mutations ----
    def create_note(self, title: str, description: t.Optional[str] = None, priority: str = "medium") -> Note:
        """Create a note from composer input.

        Raises:
            ValidationError: If the trimmed title is empty. Nothing is stored.
        """
        clean_title = (title or "").strip()
        if not clean_title:
            raise ValidationError("Please enter a note title.", [{"field": "title", "message": "Title is required"}])
        data: dict[str, t.Any] = {
            "title": clean_title,
            "description": (description or "").strip() or None,
            "priority": priority,
            "completed": 0,
        }
        note = self.storage.create_note(data)
        self.cache.invalidate(NOTES_KEY)
        return note

    def update_note(self, note_id: str, changes: t.Mapping[str, t.Any]) -> Note:
        note = self.storage.update_note(note_id, changes)
        self.cache.invalidate(NOTES_KEY)
        return note

    def toggle_note_complete(self, note: Note) -> Note:
        return self.update_note(note.id, {"completed": 0 if note.completed else 1})

    def delete_note(self, note_id: str) -> None:
        self.storage.delete_note(note_id)
        self.cache.invalidate(NOTES_KEY)

    # ---- task mutations ----
    def create_task(self, data: t.Mapping[str, t.Any]) -> Task:
        task = self.storage.create_task(data)
        self.cache.invalidate(TASKS_KEY)
        return task

    def update_task(self, task_id: str, changes: t.Mapping[str, t.Any]) -> Task:
        title = changes.get("title")
        if "title" in changes and not (title or "").strip():
            raise ValidationError("Task title must not be empty.", [{"field": "title", "message": "Title is required"}])
        task = self.storage.update_task(task_id, changes)
        self.cache.invalidate(TASKS_KEY)
        return task

    def toggle_task_complete(self, task: Task) -> Task:
        return self.update_task(task.id, {"completed": 0 if task.completed == 1 else 1})

    def delete_task(self, task_id: str) -> None:
        self.storage.delete_task(task_id)
        self.cache.invalidate(TASKS_KEY)

    # ---- drops ----
    def handle_drop(self, payload: DragPayload, zone: DropZone) -> Task:
        """Convert a dropped note into a task, or reschedule a dropped task."""
        if isinstance(payload, NoteDrag):
            return self.schedule_note(payload.note, zone)
        return self.reschedule_task(payload.task, zone)

    def schedule_note(self, note: Note, zone: DropZone) -> Task:
        """Create a task from ``note`` at ``zone`` and remove the note.

        Day zones give an unscheduled task, hour zones a 60 minute block and
        quarter zones a 15 minute block.
        """
        start_time, duration = _slot_for(zone)
        task = self.create_task({
            "note_id": note.id,
            "title": note.title,
            "description": note.description or None,
            "priority": note.priority,
            "date": zone.date,
            "start_time": start_time,
            "duration": duration,
        })
        try:
            self.delete_note(note.id)
        except NotFoundError:
            # The task stands even if the note is already gone
            logger.warning("Note %s was already deleted when scheduled", note.id)
            self.cache.invalidate(NOTES_KEY)
        except TransportError as e:
            logger.warning("Task %s created but note %s could not be removed: %s", task.id, note.id, e)
            self.cache.invalidate(NOTES_KEY)
            self.notices.push("Task scheduled", _scheduled_message(zone, start_time))
            self.notices.error("Note not removed", "The task was created, but the note could not be removed. Please delete it manually.")
            return task
        logger.info("Scheduled note %s as task %s (%s %s)", note.id, task.id, zone.date, start_time or "unscheduled")
        self.notices.push("Task scheduled", _scheduled_message(zone, start_time))
        return task

    def reschedule_task(self, task: Task, zone: DropZone) -> Task:
        """Move an existing task to ``zone``."""
        start_time, duration = _slot_for(zone)
        if zone.kind == "hour" and task.duration:
            duration = task.duration
        updated = self.update_task(task.id, {
            "date": zone.date,
            "start_time": start_time,
            "duration": duration,
        })
        logger.info("Moved task %s to %s %s", task.id, zone.date, start_time or "unscheduled")
        if start_time is None:
            self.notices.push("Task scheduled", f"Task moved to {format_short_date(parse_date_key(zone.date))}.")
        else:
            self.notices.push("Task scheduled", f"Task moved to {start_time}.")
        return updated


def _slot_for(zone: DropZone) -> tuple[t.Optional[str], t.Optional[int]]:
    if zone.kind == "quarter":
        return start_time_for(zone.hour, zone.quarter), QUARTER_BLOCK_MINUTES
    if zone.kind == "hour":
        return start_time_for(zone.hour), HOUR_BLOCK_MINUTES
    return None, None


def _scheduled_message(zone: DropZone, start_time: t.Optional[str]) -> str:
    if zone.kind == "quarter":
        return f"Task scheduled at {start_time}."
    if zone.kind == "hour":
        return f"Task scheduled at {format_hour_label(zone.hour)}."
    return f"Scheduled for {format_short_date(parse_date_key(zone.date))}."
