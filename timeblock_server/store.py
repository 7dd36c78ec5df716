# -*- coding: utf-8 -*-
"""
In-memory entity store for notes and tasks.

The store is the single owner of its dicts; every public operation is a
single-step map operation, so callers always observe a consistent state.
Subclasses can persist the maps by overriding ``_persist``.
"""
from __future__ import annotations

import logging
import re
import typing as t
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone

from .errors import ValidationError
from .models import Note, PRIORITIES, Task

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

NOTE_FIELDS = frozenset({"title", "description", "priority", "completed"})
TASK_FIELDS = frozenset({
    "note_id", "title", "description", "priority",
    "date", "start_time", "duration", "completed",
})

# Fields that may be cleared by passing None explicitly
NULLABLE_NOTE_FIELDS = frozenset({"description"})
NULLABLE_TASK_FIELDS = frozenset({"description", "note_id", "start_time", "duration"})


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class MemStore:
    """Notes and tasks keyed by id and scoped by user id."""

    def __init__(
        self,
        clock: t.Callable[[], datetime] = _utc_now,
        id_factory: t.Callable[[], str] = _new_id,
    ) -> None:
        self._clock = clock
        self._id_factory = id_factory
        self.notes: dict[str, Note] = {}
        self.tasks: dict[str, Task] = {}
        # Insertion sequence, used to order records created at the same instant
        self._seq: dict[str, int] = {}
        self._counter = 0

    # ---------- notes ----------
    def list_notes(self, user_id: str) -> list[Note]:
        """Returns the user's notes, most recent first."""
        notes = [note for note in self.notes.values() if note.user_id == user_id]
        return sorted(notes, key=lambda n: (n.created_at, self._seq.get(n.id, 0)), reverse=True)

    def create_note(self, user_id: str, data: t.Mapping[str, t.Any]) -> Note:
        """Creates a note.

        :param user_id: Owner of the note.
        :param data: Note fields; ``title`` is required.
        :return: The stored Note.
        :raises ValidationError: If the title is blank or a field is invalid.
        """
        fields = self._check_note_fields(data, creating=True)
        note = Note(
            id=self._id_factory(),
            user_id=user_id,
            title=fields["title"],
            created_at=self._clock(),
            description=fields.get("description"),
            priority=fields.get("priority") or "medium",
            completed=fields.get("completed") or 0,
        )
        with self._mutation():
            self.notes[note.id] = note
            self._remember(note.id)
        logger.debug("Created note %s for user %s", note.id, user_id)
        return note

    def update_note(self, note_id: str, changes: t.Mapping[str, t.Any]) -> t.Optional[Note]:
        """Merges the provided fields into a note.

        Keys absent from ``changes`` keep their value. An explicit None clears
        a nullable field and is ignored for required ones.

        :return: The updated Note, or None if the id is unknown.
        """
        note = self.notes.get(note_id)
        if note is None:
            return None
        fields = self._check_note_fields(changes, creating=False)
        merged = _merge(fields, NULLABLE_NOTE_FIELDS)
        if not merged:
            return note
        updated = replace(note, **merged)
        with self._mutation():
            self.notes[note_id] = updated
        return updated

    def delete_note(self, note_id: str) -> bool:
        if note_id not in self.notes:
            return False
        with self._mutation():
            del self.notes[note_id]
            self._seq.pop(note_id, None)
        return True

    # ---------- tasks ----------
    def list_tasks(self, user_id: str, date: t.Optional[str] = None) -> list[Task]:
        """Returns the user's tasks, optionally restricted to one date.

        Tasks are ordered by date, then scheduled tasks by start time, then
        unscheduled tasks (no start time) last within their date.
        """
        tasks = [
            task for task in self.tasks.values()
            if task.user_id == user_id and (not date or task.date == date)
        ]
        return sorted(
            tasks,
            key=lambda task: (
                task.date,
                task.start_time is None,
                task.start_time or "",
                self._seq.get(task.id, 0),
            ),
        )

    def create_task(self, user_id: str, data: t.Mapping[str, t.Any]) -> Task:
        """Creates a task.

        :param user_id: Owner of the task.
        :param data: Task fields; ``title`` and ``date`` are required.
        :return: The stored Task.
        :raises ValidationError: If a required field is missing or invalid.
        """
        fields = self._check_task_fields(data, creating=True)
        task = Task(
            id=self._id_factory(),
            user_id=user_id,
            title=fields["title"],
            date=fields["date"],
            created_at=self._clock(),
            note_id=fields.get("note_id"),
            description=fields.get("description"),
            priority=fields.get("priority") or "medium",
            start_time=fields.get("start_time"),
            duration=fields.get("duration"),
            completed=fields.get("completed") or 0,
        )
        with self._mutation():
            self.tasks[task.id] = task
            self._remember(task.id)
        logger.debug("Created task %s on %s at %s", task.id, task.date, task.start_time)
        return task

    def update_task(self, task_id: str, changes: t.Mapping[str, t.Any]) -> t.Optional[Task]:
        """Merges the provided fields into a task; None if the id is unknown."""
        task = self.tasks.get(task_id)
        if task is None:
            return None
        fields = self._check_task_fields(changes, creating=False)
        merged = _merge(fields, NULLABLE_TASK_FIELDS)
        if not merged:
            return task
        updated = replace(task, **merged)
        with self._mutation():
            self.tasks[task_id] = updated
        return updated

    def delete_task(self, task_id: str) -> bool:
        if task_id not in self.tasks:
            return False
        with self._mutation():
            del self.tasks[task_id]
            self._seq.pop(task_id, None)
        return True

    # ---------- internals ----------
    def _remember(self, item_id: str) -> None:
        self._counter += 1
        self._seq[item_id] = self._counter

    @contextmanager
    def _mutation(self) -> t.Iterator[None]:
        """Applies a change to the maps and persists it.

        If persisting fails the maps are restored to their previous state
        before the error propagates.
        """
        saved = dict(self.notes), dict(self.tasks), dict(self._seq), self._counter
        try:
            yield
            self._persist()
        except Exception:
            notes, tasks, seq, self._counter = saved
            for current, previous in ((self.notes, notes), (self.tasks, tasks), (self._seq, seq)):
                current.clear()
                current.update(previous)
            raise

    def _persist(self) -> None:
        """Hook called after every mutation; raising undoes the mutation."""

    def _check_note_fields(self, data: t.Mapping[str, t.Any], creating: bool) -> dict[str, t.Any]:
        errors: list[dict[str, t.Any]] = []
        fields = _known_fields(data, NOTE_FIELDS, errors)
        _check_title(fields, creating, errors)
        _check_common(fields, errors)
        if errors:
            raise ValidationError("Invalid note data", errors)
        return fields

    def _check_task_fields(self, data: t.Mapping[str, t.Any], creating: bool) -> dict[str, t.Any]:
        errors: list[dict[str, t.Any]] = []
        fields = _known_fields(data, TASK_FIELDS, errors)
        _check_title(fields, creating, errors)
        _check_common(fields, errors)

        date = fields.get("date")
        if creating and not date:
            errors.append({"field": "date", "message": "Date is required"})
        elif date is not None and not _is_calendar_date(date):
            errors.append({"field": "date", "message": "Date must be a real calendar date in YYYY-MM-DD form"})

        start_time = fields.get("start_time")
        if start_time is not None and not (isinstance(start_time, str) and TIME_RE.match(start_time)):
            errors.append({"field": "start_time", "message": "Start time must be HH:MM"})

        duration = fields.get("duration")
        if duration is not None and (isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0):
            errors.append({"field": "duration", "message": "Duration must be a positive number of minutes"})

        if errors:
            raise ValidationError("Invalid task data", errors)
        return fields


def _known_fields(
    data: t.Mapping[str, t.Any],
    allowed: frozenset[str],
    errors: list[dict[str, t.Any]],
) -> dict[str, t.Any]:
    fields = dict(data)
    for key in sorted(set(fields) - allowed):
        errors.append({"field": key, "message": "Unknown field"})
    if isinstance(fields.get("completed"), bool):
        fields["completed"] = int(fields["completed"])
    return fields


def _check_title(fields: dict[str, t.Any], creating: bool, errors: list[dict[str, t.Any]]) -> None:
    title = fields.get("title")
    if title is None:
        if creating:
            errors.append({"field": "title", "message": "Title is required"})
        return
    if not isinstance(title, str) or not title.strip():
        errors.append({"field": "title", "message": "Title must not be empty"})


def _check_common(fields: dict[str, t.Any], errors: list[dict[str, t.Any]]) -> None:
    priority = fields.get("priority")
    if priority is not None and priority not in PRIORITIES:
        errors.append({"field": "priority", "message": f"Priority must be one of {', '.join(PRIORITIES)}"})
    completed = fields.get("completed")
    if completed is not None and completed not in (0, 1):
        errors.append({"field": "completed", "message": "Completed must be 0 or 1"})


def _merge(fields: dict[str, t.Any], nullable: frozenset[str]) -> dict[str, t.Any]:
    """Keeps provided values, dropping explicit None for required fields."""
    return {
        key: value for key, value in fields.items()
        if value is not None or key in nullable
    }


def _is_calendar_date(value: t.Any) -> bool:
    """True for a YYYY-MM-DD string naming a day that exists."""
    if not (isinstance(value, str) and DATE_RE.match(value)):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True
