"""
Data models for notes and tasks.

A Note is an unscheduled item waiting in the drawer. Once it is dropped onto
the calendar it becomes a Task with a date and, optionally, a start time and
duration.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import typing as t


Priority = t.Literal["low", "medium", "high"]

PRIORITIES: tuple[str, ...] = ("low", "medium", "high")


@dataclass
class Note:
    """Represents a captured note that has not been scheduled yet."""
    id: str
    user_id: str
    title: str
    created_at: datetime
    description: t.Optional[str] = None
    priority: Priority = "medium"
    completed: int = 0  # 0 = open, 1 = done


@dataclass
class Task:
    """Represents a note placed on a calendar date, optionally at a time."""
    id: str
    user_id: str
    title: str
    date: str  # "YYYY-MM-DD"
    created_at: datetime
    note_id: t.Optional[str] = None
    description: t.Optional[str] = None
    priority: Priority = "medium"
    start_time: t.Optional[str] = None  # "HH:MM", None for day-level tasks
    duration: t.Optional[int] = None    # minutes
    completed: int = 0

    @property
    def is_scheduled(self) -> bool:
        return self.start_time is not None
