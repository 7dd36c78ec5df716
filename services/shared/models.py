"""
Shared Pydantic models for REST API serialization.

This module contains Pydantic equivalents of the dataclass models in
timeblock_server.models. JSON uses camelCase keys (``userId``, ``startTime``)
while Python code keeps snake_case attribute names.
"""
from __future__ import annotations

import typing as t
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel


Priority = t.Literal["low", "medium", "high"]

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class WireModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _calendar_date(value: t.Optional[str]) -> t.Optional[str]:
    """Rejects well-formed keys for days that do not exist, like 2026-02-30."""
    if value is not None:
        datetime.strptime(value, "%Y-%m-%d")
    return value


class Note(WireModel):
    """A captured note awaiting placement onto the calendar."""
    id: str
    user_id: str
    title: str
    description: t.Optional[str] = None
    priority: Priority = "medium"
    completed: int = 0
    created_at: datetime


class Task(WireModel):
    """A note once placed onto a date, optionally at a time."""
    id: str
    user_id: str
    note_id: t.Optional[str] = None
    title: str
    description: t.Optional[str] = None
    priority: Priority = "medium"
    date: str                                   # "YYYY-MM-DD"
    start_time: t.Optional[str] = None          # "HH:MM"
    duration: t.Optional[int] = None            # minutes
    completed: int = 0
    created_at: datetime


# Request/Response Models for API endpoints
class CreateNoteRequest(WireModel):
    """Request model for creating a note."""
    title: str = Field(min_length=1)
    description: t.Optional[str] = None
    priority: Priority = "medium"
    completed: int = Field(default=0, ge=0, le=1)


class UpdateNoteRequest(WireModel):
    """Request model for a partial note update; unset fields are left alone."""
    title: t.Optional[str] = Field(default=None, min_length=1)
    description: t.Optional[str] = None
    priority: t.Optional[Priority] = None
    completed: t.Optional[int] = Field(default=None, ge=0, le=1)


class CreateTaskRequest(WireModel):
    """Request model for creating a task."""
    note_id: t.Optional[str] = None
    title: str = Field(min_length=1)
    description: t.Optional[str] = None
    priority: Priority = "medium"
    date: str = Field(pattern=DATE_PATTERN)
    start_time: t.Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    duration: t.Optional[int] = Field(default=None, gt=0)
    completed: int = Field(default=0, ge=0, le=1)

    check_date = field_validator("date")(_calendar_date)


class UpdateTaskRequest(WireModel):
    """Request model for a partial task update; unset fields are left alone."""
    note_id: t.Optional[str] = None
    title: t.Optional[str] = Field(default=None, min_length=1)
    description: t.Optional[str] = None
    priority: t.Optional[Priority] = None
    date: t.Optional[str] = Field(default=None, pattern=DATE_PATTERN)
    start_time: t.Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    duration: t.Optional[int] = Field(default=None, gt=0)
    completed: t.Optional[int] = Field(default=None, ge=0, le=1)

    check_date = field_validator("date")(_calendar_date)


class DeleteResponse(BaseModel):
    """Response model for delete endpoints."""
    success: bool = True


class ShowDayResponse(BaseModel):
    """Response model for a formatted day agenda."""
    formatted_day: str


# Drag payloads carried in a drag-and-drop data transfer
class NoteDragPayload(WireModel):
    """A note being dragged out of the drawer."""
    kind: t.Literal["note"] = "note"
    note: Note


class TaskDragPayload(WireModel):
    """An already scheduled task being moved between slots."""
    kind: t.Literal["task"] = "task"
    task: Task


DragPayloadModel = t.Annotated[
    t.Union[NoteDragPayload, TaskDragPayload],
    Field(discriminator="kind"),
]

drag_payload_adapter: TypeAdapter[t.Union[NoteDragPayload, TaskDragPayload]] = TypeAdapter(DragPayloadModel)
