"""
MCP wrapper for the TimeBlock service.

This module exposes note capture and scheduling as MCP tools. Every tool
makes HTTP calls to the TimeBlock REST service through RemoteStorage and
reuses the same Planner the interactive client uses, so a note scheduled by
an agent ends up exactly where a drag-and-drop would have put it.
"""
from __future__ import annotations

import os
import typing as t
from dataclasses import asdict

from fastmcp import FastMCP

from calendar_core.date_utils import end_time, format_date, parse_date_key
from calendar_core.drag_drop import DropZone, day_zone, hour_zone, quarter_zone
from calendar_core.notices import NoticeBoard
from calendar_core.planner import Planner
from calendar_core.query_cache import QueryCache
from calendar_core.storage_port import RemoteStorage, StoragePort
from timeblock_server.errors import NotFoundError, TimeBlockError
from timeblock_server.models import Note, Task


mcp = FastMCP("TimeBlockMCPWrapper")

# Service URL - configurable via environment variable
TIMEBLOCK_SERVICE_URL = os.getenv("TIMEBLOCK_SERVICE_URL", "http://localhost:8004")

# Timeout settings for fast operations (in seconds)
STANDARD_TIMEOUT = 30.0


def _get_storage() -> StoragePort:
    return RemoteStorage(TIMEBLOCK_SERVICE_URL, timeout=STANDARD_TIMEOUT)


def _planner() -> Planner:
    return Planner(_get_storage(), QueryCache(), NoticeBoard())


def _zone_for(date: str, hour: t.Optional[int], quarter: t.Optional[int]) -> DropZone:
    parse_date_key(date)
    if quarter is not None:
        if hour is None:
            raise ValueError("A quarter needs an hour")
        return quarter_zone(date, hour, quarter)
    if hour is not None:
        return hour_zone(date, hour)
    return day_zone(date)


def _list_notes() -> list[dict[str, t.Any]]:
    """
    List the drawer's notes, most recent first.
    """
    try:
        return [_note_dict(note) for note in _get_storage().list_notes()]
    except TimeBlockError as e:
        raise RuntimeError(f"Error calling timeblock service: {e}")


def _capture_note(title: str, description: str = "", priority: str = "medium") -> dict[str, t.Any]:
    """
    Capture a new note in the drawer.
    """
    try:
        return _note_dict(_planner().create_note(title, description, priority))
    except TimeBlockError as e:
        raise RuntimeError(f"Could not capture note: {e}")


def _list_tasks(date: str = "") -> list[dict[str, t.Any]]:
    """
    List tasks, optionally only those on ``date`` (YYYY-MM-DD).
    """
    try:
        return [_task_dict(task) for task in _get_storage().list_tasks(date or None)]
    except TimeBlockError as e:
        raise RuntimeError(f"Error calling timeblock service: {e}")


def _schedule_note(
    note_id: str,
    date: str,
    hour: t.Optional[int] = None,
    quarter: t.Optional[int] = None,
) -> dict[str, t.Any]:
    """
    Turn a note into a task, the same way dropping it on the calendar does.

    Without an hour the task is unscheduled on that date; with an hour it is
    a 60 minute block; with an hour and a quarter (0-3) it is a 15 minute block.
    """
    try:
        planner = _planner()
        note = planner.find_note(note_id)
        if note is None:
            raise NotFoundError("note", note_id)
        return _task_dict(planner.schedule_note(note, _zone_for(date, hour, quarter)))
    except (TimeBlockError, ValueError) as e:
        raise RuntimeError(f"Could not schedule note: {e}")


def _reschedule_task(
    task_id: str,
    date: str,
    hour: t.Optional[int] = None,
    quarter: t.Optional[int] = None,
) -> dict[str, t.Any]:
    """
    Move an existing task to another date, hour or quarter.
    """
    try:
        planner = _planner()
        task = planner.find_task(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return _task_dict(planner.reschedule_task(task, _zone_for(date, hour, quarter)))
    except (TimeBlockError, ValueError) as e:
        raise RuntimeError(f"Could not reschedule task: {e}")


def _show_day(date: str) -> str:
    """
    Format one day's agenda as a plain text table.
    """
    try:
        day = parse_date_key(date)
        tasks = _get_storage().list_tasks(date)
    except (TimeBlockError, ValueError) as e:
        raise RuntimeError(f"Could not load day: {e}")
    return format_day(day, tasks)


def format_day(day, tasks: list[Task]) -> str:
    """Plain text agenda: scheduled blocks first, then the unscheduled tray."""
    lines = [f"📅 {format_date(day)}", "=" * 72]
    if not tasks:
        lines.append("No tasks scheduled.")
        return "\n".join(lines)

    lines.append(f"{'Time':<14} {'Title':<40} {'Priority':<8} {'Done':<4}")
    lines.append("-" * 72)
    for task in tasks:
        if task.start_time:
            slot = f"{task.start_time}-{end_time(task.start_time, task.duration)}"
        else:
            slot = "unscheduled"
        title = task.title[:39] if len(task.title) > 39 else task.title
        lines.append(f"{slot:<14} {title:<40} {task.priority:<8} {'✓' if task.completed else '':<4}")
    lines.append("=" * 72)
    lines.append(f"Total: {len(tasks)} task(s)")
    return "\n".join(lines)


def _note_dict(note: Note) -> dict[str, t.Any]:
    data = asdict(note)
    data["created_at"] = note.created_at.isoformat()
    return data


def _task_dict(task: Task) -> dict[str, t.Any]:
    data = asdict(task)
    data["created_at"] = task.created_at.isoformat()
    return data


# MCP tool wrappers that call the raw functions
@mcp.tool()
def list_notes() -> list[dict[str, t.Any]]:
    """Lists the notes waiting in the drawer."""
    return _list_notes()


@mcp.tool()
def capture_note(title: str, description: str = "", priority: str = "medium") -> dict[str, t.Any]:
    """Captures a new unscheduled note."""
    return _capture_note(title, description, priority)


@mcp.tool()
def list_tasks(date: str = "") -> list[dict[str, t.Any]]:
    """Lists scheduled tasks, optionally for one date (YYYY-MM-DD)."""
    return _list_tasks(date)


@mcp.tool()
def schedule_note(
    note_id: str,
    date: str,
    hour: t.Optional[int] = None,
    quarter: t.Optional[int] = None,
) -> dict[str, t.Any]:
    """Schedules a note onto a date, optionally at an hour and quarter."""
    return _schedule_note(note_id, date, hour, quarter)


@mcp.tool()
def reschedule_task(
    task_id: str,
    date: str,
    hour: t.Optional[int] = None,
    quarter: t.Optional[int] = None,
) -> dict[str, t.Any]:
    """Moves a task to another date, hour or quarter."""
    return _reschedule_task(task_id, date, hour, quarter)


@mcp.tool()
def show_day(date: str) -> str:
    """Displays one day's agenda in a formatted view."""
    return _show_day(date)


if __name__ == "__main__":
    mcp.run()
