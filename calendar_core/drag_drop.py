"""
Drag-and-drop session for scheduling.

Two kinds of payload can be dragged: a Note out of the drawer (dropping it
converts it into a Task) and an already scheduled Task (dropping it
reschedules it). The payload is a tagged union; the drop handler dispatches
on ``payload.kind``.

The session only tracks the in-flight drag, drop-zone highlighting and
payload extraction. What a drop *means* is decided by the callback passed to
:meth:`DragSession.drop`.
"""
from __future__ import annotations

import logging
import typing as t
from dataclasses import asdict, dataclass

from pydantic import ValidationError as PydanticValidationError

from services.shared.models import (
    Note as PydanticNote,
    Task as PydanticTask,
    NoteDragPayload,
    TaskDragPayload,
    drag_payload_adapter,
)
from timeblock_server.errors import TimeBlockError
from timeblock_server.models import Note, Task

from .notices import NoticeBoard, error_message

logger = logging.getLogger(__name__)

# Mime type the payload is stored under in a data transfer
DRAG_MIME = "application/x-timeblock+json"

DataTransfer = t.MutableMapping[str, str]
R = t.TypeVar("R")


class DropPayloadError(TimeBlockError):
    """The drop event carried no payload, or one that could not be decoded."""


@dataclass(frozen=True)
class NoteDrag:
    note: Note
    kind: t.Literal["note"] = "note"


@dataclass(frozen=True)
class TaskDrag:
    task: Task
    kind: t.Literal["task"] = "task"


DragPayload = t.Union[NoteDrag, TaskDrag]


@dataclass(frozen=True)
class DropZone:
    """A calendar surface that accepts drops: a day, an hour row or a quarter."""
    zone_id: str
    date: str                       # "YYYY-MM-DD"
    hour: t.Optional[int] = None
    quarter: t.Optional[int] = None

    @property
    def kind(self) -> str:
        if self.quarter is not None:
            return "quarter"
        if self.hour is not None:
            return "hour"
        return "day"


def day_zone(date: str) -> DropZone:
    return DropZone(zone_id=f"day:{date}", date=date)


def hour_zone(date: str, hour: int) -> DropZone:
    return DropZone(zone_id=f"hour:{date}T{hour:02d}", date=date, hour=hour)


def quarter_zone(date: str, hour: int, quarter: int) -> DropZone:
    return DropZone(zone_id=f"quarter:{date}T{hour:02d}:{quarter}", date=date, hour=hour, quarter=quarter)


def encode_payload(payload: DragPayload) -> str:
    """Serialize a drag payload for a data transfer."""
    if isinstance(payload, NoteDrag):
        model: t.Union[NoteDragPayload, TaskDragPayload] = NoteDragPayload(note=PydanticNote(**asdict(payload.note)))
    else:
        model = TaskDragPayload(task=PydanticTask(**asdict(payload.task)))
    return model.model_dump_json(by_alias=True)


def decode_payload(raw: t.Optional[str]) -> DragPayload:
    """Parse a drag payload from a data transfer.

    Raises:
        DropPayloadError: If ``raw`` is missing or malformed.
    """
    if not raw:
        raise DropPayloadError("Drop event carried no payload")
    try:
        model = drag_payload_adapter.validate_json(raw)
    except PydanticValidationError as e:
        raise DropPayloadError(f"Malformed drag payload: {e.error_count()} error(s)") from e
    if isinstance(model, NoteDragPayload):
        return NoteDrag(note=Note(**model.note.model_dump()))
    return TaskDrag(task=Task(**model.task.model_dump()))


class DragSession:
    """State machine: ``idle`` or ``dragging(payload)``."""

    def __init__(self, notices: NoticeBoard) -> None:
        self.notices = notices
        self.payload: t.Optional[DragPayload] = None
        self.highlighted: set[str] = set()
        self._zones: dict[str, DropZone] = {}

    @property
    def state(self) -> str:
        return "idle" if self.payload is None else "dragging"

    @property
    def is_dragging(self) -> bool:
        return self.payload is not None

    @property
    def zones(self) -> dict[str, DropZone]:
        return dict(self._zones)

    @property
    def eligible_zones(self) -> frozenset[str]:
        """Every registered drop zone while a drag is in flight."""
        if self.payload is None:
            return frozenset()
        return frozenset(self._zones)

    def set_zones(self, zones: t.Iterable[DropZone]) -> None:
        """Replace the registered drop zones, e.g. after a view change."""
        self._zones = {zone.zone_id: zone for zone in zones}
        self.highlighted &= set(self._zones)

    def start_note_drag(self, note: Note, transfer: DataTransfer) -> bool:
        """Begin dragging a note; completed notes are locked and refused."""
        if note.completed:
            logger.debug("Refused drag of completed note %s", note.id)
            return False
        return self._start(NoteDrag(note=note), transfer)

    def start_task_drag(self, task: Task, transfer: DataTransfer) -> bool:
        """Begin dragging an already scheduled task."""
        return self._start(TaskDrag(task=task), transfer)

    def enter(self, zone_id: str) -> None:
        if self.payload is not None and zone_id in self._zones:
            self.highlighted.add(zone_id)

    def leave(self, zone_id: str) -> None:
        self.highlighted.discard(zone_id)

    def end(self) -> None:
        """Drag ended or was cancelled: back to idle, highlights cleared."""
        self.payload = None
        self.highlighted.clear()

    def drop(
        self,
        zone_id: str,
        transfer: t.Mapping[str, str],
        on_drop: t.Callable[[DragPayload, DropZone], R],
    ) -> t.Optional[R]:
        """Extract the payload, hand it to ``on_drop`` and reset the session.

        Failures never propagate: they become a destructive notice and the
        method returns None. The session is idle afterwards in every case.
        """
        try:
            zone = self._zones.get(zone_id)
            if zone is None:
                raise DropPayloadError(f"Unknown drop zone: {zone_id}")
            payload = decode_payload(transfer.get(DRAG_MIME))
            return on_drop(payload, zone)
        except DropPayloadError as e:
            logger.warning("Rejected drop on %s: %s", zone_id, e)
            self.notices.error("Error", "Failed to schedule task.")
            return None
        except TimeBlockError as e:
            logger.warning("Drop on %s failed: %s", zone_id, e)
            self.notices.error("Error", error_message(e, "Failed to schedule task."))
            return None
        finally:
            self.end()

    def _start(self, payload: DragPayload, transfer: DataTransfer) -> bool:
        transfer[DRAG_MIME] = encode_payload(payload)
        self.payload = payload
        self.highlighted.clear()
        return True
