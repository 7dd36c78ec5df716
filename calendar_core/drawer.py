"""
Notes drawer: a resizable panel at the bottom of the screen with a note
composer.

The drawer height is a fraction of the viewport height. Dragging the handle
resizes it within [MIN_HEIGHT, MAX_HEIGHT]; creating a note while the drawer
is small grows it once by AUTO_GROW_STEP.
"""
from __future__ import annotations

import logging
import typing as t
from dataclasses import dataclass

from timeblock_server.errors import TimeBlockError, ValidationError
from timeblock_server.models import Note

from .notices import NoticeBoard, error_message
from .planner import Planner

logger = logging.getLogger(__name__)

INITIAL_HEIGHT = 0.25
MIN_HEIGHT = 0.10
MAX_HEIGHT = 0.60
AUTO_GROW_BELOW = 0.40
AUTO_GROW_STEP = 0.15
AUTO_GROW_CAP = 0.50


@dataclass
class NoteDraft:
    title: str = ""
    description: str = ""
    priority: str = "medium"


class Drawer:
    def __init__(self, planner: Planner, notices: NoticeBoard) -> None:
        self.planner = planner
        self.notices = notices
        self.height = INITIAL_HEIGHT
        self.composer_open = False
        self.draft = NoteDraft()
        self._resize_start_y: t.Optional[float] = None
        self._resize_start_height = INITIAL_HEIGHT

    @property
    def state(self) -> str:
        """Discrete reading of the height: collapsed, partial or full."""
        if self.height <= MIN_HEIGHT:
            return "collapsed"
        if self.height >= MAX_HEIGHT:
            return "full"
        return "partial"

    @property
    def notes(self) -> list[Note]:
        return self.planner.notes()

    @property
    def note_count(self) -> int:
        return len(self.notes)

    # ---- resize by dragging the handle ----
    @property
    def is_resizing(self) -> bool:
        return self._resize_start_y is not None

    def begin_resize(self, y: float) -> None:
        self._resize_start_y = y
        self._resize_start_height = self.height

    def resize_to(self, y: float, viewport_height: float) -> float:
        """Follow the pointer; moving up (smaller y) makes the drawer taller."""
        if self._resize_start_y is None or viewport_height <= 0:
            return self.height
        delta = (self._resize_start_y - y) / viewport_height
        self.height = min(max(self._resize_start_height + delta, MIN_HEIGHT), MAX_HEIGHT)
        return self.height

    def end_resize(self) -> None:
        self._resize_start_y = None

    # ---- composer ----
    def open_composer(self) -> None:
        self.composer_open = True

    def cancel_composer(self) -> None:
        self.composer_open = False
        self.draft = NoteDraft()

    def submit(self) -> t.Optional[Note]:
        """Create a note from the draft.

        A blank title is rejected here and never reaches storage. Returns the
        new Note, or None when nothing was created.
        """
        try:
            note = self.planner.create_note(self.draft.title, self.draft.description, self.draft.priority)
        except ValidationError as e:
            self.notices.error("Empty note", e.message)
            return None
        except TimeBlockError as e:
            logger.warning("Note creation failed: %s", e)
            self.notices.error("Error", error_message(e, "Failed to create note. Please try again."))
            return None

        self.draft = NoteDraft()
        self.composer_open = False
        self._nudge_height()
        self.notices.push("Note created", "Drag this note into the calendar when ready.")
        return note

    # ---- note actions ----
    def toggle_complete(self, note: Note) -> t.Optional[Note]:
        try:
            return self.planner.toggle_note_complete(note)
        except TimeBlockError as e:
            self._report(e)
            return None

    def delete(self, note: Note) -> bool:
        try:
            self.planner.delete_note(note.id)
        except TimeBlockError as e:
            self._report(e)
            return False
        return True

    def _nudge_height(self) -> None:
        # One-shot growth, only while the drawer is small
        if self.height < AUTO_GROW_BELOW:
            self.height = min(self.height + AUTO_GROW_STEP, AUTO_GROW_CAP)

    def _report(self, error: TimeBlockError) -> None:
        logger.warning("Drawer action failed: %s", error)
        self.notices.error("Error", error_message(error))
