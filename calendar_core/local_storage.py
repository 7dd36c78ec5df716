"""
Durable local storage, used when the TimeBlock service cannot be reached.

Notes and tasks are kept in a single JSON file using the same camelCase
records the REST service returns, so both backings are interchangeable.
"""
from __future__ import annotations

import json
import logging
import os
import typing as t
from dataclasses import asdict
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from services.shared.models import Note as PydanticNote, Task as PydanticTask
from timeblock_server.errors import TransportError
from timeblock_server.models import Note, Task
from timeblock_server.store import MemStore

from .storage_port import StoreAdapter

logger = logging.getLogger(__name__)

NOTES_KEY = "timeBlocker_notes"
TASKS_KEY = "timeBlocker_tasks"


class DurableStore(MemStore):
    """MemStore that rewrites a JSON file after every mutation."""

    def __init__(self, path: Path, **kwargs: t.Any) -> None:
        super().__init__(**kwargs)
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            notes = [PydanticNote.model_validate(item) for item in raw.get(NOTES_KEY, [])]
            tasks = [PydanticTask.model_validate(item) for item in raw.get(TASKS_KEY, [])]
        except OSError as e:
            raise TransportError(f"Cannot read local store {self.path}: {e}") from e
        except (ValueError, AttributeError, PydanticValidationError) as e:
            raise TransportError(f"Local store {self.path} is corrupt: {e}") from e

        # File order is creation order
        for item in notes:
            note = Note(**item.model_dump())
            self.notes[note.id] = note
            self._remember(note.id)
        for item in tasks:
            task = Task(**item.model_dump())
            self.tasks[task.id] = task
            self._remember(task.id)
        logger.debug("Loaded %d notes and %d tasks from %s", len(self.notes), len(self.tasks), self.path)

    def _persist(self) -> None:
        payload = {
            NOTES_KEY: [_dump(PydanticNote(**asdict(note))) for note in self.notes.values()],
            TASKS_KEY: [_dump(PydanticTask(**asdict(task))) for task in self.tasks.values()],
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise TransportError(f"Cannot write local store {self.path}: {e}") from e


class LocalStorage(StoreAdapter):
    """Storage port over a DurableStore for one user."""

    def __init__(self, path: Path, user_id: str, **store_kwargs: t.Any) -> None:
        super().__init__(DurableStore(path, **store_kwargs), user_id)


def _dump(model: t.Union[PydanticNote, PydanticTask]) -> dict[str, t.Any]:
    return model.model_dump(mode="json", by_alias=True)
