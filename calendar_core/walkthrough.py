"""
One-time onboarding walkthrough.

The walkthrough launches by itself only when the client has never completed
it. Completion is recorded in a small durable flag store; the help action can
always start it again.
"""
from __future__ import annotations

import json
import logging
import os
import typing as t
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

WALKTHROUGH_DONE_FLAG = "timeblock_walkthrough_done"


@dataclass(frozen=True)
class WalkthroughStep:
    id: int
    title: str
    content: str


STEPS: tuple[WalkthroughStep, ...] = (
    WalkthroughStep(1, "Welcome to TimeBlock", "This is your Month view. Click any date to zoom into the Day."),
    WalkthroughStep(2, "Your Notes Drawer", "Your Notes Drawer is always here. Write first, organize later."),
    WalkthroughStep(3, "Drag & Drop", "Drag a note onto a date to schedule it for that day."),
    WalkthroughStep(4, "Day View", "Click a date to see your Day timeline. Drop tasks into hours to set times."),
    WalkthroughStep(5, "Hour View", "Click an hour to fine-tune in 15-minute blocks. Precise and fast."),
)


class FlagStore(ABC):
    """Durable string key-value flags."""

    @abstractmethod
    def get(self, key: str) -> t.Optional[str]: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...


class MemoryFlagStore(FlagStore):
    def __init__(self, initial: t.Optional[dict[str, str]] = None) -> None:
        self._flags = dict(initial or {})

    def get(self, key: str) -> t.Optional[str]:
        return self._flags.get(key)

    def set(self, key: str, value: str) -> None:
        self._flags[key] = value


class JsonFlagStore(FlagStore):
    """Flags kept in a JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def get(self, key: str) -> t.Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        flags = self._read()
        flags[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(flags, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable flag file %s: %s", self.path, e)
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}


class Walkthrough:
    def __init__(self, flags: FlagStore, steps: t.Sequence[WalkthroughStep] = STEPS) -> None:
        self.flags = flags
        self.steps = tuple(steps)
        self.active = False
        self.index = 0
        self._auto_checked = False

    @property
    def completed(self) -> bool:
        return self.flags.get(WALKTHROUGH_DONE_FLAG) is not None

    @property
    def current(self) -> t.Optional[WalkthroughStep]:
        return self.steps[self.index] if self.active else None

    @property
    def is_last_step(self) -> bool:
        return self.index == len(self.steps) - 1

    def auto_launch(self) -> bool:
        """Start on first open of a fresh client. Evaluated once per session."""
        if self._auto_checked:
            return False
        self._auto_checked = True
        if self.completed:
            return False
        self.start()
        return True

    def start(self) -> None:
        """Manual re-trigger from the help action; ignores the flag."""
        self.active = True
        self.index = 0

    def next(self) -> t.Optional[WalkthroughStep]:
        """Advance one step; on the last step this finishes the walkthrough."""
        if not self.active:
            return None
        if self.is_last_step:
            self.finish()
            return None
        self.index += 1
        return self.current

    def back(self) -> t.Optional[WalkthroughStep]:
        if self.active and self.index > 0:
            self.index -= 1
        return self.current

    def skip(self) -> None:
        self._complete()

    def finish(self) -> None:
        if self.active and not self.is_last_step:
            raise ValueError("Finish is only available on the last step")
        self._complete()

    def _complete(self) -> None:
        self.flags.set(WALKTHROUGH_DONE_FLAG, "true")
        self.active = False
        self.index = 0
