"""Transient, non-blocking user notices (toasts)."""
from __future__ import annotations

from dataclasses import dataclass
import typing as t

from timeblock_server.errors import NotFoundError, ValidationError


Variant = t.Literal["default", "destructive"]


@dataclass(frozen=True)
class Notice:
    title: str
    description: str = ""
    variant: Variant = "default"


class NoticeBoard:
    """Collects notices until the front-end drains them."""

    def __init__(self) -> None:
        self._pending: list[Notice] = []

    def push(self, title: str, description: str = "", variant: Variant = "default") -> Notice:
        notice = Notice(title=title, description=description, variant=variant)
        self._pending.append(notice)
        return notice

    def error(self, title: str, description: str) -> Notice:
        return self.push(title, description, variant="destructive")

    def drain(self) -> list[Notice]:
        """Return and forget all pending notices."""
        pending, self._pending = self._pending, []
        return pending

    @property
    def pending(self) -> tuple[Notice, ...]:
        return tuple(self._pending)


def error_message(error: Exception, default: str = "Something went wrong. Please try again.") -> str:
    """User-facing text for a core error."""
    if isinstance(error, NotFoundError):
        return f"That {error.kind} no longer exists."
    if isinstance(error, ValidationError):
        return error.message
    return default
