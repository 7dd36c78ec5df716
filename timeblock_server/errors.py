"""
Error taxonomy shared by the entity store, the REST service and the client core.
"""
from __future__ import annotations

import typing as t


class TimeBlockError(Exception):
    """Base class for all TimeBlock errors."""


class ValidationError(TimeBlockError):
    """A required field is missing or a field has an invalid value."""

    def __init__(self, message: str, errors: t.Optional[list[dict[str, t.Any]]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class NotFoundError(TimeBlockError):
    """An update or delete targeted an id that does not exist."""

    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind.capitalize()} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class TransportError(TimeBlockError):
    """The backing store could not be reached."""
