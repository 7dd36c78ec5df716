"""
Cache of query results keyed by tuples such as ``("notes",)`` or
``("tasks", "2026-10-19")``.

Mutations never patch cached lists; they invalidate a key prefix and the next
read re-queries the storage port.
"""
from __future__ import annotations

import logging
import typing as t

logger = logging.getLogger(__name__)

QueryKey = t.Tuple[t.Any, ...]
T = t.TypeVar("T")


class QueryCache:
    def __init__(self) -> None:
        self._entries: dict[QueryKey, t.Any] = {}

    def get(self, key: QueryKey, fetch: t.Callable[[], T]) -> T:
        """Return the cached value for ``key``, fetching it on a miss."""
        if key not in self._entries:
            self._entries[key] = fetch()
        return self._entries[key]

    def invalidate(self, prefix: QueryKey) -> None:
        """Drop every entry whose key starts with ``prefix``."""
        stale = [key for key in self._entries if key[:len(prefix)] == prefix]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Invalidated %d cached queries for %s", len(stale), prefix)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries
