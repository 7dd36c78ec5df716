"""Shared fixtures: deterministic clocks and ids, and in-memory wiring."""
import itertools
import typing as t
from datetime import date, datetime, timedelta, timezone

import pytest

from calendar_core.app_state import TimeBlockApp
from calendar_core.notices import NoticeBoard
from calendar_core.planner import Planner
from calendar_core.query_cache import QueryCache
from calendar_core.storage_port import StoreAdapter
from calendar_core.walkthrough import MemoryFlagStore
from timeblock_server.store import MemStore

USER_ID = "demo-user-id"
TODAY = date(2026, 10, 19)  # a Monday


class Ticker:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def sequential_ids(prefix: str = "id") -> t.Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture
def mem_store() -> MemStore:
    return MemStore(clock=Ticker(), id_factory=sequential_ids())


@pytest.fixture
def storage(mem_store: MemStore) -> StoreAdapter:
    return StoreAdapter(mem_store, USER_ID)


@pytest.fixture
def notices() -> NoticeBoard:
    return NoticeBoard()


@pytest.fixture
def planner(storage: StoreAdapter, notices: NoticeBoard) -> Planner:
    return Planner(storage, QueryCache(), notices)


@pytest.fixture
def flags() -> MemoryFlagStore:
    return MemoryFlagStore()


@pytest.fixture
def app(storage: StoreAdapter, flags: MemoryFlagStore) -> TimeBlockApp:
    return TimeBlockApp(storage, flags, today=lambda: TODAY)
