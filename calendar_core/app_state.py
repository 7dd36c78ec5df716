"""
Application shell tying the client core together.

``TimeBlockApp`` owns one instance of every component and translates
front-end events (clicks, drag start/enter/leave/drop) into calls on them.
The drop zones registered with the drag session always match the current
view: 42 day cells in Month view, 24 hour rows in Day view and four quarter
segments in Hour view.
"""
from __future__ import annotations

import logging
import typing as t
from datetime import date

from timeblock_server.models import Note, Task

from .config import Settings
from .date_utils import QUARTERS_PER_HOUR, date_key, days_in_month_grid, hours_of_day, is_same_month
from .drag_drop import DataTransfer, DragSession, DropZone, day_zone, hour_zone, quarter_zone
from .drawer import Drawer
from .navigation import ViewNavigator
from .notices import Notice, NoticeBoard
from .planner import Planner
from .query_cache import QueryCache
from .storage_port import StoragePort, select_storage
from .walkthrough import FlagStore, JsonFlagStore, Walkthrough

logger = logging.getLogger(__name__)


class TimeBlockApp:
    def __init__(
        self,
        storage: StoragePort,
        flags: FlagStore,
        today: t.Callable[[], date] = date.today,
    ) -> None:
        self.today = today
        self.storage = storage
        self.cache = QueryCache()
        self.notices = NoticeBoard()
        self.planner = Planner(storage, self.cache, self.notices)
        self.navigator = ViewNavigator(today())
        self.drag = DragSession(self.notices)
        self.drawer = Drawer(self.planner, self.notices)
        self.walkthrough = Walkthrough(flags)
        self.transfer: DataTransfer = {}
        self._sync_zones()

    def start(self) -> None:
        """First open of the app: maybe launch the walkthrough."""
        self.walkthrough.auto_launch()

    # ---- navigation ----
    def click_date(self, day: date) -> None:
        self.navigator.open_day(day)
        self._sync_zones()

    def click_hour(self, hour: int) -> None:
        self.navigator.open_hour(hour)
        self._sync_zones()

    def close_view(self) -> None:
        self.navigator.close()
        self._sync_zones()

    def next_month(self) -> None:
        self.navigator.next_month()
        self._sync_zones()

    def previous_month(self) -> None:
        self.navigator.previous_month()
        self._sync_zones()

    def show_month(self, month: date) -> None:
        self.navigator.show_month(month)
        self._sync_zones()

    def step(self, forward: bool = True) -> None:
        """Next/previous day in Day view, hour in Hour view, month otherwise."""
        nav = self.navigator
        if nav.view_mode == "day":
            step = nav.next_day if forward else nav.previous_day
        elif nav.view_mode == "hour":
            step = nav.next_hour if forward else nav.previous_hour
        else:
            step = nav.next_month if forward else nav.previous_month
        step()
        self._sync_zones()

    # ---- drag and drop ----
    def drag_note(self, note_id: str) -> bool:
        note = self.planner.find_note(note_id)
        if note is None:
            self.notices.error("Error", "That note no longer exists.")
            return False
        self.transfer = {}
        return self.drag.start_note_drag(note, self.transfer)

    def drag_task(self, task_id: str) -> bool:
        """Start moving a scheduled task; only Day and Hour views allow it."""
        if self.navigator.view_mode == "month":
            return False
        task = self.planner.find_task(task_id)
        if task is None:
            self.notices.error("Error", "That task no longer exists.")
            return False
        self.transfer = {}
        return self.drag.start_task_drag(task, self.transfer)

    def enter_zone(self, zone_id: str) -> None:
        self.drag.enter(zone_id)

    def leave_zone(self, zone_id: str) -> None:
        self.drag.leave(zone_id)

    def cancel_drag(self) -> None:
        self.drag.end()
        self.transfer = {}

    def drop_on(self, zone_id: str) -> t.Optional[Task]:
        transfer, self.transfer = self.transfer, {}
        return self.drag.drop(zone_id, transfer, self.planner.handle_drop)

    # ---- view data ----
    def month_cells(self) -> list[tuple[date, bool, list[Task]]]:
        """(day, in visible month, tasks) for each of the 42 grid cells."""
        grid = days_in_month_grid(self.navigator.visible_month)
        by_day = self.planner.tasks_by_day(grid)
        month = self.navigator.visible_month
        return [(day, is_same_month(day, month), by_day[date_key(day)]) for day in grid]

    def drawer_notes(self) -> list[Note]:
        return self.drawer.notes

    def drain_notices(self) -> list[Notice]:
        return self.notices.drain()

    def _sync_zones(self) -> None:
        self.drag.set_zones(self._zones_for_view())

    def _zones_for_view(self) -> list[DropZone]:
        nav = self.navigator
        if nav.view_mode == "month":
            return [day_zone(date_key(day)) for day in days_in_month_grid(nav.visible_month)]
        key = date_key(nav.selected_date)
        if nav.view_mode == "day":
            return [hour_zone(key, hour) for hour in hours_of_day()]
        return [quarter_zone(key, nav.selected_hour, q) for q in range(QUARTERS_PER_HOUR)]


def create_app(settings: Settings, today: t.Callable[[], date] = date.today) -> TimeBlockApp:
    """Build the app with the storage backing chosen by ``settings``."""
    storage = select_storage(settings)
    logger.info("Using %s storage", settings.storage_mode)
    return TimeBlockApp(storage, JsonFlagStore(settings.flags_path), today=today)

