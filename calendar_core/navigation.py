"""
Month → Day → Hour drill-down navigation.

The navigator is always in exactly one of three modes:

- ``month``: only ``visible_month`` matters;
- ``day``: ``selected_date`` is set;
- ``hour``: ``selected_date`` and ``selected_hour`` are set.

``visible_month`` is kept while drilling down, so closing the Day view returns
to the month the user was looking at.
"""
from __future__ import annotations

import typing as t
from dataclasses import dataclass
from datetime import date, timedelta

from timeblock_server.errors import TimeBlockError

from .date_utils import add_months, format_date, format_hour_range, format_month_name

ViewMode = t.Literal["month", "day", "hour"]


class NavigationError(TimeBlockError):
    """A transition was requested from a mode that does not allow it."""


@dataclass(frozen=True)
class ViewSelection:
    view_mode: ViewMode
    visible_month: date
    selected_date: t.Optional[date] = None
    selected_hour: t.Optional[int] = None


class ViewNavigator:
    def __init__(self, today: date) -> None:
        self.view_mode: ViewMode = "month"
        self.visible_month = date(today.year, today.month, 1)
        self.selected_date: t.Optional[date] = None
        self.selected_hour: t.Optional[int] = None

    @property
    def selection(self) -> ViewSelection:
        return ViewSelection(
            view_mode=self.view_mode,
            visible_month=self.visible_month,
            selected_date=self.selected_date,
            selected_hour=self.selected_hour,
        )

    # ---- month ----
    def next_month(self) -> date:
        self.visible_month = add_months(self.visible_month, 1)
        return self.visible_month

    def previous_month(self) -> date:
        self.visible_month = add_months(self.visible_month, -1)
        return self.visible_month

    def show_month(self, month: date) -> None:
        """Jump the month grid to ``month`` without changing mode."""
        self.visible_month = date(month.year, month.month, 1)

    # ---- drill down ----
    def open_day(self, day: date) -> None:
        """Month → Day on a date-cell click."""
        self._require("month", "open a day")
        self.selected_date = day
        self.view_mode = "day"

    def open_hour(self, hour: int) -> None:
        """Day → Hour on an hour-row click."""
        self._require("day", "open an hour")
        _check_hour(hour)
        self.selected_hour = hour
        self.view_mode = "hour"

    # ---- close ----
    def close_hour(self) -> None:
        """Hour → Day, keeping the selected date."""
        self._require("hour", "close the hour view")
        self.selected_hour = None
        self.view_mode = "day"

    def close_day(self) -> None:
        """Day → Month, keeping the visible month."""
        self._require("day", "close the day view")
        self.selected_date = None
        self.view_mode = "month"

    def close(self) -> None:
        """Go up one level; does nothing in Month view."""
        if self.view_mode == "hour":
            self.close_hour()
        elif self.view_mode == "day":
            self.close_day()

    # ---- stepping inside a view ----
    def next_day(self) -> date:
        self._require("day", "change the day")
        self.selected_date = self.selected_date + timedelta(days=1)
        return self.selected_date

    def previous_day(self) -> date:
        self._require("day", "change the day")
        self.selected_date = self.selected_date - timedelta(days=1)
        return self.selected_date

    def next_hour(self) -> int:
        """Advance the Hour view, stopping at 23."""
        self._require("hour", "change the hour")
        self.selected_hour = min(23, self.selected_hour + 1)
        return self.selected_hour

    def previous_hour(self) -> int:
        """Step the Hour view back, stopping at 0."""
        self._require("hour", "change the hour")
        self.selected_hour = max(0, self.selected_hour - 1)
        return self.selected_hour

    # ---- header ----
    def title(self) -> str:
        if self.view_mode == "month":
            return format_month_name(self.visible_month)
        if self.view_mode == "day":
            return format_date(self.selected_date)
        return f"{format_date(self.selected_date)} • {format_hour_range(self.selected_hour)}"

    def subtitle(self) -> str:
        if self.view_mode == "month":
            return str(self.visible_month.year)
        return "Day" if self.view_mode == "day" else "Hour"

    def _require(self, mode: ViewMode, action: str) -> None:
        if self.view_mode != mode:
            raise NavigationError(f"Cannot {action} from {self.view_mode} view")


def _check_hour(hour: int) -> None:
    if not 0 <= hour <= 23:
        raise NavigationError(f"Hour must be between 0 and 23, got {hour}")
