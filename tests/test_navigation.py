"""Tests for Month -> Day -> Hour navigation."""
from datetime import date

import pytest

from calendar_core.navigation import NavigationError, ViewNavigator

TODAY = date(2026, 10, 19)


@pytest.fixture
def nav() -> ViewNavigator:
    return ViewNavigator(TODAY)


def test_starts_in_month_view_of_today(nav: ViewNavigator) -> None:
    assert nav.view_mode == "month"
    assert nav.visible_month == date(2026, 10, 1)
    assert nav.selected_date is None
    assert nav.selected_hour is None
    assert nav.title() == "October"
    assert nav.subtitle() == "2026"


def test_drill_down_and_back_keeps_visible_month(nav: ViewNavigator) -> None:
    nav.next_month()
    nav.open_day(date(2026, 11, 3))
    assert nav.view_mode == "day"
    assert nav.title() == "Tue, Nov 3, 2026"
    assert nav.subtitle() == "Day"

    nav.open_hour(14)
    assert nav.view_mode == "hour"
    assert nav.title() == "Tue, Nov 3, 2026 • 14:00–14:59"
    assert nav.subtitle() == "Hour"

    nav.close()
    assert nav.view_mode == "day"
    assert nav.selected_hour is None
    assert nav.selected_date == date(2026, 11, 3)

    nav.close()
    assert nav.view_mode == "month"
    assert nav.selected_date is None
    assert nav.visible_month == date(2026, 11, 1)


def test_close_in_month_is_noop(nav: ViewNavigator) -> None:
    nav.close()
    assert nav.selection.view_mode == "month"


@pytest.mark.parametrize("action", ["open_hour", "next_day", "previous_day", "next_hour", "close_day", "close_hour"])
def test_invalid_transitions_from_month(nav: ViewNavigator, action: str) -> None:
    with pytest.raises(NavigationError):
        if action == "open_hour":
            nav.open_hour(9)
        else:
            getattr(nav, action)()


def test_open_day_only_from_month(nav: ViewNavigator) -> None:
    nav.open_day(TODAY)
    with pytest.raises(NavigationError):
        nav.open_day(TODAY)


def test_open_hour_rejects_out_of_range(nav: ViewNavigator) -> None:
    nav.open_day(TODAY)
    with pytest.raises(NavigationError):
        nav.open_hour(24)
    assert nav.view_mode == "day"


def test_day_stepping_crosses_month_boundary(nav: ViewNavigator) -> None:
    nav.open_day(date(2026, 10, 31))
    assert nav.next_day() == date(2026, 11, 1)
    assert nav.previous_day() == date(2026, 10, 31)


def test_hour_stepping_is_clamped(nav: ViewNavigator) -> None:
    nav.open_day(TODAY)
    nav.open_hour(23)
    assert nav.next_hour() == 23
    nav.close_hour()
    nav.open_hour(0)
    assert nav.previous_hour() == 0
    assert nav.next_hour() == 1


def test_month_paging_across_years(nav: ViewNavigator) -> None:
    nav.show_month(date(2026, 12, 25))
    assert nav.next_month() == date(2027, 1, 1)
    assert nav.previous_month() == date(2026, 12, 1)
    assert nav.previous_month() == date(2026, 11, 1)
