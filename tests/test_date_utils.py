"""Tests for calendar grid and formatting helpers."""
from datetime import date, timedelta

import pytest

from calendar_core.date_utils import (
    GRID_SIZE,
    add_months,
    date_key,
    days_in_month_grid,
    end_time,
    format_clock_time,
    format_date,
    format_hour_label,
    format_hour_range,
    format_month_year,
    format_short_date,
    hour_of,
    is_same_day,
    is_same_month,
    parse_date_key,
    quarter_index,
    quarter_slots,
    start_time_for,
)


@pytest.mark.parametrize("year", [2024, 2025, 2026])
@pytest.mark.parametrize("month", range(1, 13))
def test_month_grid_is_six_monday_first_weeks(year: int, month: int) -> None:
    """The grid has 42 contiguous days starting on a Monday and covers the month."""
    grid = days_in_month_grid(date(year, month, 15))

    assert len(grid) == GRID_SIZE
    assert grid[0].weekday() == 0
    assert grid[0] <= date(year, month, 1)
    assert all(b - a == timedelta(days=1) for a, b in zip(grid, grid[1:]))
    last = add_months(date(year, month, 1), 1) - timedelta(days=1)
    assert last in grid


def test_month_grid_when_first_is_monday() -> None:
    """June 2026 starts on a Monday, so the grid starts on the 1st."""
    assert days_in_month_grid(date(2026, 6, 10))[0] == date(2026, 6, 1)


def test_date_key_round_trip_and_padding() -> None:
    day = date(2026, 3, 7)

    assert date_key(day) == "2026-03-07"
    assert parse_date_key(date_key(day)) == day


@pytest.mark.parametrize("key", ["2026-13-01", "2026-02-30", "26-1-1", "", "2026/10/19"])
def test_parse_date_key_rejects_bad_input(key: str) -> None:
    with pytest.raises(ValueError):
        parse_date_key(key)


def test_same_day_and_month() -> None:
    assert is_same_day(date(2026, 10, 19), date(2026, 10, 19))
    assert not is_same_day(date(2026, 10, 19), date(2025, 10, 19))
    assert is_same_month(date(2026, 10, 1), date(2026, 10, 31))
    assert not is_same_month(date(2026, 10, 1), date(2025, 10, 1))


def test_quarter_slots_and_start_times() -> None:
    assert quarter_slots(9) == ["09:00", "09:15", "09:30", "09:45"]
    assert start_time_for(14) == "14:00"
    assert start_time_for(14, 3) == "14:45"
    assert hour_of("14:45") == 14
    assert quarter_index("14:45") == 3
    assert quarter_index("14:20") == 1


@pytest.mark.parametrize("hour", [-1, 24])
def test_hours_out_of_range_are_rejected(hour: int) -> None:
    with pytest.raises(ValueError):
        start_time_for(hour)
    with pytest.raises(ValueError):
        format_clock_time(hour)


def test_start_time_rejects_bad_quarter() -> None:
    with pytest.raises(ValueError):
        start_time_for(9, 4)


def test_end_time() -> None:
    assert end_time("09:15", 15) == "09:30"
    assert end_time("09:00", 60) == "10:00"
    assert end_time("23:30", 60) == "00:30"
    assert end_time("09:00", None) == "09:00"


def test_add_months_crosses_years() -> None:
    assert add_months(date(2026, 12, 31), 1) == date(2027, 1, 1)
    assert add_months(date(2026, 1, 15), -1) == date(2025, 12, 1)
    assert add_months(date(2026, 10, 19), 0) == date(2026, 10, 1)


@pytest.mark.parametrize("hour,clock,label", [
    (0, "12 AM", "12:00 AM"),
    (9, "9 AM", "9:00 AM"),
    (12, "12 PM", "12:00 PM"),
    (14, "2 PM", "2:00 PM"),
    (23, "11 PM", "11:00 PM"),
])
def test_hour_labels(hour: int, clock: str, label: str) -> None:
    assert format_clock_time(hour) == clock
    assert format_hour_label(hour) == label


def test_date_formats() -> None:
    day = date(2026, 10, 19)

    assert format_date(day) == "Mon, Oct 19, 2026"
    assert format_short_date(day) == "Oct 19"
    assert format_month_year(day) == "October 2026"
    assert format_hour_range(14) == "14:00–14:59"
