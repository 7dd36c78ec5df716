"""Calendar grid and date/time formatting helpers.

Every date identity is derived from local calendar fields (year, month, day);
nothing here converts through UTC.
"""
from __future__ import annotations

from datetime import date, timedelta
import typing as t

from timeblock_server.store import DATE_RE, TIME_RE

GRID_SIZE = 42  # 6 weeks x 7 days
QUARTERS_PER_HOUR = 4
QUARTER_MINUTES = 15

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def days_in_month_grid(day: date) -> list[date]:
    """Return the 42 days of the Monday-first calendar grid for ``day``'s month.

    The grid starts on the Monday on or before the first of the month and
    runs for six full weeks, padding with days of the adjacent months.
    """
    first = date(day.year, day.month, 1)
    start = first - timedelta(days=first.weekday())  # Monday = 0
    return [start + timedelta(days=i) for i in range(GRID_SIZE)]


def is_same_month(a: date, b: date) -> bool:
    return a.year == b.year and a.month == b.month


def is_same_day(a: date, b: date) -> bool:
    return a.year == b.year and a.month == b.month and a.day == b.day


def date_key(day: date) -> str:
    """Canonical ``YYYY-MM-DD`` key built from calendar fields."""
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def parse_date_key(key: str) -> date:
    """Inverse of :func:`date_key`.

    Raises:
        ValueError: If ``key`` is not a valid ``YYYY-MM-DD`` date.
    """
    if not isinstance(key, str) or not DATE_RE.match(key):
        raise ValueError(f"Invalid date key: {key!r}")
    year, month, day = (int(part) for part in key.split("-"))
    return date(year, month, day)


def hours_of_day() -> list[int]:
    return list(range(24))


def quarter_slots(hour: int) -> list[str]:
    """The four quarter-hour start times of ``hour``, e.g. ``["09:00", ..., "09:45"]``."""
    _check_hour(hour)
    return [start_time_for(hour, q) for q in range(QUARTERS_PER_HOUR)]


def start_time_for(hour: int, quarter: int = 0) -> str:
    """``HH:MM`` start time of quarter ``quarter`` (0-3) of ``hour``."""
    _check_hour(hour)
    if not 0 <= quarter < QUARTERS_PER_HOUR:
        raise ValueError(f"Quarter must be between 0 and 3, got {quarter}")
    return f"{hour:02d}:{quarter * QUARTER_MINUTES:02d}"


def hour_of(start_time: str) -> int:
    return int(_split_time(start_time)[0])


def quarter_index(start_time: str) -> int:
    """Quarter (0-3) a start time falls into, derived from its minutes."""
    return _split_time(start_time)[1] // QUARTER_MINUTES


def end_time(start_time: str, duration: t.Optional[int]) -> str:
    """End time of a block; wraps past midnight. Without a duration, returns the start."""
    hour, minute = _split_time(start_time)
    if not duration:
        return start_time
    total = (hour * 60 + minute + duration) % (24 * 60)
    return f"{total // 60:02d}:{total % 60:02d}"


def add_months(day: date, months: int) -> date:
    """First day of the month ``months`` away from ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def format_clock_time(hour: int) -> str:
    """12-hour label without minutes: 0 -> "12 AM", 14 -> "2 PM"."""
    _check_hour(hour)
    period = "PM" if hour >= 12 else "AM"
    display = 12 if hour % 12 == 0 else hour % 12
    return f"{display} {period}"


def format_hour_label(hour: int) -> str:
    """12-hour label with minutes: 14 -> "2:00 PM"."""
    label, period = format_clock_time(hour).split(" ")
    return f"{label}:00 {period}"


def format_date(day: date) -> str:
    """E.g. "Mon, Oct 19, 2026"."""
    return f"{WEEKDAY_LABELS[day.weekday()]}, {format_short_date(day)}, {day.year}"


def format_short_date(day: date) -> str:
    """E.g. "Oct 19"."""
    return f"{_MONTH_NAMES[day.month - 1][:3]} {day.day}"


def format_month_name(day: date) -> str:
    return _MONTH_NAMES[day.month - 1]


def format_month_year(day: date) -> str:
    """E.g. "October 2026"."""
    return f"{format_month_name(day)} {day.year}"


def format_hour_range(hour: int) -> str:
    """E.g. "14:00–14:59"."""
    _check_hour(hour)
    return f"{hour:02d}:00–{hour:02d}:59"


def _check_hour(hour: int) -> None:
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour must be between 0 and 23, got {hour}")


def _split_time(value: str) -> tuple[int, int]:
    if not isinstance(value, str) or not TIME_RE.match(value):
        raise ValueError(f"Invalid time: {value!r}")
    hour, minute = value.split(":")
    return int(hour), int(minute)
