"""Calendar helpers: stored weekday numbers and Saturday-aligned weeks.

Weekday numbers follow the stored convention 0 = Sunday ... 6 = Saturday,
so Friday is 5. Python's own date.weekday() (Monday = 0) is only used
internally here.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, timedelta

SUNDAY = 0
FRIDAY = 5
SATURDAY = 6


class InvalidWeekStartError(ValueError):
    """Raised when a week start is not a Saturday."""

    code = "INVALID_WEEK_START"

    def __init__(self, week_start: date):
        self.week_start = week_start
        super().__init__(f"Week start {week_start.isoformat()} is not a Saturday")


def day_of_week(on_date: date) -> int:
    """Stored weekday number (0 = Sunday ... 6 = Saturday)."""
    return (on_date.weekday() + 1) % 7


def is_friday(on_date: date) -> bool:
    return day_of_week(on_date) == FRIDAY


def week_start_for(on_date: date) -> date:
    """The Saturday on or before a date."""
    offset = (day_of_week(on_date) - SATURDAY) % 7
    return on_date - timedelta(days=offset)


def require_week_start(week_start: date) -> date:
    """Return week_start unchanged, or raise if it is not a Saturday."""
    if day_of_week(week_start) != SATURDAY:
        raise InvalidWeekStartError(week_start)
    return week_start


def week_dates(week_start: date) -> list[date]:
    """The seven dates of the week, Saturday through Friday."""
    require_week_start(week_start)
    return [week_start + timedelta(days=i) for i in range(7)]


def date_range(start: date, end: date) -> Iterator[date]:
    """Inclusive date range."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def week_index_in_year(on_date: date) -> int:
    """Zero-based week index counted from the first Saturday of the year.

    Dates before that Saturday belong to week 0.
    """
    jan1 = date(on_date.year, 1, 1)
    first_saturday = jan1 + timedelta(days=(SATURDAY - day_of_week(jan1)) % 7)
    diff = (on_date - first_saturday).days
    if diff < 0:
        return 0
    return diff // 7
