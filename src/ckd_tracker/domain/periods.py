"""Calendar periods used to key summary documents."""

from datetime import date, timedelta
from enum import Enum

DECEMBER = 12


class Granularity(str, Enum):
    """Aggregation period of a summary document."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def period_key(granularity: Granularity, day: date) -> str:
    """Return the sortable document key for the period containing a day.

    Days are ``YYYY-MM-DD``, ISO weeks ``YYYY-Www`` and months ``YYYY-MM``.
    """
    if granularity is Granularity.DAY:
        return day.isoformat()
    if granularity is Granularity.WEEK:
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    return f"{day.year:04d}-{day.month:02d}"


def period_bounds(granularity: Granularity, day: date) -> tuple[date, date]:
    """Return the first and last calendar day of the period containing a day."""
    if granularity is Granularity.DAY:
        return day, day
    if granularity is Granularity.WEEK:
        start = day - timedelta(days=day.weekday())
        return start, start + timedelta(days=6)
    start = day.replace(day=1)
    return start, _next_month(start) - timedelta(days=1)


def next_period_start(granularity: Granularity, day: date) -> date:
    """Return the first day of the period following the one containing a day."""
    _, end = period_bounds(granularity, day)
    return end + timedelta(days=1)


def period_starts(granularity: Granularity, start: date, end: date) -> list[date]:
    """Return the start dates of every period overlapping ``[start, end]``."""
    starts: list[date] = []
    current, _ = period_bounds(granularity, start)
    while current <= end:
        starts.append(current)
        current = next_period_start(granularity, current)
    return starts


def _next_month(first_of_month: date) -> date:
    if first_of_month.month == DECEMBER:
        return first_of_month.replace(year=first_of_month.year + 1, month=1)
    return first_of_month.replace(month=first_of_month.month + 1)
