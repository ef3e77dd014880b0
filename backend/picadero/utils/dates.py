"""Calendar helpers for monthly billing and recurring lessons."""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
import re
from typing import List, Tuple

BUSINESS_WEEKDAYS = {0, 1, 2, 3, 4}

_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")


def month_start(year: int, month: int) -> date:
    _check_month(month)
    return date(year, month, 1)


def month_end(year: int, month: int) -> date:
    """Return the last calendar day of the month (leap years included)."""
    _check_month(month)
    return date(year, month, calendar.monthrange(year, month)[1])


def next_month(year: int, month: int) -> Tuple[int, int]:
    _check_month(month)
    if month == 12:
        return year + 1, 1
    return year, month + 1


def previous_month(year: int, month: int) -> Tuple[int, int]:
    _check_month(month)
    if month == 1:
        return year - 1, 12
    return year, month - 1


def month_key(year: int, month: int) -> int:
    """Sortable integer for a (year, month) pair, e.g. 202402."""
    return year * 100 + month


def nth_business_day(year: int, month: int, n: int = 10) -> date:
    """
    Return the n-th Monday-Friday day of the month, counting from day 1.

    Holidays are not considered. Raises ValueError when the month has fewer
    than ``n`` business days.
    """
    if n <= 0:
        raise ValueError("n must be positive for business day lookup")

    current = month_start(year, month)
    last = month_end(year, month)
    count = 0
    while current <= last:
        if current.weekday() in BUSINESS_WEEKDAYS:
            count += 1
            if count == n:
                return current
        current += timedelta(days=1)
    raise ValueError(f"{year}-{month:02d} has fewer than {n} business days")


def weekday_dates(year: int, month: int, weekday: int) -> List[date]:
    """
    Return every date in the month falling on ``weekday`` (0=Monday .. 6=Sunday).

    Walks forward from day 1 to the first match, then steps a week at a time
    until past the month end.
    """
    if not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be in 0..6, got {weekday}")

    current = month_start(year, month)
    last = month_end(year, month)
    while current.weekday() != weekday:
        current += timedelta(days=1)

    dates: List[date] = []
    while current <= last:
        dates.append(current)
        current += timedelta(days=7)
    return dates


def parse_month(value: str) -> Tuple[int, int]:
    """Parse ``YYYY-MM`` into ``(year, month)``; raises ValueError otherwise."""
    match = _MONTH_RE.match((value or "").strip())
    if not match:
        raise ValueError(f"expected YYYY-MM, got {value!r}")
    year, month = int(match.group(1)), int(match.group(2))
    _check_month(month)
    return year, month


def add_minutes(start: time, minutes: int) -> time:
    """Add minutes to a wall-clock time; raises ValueError when crossing midnight."""
    combined = datetime.combine(date.min, start) + timedelta(minutes=minutes)
    if combined.date() != date.min:
        raise ValueError(f"{start} + {minutes} minutes crosses midnight")
    return combined.time()
