# backend/picadero/core/clock.py
"""
Academy clock.

Services never call ``datetime.now()`` directly; they ask an injected clock
so "today" is always the academy's local calendar day and tests can pin it.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from .config import settings


class Clock(ABC):
    """Source of the academy's current local time (naive, in academy tz)."""

    @abstractmethod
    def now(self) -> datetime:
        """Current naive local time."""

    def today(self) -> date:
        return self.now().date()

    def hours_until(self, target_date: date, target_time: time) -> float:
        """Hours between now and the given local date/time (negative if past)."""
        delta = datetime.combine(target_date, target_time) - self.now()
        return delta.total_seconds() / 3600


class SystemClock(Clock):
    def __init__(self, timezone: Optional[str] = None):
        self.tz = pytz.timezone(timezone or settings.academy_timezone)

    def now(self) -> datetime:
        return datetime.now(pytz.utc).astimezone(self.tz).replace(tzinfo=None)


class FixedClock(Clock):
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime):
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, **kwargs) -> None:
        self._instant = self._instant + timedelta(**kwargs)

    def set(self, instant: datetime) -> None:
        self._instant = instant


def default_clock() -> Clock:
    return SystemClock()
