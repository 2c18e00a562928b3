"""
Local-day calendar helpers.

All day-boundary logic works on the user's LOCAL calendar date.
Aware datetimes are converted into the service's time zone first;
naive datetimes are taken as already local.
"""

from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Union

DateLike = Union[date, datetime]


class CalendarService:
    """Stateless local-day arithmetic."""

    def __init__(self, tz: Optional[tzinfo] = None):
        """
        Args:
            tz: Time zone that defines "local". None means the
                system local time zone.
        """
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz).astimezone(self._tz)

    def today(self, now: Optional[datetime] = None) -> date:
        return self.start_of_day(now or self.now())

    def start_of_day(self, value: DateLike) -> date:
        """Local calendar date of value."""
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(self._tz)
            return value.date()
        return value

    def is_same_local_day(self, lhs: DateLike, rhs: DateLike) -> bool:
        return self.start_of_day(lhs) == self.start_of_day(rhs)

    def day_distance(self, start: DateLike, end: DateLike) -> int:
        """Whole calendar days from start to end (negative if end is earlier)."""
        return (self.start_of_day(end) - self.start_of_day(start)).days

    def add_days(self, days: int, to: DateLike) -> date:
        return self.start_of_day(to) + timedelta(days=days)
