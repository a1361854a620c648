"""Calendar snapshots and the calendar arithmetic they rely on."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, replace
from datetime import date, datetime

from calexpr.schedule.types import FieldKind


def days_in_month(year: int, month: int) -> int:
    """Number of days in a month, using the Gregorian leap-year rule."""
    return calendar.monthrange(year, month)[1]


def weekday_of(year: int, month: int, day: int) -> int:
    """Day of week with Sunday as 0 and Saturday as 6."""
    # Python weekday: Monday=0, Sunday=6
    return (date(year, month, day).weekday() + 1) % 7


@dataclass(frozen=True)
class MatchContext:
    """Year and month a relative day rule is resolved against."""

    year: int
    month: int


@dataclass(frozen=True, order=True)
class CalendarSnapshot:
    """A wall-clock point in time broken into calendar fields.

    Snapshots are never mutated: every step of the next-match search derives
    a new snapshot with one of the ``next_*``/``with_*`` methods. Ordering
    follows the field order, so a later wall-clock time compares greater.
    """

    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0

    @classmethod
    def from_datetime(cls, dt: datetime) -> "CalendarSnapshot":
        return cls(dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second)

    def to_datetime(self) -> datetime:
        """Naive datetime with the snapshot's wall-clock fields."""
        return datetime(
            self.year, self.month, self.day, self.hour, self.minute, self.second
        )

    @property
    def day_of_week(self) -> int:
        return weekday_of(self.year, self.month, self.day)

    @property
    def context(self) -> MatchContext:
        return MatchContext(self.year, self.month)

    def get(self, kind: FieldKind) -> int:
        """Value of the given field in this snapshot."""
        if kind is FieldKind.DAY_OF_MONTH:
            return self.day
        return getattr(self, kind.value)

    def with_year(self, year: int) -> "CalendarSnapshot":
        return CalendarSnapshot(year, 1, 1)

    def with_month(self, month: int) -> "CalendarSnapshot":
        return CalendarSnapshot(self.year, month, 1)

    def with_day(self, day: int) -> "CalendarSnapshot":
        return CalendarSnapshot(self.year, self.month, day)

    def with_hour(self, hour: int) -> "CalendarSnapshot":
        return replace(self, hour=hour, minute=0, second=0)

    def with_minute(self, minute: int) -> "CalendarSnapshot":
        return replace(self, minute=minute, second=0)

    def with_second(self, second: int) -> "CalendarSnapshot":
        return replace(self, second=second)

    def next_year(self) -> "CalendarSnapshot":
        if self.year >= datetime.max.year:
            raise OverflowError("calendar year out of range")
        return CalendarSnapshot(self.year + 1, 1, 1)

    def next_month(self) -> "CalendarSnapshot":
        if self.month == 12:
            return self.next_year()
        return CalendarSnapshot(self.year, self.month + 1, 1)

    def next_day(self) -> "CalendarSnapshot":
        if self.day >= days_in_month(self.year, self.month):
            return self.next_month()
        return CalendarSnapshot(self.year, self.month, self.day + 1)

    def next_hour(self) -> "CalendarSnapshot":
        if self.hour == 23:
            return self.next_day()
        return CalendarSnapshot(self.year, self.month, self.day, self.hour + 1)

    def next_minute(self) -> "CalendarSnapshot":
        if self.minute == 59:
            return self.next_hour()
        return replace(self, minute=self.minute + 1, second=0)

    def next_second(self) -> "CalendarSnapshot":
        if self.second == 59:
            return self.next_minute()
        return replace(self, second=self.second + 1)

    def __str__(self) -> str:
        return self.to_datetime().isoformat()
