"""Day resolution across the day-of-month and day-of-week fields.

Unlike the other fields, which are combined with AND, the two day fields are
combined with OR when both are restricted: a day matches if it satisfies
either of them. When only one is restricted, that one decides alone.
"""

from __future__ import annotations

from calexpr.schedule.matcher import matches
from calexpr.schedule.rules import resolve_days, resolve_relative
from calexpr.schedule.snapshot import CalendarSnapshot, days_in_month, weekday_of
from calexpr.schedule.types import FieldKind
from calexpr.schedule.values import AbsoluteSet, ScheduleField, Wildcard

__all__ = [
    "day_matches",
    "days_in_month",
    "matching_days",
    "next_matching_day",
    "resolve_relative",
]


def day_matches(
    day_of_month: ScheduleField,
    day_of_week: ScheduleField,
    snapshot: CalendarSnapshot,
) -> bool:
    """Check whether the snapshot's day satisfies the day fields."""
    if day_of_month.is_wildcard and day_of_week.is_wildcard:
        return True
    if day_of_week.is_wildcard:
        return matches(day_of_month, snapshot)
    if day_of_month.is_wildcard:
        return matches(day_of_week, snapshot)
    return matches(day_of_month, snapshot) or matches(day_of_week, snapshot)


def matching_days(
    day_of_month: ScheduleField,
    day_of_week: ScheduleField,
    year: int,
    month: int,
) -> tuple[int, ...]:
    """All days of ``year``/``month`` satisfying the day fields, ascending."""
    last = days_in_month(year, month)
    if day_of_month.is_wildcard and day_of_week.is_wildcard:
        return tuple(range(1, last + 1))

    selected: set[int] = set()
    if not day_of_month.is_wildcard:
        selected.update(_field_days(day_of_month, year, month, last))
    if not day_of_week.is_wildcard:
        selected.update(_field_days(day_of_week, year, month, last))
    return tuple(sorted(selected))


def next_matching_day(
    day_of_month: ScheduleField,
    day_of_week: ScheduleField,
    year: int,
    month: int,
    from_day: int,
) -> int | None:
    """First matching day of ``year``/``month`` at or after ``from_day``."""
    for day in matching_days(day_of_month, day_of_week, year, month):
        if day >= from_day:
            return day
    return None


def _field_days(field: ScheduleField, year: int, month: int, last: int) -> tuple[int, ...]:
    value = field.value
    if isinstance(value, Wildcard):
        return tuple(range(1, last + 1))
    if isinstance(value, AbsoluteSet):
        if field.kind is FieldKind.DAY_OF_WEEK:
            weekdays = set(value.values)
            return tuple(
                day for day in range(1, last + 1) if weekday_of(year, month, day) in weekdays
            )
        return tuple(day for day in value.values if day <= last)
    return resolve_days(value.rules, year, month)
