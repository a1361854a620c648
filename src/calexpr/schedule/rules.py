"""Relative day rules.

A relative rule names a day of the month symbolically ("the last day", "the
second Monday", "three days before the end") so the concrete day depends on
the month it is evaluated in. Rules are immutable and compare by value.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable

from calexpr.schedule.snapshot import days_in_month, weekday_of


class DayRule(ABC):
    """A rule selecting zero or more days of a given month."""

    @abstractmethod
    def days(self, year: int, month: int) -> tuple[int, ...]:
        """Days of ``year``/``month`` selected by this rule, ascending."""


class SingleDayRule(DayRule):
    """A rule selecting at most one day of a given month."""

    @abstractmethod
    def resolve(self, year: int, month: int) -> int | None:
        """The selected day of ``year``/``month``, or None if there is none."""

    def days(self, year: int, month: int) -> tuple[int, ...]:
        day = self.resolve(year, month)
        return () if day is None else (day,)


@dataclass(frozen=True)
class LastDay(SingleDayRule):
    """The last day of the month."""

    def resolve(self, year: int, month: int) -> int | None:
        return days_in_month(year, month)

    def __str__(self) -> str:
        return "last"


@dataclass(frozen=True)
class DaysBeforeEnd(SingleDayRule):
    """The day ``offset`` days before the last day of the month."""

    offset: int

    def resolve(self, year: int, month: int) -> int | None:
        day = days_in_month(year, month) - self.offset
        return day if day >= 1 else None

    def __str__(self) -> str:
        return f"-{self.offset}"


@dataclass(frozen=True)
class NthWeekday(SingleDayRule):
    """The ``nth`` occurrence (1-based) of ``weekday`` (0 = Sunday)."""

    nth: int
    weekday: int

    def resolve(self, year: int, month: int) -> int | None:
        occurrences = _occurrences(year, month, self.weekday)
        if self.nth > len(occurrences):
            return None
        return occurrences[self.nth - 1]


@dataclass(frozen=True)
class LastWeekday(SingleDayRule):
    """The last occurrence of ``weekday`` (0 = Sunday) in the month."""

    weekday: int

    def resolve(self, year: int, month: int) -> int | None:
        return _occurrences(year, month, self.weekday)[-1]


@dataclass(frozen=True)
class FixedDay(SingleDayRule):
    """An absolute day, absent from months that are too short."""

    day: int

    def resolve(self, year: int, month: int) -> int | None:
        return self.day if self.day <= days_in_month(year, month) else None

    def __str__(self) -> str:
        return str(self.day)


@dataclass(frozen=True)
class EveryWeekday(DayRule):
    """Every occurrence of ``weekday`` (0 = Sunday) in the month."""

    weekday: int

    def days(self, year: int, month: int) -> tuple[int, ...]:
        return _occurrences(year, month, self.weekday)


@dataclass(frozen=True)
class DayRange(DayRule):
    """All days between two single-day rules, inclusive.

    The range is empty for a month where either endpoint does not exist or
    the start falls after the end; ranges never wrap into the next month.
    """

    start: SingleDayRule
    end: SingleDayRule

    def days(self, year: int, month: int) -> tuple[int, ...]:
        first = self.start.resolve(year, month)
        last = self.end.resolve(year, month)
        if first is None or last is None or first > last:
            return ()
        return tuple(range(first, last + 1))


def _occurrences(year: int, month: int, weekday: int) -> tuple[int, ...]:
    first = weekday_of(year, month, 1)
    start = 1 + (weekday - first) % 7
    return tuple(range(start, days_in_month(year, month) + 1, 7))


def resolve_relative(rule: SingleDayRule, year: int, month: int) -> int | None:
    """Resolve a single-day rule to a concrete day of ``year``/``month``."""
    return rule.resolve(year, month)


def resolve_days(rules: Iterable[DayRule], year: int, month: int) -> tuple[int, ...]:
    """Union of the days selected by ``rules``, ascending."""
    selected: set[int] = set()
    for rule in rules:
        selected.update(rule.days(year, month))
    return tuple(sorted(selected))
