"""Next-match search across all seven fields.

The search is a bounded, iterative state machine over immutable
:class:`~calexpr.schedule.snapshot.CalendarSnapshot` values. Each iteration
checks the fields from coarsest (year) to finest (second) and either
accepts the snapshot or derives a strictly later one:

- a field whose next legal value lies ahead moves the snapshot there and
  resets every finer field to its minimum;
- a field whose search wrapped carries one unit into the next coarser field
  (minute overflow bumps the hour, which may bump the day, and so on).

The loop stops when every field matches, when the year field runs out of
candidates, when a wildcard year passes the look-ahead horizon, or when the
step budget is spent.

Matching happens on local wall-clock time in the schedule's timezone. Local
times skipped by a DST transition do not exist and are passed over; local
times repeated by a transition resolve to their earliest occurrence that is
not before the reference instant. A reference inside the first pass of a
repeated hour still reaches the second pass of wall times already behind it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterator

from calexpr.schedule.days import next_matching_day
from calexpr.schedule.matcher import next_match
from calexpr.schedule.snapshot import CalendarSnapshot
from calexpr.schedule.types import FieldKind
from calexpr.schedule.values import ScheduleField

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchLimits:
    """Termination bounds of the next-match search.

    Attributes:
        max_steps: Maximum number of snapshots examined per search.
        max_years: Look-ahead horizon, in years past the reference, for a
            wildcard year field.
    """

    max_steps: int = 100_000
    max_years: int = 100


DEFAULT_LIMITS = SearchLimits()


@dataclass(frozen=True)
class ScheduleFields:
    """The seven parsed fields of a schedule expression."""

    second: ScheduleField
    minute: ScheduleField
    hour: ScheduleField
    day_of_month: ScheduleField
    month: ScheduleField
    day_of_week: ScheduleField
    year: ScheduleField

    def __iter__(self) -> Iterator[ScheduleField]:
        for kind in FieldKind:
            yield self.get(kind)

    def get(self, kind: FieldKind) -> ScheduleField:
        return getattr(self, kind.value)


class _SearchExhausted(Exception):
    """Raised inside the search when no later match can exist."""


def to_utc(instant: datetime, tz: tzinfo) -> datetime:
    """Convert an instant to UTC, reading naive values as ``tz`` wall time."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=tz)
    return instant.astimezone(timezone.utc)


def ceil_to_second(instant: datetime) -> datetime:
    """Round up to the next whole second."""
    if instant.microsecond:
        return instant.replace(microsecond=0) + timedelta(seconds=1)
    return instant


def find_next(
    fields: ScheduleFields,
    reference: datetime,
    *,
    tz: tzinfo,
    start: datetime | None = None,
    end: datetime | None = None,
    limits: SearchLimits = DEFAULT_LIMITS,
) -> datetime | None:
    """Find the first instant at or after ``reference`` matching every field.

    Args:
        fields: Parsed schedule fields.
        reference: Instant to search from; naive values are read as wall
            time in ``tz``.
        tz: Timezone the fields are evaluated in.
        start: Optional lower bound; the search starts there if it is later.
        end: Optional upper bound; matches after it are discarded.
        limits: Termination bounds.

    Returns:
        The next matching instant as an aware datetime in ``tz``, or None if
        there is no next timeout.
    """
    not_before = ceil_to_second(to_utc(reference, tz))
    if start is not None:
        not_before = max(not_before, ceil_to_second(to_utc(start, tz)))
    end_utc = to_utc(end, tz) if end is not None else None

    if end_utc is not None and not_before > end_utc:
        logger.debug("Reference %s is past the end bound %s", not_before, end_utc)
        return None

    local = not_before.astimezone(tz)
    year_limit = _year_limit(fields.year, local.year, limits)
    if end_utc is not None:
        year_limit = min(year_limit, end_utc.astimezone(tz).year)

    search = _Search(fields, tz, not_before, year_limit)
    result = search.run(_search_origin(local), limits.max_steps)

    if result is not None and end_utc is not None and result > end_utc:
        logger.debug("Next match %s is past the end bound %s", result, end_utc)
        return None
    return result


def _search_origin(local: datetime) -> CalendarSnapshot:
    """Wall-clock point the search starts from.

    On the first pass through a repeated (fall-back) interval, the second
    pass of the wall times already behind still lies ahead, so the search
    starts one repetition earlier. Instants before the reference are dropped
    by ``_Search._localize``.
    """
    repeat = local.utcoffset() - local.replace(fold=1).utcoffset()
    if local.fold == 0 and repeat > timedelta(0):
        local = local - repeat
    return CalendarSnapshot.from_datetime(local)


def _year_limit(year: ScheduleField, current_year: int, limits: SearchLimits) -> int:
    if year.is_wildcard:
        return min(year.max_value, current_year + limits.max_years)
    return year.candidates[-1]


class _Search:
    """One run of the carry-propagation search."""

    def __init__(
        self,
        fields: ScheduleFields,
        tz: tzinfo,
        not_before: datetime,
        year_limit: int,
    ) -> None:
        self._fields = fields
        self._tz = tz
        self._not_before = not_before
        self._year_limit = year_limit

    def run(self, snapshot: CalendarSnapshot, max_steps: int) -> datetime | None:
        try:
            for _ in range(max_steps):
                if snapshot.year > self._year_limit:
                    logger.debug("No match up to year %d", self._year_limit)
                    return None

                following = self._advance(snapshot)
                if following is not None:
                    snapshot = following
                    continue

                instant = self._localize(snapshot)
                if instant is not None:
                    return instant
                snapshot = snapshot.next_second()
        except _SearchExhausted as e:
            logger.debug("No match: %s", e)
            return None
        except OverflowError:
            logger.debug("No match before the end of the calendar")
            return None

        logger.warning(
            "Gave up looking for a next timeout after %d steps (last candidate %s)",
            max_steps,
            snapshot,
        )
        return None

    def _advance(self, snap: CalendarSnapshot) -> CalendarSnapshot | None:
        """Next snapshot to examine, or None if ``snap`` matches every field."""
        fields = self._fields

        if snap.year < fields.year.min_value:
            return snap.with_year(fields.year.min_value)

        year = next_match(fields.year, snap.year)
        if year is None or year < snap.year:
            raise _SearchExhausted(f"year field {fields.year} has no value >= {snap.year}")
        if year > snap.year:
            return snap.with_year(year)

        month = next_match(fields.month, snap.month)
        if month is None:
            raise _SearchExhausted(f"month field {fields.month} has no value")
        if month < snap.month:
            return snap.next_year()
        if month > snap.month:
            return snap.with_month(month)

        day = next_matching_day(
            fields.day_of_month, fields.day_of_week, snap.year, snap.month, snap.day
        )
        if day is None:
            return snap.next_month()
        if day > snap.day:
            return snap.with_day(day)

        hour = next_match(fields.hour, snap.hour)
        if hour is None:
            raise _SearchExhausted(f"hour field {fields.hour} has no value")
        if hour < snap.hour:
            return snap.next_day()
        if hour > snap.hour:
            return snap.with_hour(hour)

        minute = next_match(fields.minute, snap.minute)
        if minute is None:
            raise _SearchExhausted(f"minute field {fields.minute} has no value")
        if minute < snap.minute:
            return snap.next_hour()
        if minute > snap.minute:
            return snap.with_minute(minute)

        second = next_match(fields.second, snap.second)
        if second is None:
            raise _SearchExhausted(f"second field {fields.second} has no value")
        if second < snap.second:
            return snap.next_minute()
        if second > snap.second:
            return snap.with_second(second)

        return None

    def _localize(self, snap: CalendarSnapshot) -> datetime | None:
        """Earliest real instant for ``snap`` not before the reference."""
        wall = snap.to_datetime()
        found: datetime | None = None
        for fold in (0, 1):
            utc = wall.replace(tzinfo=self._tz, fold=fold).astimezone(timezone.utc)
            # Wall times inside a DST gap do not survive the round trip.
            if utc.astimezone(self._tz).replace(tzinfo=None) != wall:
                continue
            if utc < self._not_before:
                continue
            if found is None or utc < found:
                found = utc
        return found.astimezone(self._tz) if found is not None else None
