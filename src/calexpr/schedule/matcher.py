"""Field-level matching.

``next_match`` implements the ascending-scan-with-wrap policy shared by
every absolute-valued field: the smallest candidate at or after the current
value, else the smallest candidate overall (the caller must carry into the
next coarser unit), else ``None`` when the field can never match.
"""

from __future__ import annotations

from bisect import bisect_left
from typing import Sequence

from calexpr.schedule.rules import resolve_days
from calexpr.schedule.snapshot import CalendarSnapshot, MatchContext
from calexpr.schedule.values import AbsoluteSet, RelativeRules, ScheduleField, Wildcard


def matches(field: ScheduleField, snapshot: CalendarSnapshot) -> bool:
    """Check whether a field matches a snapshot on its own."""
    value = field.value
    if isinstance(value, Wildcard):
        return field.min_value <= snapshot.get(field.kind) <= field.max_value
    if isinstance(value, AbsoluteSet):
        return snapshot.get(field.kind) in value.values
    return snapshot.day in resolve_days(value.rules, snapshot.year, snapshot.month)


def next_match(
    field: ScheduleField,
    current: int,
    context: MatchContext | None = None,
) -> int | None:
    """Smallest legal value at or after ``current``, wrapping to the first.

    Args:
        field: Parsed field.
        current: Current value of the field's unit.
        context: Month to resolve relative day rules against; required for
            relative fields, whose values are days of that month.

    Returns:
        The next legal value, a value below ``current`` when the search
        wrapped, or None when the field has no legal value at all.
    """
    value = field.value
    if isinstance(value, Wildcard):
        return current
    if isinstance(value, RelativeRules):
        if context is None:
            raise ValueError(
                f"Relative {field.kind.label} value {field.source!r} needs a month context"
            )
        return _scan(resolve_days(value.rules, context.year, context.month), current)
    return _scan(value.values, current)


def requires_carry(current: int, found: int | None) -> bool:
    """Whether a ``next_match`` result wrapped past the field's maximum."""
    return found is not None and found < current


def _scan(candidates: Sequence[int], current: int) -> int | None:
    if not candidates:
        return None
    index = bisect_left(candidates, current)
    if index < len(candidates):
        return candidates[index]
    return candidates[0]
