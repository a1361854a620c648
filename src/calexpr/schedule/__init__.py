"""Calendar schedule expressions and next-timeout computation.

Syntax Reference:
    Field         Values                Forms
    ─────────────────────────────────────────────────────────────────
    Second        0-59                  * , - /
    Minute        0-59                  * , - /
    Hour          0-23                  * , - /
    Day of Month  1-31                  * , -   last  -1..-7  2nd Mon
    Month         1-12 or Jan-Dec       * , -
    Day of Week   0-7 or Sun-Sat        * , -   2nd Mon  last Fri
    Year          1970-9999             * , -

Forms:
    *          Any value
    ,          List (10,30,45)
    -          Range (9-17); the start may not exceed the end
    /          Increment (*/15, 10/15) for second, minute and hour
    last       Last day of the month
    -K         K days before the last day of the month
    2nd Mon    Nth (1st..5th or last) weekday of the month

When both day fields are restricted, a day matches if it satisfies either.

Usage:
    >>> from calexpr.schedule import ScheduleExpression
    >>>
    >>> expr = ScheduleExpression.parse(hour="9", minute="0", day_of_week="Mon-Fri")
    >>> expr.compute_next_timeout()
    >>> expr.next_n(5)
"""

from calexpr.schedule.builder import ScheduleBuilder
from calexpr.schedule.classifier import classify
from calexpr.schedule.composer import ScheduleFields, SearchLimits, find_next
from calexpr.schedule.days import (
    day_matches,
    days_in_month,
    next_matching_day,
    resolve_relative,
)
from calexpr.schedule.errors import (
    InvalidExpressionSyntax,
    InvalidRange,
    ScheduleExpressionError,
    UnknownTimezone,
    UnsupportedExpressionType,
    ValueOutOfRange,
)
from calexpr.schedule.expression import (
    ScheduleExpression,
    TimeoutIterator,
    is_valid,
    validate_fields,
)
from calexpr.schedule.matcher import matches, next_match
from calexpr.schedule.snapshot import CalendarSnapshot
from calexpr.schedule.types import (
    FIELD_DESCRIPTORS,
    ExpressionType,
    FieldDescriptor,
    FieldKind,
)
from calexpr.schedule.values import (
    AbsoluteSet,
    RelativeRules,
    ScheduleField,
    Wildcard,
    parse_field,
)

__all__ = [
    # Core
    "ScheduleExpression",
    "ScheduleBuilder",
    "TimeoutIterator",
    "ScheduleFields",
    "SearchLimits",
    "find_next",
    # Fields
    "FieldKind",
    "ExpressionType",
    "FieldDescriptor",
    "FIELD_DESCRIPTORS",
    "ScheduleField",
    "Wildcard",
    "AbsoluteSet",
    "RelativeRules",
    "classify",
    "parse_field",
    # Matching
    "CalendarSnapshot",
    "matches",
    "next_match",
    "day_matches",
    "days_in_month",
    "next_matching_day",
    "resolve_relative",
    # Errors
    "ScheduleExpressionError",
    "InvalidExpressionSyntax",
    "ValueOutOfRange",
    "InvalidRange",
    "UnsupportedExpressionType",
    "UnknownTimezone",
    # Validation
    "validate_fields",
    "is_valid",
]
