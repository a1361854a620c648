"""calexpr - Calendar schedule expressions and next-timeout computation."""

from calexpr.schedule import (
    ExpressionType,
    FieldKind,
    InvalidExpressionSyntax,
    InvalidRange,
    ScheduleBuilder,
    ScheduleExpression,
    ScheduleExpressionError,
    SearchLimits,
    UnknownTimezone,
    UnsupportedExpressionType,
    ValueOutOfRange,
    is_valid,
    validate_fields,
)

__version__ = "0.1.0"

__all__ = [
    "ScheduleExpression",
    "ScheduleBuilder",
    "SearchLimits",
    "FieldKind",
    "ExpressionType",
    "ScheduleExpressionError",
    "InvalidExpressionSyntax",
    "ValueOutOfRange",
    "InvalidRange",
    "UnsupportedExpressionType",
    "UnknownTimezone",
    "validate_fields",
    "is_valid",
    "__version__",
]
