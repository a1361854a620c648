"""Errors raised while parsing schedule expressions.

Every error is raised eagerly, when a ``ScheduleExpression`` is built, so an
invalid registration fails before its first timeout is ever computed. The
absence of a next timeout is not an error: ``compute_next_timeout`` returns
``None`` for it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from calexpr.schedule.types import FieldKind


class ScheduleExpressionError(ValueError):
    """Base class for schedule expression parse errors.

    Attributes:
        field: Field kind the error belongs to, if any.
        raw: The offending source string.
    """

    def __init__(
        self,
        message: str,
        field: "FieldKind | None" = None,
        raw: str = "",
    ) -> None:
        self.field = field
        self.raw = raw
        if field is not None:
            message = f"Invalid {field.label} value {raw!r}: {message}"
        super().__init__(message)


class InvalidExpressionSyntax(ScheduleExpressionError):
    """Raised when a field string matches no grammar form."""


class ValueOutOfRange(ScheduleExpressionError):
    """Raised when a value falls outside the field's legal domain."""


class InvalidRange(ValueOutOfRange):
    """Raised when a range's start is greater than its end."""


class UnsupportedExpressionType(ScheduleExpressionError):
    """Raised when a field kind does not accept an expression type."""


class UnknownTimezone(ScheduleExpressionError):
    """Raised when a timezone identifier cannot be resolved."""

    def __init__(self, timezone: str) -> None:
        super().__init__(f"Unknown timezone: {timezone!r}", raw=timezone)
