"""Fluent builder for schedule expressions."""

from __future__ import annotations

from datetime import datetime

from calexpr.schedule.composer import DEFAULT_LIMITS, SearchLimits
from calexpr.schedule.expression import DEFAULT_FIELDS, ScheduleExpression


def _join(values: tuple[int | str, ...]) -> str:
    return ",".join(str(v) for v in values)


class ScheduleBuilder:
    """Fluent builder for schedule expressions.

    Fields default to ``*`` except the second, which defaults to ``0``.
    Nothing is validated until :meth:`build`.

    Example:
        >>> expr = (ScheduleBuilder()
        ...     .minute("*/15")
        ...     .hour("9-17")
        ...     .day_of_week("Mon-Fri")
        ...     .timezone("America/New_York")
        ...     .build())
    """

    def __init__(self) -> None:
        self._fields: dict[str, str] = dict(DEFAULT_FIELDS)
        self._timezone = "UTC"
        self._start: datetime | None = None
        self._end: datetime | None = None
        self._limits = DEFAULT_LIMITS

    def second(self, value: str | int) -> "ScheduleBuilder":
        self._fields["second"] = str(value)
        return self

    def minute(self, value: str | int) -> "ScheduleBuilder":
        self._fields["minute"] = str(value)
        return self

    def hour(self, value: str | int) -> "ScheduleBuilder":
        self._fields["hour"] = str(value)
        return self

    def day_of_month(self, value: str | int) -> "ScheduleBuilder":
        self._fields["day_of_month"] = str(value)
        return self

    def month(self, value: str | int) -> "ScheduleBuilder":
        self._fields["month"] = str(value)
        return self

    def day_of_week(self, value: str | int) -> "ScheduleBuilder":
        self._fields["day_of_week"] = str(value)
        return self

    def year(self, value: str | int) -> "ScheduleBuilder":
        self._fields["year"] = str(value)
        return self

    def timezone(self, name: str) -> "ScheduleBuilder":
        self._timezone = name
        return self

    def start(self, instant: datetime | None) -> "ScheduleBuilder":
        self._start = instant
        return self

    def end(self, instant: datetime | None) -> "ScheduleBuilder":
        self._end = instant
        return self

    def limits(self, limits: SearchLimits) -> "ScheduleBuilder":
        self._limits = limits
        return self

    def at(self, hour: int, minute: int = 0, second: int = 0) -> "ScheduleBuilder":
        """Fire once a day at the given wall-clock time."""
        self._fields.update(hour=str(hour), minute=str(minute), second=str(second))
        return self

    def on_days(self, *days: int | str) -> "ScheduleBuilder":
        """Restrict to days of the month, e.g. ``1, 15, "last"``."""
        self._fields["day_of_month"] = _join(days)
        return self

    def on_weekdays(self, *weekdays: int | str) -> "ScheduleBuilder":
        """Restrict to days of the week; Monday to Friday if none given."""
        self._fields["day_of_week"] = _join(weekdays) if weekdays else "Mon-Fri"
        return self

    def on_last_day(self) -> "ScheduleBuilder":
        """Fire on the last day of the month."""
        self._fields["day_of_month"] = "last"
        return self

    def in_months(self, *months: int | str) -> "ScheduleBuilder":
        self._fields["month"] = _join(months)
        return self

    def build(self) -> ScheduleExpression:
        """Parse the configured fields.

        Raises:
            ScheduleExpressionError: If a field or the timezone is invalid.
        """
        return ScheduleExpression.parse(
            **self._fields,
            timezone=self._timezone,
            start=self._start,
            end=self._end,
            limits=self._limits,
        )
