"""Schedule expressions.

A :class:`ScheduleExpression` is the parsed, immutable form of a calendar
schedule: seven field strings, a timezone and optional start/end bounds.
Every field is parsed when the expression is built, so an invalid schedule
is rejected at registration time rather than at its first timeout.

Example:
    >>> expr = ScheduleExpression.parse(
    ...     minute="*/15", hour="9-17", day_of_week="Mon-Fri",
    ...     timezone="Europe/Paris",
    ... )
    >>> expr.compute_next_timeout(datetime(2024, 1, 13, 10, 0))
    datetime.datetime(2024, 1, 15, 9, 0, tzinfo=zoneinfo.ZoneInfo(key='Europe/Paris'))
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from calexpr.schedule.composer import (
    DEFAULT_LIMITS,
    ScheduleFields,
    SearchLimits,
    find_next,
    to_utc,
)
from calexpr.schedule.days import day_matches
from calexpr.schedule.errors import ScheduleExpressionError, UnknownTimezone
from calexpr.schedule.matcher import matches
from calexpr.schedule.snapshot import CalendarSnapshot
from calexpr.schedule.types import FieldKind
from calexpr.schedule.values import ScheduleField, parse_field

# Field defaults: every field is "*" except second, which is "0".
DEFAULT_FIELDS: dict[str, str] = {
    "second": "0",
    "minute": "*",
    "hour": "*",
    "day_of_month": "*",
    "month": "*",
    "day_of_week": "*",
    "year": "*",
}


def resolve_timezone(name: str) -> ZoneInfo:
    """Look up a timezone by its IANA identifier."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise UnknownTimezone(name) from e


class ScheduleExpression:
    """Parsed calendar schedule with next-timeout calculation.

    ScheduleExpression is immutable: parsed fields are shared safely between
    concurrent ``compute_next_timeout`` calls, which have no side effects.
    """

    __slots__ = ("_fields", "_timezone", "_tz", "_start", "_end", "_limits")

    def __init__(
        self,
        fields: ScheduleFields,
        *,
        timezone: str = "UTC",
        start: datetime | None = None,
        end: datetime | None = None,
        limits: SearchLimits = DEFAULT_LIMITS,
    ) -> None:
        """Initialize from already parsed fields.

        Args:
            fields: The seven parsed fields.
            timezone: IANA timezone identifier the fields are evaluated in.
            start: Optional first instant a timeout may fall on.
            end: Optional last instant a timeout may fall on.
            limits: Search termination bounds.
        """
        self._fields = fields
        self._timezone = timezone
        self._tz = resolve_timezone(timezone)
        self._start = start
        self._end = end
        self._limits = limits

    @classmethod
    def parse(
        cls,
        second: str | None = DEFAULT_FIELDS["second"],
        minute: str | None = DEFAULT_FIELDS["minute"],
        hour: str | None = DEFAULT_FIELDS["hour"],
        day_of_month: str | None = DEFAULT_FIELDS["day_of_month"],
        month: str | None = DEFAULT_FIELDS["month"],
        day_of_week: str | None = DEFAULT_FIELDS["day_of_week"],
        year: str | None = DEFAULT_FIELDS["year"],
        *,
        timezone: str = "UTC",
        start: datetime | None = None,
        end: datetime | None = None,
        limits: SearchLimits = DEFAULT_LIMITS,
    ) -> "ScheduleExpression":
        """Parse the seven field strings into a schedule expression.

        A field given as ``None`` takes its default.

        Raises:
            ScheduleExpressionError: If any field or the timezone is invalid.
        """
        raw = {
            "second": second,
            "minute": minute,
            "hour": hour,
            "day_of_month": day_of_month,
            "month": month,
            "day_of_week": day_of_week,
            "year": year,
        }
        fields = ScheduleFields(
            **{
                kind.value: parse_field(kind, _field_text(raw[kind.value], kind))
                for kind in FieldKind
            }
        )
        return cls(fields, timezone=timezone, start=start, end=end, limits=limits)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        *,
        limits: SearchLimits = DEFAULT_LIMITS,
    ) -> "ScheduleExpression":
        """Build from a mapping such as a section of a configuration file.

        Keys are the field names plus ``timezone``, ``start`` and ``end``;
        missing or null fields take their defaults. Bounds may be datetimes or ISO
        8601 strings.
        """
        unknown = set(data) - set(DEFAULT_FIELDS) - {"timezone", "start", "end"}
        if unknown:
            raise ScheduleExpressionError(f"Unknown schedule keys: {sorted(unknown)}")

        fields = {name: data.get(name) for name in DEFAULT_FIELDS}
        return cls.parse(
            **fields,
            timezone=data.get("timezone", "UTC"),
            start=_parse_instant(data.get("start")),
            end=_parse_instant(data.get("end")),
            limits=limits,
        )

    @property
    def fields(self) -> ScheduleFields:
        return self._fields

    @property
    def timezone(self) -> str:
        return self._timezone

    @property
    def tzinfo(self) -> ZoneInfo:
        return self._tz

    @property
    def start(self) -> datetime | None:
        return self._start

    @property
    def end(self) -> datetime | None:
        return self._end

    def get_field(self, kind: FieldKind) -> ScheduleField:
        """Get a specific field by kind."""
        return self._fields.get(kind)

    def compute_next_timeout(self, reference: datetime | None = None) -> datetime | None:
        """Next instant at or after ``reference`` matching the schedule.

        Args:
            reference: Instant to search from (default: now). Naive values
                are read as wall time in the schedule's timezone.

        Returns:
            An aware datetime in the schedule's timezone, or None if the
            schedule has no next timeout.
        """
        if reference is None:
            reference = datetime.now(timezone.utc)
        return find_next(
            self._fields,
            reference,
            tz=self._tz,
            start=self._start,
            end=self._end,
            limits=self._limits,
        )

    def matches(self, instant: datetime) -> bool:
        """Check whether an instant satisfies every field and the bounds."""
        utc = to_utc(instant, self._tz)
        if self._start is not None and utc < to_utc(self._start, self._tz):
            return False
        if self._end is not None and utc > to_utc(self._end, self._tz):
            return False

        snapshot = CalendarSnapshot.from_datetime(utc.astimezone(self._tz))
        fields = self._fields
        return (
            all(
                matches(f, snapshot)
                for f in (fields.second, fields.minute, fields.hour, fields.month, fields.year)
            )
            and day_matches(fields.day_of_month, fields.day_of_week, snapshot)
        )

    def next_n(self, n: int, after: datetime | None = None) -> list[datetime]:
        """Get up to ``n`` successive timeouts."""
        return list(self.iter(after, limit=n))

    def iter(
        self,
        after: datetime | None = None,
        limit: int | None = None,
    ) -> "TimeoutIterator":
        """Create an iterator over successive timeouts."""
        return TimeoutIterator(self, after, limit)

    def to_dict(self) -> dict[str, Any]:
        """Source fields, timezone and bounds as a plain mapping."""
        result: dict[str, Any] = {f.kind.value: f.source for f in self._fields}
        result["timezone"] = self._timezone
        result["start"] = self._start.isoformat() if self._start else None
        result["end"] = self._end.isoformat() if self._end else None
        return result

    def _key(self) -> tuple[Any, ...]:
        return tuple(self.to_dict().values())

    def __repr__(self) -> str:
        sources = " ".join(f.source for f in self._fields)
        return f"ScheduleExpression({sources!r}, timezone={self._timezone!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ScheduleExpression):
            return self._key() == other._key()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._key())


class TimeoutIterator(Iterator[datetime]):
    """Iterator over successive timeouts of a schedule expression.

    The first timeout may equal ``after``; every following one is searched
    from one second past the previous timeout.
    """

    def __init__(
        self,
        expression: ScheduleExpression,
        after: datetime | None = None,
        limit: int | None = None,
    ) -> None:
        self._expression = expression
        self._current = after
        self._limit = limit
        self._count = 0

    def __iter__(self) -> "TimeoutIterator":
        return self

    def __next__(self) -> datetime:
        if self._limit is not None and self._count >= self._limit:
            raise StopIteration

        next_dt = self._expression.compute_next_timeout(self._current)
        if next_dt is None:
            raise StopIteration

        self._current = next_dt.astimezone(timezone.utc) + timedelta(seconds=1)
        self._count += 1
        return next_dt


def _field_text(value: Any, kind: FieldKind) -> str:
    if value is None:
        return DEFAULT_FIELDS[kind.value]
    return str(value)


def _parse_instant(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as e:
        raise ScheduleExpressionError(f"Invalid instant: {value!r}", raw=str(value)) from e


def validate_fields(**fields: Any) -> list[str]:
    """Validate schedule fields without raising.

    Args:
        **fields: Keyword arguments accepted by ``ScheduleExpression.parse``.

    Returns:
        List of validation errors (empty if valid).
    """
    errors = []
    try:
        ScheduleExpression.parse(**fields)
    except ScheduleExpressionError as e:
        errors.append(str(e))
    return errors


def is_valid(**fields: Any) -> bool:
    """Check if schedule fields are valid."""
    return not validate_fields(**fields)
