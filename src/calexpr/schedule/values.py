"""Parsed field values.

A field string is parsed into exactly one of three value shapes:

- :class:`Wildcard` matches every value of the field.
- :class:`AbsoluteSet` holds the sorted candidate set of the field.
- :class:`RelativeRules` holds relative day rules (day fields only), whose
  concrete days depend on the month they are evaluated in.

The parser is generic; per-kind behavior comes from the field's
:class:`~calexpr.schedule.types.FieldDescriptor`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from calexpr.schedule.classifier import (
    classify,
    days_before_end,
    is_relative,
    ordinal_weekday,
    split_increment,
    split_list,
    split_range,
)
from calexpr.schedule.errors import (
    InvalidExpressionSyntax,
    InvalidRange,
    UnsupportedExpressionType,
    ValueOutOfRange,
)
from calexpr.schedule.rules import (
    DayRange,
    DayRule,
    DaysBeforeEnd,
    EveryWeekday,
    FixedDay,
    LastDay,
    LastWeekday,
    NthWeekday,
    SingleDayRule,
)
from calexpr.schedule.types import (
    MAX_DAYS_BEFORE_END,
    ExpressionType,
    FieldDescriptor,
    FieldKind,
    RelativeForm,
    get_descriptor,
)


@dataclass(frozen=True)
class Wildcard:
    """Every value of the field."""


@dataclass(frozen=True)
class AbsoluteSet:
    """Sorted, distinct absolute values."""

    values: tuple[int, ...]


@dataclass(frozen=True)
class RelativeRules:
    """Relative day rules, any of which may match."""

    rules: tuple[DayRule, ...]


FieldValue = Union[Wildcard, AbsoluteSet, RelativeRules]


@dataclass(frozen=True)
class ScheduleField:
    """One parsed field of a schedule expression.

    Attributes:
        kind: Which field this is.
        source: The original field string, kept for diagnostics.
        expression_type: How the source string was classified.
        value: The parsed value.
    """

    kind: FieldKind
    source: str
    expression_type: ExpressionType
    value: FieldValue

    @property
    def descriptor(self) -> FieldDescriptor:
        return get_descriptor(self.kind)

    @property
    def min_value(self) -> int:
        return self.descriptor.min_value

    @property
    def max_value(self) -> int:
        return self.descriptor.max_value

    @property
    def is_wildcard(self) -> bool:
        return isinstance(self.value, Wildcard)

    @property
    def is_relative(self) -> bool:
        return isinstance(self.value, RelativeRules)

    @property
    def candidates(self) -> tuple[int, ...]:
        """The candidate set; empty for relative fields."""
        if isinstance(self.value, Wildcard):
            return tuple(self.descriptor.domain)
        if isinstance(self.value, AbsoluteSet):
            return self.value.values
        return ()

    def first(self) -> int:
        """Smallest value this field can take, ignoring relative rules."""
        if isinstance(self.value, AbsoluteSet):
            if not self.value.values:
                raise ValueError(f"No valid values for {self.kind.label}: {self.source}")
            return self.value.values[0]
        return self.min_value

    def __str__(self) -> str:
        return self.source


def parse_field(
    kind: FieldKind,
    raw: str,
    expression_type: ExpressionType | None = None,
) -> ScheduleField:
    """Parse a raw field string.

    Args:
        kind: Field kind being parsed.
        raw: Field string.
        expression_type: Pre-computed classification of ``raw``, if any.

    Returns:
        The parsed field.

    Raises:
        InvalidExpressionSyntax: If ``raw`` matches no grammar form.
        ValueOutOfRange: If a value falls outside the field's domain.
        UnsupportedExpressionType: If the field does not accept the form.
    """
    if expression_type is None:
        expression_type = classify(raw, kind)
    value = _FieldParser(get_descriptor(kind), raw).parse(expression_type)
    return ScheduleField(kind, raw.strip(), expression_type, value)


class _FieldParser:
    """Parses one field string against one descriptor."""

    def __init__(self, descriptor: FieldDescriptor, raw: str) -> None:
        self._descriptor = descriptor
        self._kind = descriptor.kind
        self._raw = raw

    def parse(self, expression_type: ExpressionType) -> FieldValue:
        self._check_supported(expression_type)
        text = self._raw.strip()

        if expression_type is ExpressionType.WILDCARD:
            return Wildcard()
        if expression_type is ExpressionType.SINGLE_VALUE:
            return AbsoluteSet((self._resolve_value(text),))
        if expression_type is ExpressionType.INCREMENT:
            return AbsoluteSet(tuple(self._parse_increment(text)))
        if expression_type is ExpressionType.RELATIVE:
            return RelativeRules((self._parse_relative(text),))
        if expression_type is ExpressionType.RANGE:
            parsed = self._parse_range(text)
            if isinstance(parsed, DayRule):
                return RelativeRules((parsed,))
            return AbsoluteSet(tuple(sorted(parsed)))
        return self._parse_list(text)

    def _check_supported(self, expression_type: ExpressionType) -> None:
        if not self._descriptor.supports(expression_type):
            raise UnsupportedExpressionType(
                f"{expression_type.name.lower()} expressions are not supported",
                self._kind,
                self._raw,
            )

    def _parse_list(self, text: str) -> FieldValue:
        values: set[int] = set()
        rules: list[DayRule] = []

        for item in split_list(text):
            item_type = classify(item, self._kind)
            self._check_supported(item_type)
            if item_type is ExpressionType.RELATIVE:
                rules.append(self._parse_relative(item))
            elif item_type is ExpressionType.RANGE:
                parsed = self._parse_range(item)
                if isinstance(parsed, DayRule):
                    rules.append(parsed)
                else:
                    values.update(parsed)
            else:
                values.add(self._resolve_value(item))

        if not rules:
            return AbsoluteSet(tuple(sorted(values)))

        # A day field is either absolute or relative, so absolute items of a
        # mixed list become rules too.
        rules.extend(self._absolute_rule(value) for value in sorted(values))
        return RelativeRules(tuple(dict.fromkeys(rules)))

    def _parse_range(self, text: str) -> set[int] | DayRule:
        start, end = split_range(text)

        if is_relative(start) or is_relative(end):
            self._check_supported(ExpressionType.RELATIVE)
            return DayRange(self._endpoint_rule(start), self._endpoint_rule(end))

        first = self._resolve_raw(start)
        last = self._resolve_raw(end)
        if first > last:
            raise InvalidRange(
                f"range start {start} is after range end {end}", self._kind, self._raw
            )
        return {self._descriptor.aliases.get(v, v) for v in range(first, last + 1)}

    def _parse_increment(self, text: str) -> range:
        start_text, step_text = split_increment(text)
        if start_text == "*":
            start = self._descriptor.min_value
        else:
            start = self._resolve_value(start_text)

        step = int(step_text)
        if step < 1:
            raise ValueOutOfRange("increment must be at least 1", self._kind, self._raw)
        return range(start, self._descriptor.max_value + 1, step)

    def _parse_relative(self, token: str) -> SingleDayRule:
        if token.strip().upper() == "LAST":
            self._check_form(RelativeForm.LAST_DAY)
            return LastDay()

        offset = days_before_end(token)
        if offset is not None:
            self._check_form(RelativeForm.DAYS_BEFORE_END)
            if not 1 <= offset <= MAX_DAYS_BEFORE_END:
                raise ValueOutOfRange(
                    f"days before month end must be within "
                    f"[1-{MAX_DAYS_BEFORE_END}]",
                    self._kind,
                    self._raw,
                )
            return DaysBeforeEnd(offset)

        parsed = ordinal_weekday(token)
        if parsed is None:
            raise InvalidExpressionSyntax("unrecognised relative value", self._kind, self._raw)
        self._check_form(RelativeForm.NTH_WEEKDAY)
        nth, weekday = parsed
        if nth == -1:
            return LastWeekday(weekday)
        return NthWeekday(nth, weekday)

    def _check_form(self, form: RelativeForm) -> None:
        if form not in self._descriptor.relative_forms:
            raise UnsupportedExpressionType(
                f"relative form {form.name.lower()} is not supported",
                self._kind,
                self._raw,
            )

    def _endpoint_rule(self, token: str) -> SingleDayRule:
        if is_relative(token):
            return self._parse_relative(token)
        if self._kind is FieldKind.DAY_OF_MONTH:
            return FixedDay(self._resolve_value(token))
        raise InvalidExpressionSyntax(
            "cannot mix relative and absolute range endpoints", self._kind, self._raw
        )

    def _absolute_rule(self, value: int) -> DayRule:
        if self._kind is FieldKind.DAY_OF_WEEK:
            return EveryWeekday(value)
        return FixedDay(value)

    def _resolve_value(self, token: str) -> int:
        """Resolve a number or name to a value, applying aliases."""
        value = self._resolve_raw(token)
        return self._descriptor.aliases.get(value, value)

    def _resolve_raw(self, token: str) -> int:
        """Resolve a number or name to an integer within domain or aliases."""
        text = token.strip().upper()
        descriptor = self._descriptor

        if text in descriptor.names:
            return descriptor.names[text]

        if not text.isdigit():
            raise InvalidExpressionSyntax(f"unknown value {token!r}", self._kind, self._raw)

        value = int(text)
        if value in descriptor.aliases:
            return value
        if value < descriptor.min_value or value > descriptor.max_value:
            raise ValueOutOfRange(
                f"{value} is outside [{descriptor.min_value}-{descriptor.max_value}]",
                self._kind,
                self._raw,
            )
        return value
