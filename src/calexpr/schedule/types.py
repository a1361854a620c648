"""Field kinds, expression types and per-kind field descriptors.

Every field kind is handled by the same generic parser; what differs between
kinds is captured declaratively by a :class:`FieldDescriptor` (domain bounds,
accepted expression types, symbolic names and relative forms).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto


class FieldKind(Enum):
    """The seven fields of a schedule expression, finest first."""

    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY_OF_MONTH = "day_of_month"
    MONTH = "month"
    DAY_OF_WEEK = "day_of_week"
    YEAR = "year"

    @property
    def label(self) -> str:
        """Human-readable name used in error messages."""
        return self.value.replace("_", "-")

    @property
    def is_day_field(self) -> bool:
        return self in (FieldKind.DAY_OF_MONTH, FieldKind.DAY_OF_WEEK)


class ExpressionType(Enum):
    """Grammar forms a field string can take."""

    WILDCARD = auto()
    SINGLE_VALUE = auto()
    LIST = auto()
    RANGE = auto()
    INCREMENT = auto()
    RELATIVE = auto()


class RelativeForm(Enum):
    """Relative day forms, resolved against a concrete month."""

    LAST_DAY = auto()  # "last"
    DAYS_BEFORE_END = auto()  # "-3"
    NTH_WEEKDAY = auto()  # "2nd mon", "last fri"


_ABSOLUTE_TYPES = frozenset(
    {
        ExpressionType.WILDCARD,
        ExpressionType.SINGLE_VALUE,
        ExpressionType.LIST,
        ExpressionType.RANGE,
    }
)

MONTH_NAMES: dict[str, int] = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4,
    "MAY": 5, "JUN": 6, "JUL": 7, "AUG": 8,
    "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}

WEEKDAY_NAMES: dict[str, int] = {
    "SUN": 0, "MON": 1, "TUE": 2, "WED": 3,
    "THU": 4, "FRI": 5, "SAT": 6,
}

# Ordinals accepted in "<ordinal> <weekday>" relative values. "LAST" is -1.
ORDINALS: dict[str, int] = {
    "1ST": 1, "2ND": 2, "3RD": 3, "4TH": 4, "5TH": 5, "LAST": -1,
}

# Largest K accepted in a "-K" (days before month end) value.
MAX_DAYS_BEFORE_END = 7


@dataclass(frozen=True)
class FieldDescriptor:
    """Declarative description of one field kind.

    Attributes:
        kind: The field kind described.
        min_value: Smallest legal value.
        max_value: Largest legal value.
        accepts: Expression types this field may be written as.
        names: Symbolic names (upper case) and the values they stand for.
        aliases: Extra integers accepted on input and the value they mean.
        relative_forms: Relative day forms accepted (day fields only).
    """

    kind: FieldKind
    min_value: int
    max_value: int
    accepts: frozenset[ExpressionType] = _ABSOLUTE_TYPES
    names: dict[str, int] = field(default_factory=dict)
    aliases: dict[int, int] = field(default_factory=dict)
    relative_forms: frozenset[RelativeForm] = frozenset()

    @property
    def domain(self) -> range:
        return range(self.min_value, self.max_value + 1)

    def supports(self, expression_type: ExpressionType) -> bool:
        return expression_type in self.accepts


FIELD_DESCRIPTORS: dict[FieldKind, FieldDescriptor] = {
    FieldKind.SECOND: FieldDescriptor(
        FieldKind.SECOND, 0, 59,
        accepts=_ABSOLUTE_TYPES | {ExpressionType.INCREMENT},
    ),
    FieldKind.MINUTE: FieldDescriptor(
        FieldKind.MINUTE, 0, 59,
        accepts=_ABSOLUTE_TYPES | {ExpressionType.INCREMENT},
    ),
    FieldKind.HOUR: FieldDescriptor(
        FieldKind.HOUR, 0, 23,
        accepts=_ABSOLUTE_TYPES | {ExpressionType.INCREMENT},
    ),
    FieldKind.DAY_OF_MONTH: FieldDescriptor(
        FieldKind.DAY_OF_MONTH, 1, 31,
        accepts=_ABSOLUTE_TYPES | {ExpressionType.RELATIVE},
        relative_forms=frozenset(RelativeForm),
    ),
    FieldKind.MONTH: FieldDescriptor(
        FieldKind.MONTH, 1, 12,
        names=MONTH_NAMES,
    ),
    FieldKind.DAY_OF_WEEK: FieldDescriptor(
        FieldKind.DAY_OF_WEEK, 0, 6,
        accepts=_ABSOLUTE_TYPES | {ExpressionType.RELATIVE},
        names=WEEKDAY_NAMES,
        aliases={7: 0},
        relative_forms=frozenset({RelativeForm.NTH_WEEKDAY}),
    ),
    FieldKind.YEAR: FieldDescriptor(FieldKind.YEAR, 1970, 9999),
}


def get_descriptor(kind: FieldKind) -> FieldDescriptor:
    """Return the descriptor for a field kind."""
    return FIELD_DESCRIPTORS[kind]
