"""Classification of raw field strings into expression types.

Rules are checked from most to least specific::

    *                      WILDCARD
    a,b,c                  LIST (items are single, range or relative values)
    a-b                    RANGE (a leading "-" is a sign, not a separator)
    a/b or */b             INCREMENT
    last, -3, 2nd mon      RELATIVE
    10, jan, fri           SINGLE_VALUE
"""

from __future__ import annotations

import re

from calexpr.schedule.errors import InvalidExpressionSyntax
from calexpr.schedule.types import ExpressionType, FieldKind, ORDINALS, WEEKDAY_NAMES

_SINGLE_RE = re.compile(r"^(?:\d+|[A-Za-z]+)$")
_INCREMENT_RE = re.compile(r"^(\*|\d+)\s*/\s*(\d+)$")
_DAYS_BEFORE_END_RE = re.compile(r"^-(\d+)$")
_ORDINAL_WEEKDAY_RE = re.compile(
    r"^(%s)\s+(%s)$" % ("|".join(ORDINALS), "|".join(WEEKDAY_NAMES)),
    re.IGNORECASE,
)

_LIST_ITEM_TYPES = frozenset(
    {ExpressionType.SINGLE_VALUE, ExpressionType.RANGE, ExpressionType.RELATIVE}
)
_RANGE_ENDPOINT_TYPES = frozenset(
    {ExpressionType.SINGLE_VALUE, ExpressionType.RELATIVE}
)


def is_relative(raw: str) -> bool:
    """Check whether a single token is a relative day value."""
    token = raw.strip()
    return (
        token.upper() == "LAST"
        or _DAYS_BEFORE_END_RE.match(token) is not None
        or _ORDINAL_WEEKDAY_RE.match(token) is not None
    )


def split_list(raw: str) -> list[str]:
    """Split a list expression into its stripped items."""
    return [item.strip() for item in raw.split(",")]


def range_separator(raw: str) -> int:
    """Index of the "-" separating a range's endpoints, or -1.

    A "-" at the start of the string or right after another "-" is the sign
    of a days-before-month-end value, not a separator.
    """
    for index, char in enumerate(raw):
        if char == "-" and index > 0 and raw[index - 1] != "-":
            return index
    return -1


def split_range(raw: str) -> tuple[str, str]:
    """Split a range expression into its stripped endpoints."""
    index = range_separator(raw)
    return raw[:index].strip(), raw[index + 1 :].strip()


def split_increment(raw: str) -> tuple[str, str]:
    """Split an increment expression into its start and step."""
    match = _INCREMENT_RE.match(raw.strip())
    if match is None:
        raise InvalidExpressionSyntax("malformed increment", raw=raw)
    return match.group(1), match.group(2)


def ordinal_weekday(raw: str) -> tuple[int, int] | None:
    """Parse "<ordinal> <weekday>" into (ordinal, weekday), or None."""
    match = _ORDINAL_WEEKDAY_RE.match(raw.strip())
    if match is None:
        return None
    return ORDINALS[match.group(1).upper()], WEEKDAY_NAMES[match.group(2).upper()]


def days_before_end(raw: str) -> int | None:
    """Parse "-K" into K, or None."""
    match = _DAYS_BEFORE_END_RE.match(raw.strip())
    return int(match.group(1)) if match else None


def classify(raw: str, field: FieldKind | None = None) -> ExpressionType:
    """Classify a raw field string.

    Args:
        raw: Field string as supplied by the caller.
        field: Field kind, used only to name the field in errors.

    Returns:
        The expression type of ``raw``.

    Raises:
        InvalidExpressionSyntax: If no grammar form matches.
    """
    if raw is None:
        raise InvalidExpressionSyntax("value is missing", field, "")
    text = raw.strip()
    if not text:
        raise InvalidExpressionSyntax("value is empty", field, raw)

    if text == "*":
        return ExpressionType.WILDCARD

    if "," in text:
        for item in split_list(text):
            if not item:
                raise InvalidExpressionSyntax("empty list item", field, raw)
            item_type = classify(item, field)
            if item_type not in _LIST_ITEM_TYPES:
                raise InvalidExpressionSyntax(
                    f"{item_type.name.lower()} is not allowed in a list", field, raw
                )
        return ExpressionType.LIST

    if range_separator(text) > 0:
        if "/" in text:
            raise InvalidExpressionSyntax("increments cannot be ranges", field, raw)
        start, end = split_range(text)
        for endpoint in (start, end):
            if not endpoint or classify(endpoint, field) not in _RANGE_ENDPOINT_TYPES:
                raise InvalidExpressionSyntax("malformed range", field, raw)
        return ExpressionType.RANGE

    if "/" in text:
        if _INCREMENT_RE.match(text) is None:
            raise InvalidExpressionSyntax("malformed increment", field, raw)
        return ExpressionType.INCREMENT

    if is_relative(text):
        return ExpressionType.RELATIVE

    if _SINGLE_RE.match(text):
        return ExpressionType.SINGLE_VALUE

    raise InvalidExpressionSyntax("unrecognised expression", field, raw)
