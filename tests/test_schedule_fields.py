"""Tests for field classification and parsing."""

import pytest

from calexpr.schedule import (
    FIELD_DESCRIPTORS,
    AbsoluteSet,
    ExpressionType,
    FieldKind,
    InvalidExpressionSyntax,
    InvalidRange,
    RelativeRules,
    ScheduleField,
    ScheduleExpressionError,
    UnsupportedExpressionType,
    ValueOutOfRange,
    Wildcard,
    classify,
    parse_field,
)
from calexpr.schedule.rules import (
    DayRange,
    DaysBeforeEnd,
    EveryWeekday,
    FixedDay,
    LastDay,
    LastWeekday,
    NthWeekday,
)


# =============================================================================
# Classifier Tests
# =============================================================================


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("*", ExpressionType.WILDCARD),
            (" * ", ExpressionType.WILDCARD),
            ("5", ExpressionType.SINGLE_VALUE),
            ("Mon", ExpressionType.SINGLE_VALUE),
            ("1,2,3", ExpressionType.LIST),
            ("1-5", ExpressionType.RANGE),
            ("Mon-Fri", ExpressionType.RANGE),
            ("*/15", ExpressionType.INCREMENT),
            ("10/15", ExpressionType.INCREMENT),
            ("10 / 15", ExpressionType.INCREMENT),
            ("last", ExpressionType.RELATIVE),
            ("LAST", ExpressionType.RELATIVE),
            ("-3", ExpressionType.RELATIVE),
            ("2nd Mon", ExpressionType.RELATIVE),
            ("last fri", ExpressionType.RELATIVE),
        ],
    )
    def test_classify_forms(self, raw, expected):
        """Test that each grammar form is recognised."""
        assert classify(raw) is expected

    def test_leading_minus_is_not_a_range(self):
        """Test that a leading "-" is read as a sign."""
        assert classify("-5") is ExpressionType.RELATIVE

    def test_missing_value(self):
        """Test that a missing value is a syntax error, not a crash."""
        with pytest.raises(InvalidExpressionSyntax, match="missing"):
            classify(None, FieldKind.MINUTE)

    def test_relative_range_endpoints(self):
        """Test ranges whose endpoints are relative values."""
        assert classify("1-last") is ExpressionType.RANGE
        assert classify("-3-last") is ExpressionType.RANGE
        assert classify("1st Mon-3rd Mon") is ExpressionType.RANGE

    def test_list_may_mix_item_forms(self):
        """Test lists combining single, range and relative items."""
        assert classify("1,5-7,last") is ExpressionType.LIST

    @pytest.mark.parametrize(
        "raw",
        ["", "   ", "1,,2", "1,", "5-", "1-2-3", "1-5/2", "*/5,10", "5/", "a b", "--3", "1.5"],
    )
    def test_malformed_expressions(self, raw):
        """Test that malformed strings raise InvalidExpressionSyntax."""
        with pytest.raises(InvalidExpressionSyntax):
            classify(raw)

    def test_error_names_the_field(self):
        """Test that errors carry the field kind and raw string."""
        with pytest.raises(InvalidExpressionSyntax) as exc_info:
            classify("1,,2", FieldKind.HOUR)
        assert exc_info.value.field is FieldKind.HOUR
        assert exc_info.value.raw == "1,,2"
        assert "hour" in str(exc_info.value)


# =============================================================================
# Descriptor Tests
# =============================================================================


class TestFieldDescriptors:
    """Tests for the per-kind field descriptors."""

    def test_every_kind_has_a_descriptor(self):
        """Test that all seven kinds are described."""
        assert set(FIELD_DESCRIPTORS) == set(FieldKind)

    @pytest.mark.parametrize(
        "kind,low,high",
        [
            (FieldKind.SECOND, 0, 59),
            (FieldKind.MINUTE, 0, 59),
            (FieldKind.HOUR, 0, 23),
            (FieldKind.DAY_OF_MONTH, 1, 31),
            (FieldKind.MONTH, 1, 12),
            (FieldKind.DAY_OF_WEEK, 0, 6),
            (FieldKind.YEAR, 1970, 9999),
        ],
    )
    def test_domains(self, kind, low, high):
        """Test the legal domain of each field."""
        descriptor = FIELD_DESCRIPTORS[kind]
        assert descriptor.min_value == low
        assert descriptor.max_value == high

    def test_increment_only_for_time_fields(self):
        """Test that only second, minute and hour accept increments."""
        accepting = {
            kind for kind, d in FIELD_DESCRIPTORS.items()
            if d.supports(ExpressionType.INCREMENT)
        }
        assert accepting == {FieldKind.SECOND, FieldKind.MINUTE, FieldKind.HOUR}

    def test_relative_only_for_day_fields(self):
        """Test that only the day fields accept relative values."""
        accepting = {
            kind for kind, d in FIELD_DESCRIPTORS.items()
            if d.supports(ExpressionType.RELATIVE)
        }
        assert accepting == {FieldKind.DAY_OF_MONTH, FieldKind.DAY_OF_WEEK}
        assert all(kind.is_day_field for kind in accepting)

    def test_label(self):
        """Test human-readable field labels."""
        assert FieldKind.DAY_OF_MONTH.label == "day-of-month"
        assert FieldKind.SECOND.label == "second"


# =============================================================================
# Absolute Field Parsing Tests
# =============================================================================


class TestParseAbsolute:
    """Tests for parsing absolute field values."""

    def test_wildcard(self):
        """Test that * parses to Wildcard covering the whole domain."""
        field = parse_field(FieldKind.MINUTE, "*")
        assert field.value == Wildcard()
        assert field.is_wildcard
        assert field.candidates == tuple(range(60))
        assert field.first() == 0

    def test_single_value(self):
        """Test parsing a single value."""
        field = parse_field(FieldKind.HOUR, "9")
        assert field.value == AbsoluteSet((9,))
        assert field.expression_type is ExpressionType.SINGLE_VALUE

    def test_list_is_sorted_and_distinct(self):
        """Test that list values are sorted and deduplicated."""
        field = parse_field(FieldKind.MINUTE, "45,10,30,10")
        assert field.candidates == (10, 30, 45)

    def test_range_is_inclusive(self):
        """Test that ranges include both endpoints."""
        field = parse_field(FieldKind.HOUR, "9-17")
        assert field.candidates == tuple(range(9, 18))

    def test_list_of_ranges(self):
        """Test a list mixing ranges and values."""
        field = parse_field(FieldKind.HOUR, "9-11,14,16-18")
        assert field.candidates == (9, 10, 11, 14, 16, 17, 18)

    def test_increment_from_wildcard(self):
        """Test */15 starting from the field minimum."""
        field = parse_field(FieldKind.MINUTE, "*/15")
        assert field.candidates == (0, 15, 30, 45)

    def test_increment_from_value(self):
        """Test 10/15 stepping up to the field maximum."""
        field = parse_field(FieldKind.MINUTE, "10/15")
        assert field.candidates == (10, 25, 40, 55)

    def test_hour_increment(self):
        """Test an hour increment."""
        field = parse_field(FieldKind.HOUR, "*/6")
        assert field.candidates == (0, 6, 12, 18)

    def test_month_names(self):
        """Test case-insensitive month names."""
        assert parse_field(FieldKind.MONTH, "jan").candidates == (1,)
        assert parse_field(FieldKind.MONTH, "Jan-Mar").candidates == (1, 2, 3)
        assert parse_field(FieldKind.MONTH, "Jan,Jul").candidates == (1, 7)

    def test_weekday_names(self):
        """Test weekday names with Sunday as 0."""
        assert parse_field(FieldKind.DAY_OF_WEEK, "Sun").candidates == (0,)
        assert parse_field(FieldKind.DAY_OF_WEEK, "Mon-Fri").candidates == (1, 2, 3, 4, 5)

    def test_seven_means_sunday(self):
        """Test that day-of-week 7 is an alias for Sunday."""
        assert parse_field(FieldKind.DAY_OF_WEEK, "7").candidates == (0,)
        assert parse_field(FieldKind.DAY_OF_WEEK, "5-7").candidates == (0, 5, 6)

    def test_year_range(self):
        """Test parsing a year range."""
        field = parse_field(FieldKind.YEAR, "2024-2026")
        assert field.candidates == (2024, 2025, 2026)

    def test_source_is_kept(self):
        """Test that the stripped source string is kept for diagnostics."""
        field = parse_field(FieldKind.DAY_OF_WEEK, " Mon-Fri ")
        assert field.source == "Mon-Fri"
        assert str(field) == "Mon-Fri"

    def test_empty_set_has_no_first_value(self):
        """Test that first() refuses an empty candidate set."""
        field = ScheduleField(FieldKind.MINUTE, "", ExpressionType.LIST, AbsoluteSet(()))
        with pytest.raises(ValueError):
            field.first()


# =============================================================================
# Parse Error Tests
# =============================================================================


class TestParseErrors:
    """Tests for field parse errors."""

    @pytest.mark.parametrize(
        "kind,raw",
        [
            (FieldKind.SECOND, "60"),
            (FieldKind.MINUTE, "60"),
            (FieldKind.HOUR, "24"),
            (FieldKind.DAY_OF_MONTH, "0"),
            (FieldKind.DAY_OF_MONTH, "32"),
            (FieldKind.MONTH, "13"),
            (FieldKind.DAY_OF_WEEK, "8"),
            (FieldKind.YEAR, "1969"),
            (FieldKind.MINUTE, "50-60"),
        ],
    )
    def test_value_out_of_range(self, kind, raw):
        """Test values outside the field domain."""
        with pytest.raises(ValueOutOfRange):
            parse_field(kind, raw)

    def test_reversed_range(self):
        """Test that a range whose start exceeds its end is rejected."""
        with pytest.raises(InvalidRange):
            parse_field(FieldKind.MINUTE, "30-10")

    def test_reversed_weekday_range(self):
        """Test that weekday ranges never wrap around the week."""
        with pytest.raises(InvalidRange):
            parse_field(FieldKind.DAY_OF_WEEK, "Fri-Mon")

    def test_invalid_range_is_out_of_range(self):
        """Test the InvalidRange error hierarchy."""
        assert issubclass(InvalidRange, ValueOutOfRange)
        assert issubclass(ValueOutOfRange, ScheduleExpressionError)
        assert issubclass(ScheduleExpressionError, ValueError)

    def test_zero_increment(self):
        """Test that an increment step must be positive."""
        with pytest.raises(ValueOutOfRange):
            parse_field(FieldKind.MINUTE, "*/0")

    @pytest.mark.parametrize("raw", ["last", "-5", "2nd Mon"])
    def test_relative_minute_unsupported(self, raw):
        """Test that relative values are rejected outside the day fields."""
        with pytest.raises(UnsupportedExpressionType):
            parse_field(FieldKind.MINUTE, raw)

    @pytest.mark.parametrize(
        "kind",
        [FieldKind.DAY_OF_MONTH, FieldKind.MONTH, FieldKind.DAY_OF_WEEK, FieldKind.YEAR],
    )
    def test_increment_unsupported(self, kind):
        """Test that increments are rejected outside the time fields."""
        with pytest.raises(UnsupportedExpressionType):
            parse_field(kind, "*/2")

    def test_unknown_name(self):
        """Test that an unknown symbolic name is a syntax error."""
        with pytest.raises(InvalidExpressionSyntax):
            parse_field(FieldKind.MONTH, "Foo")

    def test_weekday_name_in_month_field(self):
        """Test that names are only accepted by their own field."""
        with pytest.raises(InvalidExpressionSyntax):
            parse_field(FieldKind.MONTH, "Mon")

    def test_error_message(self):
        """Test that errors name the field and offending value."""
        with pytest.raises(ValueOutOfRange) as exc_info:
            parse_field(FieldKind.MINUTE, "60")
        error = exc_info.value
        assert error.field is FieldKind.MINUTE
        assert error.raw == "60"
        assert str(error).startswith("Invalid minute value '60'")


# =============================================================================
# Relative Day Parsing Tests
# =============================================================================


class TestParseRelative:
    """Tests for relative day values."""

    def test_last_day(self):
        """Test "last" in the day-of-month field."""
        field = parse_field(FieldKind.DAY_OF_MONTH, "last")
        assert field.value == RelativeRules((LastDay(),))
        assert field.is_relative
        assert field.candidates == ()

    def test_days_before_end(self):
        """Test "-K" in the day-of-month field."""
        field = parse_field(FieldKind.DAY_OF_MONTH, "-3")
        assert field.value == RelativeRules((DaysBeforeEnd(3),))

    @pytest.mark.parametrize("raw", ["-0", "-8"])
    def test_days_before_end_bounds(self, raw):
        """Test that K is limited to 1..7."""
        with pytest.raises(ValueOutOfRange):
            parse_field(FieldKind.DAY_OF_MONTH, raw)

    def test_nth_weekday(self):
        """Test "<ordinal> <weekday>" values."""
        assert parse_field(FieldKind.DAY_OF_MONTH, "2nd Mon").value == RelativeRules(
            (NthWeekday(2, 1),)
        )
        assert parse_field(FieldKind.DAY_OF_MONTH, "last fri").value == RelativeRules(
            (LastWeekday(5),)
        )

    def test_nth_weekday_in_day_of_week(self):
        """Test that ordinal weekdays are accepted by the day-of-week field."""
        field = parse_field(FieldKind.DAY_OF_WEEK, "1st Sun")
        assert field.value == RelativeRules((NthWeekday(1, 0),))

    @pytest.mark.parametrize("raw", ["last", "-3"])
    def test_day_of_week_rejects_month_end_forms(self, raw):
        """Test that the day-of-week field only accepts ordinal weekdays."""
        with pytest.raises(UnsupportedExpressionType):
            parse_field(FieldKind.DAY_OF_WEEK, raw)

    def test_relative_range(self):
        """Test a range between relative endpoints."""
        field = parse_field(FieldKind.DAY_OF_MONTH, "-3-last")
        assert field.value == RelativeRules((DayRange(DaysBeforeEnd(3), LastDay()),))

    def test_mixed_range(self):
        """Test a day-of-month range from an absolute day to a relative one."""
        field = parse_field(FieldKind.DAY_OF_MONTH, "25-last")
        assert field.value == RelativeRules((DayRange(FixedDay(25), LastDay()),))

    def test_mixed_weekday_range_rejected(self):
        """Test that day-of-week ranges cannot mix endpoint kinds."""
        with pytest.raises(InvalidExpressionSyntax):
            parse_field(FieldKind.DAY_OF_WEEK, "Mon-last Fri")

    def test_mixed_day_of_month_list(self):
        """Test that absolute items of a mixed list become fixed-day rules."""
        field = parse_field(FieldKind.DAY_OF_MONTH, "1,last")
        assert field.value == RelativeRules((LastDay(), FixedDay(1)))

    def test_mixed_day_of_week_list(self):
        """Test that absolute weekdays of a mixed list become weekly rules."""
        field = parse_field(FieldKind.DAY_OF_WEEK, "Mon,last Fri")
        assert field.value == RelativeRules((LastWeekday(5), EveryWeekday(1)))
