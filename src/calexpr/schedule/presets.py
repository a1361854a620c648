"""Predefined schedule expressions.

Usage:
    >>> from calexpr.schedule.presets import DAILY, WEEKDAYS_9AM
    >>> next_run = WEEKDAYS_9AM.compute_next_timeout()

All presets are evaluated in UTC; build your own expression to use another
timezone.
"""

from calexpr.schedule.expression import ScheduleExpression


# =============================================================================
# Standard Intervals
# =============================================================================

# Every year on January 1st at midnight
YEARLY = ScheduleExpression.parse(hour="0", minute="0", day_of_month="1", month="1")
ANNUALLY = YEARLY

# First day of every month at midnight
MONTHLY = ScheduleExpression.parse(hour="0", minute="0", day_of_month="1")

# Every Sunday at midnight
WEEKLY = ScheduleExpression.parse(hour="0", minute="0", day_of_week="Sun")

# Every day at midnight
DAILY = ScheduleExpression.parse(hour="0", minute="0")
MIDNIGHT = DAILY

# Every hour at minute 0
HOURLY = ScheduleExpression.parse(minute="0")

# Every minute
EVERY_MINUTE = ScheduleExpression.parse()

# Every second
EVERY_SECOND = ScheduleExpression.parse(second="*")


# =============================================================================
# Business Schedule Presets
# =============================================================================

# Weekdays (Monday-Friday) at 9 AM
WEEKDAYS_9AM = ScheduleExpression.parse(hour="9", minute="0", day_of_week="Mon-Fri")

# Weekdays (Monday-Friday) at 6 PM
WEEKDAYS_6PM = ScheduleExpression.parse(hour="18", minute="0", day_of_week="Mon-Fri")

# Every 15 minutes during business hours (9 AM - 5 PM, weekdays)
BUSINESS_HOURS_15MIN = ScheduleExpression.parse(
    minute="*/15", hour="9-17", day_of_week="Mon-Fri"
)


# =============================================================================
# Month Boundary Presets
# =============================================================================

# First day of month at 6 AM
FIRST_OF_MONTH = ScheduleExpression.parse(hour="6", minute="0", day_of_month="1")

# Last day of month at midnight
LAST_DAY_OF_MONTH = ScheduleExpression.parse(hour="0", minute="0", day_of_month="last")

# First Monday of month at 9 AM
FIRST_MONDAY = ScheduleExpression.parse(hour="9", minute="0", day_of_month="1st Mon")

# Last Friday of month at 5 PM
LAST_FRIDAY = ScheduleExpression.parse(hour="17", minute="0", day_of_month="last Fri")

# A week before month end at noon
WEEK_BEFORE_MONTH_END = ScheduleExpression.parse(hour="12", minute="0", day_of_month="-7")


# =============================================================================
# Quarter Presets
# =============================================================================

# First day of each quarter at midnight
QUARTERLY = ScheduleExpression.parse(
    hour="0", minute="0", day_of_month="1", month="Jan,Apr,Jul,Oct"
)

# Last day of each quarter at 6 PM
END_OF_QUARTER = ScheduleExpression.parse(
    hour="18", minute="0", day_of_month="last", month="Mar,Jun,Sep,Dec"
)


PRESETS: dict[str, ScheduleExpression] = {
    # Standard
    "yearly": YEARLY,
    "annually": ANNUALLY,
    "monthly": MONTHLY,
    "weekly": WEEKLY,
    "daily": DAILY,
    "midnight": MIDNIGHT,
    "hourly": HOURLY,
    "every_minute": EVERY_MINUTE,
    "every_second": EVERY_SECOND,
    # Business
    "weekdays_9am": WEEKDAYS_9AM,
    "weekdays_6pm": WEEKDAYS_6PM,
    "business_hours_15min": BUSINESS_HOURS_15MIN,
    # Month boundaries
    "first_of_month": FIRST_OF_MONTH,
    "last_day_of_month": LAST_DAY_OF_MONTH,
    "first_monday": FIRST_MONDAY,
    "last_friday": LAST_FRIDAY,
    "week_before_month_end": WEEK_BEFORE_MONTH_END,
    # Quarter
    "quarterly": QUARTERLY,
    "end_of_quarter": END_OF_QUARTER,
}


def get_preset(name: str) -> ScheduleExpression | None:
    """Get a preset schedule expression by name.

    Args:
        name: Preset name (case-insensitive, "-" and "_" interchangeable).

    Returns:
        ScheduleExpression or None if not found.
    """
    return PRESETS.get(name.lower().replace("-", "_"))


def list_presets() -> list[str]:
    """List all available preset names."""
    return list(PRESETS.keys())
