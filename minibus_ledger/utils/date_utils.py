"""Date manipulation utilities"""

from datetime import date, datetime

SUNDAY = 6  # date.weekday()

# Monday first, Sunday last, the order fleet reports display weekdays in
WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def to_calendar_date(value: date | datetime) -> date:
    """Reduce a datetime to its calendar date; dates pass through unchanged"""
    if isinstance(value, datetime):
        return value.date()
    return value


def is_sunday(value: date | datetime) -> bool:
    return to_calendar_date(value).weekday() == SUNDAY
