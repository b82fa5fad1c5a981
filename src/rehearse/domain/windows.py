"""
Calendar windows used by the scheduler.

Boundaries are computed in the timezone of the reference instant, so callers
control what "today" means by the tzinfo they pass in.
"""

from datetime import datetime, timedelta

ONE_DAY = timedelta(days=1)
# Week and month windows are closed intervals ending on the last representable tick.
_TICK = timedelta(microseconds=1)


def start_of_day(instant: datetime) -> datetime:
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def day_bounds(instant: datetime) -> tuple[datetime, datetime]:
    """Return the half-open day window [00:00, next 00:00) containing instant."""
    start = start_of_day(instant)
    return start, start + ONE_DAY


def week_bounds(instant: datetime) -> tuple[datetime, datetime]:
    """
    Return the closed week window containing instant.

    Weeks run from Monday 00:00 through Sunday 23:59:59.999999.
    """
    week_start = start_of_day(instant) - timedelta(days=instant.weekday())
    return week_start, week_start + 7 * ONE_DAY - _TICK


def month_bounds(instant: datetime) -> tuple[datetime, datetime]:
    """Return the closed calendar-month window containing instant."""
    month_start = start_of_day(instant).replace(day=1)
    if month_start.month == 12:
        next_month = month_start.replace(year=month_start.year + 1, month=1)
    else:
        next_month = month_start.replace(month=month_start.month + 1)
    return month_start, next_month - _TICK
