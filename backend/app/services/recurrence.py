"""Next-occurrence calculation for recurring movement templates."""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from app.models.recurring import RecurrencePattern


def _as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _add_months(year: int, month: int, months: int) -> tuple:
    total = year * 12 + (month - 1) + months
    return total // 12, total % 12 + 1


def _clamp_day(year: int, month: int, day: int) -> int:
    last_day = calendar.monthrange(year, month)[1]
    return max(1, min(day, last_day))


def calculate_next_scheduled_date(
    from_: Union[date, datetime],
    pattern: Optional[Union[RecurrencePattern, str]],
    day_of_month: Optional[int] = None,
    day_of_year: Optional[int] = None,
) -> datetime:
    """
    Return the next occurrence strictly after ``from_``.

    MONTHLY tries ``day_of_month`` in the month of ``from_`` and otherwise
    the following month. Days missing from a month (31 in April, 30 in
    February) clamp to that month's last day instead of rolling over.

    YEARLY counts ``day_of_year`` from January 1st, so leap years shift the
    calendar date and day 366 of a common year lands on January 1st of the
    next one.

    ONE_TIME (and a missing pattern) returns ``from_`` unchanged; callers
    treat that as "do not reschedule".

    Occurrences are at midnight in the timezone of ``from_``. Plain dates are
    read as midnight.
    """
    start = _as_datetime(from_)
    if pattern is None:
        return start

    pattern = RecurrencePattern(pattern)
    tz = start.tzinfo

    if pattern == RecurrencePattern.MONTHLY:
        if day_of_month is None:
            year, month = _add_months(start.year, start.month, 1)
            return start.replace(year=year, month=month, day=_clamp_day(year, month, start.day))

        candidate = datetime(
            start.year, start.month, _clamp_day(start.year, start.month, day_of_month), tzinfo=tz
        )
        if candidate > start:
            return candidate

        year, month = _add_months(start.year, start.month, 1)
        return datetime(year, month, _clamp_day(year, month, day_of_month), tzinfo=tz)

    if pattern == RecurrencePattern.YEARLY:
        if day_of_year is None:
            year = start.year + 1
            return start.replace(year=year, day=_clamp_day(year, start.month, start.day))

        offset = timedelta(days=day_of_year - 1)
        candidate = datetime(start.year, 1, 1, tzinfo=tz) + offset
        if candidate > start:
            return candidate
        return datetime(start.year + 1, 1, 1, tzinfo=tz) + offset

    # ONE_TIME
    return start
