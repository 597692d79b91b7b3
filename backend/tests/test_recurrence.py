"""Tests for next-occurrence calculation."""

from datetime import date, datetime, timezone

from app.models.recurring import RecurrencePattern
from app.services.recurrence import calculate_next_scheduled_date


class TestMonthly:
    """MONTHLY recurrence on a fixed day of month."""

    def test_later_this_month(self):
        """Day still ahead in the current month is used."""
        result = calculate_next_scheduled_date(datetime(2026, 3, 10), RecurrencePattern.MONTHLY, day_of_month=15)
        assert result == datetime(2026, 3, 15)

    def test_day_already_passed(self):
        """Day already passed moves to the next month."""
        result = calculate_next_scheduled_date(datetime(2026, 3, 20), RecurrencePattern.MONTHLY, day_of_month=15)
        assert result == datetime(2026, 4, 15)

    def test_same_instant_is_not_next(self):
        """Result is strictly after the input."""
        result = calculate_next_scheduled_date(datetime(2026, 1, 1), RecurrencePattern.MONTHLY, day_of_month=1)
        assert result == datetime(2026, 2, 1)

    def test_later_same_day(self):
        """Later on the occurrence day moves to the next month."""
        result = calculate_next_scheduled_date(datetime(2026, 3, 15, 8, 30), RecurrencePattern.MONTHLY, day_of_month=15)
        assert result == datetime(2026, 4, 15)

    def test_day_31_clamps_to_february(self):
        """Jan 31 with day 31 goes to the last day of February."""
        result = calculate_next_scheduled_date(datetime(2026, 1, 31), RecurrencePattern.MONTHLY, day_of_month=31)
        assert result == datetime(2026, 2, 28)

    def test_day_31_clamps_to_leap_february(self):
        """Leap years clamp to Feb 29."""
        result = calculate_next_scheduled_date(datetime(2028, 1, 31), RecurrencePattern.MONTHLY, day_of_month=31)
        assert result == datetime(2028, 2, 29)

    def test_day_31_in_thirty_day_month(self):
        """Mar 31 with day 31 goes to Apr 30, never rolling into May."""
        result = calculate_next_scheduled_date(datetime(2026, 3, 31), RecurrencePattern.MONTHLY, day_of_month=31)
        assert result == datetime(2026, 4, 30)

    def test_clamped_day_in_current_month(self):
        """A clamped day still ahead in the current month is used."""
        result = calculate_next_scheduled_date(datetime(2026, 2, 10), RecurrencePattern.MONTHLY, day_of_month=30)
        assert result == datetime(2026, 2, 28)

    def test_december_rolls_to_january(self):
        """December rolls into January of the next year."""
        result = calculate_next_scheduled_date(datetime(2026, 12, 20), RecurrencePattern.MONTHLY, day_of_month=5)
        assert result == datetime(2027, 1, 5)

    def test_after_generation_in_february(self):
        """A pass on Feb 1 schedules the day-31 template on Feb 28."""
        result = calculate_next_scheduled_date(datetime(2026, 2, 1), RecurrencePattern.MONTHLY, day_of_month=31)
        assert result == datetime(2026, 2, 28)

    def test_without_day_adds_a_month(self):
        """Missing day_of_month keeps the input's day."""
        result = calculate_next_scheduled_date(datetime(2026, 1, 31), RecurrencePattern.MONTHLY)
        assert result == datetime(2026, 2, 28)

    def test_result_is_midnight(self):
        result = calculate_next_scheduled_date(datetime(2026, 3, 20, 17, 45), RecurrencePattern.MONTHLY, day_of_month=1)
        assert result == datetime(2026, 4, 1, 0, 0)

    def test_plain_date_input(self):
        """Plain dates are read as midnight."""
        result = calculate_next_scheduled_date(date(2026, 1, 1), RecurrencePattern.MONTHLY, day_of_month=31)
        assert result == datetime(2026, 1, 31)

    def test_string_pattern(self):
        result = calculate_next_scheduled_date(datetime(2026, 1, 1), "MONTHLY", day_of_month=10)
        assert result == datetime(2026, 1, 10)

    def test_keeps_timezone(self):
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)
        result = calculate_next_scheduled_date(start, RecurrencePattern.MONTHLY, day_of_month=10)
        assert result == datetime(2026, 1, 10, tzinfo=timezone.utc)
        assert result.tzinfo is timezone.utc


class TestYearly:
    """YEARLY recurrence on a day of year."""

    def test_day_one(self):
        """Day 1 is January 1st of the following year once passed."""
        result = calculate_next_scheduled_date(datetime(2026, 6, 1), RecurrencePattern.YEARLY, day_of_year=1)
        assert result == datetime(2027, 1, 1)

    def test_later_this_year(self):
        """Day 32 is February 1st."""
        result = calculate_next_scheduled_date(datetime(2026, 1, 15), RecurrencePattern.YEARLY, day_of_year=32)
        assert result == datetime(2026, 2, 1)

    def test_day_365_common_year(self):
        result = calculate_next_scheduled_date(datetime(2026, 1, 1), RecurrencePattern.YEARLY, day_of_year=365)
        assert result == datetime(2026, 12, 31)

    def test_day_365_leap_year(self):
        """Leap years shift day 365 to Dec 30."""
        result = calculate_next_scheduled_date(datetime(2028, 1, 1), RecurrencePattern.YEARLY, day_of_year=365)
        assert result == datetime(2028, 12, 30)

    def test_day_366_rolls_over(self):
        """Day 366 of a common year lands on January 1st of the next."""
        result = calculate_next_scheduled_date(datetime(2026, 1, 1), RecurrencePattern.YEARLY, day_of_year=366)
        assert result == datetime(2027, 1, 1)

    def test_passed_uses_next_year(self):
        result = calculate_next_scheduled_date(datetime(2026, 3, 1), RecurrencePattern.YEARLY, day_of_year=32)
        assert result == datetime(2027, 2, 1)

    def test_without_day_adds_a_year(self):
        """Feb 29 without a day clamps to Feb 28 in a common year."""
        result = calculate_next_scheduled_date(datetime(2028, 2, 29), RecurrencePattern.YEARLY)
        assert result == datetime(2029, 2, 28)


class TestOneTime:
    """ONE_TIME and missing patterns do not reschedule."""

    def test_one_time_unchanged(self):
        start = datetime(2026, 5, 5, 12, 0)
        assert calculate_next_scheduled_date(start, RecurrencePattern.ONE_TIME, day_of_month=1) == start

    def test_no_pattern_unchanged(self):
        start = datetime(2026, 5, 5)
        assert calculate_next_scheduled_date(start, None) == start
