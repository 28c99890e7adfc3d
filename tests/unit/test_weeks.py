"""Unit tests for sequential weekday-week arithmetic."""

from datetime import date, datetime

import pytest

from reflector.services.weeks import (
    reflection_month,
    target_week,
    week1_start,
    week_date_range,
    week_of,
    week_start,
)


class TestWeekOneStart:
    """Tests for where week 1 begins."""

    def test_jan1_on_weekday_backs_up_to_monday(self):
        """Test week 1 includes January 1st when it falls on a weekday."""
        # 2026-01-01 is a Thursday
        assert week1_start(2026) == date(2025, 12, 29)

    def test_jan1_on_monday(self):
        """Test week 1 starts on January 1st when it is a Monday."""
        assert week1_start(2024) == date(2024, 1, 1)

    def test_jan1_on_weekend_moves_to_next_monday(self):
        """Test week 1 starts after a weekend January 1st."""
        # 2022-01-01 is a Saturday
        assert week1_start(2022) == date(2022, 1, 3)


class TestWeekOf:
    """Tests for mapping days onto weeks."""

    def test_monday_and_friday_same_week(self):
        """Test Monday through Friday share a week."""
        assert week_of(date(2026, 10, 12)) == (2026, 42)
        assert week_of(date(2026, 10, 16)) == (2026, 42)

    def test_weekend_belongs_to_finished_week(self):
        """Test Saturday and Sunday belong to the week just ended."""
        assert week_of(date(2026, 10, 17)) == (2026, 42)
        assert week_of(date(2026, 10, 18)) == (2026, 42)
        assert week_of(date(2026, 10, 19)) == (2026, 43)

    def test_accepts_datetime(self):
        """Test datetimes are reduced to their date."""
        assert week_of(datetime(2026, 10, 14, 23, 59)) == (2026, 42)

    def test_late_december_rolls_into_next_year(self):
        """Test days on or after next year's week 1 Monday belong to next year."""
        assert week_of(date(2025, 12, 29)) == (2026, 1)
        assert week_of(date(2025, 12, 31)) == (2026, 1)

    def test_weekend_before_first_monday(self):
        """Test a weekend January 1st closes out the previous year."""
        assert week_of(date(2022, 1, 1)) == (2021, 53)
        assert week_of(date(2022, 1, 2)) == (2021, 53)
        assert week_of(date(2022, 1, 3)) == (2022, 1)

    def test_round_trip_with_week_start(self):
        """Test week_start of a computed week lands on its Monday."""
        year, week = week_of(date(2026, 3, 11))
        assert week_start(year, week) == date(2026, 3, 9)


class TestWeekRanges:
    """Tests for week_start and week_date_range."""

    def test_date_range_is_monday_to_friday(self):
        """Test a week's range covers Monday to Friday."""
        assert week_date_range(2026, 42) == (date(2026, 10, 12), date(2026, 10, 16))

    def test_week_zero_rejected(self):
        """Test week numbers start at 1."""
        with pytest.raises(ValueError):
            week_start(2026, 0)


class TestReflectionMonth:
    """Tests for the month a week is grouped under."""

    def test_month_from_monday(self):
        """Test the month comes from the week's Monday."""
        assert reflection_month(2026, 42) == 10

    def test_week_one_starting_in_december_is_january(self):
        """Test week 1 that begins in December is grouped under January."""
        assert reflection_month(2026, 1) == 1

    def test_month_always_in_range(self):
        """Test every week of a year maps to a month between 1 and 12."""
        months = {reflection_month(2026, week) for week in range(1, 53)}
        assert months <= set(range(1, 13))


class TestTargetWeek:
    """Tests for choosing the week to reflect on."""

    def test_saturday_targets_current_week(self):
        """Test the Saturday submission targets the week just finished."""
        assert target_week(datetime(2026, 10, 17, 18, 0)) == (2026, 42)

    def test_weekday_targets_previous_week(self):
        """Test a weekday trigger targets the last full week."""
        assert target_week(datetime(2026, 10, 19, 9, 0)) == (2026, 42)
        assert target_week(datetime(2026, 10, 23, 9, 0)) == (2026, 42)
