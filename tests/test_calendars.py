"""
Tests for working-day calendars and census thresholds.
"""
from datetime import date

import pytest

from cincensus.calendars import (
    FixedHolidayCalendar,
    WeekendCalendar,
    WorkingDayCalendar,
    calendar_for,
)
from cincensus.engine import RuleContext

from tests.conftest import make_config, make_snapshot


@pytest.fixture
def calendar():
    return WeekendCalendar()


class TestWeekendCalendar:
    """Weekend-only calendar."""

    def test_satisfies_protocol(self, calendar) -> None:
        assert isinstance(calendar, WorkingDayCalendar)

    def test_weekends(self, calendar) -> None:
        assert calendar.is_weekend(date(2022, 3, 26))      # Saturday
        assert calendar.is_weekend(date(2022, 3, 27))      # Sunday
        assert not calendar.is_weekend(date(2022, 3, 31))  # Thursday
        assert calendar.is_working_day(date(2022, 3, 31))

    def test_previous_working_day(self, calendar) -> None:
        assert calendar.previous_working_day(date(2022, 3, 27)) == date(2022, 3, 25)
        assert calendar.previous_working_day(date(2022, 3, 31)) == date(2022, 3, 31)


class TestWorkingDayThreshold:
    """Working-day allowances back from the census end."""

    def test_45_days_from_thursday(self, calendar) -> None:
        threshold = calendar.working_day_threshold(date(2022, 3, 31), 45)
        assert threshold == date(2022, 1, 27)
        assert threshold.weekday() < 5

    def test_15_days_from_thursday(self, calendar) -> None:
        assert calendar.working_day_threshold(date(2022, 3, 31), 15) == date(2022, 3, 10)

    def test_weekend_landing_rolls_back_to_friday(self, calendar) -> None:
        # 2024-03-31 less 63 days is Sunday 2024-01-28
        threshold = calendar.working_day_threshold(date(2024, 3, 31), 45)
        assert threshold == date(2024, 1, 26)
        assert threshold.weekday() == 4

    @pytest.mark.parametrize("year", range(2015, 2031))
    def test_threshold_is_always_a_weekday(self, calendar, year) -> None:
        for days in (15, 45):
            assert calendar.working_day_threshold(date(year, 3, 31), days).weekday() < 5


class TestFixedHolidayCalendar:
    """Configured holidays."""

    def test_holiday_is_not_a_working_day(self) -> None:
        calendar = FixedHolidayCalendar.from_dates(date(2022, 1, 27))
        assert calendar.is_holiday(date(2022, 1, 27))
        assert not calendar.is_working_day(date(2022, 1, 27))
        assert calendar.working_day_threshold(date(2022, 3, 31), 45) == date(2022, 1, 26)

    def test_calendar_for(self) -> None:
        assert isinstance(calendar_for(), WeekendCalendar)
        assert isinstance(calendar_for(frozenset({date(2022, 1, 3)})), FixedHolidayCalendar)


class TestRuleContextThresholds:
    """Thresholds derived for rule evaluation."""

    def test_default_thresholds(self) -> None:
        context = RuleContext.build(make_snapshot(), make_config(2022))
        assert context.assessment_threshold == date(2022, 1, 27)
        assert context.enquiry_threshold == date(2022, 3, 10)
        # The day before 2021-04-01 is Wednesday 2021-03-31
        assert context.previous_working_day == date(2021, 3, 31)

    def test_configured_allowances(self) -> None:
        config = make_config(2022, assessment_working_days=40, holidays=frozenset({date(2022, 3, 10)}))
        context = RuleContext.build(make_snapshot(), config)
        # 40 working days = 56 calendar days -> 2022-02-03 (Thursday)
        assert context.assessment_threshold == date(2022, 2, 3)
        assert context.enquiry_threshold == date(2022, 3, 9)
