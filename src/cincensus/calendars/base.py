"""
CIN Census Working-Day Calendar

Provides the protocol and base implementation for the calendars used in
working-day threshold calculations.

The census guidance counts working days (Monday to Friday). The overdue
checks convert a working-day allowance into calendar days, step back from
the census end, and roll a non-working landing date back to the preceding
working day.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Protocol, runtime_checkable


@runtime_checkable
class WorkingDayCalendar(Protocol):
    """
    Protocol for working-day calendars.

    Implementations must say whether a date is a working day and find the
    working day on or before a date.
    """

    def is_working_day(self, d: date) -> bool:
        """
        Check if a date is a working day.

        Args:
            d: Date to check

        Returns:
            True if the date is a working day, False otherwise
        """
        ...

    def is_weekend(self, d: date) -> bool:
        """Check if a date falls on a weekend."""
        ...

    def previous_working_day(self, d: date) -> date:
        """
        Get the working day on or before a date.

        Args:
            d: Starting date

        Returns:
            `d` itself if it is a working day, else the closest earlier one
        """
        ...


@dataclass
class BaseCalendar(ABC):
    """
    Abstract base class for working-day calendars.

    Provides common functionality for threshold calculations.
    Subclasses must implement `is_holiday()`.
    """

    # Weekend days (0=Monday, 6=Sunday)
    weekend_days: frozenset[int] = field(default_factory=lambda: frozenset({5, 6}))

    @abstractmethod
    def is_holiday(self, d: date) -> bool:
        """Check if a date is a holiday."""
        ...

    def is_weekend(self, d: date) -> bool:
        """Check if a date is a weekend day."""
        return d.weekday() in self.weekend_days

    def is_working_day(self, d: date) -> bool:
        """A working day is a weekday that is not a holiday."""
        if self.is_weekend(d):
            return False
        return not self.is_holiday(d)

    def previous_working_day(self, d: date) -> date:
        """Get the working day on or before a date."""
        current = d
        while not self.is_working_day(current):
            current -= timedelta(days=1)
        return current

    def working_day_threshold(self, end: date, working_days: int) -> date:
        """
        Date `working_days` working days before `end`.

        The allowance is converted to calendar days assuming whole weeks
        (five working days plus a two-day weekend), so 45 working days is
        63 calendar days and 15 is 21. A landing date that is not a working
        day rolls back to the preceding working day.

        Args:
            end: Reference date (usually the census end)
            working_days: Working-day allowance

        Returns:
            The threshold date
        """
        calendar_days = working_days + 2 * (working_days // 5)
        return self.previous_working_day(end - timedelta(days=calendar_days))


@dataclass
class WeekendCalendar(BaseCalendar):
    """
    A calendar with no holidays.

    Only weekends are non-working days. This is the census default.
    """

    def is_holiday(self, d: date) -> bool:
        """No holidays in this calendar."""
        return False


@dataclass
class FixedHolidayCalendar(BaseCalendar):
    """
    A calendar with a fixed set of holiday dates.

    Used when a run's configuration supplies local non-working days.
    """

    holidays: frozenset[date] = field(default_factory=frozenset)

    def is_holiday(self, d: date) -> bool:
        """Check if date is in the fixed holiday set."""
        return d in self.holidays

    @classmethod
    def from_dates(cls, *dates: date) -> FixedHolidayCalendar:
        """Create a calendar from a list of holiday dates."""
        return cls(holidays=frozenset(dates))


def calendar_for(holidays: frozenset[date] = frozenset()) -> BaseCalendar:
    """Weekend-only calendar, or a fixed-holiday calendar when holidays are given."""
    if holidays:
        return FixedHolidayCalendar(holidays=frozenset(holidays))
    return WeekendCalendar()
