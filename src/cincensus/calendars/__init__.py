"""
CIN Census Calendars

Working-day calendars for census threshold calculations.

Provides:
- WorkingDayCalendar protocol for custom implementations
- BaseCalendar with common working-day logic
- WeekendCalendar (Monday to Friday, no holidays): the census default
- FixedHolidayCalendar for locally configured non-working days

Usage:
    from cincensus.calendars import WeekendCalendar

    calendar = WeekendCalendar()
    threshold = calendar.working_day_threshold(date(2022, 3, 31), 45)
"""
from __future__ import annotations

from .base import (
    BaseCalendar,
    FixedHolidayCalendar,
    WeekendCalendar,
    WorkingDayCalendar,
    calendar_for,
)

__all__ = [
    "WorkingDayCalendar",
    "BaseCalendar",
    "WeekendCalendar",
    "FixedHolidayCalendar",
    "calendar_for",
]
