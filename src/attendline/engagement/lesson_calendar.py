"""
Lesson Calendar

Which calendar dates are lesson days. Used for the date shortcut buttons in
the attendance flow and for resolving status lookup ranges.

All arithmetic is on whole calendar days in UTC.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta

from attendline.config import settings

# Days scanned without finding any lesson day before giving up
SEARCH_LIMIT_DAYS = 60

WEEKDAY_LABELS = ("月", "火", "水", "木", "金", "土", "日")


def today_utc() -> date:
    """Current calendar date in UTC."""
    return datetime.now(UTC).date()


class LessonCalendar:
    """Lesson days defined by a set of weekdays (Monday=0 ... Sunday=6)."""

    def __init__(self, weekdays: Iterable[int] = (5,)):
        self.weekdays = frozenset(weekdays)

    @classmethod
    def from_settings(cls) -> LessonCalendar:
        """Create calendar from application settings."""
        return cls(weekdays=settings.LESSON_WEEKDAYS)

    def is_lesson_day(self, day: date) -> bool:
        return day.weekday() in self.weekdays

    def next_lesson_dates(self, count: int, from_date: date | None = None) -> list[date]:
        """Collect up to `count` lesson days starting at `from_date` (inclusive).

        Args:
            count: Number of lesson days wanted
            from_date: First day to consider (default: today in UTC)

        Returns:
            Ascending list of lesson days. Empty when no lesson day occurs
            within SEARCH_LIMIT_DAYS (e.g. no weekdays configured).
        """
        current = from_date or today_utc()
        found: list[date] = []
        scanned = 0

        while len(found) < count:
            if not found and scanned >= SEARCH_LIMIT_DAYS:
                break
            if self.is_lesson_day(current):
                found.append(current)
            current += timedelta(days=1)
            scanned += 1

        return found

    def lesson_dates_in_range(self, start: date, end: date) -> list[date]:
        """All lesson days in the closed interval [start, end], ascending."""
        days: list[date] = []
        current = start
        while current <= end:
            if self.is_lesson_day(current):
                days.append(current)
            current += timedelta(days=1)
        return days

    def lesson_dates_in_month(self, day: date) -> list[date]:
        """Lesson days of the calendar month containing `day`."""
        first, last = month_bounds(day)
        return self.lesson_dates_in_range(first, last)


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of the month containing `day`."""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def format_lesson_date(day: date) -> str:
    """Short Japanese date label, e.g. '2/14(土)'."""
    return f"{day.month}/{day.day}({WEEKDAY_LABELS[day.weekday()]})"
