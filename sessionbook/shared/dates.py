"""Shared date and time-of-day helpers"""

import calendar
from datetime import date, timedelta
from typing import Optional


def weekday(day: date) -> int:
    """Weekday with Monday=1 ... Sunday=7"""
    return day.isoweekday()


def dates_in_range(start: date, days: int) -> list[date]:
    """`days` consecutive dates beginning with `start`"""
    return [start + timedelta(days=i) for i in range(max(0, days))]


def is_date_in_range(day: date, start: Optional[date] = None, end: Optional[date] = None) -> bool:
    """Inclusive range check; a missing bound is open"""
    if start and day < start:
        return False
    if end and day > end:
        return False
    return True


def in_pause_window(day: date, pause_from: Optional[date], pause_to: Optional[date]) -> bool:
    """A pause window only applies when both ends are set"""
    if not pause_from or not pause_to:
        return False
    return pause_from <= day <= pause_to


def end_of_next_month(day: date) -> date:
    """Last day of the calendar month following `day`'s month"""
    year = day.year + (1 if day.month == 12 else 0)
    month = 1 if day.month == 12 else day.month + 1
    return date(year, month, calendar.monthrange(year, month)[1])


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of `day`'s month"""
    last = calendar.monthrange(day.year, day.month)[1]
    return date(day.year, day.month, 1), date(day.year, day.month, last)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def parse_time(value: str) -> tuple[int, int]:
    hours, minutes = value.split(":")
    return int(hours), int(minutes)


def add_minutes(value: str, minutes: int) -> str:
    """Shift an HH:MM time, wrapping at midnight"""
    hours, mins = parse_time(value)
    total = hours * 60 + mins + minutes
    return f"{(total // 60) % 24:02d}:{total % 60:02d}"
