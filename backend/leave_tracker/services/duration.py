"""Calendar-date arithmetic for leave requests.

Leave is tracked at whole-day granularity: both endpoints are inclusive, so a
request that starts and ends on the same date counts as one day.
"""

from __future__ import annotations

import calendar
from datetime import date

from leave_tracker.exceptions import InvalidDateRange, PastDateNotAllowed


def count_leave_days(start_date: date, end_date: date) -> int:
    """Return the inclusive number of calendar days between start and end.

    Raises InvalidDateRange when the range is reversed.
    """
    if start_date > end_date:
        raise InvalidDateRange("End date must be on or after start date")
    return (end_date - start_date).days + 1


def validate_leave_dates(start_date: date, end_date: date, today: date | None = None) -> int:
    """Check a new request's dates and return its day count.

    Order matters: a reversed range is reported before a past start date.
    """
    number_of_days = count_leave_days(start_date, end_date)
    if start_date < (today or date.today()):
        raise PastDateNotAllowed("Cannot apply for leave on past dates")
    return number_of_days


def year_bounds(year: int) -> tuple[date, date]:
    """First and last day of a calendar year."""
    return date(year, 1, 1), date(year, 12, 31)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month (month is 1-12)."""
    _, last_day = calendar.monthrange(year, month)
    return date(year, month, 1), date(year, month, last_day)
