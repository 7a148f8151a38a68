# Rev 0.2.0
"""Log date resolution with the day-change threshold (late-night work counts for the previous day)."""
from __future__ import annotations
from datetime import date, datetime, time, timedelta
from typing import Optional

from wlog.models.types import Period


def effective_today(now: datetime, threshold: time) -> date:
    if now.time() < threshold:
        return now.date() - timedelta(days=1)
    return now.date()


def previous_weekday(today: date, weekday: int) -> date:
    """Nearest date strictly before `today` falling on `weekday` (Monday == 0)."""
    delta = (today.weekday() - weekday) % 7 or 7
    return today - timedelta(days=delta)


def resolve_day(today: date, day: int, month: Optional[int] = None, year: Optional[int] = None) -> date:
    """
    Date for a bare day (and optionally month/year), resolved into the past:
    a day after today's day means last month, a month after this month means last year.
    """
    if year is not None and month is None:
        raise ValueError("year requires month")
    if month is None:
        if day > today.day:
            last_month = today.replace(day=1) - timedelta(days=1)
            return last_month.replace(day=day)
        return today.replace(day=day)
    if year is None:
        later = month > today.month or (month == today.month and day > today.day)
        year = today.year - int(later)
    return date(year, month, day)


def today_period(today: date) -> Period:
    return Period(today, today)


def week_period(today: date) -> Period:
    return Period(today - timedelta(days=7), today)


def previous_month_period(today: date) -> Period:
    end = today.replace(day=1) - timedelta(days=1)
    return Period(end.replace(day=1), end)


def period_between(today: date, start: Optional[date] = None, end: Optional[date] = None) -> Period:
    """Open ends default to the previous calendar month's bounds."""
    default = previous_month_period(today)
    return Period(start or default.start, end or default.end)
