# tests/test_log_dates.py
from __future__ import annotations

from datetime import date, datetime, time

import pytest

from wlog.models.types import Period
from wlog.services.log_dates import (
    effective_today,
    period_between,
    previous_month_period,
    previous_weekday,
    resolve_day,
    today_period,
    week_period,
)

TODAY = date(2024, 3, 5)   # Tuesday


@pytest.mark.parametrize(
    "now,expected",
    [
        (datetime(2024, 3, 5, 3, 59), date(2024, 3, 4)),
        (datetime(2024, 3, 5, 4, 0), date(2024, 3, 5)),
        (datetime(2024, 3, 1, 1, 0), date(2024, 2, 29)),
    ],
)
def test_effective_today(now, expected):
    assert effective_today(now, time(4, 0)) == expected


def test_previous_weekday_is_strictly_before():
    assert previous_weekday(TODAY, 1) == date(2024, 2, 27)
    assert previous_weekday(TODAY, 0) == date(2024, 3, 4)
    assert previous_weekday(TODAY, 4) == date(2024, 3, 1)


def test_resolve_day_into_the_past():
    assert resolve_day(TODAY, 3) == date(2024, 3, 3)
    assert resolve_day(TODAY, 20) == date(2024, 2, 20)
    assert resolve_day(TODAY, 10, month=12) == date(2023, 12, 10)
    assert resolve_day(TODAY, 4, month=3) == date(2024, 3, 4)
    assert resolve_day(TODAY, 6, month=3) == date(2023, 3, 6)
    assert resolve_day(TODAY, 1, month=6, year=2020) == date(2020, 6, 1)


def test_resolve_day_year_without_month():
    with pytest.raises(ValueError):
        resolve_day(TODAY, 1, year=2020)


def test_periods():
    assert today_period(TODAY) == Period(TODAY, TODAY)
    assert week_period(TODAY) == Period(date(2024, 2, 27), TODAY)
    assert previous_month_period(TODAY) == Period(date(2024, 2, 1), date(2024, 2, 29))
    assert period_between(TODAY, start=date(2024, 2, 10)) == Period(date(2024, 2, 10), date(2024, 2, 29))


def test_period_rejects_inverted_range():
    with pytest.raises(ValueError):
        Period(date(2024, 2, 2), date(2024, 2, 1))
    assert date(2024, 2, 1) in Period(date(2024, 2, 1), date(2024, 2, 1))
