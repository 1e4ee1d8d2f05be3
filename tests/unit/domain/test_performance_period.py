"""Tests for the payroll period calculation."""

from datetime import date

import pytest

from helpdesk.domain.policies.performance_period import (
    DEFAULT_CUTOFF_DAY,
    clamp_cutoff_day,
    compute_period,
    period_days,
)


def test_before_cutoff_ends_this_month():
    start, end = compute_period(date(2026, 3, 10), 25)
    assert end == date(2026, 3, 25)
    # February 2026 has 28 days
    assert start == date(2026, 2, 26)


def test_after_cutoff_ends_next_month():
    start, end = compute_period(date(2026, 3, 26), 25)
    assert end == date(2026, 4, 25)
    assert start == date(2026, 3, 26)


def test_on_cutoff_day_is_last_day():
    _, end = compute_period(date(2026, 3, 25), 25)
    assert end == date(2026, 3, 25)


def test_december_rolls_into_january():
    start, end = compute_period(date(2026, 12, 28), 25)
    assert end == date(2027, 1, 25)
    assert start == date(2026, 12, 26)


def test_period_days_inclusive():
    days = period_days(date(2026, 3, 1), date(2026, 3, 3))
    assert days == [date(2026, 3, 1), date(2026, 3, 2), date(2026, 3, 3)]


@pytest.mark.parametrize(
    "raw, expected",
    [("10", 10), (" 3 ", 3), ("0", 1), ("31", 28), ("abc", DEFAULT_CUTOFF_DAY), (None, DEFAULT_CUTOFF_DAY)],
)
def test_clamp_cutoff_day(raw, expected):
    assert clamp_cutoff_day(raw) == expected
