"""Payroll period bounded by the monthly cutoff day."""

from __future__ import annotations

import calendar
from datetime import date, timedelta

DEFAULT_CUTOFF_DAY = 25


def clamp_cutoff_day(value: object) -> int:
    """Cutoff must be 1..28 so it exists in every month; junk → default."""
    try:
        day = int(str(value).strip())
    except (TypeError, ValueError):
        return DEFAULT_CUTOFF_DAY
    return max(1, min(28, day))


def compute_period(reference: date, cutoff_day: int) -> tuple[date, date]:
    """Return the inclusive (start, end) dates of the period containing *reference*.

    The period ends on the cutoff day of this month, or of next month once the
    cutoff has passed, and spans as many days as the month before the end.
    """
    cutoff = clamp_cutoff_day(cutoff_day)
    end = date(reference.year, reference.month, cutoff)
    if reference > end:
        year, month = (end.year + 1, 1) if end.month == 12 else (end.year, end.month + 1)
        end = date(year, month, cutoff)

    prev_year, prev_month = (end.year - 1, 12) if end.month == 1 else (end.year, end.month - 1)
    days_in_prev_month = calendar.monthrange(prev_year, prev_month)[1]
    start = end - timedelta(days=days_in_prev_month - 1)
    return start, end


def period_days(start: date, end: date) -> list[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]
