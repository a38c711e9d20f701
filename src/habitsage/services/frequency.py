"""Frequency evaluation: due dates, monthly goals and quota windows.

Everything here is a pure function of the frequency rule and the calendar; it
never looks at a habit's completion ledger.

Weeks start on Monday (ISO). Month arguments are 1-12.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import assert_never

from ..clock import days_in_month, month_bounds, week_start
from ..models.frequency import (
    ByDaysOfWeek,
    Daily,
    EveryNDays,
    FrequencyConfig,
    NTimesInMDays,
    NTimesPerMonth,
    NTimesPerWeek,
)

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True, slots=True)
class QuotaWindow:
    """Aggregate window a quota frequency is judged over."""

    start: date
    end: date
    quota: int

    def remaining_after(self, day: date) -> int:
        return (self.end - day).days


def _every_n_anchor(config: EveryNDays, day: date) -> date:
    return config.anchor or day.replace(day=1)


def _every_n_due(config: EveryNDays, day: date) -> bool:
    # The cycle starts at its anchor; earlier dates are never due.
    offset = (day - _every_n_anchor(config, day)).days
    return offset >= 0 and offset % config.period == 0


def is_quota_frequency(config: FrequencyConfig) -> bool:
    """True for variants satisfied in aggregate rather than on given dates."""

    match config:
        case Daily() | EveryNDays() | ByDaysOfWeek():
            return False
        case NTimesPerWeek() | NTimesPerMonth() | NTimesInMDays():
            return True
        case _:
            assert_never(config)


def is_due_on(config: FrequencyConfig, day: date) -> bool:
    """Return whether the rule expects an action on ``day``.

    Quota variants are not scheduled on particular dates; every date is
    eligible to count towards the window's quota.
    """

    match config:
        case Daily():
            return True
        case ByDaysOfWeek(days=days):
            return day.weekday() in days
        case EveryNDays():
            return _every_n_due(config, day)
        case NTimesPerWeek() | NTimesPerMonth() | NTimesInMDays():
            return True
        case _:
            assert_never(config)


def _weeks_overlapping(first: date, last: date) -> int:
    return (week_start(last) - week_start(first)).days // 7 + 1


def _prorate(count: int, available: int, length: int) -> int:
    share = (Decimal(count) * available / length).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return min(count, int(share))


def monthly_goal(config: FrequencyConfig, month: int, year: int) -> int:
    """Total completions the rule expects within the given month."""

    first, last = month_bounds(month, year)
    total_days = last.day

    match config:
        case Daily():
            return total_days
        case ByDaysOfWeek(days=days):
            return sum(1 for d in days_in_month(month, year) if d.weekday() in days)
        case NTimesPerWeek(count=count):
            return count * _weeks_overlapping(first, last)
        case NTimesPerMonth(count=count):
            return min(count, total_days)
        case EveryNDays():
            return sum(1 for d in days_in_month(month, year) if _every_n_due(config, d))
        case NTimesInMDays(count=count, period=period):
            whole, partial = divmod(total_days, period)
            return count * whole + _prorate(count, partial, period)
        case _:
            assert_never(config)


def quota_window(config: FrequencyConfig, day: date, created_at: date) -> QuotaWindow | None:
    """Return the quota window containing ``day``, or None for scheduled rules.

    A window that began before ``created_at`` is clipped to the habit's
    lifetime and its quota prorated (rounded up) to the days left.
    """

    match config:
        case Daily() | EveryNDays() | ByDaysOfWeek():
            return None
        case NTimesPerWeek(count=count):
            start = week_start(day)
            end = start + timedelta(days=6)
            quota = count
        case NTimesPerMonth(count=count):
            start, end = month_bounds(day.month, day.year)
            quota = min(count, end.day)
        case NTimesInMDays(count=count, period=period):
            index = (day - created_at).days // period
            start = created_at + timedelta(days=index * period)
            end = start + timedelta(days=period - 1)
            quota = count
        case _:
            assert_never(config)

    if start < created_at:
        length = (end - start).days + 1
        available = (end - created_at).days + 1
        quota = min(quota, -(-quota * available // length))
        start = created_at
    return QuotaWindow(start=start, end=end, quota=quota)


def describe_frequency(config: FrequencyConfig) -> str:
    """Short human-readable label for a rule."""

    match config:
        case Daily():
            return "Every day"
        case EveryNDays(period=period):
            return "Every day" if period == 1 else f"Every {period} days"
        case NTimesPerWeek(count=count):
            return f"{count} {'time' if count == 1 else 'times'} a week"
        case NTimesPerMonth(count=count):
            return f"{count} {'time' if count == 1 else 'times'} a month"
        case NTimesInMDays(count=count, period=period):
            return f"{count} {'time' if count == 1 else 'times'} in {period} days"
        case ByDaysOfWeek(days=days):
            if len(days) == 7:
                return "Every day"
            return ", ".join(WEEKDAY_LABELS[d] for d in sorted(days))
        case _:
            assert_never(config)


__all__ = [
    "QuotaWindow",
    "describe_frequency",
    "is_due_on",
    "is_quota_frequency",
    "monthly_goal",
    "quota_window",
]
