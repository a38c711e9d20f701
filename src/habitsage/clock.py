"""Calendar helpers and the injectable clock used by the engine."""

from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import Iterator, Protocol


class Clock(Protocol):
    """Supplies the current local date."""

    def today(self) -> date:  # pragma: no cover - interface
        ...


class SystemClock:
    """Clock backed by the host's local date."""

    def today(self) -> date:
        return datetime.now().date()


class FixedClock:
    """Clock pinned to a date; tests move it forward explicitly."""

    def __init__(self, current: date):
        self.current = current

    def today(self) -> date:
        return self.current

    def advance(self, days: int = 1) -> date:
        self.current = self.current + timedelta(days=days)
        return self.current


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """Return the first and last day of a month (``month`` is 1-12)."""

    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    last = monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def days_in_month(month: int, year: int) -> list[date]:
    """Return every date of the month in calendar order."""

    first, last = month_bounds(month, year)
    return list(date_range(first, last))


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield each date from ``start`` to ``end`` inclusive."""

    cursor = start
    while cursor <= end:
        yield cursor
        cursor += timedelta(days=1)


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""

    return day - timedelta(days=day.weekday())


__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "date_range",
    "days_in_month",
    "month_bounds",
    "week_start",
]
