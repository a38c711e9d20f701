"""Habit statistics: streaks and monthly progress."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from ..clock import date_range, month_bounds
from ..models.habit import Habit
from .frequency import monthly_goal
from .ledger import is_completed, is_skipped

# Backward-scan ceiling for the current streak; a guard against unbounded data.
STREAK_SCAN_LIMIT = 365


def _extends_streak(habit: Habit, day: date) -> bool:
    return is_completed(habit, day) or is_skipped(habit, day)


def current_streak(habit: Habit, today: date, *, limit: int = STREAK_SCAN_LIMIT) -> int:
    """Count consecutive completed-or-skipped days ending on ``today``."""

    streak = 0
    cursor = today
    # Walk backwards from today until a gap.
    while streak < limit and _extends_streak(habit, cursor):
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def best_streak(habit: Habit, today: date, *, limit: int = STREAK_SCAN_LIMIT) -> int:
    """Longest completed-or-skipped run between the first dated entry and ``today``."""

    days = [d for d in habit.dated_entries() if d <= today]
    if not days:
        return 0

    longest = 0
    run = 0
    for day in date_range(days[0], today):
        if _extends_streak(habit, day):
            run += 1
            longest = max(longest, run)
        else:
            run = 0
    # The current streak is capped at ``limit``; keep the pair ordered.
    return max(longest, current_streak(habit, today, limit=limit))


def compute_streaks(habit: Habit, *, today: date, limit: int = STREAK_SCAN_LIMIT) -> tuple[int, int]:
    """Return (current_streak, best_streak)."""

    return current_streak(habit, today, limit=limit), best_streak(habit, today, limit=limit)


@dataclass(slots=True)
class MonthlyStats:
    """Progress of one habit within a calendar month."""

    month: int
    year: int
    completed_days: int
    goal: int
    all_time_completed: int

    @property
    def percentage(self) -> int:
        if self.goal <= 0:
            return 0
        return round(self.completed_days / self.goal * 100)


def monthly_stats(habit: Habit, month: int, year: int, *, today: date) -> MonthlyStats:
    """Summarize completions in a month against the frequency's goal."""

    first, last = month_bounds(month, year)
    end = min(last, today)
    completed = sum(1 for d in date_range(first, end) if is_completed(habit, d))
    all_time = sum(1 for d in habit.completions if d <= today and is_completed(habit, d))
    return MonthlyStats(
        month=month,
        year=year,
        completed_days=completed,
        goal=monthly_goal(habit.frequency, month, year),
        all_time_completed=all_time,
    )


__all__ = [
    "MonthlyStats",
    "STREAK_SCAN_LIMIT",
    "best_streak",
    "compute_streaks",
    "current_streak",
    "monthly_stats",
]
