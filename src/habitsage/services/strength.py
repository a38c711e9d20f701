"""Habit strength: a smoothed 0-100 consistency score.

Strength is a day-indexed exponential moving average::

    strength[d] = clamp(round(a * signal(d) + (1 - a) * strength[d - 1]), 0, 100)

with ``a = SMOOTHING`` (0.1, roughly a one-week half-influence) and ``round``
half-up. Once a step moves less than half a point the integer series holds,
so a perfect record levels off at 96 and a lapsed one at 5. All arithmetic
uses ``Decimal`` so both replay paths below produce identical integers.

Two paths share :func:`_fold`:

* :func:`recalculate_strength` resumes from the cached
  ``(last_strength_update, strength_baseline)`` pair when the cache is still
  valid, otherwise refolds from ``created_at``.
* :func:`calculate_strength_history` always replays and never touches the habit.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator, Optional

from ..clock import date_range
from ..logging_config import get_logger
from ..models.habit import Habit
from .frequency import is_due_on, quota_window
from .ledger import is_completed, is_skipped

logger = get_logger("strength")

SMOOTHING = Decimal("0.1")
MIN_STRENGTH = 0
MAX_STRENGTH = 100
COMPLETED_SIGNAL = 100
MISSED_SIGNAL = 0


@dataclass(frozen=True, slots=True)
class StrengthPoint:
    """Strength at the end of ``day``."""

    day: date
    strength: int


def ema_step(previous: int, signal: int) -> int:
    """Apply one smoothing step from ``previous`` towards ``signal``."""

    if signal == previous:
        return previous
    raw = SMOOTHING * signal + (1 - SMOOTHING) * previous
    stepped = int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(MIN_STRENGTH, min(MAX_STRENGTH, stepped))


def daily_signal(habit: Habit, day: date, previous: int) -> int:
    """Return the target value strength moves toward on ``day``.

    Skips and days the rule does not evaluate hold strength where it was.
    Quota rules reward each completion and only record a miss once the
    window's quota can no longer be met; the answer depends on ledger days up
    to ``day`` only.
    """

    if is_skipped(habit, day):
        return previous

    window = quota_window(habit.frequency, day, habit.created_at)
    if window is None:
        if not is_due_on(habit.frequency, day):
            return previous
        return COMPLETED_SIGNAL if is_completed(habit, day) else MISSED_SIGNAL

    if is_completed(habit, day):
        return COMPLETED_SIGNAL
    done = sum(1 for d in date_range(window.start, day) if is_completed(habit, d))
    if done + window.remaining_after(day) < window.quota:
        return MISSED_SIGNAL
    return previous


def _fold(habit: Habit, start: date, end: date, seed: int) -> Iterator[StrengthPoint]:
    strength = seed
    for day in date_range(start, end):
        strength = ema_step(strength, daily_signal(habit, day, strength))
        yield StrengthPoint(day=day, strength=strength)


def _cache_is_valid(habit: Habit, changed_date: Optional[date], today: date) -> bool:
    """The cached baseline folds every day up to ``last_strength_update``.

    Any edit on or before that day, or a cache dated outside
    ``[created_at, today]``, invalidates it.
    """

    cached_on = habit.last_strength_update
    if cached_on is None:
        return False
    if cached_on < habit.created_at or cached_on > today:
        return False
    return changed_date is None or changed_date > cached_on


def recalculate_strength(habit: Habit, changed_date: Optional[date] = None, *, today: date) -> Habit:
    """Bring ``habit.strength`` up to date through ``today``.

    A ``changed_date`` in the future is a no-op. Calling twice for the same
    day with no ledger change returns an equal habit.
    """

    if changed_date is not None and changed_date > today:
        logger.debug(
            "Changed date is in the future; skipping recalculation",
            extra={"habit_id": habit.id, "changed_date": changed_date.isoformat()},
        )
        return habit

    if _cache_is_valid(habit, changed_date, today):
        cached_on = habit.last_strength_update
        if cached_on == today:
            return habit
        start = cached_on + timedelta(days=1)
        seed = habit.strength_baseline
        mode = "incremental"
    else:
        start = habit.created_at
        seed = MIN_STRENGTH
        mode = "full"

    strength = seed
    for point in _fold(habit, start, today, seed):
        strength = point.strength

    logger.debug(
        "Strength recalculated",
        extra={
            "habit_id": habit.id,
            "mode": mode,
            "from": start.isoformat(),
            "to": today.isoformat(),
            "strength": strength,
        },
    )
    return replace(habit, strength=strength, last_strength_update=today, strength_baseline=strength)


def ensure_current(habit: Habit, *, today: date) -> Habit:
    """New-day catch-up: recalculate only when the cache is not dated today."""

    if habit.last_strength_update == today:
        return habit
    return recalculate_strength(habit, today=today)


def calculate_strength_history(habit: Habit, *, today: date) -> list[StrengthPoint]:
    """Replay strength day by day for charting, without mutating ``habit``.

    Starts at the later of ``created_at`` and the earliest dated entry; every
    day before the first entry holds strength at zero, so the final point
    matches a full replay from ``created_at``.
    """

    entries = [d for d in habit.dated_entries() if d <= today]
    start = max(habit.created_at, entries[0]) if entries else habit.created_at
    return list(_fold(habit, start, today, MIN_STRENGTH))


__all__ = [
    "MAX_STRENGTH",
    "MIN_STRENGTH",
    "SMOOTHING",
    "StrengthPoint",
    "calculate_strength_history",
    "daily_signal",
    "ema_step",
    "ensure_current",
    "recalculate_strength",
]
