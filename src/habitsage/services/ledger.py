"""Completion ledger: per-day state queries and transitions.

A date is in exactly one of three states:

* EMPTY   - no key in ``completions`` nor ``skipped``
* DONE    - ``completions[day]`` holds ``True`` (binary) or a number (measurable)
* SKIPPED - ``completions[day] is False`` and ``skipped[day] is True``

Functions here only touch the two maps. Strength recalculation is the
tracker's job so that a batch of ledger changes costs one recalculation.
"""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import date
from typing import Iterable

from ..errors import InvariantViolation, ValidationError
from ..logging_config import get_logger
from ..models.habit import DayState, Habit, HabitKind, TargetType

logger = get_logger("ledger")

# Binary toggle cycle.
_NEXT_STATE = {
    DayState.EMPTY: DayState.DONE,
    DayState.DONE: DayState.SKIPPED,
    DayState.SKIPPED: DayState.EMPTY,
}


def day_state(habit: Habit, day: date) -> DayState:
    """Classify ``day``; ``skipped`` wins over ``completions``."""

    if habit.skipped.get(day) is True:
        return DayState.SKIPPED
    value = habit.completions.get(day)
    if value is None or value is False:
        return DayState.EMPTY
    return DayState.DONE


def is_skipped(habit: Habit, day: date) -> bool:
    return habit.skipped.get(day) is True


def is_completed(habit: Habit, day: date) -> bool:
    """Return whether the habit counts as completed on ``day``.

    Measurable values are compared against the target: ``min`` needs the
    value to reach it, ``max`` needs the value to stay at or under it. With
    no target any positive number counts.
    """

    value = habit.completions.get(day)
    if value is None or value is False or is_skipped(habit, day):
        return False
    if habit.kind is HabitKind.BINARY:
        return value is True
    if value is True:
        return True
    target = habit.target_value
    if target is None:
        return value > 0
    if habit.target_type is TargetType.MIN:
        return value >= target
    return value <= target


def completion_ratio(habit: Habit, day: date) -> int:
    """Proportional credit (0-100) for display.

    ``min`` targets give partial credit below the target; ``max`` targets lose
    credit in proportion to the overshoot.
    """

    value = habit.completions.get(day)
    if value is None or value is False or is_skipped(habit, day):
        return 0
    if value is True:
        return 100
    if habit.kind is HabitKind.BINARY:
        return 0
    target = habit.target_value
    if not target:
        return 100 if value > 0 else 0
    if habit.target_type is TargetType.MIN:
        return int(min(value / target * 100, 100))
    if value <= target:
        return 100
    penalty = (value - target) / target * 100
    return int(max(100 - penalty, 0))


def _with_maps(habit: Habit, completions: dict, skipped: dict) -> Habit:
    return replace(habit, completions=completions, skipped=skipped)


def set_day_state(habit: Habit, day: date, state: DayState) -> Habit:
    """Return a copy of ``habit`` with ``day`` moved to ``state``."""

    completions = dict(habit.completions)
    skipped = dict(habit.skipped)
    if state is DayState.EMPTY:
        completions.pop(day, None)
        skipped.pop(day, None)
    elif state is DayState.DONE:
        completions[day] = True
        skipped.pop(day, None)
    else:
        completions[day] = False
        skipped[day] = True
    return _with_maps(habit, completions, skipped)


def toggle_day(habit: Habit, day: date) -> Habit:
    """Advance a binary habit one step through EMPTY -> DONE -> SKIPPED -> EMPTY."""

    if habit.kind is not HabitKind.BINARY:
        raise ValidationError("kind", "measurable habits take a value, not a toggle")
    current = day_state(habit, day)
    return set_day_state(habit, day, _NEXT_STATE[current])


def record_value(habit: Habit, day: date, value: float) -> Habit:
    """Store a measured value, clearing any skip on that day."""

    if not habit.is_measurable:
        raise ValidationError("kind", "only measurable habits accept values")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("value", "must be a number")
    if not math.isfinite(value):
        raise ValidationError("value", "must be a finite number")
    if value < 0:
        raise ValidationError("value", "must not be negative")
    completions = dict(habit.completions)
    skipped = dict(habit.skipped)
    completions[day] = float(value)
    skipped.pop(day, None)
    return _with_maps(habit, completions, skipped)


def skip_day(habit: Habit, day: date) -> Habit:
    return set_day_state(habit, day, DayState.SKIPPED)


def clear_day(habit: Habit, day: date) -> Habit:
    return set_day_state(habit, day, DayState.EMPTY)


def clear_days(habit: Habit, days: Iterable[date]) -> tuple[Habit, int]:
    """Remove every key on ``days`` in one copy; return the habit and removed-day count."""

    completions = dict(habit.completions)
    skipped = dict(habit.skipped)
    removed = 0
    for day in days:
        had_key = day in completions or day in skipped
        completions.pop(day, None)
        skipped.pop(day, None)
        removed += had_key
    return _with_maps(habit, completions, skipped), removed


def _violations(habit: Habit) -> list[tuple[date, str]]:
    found: list[tuple[date, str]] = []
    for day in habit.dated_entries():
        value = habit.completions.get(day)
        flag = habit.skipped.get(day)
        if day < habit.created_at:
            found.append((day, "entry precedes creation date"))
        elif flag is True and value is not False:
            found.append((day, f"skipped day carries completion {value!r}"))
        elif flag is not None and flag is not True:
            found.append((day, "skip key without a skip"))
        elif value is False and flag is None:
            found.append((day, "non-completion without a skip"))
    return found


def check_invariants(habit: Habit) -> None:
    """Raise ``InvariantViolation`` for the first illegal day state."""

    for day, message in _violations(habit):
        raise InvariantViolation(habit.id, day.isoformat(), message)


def heal(habit: Habit, *, strict: bool = False) -> Habit:
    """Repair illegal day states, treating ``skipped`` as authoritative.

    In strict mode violations raise instead, so they surface during
    development.
    """

    problems = _violations(habit)
    if not problems:
        return habit
    if strict:
        day, message = problems[0]
        raise InvariantViolation(habit.id, day.isoformat(), message)

    completions = dict(habit.completions)
    skipped = dict(habit.skipped)
    for day, message in problems:
        logger.warning(
            "Healing ledger invariant violation",
            extra={"habit_id": habit.id, "day": day.isoformat(), "problem": message},
        )
        if day < habit.created_at:
            completions.pop(day, None)
            skipped.pop(day, None)
        elif skipped.get(day) is True:
            completions[day] = False
        else:
            skipped.pop(day, None)
            if completions.get(day) is False:
                del completions[day]
    return _with_maps(habit, completions, skipped)


__all__ = [
    "check_invariants",
    "clear_day",
    "clear_days",
    "completion_ratio",
    "day_state",
    "heal",
    "is_completed",
    "is_skipped",
    "record_value",
    "set_day_state",
    "skip_day",
    "toggle_day",
]
