"""Habit engine data model exports."""

from .frequency import (
    ByDaysOfWeek,
    Daily,
    EveryNDays,
    FrequencyConfig,
    NTimesInMDays,
    NTimesPerMonth,
    NTimesPerWeek,
)
from .habit import DayState, Habit, HabitData, HabitKind, TargetType
from .records import habit_from_record, habit_to_record
from .tables import HabitRow

__all__ = [
    "ByDaysOfWeek",
    "Daily",
    "DayState",
    "EveryNDays",
    "FrequencyConfig",
    "Habit",
    "HabitData",
    "HabitKind",
    "HabitRow",
    "NTimesInMDays",
    "NTimesPerMonth",
    "NTimesPerWeek",
    "TargetType",
    "habit_from_record",
    "habit_to_record",
]
