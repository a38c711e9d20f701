"""HabitSage habit progress engine package."""

from __future__ import annotations

from .clock import Clock, FixedClock, SystemClock
from .config import BaseConfig, DevConfig
from .errors import (
    HabitNotFoundError,
    HabitSageError,
    InvariantViolation,
    Issue,
    Result,
    ValidationError,
)
from .models import (
    ByDaysOfWeek,
    Daily,
    DayState,
    EveryNDays,
    Habit,
    HabitData,
    HabitKind,
    NTimesInMDays,
    NTimesPerMonth,
    NTimesPerWeek,
    TargetType,
)
from .services.tracker import HabitTracker

__all__ = [
    "BaseConfig",
    "ByDaysOfWeek",
    "Clock",
    "Daily",
    "DayState",
    "DevConfig",
    "EveryNDays",
    "FixedClock",
    "Habit",
    "HabitData",
    "HabitKind",
    "HabitNotFoundError",
    "HabitSageError",
    "HabitTracker",
    "InvariantViolation",
    "Issue",
    "NTimesInMDays",
    "NTimesPerMonth",
    "NTimesPerWeek",
    "Result",
    "SystemClock",
    "TargetType",
    "ValidationError",
]
