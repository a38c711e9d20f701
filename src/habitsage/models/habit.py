"""Habit data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Union

from .frequency import Daily, FrequencyConfig

CompletionValue = Union[bool, float]


class HabitKind(str, Enum):
    BINARY = "binary"
    MEASURABLE = "measurable"


class TargetType(str, Enum):
    """Whether a measurable habit must reach (min) or stay under (max) its target."""

    MIN = "min"
    MAX = "max"


class DayState(str, Enum):
    """The three legal ledger states of a single date."""

    EMPTY = "empty"
    DONE = "done"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class Habit:
    """Immutable snapshot of a tracked habit.

    ``completions`` and ``skipped`` are sparse maps keyed by date. Engine
    functions never mutate them in place; they return a new ``Habit``.
    """

    id: str
    name: str
    kind: HabitKind
    created_at: date
    frequency: FrequencyConfig = field(default_factory=Daily)
    completions: dict[date, CompletionValue] = field(default_factory=dict)
    skipped: dict[date, bool] = field(default_factory=dict)
    strength: int = 0
    last_strength_update: Optional[date] = None
    strength_baseline: int = 0
    unit: Optional[str] = None
    target_value: Optional[float] = None
    target_type: TargetType = TargetType.MIN
    description: str = ""
    icon: str = ""
    section: str = "other"
    tags: tuple[str, ...] = ()

    @property
    def is_measurable(self) -> bool:
        return self.kind is HabitKind.MEASURABLE

    def dated_entries(self) -> list[date]:
        """Every date carrying a completion or skip key, ascending."""

        return sorted(set(self.completions) | set(self.skipped))


@dataclass(slots=True)
class HabitData:
    """Input for creating a habit."""

    name: str
    kind: HabitKind = HabitKind.BINARY
    frequency: FrequencyConfig = field(default_factory=Daily)
    created_at: Optional[date] = None
    id: Optional[str] = None
    unit: Optional[str] = None
    target_value: Optional[float] = None
    target_type: TargetType = TargetType.MIN
    description: str = ""
    icon: str = ""
    section: str = "other"
    tags: tuple[str, ...] = ()


__all__ = ["CompletionValue", "DayState", "Habit", "HabitData", "HabitKind", "TargetType"]
