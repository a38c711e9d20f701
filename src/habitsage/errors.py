"""Error types and result values returned by the habit engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class HabitSageError(Exception):
    """Base class for engine errors."""


class ValidationError(HabitSageError):
    """Caller-supplied input was rejected before anything was stored."""

    def __init__(self, field_name: str, message: str):
        super().__init__(f"{field_name}: {message}")
        self.field = field_name
        self.message = message


class InvariantViolation(HabitSageError):
    """Ledger state that the engine itself should never produce."""

    def __init__(self, habit_id: str, day: str, message: str):
        super().__init__(f"habit {habit_id} on {day}: {message}")
        self.habit_id = habit_id
        self.day = day


class HabitNotFoundError(HabitSageError):
    """Raised when a habit id is not present in the tracker."""

    def __init__(self, habit_id: str):
        super().__init__(f"Habit {habit_id!r} not found")
        self.habit_id = habit_id


@dataclass(frozen=True, slots=True)
class Issue:
    """A single validation problem, suitable for inline UI feedback."""

    field: str
    message: str

    @classmethod
    def from_error(cls, error: HabitSageError) -> "Issue":
        if isinstance(error, ValidationError):
            return cls(field=error.field, message=error.message)
        if isinstance(error, HabitNotFoundError):
            return cls(field="habit_id", message=str(error))
        return cls(field="habit", message=str(error))


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Outcome of a tracker operation.

    ``noop`` marks calls that were accepted but changed nothing (future dates,
    repeated recalculation, undo without a snapshot). ``clamped`` marks input
    that was adjusted to a sane default instead of being rejected.
    ``needs_value`` asks the caller to collect a number (measurable toggle).
    """

    value: Optional[T] = None
    issues: tuple[Issue, ...] = field(default_factory=tuple)
    noop: bool = False
    clamped: bool = False
    needs_value: bool = False

    @property
    def ok(self) -> bool:
        return not self.issues

    @classmethod
    def success(
        cls, value: T, *, noop: bool = False, clamped: bool = False, needs_value: bool = False
    ) -> "Result[T]":
        return cls(value=value, noop=noop, clamped=clamped, needs_value=needs_value)

    @classmethod
    def failure(cls, *issues: Issue, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value, issues=tuple(issues))


__all__ = [
    "HabitNotFoundError",
    "HabitSageError",
    "InvariantViolation",
    "Issue",
    "Result",
    "ValidationError",
]
