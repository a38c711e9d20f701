"""Habit collection service: the single writer over a set of habits.

``HabitTracker`` keeps habits in an id-indexed arena of immutable snapshots.
Every ledger mutation replaces the snapshot and recalculates strength once.
Validation problems come back as ``Result`` values instead of exceptions so
the UI can show inline feedback.
"""

from __future__ import annotations

import math
import threading
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional

from ..clock import Clock, SystemClock, days_in_month, month_bounds
from ..config import BaseConfig
from ..errors import HabitNotFoundError, HabitSageError, Issue, Result, ValidationError
from ..logging_config import get_logger
from ..models.frequency import EveryNDays, FrequencyConfig, validate_frequency
from ..models.habit import Habit, HabitData, HabitKind, TargetType
from ..models.records import habit_from_record, habit_to_record
from . import frequency as frequency_service
from . import ledger
from .habits import STREAK_SCAN_LIMIT, MonthlyStats, best_streak, current_streak, monthly_stats
from .strength import StrengthPoint, calculate_strength_history, ensure_current, recalculate_strength

logger = get_logger("tracker")

DEFAULT_UNDO_ACTION_LIMIT = 5

_UPDATABLE_FIELDS = {
    "name",
    "description",
    "icon",
    "section",
    "tags",
    "frequency",
    "unit",
    "target_value",
    "target_type",
}
# Changing these alters past signals, so the strength cache must be refolded.
_SCORING_FIELDS = {"frequency", "target_value", "target_type"}


@dataclass(slots=True)
class ClearSnapshot:
    """Pre-clear copy of a habit kept for ``undo_clear_all``."""

    habit: Habit
    month: int
    year: int
    actions_since: int = 0


def _validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name", "must not be empty")
    return name.strip()


def _validate_target(target_value: Any) -> Optional[float]:
    if target_value is None:
        return None
    if isinstance(target_value, bool) or not isinstance(target_value, (int, float)):
        raise ValidationError("target_value", "must be a number")
    if not math.isfinite(target_value) or target_value <= 0:
        raise ValidationError("target_value", "must be a finite number greater than zero")
    return float(target_value)


def _coerce_kind(raw: Any) -> HabitKind:
    try:
        return HabitKind(raw)
    except ValueError as exc:
        raise ValidationError("kind", "must be 'binary' or 'measurable'") from exc


def _coerce_target_type(raw: Any) -> TargetType:
    try:
        return TargetType(raw)
    except ValueError as exc:
        raise ValidationError("target_type", "must be 'min' or 'max'") from exc


def _anchor_frequency(config: FrequencyConfig, created_at: date) -> FrequencyConfig:
    if isinstance(config, EveryNDays) and config.anchor is None:
        return replace(config, anchor=created_at)
    return config


class HabitTracker:
    """In-memory habit collection with undo for month-wide clears."""

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        undo_action_limit: int = DEFAULT_UNDO_ACTION_LIMIT,
        streak_scan_limit: int = STREAK_SCAN_LIMIT,
        strict_invariants: bool = False,
        id_factory: Callable[[], str] | None = None,
    ):
        self.clock = clock or SystemClock()
        self.undo_action_limit = undo_action_limit
        self.streak_scan_limit = streak_scan_limit
        self.strict_invariants = strict_invariants
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._habits: dict[str, Habit] = {}
        self._snapshots: dict[str, ClearSnapshot] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._snapshots_guard = threading.Lock()

    @classmethod
    def from_config(cls, config: BaseConfig, *, clock: Clock | None = None) -> "HabitTracker":
        return cls(
            clock=clock,
            undo_action_limit=config.UNDO_ACTION_LIMIT,
            streak_scan_limit=config.STREAK_SCAN_LIMIT,
            strict_invariants=config.STRICT_INVARIANTS,
        )

    # ------------------------------------------------------------------ helpers

    def today(self) -> date:
        return self.clock.today()

    def _lock_for(self, habit_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(habit_id)
            if lock is None:
                lock = self._locks[habit_id] = threading.RLock()
            return lock

    def _current(self, habit_id: str) -> Habit:
        """Fetch a habit, healing its ledger and running the new-day catch-up."""

        habit = self._habits.get(habit_id)
        if habit is None:
            raise HabitNotFoundError(habit_id)
        today = self.today()
        healed = ledger.heal(habit, strict=self.strict_invariants)
        if healed is not habit:
            healed = recalculate_strength(healed, healed.created_at, today=today)
        else:
            healed = ensure_current(habit, today=today)
        if healed is not habit:
            self._habits[habit_id] = healed
        return healed

    def _register_mutation(self, *, exclude: Optional[str] = None) -> None:
        """Age pending undo snapshots; stale ones are dropped."""

        with self._snapshots_guard:
            for habit_id in list(self._snapshots):
                if habit_id == exclude:
                    continue
                snapshot = self._snapshots[habit_id]
                snapshot.actions_since += 1
                if snapshot.actions_since >= self.undo_action_limit:
                    del self._snapshots[habit_id]
                    logger.debug("Undo snapshot expired", extra={"habit_id": habit_id})

    def _pop_snapshot(self, habit_id: str) -> Optional[ClearSnapshot]:
        with self._snapshots_guard:
            return self._snapshots.pop(habit_id, None)

    def _mutate(
        self, habit_id: str, day: date, action: str, transition: Callable[[Habit], Habit]
    ) -> Result[Habit]:
        try:
            with self._lock_for(habit_id):
                habit = self._current(habit_id)
                today = self.today()
                if day > today:
                    logger.debug(
                        "Ignoring %s on a future date",
                        action,
                        extra={"habit_id": habit_id, "day": day.isoformat()},
                    )
                    return Result.success(habit, noop=True)
                if day < habit.created_at:
                    raise ValidationError("date", "cannot record before the habit was created")
                updated = recalculate_strength(transition(habit), day, today=today)
                self._habits[habit_id] = updated
        except (ValidationError, HabitNotFoundError) as exc:
            logger.info(
                "Rejected %s",
                action,
                extra={"habit_id": habit_id, "day": day.isoformat(), "reason": str(exc)},
            )
            return Result.failure(Issue.from_error(exc))

        self._register_mutation()
        logger.info(
            "Habit %s",
            action,
            extra={
                "habit_id": habit_id,
                "day": day.isoformat(),
                "state": ledger.day_state(updated, day).value,
                "strength": updated.strength,
            },
        )
        return Result.success(updated)

    # ---------------------------------------------------------------- lifecycle

    def create_habit(self, data: HabitData) -> Result[Habit]:
        """Validate ``data`` and add a new habit with zero strength."""

        today = self.today()
        try:
            name = _validate_name(data.name)
            frequency, clamped = validate_frequency(data.frequency)
            created_at = data.created_at or today
            if not isinstance(created_at, date) or isinstance(created_at, datetime):
                raise ValidationError("created_at", "must be a calendar date")
            if created_at > today:
                raise ValidationError("created_at", "cannot be in the future")
            habit_id = data.id or self._id_factory()
            if habit_id in self._habits:
                raise ValidationError("id", f"habit {habit_id!r} already exists")
            kind = _coerce_kind(data.kind)
            target_type = _coerce_target_type(data.target_type)
            if kind is HabitKind.MEASURABLE:
                target_value = _validate_target(data.target_value)
                unit = data.unit
            else:
                target_value = None
                unit = None
        except ValidationError as exc:
            logger.info("Rejected habit creation", extra={"reason": str(exc)})
            return Result.failure(Issue.from_error(exc))

        habit = Habit(
            id=habit_id,
            name=name,
            kind=kind,
            created_at=created_at,
            frequency=_anchor_frequency(frequency, created_at),
            strength=0,
            last_strength_update=created_at,
            strength_baseline=0,
            unit=unit,
            target_value=target_value,
            target_type=target_type,
            description=data.description,
            icon=data.icon,
            section=data.section,
            tags=tuple(data.tags),
        )
        # Created in the past: fold the empty days up to today.
        habit = ensure_current(habit, today=today)
        self._habits[habit.id] = habit
        self._register_mutation()
        logger.info(
            "Added habit",
            extra={"habit_id": habit.id, "kind": habit.kind.value, "clamped": clamped},
        )
        return Result.success(habit, clamped=clamped)

    def update_habit(self, habit_id: str, **changes: Any) -> Result[Habit]:
        """Edit descriptive or scoring settings of a habit."""

        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            return Result.failure(
                Issue(field=sorted(unknown)[0], message="field cannot be updated")
            )
        clamped = False
        try:
            with self._lock_for(habit_id):
                habit = self._current(habit_id)
                if "name" in changes:
                    changes["name"] = _validate_name(changes["name"])
                if "frequency" in changes:
                    frequency, clamped = validate_frequency(changes["frequency"])
                    changes["frequency"] = _anchor_frequency(frequency, habit.created_at)
                if "target_value" in changes:
                    changes["target_value"] = _validate_target(changes["target_value"])
                if "target_type" in changes:
                    changes["target_type"] = _coerce_target_type(changes["target_type"])
                if "tags" in changes:
                    changes["tags"] = tuple(changes["tags"])
                updated = replace(habit, **changes)
                if _SCORING_FIELDS & set(changes):
                    updated = recalculate_strength(updated, updated.created_at, today=self.today())
                self._habits[habit_id] = updated
        except (ValidationError, HabitNotFoundError) as exc:
            return Result.failure(Issue.from_error(exc))

        self._register_mutation()
        logger.info("Updated habit", extra={"habit_id": habit_id, "fields": sorted(changes)})
        return Result.success(updated, clamped=clamped)

    def delete_habit(self, habit_id: str) -> Result[str]:
        """Remove a habit and everything kept for it."""

        with self._lock_for(habit_id):
            if self._habits.pop(habit_id, None) is None:
                return Result.failure(Issue.from_error(HabitNotFoundError(habit_id)))
            self._pop_snapshot(habit_id)
        with self._locks_guard:
            self._locks.pop(habit_id, None)
        self._register_mutation()
        logger.info("Deleted habit", extra={"habit_id": habit_id})
        return Result.success(habit_id)

    # ------------------------------------------------------------------ ledger

    def toggle(self, habit_id: str, day: date) -> Result[Habit]:
        """Cycle a binary day EMPTY -> DONE -> SKIPPED -> EMPTY.

        Measurable habits are not changed; the result carries
        ``needs_value=True`` so the caller can prompt for a number and follow
        up with :meth:`set_value` or :meth:`skip`.
        """

        habit = self._habits.get(habit_id)
        if habit is not None and habit.is_measurable:
            return Result.success(self._current(habit_id), noop=True, needs_value=True)
        return self._mutate(habit_id, day, "toggled", lambda h: ledger.toggle_day(h, day))

    def set_value(self, habit_id: str, day: date, value: float) -> Result[Habit]:
        return self._mutate(
            habit_id, day, "value recorded", lambda h: ledger.record_value(h, day, value)
        )

    def skip(self, habit_id: str, day: date) -> Result[Habit]:
        return self._mutate(habit_id, day, "skipped", lambda h: ledger.skip_day(h, day))

    def clear(self, habit_id: str, day: date) -> Result[Habit]:
        return self._mutate(habit_id, day, "cleared", lambda h: ledger.clear_day(h, day))

    def clear_all_for_month(self, habit_id: str, month: int, year: int) -> Result[Habit]:
        """Remove every entry in the month with a single recalculation.

        The pre-clear habit is kept for :meth:`undo_clear_all` until
        ``undo_action_limit`` further mutations happen.
        """

        try:
            first, _ = month_bounds(month, year)
        except ValueError as exc:
            return Result.failure(Issue(field="month", message=str(exc)))
        try:
            with self._lock_for(habit_id):
                habit = self._current(habit_id)
                cleared, removed = ledger.clear_days(habit, days_in_month(month, year))
                if not removed:
                    # Nothing to undo; an earlier snapshot stays pending.
                    return Result.success(habit, noop=True)
                cleared = recalculate_strength(cleared, first, today=self.today())
                with self._snapshots_guard:
                    self._snapshots[habit_id] = ClearSnapshot(habit=habit, month=month, year=year)
                self._habits[habit_id] = cleared
        except HabitNotFoundError as exc:
            return Result.failure(Issue.from_error(exc))

        self._register_mutation(exclude=habit_id)
        logger.info(
            "Cleared month",
            extra={"habit_id": habit_id, "month": month, "year": year, "removed": removed},
        )
        return Result.success(cleared)

    def undo_clear_all(self, habit_id: str) -> Result[Habit]:
        """Restore the habit as it was before the last month-wide clear."""

        try:
            with self._lock_for(habit_id):
                snapshot = self._pop_snapshot(habit_id)
                if snapshot is None:
                    return Result.success(self._current(habit_id), noop=True)
                self._habits[habit_id] = snapshot.habit
                restored = self._current(habit_id)
        except HabitNotFoundError as exc:
            return Result.failure(Issue.from_error(exc))

        logger.info(
            "Undid month clear",
            extra={"habit_id": habit_id, "month": snapshot.month, "year": snapshot.year},
        )
        return Result.success(restored)

    def has_pending_undo(self, habit_id: str) -> bool:
        with self._snapshots_guard:
            return habit_id in self._snapshots

    # ------------------------------------------------------------------- reads

    def get(self, habit_id: str) -> Habit:
        with self._lock_for(habit_id):
            return self._current(habit_id)

    def habits(self) -> list[Habit]:
        return [self.get(habit_id) for habit_id in list(self._habits)]

    def catch_up(self) -> Result[list[str]]:
        """Run the new-day recalculation over the whole collection.

        A habit that fails (e.g. a strict-mode invariant violation) is logged
        and reported; the others are still processed.
        """

        updated: list[str] = []
        issues: list[Issue] = []
        today = self.today()
        for habit_id in list(self._habits):
            before = self._habits[habit_id]
            try:
                with self._lock_for(habit_id):
                    after = self._current(habit_id)
            except HabitSageError as exc:
                logger.exception("Catch-up failed", extra={"habit_id": habit_id})
                issues.append(Issue(field=habit_id, message=str(exc)))
                continue
            if after is not before:
                updated.append(habit_id)
        logger.info(
            "New-day strength catch-up",
            extra={"date": today.isoformat(), "updated": len(updated), "failed": len(issues)},
        )
        return Result(value=updated, issues=tuple(issues))

    @staticmethod
    def monthly_goal(frequency: FrequencyConfig, month: int, year: int) -> int:
        return frequency_service.monthly_goal(frequency, month, year)

    @staticmethod
    def is_due_on(frequency: FrequencyConfig, day: date) -> bool:
        return frequency_service.is_due_on(frequency, day)

    def current_streak(self, habit_id: str) -> int:
        return current_streak(self.get(habit_id), self.today(), limit=self.streak_scan_limit)

    def best_streak(self, habit_id: str) -> int:
        return best_streak(self.get(habit_id), self.today(), limit=self.streak_scan_limit)

    def strength_history(self, habit_id: str) -> list[StrengthPoint]:
        """Per-day strength series, recomputed on every call."""

        return calculate_strength_history(self.get(habit_id), today=self.today())

    def monthly_stats(self, habit_id: str, month: int, year: int) -> MonthlyStats:
        return monthly_stats(self.get(habit_id), month, year, today=self.today())

    # ------------------------------------------------------------- persistence

    def load(self, records: Iterable[dict[str, Any]]) -> Result[list[str]]:
        """Import plain records; malformed ones are skipped and reported."""

        loaded: list[str] = []
        issues: list[Issue] = []
        today = self.today()
        for index, record in enumerate(records):
            try:
                habit = habit_from_record(record)
                frequency, _ = validate_frequency(habit.frequency)
                habit = replace(habit, frequency=_anchor_frequency(frequency, habit.created_at))
                healed = ledger.heal(habit, strict=self.strict_invariants)
                if healed is not habit:
                    habit = recalculate_strength(healed, healed.created_at, today=today)
            except (HabitSageError, TypeError, ValueError) as exc:
                logger.warning(
                    "Skipping malformed habit record",
                    extra={"index": index, "reason": str(exc)},
                )
                issues.append(Issue(field=f"records[{index}]", message=str(exc)))
                continue
            self._habits[habit.id] = habit
            loaded.append(habit.id)
        logger.info("Loaded habits", extra={"loaded": len(loaded), "skipped": len(issues)})
        return Result(value=loaded, issues=tuple(issues))

    def dump(self) -> list[dict[str, Any]]:
        return [habit_to_record(habit) for habit in self._habits.values()]


__all__ = ["ClearSnapshot", "DEFAULT_UNDO_ACTION_LIMIT", "HabitTracker"]
