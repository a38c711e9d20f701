"""Conversion between ``Habit`` snapshots and plain serializable records.

Records use ISO ``YYYY-MM-DD`` strings for dates and finite floats for
measured values, so any JSON-capable store can hold them.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any

from ..errors import ValidationError
from .frequency import frequency_from_record, frequency_to_record
from .habit import CompletionValue, Habit, HabitKind, TargetType


def _encode_value(value: CompletionValue) -> Any:
    if isinstance(value, bool):
        return value
    return float(value)


def _decode_value(kind: HabitKind, raw: Any, day: str) -> CompletionValue:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)) and kind is HabitKind.MEASURABLE:
        value = float(raw)
        if not math.isfinite(value):
            raise ValidationError("completions", f"non-finite value on {day}")
        return value
    raise ValidationError("completions", f"unsupported value {raw!r} on {day}")


def _parse_day(raw: Any, field_name: str) -> date:
    if not isinstance(raw, str):
        raise ValidationError(field_name, f"expected ISO date string, got {raw!r}")
    try:
        return date.fromisoformat(raw[:10])
    except ValueError as exc:
        raise ValidationError(field_name, f"invalid date {raw!r}") from exc


def habit_to_record(habit: Habit) -> dict[str, Any]:
    """Serialize a habit into a plain dict."""

    return {
        "id": habit.id,
        "name": habit.name,
        "type": habit.kind.value,
        "createdAt": habit.created_at.isoformat(),
        "frequency": frequency_to_record(habit.frequency),
        "completions": {
            day.isoformat(): _encode_value(value) for day, value in sorted(habit.completions.items())
        },
        "skipped": {day.isoformat(): flag for day, flag in sorted(habit.skipped.items())},
        "strength": habit.strength,
        "lastStrengthUpdate": (
            habit.last_strength_update.isoformat() if habit.last_strength_update else None
        ),
        "strengthBaseline": habit.strength_baseline,
        "unit": habit.unit,
        "targetValue": habit.target_value,
        "targetType": habit.target_type.value,
        "description": habit.description,
        "icon": habit.icon,
        "section": habit.section,
        "tags": list(habit.tags),
    }


def habit_from_record(record: dict[str, Any]) -> Habit:
    """Rebuild a habit from :func:`habit_to_record` output.

    Raises ``ValidationError`` on malformed input so callers can skip the
    record without aborting a whole collection.
    """

    try:
        return _decode_habit(record)
    except (TypeError, ValueError) as exc:
        raise ValidationError("record", f"malformed habit record: {exc}") from exc


def _decode_habit(record: dict[str, Any]) -> Habit:
    if not isinstance(record, dict):
        raise ValidationError("record", "must be a mapping")
    habit_id = record.get("id")
    if not habit_id:
        raise ValidationError("id", "missing habit id")
    try:
        kind = HabitKind(record.get("type", HabitKind.BINARY.value))
        target_type = TargetType(record.get("targetType") or TargetType.MIN.value)
    except ValueError as exc:
        raise ValidationError("type", str(exc)) from exc

    created_at = _parse_day(record.get("createdAt"), "createdAt")
    raw_completions = record.get("completions") or {}
    raw_skipped = record.get("skipped") or {}
    if not isinstance(raw_completions, dict) or not isinstance(raw_skipped, dict):
        raise ValidationError("completions", "completions and skipped must be mappings")
    completions = {
        _parse_day(day, "completions"): _decode_value(kind, value, day)
        for day, value in raw_completions.items()
    }
    skipped = {_parse_day(day, "skipped"): bool(flag) for day, flag in raw_skipped.items()}
    last_update_raw = record.get("lastStrengthUpdate")
    last_update = _parse_day(last_update_raw, "lastStrengthUpdate") if last_update_raw else None

    strength = record.get("strength", 0)
    baseline = record.get("strengthBaseline", strength)
    for name, value in (("strength", strength), ("strengthBaseline", baseline)):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 100:
            raise ValidationError(name, f"must be a number in 0..100, got {value!r}")

    target_value = record.get("targetValue")
    if target_value is not None:
        if not isinstance(target_value, (int, float)) or not math.isfinite(target_value):
            raise ValidationError("targetValue", "must be a finite number")
        target_value = float(target_value)

    return Habit(
        id=str(habit_id),
        name=str(record.get("name", "")),
        kind=kind,
        created_at=created_at,
        frequency=frequency_from_record(record.get("frequency")),
        completions=completions,
        skipped=skipped,
        strength=int(strength),
        last_strength_update=last_update,
        strength_baseline=int(baseline),
        unit=record.get("unit"),
        target_value=target_value,
        target_type=target_type,
        description=str(record.get("description") or ""),
        icon=str(record.get("icon") or ""),
        section=str(record.get("section") or "other"),
        tags=tuple(record.get("tags") or ()),
    )


__all__ = ["habit_from_record", "habit_to_record"]
