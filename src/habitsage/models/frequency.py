"""Recurrence rules a habit can follow.

The variant set is closed: every consumer dispatches over ``FrequencyConfig``
with a ``match`` statement ending in ``assert_never`` so a new variant fails
type checking until each consumer handles it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Optional, Union, assert_never

from ..errors import ValidationError

MAX_TIMES_PER_WEEK = 7
MAX_TIMES_PER_MONTH = 31


@dataclass(frozen=True, slots=True)
class Daily:
    """Due every calendar day."""


@dataclass(frozen=True, slots=True)
class EveryNDays:
    """Due every ``period`` days counted from ``anchor``."""

    period: int
    anchor: Optional[date] = None


@dataclass(frozen=True, slots=True)
class NTimesPerWeek:
    count: int


@dataclass(frozen=True, slots=True)
class NTimesPerMonth:
    count: int


@dataclass(frozen=True, slots=True)
class NTimesInMDays:
    count: int
    period: int


@dataclass(frozen=True, slots=True)
class ByDaysOfWeek:
    """Due on the listed weekdays (Monday=0 ... Sunday=6)."""

    days: frozenset[int]


FrequencyConfig = Union[Daily, EveryNDays, NTimesPerWeek, NTimesPerMonth, NTimesInMDays, ByDaysOfWeek]

# Variants satisfied in aggregate over a window rather than on individual dates.
QuotaFrequency = Union[NTimesPerWeek, NTimesPerMonth, NTimesInMDays]

_VARIANTS = (Daily, EveryNDays, NTimesPerWeek, NTimesPerMonth, NTimesInMDays, ByDaysOfWeek)


def _require_positive(field_name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field_name, "must be a whole number")
    if value <= 0:
        raise ValidationError(field_name, "must be greater than zero")
    return value


def validate_frequency(config: FrequencyConfig) -> tuple[FrequencyConfig, bool]:
    """Return ``(config, clamped)`` or raise ``ValidationError``.

    Counts above what the window can hold are clamped rather than rejected.
    """

    if not isinstance(config, _VARIANTS):
        raise ValidationError("frequency", "must be one of the supported frequency rules")
    match config:
        case Daily():
            return config, False
        case EveryNDays(period=period):
            _require_positive("period", period)
            return config, False
        case NTimesPerWeek(count=count):
            _require_positive("count", count)
            if count > MAX_TIMES_PER_WEEK:
                return replace(config, count=MAX_TIMES_PER_WEEK), True
            return config, False
        case NTimesPerMonth(count=count):
            _require_positive("count", count)
            if count > MAX_TIMES_PER_MONTH:
                return replace(config, count=MAX_TIMES_PER_MONTH), True
            return config, False
        case NTimesInMDays(count=count, period=period):
            _require_positive("count", count)
            _require_positive("period", period)
            if count > period:
                return replace(config, count=period), True
            return config, False
        case ByDaysOfWeek(days=days):
            if not days:
                raise ValidationError("days", "select at least one weekday")
            if any(isinstance(d, bool) or not isinstance(d, int) or not 0 <= d <= 6 for d in days):
                raise ValidationError("days", "weekdays must be integers 0 (Monday) to 6 (Sunday)")
            return config, False
        case _:
            assert_never(config)


def frequency_to_record(config: FrequencyConfig) -> dict[str, Any]:
    """Plain dict form with a ``type`` tag and ISO date strings."""

    match config:
        case Daily():
            return {"type": "daily"}
        case EveryNDays(period=period, anchor=anchor):
            return {
                "type": "every_n_days",
                "period": period,
                "anchor": anchor.isoformat() if anchor else None,
            }
        case NTimesPerWeek(count=count):
            return {"type": "n_times_week", "count": count}
        case NTimesPerMonth(count=count):
            return {"type": "n_times_month", "count": count}
        case NTimesInMDays(count=count, period=period):
            return {"type": "n_times_in_m_days", "count": count, "period": period}
        case ByDaysOfWeek(days=days):
            return {"type": "by_days_of_week", "days": sorted(days)}
        case _:
            assert_never(config)


def frequency_from_record(record: Optional[dict[str, Any]]) -> FrequencyConfig:
    """Inverse of :func:`frequency_to_record`; a missing record means daily."""

    try:
        return _decode_frequency(record)
    except (TypeError, ValueError) as exc:
        raise ValidationError("frequency", f"malformed frequency record: {exc}") from exc


def _decode_frequency(record: Optional[dict[str, Any]]) -> FrequencyConfig:
    if record is None:
        return Daily()
    if not isinstance(record, dict):
        raise ValidationError("frequency", "must be a mapping")
    kind = record.get("type", "daily")
    if kind == "daily":
        return Daily()
    if kind == "every_n_days":
        anchor = record.get("anchor")
        return EveryNDays(
            period=record.get("period"),
            anchor=date.fromisoformat(anchor) if anchor else None,
        )
    if kind == "n_times_week":
        return NTimesPerWeek(count=record.get("count"))
    if kind == "n_times_month":
        return NTimesPerMonth(count=record.get("count"))
    if kind == "n_times_in_m_days":
        return NTimesInMDays(count=record.get("count"), period=record.get("period"))
    if kind == "by_days_of_week":
        return ByDaysOfWeek(days=frozenset(record.get("days") or ()))
    raise ValidationError("frequency", f"unknown frequency type {kind!r}")


__all__ = [
    "ByDaysOfWeek",
    "Daily",
    "EveryNDays",
    "FrequencyConfig",
    "MAX_TIMES_PER_MONTH",
    "MAX_TIMES_PER_WEEK",
    "NTimesInMDays",
    "NTimesPerMonth",
    "NTimesPerWeek",
    "QuotaFrequency",
    "frequency_from_record",
    "frequency_to_record",
    "validate_frequency",
]
