"""Tests for plain-record serialization of habits."""

from __future__ import annotations

from datetime import date

import pytest

from habitsage.errors import ValidationError
from habitsage.models import HabitKind, NTimesInMDays, TargetType
from habitsage.models.records import habit_from_record, habit_to_record


class TestHabitToRecord:
    """Shape of the serialized form."""

    def test_uses_iso_dates_and_camel_case(self, make_habit):
        habit = make_habit(
            frequency=NTimesInMDays(count=2, period=5),
            done=(date(2025, 1, 3),),
            skipped=(date(2025, 1, 4),),
            strength=12,
            strength_baseline=12,
            last_strength_update=date(2025, 1, 4),
            tags=("health",),
        )
        record = habit_to_record(habit)

        assert record["createdAt"] == "2025-01-01"
        assert record["lastStrengthUpdate"] == "2025-01-04"
        assert record["frequency"] == {"type": "n_times_in_m_days", "count": 2, "period": 5}
        assert record["completions"] == {"2025-01-03": True, "2025-01-04": False}
        assert record["skipped"] == {"2025-01-04": True}
        assert record["tags"] == ["health"]
        assert habit_from_record(record) == habit

    def test_measurable_values_are_floats(self, make_habit):
        habit = make_habit(
            kind=HabitKind.MEASURABLE,
            target_value=8.0,
            target_type=TargetType.MAX,
            unit="cups",
            completions={date(2025, 1, 2): 6.5},
        )
        record = habit_to_record(habit)
        assert record["completions"] == {"2025-01-02": 6.5}
        assert record["targetType"] == "max"
        restored = habit_from_record(record)
        assert restored.completions == {date(2025, 1, 2): 6.5}
        assert restored.target_type is TargetType.MAX


class TestHabitFromRecord:
    """Malformed input is rejected with a field name."""

    def _record(self, **overrides):
        record = {
            "id": "h1",
            "name": "Read",
            "type": "binary",
            "createdAt": "2025-01-01",
            "completions": {},
            "skipped": {},
        }
        record.update(overrides)
        return record

    def test_minimal_record_defaults(self):
        habit = habit_from_record(self._record())
        assert habit.strength == 0
        assert habit.last_strength_update is None
        assert habit.section == "other"

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"id": ""}, "id"),
            ({"type": "counter"}, "type"),
            ({"createdAt": 20250101}, "createdAt"),
            ({"completions": ["2025-01-02"]}, "completions"),
            ({"completions": {"2025-01-02": 3}}, "completions"),
            ({"strength": 140}, "strength"),
            ({"strengthBaseline": -1}, "strengthBaseline"),
            ({"targetValue": "lots"}, "targetValue"),
            ({"tags": 7}, "record"),
            ({"frequency": {"type": "every_n_days", "period": 2, "anchor": "soon"}}, "frequency"),
        ],
    )
    def test_rejects_malformed(self, overrides, field):
        with pytest.raises(ValidationError) as excinfo:
            habit_from_record(self._record(**overrides))
        assert excinfo.value.field == field

    def test_non_mapping_rejected(self):
        with pytest.raises(ValidationError):
            habit_from_record(["not", "a", "record"])

    def test_non_finite_measurement_rejected(self):
        record = self._record(type="measurable", completions={"2025-01-02": float("inf")})
        with pytest.raises(ValidationError):
            habit_from_record(record)
