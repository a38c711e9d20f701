"""Tests for the SQLModel habit repository and database bootstrap."""

from __future__ import annotations

from datetime import date

import pytest
from sqlmodel import select

from habitsage.config import BaseConfig, TestingConfig
from habitsage.infra.database import bootstrap_database, session_scope
from habitsage.infra.repositories import SQLModelHabitRepository
from habitsage.models import HabitData, HabitKind, HabitRow, NTimesPerWeek
from habitsage.services.tracker import HabitTracker


class TestSQLModelHabitRepository:
    """CRUD over stored habit snapshots."""

    def test_save_and_get(self, session_factory, make_habit):
        repo = SQLModelHabitRepository(session_factory)
        habit = make_habit(frequency=NTimesPerWeek(count=3), done=(date(2025, 1, 2),))

        repo.save(habit)

        assert repo.get_by_id(habit.id) == habit
        assert repo.get_by_id("missing") is None

    def test_save_replaces_existing_row(self, session_factory, make_habit):
        repo = SQLModelHabitRepository(session_factory)
        repo.save(make_habit(name="Read"))
        repo.save(make_habit(name="Read more", done=(date(2025, 1, 5),)))

        habits = repo.list_all()
        assert len(habits) == 1
        assert habits[0].name == "Read more"
        assert habits[0].completions == {date(2025, 1, 5): True}

    def test_list_all_ordered_by_name(self, session_factory, make_habit):
        repo = SQLModelHabitRepository(session_factory)
        repo.save_all(
            [
                make_habit(id="b", name="Walk"),
                make_habit(id="a", name="Stretch", kind=HabitKind.MEASURABLE, target_value=10.0),
            ]
        )
        assert [h.name for h in repo.list_all()] == ["Stretch", "Walk"]

    def test_indexed_columns_follow_payload(self, db_engine, session_factory, make_habit):
        repo = SQLModelHabitRepository(session_factory)
        repo.save(make_habit(id="x", name="Journal", created_at=date(2025, 1, 3)))

        with session_scope(db_engine) as session:
            row = session.exec(select(HabitRow).where(HabitRow.id == "x")).one()
            assert row.name == "Journal"
            assert row.kind == "binary"
            assert row.created_at == date(2025, 1, 3)
            assert row.payload["createdAt"] == "2025-01-03"

    def test_malformed_rows_skipped(self, db_engine, session_factory, make_habit):
        repo = SQLModelHabitRepository(session_factory)
        repo.save(make_habit(id="good"))
        with session_scope(db_engine) as session:
            session.add(
                HabitRow(
                    id="bad",
                    name="Bad",
                    created_at=date(2025, 1, 1),
                    payload={"id": "bad", "createdAt": "garbage"},
                )
            )

        assert [h.id for h in repo.list_all()] == ["good"]
        assert len(repo.list_records()) == 2

    @pytest.mark.parametrize(
        "payload",
        [
            {"frequency": {"type": "every_n_days", "period": 2, "anchor": "not-a-date"}},
            {"frequency": {"type": "by_days_of_week", "days": 5}},
            {"tags": 7},
        ],
    )
    def test_bad_row_does_not_hide_the_rest(self, db_engine, session_factory, make_habit, payload):
        repo = SQLModelHabitRepository(session_factory)
        repo.save(make_habit(id="g", name="Good"))
        with session_scope(db_engine) as session:
            session.add(
                HabitRow(
                    id="b",
                    name="Bad",
                    created_at=date(2025, 1, 1),
                    payload={"id": "b", "name": "Bad", "createdAt": "2025-01-01", **payload},
                )
            )

        assert [h.id for h in repo.list_all()] == ["g"]

    def test_delete(self, session_factory, make_habit):
        repo = SQLModelHabitRepository(session_factory)
        repo.save(make_habit())
        repo.delete("habit-1")
        repo.delete("habit-1")
        assert repo.list_all() == []


class TestBootstrapDatabase:
    """Engine and schema from configuration."""

    def test_bootstrap_in_memory(self, make_habit):
        engine, factory = bootstrap_database(TestingConfig())
        repo = SQLModelHabitRepository(factory)

        repo.save(make_habit(id="walk", name="Walk"))

        assert repo.get_by_id("walk").name == "Walk"
        engine.dispose()

    def test_tracker_round_trip_through_store(self, tmp_path, monkeypatch, clock):
        monkeypatch.setenv("HABITSAGE_DATABASE_URL", f"sqlite:///{tmp_path / 'store.db'}")
        engine, factory = bootstrap_database(BaseConfig())
        repo = SQLModelHabitRepository(factory)

        tracker = HabitTracker(clock=clock)
        habit = tracker.create_habit(HabitData(name="Walk", id="walk")).value
        tracker.toggle(habit.id, date(2025, 1, 31))
        repo.save_all(tracker.habits())

        reloaded = HabitTracker(clock=clock)
        result = reloaded.load(repo.list_records())
        assert result.value == ["walk"]
        assert reloaded.get("walk") == tracker.get("walk")
        engine.dispose()
