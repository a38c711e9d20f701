"""Pytest configuration and shared fixtures for HabitSage tests.

This module provides a pinned clock, tracker and habit factories, and database
fixtures for testing the engine, repositories and CLI without touching a real
data directory.
"""

from __future__ import annotations

import itertools
import logging
from datetime import date
from pathlib import Path

import pytest
from sqlmodel import SQLModel, create_engine

from habitsage.clock import FixedClock
from habitsage.infra.database import create_session_factory
from habitsage.logging_config import ROOT_LOGGER_NAME
from habitsage.models import Daily, Habit, HabitData, HabitKind
from habitsage.models import tables  # noqa: F401
from habitsage.services.tracker import HabitTracker

# End of the month used by most scenarios.
TODAY = date(2025, 1, 31)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point configuration at a temp directory and drop ambient overrides."""

    monkeypatch.setenv("HABITSAGE_DATA_DIR", str(tmp_path / "data"))
    for name in (
        "HABITSAGE_DEV_MODE",
        "HABITSAGE_DATABASE_URL",
        "HABITSAGE_UNDO_ACTION_LIMIT",
        "HABITSAGE_STREAK_SCAN_LIMIT",
        "HABITSAGE_STRICT_INVARIANTS",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to ``TODAY``; tests advance it explicitly."""

    return FixedClock(TODAY)


@pytest.fixture
def tracker(clock) -> HabitTracker:
    """Tracker with predictable ids (``h1``, ``h2``...)."""

    counter = itertools.count(1)
    return HabitTracker(clock=clock, id_factory=lambda: f"h{next(counter)}")


@pytest.fixture
def habit_factory(tracker):
    """Factory for creating habits through the tracker.

    Returns:
        Callable: Function that creates a habit and returns the stored snapshot
    """

    def _create_habit(
        name: str = "Exercise",
        *,
        kind: HabitKind = HabitKind.BINARY,
        frequency=None,
        created_at: date = date(2025, 1, 1),
        **kwargs,
    ) -> Habit:
        result = tracker.create_habit(
            HabitData(
                name=name,
                kind=kind,
                frequency=frequency or Daily(),
                created_at=created_at,
                **kwargs,
            )
        )
        assert result.ok, result.issues
        return result.value

    return _create_habit


@pytest.fixture
def make_habit():
    """Build bare ``Habit`` snapshots for pure service tests."""

    def _make_habit(
        *,
        kind: HabitKind = HabitKind.BINARY,
        frequency=None,
        created_at: date = date(2025, 1, 1),
        done: tuple[date, ...] = (),
        skipped: tuple[date, ...] = (),
        completions: dict | None = None,
        skip_map: dict | None = None,
        **kwargs,
    ) -> Habit:
        """Ledger from ``done``/``skipped`` dates, or raw maps when given."""
        built = {day: True for day in done}
        skips = {}
        for day in skipped:
            built[day] = False
            skips[day] = True
        return Habit(
            id=kwargs.pop("id", "habit-1"),
            name=kwargs.pop("name", "Exercise"),
            kind=kind,
            created_at=created_at,
            frequency=frequency or Daily(),
            completions=built if completions is None else completions,
            skipped=skips if skip_map is None else skip_map,
            **kwargs,
        )

    return _make_habit


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to the test database
    """
    db_path = Path(tmp_path) / "habits.db"
    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching what repositories expect."""

    return create_session_factory(db_engine)
