"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlmodel import Session, select

from ...errors import ValidationError
from ...logging_config import get_logger
from ...models.habit import Habit
from ...models.records import habit_from_record, habit_to_record
from ...models.tables import HabitRow

logger = get_logger("repository")


def _apply(row: HabitRow, habit: Habit) -> HabitRow:
    row.name = habit.name
    row.kind = habit.kind.value
    row.created_at = habit.created_at
    row.payload = habit_to_record(habit)
    row.updated_at = datetime.now(timezone.utc)
    return row


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation.

    Each row keeps the indexed columns next to the full plain record, so the
    engine's snapshot round-trips without a schema per frequency variant.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, habit_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            row = session.get(HabitRow, habit_id)
            if row is None:
                return None
            return habit_from_record(row.payload)

    def list_records(self) -> list[dict[str, Any]]:
        """Return stored payloads ordered by name, without decoding them."""
        with self.session_factory() as session:
            statement = select(HabitRow).order_by(HabitRow.name, HabitRow.id)  # type: ignore
            return [dict(row.payload) for row in session.exec(statement).all()]

    def list_all(self) -> list[Habit]:
        """List every decodable habit; malformed rows are logged and skipped."""
        habits: list[Habit] = []
        for record in self.list_records():
            try:
                habits.append(habit_from_record(record))
            except ValidationError as exc:
                logger.warning(
                    "Skipping malformed habit row",
                    extra={"habit_id": record.get("id"), "field": exc.field},
                )
        return habits

    def save(self, habit: Habit) -> Habit:
        """Insert or replace a habit."""
        with self.session_factory() as session:
            row = session.get(HabitRow, habit.id) or HabitRow(
                id=habit.id, name=habit.name, created_at=habit.created_at
            )
            session.add(_apply(row, habit))
        return habit

    def save_all(self, habits: list[Habit]) -> None:
        """Insert or replace several habits in one transaction."""
        with self.session_factory() as session:
            for habit in habits:
                row = session.get(HabitRow, habit.id) or HabitRow(
                    id=habit.id, name=habit.name, created_at=habit.created_at
                )
                session.add(_apply(row, habit))
        logger.debug("Saved habits", extra={"count": len(habits)})

    def delete(self, habit_id: str) -> None:
        """Delete a habit by ID."""
        with self.session_factory() as session:
            row = session.get(HabitRow, habit_id)
            if row is not None:
                session.delete(row)


__all__ = ["SQLModelHabitRepository"]
