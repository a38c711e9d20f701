"""Habit repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.habit import Habit


class HabitRepository(Protocol):
    """Repository for persisting habit snapshots."""

    def get_by_id(self, habit_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def list_all(self) -> list[Habit]:
        """List every stored habit."""
        ...

    def save(self, habit: Habit) -> Habit:
        """Insert or replace a habit."""
        ...

    def save_all(self, habits: list[Habit]) -> None:
        """Insert or replace several habits in one transaction."""
        ...

    def delete(self, habit_id: str) -> None:
        """Delete a habit by ID."""
        ...
