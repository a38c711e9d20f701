"""SQLModel table used by the optional persistence adapter."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, ClassVar

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class HabitRow(SQLModel, table=True):
    """One stored habit; the full plain record lives in ``payload``."""

    __tablename__: ClassVar[str] = "habit"

    id: str = Field(primary_key=True, max_length=64)
    name: str = Field(nullable=False, max_length=80, index=True)
    kind: str = Field(default="binary", max_length=16)
    created_at: date = Field(nullable=False, index=True)
    payload: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
