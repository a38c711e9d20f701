"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from sqlalchemy.pool import StaticPool

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    """Read a positive integer setting, rejecting junk early."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitSage"
    DB_FILENAME = "habitsage.db"
    DEFAULT_UNDO_ACTION_LIMIT = 5
    DEFAULT_STREAK_SCAN_LIMIT = 365

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("HABITSAGE_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("HABITSAGE_DATABASE_URL", self._build_sqlite_url())
        self.UNDO_ACTION_LIMIT = _env_int(
            "HABITSAGE_UNDO_ACTION_LIMIT", self.DEFAULT_UNDO_ACTION_LIMIT
        )
        self.STREAK_SCAN_LIMIT = _env_int(
            "HABITSAGE_STREAK_SCAN_LIMIT", self.DEFAULT_STREAK_SCAN_LIMIT
        )
        # Strict mode raises on ledger invariant violations instead of healing them.
        self.STRICT_INVARIANTS = _env_bool("HABITSAGE_STRICT_INVARIANTS", default=self.DEV_MODE)

    def _resolve_data_dir(self) -> Path:
        """Return the directory holding the database and logs."""

        data_root = os.getenv("HABITSAGE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = Path(self.DATA_DIR) / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        if self.DATABASE_URL in {"sqlite://", "sqlite:///:memory:"}:
            # One shared connection keeps the in-memory schema alive.
            return {"connect_args": connect_args, "poolclass": StaticPool}
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration for the test suite: in-memory database, production healing."""

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = "sqlite://"
        self.STRICT_INVARIANTS = False
