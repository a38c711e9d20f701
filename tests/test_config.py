"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest
from sqlalchemy.pool import StaticPool

from habitsage.config import BaseConfig, DevConfig, TestingConfig


class TestBaseConfig:
    """Defaults and overrides read from the environment."""

    def test_defaults(self, tmp_path):
        config = BaseConfig()
        assert config.DATA_DIR == (tmp_path / "data").resolve()
        assert config.DATA_DIR.is_dir()
        assert config.DATABASE_URL == f"sqlite:///{config.DATA_DIR / 'habitsage.db'}"
        assert config.UNDO_ACTION_LIMIT == 5
        assert config.STREAK_SCAN_LIMIT == 365
        assert config.DEV_MODE is True
        assert config.STRICT_INVARIANTS is True

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("HABITSAGE_DEV_MODE", "false")
        monkeypatch.setenv("HABITSAGE_DATABASE_URL", "sqlite:///custom.db")
        monkeypatch.setenv("HABITSAGE_UNDO_ACTION_LIMIT", "3")
        monkeypatch.setenv("HABITSAGE_STREAK_SCAN_LIMIT", "90")
        config = BaseConfig()
        assert config.DEV_MODE is False
        assert config.STRICT_INVARIANTS is False
        assert config.DATABASE_URL == "sqlite:///custom.db"
        assert config.UNDO_ACTION_LIMIT == 3
        assert config.STREAK_SCAN_LIMIT == 90

    def test_strict_invariants_independent_of_dev_mode(self, monkeypatch):
        monkeypatch.setenv("HABITSAGE_DEV_MODE", "0")
        monkeypatch.setenv("HABITSAGE_STRICT_INVARIANTS", "yes")
        assert BaseConfig().STRICT_INVARIANTS is True

    @pytest.mark.parametrize("value", ["many", "0", "-4"])
    def test_invalid_integer_rejected(self, monkeypatch, value):
        monkeypatch.setenv("HABITSAGE_UNDO_ACTION_LIMIT", value)
        with pytest.raises(ValueError):
            BaseConfig()

    def test_sqlite_engine_options(self):
        assert BaseConfig().sqlalchemy_engine_options() == {
            "connect_args": {"check_same_thread": False}
        }

    def test_in_memory_sqlite_shares_one_connection(self):
        options = TestingConfig().sqlalchemy_engine_options()
        assert options["poolclass"] is StaticPool

    def test_non_sqlite_engine_options(self, monkeypatch):
        monkeypatch.setenv("HABITSAGE_DATABASE_URL", "postgresql://localhost/habits")
        assert BaseConfig().sqlalchemy_engine_options() == {"connect_args": {}}


class TestConfigVariants:
    """Environment-specific subclasses."""

    def test_dev_config(self):
        assert DevConfig.DEBUG is True

    def test_testing_config(self):
        config = TestingConfig()
        assert config.TESTING is True
        assert config.DATABASE_URL == "sqlite://"
        assert config.STRICT_INVARIANTS is False
