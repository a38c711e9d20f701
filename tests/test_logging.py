"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from datetime import date

import pytest

from habitsage.config import BaseConfig
from habitsage.logging_config import JSONFormatter, get_logger, setup_logging
from habitsage.models import HabitData


def _record(**kwargs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test.logger",
        level=kwargs.pop("level", logging.INFO),
        pathname="test.py",
        lineno=42,
        msg=kwargs.pop("msg", "Test message"),
        args=(),
        exc_info=kwargs.pop("exc_info", None),
    )
    record.module = "test_module"
    record.funcName = "test_function"
    return record


def test_json_formatter():
    """JSONFormatter emits the standard fields."""
    log_data = json.loads(JSONFormatter().format(_record()))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test.logger"
    assert log_data["message"] == "Test message"
    assert log_data["module"] == "test_module"
    assert log_data["function"] == "test_function"
    assert log_data["line"] == 42
    assert "timestamp" in log_data
    assert "extra" not in log_data


def test_json_formatter_with_exception():
    """JSONFormatter includes exception details."""
    try:
        raise ValueError("Test error")
    except ValueError:
        exc_info = sys.exc_info()

    log_data = json.loads(
        JSONFormatter().format(_record(level=logging.ERROR, msg="Error occurred", exc_info=exc_info))
    )

    assert log_data["exception"]["type"] == "ValueError"
    assert "Test error" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"] is not None


def test_json_formatter_with_extra_fields():
    """Fields passed through ``extra`` land under one key; dates become strings."""
    record = _record()
    record.habit_id = "h1"
    record.day = date(2025, 1, 5)

    log_data = json.loads(JSONFormatter().format(record))

    assert log_data["extra"] == {"habit_id": "h1", "day": "2025-01-05"}


def test_setup_logging(tmp_path):
    """Logging setup creates a rotating JSON log file."""
    config = BaseConfig()
    config.DATA_DIR = str(tmp_path)
    config.DEV_MODE = True

    logger = setup_logging(config)

    assert logger.name == "habitsage"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2  # Console + File

    log_file = tmp_path / "logs" / "habitsage.log"
    assert log_file.exists()

    logger.info("Test info message")
    logger.warning("Test warning message")
    for handler in logger.handlers:
        handler.flush()

    lines = [line for line in log_file.read_text().splitlines() if line.strip()]
    assert len(lines) >= 3
    for line in lines:
        log_entry = json.loads(line)
        assert "timestamp" in log_entry
        assert "level" in log_entry
        assert "message" in log_entry


def test_setup_logging_twice_does_not_duplicate_handlers(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = str(tmp_path)

    setup_logging(config)
    logger = setup_logging(config)

    assert len(logger.handlers) == 2


def test_get_logger():
    """get_logger returns loggers under the package namespace."""
    logger1 = get_logger("module1")
    logger2 = get_logger("module2")

    assert logger1.name == "habitsage.module1"
    assert logger2.name == "habitsage.module2"
    assert logger1 != logger2


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(tmp_path, dev_mode):
    """Console logging level adjusts based on dev mode."""
    config = BaseConfig()
    config.DATA_DIR = str(tmp_path)
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)

    console_handler = None
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(
            handler, logging.handlers.RotatingFileHandler
        ):
            console_handler = handler
            break

    assert console_handler is not None
    expected_level = logging.INFO if dev_mode else logging.WARNING
    assert console_handler.level == expected_level


def test_tracker_mutations_are_logged(tracker, caplog):
    """Ledger mutations log structured fields under the tracker logger."""
    caplog.set_level(logging.INFO, logger="habitsage")
    habit = tracker.create_habit(HabitData(name="Read", created_at=date(2025, 1, 1))).value
    tracker.toggle(habit.id, date(2025, 1, 30))

    records = [r for r in caplog.records if r.name == "habitsage.tracker"]
    toggled = [r for r in records if r.getMessage() == "Habit toggled"]
    assert toggled
    assert toggled[0].habit_id == habit.id
    assert toggled[0].state == "done"


def test_healing_logs_warning(tracker, make_habit, caplog):
    """Healed invariant violations are reported at WARNING."""
    day = date(2025, 1, 5)
    tracker._habits["bad"] = make_habit(id="bad", completions={day: True}, skip_map={day: True})

    with caplog.at_level(logging.WARNING, logger="habitsage"):
        tracker.get("bad")

    assert any(r.name == "habitsage.ledger" and r.levelno == logging.WARNING for r in caplog.records)
