"""Tests for structlog configuration."""

import json
import logging
from pathlib import Path

import pytest
import structlog

from cgtop.logging import configure, get_logger


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo global logging configuration after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_json_lines_to_file(tmp_path: Path):
    log_file = tmp_path / "logs" / "cgtop.log"
    configure(log_file)

    get_logger("test.file").info("reloaded", scene="tree", loads=3)
    get_logger("test.file").debug("hidden")

    [line] = log_file.read_text().splitlines()
    record = json.loads(line)
    assert record["event"] == "reloaded"
    assert record["scene"] == "tree"
    assert record["loads"] == 3
    assert record["level"] == "info"
    assert "ts" in record


def test_debug_level(tmp_path: Path):
    log_file = tmp_path / "cgtop.log"
    configure(log_file, debug=True)

    get_logger("test.debug").debug("visible")

    assert json.loads(log_file.read_text())["event"] == "visible"


def test_no_log_file_discards():
    configure()

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], logging.NullHandler)
    get_logger("test.null").info("dropped")
