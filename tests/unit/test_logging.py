"""Tests for structured logging setup."""

from __future__ import annotations

import json
import logging

import pytest
from omegaconf import OmegaConf

from undoable.utils.logging import ROOT_LOGGER, setup_logging, setup_logging_from_config


@pytest.fixture(autouse=True)
def restore_undoable_logger():
    """Put the package logger back so caplog keeps working in other modules."""
    root = logging.getLogger(ROOT_LOGGER)
    handlers = list(root.handlers)
    level = root.level
    propagate = root.propagate
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    root.propagate = propagate


class TestSetupLogging:
    def test_console_output(self, capsys):
        setup_logging("DEBUG")
        logging.getLogger("undoable.test_console").info("hello console")
        assert "hello console" in capsys.readouterr().out

    def test_level(self):
        root = setup_logging("WARNING")
        assert root.name == ROOT_LOGGER
        assert root.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging("CHATTY").level == logging.INFO

    def test_json_mode(self, capsys):
        setup_logging("INFO", log_json=True)
        logging.getLogger("undoable.test_json").warning("json test %d", 7)
        lines = [
            line for line in capsys.readouterr().out.splitlines() if "json test" in line
        ]
        assert lines
        data = json.loads(lines[0])
        assert data["event"] == "json test 7"
        assert data["level"] == "warning"
        assert data["logger"] == "undoable.test_json"
        assert "timestamp" in data

    def test_file_logging(self, tmp_path):
        log_path = tmp_path / "logs" / "undoable.log"
        root = setup_logging("INFO", log_file=str(log_path))
        logging.getLogger("undoable.test_file").info("file test message")
        for handler in root.handlers:
            handler.flush()
        assert "file test message" in log_path.read_text()

    def test_repeated_setup_replaces_handlers(self):
        setup_logging("INFO")
        root = setup_logging("INFO")
        assert len(root.handlers) == 1

    def test_no_propagation_by_default(self):
        assert setup_logging("INFO").propagate is False
        assert setup_logging("INFO", propagate=True).propagate is True


class TestSetupLoggingFromConfig:
    def test_from_system_section(self, default_config):
        root = setup_logging_from_config(default_config.undoable.system)
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_file_and_json(self, tmp_path):
        system = OmegaConf.create(
            {"log_level": "DEBUG", "log_file": str(tmp_path / "x.log"), "log_json": True}
        )
        root = setup_logging_from_config(system)
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

    def test_none(self):
        assert setup_logging_from_config(None).level == logging.INFO
