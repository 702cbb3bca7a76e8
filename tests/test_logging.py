#!/usr/bin/env python3
"""Unit tests for utils.logging module."""

import logging
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import LoggingConfig
from utils.logging import ROOT_LOGGER_NAME, configure_from_config, get_logger


@pytest.fixture(autouse=True)
def reset_engine_logger():
    root = logging.getLogger(ROOT_LOGGER_NAME)
    saved = (list(root.handlers), root.level)
    root.handlers = []
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers, root.level = saved


class TestConfigureFromConfig:
    def test_level_from_section(self):
        logger = configure_from_config(LoggingConfig(level="WARNING", log_file="", console=False))
        assert logger.name == ROOT_LOGGER_NAME
        assert logger.level == logging.WARNING
        assert logger.handlers == []

    def test_level_override(self):
        logger = configure_from_config(LoggingConfig(level="WARNING", log_file="", console=False), level="debug")
        assert logger.level == logging.DEBUG

    def test_file_and_console_handlers(self, tmp_path):
        log_file = tmp_path / "engine.log"
        logger = configure_from_config(LoggingConfig(log_file=str(log_file), console=True))
        kinds = sorted(type(h).__name__ for h in logger.handlers)
        assert kinds == ["FileHandler", "StreamHandler"]

        get_logger("applicator").info("committed")
        for handler in logger.handlers:
            handler.flush()
        assert "[patch_ledger.applicator] committed" in log_file.read_text(encoding="utf-8")

    def test_repeat_configuration_does_not_duplicate_handlers(self, tmp_path):
        cfg = LoggingConfig(log_file=str(tmp_path / "engine.log"), console=True)
        configure_from_config(cfg)
        logger = configure_from_config(cfg)
        assert len(logger.handlers) == 2
