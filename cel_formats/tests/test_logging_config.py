#!/usr/bin/env python3
"""
Tests for logging_config.py
"""

import logging

import pytest

from cel_formats.logging_config import (
    DEBUG_ENV_VAR,
    LOGGER_NAME,
    debug_requested,
    get_logger,
    setup_logging,
)


@pytest.fixture
def package_logger():
    """Restore the package logger after each test"""
    logger = logging.getLogger(LOGGER_NAME)
    saved = (logger.level, logger.handlers[:], logger.propagate)
    yield logger
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(saved[0])
    for handler in saved[1]:
        logger.addHandler(handler)
    logger.propagate = saved[2]


@pytest.mark.unit
class TestLoggingConfig:
    """Test logger setup and naming"""

    def test_child_names(self):
        """Module loggers live under the package logger"""
        assert get_logger("frame_decoder").name == "cel_formats.frame_decoder"
        assert get_logger("cel_formats.tile").name == "cel_formats.tile"
        assert get_logger(LOGGER_NAME).name == LOGGER_NAME

    def test_setup_level(self, package_logger, monkeypatch):
        """The requested level is applied to a single console handler"""
        monkeypatch.delenv(DEBUG_ENV_VAR, raising=False)
        logger = setup_logging("WARNING")
        assert logger is package_logger
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert not logger.propagate

    def test_debug_environment(self, package_logger, monkeypatch):
        """CEL_FORMATS_DEBUG forces DEBUG"""
        monkeypatch.setenv(DEBUG_ENV_VAR, "yes")
        assert setup_logging("ERROR").level == logging.DEBUG

    def test_log_file(self, temp_dir, package_logger, monkeypatch):
        """Messages reach the optional log file"""
        monkeypatch.delenv(DEBUG_ENV_VAR, raising=False)
        log_file = temp_dir / "cel.log"
        setup_logging("INFO", str(log_file))
        get_logger("test").info("decoded frames")
        for handler in package_logger.handlers:
            handler.flush()
        assert "decoded frames" in log_file.read_text()

    def test_debug_requested(self):
        """Only truthy values of CEL_FORMATS_DEBUG request debug output"""
        assert debug_requested({DEBUG_ENV_VAR: "On"})
        assert debug_requested({DEBUG_ENV_VAR: " 1 "})
        assert not debug_requested({DEBUG_ENV_VAR: "0"})
        assert not debug_requested({})

    def test_unknown_level(self, package_logger, monkeypatch):
        """Unknown level names fall back to INFO and numeric levels are accepted"""
        monkeypatch.delenv(DEBUG_ENV_VAR, raising=False)
        assert setup_logging("CHATTY").level == logging.INFO
        assert setup_logging(logging.ERROR).level == logging.ERROR
        assert len(package_logger.handlers) == 1
