"""Tests for the centralized logging utility."""

import logging
from io import StringIO

import pytest

from carbonlint.utils.logger import Logger, LoggerNotConfiguredError


def test_logger_unconfigured():
    """Test that using Logger before configuration raises error."""
    # Reset logger state for test
    Logger._configured = False

    with pytest.raises(LoggerNotConfiguredError):
        Logger.get("test")


def test_module_logger_never_raises():
    """Library loggers are available before configuration."""
    Logger._configured = False

    log = Logger.module("carbon.session")
    assert isinstance(log, logging.Logger)
    assert log.name == "carbonlint.carbon.session"
    log.debug("silent until configured")


def test_logger_configuration():
    """Test logger configuration."""
    output = StringIO()
    Logger.configure(level="DEBUG", output=output, timestamps=False)

    assert Logger.is_configured()

    log = Logger.get("test_config")
    log.debug("Debug message")

    content = output.getvalue()
    assert "DEBUG" in content
    assert "[carbonlint.test_config]" in content
    assert "Debug message" in content


def test_module_logger_emits_after_configuration():
    """Library loggers share the configured handler."""
    output = StringIO()
    Logger.configure(level="INFO", output=output, timestamps=False)

    Logger.module("carbon.store").info("Saved run")
    assert "[carbonlint.carbon.store] Saved run" in output.getvalue()


def test_logger_set_level():
    """Test changing log level."""
    output = StringIO()
    Logger.configure(level="INFO", output=output, timestamps=False)

    log = Logger.get("test_level")
    log.debug("Hidden")
    assert "Hidden" not in output.getvalue()

    Logger.set_level("DEBUG")
    log.debug("Visible")
    assert "Visible" in output.getvalue()


def test_invalid_level_rejected():
    """Unknown level names are rejected."""
    with pytest.raises(ValueError):
        Logger.configure(level="CHATTY", output=StringIO())
