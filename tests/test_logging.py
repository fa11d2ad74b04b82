"""
Tests for logging configuration.
"""

import logging
from unittest.mock import patch

import pytest
import structlog

from stackbridge.core.errors import ConfigError
from stackbridge.logging import configure_logging, resolve_level


@pytest.fixture
def configure():
    root = logging.getLogger()
    previous_level = root.level
    with patch("stackbridge.logging.structlog.configure") as mock_configure, patch(
        "stackbridge.logging.logging.basicConfig"
    ) as mock_basic_config:
        yield mock_configure, mock_basic_config
    root.setLevel(previous_level)


def _renderer(mock_configure):
    return mock_configure.call_args.kwargs["processors"][-1]


class TestConfigureLogging:
    """Test renderer and level selection."""

    def test_json_format(self, configure):
        mock_configure, _ = configure
        configure_logging("INFO", "json")
        assert isinstance(_renderer(mock_configure), structlog.processors.JSONRenderer)

    def test_console_format(self, configure):
        mock_configure, _ = configure
        configure_logging("INFO", "console")
        assert isinstance(_renderer(mock_configure), structlog.dev.ConsoleRenderer)

    def test_contextvars_merged_first(self, configure):
        mock_configure, _ = configure
        configure_logging()
        processors = mock_configure.call_args.kwargs["processors"]
        assert processors[0] is structlog.contextvars.merge_contextvars

    def test_level_names_are_case_insensitive(self, configure):
        _, mock_basic_config = configure
        configure_logging("debug")
        assert mock_basic_config.call_args.kwargs["level"] == logging.DEBUG

    def test_unknown_format(self, configure):
        with pytest.raises(ConfigError):
            configure_logging("INFO", "xml")

    def test_unknown_level(self, configure):
        mock_configure, _ = configure
        with pytest.raises(ConfigError):
            configure_logging("LOUD")
        mock_configure.assert_not_called()


class TestResolveLevel:
    @pytest.mark.parametrize(
        "level, expected",
        [("warning", logging.WARNING), ("ERROR", logging.ERROR), (logging.INFO, logging.INFO)],
    )
    def test_resolves(self, level, expected):
        assert resolve_level(level) == expected
