"""
Logging Configuration Tests

LOG_LEVEL environment variable control:
- LOG_LEVEL=DEBUG: All logs, including emitted events
- LOG_LEVEL=INFO: Normal logs (default)
- LOG_LEVEL=WARNING: Warnings and errors only
- LOG_LEVEL=ERROR: Errors only
"""

import importlib
import os
from unittest.mock import patch

import pytest


def _reload_and_get_level() -> str:
    """Helper to reload logging_config module and get current level."""
    import live_stream_protocol.logging_config as lc

    importlib.reload(lc)
    return lc.get_log_level()


class TestLogLevelConfiguration:
    """Tests for LOG_LEVEL environment variable configuration."""

    def test_log_level_default_is_info(self) -> None:
        """Default LOG_LEVEL should be INFO when not set."""
        # given
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("LOG_LEVEL", None)

            # when
            level = _reload_and_get_level()

        # then
        assert level == "INFO"

    @pytest.mark.parametrize("value", ["DEBUG", "INFO", "WARNING", "ERROR"])
    def test_valid_levels_are_accepted(self, value: str) -> None:
        # given / when
        with patch.dict(os.environ, {"LOG_LEVEL": value}):
            level = _reload_and_get_level()

        # then
        assert level == value

    def test_invalid_log_level_falls_back_to_info(self) -> None:
        """Invalid LOG_LEVEL values should fall back to INFO."""
        # given / when
        with patch.dict(os.environ, {"LOG_LEVEL": "VERBOSE"}):
            level = _reload_and_get_level()

        # then
        assert level == "INFO"

    def test_log_level_is_case_insensitive(self) -> None:
        """LOG_LEVEL should be case-insensitive."""
        # given / when
        with patch.dict(os.environ, {"LOG_LEVEL": "warning"}):
            level = _reload_and_get_level()

        # then
        assert level == "WARNING"


class TestConfigureLogging:
    """Tests for the loguru sink setup."""

    def test_replaces_sinks_with_configured_level(self) -> None:
        # given
        from live_stream_protocol import logging_config

        with (
            patch.dict(os.environ, {"LOG_LEVEL": "ERROR"}),
            patch.object(logging_config, "logger") as mock_logger,
        ):
            # when
            logging_config.configure_logging()

        # then
        mock_logger.remove.assert_called_once_with()
        assert mock_logger.add.call_args.kwargs["level"] == "ERROR"

    def test_explicit_level_wins_over_environment(self) -> None:
        # given
        from live_stream_protocol import logging_config

        with (
            patch.dict(os.environ, {"LOG_LEVEL": "ERROR"}),
            patch.object(logging_config, "logger") as mock_logger,
        ):
            # when
            logging_config.configure_logging("debug")

        # then
        assert mock_logger.add.call_args.kwargs["level"] == "DEBUG"

    def test_invalid_explicit_level_falls_back_to_default(self) -> None:
        # given
        from live_stream_protocol import logging_config

        with patch.object(logging_config, "logger") as mock_logger:
            # when
            logging_config.configure_logging("LOUD")

        # then
        assert mock_logger.add.call_args.kwargs["level"] == "INFO"
