"""Unit tests for configuration module."""

import os
from unittest.mock import patch

from lss_driver.core.config import Settings, setup_logging


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self):
        """Test settings have sensible defaults."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.serial_port == "/dev/ttyUSB0"
        assert settings.serial_baud == 115200
        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 8000
        assert settings.log_level == "INFO"
        assert settings.request_timeout == 0.2
        assert settings.max_chunk_len == 64
        assert settings.confirm_writes is False

    def test_env_override_serial_port(self):
        """Test serial port override from environment."""
        with patch.dict(os.environ, {"LSS_SERIAL_PORT": "/dev/ttyACM0"}):
            settings = Settings()

        assert settings.serial_port == "/dev/ttyACM0"

    def test_env_override_serial_baud(self):
        with patch.dict(os.environ, {"LSS_SERIAL_BAUD": "500000"}):
            settings = Settings()

        assert settings.serial_baud == 500000

    def test_env_override_api_port(self):
        with patch.dict(os.environ, {"LSS_API_PORT": "9000"}):
            settings = Settings()

        assert settings.api_port == 9000

    def test_env_override_request_timeout(self):
        """Test reply timeout override from environment."""
        with patch.dict(os.environ, {"LSS_REQUEST_TIMEOUT": "0.5"}):
            settings = Settings()

        assert settings.request_timeout == 0.5

    def test_env_override_confirm_writes(self):
        with patch.dict(os.environ, {"LSS_CONFIRM_WRITES": "true"}):
            settings = Settings()

        assert settings.confirm_writes is True

    def test_env_prefix(self):
        """Test that non-prefixed env vars are ignored."""
        with patch.dict(os.environ, {"SERIAL_PORT": "/dev/other"}, clear=True):
            settings = Settings()

        assert settings.serial_port == "/dev/ttyUSB0"


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_info(self):
        setup_logging("INFO")

    def test_setup_logging_debug(self):
        setup_logging("DEBUG")

    def test_setup_logging_case_insensitive(self):
        """Test log level is case insensitive."""
        setup_logging("debug")

    def test_setup_logging_invalid_defaults_to_info(self):
        """Test invalid level defaults to INFO."""
        setup_logging("INVALID")
