"""Application configuration using pydantic-settings."""

import logging
import sys

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables
    prefixed with LSS_ (e.g., LSS_SERIAL_PORT).
    """

    serial_port: str = "/dev/ttyUSB0"
    serial_baud: int = 115200
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"
    request_timeout: float = 0.2
    max_chunk_len: int = 64
    confirm_writes: bool = False

    model_config = SettingsConfigDict(env_prefix="LSS_")


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
