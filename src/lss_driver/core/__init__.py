"""Core application functionality."""

from lss_driver.core.config import Settings, setup_logging
from lss_driver.core.models import (
    ColorRequest,
    CommandResponse,
    ErrorResponse,
    HealthResponse,
    MoveRequest,
    TelemetryResponse,
)

__all__ = [
    "ColorRequest",
    "CommandResponse",
    "ErrorResponse",
    "HealthResponse",
    "MoveRequest",
    "Settings",
    "TelemetryResponse",
    "setup_logging",
]
