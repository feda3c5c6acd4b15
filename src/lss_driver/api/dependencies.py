"""FastAPI dependency injection for shared application state."""

from lss_driver.core.config import Settings
from lss_driver.driver import LSSDriver
from lss_driver.protocol.channel import RequestChannel
from lss_driver.serial.connection import SerialConnection


class AppState:
    """Holds shared application state instances.

    Created during app startup and accessed via FastAPI dependencies.
    """

    def __init__(self) -> None:
        self.settings: Settings | None = None
        self.connection: SerialConnection | None = None
        self.channel: RequestChannel | None = None
        self.driver: LSSDriver | None = None


# Global app state singleton
app_state = AppState()


def get_driver() -> LSSDriver:
    """Get the servo driver instance."""
    assert app_state.driver is not None, "App not initialized"
    return app_state.driver


def get_channel() -> RequestChannel:
    """Get the request channel instance."""
    assert app_state.channel is not None, "App not initialized"
    return app_state.channel


def get_settings() -> Settings:
    """Get the settings instance."""
    assert app_state.settings is not None, "App not initialized"
    return app_state.settings
