"""HTTP gateway entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from lss_driver import __version__
from lss_driver.api.dependencies import app_state
from lss_driver.api.routes import router as api_router
from lss_driver.core.config import Settings, setup_logging
from lss_driver.core.models import HealthResponse
from lss_driver.driver import LSSDriver
from lss_driver.protocol.channel import RequestChannel
from lss_driver.serial.connection import SerialConnection

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = app_state.settings or Settings()
    app_state.settings = settings

    setup_logging(settings.log_level)
    logger.info("Starting LSS gateway v%s", __version__)

    app_state.connection = SerialConnection(
        port=settings.serial_port,
        baudrate=settings.serial_baud,
    )
    app_state.channel = RequestChannel(
        app_state.connection,
        default_timeout=settings.request_timeout,
        max_chunk_len=settings.max_chunk_len,
    )
    app_state.driver = LSSDriver(
        app_state.channel,
        confirm_writes=settings.confirm_writes,
        connection=app_state.connection,
    )

    connected = await app_state.connection.connect()
    if connected:
        logger.info("Connected to %s", settings.serial_port)
        app_state.channel.start()
    else:
        logger.warning("Failed to connect to %s", settings.serial_port)
        await app_state.channel.stop()

    yield

    logger.info("Shutting down...")
    if app_state.driver is not None:
        await app_state.driver.close()


app = FastAPI(
    title="LSS Gateway",
    description="REST gateway for a bus of Lynxmotion LSS servos",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "LSS Gateway",
        "version": __version__,
        "status": "running",
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    channel = app_state.channel

    if channel is None:
        return HealthResponse(status="unhealthy", bus_connected=False)

    stats = channel.stats
    connected = not channel.failed
    degraded = stats["timeouts"] > 0 or stats["malformed"] > 0
    status = "unhealthy" if not connected else ("degraded" if degraded else "healthy")

    return HealthResponse(status=status, bus_connected=connected, stats=stats)


def main():
    """Run the gateway (for CLI entry point)."""
    import uvicorn

    settings = Settings()
    setup_logging(settings.log_level)
    app_state.settings = settings

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
