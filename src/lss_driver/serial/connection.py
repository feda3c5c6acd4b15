"""Serial port connection management using direct pyserial.

Reads run in a single-thread executor so the event loop never blocks on
the port. The connection has no reconnect loop: once the port fails, the
request channel stays failed until the owner reconnects and resets it.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

import serial
from serial import SerialException

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Byte-oriented duplex stream used by the request channel."""

    async def read(self) -> bytes:
        """Return available bytes, or b"" when nothing arrived in time."""
        ...

    async def write(self, data: bytes) -> None: ...


class SerialConnection:
    """Manages the serial port connection to an LSS bus.

    Uses direct pyserial with asyncio.run_in_executor() for async compatibility.
    """

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        timeout: float = 0.05,
    ):
        """
        Initialize serial connection manager.

        Args:
            port: Serial port path (e.g., '/dev/ttyUSB0')
            baudrate: Communication speed (default: 115200, LSS factory default)
            timeout: Per-read wait for the first byte in seconds
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout

        self._serial: serial.Serial | None = None
        self._connected = False
        self._lock = asyncio.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="lss-serial")

    @property
    def connected(self) -> bool:
        """Check if currently connected."""
        return self._connected and self._serial is not None and self._serial.is_open

    async def connect(self) -> bool:
        """
        Open serial port connection.

        Returns:
            True if connection successful, False otherwise
        """
        async with self._lock:
            if self.connected:
                logger.debug("Already connected to %s", self.port)
                return True

            try:
                logger.info("Connecting to serial port %s at %d baud", self.port, self.baudrate)

                self._serial = serial.Serial()
                self._serial.port = self.port
                self._serial.baudrate = self.baudrate
                self._serial.timeout = self.timeout
                self._serial.open()

                self._connected = True
                logger.info("Successfully connected to %s", self.port)
                return True

            except (OSError, SerialException) as e:
                logger.error("Failed to connect to %s: %s", self.port, e)
                self._connected = False
                return False

    async def disconnect(self) -> None:
        """Close serial port connection."""
        async with self._lock:
            if not self._connected:
                return

            logger.info("Disconnecting from %s", self.port)

            if self._serial and self._serial.is_open:
                try:
                    self._serial.close()
                except (OSError, SerialException) as e:
                    logger.error("Error closing serial port: %s", e)

            self._serial = None
            self._connected = False
            logger.info("Disconnected from %s", self.port)

    def _blocking_read(self) -> bytes:
        """Blocking read for use with run_in_executor.

        Waits up to self.timeout for the first byte, then takes whatever
        else is already buffered by the OS.
        """
        if not self._serial or not self._serial.is_open:
            raise ConnectionError("Not connected to serial port")

        first = self._serial.read(1)
        if not first:
            return b""

        available = self._serial.in_waiting
        if available > 0:
            return first + self._serial.read(available)
        return first

    async def read(self) -> bytes:
        """
        Read available bytes from the serial port.

        Returns:
            Bytes read, or b"" if the read timed out

        Raises:
            ConnectionError: If not connected or the port failed
        """
        if not self.connected or not self._serial:
            raise ConnectionError("Not connected to serial port")

        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, self._blocking_read)
        except (OSError, SerialException) as e:
            logger.error("Read error: %s", e)
            self._connected = False
            raise ConnectionError(str(e)) from e

    async def write(self, data: bytes) -> None:
        """
        Write to serial port.

        Args:
            data: Bytes to write

        Raises:
            ConnectionError: If not connected or the port failed
        """
        if not self.connected or not self._serial:
            raise ConnectionError("Not connected to serial port")

        try:
            self._serial.write(data)
        except (OSError, SerialException) as e:
            logger.error("Write error: %s", e)
            self._connected = False
            raise ConnectionError(str(e)) from e

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()
