"""Async command writer for the LSS protocol."""

import logging

from lss_driver.protocol.codec import encode
from lss_driver.protocol.messages import Command
from lss_driver.serial.connection import Transport

logger = logging.getLogger(__name__)


class FrameWriter:
    """Encodes commands and writes them to the transport's write half.

    Callers are responsible for serialising writes; the request channel
    does so with its turn lock.
    """

    def __init__(self, transport: Transport):
        """
        Initialize frame writer.

        Args:
            transport: Transport to write to
        """
        self.transport = transport
        self._stats = {
            "frames_written": 0,
            "frames_failed": 0,
            "bytes_written": 0,
        }

    @property
    def stats(self) -> dict:
        """Get writer statistics."""
        return self._stats.copy()

    async def write_command(self, command: Command) -> bytes:
        """
        Encode and write a command.

        Args:
            command: Command to write

        Returns:
            The bytes written

        Raises:
            ConnectionError: If the transport failed
        """
        frame_bytes = encode(command)
        try:
            await self.transport.write(frame_bytes)
        except (ConnectionError, OSError):
            self._stats["frames_failed"] += 1
            raise

        self._stats["frames_written"] += 1
        self._stats["bytes_written"] += len(frame_bytes)
        logger.debug("Frame written: %r", frame_bytes)
        return frame_bytes
