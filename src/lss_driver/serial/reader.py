"""Background stream reader for the LSS protocol."""

import asyncio
import logging
from collections.abc import Callable

from lss_driver.protocol.codec import decode
from lss_driver.protocol.constants import MAX_CHUNK_LEN, START_MARKERS, TERMINATOR
from lss_driver.protocol.errors import ConnectionFatalError
from lss_driver.protocol.messages import MalformedReply, Reply
from lss_driver.serial.connection import Transport

logger = logging.getLogger(__name__)


class StreamReader:
    """Turns the transport's byte stream into replies.

    Bytes accumulate in a bounded chunk until a terminator arrives; the
    chunk is then decoded and handed to ``on_reply``. When the transport
    fails or handling a reply raises, ``on_fatal`` is called once and the
    read loop stops.
    """

    def __init__(
        self,
        transport: Transport,
        on_reply: Callable[[Reply], None],
        on_fatal: Callable[[ConnectionFatalError], None],
        max_chunk_len: int = MAX_CHUNK_LEN,
    ):
        """
        Initialize stream reader.

        Args:
            transport: Transport to read from (read half only)
            on_reply: Called with every decoded reply, malformed ones included
            on_fatal: Called once when the transport fails or closes
            max_chunk_len: Bytes allowed in a chunk before it is discarded
        """
        self.transport = transport
        self.max_chunk_len = max_chunk_len
        self._on_reply = on_reply
        self._on_fatal = on_fatal
        self._chunk = bytearray()
        self._discarding = False
        self._task: asyncio.Task | None = None
        self._stats = {
            "bytes_read": 0,
            "frames_read": 0,
            "frames_invalid": 0,
            "overflows": 0,
        }

    @property
    def stats(self) -> dict:
        """Get reader statistics."""
        return self._stats.copy()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background read task."""
        if self.running:
            return
        self._task = asyncio.create_task(self._read_loop())
        logger.debug("Stream reader started")

    async def stop(self) -> None:
        """Stop the background read task."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.debug("Stream reader stopped")

    async def _read_loop(self) -> None:
        while True:
            try:
                data = await self.transport.read()
            except asyncio.CancelledError:
                raise
            except (ConnectionError, OSError) as e:
                logger.error("Transport read failed: %s", e)
                self._on_fatal(ConnectionFatalError(f"Transport read failed: {e}"))
                return

            if data:
                try:
                    self.feed(data)
                except Exception as e:
                    # The loop only ever ends through on_fatal.
                    logger.exception("Reply handling failed, stopping reader")
                    self._on_fatal(ConnectionFatalError(f"Reply handling failed: {e}"))
                    return
            else:
                # Transports without a read timeout may return immediately.
                await asyncio.sleep(0)

    def feed(self, data: bytes) -> None:
        """Consume received bytes, emitting a reply per completed chunk."""
        self._stats["bytes_read"] += len(data)

        for byte in data:
            if byte == TERMINATOR:
                if self._discarding:
                    self._discarding = False
                    self._chunk.clear()
                    continue
                if self._chunk:
                    self._emit_chunk()
                continue

            if byte in START_MARKERS:
                if self._chunk and not self._discarding:
                    self._emit(MalformedReply(raw=bytes(self._chunk), reason="truncated frame"))
                self._discarding = False
                self._chunk.clear()
                self._chunk.append(byte)
                continue

            if self._discarding:
                continue

            self._chunk.append(byte)
            if len(self._chunk) > self.max_chunk_len:
                logger.warning("No terminator within %d bytes, discarding chunk", self.max_chunk_len)
                self._stats["overflows"] += 1
                self._emit(
                    MalformedReply(
                        raw=bytes(self._chunk),
                        reason=f"chunk exceeds {self.max_chunk_len} bytes",
                    )
                )
                self._chunk.clear()
                self._discarding = True

    def _emit_chunk(self) -> None:
        chunk = bytes(self._chunk) + bytes([TERMINATOR])
        self._chunk.clear()
        self._emit(decode(chunk, max_len=self.max_chunk_len))

    def _emit(self, reply: Reply) -> None:
        if isinstance(reply, MalformedReply):
            self._stats["frames_invalid"] += 1
        else:
            self._stats["frames_read"] += 1
        self._on_reply(reply)

    def reset_buffer(self) -> None:
        """Clear the partial chunk."""
        self._chunk.clear()
        self._discarding = False
