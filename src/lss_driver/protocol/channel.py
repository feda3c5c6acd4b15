"""Request/response correlation for a shared LSS bus.

The wire protocol carries no request identifiers, so correlation relies on
a single in-flight request: callers take turns through an asyncio.Lock,
and any reply that does not match the one pending request is stale or
unsolicited and gets dropped.
"""

import asyncio
import logging
from collections.abc import Callable

from lss_driver.protocol.constants import MAX_CHUNK_LEN, REQUEST_TIMEOUT
from lss_driver.protocol.errors import ConnectionFatalError, ProtocolMismatchError, RequestTimeoutError
from lss_driver.protocol.messages import Command, MalformedReply, PendingRequest, Reply
from lss_driver.serial.connection import Transport
from lss_driver.serial.reader import StreamReader
from lss_driver.serial.writer import FrameWriter

logger = logging.getLogger(__name__)


class RequestChannel:
    """Serialises requests onto one transport and matches their replies.

    Owns the transport's write half (through a FrameWriter) and the single
    PendingRequest slot. A StreamReader owns the read half and feeds replies
    back through ``deliver()``.
    """

    def __init__(
        self,
        transport: Transport,
        default_timeout: float = REQUEST_TIMEOUT,
        max_chunk_len: int = MAX_CHUNK_LEN,
        on_stray_reply: Callable[[Reply], None] | None = None,
    ):
        """Initialize request channel.

        Args:
            transport: Duplex byte stream to the bus.
            default_timeout: Reply timeout in seconds when submit() gets none.
            max_chunk_len: Bound on a received chunk before it is discarded.
            on_stray_reply: Optional hook called with every discarded stray reply.
        """
        self.default_timeout = default_timeout
        self.on_stray_reply = on_stray_reply

        self._writer = FrameWriter(transport)
        self._reader = StreamReader(
            transport,
            on_reply=self.deliver,
            on_fatal=self.fail,
            max_chunk_len=max_chunk_len,
        )
        self._lock = asyncio.Lock()
        self._pending: PendingRequest | None = None
        self._fatal: ConnectionFatalError | None = None
        self._started = False
        self._stats = {
            "requests": 0,
            "replies": 0,
            "timeouts": 0,
            "mismatches": 0,
            "stray_replies": 0,
            "malformed": 0,
        }

    @property
    def stats(self) -> dict:
        """Channel statistics merged with reader and writer counters."""
        return {**self._stats, **self._reader.stats, **self._writer.stats}

    @property
    def failed(self) -> bool:
        """Whether the channel hit a connection-fatal error."""
        return self._fatal is not None

    @property
    def busy(self) -> bool:
        """Whether a caller currently holds the bus."""
        return self._lock.locked()

    @property
    def pending(self) -> PendingRequest | None:
        return self._pending

    def start(self) -> None:
        """Start consuming the transport's byte stream."""
        self._started = True
        self._reader.start()

    async def stop(self) -> None:
        """Stop the reader and fail any waiting or queued caller."""
        self._started = False
        await self._reader.stop()
        if self._fatal is None:
            self._fatal = ConnectionFatalError("Request channel stopped")
            self._fail_pending(self._fatal)
        logger.info("Request channel stopped")

    def reset(self) -> None:
        """Clear the fatal state once the transport has been re-established."""
        if self._fatal is not None:
            logger.info("Resetting request channel after: %s", self._fatal)
        self._fatal = None
        self._reader.reset_buffer()
        if self._started:
            self._reader.start()

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    def _raise_if_failed(self) -> None:
        if self._fatal is not None:
            raise ConnectionFatalError(str(self._fatal))

    async def submit(self, command: Command, timeout: float | None = None) -> Reply | None:
        """Send a command and wait for its reply.

        Args:
            command: Command to send.
            timeout: Seconds to wait for the reply (default: default_timeout).

        Returns:
            The matching reply, or None for commands that expect no reply.

        Raises:
            RequestTimeoutError: No matching reply before the deadline.
            ProtocolMismatchError: The matching reply had the wrong payload shape.
            ConnectionFatalError: The transport failed, now or earlier.
        """
        if timeout is None:
            timeout = self.default_timeout

        self._raise_if_failed()

        async with self._lock:
            self._raise_if_failed()
            self._stats["requests"] += 1

            if not command.expects_reply:
                await self._write(command)
                return None

            loop = asyncio.get_running_loop()
            address, action = command.reply_key
            pending = PendingRequest(
                address=address,
                action=action,
                future=loop.create_future(),
                deadline=loop.time() + timeout,
            )
            # Recorded before the write so a fast reply cannot slip past.
            self._pending = pending
            try:
                await self._write(command)
                remaining = max(0.0, pending.deadline - loop.time())
                reply = await asyncio.wait_for(pending.future, timeout=remaining)
            except TimeoutError:
                self._stats["timeouts"] += 1
                logger.warning("No reply to #%d%s within %.3fs", address, action, timeout)
                raise RequestTimeoutError(f"No reply to #{address}{action} within {timeout}s") from None
            finally:
                if self._pending is pending:
                    self._pending = None
                if not pending.future.done():
                    pending.future.cancel()

        if not command.accepts(reply):
            self._stats["mismatches"] += 1
            logger.warning("Reply %s does not fit %s", reply, type(command).__name__)
            raise ProtocolMismatchError(
                f"{type(command).__name__} #{address}{action} got {type(reply).__name__}",
                reply=reply,
            )

        self._stats["replies"] += 1
        return reply

    async def _write(self, command: Command) -> None:
        try:
            await self._writer.write_command(command)
        except (ConnectionError, OSError) as e:
            # Our own caller gets the error directly.
            self._pending = None
            error = ConnectionFatalError(f"Transport write failed: {e}")
            self.fail(error)
            raise error from e

    def deliver(self, reply: Reply) -> None:
        """Hand a decoded reply to the pending request, or drop it."""
        if isinstance(reply, MalformedReply):
            self._stats["malformed"] += 1
            logger.warning("Discarding malformed frame (%s): %r", reply.reason, reply.raw)
            return

        pending = self._pending
        if pending is None or pending.future.done() or not pending.matches(reply):
            self._stats["stray_replies"] += 1
            logger.debug("Discarding stray reply: %s", reply)
            if self.on_stray_reply is not None:
                try:
                    self.on_stray_reply(reply)
                except Exception:
                    logger.exception("Stray reply hook failed for %s", reply)
            return

        self._pending = None
        pending.future.set_result(reply)

    def fail(self, error: ConnectionFatalError) -> None:
        """Enter the failed state and fail the pending request, if any."""
        if self._fatal is None:
            logger.error("Request channel failed: %s", error)
        self._fatal = error
        self._fail_pending(error)

    def _fail_pending(self, error: ConnectionFatalError) -> None:
        pending = self._pending
        self._pending = None
        if pending is not None and not pending.future.done():
            pending.future.set_exception(error)
