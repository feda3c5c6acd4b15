"""Shared test fixtures."""

import asyncio
from collections.abc import Callable

import pytest

# Address used by most tests
TEST_SERVO_ADDRESS = 5


class FakeTransport:
    """In-memory duplex transport.

    Bytes passed to ``inject()`` come out of ``read()``. Every write is
    recorded; if a ``responder`` is set, its answer to a write is injected
    after ``reply_delay`` seconds.
    """

    def __init__(
        self,
        responder: Callable[[bytes], bytes | None] | None = None,
        reply_delay: float = 0.0,
        write_delay: float = 0.0,
    ):
        self.responder = responder
        self.reply_delay = reply_delay
        self.write_delay = write_delay
        self.writes: list[bytes] = []
        self.fail_writes = False
        self.active_writes = 0
        self.max_active_writes = 0
        self._incoming: asyncio.Queue[bytes | Exception] = asyncio.Queue()

    async def read(self) -> bytes:
        item = await self._incoming.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def write(self, data: bytes) -> None:
        if self.fail_writes:
            raise ConnectionError("write failed")

        self.active_writes += 1
        self.max_active_writes = max(self.max_active_writes, self.active_writes)
        try:
            if self.write_delay:
                await asyncio.sleep(self.write_delay)
            self.writes.append(data)
        finally:
            self.active_writes -= 1

        if self.responder is not None:
            reply = self.responder(data)
            if reply:
                loop = asyncio.get_running_loop()
                loop.call_later(self.reply_delay, self.inject, reply)

    def inject(self, data: bytes) -> None:
        self._incoming.put_nowait(data)

    def close(self) -> None:
        """Make the next read fail as if the port went away."""
        self._incoming.put_nowait(ConnectionError("transport closed"))


def echo_value(value: int) -> Callable[[bytes], bytes]:
    """Responder answering every query with ``value`` using the servo's '*' marker."""

    def respond(data: bytes) -> bytes:
        return b"*" + data[1:-1] + str(value).encode() + b"\r"

    return respond


@pytest.fixture
def transport() -> FakeTransport:
    """Transport that never answers on its own."""
    return FakeTransport()
