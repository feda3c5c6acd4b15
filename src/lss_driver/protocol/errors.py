"""Exceptions raised by the LSS driver."""

from typing import Any


class DriverError(Exception):
    """Base class for all driver errors."""


class FramingError(DriverError, ValueError):
    """A chunk could not be parsed into a frame."""

    def __init__(self, reason: str, raw: bytes = b""):
        super().__init__(f"{reason}: {raw!r}" if raw else reason)
        self.reason = reason
        self.raw = raw


class RequestTimeoutError(DriverError, TimeoutError):
    """No matching reply arrived before the deadline."""


class ProtocolMismatchError(DriverError):
    """A reply matched by address and action had the wrong payload shape."""

    def __init__(self, message: str, reply: Any = None):
        super().__init__(message)
        self.reply = reply


class ConnectionFatalError(DriverError, ConnectionError):
    """The transport failed or closed; the channel is unusable until reset."""


class PacketParsingError(DriverError, ValueError):
    """A reply value could not be converted into the expected type."""


class InvalidCommandError(DriverError, ValueError):
    """A command cannot be encoded (address, action or value out of range)."""
