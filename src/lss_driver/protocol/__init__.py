"""LSS protocol implementation."""

from lss_driver.protocol.codec import decode, encode
from lss_driver.protocol.constants import (
    BROADCAST_ADDRESS,
    START_MARKER,
    TERMINATOR,
    Action,
    LedBlinking,
    LedColor,
    MotorStatus,
    SafeModeStatus,
)
from lss_driver.protocol.errors import (
    ConnectionFatalError,
    DriverError,
    FramingError,
    InvalidCommandError,
    PacketParsingError,
    ProtocolMismatchError,
    RequestTimeoutError,
)
from lss_driver.protocol.frames import Frame, Modifier, split_frames
from lss_driver.protocol.messages import (
    AckReply,
    Command,
    Fire,
    MalformedReply,
    PendingRequest,
    Query,
    Reply,
    SetValue,
    ValueReply,
)

# RequestChannel imported lazily to avoid circular import with serial.reader
# (serial.reader -> protocol.codec -> protocol.__init__ -> channel -> serial.reader)


def __getattr__(name: str):
    if name == "RequestChannel":
        from lss_driver.protocol.channel import RequestChannel

        return RequestChannel
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "RequestChannel",
    "Frame",
    "Modifier",
    "split_frames",
    "encode",
    "decode",
    "Command",
    "Query",
    "SetValue",
    "Fire",
    "Reply",
    "ValueReply",
    "AckReply",
    "MalformedReply",
    "PendingRequest",
    "DriverError",
    "FramingError",
    "InvalidCommandError",
    "RequestTimeoutError",
    "ProtocolMismatchError",
    "ConnectionFatalError",
    "PacketParsingError",
    "BROADCAST_ADDRESS",
    "START_MARKER",
    "TERMINATOR",
    "Action",
    "LedColor",
    "LedBlinking",
    "MotorStatus",
    "SafeModeStatus",
]
