"""Encoding of commands and decoding of received chunks."""

import logging

from .constants import MAX_CHUNK_LEN
from .errors import FramingError
from .frames import Frame
from .messages import AckReply, Command, MalformedReply, Reply, ValueReply

logger = logging.getLogger(__name__)


def encode(command: Command) -> bytes:
    """Encode a command into its wire form, terminator included."""
    return command.to_frame().to_bytes()


def decode(chunk: bytes, max_len: int = MAX_CHUNK_LEN) -> Reply:
    """Decode one chunk into a reply.

    Never raises: a chunk that does not parse becomes a MalformedReply
    carrying the original bytes.
    """
    try:
        frame = Frame.from_bytes(chunk, max_len=max_len)
    except FramingError as e:
        logger.debug("Malformed chunk (%s): %r", e.reason, bytes(chunk))
        return MalformedReply(raw=bytes(chunk), reason=e.reason)

    if frame.value is None:
        return AckReply(address=frame.address, action=frame.action)
    return ValueReply(address=frame.address, action=frame.action, value=frame.value)
