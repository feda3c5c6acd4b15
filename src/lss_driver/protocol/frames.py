"""Frame construction and parsing for the LSS ASCII protocol."""

import re
from dataclasses import dataclass, field
from datetime import timedelta

from .constants import (
    BROADCAST_ADDRESS,
    INT32_MAX,
    INT32_MIN,
    MAX_ACTION_LEN,
    MAX_ADDRESS_DIGITS,
    MAX_CHUNK_LEN,
    START_MARKER,
    START_MARKERS,
    TERMINATOR,
)
from .errors import FramingError, InvalidCommandError

_ACTION_RE = re.compile(r"[A-Za-z]+")
_HEAD_RE = re.compile(rb"(\d*)([A-Za-z]*)")
_VALUE_RE = re.compile(rb"(-?\d+)(.*)", re.DOTALL)


@dataclass(frozen=True)
class Modifier:
    """Command modifier appended after the value (e.g. ``T1000`` for a timed move)."""

    code: str
    value: int

    def __post_init__(self) -> None:
        if not _ACTION_RE.fullmatch(self.code):
            raise InvalidCommandError(f"Invalid modifier code: {self.code!r}")
        if not INT32_MIN <= self.value <= INT32_MAX:
            raise InvalidCommandError(f"Modifier value does not fit in 32 bits: {self.value}")

    @classmethod
    def speed(cls, microseconds_per_second: int) -> "Modifier":
        """Speed modifier for P actions."""
        return cls("S", microseconds_per_second)

    @classmethod
    def speed_degrees(cls, degrees_per_second: int) -> "Modifier":
        """Speed modifier for D and MD actions, in degrees per second."""
        return cls("SD", degrees_per_second)

    @classmethod
    def timed(cls, milliseconds: int) -> "Modifier":
        """Timed move modifier for P, D and MD actions."""
        return cls("T", milliseconds)

    @classmethod
    def timed_duration(cls, duration: timedelta) -> "Modifier":
        return cls("T", int(duration.total_seconds() * 1000))

    @classmethod
    def current_hold(cls, milliamps: int) -> "Modifier":
        """Halt and hold once the current exceeds ``milliamps``."""
        return cls("CH", milliamps)

    @classmethod
    def current_limp(cls, milliamps: int) -> "Modifier":
        """Go limp once the current exceeds ``milliamps``."""
        return cls("CL", milliamps)

    def to_text(self) -> str:
        return f"{self.code}{self.value}"


@dataclass(frozen=True)
class Frame:
    """
    Represents one LSS protocol frame.

    Wire form: ``#<address><action>[<value>][<modifiers>]<CR>``

    Attributes:
        address: Servo address (0-253) or the broadcast address (254)
        action: Action code, letters only
        value: Optional signed 32-bit parameter
        modifiers: Modifiers appended after the value (outbound only)
    """

    address: int
    action: str
    value: int | None = None
    modifiers: tuple[Modifier, ...] = field(default=())

    def __post_init__(self) -> None:
        if not 0 <= self.address <= BROADCAST_ADDRESS:
            raise InvalidCommandError(f"Address out of range: {self.address}")
        if not _ACTION_RE.fullmatch(self.action) or len(self.action) > MAX_ACTION_LEN:
            raise InvalidCommandError(f"Invalid action code: {self.action!r}")
        if self.value is not None and not INT32_MIN <= self.value <= INT32_MAX:
            raise InvalidCommandError(f"Value does not fit in 32 bits: {self.value}")

    def to_bytes(self) -> bytes:
        """
        Convert frame to bytes for transmission.

        Example:
            >>> Frame(address=5, action="QD").to_bytes()
            b'#5QD\\r'
            >>> Frame(address=5, action="D", value=-300).to_bytes()
            b'#5D-300\\r'
        """
        text = f"{chr(START_MARKER)}{self.address}{self.action}"
        if self.value is not None:
            text += str(self.value)
        text += "".join(modifier.to_text() for modifier in self.modifiers)
        return text.encode("ascii") + bytes([TERMINATOR])

    @classmethod
    def from_bytes(cls, data: bytes, max_len: int = MAX_CHUNK_LEN) -> "Frame":
        """
        Parse a frame from one received chunk.

        The trailing terminator is optional. Semantic meaning of the action
        is not checked, only its lexical shape.

        Args:
            data: Raw chunk bytes
            max_len: Length bound for the chunk (terminator excluded)

        Returns:
            Parsed Frame

        Raises:
            FramingError: If the chunk is malformed
        """
        raw = bytes(data)
        body = raw[:-1] if raw.endswith(bytes([TERMINATOR])) else raw

        if len(body) > max_len:
            raise FramingError(f"chunk exceeds {max_len} bytes", raw)
        if not body or body[0] not in START_MARKERS:
            raise FramingError("missing start marker", raw)

        head = _HEAD_RE.match(body, 1)
        address_digits, action_bytes = head.group(1), head.group(2)

        if not address_digits:
            raise FramingError("missing address", raw)
        if len(address_digits) > MAX_ADDRESS_DIGITS or int(address_digits) > BROADCAST_ADDRESS:
            raise FramingError("address out of range", raw)
        if not action_bytes:
            raise FramingError("missing action", raw)
        if len(action_bytes) > MAX_ACTION_LEN:
            raise FramingError("action too long", raw)

        rest = body[head.end() :]
        value = None
        if rest:
            match = _VALUE_RE.match(rest)
            if match is None:
                if rest.startswith(b"-"):
                    raise FramingError("sign without digits", raw)
                raise FramingError("unexpected bytes after action", raw)
            if match.group(2):
                raise FramingError("trailing bytes after value", raw)
            value = int(match.group(1))
            if not INT32_MIN <= value <= INT32_MAX:
                raise FramingError("value out of range", raw)

        return cls(
            address=int(address_digits),
            action=action_bytes.decode("ascii"),
            value=value,
        )

    def __str__(self) -> str:
        value = "" if self.value is None else self.value
        return f"#{self.address}{self.action}{value}"


def split_frames(data: bytes) -> list[bytes]:
    """Split a byte string into terminated chunks.

    Each returned chunk keeps its terminator. Bytes after the last
    terminator are not returned.
    """
    terminator = bytes([TERMINATOR])
    parts = data.split(terminator)
    return [part + terminator for part in parts[:-1]]
