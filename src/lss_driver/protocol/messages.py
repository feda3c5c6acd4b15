"""Typed commands and replies exchanged with LSS servos."""

import asyncio
from dataclasses import dataclass, field

from .constants import BROADCAST_ADDRESS
from .frames import Frame, Modifier


class _CommandBase:
    """Behaviour shared by all command kinds."""

    address: int
    action: str
    expect_reply: bool

    def __post_init__(self) -> None:
        # Raises InvalidCommandError before the command reaches the bus.
        self.to_frame()

    @property
    def expects_reply(self) -> bool:
        """Whether the channel should wait for a reply.

        Broadcast commands never get an answer.
        """
        return self.expect_reply and self.address != BROADCAST_ADDRESS

    @property
    def reply_key(self) -> tuple[int, str]:
        """Address and action a reply must carry to resolve this command."""
        return self.address, self.action

    def accepts(self, reply: "Reply") -> bool:
        """Check the payload shape of a matched reply."""
        return isinstance(reply, (AckReply, ValueReply))

    def to_frame(self) -> Frame:
        raise NotImplementedError


@dataclass(frozen=True)
class Query(_CommandBase):
    """Ask a servo for a value. The reply must carry one.

    ``argument`` selects a variant of the query (``#5Q1`` asks for the
    safety status instead of the motor status); the reply still carries the
    plain action.
    """

    address: int
    action: str
    argument: int | None = None
    expect_reply: bool = True

    def accepts(self, reply: "Reply") -> bool:
        return isinstance(reply, ValueReply)

    def to_frame(self) -> Frame:
        return Frame(address=self.address, action=self.action, value=self.argument)


@dataclass(frozen=True)
class SetValue(_CommandBase):
    """Write a value to a servo.

    LSS servos do not acknowledge writes, so no reply is awaited unless
    ``expect_reply`` is set.
    """

    address: int
    action: str
    value: int
    modifiers: tuple[Modifier, ...] = field(default=())
    expect_reply: bool = False

    def to_frame(self) -> Frame:
        return Frame(
            address=self.address,
            action=self.action,
            value=self.value,
            modifiers=self.modifiers,
        )


@dataclass(frozen=True)
class Fire(_CommandBase):
    """Trigger an action that takes no value (limp, halt, reset)."""

    address: int
    action: str
    modifiers: tuple[Modifier, ...] = field(default=())
    expect_reply: bool = False

    def to_frame(self) -> Frame:
        return Frame(address=self.address, action=self.action, modifiers=self.modifiers)


Command = Query | SetValue | Fire


@dataclass(frozen=True)
class ValueReply:
    """Reply carrying an integer payload."""

    address: int
    action: str
    value: int

    def matches(self, address: int, action: str) -> bool:
        return self.address == address and self.action == action


@dataclass(frozen=True)
class AckReply:
    """Reply echoing address and action without a payload."""

    address: int
    action: str

    def matches(self, address: int, action: str) -> bool:
        return self.address == address and self.action == action


@dataclass(frozen=True)
class MalformedReply:
    """Chunk that could not be parsed. Keeps the raw bytes for diagnostics."""

    raw: bytes
    reason: str

    def matches(self, address: int, action: str) -> bool:
        return False


Reply = ValueReply | AckReply | MalformedReply


@dataclass
class PendingRequest:
    """The single in-flight request held by the request channel."""

    address: int
    action: str
    future: asyncio.Future
    deadline: float

    def matches(self, reply: Reply) -> bool:
        return reply.matches(self.address, self.action)
