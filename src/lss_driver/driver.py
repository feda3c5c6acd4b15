"""High-level LSS servo operations built on the request channel.

Positions are in degrees, speeds in degrees per second, voltage in volts,
temperature in degrees Celsius and current in amperes. Servos use tenths
of a degree, millivolts, tenths of a degree Celsius and milliamps on the
wire.
"""

import logging
from collections.abc import Iterable
from enum import IntEnum
from typing import TypeVar

from lss_driver.protocol.channel import RequestChannel
from lss_driver.protocol.constants import (
    REQUEST_TIMEOUT,
    Action,
    LedBlinking,
    LedColor,
    MotorStatus,
    SafeModeStatus,
)
from lss_driver.protocol.errors import PacketParsingError, ProtocolMismatchError
from lss_driver.protocol.frames import Modifier
from lss_driver.protocol.messages import Fire, Query, SetValue, ValueReply
from lss_driver.serial.connection import SerialConnection

logger = logging.getLogger(__name__)

_E = TypeVar("_E", bound=IntEnum)

SAFETY_STATUS_ARGUMENT = 1


def parse_enum(enum_type: type[_E], value: int) -> _E:
    """Convert a reply value into an enum member.

    Raises:
        PacketParsingError: If the value has no matching member.
    """
    try:
        return enum_type(value)
    except ValueError:
        raise PacketParsingError(f"Failed parsing {enum_type.__name__} from {value}") from None


class LSSDriver:
    """Driver for a bus of Lynxmotion LSS servos.

    Every call maps to one command on the shared request channel; errors
    from the channel pass through unchanged.
    """

    def __init__(
        self,
        channel: RequestChannel,
        timeout: float | None = None,
        confirm_writes: bool = False,
        connection: SerialConnection | None = None,
    ):
        """Initialize driver.

        Args:
            channel: Started request channel for the bus.
            timeout: Reply timeout in seconds (default: the channel's).
            confirm_writes: Wait for an echo after writes. Only for devices
                or firmware that acknowledge writes.
            connection: Serial connection to close in close(), if owned.
        """
        self.channel = channel
        self.timeout = timeout
        self.confirm_writes = confirm_writes
        self._connection = connection

    @classmethod
    async def open(
        cls,
        port: str,
        baudrate: int = 115200,
        timeout: float = REQUEST_TIMEOUT,
        confirm_writes: bool = False,
    ) -> "LSSDriver":
        """Open a serial port and return a driver with a started channel.

        Raises:
            ConnectionError: If the port cannot be opened.
        """
        connection = SerialConnection(port=port, baudrate=baudrate)
        if not await connection.connect():
            raise ConnectionError(f"Failed to open serial port {port}")

        channel = RequestChannel(connection, default_timeout=timeout)
        channel.start()
        logger.info("LSS driver ready on %s at %d baud", port, baudrate)
        return cls(channel, confirm_writes=confirm_writes, connection=connection)

    async def close(self) -> None:
        """Stop the channel and close the serial port if this driver opened it."""
        await self.channel.stop()
        if self._connection is not None:
            await self._connection.disconnect()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # -- plumbing ------------------------------------------------------------

    async def _query(self, address: int, action: Action, argument: int | None = None) -> int:
        reply = await self.channel.submit(Query(address, action, argument=argument), timeout=self.timeout)
        if not isinstance(reply, ValueReply):
            raise ProtocolMismatchError(f"Expected a value for {action} from servo {address}", reply=reply)
        return reply.value

    async def _set(self, address: int, action: Action, value: int, modifiers: Iterable[Modifier] = ()) -> None:
        command = SetValue(
            address,
            action,
            value,
            modifiers=tuple(modifiers),
            expect_reply=self.confirm_writes,
        )
        await self.channel.submit(command, timeout=self.timeout)

    async def _fire(self, address: int, action: Action) -> None:
        await self.channel.submit(Fire(address, action, expect_reply=self.confirm_writes), timeout=self.timeout)

    # -- motion --------------------------------------------------------------

    async def move_to_position(self, address: int, position: float) -> None:
        """Move to an absolute position in degrees."""
        await self._set(address, Action.MOVE_DEGREES, round(position * 10))

    async def move_to_position_with_modifier(self, address: int, position: float, modifier: Modifier) -> None:
        """Move to a position with one modifier (speed, timed, current limit)."""
        await self._set(address, Action.MOVE_DEGREES, round(position * 10), (modifier,))

    async def move_to_position_with_modifiers(
        self, address: int, position: float, modifiers: Iterable[Modifier]
    ) -> None:
        await self._set(address, Action.MOVE_DEGREES, round(position * 10), modifiers)

    async def set_rotation_speed(self, address: int, speed: float) -> None:
        """Rotate continuously (wheel mode) at ``speed`` degrees per second."""
        await self._set(address, Action.WHEEL_DEGREES, round(speed))

    async def limp(self, address: int) -> None:
        """Release torque."""
        await self._fire(address, Action.LIMP)

    async def halt_hold(self, address: int) -> None:
        """Stop and hold the current position."""
        await self._fire(address, Action.HALT_HOLD)

    async def reset(self, address: int) -> None:
        """Soft-reset the servo. It stops answering for a moment afterwards."""
        await self._fire(address, Action.RESET)

    # -- telemetry -----------------------------------------------------------

    async def query_position(self, address: int) -> float:
        """Current position in degrees."""
        return await self._query(address, Action.QUERY_POSITION) / 10

    async def query_target_position(self, address: int) -> float:
        return await self._query(address, Action.QUERY_TARGET_POSITION) / 10

    async def query_rotation_speed(self, address: int) -> float:
        """Current speed in degrees per second."""
        return float(await self._query(address, Action.QUERY_WHEEL_SPEED))

    async def query_voltage(self, address: int) -> float:
        """Input voltage in volts."""
        return await self._query(address, Action.QUERY_VOLTAGE) / 1000

    async def query_temperature(self, address: int) -> float:
        """Internal temperature in degrees Celsius."""
        return await self._query(address, Action.QUERY_TEMPERATURE) / 10

    async def query_current(self, address: int) -> float:
        """Motor current in amperes."""
        return await self._query(address, Action.QUERY_CURRENT) / 1000

    async def query_status(self, address: int) -> MotorStatus:
        """Motor status. For SAFE_MODE, query_safety_status() gives the reason."""
        return parse_enum(MotorStatus, await self._query(address, Action.QUERY_STATUS))

    async def query_safety_status(self, address: int) -> SafeModeStatus:
        value = await self._query(address, Action.QUERY_STATUS, argument=SAFETY_STATUS_ARGUMENT)
        return parse_enum(SafeModeStatus, value)

    # -- LED -----------------------------------------------------------------

    async def set_color(self, address: int, color: LedColor) -> None:
        await self._set(address, Action.COLOR, int(color))

    async def query_color(self, address: int) -> LedColor:
        return parse_enum(LedColor, await self._query(address, Action.QUERY_COLOR))

    async def set_led_blinking(self, address: int, blinking: Iterable[LedBlinking]) -> None:
        """Blink the LED in the given motor states (configuration, needs reset)."""
        value = LedBlinking.NO_BLINKING
        for state in blinking:
            value |= state
        await self._set(address, Action.LED_BLINKING, int(value))

    # -- configuration -------------------------------------------------------

    async def set_motion_profile(self, address: int, enabled: bool) -> None:
        """Enable or disable the motion profile (EM1 / EM0)."""
        await self._set(address, Action.MOTION_PROFILE, int(enabled))

    async def query_motion_profile(self, address: int) -> bool:
        return await self._query(address, Action.QUERY_MOTION_PROFILE) != 0

    async def set_filter_position_count(self, address: int, count: int) -> None:
        """Position filter depth, used only when the motion profile is off."""
        await self._set(address, Action.FILTER_POSITION_COUNT, count)

    async def query_filter_position_count(self, address: int) -> int:
        return await self._query(address, Action.QUERY_FILTER_POSITION_COUNT)

    async def set_angular_stiffness(self, address: int, stiffness: int) -> None:
        """Angular stiffness, -10 to 10."""
        await self._set(address, Action.ANGULAR_STIFFNESS, stiffness)

    async def query_angular_stiffness(self, address: int) -> int:
        return await self._query(address, Action.QUERY_ANGULAR_STIFFNESS)

    async def set_angular_holding(self, address: int, holding: int) -> None:
        """Angular holding stiffness, -10 to 10."""
        await self._set(address, Action.ANGULAR_HOLDING, holding)

    async def query_angular_holding(self, address: int) -> int:
        return await self._query(address, Action.QUERY_ANGULAR_HOLDING)

    async def set_angular_acceleration(self, address: int, acceleration: int) -> None:
        await self._set(address, Action.ANGULAR_ACCELERATION, acceleration)

    async def set_angular_deceleration(self, address: int, deceleration: int) -> None:
        await self._set(address, Action.ANGULAR_DECELERATION, deceleration)

    async def set_maximum_motor_duty(self, address: int, duty: int) -> None:
        await self._set(address, Action.MAXIMUM_MOTOR_DUTY, duty)

    async def set_maximum_speed(self, address: int, speed: float) -> None:
        """Maximum speed in degrees per second."""
        await self._set(address, Action.MAXIMUM_SPEED, round(speed * 10))
