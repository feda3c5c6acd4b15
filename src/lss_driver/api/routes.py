"""API route handlers."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path

from lss_driver.api.dependencies import get_driver
from lss_driver.core.models import (
    ColorRequest,
    CommandResponse,
    ErrorResponse,
    MoveRequest,
    TelemetryResponse,
)
from lss_driver.driver import LSSDriver
from lss_driver.protocol.constants import BROADCAST_ADDRESS, MAX_SERVO_ADDRESS, Action
from lss_driver.protocol.errors import (
    ConnectionFatalError,
    DriverError,
    InvalidCommandError,
    RequestTimeoutError,
)
from lss_driver.protocol.frames import Modifier

router = APIRouter(prefix="/api")

Address = Annotated[int, Path(ge=0, le=BROADCAST_ADDRESS, description="Servo address, 254 for broadcast")]

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def _http_error(error: DriverError) -> HTTPException:
    """Map a driver error onto an HTTP status."""
    if isinstance(error, InvalidCommandError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, RequestTimeoutError):
        return HTTPException(status_code=504, detail=str(error))
    if isinstance(error, ConnectionFatalError):
        return HTTPException(status_code=503, detail=str(error))
    return HTTPException(status_code=502, detail=str(error))


def _require_bus(driver: LSSDriver) -> None:
    if driver.channel.failed:
        raise HTTPException(status_code=503, detail="Servo bus not connected")


@router.get(
    "/servos/{address}/telemetry",
    response_model=TelemetryResponse,
    responses=_ERROR_RESPONSES,
)
async def get_telemetry(address: Address, driver: LSSDriver = Depends(get_driver)):
    """Read position, voltage, temperature, current and status of one servo."""
    _require_bus(driver)
    if address > MAX_SERVO_ADDRESS:
        raise HTTPException(status_code=400, detail="Broadcast address cannot be queried")

    try:
        return TelemetryResponse(
            address=address,
            position=await driver.query_position(address),
            voltage=await driver.query_voltage(address),
            temperature=await driver.query_temperature(address),
            current=await driver.query_current(address),
            status=await driver.query_status(address),
        )
    except DriverError as e:
        raise _http_error(e) from None


@router.post("/servos/{address}/position", response_model=CommandResponse, responses=_ERROR_RESPONSES)
async def move(address: Address, request: MoveRequest, driver: LSSDriver = Depends(get_driver)):
    """Move a servo to a position, optionally timed or speed limited."""
    _require_bus(driver)

    modifiers = []
    if request.duration_ms is not None:
        modifiers.append(Modifier.timed(request.duration_ms))
    if request.speed is not None:
        modifiers.append(Modifier.speed_degrees(request.speed))

    try:
        await driver.move_to_position_with_modifiers(address, request.position, modifiers)
    except DriverError as e:
        raise _http_error(e) from None

    return CommandResponse(success=True, address=address, action=Action.MOVE_DEGREES)


@router.post("/servos/{address}/limp", response_model=CommandResponse, responses=_ERROR_RESPONSES)
async def limp(address: Address, driver: LSSDriver = Depends(get_driver)):
    """Release torque."""
    _require_bus(driver)
    try:
        await driver.limp(address)
    except DriverError as e:
        raise _http_error(e) from None

    return CommandResponse(success=True, address=address, action=Action.LIMP)


@router.post("/servos/{address}/halt", response_model=CommandResponse, responses=_ERROR_RESPONSES)
async def halt(address: Address, driver: LSSDriver = Depends(get_driver)):
    """Stop and hold position."""
    _require_bus(driver)
    try:
        await driver.halt_hold(address)
    except DriverError as e:
        raise _http_error(e) from None

    return CommandResponse(success=True, address=address, action=Action.HALT_HOLD)


@router.post("/servos/{address}/color", response_model=CommandResponse, responses=_ERROR_RESPONSES)
async def set_color(address: Address, request: ColorRequest, driver: LSSDriver = Depends(get_driver)):
    """Set the LED color."""
    _require_bus(driver)
    try:
        await driver.set_color(address, request.color)
    except DriverError as e:
        raise _http_error(e) from None

    return CommandResponse(success=True, address=address, action=Action.COLOR)
