"""Request and response models for the HTTP gateway."""

from pydantic import BaseModel, ConfigDict, Field

from lss_driver.protocol.constants import INT32_MAX, INT32_MIN, LedColor, MotorStatus


class TelemetryResponse(BaseModel):
    """Snapshot of one servo's telemetry."""

    address: int = Field(..., ge=0, le=253, description="Servo address")
    position: float = Field(..., description="Position in degrees")
    voltage: float = Field(..., description="Input voltage in volts")
    temperature: float = Field(..., description="Temperature in degrees Celsius")
    current: float = Field(..., description="Motor current in amperes")
    status: MotorStatus = Field(..., description="Motor status")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "address": 5,
                "position": 123.4,
                "voltage": 11.9,
                "temperature": 34.5,
                "current": 0.12,
                "status": 6,
            }
        }
    )


class MoveRequest(BaseModel):
    """Request to move a servo."""

    # Sent in tenths of a degree, which must fit a signed 32-bit value
    position: float = Field(
        ...,
        ge=INT32_MIN / 10,
        le=INT32_MAX / 10,
        description="Target position in degrees",
    )
    duration_ms: int | None = Field(None, gt=0, le=INT32_MAX, description="Timed move duration in milliseconds")
    speed: int | None = Field(None, gt=0, le=INT32_MAX, description="Speed limit in degrees per second")


class ColorRequest(BaseModel):
    """Request to set the LED color."""

    color: LedColor = Field(..., description="LED color code (0-7)")


class CommandResponse(BaseModel):
    """Result of a command sent to a servo."""

    success: bool
    address: int
    action: str


class ErrorResponse(BaseModel):
    """Error response model."""

    detail: str


class HealthResponse(BaseModel):
    """Gateway health."""

    status: str = Field(..., description="healthy, degraded or unhealthy")
    bus_connected: bool
    stats: dict[str, int] = Field(default_factory=dict)
