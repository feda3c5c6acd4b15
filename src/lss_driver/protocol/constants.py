"""Protocol constants for LSS serial communication."""

from enum import IntEnum, IntFlag, StrEnum

# ============================================================================
# Frame Structure
# ============================================================================

START_MARKER = ord("#")
REPLY_MARKER = ord("*")  # servos answer queries with '*'
START_MARKERS = (START_MARKER, REPLY_MARKER)
TERMINATOR = ord("\r")
MAX_CHUNK_LEN = 64
MAX_ADDRESS_DIGITS = 3
MAX_ACTION_LEN = 5

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# ============================================================================
# Addresses
# ============================================================================

MAX_SERVO_ADDRESS = 253
BROADCAST_ADDRESS = 254

# ============================================================================
# Timing
# ============================================================================

REQUEST_TIMEOUT = 0.2  # seconds

# ============================================================================
# Action Codes
# ============================================================================


class Action(StrEnum):
    """Action codes understood by LSS servos."""

    # Motion
    MOVE_DEGREES = "D"
    WHEEL_DEGREES = "WD"
    LIMP = "L"
    HALT_HOLD = "H"
    RESET = "RESET"

    # Telemetry queries
    QUERY_POSITION = "QD"
    QUERY_TARGET_POSITION = "QDT"
    QUERY_WHEEL_SPEED = "QWD"
    QUERY_VOLTAGE = "QV"
    QUERY_TEMPERATURE = "QT"
    QUERY_CURRENT = "QC"
    QUERY_STATUS = "Q"  # argument 1 selects the safety status

    # LED
    COLOR = "LED"
    QUERY_COLOR = "QLED"
    LED_BLINKING = "CLB"

    # Configuration
    MOTION_PROFILE = "EM"
    QUERY_MOTION_PROFILE = "QEM"
    FILTER_POSITION_COUNT = "FPC"
    QUERY_FILTER_POSITION_COUNT = "QFPC"
    ANGULAR_STIFFNESS = "AS"
    QUERY_ANGULAR_STIFFNESS = "QAS"
    ANGULAR_HOLDING = "AH"
    QUERY_ANGULAR_HOLDING = "QAH"
    ANGULAR_ACCELERATION = "AA"
    ANGULAR_DECELERATION = "AD"
    MAXIMUM_MOTOR_DUTY = "MMD"
    MAXIMUM_SPEED = "SD"


# ============================================================================
# Device Enumerations
# ============================================================================


class LedColor(IntEnum):
    """Colors for the LED on the servo."""

    OFF = 0
    RED = 1
    GREEN = 2
    BLUE = 3
    YELLOW = 4
    CYAN = 5
    MAGENTA = 6
    WHITE = 7


class MotorStatus(IntEnum):
    """Motor status as reported by the Q query.

    When the status is SAFE_MODE the safety status query gives the reason.
    """

    UNKNOWN = 0
    LIMP = 1
    FREE_MOVING = 2
    ACCELERATING = 3
    TRAVELING = 4
    DECELERATING = 5
    HOLDING = 6
    OUTSIDE_LIMITS = 7
    STUCK = 8
    BLOCKED = 9
    SAFE_MODE = 10


class SafeModeStatus(IntEnum):
    """Reason the servo entered safe mode."""

    NO_LIMITS = 0
    CURRENT_LIMIT = 1
    INPUT_VOLTAGE_OUT_OF_RANGE = 2
    TEMPERATURE_LIMIT = 3


class LedBlinking(IntFlag):
    """Motor states that make the LED blink. Values combine."""

    NO_BLINKING = 0
    LIMP = 1
    HOLDING = 2
    ACCELERATING = 4
    DECELERATING = 8
    FREE = 16
    TRAVELLING = 32
    ALWAYS_BLINK = 63
