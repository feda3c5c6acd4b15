"""Unit tests for API endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from lss_driver.api.dependencies import app_state
from lss_driver.driver import LSSDriver
from lss_driver.main import app
from lss_driver.protocol.channel import RequestChannel
from lss_driver.protocol.constants import LedColor, MotorStatus
from lss_driver.protocol.errors import (
    ConnectionFatalError,
    InvalidCommandError,
    PacketParsingError,
    RequestTimeoutError,
)
from lss_driver.protocol.frames import Modifier


def _stats(**overrides) -> dict:
    stats = {
        "requests": 0,
        "replies": 0,
        "timeouts": 0,
        "mismatches": 0,
        "stray_replies": 0,
        "malformed": 0,
    }
    stats.update(overrides)
    return stats


@pytest.fixture
def mock_app_state():
    """Set up mock app state for testing."""
    # Save original state (set by lifespan)
    orig_channel = app_state.channel
    orig_driver = app_state.driver

    channel = MagicMock(spec=RequestChannel)
    channel.failed = False
    channel.stats = _stats()

    driver = MagicMock(spec=LSSDriver)
    driver.channel = channel

    app_state.channel = channel
    app_state.driver = driver

    yield {"channel": channel, "driver": driver}

    # Restore original state for lifespan teardown
    app_state.channel = orig_channel
    app_state.driver = orig_driver


@pytest.fixture
def client():
    """Create test client; the lifespan finds no serial port and leaves the bus down."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


class TestRootEndpoint:
    """Tests for GET / endpoint."""

    def test_root(self, client, mock_app_state):
        """Test root endpoint returns app info."""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "LSS Gateway"
        assert "version" in data
        assert data["status"] == "running"


class TestHealthEndpoint:
    """Tests for GET /health endpoint."""

    def test_health_not_initialized(self, client, mock_app_state):
        """Test health when there is no channel."""
        app_state.channel = None

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["bus_connected"] is False

    def test_health_healthy(self, client, mock_app_state):
        mock_app_state["channel"].stats = _stats(requests=10, replies=10)

        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["bus_connected"] is True
        assert data["stats"]["requests"] == 10

    def test_health_degraded_after_timeouts(self, client, mock_app_state):
        mock_app_state["channel"].stats = _stats(requests=10, replies=8, timeouts=2)

        assert client.get("/health").json()["status"] == "degraded"

    def test_health_failed_channel(self, client, mock_app_state):
        mock_app_state["channel"].failed = True

        data = client.get("/health").json()

        assert data["status"] == "unhealthy"
        assert data["bus_connected"] is False


class TestTelemetryEndpoint:
    """Tests for GET /api/servos/{address}/telemetry."""

    def _set_telemetry(self, driver):
        driver.query_position = AsyncMock(return_value=123.4)
        driver.query_voltage = AsyncMock(return_value=11.9)
        driver.query_temperature = AsyncMock(return_value=34.5)
        driver.query_current = AsyncMock(return_value=0.12)
        driver.query_status = AsyncMock(return_value=MotorStatus.HOLDING)

    def test_telemetry(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        self._set_telemetry(driver)

        response = client.get("/api/servos/5/telemetry")

        assert response.status_code == 200
        data = response.json()
        assert data["address"] == 5
        assert data["position"] == 123.4
        assert data["voltage"] == 11.9
        assert data["status"] == int(MotorStatus.HOLDING)
        driver.query_position.assert_awaited_once_with(5)

    def test_broadcast_rejected(self, client, mock_app_state):
        response = client.get("/api/servos/254/telemetry")
        assert response.status_code == 400

    def test_address_out_of_range(self, client, mock_app_state):
        response = client.get("/api/servos/255/telemetry")
        assert response.status_code == 422

    def test_timeout_maps_to_504(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        self._set_telemetry(driver)
        driver.query_position = AsyncMock(side_effect=RequestTimeoutError("No reply from servo 5"))

        response = client.get("/api/servos/5/telemetry")

        assert response.status_code == 504
        assert "No reply" in response.json()["detail"]

    def test_connection_failure_maps_to_503(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        self._set_telemetry(driver)
        driver.query_voltage = AsyncMock(side_effect=ConnectionFatalError("port closed"))

        assert client.get("/api/servos/5/telemetry").status_code == 503

    def test_bad_reply_maps_to_502(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        self._set_telemetry(driver)
        driver.query_status = AsyncMock(side_effect=PacketParsingError("Failed parsing MotorStatus from 42"))

        assert client.get("/api/servos/5/telemetry").status_code == 502

    def test_bus_down(self, client, mock_app_state):
        mock_app_state["channel"].failed = True

        response = client.get("/api/servos/5/telemetry")

        assert response.status_code == 503
        assert response.json()["detail"] == "Servo bus not connected"


class TestCommandEndpoints:
    """Tests for the POST command endpoints."""

    def test_move(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        driver.move_to_position_with_modifiers = AsyncMock()

        response = client.post("/api/servos/5/position", json={"position": 45.5})

        assert response.status_code == 200
        assert response.json() == {"success": True, "address": 5, "action": "D"}
        driver.move_to_position_with_modifiers.assert_awaited_once_with(5, 45.5, [])

    def test_move_with_modifiers(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        driver.move_to_position_with_modifiers = AsyncMock()

        response = client.post(
            "/api/servos/5/position",
            json={"position": 90, "duration_ms": 1500, "speed": 60},
        )

        assert response.status_code == 200
        driver.move_to_position_with_modifiers.assert_awaited_once_with(
            5, 90.0, [Modifier.timed(1500), Modifier.speed_degrees(60)]
        )

    def test_move_invalid_duration(self, client, mock_app_state):
        response = client.post("/api/servos/5/position", json={"position": 90, "duration_ms": 0})
        assert response.status_code == 422

    @pytest.mark.parametrize("position", [1e9, -1e9])
    def test_move_position_out_of_range(self, client, mock_app_state, position):
        """Positions that do not fit the wire value are rejected by validation."""
        driver = mock_app_state["driver"]
        driver.move_to_position_with_modifiers = AsyncMock()

        response = client.post("/api/servos/5/position", json={"position": position})

        assert response.status_code == 422
        driver.move_to_position_with_modifiers.assert_not_awaited()

    def test_invalid_command_maps_to_400(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        driver.move_to_position_with_modifiers = AsyncMock(
            side_effect=InvalidCommandError("Value does not fit in 32 bits: 2147483648")
        )

        response = client.post("/api/servos/5/position", json={"position": 10})

        assert response.status_code == 400
        assert "32 bits" in response.json()["detail"]

    def test_move_broadcast(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        driver.move_to_position_with_modifiers = AsyncMock()

        response = client.post("/api/servos/254/position", json={"position": 0})

        assert response.status_code == 200
        assert response.json()["address"] == 254

    def test_limp(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        driver.limp = AsyncMock()

        response = client.post("/api/servos/3/limp")

        assert response.status_code == 200
        assert response.json()["action"] == "L"
        driver.limp.assert_awaited_once_with(3)

    def test_halt(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        driver.halt_hold = AsyncMock()

        response = client.post("/api/servos/3/halt")

        assert response.status_code == 200
        assert response.json()["action"] == "H"

    def test_color(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        driver.set_color = AsyncMock()

        response = client.post("/api/servos/3/color", json={"color": 2})

        assert response.status_code == 200
        driver.set_color.assert_awaited_once_with(3, LedColor.GREEN)

    def test_color_invalid(self, client, mock_app_state):
        response = client.post("/api/servos/3/color", json={"color": 9})
        assert response.status_code == 422

    def test_write_failure_maps_to_503(self, client, mock_app_state):
        driver = mock_app_state["driver"]
        driver.limp = AsyncMock(side_effect=ConnectionFatalError("write failed"))

        assert client.post("/api/servos/3/limp").status_code == 503
