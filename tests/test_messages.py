"""Unit tests for commands and replies."""

import pytest

from lss_driver.protocol.constants import BROADCAST_ADDRESS, Action
from lss_driver.protocol.errors import DriverError, InvalidCommandError
from lss_driver.protocol.messages import AckReply, Fire, MalformedReply, Query, SetValue, ValueReply


class TestExpectsReply:
    """Tests for Command.expects_reply."""

    def test_query_expects_reply(self):
        assert Query(5, Action.QUERY_POSITION).expects_reply is True

    def test_writes_do_not_expect_reply_by_default(self):
        """Servos do not acknowledge writes."""
        assert SetValue(5, Action.MOVE_DEGREES, 100).expects_reply is False
        assert Fire(5, Action.LIMP).expects_reply is False

    def test_confirmed_write(self):
        assert SetValue(5, Action.MOVE_DEGREES, 100, expect_reply=True).expects_reply is True
        assert Fire(5, Action.LIMP, expect_reply=True).expects_reply is True

    def test_broadcast_never_expects_reply(self):
        assert Query(BROADCAST_ADDRESS, Action.QUERY_POSITION).expects_reply is False
        assert Fire(BROADCAST_ADDRESS, Action.LIMP, expect_reply=True).expects_reply is False


class TestAccepts:
    """Tests for payload shape checks."""

    def test_query_needs_value(self):
        query = Query(5, Action.QUERY_POSITION)
        assert query.accepts(ValueReply(5, "QD", 10))
        assert not query.accepts(AckReply(5, "QD"))

    def test_writes_accept_ack_or_value(self):
        command = SetValue(5, Action.COLOR, 2, expect_reply=True)
        assert command.accepts(AckReply(5, "LED"))
        assert command.accepts(ValueReply(5, "LED", 2))

    def test_malformed_never_accepted(self):
        assert not Fire(5, Action.LIMP).accepts(MalformedReply(b"#5", "truncated frame"))


class TestMatching:
    """Tests for reply matching."""

    def test_reply_key_ignores_query_argument(self):
        """#5Q1 is answered with *5Q<n>."""
        assert Query(5, Action.QUERY_STATUS, argument=1).reply_key == (5, "Q")

    def test_value_reply_matches(self):
        reply = ValueReply(5, "QD", 10)
        assert reply.matches(5, Action.QUERY_POSITION)
        assert not reply.matches(7, Action.QUERY_POSITION)
        assert not reply.matches(5, Action.QUERY_TARGET_POSITION)

    def test_malformed_matches_nothing(self):
        assert not MalformedReply(b"#5QD", "truncated frame").matches(5, "QD")


class TestValidation:
    """Tests for command validation at construction."""

    def test_address_out_of_range(self):
        with pytest.raises(InvalidCommandError, match="Address out of range"):
            Query(300, Action.QUERY_POSITION)

    def test_value_out_of_range(self):
        with pytest.raises(InvalidCommandError, match="32 bits"):
            SetValue(5, Action.MOVE_DEGREES, 2**31)

    def test_invalid_action(self):
        with pytest.raises(InvalidCommandError):
            Fire(5, "L1")

    def test_is_driver_error(self):
        """Callers catching DriverError also see invalid commands."""
        with pytest.raises(DriverError):
            Query(-1, Action.QUERY_POSITION)
