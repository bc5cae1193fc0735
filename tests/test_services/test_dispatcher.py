"""Tests for CommandDispatcher."""

from unittest.mock import AsyncMock

import pytest
from conftest import FakeConnection

from device_shell.config.settings import DEFAULT_TIMEOUT_MS
from device_shell.errors import ConnectionFailure
from device_shell.models import CommandRequest, CommandType, ConsoleType
from device_shell.services.dispatcher import (
    DISPATCH_TABLE,
    CommandDispatcher,
    Disposition,
)
from device_shell.services.sanitizer import ResponseSanitizer

SUPPRESSED = [
    CommandType.REV_SSH_DEVICE_VERIFY,
    CommandType.TRACE_INIT_COMMAND_GATEWAY,
    CommandType.ADDLN_TRACE_INIT_COMMAND_GATEWAY,
    CommandType.SNMP_CODE_DOWNLOAD,
    CommandType.XCONF_CONFIG_UPDATE,
]


@pytest.fixture
def dispatcher() -> CommandDispatcher:
    return CommandDispatcher(ResponseSanitizer())


class TestDispatchTable:
    """Test the execute/suppress table."""

    @pytest.mark.parametrize("command_type", SUPPRESSED)
    def test_reserved_types_suppressed(
        self, dispatcher: CommandDispatcher, command_type: CommandType
    ) -> None:
        """Reserved placeholder types are suppressed."""
        request = CommandRequest("rm -rf /tmp/x", command_type=command_type)
        assert dispatcher.is_suppressed(request)

    @pytest.mark.parametrize(
        "request_",
        [
            CommandRequest("uptime"),
            CommandRequest("snmpget ...", command_type=CommandType.SNMP_COMMAND),
            CommandRequest("uptime", command_type=CommandType.DEFAULT),
            CommandRequest("uptime", console_type=ConsoleType.ARM),
            CommandRequest("uptime", console_type=ConsoleType.DEFAULT),
        ],
    )
    def test_executed_types(
        self, dispatcher: CommandDispatcher, request_: CommandRequest
    ) -> None:
        """Untagged, SNMP_COMMAND, ARM and default tags execute."""
        assert dispatcher.disposition(request_) is Disposition.EXECUTE

    def test_atom_console_suppressed(self, dispatcher: CommandDispatcher) -> None:
        """Commands for the ATOM console are not run."""
        request = CommandRequest("uptime", console_type=ConsoleType.ATOM)
        assert dispatcher.is_suppressed(request)

    def test_every_command_type_has_a_disposition(self) -> None:
        """Unlisted types fall through to execute."""
        dispatcher = CommandDispatcher(ResponseSanitizer())
        for command_type in CommandType:
            request = CommandRequest("x", command_type=command_type)
            expected = DISPATCH_TABLE.get(command_type, Disposition.EXECUTE)
            assert dispatcher.disposition(request) is expected

    def test_custom_table(self) -> None:
        """A new suppressed type is a table entry."""
        table = {CommandType.SNMP_COMMAND: Disposition.SUPPRESS}
        dispatcher = CommandDispatcher(ResponseSanitizer(), table=table)

        assert dispatcher.is_suppressed(
            CommandRequest("x", command_type=CommandType.SNMP_COMMAND)
        )
        assert not dispatcher.is_suppressed(
            CommandRequest("x", command_type=CommandType.XCONF_CONFIG_UPDATE)
        )


class TestExecute:
    """Test dispatching over a connection."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command_type", SUPPRESSED)
    async def test_suppressed_sends_nothing(
        self, dispatcher: CommandDispatcher, command_type: CommandType
    ) -> None:
        """Suppressed requests never reach the connection."""
        conn = FakeConnection(responses=["should not be read"])

        result = await dispatcher.execute(
            conn, CommandRequest("reboot", command_type=command_type)
        )

        assert result is None
        assert conn.sent == []

    @pytest.mark.asyncio
    async def test_snmp_command_executes(self, dispatcher: CommandDispatcher) -> None:
        """SNMP_COMMAND is sent and its sanitized response returned."""
        conn = FakeConnection(responses=["banner law enforcement.STRING: 1.2"])

        result = await dispatcher.execute(
            conn,
            CommandRequest("snmpget -v2c dut sysDescr", command_type=CommandType.SNMP_COMMAND),
            timeout_ms=500,
        )

        assert result == "STRING: 1.2"
        assert conn.sent == ["snmpget -v2c dut sysDescr"]
        assert conn.timeouts == [500]

    @pytest.mark.asyncio
    async def test_command_text_override(self, dispatcher: CommandDispatcher) -> None:
        """Prepared command text is sent instead of the raw request."""
        conn = FakeConnection(responses=["ok"])

        await dispatcher.execute(
            conn, CommandRequest("a | b"), command_text="b< <(a)\n"
        )

        assert conn.sent == ["b< <(a)\n"]

    @pytest.mark.asyncio
    async def test_default_timeout_matches_settings(
        self, dispatcher: CommandDispatcher
    ) -> None:
        """Without a timeout the configured default is used."""
        conn = FakeConnection(responses=["ok"])

        await dispatcher.execute(conn, CommandRequest("uptime"))

        assert conn.timeouts == [DEFAULT_TIMEOUT_MS]

    @pytest.mark.asyncio
    async def test_transport_error_becomes_connection_failure(
        self, dispatcher: CommandDispatcher
    ) -> None:
        """Mid-session transport errors surface as ConnectionFailure."""
        conn = FakeConnection(fail_on={"uptime"}, target="10.0.0.5:22")

        with pytest.raises(ConnectionFailure) as exc_info:
            await dispatcher.execute(conn, CommandRequest("uptime"))

        assert exc_info.value.target == "10.0.0.5:22"
        assert "send failed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_receive_error_becomes_connection_failure(
        self, dispatcher: CommandDispatcher
    ) -> None:
        """Receive failures are converted the same way."""
        from device_shell.errors import TransportError

        conn = AsyncMock()
        conn.receive.side_effect = TransportError("reset by peer")

        with pytest.raises(ConnectionFailure, match="reset by peer"):
            await dispatcher.send_receive(conn, "uptime", 1000)
