"""Tests for asyncssh-backed sessions."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import asyncssh
import pytest

from device_shell.config import Settings
from device_shell.errors import TransportError
from device_shell.models import AddressPlan, DeviceKind
from device_shell.protocols import Connection, ExpectConnection
from device_shell.services.session import (
    ExecSession,
    ShellSession,
    open_exec_session,
    open_shell_session,
    ssh_session_factory,
)

STANDARD_PLAN = AddressPlan(kind=DeviceKind.STANDARD, address="10.0.0.5")
NAT_PLAN = AddressPlan(
    kind=DeviceKind.NON_STANDARD,
    address="192.0.2.1",
    port=2222,
    username="admin",
    password="secret",
    rewrite_pipes=True,
    append_newline=True,
    retry=False,
)


@pytest.fixture
def mock_conn() -> MagicMock:
    """Mock asyncssh connection."""
    conn = MagicMock()
    conn.run = AsyncMock()
    conn.wait_closed = AsyncMock()
    conn.create_process = AsyncMock()
    return conn


@pytest.fixture
def mock_process() -> MagicMock:
    """Mock interactive shell process."""
    process = MagicMock()
    process.stdin.write = MagicMock()
    return process


class TestOpenSessions:
    """Test session factories."""

    @pytest.mark.asyncio
    async def test_open_exec_session_uses_default_credentials(
        self, mock_conn: MagicMock
    ) -> None:
        """Standard plans leave credentials to asyncssh."""
        with patch("asyncssh.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_conn

            session = await open_exec_session(STANDARD_PLAN)

        assert isinstance(session, ExecSession)
        assert session.target == "10.0.0.5:22"
        mock_connect.assert_awaited_once_with("10.0.0.5", port=22, known_hosts=None)

    @pytest.mark.asyncio
    async def test_open_exec_session_with_server_credentials(
        self, mock_conn: MagicMock
    ) -> None:
        """Credentials on a standard plan are passed to asyncssh."""
        plan = AddressPlan(
            kind=DeviceKind.STANDARD, address="10.0.0.9", username="ops", password="pw"
        )
        with patch("asyncssh.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_conn

            await open_exec_session(plan)

        mock_connect.assert_awaited_once_with(
            "10.0.0.9", port=22, known_hosts=None, username="ops", password="pw"
        )

    @pytest.mark.asyncio
    async def test_open_shell_session_uses_nat_credentials(
        self, mock_conn: MagicMock, mock_process: MagicMock
    ) -> None:
        """NAT plans pass explicit credentials and start a shell."""
        mock_conn.create_process.return_value = mock_process
        with patch("asyncssh.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_conn

            session = await open_shell_session(NAT_PLAN, known_hosts="/tmp/known_hosts")

        assert isinstance(session, ShellSession)
        mock_connect.assert_awaited_once_with(
            "192.0.2.1",
            port=2222,
            known_hosts="/tmp/known_hosts",
            username="admin",
            password="secret",
        )
        mock_conn.create_process.assert_awaited_once_with(term_type="vt100")

    @pytest.mark.asyncio
    async def test_connect_error_becomes_transport_error(self) -> None:
        """Socket errors are reported as TransportError."""
        with patch("asyncssh.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.side_effect = OSError("Connection refused")

            with pytest.raises(TransportError, match="Connection refused"):
                await open_exec_session(STANDARD_PLAN)

    @pytest.mark.asyncio
    async def test_shell_start_failure_closes_connection(self, mock_conn: MagicMock) -> None:
        """A connection whose shell cannot start is closed."""
        mock_conn.create_process.side_effect = asyncssh.ChannelOpenError(1, "denied")
        with patch("asyncssh.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_conn

            with pytest.raises(TransportError, match="Cannot start shell"):
                await open_shell_session(NAT_PLAN)

        mock_conn.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_factory_picks_session_by_kind(self) -> None:
        """Standard plans get exec sessions, NAT plans get shells."""
        factory = ssh_session_factory(Settings(known_hosts="/tmp/kh"))
        with patch(
            "device_shell.services.session.open_exec_session", new_callable=AsyncMock
        ) as open_exec, patch(
            "device_shell.services.session.open_shell_session", new_callable=AsyncMock
        ) as open_shell:
            await factory(STANDARD_PLAN)
            await factory(NAT_PLAN)

        open_exec.assert_awaited_once_with(STANDARD_PLAN, "/tmp/kh")
        open_shell.assert_awaited_once_with(NAT_PLAN, "/tmp/kh")


class TestExecSession:
    """Test exec-channel sessions."""

    @pytest.mark.asyncio
    async def test_send_then_receive(self, mock_conn: MagicMock) -> None:
        """Output of the last command is returned once."""
        mock_conn.run.return_value = MagicMock(stdout=b"Linux dut\n", stderr="")
        session = ExecSession(mock_conn, "10.0.0.5:22")

        await session.send("uname -a", 1000)

        assert await session.receive(1000) == "Linux dut\n"
        mock_conn.run.assert_awaited_once_with("uname -a", check=False)
        with pytest.raises(TransportError):
            await session.receive(1000)

    @pytest.mark.asyncio
    async def test_stderr_appended(self, mock_conn: MagicMock) -> None:
        """Error output follows standard output, as on a terminal."""
        mock_conn.run.return_value = MagicMock(stdout="", stderr="ls: no such file\n")
        session = ExecSession(mock_conn, "10.0.0.5:22")

        await session.send("ls /nope", 1000)

        assert await session.receive(1000) == "ls: no such file\n"

    @pytest.mark.asyncio
    async def test_run_failure(self, mock_conn: MagicMock) -> None:
        """Channel errors become TransportError."""
        mock_conn.run.side_effect = asyncssh.ConnectionLost("lost")
        session = ExecSession(mock_conn, "10.0.0.5:22")

        with pytest.raises(TransportError, match="lost"):
            await session.send("uptime", 1000)

    @pytest.mark.asyncio
    async def test_send_expect(self, mock_conn: MagicMock) -> None:
        """Output is cut after the expected string."""
        mock_conn.run.return_value = MagicMock(stdout="login: ok\nmore", stderr=None)
        session = ExecSession(mock_conn, "10.0.0.5:22")

        assert await session.send_expect("cmd", "ok", 1000) == "login: ok"

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self, mock_conn: MagicMock) -> None:
        """Closing twice closes the connection once."""
        session = ExecSession(mock_conn, "10.0.0.5:22")

        await session.disconnect()
        await session.disconnect()

        mock_conn.close.assert_called_once()
        mock_conn.wait_closed.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_disconnect_never_raises(self, mock_conn: MagicMock) -> None:
        """Errors while closing are swallowed and logged."""
        mock_conn.wait_closed.side_effect = OSError("already gone")
        session = ExecSession(mock_conn, "10.0.0.5:22")

        await session.disconnect()

    def test_satisfies_protocols(self, mock_conn: MagicMock) -> None:
        """ExecSession is a Connection with expect support."""
        session = ExecSession(mock_conn, "10.0.0.5:22")
        assert isinstance(session, Connection)
        assert isinstance(session, ExpectConnection)


class TestShellSession:
    """Test interactive shell sessions."""

    @pytest.mark.asyncio
    async def test_send_writes_raw_text(
        self, mock_conn: MagicMock, mock_process: MagicMock
    ) -> None:
        """Text is written to stdin unchanged."""
        session = ShellSession(mock_conn, mock_process, "192.0.2.1:2222")

        await session.send("uptime\n", 1000)

        mock_process.stdin.write.assert_called_once_with("uptime\n")

    @pytest.mark.asyncio
    async def test_send_broken_pipe(
        self, mock_conn: MagicMock, mock_process: MagicMock
    ) -> None:
        """A closed stdin is a TransportError."""
        mock_process.stdin.write.side_effect = BrokenPipeError("closed")
        session = ShellSession(mock_conn, mock_process, "192.0.2.1:2222")

        with pytest.raises(TransportError):
            await session.send("uptime\n", 1000)

    @pytest.mark.asyncio
    async def test_receive_reads_until_quiet(
        self, mock_conn: MagicMock, mock_process: MagicMock
    ) -> None:
        """Chunks are collected until no output arrives within the timeout."""
        chunks = iter(["up 3 days, ", "load 0.1\n"])

        async def read(size: int) -> str:
            try:
                return next(chunks)
            except StopIteration:
                await asyncio.sleep(5)
                return ""

        mock_process.stdout.read = read
        session = ShellSession(mock_conn, mock_process, "192.0.2.1:2222")

        assert await session.receive(20) == "up 3 days, load 0.1\n"

    @pytest.mark.asyncio
    async def test_receive_stops_at_eof(
        self, mock_conn: MagicMock, mock_process: MagicMock
    ) -> None:
        """An exited shell ends the read."""
        mock_process.stdout.read = AsyncMock(side_effect=["bye\n", ""])
        session = ShellSession(mock_conn, mock_process, "192.0.2.1:2222")

        assert await session.receive(1000) == "bye\n"

    @pytest.mark.asyncio
    async def test_send_expect_reads_until_string(
        self, mock_conn: MagicMock, mock_process: MagicMock
    ) -> None:
        """send_expect returns output through the expected string."""
        mock_process.stdout.readuntil = AsyncMock(return_value="su -\nPassword:")
        session = ShellSession(mock_conn, mock_process, "192.0.2.1:2222")

        result = await session.send_expect("su -\n", "Password:", 1000)

        assert result == "su -\nPassword:"
        mock_process.stdout.readuntil.assert_awaited_once_with("Password:")

    @pytest.mark.asyncio
    async def test_send_expect_eof(
        self, mock_conn: MagicMock, mock_process: MagicMock
    ) -> None:
        """Shell exit before the string appears is a TransportError."""
        mock_process.stdout.readuntil = AsyncMock(
            side_effect=asyncio.IncompleteReadError(b"", None)
        )
        session = ShellSession(mock_conn, mock_process, "192.0.2.1:2222")

        with pytest.raises(TransportError, match="closed before"):
            await session.send_expect("su -\n", "Password:", 1000)

    @pytest.mark.asyncio
    async def test_disconnect_closes_process_and_connection(
        self, mock_conn: MagicMock, mock_process: MagicMock
    ) -> None:
        """Both the shell and the connection are closed once."""
        session = ShellSession(mock_conn, mock_process, "192.0.2.1:2222")

        await session.disconnect()
        await session.disconnect()

        mock_process.close.assert_called_once()
        mock_conn.close.assert_called_once()
