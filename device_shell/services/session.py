"""asyncssh-backed connections.

Two session flavours implement the ``Connection`` protocol:

- ExecSession: each command runs on its own exec channel. Used for
  standard devices, where commands are sent verbatim.
- ShellSession: one interactive shell; sent text is written to its
  stdin and output is read until the stream goes quiet. Used for
  NAT-routed devices whose line-buffered shells need a trailing newline.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import asyncssh

from device_shell.errors import TransportError
from device_shell.models import AddressPlan, DeviceKind
from device_shell.protocols import Connection, ConnectionFactory

if TYPE_CHECKING:
    from device_shell.config import Settings

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096
DEFAULT_TERM_TYPE = "vt100"


def _to_text(data: Any) -> str:
    """Normalize asyncssh output (str, bytes or None) to str."""
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return str(data)


class ExecSession:
    """Connection running every command on a fresh exec channel."""

    def __init__(self, conn: "asyncssh.SSHClientConnection", target: str) -> None:
        self._conn = conn
        self.target = target
        self._output: str | None = None
        self._closed = False

    async def send(self, command: str, timeout_ms: int) -> None:
        # The timeout is advisory; the channel runs to completion.
        try:
            result = await self._conn.run(command, check=False)
        except (asyncssh.Error, OSError) as e:
            raise TransportError(f"Failed to run command on {self.target}: {e}") from e

        output = _to_text(result.stdout)
        error = _to_text(result.stderr)
        if error:
            output = f"{output}{error}"
        self._output = output

    async def receive(self, timeout_ms: int) -> str:
        if self._output is None:
            raise TransportError(f"No command pending on {self.target}")
        output, self._output = self._output, None
        return output

    async def send_expect(self, command: str, expect: str, timeout_ms: int) -> str:
        await self.send(command, timeout_ms)
        output = await self.receive(timeout_ms)
        index = output.find(expect)
        if index < 0:
            raise TransportError(f"'{expect}' not found in output from {self.target}")
        return output[: index + len(expect)]

    async def disconnect(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.info("Closing SSH connection to %s", self.target)
        try:
            self._conn.close()
            await self._conn.wait_closed()
        except (asyncssh.Error, OSError) as e:
            logger.debug("Error while closing %s: %s", self.target, e)


class ShellSession:
    """Connection driving a single interactive shell."""

    def __init__(
        self,
        conn: "asyncssh.SSHClientConnection",
        process: "asyncssh.SSHClientProcess[str]",
        target: str,
    ) -> None:
        self._conn = conn
        self._process = process
        self.target = target
        self._closed = False

    async def send(self, command: str, timeout_ms: int) -> None:
        try:
            self._process.stdin.write(command)
        except (asyncssh.Error, OSError) as e:
            raise TransportError(f"Failed to write to shell on {self.target}: {e}") from e

    async def receive(self, timeout_ms: int) -> str:
        """Read until no output arrives for timeout_ms or the shell exits."""
        chunks: list[str] = []
        while True:
            try:
                chunk = await asyncio.wait_for(
                    self._process.stdout.read(READ_CHUNK_SIZE),
                    timeout=timeout_ms / 1000,
                )
            except asyncio.TimeoutError:
                break
            except (asyncssh.Error, OSError) as e:
                raise TransportError(
                    f"Failed to read from shell on {self.target}: {e}"
                ) from e
            if not chunk:
                break
            chunks.append(_to_text(chunk))
        return "".join(chunks)

    async def send_expect(self, command: str, expect: str, timeout_ms: int) -> str:
        await self.send(command, timeout_ms)
        try:
            output = await asyncio.wait_for(
                self._process.stdout.readuntil(expect),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Timed out waiting for '{expect}' on {self.target}"
            ) from e
        except (asyncio.IncompleteReadError, asyncssh.Error, OSError) as e:
            raise TransportError(
                f"Shell on {self.target} closed before '{expect}': {e}"
            ) from e
        return _to_text(output)

    async def disconnect(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.info("Closing SSH shell on %s", self.target)
        try:
            self._process.close()
            self._conn.close()
            await self._conn.wait_closed()
        except (asyncssh.Error, OSError) as e:
            logger.debug("Error while closing %s: %s", self.target, e)


async def _connect(
    plan: AddressPlan,
    known_hosts: str | None,
) -> "asyncssh.SSHClientConnection":
    """Open the SSH connection described by plan.

    Credentials left unset in the plan are resolved by asyncssh itself
    (default user, agent and key files).
    """
    options: dict[str, Any] = {"port": plan.port, "known_hosts": known_hosts}
    if plan.username:
        options["username"] = plan.username
    if plan.password:
        options["password"] = plan.password

    try:
        return await asyncssh.connect(plan.address, **options)
    except (asyncssh.Error, OSError) as e:
        raise TransportError(f"SSH connect to {plan.target} failed: {e}") from e


async def open_exec_session(
    plan: AddressPlan,
    known_hosts: str | None = None,
) -> ExecSession:
    """Connect and return an exec-channel session."""
    conn = await _connect(plan, known_hosts)
    return ExecSession(conn, plan.target)


async def open_shell_session(
    plan: AddressPlan,
    known_hosts: str | None = None,
    term_type: str = DEFAULT_TERM_TYPE,
) -> ShellSession:
    """Connect and start an interactive shell."""
    conn = await _connect(plan, known_hosts)
    try:
        process = await conn.create_process(term_type=term_type)
    except (asyncssh.Error, OSError) as e:
        conn.close()
        raise TransportError(f"Cannot start shell on {plan.target}: {e}") from e
    return ShellSession(conn, process, plan.target)


def ssh_session_factory(settings: "Settings | None" = None) -> ConnectionFactory:
    """Build the factory used by ConnectionAcquirer.

    Standard devices get an ExecSession, non-standard ones a ShellSession.
    """
    known_hosts = settings.known_hosts if settings is not None else None
    if known_hosts is None:
        logger.warning(
            "SSH host key verification DISABLED. "
            "Set DEVICE_SHELL_KNOWN_HOSTS to a known_hosts file path."
        )

    async def factory(plan: AddressPlan) -> Connection:
        if plan.kind is DeviceKind.NON_STANDARD:
            return await open_shell_session(plan, known_hosts)
        return await open_exec_session(plan, known_hosts)

    return factory
