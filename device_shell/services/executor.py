"""Sequential command execution against a single device.

Every call classifies the device once, opens its own connection,
runs the commands in order and releases the connection on every exit
path. Connections are never pooled or shared between calls.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from types import TracebackType

from device_shell.config import RetryPolicy, Settings
from device_shell.errors import ConnectionFailure, TransportError
from device_shell.models import (
    AddressPlan,
    CommandOutcome,
    CommandRequest,
    CommandType,
    ConsoleType,
    Device,
    DeviceKind,
    ExecutionResult,
)
from device_shell.protocols import (
    Connection,
    ConnectionFactory,
    ExpectConnection,
    SleepFunction,
)
from device_shell.services.connection import ConnectionAcquirer
from device_shell.services.dispatcher import CommandDispatcher
from device_shell.services.resolver import DeviceAddressResolver
from device_shell.services.sanitizer import ResponseSanitizer

logger = logging.getLogger(__name__)


class _ScopedConnection:
    """The current connection of one call, released on scope exit."""

    def __init__(self, connect: Callable[[], Awaitable[Connection]]) -> None:
        self._connect = connect
        self._conn: Connection | None = None

    async def get(self) -> Connection:
        if self._conn is None:
            self._conn = await self._connect()
        return self._conn

    async def release(self) -> None:
        if self._conn is not None:
            conn, self._conn = self._conn, None
            await conn.disconnect()

    async def __aenter__(self) -> "_ScopedConnection":
        await self.get()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.release()


class SequentialExecutor:
    """Runs commands on devices one call at a time."""

    def __init__(
        self,
        settings: Settings,
        acquirer: ConnectionAcquirer,
        resolver: DeviceAddressResolver | None = None,
        dispatcher: CommandDispatcher | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            settings: Immutable execution settings
            acquirer: Opens connections for address plans
            resolver: Device classifier (default: DeviceAddressResolver())
            dispatcher: Command dispatcher (default: one sanitizing with
                settings.banner_marker)
        """
        self.settings = settings
        self.acquirer = acquirer
        self.resolver = resolver or DeviceAddressResolver()
        self.dispatcher = dispatcher or CommandDispatcher(
            ResponseSanitizer(settings.banner_marker)
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        factory: ConnectionFactory | None = None,
        sleep: SleepFunction = asyncio.sleep,
    ) -> "SequentialExecutor":
        """Create an executor wired to asyncssh sessions.

        Args:
            settings: Execution settings
            factory: Connection factory override (default: asyncssh sessions)
            sleep: Backoff sleep override

        Returns:
            Executor using settings for retry and sanitizing
        """
        if factory is None:
            from device_shell.services.session import ssh_session_factory

            factory = ssh_session_factory(settings)
        acquirer = ConnectionAcquirer(
            factory,
            max_attempts=settings.max_attempts,
            backoff_seconds=settings.retry_backoff_seconds,
            sleep=sleep,
        )
        return cls(settings, acquirer)

    async def execute(
        self,
        device: Device,
        commands: str | Sequence[str],
        command_type: CommandType | None = None,
        console_type: ConsoleType | None = None,
        timeout_ms: int | None = None,
    ) -> str:
        """Execute one command or a list of commands.

        Args:
            device: Target device
            commands: A single command, or commands to run in order
            command_type: Tag applied to every command
            console_type: Console tag applied to every command
            timeout_ms: Per-command timeout (default: settings)

        Returns:
            For a single command, its sanitized response ("" if suppressed
            or dropped). For a list, the responses in order, each followed
            by a newline.

        Raises:
            ConnectionFailure: If no connection could be opened, or a
                command failed under the list-level retry policy
            ValueError: If both command_type and console_type are given
        """
        if command_type is not None and console_type is not None:
            raise ValueError("command_type and console_type are mutually exclusive")

        single = isinstance(commands, str)
        command_list = [commands] if single else list(commands)
        requests = [
            CommandRequest(
                command=command,
                timeout_ms=timeout_ms,
                command_type=command_type,
                console_type=console_type,
            )
            for command in command_list
        ]
        result = await self.execute_detailed(device, requests)

        if single:
            outcome = result.outcomes[0]
            if outcome.success and not outcome.suppressed:
                return outcome.output
            return ""
        return result.text

    async def execute_detailed(
        self,
        device: Device,
        requests: Sequence[CommandRequest],
    ) -> ExecutionResult:
        """Execute requests and report the outcome of each one.

        Under RetryPolicy.COMMAND a failed command is recorded with
        success=False and the call continues on a fresh connection.
        Under RetryPolicy.LIST the first failure is raised.

        Raises:
            ConnectionFailure: If a connection cannot be opened, or on
                the first command failure under RetryPolicy.LIST
        """
        plan = self.resolver.plan(device)
        policy = self.settings.retry_policy
        result = ExecutionResult()

        logger.info(
            "Executing %d command(s) on %s (%s, policy=%s)",
            len(requests),
            device.label,
            plan.kind.value,
            policy.value,
        )

        async with _ScopedConnection(lambda: self._connect(plan)) as scope:
            for request in requests:
                # Checked here so a placeholder never triggers a reconnect.
                if self.dispatcher.is_suppressed(request):
                    logger.debug("Suppressing placeholder command: %s", request.command)
                    result.outcomes.append(
                        CommandOutcome(request.command, success=True, suppressed=True)
                    )
                    continue

                conn = await scope.get()
                try:
                    output = await self.dispatcher.execute(
                        conn,
                        request,
                        command_text=self.resolver.prepare(plan, request.command),
                        timeout_ms=self._timeout_for(plan, request),
                    )
                except ConnectionFailure as e:
                    if policy is RetryPolicy.LIST:
                        raise
                    logger.warning(
                        "Command %r failed on %s: %s, reconnecting",
                        request.command,
                        device.label,
                        e,
                    )
                    result.outcomes.append(
                        CommandOutcome(request.command, success=False, error=str(e))
                    )
                    await scope.release()
                    continue

                result.outcomes.append(
                    CommandOutcome(request.command, success=True, output=output or "")
                )

        if result.all_succeeded:
            logger.info("Received response from %s:\n%s", device.label, result.text)
        else:
            logger.warning(
                "%d of %d command(s) failed on %s",
                len(result.failed),
                len(result.outcomes),
                device.label,
            )
        return result

    async def execute_expect(
        self,
        device: Device,
        command: str,
        expect: str,
        timeout_ms: int | None = None,
    ) -> str:
        """Send a command and read until expect appears.

        Returns:
            Sanitized output up to and including expect

        Raises:
            ConnectionFailure: If connecting fails or expect never appears
        """
        plan = self.resolver.plan(device)
        request = CommandRequest(command=command, timeout_ms=timeout_ms, expect=expect)
        async with _ScopedConnection(lambda: self._connect(plan)) as scope:
            conn = await scope.get()
            if not isinstance(conn, ExpectConnection):
                raise TypeError(f"{type(conn).__name__} does not support expect")
            text = self.resolver.prepare(plan, command)
            logger.info("Executing command: %s (expecting %r)", command, expect)
            try:
                raw = await conn.send_expect(text, expect, self._timeout_for(plan, request))
            except TransportError as e:
                logger.error("Expect %r failed on %s: %s", expect, device.label, e)
                raise ConnectionFailure(plan.target, e) from e
        return self.dispatcher.sanitizer.sanitize(raw)

    async def get_connection(self, device: Device) -> Connection:
        """Open a bare connection to device.

        The caller owns the connection and must call disconnect().

        Raises:
            ConnectionFailure: If the connection cannot be opened
        """
        logger.info("Opening caller-owned connection to %s", device.label)
        return await self._connect(self.resolver.plan(device))

    async def execute_on(
        self,
        conn: Connection,
        device: Device,
        command: str,
        command_type: CommandType | None = None,
        console_type: ConsoleType | None = None,
        timeout_ms: int | None = None,
    ) -> str:
        """Run one command over a connection the caller owns.

        The command is prepared for the device and dispatched like any
        other, but the connection is neither opened nor released here.

        Returns:
            Sanitized response, or "" for a suppressed command

        Raises:
            ConnectionFailure: If the transport fails mid-command
            ValueError: If both command_type and console_type are given
        """
        if command_type is not None and console_type is not None:
            raise ValueError("command_type and console_type are mutually exclusive")

        plan = self.resolver.plan(device)
        request = CommandRequest(
            command=command,
            timeout_ms=timeout_ms,
            command_type=command_type,
            console_type=console_type,
        )
        output = await self.dispatcher.execute(
            conn,
            request,
            command_text=self.resolver.prepare(plan, command),
            timeout_ms=self._timeout_for(plan, request),
        )
        return output or ""

    async def _connect(self, plan: AddressPlan) -> Connection:
        try:
            return await self.acquirer.acquire_for(plan)
        except ConnectionFailure:
            if plan.kind is DeviceKind.NON_STANDARD:
                logger.error(
                    "SSH to %s failed, looks like this device is not properly configured",
                    plan.target,
                )
            raise

    def _timeout_for(self, plan: AddressPlan, request: CommandRequest) -> int:
        if (
            plan.kind is DeviceKind.NON_STANDARD
            and self.settings.non_standard_timeout_ms is not None
        ):
            return self.settings.non_standard_timeout_ms
        if request.timeout_ms is not None:
            return request.timeout_ms
        return self.settings.default_timeout_ms
