"""Per-command dispatch: execute or suppress by type tag."""

import logging
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

from device_shell.config.settings import DEFAULT_TIMEOUT_MS
from device_shell.errors import ConnectionFailure, TransportError
from device_shell.models import CommandRequest, CommandType, ConsoleType
from device_shell.protocols import Connection
from device_shell.services.sanitizer import ResponseSanitizer

logger = logging.getLogger(__name__)


class Disposition(str, Enum):
    """What the dispatcher does with a tagged command."""

    EXECUTE = "execute"
    SUPPRESS = "suppress"


# Tags not listed here execute.
DISPATCH_TABLE = MappingProxyType(
    {
        CommandType.REV_SSH_DEVICE_VERIFY: Disposition.SUPPRESS,
        CommandType.TRACE_INIT_COMMAND_GATEWAY: Disposition.SUPPRESS,
        CommandType.ADDLN_TRACE_INIT_COMMAND_GATEWAY: Disposition.SUPPRESS,
        CommandType.SNMP_CODE_DOWNLOAD: Disposition.SUPPRESS,
        CommandType.SNMP_COMMAND: Disposition.EXECUTE,
        CommandType.XCONF_CONFIG_UPDATE: Disposition.SUPPRESS,
        ConsoleType.ARM: Disposition.EXECUTE,
        ConsoleType.ATOM: Disposition.SUPPRESS,
    }
)


class CommandDispatcher:
    """Sends commands over a connection and sanitizes the responses."""

    def __init__(
        self,
        sanitizer: ResponseSanitizer,
        table: Mapping[Enum, Disposition] | None = None,
    ) -> None:
        self.sanitizer = sanitizer
        self.table = DISPATCH_TABLE if table is None else table

    def disposition(self, request: CommandRequest) -> Disposition:
        """Look up what to do with a request."""
        tag = request.type_tag
        if tag is None:
            return Disposition.EXECUTE
        return self.table.get(tag, Disposition.EXECUTE)

    def is_suppressed(self, request: CommandRequest) -> bool:
        """Check if the request is a reserved placeholder."""
        return self.disposition(request) is Disposition.SUPPRESS

    async def execute(
        self,
        conn: Connection,
        request: CommandRequest,
        command_text: str | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> str | None:
        """Run a request unless its type is suppressed.

        Args:
            conn: Open connection owned by the caller
            request: Command and its type tag
            command_text: Text to send, if it differs from request.command
            timeout_ms: Timeout for send and receive

        Returns:
            Sanitized response, or None for a suppressed request

        Raises:
            ConnectionFailure: If the transport fails mid-command
        """
        if self.is_suppressed(request):
            logger.debug(
                "Suppressing %s command: %s", request.type_tag.value, request.command
            )
            return None
        text = request.command if command_text is None else command_text
        return await self.send_receive(conn, text, timeout_ms)

    async def send_receive(self, conn: Connection, command: str, timeout_ms: int) -> str:
        """Send one command and return its sanitized response.

        Raises:
            ConnectionFailure: If the transport fails
        """
        logger.info("Executing command: %s", command.rstrip("\n"))
        try:
            await conn.send(command, timeout_ms)
            raw = await conn.receive(timeout_ms)
        except TransportError as e:
            logger.error("Transport failed while executing %r: %s", command, e)
            raise ConnectionFailure(getattr(conn, "target", "device"), e) from e

        response = self.sanitizer.sanitize(raw)
        logger.debug("Response to %r:\n%s", command.rstrip("\n"), response)
        return response
