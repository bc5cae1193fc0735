"""Protocol interfaces for dependency inversion.

Defines the contracts the executor depends on, so that the asyncssh
sessions in ``device_shell.services.session`` can be swapped for mocks
or other transports.

Usage Example:

    from device_shell.protocols import Connection

    async def probe(conn: Connection) -> str:
        await conn.send("uptime", 1000)
        return await conn.receive(1000)

    class FakeConnection:
        async def send(self, command, timeout_ms): ...
        async def receive(self, timeout_ms): return "up 3 days"
        async def disconnect(self): ...

    await probe(FakeConnection())
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from device_shell.models import AddressPlan


@runtime_checkable
class Connection(Protocol):
    """Protocol for a live session on a device.

    A connection belongs to exactly one call and is never shared.
    """

    async def send(self, command: str, timeout_ms: int) -> None:
        """Send command text to the device.

        Args:
            command: Text to send, exactly as it should reach the device
            timeout_ms: Advisory time budget for the send

        Raises:
            TransportError: If the session cannot deliver the command
        """
        ...

    async def receive(self, timeout_ms: int) -> str:
        """Read the response to the last command.

        Args:
            timeout_ms: How long to wait for output

        Returns:
            Raw response text

        Raises:
            TransportError: If reading from the session fails
        """
        ...

    async def disconnect(self) -> None:
        """Close the session.

        Note:
            Idempotent and never raises.
        """
        ...


@runtime_checkable
class ExpectConnection(Connection, Protocol):
    """Connection that can read until an expected string appears."""

    async def send_expect(self, command: str, expect: str, timeout_ms: int) -> str:
        """Send command and return output up to and including expect.

        Raises:
            TransportError: If the string does not appear in time
        """
        ...


@runtime_checkable
class PropertySource(Protocol):
    """Flat key/value property lookup consulted at start-up."""

    def lookup(self, key: str, default: str | None = None) -> str | None:
        """Return the raw value for key, or default when unset."""
        ...


ConnectionFactory = Callable[[AddressPlan], Awaitable[Connection]]
"""Opens a connection for an address plan; raises on failure."""

SleepFunction = Callable[[float], Awaitable[None]]
"""Awaitable sleep, ``asyncio.sleep`` in production."""
