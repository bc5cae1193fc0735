"""Shared test doubles for device_shell tests."""

from typing import Any

import pytest

from device_shell.errors import TransportError
from device_shell.models import AddressPlan


class FakeConnection:
    """In-memory Connection recording what was sent."""

    def __init__(
        self,
        responses: list[str] | None = None,
        fail_on: set[str] | None = None,
        target: str = "fake:22",
    ) -> None:
        self.responses = list(responses or [])
        self.fail_on = set(fail_on or ())
        self.target = target
        self.sent: list[str] = []
        self.timeouts: list[int] = []
        self.disconnect_calls = 0

    async def send(self, command: str, timeout_ms: int) -> None:
        self.sent.append(command)
        self.timeouts.append(timeout_ms)
        if command in self.fail_on:
            raise TransportError(f"send failed: {command}")

    async def receive(self, timeout_ms: int) -> str:
        if self.responses:
            return self.responses.pop(0)
        return ""

    async def send_expect(self, command: str, expect: str, timeout_ms: int) -> str:
        await self.send(command, timeout_ms)
        output = await self.receive(timeout_ms)
        if expect not in output:
            raise TransportError(f"'{expect}' not found")
        return output[: output.index(expect) + len(expect)]

    async def disconnect(self) -> None:
        self.disconnect_calls += 1


class FakeFactory:
    """Connection factory handing out prepared connections or errors."""

    def __init__(self, *items: Any) -> None:
        self._items = list(items)
        self.plans: list[AddressPlan] = []

    async def __call__(self, plan: AddressPlan) -> FakeConnection:
        self.plans.append(plan)
        if not self._items:
            raise TransportError("no more connections")
        item = self._items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def calls(self) -> int:
        return len(self.plans)


@pytest.fixture
def fake_connection() -> FakeConnection:
    """A connection answering nothing."""
    return FakeConnection()
