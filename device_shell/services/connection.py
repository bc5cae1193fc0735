"""SSH connection acquisition with bounded retry."""

import asyncio
import logging

from device_shell.config.settings import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_BACKOFF_SECONDS,
)
from device_shell.errors import ConnectionFailure
from device_shell.models import AddressPlan
from device_shell.protocols import Connection, ConnectionFactory, SleepFunction

logger = logging.getLogger(__name__)


class ConnectionAcquirer:
    """Opens connections through a factory, retrying with a fixed backoff."""

    def __init__(
        self,
        factory: ConnectionFactory,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS,
        sleep: SleepFunction = asyncio.sleep,
    ) -> None:
        """Initialize acquirer.

        Args:
            factory: Coroutine function opening a connection for a plan
            max_attempts: Default attempt budget for acquire() (must be > 0)
            backoff_seconds: Pause between failed attempts
            sleep: Awaitable sleep used for the backoff

        Raises:
            ValueError: If max_attempts is not positive
        """
        if max_attempts <= 0:
            raise ValueError(f"max_attempts must be > 0, got {max_attempts}")
        self.factory = factory
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    async def acquire(
        self,
        plan: AddressPlan,
        max_attempts: int | None = None,
    ) -> Connection:
        """Open a connection, retrying on failure.

        Sleeps ``backoff_seconds`` between attempts but not after the
        last one.

        Args:
            plan: Address plan of the target
            max_attempts: Override for the attempt budget

        Returns:
            Open connection

        Raises:
            ConnectionFailure: If every attempt failed
        """
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        if attempts <= 0:
            raise ValueError(f"max_attempts must be > 0, got {attempts}")

        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            logger.info(
                "Opening SSH connection to %s (attempt %d/%d)",
                plan.target,
                attempt,
                attempts,
            )
            try:
                conn = await self.factory(plan)
            except Exception as e:
                last_error = e
                if attempt < attempts:
                    logger.warning(
                        "SSH connection attempt %d to %s failed: %s, retrying in %.0fs",
                        attempt,
                        plan.target,
                        e,
                        self.backoff_seconds,
                    )
                    await self._sleep(self.backoff_seconds)
                else:
                    logger.error(
                        "SSH connection attempt %d to %s failed: %s",
                        attempt,
                        plan.target,
                        e,
                    )
                continue

            logger.info("SSH connection established to %s", plan.target)
            return conn

        assert last_error is not None
        raise ConnectionFailure(plan.target, last_error) from last_error

    async def acquire_once(self, plan: AddressPlan) -> Connection:
        """Open a connection with a single attempt and no backoff.

        Raises:
            ConnectionFailure: If the attempt failed
        """
        logger.info("Opening SSH connection to %s (single attempt)", plan.target)
        try:
            conn = await self.factory(plan)
        except Exception as e:
            logger.error("SSH connection to %s failed: %s", plan.target, e)
            raise ConnectionFailure(plan.target, e) from e
        logger.info("SSH connection established to %s", plan.target)
        return conn

    async def acquire_for(self, plan: AddressPlan) -> Connection:
        """Open a connection using the policy the plan asks for."""
        if plan.retry:
            return await self.acquire(plan)
        return await self.acquire_once(plan)
