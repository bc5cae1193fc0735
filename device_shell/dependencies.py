"""Dependency container for device_shell.

Builds the settings and the components that consume them once, at
start-up, and hands them around explicitly.
"""

import asyncio
from dataclasses import dataclass

from device_shell.config import Settings
from device_shell.protocols import ConnectionFactory, PropertySource, SleepFunction
from device_shell.services.access import DeviceAccessValidator
from device_shell.services.executor import SequentialExecutor


@dataclass
class Dependencies:
    """Container for device_shell components.

    Example:
        deps = Dependencies.create()
        output = await deps.executor.execute(device, "uptime")
    """

    settings: Settings
    executor: SequentialExecutor
    access: DeviceAccessValidator

    @classmethod
    def create(cls) -> "Dependencies":
        """Create dependencies from DEVICE_SHELL_* environment variables."""
        return cls.from_settings(Settings.from_env())

    @classmethod
    def from_properties(cls, source: PropertySource) -> "Dependencies":
        """Create dependencies from a property source."""
        return cls.from_settings(Settings.from_properties(source))

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        factory: ConnectionFactory | None = None,
        sleep: SleepFunction = asyncio.sleep,
    ) -> "Dependencies":
        """Create dependencies with explicit settings.

        Args:
            settings: Execution settings
            factory: Connection factory override (default: asyncssh)
            sleep: Backoff sleep override

        Returns:
            Dependencies sharing one executor
        """
        executor = SequentialExecutor.from_settings(settings, factory=factory, sleep=sleep)
        return cls(
            settings=settings,
            executor=executor,
            access=DeviceAccessValidator(executor),
        )
