"""Device reachability probe."""

import logging

from device_shell.errors import ConnectionFailure, DeviceConfigurationError
from device_shell.models import Device
from device_shell.services.executor import SequentialExecutor

logger = logging.getLogger(__name__)

PROBE_COMMAND = "echo test_connection;"
PROBE_TOKEN = "test_connection"
UNAVAILABLE = "UNAVAILABLE"


class DeviceAccessValidator:
    """Checks that a device answers a trivial command over SSH."""

    def __init__(self, executor: SequentialExecutor) -> None:
        self.executor = executor

    async def is_device_accessible(self, device: Device) -> bool:
        """Return True if the device echoes the probe token.

        Uses a single connection attempt. Never raises: every failure is
        logged and reported as False.
        """
        address = device.host_address if device.is_standard else device.nat_address
        if not address or not address.strip() or address.strip().upper() == UNAVAILABLE:
            logger.error(
                "Address of %s is unavailable, skipping connection check",
                device.label,
            )
            return False

        executor = self.executor
        try:
            plan = executor.resolver.plan(device)
            conn = await executor.acquirer.acquire_once(plan)
            try:
                response = await executor.dispatcher.send_receive(
                    conn,
                    executor.resolver.prepare(plan, PROBE_COMMAND),
                    executor.settings.accessibility_timeout_ms,
                )
            finally:
                await conn.disconnect()
        except (ConnectionFailure, DeviceConfigurationError) as e:
            logger.error("Connection check for %s failed: %s", device.label, e)
            return False

        accessible = PROBE_TOKEN in response
        if not accessible:
            logger.error(
                "Unable to access device %s using address %s",
                device.label,
                address,
            )
        logger.info("Device %s accessible: %s", device.label, accessible)
        return accessible
