"""Device classification and address selection."""

import logging

from device_shell.errors import DeviceConfigurationError
from device_shell.models import AddressPlan, Device, DeviceKind
from device_shell.services.pipes import rewrite_pipes

logger = logging.getLogger(__name__)

DEFAULT_SSH_PORT = 22


class DeviceAddressResolver:
    """Chooses address, credentials and command handling for a device.

    Standard devices are reached on their host address, commands go out
    verbatim, and the connection is retried. They log in with the
    device's username and password when it has them (servers, hosts
    with a dedicated account) and with the transport's defaults
    otherwise. Non-standard (NAT-routed) devices are reached
    on their NAT address and port with explicit credentials, get a single
    connection attempt, and have pipes rewritten plus a trailing newline
    appended to every command.
    """

    def classify(self, device: Device) -> DeviceKind:
        """Return the device's classification."""
        return device.kind

    def plan(self, device: Device) -> AddressPlan:
        """Build the address plan for a device.

        Raises:
            DeviceConfigurationError: If a non-standard device lacks its
                NAT address, NAT port or credentials
        """
        kind = self.classify(device)
        if kind is DeviceKind.STANDARD:
            return AddressPlan(
                kind=kind,
                address=device.host_address,
                port=DEFAULT_SSH_PORT,
                username=device.username or None,
                password=device.password or None,
            )

        missing = [
            name
            for name, value in (
                ("nat_address", device.nat_address),
                ("nat_port", device.nat_port),
                ("username", device.username),
                ("password", device.password),
            )
            if value in (None, "")
        ]
        if missing:
            raise DeviceConfigurationError(
                f"Non-standard device {device.label} is missing: {', '.join(missing)}"
            )

        logger.debug(
            "Device %s is NAT-routed via %s:%s",
            device.label,
            device.nat_address,
            device.nat_port,
        )
        return AddressPlan(
            kind=kind,
            address=str(device.nat_address),
            port=int(device.nat_port),  # type: ignore[arg-type]
            username=device.username,
            password=device.password,
            rewrite_pipes=True,
            append_newline=True,
            retry=False,
        )

    @staticmethod
    def prepare(plan: AddressPlan, command: str) -> str:
        """Apply the plan's command handling to command text."""
        if plan.rewrite_pipes:
            command = rewrite_pipes(command)
        if plan.append_newline:
            command += "\n"
        return command
