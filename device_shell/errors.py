"""Exception types raised by device_shell."""


class DeviceShellError(Exception):
    """Base class for device_shell errors."""


class TransportError(DeviceShellError):
    """Send, receive or connect failed on the SSH transport."""


class ConnectionFailure(DeviceShellError):
    """Failed to establish or keep an SSH session to a device."""

    def __init__(self, target: str, original_error: Exception | str):
        """Initialize connection failure.

        Args:
            target: Address (or address:port) of the device
            original_error: Last underlying error, or its message
        """
        self.target = target
        self.original_error = original_error
        super().__init__(f"Cannot connect to {target}: {original_error}")


class ConfigurationParseError(DeviceShellError, ValueError):
    """A configuration property holds a malformed value."""

    def __init__(self, key: str, value: str, reason: str):
        self.key = key
        self.value = value
        super().__init__(f"Invalid value for {key}: {value!r} ({reason})")


class DeviceConfigurationError(DeviceShellError, ValueError):
    """A device record lacks the fields its classification requires."""
