"""device_shell: resilient SSH command execution for device test automation."""

from device_shell.config import RetryPolicy, Settings
from device_shell.dependencies import Dependencies
from device_shell.errors import (
    ConfigurationParseError,
    ConnectionFailure,
    DeviceConfigurationError,
    DeviceShellError,
    TransportError,
)
from device_shell.models import (
    CommandOutcome,
    CommandRequest,
    CommandType,
    ConsoleType,
    Device,
    DeviceKind,
    ExecutionResult,
)
from device_shell.services import (
    DeviceAccessValidator,
    SequentialExecutor,
    rewrite_pipes,
)
from device_shell.utils import contains_sed

__version__ = "0.1.0"

__all__ = [
    "CommandOutcome",
    "CommandRequest",
    "CommandType",
    "ConfigurationParseError",
    "ConnectionFailure",
    "ConsoleType",
    "Dependencies",
    "Device",
    "DeviceAccessValidator",
    "DeviceConfigurationError",
    "DeviceKind",
    "DeviceShellError",
    "ExecutionResult",
    "RetryPolicy",
    "SequentialExecutor",
    "Settings",
    "TransportError",
    "contains_sed",
    "rewrite_pipes",
]
