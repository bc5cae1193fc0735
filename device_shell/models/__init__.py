"""Data models for device_shell."""

from device_shell.models.command import (
    CommandOutcome,
    CommandRequest,
    CommandType,
    ConsoleType,
    ExecutionResult,
)
from device_shell.models.device import AddressPlan, Device, DeviceKind

__all__ = [
    "AddressPlan",
    "CommandOutcome",
    "CommandRequest",
    "CommandType",
    "ConsoleType",
    "Device",
    "DeviceKind",
    "ExecutionResult",
]
