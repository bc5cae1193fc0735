"""Services for device_shell."""

from device_shell.services.access import DeviceAccessValidator
from device_shell.services.connection import ConnectionAcquirer
from device_shell.services.dispatcher import (
    DISPATCH_TABLE,
    CommandDispatcher,
    Disposition,
)
from device_shell.services.executor import SequentialExecutor
from device_shell.services.pipes import rewrite_pipes
from device_shell.services.resolver import DeviceAddressResolver
from device_shell.services.sanitizer import ResponseSanitizer
from device_shell.services.session import (
    ExecSession,
    ShellSession,
    open_exec_session,
    open_shell_session,
    ssh_session_factory,
)

__all__ = [
    "CommandDispatcher",
    "ConnectionAcquirer",
    "DISPATCH_TABLE",
    "DeviceAccessValidator",
    "DeviceAddressResolver",
    "Disposition",
    "ExecSession",
    "ResponseSanitizer",
    "SequentialExecutor",
    "ShellSession",
    "open_exec_session",
    "open_shell_session",
    "rewrite_pipes",
    "ssh_session_factory",
]
