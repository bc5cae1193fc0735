"""Utilities for device_shell."""

from device_shell.utils.commands import contains_sed
from device_shell.utils.console import ColorfulFormatter, configure_logging

__all__ = [
    "ColorfulFormatter",
    "configure_logging",
    "contains_sed",
]
