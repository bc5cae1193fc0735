"""Configuration module for device_shell.

Provides:
- Settings: Immutable runtime settings (timeouts, retry policy, banner)
- EnvPropertySource / MappingPropertySource: Property lookups
- load_properties_file: Reads ``key=value`` property files
"""

from device_shell.config.properties import (
    EnvPropertySource,
    MappingPropertySource,
    load_properties_file,
)
from device_shell.config.settings import RetryPolicy, Settings

__all__ = [
    "EnvPropertySource",
    "MappingPropertySource",
    "RetryPolicy",
    "Settings",
    "load_properties_file",
]
