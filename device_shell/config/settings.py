"""Runtime settings for device_shell.

Settings are parsed once from a property source at start-up and then
passed by value to the components that need them. Malformed values
never abort start-up: the compiled-in default is kept and a warning
is logged.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from device_shell.config.properties import EnvPropertySource
from device_shell.errors import ConfigurationParseError
from device_shell.protocols import PropertySource

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_MS = 1000
DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_RETRY_BACKOFF_SECONDS = 10.0
DEFAULT_BANNER_MARKER = "law enforcement."
DEFAULT_ACCESSIBILITY_TIMEOUT_MS = 30000

# Property keys
TIMEOUT_KEY = "rdk.resp.wait.time.millisecs"
NON_STANDARD_TIMEOUT_KEY = "nonrdk.resp.wait.time.millisecs"
MAX_ATTEMPTS_KEY = "SSH_CONNECTION_MAX_ATTEMPT"
RETRY_BACKOFF_KEY = "ssh.retry.backoff.seconds"
BANNER_MARKER_KEY = "ssh.banner.marker"
RETRY_POLICY_KEY = "ssh.retry.policy"
KNOWN_HOSTS_KEY = "ssh.known.hosts"

ENV_KEYS = {
    TIMEOUT_KEY: "DEVICE_SHELL_TIMEOUT_MS",
    NON_STANDARD_TIMEOUT_KEY: "DEVICE_SHELL_NON_STANDARD_TIMEOUT_MS",
    MAX_ATTEMPTS_KEY: "DEVICE_SHELL_MAX_ATTEMPTS",
    RETRY_BACKOFF_KEY: "DEVICE_SHELL_RETRY_BACKOFF",
    BANNER_MARKER_KEY: "DEVICE_SHELL_BANNER_MARKER",
    RETRY_POLICY_KEY: "DEVICE_SHELL_RETRY_POLICY",
    KNOWN_HOSTS_KEY: "DEVICE_SHELL_KNOWN_HOSTS",
}


class RetryPolicy(str, Enum):
    """What happens when a command in a batch fails."""

    LIST = "list"  # release and propagate, remaining commands skipped
    COMMAND = "command"  # reconnect and continue with the next command


@dataclass(frozen=True)
class Settings:
    """Immutable execution settings."""

    default_timeout_ms: int = field(default=DEFAULT_TIMEOUT_MS)
    non_standard_timeout_ms: int | None = field(default=None)
    max_attempts: int = field(default=DEFAULT_MAX_ATTEMPTS)
    retry_backoff_seconds: float = field(default=DEFAULT_RETRY_BACKOFF_SECONDS)
    banner_marker: str = field(default=DEFAULT_BANNER_MARKER)
    retry_policy: RetryPolicy = field(default=RetryPolicy.LIST)
    known_hosts: str | None = field(default=None)
    accessibility_timeout_ms: int = field(default=DEFAULT_ACCESSIBILITY_TIMEOUT_MS)

    @classmethod
    def from_properties(cls, source: PropertySource) -> "Settings":
        """Build settings from a property source.

        Args:
            source: Property lookup (environment, properties file, mapping)

        Returns:
            Settings with parsed values, defaults where unset or malformed
        """
        settings = cls(
            default_timeout_ms=cls._read(
                source, TIMEOUT_KEY, _parse_positive_int, DEFAULT_TIMEOUT_MS
            ),
            non_standard_timeout_ms=cls._read(
                source, NON_STANDARD_TIMEOUT_KEY, _parse_positive_int, None
            ),
            max_attempts=cls._read(
                source, MAX_ATTEMPTS_KEY, _parse_positive_int, DEFAULT_MAX_ATTEMPTS
            ),
            retry_backoff_seconds=cls._read(
                source,
                RETRY_BACKOFF_KEY,
                _parse_non_negative_float,
                DEFAULT_RETRY_BACKOFF_SECONDS,
            ),
            banner_marker=source.lookup(BANNER_MARKER_KEY) or DEFAULT_BANNER_MARKER,
            retry_policy=cls._read(
                source, RETRY_POLICY_KEY, _parse_retry_policy, RetryPolicy.LIST
            ),
            known_hosts=source.lookup(KNOWN_HOSTS_KEY),
        )
        logger.debug(
            "Settings initialized: timeout_ms=%d, max_attempts=%d, "
            "backoff=%.1fs, retry_policy=%s",
            settings.default_timeout_ms,
            settings.max_attempts,
            settings.retry_backoff_seconds,
            settings.retry_policy.value,
        )
        return settings

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from DEVICE_SHELL_* environment variables."""
        return cls.from_properties(EnvPropertySource(ENV_KEYS))

    @staticmethod
    def _read(
        source: PropertySource,
        key: str,
        parse: Callable[[str, str], T],
        default: T,
    ) -> T:
        """Look up and parse one property, falling back on bad input."""
        value = source.lookup(key)
        if value is None:
            return default
        try:
            return parse(key, value)
        except ConfigurationParseError as e:
            logger.warning("%s, using default %s", e, default)
            return default


def _parse_positive_int(key: str, value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigurationParseError(key, value, "not an integer") from None
    if parsed <= 0:
        raise ConfigurationParseError(key, value, "must be > 0")
    return parsed


def _parse_non_negative_float(key: str, value: str) -> float:
    try:
        parsed = float(value)
    except ValueError:
        raise ConfigurationParseError(key, value, "not a number") from None
    if parsed < 0:
        raise ConfigurationParseError(key, value, "must be >= 0")
    return parsed


def _parse_retry_policy(key: str, value: str) -> RetryPolicy:
    try:
        return RetryPolicy(value.lower())
    except ValueError:
        choices = ", ".join(policy.value for policy in RetryPolicy)
        raise ConfigurationParseError(key, value, f"expected one of: {choices}") from None
