"""Property sources consulted when building Settings."""

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

_PROPERTY_LINE = re.compile(r"^([^=:\s]+)\s*[=:]\s*(.*)$")


class MappingPropertySource:
    """Property source backed by an in-memory mapping."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values = dict(values or {})

    def lookup(self, key: str, default: str | None = None) -> str | None:
        value = self._values.get(key)
        if value is None or not value.strip():
            return default
        return value.strip()

    def __len__(self) -> int:
        return len(self._values)


class EnvPropertySource:
    """Property source reading environment variables.

    Property keys are translated through ``env_keys``; keys without an
    entry are read verbatim from the environment.
    """

    def __init__(self, env_keys: Mapping[str, str] | None = None) -> None:
        self._env_keys = dict(env_keys or {})

    def lookup(self, key: str, default: str | None = None) -> str | None:
        env_key = self._env_keys.get(key, key)
        value = os.getenv(env_key)
        if value is None or not value.strip():
            return default
        return value.strip()


def load_properties_file(path: Path | str) -> MappingPropertySource:
    """Read a ``key=value`` properties file.

    Blank lines and lines starting with ``#`` or ``!`` are skipped.
    A missing or unreadable file yields an empty source.

    Args:
        path: Path to the properties file

    Returns:
        MappingPropertySource with the parsed values
    """
    path = Path(path)
    try:
        content = path.read_text()
    except OSError as e:
        logger.warning("Cannot read properties file %s: %s", path, e)
        return MappingPropertySource()

    values: dict[str, str] = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith(("#", "!")):
            continue
        match = _PROPERTY_LINE.match(line)
        if match is None:
            logger.debug("Skipping malformed property line: %s", line)
            continue
        values[match.group(1)] = match.group(2).strip()

    logger.debug("Loaded %d propert(ies) from %s", len(values), path)
    return MappingPropertySource(values)
