"""Command text inspection helpers."""

import re

_SED_PATTERNS = (
    re.compile(r"^sed\s+"),
    re.compile(r"\|\s*sed\s+"),
    re.compile(r"\"sed\s+"),
)


def contains_sed(command: str) -> bool:
    """Check if command invokes sed.

    Public helper for callers that build device commands, e.g. to pick a
    quoting style before handing sed expressions to the executor. The
    executor itself sends commands without inspecting them.

    Matches a leading ``sed``, ``sed`` after a pipe, and ``sed`` right
    after a double quote (e.g. ``sh -c "sed ..."``).
    """
    if not command:
        return False
    return any(pattern.search(command) for pattern in _SED_PATTERNS)
