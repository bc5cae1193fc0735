"""Removal of the SSH login banner from command output."""

from device_shell.config.settings import DEFAULT_BANNER_MARKER


class ResponseSanitizer:
    """Strips everything up to the last banner marker in a response.

    Some targets echo their legal notice in front of every output block,
    not only at login, so the last occurrence is the one that counts.
    """

    def __init__(self, marker: str = DEFAULT_BANNER_MARKER) -> None:
        if not marker:
            raise ValueError("Banner marker must not be empty")
        self.marker = marker

    def sanitize(self, raw: str | None) -> str:
        """Return raw with the banner prefix removed.

        Args:
            raw: Response text as received from the device

        Returns:
            Text after the last marker, or raw unchanged when the marker
            is absent or only appears at position 0
        """
        if not raw:
            return ""
        index = raw.rfind(self.marker)
        if index > 0:
            return raw[index + len(self.marker):]
        return raw
