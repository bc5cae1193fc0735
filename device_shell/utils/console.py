"""Colorful console logging for device_shell."""

import logging
import os
import re
import sys
from datetime import datetime

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "white": "\033[37m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

# Log level colors
LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Component colors for logger names
COMPONENT_COLORS = {
    "device_shell.services.connection": COLORS["bright_magenta"],
    "device_shell.services.session": COLORS["magenta"],
    "device_shell.services.executor": COLORS["bright_cyan"],
    "device_shell.services.dispatcher": COLORS["bright_blue"],
    "device_shell.config": COLORS["green"],
    "default": COLORS["white"],
}

_TARGET_PATTERN = re.compile(r"(\b[\w\.\-]+:\d+\b)")
_ATTEMPT_PATTERN = re.compile(r"(attempt \d+(?:/\d+)?)")

NOISY_LOGGERS = ("asyncssh",)


class ColorfulFormatter(logging.Formatter):
    """Log formatter with fixed-width levels and component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        return f"{dt.strftime('%H:%M:%S')}.{int(record.msecs):03d}"

    def _format_level(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, COLORS["white"])
        return self._colorize(f"{record.levelname:<8}", color)

    def _format_component(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith("device_shell."):
            name = name[len("device_shell."):]
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<20}", color)

    def _highlight_message(self, message: str) -> str:
        """Highlight device targets and retry attempts."""
        if not self.use_colors:
            return message
        message = _TARGET_PATTERN.sub(
            f"{COLORS['bright_magenta']}\\1{COLORS['reset']}", message
        )
        return _ATTEMPT_PATTERN.sub(
            f"{COLORS['bright_yellow']}\\1{COLORS['reset']}", message
        )

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._format_level(record)
        component = self._format_component(record)
        sep = self._colorize("|", COLORS["dim"])
        message = self._highlight_message(record.getMessage())

        line = f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(level: str | None = None, use_colors: bool | None = None) -> None:
    """Install the colorful handler on the device_shell logger.

    Args:
        level: Log level name (default: DEVICE_SHELL_LOG_LEVEL or INFO)
        use_colors: Force colors on or off (default:
            DEVICE_SHELL_LOG_COLORS, disabled when stderr is not a TTY)
    """
    log_level = (level or os.getenv("DEVICE_SHELL_LOG_LEVEL", "INFO")).upper()
    if use_colors is None:
        use_colors = os.getenv("DEVICE_SHELL_LOG_COLORS", "true").lower() != "false"
        if not sys.stderr.isatty():
            use_colors = False

    package_logger = logging.getLogger("device_shell")
    package_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Only add handler if not already configured
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    for noisy_logger in NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)
