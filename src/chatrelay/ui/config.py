"""UI configuration constants.

Centralizes magic numbers and configuration values for the UI module.
"""

import logging


class LogLevel:
    """Log level constants for the debug panel.

    Values match the stdlib ``logging`` levels so records can be filtered
    without translation. Lower value = more verbose.
    """

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    _names = {
        DEBUG: "DEBUG",
        INFO: "INFO",
        WARNING: "WARN",
        ERROR: "ERROR",
    }

    _from_string = {
        "debug": DEBUG,
        "info": INFO,
        "warning": WARNING,
        "error": ERROR,
    }

    @classmethod
    def name(cls, level: int) -> str:
        """Get the display name for a level; levels above ERROR show as ERROR."""
        if level >= cls.ERROR:
            return cls._names[cls.ERROR]
        return cls._names.get(level, "DEBUG")

    @classmethod
    def from_string(cls, level_str: str) -> int:
        """Convert string to log level. Returns DEBUG if invalid."""
        return cls._from_string.get(level_str.lower(), cls.DEBUG)


# Marker appended to a reply while it is still streaming
STREAMING_CURSOR = " ▌"

# Log panel configuration
LOG_TIMESTAMP_FORMAT = "%H:%M:%S"
LOG_MAX_MESSAGE_LENGTH = 500  # Characters before truncating log messages

# Notification durations (seconds)
NOTIFY_SHORT = 2
NOTIFY_LONG = 5
