"""
Logging with colored console output, structured extra fields and a TRACE level.

This module extends Python's standard logging with:
- Custom TRACE log level for per-chunk supervision detail
- Colored console output with ANSI escape sequences
- Structured logging with extra fields rendered as [key:value]
- Derived "view" loggers sharing the root's handlers

Log Level Control:
- Use standard levels: debug, info, warning, error, critical
- Use the custom level: trace
- Disable logging completely: False or "false"
"""

import logging

from .colors import ColorManager
from .config import LogConfig
from .constants import LogConstants
from .exceptions import InvalidLogLevelError, LogError
from .factory import LoggerFactory
from .formatters import LogFormatter
from .logger import Logger

logging.TRACE = LogConstants.CUSTOM_LEVELS["TRACE"]  # type: ignore[attr-defined]
logging.addLevelName(logging.TRACE, "TRACE")  # type: ignore[attr-defined]

LogConstants.LEVEL_NAMES["trace"] = logging.TRACE  # type: ignore[attr-defined]


def resolve_level(s: str | int | bool) -> int | bool:
    """
    Resolve log level from string, numeric value, or boolean.

    Raises:
        InvalidLogLevelError: If the log level is invalid
    """
    if isinstance(s, bool):
        return s

    if str(s).isnumeric():
        return int(s)

    name = str(s).lower()
    if name in LogConstants.LEVEL_NAMES:
        return LogConstants.LEVEL_NAMES[name]

    raise InvalidLogLevelError(s)


def create_root_lg(
    level: str | int = "info",
    location: bool | int = False,
    micros: bool = False,
    colors: bool = True,
) -> Logger:
    """
    Create a root logger writing to stderr.

    Args:
        level: Log level name or number
        location: Location display level
        micros: Show microsecond precision
        colors: Enable ANSI colors

    Returns:
        Configured root logger
    """
    config = LogConfig.from_params(level, location=location, micros=micros, colors=colors)
    return LoggerFactory.create_root(config)


__all__ = [
    "ColorManager",
    "InvalidLogLevelError",
    "LogConfig",
    "LogConstants",
    "LogError",
    "LogFormatter",
    "Logger",
    "LoggerFactory",
    "create_root_lg",
    "resolve_level",
]
