"""
Configuration for the logging system.

LogConfig is immutable so a logger and its formatter always agree on the
settings they were built with.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .constants import LogConstants
from .exceptions import InvalidLogLevelError


@dataclass(frozen=True)
class LogConfig:
    """
    Immutable configuration for root loggers.

    ``stream`` selects the console stream. It defaults to stderr because the
    supervisor forwards child output on stdout.
    """

    level: int | bool = logging.INFO  # False disables logging
    location: int = 0
    micros: bool = False
    colors: bool = True
    stream: str = "stderr"

    @staticmethod
    def _resolve_level(level: str | int | bool) -> int | bool:
        """Resolve level parameter to int or False."""
        if isinstance(level, bool):
            return False if not level else logging.INFO
        if isinstance(level, str):
            if level.isnumeric():
                return int(level)
            name = level.lower()
            if name in LogConstants.LEVEL_NAMES:
                return LogConstants.LEVEL_NAMES[name]
            raise InvalidLogLevelError(level)
        return level

    @classmethod
    def from_params(
        cls,
        level: str | int | bool,
        location: bool | int = 0,
        micros: bool = False,
        colors: bool = True,
        stream: str = "stderr",
    ) -> LogConfig:
        """
        Create LogConfig from individual parameters.

        Args:
            level: Log level (string name, numeric value, or False to disable logging)
            location: Location display level (bool or int)
            micros: Whether to show microsecond precision
            colors: Whether to enable colored output
            stream: "stdout" or "stderr"

        Returns:
            LogConfig instance
        """
        resolved_location = (
            1 if location is True else (0 if location is False else int(location))
        )
        if stream not in ("stdout", "stderr"):
            raise ValueError(f"Invalid log stream: {stream}")

        return cls(
            level=cls._resolve_level(level),
            location=resolved_location,
            micros=micros,
            colors=colors,
            stream=stream,
        )

    @staticmethod
    def _navigate_to_section(config_dict: dict, section: str) -> dict:
        """Navigate to a dotted section, falling back to an empty dict."""
        current: Any = config_dict
        for part in section.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return {}
        return current if isinstance(current, dict) else {}

    @classmethod
    def from_config(cls, config_dict: dict, section: str = "logging") -> LogConfig:
        """
        Create LogConfig from a configuration dictionary.

        Example:
            config = Config("etc/procsup.yaml")
            log_config = LogConfig.from_config(config.dict())
        """
        current = cls._navigate_to_section(config_dict, section)

        level = current.get("level", "info")
        if level == "false":
            level = False
        colors = current.get("colors", True)
        if isinstance(colors, dict):
            colors = colors.get("enabled", True)

        return cls.from_params(
            level=level,
            location=current.get("location", 0),
            micros=current.get("microseconds", current.get("micros", False)),
            colors=colors,
            stream=current.get("stream", "stderr"),
        )
