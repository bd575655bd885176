"""
Log formatters for the logging system.

Records render as::

    [12:34:56,789] [I] child exited          [code:0] [pid:4242] [1234] [/procsup]

Extra fields are aligned to a rule so messages of different length still
line up in a terminal.
"""

import collections
import logging
import os
from typing import Any

from .colors import ColorManager
from .config import LogConfig
from .constants import LogConstants


def _escape(text: str) -> str:
    """Escape text that is spliced into a %-style format string."""
    return text.replace("%", "%%")


def _extra_items(record: logging.LogRecord) -> list[tuple[str, Any]]:
    """Extra fields attached by procsup.log.Logger, sorted unless ordered."""
    extra = getattr(record, "__procsup__extra", None)
    if not extra:
        return []
    keys = list(extra.keys())
    if not isinstance(extra, collections.OrderedDict):
        keys.sort()
    return [(key, extra[key]) for key in keys]


def _render_value(value: Any) -> str:
    if isinstance(value, BaseException):
        return value.__class__.__name__
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


class PreFormatter(logging.Formatter):
    """Standard formatter with optional microsecond suffix on timestamps."""

    def __init__(self, fmt: str, micros: bool) -> None:
        self._micros = micros
        super().__init__(fmt)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        s = super().formatTime(record)
        if self._micros:
            micros = int((record.created % 1) * 1000000) % 1000
            s += f".{micros:03d}"
        return s


class LogFormatter(logging.Formatter):
    """
    Formatter with colored output and structured field formatting.

    Provides console output with:
    - ANSI color codes for different log levels
    - Extra fields rendered as ``[key:value]``
    - Process id and logger name
    - Optional file location of the call site
    """

    def __init__(self, config: LogConfig):
        """
        Initialize the log formatter.

        Args:
            config: Logger configuration
        """
        super().__init__()
        self._config = config
        self._pre_formatter = PreFormatter(LogConstants.DEFAULT_FORMAT, config.micros)

    @property
    def config(self) -> LogConfig:
        return self._config

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record.

        Args:
            record: Log record to format

        Returns:
            Formatted log message
        """
        width = self._calculate_width(record)
        if self._config.colors:
            fmt = self._format_colored(record, width)
        else:
            fmt = self._format_plain(record, width)

        self._pre_formatter._fmt = fmt
        self._pre_formatter._style._fmt = fmt
        return self._pre_formatter.format(record)

    def _calculate_width(self, record: logging.LogRecord) -> int:
        """Display width of "[time] [L] message" without full formatting."""
        timestamp_len = 27 if self._config.micros else 23
        return 1 + timestamp_len + 4 + 1 + 2 + len(record.getMessage())

    def _rule_padding(self, width: int) -> str:
        rule = (
            LogConstants.MICRO_RULE_WIDTH
            if self._config.micros
            else LogConstants.DEFAULT_RULE_WIDTH
        )
        return " " * max(1, rule - width)

    def _location(self, record: logging.LogRecord) -> str:
        if self._config.location <= 0:
            return ""
        path = os.path.relpath(record.pathname, os.getcwd())
        return _escape(f" [./{path}:{record.lineno}]")

    def _format_plain(self, record: logging.LogRecord, width: int) -> str:
        fmt = LogConstants.DEFAULT_FORMAT + self._rule_padding(width)
        fields = [f"[{k}:{_render_value(v)}]" for k, v in _extra_items(record)]
        if fields:
            fmt += _escape(" ".join(fields)) + " "
        fmt += "[%(process)d] [%(name)s]"
        return fmt + self._location(record)

    def _format_colored(self, record: logging.LogRecord, width: int) -> str:
        col = ColorManager.get_color_for_level(record.levelno)
        bold = ColorManager.create_bold_color(col)
        col += "m"
        reset = ColorManager.RESET

        fmt = f"{col}[%(asctime)s] [{bold}%(levelname).1s{reset}{col}] "
        fmt += f"{bold}%(message)s{reset}" + self._rule_padding(width)

        for key, value in _extra_items(record):
            fmt += f"{col}{_escape(key)}[{bold}{_escape(_render_value(value))}{reset}{col}]{reset} "

        gray = ColorManager.create_gray_level(9) + "m"
        fmt += f"{gray}[%(process)d] [%(name)s]"
        return fmt + self._location(record) + reset
