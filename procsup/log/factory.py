"""
Factory for creating and configuring loggers.
"""

import collections
import logging
import sys
from typing import Any, cast

from .config import LogConfig
from .formatters import LogFormatter
from .logger import Logger


class LoggerFactory:
    """Factory for creating and configuring loggers."""

    @staticmethod
    def create_root(config: LogConfig, logger_class: type[Logger] = Logger) -> Logger:
        """
        Create a root logger with the specified configuration.

        Example:
            >>> config = LogConfig.from_params(level="info", colors=False)
            >>> lg = LoggerFactory.create_root(config)
            >>> lg.info("supervisor ready")
            [2026-01-01 12:34:56,789] [I] supervisor ready   [1234] [/]
        """
        return LoggerFactory.create("/", config, logger_class)

    @staticmethod
    def _setup_console_handler(config: LogConfig) -> logging.Handler:
        stream = sys.stdout if config.stream == "stdout" else sys.stderr
        handler = logging.StreamHandler(stream)
        if config.level is not False:
            handler.setLevel(config.level)
        handler.setFormatter(LogFormatter(config))
        return handler

    @staticmethod
    def _check_existing_logger(name: str) -> Logger | None:
        existing = logging.root.manager.loggerDict.get(name)
        if isinstance(existing, Logger):
            return existing
        return None

    @staticmethod
    def create(
        name: str,
        config: LogConfig,
        logger_class: type[Logger] = Logger,
        extra: dict[str, Any] | collections.OrderedDict | None = None,
    ) -> Logger:
        """
        Create a logger with its own console handler.

        Returns the existing logger if one with the same name was already
        created by this factory.

        Args:
            name: Logger name
            config: Logger configuration
            logger_class: Logger class to use
            extra: Pre-populated extra fields to include in all log records
        """
        existing = LoggerFactory._check_existing_logger(name)
        if existing:
            return existing

        lg = logger_class(name, config, extra)
        lg.addHandler(LoggerFactory._setup_console_handler(config))
        lg.propagate = False
        lg.parent = logging.root

        # Register in loggerDict so later lookups find the same instance
        logging.root.manager.loggerDict[name] = lg
        return lg

    @staticmethod
    def derive(parent: Logger, tags: str | list[str]) -> Logger:
        """
        Derive a "view" logger that delegates to the root's handlers.

        Examples:
            >>> root = LoggerFactory.create_root(config)  # name: "/"
            >>> LoggerFactory.derive(root, "supervisor").name
            '/supervisor'
            >>> LoggerFactory.derive(root, ["supervisor", "loop"]).name
            '/supervisor/loop'

        Args:
            parent: Parent logger instance
            tags: Single tag string or list of tags forming the hierarchy

        Returns:
            Derived logger sharing the root logger's handlers
        """
        if isinstance(tags, str):
            tags = [tags]

        prefix = parent.name if parent.name == "/" else parent.name + "/"
        name = prefix + "/".join(tags)

        existing = LoggerFactory._check_existing_logger(name)
        if existing:
            return existing

        root = parent._root_logger if parent._root_logger else parent
        lg = cast(Logger, parent.__class__(name, parent.config, parent._extra))
        lg._root_logger = root
        lg.parent = parent
        lg.propagate = False

        logging.root.manager.loggerDict[name] = lg
        return lg
