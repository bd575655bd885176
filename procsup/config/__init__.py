"""
Configuration management package.

This module provides:
- Config class for loading YAML configuration files
- Pydantic schemas for supervisor, runtime and logging settings
"""

from .config import Config
from .constants import DEFAULT_CONFIG_FILENAME, DEFAULT_ENV_PREFIX, MAX_CONFIG_SIZE_BYTES
from .schemas import (
    LoggingSettings,
    ProcsupConfig,
    RuntimeSettings,
    SupervisorSettings,
    validate_config,
)

__all__ = [
    "Config",
    "DEFAULT_CONFIG_FILENAME",
    "DEFAULT_ENV_PREFIX",
    "MAX_CONFIG_SIZE_BYTES",
    "LoggingSettings",
    "ProcsupConfig",
    "RuntimeSettings",
    "SupervisorSettings",
    "validate_config",
]
