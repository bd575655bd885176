"""
Configuration loading from YAML files.

Supports ``${section.key}`` substitution from the configuration itself and
environment overrides of the form ``PROCSUP_<SECTION>__<KEY>=value``. A
double underscore separates path components so keys such as ``tick_ms``
keep their own underscores::

    PROCSUP_SUPERVISOR__KILL_TIMEOUT_MS=2000
    PROCSUP_LOGGING__LEVEL=debug
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from ..dot_dict import DotDict
from ..exceptions import ConfigError
from .constants import DEFAULT_ENV_PREFIX, MAX_CONFIG_SIZE_BYTES
from .schemas import ProcsupConfig, validate_config

_VAR_PATTERN = re.compile(r"\$\{([a-zA-Z0-9_.]+)\}")


def _check_file_size(path: Path) -> None:
    """Reject oversized config files before parsing them."""
    file_size = os.path.getsize(path)
    if file_size > MAX_CONFIG_SIZE_BYTES:
        raise ConfigError(
            "configuration file too large",
            path=str(path),
            size=file_size,
            limit=MAX_CONFIG_SIZE_BYTES,
        )


def _convert_env_value(value: str) -> bool | int | float | str | list[Any] | None:
    """Convert an environment variable string to the matching YAML-ish type."""
    if value.lower() in ("null", "none", ""):
        return None
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if "," in value:
        return [_convert_env_value(v.strip()) for v in value.split(",")]
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


class Config(DotDict):
    """
    Configuration loaded from a YAML file.

    Example:
        config = Config("etc/procsup.yaml")
        config.supervisor.tick_ms          # attribute access
        config.get("runtime.program")      # dotted-path access
        settings = config.validate()       # ProcsupConfig
    """

    def __init__(
        self,
        fname: str,
        enable_env_overrides: bool = True,
        env_prefix: str = DEFAULT_ENV_PREFIX,
    ):
        """
        Load configuration from a YAML file.

        Args:
            fname: Path to the YAML configuration file
            enable_env_overrides: Whether to apply environment variable overrides
            env_prefix: Prefix for environment variables

        Raises:
            ConfigError: If the file is missing, too large or not valid YAML
        """
        super().__init__()
        object.__setattr__(self, "_enable_env_overrides", enable_env_overrides)
        object.__setattr__(self, "_env_prefix", env_prefix)
        object.__setattr__(self, "_config_path", Path(fname).resolve())
        self._load()

    @property
    def path(self) -> Path:
        return self._config_path

    def _load(self) -> None:
        path = self._config_path
        if not path.is_file():
            raise ConfigError("configuration file not found", path=str(path))
        _check_file_size(path)

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError("invalid YAML", path=str(path), error=str(e)) from e

        if not isinstance(data, dict):
            raise ConfigError("configuration root must be a mapping", path=str(path))

        if self._enable_env_overrides:
            data = self._apply_env_overrides(data)

        self.clear()
        self.set(**data)
        self.set(**self._substitute(self.dict()))

    def reload(self) -> "Config":
        """Re-read the file, re-applying substitution and environment overrides."""
        self._load()
        return self

    def _substitute(self, content: Any) -> Any:
        """Recursively resolve ${variable} substitutions."""
        if isinstance(content, dict):
            return {k: self._substitute(v) for k, v in content.items()}
        if isinstance(content, list):
            return [self._substitute(v) for v in content]
        if isinstance(content, str):
            return _VAR_PATTERN.sub(self._substitute_var, content)
        return content

    def _substitute_var(self, match: re.Match) -> str:
        var_name = match.group(1)
        if not self.has(var_name):
            raise ConfigError("undefined variable in configuration", variable=var_name)
        return str(self.get(var_name))

    def _env_key_to_path(self, env_key: str) -> list[str]:
        """PROCSUP_SUPERVISOR__TICK_MS -> ['supervisor', 'tick_ms']"""
        return env_key[len(self._env_prefix) :].lower().split("__")

    def get_env_overrides(self) -> dict[str, Any]:
        """Environment overrides that apply, keyed by dotted path."""
        if not self._enable_env_overrides:
            return {}
        return {
            ".".join(self._env_key_to_path(key)): _convert_env_value(value)
            for key, value in os.environ.items()
            if key.startswith(self._env_prefix)
        }

    def _apply_env_overrides(self, data: dict[str, Any]) -> dict[str, Any]:
        for path, value in self.get_env_overrides().items():
            current = data
            parts = path.split(".")
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]
            current[parts[-1]] = value
        return data

    def validate(self) -> ProcsupConfig:
        """
        Validate against the configuration schema.

        Raises:
            ConfigError: If the configuration is invalid
        """
        return validate_config(self.dict())
