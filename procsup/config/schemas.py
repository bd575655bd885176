"""
Configuration schemas using Pydantic for validation.

The supervisor timing defaults mirror the shutdown contract: a 100 ms
readiness tick and a 5000 ms reap window after the forced kill.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import ConfigError


class SupervisorSettings(BaseModel):
    """Timing and buffering of the supervision loop and shutdown protocol."""

    tick_ms: int = Field(default=100, ge=1, description="Readiness wait per iteration")
    kill_timeout_ms: int = Field(
        default=5000, ge=0, description="Reap window after the forced kill"
    )
    kill_poll_ms: int = Field(
        default=100, ge=1, description="Reap poll interval inside the kill window"
    )
    chunk_size: int = Field(default=4096, ge=1, description="Bytes per pipe read")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def tick(self) -> float:
        return self.tick_ms / 1000.0

    @property
    def kill_timeout(self) -> float:
        return self.kill_timeout_ms / 1000.0

    @property
    def kill_poll(self) -> float:
        return self.kill_poll_ms / 1000.0


class RuntimeSettings(BaseModel):
    """The supervised program and the environment it is launched into."""

    program: str = Field(..., min_length=1, description="Program path or name")
    args: list[str] = Field(default_factory=list, description="Default arguments")
    home: str | None = Field(default=None, description="Exported as HOME")
    workdir: str | None = Field(
        default=None, description="Working directory, defaults to home"
    )
    env: dict[str, str] = Field(default_factory=dict, description="Extra environment")
    log_file: str | None = Field(
        default=None, description="Redirect supervisor stdout/stderr to this file"
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("env", mode="before")
    @classmethod
    def stringify_env(cls, v: Any) -> Any:
        """YAML turns `1`/`true` into int/bool; the environment only holds strings."""
        if isinstance(v, dict):
            return {str(k): str(val) for k, val in v.items()}
        return v

    @field_validator("env")
    @classmethod
    def validate_env_names(cls, v: dict[str, str]) -> dict[str, str]:
        for name in v:
            if not name or "=" in name or "\0" in name:
                raise ValueError(f"Invalid environment variable name '{name}'")
        return v


class LoggingSettings(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="info", description="Global log level")
    location: bool | int = Field(default=False, description="Show file locations")
    micros: bool = Field(default=False, description="Show microsecond timestamps")
    colors: bool = Field(default=True, description="ANSI colors")
    stream: str = Field(default="stderr", description="stdout or stderr")

    model_config = ConfigDict(extra="allow")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: Any) -> Any:
        valid_levels = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "FALSE"]
        if isinstance(v, str) and v.upper() not in valid_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(valid_levels)}"
            )
        return v

    @field_validator("stream")
    @classmethod
    def validate_stream(cls, v: str) -> str:
        if v not in ("stdout", "stderr"):
            raise ValueError(f"Invalid log stream '{v}'. Must be stdout or stderr")
        return v


class ProcsupConfig(BaseModel):
    """Root configuration model."""

    supervisor: SupervisorSettings = Field(default_factory=SupervisorSettings)
    runtime: RuntimeSettings | None = None
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = ConfigDict(extra="allow")


def validate_config(config_dict: dict[str, Any]) -> ProcsupConfig:
    """
    Validate a configuration dictionary.

    Raises:
        ConfigError: If the configuration does not match the schema
    """
    try:
        return ProcsupConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigError("invalid configuration", errors=e.error_count()) from e
