"""
Tests for the configuration schemas.
"""

import pytest
from pydantic import ValidationError

from procsup.config import (
    LoggingSettings,
    ProcsupConfig,
    RuntimeSettings,
    SupervisorSettings,
    validate_config,
)
from procsup.exceptions import ConfigError


@pytest.mark.unit
class TestSupervisorSettings:
    """Test SupervisorSettings."""

    def test_defaults(self):
        s = SupervisorSettings()
        assert s.tick_ms == 100
        assert s.kill_timeout_ms == 5000
        assert s.kill_poll_ms == 100
        assert s.chunk_size == 4096

    def test_seconds_properties(self):
        s = SupervisorSettings(tick_ms=250, kill_timeout_ms=1500, kill_poll_ms=50)
        assert s.tick == 0.25
        assert s.kill_timeout == 1.5
        assert s.kill_poll == 0.05

    @pytest.mark.parametrize(
        "field,value",
        [("tick_ms", 0), ("kill_poll_ms", 0), ("chunk_size", 0), ("kill_timeout_ms", -1)],
    )
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            SupervisorSettings(**{field: value})

    def test_zero_kill_timeout_allowed(self):
        assert SupervisorSettings(kill_timeout_ms=0).kill_timeout == 0.0

    def test_frozen(self):
        s = SupervisorSettings()
        with pytest.raises(ValidationError):
            s.tick_ms = 5

    def test_extra_forbidden(self):
        with pytest.raises(ValidationError):
            SupervisorSettings(tick=5)


@pytest.mark.unit
class TestRuntimeSettings:
    """Test RuntimeSettings."""

    def test_minimal(self):
        s = RuntimeSettings(program="sleep")
        assert s.args == []
        assert s.env == {}
        assert s.home is None
        assert s.workdir is None
        assert s.log_file is None

    def test_empty_program_rejected(self):
        with pytest.raises(ValidationError):
            RuntimeSettings(program="")

    def test_env_values_stringified(self):
        s = RuntimeSettings(program="x", env={"N": 1, "FLAG": True})
        assert s.env == {"N": "1", "FLAG": "True"}

    @pytest.mark.parametrize("name", ["", "A=B", "A\0B"])
    def test_invalid_env_names(self, name):
        with pytest.raises(ValidationError):
            RuntimeSettings(program="x", env={name: "v"})


@pytest.mark.unit
class TestLoggingSettings:
    """Test LoggingSettings."""

    def test_defaults(self):
        s = LoggingSettings()
        assert s.level == "info"
        assert s.stream == "stderr"

    def test_level_case_insensitive(self):
        assert LoggingSettings(level="TRACE").level == "TRACE"

    def test_invalid_level(self):
        with pytest.raises(ValidationError):
            LoggingSettings(level="verbose")

    def test_invalid_stream(self):
        with pytest.raises(ValidationError):
            LoggingSettings(stream="syslog")


@pytest.mark.unit
class TestValidateConfig:
    """Test validate_config()."""

    def test_empty(self):
        config = validate_config({})
        assert isinstance(config, ProcsupConfig)
        assert config.runtime is None
        assert config.supervisor == SupervisorSettings()

    def test_invalid_raises_config_error(self):
        with pytest.raises(ConfigError) as exc_info:
            validate_config({"supervisor": {"tick_ms": "soon"}, "runtime": {}})
        assert exc_info.value.context["errors"] == 2
