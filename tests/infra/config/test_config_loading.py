"""
Tests for the Config class.

Tests the Config class functionality including:
- YAML loading and parsing
- Variable substitution (${var} syntax)
- Environment variable overrides
- File size validation
- Schema validation
"""

import os

import pytest

from procsup.config import MAX_CONFIG_SIZE_BYTES, Config, ProcsupConfig
from procsup.config.config import _convert_env_value
from procsup.exceptions import ConfigError

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Drop any PROCSUP_* variables inherited from the outer environment."""
    for key in list(os.environ):
        if key.startswith("PROCSUP_"):
            monkeypatch.delenv(key)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "procsup.yaml"
    path.write_text(
        """
supervisor:
  tick_ms: 50
  kill_timeout_ms: 2000

runtime:
  program: /bin/sh
  args: ["-c", "echo hi"]
  home: /tmp
  workdir: ${runtime.home}
  env:
    MODE: batch
    RETRIES: 3

logging:
  level: debug
"""
    )
    return path


# =============================================================================
# Test Loading
# =============================================================================


@pytest.mark.unit
class TestConfigLoading:
    """Test YAML loading."""

    def test_attribute_and_path_access(self, config_file):
        config = Config(str(config_file))
        assert config.supervisor.tick_ms == 50
        assert config.get("runtime.program") == "/bin/sh"
        assert config.runtime.args == ["-c", "echo hi"]

    def test_path_property(self, config_file):
        assert Config(str(config_file)).path == config_file.resolve()

    def test_variable_substitution(self, config_file):
        config = Config(str(config_file))
        assert config.runtime.workdir == "/tmp"

    def test_undefined_variable(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("runtime:\n  home: ${nowhere.home}\n")
        with pytest.raises(ConfigError, match="undefined variable"):
            Config(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            Config(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("supervisor: [unclosed\n")
        with pytest.raises(ConfigError, match="invalid YAML"):
            Config(str(path))

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            Config(str(path))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert len(Config(str(path))) == 0

    def test_file_too_large(self, tmp_path):
        path = tmp_path / "huge.yaml"
        path.write_text("x: " + "a" * (MAX_CONFIG_SIZE_BYTES + 1))
        with pytest.raises(ConfigError, match="too large"):
            Config(str(path))

    def test_reload(self, config_file):
        config = Config(str(config_file))
        config_file.write_text("supervisor:\n  tick_ms: 75\n")
        assert config.reload() is config
        assert config.supervisor.tick_ms == 75
        assert not config.has("runtime")


# =============================================================================
# Test Environment Overrides
# =============================================================================


@pytest.mark.unit
class TestEnvOverrides:
    """Test PROCSUP_<SECTION>__<KEY> overrides."""

    def test_override_existing_key(self, config_file, monkeypatch):
        monkeypatch.setenv("PROCSUP_SUPERVISOR__TICK_MS", "20")
        config = Config(str(config_file))
        assert config.supervisor.tick_ms == 20

    def test_override_creates_section(self, tmp_path, monkeypatch):
        path = tmp_path / "c.yaml"
        path.write_text("logging:\n  level: info\n")
        monkeypatch.setenv("PROCSUP_SUPERVISOR__KILL_TIMEOUT_MS", "1500")
        config = Config(str(path))
        assert config.get("supervisor.kill_timeout_ms") == 1500

    def test_override_feeds_substitution(self, config_file, monkeypatch):
        monkeypatch.setenv("PROCSUP_RUNTIME__HOME", "/var/tmp")
        config = Config(str(config_file))
        assert config.runtime.workdir == "/var/tmp"

    def test_overrides_disabled(self, config_file, monkeypatch):
        monkeypatch.setenv("PROCSUP_SUPERVISOR__TICK_MS", "20")
        config = Config(str(config_file), enable_env_overrides=False)
        assert config.supervisor.tick_ms == 50
        assert config.get_env_overrides() == {}

    def test_custom_prefix(self, config_file, monkeypatch):
        monkeypatch.setenv("SUP_LOGGING__LEVEL", "error")
        config = Config(str(config_file), env_prefix="SUP_")
        assert config.logging.level == "error"

    def test_get_env_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv("PROCSUP_LOGGING__COLORS", "false")
        config = Config(str(config_file))
        assert config.get_env_overrides() == {"logging.colors": False}


@pytest.mark.unit
class TestConvertEnvValue:
    """Test environment string conversion."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("true", True),
            ("False", False),
            ("null", None),
            ("", None),
            ("42", 42),
            ("0.5", 0.5),
            ("a, b", ["a", "b"]),
            ("1.0.0", "1.0.0"),
            ("debug", "debug"),
        ],
    )
    def test_conversion(self, raw, expected):
        assert _convert_env_value(raw) == expected


# =============================================================================
# Test Validation
# =============================================================================


@pytest.mark.unit
class TestConfigValidate:
    """Test Config.validate()."""

    def test_validate(self, config_file):
        settings = Config(str(config_file)).validate()
        assert isinstance(settings, ProcsupConfig)
        assert settings.supervisor.tick_ms == 50
        assert settings.supervisor.kill_poll_ms == 100
        assert settings.runtime.env == {"MODE": "batch", "RETRIES": "3"}
        assert settings.logging.level == "debug"

    def test_validate_rejects_unknown_supervisor_key(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("supervisor:\n  tick: 5\n")
        with pytest.raises(ConfigError, match="invalid configuration"):
            Config(str(path)).validate()

    def test_sample_config_is_valid(self):
        from pathlib import Path

        sample = Path(__file__).resolve().parents[3] / "etc" / "procsup.yaml"
        settings = Config(str(sample)).validate()
        assert settings.runtime.program == "/bin/sh"
        assert settings.runtime.workdir == "/tmp"
