"""Tests for configuration loading."""

from pathlib import Path

import pytest

from beatsense.utils.config import (
    CONFIG_SCHEMA,
    ConfigManager,
    get_default_config,
    load_config,
)
from beatsense.utils.errors import ConfigurationError


@pytest.fixture
def write_config(tmp_path):
    """Write YAML text to a config file and return its path."""
    def _write(text):
        path = tmp_path / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path
    return _write


class TestConfigManager:
    """Dot-notation access and validation."""

    def test_get_nested(self):
        manager = ConfigManager(get_default_config())

        assert manager.get("analysis.bpm.min_bpm") == 60.0
        assert manager.get("analysis.bpm.weights.autocorr") == 0.4

    def test_get_default_and_required(self):
        manager = ConfigManager({"a": {"b": 1}})

        assert manager.get("a.c", default=5) == 5
        with pytest.raises(ConfigurationError) as exc_info:
            manager.get("a.c", required=True)
        assert exc_info.value.config_key == "a.c"

    def test_get_section(self):
        manager = ConfigManager({"a": {"b": 1}, "x": 3})

        assert manager.get_section("a") == {"b": 1}
        assert manager.get_section("x") == {}
        assert manager.get_section("missing") == {}

    def test_set_creates_sections(self):
        manager = ConfigManager()

        manager.set("performance.max_workers", 2)

        assert manager.to_dict() == {"performance": {"max_workers": 2}}

    def test_merge_is_deep(self):
        manager = ConfigManager(get_default_config())

        manager.merge({"analysis": {"bpm": {"max_bpm": 180.0}}})

        assert manager.get("analysis.bpm.max_bpm") == 180.0
        assert manager.get("analysis.bpm.min_bpm") == 60.0

    def test_to_dict_is_a_copy(self):
        manager = ConfigManager({"a": {"b": 1}})

        manager.to_dict()["a"]["b"] = 2

        assert manager.get("a.b") == 1

    def test_defaults_pass_schema(self):
        ConfigManager(get_default_config()).validate(CONFIG_SCHEMA)

    def test_wrong_type_rejected(self):
        manager = ConfigManager({"performance": {"timeout": "soon"}})

        with pytest.raises(ConfigurationError, match="expected int or float"):
            manager.validate({"performance.timeout": {"type": (int, float)}})

    def test_required_missing(self):
        with pytest.raises(ConfigurationError, match="Required configuration missing"):
            ConfigManager({}).validate({"audio.target_sample_rate": {"required": True}})


class TestFromFile:
    """YAML parsing and interpolation."""

    def test_env_interpolation(self, write_config, monkeypatch):
        monkeypatch.setenv("BEATSENSE_LOG_LEVEL", "DEBUG")
        path = write_config("logging:\n  level: ${BEATSENSE_LOG_LEVEL}\n")

        manager = ConfigManager.from_file(path)

        assert manager.get("logging.level") == "DEBUG"

    def test_unset_variable_left_as_is(self, write_config, monkeypatch):
        monkeypatch.delenv("BEATSENSE_UNSET", raising=False)
        path = write_config("logging:\n  file: ${BEATSENSE_UNSET}\n")

        assert ConfigManager.from_file(path).get("logging.file") == "${BEATSENSE_UNSET}"

    def test_interpolation_in_lists(self, write_config, monkeypatch):
        monkeypatch.setenv("EXTRA_FORMAT", ".wav")
        path = write_config("audio:\n  supported_formats: ['${EXTRA_FORMAT}']\n")

        assert ConfigManager.from_file(path).get("audio.supported_formats") == [".wav"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager.from_file(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, write_config):
        path = write_config("audio: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Failed to parse"):
            ConfigManager.from_file(path)

    def test_root_must_be_mapping(self, write_config):
        path = write_config("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigManager.from_file(path)


class TestLoadConfig:
    """File layered over defaults."""

    def test_override_keeps_other_defaults(self, write_config):
        path = write_config("performance:\n  max_workers: 2\n")

        config = load_config(str(path))

        assert config["performance"]["max_workers"] == 2
        assert config["performance"]["max_files"] == 10
        assert config["audio"]["target_sample_rate"] == 11025

    def test_invalid_type_rejected(self, write_config):
        path = write_config("performance:\n  max_workers: many\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(str(path))
        assert exc_info.value.config_key == "performance.max_workers"

    def test_explicit_missing_path(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_dotenv_values_available(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        # Registered with monkeypatch so the value load_dotenv sets is undone
        monkeypatch.setenv("BEATSENSE_TEST_LEVEL", "unset")
        monkeypatch.delenv("BEATSENSE_TEST_LEVEL")
        (tmp_path / ".env").write_text("BEATSENSE_TEST_LEVEL=WARNING\n")
        (tmp_path / "config.yaml").write_text("logging:\n  level: ${BEATSENSE_TEST_LEVEL}\n")

        config = load_config()

        assert config["logging"]["level"] == "WARNING"

    def test_shipped_config_matches_defaults(self):
        shipped = Path(__file__).resolve().parents[2] / "config" / "config.yaml"

        assert load_config(str(shipped)) == get_default_config()
