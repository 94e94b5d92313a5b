"""
Configuration management for BeatSense.

Loads YAML configuration with ``${ENV_VAR}`` interpolation; variables from a
project ``.env`` file are made available before interpolation.
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from beatsense.utils.errors import ConfigurationError


class ConfigManager:
    """
    Manages configuration loaded from YAML files.

    Supports dot-notation access ("analysis.bpm.weights"), defaults,
    required keys and a simple type schema.
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = config_dict or {}
        self._env_pattern = re.compile(r'\$\{([^}]+)\}')

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Create ConfigManager from YAML file.

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}",
                config_key=str(file_path)
            ) from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                config_key=str(file_path)
            )

        manager = cls(config_dict)
        manager._config = manager._interpolate(manager._config)
        return manager

    def _interpolate(self, value: Any) -> Any:
        """Recursively replace ${ENV_VAR} in strings, lists and dicts."""
        if isinstance(value, dict):
            return {key: self._interpolate(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._interpolate(item) for item in value]
        if isinstance(value, str):
            return self._interpolate_string(value)
        return value

    def _interpolate_string(self, s: str) -> str:
        """Replace ${ENV_VAR} with environment variable value."""
        def replace(match: re.Match) -> str:
            value = os.environ.get(match.group(1))
            if value is None:
                return match.group(0)  # Keep original if not found
            return value

        return self._env_pattern.sub(replace, s)

    def get(
        self,
        key: str,
        default: Any = None,
        required: bool = False
    ) -> Any:
        """
        Get configuration value using dot notation.

        Example:
            config.get("performance.max_workers", default=4)
            config.get("audio.target_sample_rate", required=True)
        """
        value: Any = self._config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key
                    )
                return default

        return value

    def get_section(self, key: str) -> Dict[str, Any]:
        """Get a configuration section as a dictionary (empty if missing)."""
        value = self.get(key, default={})
        if not isinstance(value, dict):
            return {}
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation."""
        keys = key.split('.')
        current = self._config

        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

    def merge(self, overrides: Dict[str, Any]) -> None:
        """Deep-merge another mapping into this configuration."""
        self._config = _deep_merge(self._config, overrides)

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return copy.deepcopy(self._config)

    def validate(self, schema: Dict[str, Any]) -> None:
        """
        Validate configuration against a schema.

        Schema format:
            {
                "audio.target_sample_rate": {"type": int, "required": True},
                "performance.timeout": {"type": (int, float)},
            }

        Raises:
            ConfigurationError: If validation fails
        """
        for key, rules in schema.items():
            value = self.get(key)
            expected_type = rules.get("type")

            if value is None:
                if rules.get("required", False):
                    raise ConfigurationError(
                        f"Required configuration missing: {key}",
                        config_key=key
                    )
                continue

            if expected_type and not isinstance(value, expected_type):
                expected_name = (
                    " or ".join(t.__name__ for t in expected_type)
                    if isinstance(expected_type, tuple)
                    else expected_type.__name__
                )
                raise ConfigurationError(
                    f"Invalid type for {key}: expected {expected_name}, "
                    f"got {type(value).__name__}",
                    config_key=key
                )


CONFIG_SCHEMA: Dict[str, Any] = {
    "audio.target_sample_rate": {"type": int, "required": True},
    "audio.max_file_size": {"type": int},
    "audio.supported_formats": {"type": list},
    "analysis.bpm.weights": {"type": dict},
    "analysis.bpm.min_bpm": {"type": (int, float)},
    "analysis.bpm.max_bpm": {"type": (int, float)},
    "analysis.bpm.default_bpm": {"type": (int, float)},
    "analysis.bpm.peak_picking": {"type": dict},
    "analysis.danceability.weights": {"type": dict},
    "performance.max_workers": {"type": int},
    "performance.max_files": {"type": int},
    "performance.timeout": {"type": (int, float)},
}


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of *base* with *overrides* merged in recursively."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file layered over the defaults.

    Args:
        config_path: Optional path to config file.
                    If None, tries "config/config.yaml" and "config.yaml"

    Returns:
        Dict[str, Any]: Configuration dictionary

    Raises:
        ConfigurationError: If the file is invalid or fails validation
    """
    load_dotenv(Path.cwd() / ".env")

    if config_path is None:
        default_paths = [
            Path("config/config.yaml"),
            Path("config.yaml"),
            Path(__file__).parent.parent.parent / "config" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break

    manager = ConfigManager(get_default_config())
    if config_path:
        manager.merge(ConfigManager.from_file(Path(config_path)).to_dict())

    manager.validate(CONFIG_SCHEMA)
    return manager.to_dict()


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "audio": {
            "supported_formats": [".wav", ".aif", ".aiff", ".mp3", ".flac", ".ogg"],
            "max_file_size": 52428800,  # 50MB
            "target_sample_rate": 11025,
        },
        "analysis": {
            "bpm": {
                "weights": {
                    "autocorr": 0.4,
                    "spectral": 0.3,
                    "onset": 0.2,
                    "histogram": 0.1,
                },
                "min_bpm": 60.0,
                "max_bpm": 200.0,
                "default_bpm": 120.0,
                "peak_picking": {
                    "autocorr": "adaptive",
                    "spectral": "adaptive",
                    "onset": "adaptive",
                    "histogram": "adaptive",
                },
            },
            "danceability": {
                "weights": {
                    "rhythm_strength": 0.25,
                    "beat_consistency": 0.25,
                    "energy_distribution": 0.20,
                    "tempo_stability": 0.15,
                    "syncopation": 0.10,
                    "groove_factor": 0.05,
                },
            },
        },
        "logging": {
            "level": "INFO",
            "format": "text",
            "file": None,
        },
        "performance": {
            "max_workers": 4,
            "max_files": 10,
            "timeout": 30.0,
        },
    }
