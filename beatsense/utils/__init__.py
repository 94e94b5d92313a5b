"""
Utility modules for configuration, logging, and error handling.
"""

from beatsense.utils.errors import (
    AudioAnalysisError,
    AudioLoadError,
    DecodeError,
    UnsupportedFormatError,
    FileTooLargeError,
    AnalysisError,
    DegenerateInputError,
    NumericGuardError,
    ConfigurationError,
    BatchLimitError,
    AnalysisTimeoutError,
)
from beatsense.utils.logging import get_logger, setup_logging, JSONFormatter
from beatsense.utils.config import ConfigManager, load_config, get_default_config

__all__ = [
    "AudioAnalysisError",
    "AudioLoadError",
    "DecodeError",
    "UnsupportedFormatError",
    "FileTooLargeError",
    "AnalysisError",
    "DegenerateInputError",
    "NumericGuardError",
    "ConfigurationError",
    "BatchLimitError",
    "AnalysisTimeoutError",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "get_default_config",
]
