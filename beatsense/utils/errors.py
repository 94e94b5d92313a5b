"""
Custom exceptions for BeatSense.

This module defines a hierarchy of exceptions for handling the failure
modes of decoding, analysis and batch processing.
"""

from typing import Optional, Any


class AudioAnalysisError(Exception):
    """Base exception for all audio analysis errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class AudioLoadError(AudioAnalysisError):
    """Raised when an audio file cannot be turned into samples."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message, details={"file_path": file_path})
        self.file_path = file_path


class DecodeError(AudioLoadError):
    """Raised when the decoder fails to produce samples for a file."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, file_path=file_path)
        self.original_error = original_error
        self.details["original_error"] = (
            str(original_error) if original_error else None
        )


class UnsupportedFormatError(AudioLoadError):
    """Raised when audio format is not supported."""

    def __init__(self, message: str, format: Optional[str] = None):
        super().__init__(message)
        self.format = format
        self.details = {"format": format}


class FileTooLargeError(AudioLoadError):
    """Raised when audio file exceeds size limit."""

    def __init__(
        self,
        message: str,
        file_size: Optional[int] = None,
        max_size: Optional[int] = None,
    ):
        super().__init__(message)
        self.file_size = file_size
        self.max_size = max_size
        self.details = {"file_size": file_size, "max_size": max_size}


class AnalysisError(AudioAnalysisError):
    """Raised when audio analysis fails."""

    def __init__(
        self,
        message: str,
        analyzer_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.analyzer_name = analyzer_name
        self.original_error = original_error
        self.details = {
            "analyzer_name": analyzer_name,
            "original_error": str(original_error) if original_error else None,
        }


class DegenerateInputError(AnalysisError):
    """Raised when a buffer cannot form a single frame or carries no energy."""

    def __init__(
        self,
        message: str,
        analyzer_name: Optional[str] = None,
        n_samples: Optional[int] = None,
        required: Optional[int] = None,
    ):
        super().__init__(message, analyzer_name=analyzer_name)
        self.n_samples = n_samples
        self.required = required
        self.details["n_samples"] = n_samples
        self.details["required"] = required


class NumericGuardError(AnalysisError):
    """Raised when a non-finite value would reach an analysis result."""

    def __init__(
        self,
        message: str,
        analyzer_name: Optional[str] = None,
        field_name: Optional[str] = None,
    ):
        super().__init__(message, analyzer_name=analyzer_name)
        self.field_name = field_name
        self.details["field_name"] = field_name


class ConfigurationError(AudioAnalysisError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}


class BatchLimitError(AudioAnalysisError):
    """Raised when a batch holds more files than allowed."""

    def __init__(self, file_count: int, max_files: int):
        super().__init__(
            f"Too many files in batch: {file_count} (maximum {max_files})",
            details={"file_count": file_count, "max_files": max_files},
        )
        self.file_count = file_count
        self.max_files = max_files


class AnalysisTimeoutError(AudioAnalysisError):
    """Raised when a file's analysis exceeds its wall-clock budget."""

    def __init__(self, file_path: str, timeout: float):
        super().__init__(
            f"Analysis timed out after {timeout:.1f}s",
            details={"file_path": file_path, "timeout": timeout},
        )
        self.file_path = file_path
        self.timeout = timeout
