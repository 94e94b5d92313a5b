"""
Audio loader for BeatSense.

Validates audio files and decodes them into SampleBuffers at their native
sample rate. Only channel 0 of multi-channel audio is kept.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Set, Tuple

import librosa
import numpy as np
import soundfile as sf

from beatsense.core.models import SampleBuffer
from beatsense.utils.errors import (
    AudioLoadError,
    DecodeError,
    FileTooLargeError,
    UnsupportedFormatError,
)

# Constants
SUPPORTED_FORMATS: Set[str] = {'.wav', '.aif', '.aiff', '.mp3', '.flac', '.ogg'}
MAX_FILE_SIZE: int = 52428800  # 50 MB

logger = logging.getLogger("loader")


class AudioLoader:
    """
    Loads audio files and creates SampleBuffer instances.

    Thread-safe and stateless - can be used concurrently.
    """

    def __init__(
        self,
        supported_formats: Optional[Iterable[str]] = None,
        max_file_size: int = MAX_FILE_SIZE
    ):
        """
        Initialize loader with configuration.

        Args:
            supported_formats: Accepted file suffixes (with leading dot)
            max_file_size: Maximum file size in bytes
        """
        self.supported_suffixes: Set[str] = {
            suffix.lower() for suffix in (supported_formats or SUPPORTED_FORMATS)
        }
        self.max_file_size = max_file_size

    def load(self, file_path: Path) -> SampleBuffer:
        """
        Load audio file and create a SampleBuffer.

        Args:
            file_path: Path to audio file

        Returns:
            SampleBuffer: Channel 0 at the file's native sample rate

        Raises:
            AudioLoadError: File doesn't exist
            UnsupportedFormatError: File format not supported
            FileTooLargeError: File exceeds size limit
            DecodeError: Audio could not be decoded or is invalid
        """
        file_path = Path(file_path)

        # Step 1: Validate file
        self._validate_file(file_path)

        # Step 2: Decode at native rate
        audio_data, sample_rate = self._decode(file_path)

        # Step 3: Validate samples
        audio_data = self._validate_audio_data(audio_data, file_path)

        buffer = SampleBuffer.from_channels(audio_data, sample_rate)
        logger.info(
            f"Loaded {file_path.name}: {buffer.duration:.2f}s at {sample_rate} Hz",
            extra={"file": str(file_path)}
        )
        return buffer

    def get_info(self, file_path: Path) -> Dict[str, Any]:
        """
        Read container metadata without decoding the audio.

        Returns an empty dict for formats soundfile cannot inspect.
        """
        file_path = Path(file_path)
        try:
            info = sf.info(str(file_path))
        except (RuntimeError, OSError) as e:
            logger.warning(f"Could not read metadata with soundfile: {e}")
            return {}

        return {
            'sample_rate': info.samplerate,
            'channels': info.channels,
            'duration': info.duration,
            'subtype': info.subtype,
            'format': file_path.suffix.lstrip('.').upper(),
        }

    def _validate_file(self, file_path: Path) -> None:
        """Validate file exists, has supported format, and is within size limit."""
        if not file_path.is_file():
            raise AudioLoadError(
                f"Audio file not found: {file_path}",
                file_path=str(file_path)
            )

        suffix = file_path.suffix.lower()
        if suffix not in self.supported_suffixes:
            raise UnsupportedFormatError(
                f"Format {suffix or '(none)'} not supported. "
                f"Supported formats: {', '.join(sorted(self.supported_suffixes))}",
                format=suffix
            )

        file_size = file_path.stat().st_size
        if file_size > self.max_file_size:
            raise FileTooLargeError(
                f"File too large: {file_size / 1024 / 1024:.1f} MB. "
                f"Maximum: {self.max_file_size / 1024 / 1024:.1f} MB",
                file_size=file_size,
                max_size=self.max_file_size
            )

    def _decode(self, file_path: Path) -> Tuple[np.ndarray, int]:
        """Decode every channel at the native sample rate."""
        try:
            audio_data, sample_rate = librosa.load(
                str(file_path),
                sr=None,
                mono=False,
                dtype=np.float32
            )
        except Exception as e:
            raise DecodeError(
                f"Failed to decode audio from {file_path.name}: {e}",
                file_path=str(file_path),
                original_error=e
            ) from e

        return audio_data, int(sample_rate)

    def _validate_audio_data(
        self, audio_data: np.ndarray, file_path: Path
    ) -> np.ndarray:
        """Reject empty or non-finite audio; rescale clipped audio into [-1, 1]."""
        if audio_data.size == 0:
            raise DecodeError(
                f"Audio file is empty: {file_path.name}",
                file_path=str(file_path)
            )

        if not np.all(np.isfinite(audio_data)):
            raise DecodeError(
                f"Audio contains non-finite samples: {file_path.name}",
                file_path=str(file_path)
            )

        max_abs = float(np.max(np.abs(audio_data)))
        if max_abs == 0:
            logger.warning(f"Audio appears to be silent: {file_path}")
        elif max_abs > 1.0:
            logger.warning(
                f"Audio contains clipping (max: {max_abs:.2f}), normalizing: {file_path}"
            )
            audio_data = audio_data / max_abs

        return audio_data


def create_audio_loader(config: Optional[Dict[str, Any]] = None) -> AudioLoader:
    """
    Factory function to create AudioLoader with configuration.

    Args:
        config: Optional ``audio`` configuration section

    Returns:
        AudioLoader: Configured loader instance
    """
    if config is None:
        config = {}

    return AudioLoader(
        supported_formats=config.get('supported_formats', SUPPORTED_FORMATS),
        max_file_size=config.get('max_file_size', MAX_FILE_SIZE)
    )
