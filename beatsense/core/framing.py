"""
Framing, windowing and downsampling of sample buffers.
"""

import math
from typing import Iterator, Optional

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from beatsense.core.models import SampleBuffer


def hamming_window(frame_size: int) -> np.ndarray:
    """Hamming coefficients 0.54 - 0.46*cos(2*pi*i/(N-1))."""
    return np.hamming(frame_size)


def frames_for(sample_rate: int, seconds: float) -> int:
    """Number of samples in *seconds* at *sample_rate* (at least 1)."""
    return max(1, int(sample_rate * seconds))


class FrameSequence:
    """
    Lazy sequence of fixed-size frames over a sample array.

    Frames start at offsets 0, H, 2H, ... while offset + N <= len(samples).
    Iterating twice yields the same frames. With ``window=True`` each frame
    is multiplied by a Hamming window.
    """

    def __init__(
        self,
        samples: np.ndarray,
        frame_size: int,
        hop_size: int,
        window: bool = False
    ):
        if frame_size <= 0:
            raise ValueError(f"Frame size must be positive, got {frame_size}")
        if not 0 < hop_size <= frame_size:
            raise ValueError(
                f"Hop size must be in (0, {frame_size}], got {hop_size}"
            )

        self._samples = np.asarray(samples, dtype=np.float64)
        self.frame_size = frame_size
        self.hop_size = hop_size
        self._window: Optional[np.ndarray] = (
            hamming_window(frame_size) if window else None
        )

    def __len__(self) -> int:
        n = len(self._samples)
        if n < self.frame_size:
            return 0
        return (n - self.frame_size) // self.hop_size + 1

    def __iter__(self) -> Iterator[np.ndarray]:
        for i in range(len(self)):
            offset = i * self.hop_size
            frame = self._samples[offset:offset + self.frame_size]
            if self._window is not None:
                frame = frame * self._window
            yield frame

    def to_array(self) -> np.ndarray:
        """All frames as a (n_frames, frame_size) array."""
        if len(self) == 0:
            return np.empty((0, self.frame_size))

        frames = sliding_window_view(self._samples, self.frame_size)[::self.hop_size]
        if self._window is not None:
            return frames * self._window
        return frames


def downsample(buffer: SampleBuffer, target_rate: int) -> SampleBuffer:
    """
    Decimate *buffer* to *target_rate* by nearest-index selection.

    Output sample i is input sample floor(i * source_rate / target_rate).
    Returns the buffer unchanged when the rates already match.
    """
    if target_rate <= 0:
        raise ValueError(f"Target rate must be positive, got {target_rate}")
    if buffer.sample_rate == target_rate:
        return buffer

    n = len(buffer.samples)
    ratio = buffer.sample_rate / target_rate
    n_out = int(math.ceil(n / ratio)) if n else 0

    indices = np.floor(np.arange(n_out) * ratio).astype(np.int64)
    indices = np.clip(indices, 0, max(n - 1, 0))

    return SampleBuffer(samples=buffer.samples[indices], sample_rate=target_rate)
