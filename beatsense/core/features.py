"""
Feature extractors for BeatSense.

Time-domain energy and zero-crossing statistics run on raw frames; every
spectral feature runs on Hamming-windowed frames.
"""

from typing import TYPE_CHECKING, Sequence

import numpy as np

from beatsense.core.framing import FrameSequence, frames_for
from beatsense.core.models import FeatureCache, SignalStats
from beatsense.core.spectral import bin_frequencies, magnitude_spectra

if TYPE_CHECKING:
    from beatsense.core.models import SampleBuffer

SPECTRAL_FRAME_SIZE = 1024
ROLLOFF_FRACTION = 0.85
SHORT_FRAME_SECONDS = 0.025
STABILITY_FRAME_SECONDS = 0.1


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    """numerator / denominator, or *default* when the result is undefined."""
    if denominator == 0:
        return default
    value = numerator / denominator
    if not np.isfinite(value):
        return default
    return float(value)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp *value* into [low, high]."""
    return float(min(high, max(low, value)))


# Per-frame energy

def sum_of_squares(frames: np.ndarray) -> np.ndarray:
    """Unnormalized energy of each frame (last axis)."""
    frames = np.asarray(frames, dtype=np.float64)
    return np.sum(frames * frames, axis=-1)


def mean_square(frames: np.ndarray) -> np.ndarray:
    """Mean squared amplitude of each frame."""
    frames = np.asarray(frames, dtype=np.float64)
    if frames.shape[-1] == 0:
        return np.zeros(frames.shape[:-1])
    return sum_of_squares(frames) / frames.shape[-1]


def rms(frames: np.ndarray) -> np.ndarray:
    """Root-mean-square amplitude of each frame."""
    return np.sqrt(mean_square(frames))


def short_frames(samples: np.ndarray, sample_rate: int) -> np.ndarray:
    """Non-overlapping 25 ms frames."""
    size = frames_for(sample_rate, SHORT_FRAME_SECONDS)
    return FrameSequence(samples, size, size).to_array()


# Scalar features

def zero_crossing_rate(samples: np.ndarray, target_comparisons: int = 5000) -> float:
    """
    Fraction of sign changes between strided sample points.

    The stride keeps the number of comparisons near *target_comparisons*
    regardless of buffer length.
    """
    samples = np.asarray(samples, dtype=np.float64)
    stride = max(1, len(samples) // target_comparisons)
    points = samples[::stride]
    if len(points) < 2:
        return 0.0

    non_negative = points >= 0
    crossings = np.count_nonzero(non_negative[1:] != non_negative[:-1])
    return crossings / (len(points) - 1)


def _spectral_frames(samples: np.ndarray, frame_size: int) -> np.ndarray:
    frames = FrameSequence(samples, frame_size, frame_size, window=True).to_array()
    return magnitude_spectra(frames)


def spectral_centroid(
    samples: np.ndarray,
    sample_rate: int,
    frame_size: int = SPECTRAL_FRAME_SIZE
) -> float:
    """Magnitude-weighted mean frequency, averaged over non-silent frames."""
    spectra = _spectral_frames(samples, frame_size)
    if spectra.shape[0] == 0:
        return 0.0

    totals = spectra.sum(axis=1)
    voiced = totals > 0
    if not np.any(voiced):
        return 0.0

    freqs = bin_frequencies(frame_size, sample_rate)
    centroids = (spectra[voiced] @ freqs) / totals[voiced]
    return float(np.mean(centroids))


def spectral_rolloff(
    samples: np.ndarray,
    sample_rate: int,
    frame_size: int = SPECTRAL_FRAME_SIZE,
    fraction: float = ROLLOFF_FRACTION
) -> float:
    """
    Percentile-rank rolloff, averaged over non-silent frames.

    Each frame's magnitudes are ranked ascending and the rank at
    ``fraction`` of the bin count is read back as a bin frequency. The rank
    does not depend on the magnitudes, so every non-silent frame contributes
    the same frequency: ``int(n_bins * fraction) * sample_rate / frame_size``.
    """
    spectra = _spectral_frames(samples, frame_size)
    if spectra.shape[0] == 0:
        return 0.0

    voiced = spectra.sum(axis=1) > 0
    if not np.any(voiced):
        return 0.0

    bins = spectra.shape[1]
    rank = min(int(bins * fraction), bins - 1)

    freqs = bin_frequencies(frame_size, sample_rate)
    return float(freqs[rank])


def band_energies(spectra: np.ndarray) -> np.ndarray:
    """
    Mean magnitude of the low, mid and high thirds of each spectrum.

    Returns an (n_frames, 3) array; an empty band contributes 0.
    """
    spectra = np.asarray(spectra, dtype=np.float64)
    n = spectra.shape[1] if spectra.ndim == 2 else 0
    bounds = [0, n // 3, (2 * n) // 3, n]

    columns = []
    for start, stop in zip(bounds[:-1], bounds[1:]):
        if stop > start:
            columns.append(spectra[:, start:stop].mean(axis=1))
        else:
            columns.append(np.zeros(spectra.shape[0]))
    return np.stack(columns, axis=1) if spectra.shape[0] else np.empty((0, 3))


def low_band_energy(spectra: np.ndarray, fraction: float = 0.1) -> np.ndarray:
    """Mean magnitude of the lowest *fraction* of bins, per spectrum."""
    spectra = np.asarray(spectra, dtype=np.float64)
    if spectra.shape[0] == 0:
        return np.empty(0)

    width = int(spectra.shape[1] * fraction)
    if width == 0:
        return np.zeros(spectra.shape[0])
    return spectra[:, :width].mean(axis=1)


def energy_distribution(samples: np.ndarray, sample_rate: int) -> float:
    """Low/high band balance over 25 ms frames: 1 - |low - high| / total."""
    frames = short_frames(samples, sample_rate)
    if frames.shape[0] == 0:
        return 0.0

    window = np.hamming(frames.shape[1])
    bands = band_energies(magnitude_spectra(frames * window))
    low, _, high = bands.sum(axis=0)
    total = bands.sum()

    return clamp(1.0 - safe_ratio(abs(low - high), total, default=1.0))


def energy_stability(
    samples: np.ndarray,
    sample_rate: int,
    frame_seconds: float = STABILITY_FRAME_SECONDS
) -> float:
    """
    Steadiness of per-frame mean-square energy: max(0, 1 - var / mean^2).

    Serves as the tempo stability and tempo influence proxy.
    """
    size = frames_for(sample_rate, frame_seconds)
    energies = mean_square(FrameSequence(samples, size, size).to_array())
    if len(energies) == 0:
        return 0.0

    mean = float(np.mean(energies))
    if mean == 0:
        return 0.0
    return clamp(1.0 - float(np.var(energies)) / (mean * mean))


# Smoothing and statistics

def median_filter(data: Sequence[float], window: int = 5) -> np.ndarray:
    """
    Running median whose window shrinks at the edges.

    Each output takes element ``len(w) // 2`` of the sorted window ``w``,
    so even-sized edge windows pick the upper median.
    """
    data = np.asarray(data, dtype=np.float64)
    half = window // 2
    filtered = np.empty_like(data)

    for i in range(len(data)):
        w = np.sort(data[max(0, i - half):i + half + 1])
        filtered[i] = w[len(w) // 2]

    return filtered


def basic_stats(samples: np.ndarray) -> SignalStats:
    """Mean, RMS, dynamic range, peak and valley of *samples*."""
    samples = np.asarray(samples, dtype=np.float64)
    if len(samples) == 0:
        return SignalStats(mean=0.0, rms=0.0, dynamic_range=0.0, peak=0.0, valley=0.0)

    peak = float(np.max(samples))
    valley = float(np.min(samples))
    return SignalStats(
        mean=float(np.mean(samples)),
        rms=float(np.sqrt(np.mean(samples * samples))),
        dynamic_range=peak - valley,
        peak=peak,
        valley=valley
    )


class FeatureExtractor:
    """
    Stateless extraction of the features shared between analyzers.

    All methods are static - no instance state needed.
    """

    @staticmethod
    def extract(buffer: "SampleBuffer") -> FeatureCache:
        """
        Extract shared features from a sample buffer.

        Args:
            buffer: SampleBuffer to extract features from

        Returns:
            FeatureCache: All extracted features
        """
        samples = buffer.samples
        sr = buffer.sample_rate

        return FeatureCache(
            zero_crossing_rate=zero_crossing_rate(samples),
            spectral_centroid=spectral_centroid(samples, sr),
            spectral_rolloff=spectral_rolloff(samples, sr),
            energy_distribution=energy_distribution(samples, sr),
            energy_stability=energy_stability(samples, sr),
        )
