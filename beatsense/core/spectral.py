"""
Spectral transforms: magnitude spectra, autocorrelation and spectral flux.

Magnitudes are computed with the FFT; ``dft_magnitudes`` keeps the direct
summation for reference and agrees bin-for-bin within float tolerance.
"""

import numpy as np


def n_bins(frame_size: int) -> int:
    """Number of magnitude bins kept for a frame of *frame_size* samples."""
    return (frame_size + 1) // 2


def bin_frequencies(frame_size: int, sample_rate: int) -> np.ndarray:
    """Frequency in Hz of each kept bin (k * sample_rate / N)."""
    return np.arange(n_bins(frame_size)) * sample_rate / frame_size


def dft_magnitudes(frame: np.ndarray) -> np.ndarray:
    """Magnitude spectrum by direct O(N^2) summation."""
    frame = np.asarray(frame, dtype=np.float64)
    n = len(frame)
    k = np.arange(n_bins(n))[:, None]
    angles = -2.0 * np.pi * k * np.arange(n)[None, :] / n

    real = (frame * np.cos(angles)).sum(axis=1)
    imag = (frame * np.sin(angles)).sum(axis=1)
    return np.sqrt(real ** 2 + imag ** 2)


def magnitude_spectrum(frame: np.ndarray) -> np.ndarray:
    """Magnitude spectrum of one frame (first ceil(N/2) bins)."""
    frame = np.asarray(frame, dtype=np.float64)
    return np.abs(np.fft.rfft(frame))[:n_bins(len(frame))]


def magnitude_spectra(frames: np.ndarray) -> np.ndarray:
    """Magnitude spectra for a (n_frames, N) array, one row per frame."""
    frames = np.asarray(frames, dtype=np.float64)
    if frames.size == 0:
        return np.empty((0, n_bins(frames.shape[1])))
    return np.abs(np.fft.rfft(frames, axis=1))[:, :n_bins(frames.shape[1])]


def autocorrelation(frame: np.ndarray) -> np.ndarray:
    """
    Linear autocorrelation sum(x[i] * x[i + lag]) for lags 0..N-1.

    Works along the last axis, so a (n_frames, N) array yields one curve
    per frame. Zero-padding to 2N keeps the FFT product free of circular
    wrap-around.
    """
    frame = np.asarray(frame, dtype=np.float64)
    n = frame.shape[-1]
    if frame.size == 0:
        return np.zeros(frame.shape)

    spectrum = np.fft.rfft(frame, 2 * n, axis=-1)
    power = (spectrum * np.conj(spectrum)).real
    return np.fft.irfft(power, 2 * n, axis=-1)[..., :n]


def spectral_flux(spectra: np.ndarray) -> np.ndarray:
    """Positive spectral change between consecutive rows of *spectra*."""
    spectra = np.asarray(spectra, dtype=np.float64)
    if spectra.shape[0] < 2:
        return np.empty(0)
    return np.maximum(np.diff(spectra, axis=0), 0.0).sum(axis=1)
