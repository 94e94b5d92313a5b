"""Shared fixtures: synthetic signals at the 11025 Hz working rate."""

import numpy as np
import pytest

from beatsense.core.models import SampleBuffer

SR = 11025


# ---------------------------------------------------------------------------
# Signal builders
# ---------------------------------------------------------------------------


def make_sine(freq: float, seconds: float, sr: int = SR, amplitude: float = 1.0) -> np.ndarray:
    """Pure sine tone."""
    t = np.arange(int(seconds * sr)) / sr
    return amplitude * np.sin(2 * np.pi * freq * t)


def make_pulse_train(n_pulses: int = 20) -> np.ndarray:
    """
    Impulse clusters every 5500 samples (~0.499 s, 120 BPM) at 11025 Hz.

    Each cluster is shaped so the 25 ms / 10 ms energy envelope, after a
    5-point median filter, has exactly one strict peak per pulse.
    """
    # (offset from pulse start, energy)
    impulses = [(300, 0.3), (410, 0.3), (740, 0.3), (850, 0.2), (570, 0.1), (790, 0.1)]
    period = 5500
    first = 1100

    samples = np.zeros(first + n_pulses * period)
    for k in range(n_pulses):
        base = first + k * period
        for offset, energy in impulses:
            samples[base + offset] = np.sqrt(energy)
    return samples


def alternating(amplitudes: np.ndarray) -> np.ndarray:
    """Sign-alternating samples with the given per-sample amplitude."""
    signs = np.where(np.arange(len(amplitudes)) % 2 == 0, 1.0, -1.0)
    return amplitudes * signs


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sr():
    """Working sample rate."""
    return SR


@pytest.fixture
def silence_buffer():
    """Five seconds of digital silence."""
    return SampleBuffer(samples=np.zeros(5 * SR), sample_rate=SR)


@pytest.fixture
def pulse_samples():
    """Energy pulses every ~0.5 s."""
    return make_pulse_train()


@pytest.fixture
def pulse_buffer(pulse_samples):
    """SampleBuffer of the 120 BPM pulse train."""
    return SampleBuffer(samples=pulse_samples, sample_rate=SR)


@pytest.fixture
def bright_buffer():
    """30 s of equal-level 200 Hz and 4 kHz tones: bright and band-balanced."""
    samples = 0.5 * (make_sine(200, 30) + make_sine(4000, 30))
    return SampleBuffer(samples=samples, sample_rate=SR)


@pytest.fixture
def noise_samples():
    """Five seconds of seeded white noise."""
    rng = np.random.default_rng(1234)
    return rng.uniform(-0.5, 0.5, 5 * SR)


@pytest.fixture
def sine():
    """Factory for pure tones: sine(freq, seconds, sr=SR, amplitude=1.0)."""
    return make_sine


@pytest.fixture
def flip():
    """Factory for sign-alternating signals with a given amplitude envelope."""
    return alternating
