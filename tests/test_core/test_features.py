"""Tests for shared feature extraction."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from beatsense.core.features import (
    FeatureExtractor,
    basic_stats,
    band_energies,
    clamp,
    energy_distribution,
    energy_stability,
    low_band_energy,
    median_filter,
    rms,
    safe_ratio,
    short_frames,
    spectral_centroid,
    spectral_rolloff,
    zero_crossing_rate,
)
from beatsense.core.framing import downsample, frames_for
from beatsense.core.models import FeatureCache, SampleBuffer


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestSafeRatio:
    """Division with a fallback."""

    def test_normal_division(self):
        assert safe_ratio(1.0, 4.0) == 0.25

    def test_zero_denominator_uses_default(self):
        assert safe_ratio(1.0, 0.0) == 0.0
        assert safe_ratio(1.0, 0.0, default=1.0) == 1.0

    def test_non_finite_uses_default(self):
        assert safe_ratio(np.inf, 1.0, default=0.5) == 0.5

    def test_clamp(self):
        assert clamp(1.5) == 1.0
        assert clamp(-0.2) == 0.0
        assert clamp(0.3) == 0.3


class TestEnergy:
    """Frame energies."""

    def test_rms_per_frame(self):
        frames = np.array([[1.0, -1.0], [0.0, 0.0]])

        np.testing.assert_allclose(rms(frames), [1.0, 0.0])

    def test_short_frames_are_25ms(self, sr):
        frames = short_frames(np.zeros(sr), sr)

        assert frames.shape == (sr // 275, 275)


# ---------------------------------------------------------------------------
# Scalar features
# ---------------------------------------------------------------------------


class TestZeroCrossingRate:
    """Strided sign-change rate."""

    def test_alternating_signal_crosses_every_step(self, flip):
        assert zero_crossing_rate(flip(np.ones(1000))) == 1.0

    def test_constant_signal_never_crosses(self):
        assert zero_crossing_rate(np.full(1000, 0.5)) == 0.0

    def test_sine_rate(self, sine, sr):
        # 11025 samples -> stride 2, 5512 comparisons, 880 crossings
        assert zero_crossing_rate(sine(440, 1.0)) == pytest.approx(880 / 5512, rel=0.05)

    def test_too_short(self):
        assert zero_crossing_rate(np.array([1.0])) == 0.0

    def test_stable_after_downsampling(self, sine):
        buffer = SampleBuffer(samples=sine(440, 2.0, sr=44100), sample_rate=44100)

        rates = [zero_crossing_rate(downsample(buffer, 11025).samples) for _ in range(3)]

        assert rates[0] == rates[1] == rates[2]
        # 22050 samples -> stride 4, 5512 comparisons, 1760 crossings
        assert rates[0] == pytest.approx(1760 / 5512, rel=0.05)


class TestSpectralShape:
    """Centroid and rolloff."""

    def test_centroid_of_sine(self, sine, sr):
        assert spectral_centroid(sine(1000, 1.0), sr) == pytest.approx(1000, rel=0.1)

    def test_rolloff_is_percentile_rank_frequency(self, sine, sr):
        # 512 bins per 1024-sample frame, rank int(512 * 0.85) = 435
        assert spectral_rolloff(sine(1000, 1.0), sr) == pytest.approx(435 * sr / 1024)

    def test_rolloff_independent_of_content(self, sine, noise_samples, sr):
        assert spectral_rolloff(sine(1500, 5.0), sr) == spectral_rolloff(noise_samples, sr)

    def test_brighter_signal_has_higher_centroid(self, sine, sr):
        assert spectral_centroid(sine(3000, 1.0), sr) > spectral_centroid(sine(500, 1.0), sr)

    def test_silence_is_zero(self, sr):
        assert spectral_centroid(np.zeros(sr), sr) == 0.0
        assert spectral_rolloff(np.zeros(sr), sr) == 0.0

    def test_shorter_than_one_frame(self, sr):
        assert spectral_centroid(np.ones(100), sr) == 0.0


class TestBands:
    """Band energies and balance."""

    def test_band_thirds(self):
        spectra = np.array([[3.0, 3.0, 0.0, 0.0, 6.0, 6.0]])

        np.testing.assert_allclose(band_energies(spectra), [[3.0, 0.0, 6.0]])

    def test_low_band_energy(self):
        spectra = np.array([np.arange(20, dtype=float)])

        np.testing.assert_allclose(low_band_energy(spectra, 0.1), [0.5])

    def test_low_tone_is_unbalanced(self, sine, sr):
        assert energy_distribution(sine(200, 1.0), sr) < 0.4

    def test_low_plus_high_is_balanced(self, bright_buffer, sr):
        assert energy_distribution(bright_buffer.samples[:sr], sr) > 0.8

    def test_silence(self, sr):
        assert energy_distribution(np.zeros(sr), sr) == 0.0


class TestEnergyStability:
    """Variance of 100 ms energies."""

    def test_steady_level_is_stable(self, flip):
        assert energy_stability(flip(np.full(22050, 0.5)), 11025) == pytest.approx(1.0)

    def test_alternating_levels_are_unstable(self, flip, sr):
        block = frames_for(sr, 0.1)
        envelope = np.repeat(np.tile([1.0, 0.1], 10), block)

        assert energy_stability(flip(envelope), sr) < 0.1

    def test_silence(self, sr):
        assert energy_stability(np.zeros(sr), sr) == 0.0

    def test_shorter_than_one_frame(self, sr):
        assert energy_stability(np.ones(10), sr) == 0.0


# ---------------------------------------------------------------------------
# Smoothing and statistics
# ---------------------------------------------------------------------------


class TestMedianFilter:
    """Running median with shrinking edges."""

    def test_window_five(self):
        result = median_filter([1, 5, 2, 8, 3], window=5)

        assert result.tolist() == [2, 5, 3, 5, 3]

    def test_removes_isolated_spike(self):
        result = median_filter([0, 0, 0, 9, 0, 0, 0])

        assert result.max() == 0

    def test_empty(self):
        assert len(median_filter([])) == 0


def test_basic_stats():
    stats = basic_stats(np.array([0.5, -0.5, 1.0, -1.0]))

    assert stats.mean == pytest.approx(0.0)
    assert stats.rms == pytest.approx(np.sqrt(0.625))
    assert stats.peak == 1.0
    assert stats.valley == -1.0
    assert stats.dynamic_range == 2.0


def test_basic_stats_empty():
    assert basic_stats(np.array([])).rms == 0.0


# ---------------------------------------------------------------------------
# Shared feature cache
# ---------------------------------------------------------------------------


class TestFeatureCache:
    """Lazy, once-per-buffer extraction."""

    def test_extract_returns_finite_values(self, pulse_buffer):
        features = FeatureExtractor.extract(pulse_buffer)

        assert isinstance(features, FeatureCache)
        assert all(np.isfinite(v) for v in features.to_dict().values())

    def test_features_computed_once(self, pulse_buffer):
        assert pulse_buffer._features is None

        first = pulse_buffer.features

        assert pulse_buffer.features is first

    def test_concurrent_access_shares_one_cache(self, sine, sr):
        buffer = SampleBuffer(samples=sine(440, 2.0), sample_rate=sr)

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: buffer.features, range(8)))

        assert all(r is results[0] for r in results)

    def test_to_dict_keys(self, silence_buffer):
        assert set(silence_buffer.features.to_dict()) == {
            "zeroCrossingRate",
            "spectralCentroid",
            "spectralRolloff",
            "energyDistribution",
            "energyStability",
        }
