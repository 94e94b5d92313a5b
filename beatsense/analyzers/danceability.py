"""
Danceability analyzer for BeatSense.

Six sub-metrics in [0, 1] are computed by independent functions and
reduced to a 0-100 score by combine_danceability.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from beatsense.core.analyzer_base import BaseAnalyzer
from beatsense.core.features import (
    SHORT_FRAME_SECONDS,
    clamp,
    low_band_energy,
    mean_square,
    rms,
    safe_ratio,
    short_frames,
)
from beatsense.core.framing import frames_for
from beatsense.core.models import DanceabilityAnalysis, DanceTag, SampleBuffer
from beatsense.core.spectral import magnitude_spectra
from beatsense.utils.errors import ConfigurationError, NumericGuardError

DEFAULT_WEIGHTS = {
    "rhythm_strength": 0.25,
    "beat_consistency": 0.25,
    "energy_distribution": 0.20,
    "tempo_stability": 0.15,
    "syncopation": 0.10,
    "groove_factor": 0.05,
}

ONSET_RATIO = 1.5
SYNCOPATION_STEP = 0.1
TAG_THRESHOLD = 0.7

# (lower bound on the unscaled score, tag)
CATEGORY_TAGS = [
    (0.8, DanceTag("🕺 Very Danceable", "🕺", "High energy, strong rhythm")),
    (0.6, DanceTag("💃 Danceable", "💃", "Good rhythm and energy")),
    (0.4, DanceTag("🕴️ Moderately Danceable", "🕴️", "Some dance elements")),
    (0.2, DanceTag("🚶 Slightly Danceable", "🚶", "Limited dance potential")),
]
NOT_DANCEABLE = DanceTag("🧍 Not Danceable", "🧍", "Low dance energy")
STRONG_RHYTHM = DanceTag("🥁 Strong Rhythm", "🥁", "Clear rhythmic patterns")
CONSISTENT_BEAT = DanceTag("⏰ Consistent Beat", "⏰", "Steady tempo")


@dataclass(frozen=True)
class DanceabilityMetrics:
    """The six danceability sub-metrics, each in [0, 1]."""

    rhythm_strength: float
    beat_consistency: float
    energy_distribution: float
    tempo_stability: float
    syncopation: float
    groove_factor: float


def danceability_category(score: float) -> str:
    """Category label for an unscaled [0, 1] score."""
    if score > 0.8:
        return "Very Danceable"
    if score > 0.6:
        return "Danceable"
    if score > 0.4:
        return "Moderately Danceable"
    if score > 0.2:
        return "Slightly Danceable"
    return "Not Danceable"


def rhythm_strength(samples: np.ndarray, sample_rate: int) -> float:
    """
    Mean of two clamped terms over 25 ms frames: the normalized variance
    (var / mean^2) of frame RMS, and the mean low-band spectral magnitude.
    """
    frames = short_frames(samples, sample_rate)
    if frames.shape[0] == 0:
        return 0.0

    energies = rms(frames)
    mean = float(np.mean(energies))
    variation = clamp(safe_ratio(float(np.var(energies)), mean * mean))

    window = np.hamming(frames.shape[1])
    low_band = clamp(float(np.mean(low_band_energy(magnitude_spectra(frames * window)))))

    return (variation + low_band) / 2


def beat_consistency(zcr: float, centroid: float, rolloff: float) -> float:
    """0.4*(1 - zcr) + 0.3*centroid/5000 + 0.3*rolloff/8000, clamped."""
    return clamp(0.4 * (1 - zcr) + 0.3 * (centroid / 5000) + 0.3 * (rolloff / 8000))


def syncopation(samples: np.ndarray, sample_rate: int) -> float:
    """
    Share of 25 ms frames whose energy jumps above 1.5x the previous frame.

    Each jump adds 0.1 before normalizing by the number of frame pairs.
    """
    energies = mean_square(short_frames(samples, sample_rate))
    pairs = len(energies) - 1
    if pairs <= 0:
        return 0.0

    jumps = np.count_nonzero(energies[1:] > ONSET_RATIO * energies[:-1])
    return clamp(SYNCOPATION_STEP * jumps / pairs)


def groove_factor(samples: np.ndarray, sample_rate: int) -> float:
    """Mean over 25 ms frames of min(1, 10 * mean-square energy)."""
    energies = mean_square(short_frames(samples, sample_rate))
    if len(energies) == 0:
        return 0.0
    return clamp(float(np.mean(np.minimum(1.0, energies * 10))))


def combine_danceability(
    metrics: DanceabilityMetrics,
    weights: Optional[Dict[str, float]] = None
) -> DanceabilityAnalysis:
    """
    Weighted sum of the sub-metrics, scaled to [0, 100].

    The category comes from the unscaled score; "Strong Rhythm" and
    "Consistent Beat" tags are added when those sub-metrics exceed 0.7.
    """
    weights = weights or DEFAULT_WEIGHTS
    values = asdict(metrics)

    raw = sum(weights.get(name, 0.0) * value for name, value in values.items())
    if not np.isfinite(raw):
        raise NumericGuardError(
            "Danceability score is not finite",
            analyzer_name="danceability",
            field_name="score"
        )

    types: List[DanceTag] = [_category_tag(raw)]
    if metrics.rhythm_strength > TAG_THRESHOLD:
        types.append(STRONG_RHYTHM)
    if metrics.beat_consistency > TAG_THRESHOLD:
        types.append(CONSISTENT_BEAT)

    confidence = (
        metrics.rhythm_strength
        + metrics.beat_consistency
        + metrics.energy_distribution
        + metrics.tempo_stability
    ) / 4

    return DanceabilityAnalysis(
        score=clamp(raw * 100, 0.0, 100.0),
        rhythm_strength=metrics.rhythm_strength,
        beat_consistency=metrics.beat_consistency,
        energy_distribution=metrics.energy_distribution,
        tempo_stability=metrics.tempo_stability,
        syncopation=metrics.syncopation,
        groove_factor=metrics.groove_factor,
        category=danceability_category(raw),
        types=types,
        confidence=clamp(confidence)
    )


def _category_tag(score: float) -> DanceTag:
    for lower, tag in CATEGORY_TAGS:
        if score > lower:
            return tag
    return NOT_DANCEABLE


class DanceabilityAnalyzer(BaseAnalyzer[DanceabilityAnalysis]):
    """
    Danceability from rhythm, spectral balance and energy dynamics.

    Spectral inputs come from the buffer's shared feature cache.
    """

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        super().__init__("danceability", "1.0.0")

        self.weights = dict(weights or DEFAULT_WEIGHTS)
        for name, weight in self.weights.items():
            if name not in DEFAULT_WEIGHTS:
                raise ConfigurationError(
                    f"Unknown danceability metric in weights: {name}",
                    config_key=f"analysis.danceability.weights.{name}"
                )
            if weight < 0:
                raise ConfigurationError(
                    f"Weight for {name} must be non-negative, got {weight}",
                    config_key=f"analysis.danceability.weights.{name}"
                )

    def measure(self, buffer: SampleBuffer) -> DanceabilityMetrics:
        """Compute all six sub-metrics for *buffer*."""
        features = buffer.features
        samples, sr = buffer.samples, buffer.sample_rate

        return DanceabilityMetrics(
            rhythm_strength=rhythm_strength(samples, sr),
            beat_consistency=beat_consistency(
                features.zero_crossing_rate,
                features.spectral_centroid,
                features.spectral_rolloff
            ),
            energy_distribution=features.energy_distribution,
            tempo_stability=features.energy_stability,
            syncopation=syncopation(samples, sr),
            groove_factor=groove_factor(samples, sr),
        )

    def _analyze_impl(self, buffer: SampleBuffer) -> DanceabilityAnalysis:
        # One short frame is the minimum for any sub-metric.
        self.require_frames(buffer, frames_for(buffer.sample_rate, SHORT_FRAME_SECONDS))
        return combine_danceability(self.measure(buffer), self.weights)

    def default_result(self) -> DanceabilityAnalysis:
        """Zero score, "Not Danceable"."""
        return combine_danceability(
            DanceabilityMetrics(0.0, 0.0, 0.0, 0.0, 0.0, 0.0),
            self.weights
        )


def create_danceability_analyzer(config: Dict[str, Any]) -> DanceabilityAnalyzer:
    """Factory function to create a DanceabilityAnalyzer from configuration."""
    dance_config = config.get("analysis", {}).get("danceability", {})
    return DanceabilityAnalyzer(weights=dance_config.get("weights"))
