"""
Core data models for BeatSense.

Immutable domain models representing sample buffers and analysis results.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from beatsense.core.features import FeatureExtractor  # noqa: F401

# Thread lock for lazy-loaded features (shared across all SampleBuffer instances)
_features_lock = threading.Lock()


@dataclass(frozen=True)
class FeatureCache:
    """
    Spectral and energy features shared by the danceability and mood analyzers.

    Computed once per buffer and reused.
    """

    zero_crossing_rate: float
    spectral_centroid: float  # Hz
    spectral_rolloff: float  # Hz
    energy_distribution: float  # [0.0, 1.0], 1 = balanced low/high bands
    energy_stability: float  # [0.0, 1.0], the tempo stability proxy

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return {
            'zeroCrossingRate': self.zero_crossing_rate,
            'spectralCentroid': self.spectral_centroid,
            'spectralRolloff': self.spectral_rolloff,
            'energyDistribution': self.energy_distribution,
            'energyStability': self.energy_stability,
        }


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """
    Immutable mono sample buffer handed to the analysis pipeline.

    Samples are stored as a read-only 1-D float64 array. Spectral
    features are lazy-loaded on first access.
    """

    samples: np.ndarray
    sample_rate: int  # Hz

    # Lazy-loaded features
    _features: Optional[FeatureCache] = field(
        default=None, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        """Normalize samples to a read-only float64 vector."""
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")

        samples = np.array(self.samples, dtype=np.float64).reshape(-1)
        if not np.all(np.isfinite(samples)):
            raise ValueError("Samples must be finite (NaN or infinity found)")
        samples.setflags(write=False)
        object.__setattr__(self, 'samples', samples)

    @classmethod
    def from_channels(cls, data: np.ndarray, sample_rate: int) -> "SampleBuffer":
        """
        Build a buffer from decoder output.

        Multi-channel data shaped (channels, samples) keeps channel 0 only.
        """
        data = np.asarray(data)
        if data.ndim > 1:
            data = data[0]
        return cls(samples=data, sample_rate=int(sample_rate))

    @property
    def features(self) -> FeatureCache:
        """Lazy-load shared features (thread-safe)."""
        if self._features is None:
            with _features_lock:
                # Double-check after acquiring lock
                if self._features is None:
                    from beatsense.core.features import FeatureExtractor
                    features = FeatureExtractor.extract(self)
                    object.__setattr__(self, '_features', features)
        return self._features

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return len(self.samples) / self.sample_rate

    @property
    def is_silent(self) -> bool:
        """True when every sample is zero (or the buffer is empty)."""
        return not np.any(self.samples)

    def __len__(self) -> int:
        return len(self.samples)


@dataclass(frozen=True)
class MethodEstimate:
    """Tempo estimate produced by a single BPM method."""

    bpm: float
    confidence: float  # [0.0, 1.0]

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_finite(self.bpm, 'bpm')
        validate_confidence(self.confidence)

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return {'bpm': self.bpm, 'confidence': self.confidence}


@dataclass(frozen=True)
class BPMAnalysis:
    """Combined tempo estimate."""

    bpm: int
    confidence: float  # [0.0, 1.0]
    tempo_category: str
    methods: Dict[str, MethodEstimate]  # autocorr / onset / spectral / histogram

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_confidence(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'bpm': self.bpm,
            'confidence': self.confidence,
            'tempoCategory': self.tempo_category,
            'methods': {
                name: estimate.to_dict()
                for name, estimate in self.methods.items()
            }
        }


@dataclass(frozen=True)
class DanceTag:
    """Descriptive danceability label."""

    type: str
    emoji: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary."""
        return {
            'type': self.type,
            'emoji': self.emoji,
            'description': self.description
        }


@dataclass(frozen=True)
class DanceabilityAnalysis:
    """Danceability score with its sub-metrics."""

    score: float  # [0.0, 100.0]
    rhythm_strength: float
    beat_consistency: float
    energy_distribution: float
    tempo_stability: float
    syncopation: float
    groove_factor: float
    category: str
    types: List[DanceTag]
    confidence: float

    def __post_init__(self) -> None:
        """Validate fields."""
        if not (0 <= self.score <= 100):
            raise ValueError(f"Danceability score must be in [0, 100], got {self.score}")
        for name in (
            'rhythm_strength', 'beat_consistency', 'energy_distribution',
            'tempo_stability', 'syncopation', 'groove_factor', 'confidence'
        ):
            validate_confidence(getattr(self, name))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'score': self.score,
            'rhythmStrength': self.rhythm_strength,
            'beatConsistency': self.beat_consistency,
            'energyDistribution': self.energy_distribution,
            'tempoStability': self.tempo_stability,
            'syncopation': self.syncopation,
            'grooveFactor': self.groove_factor,
            'category': self.category,
            'type': [tag.to_dict() for tag in self.types],
            'confidence': self.confidence
        }


@dataclass(frozen=True)
class MoodTag:
    """One row of the mood breakdown."""

    label: str
    level: str  # High / Medium / Low
    description: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary."""
        return {
            'label': self.label,
            'level': self.level,
            'description': self.description
        }


@dataclass(frozen=True)
class MoodAnalysis:
    """Rule-based mood classification."""

    primary_mood: str
    secondary_mood: str
    song_type: str
    emoji: str
    confidence: float
    explanation: str
    detailed_analysis: List[MoodTag]

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_confidence(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'primaryMood': self.primary_mood,
            'secondaryMood': self.secondary_mood,
            'songType': self.song_type,
            'emoji': self.emoji,
            'confidence': self.confidence,
            'moodExplanation': self.explanation,
            'detailedAnalysis': [tag.to_dict() for tag in self.detailed_analysis]
        }


@dataclass(frozen=True)
class SignalStats:
    """Basic amplitude statistics of a buffer."""

    mean: float
    rms: float
    dynamic_range: float
    peak: float
    valley: float

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return {
            'mean': self.mean,
            'rms': self.rms,
            'dynamicRange': self.dynamic_range,
            'peak': self.peak,
            'valley': self.valley
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Complete analysis result for a sample buffer."""

    bpm: BPMAnalysis
    danceability: DanceabilityAnalysis
    mood: MoodAnalysis

    stats: Optional[SignalStats] = None
    sample_rate: int = 0  # rate the estimators ran at
    duration: float = 0.0  # seconds
    processing_time: float = 0.0  # seconds

    # Metadata
    analyzer_versions: Dict[str, str] = field(default_factory=dict)
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'bpm': self.bpm.to_dict(),
            'danceability': self.danceability.to_dict(),
            'mood': self.mood.to_dict(),
            'stats': self.stats.to_dict() if self.stats else None,
            'sampleRate': self.sample_rate,
            'duration': self.duration,
            'processingTime': self.processing_time,
            'analyzerVersions': self.analyzer_versions,
            'source': self.source
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, default=str)

    def get_summary(self) -> str:
        """Get human-readable summary."""
        return " | ".join([
            f"Tempo: {self.bpm.bpm} BPM ({self.bpm.tempo_category})",
            f"Danceability: {self.danceability.score:.0f}/100 ({self.danceability.category})",
            f"Mood: {self.mood.emoji} {self.mood.primary_mood}",
        ])


# Validation helpers

def validate_confidence(confidence: float) -> None:
    """Validate confidence score is in valid range."""
    if not (0.0 <= confidence <= 1.0):
        raise ValueError(f"Confidence must be in [0.0, 1.0], got {confidence}")


def validate_finite(value: float, name: str) -> None:
    """Reject NaN and infinite values."""
    if not np.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
