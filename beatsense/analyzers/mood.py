"""
Mood analyzer for BeatSense.

Rule-based classification over spectral centroid, zero-crossing rate,
energy distribution, rolloff and the energy-stability tempo proxy.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import numpy as np

from beatsense.core.analyzer_base import BaseAnalyzer
from beatsense.core.features import SPECTRAL_FRAME_SIZE
from beatsense.core.models import FeatureCache, MoodAnalysis, MoodTag, SampleBuffer
from beatsense.utils.errors import NumericGuardError

NEUTRAL_MOOD = "Neutral"
BALANCED_MOOD = "Balanced"
MIXED_SONG_TYPE = "Mixed"
NEUTRAL_EMOJI = "🎵"
EXPLANATION_SEPARATOR = " • "

FeatureTest = Callable[[FeatureCache], bool]


@dataclass(frozen=True)
class MoodRule:
    """A triggerable mood and how it is reported in the breakdown."""

    mood: str
    emoji: str
    tag_label: str
    song_type: str
    increment: float
    explanation: str
    triggered: FeatureTest
    medium: FeatureTest
    descriptions: Dict[str, str]


MOOD_RULES: List[MoodRule] = [
    MoodRule(
        mood="Happy",
        emoji="😀",
        tag_label="😀 Happy",
        song_type="Upbeat",
        increment=0.25,
        explanation="High brightness and energy create positive mood",
        triggered=lambda f: f.spectral_centroid > 1500 and f.energy_distribution > 0.6,
        medium=lambda f: f.spectral_centroid > 1200,
        descriptions={
            "High": "Bright, energetic characteristics",
            "Medium": "Moderately bright sound",
            "Low": "Darker, less bright sound",
        },
    ),
    MoodRule(
        mood="Sad",
        emoji="😢",
        tag_label="😢 Sad",
        song_type="Melancholic",
        increment=0.25,
        explanation="Low brightness and energy indicate somber mood",
        triggered=lambda f: f.spectral_centroid < 800 and f.energy_distribution < 0.4,
        medium=lambda f: f.spectral_centroid < 1000,
        descriptions={
            "High": "Dark, low energy characteristics",
            "Medium": "Moderately dark sound",
            "Low": "Brighter, less somber sound",
        },
    ),
    MoodRule(
        mood="Relaxed",
        emoji="😌",
        tag_label="😌 Relaxed",
        song_type="Chill",
        increment=0.2,
        explanation="Low complexity and energy create calm feeling",
        triggered=lambda f: f.zero_crossing_rate < 0.05 and f.energy_distribution < 0.5,
        medium=lambda f: f.zero_crossing_rate < 0.08,
        descriptions={
            "High": "Smooth, calm characteristics",
            "Medium": "Moderately smooth sound",
            "Low": "More complex, less calm sound",
        },
    ),
    MoodRule(
        mood="Aggressive",
        emoji="✊",
        tag_label="✊ Aggressiveness",
        song_type="Intense",
        increment=0.2,
        explanation="High complexity and high frequencies suggest aggression",
        triggered=lambda f: f.zero_crossing_rate > 0.1 and f.spectral_rolloff > 3000,
        medium=lambda f: f.zero_crossing_rate > 0.08,
        descriptions={
            "High": "Complex, high-frequency characteristics",
            "Medium": "Moderately complex sound",
            "Low": "Smoother, less aggressive sound",
        },
    ),
]


def _level(score: float) -> str:
    if score > 0.7:
        return "High"
    if score > 0.4:
        return "Medium"
    return "Low"


def danceability_tag(features: FeatureCache) -> MoodTag:
    """Continuous dance potential: mean of energy distribution and tempo proxy."""
    score = (features.energy_distribution + features.energy_stability) / 2
    level = _level(score)
    return MoodTag("🕺 Danceability", level, {
        "High": "Strong dance potential",
        "Medium": "Moderate dance potential",
        "Low": "Limited dance potential",
    }[level])


def engagement_tag(features: FeatureCache) -> MoodTag:
    score = (
        features.spectral_centroid / 2000
        + features.energy_distribution
        + features.energy_stability
    ) / 3
    level = _level(score)
    return MoodTag("👁 Engagement", level, {
        "High": "Very engaging and captivating",
        "Medium": "Moderately engaging",
        "Low": "Less engaging",
    }[level])


def approachability_tag(features: FeatureCache) -> MoodTag:
    score = (1 - features.zero_crossing_rate + features.energy_distribution) / 2
    level = _level(score)
    return MoodTag("🧠 Approachability", level, {
        "High": "Very approachable and friendly",
        "Medium": "Moderately approachable",
        "Low": "Less approachable",
    }[level])


def classify_mood(features: FeatureCache) -> MoodAnalysis:
    """
    Apply the mood rules to a feature set.

    Triggered moods are collected in rule order: the first is primary and
    the second secondary. Confidence sums the triggered increments, capped
    at 1. All seven breakdown tags are always present.
    """
    for name, value in features.to_dict().items():
        if not np.isfinite(value):
            raise NumericGuardError(
                f"Feature {name} is not finite",
                analyzer_name="mood",
                field_name=name
            )

    triggered: List[MoodRule] = []
    tags: List[MoodTag] = [danceability_tag(features)]

    for rule in MOOD_RULES:
        if rule.triggered(features):
            triggered.append(rule)
            level = "High"
        elif rule.medium(features):
            level = "Medium"
        else:
            level = "Low"
        tags.append(MoodTag(rule.tag_label, level, rule.descriptions[level]))

    tags.append(engagement_tag(features))
    tags.append(approachability_tag(features))

    primary = triggered[0] if triggered else None
    return MoodAnalysis(
        primary_mood=primary.mood if primary else NEUTRAL_MOOD,
        secondary_mood=triggered[1].mood if len(triggered) > 1 else BALANCED_MOOD,
        song_type=primary.song_type if primary else MIXED_SONG_TYPE,
        emoji=primary.emoji if primary else NEUTRAL_EMOJI,
        confidence=min(1.0, sum(rule.increment for rule in triggered)),
        explanation=EXPLANATION_SEPARATOR.join(rule.explanation for rule in triggered),
        detailed_analysis=tags
    )


class MoodAnalyzer(BaseAnalyzer[MoodAnalysis]):
    """Mood classification from the buffer's shared feature cache."""

    def __init__(self):
        super().__init__("mood", "1.0.0")

    def _analyze_impl(self, buffer: SampleBuffer) -> MoodAnalysis:
        self.require_frames(buffer, SPECTRAL_FRAME_SIZE)
        return classify_mood(buffer.features)

    def default_result(self) -> MoodAnalysis:
        """Neutral mood with zero confidence; no rule counts as triggered."""
        silent = FeatureCache(0.0, 0.0, 0.0, 0.0, 0.0)
        tags = [danceability_tag(silent)]
        tags.extend(
            MoodTag(rule.tag_label, "Low", rule.descriptions["Low"])
            for rule in MOOD_RULES
        )
        tags.extend([engagement_tag(silent), approachability_tag(silent)])

        return MoodAnalysis(
            primary_mood=NEUTRAL_MOOD,
            secondary_mood=BALANCED_MOOD,
            song_type=MIXED_SONG_TYPE,
            emoji=NEUTRAL_EMOJI,
            confidence=0.0,
            explanation="",
            detailed_analysis=tags
        )


def create_mood_analyzer(config: Dict[str, Any]) -> MoodAnalyzer:
    """Factory function to create a MoodAnalyzer (no tunable settings yet)."""
    return MoodAnalyzer()
