"""
Tempo, danceability and mood analyzers.
"""

from beatsense.analyzers.bpm import BPMAnalyzer, create_bpm_analyzer
from beatsense.analyzers.danceability import (
    DanceabilityAnalyzer,
    create_danceability_analyzer,
)
from beatsense.analyzers.mood import MoodAnalyzer, create_mood_analyzer

__all__ = [
    "BPMAnalyzer",
    "DanceabilityAnalyzer",
    "MoodAnalyzer",
    "create_bpm_analyzer",
    "create_danceability_analyzer",
    "create_mood_analyzer",
]
