"""
BeatSense - tempo, danceability and mood extraction

Classical DSP analysis of raw audio: framing, windowing, spectral and
statistical transforms turned into BPM, danceability and mood estimates.
"""

__version__ = "1.0.0"
__author__ = "Audio Analysis Team"
