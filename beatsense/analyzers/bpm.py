"""
BPM analyzer for BeatSense.

Four independent tempo estimators (autocorrelation, spectral flux, energy
onsets, low-band histogram) each return a MethodEstimate; combine_estimates
reduces them to one tempo with a confidence-weighted average.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from beatsense.core.analyzer_base import BaseAnalyzer
from beatsense.core.features import low_band_energy, median_filter, sum_of_squares
from beatsense.core.framing import FrameSequence
from beatsense.core.models import BPMAnalysis, MethodEstimate, SampleBuffer
from beatsense.core.peaks import PeakPicker, find_peaks, get_peak_picker
from beatsense.core.spectral import autocorrelation, magnitude_spectra, spectral_flux
from beatsense.utils.errors import ConfigurationError, NumericGuardError

DEFAULT_BPM = 120.0
MIN_BPM = 60.0
MAX_BPM = 200.0

DEFAULT_WEIGHTS = {
    "autocorr": 0.4,
    "spectral": 0.3,
    "onset": 0.2,
    "histogram": 0.1,
}

AUTOCORR_FRAME = (2048, 512)
SPECTRAL_FRAME = (1024, 512)
ONSET_FRAME_SECONDS = (0.025, 0.010)
HISTOGRAM_FRAME_SECONDS = (0.050, 0.025)
MEDIAN_WINDOW = 5

# Largest frame any method needs; shorter buffers are degenerate.
MIN_SAMPLES = AUTOCORR_FRAME[0]

TEMPO_CATEGORIES = [
    (60, "Larghissimo"),
    (66, "Largo"),
    (76, "Adagio"),
    (108, "Andante"),
    (120, "Moderato"),
    (168, "Allegro"),
    (200, "Presto"),
]


def tempo_category(bpm: float) -> str:
    """Italian tempo marking for *bpm*."""
    for upper, label in TEMPO_CATEGORIES:
        if bpm < upper:
            return label
    return "Prestissimo"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upward."""
    return int(np.floor(value + 0.5))


def intervals_to_bpm(intervals: np.ndarray, hop_size: int, sample_rate: int) -> np.ndarray:
    """Convert frame-index intervals to BPM: 60 / (interval * hop / sr)."""
    intervals = np.asarray(intervals, dtype=np.float64)
    return 60.0 / (intervals * hop_size / sample_rate)


def _in_range(bpms: np.ndarray, min_bpm: float, max_bpm: float) -> np.ndarray:
    """Discard (never clamp) candidates outside [min_bpm, max_bpm]."""
    return bpms[(bpms >= min_bpm) & (bpms <= max_bpm)]


def histogram_mode(bpms: np.ndarray) -> Tuple[int, int]:
    """
    Most frequent integer BPM and its count.

    Ties go to the slowest tempo.
    """
    rounded = np.floor(np.asarray(bpms) + 0.5).astype(np.int64)
    values, counts = np.unique(rounded, return_counts=True)
    best = int(np.argmax(counts))
    return int(values[best]), int(counts[best])


def _frame_samples(sample_rate: int, seconds: float) -> int:
    return max(1, int(seconds * sample_rate))


def autocorrelation_tempo(
    samples: np.ndarray,
    sample_rate: int,
    peak_picker: PeakPicker = find_peaks,
    min_bpm: float = MIN_BPM,
    max_bpm: float = MAX_BPM,
    default_bpm: float = DEFAULT_BPM
) -> MethodEstimate:
    """
    Tempo from lag spacing of autocorrelation peaks.

    Each Hamming-windowed 2048-sample frame (hop 512) is autocorrelated;
    spacings between consecutive peaks shorter than half a second of lag
    become candidates. The estimate is the histogram mode and the
    confidence its share of all candidates.
    """
    frame_size, hop_size = AUTOCORR_FRAME
    frames = FrameSequence(samples, frame_size, hop_size, window=True).to_array()

    deltas: List[np.ndarray] = []
    for curve in autocorrelation(frames):
        d = np.diff(peak_picker(curve))
        deltas.append(d[(d > 0) & (d < sample_rate / 2)])

    if not deltas:
        return MethodEstimate(bpm=default_bpm, confidence=0.0)

    candidates = _in_range(
        intervals_to_bpm(np.concatenate(deltas), hop_size, sample_rate),
        min_bpm, max_bpm
    )
    if len(candidates) == 0:
        return MethodEstimate(bpm=default_bpm, confidence=0.0)

    bpm, count = histogram_mode(candidates)
    return MethodEstimate(bpm=float(bpm), confidence=min(1.0, count / len(candidates)))


def spectral_flux_tempo(
    samples: np.ndarray,
    sample_rate: int,
    peak_picker: PeakPicker = find_peaks,
    min_bpm: float = MIN_BPM,
    max_bpm: float = MAX_BPM,
    default_bpm: float = DEFAULT_BPM
) -> MethodEstimate:
    """Tempo from the mean spacing of spectral-flux peaks (1024/512 frames)."""
    frame_size, hop_size = SPECTRAL_FRAME
    frames = FrameSequence(samples, frame_size, hop_size, window=True).to_array()
    flux = spectral_flux(magnitude_spectra(frames))

    intervals = np.diff(peak_picker(flux))
    if len(intervals) == 0:
        return MethodEstimate(bpm=default_bpm, confidence=0.0)

    candidates = _in_range(
        intervals_to_bpm(intervals, hop_size, sample_rate), min_bpm, max_bpm
    )
    if len(candidates) == 0:
        return MethodEstimate(bpm=default_bpm, confidence=0.0)

    return MethodEstimate(
        bpm=float(round_half_up(np.mean(candidates))),
        confidence=len(candidates) / len(intervals)
    )


def energy_onset_tempo(
    samples: np.ndarray,
    sample_rate: int,
    peak_picker: PeakPicker = find_peaks,
    min_bpm: float = MIN_BPM,
    max_bpm: float = MAX_BPM,
    default_bpm: float = DEFAULT_BPM
) -> MethodEstimate:
    """
    Tempo from peaks of a median-smoothed energy envelope.

    Energy is the unnormalized sum of squares of 25 ms frames (hop 10 ms);
    the estimate is the upper median of the surviving candidates.
    """
    frame_size = _frame_samples(sample_rate, ONSET_FRAME_SECONDS[0])
    hop_size = _frame_samples(sample_rate, ONSET_FRAME_SECONDS[1])
    energies = sum_of_squares(FrameSequence(samples, frame_size, hop_size).to_array())

    intervals = np.diff(peak_picker(median_filter(energies, MEDIAN_WINDOW)))
    if len(intervals) == 0:
        return MethodEstimate(bpm=default_bpm, confidence=0.0)

    candidates = np.sort(_in_range(
        intervals_to_bpm(intervals, hop_size, sample_rate), min_bpm, max_bpm
    ))
    if len(candidates) == 0:
        return MethodEstimate(bpm=default_bpm, confidence=0.0)

    return MethodEstimate(
        bpm=float(round_half_up(candidates[len(candidates) // 2])),
        confidence=len(candidates) / len(intervals)
    )


def histogram_tempo(
    samples: np.ndarray,
    sample_rate: int,
    peak_picker: PeakPicker = find_peaks,
    min_bpm: float = MIN_BPM,
    max_bpm: float = MAX_BPM,
    default_bpm: float = DEFAULT_BPM
) -> MethodEstimate:
    """Tempo histogram over peaks of low-band (lowest 10% bins) energy."""
    frame_size = _frame_samples(sample_rate, HISTOGRAM_FRAME_SECONDS[0])
    hop_size = _frame_samples(sample_rate, HISTOGRAM_FRAME_SECONDS[1])
    frames = FrameSequence(samples, frame_size, hop_size, window=True).to_array()
    band = low_band_energy(magnitude_spectra(frames))

    intervals = np.diff(peak_picker(band))
    candidates = _in_range(
        intervals_to_bpm(intervals, hop_size, sample_rate), min_bpm, max_bpm
    )
    if len(candidates) == 0:
        return MethodEstimate(bpm=default_bpm, confidence=0.0)

    bpm, count = histogram_mode(candidates)
    return MethodEstimate(bpm=float(bpm), confidence=count / len(candidates))


TempoMethod = Callable[..., MethodEstimate]

# Wire order of the per-method breakdown.
TEMPO_METHODS: Dict[str, TempoMethod] = {
    "autocorr": autocorrelation_tempo,
    "onset": energy_onset_tempo,
    "spectral": spectral_flux_tempo,
    "histogram": histogram_tempo,
}


def combine_estimates(
    estimates: Dict[str, MethodEstimate],
    weights: Optional[Dict[str, float]] = None,
    default_bpm: float = DEFAULT_BPM
) -> Tuple[int, float]:
    """
    Confidence-weighted average of per-method estimates.

    BPM = sum(w*c*bpm) / sum(w), confidence = sum(w*c) / sum(w).
    When no method carries confidence the default BPM is returned with
    confidence 0.

    Returns:
        Tuple[int, float]: (rounded BPM, confidence)
    """
    weights = weights or DEFAULT_WEIGHTS

    total_weight = 0.0
    support = 0.0
    weighted_bpm = 0.0
    for name, estimate in estimates.items():
        w = weights.get(name, 0.0)
        total_weight += w
        support += w * estimate.confidence
        weighted_bpm += w * estimate.confidence * estimate.bpm

    if support <= 0 or total_weight <= 0:
        return round_half_up(default_bpm), 0.0

    return (
        round_half_up(weighted_bpm / total_weight),
        min(1.0, support / total_weight)
    )


class BPMAnalyzer(BaseAnalyzer[BPMAnalysis]):
    """
    Multi-method tempo analysis.

    Runs every tempo method on the same buffer and reduces the estimates
    with combine_estimates. Each method may use its own peak picker.
    """

    def __init__(
        self,
        weights: Optional[Dict[str, float]] = None,
        min_bpm: float = MIN_BPM,
        max_bpm: float = MAX_BPM,
        default_bpm: float = DEFAULT_BPM,
        peak_picking: Optional[Dict[str, str]] = None
    ):
        """
        Initialize BPM analyzer.

        Args:
            weights: Per-method combination weights
            min_bpm: Lowest accepted candidate tempo
            max_bpm: Highest accepted candidate tempo
            default_bpm: Tempo reported when no candidate survives
            peak_picking: Per-method peak picker name ("adaptive" or "fast")

        Raises:
            ConfigurationError: If weights or peak pickers are invalid
        """
        super().__init__("bpm", "1.0.0")

        self.weights = dict(weights or DEFAULT_WEIGHTS)
        for name, weight in self.weights.items():
            if name not in TEMPO_METHODS:
                raise ConfigurationError(
                    f"Unknown tempo method in weights: {name}",
                    config_key=f"analysis.bpm.weights.{name}"
                )
            if weight < 0:
                raise ConfigurationError(
                    f"Weight for {name} must be non-negative, got {weight}",
                    config_key=f"analysis.bpm.weights.{name}"
                )

        if min_bpm >= max_bpm:
            raise ConfigurationError(
                f"min_bpm ({min_bpm}) must be below max_bpm ({max_bpm})",
                config_key="analysis.bpm.min_bpm"
            )

        self.min_bpm = float(min_bpm)
        self.max_bpm = float(max_bpm)
        self.default_bpm = float(default_bpm)

        self.peak_pickers: Dict[str, PeakPicker] = {}
        for name in TEMPO_METHODS:
            picker_name = (peak_picking or {}).get(name, "adaptive")
            try:
                self.peak_pickers[name] = get_peak_picker(picker_name)
            except ValueError as e:
                raise ConfigurationError(
                    str(e), config_key=f"analysis.bpm.peak_picking.{name}"
                ) from e

    def estimate_methods(self, buffer: SampleBuffer) -> Dict[str, MethodEstimate]:
        """Run every tempo method on *buffer*."""
        estimates = {}
        for name, method in TEMPO_METHODS.items():
            estimate = method(
                buffer.samples,
                buffer.sample_rate,
                peak_picker=self.peak_pickers[name],
                min_bpm=self.min_bpm,
                max_bpm=self.max_bpm,
                default_bpm=self.default_bpm
            )
            self.logger.debug(
                f"{name}: {estimate.bpm:.1f} BPM (confidence {estimate.confidence:.2f})"
            )
            estimates[name] = estimate
        return estimates

    def _analyze_impl(self, buffer: SampleBuffer) -> BPMAnalysis:
        """Estimate tempo of *buffer*."""
        self.require_frames(buffer, MIN_SAMPLES)

        estimates = self.estimate_methods(buffer)
        bpm, confidence = combine_estimates(estimates, self.weights, self.default_bpm)

        if not np.isfinite(confidence):
            raise NumericGuardError(
                "Combined tempo confidence is not finite",
                analyzer_name=self.name,
                field_name="confidence"
            )

        return BPMAnalysis(
            bpm=bpm,
            confidence=confidence,
            tempo_category=tempo_category(bpm),
            methods=estimates
        )

    def default_result(self) -> BPMAnalysis:
        """Default tempo with zero confidence for every method."""
        bpm = round_half_up(self.default_bpm)
        return BPMAnalysis(
            bpm=bpm,
            confidence=0.0,
            tempo_category=tempo_category(bpm),
            methods={
                name: MethodEstimate(bpm=self.default_bpm, confidence=0.0)
                for name in TEMPO_METHODS
            }
        )


def create_bpm_analyzer(config: Dict[str, Any]) -> BPMAnalyzer:
    """
    Factory function to create a BPMAnalyzer from configuration.

    Reads the ``analysis.bpm`` section; missing keys fall back to defaults.
    """
    bpm_config = config.get("analysis", {}).get("bpm", {})

    return BPMAnalyzer(
        weights=bpm_config.get("weights"),
        min_bpm=bpm_config.get("min_bpm", MIN_BPM),
        max_bpm=bpm_config.get("max_bpm", MAX_BPM),
        default_bpm=bpm_config.get("default_bpm", DEFAULT_BPM),
        peak_picking=bpm_config.get("peak_picking")
    )
