"""
Peak pickers for 1-D detection functions.

``find_peaks`` combines an adaptive threshold with a local prominence test;
``find_peaks_fast`` is the cheaper, less selective variant. BPM methods pick
one by name through ``get_peak_picker``.
"""

from typing import Callable, Dict, List, Sequence

import numpy as np

PROMINENCE_SPAN = 5

PeakPicker = Callable[[Sequence[float]], List[int]]


def _strict_local_maxima(x: np.ndarray) -> np.ndarray:
    """Mask of interior samples strictly greater than both neighbours."""
    mask = np.zeros(len(x), dtype=bool)
    if len(x) >= 3:
        mask[1:-1] = (x[1:-1] > x[:-2]) & (x[1:-1] > x[2:])
    return mask


def find_peaks(
    signal: Sequence[float],
    threshold_std: float = 1.2,
    prominence_std: float = 0.5
) -> List[int]:
    """
    Adaptive-threshold peak picker.

    A candidate exceeds mean + 1.2*std and both neighbours. Its prominence
    is its value minus the higher of the minima of the 5 samples before and
    after it; candidates with prominence above 0.5*std are kept.

    Returns:
        List[int]: Ascending peak indices
    """
    x = np.asarray(signal, dtype=np.float64)
    if len(x) < 3:
        return []

    mean = float(np.mean(x))
    std = float(np.std(x))
    if std == 0:
        return []

    candidates = np.flatnonzero(
        _strict_local_maxima(x) & (x > mean + threshold_std * std)
    )

    peaks = []
    for i in candidates:
        left_min = x[max(0, i - PROMINENCE_SPAN):i].min()
        right_min = x[i + 1:i + 1 + PROMINENCE_SPAN].min()
        if x[i] - max(left_min, right_min) > prominence_std * std:
            peaks.append(int(i))

    return peaks


def find_peaks_fast(signal: Sequence[float], ratio: float = 0.3) -> List[int]:
    """Peaks above *ratio* of the signal maximum that beat both neighbours."""
    x = np.asarray(signal, dtype=np.float64)
    if len(x) < 3:
        return []

    floor = ratio * float(np.max(x))
    return [int(i) for i in np.flatnonzero(_strict_local_maxima(x) & (x > floor))]


PEAK_PICKERS: Dict[str, PeakPicker] = {
    "adaptive": find_peaks,
    "fast": find_peaks_fast,
}


def get_peak_picker(name: str) -> PeakPicker:
    """
    Look up a peak picker by name ("adaptive" or "fast").

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return PEAK_PICKERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown peak picker: {name}. Must be one of {sorted(PEAK_PICKERS)}"
        ) from None
