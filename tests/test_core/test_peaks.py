"""Tests for peak pickers."""

import numpy as np
import pytest

from beatsense.core.peaks import find_peaks, find_peaks_fast, get_peak_picker


class TestFindPeaks:
    """Adaptive threshold plus prominence."""

    def test_isolated_spikes_all_found(self):
        signal = np.zeros(100)
        signal[[20, 40, 60, 80]] = 10.0

        assert find_peaks(signal) == [20, 40, 60, 80]

    def test_constant_signal_has_no_peaks(self):
        assert find_peaks(np.full(50, 3.0)) == []

    def test_short_signal(self):
        assert find_peaks([1.0, 2.0]) == []

    def test_small_bumps_rejected(self):
        signal = [0, 1, 0, 5, 0, 2, 0]

        assert find_peaks(signal) == [3]

    def test_plateau_is_not_a_peak(self):
        signal = np.zeros(30)
        signal[10:12] = 5.0

        assert find_peaks(signal) == []

    def test_ascending_indices(self):
        rng = np.random.default_rng(11)
        peaks = find_peaks(rng.normal(size=500))

        assert peaks == sorted(peaks)


class TestFindPeaksFast:
    """Fraction-of-maximum picker."""

    def test_keeps_moderate_peaks(self):
        assert find_peaks_fast([0, 1, 0, 5, 0, 2, 0]) == [3, 5]

    def test_custom_ratio(self):
        assert find_peaks_fast([0, 1, 0, 5, 0, 2, 0], ratio=0.1) == [1, 3, 5]


class TestGetPeakPicker:
    """Lookup by name."""

    def test_known_names(self):
        assert get_peak_picker("adaptive") is find_peaks
        assert get_peak_picker("fast") is find_peaks_fast

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown peak picker"):
            get_peak_picker("magic")
