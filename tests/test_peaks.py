"""Tests for peak location and sub-bin interpolation."""

import numpy as np
import pytest

from mcp_server_vibscan.analysis.peaks import (
    find_global_peak,
    find_peak_near,
    interpolate_peak,
)


class TestFindPeakNear:
    def test_finds_offset_peak(self):
        spectrum = np.zeros(64)
        spectrum[12] = 0.8
        assert find_peak_near(spectrum, 10) == (12, 0.8)

    def test_ignores_peak_outside_window(self):
        spectrum = np.zeros(64)
        spectrum[14] = 0.8
        assert find_peak_near(spectrum, 10) == (10, 0.0)

    def test_never_searches_dc(self):
        spectrum = np.zeros(64)
        spectrum[0] = 5.0
        spectrum[1] = 1.0
        assert find_peak_near(spectrum, 0) == (1, 1.0)

    def test_never_searches_last_bin(self):
        spectrum = np.zeros(10)
        spectrum[9] = 5.0
        spectrum[8] = 1.0
        assert find_peak_near(spectrum, 9) == (8, 1.0)

    def test_expected_bin_beyond_spectrum(self):
        spectrum = np.ones(256)
        assert find_peak_near(spectrum, 300) == (300, 0.0)

    def test_first_of_equal_peaks_wins(self):
        spectrum = np.zeros(32)
        spectrum[9] = 0.5
        spectrum[11] = 0.5
        assert find_peak_near(spectrum, 10) == (9, 0.5)


class TestFindGlobalPeak:
    def test_skips_dc(self):
        spectrum = np.array([9.0, 0.1, 0.4, 0.2, 0.0])
        assert find_global_peak(spectrum) == (2, 0.4)

    def test_silent_spectrum(self):
        assert find_global_peak(np.zeros(16)) == (1, 0.0)


class TestInterpolatePeak:
    def test_symmetric_peak_unchanged(self):
        spectrum = np.array([0.0, 1.0, 3.0, 1.0, 0.0])
        assert interpolate_peak(spectrum, 2) == pytest.approx(2.0)

    def test_shifts_toward_larger_neighbour(self):
        spectrum = np.array([0.0, 1.0, 3.0, 2.0, 0.0])
        assert interpolate_peak(spectrum, 2) == pytest.approx(2.0 + 1.0 / 6.0)

    def test_edges_not_refined(self):
        spectrum = np.array([3.0, 1.0, 0.5, 1.0, 3.0])
        assert interpolate_peak(spectrum, 0) == 0
        assert interpolate_peak(spectrum, 4) == 4

    def test_non_concave_segment_not_refined(self):
        # Rising then flat: no strict local maximum
        spectrum = np.array([0.0, 1.0, 2.0, 2.0, 2.0])
        assert interpolate_peak(spectrum, 2) == 2

    def test_non_positive_neighbour_not_refined(self):
        spectrum = np.array([0.0, 0.0, 3.0, 1.0, 0.0])
        assert interpolate_peak(spectrum, 2) == 2

    def test_returns_float(self):
        spectrum = np.array([0.0, 1.0, 2.0, 2.0, 2.0])
        assert isinstance(interpolate_peak(spectrum, 2), float)
