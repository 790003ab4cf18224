"""Spectral peak location with sub‑bin refinement."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

# Bins searched either side of an expected harmonic bin.
SEARCH_HALF_WIDTH = 2


def find_peak_near(
    spectrum: NDArray[np.floating],
    expected_bin: int,
    half_width: int = SEARCH_HALF_WIDTH,
) -> tuple[int, float]:
    """Find the strongest bin within ``±half_width`` of ``expected_bin``.

    The search range is clamped to interior bins ``[1, len - 2]``.  When no
    bin in range exceeds zero (or the range is empty because the expected
    bin lies beyond the spectrum), the expected bin is returned with zero
    amplitude.

    Args:
        spectrum: Magnitude spectrum.
        expected_bin: Bin predicted from the reference speed.
        half_width: Search half‑width in bins.

    Returns:
        (peak_bin, amplitude).
    """
    start = max(1, expected_bin - half_width)
    end = min(len(spectrum) - 2, expected_bin + half_width)

    peak_bin = expected_bin
    max_amp = 0.0
    for i in range(start, end + 1):
        if spectrum[i] > max_amp:
            max_amp = float(spectrum[i])
            peak_bin = i
    return peak_bin, max_amp


def find_global_peak(spectrum: NDArray[np.floating]) -> tuple[int, float]:
    """Strongest bin in ``[1, len)``; bin 1 with zero amplitude if all are zero."""
    peak_bin = 1
    max_amp = 0.0
    for i in range(1, len(spectrum)):
        if spectrum[i] > max_amp:
            max_amp = float(spectrum[i])
            peak_bin = i
    return peak_bin, max_amp


def interpolate_peak(spectrum: NDArray[np.floating], peak_bin: int) -> float:
    """Refine a peak location by fitting a parabola through three bins.

    With ``alpha, beta, gamma`` the magnitudes at ``peak_bin - 1``,
    ``peak_bin`` and ``peak_bin + 1``, the vertex lies at
    ``peak_bin + 0.5·(alpha - gamma) / (alpha - 2·beta + gamma)``.

    The bin is returned unchanged when it sits on a spectrum edge, when a
    neighbour is non‑positive, or when the triple is not a strict local
    maximum.

    Returns:
        Fractional bin index.
    """
    if peak_bin <= 0 or peak_bin >= len(spectrum) - 1:
        return float(peak_bin)

    alpha = float(spectrum[peak_bin - 1])
    beta = float(spectrum[peak_bin])
    gamma = float(spectrum[peak_bin + 1])

    if alpha <= 0 or gamma <= 0 or beta <= alpha or beta <= gamma:
        return float(peak_bin)

    delta = 0.5 * (alpha - gamma) / (alpha - 2.0 * beta + gamma)
    return peak_bin + delta
