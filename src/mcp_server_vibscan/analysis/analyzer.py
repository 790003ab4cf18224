"""Scan orchestration: samples in, diagnosis out.

Runs the pre‑processing → FFT → peak location → classification pipeline
for either a blind scan (strongest peak) or a harmonic scan referenced to
the expected shaft speed.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from mcp_server_vibscan.analysis.fault_detection import (
    classify_harmonics,
    estimate_noise_floor,
    harmonic_ratios,
)
from mcp_server_vibscan.analysis.models import (
    AnalysisConfig,
    AnalysisResult,
    BlindScan,
    FaultKind,
)
from mcp_server_vibscan.analysis.peaks import (
    find_global_peak,
    find_peak_near,
    interpolate_peak,
)
from mcp_server_vibscan.analysis.preprocessing import (
    InsufficientDataError,
    compute_spectrum,
)

logger = logging.getLogger(__name__)

# Analysis window (FFT length); must be a power of two.
FFT_SIZE = 512

# Fraction of Nyquist the 1× frequency must stay below.
NYQUIST_GUARD = 0.85

BLIND_SCAN_MESSAGE = "Self-Test / Blind Scan Complete"
UNMEASURABLE_MESSAGE = "RPM exceeds Nyquist safety limit. Increase sample rate."


def frequency_resolution(sample_rate_hz: float, window_size: int = FFT_SIZE) -> float:
    """Bin spacing in Hz."""
    return sample_rate_hz / window_size


def expected_bin(freq_hz: float, resolution_hz: float) -> int:
    """Nearest bin to ``freq_hz``, halves rounded away from zero."""
    return int(math.floor(freq_hz / resolution_hz + 0.5))


def locate_harmonics(
    spectrum: NDArray[np.floating],
    shaft_freq_hz: float,
    resolution_hz: float,
    orders: Sequence[int] = (1, 2, 3),
) -> list[dict]:
    """Find the peak closest to each shaft harmonic.

    Returns:
        One dict per order with ``order``, ``expected_hz``, ``expected_bin``,
        ``peak_bin``, ``amplitude``.
    """
    found = []
    for order in orders:
        f = order * shaft_freq_hz
        bin_expected = expected_bin(f, resolution_hz)
        peak_bin, amp = find_peak_near(spectrum, bin_expected)
        found.append({
            "order": order,
            "expected_hz": f,
            "expected_bin": bin_expected,
            "peak_bin": peak_bin,
            "amplitude": amp,
        })
    return found


def _run(
    samples: Sequence[float] | NDArray[np.floating],
    config: AnalysisConfig,
    window_size: int,
) -> tuple[AnalysisResult, dict | None]:
    n_bins = window_size // 2

    try:
        spectrum = compute_spectrum(samples, window_size)
    except InsufficientDataError as e:
        logger.warning("Insufficient data: %s", e)
        return AnalysisResult(
            fault=FaultKind.INSUFFICIENT_DATA,
            message=f"Need at least {window_size} samples.",
            spectrum=np.zeros(n_bins, dtype=np.float64),
        ), None

    resolution = frequency_resolution(config.sample_rate_hz, window_size)
    mode = config.mode

    if isinstance(mode, BlindScan):
        peak_bin, amp = find_global_peak(spectrum)
        exact_bin = interpolate_peak(spectrum, peak_bin)
        logger.debug("Blind scan peak at bin %d (refined %.4f)", peak_bin, exact_bin)
        return AnalysisResult(
            fault=FaultKind.NONE,
            dominant_frequency_hz=exact_bin * resolution,
            peak_amplitude=amp,
            message=BLIND_SCAN_MESSAGE,
            spectrum=spectrum,
        ), None

    f_1x = mode.shaft_freq_hz
    if f_1x >= config.nyquist_hz * NYQUIST_GUARD:
        logger.warning(
            "1x frequency %.3f Hz exceeds %.0f%% of Nyquist (%.3f Hz)",
            f_1x, NYQUIST_GUARD * 100, config.nyquist_hz,
        )
        return AnalysisResult(
            fault=FaultKind.UNMEASURABLE,
            message=UNMEASURABLE_MESSAGE,
            spectrum=spectrum,
        ), None

    harmonics = locate_harmonics(spectrum, f_1x, resolution)
    amp_1x, amp_2x, amp_3x = (h["amplitude"] for h in harmonics)

    noise_floor = estimate_noise_floor(spectrum, amp_1x, amp_2x, amp_3x)
    ratios = harmonic_ratios(amp_1x, amp_2x, amp_3x, noise_floor)
    for h, r in zip(harmonics, ratios):
        h["ratio_to_noise"] = r

    exact_bin_1x = interpolate_peak(spectrum, harmonics[0]["peak_bin"])
    fault, message = classify_harmonics(amp_1x, amp_2x, amp_3x, noise_floor)
    logger.debug(
        "Harmonic scan: ratios 1x=%.2f 2x=%.2f 3x=%.2f noise=%.6f -> %s",
        *ratios, noise_floor, fault.name,
    )

    result = AnalysisResult(
        fault=fault,
        dominant_frequency_hz=exact_bin_1x * resolution,
        peak_amplitude=amp_1x,
        message=message,
        spectrum=spectrum,
    )
    detail = {
        "shaft_freq_hz": f_1x,
        "freq_resolution_hz": resolution,
        "noise_floor": noise_floor,
        "harmonics": harmonics,
    }
    return result, detail


def analyze(
    samples: Sequence[float] | NDArray[np.floating],
    config: AnalysisConfig,
    window_size: int = FFT_SIZE,
) -> AnalysisResult:
    """Diagnose a machine from its most recent motion‑intensity samples.

    Only the last ``window_size`` samples are used and the caller's
    sequence is left untouched.  Short input, an RPM too close to Nyquist,
    and degenerate peaks are reported through :class:`FaultKind` rather
    than raised.

    Args:
        samples: Motion‑intensity history, oldest first.
        config: Sample rate and reference speed.
        window_size: FFT length (power of two).

    Returns:
        A fresh :class:`AnalysisResult`.
    """
    result, _ = _run(samples, config, window_size)
    return result


def analyze_with_detail(
    samples: Sequence[float] | NDArray[np.floating],
    config: AnalysisConfig,
    window_size: int = FFT_SIZE,
) -> tuple[AnalysisResult, dict | None]:
    """Like :func:`analyze`, plus per‑harmonic detail for harmonic scans.

    The detail dict (``None`` for other outcomes) carries the shaft
    frequency, bin spacing, noise floor and, per harmonic order, the
    expected and located bins, amplitude and ratio to noise.
    """
    return _run(samples, config, window_size)
