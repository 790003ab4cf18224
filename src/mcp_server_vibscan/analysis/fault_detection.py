"""Harmonic‑ratio fault classification for rotating machinery.

Compares the 1×, 2× and 3× shaft‑harmonic amplitudes with the spectral
noise floor and maps the ratios onto unbalance, misalignment and
looseness signatures.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from mcp_server_vibscan.analysis.models import FaultKind


# ---------------------------------------------------------------------------
# Classification thresholds (harmonic amplitude / noise floor)
# ---------------------------------------------------------------------------
# Empirical rules of thumb for shaft‑harmonic diagnosis.
# They should be tuned to the specific machine and sensor.
HARMONIC_THRESHOLDS = {
    "unbalance_1x": 5.0,       # 1× must stand at least this far above noise
    "unbalance_max_nx": 3.0,   # ... while 2× and 3× stay below this
    "misalignment_2x": 5.0,    # 2× dominant and above this
    "looseness_nx": 3.0,       # every harmonic above this
}

# Lower bound on the noise floor; keeps ratios finite on near-silent spectra.
NOISE_FLOOR_MIN = 1e-4

FAULT_MESSAGES = {
    FaultKind.NONE: "HEALTHY: Vibration within normal limits.",
    FaultKind.UNBALANCE: "WARNING: Mass Unbalance Detected (High 1X)",
    FaultKind.MISALIGNMENT: "WARNING: Shaft Misalignment (Dominant 2X)",
    FaultKind.LOOSENESS: "CRITICAL: Mechanical Looseness (Harmonic Forest)",
}


def estimate_noise_floor(
    spectrum: NDArray[np.floating],
    amp_1x: float,
    amp_2x: float,
    amp_3x: float,
    floor_min: float = NOISE_FLOOR_MIN,
) -> float:
    """Mean magnitude of the spectrum with the three harmonic peaks removed.

    Args:
        spectrum: Magnitude spectrum (all bins, DC included).
        amp_1x: Amplitude found at the 1× harmonic.
        amp_2x: Amplitude found at the 2× harmonic.
        amp_3x: Amplitude found at the 3× harmonic.
        floor_min: Lower clamp for the result.

    Returns:
        Noise floor estimate, never below ``floor_min``.
    """
    total = float(np.sum(spectrum))
    noise = (total - amp_1x - amp_2x - amp_3x) / (len(spectrum) - 3)
    if noise <= floor_min:
        return floor_min
    return noise


def harmonic_ratios(
    amp_1x: float,
    amp_2x: float,
    amp_3x: float,
    noise_floor: float,
) -> tuple[float, float, float]:
    """Express harmonic amplitudes as multiples of the noise floor."""
    return amp_1x / noise_floor, amp_2x / noise_floor, amp_3x / noise_floor


def _classify_ratios(
    r_1x: float,
    r_2x: float,
    r_3x: float,
    thresholds: dict[str, float],
) -> FaultKind:
    """Apply the ordered rules; the first match wins."""
    if (
        r_1x > thresholds["unbalance_1x"]
        and r_2x < thresholds["unbalance_max_nx"]
        and r_3x < thresholds["unbalance_max_nx"]
    ):
        return FaultKind.UNBALANCE
    elif r_2x > r_1x and r_2x > thresholds["misalignment_2x"]:
        return FaultKind.MISALIGNMENT
    elif (
        r_1x > thresholds["looseness_nx"]
        and r_2x > thresholds["looseness_nx"]
        and r_3x > thresholds["looseness_nx"]
    ):
        return FaultKind.LOOSENESS
    else:
        return FaultKind.NONE


def classify_harmonics(
    amp_1x: float,
    amp_2x: float,
    amp_3x: float,
    noise_floor: float,
    thresholds: dict[str, float] | None = None,
) -> tuple[FaultKind, str]:
    """Classify a machine condition from its shaft‑harmonic amplitudes.

    Rules, evaluated in order on ``r_nx = amp_nx / noise_floor``:
      1. high 1× with quiet 2× and 3×    → unbalance
      2. 2× above 1× and clearly present → misalignment
      3. all three harmonics elevated    → looseness
      4. otherwise                       → healthy

    Args:
        amp_1x: 1× harmonic amplitude.
        amp_2x: 2× harmonic amplitude.
        amp_3x: 3× harmonic amplitude.
        noise_floor: Noise floor estimate (> 0).
        thresholds: Override for :data:`HARMONIC_THRESHOLDS`.

    Returns:
        (fault kind, human‑readable message).
    """
    if thresholds is None:
        thresholds = HARMONIC_THRESHOLDS
    r_1x, r_2x, r_3x = harmonic_ratios(amp_1x, amp_2x, amp_3x, noise_floor)
    fault = _classify_ratios(r_1x, r_2x, r_3x, thresholds)
    return fault, FAULT_MESSAGES[fault]
