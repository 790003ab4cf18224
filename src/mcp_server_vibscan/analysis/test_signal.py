"""Synthetic test‑signal generator for vibration scans.

Generates simulated motion‑intensity series with shaft‑harmonic fault
signatures for self‑tests, validation, and demonstration purposes.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from mcp_server_vibscan.analysis.analyzer import FFT_SIZE, analyze
from mcp_server_vibscan.analysis.models import AnalysisConfig, AnalysisResult

# Relative amplitudes of the (1×, 2×, 3×) shaft harmonics per fault type.
FAULT_HARMONIC_PROFILES: dict[str, tuple[float, float, float]] = {
    "none": (0.0, 0.0, 0.0),
    "unbalance": (1.0, 0.0, 0.0),
    "misalignment": (0.3, 1.0, 0.0),
    "looseness": (1.0, 0.7, 0.7),
}


def generate_sine(
    frequency_hz: float,
    sample_rate_hz: float,
    n_samples: int = FFT_SIZE,
    amplitude: float = 1.0,
) -> NDArray[np.floating]:
    """Pure sinusoid ``amplitude·sin(2π·f·t)`` sampled at ``t = i / fs``."""
    if sample_rate_hz <= 0:
        raise ValueError(f"Sample rate must be > 0, got {sample_rate_hz}")
    t = np.arange(n_samples) / sample_rate_hz
    return amplitude * np.sin(2.0 * np.pi * frequency_hz * t)


def generate_machine_signal(
    sample_rate_hz: float,
    target_rpm: float,
    n_samples: int = FFT_SIZE,
    fault: str = "none",
    amplitude: float = 1.0,
    noise_std: float = 0.0,
    offset: float = 0.0,
    seed: int = 42,
) -> NDArray[np.floating]:
    """Generate a motion‑intensity series for a machine at ``target_rpm``.

    Args:
        sample_rate_hz: Sampling rate in Hz.
        target_rpm: Shaft speed in RPM.
        n_samples: Number of samples.
        fault: One of ``"none"``, ``"unbalance"``, ``"misalignment"``,
            ``"looseness"`` (see :data:`FAULT_HARMONIC_PROFILES`).
        amplitude: Scale of the strongest harmonic.
        noise_std: Standard deviation of additive Gaussian noise.
        offset: Constant added to every sample (intensity values from
            frame differencing are non‑negative).
        seed: Seed of the noise generator.

    Returns:
        1‑D float64 array of length ``n_samples``.

    Raises:
        ValueError: For a non‑positive sample rate or unknown fault.
    """
    if sample_rate_hz <= 0:
        raise ValueError(f"Sample rate must be > 0, got {sample_rate_hz}")
    key = fault.lower().strip()
    if key not in FAULT_HARMONIC_PROFILES:
        raise ValueError(
            f"Unknown fault '{fault}'. "
            f"Options: {', '.join(FAULT_HARMONIC_PROFILES)}"
        )

    t = np.arange(n_samples) / sample_rate_hz
    f_1x = target_rpm / 60.0
    x = np.full(n_samples, float(offset))

    for order, rel in enumerate(FAULT_HARMONIC_PROFILES[key], start=1):
        if rel > 0:
            x += rel * amplitude * np.sin(2.0 * np.pi * order * f_1x * t)

    if noise_std > 0:
        x += np.random.default_rng(seed).normal(0, noise_std, n_samples)

    return x


def run_self_test(
    frequency_hz: float,
    sample_rate_hz: float,
    window_size: int = FFT_SIZE,
) -> AnalysisResult:
    """Blind‑scan a pure sinusoid; the reported peak should match ``frequency_hz``."""
    x = generate_sine(frequency_hz, sample_rate_hz, n_samples=window_size)
    return analyze(x, AnalysisConfig(sample_rate_hz, 0.0), window_size=window_size)
