"""Signal pre‑processing for vibration scans.

Window extraction, DC removal and Hann shading of motion‑intensity samples
prior to the FFT, and conversion of the FFT output into a normalised
single‑sided magnitude spectrum.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import signal as sig

from mcp_server_vibscan.analysis.fft import fft_radix2


class InsufficientDataError(ValueError):
    """Raised when fewer samples are available than the analysis window."""

    def __init__(self, available: int, required: int) -> None:
        super().__init__(f"Need at least {required} samples, got {available}")
        self.available = available
        self.required = required


def last_window(
    samples: Sequence[float] | NDArray[np.floating],
    window_size: int,
) -> NDArray[np.floating]:
    """Copy the trailing ``window_size`` samples into a new float64 array.

    Raises:
        InsufficientDataError: If fewer than ``window_size`` samples exist.
    """
    x = np.asarray(samples, dtype=np.float64)
    if x.shape[0] < window_size:
        raise InsufficientDataError(x.shape[0], window_size)
    return x[x.shape[0] - window_size:].copy()


def remove_dc_offset(x: NDArray[np.floating]) -> NDArray[np.floating]:
    """Remove the DC (mean) component from a signal."""
    return x - np.mean(x)


def hann_window(n: int) -> NDArray[np.floating]:
    """Symmetric Hann window ``0.5·(1 - cos(2πi/(n-1)))``."""
    return sig.get_window("hann", n, fftbins=False)


def prepare(
    samples: Sequence[float] | NDArray[np.floating],
    window_size: int,
) -> NDArray[np.complexfloating]:
    """Build the complex FFT input from the newest samples.

    Steps (in order):
      1. Keep the last ``window_size`` samples
      2. DC offset removal
      3. Hann windowing
      4. Promotion to complex with zero imaginary part

    Args:
        samples: Motion‑intensity history, oldest first.  Not modified.
        window_size: Analysis window length (power of two).

    Returns:
        complex128 array of length ``window_size``.

    Raises:
        InsufficientDataError: If ``len(samples) < window_size``.
    """
    x = last_window(samples, window_size)
    y = remove_dc_offset(x) * hann_window(window_size)
    return y.astype(np.complex128)


def magnitude_spectrum(X: ArrayLike) -> NDArray[np.floating]:
    """Normalised single‑sided magnitude: ``|X[k]| / (N/2)`` for ``k < N/2``."""
    X = np.asarray(X)
    half = X.shape[0] // 2
    return np.abs(X[:half]) / (X.shape[0] / 2.0)


def compute_spectrum(
    samples: Sequence[float] | NDArray[np.floating],
    window_size: int,
) -> NDArray[np.floating]:
    """Prepare, transform and normalise in one call."""
    return magnitude_spectrum(fft_radix2(prepare(samples, window_size)))
