"""Fixed-size radix‑2 FFT.

Iterative Cooley–Tukey decimation‑in‑time transform used by the scan
pipeline.  The window length is a power‑of‑two constant, so the length is
a precondition of :func:`fft_radix2` rather than something it checks.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray


def bit_reverse_indices(n: int) -> NDArray[np.intp]:
    """Return the bit‑reversal permutation of ``range(n)`` for ``n = 2**k``."""
    levels = n.bit_length() - 1
    idx = np.arange(n, dtype=np.intp)
    rev = np.zeros(n, dtype=np.intp)
    for b in range(levels):
        rev |= ((idx >> b) & 1) << (levels - 1 - b)
    return rev


def fft_radix2(x: ArrayLike) -> NDArray[np.complexfloating]:
    """Forward discrete Fourier transform of a power‑of‑two length sequence.

    Uses the ``exp(-2πi·k/n)`` twiddle convention, so the output matches
    ``numpy.fft.fft`` to floating‑point tolerance.  Each stage combines
    even/odd halves as ``X[k] = E[k] + T[k]`` and ``X[k + n/2] = E[k] - T[k]``
    with ``T[k] = twiddle(k)·O[k]``.

    Args:
        x: Input sequence (real or complex).  ``len(x)`` must be a power
            of two; other lengths give undefined output.

    Returns:
        New complex128 array with the transform; the input is not modified.
    """
    a = np.array(x, dtype=np.complex128)
    n = a.shape[0]
    if n <= 1:
        return a

    a = a[bit_reverse_indices(n)]

    size = 2
    while size <= n:
        half = size // 2
        twiddle = np.exp(-2j * np.pi * np.arange(half) / size)
        blocks = a.reshape(-1, size)
        even = blocks[:, :half].copy()
        t = twiddle * blocks[:, half:]
        blocks[:, :half] = even + t
        blocks[:, half:] = even - t
        size *= 2

    return a
