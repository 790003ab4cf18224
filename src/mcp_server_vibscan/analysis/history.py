"""Caller‑owned motion‑sample history.

Accumulates intensity samples between scans.  The analyser only reads a
snapshot, so a history can keep growing while earlier snapshots are being
analysed.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

import numpy as np
from numpy.typing import NDArray

from mcp_server_vibscan.analysis.analyzer import FFT_SIZE


class SampleHistory:
    """Bounded FIFO of motion‑intensity samples.

    Args:
        capacity: Maximum number of samples kept; the oldest are dropped
            first.  ``None`` keeps everything.
        min_capacity: Smallest capacity accepted.  Defaults to the analysis
            window, so a bounded history can always be diagnosed.

    Raises:
        ValueError: If ``capacity`` is smaller than ``min_capacity``.
    """

    def __init__(self, capacity: int | None = None, min_capacity: int = FFT_SIZE) -> None:
        if capacity is not None and capacity < min_capacity:
            raise ValueError(
                f"Capacity must be >= {min_capacity}, got {capacity}"
            )
        self._samples: deque[float] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int | None:
        return self._samples.maxlen

    def __len__(self) -> int:
        return len(self._samples)

    def append(self, value: float) -> None:
        self._samples.append(float(value))

    def extend(self, values: Iterable[float]) -> int:
        """Append several samples; returns the new length."""
        self._samples.extend(float(v) for v in values)
        return len(self._samples)

    def trim(self, keep_last: int) -> None:
        """Drop all but the newest ``keep_last`` samples."""
        if keep_last < 0:
            raise ValueError(f"keep_last must be >= 0, got {keep_last}")
        while len(self._samples) > keep_last:
            self._samples.popleft()

    def clear(self) -> None:
        self._samples.clear()

    def snapshot(self) -> NDArray[np.floating]:
        """Independent float64 copy of the current contents."""
        return np.fromiter(self._samples, dtype=np.float64, count=len(self._samples))
