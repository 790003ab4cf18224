"""Data model for vibration scans.

Scan configuration, the fault taxonomy, and the diagnosis record returned
by :func:`mcp_server_vibscan.analysis.analyzer.analyze`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Union

import numpy as np
from numpy.typing import NDArray


class FaultKind(IntEnum):
    """Diagnosis outcome. The integer value is the wire fault code."""

    NONE = 0
    UNBALANCE = 1
    MISALIGNMENT = 2
    LOOSENESS = 3
    UNMEASURABLE = 4
    INSUFFICIENT_DATA = 5

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class BlindScan:
    """No reference speed: report the strongest spectral peak."""


@dataclass(frozen=True)
class HarmonicScan:
    """Reference speed known: inspect the 1×, 2× and 3× shaft harmonics.

    Attributes:
        shaft_freq_hz: Fundamental rotational frequency (RPM / 60).
    """

    shaft_freq_hz: float


ScanMode = Union[BlindScan, HarmonicScan]


@dataclass(frozen=True)
class AnalysisConfig:
    """Per-call analysis settings.

    Attributes:
        sample_rate_hz: Rate at which the motion-intensity samples were taken.
        target_rpm: Expected shaft speed. ``<= 0`` selects a blind scan.
    """

    sample_rate_hz: float
    target_rpm: float = 0.0

    def __post_init__(self) -> None:
        if not self.sample_rate_hz > 0:
            raise ValueError(f"Sample rate must be > 0, got {self.sample_rate_hz}")

    @property
    def mode(self) -> ScanMode:
        if self.target_rpm <= 0:
            return BlindScan()
        return HarmonicScan(shaft_freq_hz=self.target_rpm / 60.0)

    @property
    def nyquist_hz(self) -> float:
        return self.sample_rate_hz / 2.0


@dataclass(frozen=True)
class AnalysisResult:
    """Diagnosis produced by a single analysis call.

    Attributes:
        fault: Diagnosed condition.
        dominant_frequency_hz: Refined frequency of the reported peak.
        peak_amplitude: Normalised magnitude of the reported peak bin.
        confidence: Reserved; always 0.0.
        message: Human-readable summary.
        spectrum: Normalised magnitude spectrum, ``FFT_SIZE // 2`` bins.
            Keyword-only and always required.
    """

    fault: FaultKind
    dominant_frequency_hz: float = 0.0
    peak_amplitude: float = 0.0
    confidence: float = 0.0
    message: str = ""
    spectrum: NDArray[np.floating] = field(kw_only=True)

    def to_dict(self, include_spectrum: bool = True) -> dict:
        d: dict = {
            "fault": self.fault.label,
            "fault_code": int(self.fault),
            "dominant_frequency_hz": float(self.dominant_frequency_hz),
            "peak_amplitude": float(self.peak_amplitude),
            "confidence": float(self.confidence),
            "message": self.message,
            "n_bins": len(self.spectrum),
        }
        if include_spectrum:
            d["spectrum"] = self.spectrum.tolist()
        return d
