"""Vibration analysis library — spectral pipeline and fault classification."""

from mcp_server_vibscan.analysis.analyzer import (
    FFT_SIZE,
    analyze,
)
from mcp_server_vibscan.analysis.history import SampleHistory
from mcp_server_vibscan.analysis.models import (
    AnalysisConfig,
    AnalysisResult,
    FaultKind,
)

__all__ = [
    "FFT_SIZE",
    "analyze",
    "AnalysisConfig",
    "AnalysisResult",
    "FaultKind",
    "SampleHistory",
]
