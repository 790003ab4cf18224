"""Shared test fixtures for vibration-scan tests."""

from __future__ import annotations

import pytest

from mcp_server_vibscan.analysis.models import AnalysisConfig


@pytest.fixture
def bin_aligned_config() -> AnalysisConfig:
    """102.4 Hz sampling → 0.2 Hz bins; 600 RPM puts 1×/2×/3× on bins 50/100/150."""
    return AnalysisConfig(sample_rate_hz=102.4, target_rpm=600.0)


@pytest.fixture
def camera_config() -> AnalysisConfig:
    """30 fps camera, blind scan."""
    return AnalysisConfig(sample_rate_hz=30.0, target_rpm=0.0)
