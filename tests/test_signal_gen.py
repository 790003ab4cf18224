"""Tests for synthetic test signal generation."""

import numpy as np
import pytest

from mcp_server_vibscan.analysis.analyzer import FFT_SIZE
from mcp_server_vibscan.analysis.models import FaultKind
from mcp_server_vibscan.analysis.test_signal import (
    FAULT_HARMONIC_PROFILES,
    generate_machine_signal,
    generate_sine,
    run_self_test,
)


class TestGenerateSine:
    def test_basic_generation(self):
        x = generate_sine(5.0, 30.0)
        assert len(x) == FFT_SIZE
        assert x[0] == 0.0
        assert np.max(np.abs(x)) <= 1.0

    def test_amplitude(self):
        x = generate_sine(1.0, 100.0, n_samples=100, amplitude=2.0)
        assert np.max(np.abs(x)) == pytest.approx(2.0, abs=0.01)

    def test_invalid_rate(self):
        with pytest.raises(ValueError, match="Sample rate"):
            generate_sine(5.0, 0.0)


class TestGenerateMachineSignal:
    def test_length_and_offset(self):
        x = generate_machine_signal(60.0, 600.0, n_samples=600, fault="unbalance", offset=3.0)
        assert len(x) == 600
        assert np.mean(x) == pytest.approx(3.0, abs=0.01)

    def test_healthy_without_noise_is_constant(self):
        x = generate_machine_signal(60.0, 600.0, fault="none", offset=1.5)
        np.testing.assert_array_equal(x, 1.5)

    def test_noise_is_seeded(self):
        a = generate_machine_signal(60.0, 600.0, noise_std=0.1, seed=3)
        b = generate_machine_signal(60.0, 600.0, noise_std=0.1, seed=3)
        np.testing.assert_array_equal(a, b)

    def test_misalignment_has_2x(self):
        fs = 102.4
        x = generate_machine_signal(fs, 600.0, fault="Misalignment")
        amps = np.abs(np.fft.rfft(x))
        freqs = np.fft.rfftfreq(len(x), 1.0 / fs)
        assert freqs[np.argmax(amps)] == pytest.approx(20.0, abs=0.2)

    def test_unknown_fault(self):
        with pytest.raises(ValueError, match="Unknown fault"):
            generate_machine_signal(60.0, 600.0, fault="cavitation")

    def test_profiles(self):
        assert set(FAULT_HARMONIC_PROFILES) == {"none", "unbalance", "misalignment", "looseness"}


class TestRunSelfTest:
    def test_recovers_frequency(self):
        result = run_self_test(4.2, 30.0)
        assert result.fault is FaultKind.NONE
        assert result.dominant_frequency_hz == pytest.approx(4.2, abs=30.0 / FFT_SIZE)

    def test_window_size(self):
        result = run_self_test(4.2, 30.0, window_size=256)
        assert len(result.spectrum) == 128
