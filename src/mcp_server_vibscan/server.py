"""MCP Server for rotating-machinery vibration scans.

Provides tools for spectral analysis and shaft-harmonic fault diagnosis
(unbalance, misalignment, looseness) of motion-intensity signals via the
Model Context Protocol.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Annotated, Literal
from uuid import uuid4

import numpy as np
from mcp.server.fastmcp import FastMCP
from pydantic import Field

from mcp_server_vibscan.analysis.analyzer import (
    FFT_SIZE,
    NYQUIST_GUARD,
    analyze_with_detail,
    frequency_resolution,
)
from mcp_server_vibscan.analysis.fault_detection import HARMONIC_THRESHOLDS
from mcp_server_vibscan.analysis.file_io import load_samples
from mcp_server_vibscan.analysis.history import SampleHistory
from mcp_server_vibscan.analysis.models import (
    AnalysisConfig,
    AnalysisResult,
    BlindScan,
)
from mcp_server_vibscan.analysis.test_signal import (
    FAULT_HARMONIC_PROFILES,
    generate_machine_signal,
    run_self_test,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Server instance
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "vibscan",
    instructions=(
        "Vibration scan server for rotating machinery. "
        "Diagnoses unbalance, misalignment, and mechanical looseness from "
        "a series of motion-intensity samples by comparing the 1x, 2x and 3x "
        "shaft harmonics with the spectral noise floor. Each analysis uses the "
        f"newest {FFT_SIZE} samples. "
        "Samples can be passed directly (analyze_vibration_signal), loaded from "
        "a file (diagnose_from_file), or accumulated in a scan session: "
        "(1) start_scan → get scan_id, (2) append_samples as data arrives, "
        "(3) finalize_scan with the sample rate and expected RPM. "
        "Use list_scans to see open sessions and close_scans to free them. "
        "Pass target_rpm = 0 for a blind scan that only reports the strongest "
        "spectral peak. Use run_self_test_scan to check the pipeline on a pure sine."
    ),
)


# ---------------------------------------------------------------------------
# Scan sessions — in-memory sample histories keyed by short IDs.  Capacity
# per session is configurable via the VIBSCAN_HISTORY_CAPACITY env var.
# ---------------------------------------------------------------------------

_HISTORY_CAPACITY = int(os.environ.get("VIBSCAN_HISTORY_CAPACITY", 8 * FFT_SIZE))

_scans: dict[str, SampleHistory] = {}


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:8]}"


def _create_scan() -> str:
    sid = _new_id("scan")
    _scans[sid] = SampleHistory(capacity=_HISTORY_CAPACITY)
    logger.info("Started scan %s (capacity %d)", sid, _HISTORY_CAPACITY)
    return sid


def _get_scan(scan_id: str) -> SampleHistory:
    try:
        return _scans[scan_id]
    except KeyError:
        raise ValueError(
            f"Unknown scan ID: {scan_id}. Call start_scan first."
        ) from None


def _spectrum_summary(spectrum: np.ndarray, resolution_hz: float) -> dict:
    """Compact summary of a spectrum (no raw data)."""
    top_idx = np.argsort(spectrum[1:])[::-1][:5] + 1
    top_peaks = [
        {
            "bin": int(i),
            "freq_hz": round(float(i * resolution_hz), 4),
            "amplitude": round(float(spectrum[i]), 6),
        }
        for i in top_idx if spectrum[i] > 0
    ]
    return {
        "n_bins": len(spectrum),
        "freq_resolution_hz": round(resolution_hz, 6),
        "max_freq_hz": round(len(spectrum) * resolution_hz, 4),
        "top_5_peaks": top_peaks,
    }


def _report(
    result: AnalysisResult,
    detail: dict | None,
    config: AnalysisConfig,
    include_spectrum: bool,
    **extra: object,
) -> str:
    resolution = frequency_resolution(config.sample_rate_hz)
    report: dict = {
        **extra,
        "config": {
            "sample_rate_hz": config.sample_rate_hz,
            "target_rpm": config.target_rpm,
            "mode": "blind" if isinstance(config.mode, BlindScan) else "harmonic",
        },
        "diagnosis": result.to_dict(include_spectrum=False),
        "spectrum_summary": _spectrum_summary(result.spectrum, resolution),
    }
    if detail is not None:
        report["harmonic_analysis"] = {
            "shaft_freq_hz": round(detail["shaft_freq_hz"], 4),
            "noise_floor": round(detail["noise_floor"], 8),
            "harmonics": [
                {
                    **h,
                    "expected_hz": round(h["expected_hz"], 4),
                    "amplitude": round(h["amplitude"], 6),
                    "ratio_to_noise": round(h["ratio_to_noise"], 3),
                }
                for h in detail["harmonics"]
            ],
            "thresholds": HARMONIC_THRESHOLDS,
        }
    if include_spectrum:
        report["spectrum"] = result.spectrum.tolist()
    return json.dumps(report, indent=2)


def _diagnose(
    samples: list[float] | np.ndarray,
    sample_rate_hz: float,
    target_rpm: float,
    include_spectrum: bool,
    **extra: object,
) -> str:
    config = AnalysisConfig(sample_rate_hz=sample_rate_hz, target_rpm=target_rpm)
    result, detail = analyze_with_detail(samples, config)
    logger.info("Diagnosis: %s (%s)", result.fault.name, result.message)
    return _report(result, detail, config, include_spectrum, **extra)


# ===================================================================
# RESOURCE: Fault Signatures Reference
# ===================================================================

FAULT_SIGNATURES_REFERENCE = f"""# Shaft-Harmonic Fault Signature Reference

All ratios are harmonic amplitude divided by the spectral noise floor
(mean magnitude of all other bins, never below 1e-4).

## Mass Unbalance
- **Signature**: Strong 1x (shaft frequency) component, quiet 2x and 3x
- **Rule**: r_1x > {HARMONIC_THRESHOLDS["unbalance_1x"]} and r_2x, r_3x < {HARMONIC_THRESHOLDS["unbalance_max_nx"]}

## Shaft Misalignment
- **Signature**: 2x component dominates 1x
- **Rule**: r_2x > r_1x and r_2x > {HARMONIC_THRESHOLDS["misalignment_2x"]}

## Mechanical Looseness
- **Signature**: "Harmonic forest", every shaft harmonic raised
- **Rule**: r_1x, r_2x, r_3x all > {HARMONIC_THRESHOLDS["looseness_nx"]}

## Measurement Limits
- Analysis window: {FFT_SIZE} samples, Hann-windowed, DC removed
- Frequency resolution: sample_rate / {FFT_SIZE}; peaks refined by parabolic interpolation
- The 1x frequency (RPM / 60) must stay below {NYQUIST_GUARD} x Nyquist, otherwise
  the scan is reported as unmeasurable; raise the sample rate
- Rules are evaluated in the order above; the first match wins
"""


@mcp.resource("vibscan://fault-signatures")
def fault_signatures_resource() -> str:
    """Reference table of shaft-harmonic fault signatures and thresholds."""
    return FAULT_SIGNATURES_REFERENCE


# ===================================================================
# TOOL 1: Analyze Raw Samples
# ===================================================================

@mcp.tool()
def analyze_vibration_signal(
    samples: Annotated[list[float], Field(description=f"Motion-intensity samples, oldest first. Only the newest {FFT_SIZE} are used.")],
    sample_rate_hz: Annotated[float, Field(description="Sampling rate in Hz (e.g. camera frame rate)", gt=0)],
    target_rpm: Annotated[float, Field(description="Expected shaft speed in RPM. 0 for a blind peak scan")] = 0.0,
    include_spectrum: Annotated[bool, Field(description="Return the full magnitude spectrum")] = False,
) -> str:
    """Diagnose a rotating machine from a series of motion-intensity samples.

    Runs DC removal, Hann windowing, a fixed-size FFT and sub-bin peak
    refinement, then classifies the 1x/2x/3x shaft harmonics against the
    noise floor. With target_rpm = 0 only the dominant frequency is reported.
    """
    return _diagnose(samples, sample_rate_hz, target_rpm, include_spectrum)


# ===================================================================
# TOOL 2: Self-Test
# ===================================================================

@mcp.tool()
def run_self_test_scan(
    frequency_hz: Annotated[float, Field(description="Frequency of the injected sine in Hz")],
    sample_rate_hz: Annotated[float, Field(description="Sampling rate in Hz", gt=0)] = 30.0,
) -> str:
    """Blind-scan a synthetic pure sine to verify the analysis pipeline.

    The reported dominant frequency should match frequency_hz to within a
    fraction of the frequency resolution.
    """
    result = run_self_test(frequency_hz, sample_rate_hz)
    error_hz = result.dominant_frequency_hz - frequency_hz
    return json.dumps({
        "injected_frequency_hz": frequency_hz,
        "measured_frequency_hz": round(result.dominant_frequency_hz, 6),
        "error_hz": round(error_hz, 6),
        "freq_resolution_hz": round(frequency_resolution(sample_rate_hz), 6),
        "diagnosis": result.to_dict(include_spectrum=False),
    }, indent=2)


# ===================================================================
# TOOLS 3–9: Scan Sessions
# ===================================================================

@mcp.tool()
def start_scan() -> str:
    """Open a new scan session that accumulates motion-intensity samples.

    Returns a scan_id to pass to append_samples, get_sample_count,
    finalize_scan and reset_scan.
    """
    sid = _create_scan()
    return json.dumps({
        "scan_id": sid,
        "capacity": _HISTORY_CAPACITY,
        "required_samples": FFT_SIZE,
    }, indent=2)


@mcp.tool()
def append_samples(
    scan_id: Annotated[str, Field(description="ID returned by start_scan")],
    samples: Annotated[list[float], Field(description="New motion-intensity samples, oldest first")],
) -> str:
    """Append samples to a scan session. The oldest samples drop out at capacity."""
    history = _get_scan(scan_id)
    n = history.extend(samples)
    return json.dumps({
        "scan_id": scan_id,
        "n_samples": n,
        "ready": n >= FFT_SIZE,
    }, indent=2)


@mcp.tool()
def get_sample_count(
    scan_id: Annotated[str, Field(description="ID returned by start_scan")],
) -> str:
    """Report how many samples a scan session holds."""
    n = len(_get_scan(scan_id))
    return json.dumps({
        "scan_id": scan_id,
        "n_samples": n,
        "required_samples": FFT_SIZE,
        "ready": n >= FFT_SIZE,
    }, indent=2)


@mcp.tool()
def finalize_scan(
    scan_id: Annotated[str, Field(description="ID returned by start_scan")],
    sample_rate_hz: Annotated[float, Field(description="Sampling rate in Hz", gt=0)],
    target_rpm: Annotated[float, Field(description="Expected shaft speed in RPM. 0 for a blind peak scan")] = 0.0,
    include_spectrum: Annotated[bool, Field(description="Return the full magnitude spectrum")] = False,
) -> str:
    """Diagnose the newest samples of a scan session.

    The session is left intact, so more samples can be appended and the
    scan finalized again.
    """
    history = _get_scan(scan_id)
    return _diagnose(
        history.snapshot(), sample_rate_hz, target_rpm, include_spectrum,
        scan_id=scan_id, n_samples=len(history),
    )


@mcp.tool()
def reset_scan(
    scan_id: Annotated[str, Field(description="ID returned by start_scan")],
    close: Annotated[bool, Field(description="Also close the session and free its ID")] = False,
) -> str:
    """Discard all samples of a scan session, optionally closing it."""
    history = _get_scan(scan_id)
    history.clear()
    if close:
        del _scans[scan_id]
    logger.info("Reset scan %s (closed=%s)", scan_id, close)
    return json.dumps({"scan_id": scan_id, "n_samples": 0, "closed": close}, indent=2)


@mcp.tool()
def list_scans() -> str:
    """List all open scan sessions with their sample counts.

    Sessions created by start_scan and generate_test_vibration_signal stay
    open until closed with reset_scan or close_scans.
    """
    items = [
        {
            "scan_id": sid,
            "n_samples": len(history),
            "ready": len(history) >= FFT_SIZE,
        }
        for sid, history in _scans.items()
    ]
    return json.dumps({
        "scans": items,
        "total": len(items),
        "capacity": _HISTORY_CAPACITY,
    }, indent=2)


@mcp.tool()
def close_scans(
    scan_id: Annotated[str | None, Field(description="ID of a specific session to close, or omit to close all", default=None)] = None,
) -> str:
    """Close scan sessions and free their samples.

    Pass a specific scan_id to close one session, or omit to close all.
    """
    if scan_id is not None:
        _get_scan(scan_id)
        del _scans[scan_id]
        logger.info("Closed scan %s", scan_id)
        return json.dumps({"closed": scan_id, "remaining": len(_scans)})

    count = len(_scans)
    _scans.clear()
    logger.info("Closed all %d scans", count)
    return json.dumps({"closed": "all", "scans_removed": count})


# ===================================================================
# TOOL 10: Generate Test Signal
# ===================================================================

@mcp.tool()
def generate_test_vibration_signal(
    sample_rate_hz: Annotated[float, Field(description="Sampling rate in Hz", gt=0)] = 60.0,
    target_rpm: Annotated[float, Field(description="Shaft speed in RPM")] = 600.0,
    n_samples: Annotated[int, Field(description="Number of samples", ge=1)] = FFT_SIZE,
    fault: Annotated[str, Field(description=f"Fault signature: {', '.join(FAULT_HARMONIC_PROFILES)}")] = "none",
    noise_level: Annotated[float, Field(description="Noise standard deviation", ge=0)] = 0.01,
    offset: Annotated[float, Field(description="Constant intensity offset")] = 1.0,
) -> str:
    """Generate a synthetic motion-intensity signal into a new scan session.

    Creates shaft harmonics matching the chosen fault signature on top of
    a constant offset and Gaussian noise. Finalize the returned scan_id with
    the same sample rate and RPM to check the diagnosis.
    """
    x = generate_machine_signal(
        sample_rate_hz, target_rpm,
        n_samples=n_samples,
        fault=fault,
        noise_std=noise_level,
        offset=offset,
    )
    sid = _create_scan()
    n = _scans[sid].extend(x)
    return json.dumps({
        "scan_id": sid,
        "n_samples": n,
        "sample_rate_hz": sample_rate_hz,
        "target_rpm": target_rpm,
        "fault_injected": fault,
        "mean": round(float(np.mean(x)), 6),
        "std": round(float(np.std(x)), 6),
    }, indent=2)


# ===================================================================
# TOOL 11: Diagnose from File (one-shot)
# ===================================================================

@mcp.tool()
def diagnose_from_file(
    file_path: Annotated[str, Field(description="Absolute path to the samples file (CSV, TSV, or NPY)")],
    sample_rate_hz: Annotated[float, Field(description="Sampling rate in Hz", gt=0)],
    target_rpm: Annotated[float, Field(description="Expected shaft speed in RPM. 0 for a blind peak scan")] = 0.0,
    column: Annotated[int | str, Field(description="Column index or CSV header name with the samples")] = 0,
    include_spectrum: Annotated[bool, Field(description="Return the full magnitude spectrum")] = False,
) -> str:
    """Load a recorded motion-intensity series and diagnose it in one step."""
    data = load_samples(file_path, column=column)
    return _diagnose(
        data["samples"], sample_rate_hz, target_rpm, include_spectrum,
        file_path=data["file_path"], n_samples=data["n_samples"],
    )


# ===================================================================
# PROMPT: Diagnostic Workflow
# ===================================================================

@mcp.prompt()
def diagnose_rotating_machine(
    target_rpm: str = "1200",
    sample_rate_hz: str = "60",
) -> str:
    """Guided workflow for a shaft-harmonic vibration diagnosis."""
    return f"""You are diagnosing a rotating machine expected to run at {target_rpm} RPM,
observed at {sample_rate_hz} samples per second.

Follow these steps:

1. Read the **vibscan://fault-signatures** resource for the decision rules.

2. Run **run_self_test_scan** with a frequency below {sample_rate_hz} / 2 Hz and
   confirm the measured frequency is within one resolution step.

3. Collect samples:
   - `start_scan` then `append_samples` as data arrives, or
   - `diagnose_from_file` for a recorded series, or
   - `analyze_vibration_signal` with the samples directly.

4. Call **finalize_scan** (or the one-shot tools) with target_rpm={target_rpm}.
   If the result is "unmeasurable", the shaft frequency is too close to
   Nyquist; ask for a higher sample rate.

5. Run a blind scan (target_rpm=0) if the dominant frequency disagrees with
   the expected shaft speed.

Report the diagnosis, the harmonic ratios behind it, and a maintenance
recommendation.
"""


# ---------------------------------------------------------------------------
# Server entry
# ---------------------------------------------------------------------------

def serve(transport: Literal["stdio", "sse", "streamable-http"] = "stdio") -> None:
    """Start the vibration-scan MCP server."""
    mcp.run(transport=transport)
