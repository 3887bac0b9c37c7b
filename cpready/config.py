"""
Configuration for CPReady.

Every tunable is read once from the environment (prefix ``CPREADY_``) at
import time. Components take these values as constructor defaults, so tests
and callers can still override them per instance.
"""

import os
from typing import Dict, Any


def _env_str(name: str, default: str) -> str:
    value = os.getenv(f"CPREADY_{name}", "").strip()
    return value or default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(f"CPREADY_{name}", "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"CPREADY_{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(f"CPREADY_{name}", "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"CPREADY_{name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(f"CPREADY_{name}", "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


# =============================================================================
# Sensor
# =============================================================================

# Rate requested from the wearable; the core never depends on it directly
SAMPLE_RATE_HZ = _env_float("SAMPLE_RATE_HZ", 30.0)

# Per-axis Kalman filter
ERROR_MEASURE = _env_float("ERROR_MEASURE", 5.0)
PROCESS_NOISE_Q = _env_float("PROCESS_NOISE_Q", 0.9)

# m/s²
GRAVITY = _env_float("GRAVITY", 9.81)

# =============================================================================
# Push detection / cadence
# =============================================================================

ACCELERATION_THRESHOLD = _env_float("ACCELERATION_THRESHOLD", 2.0)
DEBOUNCE_MS = _env_float("DEBOUNCE_MS", 20.0)
SMOOTHING_ALPHA = _env_float("SMOOTHING_ALPHA", 0.5)

# =============================================================================
# Periodic side effects
# =============================================================================

MOUTH_TO_MOUTH_INTERVAL = _env_int("MOUTH_TO_MOUTH_INTERVAL", 30)
MOUTH_TO_MOUTH_ENABLED = _env_bool("MOUTH_TO_MOUTH_ENABLED", True)

# 545 ms ≈ 110 bpm. 500 ms (120 bpm) is the other cadence seen in the field.
METRONOME_PERIOD_MS = _env_float("METRONOME_PERIOD_MS", 545.0)
METRONOME_ON_START = _env_bool("METRONOME_ON_START", False)
METRONOME_WAVEFORM = _env_int("METRONOME_WAVEFORM", 1)
METRONOME_TONE_HZ = _env_float("METRONOME_TONE_HZ", 440.0)
METRONOME_VOLUME = _env_float("METRONOME_VOLUME", 0.2)

# =============================================================================
# UI bridge
# =============================================================================

HOST = _env_str("HOST", "0.0.0.0")
PORT = _env_int("PORT", 8765)
STATUS_INTERVAL_S = _env_float("STATUS_INTERVAL_S", 0.1)

LOG_LEVEL = _env_str("LOG_LEVEL", "INFO").upper()


def thresholds() -> Dict[str, Any]:
    """Active detection and timing constants, for status reporting."""
    return {
        "sample_rate_hz": SAMPLE_RATE_HZ,
        "error_measure": ERROR_MEASURE,
        "process_noise_q": PROCESS_NOISE_Q,
        "gravity": GRAVITY,
        "acceleration_threshold": ACCELERATION_THRESHOLD,
        "debounce_ms": DEBOUNCE_MS,
        "smoothing_alpha": SMOOTHING_ALPHA,
        "mouth_to_mouth_interval": MOUTH_TO_MOUTH_INTERVAL,
        "metronome_period_ms": METRONOME_PERIOD_MS,
    }
