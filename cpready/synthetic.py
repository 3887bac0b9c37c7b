"""
Synthetic compression traces for CPReady.

Generates accelerometer samples for a sensor worn on the chest during CPR:
gravity along +z plus a sinusoidal compression at the requested rate, with
optional Gaussian noise on every axis. Used by the offline runner and the
tests in place of a live sensor.
"""

import json
from typing import List, Optional

import numpy as np

from . import config
from .engine import Sample


def compression_trace(
    bpm: float,
    duration_s: float,
    sample_rate_hz: float = config.SAMPLE_RATE_HZ,
    amplitude: float = 12.0,
    noise_std: float = 0.0,
    gravity: float = config.GRAVITY,
    start_t: float = 0.0,
    seed: Optional[int] = None
) -> List[Sample]:
    """
    Build a list of Samples for steady compressions.

    Args:
        bpm: Compression rate
        duration_s: Length of the trace in seconds
        sample_rate_hz: Sensor rate
        amplitude: Peak compression acceleration along z (m/s²)
        noise_std: Standard deviation of per-axis Gaussian noise (m/s²)
        gravity: Static acceleration on z
        start_t: Timestamp of the first sample
        seed: Seed for the noise generator

    Returns:
        Samples with timestamps in seconds
    """
    if bpm <= 0:
        raise ValueError("bpm must be positive")
    if sample_rate_hz <= 0:
        raise ValueError("sample_rate_hz must be positive")

    n = int(round(duration_s * sample_rate_hz))
    t = start_t + np.arange(n) / sample_rate_hz
    phase = 2.0 * np.pi * (bpm / 60.0) * (t - start_t)

    ax = np.zeros(n)
    ay = np.zeros(n)
    az = gravity + amplitude * np.sin(phase)

    if noise_std > 0:
        rng = np.random.default_rng(seed)
        ax = ax + rng.normal(0.0, noise_std, n)
        ay = ay + rng.normal(0.0, noise_std, n)
        az = az + rng.normal(0.0, noise_std, n)

    return [
        Sample(float(x), float(y), float(z), float(ts))
        for x, y, z, ts in zip(ax, ay, az, t)
    ]


def resting_trace(
    duration_s: float,
    sample_rate_hz: float = config.SAMPLE_RATE_HZ,
    gravity: float = config.GRAVITY,
    start_t: float = 0.0
) -> List[Sample]:
    """Sensor lying still: gravity on z only, e.g. a mouth-to-mouth break."""
    n = int(round(duration_s * sample_rate_hz))
    t = start_t + np.arange(n) / sample_rate_hz
    return [Sample(0.0, 0.0, float(gravity), float(ts)) for ts in t]


def load_recording(path: str) -> List[Sample]:
    """
    Load a recorded stream.

    Accepts CSV with a header containing x, y, z and t (or timestamp)
    columns, or JSONL with one ``{"x", "y", "z", "t"}`` object per line.
    """
    samples: List[Sample] = []
    if path.endswith(".jsonl"):
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                msg = json.loads(line)
                t = msg.get("t", msg.get("timestamp"))
                samples.append(Sample(float(msg["x"]), float(msg["y"]), float(msg["z"]), float(t)))
        return samples

    data = np.genfromtxt(path, delimiter=",", names=True, dtype=float)
    names = data.dtype.names or ()
    t_col = "t" if "t" in names else "timestamp"
    for row in np.atleast_1d(data):
        samples.append(Sample(float(row["x"]), float(row["y"]), float(row["z"]), float(row[t_col])))
    return samples
