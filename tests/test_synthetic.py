"""Tests for synthetic traces and recording loaders."""

import json

import numpy as np
import pytest

from cpready.engine import Sample
from cpready.synthetic import compression_trace, load_recording, resting_trace


class TestCompressionTrace:

    def test_length_and_spacing(self):
        samples = compression_trace(110, 2.0, sample_rate_hz=30)
        assert len(samples) == 60
        assert all(isinstance(s, Sample) for s in samples)
        dts = np.diff([s.timestamp for s in samples])
        assert np.allclose(dts, 1 / 30)

    def test_gravity_on_z(self):
        samples = compression_trace(120, 5.0, amplitude=12.0)
        z = np.array([s.z for s in samples])
        assert z.mean() == pytest.approx(9.81, abs=0.2)
        assert z.max() == pytest.approx(9.81 + 12.0, abs=0.5)
        assert all(s.x == 0.0 and s.y == 0.0 for s in samples)

    def test_noise_is_reproducible(self):
        a = compression_trace(110, 1.0, noise_std=0.5, seed=3)
        b = compression_trace(110, 1.0, noise_std=0.5, seed=3)
        assert a == b
        assert any(s.x != 0.0 for s in a)

    def test_start_time(self):
        samples = compression_trace(100, 1.0, start_t=5.0)
        assert samples[0].timestamp == 5.0

    def test_invalid_bpm(self):
        with pytest.raises(ValueError, match="bpm"):
            compression_trace(0, 1.0)


def test_resting_trace():
    samples = resting_trace(1.0, sample_rate_hz=10)
    assert len(samples) == 10
    assert all(s.z == 9.81 for s in samples)


class TestLoadRecording:

    def test_csv(self, tmp_path):
        path = tmp_path / "rec.csv"
        path.write_text("t,x,y,z\n0.0,0.1,0.2,9.8\n0.033,0.0,0.0,12.5\n")
        samples = load_recording(str(path))
        assert samples == [
            Sample(0.1, 0.2, 9.8, 0.0),
            Sample(0.0, 0.0, 12.5, 0.033),
        ]

    def test_csv_timestamp_column(self, tmp_path):
        path = tmp_path / "rec.csv"
        path.write_text("timestamp,x,y,z\n1.5,0.0,0.0,9.81\n")
        assert load_recording(str(path)) == [Sample(0.0, 0.0, 9.81, 1.5)]

    def test_jsonl(self, tmp_path):
        path = tmp_path / "rec.jsonl"
        lines = [
            {"x": 0.0, "y": 0.0, "z": 9.81, "t": 0.0},
            {"x": 1.0, "y": 0.0, "z": 11.0, "timestamp": 0.033},
        ]
        path.write_text("\n".join(json.dumps(line) for line in lines) + "\n\n")
        samples = load_recording(str(path))
        assert samples[1] == Sample(1.0, 0.0, 11.0, 0.033)
