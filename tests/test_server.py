"""Tests for the WebSocket bridge command and sample handling."""

import math

import pytest

from cpready.scheduler import ManualScheduler
from cpready.server import apply_command, apply_sample, json_safe, parse_sample
from cpready.session import CPRSession
from cpready.synthetic import compression_trace


@pytest.fixture
def cpr():
    return CPRSession(ManualScheduler(), metronome_period_ms=500)


def cmd(action, **kwargs):
    return {"type": "cmd", "action": action, **kwargs}


class TestApplyCommand:

    def test_start_stop(self, cpr):
        ack = apply_command(cpr, cmd("start"))
        assert ack["ok"] is True
        assert ack["session_id"] == cpr.session_id
        assert "note" not in ack

        ack = apply_command(cpr, cmd("stop"))
        assert ack["ok"] is True
        assert ack["bpm"] == 0
        assert not cpr.active

    def test_start_twice_restarts(self, cpr):
        apply_command(cpr, cmd("start"))
        ack = apply_command(cpr, cmd("start"))
        assert ack["note"] == "restarted"

    def test_stop_inactive(self, cpr):
        ack = apply_command(cpr, cmd("stop"))
        assert ack == {"type": "ack", "action": "stop", "ok": True, "note": "already_inactive"}

    def test_metronome(self, cpr):
        assert apply_command(cpr, cmd("metronome"))["error"] == "not_active"

        apply_command(cpr, cmd("start"))
        assert apply_command(cpr, cmd("metronome"))["running"] is True
        assert apply_command(cpr, cmd("metronome"))["running"] is False
        assert apply_command(cpr, cmd("metronome", enabled=True))["running"] is True
        assert cpr.metronome.running
        assert apply_command(cpr, cmd("metronome", enabled=False))["running"] is False

    def test_mouth_to_mouth(self, cpr):
        ack = apply_command(cpr, cmd("mouth_to_mouth", enabled=False))
        assert ack["enabled"] is False
        assert cpr.engine.counters.mouth_to_mouth is False

    def test_ack_reminder(self, cpr):
        apply_command(cpr, cmd("start"))
        for sample in compression_trace(110, 5.0):
            cpr.ingest_sample(sample)
        ack = apply_command(cpr, cmd("ack_reminder"))
        assert ack["acknowledged"] is False
        assert ack["pushes_until_reminder"] < 30

        for sample in compression_trace(110, 15.0, start_t=5.0):
            cpr.ingest_sample(sample)
        assert cpr.reminder_pending
        ack = apply_command(cpr, cmd("ack_reminder"))
        assert ack["acknowledged"] is True
        assert ack["pushes_until_reminder"] == 30

    def test_status(self, cpr):
        status = apply_command(cpr, cmd("status"))
        assert status["type"] == "status"
        assert status["active"] is False

    def test_unknown(self, cpr):
        ack = apply_command(cpr, cmd("dance"))
        assert ack["ok"] is False
        assert ack["error"] == "unknown_action"


class TestApplySample:

    def test_rejected_without_session(self, cpr):
        out = apply_sample(cpr, {"type": "sample", "x": 0, "y": 0, "z": 9.81, "t": 0})
        assert out["type"] == "error"
        assert "No active CPR session" in out["error"]

    def test_malformed(self, cpr):
        apply_command(cpr, cmd("start"))
        out = apply_sample(cpr, {"type": "sample", "x": "a", "y": 0, "z": 9.81, "t": 0})
        assert out["where"] == "sample"
        assert cpr.engine.samples == 0

    def test_guidance_events(self, cpr):
        apply_command(cpr, cmd("start"))
        events = []
        for s in compression_trace(110, 10.0):
            out = apply_sample(cpr, {"type": "sample", "x": s.x, "y": s.y, "z": s.z, "t": s.timestamp})
            events.extend(out)
        assert events
        assert all(e["type"] == "guidance" for e in events)
        assert events[-1]["guidance"] == "fine"


def test_parse_sample_timestamp_key():
    sample = parse_sample({"x": 1, "y": 2, "z": 3, "timestamp": 4})
    assert tuple(sample) == (1.0, 2.0, 3.0, 4.0)
    with pytest.raises(ValueError, match="bad sample"):
        parse_sample({"x": 1, "y": 2})


def test_json_safe():
    assert json_safe({"a": math.nan, "b": [1, math.inf], "c": (1.5,)}) == {
        "a": None, "b": [1, None], "c": [1.5],
    }
