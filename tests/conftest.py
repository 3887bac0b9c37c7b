"""Pytest configuration and fixtures for CPReady tests."""

import os
import sys

import pytest

# Add repo root to path for testing without an install
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from cpready.engine import Sample
from cpready.scheduler import ManualScheduler


class RecordingSink:
    """Tick and reminder sink that only counts calls."""

    def __init__(self):
        self.ticks = 0
        self.reminders = 0
        self.tones = []

    def emit_tick(self):
        self.ticks += 1

    def configure_tone(self, waveform, frequency_hz, volume):
        self.tones.append((waveform, frequency_hz, volume))

    def on_mouth_to_mouth_due(self):
        self.reminders += 1


class FakeSensor:
    """Push-style sensor stream with subscribe/unsubscribe."""

    def __init__(self):
        self.callbacks = []
        self.unsubscribed = 0

    def subscribe(self, callback):
        self.callbacks.append(callback)

        def unsubscribe():
            if callback in self.callbacks:
                self.callbacks.remove(callback)
            self.unsubscribed += 1

        return unsubscribe

    def emit(self, sample):
        for callback in list(self.callbacks):
            callback(sample)


@pytest.fixture
def clock():
    """Virtual clock starting at t=0."""
    return ManualScheduler()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def sensor():
    return FakeSensor()


@pytest.fixture
def resting_sample():
    """Sensor lying flat, gravity on +z only."""
    return Sample(0.0, 0.0, 9.81, 0.0)
