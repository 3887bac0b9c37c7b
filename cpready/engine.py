"""
Cadence estimation pipeline for CPReady.

One accelerometer sample goes through:
1. Per-axis Kalman filtering
2. Gravity-compensated signed magnitude
3. Push/release detection
4. Interval smoothing into a frequency
5. Guidance classification and push counting

``CadenceEngine.process`` returns what happened as a list of signals and
does not call anything outside itself; the session decides who hears about
them.
"""

import logging
import math
from typing import Any, Dict, List, NamedTuple, Optional

from . import config
from .cadence import CadenceEstimator, to_bpm
from .counters import SessionCounters
from .gravity import MagnitudeEstimator
from .guidance import GuidanceCategory, classify
from .kalman import AccelerationFilter
from .push_detector import PushDetector

logger = logging.getLogger(__name__)

SIGNAL_PUSH = "push"
SIGNAL_FREQUENCY = "frequency"
SIGNAL_GUIDANCE = "guidance"
SIGNAL_MOUTH_TO_MOUTH = "mouth_to_mouth"
SIGNAL_TICK = "tick"


class Sample(NamedTuple):
    """One accelerometer reading in m/s², timestamp in seconds."""
    x: float
    y: float
    z: float
    timestamp: float


class Signal(NamedTuple):
    kind: str
    t: float
    value: Any = None


def is_finite_sample(sample: Sample) -> bool:
    return all(math.isfinite(v) for v in (sample.x, sample.y, sample.z, sample.timestamp))


class CadenceEngine:
    """
    Sample-to-guidance pipeline with all per-session state.

    Usage:
        engine = CadenceEngine()
        for signal in engine.process(Sample(ax, ay, az, t)):
            ...
        engine.current_guidance()
    """

    def __init__(
        self,
        alpha: float = config.SMOOTHING_ALPHA,
        threshold: float = config.ACCELERATION_THRESHOLD,
        debounce_ms: float = config.DEBOUNCE_MS,
        gravity: float = config.GRAVITY,
        error_measure: float = config.ERROR_MEASURE,
        q: float = config.PROCESS_NOISE_Q,
        mouth_to_mouth_interval: int = config.MOUTH_TO_MOUTH_INTERVAL,
        mouth_to_mouth: bool = config.MOUTH_TO_MOUTH_ENABLED
    ):
        self.filters = AccelerationFilter(error_measure=error_measure, q=q)
        self.magnitude = MagnitudeEstimator(gravity=gravity)
        self.detector = PushDetector(threshold=threshold)
        self.cadence = CadenceEstimator(alpha=alpha, debounce_ms=debounce_ms)
        self.counters = SessionCounters(
            interval=mouth_to_mouth_interval, mouth_to_mouth=mouth_to_mouth
        )

        self.guidance = classify(self.cadence.smoothed_frequency_hz)
        self.samples = 0
        self.discarded_samples = 0
        self.last_magnitude = 0.0
        self.last_t: Optional[float] = None

    def process(self, sample: Sample) -> List[Signal]:
        """Run one sample through the whole pipeline."""
        if not is_finite_sample(sample):
            self.discarded_samples += 1
            logger.debug("Discarded non-finite sample %r", sample)
            return []

        self.samples += 1
        fx, fy, fz = self.filters.update(sample.x, sample.y, sample.z)
        value = self.magnitude.combine(fx, fy, fz)
        return self.process_magnitude(value, sample.timestamp)

    def process_magnitude(self, value: float, t: float) -> List[Signal]:
        """Run the pipeline from push detection down."""
        self.last_magnitude = value
        self.last_t = t

        if not self.detector.update(value, t):
            return []

        signals = [Signal(SIGNAL_PUSH, t)]
        hz = self.cadence.on_push_event(t)
        if hz is None:
            return signals

        signals.append(Signal(SIGNAL_FREQUENCY, t, hz))

        guidance = classify(hz)
        if guidance != self.guidance:
            self.guidance = guidance
            signals.append(Signal(SIGNAL_GUIDANCE, t, guidance))

        if self.counters.on_confirmed_push():
            signals.append(Signal(SIGNAL_MOUTH_TO_MOUTH, t, self.counters.interval))

        return signals

    def current_frequency_hz(self) -> float:
        return self.cadence.smoothed_frequency_hz

    def current_guidance(self) -> GuidanceCategory:
        return classify(self.cadence.smoothed_frequency_hz)

    def pushes_until_reminder(self) -> int:
        return self.counters.pushes_until_reminder()

    def reset(self):
        """Reset all state for new session."""
        self.filters.reset()
        self.detector.reset()
        self.cadence.reset()
        self.counters.reset()
        self.guidance = classify(self.cadence.smoothed_frequency_hz)
        self.samples = 0
        self.discarded_samples = 0
        self.last_magnitude = 0.0
        self.last_t = None

    def get_state(self) -> Dict[str, Any]:
        """Snapshot of the pipeline, for status messages and debugging."""
        hz = self.cadence.smoothed_frequency_hz
        return {
            "t": self.last_t,
            "samples": self.samples,
            "discarded_samples": self.discarded_samples,
            "filtered": self.filters.get_estimates(),
            "magnitude": self.last_magnitude,
            "push_active": self.detector.is_push_active,
            "push_events": self.detector.push_events,
            "last_push_at": self.cadence.last_push_at,
            "debounced_pushes": self.cadence.discarded,
            "frequency_hz": hz,
            "bpm": to_bpm(hz),
            "guidance": classify(hz).value,
            "push_count": self.counters.push_count,
            "pushes_until_reminder": self.counters.pushes_until_reminder(),
        }
