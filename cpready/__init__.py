"""
CPReady Cadence Engine

Real-time CPR compression feedback from a chest-worn accelerometer:
- AxisFilter / AccelerationFilter: per-axis Kalman smoothing
- MagnitudeEstimator: signed, gravity-compensated acceleration
- PushDetector: push/release detection with hysteresis
- CadenceEstimator: exponentially smoothed push frequency
- classify: frequency -> guidance for the rescuer
- SessionCounters: mouth-to-mouth reminder every N pushes
- Metronome: fixed-period audio cue on an injected scheduler
- CPRSession: one session tying the above to sensor and sinks

Usage:
    from cpready import CPRSession, AsyncioScheduler, Sample

    session = CPRSession(AsyncioScheduler(), tick_sink=audio, reminder_sink=ui)
    session.start_session()

    # For each sensor sample:
    session.ingest_sample(Sample(ax, ay, az, t))
    guidance = session.current_guidance()
    bpm = session.current_frequency_hz() * 60
"""

from .kalman import AxisFilter, AccelerationFilter
from .gravity import MagnitudeEstimator, DOWN_AXIS
from .push_detector import PushDetector
from .cadence import CadenceEstimator, to_bpm
from .guidance import GuidanceCategory, classify, instruction_for
from .counters import SessionCounters
from .scheduler import Scheduler, AsyncioScheduler, ManualScheduler
from .metronome import Metronome
from .engine import CadenceEngine, Sample, Signal
from .session import CPRSession, SessionNotActiveError

__all__ = [
    # Filtering
    'AxisFilter',
    'AccelerationFilter',

    # Magnitude
    'MagnitudeEstimator',
    'DOWN_AXIS',

    # Detection / cadence
    'PushDetector',
    'CadenceEstimator',
    'to_bpm',

    # Guidance
    'GuidanceCategory',
    'classify',
    'instruction_for',

    # Periodic side effects
    'SessionCounters',
    'Scheduler',
    'AsyncioScheduler',
    'ManualScheduler',
    'Metronome',

    # Pipeline / session
    'CadenceEngine',
    'Sample',
    'Signal',
    'CPRSession',
    'SessionNotActiveError',
]

__version__ = '1.0.0'
