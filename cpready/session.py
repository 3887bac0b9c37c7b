"""
CPR session for CPReady.

Owns one CadenceEngine, the metronome and the sensor subscription, and
routes engine signals to the outside world:
- tick sink: ``emit_tick()`` each metronome period
- reminder sink: ``on_mouth_to_mouth_due()`` every N confirmed pushes
- listeners: any callable, receives every Signal (UI updates)

Samples, metronome ticks and lifecycle calls may come from different
threads (BLE callbacks, timers), so every mutation happens under one lock.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from . import config
from .cadence import to_bpm
from .engine import (
    CadenceEngine,
    Sample,
    Signal,
    SIGNAL_MOUTH_TO_MOUTH,
    SIGNAL_TICK,
)
from .guidance import GuidanceCategory, instruction_for
from .metronome import Metronome
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class SessionNotActiveError(RuntimeError):
    """Raised when samples arrive while no session is running."""


def make_session_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%SZ")


class CPRSession:
    """
    One rescuer, one sensor, at most one active session.

    Usage:
        session = CPRSession(scheduler, tick_sink=audio, reminder_sink=ui)
        session.start_session()
        session.ingest_sample(Sample(ax, ay, az, t))
        session.current_guidance()
        session.stop_session()
    """

    def __init__(
        self,
        scheduler: Scheduler,
        tick_sink=None,
        reminder_sink=None,
        sensor=None,
        connected: Optional[Callable[[], bool]] = None,
        alpha: float = config.SMOOTHING_ALPHA,
        mouth_to_mouth_interval: int = config.MOUTH_TO_MOUTH_INTERVAL,
        mouth_to_mouth: bool = config.MOUTH_TO_MOUTH_ENABLED,
        metronome_period_ms: float = config.METRONOME_PERIOD_MS,
        metronome_on_start: bool = config.METRONOME_ON_START
    ):
        """
        Args:
            scheduler: Runs the metronome timer
            tick_sink: Object with ``emit_tick()``; ``configure_tone()`` is
                       called on metronome start when the sink has one
            reminder_sink: Object with ``on_mouth_to_mouth_due()``
            sensor: Stream with ``subscribe(callback) -> unsubscribe``;
                    subscribed for the lifetime of each session
            connected: Connectivity flag, read-only to the session
            alpha: Cadence smoothing weight
            mouth_to_mouth_interval: Confirmed pushes between reminders
            mouth_to_mouth: Whether reminders are emitted at all
            metronome_period_ms: Tick period
            metronome_on_start: Start the metronome with each session
        """
        self.tick_sink = tick_sink
        self.reminder_sink = reminder_sink
        self.sensor = sensor
        self.connected = connected or (lambda: True)
        self.metronome_on_start = metronome_on_start
        self.listeners: List[Callable[[Signal], None]] = []

        self.engine = CadenceEngine(
            alpha=alpha,
            mouth_to_mouth_interval=mouth_to_mouth_interval,
            mouth_to_mouth=mouth_to_mouth,
        )
        self._lock = threading.RLock()
        self.metronome = Metronome(
            scheduler,
            on_tick=self._on_tick,
            period_ms=metronome_period_ms,
            connected=self.connected,
            lock=self._lock,
        )

        self._generation = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

        self.active = False
        self.session_id: Optional[str] = None
        self.reminder_pending = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start_session(self) -> str:
        """
        Start a fresh session and return its id.

        Starting while a session is active stops that one first.
        """
        with self._lock:
            if self.active:
                self._stop_locked()

            self._generation += 1
            self.engine.reset()
            self.reminder_pending = False
            self.session_id = make_session_id()
            self.active = True

            if not self.connected():
                logger.warning("Session %s started without a connected sensor", self.session_id)

            if self.sensor is not None:
                generation = self._generation
                self._unsubscribe = self.sensor.subscribe(
                    lambda sample: self._on_sensor_sample(sample, generation)
                )

            if self.metronome_on_start:
                self._start_metronome_locked()

            logger.info("CPR session %s started", self.session_id)
            return self.session_id

    def stop_session(self) -> bool:
        """Stop the active session. Returns False (no-op) if none is active."""
        with self._lock:
            if not self.active:
                return False
            self._stop_locked()
            return True

    def _stop_locked(self):
        self._generation += 1
        self.metronome.stop()
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()

        logger.info(
            "CPR session %s stopped: %d pushes, %.0f bpm, %d discarded samples",
            self.session_id,
            self.engine.detector.push_events,
            to_bpm(self.engine.current_frequency_hz()),
            self.engine.discarded_samples,
        )
        self.active = False
        self.reminder_pending = False
        self.engine.counters.reset()
        self.engine.cadence.forget_last_push()

    # =========================================================================
    # Samples
    # =========================================================================

    def ingest_sample(self, sample: Sample) -> List[Signal]:
        """
        Process one sample and dispatch the resulting signals.

        Raises:
            SessionNotActiveError: if no session is running
        """
        with self._lock:
            if not self.active:
                raise SessionNotActiveError("No active CPR session; call start_session() first")
            signals = self.engine.process(sample)
            self._dispatch(signals)
            return signals

    def _on_sensor_sample(self, sample, generation: int):
        # Notifications from a subscription that was already cancelled are dropped
        with self._lock:
            if generation != self._generation or not self.active:
                return
            if not isinstance(sample, Sample):
                sample = Sample(*sample)
            self._dispatch(self.engine.process(sample))

    def _dispatch(self, signals: List[Signal]):
        # listeners see every signal even if the reminder sink fails;
        # the sink error is raised once they have
        sink_error = None
        for signal in signals:
            if signal.kind == SIGNAL_MOUTH_TO_MOUTH:
                self.reminder_pending = True
                if self.reminder_sink is not None:
                    try:
                        self.reminder_sink.on_mouth_to_mouth_due()
                    except Exception as e:
                        if sink_error is None:
                            sink_error = e
            for listener in list(self.listeners):
                listener(signal)
        if sink_error is not None:
            raise sink_error

    # =========================================================================
    # Metronome
    # =========================================================================

    def _on_tick(self):
        with self._lock:
            if not self.active:
                return
            try:
                if self.tick_sink is not None:
                    self.tick_sink.emit_tick()
            finally:
                for listener in list(self.listeners):
                    listener(Signal(SIGNAL_TICK, self.engine.last_t, self.metronome.ticks))

    def _start_metronome_locked(self) -> bool:
        if self.tick_sink is not None and hasattr(self.tick_sink, "configure_tone"):
            self.tick_sink.configure_tone(
                config.METRONOME_WAVEFORM, config.METRONOME_TONE_HZ, config.METRONOME_VOLUME
            )
        return self.metronome.start()

    def start_metronome(self) -> bool:
        with self._lock:
            if not self.active:
                raise SessionNotActiveError("The metronome only runs during a CPR session")
            return self._start_metronome_locked()

    def stop_metronome(self) -> bool:
        with self._lock:
            return self.metronome.stop()

    def toggle_metronome(self) -> bool:
        """Returns whether the metronome is running afterwards."""
        with self._lock:
            if self.metronome.running:
                self.metronome.stop()
                return False
            self.start_metronome()
            return True

    # =========================================================================
    # Mouth-to-mouth
    # =========================================================================

    def set_mouth_to_mouth(self, enabled: bool):
        with self._lock:
            self.engine.counters.mouth_to_mouth = bool(enabled)

    def acknowledge_reminder(self) -> bool:
        """
        Resume compressions after a mouth-to-mouth break.

        The push count restarts and the break is not measured as a push
        interval; the smoothed frequency is kept. Ignored (returns False)
        unless a session is active and a reminder is pending.
        """
        with self._lock:
            if not (self.active and self.reminder_pending):
                logger.debug("Reminder acknowledgement ignored: none pending")
                return False
            self.reminder_pending = False
            self.engine.counters.push_count = 0
            self.engine.cadence.forget_last_push()
            return True

    # =========================================================================
    # Queries
    # =========================================================================

    def current_guidance(self) -> GuidanceCategory:
        with self._lock:
            return self.engine.current_guidance()

    def current_frequency_hz(self) -> float:
        with self._lock:
            return self.engine.current_frequency_hz()

    def pushes_until_reminder(self) -> int:
        with self._lock:
            return self.engine.pushes_until_reminder()

    @property
    def discarded_samples(self) -> int:
        return self.engine.discarded_samples

    def status(self) -> Dict[str, Any]:
        with self._lock:
            state = self.engine.get_state()
            guidance = self.engine.current_guidance()
            return {
                "type": "status",
                "active": self.active,
                "session_id": self.session_id,
                "connected": bool(self.connected()),
                "t": state["t"],
                "frequency_hz": round(state["frequency_hz"], 3),
                "bpm": round(state["bpm"]),
                "guidance": guidance.value,
                "instruction": instruction_for(guidance),
                "magnitude": round(state["magnitude"], 3),
                "push_events": state["push_events"],
                "push_count": state["push_count"],
                "pushes_until_reminder": state["pushes_until_reminder"],
                "mouth_to_mouth": self.engine.counters.mouth_to_mouth,
                "reminder_pending": self.reminder_pending,
                "metronome": self.metronome.running,
                "discarded_samples": state["discarded_samples"],
            }
