"""
Metronome for CPReady.

Ticks at a fixed period so the rescuer can follow an audible beat. The
timer is independent of push detection: it keeps its tempo whatever the
measured cadence is. Audio jitter is the sink's problem.
"""

import logging
import threading
from typing import Callable, Optional

from . import config
from .scheduler import Scheduler, ScheduledTask

logger = logging.getLogger(__name__)


class Metronome:
    """
    Fixed-period tick source on an injected scheduler.

    Usage:
        metronome = Metronome(scheduler, on_tick=sink.emit_tick)
        metronome.start()
        ...
        metronome.stop()
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_tick: Callable[[], None],
        period_ms: float = config.METRONOME_PERIOD_MS,
        connected: Optional[Callable[[], bool]] = None,
        lock=None
    ):
        """
        Args:
            scheduler: Where the periodic timer lives
            on_tick: Called once per period while running and connected
            period_ms: Tick period; 545 ms is about 110 bpm
            connected: Connectivity flag; ticks are skipped while False
            lock: Held while a tick runs, so a tick never overlaps a
                  stop/start done by the owner under the same lock
        """
        if period_ms <= 0:
            raise ValueError("period_ms must be positive")

        self.scheduler = scheduler
        self.on_tick = on_tick
        self.period_ms = period_ms
        self.connected = connected or (lambda: True)
        self._lock = lock if lock is not None else threading.RLock()

        self._task: Optional[ScheduledTask] = None
        self._generation = 0
        self.ticks = 0
        self.skipped = 0

    @property
    def running(self) -> bool:
        return self._task is not None

    @property
    def bpm(self) -> float:
        return 60000.0 / self.period_ms

    def start(self) -> bool:
        """Start ticking. Returns False if already running."""
        if self._task is not None:
            return False
        self._generation += 1
        generation = self._generation
        self._task = self.scheduler.schedule_every(
            self.period_ms / 1000.0, lambda: self._tick(generation)
        )
        logger.info("Metronome started at %.0f bpm", self.bpm)
        return True

    def stop(self) -> bool:
        """Stop ticking. Returns False if it was not running."""
        if self._task is None:
            return False
        self._task.cancel()
        self._task = None
        # invalidates ticks already queued for the cancelled run
        self._generation += 1
        logger.info("Metronome stopped after %d ticks", self.ticks)
        return True

    def toggle(self) -> bool:
        """Start if stopped, stop if running. Returns the new running state."""
        if self.running:
            self.stop()
        else:
            self.start()
        return self.running

    def _tick(self, generation: int):
        with self._lock:
            if generation != self._generation:
                return
            if not self.connected():
                self.skipped += 1
                return
            self.ticks += 1
            self.on_tick()
