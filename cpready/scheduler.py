"""
Periodic scheduling for CPReady.

Timers are injected into the session instead of being created inside it,
so the metronome can run on the server's asyncio loop in production and on
a virtual clock in tests and offline replays.
"""

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Tuple


class ScheduledTask:
    """Handle returned by ``schedule_every``. ``cancel()`` is idempotent."""

    def __init__(self, period: float, callback: Callable[[], None]):
        self.period = period
        self.callback = callback
        self.cancelled = False
        self.runs = 0

    def cancel(self):
        self.cancelled = True


class Scheduler:
    """Interface: run a callback every ``period`` seconds until cancelled."""

    def schedule_every(self, period: float, callback: Callable[[], None]) -> ScheduledTask:
        raise NotImplementedError


def _check_period(period: float):
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")


class _AsyncioTask(ScheduledTask):
    def __init__(self, period, callback):
        super().__init__(period, callback)
        self._handle: Optional[asyncio.TimerHandle] = None

    def cancel(self):
        super().cancel()
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioScheduler(Scheduler):
    """
    Fixed-period callbacks on an asyncio event loop.

    Each run is re-armed from the loop clock of the previous deadline, so
    slow callbacks do not make the period drift.

    Usage:
        scheduler = AsyncioScheduler(asyncio.get_running_loop())
        task = scheduler.schedule_every(0.545, metronome_tick)
        task.cancel()
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule_every(self, period, callback):
        _check_period(period)
        task = _AsyncioTask(period, callback)
        loop = self.loop
        self._arm(task, loop.time() + period)
        return task

    def _arm(self, task: _AsyncioTask, deadline: float):
        task._handle = self.loop.call_at(deadline, self._run, task, deadline)

    def _run(self, task: _AsyncioTask, deadline: float):
        if task.cancelled:
            return
        task.runs += 1
        try:
            task.callback()
        finally:
            if not task.cancelled:
                self._arm(task, max(deadline + task.period, self.loop.time()))


class ManualScheduler(Scheduler):
    """
    Virtual clock for tests and replays.

    Nothing runs until ``advance()`` moves the clock; every deadline passed
    is then fired in time order.

    Usage:
        clock = ManualScheduler()
        clock.schedule_every(0.5, tick)
        clock.advance(2.0)  # tick runs 4 times
    """

    def __init__(self, start: float = 0.0):
        self.now = start
        self._queue: List[Tuple[float, int, ScheduledTask]] = []
        self._order = itertools.count()

    def schedule_every(self, period, callback):
        _check_period(period)
        task = ScheduledTask(period, callback)
        heapq.heappush(self._queue, (self.now + period, next(self._order), task))
        return task

    def advance(self, seconds: float) -> int:
        """Move the clock forward. Returns how many callbacks ran."""
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        return self.advance_to(self.now + seconds)

    def advance_to(self, t: float) -> int:
        fired = 0
        while self._queue and self._queue[0][0] <= t:
            deadline, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now = deadline
            task.runs += 1
            fired += 1
            try:
                task.callback()
            finally:
                if not task.cancelled:
                    heapq.heappush(self._queue, (deadline + task.period, next(self._order), task))
        self.now = max(self.now, t)
        return fired

    def pending(self) -> int:
        return sum(1 for _, _, task in self._queue if not task.cancelled)
