"""
Cadence estimation for CPReady.

Turns push timestamps into a compression frequency. Each interval between
two pushes gives an instantaneous rate, which is exponentially smoothed so
one badly timed push does not swing the guidance around.
"""

import logging
from typing import Optional

from . import config

logger = logging.getLogger(__name__)


def to_bpm(hz: float) -> float:
    """Convert a frequency in Hz to beats (pushes) per minute."""
    return hz * 60.0


class CadenceEstimator:
    """
    Exponentially smoothed push frequency.

    Usage:
        cadence = CadenceEstimator(alpha=0.5)
        hz = cadence.on_push_event(t)  # None until two pushes are seen
    """

    def __init__(
        self,
        alpha: float = config.SMOOTHING_ALPHA,
        debounce_ms: float = config.DEBOUNCE_MS
    ):
        """
        Initialize cadence estimator.

        Args:
            alpha: Weight of the newest instantaneous rate (0 < alpha <= 1).
                   Higher = follows tempo changes faster, jitters more.
            debounce_ms: Intervals at or below this are treated as sensor
                         noise and ignored.
        """
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        if debounce_ms < 0:
            raise ValueError("debounce_ms must be non-negative")

        self.alpha = alpha
        self.debounce_ms = debounce_ms

        self.last_push_at: Optional[float] = None
        self.smoothed_frequency_hz = 0.0

        # For diagnostics
        self.last_interval_ms: Optional[float] = None
        self.accepted = 0
        self.discarded = 0

    def on_push_event(self, t: float) -> Optional[float]:
        """
        Register a push at time t (seconds).

        Returns:
            The new smoothed frequency in Hz, or None if this push only
            starts the measurement or was rejected by the debounce.
        """
        if self.last_push_at is None:
            self.last_push_at = t
            return None

        # microsecond resolution keeps float noise off the debounce edge
        interval_ms = round((t - self.last_push_at) * 1000.0, 3)
        if interval_ms <= self.debounce_ms:
            self.discarded += 1
            logger.debug("Push %.1f ms after the previous one ignored", interval_ms)
            return None

        instantaneous_hz = 1000.0 / interval_ms
        self.smoothed_frequency_hz = (
            self.alpha * instantaneous_hz
            + (1.0 - self.alpha) * self.smoothed_frequency_hz
        )
        self.last_push_at = t
        self.last_interval_ms = interval_ms
        self.accepted += 1
        return self.smoothed_frequency_hz

    @property
    def bpm(self) -> float:
        return to_bpm(self.smoothed_frequency_hz)

    def forget_last_push(self):
        """
        Drop the reference push but keep the frequency.

        Called after a break in compressions (mouth-to-mouth) so the break
        is not measured as one very slow push.
        """
        self.last_push_at = None

    def reset(self):
        """Reset all state for new session."""
        self.last_push_at = None
        self.smoothed_frequency_hz = 0.0
        self.last_interval_ms = None
        self.accepted = 0
        self.discarded = 0
