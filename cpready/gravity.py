"""
Gravity compensation for CPReady.

Collapses the three filtered axes into one signed acceleration scalar with
gravity removed. The sign comes from the z axis, so the sensor has to be
worn with +z pointing down into the chest: a compression reads positive,
the return stroke negative.
"""

import math

from . import config

# Axis whose sign gives the polarity of the magnitude
DOWN_AXIS = "z"


def sign(value: float) -> float:
    """Sign of value as -1.0, 0.0 or 1.0."""
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0


class MagnitudeEstimator:
    """
    Combine filtered accelerometer axes into a gravity-compensated scalar.

    Usage:
        estimator = MagnitudeEstimator()
        magnitude = estimator.combine(fx, fy, fz)
    """

    def __init__(self, gravity: float = config.GRAVITY):
        """
        Args:
            gravity: Local gravity magnitude (default 9.81 m/s²)
        """
        self.gravity = gravity

        # Cache for diagnostics
        self._last_magnitude = 0.0

    def combine(self, fx: float, fy: float, fz: float) -> float:
        """
        Signed magnitude minus gravity.

        Args:
            fx, fy, fz: Filtered accelerometer readings (m/s²)

        Returns:
            Acceleration along the push direction in m/s². Positive while
            the chest is being pressed down.
        """
        raw = sign(fz) * math.sqrt(fx * fx + fy * fy + fz * fz)
        self._last_magnitude = raw - self.gravity
        return self._last_magnitude

    def get_last_magnitude(self) -> float:
        """Return last computed magnitude."""
        return self._last_magnitude
