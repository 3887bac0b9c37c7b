"""
Kalman filter implementations for CPReady.

Provides the scalar filter applied to each accelerometer axis before the
magnitude is computed, and a small bundle that owns one filter per axis.
"""

from typing import Tuple

from . import config


class AxisFilter:
    """
    Simple 1D Kalman filter for smoothing one accelerometer axis.

    Unlike a textbook filter with a fixed process variance, the error
    estimate is re-inflated by how far the estimate just moved, so the gain
    stays high while the signal is changing and decays once it settles.

    Usage:
        kf = AxisFilter(error_measure=5.0, q=0.9)
        smoothed = kf.update(noisy_measurement)
    """

    def __init__(
        self,
        error_measure: float = config.ERROR_MEASURE,
        q: float = config.PROCESS_NOISE_Q,
        initial_estimate: float = 0.0,
        initial_error: float = None
    ):
        """
        Initialize Kalman filter.

        Args:
            error_measure: Expected measurement error. Higher = trust
                           measurements less, smoother output.
            q: Process noise. Scales how much each move of the estimate
               feeds back into the error estimate.
            initial_estimate: Starting value for the state estimate.
            initial_error: Starting error estimate (defaults to error_measure).
        """
        if error_measure <= 0:
            raise ValueError("error_measure must be positive")
        if q < 0:
            raise ValueError("q must be non-negative")

        self.error_measure = error_measure
        self.q = q
        self._initial_estimate = initial_estimate
        self._initial_error = error_measure if initial_error is None else initial_error

        self.estimate = initial_estimate
        self.error_estimate = self._initial_error

        # For diagnostics
        self.k = 0.0  # Last Kalman gain

    def update(self, measurement: float) -> float:
        """
        Update filter with new measurement.

        Args:
            measurement: New noisy measurement

        Returns:
            Smoothed estimate
        """
        self.k = self.error_estimate / (self.error_estimate + self.error_measure)
        previous = self.estimate
        self.estimate = previous + self.k * (measurement - previous)
        self.error_estimate = (
            (1.0 - self.k) * self.error_estimate
            + abs(previous - self.estimate) * self.q
        )
        return self.estimate

    def reset(self):
        """Reset filter to its initial state."""
        self.estimate = self._initial_estimate
        self.error_estimate = self._initial_error
        self.k = 0.0

    def get_state(self) -> Tuple[float, float, float]:
        """
        Get current filter state.

        Returns:
            Tuple of (estimate, error_estimate, last_kalman_gain)
        """
        return (self.estimate, self.error_estimate, self.k)


class AccelerationFilter:
    """
    Three independent AxisFilters, one per accelerometer axis.

    Usage:
        acc = AccelerationFilter()
        fx, fy, fz = acc.update(ax, ay, az)
    """

    def __init__(
        self,
        error_measure: float = config.ERROR_MEASURE,
        q: float = config.PROCESS_NOISE_Q
    ):
        self.x = AxisFilter(error_measure=error_measure, q=q)
        self.y = AxisFilter(error_measure=error_measure, q=q)
        self.z = AxisFilter(error_measure=error_measure, q=q)

    def update(self, ax: float, ay: float, az: float) -> Tuple[float, float, float]:
        return (self.x.update(ax), self.y.update(ay), self.z.update(az))

    def reset(self):
        self.x.reset()
        self.y.reset()
        self.z.reset()

    def get_estimates(self) -> Tuple[float, float, float]:
        return (self.x.estimate, self.y.estimate, self.z.estimate)
