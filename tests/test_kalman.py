"""Tests for the per-axis Kalman filters."""

import pytest

from cpready.kalman import AxisFilter, AccelerationFilter


class TestAxisFilter:
    """Test cases for AxisFilter."""

    def test_first_update(self):
        """Gain starts at 0.5 because error estimate equals error measure."""
        kf = AxisFilter(error_measure=5.0, q=0.9)
        out = kf.update(10.0)

        assert out == pytest.approx(5.0)
        estimate, error, gain = kf.get_state()
        assert gain == pytest.approx(0.5)
        # (1 - 0.5) * 5 + |0 - 5| * 0.9
        assert error == pytest.approx(7.0)

    def test_constant_input_converges(self):
        kf = AxisFilter()
        for _ in range(2000):
            out = kf.update(3.0)
        assert out == pytest.approx(3.0, abs=1e-2)

    def test_never_moves_away_from_constant_input(self):
        kf = AxisFilter()
        distance = abs(3.0 - kf.estimate)
        for _ in range(200):
            kf.update(3.0)
            new_distance = abs(3.0 - kf.estimate)
            assert new_distance <= distance
            distance = new_distance

    def test_reset(self):
        kf = AxisFilter(initial_estimate=1.0)
        kf.update(7.0)
        kf.update(-2.0)
        kf.reset()
        assert kf.get_state() == (1.0, 5.0, 0.0)

    def test_invalid_parameters(self):
        with pytest.raises(ValueError, match="error_measure"):
            AxisFilter(error_measure=0.0)
        with pytest.raises(ValueError, match="q"):
            AxisFilter(q=-0.1)


class TestAccelerationFilter:
    """Test cases for the three-axis bundle."""

    def test_axes_are_independent(self):
        acc = AccelerationFilter()
        fx, fy, fz = acc.update(1.0, 2.0, 3.0)
        assert (fx, fy, fz) == pytest.approx((0.5, 1.0, 1.5))

        acc.update(1.0, 0.0, 0.0)
        assert acc.y.get_state() != acc.x.get_state()

    def test_reset_all_axes(self):
        acc = AccelerationFilter()
        acc.update(4.0, 5.0, 6.0)
        acc.reset()
        assert acc.get_estimates() == (0.0, 0.0, 0.0)
