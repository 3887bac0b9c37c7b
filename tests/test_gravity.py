"""Tests for the gravity-compensated magnitude."""

import pytest

from cpready.gravity import MagnitudeEstimator, sign, DOWN_AXIS


def test_sign():
    assert sign(2.5) == 1.0
    assert sign(-0.1) == -1.0
    assert sign(0.0) == 0.0


def test_down_axis_is_z():
    assert DOWN_AXIS == "z"


class TestMagnitudeEstimator:

    def test_resting_is_zero(self):
        est = MagnitudeEstimator()
        assert est.combine(0.0, 0.0, 9.81) == pytest.approx(0.0)

    def test_push_is_positive(self):
        est = MagnitudeEstimator()
        # 3-4-12 gives |v| = 13
        assert est.combine(3.0, 4.0, 12.0) == pytest.approx(13.0 - 9.81)
        assert est.get_last_magnitude() == pytest.approx(3.19)

    def test_negative_z_flips_polarity(self):
        est = MagnitudeEstimator()
        assert est.combine(0.0, 0.0, -9.81) == pytest.approx(-19.62)

    def test_zero_z_has_no_polarity(self):
        est = MagnitudeEstimator()
        assert est.combine(3.0, 4.0, 0.0) == pytest.approx(-9.81)

    def test_custom_gravity(self):
        est = MagnitudeEstimator(gravity=9.78)
        assert est.combine(0.0, 0.0, 9.78) == pytest.approx(0.0)
