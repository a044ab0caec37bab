"""Tests for the pi estimator."""

import math
from fractions import Fraction

import pytest

from latticepi.engine import create_backend
from latticepi.estimator import PiEstimate, estimate, estimate_pi


class TestEstimatePi:
    """Ratio construction."""

    def test_exact_pair(self):
        assert estimate_pi(45, 8) == PiEstimate(180, 49)

    def test_rendering(self):
        assert str(PiEstimate(180, 49)) == "180/49"

    def test_fraction_and_value(self):
        result = PiEstimate(180, 49)
        assert result.fraction == Fraction(180, 49)
        assert result.value == pytest.approx(180 / 49)
        assert result.error == pytest.approx(abs(180 / 49 - math.pi))

    def test_not_reduced(self):
        """The pair is reported as computed, not in lowest terms."""
        assert estimate_pi(10, 3) == PiEstimate(40, 4)


class TestEstimate:
    """Full runs."""

    def test_n8(self):
        assert estimate(8) == PiEstimate(180, 49)

    def test_n1024(self):
        with create_backend("thread", workers=4) as backend:
            result = estimate(1024, backend)
        assert result.denominator == 1023 * 1023 == 1046529
        assert abs(result.value - math.pi) < 0.01

    def test_idempotent(self):
        with create_backend("thread", workers=2) as backend:
            assert estimate(256, backend) == estimate(256, backend)

    def test_converges(self):
        """Error shrinks with N, roughly as 1/N."""
        with create_backend("thread") as backend:
            errors = [(n, estimate(n, backend).error) for n in (8, 64, 512, 4096)]
        for (_, earlier), (_, later) in zip(errors, errors[1:]):
            assert later < earlier
        for n, error in errors:
            assert error * n < 10
        assert errors[-1][1] < 0.005
