"""
Pi estimator.

The quarter-disk of radius R = N - 1 has area pi·R²/4, so

    pi ≈ 4 · LatticeTotal / (N - 1)²

The estimate is kept as the exact pair (numerator, denominator); dividing
is left to whoever prints or compares it.
"""

import math
from fractions import Fraction
from typing import NamedTuple, Optional

from .aggregate import aggregate
from .engine import ComputeBackend, create_backend
from .partition import plan


class PiEstimate(NamedTuple):
    numerator: int
    denominator: int

    @property
    def fraction(self) -> Fraction:
        return Fraction(self.numerator, self.denominator)

    @property
    def value(self) -> float:
        return self.numerator / self.denominator

    @property
    def error(self) -> float:
        """Absolute distance from math.pi."""
        return abs(self.value - math.pi)

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


def estimate_pi(total: int, grid_size: int) -> PiEstimate:
    """Convert a lattice total into the ratio 4·total / (N - 1)²."""
    return PiEstimate(4 * total, (grid_size - 1) * (grid_size - 1))


def estimate(grid_size: int, backend: Optional[ComputeBackend] = None) -> PiEstimate:
    """
    Run a complete estimation for an N×N grid.

    Args:
        grid_size: Grid size N (>= 8, divisible by 8).
        backend: Backend to run the boundary kernels on. When omitted a
            default backend is acquired for this call and released after.

    Returns:
        The exact pi ratio.
    """
    partition = plan(grid_size)
    if backend is None:
        with create_backend() as owned:
            result = aggregate(partition, owned)
    else:
        result = aggregate(partition, backend)
    return estimate_pi(result.total, grid_size)
