"""Tests for the circle predicate, the boundary kernel and the reference count."""

import numpy as np
import pytest

from latticepi.kernel import RESULT_DTYPE, boundary_kernel, count_grid, inside_quarter_disk


class TestInsideQuarterDisk:
    """Scalar and vectorised predicate behaviour."""

    def test_point_on_the_arc_is_inside(self):
        """x² + y² == R² counts as inside."""
        assert inside_quarter_disk(3, 4, 5)
        assert inside_quarter_disk(7, 0, 7)

    def test_point_just_outside(self):
        """One past the arc is outside."""
        assert not inside_quarter_disk(4, 4, 5)
        assert not inside_quarter_disk(7, 1, 7)

    def test_origin_is_inside(self):
        assert inside_quarter_disk(0, 0, 0)

    def test_large_coordinates_are_exact(self):
        """Integer arithmetic stays exact where floats would round."""
        radius = 2 ** 40
        assert inside_quarter_disk(radius, 0, radius)
        assert not inside_quarter_disk(radius, 1, radius)

    def test_broadcasts_over_int64_arrays(self):
        """Arrays are evaluated element-wise."""
        xs = np.array([[0, 3, 4]], dtype=np.int64)
        ys = np.array([[0], [4]], dtype=np.int64)
        result = inside_quarter_disk(xs, ys, 5)
        assert result.tolist() == [[True, True, True], [True, True, False]]


class TestBoundaryKernel:
    """Per-block evaluation of the predicate."""

    def test_single_point_blocks(self):
        """With N = 8 each block is one point."""
        assert boundary_kernel((7, 0), 1, 8).tolist() == [[1]]
        assert boundary_kernel((7, 1), 1, 8).tolist() == [[0]]
        assert boundary_kernel((6, 3), 1, 8).tolist() == [[1]]

    def test_buffer_is_row_major_in_y(self):
        """Entry [ly, lx] holds point (ox + lx, oy + ly)."""
        # N = 16, R = 15: x = 14 is inside for y = 4, 5; x = 15 is not.
        result = boundary_kernel((14, 4), 2, 16)
        assert result.tolist() == [[1, 0], [1, 0]]

    def test_shape_and_dtype(self):
        result = boundary_kernel((0, 0), 16, 128)
        assert result.shape == (16, 16)
        assert result.dtype == RESULT_DTYPE

    def test_values_are_zero_or_one(self):
        result = boundary_kernel((448, 192), 64, 512)
        assert set(np.unique(result).tolist()) <= {0, 1}
        assert 0 < result.sum() < 64 * 64

    def test_matches_scalar_predicate(self):
        """Every entry agrees with the scalar predicate."""
        offset, size, n = (40, 24), 8, 64
        result = boundary_kernel(offset, size, n)
        for ly in range(size):
            for lx in range(size):
                expected = inside_quarter_disk(offset[0] + lx, offset[1] + ly, n - 1)
                assert result[ly, lx] == int(expected)

    def test_deterministic(self):
        first = boundary_kernel((384, 320), 128, 1024)
        second = boundary_kernel((384, 320), 128, 1024)
        assert np.array_equal(first, second)


class TestCountGrid:
    """Brute-force reference count."""

    def test_n8(self):
        """Column counts 8+7+7+7+6+5+4+1 for radius 7."""
        assert count_grid(8) == 45

    @pytest.mark.parametrize("n", [8, 16, 100, 300])
    def test_matches_row_by_row_isqrt(self, n):
        """Agrees with an independent per-column formula."""
        from math import isqrt

        radius = n - 1
        expected = sum(min(isqrt(radius * radius - x * x), n - 1) + 1 for x in range(n))
        assert count_grid(n) == expected
