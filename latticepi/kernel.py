"""
Circle predicate and the boundary counting kernel.

The predicate is the ground truth of the whole estimator: a lattice point
(x, y) is inside the quarter-disk of radius R iff x² + y² <= R². It is
evaluated with exact integer arithmetic so no rounding bias creeps in at
the boundary.

The kernel applies the same predicate to every point of one grid block.
Coordinates are built as int64 numpy arrays and the predicate is
broadcast over them, so every point is evaluated independently and in no
particular order.
"""

from typing import Tuple

import numpy as np

# Dtype of a kernel result buffer. One 0/1 entry per lattice point.
RESULT_DTYPE = np.uint32

# Rows evaluated at once by the brute-force reference count.
REFERENCE_BAND_ROWS = 256


def inside_quarter_disk(x, y, radius):
    """
    Return True iff the lattice point (x, y) lies inside the quarter-disk.

    Works on Python ints and, element-wise, on int64 numpy arrays.

    Note: numpy arrays must be int64; x² + y² overflows int32 once the
    grid passes ~32k points per axis.

    Args:
        x: Column coordinate (or array of them).
        y: Row coordinate (or array of them).
        radius: Disk radius, R = N - 1 for an N×N grid.

    Returns:
        bool, or a boolean array shaped like the broadcast of x and y.
    """
    return x * x + y * y <= radius * radius


def boundary_kernel(offset: Tuple[int, int], block_size: int, grid_size: int) -> np.ndarray:
    """
    Evaluate the circle predicate over every point of one block.

    Args:
        offset: (ox, oy) of the block's first point in global coordinates.
        block_size: Side length B of the block.
        grid_size: Grid size N. The radius is N - 1.

    Returns:
        B×B result buffer; entry [ly, lx] is 1 iff (ox + lx, oy + ly)
        is inside the quarter-disk.
    """
    ox, oy = offset
    radius = grid_size - 1

    xs = np.arange(ox, ox + block_size, dtype=np.int64)[np.newaxis, :]
    ys = np.arange(oy, oy + block_size, dtype=np.int64)[:, np.newaxis]

    return inside_quarter_disk(xs, ys, radius).astype(RESULT_DTYPE)


def count_grid(grid_size: int) -> int:
    """
    Brute-force count of inside points over the whole N×N grid.

    Evaluates the predicate at all N² points, one band of rows at a time,
    without any symmetry or block classification. Used to check the
    block-folded total.
    """
    radius = grid_size - 1
    xs = np.arange(grid_size, dtype=np.int64)[np.newaxis, :]

    total = 0
    for start in range(0, grid_size, REFERENCE_BAND_ROWS):
        stop = min(start + REFERENCE_BAND_ROWS, grid_size)
        ys = np.arange(start, stop, dtype=np.int64)[:, np.newaxis]
        total += int(np.count_nonzero(inside_quarter_disk(xs, ys, radius)))

    return total
