"""
Grid partition planner.

The N×N grid is cut into an 8×8 layout of square blocks. Every block is
either Full (all points inside the quarter-disk), Empty (none inside) or
Boundary (straddles the arc). The disk is symmetric about the diagonal,
so the straddling blocks come in mirrored pairs and only 8 of them need
exact counting; their mirrors reuse the same count.

The classification is a fixed table, not something derived at runtime.
`classify_block` implements the corner rule only so the table can be
audited against it.
"""

import logging
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from .errors import ArgumentError

logger = logging.getLogger(__name__)

BLOCKS_PER_AXIS = 8
BOUNDARY_BLOCKS = 8


class CellKind(Enum):
    FULL = "F"
    EMPTY = "0"
    BOUNDARY = "B"


class Cell(NamedTuple):
    """One entry of the weight matrix."""

    kind: CellKind
    index: Optional[int] = None

    def __str__(self) -> str:
        if self.kind is CellKind.BOUNDARY:
            return f"B{self.index}"
        return self.kind.value


F = Cell(CellKind.FULL)
E = Cell(CellKind.EMPTY)
B0, B1, B2, B3, B4, B5, B6, B7 = (Cell(CellKind.BOUNDARY, i) for i in range(BOUNDARY_BLOCKS))

# Row = by, column = bx.
WEIGHT_MATRIX: Tuple[Tuple[Cell, ...], ...] = (
    (F,  F,  F,  F,  F,  F,  F,  B0),
    (F,  F,  F,  F,  F,  F,  F,  B1),
    (F,  F,  F,  F,  F,  F,  F,  B2),
    (F,  F,  F,  F,  F,  F,  B4, B3),
    (F,  F,  F,  F,  F,  F,  B5, E),
    (F,  F,  F,  F,  F,  B7, B6, E),
    (F,  F,  F,  B4, B5, B6, E,  E),
    (B0, B1, B2, B3, E,  E,  E,  E),
)

# (bx, by) of the block actually computed for each boundary index.
BOUNDARY_ORIGINS: Tuple[Tuple[int, int], ...] = (
    (7, 0),
    (7, 1),
    (7, 2),
    (7, 3),
    (6, 3),
    (6, 4),
    (6, 5),
    (5, 5),
)


class PartitionPlan(NamedTuple):
    """Everything the aggregator needs to know about one grid size."""

    grid_size: int
    block_size: int
    matrix: Tuple[Tuple[Cell, ...], ...]
    origins: Tuple[Tuple[int, int], ...]

    @property
    def radius(self) -> int:
        return self.grid_size - 1

    @property
    def full_weight(self) -> int:
        """Point count of one Full block."""
        return self.block_size * self.block_size

    def offset(self, index: int) -> Tuple[int, int]:
        """Global (ox, oy) of the first point of boundary block `index`."""
        bx, by = self.origins[index]
        return bx * self.block_size, by * self.block_size

    def cells(self):
        """Yield (bx, by, cell) for every block of the grid."""
        for by, row in enumerate(self.matrix):
            for bx, cell in enumerate(row):
                yield bx, by, cell


def plan(grid_size: int) -> PartitionPlan:
    """
    Build the partition plan for an N×N grid.

    N must be at least 8. Divisibility by 8 is a precondition that is
    not enforced; a warning is logged when it does not hold, because the
    rightmost and bottom N % 8 rows/columns are then never counted.

    Raises:
        ArgumentError: If N is not an integer >= 8.
    """
    if not isinstance(grid_size, int) or grid_size < BLOCKS_PER_AXIS:
        raise ArgumentError(
            f"grid size must be an integer >= {BLOCKS_PER_AXIS}, got {grid_size!r}"
        )
    if grid_size % BLOCKS_PER_AXIS:
        logger.warning(
            "Grid size %d is not divisible by %d; the estimate will be wrong.",
            grid_size, BLOCKS_PER_AXIS,
        )

    return PartitionPlan(
        grid_size=grid_size,
        block_size=grid_size // BLOCKS_PER_AXIS,
        matrix=WEIGHT_MATRIX,
        origins=BOUNDARY_ORIGINS,
    )


def classify_block(bx: int, by: int, grid_size: int) -> CellKind:
    """
    Classify a block from its corners.

    Full if the corner farthest from the origin is inside the disk,
    Empty if the nearest corner is outside, Boundary otherwise.
    """
    size = grid_size // BLOCKS_PER_AXIS
    r2 = (grid_size - 1) ** 2

    inner = (bx * size) ** 2 + (by * size) ** 2
    outer = ((bx + 1) * size - 1) ** 2 + ((by + 1) * size - 1) ** 2

    if outer <= r2:
        return CellKind.FULL
    if inner > r2:
        return CellKind.EMPTY
    return CellKind.BOUNDARY


def format_matrix(matrix=WEIGHT_MATRIX) -> str:
    """Render the weight matrix as aligned text, one row per line."""
    return "\n".join(" ".join(f"{str(cell):>2}" for cell in row) for row in matrix)
