"""
Aggregator: turns the 8 boundary kernels and the weight matrix into the
lattice total.
"""

import logging
from typing import List, NamedTuple, Tuple

import numpy as np

from .engine import ComputeBackend, HostBuffer
from .errors import KernelError
from .kernel import boundary_kernel
from .partition import BOUNDARY_BLOCKS, CellKind, PartitionPlan

logger = logging.getLogger(__name__)


class BoundaryBlock:
    """One representative boundary block and the buffer it owns."""

    def __init__(self, index: int, plan: PartitionPlan, backend: ComputeBackend):
        self.index = index
        self.offset = plan.offset(index)
        self.size = plan.block_size
        self.grid_size = plan.grid_size
        self._backend = backend
        self.host: HostBuffer = backend.allocate(
            (self.size, self.size), label=f"boundary block {index}"
        )
        self._device = None

    def compute(self) -> None:
        self._device = self._backend.dispatch(
            boundary_kernel, self.offset, self.size, self.grid_size
        )

    def copy(self) -> None:
        if self._device is None:
            raise KernelError(f"boundary block {self.index} copied before dispatch")
        self._backend.copy_to_host(self._device, self.host)

    def map(self) -> None:
        self._backend.track(self.host.map_async(self._on_mapped))

    def _on_mapped(self, error) -> None:
        if error is not None:
            logger.error("Mapping boundary block %d failed: %s", self.index, error)

    def get_total(self) -> int:
        """Sum the result buffer, then drop it."""
        data = self.host.mapped_range()
        total = int(data.sum(dtype=np.uint64))
        self.host.unmap()
        self.host = None
        return total


class Aggregate(NamedTuple):
    total: int
    boundary_counts: Tuple[int, ...]


def fold(plan: PartitionPlan, boundary_counts) -> int:
    """
    Combine the weight matrix with the boundary counts.

    Full blocks count B² each, Empty blocks nothing, and every Boundary
    cell the count of its representative block.
    """
    if len(boundary_counts) != BOUNDARY_BLOCKS:
        raise ValueError(
            f"expected {BOUNDARY_BLOCKS} boundary counts, got {len(boundary_counts)}"
        )

    total = 0
    for _, _, cell in plan.cells():
        if cell.kind is CellKind.FULL:
            total += plan.full_weight
        elif cell.kind is CellKind.BOUNDARY:
            total += boundary_counts[cell.index]
    return total


def count_boundaries(plan: PartitionPlan, backend: ComputeBackend) -> List[int]:
    """
    Run the kernel once per boundary index and reduce each buffer.

    All 8 dispatches are submitted before any copy, and all maps are issued
    before the single wait, so the blocks run concurrently.
    """
    blocks = [BoundaryBlock(i, plan, backend) for i in range(BOUNDARY_BLOCKS)]

    for block in blocks:
        block.compute()
    for block in blocks:
        block.copy()
    for block in blocks:
        block.map()

    backend.poll_all()
    logger.debug("Dispatched %d boundary kernels of %dx%d", len(blocks), plan.block_size, plan.block_size)

    return [block.get_total() for block in blocks]


def aggregate(plan: PartitionPlan, backend: ComputeBackend) -> Aggregate:
    counts = count_boundaries(plan, backend)
    total = fold(plan, counts)
    logger.info("Lattice total for N=%d: %d", plan.grid_size, total)
    return Aggregate(total=total, boundary_counts=tuple(counts))
