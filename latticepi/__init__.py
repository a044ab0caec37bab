"""
Lattice Pi Estimator Package

Estimates pi by counting the integer points of an N×N grid that fall in
the quarter-disk of radius N - 1:
- The grid is split into an 8×8 layout of blocks
- Full and Empty blocks are counted from a fixed symmetry table
- Only 8 Boundary blocks are counted point by point on a parallel backend
"""

from .aggregate import aggregate, fold
from .engine import ComputeBackend, HostBuffer, create_backend
from .errors import ArgumentError, BackendError, KernelError, LatticePiError
from .estimator import PiEstimate, estimate, estimate_pi
from .kernel import boundary_kernel, count_grid, inside_quarter_disk
from .partition import WEIGHT_MATRIX, PartitionPlan, classify_block, plan

__all__ = [
    'ArgumentError', 'BackendError', 'ComputeBackend', 'HostBuffer',
    'KernelError', 'LatticePiError', 'PartitionPlan', 'PiEstimate',
    'WEIGHT_MATRIX', 'aggregate', 'boundary_kernel', 'classify_block',
    'count_grid', 'create_backend', 'estimate', 'estimate_pi', 'fold',
    'inside_quarter_disk', 'plan',
]
