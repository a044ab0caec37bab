#!/usr/bin/env python3
"""
Lattice Pi Estimator - Main Entry Point

This program estimates pi by counting integer lattice points:
1. An N×N grid is laid over the quarter-disk of radius N - 1
2. The grid is cut into 8×8 blocks; Full and Empty blocks come from a
   fixed symmetry table
3. The 8 Boundary blocks are counted point by point on a parallel backend
4. The lattice total becomes the exact ratio 4·total / (N - 1)²

Output:
-------
Exactly two lines on stdout:

    Compute done!
    pi = <numerator>/<denominator>

Diagnostics go to stderr through logging (-v for debug output).

Exit status:
- 0 on success
- 2 if N is not a positive integer >= 8 (argparse error)
- 1 if no backend can be acquired or a kernel/transfer fails

Usage:
    python main.py [N] [--backend {thread,process}] [--workers K] [-v]
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from latticepi.aggregate import aggregate
from latticepi.engine import BACKEND_KINDS, DEFAULT_BACKEND, create_backend
from latticepi.errors import ArgumentError, LatticePiError
from latticepi.estimator import estimate_pi
from latticepi.partition import BLOCKS_PER_AXIS, plan

logger = logging.getLogger("latticepi")

# Constants
DEFAULT_GRID_SIZE = 1024
DONE_MARKER = "Compute done!"


def grid_size(value: str) -> int:
    """
    argparse type for the grid size N.

    Raises:
        argparse.ArgumentTypeError: If value is not a decimal integer >= 8.
    """
    try:
        size = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid grid size: {value!r} is not an integer")
    if size < BLOCKS_PER_AXIS:
        raise argparse.ArgumentTypeError(
            f"invalid grid size: {size} (must be at least {BLOCKS_PER_AXIS})"
        )
    return size


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='latticepi',
        description='Estimate pi from the lattice points of a quarter-disk',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Notes:
  N should be divisible by 8 (ideally by 128, so each block is a whole
  number of 16×16 tiles). Only 8 of the 64 blocks are counted point by
  point; the rest are Full, Empty, or mirrors of a counted block.
        """
    )

    parser.add_argument(
        'size',
        nargs='?',
        type=grid_size,
        default=DEFAULT_GRID_SIZE,
        metavar='N',
        help=f'Grid size (default: {DEFAULT_GRID_SIZE})'
    )

    parser.add_argument(
        '--backend',
        choices=BACKEND_KINDS,
        default=DEFAULT_BACKEND,
        help=f'Compute backend (default: {DEFAULT_BACKEND})'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help='Worker pool size (default: one per CPU, at most 16)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Debug logging on stderr'
    )

    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )


def run(size: int, backend_kind: str = DEFAULT_BACKEND, workers: Optional[int] = None) -> int:
    """
    Run one estimation and print the two result lines.

    Args:
        size: Grid size N.
        backend_kind: Backend to acquire.
        workers: Pool size, or None for the default.

    Returns:
        Process exit status.
    """
    try:
        partition = plan(size)
    except ArgumentError as exc:
        logger.error("%s", exc)
        return 2

    try:
        with create_backend(backend_kind, workers) as backend:
            result = aggregate(partition, backend)
    except LatticePiError as exc:
        logger.error("Estimation aborted: %s", exc)
        return 1

    print(DONE_MARKER)
    print(f"pi = {estimate_pi(result.total, size)}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the lattice pi estimator.

    Parses arguments before touching any backend, so a bad N never
    acquires a worker pool.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    logger.info("Estimating pi on a %dx%d lattice", args.size, args.size)
    return run(args.size, args.backend, args.workers)


if __name__ == '__main__':
    sys.exit(main())
