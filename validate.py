import argparse
import logging
import math
import sys

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from latticepi.engine import BACKEND_KINDS, DEFAULT_BACKEND, create_backend
from latticepi.estimator import estimate
from latticepi.kernel import boundary_kernel, count_grid
from latticepi.partition import CellKind, classify_block, plan

DEFAULT_SIZES = [8, 64, 512, 4096]
BRUTE_FORCE_LIMIT = 1024
CONVERGENCE_OUTPUT = 'convergence.png'
LATTICE_OUTPUT = 'lattice_map.png'

KIND_CODES = {CellKind.EMPTY: 0, CellKind.BOUNDARY: 1, CellKind.FULL: 2}


def audit_table(size):
    """Return a list of problems with the weight matrix at grid size `size`."""
    partition = plan(size)
    problems = []

    for bx, by, cell in partition.cells():
        if cell.kind is CellKind.BOUNDARY:
            continue
        # The table may call a block Boundary where the corner rule says
        # Full (B0 at N=8); the reverse would drop or double count points.
        if classify_block(bx, by, size) is not cell.kind:
            problems.append(f"block ({bx},{by}) is {cell} in the table but "
                            f"{classify_block(bx, by, size).name} by its corners")
            continue

        offset = (bx * partition.block_size, by * partition.block_size)
        inside = boundary_kernel(offset, partition.block_size, size)
        expected = 1 if cell.kind is CellKind.FULL else 0
        if not np.all(inside == expected):
            problems.append(f"block ({bx},{by}) is {cell} but the kernel disagrees")

    return problems


def check_size(size, backend, brute_force_limit=BRUTE_FORCE_LIMIT):
    """Estimate pi at one grid size and cross-check it. Returns a result dict."""
    result = estimate(size, backend)
    repeat = estimate(size, backend)

    row = {
        'size': size,
        'estimate': result,
        'error': result.error,
        'problems': audit_table(size),
    }
    if repeat != result:
        row['problems'].append(f"second run gave {repeat}, first gave {result}")

    if size <= brute_force_limit:
        expected = 4 * count_grid(size)
        if expected != result.numerator:
            row['problems'].append(
                f"brute force numerator {expected} != folded {result.numerator}")

    return row


def create_convergence_plot(rows, output_path):
    sizes = np.array([row['size'] for row in rows], dtype=float)
    errors = np.array([row['error'] for row in rows])

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.loglog(sizes, errors, 'o-', color='steelblue', label='|estimate - π|')
    ax.loglog(sizes, 4.0 / sizes, '--', color='red', label='4 / N reference')

    ax.set_xlabel('Grid size N', fontsize=12)
    ax.set_ylabel('Absolute error', fontsize=12)
    ax.set_title('Lattice π Estimate - Convergence', fontsize=14)
    ax.legend(loc='upper right')
    ax.grid(True, which='both', alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"[+] Convergence plot saved to: {output_path}")


def create_lattice_plot(size, output_path):
    """Block classification map with the exact inside mask of the boundary blocks."""
    partition = plan(size)
    b = partition.block_size

    image = np.zeros((partition.grid_size, partition.grid_size))
    for bx, by, cell in partition.cells():
        region = image[by * b:(by + 1) * b, bx * b:(bx + 1) * b]
        region[:] = KIND_CODES[cell.kind]
        if cell.kind is CellKind.BOUNDARY:
            inside = boundary_kernel((bx * b, by * b), b, size)
            region[:] = np.where(inside == 1, 1.5, 0.5)

    fig, ax = plt.subplots(figsize=(8, 8))
    ax.imshow(image, cmap='viridis', origin='lower', interpolation='nearest')

    for cut in range(1, 8):
        ax.axhline(cut * b - 0.5, color='white', linewidth=0.5)
        ax.axvline(cut * b - 0.5, color='white', linewidth=0.5)
    for bx, by, cell in partition.cells():
        ax.text(bx * b + b / 2, by * b + b / 2, str(cell), ha='center',
                va='center', color='white', fontsize=10)

    arc = plt.Circle((0, 0), partition.radius, color='red', fill=False, linewidth=1.5)
    ax.add_patch(arc)

    ax.set_xlabel('x')
    ax.set_ylabel('y')
    ax.set_title(f'Block classification, N = {size}', fontsize=14)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"[+] Lattice map saved to: {output_path}")


def validate(sizes, backend_kind=DEFAULT_BACKEND, brute_force_limit=BRUTE_FORCE_LIMIT,
             convergence_path=CONVERGENCE_OUTPUT, lattice_path=LATTICE_OUTPUT, plot=True):
    print(f"[*] Validating grid sizes: {', '.join(str(s) for s in sizes)}")

    with create_backend(backend_kind) as backend:
        rows = [check_size(size, backend, brute_force_limit) for size in sizes]

    print("\n=== RESULTS ===")
    print(f"{'N':>8}  {'estimate':>28}  {'value':>10}  {'error':>10}  {'error*N':>8}")
    for row in rows:
        est = row['estimate']
        print(f"{row['size']:>8}  {str(est):>28}  {est.value:>10.6f}  "
              f"{row['error']:>10.6f}  {row['error'] * row['size']:>8.3f}")

    failed = False
    for row in rows:
        for problem in row['problems']:
            print(f"[-] N={row['size']}: {problem}")
            failed = True

    errors = [row['error'] for row in sorted(rows, key=lambda r: r['size'])]
    if any(later >= earlier for earlier, later in zip(errors, errors[1:])):
        print("[-] Error does not shrink as N grows")
        failed = True

    if plot and rows:
        create_convergence_plot(rows, convergence_path)
        map_size = next((s for s in sorted(sizes) if s >= 64), sizes[0])
        create_lattice_plot(map_size, lattice_path)

    print(f"\n[{'-' if failed else '+'}] Validation {'FAILED' if failed else 'passed'} "
          f"(π = {math.pi:.10f})")
    return 1 if failed else 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Check the lattice pi estimator")
    parser.add_argument("sizes", nargs="*", type=int, default=DEFAULT_SIZES,
                        help="Grid sizes to check (default: 8 64 512 4096)")
    parser.add_argument("--backend", choices=BACKEND_KINDS, default=DEFAULT_BACKEND)
    parser.add_argument("--brute-force-limit", type=int, default=BRUTE_FORCE_LIMIT,
                        help="Largest N checked against a full-grid count")
    parser.add_argument("--convergence", default=CONVERGENCE_OUTPUT,
                        help="Convergence plot output path")
    parser.add_argument("--lattice", default=LATTICE_OUTPUT,
                        help="Lattice map output path")
    parser.add_argument("--no-plot", action="store_true", help="Skip the figures")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)

    return validate(args.sizes, args.backend, args.brute_force_limit,
                    args.convergence, args.lattice, plot=not args.no_plot)


if __name__ == "__main__":
    sys.exit(main())
