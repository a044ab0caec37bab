"""
Error taxonomy for the lattice pi estimator.

Every error is fatal for the run. Nothing in the package retries or
reports a partial estimate; errors propagate to the caller (the CLI turns
them into a non-zero exit status).
"""


class LatticePiError(Exception):
    """Base class for all estimator errors."""


class ArgumentError(LatticePiError, ValueError):
    """The grid size is not a usable positive integer."""


class BackendError(LatticePiError):
    """No compute backend could be acquired."""


class KernelError(LatticePiError):
    """A kernel dispatch, buffer copy or buffer map failed."""
