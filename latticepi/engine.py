"""
Parallel Compute Backend Module

This module provides the compute device the estimator runs its kernels on.
The backend exposes a small command model:

1. allocate  - create a host-readable result region
2. dispatch  - run a kernel over a 2D index range (one block of the grid)
3. copy      - move a kernel's device-resident result into a host region
4. map_async - make a host region readable and fire a completion signal
5. poll_all  - block the caller until all outstanding work completes

EXECUTION MODEL:
- Kernels run on a concurrent.futures worker pool, one task per block
- Inside a task the kernel is vectorised with numpy, which evaluates every
  point independently (data parallelism inside the block)
- Independent blocks run on different workers (block parallelism)

ORDERING:
- Every step returns a Future; copy waits on the dispatch, map waits on the
  copy, so a host region can never be read before its bytes are ready
- Completion is signalled through Futures, never by inspecting buffer memory

There is no retry and no cancellation. The first failure seen by poll_all
aborts the run with KernelError.
"""

import concurrent.futures
import logging
import os
from concurrent.futures import Future
from typing import Callable, List, Optional, Tuple

import numpy as np

from .errors import BackendError, KernelError
from .kernel import RESULT_DTYPE

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "thread"
BACKEND_KINDS = ("thread", "process")


def default_workers() -> int:
    """Worker count used when none is requested: one per CPU, capped at 16."""
    return min(16, os.cpu_count() or 4)


class HostBuffer:
    """
    Host-readable result region.

    A buffer is written by exactly one copy and becomes readable only once
    map_async has signalled completion. Reading before that raises
    KernelError.
    """

    def __init__(self, shape: Tuple[int, int], label: Optional[str] = None):
        self.label = label
        self.array = np.zeros(shape, dtype=RESULT_DTYPE)
        self._ready: Optional[Future] = None
        self._mapped = False

    @property
    def mapped(self) -> bool:
        return self._mapped

    @property
    def nbytes(self) -> int:
        return self.array.nbytes

    def map_async(self, callback: Optional[Callable[[Optional[BaseException]], None]] = None) -> Future:
        """
        Map the buffer for reading once its pending copy has completed.

        The callback receives None on success or the exception that broke
        the dispatch/copy chain. It always runs before the returned Future
        completes, so waiting on the Future also waits on the callback.

        Args:
            callback: Optional completion callback.

        Returns:
            Future resolving to this buffer.

        Raises:
            KernelError: If no copy into this buffer was ever issued.
        """
        if self._ready is None:
            raise KernelError(f"map of buffer {self.label!r} with no pending copy")

        mapping: Future = Future()
        mapping.set_running_or_notify_cancel()

        def _on_copied(copy: Future) -> None:
            error = copy.exception()
            if error is None:
                self._mapped = True
            if callback is not None:
                try:
                    callback(error)
                except Exception as exc:
                    error = exc
            if error is None:
                mapping.set_result(self)
            else:
                mapping.set_exception(error)

        self._ready.add_done_callback(_on_copied)
        return mapping

    def mapped_range(self) -> np.ndarray:
        """
        Return a read-only view of the mapped contents.

        Raises:
            KernelError: If the buffer has not been mapped yet.
        """
        if not self._mapped:
            raise KernelError(f"buffer {self.label!r} read before it was mapped")
        view = self.array.view()
        view.flags.writeable = False
        return view

    def unmap(self) -> None:
        self._mapped = False


class ComputeBackend:
    """
    Parallel compute backend driven by a concurrent.futures executor.

    Every Future created by dispatch, copy_to_host or tracked through
    track() is remembered until the next poll_all(), which waits for all of
    them and surfaces the first failure.

    Usable as a context manager; the worker pool is shut down on exit.
    """

    def __init__(self, executor: concurrent.futures.Executor, kind: str, workers: int):
        self.kind = kind
        self.workers = workers
        self._executor = executor
        self._outstanding: List[Future] = []
        self._closed = False

    def allocate(self, shape: Tuple[int, int], label: Optional[str] = None) -> HostBuffer:
        """Allocate a host-readable region of the given shape."""
        buffer = HostBuffer(shape, label)
        logger.debug("Allocated %s (%d bytes)", label or "buffer", buffer.nbytes)
        return buffer

    def dispatch(self, kernel: Callable[..., np.ndarray], offset: Tuple[int, int],
                 block_size: int, grid_size: int) -> Future:
        """
        Submit a kernel over the block_size × block_size index range at offset.

        The kernel must be a module-level function so process workers can
        import it.

        Returns:
            Future resolving to the device-resident result array.

        Raises:
            KernelError: If the backend refuses the submission.
        """
        if self._closed:
            raise KernelError(f"dispatch on closed {self.kind} backend")
        try:
            future = self._executor.submit(kernel, offset, block_size, grid_size)
        except RuntimeError as exc:
            raise KernelError(f"kernel dispatch failed: {exc}") from exc
        return self.track(future)

    def copy_to_host(self, source: Future, host: HostBuffer) -> Future:
        """
        Copy a dispatch's result into a host region once the dispatch completes.

        A shape mismatch between the device result and the host region is a
        transfer failure and is carried by the returned Future.

        Returns:
            Future resolving to `host` once its bytes are in place.
        """
        copied: Future = Future()
        copied.set_running_or_notify_cancel()

        def _copy(done: Future) -> None:
            try:
                result = done.result()
                if result.shape != host.array.shape:
                    raise KernelError(
                        f"result shape {result.shape} does not fit "
                        f"{host.label!r} {host.array.shape}"
                    )
                np.copyto(host.array, result)
            except Exception as exc:
                copied.set_exception(exc)
            else:
                copied.set_result(host)

        host._ready = copied
        source.add_done_callback(_copy)
        return self.track(copied)

    def track(self, future: Future) -> Future:
        """Register a Future for the next poll_all()."""
        self._outstanding.append(future)
        return future

    def poll_all(self) -> None:
        """
        Block until every outstanding Future completes.

        Raises:
            KernelError: Wrapping the first failure, if any.
        """
        pending, self._outstanding = self._outstanding, []
        if not pending:
            return

        concurrent.futures.wait(pending)
        logger.debug("%s backend completed %d operations", self.kind, len(pending))

        for future in pending:
            error = future.exception()
            if error is None:
                continue
            if isinstance(error, KernelError):
                raise error
            raise KernelError(f"kernel or transfer failed: {error}") from error

    def close(self) -> None:
        """Shut the worker pool down, waiting for running tasks."""
        if self._closed:
            return
        self._executor.shutdown(wait=True)
        self._closed = True
        logger.debug("%s backend released", self.kind)

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensures the pool is shut down."""
        self.close()
        return False


def _create_executor(kind: str, workers: int) -> concurrent.futures.Executor:
    if kind == "process":
        return concurrent.futures.ProcessPoolExecutor(max_workers=workers)
    return concurrent.futures.ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="latticepi"
    )


def create_backend(kind: str = DEFAULT_BACKEND, workers: Optional[int] = None) -> ComputeBackend:
    """
    Factory function to acquire a compute backend.

    A process pool that cannot be started on this host (no working
    semaphores, restricted sandbox) degrades to a thread pool with a
    warning. Anything else that goes wrong is fatal.

    Args:
        kind: "thread" or "process".
        workers: Pool size; defaults to default_workers().

    Returns:
        ComputeBackend ready to accept dispatches.

    Raises:
        BackendError: Unknown kind, invalid worker count, or no pool could
            be created.
    """
    if kind not in BACKEND_KINDS:
        raise BackendError(
            f"unknown backend {kind!r}; expected one of {', '.join(BACKEND_KINDS)}"
        )
    if workers is None:
        workers = default_workers()
    if workers < 1:
        raise BackendError(f"worker count must be positive, got {workers}")

    try:
        executor = _create_executor(kind, workers)
    except (OSError, NotImplementedError) as exc:
        if kind != "process":
            raise BackendError(f"could not start {kind} backend: {exc}") from exc
        logger.warning("Process backend unavailable (%s); using thread backend.", exc)
        kind = "thread"
        try:
            executor = _create_executor(kind, workers)
        except (OSError, NotImplementedError) as exc2:
            raise BackendError(f"could not start {kind} backend: {exc2}") from exc2

    logger.info("Acquired %s backend with %d workers", kind, workers)
    return ComputeBackend(executor, kind, workers)
