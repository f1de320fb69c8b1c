"""
Parallel axis-fold executor.

The output index space of a reduction (every coordinate not on the reduced axis) is split
into contiguous blocks and each block is folded by one task on a worker thread. Tasks only
read the shared source buffer and write their own disjoint slice of the output buffer, so no
locking is needed and no partial results are ever combined across tasks: the output is
bit-for-bit identical for any number of workers.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

import numpy as np

from ncfold.core.config import config, parse_max_workers
from ncfold.core.indexing import c_strides, flat_to_coords, product, remove_axis
from ncfold.core.ndarray import NDArray
from ncfold.errors import AxisOutOfBoundsError, ThreadPoolError

if TYPE_CHECKING:
    from types import TracebackType

    import numpy.typing as npt

    from ncfold.core.kernels import ReductionKernel

logger = logging.getLogger(__name__)

__all__ = [
    "ExecutionContext",
    "configure_default_context",
    "fold_axis",
    "get_default_context",
]


def _available_parallelism() -> int:
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0)) or 1
    return os.cpu_count() or 1


class ExecutionContext:
    """
    Owns the worker pool used for reductions.

    The pool is created lazily on first use and has a fixed size for its whole lifetime.
    The size can be changed with :meth:`configure` only until the pool has been used.

    Parameters
    ----------
    max_workers : int, optional
        Number of worker threads. Defaults to the ``threading.max_workers`` config value, or
        to the number of CPUs available to the process when that is unset.

    Raises
    ------
    ThreadPoolError
        If `max_workers` is smaller than 1.
    """

    def __init__(self, max_workers: int | None = None) -> None:
        self._lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        self._closed = False
        self._max_workers = self._check_workers(max_workers)

    @staticmethod
    def _check_workers(max_workers: int | None) -> int:
        if max_workers is None:
            max_workers = parse_max_workers(config.get("threading.max_workers", None))
        if max_workers is None:
            return _available_parallelism()
        if max_workers < 1:
            raise ThreadPoolError(
                f"Failed to initialize thread pool with {max_workers} threads: "
                "at least one thread is required"
            )
        return max_workers

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def started(self) -> bool:
        return self._executor is not None

    def configure(self, max_workers: int | None) -> None:
        """
        Change the pool size before first use.

        Raises
        ------
        ThreadPoolError
            If the pool has already been used, or `max_workers` is smaller than 1.
        """
        with self._lock:
            if self._executor is not None:
                raise ThreadPoolError(
                    f"Cannot re-configure thread pool to {max_workers} threads: the pool "
                    f"is already running with {self._max_workers} threads"
                )
            self._max_workers = self._check_workers(max_workers)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._closed:
                raise ThreadPoolError("Thread pool has been shut down")
            if self._executor is None:
                logger.debug(
                    "Creating ncfold ThreadPoolExecutor with max_workers=%s", self._max_workers
                )
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="ncfold_pool"
                )
            return self._executor

    def map_blocks(self, func: Any, blocks: list[tuple[int, int]]) -> None:
        """Run ``func(start, stop)`` for every block and wait for all of them to finish."""
        if self._max_workers == 1 or len(blocks) <= 1:
            # the pool still counts as used
            self._get_executor()
            for start, stop in blocks:
                func(start, stop)
            return
        executor = self._get_executor()
        futures = [executor.submit(func, start, stop) for start, stop in blocks]
        for future in futures:
            # re-raises the first task failure after all tasks were submitted
            future.result()

    def shutdown(self) -> None:
        with self._lock:
            self._closed = True
            if self._executor is not None:
                self._executor.shutdown(wait=True)

    def __enter__(self) -> ExecutionContext:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.shutdown()

    def __repr__(self) -> str:
        return f"ExecutionContext(max_workers={self._max_workers}, started={self.started})"


_default_context: ExecutionContext | None = None
_default_lock = threading.Lock()


def get_default_context() -> ExecutionContext:
    """Return the process-wide execution context, creating it on first use."""
    global _default_context
    with _default_lock:
        if _default_context is None:
            _default_context = ExecutionContext()
        return _default_context


def configure_default_context(max_workers: int | None) -> ExecutionContext:
    """
    Set the size of the process-wide execution context.

    Must be called before the first reduction that uses the default context.

    Raises
    ------
    ThreadPoolError
        If the default context was already used, or `max_workers` is smaller than 1.
    """
    global _default_context
    with _default_lock:
        if _default_context is None:
            _default_context = ExecutionContext(max_workers)
        else:
            _default_context.configure(max_workers)
        logger.info("Configured parallel processing with %s threads", _default_context.max_workers)
        return _default_context


def partition(size: int, parts: int) -> list[tuple[int, int]]:
    """Split ``range(size)`` into at most `parts` contiguous, near-equal ``(start, stop)`` blocks."""
    parts = max(1, min(parts, size))
    base, extra = divmod(size, parts)
    blocks = []
    start = 0
    for i in range(parts):
        stop = start + base + (1 if i < extra else 0)
        if stop > start:
            blocks.append((start, stop))
        start = stop
    return blocks


def fold_axis(
    source: NDArray,
    axis: int,
    kernel: ReductionKernel[Any],
    context: ExecutionContext | None = None,
) -> NDArray:
    """
    Fold `axis` of `source` away with `kernel`.

    Parameters
    ----------
    source : NDArray
        The array to reduce. It is only read.
    axis : int
        The axis to fold away.
    kernel : ReductionKernel
        The fold applied to the values along `axis` for every output cell.
    context : ExecutionContext, optional
        The worker pool to use. Defaults to the process-wide context.

    Returns
    -------
    NDArray
        An array with the shape of `source` minus `axis`. Reducing the only axis of a 1-D
        array gives a 0-dimensional array holding one element.

    Raises
    ------
    AxisOutOfBoundsError
        If `axis` is not a valid axis of `source`.
    """
    if not 0 <= axis < source.ndim:
        raise AxisOutOfBoundsError(axis, source.ndim)
    if context is None:
        context = get_default_context()

    output_shape = remove_axis(source.shape, axis)
    output_size = product(output_shape)
    axis_len = source.shape[axis]
    out = np.empty(output_size, dtype=np.float32)
    if output_size == 0:
        return NDArray._wrap(output_shape, out)

    source_strides = c_strides(source.shape)
    kept_strides = remove_axis(source_strides, axis)
    axis_stride = source_strides[axis]
    walk = np.arange(axis_len, dtype=np.intp) * axis_stride
    data = source.data

    def fold_block(start: int, stop: int) -> None:
        flat = np.arange(start, stop, dtype=np.intp)
        coords = flat_to_coords(flat, output_shape)
        base: npt.NDArray[np.intp] = np.zeros(stop - start, dtype=np.intp)
        for coord, stride in zip(coords, kept_strides, strict=True):
            base = base + coord * stride
        # row i of the block holds the i-th value along the axis for every cell
        block = data[walk[:, np.newaxis] + base[np.newaxis, :]]
        out[start:stop] = kernel.fold_block(block)

    tasks = context.max_workers * int(config.get("threading.tasks_per_worker", 4))
    blocks = partition(output_size, tasks)
    logger.debug(
        "Folding axis %d of %s with %r in %d blocks on %d threads",
        axis,
        source.shape,
        kernel,
        len(blocks),
        context.max_workers,
    )
    context.map_blocks(fold_block, blocks)
    return NDArray._wrap(output_shape, out)
