# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "ncfold",
# ]
# ///
#

"""
Compare reductions on one worker thread with reductions on all cores.

    python examples/benchmark.py [n_rows ...]
"""

import os
import sys
import time

import numpy as np

from ncfold import ExecutionContext, NDArray, fold_axis, get_kernel


def timed_mean(source: NDArray, context: ExecutionContext) -> tuple[float, float]:
    start = time.perf_counter()
    result = fold_axis(source, 0, get_kernel("mean"), context=context)
    elapsed = time.perf_counter() - start
    return elapsed, float(np.mean(result.data))


def main(sizes: list[int]) -> None:
    workers = os.cpu_count() or 1
    print(f"{workers} logical CPU cores available")
    with ExecutionContext(1) as serial, ExecutionContext(workers) as parallel:
        for n_rows in sizes:
            values = np.sin(np.arange(n_rows * 1000, dtype=np.float32))
            source = NDArray((n_rows, 1000), values)
            print(f"mean over {n_rows} rows of 1000 cells:")
            serial_time, serial_mean = timed_mean(source, serial)
            parallel_time, parallel_mean = timed_mean(source, parallel)
            # blocks are folded in the same order on any number of workers
            assert serial_mean == parallel_mean
            print(f"  1 thread:   {serial_time:.3f} s")
            print(f"  {workers} threads: {parallel_time:.3f} s")
            print(f"  speedup:    {serial_time / parallel_time:.2f}x")


if __name__ == "__main__":
    main([int(n) for n in sys.argv[1:]] or [1_000, 5_000, 10_000])
