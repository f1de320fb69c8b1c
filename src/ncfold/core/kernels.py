"""
Reduction kernels.

A kernel folds the values lying along the reduced axis into a single float32 per output
cell. Kernels work on blocks: a 2-D array of shape ``(axis_length, n_cells)`` whose column
``j`` holds the values of output cell ``j``. Rows are accumulated one after the other, so
the result of a cell depends only on its own column and never on how cells are grouped into
blocks.

Non-finite values (NaN, +Inf, -Inf) are skipped by default: partially invalid grids, such
as land/ocean masked fields, still reduce to meaningful values.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import numpy as np

from ncfold.core.config import config

if TYPE_CHECKING:
    import numpy.typing as npt

State = TypeVar("State")

__all__ = [
    "MaxKernel",
    "MeanKernel",
    "MinKernel",
    "Operation",
    "ReductionKernel",
    "SumKernel",
    "get_kernel",
]


class Operation(Enum):
    """The supported reductions. The value is the name used in derived variable names."""

    MEAN = "mean"
    SUM = "sum"
    MIN = "minimum"
    MAX = "maximum"

    @property
    def long_name(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str | Operation) -> Operation:
        """Accept an Operation, its member name (``"min"``) or its long name (``"minimum"``)."""
        if isinstance(text, Operation):
            return text
        key = text.strip().lower()
        for op in cls:
            if key in (op.name.lower(), op.value):
                return op
        raise ValueError(f"unknown reduction operation {text!r}")


class ReductionKernel(ABC, Generic[State]):
    """
    Base class of the axis folds.

    Parameters
    ----------
    skip_non_finite : bool, optional
        Skip NaN and infinite inputs. Defaults to the ``reduction.skip_non_finite`` config
        value.
    """

    operation: Operation

    def __init__(self, skip_non_finite: bool | None = None) -> None:
        if skip_non_finite is None:
            skip_non_finite = bool(config.get("reduction.skip_non_finite"))
        self.skip_non_finite = skip_non_finite

    @abstractmethod
    def initial(self, n: int) -> State:
        """Accumulator state for `n` output cells."""

    @abstractmethod
    def accumulate(self, state: State, row: npt.NDArray[np.float32]) -> State:
        """Fold one value per output cell into the state."""

    @abstractmethod
    def finalize(self, state: State) -> npt.NDArray[np.float32]:
        """Turn the state into one float32 per output cell."""

    def fold_block(self, block: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
        """Fold every column of a ``(axis_length, n_cells)`` block."""
        state = self.initial(block.shape[1])
        for row in block:
            state = self.accumulate(state, row)
        return self.finalize(state)

    def fold(self, values: npt.ArrayLike) -> np.float32:
        """Fold a one-dimensional sequence of values into a single float32."""
        column = np.asarray(values, dtype=np.float32).reshape(-1, 1)
        return self.fold_block(column)[0]

    def _valid(self, row: npt.NDArray[np.float32]) -> npt.NDArray[np.bool_]:
        if self.skip_non_finite:
            return np.isfinite(row)
        return np.ones(row.shape, dtype=bool)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(skip_non_finite={self.skip_non_finite})"


class SumKernel(ReductionKernel[Any]):
    """Float32 running sum; skipped values contribute nothing and an empty axis sums to 0."""

    operation = Operation.SUM

    def initial(self, n: int) -> npt.NDArray[np.float32]:
        return np.zeros(n, dtype=np.float32)

    def accumulate(
        self, state: npt.NDArray[np.float32], row: npt.NDArray[np.float32]
    ) -> npt.NDArray[np.float32]:
        if self.skip_non_finite:
            row = np.where(np.isfinite(row), row, np.float32(0))
        return state + row

    def finalize(self, state: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
        return state


class _ExtremumKernel(ReductionKernel[Any]):
    # the sentinel is kept where no valid value was seen and becomes NaN on finalize
    sentinel: np.float32

    def initial(self, n: int) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.bool_]]:
        return np.full(n, self.sentinel, dtype=np.float32), np.zeros(n, dtype=bool)

    def accumulate(
        self,
        state: tuple[npt.NDArray[np.float32], npt.NDArray[np.bool_]],
        row: npt.NDArray[np.float32],
    ) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.bool_]]:
        acc, seen = state
        valid = self._valid(row)
        candidate = np.where(valid, row, self.sentinel)
        return self._combine(acc, candidate), seen | valid

    def finalize(
        self, state: tuple[npt.NDArray[np.float32], npt.NDArray[np.bool_]]
    ) -> npt.NDArray[np.float32]:
        acc, seen = state
        return np.where(seen, acc, np.float32(np.nan)).astype(np.float32, copy=False)

    @staticmethod
    @abstractmethod
    def _combine(
        acc: npt.NDArray[np.float32], candidate: npt.NDArray[np.float32]
    ) -> npt.NDArray[np.float32]: ...


class MinKernel(_ExtremumKernel):
    """Pairwise minimum starting from +Inf; NaN when the axis held no valid value."""

    operation = Operation.MIN
    sentinel = np.float32(np.inf)

    @staticmethod
    def _combine(
        acc: npt.NDArray[np.float32], candidate: npt.NDArray[np.float32]
    ) -> npt.NDArray[np.float32]:
        return np.minimum(acc, candidate)


class MaxKernel(_ExtremumKernel):
    """Pairwise maximum starting from -Inf; NaN when the axis held no valid value."""

    operation = Operation.MAX
    sentinel = np.float32(-np.inf)

    @staticmethod
    def _combine(
        acc: npt.NDArray[np.float32], candidate: npt.NDArray[np.float32]
    ) -> npt.NDArray[np.float32]:
        return np.maximum(acc, candidate)


class MeanKernel(ReductionKernel[Any]):
    """
    Arithmetic mean of the valid values.

    Sum and count are accumulated in float64 and the quotient is narrowed to float32, so
    long axes do not lose precision to float32 rounding. NaN when no value was valid.
    """

    operation = Operation.MEAN

    def initial(self, n: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.int64]]:
        return np.zeros(n, dtype=np.float64), np.zeros(n, dtype=np.int64)

    def accumulate(
        self,
        state: tuple[npt.NDArray[np.float64], npt.NDArray[np.int64]],
        row: npt.NDArray[np.float32],
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.int64]]:
        total, count = state
        valid = self._valid(row)
        total = total + np.where(valid, row.astype(np.float64), 0.0)
        return total, count + valid

    def finalize(
        self, state: tuple[npt.NDArray[np.float64], npt.NDArray[np.int64]]
    ) -> npt.NDArray[np.float32]:
        total, count = state
        with np.errstate(invalid="ignore", divide="ignore"):
            mean = total / count
        return np.where(count > 0, mean, np.nan).astype(np.float32)


_KERNELS: dict[Operation, type[ReductionKernel[Any]]] = {
    Operation.MEAN: MeanKernel,
    Operation.SUM: SumKernel,
    Operation.MIN: MinKernel,
    Operation.MAX: MaxKernel,
}


def get_kernel(
    operation: Operation | str, skip_non_finite: bool | None = None
) -> ReductionKernel[Any]:
    """Instantiate the kernel implementing `operation`."""
    return _KERNELS[Operation.parse(operation)](skip_non_finite=skip_non_finite)
