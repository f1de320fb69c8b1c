"""
Reductions of a dataset variable over one of its named dimensions.

This module ties the pieces together: the requested dimension is resolved to an axis before
any data is read, the variable is loaded as a flat float32 buffer, the axis is folded by the
parallel executor and the result is wrapped with its derived name and attributes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ncfold.core.dimensions import kept_names, resolve_axis
from ncfold.core.executor import fold_axis
from ncfold.core.kernels import Operation, get_kernel
from ncfold.core.materialize import ReductionResult, materialize
from ncfold.core.ndarray import NDArray
from ncfold.errors import VariableNotFoundError

if TYPE_CHECKING:
    from ncfold.abc.store import Dataset, Variable
    from ncfold.core.executor import ExecutionContext

logger = logging.getLogger(__name__)

__all__ = [
    "ReductionRequest",
    "ReductionResult",
    "max_over_dimension",
    "mean_over_dimension",
    "min_over_dimension",
    "reduce",
    "reduce_over_dimension",
    "sum_over_dimension",
]


@dataclass(frozen=True)
class ReductionRequest:
    """
    A reduction of `variable_name` over `dimension_name`.

    Examples
    --------
    >>> ReductionRequest.parse("temperature:time", "mean")
    ReductionRequest(variable_name='temperature', dimension_name='time', operation=<Operation.MEAN: 'mean'>)
    """

    variable_name: str
    dimension_name: str
    operation: Operation

    @classmethod
    def parse(cls, text: str, operation: Operation | str) -> ReductionRequest:
        """
        Parse a ``"<variable>:<dimension>"`` request.

        Raises
        ------
        ValueError
            If `text` is not made of exactly two non-empty, colon separated names.
        """
        parts = text.split(":")
        if len(parts) != 2 or not all(p.strip() for p in parts):
            raise ValueError(
                f"Invalid reduction request {text!r}: expected the form <variable>:<dimension>"
            )
        variable_name, dimension_name = (p.strip() for p in parts)
        return cls(variable_name, dimension_name, Operation.parse(operation))

    def validate(self, dataset: Dataset) -> int:
        """
        Check the request against `dataset` without reading any data.

        Returns
        -------
        int
            The axis index of the reduced dimension.

        Raises
        ------
        VariableNotFoundError
        DimensionNotFoundError
        """
        var = _lookup(dataset, self.variable_name)
        return resolve_axis(var.dimensions, self.dimension_name, self.variable_name)

    def __str__(self) -> str:
        return f"{self.operation.long_name} of {self.variable_name!r} over {self.dimension_name!r}"


def _lookup(dataset: Dataset, variable_name: str) -> Variable:
    var = dataset.variable(variable_name)
    if var is None:
        raise VariableNotFoundError(variable_name)
    return var


def reduce_over_dimension(
    dataset: Dataset,
    variable_name: str,
    dimension_name: str,
    operation: Operation | str,
    context: ExecutionContext | None = None,
    skip_non_finite: bool | None = None,
) -> ReductionResult:
    """
    Reduce a variable of `dataset` over one of its dimensions.

    Parameters
    ----------
    dataset : Dataset
        The open dataset holding the variable.
    variable_name : str
        The variable to reduce.
    dimension_name : str
        The dimension to fold away.
    operation : Operation or str
        One of mean, sum, min or max.
    context : ExecutionContext, optional
        The worker pool to run on. Defaults to the process-wide context.
    skip_non_finite : bool, optional
        Whether NaN and infinite values are skipped. Defaults to the
        ``reduction.skip_non_finite`` config value.

    Returns
    -------
    ReductionResult

    Raises
    ------
    VariableNotFoundError
        If the dataset has no variable `variable_name`.
    DimensionNotFoundError
        If the variable has no dimension `dimension_name`. Raised before any data is read.
    StoreIOError
        If reading the variable fails.
    """
    op = Operation.parse(operation)
    var = _lookup(dataset, variable_name)
    descriptors = var.dimensions
    axis = resolve_axis(descriptors, dimension_name, variable_name)
    names = kept_names(descriptors, axis)

    shape = var.shape
    logger.info("Loading variable %r with shape %s", variable_name, shape)
    source = NDArray(shape, var.get_all_values_as_f32())

    logger.info(
        "Computing %s over dimension %r (axis %d) of %r",
        op.long_name,
        dimension_name,
        axis,
        variable_name,
    )
    kernel = get_kernel(op, skip_non_finite=skip_non_finite)
    reduced = fold_axis(source, axis, kernel, context=context)
    logger.debug("Result shape %s", reduced.shape)

    return materialize(
        reduced,
        names,
        op,
        variable_name,
        dimension_name,
        source_attributes=var.attributes(),
    )


def reduce(
    dataset: Dataset, request: ReductionRequest, context: ExecutionContext | None = None
) -> ReductionResult:
    """Run a parsed :class:`ReductionRequest` against `dataset`."""
    return reduce_over_dimension(
        dataset,
        request.variable_name,
        request.dimension_name,
        request.operation,
        context=context,
    )


def mean_over_dimension(
    dataset: Dataset,
    variable_name: str,
    dimension_name: str,
    context: ExecutionContext | None = None,
) -> ReductionResult:
    """Arithmetic mean of the finite values along a dimension."""
    return reduce_over_dimension(dataset, variable_name, dimension_name, Operation.MEAN, context)


def sum_over_dimension(
    dataset: Dataset,
    variable_name: str,
    dimension_name: str,
    context: ExecutionContext | None = None,
) -> ReductionResult:
    """Sum of the finite values along a dimension."""
    return reduce_over_dimension(dataset, variable_name, dimension_name, Operation.SUM, context)


def min_over_dimension(
    dataset: Dataset,
    variable_name: str,
    dimension_name: str,
    context: ExecutionContext | None = None,
) -> ReductionResult:
    """Minimum of the finite values along a dimension."""
    return reduce_over_dimension(dataset, variable_name, dimension_name, Operation.MIN, context)


def max_over_dimension(
    dataset: Dataset,
    variable_name: str,
    dimension_name: str,
    context: ExecutionContext | None = None,
) -> ReductionResult:
    """Maximum of the finite values along a dimension."""
    return reduce_over_dimension(dataset, variable_name, dimension_name, Operation.MAX, context)
