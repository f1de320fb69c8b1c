"""
Hyperslab extraction.

A slice specification has the form ``var:start:end[,dim:start:end]*``. The leading range
applies to the first dimension of the variable, the following ones to the named dimensions.
Dimensions that are not mentioned are taken whole. Ranges are half-open.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from ncfold.core.config import config
from ncfold.core.indexing import product
from ncfold.core.kernels import MaxKernel, MeanKernel, MinKernel
from ncfold.core.ndarray import NDArray
from ncfold.errors import InvalidSliceError, VariableNotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ncfold.abc.store import Dataset

logger = logging.getLogger(__name__)

__all__ = [
    "DimSlice",
    "SliceResult",
    "SliceSpec",
    "SliceStatistics",
    "extract_slice",
    "parse_slice_spec",
    "resolve_slice_ranges",
]


@dataclass(frozen=True)
class DimSlice:
    """A half-open ``[start, end)`` range. ``dimension`` is None for the leading range."""

    dimension: str | None
    start: int
    end: int


@dataclass(frozen=True)
class SliceSpec:
    variable: str
    slices: tuple[DimSlice, ...]

    @property
    def first(self) -> DimSlice:
        return self.slices[0]


def _parse_index(text: str, what: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise InvalidSliceError(f"invalid {what} index {text!r}") from None
    if value < 0:
        raise InvalidSliceError(f"{what} index must not be negative, got {value}")
    return value


def parse_slice_spec(text: str) -> SliceSpec:
    """
    Parse ``"var:start:end[,dim:start:end]*"``.

    Examples
    --------
    >>> spec = parse_slice_spec("temperature:0:6,lat:1:3")
    >>> spec.variable, spec.slices[1]
    ('temperature', DimSlice(dimension='lat', start=1, end=3))

    Raises
    ------
    InvalidSliceError
        If the text is malformed.
    """
    parts = [p.strip() for p in text.split(",")]
    head = parts[0].split(":")
    if len(head) != 3 or not head[0]:
        raise InvalidSliceError(
            f"{text!r}: expected 'variable:start:end,dimension:start:end'"
        )
    variable = head[0]
    slices = [DimSlice(None, _parse_index(head[1], "start"), _parse_index(head[2], "end"))]

    seen = set()
    for part in parts[1:]:
        fields = part.split(":")
        if len(fields) != 3 or not fields[0]:
            raise InvalidSliceError(f"{part!r}: expected 'dimension:start:end'")
        if fields[0] in seen:
            raise InvalidSliceError(f"dimension {fields[0]!r} is given more than once")
        seen.add(fields[0])
        slices.append(
            DimSlice(fields[0], _parse_index(fields[1], "start"), _parse_index(fields[2], "end"))
        )
    return SliceSpec(variable, tuple(slices))


def _check_range(dimension: str, start: int, end: int, length: int) -> tuple[int, int]:
    if start >= length or end > length or start >= end:
        raise InvalidSliceError(
            f"invalid range for dimension {dimension!r}: {start}:{end} "
            f"(dimension size: {length})"
        )
    return start, end


def resolve_slice_ranges(
    spec: SliceSpec, dimension_names: Sequence[str], shape: Sequence[int]
) -> list[tuple[int, int]]:
    """
    One ``(start, end)`` range per dimension of the variable.

    Raises
    ------
    InvalidSliceError
        If the variable has no dimensions, a named dimension does not belong to the
        variable, or a range is empty or out of bounds.
    """
    if not dimension_names:
        raise InvalidSliceError(f"variable {spec.variable!r} has no dimensions to slice")
    named = {s.dimension: s for s in spec.slices[1:]}
    unknown = sorted(set(named) - set(dimension_names))
    if unknown:
        raise InvalidSliceError(
            f"variable {spec.variable!r} has no dimension(s) {', '.join(map(repr, unknown))}"
        )
    if dimension_names[0] in named:
        raise InvalidSliceError(
            f"dimension {dimension_names[0]!r} is sliced by the leading range already"
        )

    ranges = []
    for axis, (name, length) in enumerate(zip(dimension_names, shape, strict=True)):
        if axis == 0:
            dim_slice: DimSlice | None = spec.first
        else:
            dim_slice = named.get(name)
        if dim_slice is None:
            ranges.append((0, length))
        else:
            ranges.append(_check_range(name, dim_slice.start, dim_slice.end, length))
    return ranges


@dataclass(frozen=True)
class SliceStatistics:
    min: float
    max: float
    mean: float
    valid_count: int
    total_count: int


@dataclass(frozen=True)
class SliceResult:
    """An extracted hyperslab together with where it came from."""

    variable_name: str
    dimension_names: tuple[str, ...]
    ranges: tuple[tuple[int, int], ...]
    data: NDArray

    @property
    def shape(self) -> tuple[int, ...]:
        return self.data.shape

    def statistics(self) -> SliceStatistics:
        """Min, max and mean over the finite values of the slice."""
        values = self.data.data
        valid = int(np.count_nonzero(np.isfinite(values)))
        return SliceStatistics(
            min=float(MinKernel(skip_non_finite=True).fold(values)),
            max=float(MaxKernel(skip_non_finite=True).fold(values)),
            mean=float(MeanKernel(skip_non_finite=True).fold(values)),
            valid_count=valid,
            total_count=values.size,
        )

    def preview(self, limit: int | None = None) -> tuple[list[float], int]:
        """
        Leading values of the slice for display.

        All values are returned when there are at most `limit` (``slice.preview_items``) of
        them, else the first half of `limit`. The second item is the number of values left
        out.
        """
        if limit is None:
            limit = int(config.get("slice.preview_items"))
        values = self.data.data
        if values.size <= limit:
            return values.tolist(), 0
        shown = max(1, limit // 2)
        return values[:shown].tolist(), values.size - shown

    def describe_ranges(self) -> list[str]:
        return [
            f"{name}: [{start}:{end}] (size: {end - start})"
            for name, (start, end) in zip(self.dimension_names, self.ranges, strict=True)
        ]


def extract_slice(dataset: Dataset, spec: SliceSpec | str) -> SliceResult:
    """
    Read the hyperslab described by `spec` from `dataset`.

    Raises
    ------
    VariableNotFoundError
    InvalidSliceError
    StoreIOError
    """
    if isinstance(spec, str):
        spec = parse_slice_spec(spec)
    var = dataset.variable(spec.variable)
    if var is None:
        raise VariableNotFoundError(spec.variable)

    names = var.dimension_names
    ranges = resolve_slice_ranges(spec, names, var.shape)
    sub_shape = tuple(end - start for start, end in ranges)
    logger.info("Extracting slice %s of %r", ranges, spec.variable)
    values = var.get_values_as_f32(ranges)
    data = NDArray(sub_shape, values)
    logger.debug("Extracted %d of %d elements", data.size, product(var.shape))
    return SliceResult(spec.variable, tuple(names), tuple(ranges), data)


def format_value(value: float) -> str:
    return "NaN" if math.isnan(value) else f"{value:.4f}"
