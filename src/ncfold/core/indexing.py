"""
Row-major coordinate codec.

Every flat-index/coordinate conversion in ncfold goes through this module, both in the
parallel axis-fold executor and in hyperslab extraction. The functions accept plain
Python integers or integer numpy arrays; array inputs are decoded element-wise.
"""

from __future__ import annotations

import math
import numbers
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy.typing as npt

    IntLike = int | npt.NDArray[np.intp]


def is_integer(x: Any) -> bool:
    return isinstance(x, numbers.Integral)


def normalize_shape(shape: Any) -> tuple[int, ...]:
    """Convenience function to normalize the `shape` argument."""

    if shape is None:
        raise TypeError("shape is None")

    # handle 1D convenience form
    if is_integer(shape):
        shape = (int(shape),)

    # normalize
    shape = tuple(int(s) for s in shape)
    if any(s < 0 for s in shape):
        raise ValueError(f"shape must not contain negative lengths, got {shape}")
    return shape


def product(shape: Sequence[int]) -> int:
    """Number of elements held by an array of the given shape; 1 for ``()``."""
    return math.prod(shape)


def c_strides(shape: Sequence[int]) -> tuple[int, ...]:
    """
    Element strides of a C-ordered (row-major) array of the given shape.

    The last axis has stride 1; axis ``k`` has stride ``prod(shape[k+1:])``.
    """
    strides = [1] * len(shape)
    for i in range(len(shape) - 2, -1, -1):
        strides[i] = strides[i + 1] * shape[i + 1]
    return tuple(strides)


def flat_to_coords(flat: IntLike, shape: Sequence[int]) -> tuple[IntLike, ...]:
    """
    Decode a flat row-major index into one coordinate per axis of `shape`.

    Parameters
    ----------
    flat : int or ndarray of int
        Flat index (or indices) into an array of `shape`.
    shape : sequence of int
        The array shape.

    Returns
    -------
    tuple
        One coordinate (or coordinate array) per axis, outermost axis first. A 0-dimensional
        shape decodes to the empty tuple.
    """
    coords: list[IntLike] = []
    remaining = flat
    for stride in c_strides(shape):
        coords.append(remaining // stride)
        remaining = remaining % stride
    return tuple(coords)


def coords_to_flat(coords: Sequence[IntLike], shape: Sequence[int]) -> IntLike:
    """
    Encode per-axis coordinates into a flat row-major index of an array of `shape`.

    The inverse of :func:`flat_to_coords`. No bounds checking is done on `coords`.
    """
    if len(coords) != len(shape):
        raise IndexError(f"expected {len(shape)} coordinates, got {len(coords)}")
    flat: IntLike = 0
    for coord, stride in zip(coords, c_strides(shape), strict=True):
        flat = flat + coord * stride
    return flat


def remove_axis(shape: Sequence[int], axis: int) -> tuple[int, ...]:
    """The shape that results from folding away `axis`."""
    return tuple(s for i, s in enumerate(shape) if i != axis)


def hyperslab_offsets(
    shape: Sequence[int], ranges: Sequence[tuple[int, int]]
) -> npt.NDArray[np.intp]:
    """
    Flat offsets, in row-major order of the selection, of the elements lying inside the
    half-open per-axis `ranges` of an array of `shape`.
    """
    if len(ranges) != len(shape):
        raise IndexError(f"expected {len(shape)} ranges, got {len(ranges)}")
    sub_shape = tuple(end - start for start, end in ranges)
    selected = np.arange(product(sub_shape), dtype=np.intp)
    sub_coords = flat_to_coords(selected, sub_shape)
    coords = [c + start for c, (start, _) in zip(sub_coords, ranges, strict=True)]
    if not coords:
        return np.zeros(1, dtype=np.intp)
    return np.asarray(coords_to_flat(coords, shape), dtype=np.intp)
