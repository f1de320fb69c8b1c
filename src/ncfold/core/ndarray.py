from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np
from numcodecs.compat import ensure_contiguous_ndarray

from ncfold.core.indexing import (
    coords_to_flat,
    hyperslab_offsets,
    normalize_shape,
    product,
)
from ncfold.errors import AxisOutOfBoundsError, ShapeMismatchError

if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy.typing as npt


class NDArray:
    """
    An immutable n-dimensional array of 32-bit floats stored as a flat row-major buffer.

    Parameters
    ----------
    shape : int or sequence of int
        Length of each axis, outermost first. ``()`` describes a 0-dimensional array holding
        a single element.
    data : array-like
        The values in row-major (C) order. Must hold exactly ``prod(shape)`` elements; it is
        converted to float32 and flattened.

    Raises
    ------
    ShapeMismatchError
        If the number of values does not match the shape.

    Examples
    --------
    >>> a = NDArray((2, 3), range(6))
    >>> a[1, 2]
    5.0
    """

    __slots__ = ("_data", "_shape")

    _shape: tuple[int, ...]
    _data: npt.NDArray[np.float32]

    def __init__(self, shape: Any, data: Any) -> None:
        shape = normalize_shape(shape)
        values = np.array(data, dtype=np.float32, copy=True)
        values = ensure_contiguous_ndarray(values).reshape(-1)
        if values.size != product(shape):
            raise ShapeMismatchError(shape, values.size)
        values.setflags(write=False)
        self._shape = shape
        self._data = values

    @classmethod
    def from_numpy(cls, array: npt.ArrayLike) -> NDArray:
        """Build an NDArray from an array-like, keeping its shape."""
        array = np.asarray(array)
        return cls(array.shape, array.reshape(-1))

    @classmethod
    def _wrap(cls, shape: tuple[int, ...], data: npt.NDArray[np.float32]) -> NDArray:
        # internal constructor for buffers that are already flat float32 and owned
        if data.size != product(shape):
            raise ShapeMismatchError(shape, data.size)
        obj = cls.__new__(cls)
        data.setflags(write=False)
        obj._shape = shape
        obj._data = data
        return obj

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def data(self) -> npt.NDArray[np.float32]:
        """The flat, read-only row-major buffer."""
        return self._data

    @property
    def ndim(self) -> int:
        return len(self._shape)

    @property
    def size(self) -> int:
        return self._data.size

    def to_numpy(self) -> npt.NDArray[np.float32]:
        """A read-only numpy view of the data with the array's shape."""
        return self._data.reshape(self._shape)

    def check_axis(self, axis: int) -> int:
        if not 0 <= axis < self.ndim:
            raise AxisOutOfBoundsError(axis, self.ndim)
        return axis

    def subset(self, ranges: Sequence[tuple[int, int]]) -> NDArray:
        """
        Copy out the hyperslab given by one half-open ``(start, end)`` range per axis.

        Ranges are expected to be validated by the caller.
        """
        offsets = hyperslab_offsets(self._shape, ranges)
        sub_shape = tuple(end - start for start, end in ranges)
        return NDArray._wrap(sub_shape, self._data[offsets])

    def __getitem__(self, coords: int | tuple[int, ...]) -> float:
        if not isinstance(coords, tuple):
            coords = (coords,)
        for axis, (c, length) in enumerate(zip(coords, self._shape, strict=False)):
            if not 0 <= c < length:
                raise IndexError(
                    f"index {c} is out of bounds for axis {axis} with length {length}"
                )
        return float(self._data[coords_to_flat(coords, self._shape)])

    def __len__(self) -> int:
        if not self._shape:
            raise TypeError("len() of a 0-dimensional array")
        return self._shape[0]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NDArray):
            return NotImplemented
        return self._shape == other._shape and np.array_equal(
            self._data, other._data, equal_nan=True
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"NDArray(shape={self._shape}, data={np.array2string(self.to_numpy())})"
