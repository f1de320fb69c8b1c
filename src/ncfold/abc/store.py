from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ncfold.core.attributes import AttributeKind
from ncfold.core.dimensions import dimension_names, dimension_shape
from ncfold.core.ndarray import NDArray
from ncfold.errors import StoreIOError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from os import PathLike
    from types import TracebackType
    from typing import Self

    import numpy as np
    import numpy.typing as npt

    from ncfold.core.attributes import AttributeValue
    from ncfold.core.dimensions import DimensionDescriptor

__all__ = ["Dataset", "DatasetStore", "Variable", "VariableWriter", "WritableDataset"]


class Variable(ABC):
    """
    Read access to one variable of an open dataset.

    Handles are owned by the dataset they came from and are only valid while it is open.
    """

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def dimensions(self) -> list[DimensionDescriptor]:
        """The variable's dimensions in declaration order."""

    @property
    @abstractmethod
    def dtype(self) -> str:
        """The storage data type as a numpy dtype name, e.g. ``"float32"``."""

    @abstractmethod
    def attributes(self) -> dict[str, AttributeValue]:
        """The variable's attributes, in storage order."""

    @abstractmethod
    def get_all_values_as_f32(self) -> npt.NDArray[np.float32]:
        """
        Read the whole variable as a flat row-major float32 buffer.

        Raises
        ------
        StoreIOError
            If the read fails.
        """

    def get_values_as_f32(self, ranges: Sequence[tuple[int, int]]) -> npt.NDArray[np.float32]:
        """
        Read the hyperslab given by one half-open ``(start, end)`` range per dimension as a
        flat row-major float32 buffer.

        The default implementation reads the whole variable and slices it in memory; backends
        that can read partial data override it.
        """
        full = NDArray(self.shape, self.get_all_values_as_f32())
        return full.subset(ranges).data

    @property
    def shape(self) -> tuple[int, ...]:
        return dimension_shape(self.dimensions)

    @property
    def dimension_names(self) -> list[str]:
        return dimension_names(self.dimensions)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} {self.dimension_names} {self.dtype}>"


class Dataset(ABC):
    """An open, readable dataset: dimensions, variables and global attributes."""

    @property
    @abstractmethod
    def path(self) -> str: ...

    @abstractmethod
    def dimensions(self) -> list[DimensionDescriptor]:
        """All dimensions of the dataset in definition order."""

    @abstractmethod
    def variable(self, name: str) -> Variable | None:
        """The variable called `name`, or ``None`` if there is none."""

    @abstractmethod
    def variables(self) -> list[Variable]:
        """All variables of the dataset in definition order."""

    @abstractmethod
    def attributes(self) -> dict[str, AttributeValue]:
        """The global attributes of the dataset."""

    def close(self) -> None:  # noqa: B027
        """Release the dataset. Variable handles are invalid afterwards."""

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.path!r}>"


class VariableWriter(ABC):
    """Write access to a variable of a dataset being created."""

    @abstractmethod
    def put_attribute(self, name: str, value: AttributeValue) -> None:
        """
        Attach an attribute to the variable.

        The fill value attribute must be put before :meth:`put` for backends that fix the
        fill value in the storage layout.
        """

    @abstractmethod
    def put(self, array: NDArray) -> None:
        """Write the complete variable data; the shape must match the variable's dimensions."""


class WritableDataset(ABC):
    """A dataset being created."""

    @property
    @abstractmethod
    def path(self) -> str: ...

    @abstractmethod
    def add_dimension(self, name: str, length: int, unlimited: bool = False) -> None:
        """Define a dimension. An unlimited dimension still takes `length` as its current size."""

    @abstractmethod
    def add_variable(
        self, name: str, dim_names: Sequence[str], dtype: str = "float32"
    ) -> VariableWriter: ...

    @abstractmethod
    def put_attribute(self, name: str, value: AttributeValue) -> None:
        """Attach a global attribute."""

    def close(self) -> None:  # noqa: B027
        """Flush and release the dataset."""

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()


class DatasetStore(ABC):
    """
    Abstract base class for the containers datasets are read from and written to.

    All failures of the underlying container are raised as
    :class:`ncfold.errors.StoreIOError`.
    """

    supported_attribute_kinds: frozenset[AttributeKind] = frozenset(
        kind for kind in AttributeKind if kind is not AttributeKind.UNKNOWN
    )

    @abstractmethod
    def open(self, path: str | PathLike[str]) -> Dataset:
        """Open an existing dataset for reading."""

    @abstractmethod
    def create(self, path: str | PathLike[str]) -> WritableDataset:
        """Create a new, empty dataset, replacing nothing: `path` must not exist."""

    @abstractmethod
    def exists(self, path: str | PathLike[str]) -> bool: ...

    @abstractmethod
    def remove(self, path: str | PathLike[str]) -> None: ...

    def supports_attribute(self, value: AttributeValue) -> bool:
        return value.kind in self.supported_attribute_kinds

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def check_put_shape(array: NDArray, expected: Sequence[int], name: str) -> None:
    if tuple(array.shape) != tuple(expected):
        raise StoreIOError(
            f"Cannot write array of shape {array.shape} to variable {name!r} "
            f"with shape {tuple(expected)}"
        )