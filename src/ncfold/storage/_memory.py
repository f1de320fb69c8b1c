from __future__ import annotations

import os
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

import numpy as np

from ncfold.abc.store import (
    Dataset,
    DatasetStore,
    Variable,
    VariableWriter,
    WritableDataset,
    check_put_shape,
)
from ncfold.core.attributes import FILL_VALUE, AttributeValue
from ncfold.core.dimensions import DimensionDescriptor
from ncfold.errors import StoreIOError

if TYPE_CHECKING:
    from collections.abc import MutableMapping, Sequence
    from os import PathLike

    import numpy.typing as npt

    from ncfold.core.ndarray import NDArray

logger = getLogger(__name__)


@dataclass
class _VariableRecord:
    name: str
    dim_names: tuple[str, ...]
    dtype: np.dtype[Any]
    data: npt.NDArray[Any] | None = None
    attributes: dict[str, AttributeValue] = field(default_factory=dict)


@dataclass
class _DatasetRecord:
    dimensions: dict[str, DimensionDescriptor] = field(default_factory=dict)
    variables: dict[str, _VariableRecord] = field(default_factory=dict)
    attributes: dict[str, AttributeValue] = field(default_factory=dict)


class MemoryVariable(Variable):
    def __init__(self, dataset: _DatasetRecord, record: _VariableRecord) -> None:
        self._dataset = dataset
        self._record = record

    @property
    def name(self) -> str:
        return self._record.name

    @property
    def dimensions(self) -> list[DimensionDescriptor]:
        return [self._dataset.dimensions[d] for d in self._record.dim_names]

    @property
    def dtype(self) -> str:
        return self._record.dtype.name

    def attributes(self) -> dict[str, AttributeValue]:
        return dict(self._record.attributes)

    def get_all_values_as_f32(self) -> npt.NDArray[np.float32]:
        data = self._record.data
        if data is None:
            fill = self._record.attributes.get(FILL_VALUE)
            value = fill.value if fill is not None and not fill.is_list else 0
            return np.full(int(np.prod(self.shape)), value, dtype=np.float32)
        return data.astype(np.float32).reshape(-1)


class MemoryDataset(Dataset):
    def __init__(self, path: str, record: _DatasetRecord) -> None:
        self._path = path
        self._record = record

    @property
    def path(self) -> str:
        return self._path

    def dimensions(self) -> list[DimensionDescriptor]:
        return list(self._record.dimensions.values())

    def variable(self, name: str) -> MemoryVariable | None:
        record = self._record.variables.get(name)
        if record is None:
            return None
        return MemoryVariable(self._record, record)

    def variables(self) -> list[Variable]:
        return [MemoryVariable(self._record, r) for r in self._record.variables.values()]

    def attributes(self) -> dict[str, AttributeValue]:
        return dict(self._record.attributes)


class MemoryVariableWriter(VariableWriter):
    def __init__(self, dataset: _DatasetRecord, record: _VariableRecord) -> None:
        self._dataset = dataset
        self._record = record

    def put_attribute(self, name: str, value: AttributeValue) -> None:
        self._record.attributes[name] = AttributeValue.from_python(value)

    def put(self, array: NDArray) -> None:
        expected = tuple(self._dataset.dimensions[d].length for d in self._record.dim_names)
        check_put_shape(array, expected, self._record.name)
        self._record.data = array.to_numpy().astype(self._record.dtype)


class MemoryWritableDataset(WritableDataset):
    def __init__(self, path: str, record: _DatasetRecord) -> None:
        self._path = path
        self._record = record

    @property
    def path(self) -> str:
        return self._path

    def add_dimension(self, name: str, length: int, unlimited: bool = False) -> None:
        if name in self._record.dimensions:
            raise StoreIOError(f"Dimension {name!r} already exists in {self._path!r}")
        self._record.dimensions[name] = DimensionDescriptor(name, int(length), unlimited)

    def add_variable(
        self, name: str, dim_names: Sequence[str], dtype: str = "float32"
    ) -> MemoryVariableWriter:
        if name in self._record.variables:
            raise StoreIOError(f"Variable {name!r} already exists in {self._path!r}")
        missing = [d for d in dim_names if d not in self._record.dimensions]
        if missing:
            raise StoreIOError(f"Unknown dimensions {missing} for variable {name!r}")
        record = _VariableRecord(name, tuple(dim_names), np.dtype(dtype))
        self._record.variables[name] = record
        return MemoryVariableWriter(self._record, record)

    def put_attribute(self, name: str, value: AttributeValue) -> None:
        self._record.attributes[name] = AttributeValue.from_python(value)


class MemoryStore(DatasetStore):
    """
    Store for in-process datasets, keyed by path.

    Parameters
    ----------
    store_dict : dict, optional
        Initial datasets.
    read_only : bool
        Whether creating and removing datasets is refused.
    """

    _store_dict: MutableMapping[str, _DatasetRecord]

    def __init__(
        self,
        store_dict: MutableMapping[str, _DatasetRecord] | None = None,
        *,
        read_only: bool = False,
    ) -> None:
        if store_dict is None:
            store_dict = {}
        self._store_dict = store_dict
        self.read_only = read_only

    @staticmethod
    def _key(path: str | PathLike[str]) -> str:
        return os.fspath(path)

    def _check_writable(self) -> None:
        if self.read_only:
            raise StoreIOError("store is read-only")

    def open(self, path: str | PathLike[str]) -> MemoryDataset:
        key = self._key(path)
        try:
            record = self._store_dict[key]
        except KeyError as e:
            raise StoreIOError(f"No dataset found at path {key!r}") from e
        return MemoryDataset(key, record)

    def create(self, path: str | PathLike[str]) -> MemoryWritableDataset:
        self._check_writable()
        key = self._key(path)
        if key in self._store_dict:
            raise StoreIOError(f"A dataset already exists at path {key!r}")
        record = _DatasetRecord()
        self._store_dict[key] = record
        logger.debug("created in-memory dataset %r", key)
        return MemoryWritableDataset(key, record)

    def exists(self, path: str | PathLike[str]) -> bool:
        return self._key(path) in self._store_dict

    def remove(self, path: str | PathLike[str]) -> None:
        self._check_writable()
        try:
            del self._store_dict[self._key(path)]
        except KeyError as e:
            raise StoreIOError(f"No dataset found at path {self._key(path)!r}") from e

    def __len__(self) -> int:
        return len(self._store_dict)

    def __str__(self) -> str:
        return f"memory://{id(self._store_dict)}"

    def __repr__(self) -> str:
        return f"MemoryStore('{self}')"
