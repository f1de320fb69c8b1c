from __future__ import annotations

import contextlib
import os
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any

import netCDF4
import numpy as np

from ncfold.abc.store import (
    Dataset,
    DatasetStore,
    Variable,
    VariableWriter,
    WritableDataset,
    check_put_shape,
)
from ncfold.core.attributes import (
    FILL_VALUE,
    AttributeKind,
    AttributeValue,
    classify_attributes,
)
from ncfold.core.dimensions import DimensionDescriptor
from ncfold.errors import StoreIOError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from os import PathLike

    import numpy.typing as npt

    from ncfold.core.ndarray import NDArray

logger = getLogger(__name__)


@contextlib.contextmanager
def _wrap_errors(action: str) -> Iterator[None]:
    """Re-raise failures of the netCDF library as StoreIOError."""
    try:
        yield
    except StoreIOError:
        raise
    except (OSError, RuntimeError, KeyError, IndexError, TypeError, ValueError) as e:
        raise StoreIOError(f"{action}: {e}") from e


def _descriptor(dim: netCDF4.Dimension) -> DimensionDescriptor:
    return DimensionDescriptor(dim.name, len(dim), dim.isunlimited())


class NetCDFVariable(Variable):
    def __init__(self, var: netCDF4.Variable) -> None:
        self._var = var

    @property
    def name(self) -> str:
        return str(self._var.name)

    @property
    def dimensions(self) -> list[DimensionDescriptor]:
        dims = self._var.get_dims()
        return [_descriptor(d) for d in dims]

    @property
    def dtype(self) -> str:
        dtype = self._var.dtype
        if dtype is str:
            return "str"
        if isinstance(self._var.datatype, netCDF4.VLType):
            # ragged rows of the base type, no fixed element size
            return f"vlen {np.dtype(dtype).name}"
        return np.dtype(dtype).name

    def attributes(self) -> dict[str, AttributeValue]:
        with _wrap_errors(f"Failed reading attributes of variable {self.name!r}"):
            return classify_attributes({k: self._var.getncattr(k) for k in self._var.ncattrs()})

    def get_all_values_as_f32(self) -> npt.NDArray[np.float32]:
        with _wrap_errors(f"Failed reading variable {self.name!r}"):
            values = np.asarray(self._var[...], dtype=np.float32)
        return values.reshape(-1)

    def get_values_as_f32(self, ranges: Sequence[tuple[int, int]]) -> npt.NDArray[np.float32]:
        selection = tuple(slice(start, end) for start, end in ranges)
        with _wrap_errors(f"Failed reading slice {list(ranges)} of variable {self.name!r}"):
            values = self._var[selection] if selection else self._var[...]
            values = np.asarray(values, dtype=np.float32)
        return values.reshape(-1)


class NetCDFDataset(Dataset):
    def __init__(self, path: str, ds: netCDF4.Dataset) -> None:
        self._path = path
        self._ds = ds

    @property
    def path(self) -> str:
        return self._path

    @property
    def data_model(self) -> str:
        return str(self._ds.data_model)

    def dimensions(self) -> list[DimensionDescriptor]:
        return [_descriptor(d) for d in self._ds.dimensions.values()]

    def variable(self, name: str) -> NetCDFVariable | None:
        var = self._ds.variables.get(name)
        if var is None:
            return None
        return NetCDFVariable(var)

    def variables(self) -> list[Variable]:
        return [NetCDFVariable(v) for v in self._ds.variables.values()]

    def attributes(self) -> dict[str, AttributeValue]:
        with _wrap_errors(f"Failed reading global attributes of {self._path!r}"):
            return classify_attributes({k: self._ds.getncattr(k) for k in self._ds.ncattrs()})

    def close(self) -> None:
        if self._ds.isopen():
            self._ds.close()


class NetCDFVariableWriter(VariableWriter):
    """
    Writer for a variable of a new netCDF file.

    netCDF fixes the fill value when the variable is defined, so the variable is only
    created once the first attribute other than ``_FillValue`` or the data is put.
    """

    def __init__(
        self,
        ds: netCDF4.Dataset,
        name: str,
        dim_names: tuple[str, ...],
        shape: tuple[int, ...],
        dtype: np.dtype[Any],
    ) -> None:
        self._ds = ds
        self._name = name
        self._dim_names = dim_names
        self._shape = shape
        self._dtype = dtype
        self._fill_value: Any = None
        self._var: netCDF4.Variable | None = None

    def _realize(self) -> netCDF4.Variable:
        if self._var is None:
            with _wrap_errors(f"Failed creating variable {self._name!r}"):
                self._var = self._ds.createVariable(
                    self._name, self._dtype, self._dim_names, fill_value=self._fill_value
                )
                self._var.set_auto_maskandscale(False)
        return self._var

    def put_attribute(self, name: str, value: AttributeValue) -> None:
        value = AttributeValue.from_python(value)
        if name == FILL_VALUE:
            if self._var is not None:
                raise StoreIOError(
                    f"Cannot set {FILL_VALUE} of variable {self._name!r} after it was created"
                )
            self._fill_value = np.asarray(value.to_python(), dtype=self._dtype)[()]
            return
        var = self._realize()
        with _wrap_errors(f"Failed writing attribute {name!r} of variable {self._name!r}"):
            var.setncattr(name, value.to_python())

    def put(self, array: NDArray) -> None:
        check_put_shape(array, self._shape, self._name)
        var = self._realize()
        values = array.to_numpy().astype(self._dtype)
        with _wrap_errors(f"Failed writing data of variable {self._name!r}"):
            if self._shape:
                # explicit extents, unlimited dimensions are still empty
                var[tuple(slice(0, n) for n in self._shape)] = values
            else:
                var.assignValue(values)


class NetCDFWritableDataset(WritableDataset):
    def __init__(self, path: str, ds: netCDF4.Dataset) -> None:
        self._path = path
        self._ds = ds
        # declared lengths; unlimited dimensions report 0 until data is written
        self._lengths: dict[str, int] = {}

    @property
    def path(self) -> str:
        return self._path

    def add_dimension(self, name: str, length: int, unlimited: bool = False) -> None:
        with _wrap_errors(f"Failed adding dimension {name!r}"):
            self._ds.createDimension(name, None if unlimited else length)
        self._lengths[name] = int(length)

    def add_variable(
        self, name: str, dim_names: Sequence[str], dtype: str = "float32"
    ) -> NetCDFVariableWriter:
        missing = [d for d in dim_names if d not in self._lengths]
        if missing:
            raise StoreIOError(f"Unknown dimensions {missing} for variable {name!r}")
        shape = tuple(self._lengths[d] for d in dim_names)
        return NetCDFVariableWriter(self._ds, name, tuple(dim_names), shape, np.dtype(dtype))

    def put_attribute(self, name: str, value: AttributeValue) -> None:
        value = AttributeValue.from_python(value)
        with _wrap_errors(f"Failed writing global attribute {name!r}"):
            self._ds.setncattr(name, value.to_python())

    def close(self) -> None:
        if self._ds.isopen():
            with _wrap_errors(f"Failed closing {self._path!r}"):
                self._ds.close()


class NetCDFStore(DatasetStore):
    """
    Store for netCDF files on the local file system, backed by the netCDF4 library.

    Values are read raw: masking and scale/offset unpacking are disabled, so fill values
    come back as their numeric value.

    Parameters
    ----------
    format : str
        The netCDF format new files are created with. Defaults to ``"NETCDF4"``.
    """

    def __init__(self, format: str = "NETCDF4") -> None:
        self.format = format
        if format.startswith("NETCDF3") or format == "NETCDF4_CLASSIC":
            # the classic model has no 64-bit integers, unsigned integers or string lists
            self.supported_attribute_kinds = frozenset(
                {
                    AttributeKind.STRING,
                    AttributeKind.FLOAT32,
                    AttributeKind.FLOAT64,
                    AttributeKind.INT8,
                    AttributeKind.INT16,
                    AttributeKind.INT32,
                }
            )

    def open(self, path: str | PathLike[str]) -> NetCDFDataset:
        path = os.fspath(path)
        with _wrap_errors(f"Failed to open NetCDF file {path!r}"):
            ds = netCDF4.Dataset(path, mode="r")
        ds.set_auto_maskandscale(False)
        logger.debug("opened %r (%s)", path, ds.data_model)
        return NetCDFDataset(path, ds)

    def create(self, path: str | PathLike[str]) -> NetCDFWritableDataset:
        path = os.fspath(path)
        with _wrap_errors(f"Failed to create NetCDF file {path!r}"):
            ds = netCDF4.Dataset(path, mode="w", clobber=False, format=self.format)
        return NetCDFWritableDataset(path, ds)

    def exists(self, path: str | PathLike[str]) -> bool:
        return Path(path).exists()

    def remove(self, path: str | PathLike[str]) -> None:
        with _wrap_errors(f"Failed to remove {os.fspath(path)!r}"):
            Path(path).unlink()

    def __repr__(self) -> str:
        return f"NetCDFStore(format={self.format!r})"
