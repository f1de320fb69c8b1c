from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from ncfold.core.ndarray import NDArray

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ncfold.abc.store import DatasetStore

__all__ = ["create_dataset"]


def create_dataset(
    store: DatasetStore,
    path: str,
    dimensions: Sequence[tuple[str, int]],
    variables: Mapping[str, tuple[Sequence[str], Any, Mapping[str, Any]]],
    attributes: Mapping[str, Any] | None = None,
    unlimited: Sequence[str] = (),
) -> None:
    """
    Create a dataset at `path` through the writer interface of `store`.

    `variables` maps each variable name to ``(dimension names, data, attributes)``. The
    storage dtype is the dtype of ``numpy.asarray(data)``; attributes are written in order,
    so a ``_FillValue`` given first is put before the data.
    """
    with store.create(path) as ds:
        for name, length in dimensions:
            ds.add_dimension(name, length, unlimited=name in unlimited)
        for name, (dims, data, attrs) in variables.items():
            values = np.asarray(data)
            var = ds.add_variable(name, dims, dtype=values.dtype.name)
            for key, value in attrs.items():
                var.put_attribute(key, value)
            var.put(NDArray(values.shape, values.reshape(-1)))
        for key, value in (attributes or {}).items():
            ds.put_attribute(key, value)
