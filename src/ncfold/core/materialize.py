"""
Turning reduced arrays into named, attributed variables and writing them out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import numpy as np

from ncfold.core.attributes import FILL_VALUE, AttributeKind, AttributeValue
from ncfold.core.config import config
from ncfold.core.kernels import Operation
from ncfold.errors import BaseNcfoldError
from ncfold.sync import ProcessSynchronizer
from ncfold.util import nolock

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from os import PathLike

    from ncfold.abc.store import DatasetStore
    from ncfold.core.ndarray import NDArray
    from ncfold.sync import Synchronizer

logger = logging.getLogger(__name__)

__all__ = [
    "ReductionResult",
    "ResultWriter",
    "derive_variable_name",
    "materialize",
    "write_result",
]


def derive_variable_name(source_var_name: str, operation: Operation | str, dimension_name: str) -> str:
    """
    Name of the variable holding a reduction result, ``{var}_{operation}_over_{dim}``.

    Examples
    --------
    >>> derive_variable_name("temperature", Operation.MEAN, "time")
    'temperature_mean_over_time'
    >>> derive_variable_name("precip", "max", "lat")
    'precip_maximum_over_lat'
    """
    op = Operation.parse(operation)
    return f"{source_var_name}_{op.long_name}_over_{dimension_name}"


@dataclass(frozen=True)
class ReductionResult:
    """
    A reduced variable, ready to be printed or persisted.

    ``kept_dimension_names`` has one entry per axis of ``data``, in the order the dimensions
    had on the source variable. ``attributes`` holds the source attributes to copy, without
    the fill value; ``fill_value`` is the source fill value narrowed to float32, if it had
    one of a narrowable kind.
    """

    data: NDArray
    kept_dimension_names: tuple[str, ...]
    derived_variable_name: str
    source_variable_name: str
    dimension_name: str
    operation: Operation
    attributes: Mapping[str, AttributeValue] = field(default_factory=dict)
    fill_value: np.float32 | None = None

    def __post_init__(self) -> None:
        if len(self.kept_dimension_names) != self.data.ndim:
            raise BaseNcfoldError(
                f"{len(self.kept_dimension_names)} dimension names given for an array "
                f"with {self.data.ndim} dimensions"
            )

    @property
    def shape(self) -> tuple[int, ...]:
        return self.data.shape


def materialize(
    reduced: NDArray,
    kept_names: Sequence[str],
    operation: Operation | str,
    source_var_name: str,
    dimension_name: str,
    source_attributes: Mapping[str, AttributeValue] | None = None,
) -> ReductionResult:
    """
    Wrap a reduced array into a :class:`ReductionResult`.

    The fill value attribute (``output.fill_value_attribute``, ``_FillValue`` by default) is
    split off the source attributes and narrowed to float32 when it is a floating point or
    16-bit integer scalar; fill values of other kinds are dropped. All other attributes are
    kept for copying.
    """
    op = Operation.parse(operation)
    fill_name = config.get("output.fill_value_attribute")
    attributes = dict(source_attributes or {})
    fill_value = None
    fill = attributes.pop(fill_name, None)
    if fill is not None:
        fill_value = fill.as_float32()
        if fill_value is None:
            logger.warning(
                "Ignoring %s of variable %r: cannot narrow a %s%s value to float32",
                fill_name,
                source_var_name,
                fill.kind.value,
                " list" if fill.is_list else "",
            )
    return ReductionResult(
        data=reduced,
        kept_dimension_names=tuple(kept_names),
        derived_variable_name=derive_variable_name(source_var_name, op, dimension_name),
        source_variable_name=source_var_name,
        dimension_name=dimension_name,
        operation=op,
        attributes=attributes,
        fill_value=fill_value,
    )


def history_entry(now: datetime | None = None) -> str:
    if now is None:
        now = datetime.now(UTC)
    return f"Created by {config.get('output.creator')} on {now.isoformat()}"


class ResultWriter:
    """
    Persists reduction results through a dataset store.

    Parameters
    ----------
    store : DatasetStore
        The store the output dataset is created in.
    synchronizer : Synchronizer, optional
        Provides a lock per output path. Defaults to a :class:`ncfold.sync.ProcessSynchronizer`
        on ``output.lock_dir`` when ``output.lock`` is enabled, else no locking.
    """

    def __init__(self, store: DatasetStore, synchronizer: Synchronizer | None = None) -> None:
        if synchronizer is None and config.get("output.lock"):
            synchronizer = ProcessSynchronizer(config.get("output.lock_dir"))
        self.store = store
        self.synchronizer = synchronizer

    def _lock(self, path: str) -> Any:
        if self.synchronizer is None:
            return nolock
        return self.synchronizer[path]

    def write(self, path: str | PathLike[str], result: ReductionResult) -> list[str]:
        """
        Write `result` as the only variable of a new dataset at `path`.

        Any dataset already present at `path` is removed first. On failure the file at
        `path` may be partially written and must be treated as corrupt.

        When ``output.fill_value_attribute`` names another attribute, a ``_FillValue`` among
        the copied attributes is narrowed to float32 and put before the data as well, since
        netCDF cannot add it to an existing variable.

        Returns
        -------
        list of str
            Names of the source attributes that were skipped because the store cannot
            represent them.

        Raises
        ------
        StoreIOError
            If the store fails to remove, create or write the dataset.
        """
        key = str(path)
        with self._lock(key):
            if self.store.exists(path):
                logger.info("Removing existing output %r", key)
                self.store.remove(path)
            with self.store.create(path) as out:
                for name, length in zip(result.kept_dimension_names, result.shape, strict=True):
                    out.add_dimension(name, length)

                var = out.add_variable(
                    result.derived_variable_name, result.kept_dimension_names, dtype="float32"
                )
                skipped = []
                # fill values are fixed before any data is written, _FillValue first
                store_fill = result.attributes.get(FILL_VALUE)
                if store_fill is not None:
                    narrowed = store_fill.as_float32()
                    if narrowed is None:
                        logger.warning(
                            "Skipped %s of kind %s: cannot narrow it to float32",
                            FILL_VALUE,
                            store_fill.kind.value,
                        )
                        skipped.append(FILL_VALUE)
                    else:
                        var.put_attribute(
                            FILL_VALUE, AttributeValue(AttributeKind.FLOAT32, narrowed)
                        )
                if result.fill_value is not None:
                    var.put_attribute(
                        config.get("output.fill_value_attribute"),
                        AttributeValue(AttributeKind.FLOAT32, np.float32(result.fill_value)),
                    )

                var.put(result.data)

                for name, value in result.attributes.items():
                    if name == FILL_VALUE:
                        continue
                    if not self.store.supports_attribute(value):
                        logger.warning(
                            "Skipped unsupported attribute type for %r (%s)", name, value.kind.value
                        )
                        skipped.append(name)
                        continue
                    var.put_attribute(name, value)

                out.put_attribute(
                    config.get("output.history_attribute"),
                    AttributeValue(AttributeKind.STRING, history_entry()),
                )
        logger.info("Wrote %r to %r", result.derived_variable_name, key)
        return skipped


def write_result(
    store: DatasetStore,
    path: str | PathLike[str],
    result: ReductionResult,
    synchronizer: Synchronizer | None = None,
) -> list[str]:
    """Write `result` to a new dataset at `path`. See :meth:`ResultWriter.write`."""
    return ResultWriter(store, synchronizer=synchronizer).write(path, result)

