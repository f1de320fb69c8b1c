import logging
from typing import TYPE_CHECKING, Literal

from ncfold._version import version as __version__
from ncfold.core.config import config
from ncfold.core.executor import (
    ExecutionContext,
    configure_default_context,
    fold_axis,
    get_default_context,
)
from ncfold.core.kernels import Operation, get_kernel
from ncfold.core.materialize import (
    ReductionResult,
    ResultWriter,
    derive_variable_name,
    materialize,
    write_result,
)
from ncfold.core.ndarray import NDArray
from ncfold.core.reduction import (
    ReductionRequest,
    max_over_dimension,
    mean_over_dimension,
    min_over_dimension,
    reduce,
    reduce_over_dimension,
    sum_over_dimension,
)
from ncfold.core.slicing import extract_slice, parse_slice_spec
from ncfold.core.summary import summarize_variable
from ncfold.storage import MemoryStore, NetCDFStore

if TYPE_CHECKING:
    from ncfold.abc.store import Dataset, DatasetStore


def open_dataset(path: str, store: "DatasetStore | None" = None) -> "Dataset":
    """
    Open a dataset for reading.

    Parameters
    ----------
    path : str
        Path of the dataset.
    store : DatasetStore, optional
        The store to open it from. Defaults to a :class:`NetCDFStore`.
    """
    if store is None:
        store = NetCDFStore()
    return store.open(path)


def set_log_level(
    level: Literal["NOTSET", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
) -> None:
    """Set the logging level for ncfold.

    Parameters
    ----------
    level : str
        The logging level to set.
    """
    logging.getLogger("ncfold").setLevel(level)


def set_format(log_format: str) -> None:
    """Set the format of log messages emitted by ncfold.

    Parameters
    ----------
    log_format : str
        A format string understood by :class:`logging.Formatter`.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=log_format))
    logger = logging.getLogger("ncfold")
    logger.handlers = []
    logger.addHandler(handler)


__all__ = [
    "ExecutionContext",
    "MemoryStore",
    "NDArray",
    "NetCDFStore",
    "Operation",
    "ReductionRequest",
    "ReductionResult",
    "ResultWriter",
    "__version__",
    "config",
    "configure_default_context",
    "derive_variable_name",
    "extract_slice",
    "fold_axis",
    "get_default_context",
    "get_kernel",
    "materialize",
    "max_over_dimension",
    "mean_over_dimension",
    "min_over_dimension",
    "open_dataset",
    "parse_slice_spec",
    "reduce",
    "reduce_over_dimension",
    "set_format",
    "set_log_level",
    "sum_over_dimension",
    "summarize_variable",
    "write_result",
]
