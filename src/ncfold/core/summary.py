from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from ncfold.core.kernels import MaxKernel, MeanKernel, MinKernel
from ncfold.errors import NcfoldUserWarning, VariableNotFoundError

if TYPE_CHECKING:
    from ncfold.abc.store import Dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariableSummary:
    """Whole-variable statistics over the finite values; the statistics are NaN when none are."""

    name: str
    min: float
    max: float
    mean: float
    std: float
    valid_count: int
    total_count: int

    def info_items(self) -> list[tuple[str, str]]:
        return [
            ("Min", f"{self.min}"),
            ("Max", f"{self.max}"),
            ("Mean", f"{self.mean:.2f}"),
            ("Std Dev", f"{self.std:.2f}"),
            ("Valid elements", f"{self.valid_count} / {self.total_count}"),
        ]


def summarize_variable(dataset: Dataset, name: str) -> VariableSummary:
    """
    Min, max, mean and population standard deviation of a variable.

    Raises
    ------
    VariableNotFoundError
    StoreIOError
    """
    var = dataset.variable(name)
    if var is None:
        raise VariableNotFoundError(name)
    values = var.get_all_values_as_f32()
    finite = values[np.isfinite(values)]
    logger.info("Summarizing %r: %d of %d values are finite", name, finite.size, values.size)

    if finite.size == 0:
        warnings.warn(
            f"variable {name!r} holds no finite values", NcfoldUserWarning, stacklevel=2
        )
        std = float("nan")
    else:
        std = float(np.std(finite, dtype=np.float64))

    return VariableSummary(
        name=name,
        min=float(MinKernel(skip_non_finite=True).fold(values)),
        max=float(MaxKernel(skip_non_finite=True).fold(values)),
        mean=float(MeanKernel(skip_non_finite=True).fold(values)),
        std=std,
        valid_count=int(finite.size),
        total_count=int(values.size),
    )
