from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pytest

from ncfold.core.summary import summarize_variable
from ncfold.errors import NcfoldUserWarning, VariableNotFoundError
from ncfold.storage import MemoryStore
from ncfold.testing.utils import create_dataset

if TYPE_CHECKING:
    from ncfold.abc.store import Dataset


def test_summary(climate: Dataset) -> None:
    summary = summarize_variable(climate, "temperature")
    assert summary.min == 1.0
    assert summary.max == 24.0
    assert summary.mean == pytest.approx(12.5)
    assert summary.std == pytest.approx(float(np.std(np.arange(1, 25))))
    assert (summary.valid_count, summary.total_count) == (24, 24)
    assert summary.info_items() == [
        ("Min", "1.0"),
        ("Max", "24.0"),
        ("Mean", "12.50"),
        ("Std Dev", "6.92"),
        ("Valid elements", "24 / 24"),
    ]


def test_summary_skips_non_finite() -> None:
    store = MemoryStore()
    values = np.array([2.0, np.nan, 4.0, -np.inf], dtype=np.float32)
    create_dataset(store, "s.nc", [("n", 4)], {"v": (["n"], values, {})})
    with store.open("s.nc") as ds:
        summary = summarize_variable(ds, "v")
    assert (summary.min, summary.max, summary.mean, summary.std) == (2.0, 4.0, 3.0, 1.0)
    assert (summary.valid_count, summary.total_count) == (2, 4)


def test_summary_without_finite_values() -> None:
    store = MemoryStore()
    values = np.full(3, np.nan, dtype=np.float32)
    create_dataset(store, "s.nc", [("n", 3)], {"v": (["n"], values, {})})
    with store.open("s.nc") as ds, pytest.warns(NcfoldUserWarning, match="no finite values"):
        summary = summarize_variable(ds, "v")
    assert np.isnan(summary.min)
    assert np.isnan(summary.std)
    assert summary.valid_count == 0


def test_summary_missing_variable(climate: Dataset) -> None:
    with pytest.raises(VariableNotFoundError):
        summarize_variable(climate, "pressure")
