from __future__ import annotations

from typing import Any

import numpy as np
import pytest

from ncfold.errors import StoreIOError
from ncfold.storage import MemoryStore
from ncfold.testing.store import StoreTests
from ncfold.testing.utils import create_dataset


class TestMemoryStore(StoreTests[MemoryStore]):
    store_cls = MemoryStore

    @pytest.fixture(params=[None, True])
    def store_kwargs(self, request: pytest.FixtureRequest) -> dict[str, Any]:
        kwargs: dict[str, Any]
        if request.param is True:
            kwargs = {"store_dict": {}}
        else:
            kwargs = {"store_dict": None}
        return kwargs

    def test_store_repr(self, store: MemoryStore) -> None:
        assert str(store) == f"memory://{id(store._store_dict)}"
        assert repr(store) == f"MemoryStore('{store}')"

    def test_len(self, store: MemoryStore, sample: str) -> None:
        assert len(store) == 1

    def test_read_only(self, sample: str, store: MemoryStore) -> None:
        read_only = MemoryStore(store._store_dict, read_only=True)
        with read_only.open(sample) as ds:
            assert ds.variable("field") is not None
        with pytest.raises(StoreIOError, match="read-only"):
            read_only.create("other.nc")
        with pytest.raises(StoreIOError, match="read-only"):
            read_only.remove(sample)

    def test_duplicate_dimension(self, store: MemoryStore, path: str) -> None:
        with store.create(path) as ds:
            ds.add_dimension("x", 2)
            with pytest.raises(StoreIOError, match="already exists"):
                ds.add_dimension("x", 3)

    def test_unwritten_variable_reads_fill(self, store: MemoryStore, path: str) -> None:
        with store.create(path) as ds:
            ds.add_dimension("x", 3)
            var = ds.add_variable("v", ["x"])
            var.put_attribute("_FillValue", np.float32(-5.0))
        with store.open(path) as ds:
            np.testing.assert_array_equal(ds.variable("v").get_all_values_as_f32(), [-5.0] * 3)

    def test_shared_store_dict(self) -> None:
        store_dict: dict[str, Any] = {}
        create_dataset(MemoryStore(store_dict), "a.nc", [("x", 1)], {})
        assert MemoryStore(store_dict).exists("a.nc")
