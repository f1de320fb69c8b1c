from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pytest

from ncfold.core.config import config
from ncfold.core.slicing import (
    DimSlice,
    SliceSpec,
    extract_slice,
    format_value,
    parse_slice_spec,
    resolve_slice_ranges,
)
from ncfold.errors import InvalidSliceError, VariableNotFoundError
from ncfold.storage import MemoryStore
from ncfold.testing.utils import create_dataset

if TYPE_CHECKING:
    from ncfold.abc.store import Dataset

CUBE = np.arange(60, dtype=np.float32).reshape(3, 4, 5)


@pytest.fixture
def cube() -> Dataset:
    store = MemoryStore()
    create_dataset(
        store,
        "cube.nc",
        [("z", 3), ("y", 4), ("x", 5)],
        {"data": (["z", "y", "x"], CUBE, {})},
    )
    return store.open("cube.nc")


def test_parse() -> None:
    spec = parse_slice_spec("temperature:0:2")
    assert spec == SliceSpec("temperature", (DimSlice(None, 0, 2),))
    spec = parse_slice_spec("temperature:0:6, lat:1:3,lon:0:1")
    assert spec.variable == "temperature"
    assert spec.slices[1:] == (DimSlice("lat", 1, 3), DimSlice("lon", 0, 1))


@pytest.mark.parametrize(
    "text",
    [
        "temperature",
        "temperature:0",
        "temperature:a:2",
        ":0:2",
        "t:0:2,lat:1",
        "t:0:2,:1:2",
        "t:-1:2",
        "t:0:2,lat:0:1,lat:1:2",
    ],
)
def test_parse_invalid(text: str) -> None:
    with pytest.raises(InvalidSliceError, match="Invalid slice specification"):
        parse_slice_spec(text)


def test_first_axis_slice(cube: Dataset) -> None:
    result = extract_slice(cube, "data:0:2")
    assert result.shape == (2, 4, 5)
    assert result.data.size == 40
    assert result.ranges == ((0, 2), (0, 4), (0, 5))
    np.testing.assert_array_equal(result.data.to_numpy(), CUBE[0:2])


def test_named_slices(cube: Dataset) -> None:
    result = extract_slice(cube, parse_slice_spec("data:1:3,x:2:4"))
    assert result.shape == (2, 4, 2)
    assert result.dimension_names == ("z", "y", "x")
    np.testing.assert_array_equal(result.data.to_numpy(), CUBE[1:3, :, 2:4])
    assert result.describe_ranges() == [
        "z: [1:3] (size: 2)",
        "y: [0:4] (size: 4)",
        "x: [2:4] (size: 2)",
    ]


@pytest.mark.parametrize(
    "text",
    ["data:2:2", "data:3:4", "data:0:4", "data:0:1,y:0:5", "data:0:1,x:4:2", "data:0:1,w:0:1"],
)
def test_invalid_ranges(cube: Dataset, text: str) -> None:
    with pytest.raises(InvalidSliceError):
        extract_slice(cube, text)


def test_first_dimension_named_again() -> None:
    spec = parse_slice_spec("data:0:1,z:0:1")
    with pytest.raises(InvalidSliceError, match="sliced by the leading range"):
        resolve_slice_ranges(spec, ["z", "y"], (3, 4))


def test_scalar_variable() -> None:
    with pytest.raises(InvalidSliceError, match="no dimensions"):
        resolve_slice_ranges(parse_slice_spec("s:0:1"), [], ())


def test_unknown_variable(cube: Dataset) -> None:
    with pytest.raises(VariableNotFoundError):
        extract_slice(cube, "nothing:0:1")


def test_statistics() -> None:
    store = MemoryStore()
    values = np.array([[1.0, np.nan, 3.0], [np.inf, 5.0, -2.0]], dtype=np.float32)
    create_dataset(store, "s.nc", [("a", 2), ("b", 3)], {"v": (["a", "b"], values, {})})
    with store.open("s.nc") as ds:
        stats = extract_slice(ds, "v:0:2").statistics()
    assert stats.min == -2.0
    assert stats.max == 5.0
    assert stats.mean == pytest.approx(7.0 / 4)
    assert (stats.valid_count, stats.total_count) == (4, 6)


def test_preview(cube: Dataset) -> None:
    values, remaining = extract_slice(cube, "data:0:2").preview()
    assert values == list(range(10))
    assert remaining == 30

    values, remaining = extract_slice(cube, "data:0:1,y:0:2").preview()
    assert values == list(range(10))
    assert remaining == 0

    config.set({"slice.preview_items": 4})
    values, remaining = extract_slice(cube, "data:0:1,y:0:1").preview()
    assert values == [0.0, 1.0]
    assert remaining == 3


def test_format_value() -> None:
    assert format_value(1.5) == "1.5000"
    assert format_value(float("nan")) == "NaN"
