import pytest

from ncfold.core.dimensions import (
    DimensionDescriptor,
    dimension_names,
    dimension_shape,
    kept_names,
    resolve_axis,
)
from ncfold.errors import AxisOutOfBoundsError, DimensionNotFoundError

DIMS = [
    DimensionDescriptor("a", 2),
    DimensionDescriptor("b", 3),
    DimensionDescriptor("c", 4),
    DimensionDescriptor("d", 5, unlimited=True),
]


def test_resolve_axis() -> None:
    assert [resolve_axis(DIMS, name) for name in "abcd"] == [0, 1, 2, 3]


def test_resolve_axis_first_match() -> None:
    dims = [DimensionDescriptor("x", 1), DimensionDescriptor("x", 2)]
    assert resolve_axis(dims, "x") == 0


def test_resolve_axis_missing() -> None:
    with pytest.raises(DimensionNotFoundError) as excinfo:
        resolve_axis(DIMS, "bogus", "field")
    assert excinfo.value.variable == "field"
    assert excinfo.value.dimension == "bogus"
    assert str(excinfo.value) == "Dimension 'bogus' not found in variable 'field'"


@pytest.mark.parametrize(
    ("axis", "expected"),
    [(0, ["b", "c", "d"]), (1, ["a", "c", "d"]), (2, ["a", "b", "d"]), (3, ["a", "b", "c"])],
)
def test_kept_names(axis: int, expected: list[str]) -> None:
    assert kept_names(DIMS, axis) == expected


def test_kept_names_out_of_bounds() -> None:
    with pytest.raises(AxisOutOfBoundsError):
        kept_names(DIMS, 4)


def test_helpers() -> None:
    assert dimension_names(DIMS) == ["a", "b", "c", "d"]
    assert dimension_shape(DIMS) == (2, 3, 4, 5)
    assert str(DIMS[0]) == "a = 2"
    assert str(DIMS[3]) == "d = 5 (unlimited)"
