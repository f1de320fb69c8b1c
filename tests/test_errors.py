import pytest

from ncfold.errors import (
    AxisOutOfBoundsError,
    BaseNcfoldError,
    DimensionNotFoundError,
    InvalidSliceError,
    ShapeMismatchError,
    StoreIOError,
    ThreadPoolError,
    VariableNotFoundError,
)


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (VariableNotFoundError("temp"), "Variable 'temp' not found in dataset"),
        (DimensionNotFoundError("temp", "depth"), "Dimension 'depth' not found in variable 'temp'"),
        (AxisOutOfBoundsError(3, 2), "Axis 3 is out of bounds for array with 2 dimensions"),
        (ShapeMismatchError((2, 3), 5), "Cannot build an array of shape (2, 3) from 5 values"),
        (InvalidSliceError("bad"), "Invalid slice specification: bad"),
        (StoreIOError("cannot open"), "cannot open"),
        (ThreadPoolError("zero workers"), "zero workers"),
    ],
)
def test_messages(error: BaseNcfoldError, message: str) -> None:
    assert str(error) == message
    assert isinstance(error, BaseNcfoldError)
    assert isinstance(error, ValueError)


def test_lookup_errors() -> None:
    with pytest.raises(LookupError):
        raise VariableNotFoundError("temp")
    with pytest.raises(LookupError):
        raise DimensionNotFoundError("temp", "depth")
    with pytest.raises(IndexError):
        raise AxisOutOfBoundsError(1, 1)
    with pytest.raises(OSError):
        raise StoreIOError("gone")


def test_dimension_not_found_attributes() -> None:
    error = DimensionNotFoundError(None, "depth")
    assert error.variable is None
    assert error.dimension == "depth"
