from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ncfold.errors import AxisOutOfBoundsError, DimensionNotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True)
class DimensionDescriptor:
    """One named axis of a variable.

    The position of a descriptor in a variable's dimension list is its axis index; axis 0 is
    the outermost, slowest-varying axis of the row-major buffer.
    """

    name: str
    length: int
    unlimited: bool = False

    def __str__(self) -> str:
        if self.unlimited:
            return f"{self.name} = {self.length} (unlimited)"
        return f"{self.name} = {self.length}"


def dimension_names(descriptors: Sequence[DimensionDescriptor]) -> list[str]:
    return [d.name for d in descriptors]


def dimension_shape(descriptors: Sequence[DimensionDescriptor]) -> tuple[int, ...]:
    return tuple(d.length for d in descriptors)


def resolve_axis(
    descriptors: Sequence[DimensionDescriptor],
    requested_name: str,
    variable: str | None = None,
) -> int:
    """
    Find the axis index of a named dimension.

    Parameters
    ----------
    descriptors : sequence of DimensionDescriptor
        The variable's dimensions in declaration order.
    requested_name : str
        The dimension to look up.
    variable : str, optional
        Name of the variable, only used for the error message.

    Returns
    -------
    int
        The 0-based position of the first descriptor named `requested_name`.

    Raises
    ------
    DimensionNotFoundError
        If no descriptor has that name.
    """
    for axis, descriptor in enumerate(descriptors):
        if descriptor.name == requested_name:
            return axis
    raise DimensionNotFoundError(variable, requested_name)


def kept_names(descriptors: Sequence[DimensionDescriptor], axis_index: int) -> list[str]:
    """The dimension names left after folding away `axis_index`, in their original order."""
    if not 0 <= axis_index < len(descriptors):
        raise AxisOutOfBoundsError(axis_index, len(descriptors))
    return [d.name for i, d in enumerate(descriptors) if i != axis_index]
