from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any

import numpy as np

from ncfold.core.attributes import FILL_VALUE
from ncfold.core.indexing import product
from ncfold.errors import VariableNotFoundError
from ncfold.util import format_shape, human_readable_size, info_text_report

if TYPE_CHECKING:
    from ncfold.abc.store import Dataset
    from ncfold.core.attributes import AttributeValue
    from ncfold.core.dimensions import DimensionDescriptor

_KEY_ATTRIBUTES = ("units", "long_name", FILL_VALUE)


def _is_variable_length(dtype: str) -> bool:
    return dtype == "str" or dtype.startswith("vlen ")


def _element_size(dtype: str) -> int:
    if _is_variable_length(dtype):
        # estimated as one 4 byte reference per element
        return 4
    try:
        return np.dtype(dtype).itemsize
    except TypeError:
        return 4


@dataclasses.dataclass(kw_only=True)
class VariableInfo:
    """
    Visual summary for a variable.

    Note that this class and its properties are not part of ncfold's public API.
    """

    _name: str
    _dtype: str
    _dimensions: list[DimensionDescriptor]
    _attributes: dict[str, AttributeValue]

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(d.length for d in self._dimensions)

    @property
    def total_elements(self) -> int:
        return product(self.shape)

    @property
    def element_size(self) -> int:
        return _element_size(self._dtype)

    @property
    def variable_length(self) -> bool:
        return _is_variable_length(self._dtype)

    @property
    def nbytes(self) -> int:
        return self.total_elements * self.element_size

    def info_items(self) -> list[tuple[str, Any]]:
        items: list[tuple[str, Any]] = [("Name", self._name), ("Data type", self._dtype)]
        if self._dimensions:
            items += [
                ("Dimensions", "[" + ", ".join(d.name for d in self._dimensions) + "]"),
                ("Shape", format_shape(self.shape)),
            ]
            items += [(f"  {d.name}", str(d).split(" = ", 1)[1]) for d in self._dimensions]
        else:
            items += [("Dimensions", "(scalar)"), ("Shape", "()")]
        if self._attributes:
            items += [(f"@{k}", str(v)) for k, v in self._attributes.items()]
        else:
            items.append(("Attributes", "(none)"))
        estimated = " (estimated, variable length)" if self.variable_length else ""
        items += [
            ("Total elements", self.total_elements),
            ("Element size", f"{self.element_size} bytes{estimated}"),
            ("Total size", human_readable_size(self.nbytes) + estimated),
        ]
        return items

    def __repr__(self) -> str:
        return info_text_report(self.info_items())


def get_variable_info(dataset: Dataset, name: str) -> VariableInfo:
    var = dataset.variable(name)
    if var is None:
        raise VariableNotFoundError(name)
    return VariableInfo(
        _name=var.name,
        _dtype=var.dtype,
        _dimensions=var.dimensions,
        _attributes=var.attributes(),
    )


def list_variables_and_dimensions(dataset: Dataset) -> str:
    """Dimensions and variables sorted by name, with the key attributes of each variable."""
    lines = ["Dimensions", "=========="]
    dimensions = sorted(dataset.dimensions(), key=lambda d: d.name)
    if dimensions:
        lines += [f"    {d}" for d in dimensions]
    else:
        lines.append("    (No dimensions found)")

    lines += ["", "Variables", "========="]
    variables = sorted(dataset.variables(), key=lambda v: v.name)
    if not variables:
        lines.append("    (No variables found)")
    for var in variables:
        if var.dimensions:
            names = ", ".join(var.dimension_names)
            lines.append(f"    {var.name} ({var.dtype}): [{names}] = {format_shape(var.shape)}")
        else:
            lines.append(f"    {var.name} ({var.dtype}): scalar")
        attrs = var.attributes()
        key_attrs = []
        for key in _KEY_ATTRIBUTES:
            value = attrs.get(key)
            if value is None or value.is_list:
                continue
            if key == FILL_VALUE and not value.kind.is_numeric:
                continue
            key_attrs.append(f"{key}: {value.value}")
        if key_attrs:
            lines.append("      └─ " + ", ".join(key_attrs))
    return "\n".join(lines) + "\n"
