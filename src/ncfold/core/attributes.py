"""
Typed attribute values.

Attribute values read from a dataset store are classified into a closed set of kinds so the
copy logic in :mod:`ncfold.core.materialize` can match on them exhaustively. Anything the
classifier cannot map becomes :attr:`AttributeKind.UNKNOWN` and is skipped when copying.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
from numcodecs.compat import ensure_text

logger = logging.getLogger(__name__)

# netCDF fixes this attribute when a variable is defined
FILL_VALUE = "_FillValue"


class AttributeKind(Enum):
    STRING = "string"
    STRINGS = "strings"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    UNKNOWN = "unknown"

    @property
    def is_numeric(self) -> bool:
        return self not in (AttributeKind.STRING, AttributeKind.STRINGS, AttributeKind.UNKNOWN)

    @property
    def dtype(self) -> np.dtype[Any] | None:
        if self.is_numeric:
            return np.dtype(self.value)
        return None


_NUMERIC_KINDS = {kind.dtype: kind for kind in AttributeKind if kind.is_numeric}


@dataclass(frozen=True)
class AttributeValue:
    """
    A single attribute value tagged with its kind.

    Numeric values are held as a numpy scalar of the kind's dtype, or as a tuple of them
    when ``is_list`` is true. ``STRING`` holds a ``str``; ``STRINGS`` a tuple of ``str``.
    """

    kind: AttributeKind
    value: Any
    is_list: bool = False

    @classmethod
    def from_python(cls, obj: Any) -> AttributeValue:
        """
        Classify a value as returned by a store backend.

        Accepts ``str``/``bytes``, sequences of strings, Python and numpy numeric scalars and
        one-dimensional numeric arrays or lists.
        """
        if isinstance(obj, AttributeValue):
            return obj
        if isinstance(obj, (str, bytes)):
            return cls(AttributeKind.STRING, ensure_text(obj, "utf-8"))
        if isinstance(obj, bool | np.bool_):
            # netCDF has no boolean type
            return cls(AttributeKind.UNKNOWN, obj)
        if isinstance(obj, int) and not isinstance(obj, bool):
            return cls._numeric(np.asarray(obj, dtype=np.int64 if obj < 2**63 else np.uint64))
        if isinstance(obj, float):
            return cls._numeric(np.asarray(obj, dtype=np.float64))
        if isinstance(obj, np.generic):
            return cls._numeric(np.asarray(obj))
        if isinstance(obj, (list, tuple, np.ndarray)):
            array = np.asarray(obj)
            if array.dtype.kind in "US" or (
                array.dtype.kind == "O" and all(isinstance(v, (str, bytes)) for v in array.flat)
            ):
                strings = tuple(ensure_text(v, "utf-8") for v in array.reshape(-1).tolist())
                if isinstance(obj, np.ndarray) and array.ndim == 0:
                    return cls(AttributeKind.STRING, strings[0])
                return cls(AttributeKind.STRINGS, strings)
            return cls._numeric(array)
        return cls(AttributeKind.UNKNOWN, obj)

    @classmethod
    def _numeric(cls, array: np.ndarray[Any, Any]) -> AttributeValue:
        kind = _NUMERIC_KINDS.get(array.dtype.newbyteorder("="))
        if kind is None or array.ndim > 1:
            return cls(AttributeKind.UNKNOWN, array)
        array = array.astype(kind.dtype, copy=False)
        if array.ndim == 0:
            return cls(kind, array[()])
        if array.size == 1:
            # single element arrays are how netCDF hands back scalar attributes
            return cls(kind, array[0])
        return cls(kind, tuple(array.tolist()), is_list=True)

    def to_python(self) -> Any:
        """The value in the form a store backend writes: str, list of str or a typed numpy value."""
        if self.kind is AttributeKind.STRING:
            return self.value
        if self.kind is AttributeKind.STRINGS:
            return list(self.value)
        if self.kind.is_numeric:
            if self.is_list:
                return np.asarray(self.value, dtype=self.kind.dtype)
            return self.kind.dtype.type(self.value)
        return self.value

    def as_float32(self) -> np.float32 | None:
        """
        Narrow a scalar fill value to float32.

        Only floating point and 16-bit integer kinds can be narrowed; any other kind returns
        ``None``.
        """
        if self.is_list or self.kind not in (
            AttributeKind.FLOAT32,
            AttributeKind.FLOAT64,
            AttributeKind.INT16,
        ):
            return None
        return np.float32(self.value)

    def __str__(self) -> str:
        if self.kind is AttributeKind.STRING:
            return f'"{self.value}"'
        if self.is_list or self.kind is AttributeKind.STRINGS:
            return "[" + ", ".join(str(v) for v in self.value) + "]"
        return str(self.value)


def classify_attributes(attrs: dict[str, Any]) -> dict[str, AttributeValue]:
    """Classify every value of a raw ``name -> value`` mapping, keeping the mapping order."""
    result = {}
    for name, raw in attrs.items():
        value = AttributeValue.from_python(raw)
        if value.kind is AttributeKind.UNKNOWN:
            logger.debug("attribute %r has unrecognized type %s", name, type(raw).__name__)
        result[name] = value
    return result
