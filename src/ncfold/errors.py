__all__ = [
    "AxisOutOfBoundsError",
    "BaseNcfoldError",
    "DimensionNotFoundError",
    "InvalidSliceError",
    "NcfoldUserWarning",
    "ShapeMismatchError",
    "StoreIOError",
    "ThreadPoolError",
    "VariableNotFoundError",
]


class BaseNcfoldError(ValueError):
    """
    Base error which all ncfold errors are sub-classed from.
    """

    _msg: str = "{}"

    def __init__(self, *args: object) -> None:
        """
        If a single argument is passed, treat it as a pre-formatted message.

        If multiple arguments are passed, they are used as arguments for the template string
        class variable.
        """
        if len(args) == 1:
            super().__init__(args[0])
        else:
            super().__init__(self._msg.format(*args))


class VariableNotFoundError(BaseNcfoldError, LookupError):
    """
    Raised when a requested variable is absent from a dataset.
    """

    _msg = "Variable {!r} not found in dataset"

    def __init__(self, variable: str) -> None:
        self.variable = variable
        super().__init__(self._msg.format(variable))


class DimensionNotFoundError(BaseNcfoldError, LookupError):
    """
    Raised when a requested dimension is not one of the declared dimensions of a variable.
    """

    _msg = "Dimension {!r} not found in variable {!r}"

    def __init__(self, variable: str | None, dimension: str) -> None:
        self.variable = variable
        self.dimension = dimension
        super().__init__(self._msg.format(dimension, variable))


class AxisOutOfBoundsError(BaseNcfoldError, IndexError):
    """
    Raised when an axis index is not smaller than the rank of the array it refers to.

    Reaching this error means a caller skipped dimension resolution.
    """

    _msg = "Axis {} is out of bounds for array with {} dimensions"

    def __init__(self, axis: int, ndim: int) -> None:
        self.axis = axis
        self.ndim = ndim
        super().__init__(self._msg.format(axis, ndim))


class ShapeMismatchError(BaseNcfoldError):
    """Raised when a flat buffer does not hold exactly the number of elements of a shape."""

    _msg = "Cannot build an array of shape {} from {} values"

    def __init__(self, shape: tuple[int, ...], size: int) -> None:
        self.shape = shape
        self.size = size
        super().__init__(self._msg.format(shape, size))


class InvalidSliceError(BaseNcfoldError):
    """Raised when a slice specification is malformed or out of range."""

    _msg = "Invalid slice specification: {}"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self._msg.format(message))


class StoreIOError(BaseNcfoldError, OSError):
    """
    Raised when the underlying dataset store fails to open, read or write.

    The backend's own exception is chained as ``__cause__``.
    """


class ThreadPoolError(BaseNcfoldError, RuntimeError):
    """
    Raised when the worker pool is misconfigured, e.g. with zero workers, or re-configured
    after it was first used.
    """


class NcfoldUserWarning(UserWarning):
    """
    A warning raised to report problems with user input.
    """
