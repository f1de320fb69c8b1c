"""
The config module is responsible for managing the configuration of ncfold and is based on the Donfig python library.

Example:
    The size of the worker pool used for reductions defaults to the number of CPU cores. It can be
    pinned programmatically:

    ```python
    from ncfold.core.config import config

    config.set({"threading.max_workers": 4})
    ```

    or with an environment variable. The double underscore ``__`` is used to indicate nested access.

    ```bash
    export NCFOLD_THREADING__MAX_WORKERS=4
    ```

For more information, see the Donfig documentation at https://github.com/pytroll/donfig.
"""

from __future__ import annotations

from typing import Any

from donfig import Config as DConfig


class BadConfigError(ValueError):
    _msg = "bad Config: %r"


class Config(DConfig):  # type: ignore[misc]
    """The Config will collect configuration from config files and environment variables

    Example environment variables:
    Grabs environment variables of the form "NCFOLD_FOO__BAR_BAZ=123" and
    turns these into config variables of the form ``{"foo": {"bar-baz": 123}}``
    It transforms the key and value in the following way:

    -  Lower-cases the key text
    -  Treats ``__`` (double-underscore) as nested access
    -  Calls ``ast.literal_eval`` on the value

    """

    def reset(self) -> None:
        self.clear()
        self.refresh()


# The default configuration for ncfold
config = Config(
    "ncfold",
    defaults=[
        {
            "threading": {"max_workers": None, "tasks_per_worker": 4},
            "reduction": {"skip_non_finite": True},
            "output": {
                "fill_value_attribute": "_FillValue",
                "history_attribute": "history",
                "creator": "ncfold",
                "lock": True,
                "lock_dir": None,
            },
            "slice": {"preview_items": 20},
        }
    ],
)


def parse_max_workers(data: Any) -> int | None:
    if data is None:
        return None
    if isinstance(data, bool) or not isinstance(data, int):
        msg = f"Expected a positive integer or None for 'threading.max_workers', got {data!r} instead."
        raise BadConfigError(msg)
    return data
