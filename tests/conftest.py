from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np
import pytest

from ncfold.core.config import config
from ncfold.core.executor import ExecutionContext
from ncfold.storage import MemoryStore
from ncfold.testing.utils import create_dataset

if TYPE_CHECKING:
    from collections.abc import Generator, Mapping, Sequence
    from pathlib import Path


@pytest.fixture(autouse=True)
def reset_config(tmp_path: Path) -> Generator[None, None, None]:
    config.reset()
    # keep lock files of the tests out of the shared temp dir
    config.set({"output.lock_dir": str(tmp_path / "locks")})
    yield
    config.reset()


@pytest.fixture(autouse=True)
def restore_logger() -> Generator[None, None, None]:
    # the CLI installs a handler on the captured stream of its runner
    logger = logging.getLogger("ncfold")
    handlers, level = logger.handlers[:], logger.level
    yield
    logger.handlers = handlers
    logger.setLevel(level)


def climate_variables() -> dict[str, tuple[Sequence[str], Any, Mapping[str, Any]]]:
    # values 1..24; along time each step adds 6
    temperature = np.arange(1, 25, dtype=np.float32).reshape(4, 3, 2)
    return {
        "time": (["time"], np.arange(4, dtype=np.float64), {"units": "days since 2000-01-01"}),
        "lat": (["lat"], np.array([-10.0, 0.0, 10.0], dtype=np.float32), {"units": "degrees_north"}),
        "lon": (["lon"], np.array([100.0, 110.0], dtype=np.float32), {"units": "degrees_east"}),
        "temperature": (
            ["time", "lat", "lon"],
            temperature,
            {
                "_FillValue": np.float32(-999.0),
                "units": "K",
                "long_name": "Air temperature",
                "valid_range": np.array([0.0, 400.0], dtype=np.float32),
            },
        ),
    }


CLIMATE_DIMENSIONS = [("time", 4), ("lat", 3), ("lon", 2)]


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def climate(memory_store: MemoryStore) -> Generator[Any, None, None]:
    """An open in-memory dataset with temperature(time=4, lat=3, lon=2)."""
    create_dataset(
        memory_store,
        "climate.nc",
        CLIMATE_DIMENSIONS,
        climate_variables(),
        attributes={"title": "test climate data", "Conventions": "CF-1.8"},
        unlimited=["time"],
    )
    with memory_store.open("climate.nc") as ds:
        yield ds


@pytest.fixture
def climate_netcdf(tmp_path: Path) -> Path:
    """The climate dataset written as a netCDF file."""
    from ncfold.storage import NetCDFStore

    path = tmp_path / "climate.nc"
    create_dataset(
        NetCDFStore(),
        str(path),
        CLIMATE_DIMENSIONS,
        climate_variables(),
        attributes={"title": "test climate data", "Conventions": "CF-1.8"},
        unlimited=["time"],
    )
    return path


@pytest.fixture(params=[1, 4])
def context(request: pytest.FixtureRequest) -> Generator[ExecutionContext, None, None]:
    with ExecutionContext(request.param) as ctx:
        yield ctx
