# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "ncfold",
# ]
# ///
#

"""
Write a small climate dataset to try ncfold on.

    python examples/create_sample_netcdf.py [sample_climate.nc]
    ncfold -f sample_climate.nc --list-vars
    ncfold -f sample_climate.nc --mean temperature:time
"""

import sys

import numpy as np

from ncfold import NDArray, NetCDFStore

N_TIME, N_LAT, N_LON, N_LEVEL = 12, 5, 8, 3


def temperature() -> np.ndarray:
    # cooler towards the poles, with a seasonal cycle and a west-east gradient
    month = np.arange(N_TIME)[:, None, None]
    lat = np.arange(N_LAT)[None, :, None]
    lon = np.arange(N_LON)[None, None, :]
    values = (
        288.0
        - 20.0 * np.abs(lat - 2.0) / 2.0
        + 10.0 * np.cos(month * np.pi / 6.0)
        + 0.5 * lon
    )
    values = values.astype(np.float32)
    values[3, 0, 0] = -999.0
    return values


def create_sample(path: str) -> None:
    store = NetCDFStore()
    if store.exists(path):
        store.remove(path)

    with store.create(path) as ds:
        ds.put_attribute("title", "Sample Climate Data")
        ds.put_attribute("institution", "ncfold examples")

        ds.add_dimension("time", N_TIME, unlimited=True)
        ds.add_dimension("lat", N_LAT)
        ds.add_dimension("lon", N_LON)
        ds.add_dimension("level", N_LEVEL)

        coordinates = {
            "time": ("float64", np.arange(N_TIME) * 30.0, "days since 2023-01-01", "time"),
            "lat": ("float32", -40.0 + 20.0 * np.arange(N_LAT), "degrees_north", "latitude"),
            "lon": ("float32", -180.0 + 45.0 * np.arange(N_LON), "degrees_east", "longitude"),
            "level": ("float32", [1000.0, 500.0, 200.0], "hPa", "pressure level"),
        }
        for name, (dtype, values, units, long_name) in coordinates.items():
            var = ds.add_variable(name, [name], dtype=dtype)
            var.put_attribute("units", units)
            var.put_attribute("long_name", long_name)
            var.put(NDArray((len(values),), values))

        var = ds.add_variable("temperature", ["time", "lat", "lon"])
        var.put_attribute("_FillValue", np.float32(-999.0))
        var.put_attribute("units", "K")
        var.put_attribute("long_name", "air temperature")
        var.put_attribute("standard_name", "air_temperature")
        data = temperature()
        var.put(NDArray(data.shape, data.reshape(-1)))

        var = ds.add_variable("global_average_temp", [])
        var.put_attribute("units", "K")
        var.put_attribute("long_name", "global average temperature")
        var.put(NDArray((), [288.15]))


if __name__ == "__main__":
    output = sys.argv[1] if len(sys.argv) > 1 else "sample_climate.nc"
    create_sample(output)
    print(f"Created {output}")
    print(f"  dimensions: time({N_TIME}, unlimited), lat({N_LAT}), lon({N_LON}), level({N_LEVEL})")
    print("  variables: time, lat, lon, level, temperature, global_average_temp")
