from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pytest

from ncfold.errors import StoreIOError
from ncfold.storage import NetCDFStore
from ncfold.storage._netcdf import NetCDFVariable

if TYPE_CHECKING:
    from pathlib import Path

typer_testing = pytest.importorskip(
    "typer.testing", reason="optional cli dependencies aren't installed"
)
cli = pytest.importorskip("ncfold._cli.cli", reason="optional cli dependencies aren't installed")

runner = typer_testing.CliRunner()


def test_mean(climate_netcdf: Path) -> None:
    result = runner.invoke(cli.app, ["--file", str(climate_netcdf), "--mean", "temperature:time"])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[:3] == [
        "Computed mean array temperature_mean_over_time",
        "  dimensions: [lat, lon]",
        "  shape: (3 × 2)",
    ]
    assert "[[10. 11.]" in result.output


@pytest.mark.parametrize(
    ("option", "name"),
    [("--sum", "sum"), ("--min", "minimum"), ("--max", "maximum")],
)
def test_other_reductions(climate_netcdf: Path, option: str, name: str) -> None:
    result = runner.invoke(
        cli.app, ["-f", str(climate_netcdf), option, "temperature:lon", "--threads", "2"]
    )
    assert result.exit_code == 0
    assert f"Computed {name} array temperature_{name}_over_lon" in result.output
    assert "  dimensions: [time, lat]" in result.output


def test_output_netcdf(climate_netcdf: Path, tmp_path: Path) -> None:
    output = tmp_path / "mean.nc"
    result = runner.invoke(
        cli.app,
        [
            "--file",
            str(climate_netcdf),
            "--mean",
            "temperature:time",
            "--output-netcdf",
            str(output),
        ],
    )
    assert result.exit_code == 0
    assert f"Result saved to {output}" in result.output

    with NetCDFStore().open(output) as ds:
        var = ds.variable("temperature_mean_over_time")
        assert var.dimension_names == ["lat", "lon"]
        np.testing.assert_array_equal(
            var.get_all_values_as_f32(), [10.0, 11.0, 12.0, 13.0, 14.0, 15.0]
        )
        assert var.attributes()["units"].value == "K"


def test_first_reduction_wins(climate_netcdf: Path) -> None:
    result = runner.invoke(
        cli.app,
        ["-f", str(climate_netcdf), "--max", "temperature:lat", "--mean", "temperature:time"],
    )
    assert result.exit_code == 0
    assert "temperature_mean_over_time" in result.output
    assert "maximum" not in result.output


def test_list_vars(climate_netcdf: Path) -> None:
    result = runner.invoke(
        cli.app, ["-f", str(climate_netcdf), "--list-vars", "--mean", "temperature:time"]
    )
    assert result.exit_code == 0
    assert "    time = 4 (unlimited)" in result.output
    assert "    temperature (float32): [time, lat, lon] = (4 × 3 × 2)" in result.output
    assert "Computed" not in result.output


def test_describe(climate_netcdf: Path) -> None:
    result = runner.invoke(cli.app, ["-f", str(climate_netcdf), "--describe", "temperature"])
    assert result.exit_code == 0
    assert "Name           : temperature" in result.output
    assert "Total size     : 96 bytes" in result.output


def test_summary(climate_netcdf: Path) -> None:
    result = runner.invoke(cli.app, ["-f", str(climate_netcdf), "--summary", "temperature"])
    assert result.exit_code == 0
    assert "Summary for variable: temperature" in result.output
    assert "Mean           : 12.50" in result.output
    assert "Valid elements : 24 / 24" in result.output


def test_slice(climate_netcdf: Path) -> None:
    result = runner.invoke(cli.app, ["-f", str(climate_netcdf), "--slice", "temperature:1:2"])
    assert result.exit_code == 0
    assert "Slicing variable: temperature" in result.output
    assert "    time: [1:2] (size: 1)" in result.output
    assert "Sliced shape: (1 × 3 × 2)" in result.output
    assert "Total elements: 6" in result.output
    assert "Slice data:" in result.output
    assert "   [0]: 7.0000" in result.output
    assert "   [5]: 12.0000" in result.output


def test_slice_preview(climate_netcdf: Path) -> None:
    result = runner.invoke(cli.app, ["-f", str(climate_netcdf), "--slice", "temperature:0:4"])
    assert result.exit_code == 0
    assert "First 10 values of slice:" in result.output
    assert "   ... (14 more values)" in result.output


def test_metadata_tree(climate_netcdf: Path) -> None:
    result = runner.invoke(cli.app, ["-f", str(climate_netcdf)])
    assert result.exit_code == 0
    assert "global attributes" in result.output
    assert "temperature (time[4], lat[3], lon[2]) float32" in result.output


def test_unknown_dimension(climate_netcdf: Path) -> None:
    result = runner.invoke(cli.app, ["-f", str(climate_netcdf), "--mean", "temperature:depth"])
    assert result.exit_code == 1
    assert "Error: Failed computing mean for variable 'temperature'" in result.output
    assert "Dimension 'depth' not found in variable 'temperature'" in result.output


def test_bad_slice(climate_netcdf: Path) -> None:
    result = runner.invoke(cli.app, ["-f", str(climate_netcdf), "--slice", "temperature:3:9"])
    assert result.exit_code == 1
    assert "Error: Failed extracting slice" in result.output


def test_zero_threads(climate_netcdf: Path) -> None:
    result = runner.invoke(
        cli.app, ["-f", str(climate_netcdf), "--mean", "temperature:time", "--threads", "0"]
    )
    assert result.exit_code == 1
    assert "Error: Failed configuring parallel processing" in result.output


def test_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["-f", str(tmp_path / "missing.nc"), "--list-vars"])
    assert result.exit_code == 1
    assert "Error: Failed opening input" in result.output


def test_malformed_request(climate_netcdf: Path) -> None:
    result = runner.invoke(cli.app, ["-f", str(climate_netcdf), "--mean", "temperature"])
    assert result.exit_code == 2


def test_list_vars_read_error(climate_netcdf: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(self: NetCDFVariable) -> None:
        raise StoreIOError(f"Failed reading attributes of variable {self.name!r}")

    monkeypatch.setattr(NetCDFVariable, "attributes", fail)
    result = runner.invoke(cli.app, ["-f", str(climate_netcdf), "--list-vars"])
    assert result.exit_code == 1
    assert "Error: Failed listing variables: Failed reading attributes" in result.output
