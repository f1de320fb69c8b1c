import logging
from pathlib import Path
from typing import Annotated, Literal, cast

import numpy as np
import typer

import ncfold
from ncfold.abc.store import Dataset
from ncfold.core._info import get_variable_info, list_variables_and_dimensions
from ncfold.core._tree import metadata_tree
from ncfold.core.executor import ExecutionContext
from ncfold.core.kernels import Operation
from ncfold.core.materialize import write_result
from ncfold.core.reduction import ReductionRequest, reduce
from ncfold.core.slicing import extract_slice, format_value, parse_slice_spec
from ncfold.core.summary import summarize_variable
from ncfold.errors import BaseNcfoldError
from ncfold.storage import NetCDFStore
from ncfold.util import format_shape, info_text_report

app = typer.Typer()

logger = logging.getLogger(__name__)


def _set_logging_level(*, verbose: bool) -> None:
    if verbose:
        lvl = "INFO"
    else:
        lvl = "WARNING"
    ncfold.set_log_level(cast(Literal["INFO", "WARNING"], lvl))
    ncfold.set_format("%(message)s")


def _fail(context: str, error: Exception) -> typer.Exit:
    typer.echo(f"Error: {context}: {error}", err=True)
    return typer.Exit(code=1)


def _request_option(value: str | None, operation: Operation) -> ReductionRequest | None:
    if value is None:
        return None
    try:
        return ReductionRequest.parse(value, operation)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint=f"--{operation.name.lower()}") from e


def _print_reduction(result: ncfold.ReductionResult) -> None:
    typer.echo(f"Computed {result.operation.long_name} array {result.derived_variable_name}")
    typer.echo(f"  dimensions: [{', '.join(result.kept_dimension_names)}]")
    typer.echo(f"  shape: {format_shape(result.shape)}")
    typer.echo(np.array2string(result.data.to_numpy(), threshold=1000))


def _run_reduction(
    ds: Dataset,
    request: ReductionRequest,
    output_netcdf: Path | None,
    context: ExecutionContext | None,
) -> None:
    try:
        result = reduce(ds, request, context=context)
    except BaseNcfoldError as e:
        raise _fail(
            f"Failed computing {request.operation.long_name} for variable "
            f"{request.variable_name!r}",
            e,
        ) from e

    if output_netcdf is None:
        _print_reduction(result)
        return
    try:
        skipped = write_result(NetCDFStore(), output_netcdf, result)
    except BaseNcfoldError as e:
        raise _fail(f"Failed writing to NetCDF {str(output_netcdf)!r}", e) from e
    for name in skipped:
        typer.echo(f"Skipped unsupported attribute type for {name!r}", err=True)
    typer.echo(f"Result saved to {output_netcdf}")


def _print_slice(ds: Dataset, spec: str) -> None:
    result = extract_slice(ds, parse_slice_spec(spec))
    typer.echo(f"Slicing variable: {result.variable_name}")
    for line in result.describe_ranges():
        typer.echo(f"    {line}")
    typer.echo(f"Sliced shape: {format_shape(result.shape)}")
    typer.echo(f"Total elements: {result.data.size}")

    if result.data.size:
        stats = result.statistics()
        if stats.valid_count:
            typer.echo("Slice statistics:")
            typer.echo(
                info_text_report(
                    [
                        ("    Min", f"{stats.min:.2f}"),
                        ("    Max", f"{stats.max:.2f}"),
                        ("    Mean", f"{stats.mean:.2f}"),
                        ("    Valid elements", f"{stats.valid_count} / {stats.total_count}"),
                    ]
                ),
                nl=False,
            )
        else:
            typer.echo("No valid (finite) data found in slice")

    values, remaining = result.preview()
    typer.echo("Slice data:" if not remaining else f"First {len(values)} values of slice:")
    for i, value in enumerate(values):
        typer.echo(f"   [{i}]: {format_value(value)}")
    if remaining:
        typer.echo(f"   ... ({remaining} more values)")


@app.command()  # type: ignore[misc]
def main(
    file: Annotated[
        Path,
        typer.Option("--file", "-f", help="Path to the NetCDF file."),
    ],
    mean: Annotated[
        str | None,
        typer.Option(
            help="Compute the mean of a variable over a dimension, formatted as <var>:<dim>."
        ),
    ] = None,
    sum_: Annotated[
        str | None,
        typer.Option(
            "--sum",
            help="Compute the sum of a variable over a dimension, formatted as <var>:<dim>.",
        ),
    ] = None,
    min_: Annotated[
        str | None,
        typer.Option(
            "--min",
            help="Compute the minimum of a variable over a dimension, formatted as <var>:<dim>.",
        ),
    ] = None,
    max_: Annotated[
        str | None,
        typer.Option(
            "--max",
            help="Compute the maximum of a variable over a dimension, formatted as <var>:<dim>.",
        ),
    ] = None,
    output_netcdf: Annotated[
        Path | None,
        typer.Option(help="Path to save the result as NetCDF. If not set, prints to terminal."),
    ] = None,
    threads: Annotated[
        int | None,
        typer.Option(
            "--threads",
            "-t",
            help="Number of threads used for parallel processing. Defaults to the number of CPU cores.",
        ),
    ] = None,
    list_vars: Annotated[
        bool,
        typer.Option(help="List all variables and dimensions in the file."),
    ] = False,
    describe: Annotated[
        str | None,
        typer.Option(help="Describe a variable: data type, shape, attributes and size."),
    ] = None,
    summary: Annotated[
        str | None,
        typer.Option(help="Compute quick statistics (min/max/mean/std) for a variable."),
    ] = None,
    slice_: Annotated[
        str | None,
        typer.Option(
            "--slice",
            help="Extract a slice of a variable, formatted as var:start:end[,dim:start:end]...",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """
    Inspect a NetCDF file and reduce its variables over named dimensions.

    Without an action option the full metadata of the file is printed.
    """
    _set_logging_level(verbose=verbose)

    requests = [
        _request_option(mean, Operation.MEAN),
        _request_option(sum_, Operation.SUM),
        _request_option(min_, Operation.MIN),
        _request_option(max_, Operation.MAX),
    ]

    context = None
    if threads is not None:
        try:
            context = ExecutionContext(threads)
        except BaseNcfoldError as e:
            raise _fail("Failed configuring parallel processing", e) from e
        logger.info("Configured parallel processing with %s threads", threads)

    try:
        ds = NetCDFStore().open(file)
    except BaseNcfoldError as e:
        raise _fail("Failed opening input", e) from e
    logger.info("Opened NetCDF file %s", file)

    try:
        with ds:
            request = next((r for r in requests if r is not None), None)
            if list_vars:
                try:
                    typer.echo(list_variables_and_dimensions(ds), nl=False)
                except BaseNcfoldError as e:
                    raise _fail("Failed listing variables", e) from e
            elif request is not None:
                _run_reduction(ds, request, output_netcdf, context)
            elif describe is not None:
                try:
                    typer.echo(repr(get_variable_info(ds, describe)), nl=False)
                except BaseNcfoldError as e:
                    raise _fail(f"Failed describing variable {describe!r}", e) from e
            elif summary is not None:
                try:
                    result = summarize_variable(ds, summary)
                except BaseNcfoldError as e:
                    raise _fail(f"Failed computing summary for variable {summary!r}", e) from e
                typer.echo(f"Summary for variable: {summary}")
                typer.echo(info_text_report(result.info_items()), nl=False)
            elif slice_ is not None:
                try:
                    _print_slice(ds, slice_)
                except BaseNcfoldError as e:
                    raise _fail("Failed extracting slice", e) from e
            else:
                try:
                    typer.echo(str(metadata_tree(ds)))
                except BaseNcfoldError as e:
                    raise _fail("Failed printing metadata", e) from e
    finally:
        if context is not None:
            context.shutdown()


if __name__ == "__main__":
    app()
