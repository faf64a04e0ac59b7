"""CLI commands for tcover."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import NoReturn

import click

from tcover.cli.output import print_array_results, print_experiment_report
from tcover.config import TcoverSettings, load_settings
from tcover.core.coverage import INVALID, CoverageEvaluator, CoverageStats
from tcover.errors import TcoverError
from tcover.experiment import ExperimentRunner
from tcover.io import read_arrays, read_casa
from tcover.logging import configure_logging, log_context

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def _fail(error: TcoverError, verbose: bool) -> NoReturn:
    click.echo(error.format_verbose() if verbose else str(error), err=True)
    sys.exit(EXIT_CONFIG_ERROR)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config file")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str | None) -> None:
    """tcover - constrained t-way coverage evaluator."""
    ctx.ensure_object(dict)

    try:
        settings = load_settings(config)
    except TcoverError as e:
        _fail(e, verbose)

    if verbose:
        settings.log_level = "DEBUG"

    ctx.obj["settings"] = settings
    ctx.obj["verbose"] = verbose

    configure_logging(settings.log_level, json_format=settings.log_format == "json")


@cli.command()
@click.argument("model_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("arrays_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--constraints",
    "constraints_file",
    type=click.Path(exists=True, dir_okay=False),
    help="CASA constraints file for the model",
)
@click.option(
    "--strength", "-t", type=int, default=None, help="Interaction strength (default: from config)"
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def check(
    ctx: click.Context,
    model_file: str,
    arrays_file: str,
    constraints_file: str | None,
    strength: int | None,
    output_json: bool,
) -> None:
    """Measure the t-way coverage of every array in ARRAYS_FILE.

    Exits with status 1 unless every array is a covering array.

    \b
    Examples:
        tcover check apache.model ca.txt --constraints apache.constraints
        tcover check apache.model ca.txt -t 3 --json
    """
    settings: TcoverSettings = ctx.obj["settings"]
    verbose: bool = ctx.obj["verbose"]
    if strength is None:
        strength = settings.strength

    try:
        casa = read_casa(model_file, constraints_file)
        arrays = read_arrays(arrays_file)
        evaluator = CoverageEvaluator(casa.model, settings=settings)
        with log_context(file=arrays_file, model=casa.model.name, strength=strength):
            results: list[CoverageStats] = [
                evaluator.coverage_stats(array.rows, strength) for array in arrays
            ]
    except TcoverError as e:
        _fail(e, verbose)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    if output_json:
        data = {
            "model": casa.model.name,
            "strength": strength,
            "oracle": evaluator.oracle.stats.to_dict(),
            "arrays": [stats.to_dict() for stats in results],
        }
        click.echo(json.dumps(data, indent=2))
    else:
        print_array_results(Path(arrays_file).name, results)

    all_covering = all(
        stats.ratio is not INVALID and stats.is_complete for stats in results
    )
    sys.exit(EXIT_SUCCESS if all_covering else EXIT_FAILURE)


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--bound", "-b", type=int, default=None, help="Maximum number of arrays checked per file"
)
@click.option(
    "--benchmark-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory of benchmark models",
)
@click.option(
    "--strength", "-t", type=int, default=None, help="Interaction strength (default: from config)"
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def experiment(
    ctx: click.Context,
    root: str,
    bound: int | None,
    benchmark_dir: str | None,
    strength: int | None,
    output_json: bool,
) -> None:
    """Check every result file below ROOT against its benchmark model.

    Files are expected at ROOT/<algorithm>/<handler>_<model>_<suffix>.

    \b
    Examples:
        tcover experiment results --bound 10
        tcover experiment results --benchmark-dir models --json
    """
    settings: TcoverSettings = ctx.obj["settings"]
    updates = {
        key: value
        for key, value in (
            ("max_arrays", bound),
            ("benchmark_dir", benchmark_dir),
            ("strength", strength),
        )
        if value is not None
    }
    try:
        settings = TcoverSettings(**{**settings.model_dump(), **updates})
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    report = ExperimentRunner(settings).run(root)

    if output_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        print_experiment_report(report)

    sys.exit(EXIT_SUCCESS if report.all_passed else EXIT_FAILURE)
