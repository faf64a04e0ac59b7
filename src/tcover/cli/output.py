"""Rich console rendering of coverage results."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from tcover.core.coverage import CoverageStats, CoverageStatus
from tcover.experiment import ExperimentReport


def _status_cell(stats: CoverageStats) -> str:
    if stats.status is CoverageStatus.INVALID:
        return "[red]unfixed or invalid rows[/red]"
    if stats.is_complete:
        return "[green]covering array[/green]"
    return "[yellow]not full coverage[/yellow]"


def print_array_results(
    title: str,
    results: list[CoverageStats],
    console: Console | None = None,
) -> None:
    """Print one table row per evaluated array."""
    console = console or Console()

    table = Table(title=f"Coverage of {title}")
    table.add_column("Array", justify="right", style="cyan")
    table.add_column("Tests", justify="right")
    table.add_column("Coverage", justify="right")
    table.add_column("Covered", justify="right")
    table.add_column("Excluded", justify="right")
    table.add_column("Status")

    for index, stats in enumerate(results):
        if stats.status is CoverageStatus.INVALID:
            coverage, covered = "-", "-"
        else:
            coverage = f"{stats.ratio:.4%}"
            covered = f"{stats.total_covered}/{stats.total_feasible}"
        table.add_row(
            str(index),
            str(stats.test_count),
            coverage,
            covered,
            str(stats.total_invalid) if stats.status is CoverageStatus.VALID else "-",
            _status_cell(stats),
        )

    console.print(table)

    conflicts = sum(len(stats.conflicts) for stats in results)
    if conflicts:
        console.print(
            f"[bold yellow]{conflicts} row(s) cover combinations "
            "the constraints exclude[/bold yellow]"
        )

    complete = sum(1 for stats in results if stats.is_complete)
    if complete == len(results):
        console.print(f"\n[bold green]All {len(results)} array(s) are covering arrays[/bold green]")
    else:
        console.print(
            f"\n[bold red]{len(results) - complete} of {len(results)} array(s) "
            f"are not covering arrays[/bold red]"
        )


def print_experiment_report(report: ExperimentReport, console: Console | None = None) -> None:
    """Print per-file results, then the problematic and incomplete files."""
    console = console or Console()
    console.print(f"Checked {len(report.files)} files in {report.root} (t={report.strength})")

    for number, result in enumerate(report.files):
        mark = "[green]✓[/green]" if result.passed else "[red]✗[/red]"
        console.print(
            f"#{number} | {result.source.label} | checked {result.arrays_checked} "
            f"({result.arrays_found}) arrays  {mark}"
        )
        if result.error:
            console.print(f"    [red]✗ {result.error}[/red]")
        for issue in result.issues:
            console.print(f"    [red]✗ array {issue.index}: {issue.reason}[/red]")

    if report.missing:
        console.print("\n[yellow]Files with fewer arrays than expected:[/yellow]")
        for result in report.missing:
            console.print(f"  {result.source.path} ({result.arrays_found})")

    if report.all_passed:
        console.print("\n[bold green]Seems all good[/bold green]")
    else:
        console.print("\n[bold red]The following files are problematic:[/bold red]")
        for result in report.problematic:
            console.print(f"  {result.source.path}")
