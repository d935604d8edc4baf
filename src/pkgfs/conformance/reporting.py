"""Terminal rendering of conformance suite reports."""

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .runner import SuiteReport


def build_table(report: SuiteReport, show_cases: bool = False) -> Table:
    """
    Build a rich Table summarizing a suite report.

    Args:
        report: The report to render
        show_cases: Add one row per sub-case below each scenario
    """
    table = Table(title=f"pkgfs conformance: {report.name}")
    table.add_column("Scenario", style="cyan")
    table.add_column("Result")
    table.add_column("Cases", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Error", overflow="fold")

    for result in report.scenarios:
        failed = len(result.failed_cases())
        status = Text("PASS", style="green") if result.passed else Text("FAIL", style="bold red")
        error = f"{result.error_type}: {result.error_message}" if result.error_type else ""
        table.add_row(
            result.name,
            status,
            f"{len(result.cases) - failed}/{len(result.cases)}",
            f"{result.duration * 1000:.1f}ms",
            error,
        )
        if not show_cases:
            continue
        for case in result.cases:
            table.add_row(
                Text(f"  {case.name}", style="dim"),
                Text("ok", style="green") if case.passed else Text("fail", style="red"),
                "",
                f"{case.duration * 1000:.1f}ms",
                f"{case.error_type}: {case.error_message}" if case.error_type else "",
            )
    return table


def print_report(
    report: SuiteReport,
    console: Optional[Console] = None,
    show_cases: bool = False,
) -> None:
    """Print a report table followed by a one-line verdict."""
    console = console or Console()
    console.print(build_table(report, show_cases=show_cases))

    failures = report.failures()
    if failures:
        console.print(
            f"[bold red]{len(failures)} of {len(report.scenarios)} scenarios failed[/bold red]"
        )
    else:
        console.print(f"[green]All {len(report.scenarios)} scenarios passed[/green]")
