"""Main Typer CLI application for testscope."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console

from testscope.cli.display import SummaryDisplay, render_structure
from testscope.config import get_settings
from testscope.core.exceptions import ReportError
from testscope.core.normalizer import describe_structure
from testscope.core.view_model import ViewModel, build_view_model
from testscope.loader import load_report, write_view_model
from testscope.logging import configure_logging

app = typer.Typer(
    name="testscope",
    help="Navigable scenario/test views from test runner JSON reports",
    no_args_is_help=True,
)

err_console = Console(stderr=True, highlight=False)


def _setup_logging(verbose: bool) -> None:
    settings = get_settings()
    configure_logging(
        log_level="DEBUG" if verbose else settings.log_level,
        json_format=settings.log_json_format,
    )


def _load(report: Path) -> Any:
    try:
        return load_report(report)
    except ReportError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


ReportArgument = Annotated[
    Path | None,
    typer.Argument(help="Path to the JSON report (defaults to <report_dir>/<report_file>)"),
]

VerboseOption = Annotated[
    bool,
    typer.Option("-v", "--verbose", help="Enable debug logging"),
]


@app.command()
def build(
    report: ReportArgument = None,
    output_dir: Annotated[
        Path | None,
        typer.Option(
            "-o",
            "--output-dir",
            help="Directory the rendered report lives in (defaults to the report's directory)",
        ),
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Where to write the view model JSON"),
    ] = None,
    run_id: Annotated[
        str | None,
        typer.Option("--run-id", help="Override the run identifier"),
    ] = None,
    triggered_by: Annotated[
        str | None,
        typer.Option("--triggered-by", help="Who triggered the run, if the report does not say"),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("-q", "--quiet", help="Do not print the summary"),
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """Build the view model for a report and write it as JSON."""
    _setup_logging(verbose)
    settings = get_settings()

    report_path = report or settings.report_path
    target_dir = output_dir or report_path.parent
    data = _load(report_path)

    view = build_view_model(data, target_dir, run_id=run_id, triggered_by=triggered_by)
    written = write_view_model(view, out or target_dir / settings.view_model_file)

    if not quiet:
        SummaryDisplay().render(view)
    typer.echo(f"View model written to {written}")


@app.command()
def summary(
    report: ReportArgument = None,
    verbose: VerboseOption = False,
) -> None:
    """Print pass/fail totals and failing tests for a report."""
    _setup_logging(verbose)
    report_path = report or get_settings().report_path
    view: ViewModel = build_view_model(_load(report_path), report_path.parent)
    SummaryDisplay().render(view)


@app.command()
def inspect(
    report: ReportArgument = None,
    verbose: VerboseOption = False,
) -> None:
    """Show how the report is structured and which layout was detected."""
    _setup_logging(verbose)
    report_path = report or get_settings().report_path
    render_structure(describe_structure(_load(report_path)))
