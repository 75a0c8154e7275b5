"""Rich-based console rendering of a view model."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from testscope.core.models import Status
from testscope.core.view_model import ViewModel
from testscope.utils.formatting import format_duration

STATUS_STYLES = {
    Status.PASSED: "green",
    Status.FAILED: "red",
    Status.SKIPPED: "yellow",
    Status.UNKNOWN: "dim",
}

MAX_ERROR_LINES = 5


def _status_text(status: Status) -> str:
    style = STATUS_STYLES[status]
    return f"[{style}]{status.value.upper()}[/{style}]"


def _truncate(text: str, max_lines: int = MAX_ERROR_LINES) -> str:
    lines = text.splitlines()
    if len(lines) > max_lines:
        return "\n".join(lines[:max_lines] + ["... (truncated)"])
    return text


class SummaryDisplay:
    """Prints run totals, the scenario (or test) list and failing tests."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(highlight=False)

    def render(self, view: ViewModel) -> None:
        self._render_header(view)
        if view.has_scenarios:
            self._render_scenarios(view)
        elif view.test_cases:
            self._render_tests(view)
        self._render_failures(view)
        if view.diagnostics:
            count = len(view.diagnostics)
            self.console.print(f"[dim]{count} input issue(s) were worked around[/dim]")

    def _render_header(self, view: ViewModel) -> None:
        totals = view.totals
        meta = view.metadata
        self.console.print(
            f"[bold]{escape(meta.run_id)}[/bold]  {meta.generated_at}  {escape(meta.triggered_by)}"
        )
        self.console.print(
            f"{_status_text(view.overall_status)}  "
            f"{totals.passed}/{totals.total} passed, "
            f"{totals.failed} failed, {totals.skipped} skipped "
            f"in {format_duration(totals.duration_ms)}"
        )
        tally = view.scenario_tally
        label = "Scenarios" if view.has_scenarios else "Test blocks"
        self.console.print(
            f"{label}: {tally.passed} passed, {tally.failed} failed, {tally.skipped} skipped"
        )

    def _render_scenarios(self, view: ViewModel) -> None:
        table = Table(title="Test Scenarios")
        table.add_column("#", justify="right")
        table.add_column("Scenario")
        table.add_column("Status")
        table.add_column("Passed", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_column("Duration", justify="right")
        for scenario in view.scenarios:
            counts = scenario.counts
            table.add_row(
                str(scenario.index),
                escape(scenario.title),
                _status_text(scenario.status),
                str(counts.passed),
                str(counts.failed),
                str(counts.skipped),
                format_duration(counts.duration_ms),
            )
        self.console.print(table)

    def _render_tests(self, view: ViewModel) -> None:
        table = Table(title="Test Cases")
        table.add_column("Key")
        table.add_column("Test")
        table.add_column("Status")
        table.add_column("Duration", justify="right")
        for case in view.test_cases:
            table.add_row(
                case.address.key,
                escape(case.title),
                _status_text(case.status),
                format_duration(case.duration_ms),
            )
        self.console.print(table)

    def _render_failures(self, view: ViewModel) -> None:
        for case in view.tests_with_status(Status.FAILED):
            detail = view.lookup(case.address)
            if detail is None:
                continue
            self.console.print(f"\n[red bold]✗ {escape(detail.title)}[/red bold] ({case.address.key})")
            if detail.error:
                self.console.print(_truncate(detail.error), markup=False)


def render_structure(description: dict[str, Any], console: Console | None = None) -> None:
    """Print the output of ``describe_structure`` as a two-column table."""
    console = console or Console(highlight=False)
    table = Table(title="Report Structure", show_header=False)
    table.add_column("Field")
    table.add_column("Value")
    for key, value in description.items():
        if isinstance(value, list):
            value = ", ".join(value) if value else "-"
        table.add_row(key, "-" if value is None else escape(str(value)))
    console.print(table)
