"""View model composition.

Combines normalization, aggregation, evidence classification, step
extraction and text sanitization into one serializable object a presentation
layer can render without touching the raw report again.

Navigation works purely through ``TestAddress`` triplets: the flattened list,
the scenario summaries and the detail entries all carry the same addresses.
"""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from testscope.config import get_settings
from testscope.core.aggregator import (
    Counts,
    ScenarioTally,
    aggregate_flattened,
    aggregate_group,
    aggregate_scenario,
    tally_scenarios,
)
from testscope.core.evidence import Evidence, classify
from testscope.core.models import FlattenedTestCase, Status, TestAddress
from testscope.core.normalizer import TestEntry, normalize
from testscope.core.sanitizer import extract_console_output, extract_error_text
from testscope.core.steps import StepList, extract_steps
from testscope.logging import get_logger, run_id_ctx
from testscope.utils.formatting import format_duration

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


@dataclass(frozen=True)
class RunMetadata:
    """Who ran what, and when the view was generated."""

    run_id: str
    triggered_by: str
    generated_at: str

    def to_dict(self) -> dict[str, str]:
        return {
            "run_id": self.run_id,
            "triggered_by": self.triggered_by,
            "generated_at": self.generated_at,
        }


def _metadata_value(raw: Any, key: str) -> str | None:
    """Look up ``config.metadata.<key>`` then ``metadata.<key>``."""
    if not isinstance(raw, dict):
        return None
    config = raw.get("config")
    candidates = [
        config.get("metadata") if isinstance(config, dict) else None,
        raw.get("metadata"),
    ]
    for metadata in candidates:
        if isinstance(metadata, dict):
            value = metadata.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def resolve_run_metadata(
    raw: Any,
    default_run_id: str,
    triggered_by: str | None = None,
    now: datetime | None = None,
) -> RunMetadata:
    """Resolve run id, triggering actor and generation timestamp.

    Values embedded in the report win; ``triggered_by`` and then the host
    name are used when the report does not say who ran it.
    """
    now = now or datetime.now(UTC)
    return RunMetadata(
        run_id=_metadata_value(raw, "testRunId") or default_run_id,
        triggered_by=_metadata_value(raw, "triggeredBy") or triggered_by or socket.gethostname(),
        generated_at=now.strftime(TIMESTAMP_FORMAT),
    )


@dataclass(frozen=True)
class TestDetail:
    """Everything the detail view shows for one test."""

    __test__ = False

    address: TestAddress
    title: str
    status: Status
    raw_status: str
    duration_ms: int
    error: str
    steps: StepList
    evidence: Evidence
    stdout: str
    stderr: str
    group_title: str
    scenario_title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.address.to_dict(),
            "key": self.address.key,
            "title": self.title,
            "status": self.status.value,
            "raw_status": self.raw_status,
            "duration_ms": self.duration_ms,
            "duration": format_duration(self.duration_ms),
            "error": self.error,
            "steps": self.steps.to_dict(),
            "evidence": self.evidence.to_dict(),
            "stdout": self.stdout,
            "stderr": self.stderr,
            "group_title": self.group_title,
            "scenario_title": self.scenario_title,
        }


@dataclass(frozen=True)
class GroupSummary:
    """Counts for one spec inside a scenario."""

    spec_index: int
    title: str
    counts: Counts

    def to_dict(self) -> dict[str, Any]:
        return {"spec_index": self.spec_index, "title": self.title, **self.counts.to_dict()}


@dataclass(frozen=True)
class ScenarioSummary:
    """One row of the scenario list plus its test list."""

    index: int
    title: str
    counts: Counts
    groups: tuple[GroupSummary, ...]
    tests: tuple[FlattenedTestCase, ...]

    @property
    def status(self) -> Status:
        return self.counts.status

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "title": self.title,
            "status": self.status.value,
            "counts": self.counts.to_dict(),
            "duration": format_duration(self.counts.duration_ms),
            "groups": [group.to_dict() for group in self.groups],
            "tests": [test.to_dict() for test in self.tests],
        }


@dataclass(frozen=True)
class ViewModel:
    """Serializable, navigable view of one test run."""

    metadata: RunMetadata
    totals: Counts
    has_scenarios: bool
    scenario_tally: ScenarioTally
    scenarios: tuple[ScenarioSummary, ...]
    test_cases: tuple[FlattenedTestCase, ...]
    details: tuple[TestDetail, ...]
    diagnostics: tuple[str, ...] = ()
    _by_key: dict[str, TestDetail] = field(default_factory=dict, init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        self._by_key.update({detail.address.key: detail for detail in self.details})

    @property
    def overall_status(self) -> Status:
        """Passed only when nothing failed and nothing was skipped."""
        if self.totals.failed or self.totals.skipped:
            return Status.FAILED
        return Status.PASSED

    def lookup(self, address: TestAddress | str) -> TestDetail | None:
        """Find the detail entry for an address (or its string key)."""
        key = address.key if isinstance(address, TestAddress) else address
        return self._by_key.get(key)

    def tests_with_status(self, status: Status | str) -> list[FlattenedTestCase]:
        """Filter the flattened list by canonical status."""
        wanted = status if isinstance(status, Status) else Status.from_raw(status)
        return [case for case in self.test_cases if case.status is wanted]

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "totals": {
                **self.totals.to_dict(),
                "duration": format_duration(self.totals.duration_ms),
                "pass_rate": self.totals.pass_rate,
            },
            "overall_status": self.overall_status.value,
            "has_scenarios": self.has_scenarios,
            "scenario_tally": self.scenario_tally.to_dict(),
            "scenarios": [scenario.to_dict() for scenario in self.scenarios],
            "test_cases": [case.to_dict() for case in self.test_cases],
            "details": [detail.to_dict() for detail in self.details],
            "diagnostics": list(self.diagnostics),
        }


def _build_detail(
    entry: TestEntry, output_dir: str | os.PathLike[str], results_marker: str, notes: list[str]
) -> TestDetail:
    result = entry.test.primary
    evidence = classify(result.attachments, output_dir, results_marker)
    steps = extract_steps(result.raw, result.attachments)
    console = extract_console_output(result.raw)
    notes.extend(evidence.diagnostics + steps.diagnostics + console.diagnostics)

    return TestDetail(
        address=entry.address,
        title=entry.test.title,
        status=result.status,
        raw_status=result.raw_status,
        duration_ms=result.duration_ms,
        error=extract_error_text(result.raw),
        steps=steps.value,
        evidence=evidence.value,
        stdout=console.value["stdout"],
        stderr=console.value["stderr"],
        group_title=entry.group.title,
        scenario_title=entry.scenario.title if entry.scenario else None,
    )


def build_view_model(
    raw: Any,
    output_dir: str | os.PathLike[str] | None = None,
    *,
    run_id: str | None = None,
    triggered_by: str | None = None,
    results_marker: str | None = None,
    now: datetime | None = None,
) -> ViewModel:
    """Build the complete view model for one raw report.

    Args:
        raw: Parsed JSON report (any shape; garbage yields an empty view).
        output_dir: Directory the rendered report is written to; attachment
            paths are made relative to it. Defaults to the configured
            report directory.
        run_id: Overrides the run id found in the report.
        triggered_by: Used when the report does not name who triggered it.
        results_marker: Path segment kept for attachments outside output_dir.
        now: Generation time (defaults to the current UTC time).

    Returns:
        Immutable ViewModel.
    """
    settings = get_settings()
    output_dir = output_dir if output_dir is not None else settings.report_dir
    results_marker = results_marker if results_marker is not None else settings.results_marker

    metadata = resolve_run_metadata(
        raw,
        default_run_id=settings.default_run_id,
        triggered_by=triggered_by or settings.triggered_by,
        now=now,
    )
    if run_id:
        metadata = RunMetadata(run_id, metadata.triggered_by, metadata.generated_at)

    token = run_id_ctx.set(metadata.run_id)
    try:
        report = normalize(raw)
        notes = list(report.diagnostics)

        test_cases = tuple(report.flattened())
        totals = aggregate_flattened(test_cases)

        scenarios = tuple(
            ScenarioSummary(
                index=scenario.index,
                title=scenario.title,
                counts=aggregate_scenario(scenario),
                groups=tuple(
                    GroupSummary(spec_index=i, title=group.title, counts=aggregate_group(group))
                    for i, group in enumerate(scenario.groups)
                ),
                tests=tuple(c for c in test_cases if c.address.scenario_index == scenario.index),
            )
            for scenario in report.scenarios
        )

        details = tuple(
            _build_detail(entry, output_dir, results_marker, notes) for entry in report.iter_tests()
        )

        view = ViewModel(
            metadata=metadata,
            totals=totals,
            has_scenarios=report.has_scenarios,
            scenario_tally=tally_scenarios(report),
            scenarios=scenarios,
            test_cases=test_cases,
            details=details,
            diagnostics=tuple(notes),
        )
        logger.info(
            "view_model_built",
            shape=report.shape,
            scenarios=len(scenarios),
            tests=totals.total,
            passed=totals.passed,
            failed=totals.failed,
            skipped=totals.skipped,
            diagnostics=len(notes),
        )
        return view
    finally:
        run_id_ctx.reset(token)
