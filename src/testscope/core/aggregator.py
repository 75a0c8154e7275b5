"""Pass/fail/skip aggregation at every level of the hierarchy.

All counting goes through the immutable ``Counts`` accumulator: each step
returns a new value, so any partial input (one group, one scenario, a list of
flattened cases) can be aggregated on its own and the results added together.

Classification of a single result:

- passed -> passed
- failed -> failed
- anything else, including unknown or missing statuses -> skipped

Rollup of a group of results: failed if anything failed; else skipped if
something was skipped and nothing passed; else passed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from typing import TYPE_CHECKING, Any

from testscope.core.models import FlattenedTestCase, Result, Scenario, Status, TestGroup

if TYPE_CHECKING:
    from testscope.core.normalizer import NormalizedReport


class Bucket(Enum):
    """Counter a result is added to."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


def classify(status: Status | str) -> Bucket:
    """Map a status to the counter it contributes to."""
    if not isinstance(status, Status):
        status = Status.from_raw(status)
    if status is Status.PASSED:
        return Bucket.PASSED
    if status is Status.FAILED:
        return Bucket.FAILED
    return Bucket.SKIPPED


@dataclass(frozen=True)
class Counts:
    """Passed/failed/skipped counters plus summed duration."""

    passed: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped

    @property
    def status(self) -> Status:
        """Rollup status: failed > skipped-only > passed."""
        if self.failed:
            return Status.FAILED
        if self.skipped and not self.passed:
            return Status.SKIPPED
        return Status.PASSED

    @property
    def pass_rate(self) -> float:
        return self.passed / self.total if self.total else 0.0

    def record(self, status: Status | str, duration_ms: int | None = 0) -> Counts:
        """Return a new Counts with one more outcome added."""
        bucket = classify(status)
        return Counts(
            passed=self.passed + (bucket is Bucket.PASSED),
            failed=self.failed + (bucket is Bucket.FAILED),
            skipped=self.skipped + (bucket is Bucket.SKIPPED),
            duration_ms=self.duration_ms + (duration_ms or 0),
        )

    def __add__(self, other: Counts) -> Counts:
        if not isinstance(other, Counts):
            return NotImplemented
        return Counts(
            passed=self.passed + other.passed,
            failed=self.failed + other.failed,
            skipped=self.skipped + other.skipped,
            duration_ms=self.duration_ms + other.duration_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "total": self.total,
            "duration_ms": self.duration_ms,
            "status": self.status.value,
        }


EMPTY = Counts()


def aggregate_results(results: Iterable[Result], start: Counts = EMPTY) -> Counts:
    """Fold results into a Counts accumulator."""
    return reduce(lambda acc, result: acc.record(result.status, result.duration_ms), results, start)


def aggregate_group(group: TestGroup) -> Counts:
    """Counts for one spec, using each test's primary result."""
    return aggregate_results(test.primary for test in group.tests)


def aggregate_scenario(scenario: Scenario) -> Counts:
    """Counts for one scenario."""
    return sum((aggregate_group(group) for group in scenario.groups), EMPTY)


def aggregate_flattened(cases: Iterable[FlattenedTestCase]) -> Counts:
    """Counts over the flattened test list (source of the report totals)."""
    return reduce(lambda acc, case: acc.record(case.status, case.duration_ms), cases, EMPTY)


def aggregate_report(report: NormalizedReport) -> Counts:
    """Counts over every primary result of a NormalizedReport."""
    return aggregate_results(report.iter_results())


@dataclass(frozen=True)
class ScenarioTally:
    """How many scenarios ended in each rollup status.

    When the report has no scenarios this is a single synthetic bucket for
    the whole run (or nothing at all for an empty run).
    """

    passed: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped

    def record(self, status: Status) -> ScenarioTally:
        return ScenarioTally(
            passed=self.passed + (status is Status.PASSED),
            failed=self.failed + (status is Status.FAILED),
            skipped=self.skipped + (status is Status.SKIPPED),
        )

    def to_dict(self) -> dict[str, int]:
        return {"passed": self.passed, "failed": self.failed, "skipped": self.skipped}


def tally_scenarios(report: NormalizedReport) -> ScenarioTally:
    """Count scenarios by rollup status, or one bucket for a flat report."""
    if report.has_scenarios:
        return reduce(
            lambda acc, scenario: acc.record(aggregate_scenario(scenario).status),
            report.scenarios,
            ScenarioTally(),
        )

    totals = aggregate_report(report)
    if not totals.total:
        return ScenarioTally()
    return ScenarioTally().record(totals.status)
