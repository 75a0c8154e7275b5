"""Schema normalization.

Walks a raw report of any supported shape and reduces it to the canonical
Scenario -> TestGroup -> Test -> Result hierarchy.

Scenarios are the suites that directly own specs, collected depth-first in
input order. When a report has no such suite, every root node is read as a
spec (or as a bare test) and tests are addressed as
``(None, spec_index, test_index)``.

Entries that are not JSON objects are kept as tests with an unknown status so
they still show up in the totals; a diagnostic is recorded for each.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from testscope.core.models import (
    Attachment,
    FlattenedTestCase,
    Result,
    Scenario,
    Status,
    Test,
    TestAddress,
    TestGroup,
)
from testscope.core.shapes import (
    NodeKind,
    all_results_of,
    child_suites_of,
    detect_node_kind,
    detect_report_shape,
    specs_of,
    tests_of,
)
from testscope.core.titles import resolve_group_title, resolve_scenario_title, resolve_test_title
from testscope.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TestEntry:
    """A test together with its address and the containers it sits in."""

    __test__ = False

    address: TestAddress
    scenario: Scenario | None
    group: TestGroup
    test: Test


@dataclass(frozen=True)
class NormalizedReport:
    """Canonical form of one raw report.

    Attributes:
        scenarios: Leaf suites in depth-first input order (empty when
            ``has_scenarios`` is False).
        has_scenarios: Whether any leaf suite was found.
        root_groups: Root nodes read as specs; only populated when
            ``has_scenarios`` is False.
        shape: Name of the detected report shape.
        diagnostics: Notes about input that had to be interpreted loosely.
    """

    scenarios: tuple[Scenario, ...] = ()
    has_scenarios: bool = False
    root_groups: tuple[TestGroup, ...] = ()
    shape: str = "empty"
    diagnostics: tuple[str, ...] = ()

    def iter_tests(self) -> Iterator[TestEntry]:
        """Yield every test with its address, in addressing order."""
        if self.has_scenarios:
            for scenario in self.scenarios:
                yield from _entries(scenario.index, scenario, scenario.groups)
        else:
            yield from _entries(None, None, self.root_groups)

    def iter_results(self) -> Iterator[Result]:
        """Yield the authoritative result of every test."""
        for entry in self.iter_tests():
            yield entry.test.primary

    def flattened(self) -> list[FlattenedTestCase]:
        """Project every test to a FlattenedTestCase."""
        return [
            FlattenedTestCase(
                address=entry.address,
                title=entry.test.title,
                status=entry.test.primary.status,
                duration_ms=entry.test.primary.duration_ms,
            )
            for entry in self.iter_tests()
        ]


def _entries(
    scenario_index: int | None, scenario: Scenario | None, groups: tuple[TestGroup, ...]
) -> Iterator[TestEntry]:
    for spec_index, group in enumerate(groups):
        for test_index, test in enumerate(group.tests):
            yield TestEntry(
                address=TestAddress(scenario_index, spec_index, test_index),
                scenario=scenario,
                group=group,
                test=test,
            )


@dataclass
class _Notes:
    """Diagnostics collected during one normalization pass."""

    items: list[str] = field(default_factory=list)

    def add(self, message: str) -> None:
        logger.debug("normalize_diagnostic", message=message)
        self.items.append(message)


def find_leaf_suites(nodes: list[Any]) -> list[dict[str, Any]]:
    """Collect suites that directly own specs, depth-first in input order.

    A suite that owns specs is a leaf: its nested suites are not searched.
    Only suites without specs are descended into.
    """
    leaves: list[dict[str, Any]] = []
    for node in nodes:
        if detect_node_kind(node) is not NodeKind.SUITE:
            continue
        if specs_of(node):
            leaves.append(node)
        else:
            leaves.extend(find_leaf_suites(child_suites_of(node)))
    return leaves


def _duration_of(raw_result: dict[str, Any]) -> int:
    duration = raw_result.get("duration")
    if isinstance(duration, bool) or not isinstance(duration, int | float):
        return 0
    if isinstance(duration, float) and not math.isfinite(duration):
        return 0
    return int(duration)


def _attachments_of(raw_result: dict[str, Any], notes: _Notes) -> tuple[Attachment, ...]:
    raw_attachments = raw_result.get("attachments")
    if not isinstance(raw_attachments, list):
        return ()
    attachments = []
    for raw in raw_attachments:
        attachment = Attachment.from_raw(raw)
        if attachment is None:
            notes.add(f"Ignored attachment that is not an object: {raw!r}")
            continue
        attachments.append(attachment)
    return tuple(attachments)


def build_result(raw_result: dict[str, Any], notes: _Notes | None = None) -> Result:
    """Build a Result from a raw result mapping.

    Status is read from ``status``, then ``outcome``, defaulting to
    ``unknown``; a missing duration counts as 0.
    """
    if notes is None:
        notes = _Notes()
    raw_status = raw_result.get("status") or raw_result.get("outcome")
    if not isinstance(raw_status, str) or not raw_status:
        raw_status = Status.UNKNOWN.value
    return Result(
        status=Status.from_raw(raw_status),
        raw_status=raw_status,
        duration_ms=_duration_of(raw_result),
        attachments=_attachments_of(raw_result, notes),
        raw=raw_result,
    )


def _build_test(node: Any, index: int, spec: Any, notes: _Notes, where: str) -> Test:
    if not isinstance(node, dict):
        notes.add(f"Test {where} is not an object; counted with unknown status")
    title = resolve_test_title(node, index, spec).value
    results = tuple(build_result(raw, notes) for raw in all_results_of(node))
    return Test(title=title, results=results)


def _build_group(node: Any, index: int, spec_context: Any, notes: _Notes, where: str) -> TestGroup:
    if not isinstance(node, dict):
        notes.add(f"Spec {where} is not an object; read as a single test")
    tests = tuple(
        _build_test(test, test_index, spec_context, notes, f"{where}/{test_index}")
        for test_index, test in enumerate(tests_of(node))
    )
    return TestGroup(title=resolve_group_title(node, index).value, tests=tests)


def _build_scenario(suite: dict[str, Any], index: int, notes: _Notes) -> Scenario:
    groups = tuple(
        _build_group(spec, spec_index, spec, notes, f"{index}/{spec_index}")
        for spec_index, spec in enumerate(specs_of(suite))
    )
    return Scenario(index=index, title=resolve_scenario_title(suite, index).value, groups=groups)


def describe_structure(raw: Any) -> dict[str, Any]:
    """Summarize the layout of a raw report for debugging.

    Returns the detected shape, the root keys and the key sets of the first
    suite, spec, test, result and attachment found along the first path.
    """
    shape = detect_report_shape(raw)
    roots = shape.root_nodes(raw)
    description: dict[str, Any] = {
        "shape": shape.name,
        "root_keys": sorted(raw.keys()) if isinstance(raw, dict) else [],
        "root_count": len(roots),
    }

    def keys(node: Any) -> list[str] | None:
        return sorted(node.keys()) if isinstance(node, dict) else None

    first = roots[0] if roots else None
    description["first_root_keys"] = keys(first)
    description["first_root_title"] = first.get("title") if isinstance(first, dict) else None

    leaves = find_leaf_suites(roots)
    description["leaf_suite_count"] = len(leaves)
    spec = specs_of(leaves[0])[0] if leaves else first
    description["first_spec_keys"] = keys(spec)

    test = tests_of(spec)[0] if isinstance(spec, dict) and tests_of(spec) else None
    description["first_test_keys"] = keys(test)

    result = all_results_of(test)[0] if isinstance(test, dict) else None
    description["first_result_keys"] = keys(result)
    attachments = result.get("attachments") if isinstance(result, dict) else None
    if isinstance(attachments, list) and attachments:
        description["attachment_count"] = len(attachments)
        description["first_attachment_keys"] = keys(attachments[0])
    else:
        description["attachment_count"] = 0
    return description


def normalize(raw: Any) -> NormalizedReport:
    """Reduce a raw report to the canonical hierarchy.

    Never raises: unrecognized input yields an empty report.

    Args:
        raw: Parsed JSON report of any shape.

    Returns:
        NormalizedReport with deterministic, depth-first addressing.
    """
    notes = _Notes()
    shape = detect_report_shape(raw)
    logger.debug("report_structure", **describe_structure(raw))

    if shape.name == "empty" and raw:
        notes.add("Report has no 'suites' or 'testResults' list; nothing to normalize")

    roots = shape.root_nodes(raw)
    leaves = find_leaf_suites(roots)

    if leaves:
        scenarios = tuple(_build_scenario(suite, index, notes) for index, suite in enumerate(leaves))
        report = NormalizedReport(
            scenarios=scenarios,
            has_scenarios=True,
            shape=shape.name,
            diagnostics=tuple(notes.items),
        )
    else:
        groups = tuple(
            _build_group(
                node,
                index,
                node if detect_node_kind(node) is NodeKind.SPEC else None,
                notes,
                f"root/{index}",
            )
            for index, node in enumerate(roots)
        )
        report = NormalizedReport(
            root_groups=groups,
            has_scenarios=False,
            shape=shape.name,
            diagnostics=tuple(notes.items),
        )

    logger.debug(
        "report_normalized",
        shape=shape.name,
        has_scenarios=report.has_scenarios,
        scenarios=len(report.scenarios),
        diagnostics=len(report.diagnostics),
    )
    return report
