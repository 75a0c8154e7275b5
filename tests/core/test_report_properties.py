"""Property-based tests for normalization, aggregation and the view model.

Reports are generated with Hypothesis: well-formed suite trees for the
counting properties, and arbitrary JSON values for the "never raises" ones.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from hypothesis import given, settings
from hypothesis import strategies as st

from testscope.core.aggregator import (
    Bucket,
    Counts,
    aggregate_flattened,
    aggregate_group,
    aggregate_report,
    aggregate_scenario,
    classify,
    tally_scenarios,
)
from testscope.core.normalizer import find_leaf_suites, normalize
from testscope.core.shapes import child_suites_of
from testscope.core.view_model import build_view_model

FIXED_NOW = datetime(2024, 5, 17, 9, 30, tzinfo=UTC)
OUTPUT_DIR = "/ci/work/playwright-report"

STATUSES = ["passed", "pass", "failed", "fail", "skipped", "skip", "timedOut", "PASSED", ""]
KNOWN_KEYS = [
    "suites",
    "specs",
    "tests",
    "results",
    "result",
    "testResults",
    "title",
    "status",
    "outcome",
    "duration",
    "attachments",
    "name",
    "contentType",
    "path",
    "body",
    "steps",
    "error",
    "errors",
    "stdout",
    "stderr",
    "config",
    "metadata",
]


# =============================================================================
# Hypothesis Strategies for report trees
# =============================================================================


def attachments() -> st.SearchStrategy[dict]:
    """Strategy for raw attachment entries."""
    return st.fixed_dictionaries(
        {"name": st.sampled_from(["screenshot", "trace", "video", "steps", "console", "other"])},
        optional={
            "contentType": st.sampled_from(
                ["image/png", "application/zip", "video/webm", "application/json", "text/plain"]
            ),
            "path": st.sampled_from(
                [
                    "/ci/work/playwright-report/data/a.png",
                    "/tmp/run/test-results/t/trace.zip",
                    "video.webm",
                    "C:\\runs\\clip.mp4",
                    "",
                ]
            ),
            "body": st.one_of(st.text(max_size=20), st.just('[{"title": "click"}]')),
        },
    )


def raw_results() -> st.SearchStrategy[dict]:
    """Strategy for raw result mappings."""
    return st.fixed_dictionaries(
        {},
        optional={
            "status": st.sampled_from(STATUSES),
            "duration": st.one_of(
                st.integers(min_value=0, max_value=600_000),
                st.floats(allow_nan=True, allow_infinity=True),
                st.text(max_size=5),
            ),
            "attachments": st.lists(attachments(), max_size=3),
            "errors": st.lists(st.fixed_dictionaries({"message": st.text(max_size=20)}), max_size=2),
        },
    )


def raw_tests() -> st.SearchStrategy[dict]:
    """Strategy for raw test nodes (an empty results list is allowed)."""
    return st.fixed_dictionaries(
        {"results": st.lists(raw_results(), max_size=2)},
        optional={"title": st.text(max_size=10)},
    )


def specs() -> st.SearchStrategy[dict]:
    """Strategy for raw specs."""
    return st.fixed_dictionaries(
        {"title": st.text(max_size=10), "tests": st.lists(raw_tests(), max_size=3)}
    )


def suites() -> st.SearchStrategy[dict]:
    """Strategy for suite trees; inner suites may also own specs."""
    leaf = st.fixed_dictionaries(
        {"title": st.text(max_size=10), "specs": st.lists(specs(), min_size=1, max_size=3)}
    )
    return st.recursive(
        leaf,
        lambda children: st.fixed_dictionaries(
            {
                "title": st.text(max_size=10),
                "specs": st.lists(specs(), max_size=2),
                "suites": st.lists(children, max_size=3),
            }
        ),
        max_leaves=6,
    )


def reports() -> st.SearchStrategy[dict]:
    """Strategy for reports in either root layout."""
    return st.one_of(
        st.fixed_dictionaries({"suites": st.lists(suites(), max_size=3)}),
        st.fixed_dictionaries(
            {"testResults": st.lists(st.one_of(specs(), raw_results()), max_size=4)}
        ),
    )


def json_values() -> st.SearchStrategy[Any]:
    """Strategy for arbitrary JSON values, biased towards report keys."""
    scalars = st.one_of(
        st.none(),
        st.booleans(),
        st.integers(min_value=-(10**12), max_value=10**12),
        st.floats(allow_nan=True, allow_infinity=True),
        st.text(max_size=20),
    )
    keys = st.one_of(st.sampled_from(KNOWN_KEYS), st.text(max_size=5))
    return st.recursive(
        scalars,
        lambda children: st.one_of(
            st.lists(children, max_size=4),
            st.dictionaries(keys, children, max_size=5),
        ),
        max_leaves=30,
    )


def _hierarchy_counts(report) -> Counts:
    if report.has_scenarios:
        return sum((aggregate_scenario(scenario) for scenario in report.scenarios), Counts())
    return sum((aggregate_group(group) for group in report.root_groups), Counts())


def _descendant_ids(suite: dict) -> set[int]:
    found: set[int] = set()
    for child in child_suites_of(suite):
        if isinstance(child, dict):
            found.add(id(child))
            found |= _descendant_ids(child)
    return found


# =============================================================================
# Properties
# =============================================================================


class TestAggregationProperties:
    """Counting properties that must hold for every report."""

    @given(raw=reports())
    @settings(max_examples=100, deadline=None)
    def test_totals_partition_the_tests(self, raw):
        """passed + failed + skipped should equal the number of tests."""
        # When
        report = normalize(raw)
        totals = aggregate_report(report)

        # Then
        assert totals.passed + totals.failed + totals.skipped == totals.total
        assert totals.total == len(report.flattened()) == sum(1 for _ in report.iter_tests())

    @given(raw=reports())
    @settings(max_examples=100, deadline=None)
    def test_flattened_totals_match_hierarchy(self, raw):
        """Totals from the flattened list should equal totals from the tree."""
        report = normalize(raw)

        from_list = aggregate_flattened(report.flattened())

        assert from_list == aggregate_report(report) == _hierarchy_counts(report)

    @given(raw=reports())
    @settings(max_examples=100, deadline=None)
    def test_tally_counts_each_scenario_once(self, raw):
        """Every scenario should land in exactly one tally bucket."""
        report = normalize(raw)

        tally = tally_scenarios(report)

        if report.has_scenarios:
            assert tally.total == len(report.scenarios)
        else:
            assert tally.total == (1 if aggregate_report(report).total else 0)

    @given(status=st.one_of(st.sampled_from(STATUSES), st.text(max_size=12)))
    def test_only_exact_passed_or_failed_are_not_skipped(self, status):
        """Any other status string should be counted as skipped."""
        expected = {
            "passed": Bucket.PASSED,
            "pass": Bucket.PASSED,
            "failed": Bucket.FAILED,
            "fail": Bucket.FAILED,
        }.get(status, Bucket.SKIPPED)

        assert classify(status) is expected


class TestLeafSuiteProperties:
    """Properties of leaf suite discovery."""

    @given(tree=st.lists(suites(), max_size=3))
    @settings(max_examples=100, deadline=None)
    def test_leaves_own_specs_and_never_nest(self, tree):
        """Each leaf should own specs and none should sit below another leaf."""
        # When
        leaves = find_leaf_suites(tree)

        # Then
        leaf_ids = {id(leaf) for leaf in leaves}
        assert len(leaf_ids) == len(leaves)
        for leaf in leaves:
            assert leaf["specs"]
            assert not (_descendant_ids(leaf) & leaf_ids)

    @given(tree=st.lists(suites(), max_size=3))
    @settings(max_examples=100, deadline=None)
    def test_scenario_indices_are_positions(self, tree):
        """Scenario indices should be 0..n-1 in discovery order."""
        report = normalize({"suites": tree})

        assert [s.index for s in report.scenarios] == list(range(len(report.scenarios)))
        assert report.has_scenarios == bool(report.scenarios)


class TestViewModelProperties:
    """The view model must be built for any input."""

    @given(raw=json_values())
    @settings(max_examples=150, deadline=None)
    def test_any_json_value_builds_a_serializable_view(self, raw):
        """Arbitrary JSON should never raise and should serialize."""
        # When
        view = build_view_model(raw, OUTPUT_DIR, run_id="PROP", now=FIXED_NOW)

        # Then
        data = json.loads(json.dumps(view.to_dict()))
        assert len(data["details"]) == len(data["test_cases"]) == view.totals.total

    @given(raw=reports())
    @settings(max_examples=100, deadline=None)
    def test_every_test_case_resolves_to_a_detail(self, raw):
        """Each flattened test case should be reachable by its key."""
        view = build_view_model(raw, OUTPUT_DIR, run_id="PROP", now=FIXED_NOW)

        for case in view.test_cases:
            detail = view.lookup(case.address.key)
            assert detail is not None
            assert detail.status is case.status
