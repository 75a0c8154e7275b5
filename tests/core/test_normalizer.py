"""Tests for schema normalization."""

from __future__ import annotations

from testscope.core.models import Status, TestAddress
from testscope.core.normalizer import build_result, describe_structure, find_leaf_suites, normalize
from tests.factories import make_raw_result, make_report, make_spec, make_suite, make_test


class TestFindLeafSuites:
    """Tests for leaf suite discovery."""

    def test_depth_first_input_order(self):
        """Suites owning specs should be collected depth-first."""
        # Given
        tree = [
            make_suite(
                "file-a",
                suites=[make_suite("A1", [make_spec()]), make_suite("A2", [make_spec()])],
            ),
            make_suite("B", [make_spec()]),
        ]

        # When
        leaves = find_leaf_suites(tree)

        # Then
        assert [leaf["title"] for leaf in leaves] == ["A1", "A2", "B"]

    def test_suite_with_specs_is_not_descended(self):
        """A suite owning specs should be a leaf; its nested suites are skipped."""
        tree = [make_suite("parent", [make_spec()], suites=[make_suite("child", [make_spec()])])]

        assert [leaf["title"] for leaf in find_leaf_suites(tree)] == ["parent"]

    def test_nested_suite_tests_do_not_count_under_a_leaf(self):
        """Tests in suites below a leaf should not reach the scenarios or totals."""
        # Given
        failing = make_spec("broken", [make_test(make_raw_result("failed"))])
        raw = make_report(
            make_suite("file", [make_spec("ok")], suites=[make_suite("describe", [failing])])
        )

        # When
        report = normalize(raw)

        # Then
        assert [s.title for s in report.scenarios] == ["file"]
        assert [entry.test.primary.status for entry in report.iter_tests()] == [Status.PASSED]

    def test_ignores_non_suites(self):
        """Specs, bare tests and garbage should not be collected."""
        assert find_leaf_suites([make_spec(), {"status": "passed"}, "text", None]) == []


class TestBuildResult:
    """Tests for raw result conversion."""

    def test_reads_status_and_duration(self):
        """Status and duration should be read from the result."""
        result = build_result(make_raw_result("failed", 250))

        assert result.status is Status.FAILED
        assert result.raw_status == "failed"
        assert result.duration_ms == 250

    def test_outcome_is_used_when_status_missing(self):
        """outcome should stand in for a missing status."""
        assert build_result({"outcome": "skipped"}).status is Status.SKIPPED

    def test_missing_fields_default(self):
        """A bare result should be unknown with zero duration."""
        result = build_result({"duration": "fast"})

        assert result.status is Status.UNKNOWN
        assert result.raw_status == "unknown"
        assert result.duration_ms == 0
        assert result.attachments == ()

    def test_attachments_are_parsed(self):
        """Attachment mappings should be parsed; other entries ignored."""
        raw = make_raw_result(attachments=[{"name": "trace", "contentType": "application/zip"}, "junk"])

        result = build_result(raw)

        assert [a.name for a in result.attachments] == ["trace"]
        assert result.attachments[0].content_type == "application/zip"


class TestNormalizeScenarios:
    """Tests for reports with leaf suites."""

    def test_builds_hierarchy(self, sample_report):
        """The sample report should normalize into three scenarios."""
        # When
        report = normalize(sample_report)

        # Then
        assert report.has_scenarios
        assert report.shape == "suites"
        assert [s.title for s in report.scenarios] == ["Login", "Logout", "checkout.spec.ts"]
        assert [s.index for s in report.scenarios] == [0, 1, 2]
        login = report.scenarios[0]
        assert [g.title for g in login.groups] == [
            "logs in with valid credentials",
            "rejects bad password",
        ]
        assert login.groups[1].tests[0].primary.status is Status.FAILED
        assert report.diagnostics == ()

    def test_test_titles_come_from_spec(self):
        """Tests inside a spec should take the spec's title."""
        raw = make_report(make_suite("S", [make_spec("logs in", [make_test(title="ignored")])]))

        report = normalize(raw)

        assert report.scenarios[0].groups[0].tests[0].title == "logs in"

    def test_addresses_are_deterministic(self):
        """Addresses should follow scenario, spec and test positions."""
        # Given
        raw = make_report(
            make_suite("S0", [make_spec("a"), make_spec("b", [make_test(), make_test()])]),
            make_suite("S1", [make_spec("c")]),
        )

        # When
        addresses = [entry.address for entry in normalize(raw).iter_tests()]

        # Then
        assert addresses == [
            TestAddress(0, 0, 0),
            TestAddress(0, 1, 0),
            TestAddress(0, 1, 1),
            TestAddress(1, 0, 0),
        ]
        assert next(normalize(raw).iter_tests()).address.key == "0-0-0"

    def test_retries_are_kept_but_primary_is_first(self):
        """All results should be kept; the first one is authoritative."""
        test = make_test(make_raw_result("failed"), make_raw_result("passed"))
        raw = make_report(make_suite("S", [make_spec("flaky", [test])]))

        normalized_test = normalize(raw).scenarios[0].groups[0].tests[0]

        assert len(normalized_test.results) == 2
        assert normalized_test.primary.status is Status.FAILED

    def test_garbage_tests_are_counted_with_diagnostics(self):
        """A non-mapping test entry should be kept as unknown and noted."""
        raw = make_report(make_suite("S", [make_spec("s", [make_test(), "junk"])]))

        report = normalize(raw)

        tests = report.scenarios[0].groups[0].tests
        assert len(tests) == 2
        assert tests[1].primary.status is Status.UNKNOWN
        assert len(report.diagnostics) == 1


class TestNormalizeFlat:
    """Tests for reports without leaf suites."""

    def test_root_specs_are_addressed_without_scenario(self):
        """Root specs should become groups addressed from the root."""
        # Given
        raw = {"testResults": [make_spec("first"), make_spec("second", [make_test(), make_test()])]}

        # When
        report = normalize(raw)

        # Then
        assert not report.has_scenarios
        assert report.shape == "testResults"
        assert [g.title for g in report.root_groups] == ["first", "second"]
        keys = [entry.address.key for entry in report.iter_tests()]
        assert keys == ["root-0-0", "root-1-0", "root-1-1"]

    def test_bare_tests_are_their_own_group(self):
        """A root node with result fields should be a single test."""
        raw = {"testResults": [{"title": "standalone", "status": "passed", "duration": 40}]}

        report = normalize(raw)

        test = report.root_groups[0].tests[0]
        assert test.title == "standalone"
        assert test.primary.status is Status.PASSED
        assert test.primary.duration_ms == 40

    def test_empty_report(self):
        """An empty object should give an empty report without diagnostics."""
        report = normalize({})

        assert report.scenarios == ()
        assert report.root_groups == ()
        assert not report.has_scenarios
        assert report.flattened() == []
        assert report.diagnostics == ()

    def test_unrecognized_report_is_noted(self):
        """A non-empty object without a root list should record a diagnostic."""
        report = normalize({"tests": "somewhere"})

        assert report.flattened() == []
        assert "nothing to normalize" in report.diagnostics[0]

    def test_garbage_input_does_not_raise(self):
        """Any input should normalize to something."""
        for raw in (None, [], "text", 42, {"suites": [None, 7, "x"]}):
            normalize(raw)


class TestDescribeStructure:
    """Tests for the structure summary."""

    def test_describes_sample_report(self, sample_report):
        """Should report the shape and the first keys along the way."""
        description = describe_structure(sample_report)

        assert description["shape"] == "suites"
        assert description["root_keys"] == ["config", "suites"]
        assert description["root_count"] == 2
        assert description["first_root_title"] == "auth.spec.ts"
        assert description["leaf_suite_count"] == 3
        assert description["first_spec_keys"] == ["tests", "title"]
        assert description["first_test_keys"] == ["results"]
        assert "attachments" in description["first_result_keys"]
        assert description["attachment_count"] == 1
        assert description["first_attachment_keys"] == ["contentType", "name", "path"]

    def test_describes_empty_report(self):
        """An empty report should be described without raising."""
        description = describe_structure({})

        assert description["shape"] == "empty"
        assert description["root_count"] == 0
        assert description["first_test_keys"] is None
        assert description["attachment_count"] == 0
