"""Raw report shapes.

Raw reports are duck-typed JSON. This module is the only place that sniffs
fields to decide what a mapping is; everything after normalization works on
the canonical model.

Two levels are recognized:

- report shapes: where the root node list lives (``suites`` or
  ``testResults``);
- node shapes: whether a node is a suite (owns specs or nested suites), a
  spec (owns tests) or a bare test.

Shapes are tried in registration order and the first match wins.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Generic, TypeVar


class NodeKind(Enum):
    """Kind of node found in a report's node tree."""

    SUITE = "suite"
    SPEC = "spec"
    TEST = "test"


def _list_field(node: Any, key: str) -> list[Any]:
    """Return ``node[key]`` if it is a list, else an empty list."""
    if isinstance(node, dict):
        value = node.get(key)
        if isinstance(value, list):
            return value
    return []


# =============================================================================
# REPORT SHAPES
# =============================================================================


class ReportShape(ABC):
    """A top-level layout of a raw report."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier of the shape."""

    @abstractmethod
    def can_handle(self, raw: Any) -> bool:
        """Check if the raw report uses this layout."""

    @abstractmethod
    def root_nodes(self, raw: Any) -> list[Any]:
        """Return the root node list of the report."""


class SuitesReport(ReportShape):
    """Playwright-style report with a ``suites`` list at the root."""

    @property
    def name(self) -> str:
        return "suites"

    def can_handle(self, raw: Any) -> bool:
        return isinstance(raw, dict) and isinstance(raw.get("suites"), list)

    def root_nodes(self, raw: Any) -> list[Any]:
        return _list_field(raw, "suites")


class TestResultsReport(ReportShape):
    """Report with a ``testResults`` list at the root."""

    __test__ = False

    @property
    def name(self) -> str:
        return "testResults"

    def can_handle(self, raw: Any) -> bool:
        return isinstance(raw, dict) and isinstance(raw.get("testResults"), list)

    def root_nodes(self, raw: Any) -> list[Any]:
        return _list_field(raw, "testResults")


class EmptyReport(ReportShape):
    """Anything else: no recognizable root list."""

    @property
    def name(self) -> str:
        return "empty"

    def can_handle(self, raw: Any) -> bool:
        return True

    def root_nodes(self, raw: Any) -> list[Any]:
        return []


# =============================================================================
# NODE SHAPES
# =============================================================================


class NodeShape(ABC):
    """A kind of node inside the report tree."""

    @property
    @abstractmethod
    def kind(self) -> NodeKind:
        """The node kind this shape recognizes."""

    @abstractmethod
    def can_handle(self, node: Any) -> bool:
        """Check if the node has this shape."""


class SuiteNode(NodeShape):
    """A suite: owns at least one spec or nested suite."""

    @property
    def kind(self) -> NodeKind:
        return NodeKind.SUITE

    def can_handle(self, node: Any) -> bool:
        return bool(_list_field(node, "specs") or _list_field(node, "suites"))


class SpecNode(NodeShape):
    """A spec: owns a ``tests`` list (possibly empty)."""

    @property
    def kind(self) -> NodeKind:
        return NodeKind.SPEC

    def can_handle(self, node: Any) -> bool:
        return isinstance(node, dict) and isinstance(node.get("tests"), list)


class BareTestNode(NodeShape):
    """A test with no grouping around it; result fields may sit on the node."""

    @property
    def kind(self) -> NodeKind:
        return NodeKind.TEST

    def can_handle(self, node: Any) -> bool:
        return isinstance(node, dict)


S = TypeVar("S", ReportShape, NodeShape)


class ShapeRegistry(Generic[S]):
    """Ordered list of shapes; ``identify`` returns the first that matches."""

    def __init__(self) -> None:
        self._shapes: list[S] = []

    @property
    def shapes(self) -> list[S]:
        """Return the list of registered shapes."""
        return self._shapes.copy()

    def register(self, shape: S) -> None:
        self._shapes.append(shape)

    def identify(self, value: Any) -> S | None:
        for shape in self._shapes:
            if shape.can_handle(value):
                return shape
        return None


def get_report_registry() -> ShapeRegistry[ReportShape]:
    """Registry of report shapes in priority order."""
    registry: ShapeRegistry[ReportShape] = ShapeRegistry()
    registry.register(SuitesReport())
    registry.register(TestResultsReport())
    registry.register(EmptyReport())
    return registry


def get_node_registry() -> ShapeRegistry[NodeShape]:
    """Registry of node shapes in priority order."""
    registry: ShapeRegistry[NodeShape] = ShapeRegistry()
    registry.register(SuiteNode())
    registry.register(SpecNode())
    registry.register(BareTestNode())
    return registry


_REPORTS = get_report_registry()
_NODES = get_node_registry()


def detect_report_shape(raw: Any) -> ReportShape:
    """Return the shape of a raw report; EmptyReport always matches last."""
    return _REPORTS.identify(raw) or EmptyReport()


def detect_node_kind(node: Any) -> NodeKind | None:
    """Return the kind of a node, or None if it is not a mapping."""
    shape = _NODES.identify(node)
    return shape.kind if shape else None


def specs_of(suite: Any) -> list[Any]:
    return _list_field(suite, "specs")


def child_suites_of(suite: Any) -> list[Any]:
    return _list_field(suite, "suites")


def tests_of(node: Any) -> list[Any]:
    """Tests of a spec-or-test node: its ``tests`` list, or the node itself."""
    if isinstance(node, dict) and isinstance(node.get("tests"), list):
        return node["tests"]
    return [node]


def primary_result_of(test: Any) -> dict[str, Any]:
    """Pick the authoritative result mapping of a test node.

    ``results[0]`` if present, else a singular ``result`` mapping, else the
    test node itself (runners that flatten result fields onto the test).
    """
    results = _list_field(test, "results")
    if results and isinstance(results[0], dict):
        return results[0]
    if isinstance(test, dict):
        result = test.get("result")
        if isinstance(result, dict):
            return result
        return test
    return {}


def all_results_of(test: Any) -> list[dict[str, Any]]:
    """All result mappings of a test node, primary first."""
    primary = primary_result_of(test)
    results = _list_field(test, "results")
    if results and results[0] is primary:
        return [primary, *(r for r in results[1:] if isinstance(r, dict))]
    return [primary]
