"""Canonical report model.

Every raw report shape is reduced to the same hierarchy before anything else
looks at it:

    Scenario (leaf suite) -> TestGroup (spec) -> Test -> Result

Instances are built once per run by the normalizer and are not mutated
afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Status(Enum):
    """Canonical status of a single execution attempt."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, value: Any) -> Status:
        """Map a runner's status string to a canonical Status.

        Matching is exact: ``"PASSED"`` is not a passed status.
        """
        if not isinstance(value, str):
            return cls.UNKNOWN
        return _STATUS_ALIASES.get(value, cls.UNKNOWN)


_STATUS_ALIASES = {
    "passed": Status.PASSED,
    "pass": Status.PASSED,
    "failed": Status.FAILED,
    "fail": Status.FAILED,
    "skipped": Status.SKIPPED,
    "skip": Status.SKIPPED,
}


class EvidenceCategory(Enum):
    """Bucket an attachment can be classified into."""

    SCREENSHOT = "screenshot"
    TRACE = "trace"
    VIDEO = "video"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """A computed value plus any notes about how it was degraded.

    Fallback code returns an Outcome instead of swallowing errors silently,
    so callers (and tests) can see which path produced the value.
    """

    value: T
    diagnostics: tuple[str, ...] = ()

    @property
    def degraded(self) -> bool:
        """True if a fallback had to be used."""
        return bool(self.diagnostics)


@dataclass(frozen=True)
class TestAddress:
    """(scenario, spec, test) triplet used for deep links.

    ``scenario_index`` is None when the report has no leaf suites and tests
    are addressed directly from the root list.
    """

    __test__ = False

    scenario_index: int | None
    spec_index: int
    test_index: int

    @property
    def key(self) -> str:
        """Stable string form, e.g. ``0-1-0`` or ``root-3-0``."""
        scenario = "root" if self.scenario_index is None else str(self.scenario_index)
        return f"{scenario}-{self.spec_index}-{self.test_index}"

    def to_dict(self) -> dict[str, int | None]:
        return {
            "scenario_index": self.scenario_index,
            "spec_index": self.spec_index,
            "test_index": self.test_index,
        }


@dataclass(frozen=True)
class Attachment:
    """One file-like artifact attached to a result."""

    name: str
    content_type: str = ""
    path: str | None = None
    body: str | None = None
    size: int | None = None

    @classmethod
    def from_raw(cls, data: Any) -> Attachment | None:
        """Build from a raw attachment dict, or None for non-dict entries."""
        if not isinstance(data, dict):
            return None
        name = data.get("name")
        content_type = data.get("contentType")
        path = data.get("path")
        body = data.get("body")
        size = data.get("size")
        return cls(
            name=name if isinstance(name, str) else "",
            content_type=content_type if isinstance(content_type, str) else "",
            path=path if isinstance(path, str) and path else None,
            body=body if isinstance(body, str) else None,
            size=size if isinstance(size, int) and not isinstance(size, bool) else None,
        )


@dataclass(frozen=True)
class Result:
    """Outcome of one execution attempt.

    ``raw`` keeps the original result mapping; steps, console output and
    errors are interpreted lazily from it by the extractor modules.
    """

    status: Status
    raw_status: str
    duration_ms: int = 0
    attachments: tuple[Attachment, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Test:
    """One executed test case; the first result is authoritative."""

    __test__ = False

    title: str
    results: tuple[Result, ...]

    @property
    def primary(self) -> Result:
        return self.results[0]


@dataclass(frozen=True)
class TestGroup:
    """A spec: a named unit holding one or more tests."""

    __test__ = False

    title: str
    tests: tuple[Test, ...] = ()


@dataclass(frozen=True)
class Scenario:
    """A leaf suite, addressed by its depth-first position."""

    index: int
    title: str
    groups: tuple[TestGroup, ...] = ()


@dataclass(frozen=True)
class FlattenedTestCase:
    """Denormalized per-test record used for listing and global totals."""

    address: TestAddress
    title: str
    status: Status
    duration_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.address.to_dict(),
            "key": self.address.key,
            "title": self.title,
            "status": self.status.value,
            "duration_ms": self.duration_ms,
        }
