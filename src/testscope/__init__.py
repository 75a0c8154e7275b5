"""testscope - navigable views of test runner JSON reports."""

__version__ = "0.4.0"

from testscope.core.aggregator import Counts, ScenarioTally, aggregate_flattened, aggregate_report
from testscope.core.evidence import Evidence, EvidenceItem, classify, fix_path
from testscope.core.models import (
    Attachment,
    EvidenceCategory,
    FlattenedTestCase,
    Outcome,
    Result,
    Scenario,
    Status,
    Test,
    TestAddress,
    TestGroup,
)
from testscope.core.normalizer import NormalizedReport, normalize
from testscope.core.sanitizer import sanitize, strip_ansi
from testscope.core.steps import Step, StepList, extract_steps
from testscope.core.view_model import TestDetail, ViewModel, build_view_model

__all__ = [
    "Attachment",
    "Counts",
    "Evidence",
    "EvidenceCategory",
    "EvidenceItem",
    "FlattenedTestCase",
    "NormalizedReport",
    "Outcome",
    "Result",
    "Scenario",
    "ScenarioTally",
    "Status",
    "Step",
    "StepList",
    "Test",
    "TestAddress",
    "TestDetail",
    "TestGroup",
    "ViewModel",
    "aggregate_flattened",
    "aggregate_report",
    "build_view_model",
    "classify",
    "extract_steps",
    "fix_path",
    "normalize",
    "sanitize",
    "strip_ansi",
]
