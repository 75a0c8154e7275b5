"""Step extraction for the test detail view.

Steps come from, in order of preference:

1. the result's own ``steps`` list;
2. an attachment named ``steps`` (or carrying a JSON content type) whose
   body parses to a list;
3. summary lines synthesized from the result's status, errors, duration and
   evidence.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from testscope.core.evidence import count_matching
from testscope.core.models import Attachment, EvidenceCategory, Outcome, Status
from testscope.core.sanitizer import sanitize
from testscope.logging import get_logger
from testscope.utils.formatting import format_duration

logger = get_logger(__name__)

STEPS_ATTACHMENT_NAME = "steps"
JSON_CONTENT_TYPE = "application/json"

NO_ACTIONS_MESSAGE = "No test actions recorded"
NOT_AVAILABLE_MESSAGE = (
    "Detailed step information not available in JSON report. "
    "Check trace files for detailed execution steps."
)


class StepKind(Enum):
    """How a step entry should be presented."""

    ACTION = "action"
    INFO = "info"
    ERROR = "error"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class Step:
    """One renderable entry in a test's step list."""

    title: str
    kind: StepKind = StepKind.ACTION
    duration: str | None = None
    error: str | None = None
    location: str | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Serialize, leaving out fields that are not set."""
        data = {"title": self.title, "kind": self.kind.value}
        for key in ("duration", "error", "location", "message"):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data


@dataclass(frozen=True)
class StepList:
    """Extracted steps and where they came from."""

    steps: tuple[Step, ...]
    source: str

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "steps": [step.to_dict() for step in self.steps]}


def _step_title(step: dict[str, Any], index: int) -> str:
    for key in ("title", "category", "name"):
        value = step.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return f"Step {index + 1}"


def _step_error(step: dict[str, Any]) -> str | None:
    error = step.get("error")
    if not error:
        return None
    if isinstance(error, dict) and error.get("message"):
        error = error["message"]
    return sanitize(error) or None


def _step_location(step: dict[str, Any]) -> str | None:
    location = step.get("location")
    if not isinstance(location, dict):
        return None
    file = location.get("file") or ""
    line = location.get("line")
    line = "" if line is None else line
    return f"{file}:{line}"


def render_step(step: Any, index: int) -> Step:
    """Turn one raw step entry into a Step."""
    if isinstance(step, str):
        return Step(title=step.strip() or f"Step {index + 1}")
    if not isinstance(step, dict):
        return Step(title=f"Step {index + 1}")

    duration = step.get("duration")
    has_duration = isinstance(duration, int | float) and not isinstance(duration, bool) and duration
    error = _step_error(step)
    return Step(
        title=_step_title(step, index),
        kind=StepKind.ERROR if error else StepKind.ACTION,
        duration=format_duration(duration) if has_duration else None,
        error=error,
        location=_step_location(step),
    )


def _render(raw_steps: list[Any]) -> tuple[Step, ...]:
    return tuple(render_step(step, index) for index, step in enumerate(raw_steps))


def _from_result_steps(raw_result: dict[str, Any]) -> list[Any] | None:
    steps = raw_result.get("steps")
    if isinstance(steps, list) and steps:
        return steps
    return None


def _is_steps_attachment(attachment: Any) -> bool:
    if not isinstance(attachment, dict):
        return False
    return (
        attachment.get("name") == STEPS_ATTACHMENT_NAME
        or attachment.get("contentType") == JSON_CONTENT_TYPE
    )


def _from_steps_attachment(raw_result: dict[str, Any]) -> Outcome[list[Any] | None]:
    attachments = raw_result.get("attachments")
    if not isinstance(attachments, list):
        return Outcome(None)

    candidate = next((a for a in attachments if _is_steps_attachment(a)), None)
    if candidate is None or not candidate.get("body"):
        return Outcome(None)

    body = candidate["body"]
    try:
        parsed = json.loads(body) if isinstance(body, str | bytes) else body
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        logger.debug("steps_attachment_unparseable", attachment=candidate.get("name"), error=str(e))
        return Outcome(None, (f"Could not parse steps attachment {candidate.get('name')!r}: {e}",))

    if not isinstance(parsed, list):
        return Outcome(None, (f"Steps attachment {candidate.get('name')!r} is not a list",))
    return Outcome(parsed)


def _synthesized(raw_result: dict[str, Any], attachments: tuple[Attachment, ...]) -> tuple[Step, ...]:
    raw_status = raw_result.get("status") or raw_result.get("outcome")
    status = Status.from_raw(raw_status)
    errors = raw_result.get("errors")
    error_count = len(errors) if isinstance(errors, list) else 0
    duration = raw_result.get("duration")
    if isinstance(duration, bool) or not isinstance(duration, int | float):
        duration = 0
    duration_text = format_duration(duration) if duration else "N/A"

    trace_count = count_matching(attachments, EvidenceCategory.TRACE)
    screenshot_count = count_matching(attachments, EvidenceCategory.SCREENSHOT)
    has_evidence = trace_count > 0 or screenshot_count > 0

    if not raw_status and not error_count and not duration and not has_evidence:
        return (Step(title="Test Execution", kind=StepKind.PLACEHOLDER, message=NOT_AVAILABLE_MESSAGE),)

    steps = []
    if error_count:
        steps.append(
            Step(
                title="Test Execution",
                kind=StepKind.ERROR,
                duration=duration_text,
                message=f"Test failed with {error_count} error(s)",
            )
        )
    elif status is Status.PASSED:
        steps.append(
            Step(
                title="Test Execution",
                kind=StepKind.INFO,
                duration=duration_text,
                message="Test completed successfully",
            )
        )
    else:
        steps.append(
            Step(
                title="Test Execution",
                kind=StepKind.INFO,
                duration=duration_text,
                message=f"Test completed with status: {raw_status or Status.UNKNOWN.value}",
            )
        )

    if has_evidence:
        parts = []
        if trace_count:
            parts.append(f"{trace_count} trace file(s)")
        if screenshot_count:
            parts.append(f"{screenshot_count} screenshot(s)")
        steps.append(
            Step(
                title="Evidence Collected",
                kind=StepKind.INFO,
                message=f"{' '.join(parts)} available below",
            )
        )
    return tuple(steps)


def extract_steps(raw_result: Any, attachments: tuple[Attachment, ...] = ()) -> Outcome[StepList]:
    """Produce the ordered step list for one result.

    Args:
        raw_result: The raw result mapping.
        attachments: Parsed attachments of the same result, used to count
            evidence for the synthesized summary.

    Returns:
        Outcome wrapping a StepList. The list is never empty; diagnostics
        note a steps attachment that could not be parsed.
    """
    if not isinstance(raw_result, dict):
        raw_result = {}

    steps = _from_result_steps(raw_result)
    if steps is not None:
        return Outcome(StepList(_render(steps), source="result"))

    from_attachment = _from_steps_attachment(raw_result)
    if from_attachment.value is not None:
        if not from_attachment.value:
            placeholder = Step(title="Test Actions", kind=StepKind.PLACEHOLDER, message=NO_ACTIONS_MESSAGE)
            return Outcome(StepList((placeholder,), source="attachment"))
        return Outcome(StepList(_render(from_attachment.value), source="attachment"))

    return Outcome(
        StepList(_synthesized(raw_result, attachments), source="summary"),
        from_attachment.diagnostics,
    )
