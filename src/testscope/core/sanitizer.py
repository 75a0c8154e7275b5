"""Text sanitization for console output and error messages.

Runner output is full of terminal escape sequences (colors, cursor movement)
that are noise once rendered outside a terminal. Everything shown to a reader
passes through ``sanitize`` first.
"""

from __future__ import annotations

import json
import re
from typing import Any

from testscope.core.models import Outcome
from testscope.logging import get_logger

logger = get_logger(__name__)

# CSI sequences (colors, cursor control), OSC sequences (titles, hyperlinks)
# and the remaining two-character escapes.
ANSI_PATTERN = re.compile(
    r"""
    \x1b\[[0-?]*[ -/]*[@-~]              # CSI ... final byte
    | \x1b\][^\x07\x1b]*(?:\x07|\x1b\\)  # OSC ... BEL or ST
    | \x1b[@-Z\\-_]                      # two-character escapes
    """,
    re.VERBOSE,
)

CONSOLE_ATTACHMENT_HINTS = ("console", "log")


def strip_ansi(text: Any) -> str:
    """Remove terminal escape sequences and surrounding whitespace.

    Non-string input yields an empty string.
    """
    if not text or not isinstance(text, str):
        return ""
    return ANSI_PATTERN.sub("", text).strip()


def _plain_text(value: Any) -> str:
    try:
        return str(value)
    except RecursionError:
        return type(value).__name__


def stringify(value: Any) -> Outcome[str]:
    """Convert any value to display text, recording how it was done.

    - None becomes ``""``.
    - Mappings with a truthy ``text`` field (console log entries) use that field.
    - Strings are used directly.
    - Anything else is serialized as indented JSON; values JSON cannot
      encode fall back to ``str(value)`` with a diagnostic. Values nested too
      deeply to serialize are shown as their type name.
    """
    if value is None:
        return Outcome("")

    if isinstance(value, dict) and value.get("text"):
        text = value["text"]
        return Outcome(strip_ansi(text if isinstance(text, str) else _plain_text(text)))

    if isinstance(value, str):
        return Outcome(strip_ansi(value))

    try:
        return Outcome(strip_ansi(json.dumps(value, indent=2)))
    except RecursionError:
        type_name = type(value).__name__
        logger.debug("stringify_fallback", value_type=type_name, error="too deeply nested")
        return Outcome(type_name, (f"Could not serialize {type_name}: too deeply nested",))
    except (TypeError, ValueError) as e:
        logger.debug("stringify_fallback", value_type=type(value).__name__, error=str(e))
        return Outcome(
            strip_ansi(_plain_text(value)),
            (f"Could not serialize {type(value).__name__} as JSON: {e}",),
        )


def sanitize(value: Any) -> str:
    """Canonicalize any value into a safe display string."""
    return stringify(value).value


def _join_entries(value: Any) -> Outcome[str]:
    if isinstance(value, list):
        notes: list[str] = []
        lines = []
        for item in value:
            outcome = stringify(item)
            notes.extend(outcome.diagnostics)
            if outcome.value.strip():
                lines.append(outcome.value)
        return Outcome("\n".join(lines), tuple(notes))
    return stringify(value)


def extract_console_output(raw_result: Any) -> Outcome[dict[str, str]]:
    """Collect sanitized stdout/stderr text for one result.

    ``stdout``/``stderr`` may be a string or a list of strings or log-entry
    objects. String bodies of attachments named like console logs are
    appended to stdout.

    Returns:
        Outcome wrapping ``{"stdout": ..., "stderr": ...}``.
    """
    if not isinstance(raw_result, dict):
        return Outcome({"stdout": "", "stderr": ""})

    stdout = _join_entries(raw_result["stdout"]) if raw_result.get("stdout") else Outcome("")
    stderr = _join_entries(raw_result["stderr"]) if raw_result.get("stderr") else Outcome("")

    stdout_text = stdout.value
    attachments = raw_result.get("attachments")
    if isinstance(attachments, list):
        for attachment in attachments:
            if not isinstance(attachment, dict):
                continue
            name = attachment.get("name")
            body = attachment.get("body")
            if not isinstance(name, str) or not isinstance(body, str) or not body:
                continue
            if any(hint in name.lower() for hint in CONSOLE_ATTACHMENT_HINTS):
                stdout_text += "\n" + strip_ansi(body)

    return Outcome(
        {"stdout": stdout_text.strip(), "stderr": stderr.value.strip()},
        stdout.diagnostics + stderr.diagnostics,
    )


def extract_error_text(raw_result: Any) -> str:
    """Return the sanitized error message of a result, or ``""``.

    Looks at ``error.message``, then ``error`` as plain text, then the
    messages of an ``errors`` list joined with a separator.
    """
    if not isinstance(raw_result, dict):
        return ""

    error = raw_result.get("error")
    if isinstance(error, dict) and error.get("message"):
        return sanitize(error["message"])
    if error:
        return sanitize(error)

    errors = raw_result.get("errors")
    if isinstance(errors, list):
        messages = []
        for entry in errors:
            if isinstance(entry, dict):
                message = sanitize(entry.get("message"))
            else:
                message = sanitize(entry)
            if message:
                messages.append(message)
        return "\n---\n".join(messages)

    return ""
