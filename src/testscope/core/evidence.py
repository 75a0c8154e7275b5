"""Evidence classification for result attachments.

Attachments are sorted into screenshot, trace and video buckets using three
signals per category: a name hint, a content-type hint, and the file
extension. An attachment lands in every bucket it matches; attachments that
match nothing are left out of all buckets.

Stored paths are usually absolute paths on the machine that ran the tests.
``resolve_path`` rewrites them so they can be opened relative to the
directory the report is written to.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from testscope.core.models import Attachment, EvidenceCategory, Outcome
from testscope.core.strategies import Resolution, Strategy, StrategyChain
from testscope.logging import get_logger
from testscope.utils.formatting import format_file_size

logger = get_logger(__name__)

DEFAULT_RESULTS_MARKER = "test-results"
CURRENT_DIR_PREFIX = "./"
_SEPARATORS = re.compile(r"[\\/]")


@dataclass(frozen=True)
class CategoryRule:
    """Signals that place an attachment into one evidence category."""

    category: EvidenceCategory
    name_hint: str
    content_type_hint: str
    extensions: frozenset[str]

    def matches(self, attachment: Attachment) -> bool:
        if self.name_hint in attachment.name.lower():
            return True
        if self.content_type_hint in attachment.content_type.lower():
            return True
        return any(_extension(candidate) in self.extensions for candidate in _file_names(attachment))


# Tried in this order; an attachment may match more than one rule.
CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        category=EvidenceCategory.SCREENSHOT,
        name_hint="screenshot",
        content_type_hint="image",
        extensions=frozenset({"png", "jpg", "jpeg", "gif", "bmp", "webp"}),
    ),
    CategoryRule(
        category=EvidenceCategory.TRACE,
        name_hint="trace",
        content_type_hint="zip",
        extensions=frozenset({"zip", "trace"}),
    ),
    CategoryRule(
        category=EvidenceCategory.VIDEO,
        name_hint="video",
        content_type_hint="video",
        extensions=frozenset({"mp4", "webm", "avi", "mov"}),
    ),
)

_RULES_BY_CATEGORY = {rule.category: rule for rule in CATEGORY_RULES}


def _basename(path: str) -> str:
    return _SEPARATORS.split(path)[-1]


def _extension(file_name: str) -> str:
    _, dot, ext = file_name.rpartition(".")
    return ext.lower() if dot else ""


def _file_names(attachment: Attachment) -> list[str]:
    names = [attachment.name]
    if attachment.path:
        names.append(_basename(attachment.path))
    return names


def categories_for(attachment: Attachment) -> list[EvidenceCategory]:
    """Return every category the attachment matches, in rule order."""
    return [rule.category for rule in CATEGORY_RULES if rule.matches(attachment)]


def count_matching(attachments: Iterable[Attachment], category: EvidenceCategory) -> int:
    """Count attachments that fall into ``category``."""
    rule = _RULES_BY_CATEGORY[category]
    return sum(1 for attachment in attachments if rule.matches(attachment))


# =============================================================================
# PATH RESOLUTION
# =============================================================================


def _already_relative(path: str, output_dir: str, marker: str) -> str | None:
    if path.startswith(CURRENT_DIR_PREFIX) or not _SEPARATORS.search(path):
        return path
    return None


def _relative_to_output(path: str, output_dir: str, marker: str) -> str | None:
    # May raise ValueError (e.g. paths on different drives); handled by the caller.
    relative = os.path.relpath(os.path.abspath(path), os.path.abspath(output_dir))
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        return None
    return relative.replace(os.sep, "/")


def _from_results_marker(path: str, output_dir: str, marker: str) -> str | None:
    if not marker:
        return None
    index = path.rfind(marker)
    if index == -1:
        return None
    return path[index:]


def _bare_filename(path: str, output_dir: str, marker: str) -> str:
    return _basename(path)


PATH_STRATEGIES: StrategyChain[str] = StrategyChain(
    [
        Strategy("already_relative", _already_relative),
        Strategy("relative_to_output", _relative_to_output),
        Strategy("results_marker", _from_results_marker),
    ],
    fallback=Strategy("bare_filename", _bare_filename),
)


def resolve_path(
    path: str | None,
    output_dir: str | os.PathLike[str],
    results_marker: str = DEFAULT_RESULTS_MARKER,
) -> Outcome[Resolution[str]]:
    """Rewrite an attachment path so it resolves from ``output_dir``.

    Never raises: if path arithmetic fails the bare file name is used and the
    failure is reported as a diagnostic.
    """
    if not path:
        return Outcome(Resolution(value="", strategy="empty"))

    try:
        return Outcome(PATH_STRATEGIES.resolve(path, os.fspath(output_dir), results_marker))
    except (ValueError, OSError) as e:
        logger.warning("attachment_path_unresolved", path=path, error=str(e))
        return Outcome(
            Resolution(value=_basename(path), strategy="bare_filename"),
            (f"Could not resolve relative path for {path}: {e}",),
        )


def fix_path(
    path: str | None,
    output_dir: str | os.PathLike[str],
    results_marker: str = DEFAULT_RESULTS_MARKER,
) -> str:
    """Shorthand for ``resolve_path(...).value.value``."""
    return resolve_path(path, output_dir, results_marker).value.value


# =============================================================================
# CLASSIFICATION
# =============================================================================


@dataclass(frozen=True)
class EvidenceItem:
    """An attachment placed in one evidence bucket, with its resolved path."""

    attachment: Attachment
    category: EvidenceCategory
    resolved_path: str
    resolved_by: str

    @property
    def source(self) -> str:
        """What a renderer should link to: resolved path, raw path, or body."""
        return self.resolved_path or self.attachment.path or self.attachment.body or ""

    @property
    def size(self) -> int:
        if self.attachment.body is not None:
            return len(self.attachment.body)
        return self.attachment.size or 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.attachment.name,
            "category": self.category.value,
            "content_type": self.attachment.content_type,
            "path": self.attachment.path,
            "resolved_path": self.resolved_path,
            "resolved_by": self.resolved_by,
            "source": self.source,
            "size": self.size,
            "size_display": format_file_size(self.size),
        }


@dataclass(frozen=True)
class Evidence:
    """Screenshot, trace and video buckets for one result."""

    screenshots: tuple[EvidenceItem, ...] = ()
    traces: tuple[EvidenceItem, ...] = ()
    videos: tuple[EvidenceItem, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.screenshots or self.traces or self.videos)

    def bucket(self, category: EvidenceCategory) -> tuple[EvidenceItem, ...]:
        return {
            EvidenceCategory.SCREENSHOT: self.screenshots,
            EvidenceCategory.TRACE: self.traces,
            EvidenceCategory.VIDEO: self.videos,
        }[category]

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "screenshots": [item.to_dict() for item in self.screenshots],
            "traces": [item.to_dict() for item in self.traces],
            "videos": [item.to_dict() for item in self.videos],
        }


@dataclass
class _Buckets:
    items: dict[EvidenceCategory, list[EvidenceItem]] = field(
        default_factory=lambda: {rule.category: [] for rule in CATEGORY_RULES}
    )
    diagnostics: list[str] = field(default_factory=list)


def classify(
    attachments: Iterable[Attachment],
    output_dir: str | os.PathLike[str],
    results_marker: str = DEFAULT_RESULTS_MARKER,
) -> Outcome[Evidence]:
    """Bucket a result's attachments into screenshots, traces and videos.

    Args:
        attachments: Attachments of one result, in report order.
        output_dir: Directory the rendered report will live in.
        results_marker: Path segment to keep when a path points outside
            ``output_dir``.

    Returns:
        Outcome wrapping the Evidence buckets; diagnostics list any paths
        that could only be guessed.
    """
    buckets = _Buckets()

    for attachment in attachments:
        categories = categories_for(attachment)
        if not categories:
            continue
        resolution = resolve_path(attachment.path, output_dir, results_marker)
        buckets.diagnostics.extend(resolution.diagnostics)
        for category in categories:
            buckets.items[category].append(
                EvidenceItem(
                    attachment=attachment,
                    category=category,
                    resolved_path=resolution.value.value,
                    resolved_by=resolution.value.strategy,
                )
            )

    evidence = Evidence(
        screenshots=tuple(buckets.items[EvidenceCategory.SCREENSHOT]),
        traces=tuple(buckets.items[EvidenceCategory.TRACE]),
        videos=tuple(buckets.items[EvidenceCategory.VIDEO]),
    )
    return Outcome(evidence, tuple(buckets.diagnostics))
