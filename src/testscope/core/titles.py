"""Title resolution for tests, test groups and scenarios.

Runners disagree on where a readable name lives. Each resolver is a chain of
named strategies; the synthesized ``<Label> N`` fallback always succeeds.
"""

from __future__ import annotations

from typing import Any

from testscope.core.strategies import Resolution, Strategy, StrategyChain

TITLE_SEPARATOR = " › "


def _clean(value: Any) -> str | None:
    """Return a trimmed, non-empty title from a string or list of strings."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        parts = [part.strip() for part in value if isinstance(part, str) and part.strip()]
        return TITLE_SEPARATOR.join(parts) or None
    return None


def _spec_context(node: Any, index: int, spec: Any) -> str | None:
    if isinstance(spec, dict) and isinstance(spec.get("title"), str):
        return spec["title"].strip() or None
    return None


def _field(key: str, allow_list: bool = True):
    def attempt(node: Any, index: int, spec: Any = None) -> str | None:
        if not isinstance(node, dict):
            return None
        value = node.get(key)
        if not allow_list and not isinstance(value, str):
            return None
        return _clean(value)

    return attempt


def _synthesized(label: str):
    def attempt(node: Any, index: int, spec: Any = None) -> str:
        return f"{label} {index + 1}"

    return attempt


TEST_TITLE_STRATEGIES: StrategyChain[str] = StrategyChain(
    [
        Strategy("spec_title", _spec_context),
        Strategy("title", _field("title")),
        Strategy("full_title", _field("fullTitle", allow_list=False)),
        Strategy("title_path", _field("titlePath")),
    ],
    fallback=Strategy("position", _synthesized("Test Case")),
)

GROUP_TITLE_STRATEGIES: StrategyChain[str] = StrategyChain(
    [
        Strategy("title", _field("title")),
        Strategy("full_title", _field("fullTitle", allow_list=False)),
        Strategy("title_path", _field("titlePath")),
    ],
    fallback=Strategy("position", _synthesized("Test Group")),
)

SCENARIO_TITLE_STRATEGIES: StrategyChain[str] = StrategyChain(
    [
        Strategy("title", _field("title", allow_list=False)),
        Strategy("name", _field("name", allow_list=False)),
    ],
    fallback=Strategy("position", _synthesized("Test Scenario")),
)


def resolve_test_title(test: Any, index: int, spec: Any = None) -> Resolution[str]:
    """Resolve a test's display title.

    Precedence: the spec context's title, the test's ``title`` (string or
    list joined with " › "), ``fullTitle``, ``titlePath``, then
    ``Test Case <index + 1>``.
    """
    return TEST_TITLE_STRATEGIES.resolve(test, index, spec)


def resolve_group_title(spec: Any, index: int) -> Resolution[str]:
    """Resolve a test group (spec) title, falling back to ``Test Group N``."""
    return GROUP_TITLE_STRATEGIES.resolve(spec, index)


def resolve_scenario_title(suite: Any, index: int) -> Resolution[str]:
    """Resolve a scenario title from ``title``, then ``name``, then ``Test Scenario N``."""
    return SCENARIO_TITLE_STRATEGIES.resolve(suite, index)
