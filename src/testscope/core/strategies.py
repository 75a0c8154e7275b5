"""Ordered fallback chains.

Title resolution, step extraction and path fixing are all "try this, then
that" lookups. Each is expressed as a list of named strategies; the first one
that returns something other than None wins.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Strategy(Generic[T]):
    """A named attempt at producing a value."""

    name: str
    attempt: Callable[..., T | None]


@dataclass(frozen=True)
class Resolution(Generic[T]):
    """The winning value and the name of the strategy that produced it."""

    value: T
    strategy: str


class StrategyChain(Generic[T]):
    """Tries strategies in order; the first non-None value wins.

    Args:
        strategies: Strategies in priority order.
        fallback: Named strategy that must always produce a value.
    """

    def __init__(self, strategies: Sequence[Strategy[T]], fallback: Strategy[T]) -> None:
        self._strategies = tuple(strategies)
        self._fallback = fallback

    @property
    def names(self) -> list[str]:
        """Strategy names in the order they are tried."""
        return [s.name for s in self._strategies] + [self._fallback.name]

    def resolve(self, *args: Any) -> Resolution[T]:
        for strategy in self._strategies:
            value = strategy.attempt(*args)
            if value is not None:
                return Resolution(value=value, strategy=strategy.name)

        value = self._fallback.attempt(*args)
        if value is None:
            raise ValueError(f"Fallback strategy {self._fallback.name!r} returned None")
        return Resolution(value=value, strategy=self._fallback.name)
