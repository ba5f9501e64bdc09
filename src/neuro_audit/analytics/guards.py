"""Ordered guard lists.

Every classifier in the engine (discipline bands, heatmap colours,
pre-market readiness) is a list of guards evaluated top to bottom.
The first guard whose predicate holds wins; later guards are never
consulted.  Conditions overlap, so list order is part of
the behaviour.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar

S = TypeVar("S")
R = TypeVar("R")


@dataclass(frozen=True)
class Guard(Generic[S, R]):
    """A named predicate and the result it yields when it holds."""

    name: str
    when: Callable[[S], bool]
    then: R


def first_match(guards: Sequence[Guard[S, R]], subject: S, default: R) -> R:
    """Return the result of the first guard that holds, else *default*."""
    for guard in guards:
        if guard.when(subject):
            return guard.then
    return default


def first_matching_guard(
    guards: Sequence[Guard[S, R]], subject: S
) -> Guard[S, R] | None:
    for guard in guards:
        if guard.when(subject):
            return guard
    return None
