"""Dependency-tracked memoization.

A :class:`MemoCell` holds one derived value and the dependencies it was
computed from.  Reading it with the same dependencies returns the cached
value; any changed dependency triggers exactly one recomputation.

Dependencies compare by value when they are immutable scalars (names,
dates, numbers, enums) and by identity otherwise.  Record collections
and loss breakdowns are replaced, never mutated, so identity is a
faithful version stamp for them.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from enum import Enum
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_VALUE_TYPES = (str, int, float, bool, bytes, date, datetime, time, Enum, type(None))

_UNSET = object()


def same_dependency(a: object, b: object) -> bool:
    if a is b:
        return True
    if isinstance(a, _VALUE_TYPES) and type(a) is type(b):
        return a == b
    return False


class MemoCell(Generic[T]):
    """Single-slot memo for one derived value.

    Parameters
    ----------
    name : str
        Used in debug logs.
    compute : Callable[..., T]
        Called with the dependencies as positional arguments.
    """

    def __init__(self, name: str, compute: Callable[..., T]) -> None:
        self.name = name
        self._compute = compute
        self._deps: tuple = ()
        self._value: object = _UNSET
        self.computations = 0

    def get(self, *deps: object) -> T:
        if self._value is not _UNSET and self._unchanged(deps):
            return self._value  # type: ignore[return-value]
        self._value = self._compute(*deps)
        self._deps = deps
        self.computations += 1
        logger.debug("Recomputed %s (#%d)", self.name, self.computations)
        return self._value  # type: ignore[return-value]

    def _unchanged(self, deps: tuple) -> bool:
        if len(deps) != len(self._deps):
            return False
        return all(same_dependency(a, b) for a, b in zip(deps, self._deps))

    def invalidate(self) -> None:
        self._value = _UNSET
        self._deps = ()
