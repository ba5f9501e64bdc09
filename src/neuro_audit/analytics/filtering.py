"""Working Set selection.

Reduces the store's full collection to one trader's records, optionally
bounded by an inclusive date range.  Nothing is shown without an
explicit trader name: shared storage holds every trader's audits.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Sequence

from neuro_audit.core.models import AuditRecord

logger = logging.getLogger(__name__)


def _normalize_bound(bound: date | str | None) -> str | None:
    if bound is None:
        return None
    if isinstance(bound, date):
        return bound.isoformat()
    bound = bound.strip()
    return bound or None


def filter_working_set(
    records: Iterable[AuditRecord],
    trader_name_query: str | None,
    start_date: date | str | None = None,
    end_date: date | str | None = None,
) -> list[AuditRecord]:
    """Select one trader's records within an optional date range.

    Args:
        records: Full record collection.  Input order is preserved.
        trader_name_query: Exact (trimmed, case-insensitive) trader name.
            Empty means no selection at all.
        start_date: Inclusive lower bound on the effective date.
        end_date: Inclusive upper bound on the effective date.

    Effective dates are ISO ``YYYY-MM-DD`` strings and compare
    lexicographically.  Records with no effective date drop out as soon
    as either bound is given.
    """
    search = (trader_name_query or "").strip().lower()
    if not search:
        return []

    start = _normalize_bound(start_date)
    end = _normalize_bound(end_date)

    selected: list[AuditRecord] = []
    for record in records:
        if record.normalized_trader != search:
            continue
        effective = record.effective_date
        if start is not None and (effective is None or effective < start):
            continue
        if end is not None and (effective is None or effective > end):
            continue
        selected.append(record)

    logger.debug(
        "Working set for %r [%s..%s]: %d records",
        search, start, end, len(selected),
    )
    return selected


def sort_chronologically(records: Sequence[AuditRecord]) -> list[AuditRecord]:
    """Order by ``createdAt`` (absent = 0); ties keep insertion order."""
    return sorted(records, key=lambda r: r.created_seconds)


def unique_traders(records: Iterable[AuditRecord]) -> list[str]:
    """Sorted, de-duplicated trimmed trader names (case preserved)."""
    names = {(r.trader_name or "").strip() for r in records}
    names.discard("")
    return sorted(names)
