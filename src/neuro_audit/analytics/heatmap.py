"""Weekday x hour heatmap of session quality.

Buckets the Working Set by the day of week and hour at which each
session started, then averages coherence and PnL per bucket.  Answers
questions like "are my Monday 9:00 sessions worse than my Thursday
14:00 ones?"

The grid is fixed: Monday-Friday x 08:00-16:00, 45 cells, always all
present.  A cell with no sessions is "no data", which is not the same as
a cell whose sessions average zero.

When a session started is resolved per record by an ordered list of
resolvers; the first one that applies decides:

1. ``sessionTimestamp`` seconds (client-computed at submit time)
2. ``createdAt`` seconds (server-assigned; numeric values only)
3. ``auditDate`` + ``sessionStartTime`` (``10:00`` when absent)

A resolver that applies but yields an impossible instant excludes the
record from the heatmap.  Such records still appear everywhere else.

Usage::

    grid = build_heatmap(working_set, tz=ZoneInfo("Europe/Madrid"))
    cell = grid[(1, 9)]          # Monday 09:00
    color_class(cell)            # HeatmapColor.OPTIMAL
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Callable, Iterable, Sequence

from neuro_audit.core.enums import HeatmapColor
from neuro_audit.core.models import AuditRecord, as_number

from .guards import Guard, first_match
from .metrics import round_int, round_money

logger = logging.getLogger(__name__)

WEEKDAYS = (1, 2, 3, 4, 5)  # ISO weekday: 1=Monday .. 5=Friday
HOURS = tuple(range(8, 17))  # 08:00 .. 16:00 inclusive
DAY_NAMES = {1: "monday", 2: "tuesday", 3: "wednesday", 4: "thursday", 5: "friday"}
DEFAULT_SESSION_START = "10:00"

CellKey = tuple[int, int]


class InvalidInstant(ValueError):
    """A resolver applied to the record but produced no real instant."""


# A resolver returns None when it does not apply to the record, a datetime
# when it does, and raises InvalidInstant when it applies but fails.
TimestampResolver = Callable[[AuditRecord, tzinfo | None], datetime | None]


def _from_epoch(seconds: float, tz: tzinfo | None) -> datetime:
    try:
        if tz is None:
            return datetime.fromtimestamp(seconds)
        return datetime.fromtimestamp(seconds, tz)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidInstant(f"epoch seconds out of range: {seconds}") from exc


def from_session_timestamp(record: AuditRecord, tz: tzinfo | None) -> datetime | None:
    ts = record.session_timestamp
    if ts is None or not ts.seconds:
        return None
    return _from_epoch(ts.seconds, tz)


def from_created_at(record: AuditRecord, tz: tzinfo | None) -> datetime | None:
    ts = record.created_at
    if ts is None or ts.seconds is None:
        return None
    return _from_epoch(ts.seconds, tz)


def from_audit_date(record: AuditRecord, tz: tzinfo | None) -> datetime | None:
    """Wall-clock date and start time, already local; *tz* is not applied."""
    if not record.audit_date:
        return None
    parts = record.audit_date.split("-")
    if len(parts) != 3:
        raise InvalidInstant(f"auditDate not YYYY-MM-DD: {record.audit_date!r}")
    clock = (record.session_start_time or DEFAULT_SESSION_START).split(":")
    try:
        year, month, day = (int(p) for p in parts)
        return datetime(year, month, day, int(clock[0]), int(clock[1]))
    except (ValueError, IndexError) as exc:
        raise InvalidInstant(
            f"bad date/time {record.audit_date!r} {record.session_start_time!r}"
        ) from exc


DEFAULT_RESOLVERS: tuple[TimestampResolver, ...] = (
    from_session_timestamp,
    from_created_at,
    from_audit_date,
)


def resolve_timestamp(
    record: AuditRecord,
    tz: tzinfo | None = None,
    resolvers: Sequence[TimestampResolver] = DEFAULT_RESOLVERS,
) -> datetime | None:
    """When the session started, or None if it cannot be placed in time."""
    for resolver in resolvers:
        try:
            instant = resolver(record, tz)
        except InvalidInstant as exc:
            logger.debug("Record %s excluded from heatmap: %s", record.id, exc)
            return None
        if instant is not None:
            return instant
    return None


@dataclass
class HeatmapCell:
    """Accumulator for one weekday x hour bucket."""

    session_count: int = 0
    sum_coherence: float = 0.0
    sum_pnl: float = 0.0
    avg_coherence: int = 0
    avg_pnl: float = 0.0

    def record(self, record: AuditRecord) -> None:
        self.session_count += 1
        self.sum_coherence += as_number(record.coherence_index)
        self.sum_pnl += as_number(record.daily_pnl)

    def finalize(self) -> None:
        if self.session_count == 0:
            return
        self.avg_coherence = round_int(self.sum_coherence / self.session_count)
        self.avg_pnl = round_money(self.sum_pnl / self.session_count)

    @property
    def has_data(self) -> bool:
        return self.session_count > 0


Heatmap = dict[CellKey, HeatmapCell]


def empty_heatmap() -> Heatmap:
    return {(day, hour): HeatmapCell() for day in WEEKDAYS for hour in HOURS}


def build_heatmap(
    working_set: Iterable[AuditRecord],
    tz: tzinfo | None = None,
    resolvers: Sequence[TimestampResolver] = DEFAULT_RESOLVERS,
) -> Heatmap:
    """Aggregate the Working Set into the fixed 45-cell grid.

    Args:
        working_set: Records to aggregate (any order).
        tz: Zone used to read epoch timestamps.  None = system local time.
        resolvers: Timestamp resolution chain, first applicable wins.
    """
    grid = empty_heatmap()
    binned = 0
    for record in working_set:
        instant = resolve_timestamp(record, tz, resolvers)
        if instant is None:
            continue
        cell = grid.get((instant.isoweekday(), instant.hour))
        if cell is None:
            # Weekend or outside 08:00-16:00
            continue
        cell.record(record)
        binned += 1

    for cell in grid.values():
        cell.finalize()

    logger.debug("Heatmap built: %d sessions binned", binned)
    return grid


COLOR_RULES: list[Guard[HeatmapCell, HeatmapColor]] = [
    Guard("no_data", lambda c: c.session_count == 0, HeatmapColor.NO_DATA),
    Guard(
        "low_coherence_or_losing",
        lambda c: c.avg_coherence < 50 or c.avg_pnl < 0,
        HeatmapColor.CRITICAL,
    ),
    Guard("borderline_coherence", lambda c: 50 <= c.avg_coherence < 65, HeatmapColor.CAUTION),
]


def color_class(cell: HeatmapCell) -> HeatmapColor:
    """Classify a cell; total over every count / average combination."""
    return first_match(COLOR_RULES, cell, HeatmapColor.OPTIMAL)


def heatmap_rows(grid: Heatmap) -> list[tuple[int, list[HeatmapCell]]]:
    """Grid as ``(hour, [Mon..Fri cells])`` rows for tabular rendering."""
    return [(hour, [grid[(day, hour)] for day in WEEKDAYS]) for hour in HOURS]
