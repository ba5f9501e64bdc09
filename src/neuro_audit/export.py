"""Session export: CSV/JSON output and periodic summaries.

Exports the session history of a Working Set for external analysis or
for a coach reviewing a trader offline.

Usage::

    exporter = SessionExporter()
    csv_str = exporter.to_csv(project_session_log(working_set))
    json_str = exporter.to_json(project_session_log(working_set))
    report = exporter.periodic_report(working_set, period="weekly")
"""

from __future__ import annotations

import csv
import io
import json
import logging
from collections import defaultdict
from datetime import date
from typing import Any, Sequence

from neuro_audit.analytics.metrics import plan_efficiency, round_half_up, round_int, round_money
from neuro_audit.analytics.projection import SessionRow
from neuro_audit.core.models import AuditRecord, as_number

logger = logging.getLogger(__name__)

# Default CSV columns
_CSV_COLUMNS = [
    "date",
    "start_time",
    "coherence_index",
    "metabolic_energy",
    "presence_level",
    "plan_reviewed",
    "daily_pnl",
    "plan_efficiency",
    "discipline_percent",
    "anchor_identity",
    "final_nervous_system_state",
    "record_id",
]

_PERIODS = ("daily", "weekly", "monthly")


class SessionExporter:
    """Export session rows to CSV/JSON and build periodic summaries."""

    # ------------------------------------------------------------------ #
    # CSV Export                                                           #
    # ------------------------------------------------------------------ #

    def to_csv(
        self,
        rows: Sequence[SessionRow],
        *,
        columns: list[str] | None = None,
    ) -> str:
        """Export session rows as a CSV string with a header row."""
        cols = columns or _CSV_COLUMNS
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            data = row.to_dict()
            writer.writerow({c: data.get(c, "") for c in cols})
        return buf.getvalue()

    # ------------------------------------------------------------------ #
    # JSON Export                                                          #
    # ------------------------------------------------------------------ #

    def to_json(self, rows: Sequence[SessionRow], *, indent: int = 2) -> str:
        """Export session rows as a JSON list."""
        return json.dumps(
            [row.to_dict() for row in rows], indent=indent, ensure_ascii=False
        )

    # ------------------------------------------------------------------ #
    # Periodic Report                                                      #
    # ------------------------------------------------------------------ #

    def periodic_report(
        self,
        working_set: Sequence[AuditRecord],
        *,
        period: str = "weekly",
    ) -> dict[str, Any]:
        """Summarise sessions per period of their effective date.

        Parameters
        ----------
        working_set : Sequence[AuditRecord]
            Records to summarise.  Records without a parseable ISO date
            are left out of the buckets but counted in ``undated``.
        period : str
            ``"daily"``, ``"weekly"`` (ISO week) or ``"monthly"``.

        Returns
        -------
        dict
            ``period`` : str
            ``buckets`` : list of per-period stats, oldest first
            ``totals`` : stats over every record
            ``undated`` : int
        """
        if period not in _PERIODS:
            raise ValueError(f"Unknown period {period!r}; expected one of {_PERIODS}")

        buckets: dict[str, list[AuditRecord]] = defaultdict(list)
        undated = 0
        for record in working_set:
            key = self._period_key(record, period)
            if key is None:
                undated += 1
                continue
            buckets[key].append(record)

        if undated:
            logger.debug("%d records without ISO date left out of %s report", undated, period)

        return {
            "period": period,
            "buckets": [self._group_stats(key, buckets[key]) for key in sorted(buckets)],
            "totals": self._group_stats("all", list(working_set)),
            "undated": undated,
        }

    # ------------------------------------------------------------------ #
    # Private helpers                                                      #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _period_key(record: AuditRecord, period: str) -> str | None:
        try:
            day = date.fromisoformat(record.effective_date or "")
        except ValueError:
            return None
        if period == "daily":
            return day.isoformat()
        if period == "monthly":
            return f"{day.year:04d}-{day.month:02d}"
        iso = day.isocalendar()
        return f"{iso[0]:04d}-W{iso[1]:02d}"

    @staticmethod
    def _group_stats(key: str, group: list[AuditRecord]) -> dict[str, Any]:
        n = len(group)
        if n == 0:
            return {"period_key": key, "sessions": 0}
        return {
            "period_key": key,
            "sessions": n,
            "avg_coherence": round_int(sum(as_number(r.coherence_index) for r in group) / n),
            "avg_presence": round_half_up(sum(as_number(r.presence_level) for r in group) / n, 1),
            "total_pnl": round_money(sum(as_number(r.daily_pnl) for r in group)),
            "avg_plan_efficiency": round_int(sum(plan_efficiency(r) for r in group) / n),
        }
