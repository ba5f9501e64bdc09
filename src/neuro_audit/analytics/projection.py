"""Chart and table projections of the Working Set.

None of these functions sort.  Callers order the Working Set
chronologically first (see :func:`~neuro_audit.analytics.filtering.sort_chronologically`);
trend points keep that order, history tables reverse it (newest first).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from neuro_audit.core.enums import YesNo
from neuro_audit.core.models import AuditRecord, as_number

from .metrics import plan_efficiency, record_discipline


@dataclass(frozen=True)
class TrendPoint:
    date: str | None
    coherence_index: float
    presence_level: float
    metabolic_energy: float


def project_trend(working_set: Sequence[AuditRecord]) -> list[TrendPoint]:
    """One point per record, in input order; absent values read as 0."""
    return [
        TrendPoint(
            date=record.effective_date,
            coherence_index=as_number(record.coherence_index),
            presence_level=as_number(record.presence_level),
            metabolic_energy=as_number(record.metabolic_energy),
        )
        for record in working_set
    ]


@dataclass(frozen=True)
class SessionRow:
    """One line of the session history table."""

    record_id: str | None
    date: str | None
    start_time: str | None
    coherence_index: float
    metabolic_energy: float
    presence_level: float
    plan_reviewed: bool
    daily_pnl: float
    plan_efficiency: int
    discipline_percent: int
    anchor_identity: float
    final_nervous_system_state: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "date": self.date,
            "start_time": self.start_time,
            "coherence_index": self.coherence_index,
            "metabolic_energy": self.metabolic_energy,
            "presence_level": self.presence_level,
            "plan_reviewed": self.plan_reviewed,
            "daily_pnl": self.daily_pnl,
            "plan_efficiency": self.plan_efficiency,
            "discipline_percent": self.discipline_percent,
            "anchor_identity": self.anchor_identity,
            "final_nervous_system_state": self.final_nervous_system_state,
        }


def project_session_log(working_set: Sequence[AuditRecord]) -> list[SessionRow]:
    """Session history rows, newest first."""
    return [
        SessionRow(
            record_id=record.id,
            date=record.effective_date,
            start_time=record.session_start_time,
            coherence_index=as_number(record.coherence_index),
            metabolic_energy=as_number(record.metabolic_energy),
            presence_level=as_number(record.presence_level),
            plan_reviewed=record.plan_reviewed == YesNo.YES,
            daily_pnl=as_number(record.daily_pnl),
            plan_efficiency=plan_efficiency(record),
            discipline_percent=record_discipline(record).percent,
            anchor_identity=as_number(record.anchor_identity),
            final_nervous_system_state=record.final_nervous_system_state,
        )
        for record in reversed(working_set)
    ]


@dataclass(frozen=True)
class ReprogrammingRow:
    """Post-session closure and reprogramming history."""

    record_id: str | None
    date: str | None
    anchor_identity: float
    vagal_protocol: str
    installed_beliefs: list[str] = field(default_factory=list)
    closures_done: int = 0
    narrative: str = ""
    commitment: str = ""


def project_reprogramming_log(working_set: Sequence[AuditRecord]) -> list[ReprogrammingRow]:
    """Reprogramming history rows, newest first."""
    return [
        ReprogrammingRow(
            record_id=record.id,
            date=record.effective_date,
            anchor_identity=as_number(record.anchor_identity),
            vagal_protocol=record.vagal_protocol,
            installed_beliefs=list(record.installed_beliefs),
            closures_done=len(record.closure_visualizations),
            narrative=record.narrative_rewrite,
            commitment=record.tomorrow_commitment,
        )
        for record in reversed(working_set)
    ]
