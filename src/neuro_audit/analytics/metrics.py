"""Per-session derived metrics: plan efficiency and discipline factor.

Discipline factor
-----------------
Share of the session's losses that were taken cleanly (inside the plan)::

    percent = round(clean / total * 100)

The denominator is the number of losses, not the number of classified
losses, so a loss left unclassified counts against the score exactly
like a dirty one.  Two special cases come first:

* no losses at all -> 100 %, Optimal
* losses but none classified yet -> 0 %, Undefined (nothing to judge,
  shown differently from a real 0 %)

Bands are an ordered guard list: >= 80 Optimal, < 50 Critical, else
Caution.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

from neuro_audit.core.enums import DisciplineBand, LossClassification
from neuro_audit.core.models import MAX_LOSS_ENTRIES, AuditRecord, LossBreakdown, as_number

from .guards import Guard, first_match

CORRELATION_LABELS = ("IC Inicial", "Disciplina Final")

DISCIPLINE_BANDS: list[Guard[int, DisciplineBand]] = [
    Guard("disciplined", lambda pct: pct >= 80, DisciplineBand.OPTIMAL),
    Guard("undisciplined", lambda pct: pct < 50, DisciplineBand.CRITICAL),
]


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with halves going toward +inf (``floor(x + 0.5)``).

    Matches ``Math.round`` used by the audit UI (``round(2.5) == 3``,
    ``round(-2.5) == -2``) rather than Python's banker's rounding.
    """
    if abs(value) >= 1e15:
        # Beyond decimal context precision; binary floor is exact enough here
        scale = 10 ** ndigits
        return math.floor(value * scale + 0.5) / scale
    exponent = Decimal(1).scaleb(-ndigits)
    quantized = (Decimal(repr(value)) + exponent / 2).quantize(
        exponent, rounding=ROUND_FLOOR
    )
    return float(quantized)


def round_int(value: float) -> int:
    return int(round_half_up(value))


def round_money(value: float) -> float:
    """Two decimals, halves away from zero (``toFixed(2)``).

    Keeps the sign of small losses: ``round_money(-0.005) == -0.01``.
    """
    if abs(value) >= 1e15:
        return round(value, 2)
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class DisciplineFactor:
    percent: int
    band: DisciplineBand

    @property
    def label(self) -> str:
        return f"{self.percent}%"


@dataclass(frozen=True)
class CorrelationPoint:
    label: str
    value: float


def plan_efficiency(record: AuditRecord) -> int:
    """Percentage of entries taken inside the plan (0 with no entries)."""
    total = record.total_entries or 0
    if total <= 0:
        return 0
    planned = record.plan_entries or 0
    return round_int(planned / total * 100)


def discipline_factor(
    losses_today: int | None, loss_breakdown: LossBreakdown | None
) -> DisciplineFactor:
    """Discipline of the session's losses.  Total over all inputs."""
    total = max(0, losses_today or 0)
    if total == 0:
        return DisciplineFactor(100, DisciplineBand.OPTIMAL)

    breakdown = loss_breakdown or LossBreakdown()
    defined = 0
    clean = 0
    # Indices past the breakdown capacity are unclassified by construction
    for index in range(1, min(total, MAX_LOSS_ENTRIES) + 1):
        classification = breakdown.get(index).classification
        if classification is None:
            continue
        defined += 1
        if classification == LossClassification.CLEAN:
            clean += 1

    if defined == 0:
        return DisciplineFactor(0, DisciplineBand.UNDEFINED)

    percent = round_int(clean / total * 100)
    return DisciplineFactor(
        percent, first_match(DISCIPLINE_BANDS, percent, DisciplineBand.CAUTION)
    )


def record_discipline(record: AuditRecord) -> DisciplineFactor:
    return discipline_factor(record.losses_today, record.loss_breakdown)


def correlation_pair(
    coherence_index: float | None, discipline: DisciplineFactor
) -> list[CorrelationPoint]:
    """Initial coherence vs. final discipline, as a two-point series."""
    ic_label, discipline_label = CORRELATION_LABELS
    return [
        CorrelationPoint(ic_label, as_number(coherence_index)),
        CorrelationPoint(discipline_label, discipline.percent),
    ]
