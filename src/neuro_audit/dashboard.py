"""Audit dashboard: every derived view, recomputed only when needed.

The dashboard is the engine's composition root.  It subscribes to a
record store, holds the current filter criteria and draft, and exposes
each derived value (working set, trend, heatmap, discipline factor...)
through its own :class:`~neuro_audit.analytics.memo.MemoCell` with an
explicit dependency list::

    records --+
    criteria -+-> working set -+-> trend points
                               +-> session / reprogramming logs
                               +-> heatmap (+ display timezone)
    draft.losses_today --+
    draft.loss_breakdown +-> discipline factor -+
    draft.coherence_index ----------------------+-> correlation pair

Typing in an unrelated draft field changes none of these dependencies,
so nothing is recomputed.  Each store delivery replaces the record
collection wholesale.

Usage::

    dashboard = AuditDashboard(store, settings)
    dashboard.set_filter("Ana", start_date="2024-01-01")
    grid = dashboard.heatmap
    dashboard.edit_draft(coherence_index=72)
    dashboard.evaluate_readiness()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from neuro_audit.analytics.filtering import (
    filter_working_set,
    sort_chronologically,
    unique_traders,
)
from neuro_audit.analytics.heatmap import Heatmap, build_heatmap
from neuro_audit.analytics.memo import MemoCell
from neuro_audit.analytics.metrics import (
    CorrelationPoint,
    DisciplineFactor,
    correlation_pair,
    discipline_factor,
)
from neuro_audit.analytics.projection import (
    ReprogrammingRow,
    SessionRow,
    TrendPoint,
    project_reprogramming_log,
    project_session_log,
    project_trend,
)
from neuro_audit.analytics.readiness import ReadinessAssessment, evaluate_readiness
from neuro_audit.core.config import Settings
from neuro_audit.core.enums import LossClassification, LossEmotion
from neuro_audit.core.models import AuditRecord
from neuro_audit.draft import AuditDraft, SubmitResult, submit_draft
from neuro_audit.storage.record_store import IRecordStore, Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterCriteria:
    trader_name: str = ""
    start_date: date | str | None = None
    end_date: date | str | None = None


class AuditDashboard:
    """Live, memoized view over one store for one trader at a time.

    Parameters
    ----------
    store : IRecordStore
        Source of records; subscribed to on construction.
    settings : Settings, optional
        Display timezone, draft defaults and coach access code.
    """

    def __init__(self, store: IRecordStore, settings: Settings | None = None) -> None:
        self._store = store
        self._settings = settings or Settings()
        self._tz = self._settings.resolve_timezone()

        self._records: tuple[AuditRecord, ...] = ()
        self._criteria = FilterCriteria()
        self._draft = AuditDraft.blank(self._settings)

        self._sorted = MemoCell("sorted_records", sort_chronologically)
        self._working_set = MemoCell(
            "working_set",
            lambda records, name, start, end: tuple(
                filter_working_set(records, name, start, end)
            ),
        )
        self._traders = MemoCell("unique_traders", unique_traders)
        self._trend = MemoCell("trend", project_trend)
        self._session_log = MemoCell("session_log", project_session_log)
        self._reprogramming_log = MemoCell("reprogramming_log", project_reprogramming_log)
        self._heatmap = MemoCell("heatmap", build_heatmap)
        self._discipline = MemoCell("discipline_factor", discipline_factor)
        self._correlation = MemoCell("correlation_pair", correlation_pair)

        self._unsubscribe: Callable[[], None] | None = store.subscribe(self._on_snapshot)

    # ------------------------------------------------------------------ #
    # Inputs                                                               #
    # ------------------------------------------------------------------ #

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        self._records = tuple(snapshot)
        logger.debug("Snapshot received: %d records", len(self._records))

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def records(self) -> tuple[AuditRecord, ...]:
        return self._records

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    def set_filter(
        self,
        trader_name: str | None = None,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
    ) -> None:
        """Set the filter criteria.

        The trader filter always follows the draft's trader name; passing
        ``trader_name`` edits the draft, None leaves it as is.
        """
        if trader_name is not None:
            self._draft = self._draft.update(trader_name=trader_name)
        self._criteria = FilterCriteria(self._draft.trader_name, start_date, end_date)

    @property
    def draft(self) -> AuditDraft:
        return self._draft

    def edit_draft(self, **changes: Any) -> AuditDraft:
        self._draft = self._draft.update(**changes)
        if "trader_name" in changes:
            self._criteria = FilterCriteria(
                self._draft.trader_name,
                self._criteria.start_date,
                self._criteria.end_date,
            )
        return self._draft

    def set_loss_emotion(self, index: int, emotion: LossEmotion | str | None) -> AuditDraft:
        self._draft = self._draft.with_loss_emotion(index, emotion)
        return self._draft

    def set_loss_classification(
        self, index: int, classification: LossClassification | str | None
    ) -> AuditDraft:
        self._draft = self._draft.with_loss_classification(index, classification)
        return self._draft

    # ------------------------------------------------------------------ #
    # Derived views                                                        #
    # ------------------------------------------------------------------ #

    @property
    def sorted_records(self) -> list[AuditRecord]:
        return self._sorted.get(self._records)

    @property
    def working_set(self) -> tuple[AuditRecord, ...]:
        c = self._criteria
        return self._working_set.get(
            self.sorted_records, c.trader_name, c.start_date, c.end_date
        )

    @property
    def trend(self) -> list[TrendPoint]:
        return self._trend.get(self.working_set)

    @property
    def session_log(self) -> list[SessionRow]:
        return self._session_log.get(self.working_set)

    @property
    def reprogramming_log(self) -> list[ReprogrammingRow]:
        return self._reprogramming_log.get(self.working_set)

    @property
    def heatmap(self) -> Heatmap:
        return self._heatmap.get(self.working_set, self._tz)

    @property
    def discipline(self) -> DisciplineFactor:
        d = self._draft
        return self._discipline.get(d.losses_today, d.loss_breakdown)

    @property
    def correlation(self) -> list[CorrelationPoint]:
        return self._correlation.get(self._draft.coherence_index, self.discipline)

    def trader_directory(self, access_code: str | None) -> list[str]:
        """All trader names, only for a valid coach access code."""
        if not self._settings.coach_mode(access_code):
            return []
        return self._traders.get(self.sorted_records)

    def computations(self) -> dict[str, int]:
        """How many times each derived value has been computed."""
        cells = (
            self._sorted, self._working_set, self._traders, self._trend,
            self._session_log, self._reprogramming_log, self._heatmap,
            self._discipline, self._correlation,
        )
        return {cell.name: cell.computations for cell in cells}

    # ------------------------------------------------------------------ #
    # Actions                                                              #
    # ------------------------------------------------------------------ #

    def evaluate_readiness(self) -> ReadinessAssessment:
        """Explicit pre-market check of the current draft."""
        assessment = evaluate_readiness(self._draft)
        logger.info(
            "Readiness %s (%s) for %s",
            assessment.outcome.value, assessment.rule, self._draft.trader_name,
        )
        return assessment

    def submit(self, today: date | None = None) -> SubmitResult:
        """Submit the draft; on success the form resets, keeping the name."""
        result = submit_draft(self._store, self._draft, self._settings, today)
        if result.ok and result.next_draft is not None:
            self._draft = result.next_draft
        return result
