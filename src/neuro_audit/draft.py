"""In-progress audit draft and the submit workflow.

The draft is the form state the trader is editing.  It is an immutable
value: every edit returns a new draft, and only the fields that changed
get new objects, so memoized derivations depending on untouched fields
(the loss breakdown, say) keep their cache.

Submitting validates the draft, derives ``sessionTimestamp`` and
``localDate``, hands the record to the store and returns a user-facing
:class:`SubmitResult`.  Validation and store failures become messages;
nothing escapes as an exception.

Usage::

    draft = AuditDraft.blank(settings).update(trader_name="Ana", losses_today=2)
    draft = draft.with_loss_classification(1, LossClassification.CLEAN)
    result = submit_draft(store, draft, settings)
    if result.ok:
        draft = result.next_draft   # fresh form, trader name kept
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from neuro_audit.core.config import Settings
from neuro_audit.core.enums import (
    LossClassification,
    LossEmotion,
    NervousSystemState,
    YesNo,
)
from neuro_audit.core.errors import DraftValidationError, StoreError
from neuro_audit.core.models import (
    MAX_LOSS_ENTRIES,
    AuditFields,
    AuditRecord,
    StoreTimestamp,
)
from neuro_audit.storage.record_store import IRecordStore

logger = logging.getLogger(__name__)

MSG_SAVED = "Neuro-biological audit saved."
MSG_NAME_REQUIRED = "Trader name is required."
MSG_SAVE_FAILED = "Error saving audit data."


class AuditDraft(AuditFields):
    """Form state of an audit that has not been submitted yet."""

    @classmethod
    def blank(
        cls,
        settings: Settings | None = None,
        today: date | None = None,
        trader_name: str = "",
    ) -> AuditDraft:
        """A fresh form with the usual starting values."""
        defaults = (settings or Settings()).draft
        return cls(
            trader_name=trader_name,
            audit_date=(today or date.today()).isoformat(),
            session_start_time=defaults.session_start,
            metabolic_energy=defaults.metabolic_energy,
            coherence_ritual=YesNo.NO,
            plan_reviewed=YesNo.NO,
            nervous_system_state=NervousSystemState.VENTRAL,
            coherence_index=defaults.coherence_index,
            presence_level=defaults.presence_level,
            stop_respect=10,
            let_plan_run=10,
            total_entries=0,
            plan_entries=0,
            off_plan_entries=0,
            daily_pnl=0,
            losses_today=0,
            real_objective="Learn/Process",
            coherence_level=5,
            emotional_pnl="I gained discipline",
            anchor_identity=defaults.anchor_identity,
        )

    def update(self, **changes: Any) -> AuditDraft:
        """Return a copy with *changes* applied (field names, validated).

        Fields not named in *changes* keep their existing objects.
        """
        if not changes:
            return self
        probe = AuditFields.model_validate(changes)
        coerced = {name: getattr(probe, name) for name in changes}
        return self.model_copy(update=coerced)

    def with_loss_emotion(self, index: int, emotion: LossEmotion | str | None) -> AuditDraft:
        return self.model_copy(
            update={"loss_breakdown": self.loss_breakdown.with_emotion(index, emotion)}
        )

    def with_loss_classification(
        self, index: int, classification: LossClassification | str | None
    ) -> AuditDraft:
        return self.model_copy(
            update={
                "loss_breakdown": self.loss_breakdown.with_classification(
                    index, classification
                )
            }
        )

    @property
    def loss_rows(self) -> range:
        """Loss indices the form shows (capped at ``MAX_LOSS_ENTRIES``)."""
        return range(1, min(max(self.losses_today or 0, 0), MAX_LOSS_ENTRIES) + 1)

    def session_start(self) -> datetime:
        """Wall-clock start of the session from audit date and start time.

        Raises:
            DraftValidationError: if either is missing or malformed.
        """
        try:
            day = date.fromisoformat(self.audit_date or "")
            hour, minute = (int(p) for p in (self.session_start_time or "").split(":"))
            return datetime(day.year, day.month, day.day, hour, minute)
        except ValueError as exc:
            raise DraftValidationError(
                f"Invalid session date/time: {self.audit_date!r} {self.session_start_time!r}"
            ) from exc

    def to_record(self, settings: Settings | None = None) -> AuditRecord:
        """Build the record to persist.

        Raises:
            DraftValidationError: on an empty trader name or bad date/time.
        """
        settings = settings or Settings()
        name = self.trader_name.strip()
        if not name:
            raise DraftValidationError(MSG_NAME_REQUIRED)

        start = self.session_start()
        tz = settings.resolve_timezone()
        if tz is not None:
            start = start.replace(tzinfo=tz)

        fields = self.model_dump(exclude={"trader_name"})
        return AuditRecord(
            **fields,
            trader_name=name,
            session_timestamp=StoreTimestamp.from_datetime(start),
            local_date=start.strftime(settings.local_date_format),
        )


@dataclass(frozen=True)
class SubmitResult:
    """Outcome of a submit, ready to show to the trader."""

    ok: bool
    message: str
    record: AuditRecord | None = None
    next_draft: AuditDraft | None = None


def submit_draft(
    store: IRecordStore,
    draft: AuditDraft,
    settings: Settings | None = None,
    today: date | None = None,
) -> SubmitResult:
    """Validate *draft*, append it to *store* and report the outcome.

    On success ``next_draft`` is a blank form keeping the trader name.
    On failure the draft is left for the trader to fix.
    """
    settings = settings or Settings()
    try:
        record = draft.to_record(settings)
    except DraftValidationError as exc:
        logger.info("Draft rejected: %s", exc)
        return SubmitResult(ok=False, message=str(exc))

    try:
        stored = store.append(record)
    except StoreError:
        logger.exception("Saving audit for %s failed", record.trader_name)
        return SubmitResult(ok=False, message=MSG_SAVE_FAILED)

    logger.info("Audit saved id=%s trader=%s", stored.id, stored.trader_name)
    return SubmitResult(
        ok=True,
        message=MSG_SAVED,
        record=stored,
        next_draft=AuditDraft.blank(settings, today, trader_name=draft.trader_name),
    )
