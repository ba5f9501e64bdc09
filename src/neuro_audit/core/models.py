"""Core data models for audit records.

These are the canonical "truth models" shared by the store, the draft
workflow and every analytics function.  Attribute names are snake_case;
the store's JSON documents use camelCase keys, accepted here as aliases.

Numeric fields are lenient: absent or unparseable values become ``None``
and every derivation reads them as 0.  Nothing in this module raises on
messy store documents.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator

from .enums import LossClassification, LossEmotion, NervousSystemState, YesNo

# Loss rows the form renders, regardless of lossesToday
MAX_LOSS_ENTRIES = 20


def coerce_number(value: Any) -> float | None:
    """Parse a loosely-typed numeric value; ``None`` when not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_int(value: Any) -> int | None:
    number = coerce_number(value)
    return None if number is None else int(number)


def as_number(value: float | int | None) -> float:
    """Read an optional numeric field the way derivations do (absent = 0)."""
    return 0.0 if value is None else float(value)


def _coerce_enum(enum_cls: type, value: Any) -> Any:
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

class StoreTimestamp(BaseModel):
    """Seconds-based instant, as written by the record store."""

    model_config = ConfigDict(frozen=True)

    seconds: float | None = None
    nanoseconds: int = 0

    @model_validator(mode="before")
    @classmethod
    def _from_loose(cls, data: Any) -> Any:
        if isinstance(data, datetime):
            return {"seconds": data.timestamp()}
        if isinstance(data, (int, float)) and not isinstance(data, bool):
            return {"seconds": data}
        return data

    @field_validator("seconds", mode="before")
    @classmethod
    def _numeric_seconds(cls, value: Any) -> float | None:
        # Only real numbers are instants; "1700000000" is not
        if isinstance(value, str):
            return None
        return coerce_number(value)

    @field_validator("nanoseconds", mode="before")
    @classmethod
    def _numeric_nanos(cls, value: Any) -> int:
        return coerce_int(value) or 0

    @classmethod
    def from_datetime(cls, dt: datetime) -> StoreTimestamp:
        return cls(seconds=dt.timestamp())


# ---------------------------------------------------------------------------
# Loss breakdown
# ---------------------------------------------------------------------------

class LossEntry(BaseModel):
    """Reflection on one loss of the session.  ``None`` means unset."""

    model_config = ConfigDict(frozen=True)

    emotion: LossEmotion | None = None
    classification: LossClassification | None = None

    @field_validator("emotion", mode="before")
    @classmethod
    def _emotion(cls, value: Any) -> LossEmotion | None:
        return _coerce_enum(LossEmotion, value)

    @field_validator("classification", mode="before")
    @classmethod
    def _classification(cls, value: Any) -> LossClassification | None:
        return _coerce_enum(LossClassification, value)


class LossBreakdown(RootModel[dict[int, LossEntry]]):
    """Bounded ordered mapping from 1-based loss index to :class:`LossEntry`.

    Only indices ``1..MAX_LOSS_ENTRIES`` are kept; anything else is dropped
    on input.  Treat instances as values: the ``with_*`` helpers return a
    new breakdown instead of mutating.
    """

    root: dict[int, LossEntry] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _bound_keys(cls, data: Any) -> Any:
        if data is None:
            return {}
        if not isinstance(data, dict):
            return {}
        bounded: dict[int, Any] = {}
        for key, entry in data.items():
            index = coerce_int(key)
            if index is None or not 1 <= index <= MAX_LOSS_ENTRIES:
                continue
            if isinstance(entry, (LossClassification, str)):
                entry = {"classification": entry}
            elif not isinstance(entry, (dict, LossEntry)):
                continue
            bounded[index] = entry
        return dict(sorted(bounded.items()))

    def get(self, index: int) -> LossEntry:
        return self.root.get(index) or LossEntry()

    def __iter__(self) -> Iterator[int]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def items(self) -> list[tuple[int, LossEntry]]:
        return list(self.root.items())

    def _with(self, index: int, **changes: Any) -> LossBreakdown:
        if not 1 <= index <= MAX_LOSS_ENTRIES:
            return self
        entries = dict(self.root)
        entries[index] = self.get(index).model_copy(update=changes)
        return LossBreakdown(entries)

    def with_emotion(self, index: int, emotion: LossEmotion | str | None) -> LossBreakdown:
        return self._with(index, emotion=_coerce_enum(LossEmotion, emotion))

    def with_classification(
        self, index: int, classification: LossClassification | str | None
    ) -> LossBreakdown:
        return self._with(
            index, classification=_coerce_enum(LossClassification, classification)
        )


# ---------------------------------------------------------------------------
# Audit record
# ---------------------------------------------------------------------------

_FLOAT_FIELDS = (
    "metabolic_energy",
    "presence_level",
    "anchor_identity",
    "coherence_index",
    "coherence_level",
    "stop_respect",
    "let_plan_run",
    "daily_pnl",
)

_INT_FIELDS = (
    "total_entries",
    "plan_entries",
    "off_plan_entries",
    "losses_today",
)

_TEXT_FIELDS = (
    "trader_name",
    "plan_consequence",
    "risk_accepted",
    "loss_body_sensation",
    "final_nervous_system_state",
    "session_details",
    "real_objective",
    "emotional_pnl",
    "narrative_rewrite",
    "mentor_learning",
    "vagal_protocol",
    "tomorrow_commitment",
)


class AuditFields(BaseModel):
    """Everything the trader fills in for one session.

    Shared by the in-progress draft and the persisted record.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    trader_name: str = Field(default="", alias="traderName")
    audit_date: str | None = Field(default=None, alias="auditDate")
    session_start_time: str | None = Field(default=None, alias="sessionStartTime")

    # 1. Pre-market
    metabolic_energy: float | None = Field(default=None, alias="metabolicEnergy")
    coherence_ritual: YesNo | None = Field(default=None, alias="coherenceRitual")
    plan_reviewed: YesNo | None = Field(default=None, alias="planReviewed")
    nervous_system_state: NervousSystemState | None = Field(
        default=None, alias="nervousSystemState"
    )
    coherence_index: float | None = Field(default=None, alias="coherenceIndex")
    cognitive_biases: list[str] = Field(default_factory=list, alias="cognitiveBiases")
    somatic_markers: list[str] = Field(default_factory=list, alias="somaticMarkers")
    presence_level: float | None = Field(default=None, alias="presenceLevel")

    # 2. Execution
    stop_respect: float | None = Field(default=None, alias="stopRespect")
    let_plan_run: float | None = Field(default=None, alias="letPlanRun")
    total_entries: int | None = Field(default=None, alias="totalEntries")
    plan_entries: int | None = Field(default=None, alias="planEntries")
    off_plan_entries: int | None = Field(default=None, alias="offPlanEntries")
    daily_pnl: float | None = Field(default=None, alias="dailyPnL")
    plan_consequence: str = Field(default="", alias="planConsequence")

    # 3. Losses
    losses_today: int | None = Field(default=None, alias="lossesToday")
    risk_accepted: str = Field(default="", alias="riskAccepted")
    loss_breakdown: LossBreakdown = Field(default_factory=LossBreakdown, alias="lossBreakdown")
    loss_body_sensation: str = Field(default="", alias="lossBodySensation")
    emotions_detected: list[str] = Field(default_factory=list, alias="emotionsDetected")
    final_nervous_system_state: str = Field(default="", alias="finalNervousSystemState")
    session_details: str = Field(default="", alias="sessionDetails")

    # 4. Reprogramming
    real_objective: str = Field(default="", alias="realObjective")
    coherence_level: float | None = Field(default=None, alias="coherenceLevel")
    emotional_pnl: str = Field(default="", alias="emotionalPnL")
    anchor_identity: float | None = Field(default=None, alias="anchorIdentity")
    installed_beliefs: list[str] = Field(default_factory=list, alias="installedBeliefs")
    narrative_rewrite: str = Field(default="", alias="narrativeRewrite")
    closure_visualizations: list[str] = Field(
        default_factory=list, alias="closureVisualizations"
    )
    mentor_learning: str = Field(default="", alias="mentorLearning")
    vagal_protocol: str = Field(default="", alias="vagalProtocol")
    tomorrow_commitment: str = Field(default="", alias="tomorrowCommitment")

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("audit_date", "session_start_time", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return value if isinstance(value, str) else str(value)

    @field_validator(*_FLOAT_FIELDS, mode="before")
    @classmethod
    def _lenient_float(cls, value: Any) -> float | None:
        return coerce_number(value)

    @field_validator(*_INT_FIELDS, mode="before")
    @classmethod
    def _lenient_int(cls, value: Any) -> int | None:
        return coerce_int(value)

    @field_validator("nervous_system_state", mode="before")
    @classmethod
    def _state(cls, value: Any) -> NervousSystemState | None:
        return _coerce_enum(NervousSystemState, value)

    @field_validator("plan_reviewed", "coherence_ritual", mode="before")
    @classmethod
    def _yes_no(cls, value: Any) -> YesNo | None:
        return _coerce_enum(YesNo, value)

    @field_validator(
        "cognitive_biases",
        "somatic_markers",
        "emotions_detected",
        "installed_beliefs",
        "closure_visualizations",
        mode="before",
    )
    @classmethod
    def _string_list(cls, value: Any) -> list[str]:
        if not isinstance(value, (list, tuple, set)):
            return []
        return [str(v) for v in value]

    @property
    def normalized_trader(self) -> str:
        """Trimmed, lower-cased name used for matching."""
        return (self.trader_name or "").strip().lower()


class AuditRecord(AuditFields):
    """One trader's audit of one session, as held by the record store.

    ``id`` and ``created_at`` are assigned by the store;
    ``session_timestamp`` and ``local_date`` are derived at submit time.
    """

    id: str | None = None
    local_date: str | None = Field(default=None, alias="localDate")
    created_at: StoreTimestamp | None = Field(default=None, alias="createdAt")
    session_timestamp: StoreTimestamp | None = Field(default=None, alias="sessionTimestamp")

    @field_validator("id", "local_date", mode="before")
    @classmethod
    def _optional_id_text(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return value if isinstance(value, str) else str(value)

    @field_validator("created_at", "session_timestamp", mode="before")
    @classmethod
    def _timestamp(cls, value: Any) -> Any:
        if isinstance(value, (dict, datetime, StoreTimestamp)):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        return None

    # ------------------------------------------------------------------ #
    # Computed properties                                                  #
    # ------------------------------------------------------------------ #

    @property
    def effective_date(self) -> str | None:
        """``audit_date``, falling back to the locally formatted date."""
        return self.audit_date or self.local_date or None

    @property
    def created_seconds(self) -> float:
        """Server creation instant in seconds; 0 while unassigned."""
        if self.created_at is None or self.created_at.seconds is None:
            return 0.0
        return self.created_at.seconds

    def to_document(self) -> dict[str, Any]:
        """JSON-safe store document using camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> AuditRecord:
        return cls.model_validate(document)
