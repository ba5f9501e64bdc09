"""Pre-market readiness check.

Stateless classifier over the in-progress draft: coherence index,
nervous-system state, presence level and whether the plan was reviewed.
It is evaluated on request (the "validate" button), never stored.

Rules, first match wins::

    plan == No                                   -> NOT_READY (plan message)
    IC < 60 or Dorsal or presence < 4            -> NOT_READY (physiology message)
    IC >= 70 and Ventral and presence >= 9
        and plan == Yes                          -> OPTIMIZED
    otherwise                                    -> CAUTION

The two NOT_READY guards together are the single "not ready" branch:
when the plan was not reviewed the message is about the plan, whatever
else is wrong.  Absent numbers read as 0; absent categories match
nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from neuro_audit.core.enums import (
    NervousSystemState,
    ReadinessOutcome,
    ReadinessReason,
    YesNo,
)
from neuro_audit.core.models import as_number

from .guards import Guard, first_matching_guard

MIN_COHERENCE = 60
MIN_PRESENCE = 4
OPTIMAL_COHERENCE = 70
OPTIMAL_PRESENCE = 9

TITLES = {
    ReadinessOutcome.NOT_READY: "SYSTEM NOT FIT",
    ReadinessOutcome.OPTIMIZED: "SYSTEM OPTIMIZED",
    ReadinessOutcome.CAUTION: "CAUTION",
}

MESSAGES = {
    ReadinessReason.PLAN_NOT_REVIEWED: (
        "Operational discipline missing: the trading plan has not been "
        "reviewed. No map, no trading. Review the plan and validate again."
    ),
    ReadinessReason.PHYSIOLOGY: (
        "Coherence or presence is critical. In this state you would trade "
        "from fear, dissociation or paralysis. Do not trade; run an "
        "emergency regulation session first."
    ),
    ReadinessReason.FLOW: (
        "Flow state: coherence is high and focus is total. You are ready to "
        "execute the plan without emotional interference."
    ),
    ReadinessReason.BORDERLINE: (
        "Signs of alertness, urgency or lack of focus. Trade reduced size or "
        "do two minutes of cardiac coherence before the first trade."
    ),
}


@dataclass(frozen=True)
class ReadinessInputs:
    coherence_index: float
    nervous_system_state: NervousSystemState | None
    presence_level: float
    plan_reviewed: YesNo | None

    @classmethod
    def from_draft(cls, draft: Any) -> ReadinessInputs:
        """Read the four inputs off a draft or record."""
        return cls(
            coherence_index=as_number(getattr(draft, "coherence_index", None)),
            nervous_system_state=getattr(draft, "nervous_system_state", None),
            presence_level=as_number(getattr(draft, "presence_level", None)),
            plan_reviewed=getattr(draft, "plan_reviewed", None),
        )


@dataclass(frozen=True)
class ReadinessAssessment:
    outcome: ReadinessOutcome
    reason: ReadinessReason
    rule: str

    @property
    def title(self) -> str:
        return TITLES[self.outcome]

    @property
    def message(self) -> str:
        return MESSAGES[self.reason]

    @property
    def may_trade(self) -> bool:
        return self.outcome != ReadinessOutcome.NOT_READY


def _physiologically_unfit(i: ReadinessInputs) -> bool:
    return (
        i.coherence_index < MIN_COHERENCE
        or i.nervous_system_state == NervousSystemState.DORSAL
        or i.presence_level < MIN_PRESENCE
    )


def _optimized(i: ReadinessInputs) -> bool:
    return (
        i.coherence_index >= OPTIMAL_COHERENCE
        and i.nervous_system_state == NervousSystemState.VENTRAL
        and i.presence_level >= OPTIMAL_PRESENCE
        and i.plan_reviewed == YesNo.YES
    )


READINESS_RULES: list[Guard[ReadinessInputs, tuple[ReadinessOutcome, ReadinessReason]]] = [
    Guard(
        "plan_not_reviewed",
        lambda i: i.plan_reviewed == YesNo.NO,
        (ReadinessOutcome.NOT_READY, ReadinessReason.PLAN_NOT_REVIEWED),
    ),
    Guard(
        "physiology",
        _physiologically_unfit,
        (ReadinessOutcome.NOT_READY, ReadinessReason.PHYSIOLOGY),
    ),
    Guard(
        "optimized",
        _optimized,
        (ReadinessOutcome.OPTIMIZED, ReadinessReason.FLOW),
    ),
]


def evaluate_readiness(draft: Any) -> ReadinessAssessment:
    """Classify the pre-market state of *draft* (draft, record or inputs)."""
    inputs = draft if isinstance(draft, ReadinessInputs) else ReadinessInputs.from_draft(draft)
    guard = first_matching_guard(READINESS_RULES, inputs)
    if guard is None:
        return ReadinessAssessment(
            ReadinessOutcome.CAUTION, ReadinessReason.BORDERLINE, "residual"
        )
    outcome, reason = guard.then
    return ReadinessAssessment(outcome, reason, guard.name)
