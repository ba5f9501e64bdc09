"""Enumerations used across the audit engine."""

from enum import Enum


class NervousSystemState(str, Enum):
    """Polyvagal state reported before the session.

    Stored records carry free labels such as ``"🔴 Dorsal Vagal (Parálisis)"``;
    any label containing the state keyword resolves to the member.
    """

    VENTRAL = "Ventral"
    SYMPATHETIC = "Sympathetic"
    DORSAL = "Dorsal"

    @classmethod
    def _missing_(cls, value: object) -> "NervousSystemState | None":
        if not isinstance(value, str):
            return None
        label = value.lower()
        # Dorsal first: "Dorsal Vagal" also contains "vagal"
        if "dorsal" in label:
            return cls.DORSAL
        if "ventral" in label:
            return cls.VENTRAL
        if "simp" in label or "sympathetic" in label:
            return cls.SYMPATHETIC
        return None


class YesNo(str, Enum):
    YES = "Yes"
    NO = "No"

    @classmethod
    def _missing_(cls, value: object) -> "YesNo | None":
        if not isinstance(value, str):
            return None
        label = value.strip().lower()
        if label in ("yes", "sí", "si", "true", "y"):
            return cls.YES
        if label in ("no", "false", "n"):
            return cls.NO
        return None


class LossClassification(str, Enum):
    CLEAN = "Clean"  # Loss taken inside the plan
    DIRTY = "Dirty"  # Loss taken outside the plan

    @classmethod
    def _missing_(cls, value: object) -> "LossClassification | None":
        if not isinstance(value, str):
            return None
        label = value.lower()
        if "clean" in label or "limpia" in label:
            return cls.CLEAN
        if "dirty" in label or "sucia" in label:
            return cls.DIRTY
        return None


class LossEmotion(str, Enum):
    ANGER = "Anger"
    FEAR = "Fear"
    REVENGE = "Revenge"
    SADNESS = "Sadness"

    @classmethod
    def _missing_(cls, value: object) -> "LossEmotion | None":
        legacy = {
            "ira": cls.ANGER,
            "miedo": cls.FEAR,
            "venganza": cls.REVENGE,
            "tristeza": cls.SADNESS,
        }
        if not isinstance(value, str):
            return None
        return legacy.get(value.strip().lower())


class DisciplineBand(str, Enum):
    UNDEFINED = "undefined"
    CRITICAL = "critical"
    CAUTION = "caution"
    OPTIMAL = "optimal"


class HeatmapColor(str, Enum):
    NO_DATA = "no_data"
    CRITICAL = "critical"
    CAUTION = "caution"
    OPTIMAL = "optimal"


class ReadinessOutcome(str, Enum):
    NOT_READY = "not_ready"
    CAUTION = "caution"
    OPTIMIZED = "optimized"


class ReadinessReason(str, Enum):
    """Which message variant a readiness outcome carries."""

    PLAN_NOT_REVIEWED = "plan_not_reviewed"
    PHYSIOLOGY = "physiology"
    FLOW = "flow"
    BORDERLINE = "borderline"
