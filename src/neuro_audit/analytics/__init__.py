"""Session analytics & readiness evaluation.

Pure derivations over audit records.  Data flows one way::

    RecordStore -> filtering -> {metrics, heatmap, projection}
    draft -> readiness

Key components
--------------
filter_working_set    Trader + date-range selection (the Working Set)
plan_efficiency       Share of entries taken inside the plan
discipline_factor     Share of losses taken cleanly, with band
correlation_pair      Initial coherence vs. final discipline series
build_heatmap         Weekday x hour aggregates over a fixed 45-cell grid
color_class           Heatmap cell classification
evaluate_readiness    Pre-market readiness classifier
project_trend         Trend chart points
MemoCell              Dependency-tracked memoization
"""

from .filtering import filter_working_set, sort_chronologically, unique_traders
from .heatmap import HeatmapCell, build_heatmap, color_class, resolve_timestamp
from .memo import MemoCell
from .metrics import (
    CorrelationPoint,
    DisciplineFactor,
    correlation_pair,
    discipline_factor,
    plan_efficiency,
)
from .projection import (
    TrendPoint,
    project_reprogramming_log,
    project_session_log,
    project_trend,
)
from .readiness import ReadinessAssessment, evaluate_readiness

__all__ = [
    "filter_working_set",
    "sort_chronologically",
    "unique_traders",
    "HeatmapCell",
    "build_heatmap",
    "color_class",
    "resolve_timestamp",
    "MemoCell",
    "CorrelationPoint",
    "DisciplineFactor",
    "correlation_pair",
    "discipline_factor",
    "plan_efficiency",
    "TrendPoint",
    "project_reprogramming_log",
    "project_session_log",
    "project_trend",
    "ReadinessAssessment",
    "evaluate_readiness",
]
