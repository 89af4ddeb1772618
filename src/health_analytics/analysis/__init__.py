"""
Analysis of physiological series.

Provides metric trend detection, recovery status against baseline, and
personal correlations between recovery inputs and performance.
"""

from .trends import (
    MetricTrend,
    TrendDirection,
    TrendPolicy,
    TrendStatus,
    analyze_trend,
    detect_trends,
)
from .recovery import (
    RecoveryInsight,
    RecoveryStatus,
    analyze_recovery_status,
)
from .correlations import (
    ActivityCorrelation,
    CorrelationConfidence,
    CorrelationFactor,
    ProteinRange,
    ProteinRecoveryInsight,
    analyze_hrv_vs_performance,
    analyze_protein_vs_recovery,
    analyze_sleep_vs_performance,
)

__all__ = [
    "MetricTrend",
    "TrendDirection",
    "TrendPolicy",
    "TrendStatus",
    "analyze_trend",
    "detect_trends",
    "RecoveryInsight",
    "RecoveryStatus",
    "analyze_recovery_status",
    "ActivityCorrelation",
    "CorrelationConfidence",
    "CorrelationFactor",
    "ProteinRange",
    "ProteinRecoveryInsight",
    "analyze_hrv_vs_performance",
    "analyze_protein_vs_recovery",
    "analyze_sleep_vs_performance",
]
