"""Training load, injury risk, readiness and performance analytics for one athlete."""

from .models.inputs import (
    ActivityKind,
    AnalysisSnapshot,
    DailyMetricPoint,
    DataFingerprint,
    MetricKind,
    NutritionDay,
    WorkoutEvent,
)
from .metrics import (
    LoadSummary,
    aggregate_daily_loads,
    calculate_load_summary,
    calculate_monotony,
)
from .analysis import (
    MetricTrend,
    analyze_hrv_vs_performance,
    analyze_protein_vs_recovery,
    analyze_sleep_vs_performance,
    detect_trends,
)
from .recommendations import (
    DailyInstruction,
    InjuryRiskAssessment,
    ReadinessScore,
    calculate_injury_risk,
    calculate_readiness,
    generate_daily_instruction,
)
from .prediction import PerformancePredictor, TrainedModel
from .services import AnalysisResult, AnalysisService

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Inputs
    "ActivityKind",
    "AnalysisSnapshot",
    "DailyMetricPoint",
    "DataFingerprint",
    "MetricKind",
    "NutritionDay",
    "WorkoutEvent",
    # Metrics
    "LoadSummary",
    "aggregate_daily_loads",
    "calculate_load_summary",
    "calculate_monotony",
    # Analysis
    "MetricTrend",
    "analyze_hrv_vs_performance",
    "analyze_protein_vs_recovery",
    "analyze_sleep_vs_performance",
    "detect_trends",
    # Recommendations
    "DailyInstruction",
    "InjuryRiskAssessment",
    "ReadinessScore",
    "calculate_injury_risk",
    "calculate_readiness",
    "generate_daily_instruction",
    # Prediction
    "PerformancePredictor",
    "TrainedModel",
    # Service
    "AnalysisResult",
    "AnalysisService",
]
