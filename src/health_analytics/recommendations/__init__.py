"""Injury risk, readiness scoring and the daily coaching instruction."""

from .coaching import DailyInstruction, DailyStatus, generate_daily_instruction
from .injury_risk import InjuryRiskAssessment, RiskLevel, calculate_injury_risk
from .readiness import ReadinessScore, ReadinessTrend, calculate_readiness

__all__ = [
    "DailyInstruction",
    "DailyStatus",
    "generate_daily_instruction",
    "InjuryRiskAssessment",
    "RiskLevel",
    "calculate_injury_risk",
    "ReadinessScore",
    "ReadinessTrend",
    "calculate_readiness",
]
