"""
Injury Risk Scoring

Four independently capped components added into a 0-100 score:
- Load (max 40): EWMA ratio, strain and week-over-week load jumps
- Recovery (max 30): fatigued / recovering recovery markers
- Trend (max 20): worsening resting HR, HRV and sleep trends
- Monotony (max 10): lack of day-to-day load variety

Missing inputs contribute nothing to their component.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..analysis.recovery import RecoveryInsight, RecoveryStatus
from ..analysis.trends import MetricTrend, TrendStatus
from ..metrics.fitness import LoadSummary
from ..metrics.monotony import HIGH_MONOTONY, VERY_HIGH_MONOTONY
from ..models.inputs import MetricKind


logger = logging.getLogger(__name__)

LOAD_CAP = 40
RECOVERY_CAP = 30
TREND_CAP = 20
MONOTONY_CAP = 10

HIGH_STRAIN = 1500


class RiskLevel(str, Enum):
    LOW = "low"                 # [0, 25)
    MODERATE = "moderate"       # [25, 45)
    HIGH = "high"               # [45, 65)
    VERY_HIGH = "very_high"     # >= 65


class RiskCategory(str, Enum):
    LOAD = "load"
    RECOVERY = "recovery"
    TREND = "trend"
    MONOTONY = "monotony"


@dataclass
class RiskFactor:
    """One triggered risk condition."""

    description: str
    severity: int               # 1-10
    category: RiskCategory
    points: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "severity": self.severity,
            "category": self.category.value,
            "points": self.points,
        }


@dataclass
class InjuryRiskAssessment:
    """Composite overtraining risk."""

    score: float
    level: RiskLevel
    load_score: float
    recovery_score: float
    trend_score: float
    monotony_score: float
    factors: List[RiskFactor] = field(default_factory=list)
    recommendation: str = ""

    @property
    def component_total(self) -> float:
        return self.load_score + self.recovery_score + self.trend_score + self.monotony_score

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "score": round(self.score, 1),
            "level": self.level.value,
            "components": {
                "load": self.load_score,
                "recovery": self.recovery_score,
                "trend": self.trend_score,
                "monotony": self.monotony_score,
            },
            "factors": [f.to_dict() for f in self.factors],
            "recommendation": self.recommendation,
        }


# (warning points, declining points, warning severity, declining severity)
TREND_RISK_POINTS = {
    MetricKind.RESTING_HR: (7, 4, 6, 4),
    MetricKind.HRV: (8, 4, 7, 4),
    MetricKind.SLEEP: (5, 2, 5, 3),
}


def _load_component(summary: Optional[LoadSummary], factors: List[RiskFactor]) -> float:
    if summary is None:
        return 0.0

    points = 0
    ratio = summary.ewma_ratio
    if ratio > 1.5:
        points += 25
        factors.append(RiskFactor(
            f"Acute:chronic load ratio is {ratio:.2f} - well above the safe range",
            9, RiskCategory.LOAD, 25,
        ))
    elif ratio > 1.3:
        points += 18
        factors.append(RiskFactor(
            f"Acute:chronic load ratio is {ratio:.2f} - above the optimal range",
            7, RiskCategory.LOAD, 18,
        ))
    elif ratio > 1.15:
        points += 10
        factors.append(RiskFactor(
            f"Acute:chronic load ratio is {ratio:.2f} - approaching the upper limit",
            4, RiskCategory.LOAD, 10,
        ))

    if summary.strain > HIGH_STRAIN:
        points += 5
        factors.append(RiskFactor(
            f"Training strain is high ({summary.strain:.0f})",
            5, RiskCategory.LOAD, 5,
        ))

    change = summary.weekly_load_change_pct
    if change > 30:
        points += 10
        factors.append(RiskFactor(
            f"Weekly load jumped {change:.0f}% over last week",
            7, RiskCategory.LOAD, 10,
        ))
    elif change > 20:
        points += 5
        factors.append(RiskFactor(
            f"Weekly load increased {change:.0f}% over last week",
            4, RiskCategory.LOAD, 5,
        ))

    return float(min(points, LOAD_CAP))


def _recovery_component(
    insights: Sequence[RecoveryInsight],
    factors: List[RiskFactor],
) -> float:
    points = 0
    fatigued = [i for i in insights if i.status == RecoveryStatus.FATIGUED]
    strained = [
        i for i in insights
        if i.status in (RecoveryStatus.FATIGUED, RecoveryStatus.RECOVERING)
    ]

    if fatigued:
        points += 20
        names = ", ".join(i.metric.value for i in fatigued)
        factors.append(RiskFactor(
            f"Recovery markers show fatigue ({names})",
            8, RiskCategory.RECOVERY, 20,
        ))
    if len(strained) >= 2:
        points += 10
        factors.append(RiskFactor(
            "Multiple recovery markers are below baseline",
            6, RiskCategory.RECOVERY, 10,
        ))

    return float(min(points, RECOVERY_CAP))


def _trend_component(trends: Sequence[MetricTrend], factors: List[RiskFactor]) -> float:
    points = 0
    for trend in trends:
        weights = TREND_RISK_POINTS.get(trend.metric)
        if weights is None:
            continue
        warning_points, declining_points, warning_severity, declining_severity = weights
        if trend.status == TrendStatus.WARNING:
            points += warning_points
            factors.append(RiskFactor(
                f"{trend.name} trend is worsening sharply ({trend.context})",
                warning_severity, RiskCategory.TREND, warning_points,
            ))
        elif trend.status == TrendStatus.DECLINING:
            points += declining_points
            factors.append(RiskFactor(
                f"{trend.name} trend is declining ({trend.context})",
                declining_severity, RiskCategory.TREND, declining_points,
            ))

    return float(min(points, TREND_CAP))


def _monotony_component(summary: Optional[LoadSummary], factors: List[RiskFactor]) -> float:
    if summary is None:
        return 0.0

    if summary.monotony > VERY_HIGH_MONOTONY:
        factors.append(RiskFactor(
            f"Very high training monotony ({summary.monotony:.2f}) - vary session intensity",
            7, RiskCategory.MONOTONY, 10,
        ))
        return 10.0
    if summary.monotony > HIGH_MONOTONY:
        factors.append(RiskFactor(
            f"High training monotony ({summary.monotony:.2f})",
            5, RiskCategory.MONOTONY, 6,
        ))
        return 6.0
    return 0.0


def determine_risk_level(score: float) -> RiskLevel:
    """Map a 0-100 risk score to a level."""
    if score < 25:
        return RiskLevel.LOW
    elif score < 45:
        return RiskLevel.MODERATE
    elif score < 65:
        return RiskLevel.HIGH
    else:
        return RiskLevel.VERY_HIGH


def get_risk_recommendation(level: RiskLevel, factors: Sequence[RiskFactor]) -> str:
    """Recommendation text for a risk level."""
    if level == RiskLevel.VERY_HIGH:
        return "Multiple significant risk factors detected. Take immediate action to reduce injury risk."
    if level == RiskLevel.HIGH:
        return "Elevated injury risk. Be cautious with training progression and prioritize recovery."
    if level == RiskLevel.MODERATE:
        return "Some warning signs present. Monitor closely and adjust training if needed."
    if factors:
        return "Minor risk factors present but manageable. Continue monitoring trends."
    return "Continue current training and recovery practices."


def calculate_injury_risk(
    load_summary: Optional[LoadSummary] = None,
    recovery_insights: Optional[Sequence[RecoveryInsight]] = None,
    trends: Optional[Sequence[MetricTrend]] = None,
) -> InjuryRiskAssessment:
    """
    Score overtraining / injury risk from load, recovery and trend signals.

    Args:
        load_summary: Current load snapshot, None while the baseline builds
        recovery_insights: Recovery status of resting HR and HRV
        trends: Metric trends

    Returns:
        InjuryRiskAssessment with a score in [0, 100]
    """
    factors: List[RiskFactor] = []

    load_score = _load_component(load_summary, factors)
    recovery_score = _recovery_component(recovery_insights or [], factors)
    trend_score = _trend_component(trends or [], factors)
    monotony_score = _monotony_component(load_summary, factors)

    total = load_score + recovery_score + trend_score + monotony_score
    score = max(0.0, min(100.0, total))
    level = determine_risk_level(score)

    factors.sort(key=lambda f: f.severity, reverse=True)
    logger.info("Injury risk %.0f (%s), %d factors", score, level.value, len(factors))

    return InjuryRiskAssessment(
        score=score,
        level=level,
        load_score=load_score,
        recovery_score=recovery_score,
        trend_score=trend_score,
        monotony_score=monotony_score,
        factors=factors,
        recommendation=get_risk_recommendation(level, factors),
    )
