"""
Physiological Trend Detection

Two-window comparison of a daily metric: the earlier half of the analysis
window is the baseline, the recent half is compared against it.
"""

import logging
import statistics
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..models.inputs import AnalysisSnapshot, DailyMetricPoint, MetricKind


logger = logging.getLogger(__name__)

MIN_TREND_POINTS = 14
STABLE_THRESHOLD_PCT = 5.0
WARNING_THRESHOLD_PCT = 10.0


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class TrendStatus(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    WARNING = "warning"     # sharp decline, or declining outside the target range


@dataclass(frozen=True)
class TrendPolicy:
    """How one metric is judged."""

    metric: MetricKind
    name: str
    unit: str
    lower_is_better: bool = False
    max_days: int = 90
    target_range: Optional[Tuple[float, float]] = None

    def in_target(self, value: float) -> Optional[bool]:
        """Whether ``value`` is in the target range, None without a range."""
        if self.target_range is None:
            return None
        low, high = self.target_range
        return low <= value <= high


# HRV reacts within days, so only the last two weeks are compared
TREND_POLICIES: Dict[MetricKind, TrendPolicy] = {
    MetricKind.HRV: TrendPolicy(MetricKind.HRV, "HRV", "ms", max_days=14),
    MetricKind.RESTING_HR: TrendPolicy(
        MetricKind.RESTING_HR, "Resting Heart Rate", "bpm", lower_is_better=True
    ),
    MetricKind.SLEEP: TrendPolicy(
        MetricKind.SLEEP, "Sleep Duration", "hours", target_range=(7.0, 9.0)
    ),
    MetricKind.STEPS: TrendPolicy(MetricKind.STEPS, "Daily Steps", "steps"),
    MetricKind.WEIGHT: TrendPolicy(
        MetricKind.WEIGHT, "Body Weight", "lbs", lower_is_better=True
    ),
}


@dataclass
class MetricTrend:
    """Change in one physiological metric over the analysis window."""

    metric: MetricKind
    name: str
    current_avg: float          # recent half
    baseline_avg: float         # earlier half
    direction: TrendDirection
    pct_change: float
    status: TrendStatus
    lower_is_better: bool
    data_points: int
    context: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "metric": self.metric.value,
            "name": self.name,
            "current_avg": round(self.current_avg, 2),
            "baseline_avg": round(self.baseline_avg, 2),
            "direction": self.direction.value,
            "pct_change": round(self.pct_change, 1),
            "status": self.status.value,
            "lower_is_better": self.lower_is_better,
            "data_points": self.data_points,
            "context": self.context,
            "message": self.message,
        }


def _percent_change(earlier: float, recent: float) -> float:
    if earlier == 0:
        return 0.0
    return (recent - earlier) / earlier * 100


def _format_value(policy: TrendPolicy, value: float) -> str:
    if policy.metric == MetricKind.STEPS:
        return f"{int(value):,}"
    return f"{value:.1f}"


def _classify(
    pct_change: float,
    recent_avg: float,
    policy: TrendPolicy,
) -> Tuple[TrendDirection, TrendStatus]:
    if abs(pct_change) < STABLE_THRESHOLD_PCT:
        return TrendDirection.STABLE, TrendStatus.STABLE

    direction = TrendDirection.INCREASING if pct_change > 0 else TrendDirection.DECREASING
    favourable = (direction == TrendDirection.DECREASING) == policy.lower_is_better
    if favourable:
        return direction, TrendStatus.IMPROVING

    if abs(pct_change) >= WARNING_THRESHOLD_PCT or policy.in_target(recent_avg) is False:
        return direction, TrendStatus.WARNING
    return direction, TrendStatus.DECLINING


def _trend_message(
    policy: TrendPolicy,
    status: TrendStatus,
    pct_change: float,
    recent_avg: float,
) -> str:
    value = _format_value(policy, recent_avg)
    in_target = policy.in_target(recent_avg)

    if status == TrendStatus.IMPROVING:
        message = f"{policy.name} is improving by {abs(pct_change):.1f}% (now {value} {policy.unit})"
        if in_target:
            message += " - in optimal range!"
        return message

    if status in (TrendStatus.DECLINING, TrendStatus.WARNING):
        message = f"{policy.name} has declined by {abs(pct_change):.1f}% (now {value} {policy.unit})"
        if in_target is False:
            low, _ = policy.target_range
            side = "below" if recent_avg < low else "above"
            message += f" - {side} optimal range"
        return message

    message = f"{policy.name} is stable at {value} {policy.unit}"
    if in_target is True:
        message += " - maintaining optimal range"
    elif in_target is False:
        message += " - consider adjusting to reach optimal range"
    return message


def analyze_trend(
    points: Sequence[DailyMetricPoint],
    policy: TrendPolicy,
) -> Optional[MetricTrend]:
    """
    Compare the recent half of a metric series against the earlier half.

    Args:
        points: Date-sorted, one-per-day points of a single metric
        policy: Window cap, direction preference and target range

    Returns:
        MetricTrend, or None with fewer than 14 points
    """
    if len(points) < MIN_TREND_POINTS:
        return None

    window = list(points)[-policy.max_days:]
    midpoint = len(window) // 2
    earlier_avg = statistics.fmean(p.value for p in window[:midpoint])
    recent_avg = statistics.fmean(p.value for p in window[midpoint:])

    pct_change = _percent_change(earlier_avg, recent_avg)
    direction, status = _classify(pct_change, recent_avg, policy)

    return MetricTrend(
        metric=policy.metric,
        name=policy.name,
        current_avg=recent_avg,
        baseline_avg=earlier_avg,
        direction=direction,
        pct_change=pct_change,
        status=status,
        lower_is_better=policy.lower_is_better,
        data_points=len(window),
        context=f"{pct_change:+.1f}% vs baseline",
        message=_trend_message(policy, status, pct_change, recent_avg),
    )


def detect_trends(snapshot: AnalysisSnapshot) -> List[MetricTrend]:
    """Trend of every metric with enough history, in MetricKind order."""
    trends = []
    for kind in MetricKind:
        trend = analyze_trend(snapshot.series(kind), TREND_POLICIES[kind])
        if trend is None:
            logger.debug("Not enough %s data for a trend", kind.value)
            continue
        logger.debug("%s trend: %s (%s)", kind.value, trend.status.value, trend.context)
        trends.append(trend)
    return trends
