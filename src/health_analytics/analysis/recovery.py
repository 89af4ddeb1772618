"""Recovery status from resting heart rate and HRV against their baselines."""

import logging
import statistics
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from ..models.inputs import AnalysisSnapshot, DailyMetricPoint, MetricKind


logger = logging.getLogger(__name__)

MIN_RECOVERY_POINTS = 7
RECENT_DAYS = 3


class RecoveryStatus(str, Enum):
    RECOVERED = "recovered"
    STABLE = "stable"
    RECOVERING = "recovering"
    FATIGUED = "fatigued"


@dataclass
class RecoveryInsight:
    """Recent average of a recovery marker against its own baseline."""

    metric: MetricKind
    current_value: float
    baseline_value: float
    status: RecoveryStatus
    message: str

    def to_dict(self) -> dict:
        return {
            "metric": self.metric.value,
            "current_value": round(self.current_value, 1),
            "baseline_value": round(self.baseline_value, 1),
            "status": self.status.value,
            "message": self.message,
        }


def _split(points: Sequence[DailyMetricPoint]):
    recent = [p.value for p in points[-RECENT_DAYS:]]
    baseline = [p.value for p in points[:-RECENT_DAYS]]
    return statistics.fmean(recent), statistics.fmean(baseline)


def analyze_resting_hr(points: Sequence[DailyMetricPoint]) -> Optional[RecoveryInsight]:
    """Classify resting HR by its bpm difference from baseline."""
    if len(points) < MIN_RECOVERY_POINTS:
        return None

    recent_avg, baseline_avg = _split(points)
    difference = recent_avg - baseline_avg

    if difference <= -3:
        status = RecoveryStatus.RECOVERED
        message = f"Your resting heart rate is {abs(difference):.0f} bpm below baseline - excellent recovery!"
    elif difference <= -1:
        status = RecoveryStatus.RECOVERED
        message = "Resting heart rate slightly below baseline - good recovery"
    elif difference <= 2:
        status = RecoveryStatus.STABLE
        message = "Resting heart rate is stable at baseline"
    elif difference <= 5:
        status = RecoveryStatus.RECOVERING
        message = f"Resting heart rate is {difference:.0f} bpm above baseline - consider easy training"
    else:
        status = RecoveryStatus.FATIGUED
        message = f"Resting heart rate is {difference:.0f} bpm elevated - prioritize recovery"

    return RecoveryInsight(
        metric=MetricKind.RESTING_HR,
        current_value=recent_avg,
        baseline_value=baseline_avg,
        status=status,
        message=message,
    )


def analyze_hrv(points: Sequence[DailyMetricPoint]) -> Optional[RecoveryInsight]:
    """Classify HRV by its percent difference from baseline."""
    if len(points) < MIN_RECOVERY_POINTS:
        return None

    recent_avg, baseline_avg = _split(points)
    percent_diff = (recent_avg - baseline_avg) / baseline_avg * 100 if baseline_avg else 0.0

    if percent_diff >= 10:
        status = RecoveryStatus.RECOVERED
        message = f"HRV is {percent_diff:.0f}% above baseline - well recovered!"
    elif percent_diff >= 5:
        status = RecoveryStatus.RECOVERED
        message = "HRV slightly elevated - good recovery status"
    elif percent_diff >= -5:
        status = RecoveryStatus.STABLE
        message = "HRV is stable at baseline"
    elif percent_diff >= -15:
        status = RecoveryStatus.RECOVERING
        message = f"HRV is {abs(percent_diff):.0f}% below baseline - monitor recovery"
    else:
        status = RecoveryStatus.FATIGUED
        message = "HRV significantly suppressed - prioritize rest and recovery"

    return RecoveryInsight(
        metric=MetricKind.HRV,
        current_value=recent_avg,
        baseline_value=baseline_avg,
        status=status,
        message=message,
    )


def analyze_recovery_status(snapshot: AnalysisSnapshot) -> List[RecoveryInsight]:
    """Recovery insights for resting HR and HRV, where there is enough data."""
    insights = []
    for insight in (
        analyze_resting_hr(snapshot.series(MetricKind.RESTING_HR)),
        analyze_hrv(snapshot.series(MetricKind.HRV)),
    ):
        if insight is not None:
            logger.debug("%s recovery: %s", insight.metric.value, insight.status.value)
            insights.append(insight)
    return insights
