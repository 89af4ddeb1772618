"""
Personal correlations between recovery inputs and outcomes.

Surfaces the athlete's own patterns rather than generic advice:

- Sleep vs performance: workouts after 7+ hours of sleep against the rest
- HRV vs performance: workouts on above-average HRV days against the rest
- Protein vs recovery: next-day HRV and resting HR by daily protein intake

Each comparison is split per activity kind, because a ride measured in
watts and a run measured in mph cannot share an average.
"""

import logging
import statistics
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.inputs import ActivityKind, AnalysisSnapshot, MetricKind
from ..prediction.features import workout_performance
from ..prediction.regressors import pearson_r_squared


logger = logging.getLogger(__name__)

GOOD_SLEEP_HOURS = 7.0
MIN_SAMPLES = 5
MIN_PER_GROUP = 2
MIN_DIFFERENCE_PCT = 5.0
MIN_NUTRITION_DAYS = 10

# Kinds with a comparable performance measure (watts for rides, mph otherwise)
PERFORMANCE_KINDS = (ActivityKind.RUN, ActivityKind.RIDE, ActivityKind.WALK, ActivityKind.HIKE)

# (label, lower bound, upper bound) in grams
PROTEIN_RANGES: Tuple[Tuple[str, float, float], ...] = (
    ("<100g", 0.0, 100.0),
    ("100-130g", 100.0, 130.0),
    ("130-160g", 130.0, 160.0),
    (">160g", 160.0, 300.0),
)


class CorrelationConfidence(str, Enum):
    HIGH = "high"                   # 20+ samples
    MEDIUM = "medium"               # 10-19
    LOW = "low"                     # 5-9
    INSUFFICIENT = "insufficient"   # fewer than 5


class CorrelationFactor(str, Enum):
    SLEEP = "sleep"
    HRV = "hrv"


def confidence_for(sample_size: int) -> CorrelationConfidence:
    if sample_size >= 20:
        return CorrelationConfidence.HIGH
    if sample_size >= 10:
        return CorrelationConfidence.MEDIUM
    if sample_size >= MIN_SAMPLES:
        return CorrelationConfidence.LOW
    return CorrelationConfidence.INSUFFICIENT


def percent_difference(favorable: float, other: float) -> float:
    """Difference relative to the larger of the two averages."""
    baseline = max(favorable, other)
    if baseline <= 0:
        return 0.0
    return (favorable - other) / baseline * 100


@dataclass
class ActivityCorrelation:
    """Performance on favorable days against the rest, for one activity kind."""

    factor: CorrelationFactor
    activity: ActivityKind
    favorable_avg: float        # 7+ h sleep, or HRV at/above average
    other_avg: float
    percent_difference: float
    r_squared: float            # factor value against performance
    sample_size: int
    confidence: CorrelationConfidence

    @property
    def unit(self) -> str:
        return "W" if self.activity == ActivityKind.RIDE else "mph"

    @property
    def message(self) -> str:
        direction = "better" if self.percent_difference > 0 else "worse"
        if self.factor == CorrelationFactor.SLEEP:
            condition = "after 7+ hours of sleep"
        else:
            condition = "on days your HRV is above average"
        return (
            f"You perform {abs(self.percent_difference):.1f}% {direction} on "
            f"{self.activity.value}s {condition} ({self.confidence.value} confidence)"
        )

    def to_dict(self) -> dict:
        return {
            "factor": self.factor.value,
            "activity": self.activity.value,
            "unit": self.unit,
            "favorable_avg": round(self.favorable_avg, 2),
            "other_avg": round(self.other_avg, 2),
            "percent_difference": round(self.percent_difference, 1),
            "r_squared": round(self.r_squared, 3),
            "sample_size": self.sample_size,
            "confidence": self.confidence.value,
            "message": self.message,
        }


@dataclass
class _Samples:
    factor_values: List[float] = field(default_factory=list)
    performances: List[float] = field(default_factory=list)
    favorable: List[float] = field(default_factory=list)
    other: List[float] = field(default_factory=list)


def _summarize(
    factor: CorrelationFactor,
    grouped: Dict[ActivityKind, _Samples],
) -> List[ActivityCorrelation]:
    insights = []
    for activity, samples in grouped.items():
        total = len(samples.performances)
        if (
            total < MIN_SAMPLES
            or len(samples.favorable) < MIN_PER_GROUP
            or len(samples.other) < MIN_PER_GROUP
        ):
            logger.debug(
                "%s vs %s: %d favorable, %d other, not enough to compare",
                factor.value, activity.value, len(samples.favorable), len(samples.other),
            )
            continue

        favorable_avg = statistics.fmean(samples.favorable)
        other_avg = statistics.fmean(samples.other)
        difference = percent_difference(favorable_avg, other_avg)
        if abs(difference) < MIN_DIFFERENCE_PCT:
            continue

        insights.append(ActivityCorrelation(
            factor=factor,
            activity=activity,
            favorable_avg=favorable_avg,
            other_avg=other_avg,
            percent_difference=difference,
            r_squared=pearson_r_squared(samples.factor_values, samples.performances),
            sample_size=total,
            confidence=confidence_for(total),
        ))
    return sorted(insights, key=lambda i: abs(i.percent_difference), reverse=True)


def analyze_sleep_vs_performance(snapshot: AnalysisSnapshot) -> List[ActivityCorrelation]:
    """
    Compare performance after 7+ hours of sleep with performance after less.

    Each workout is paired with the previous night's sleep. An activity kind
    is reported only with 5+ paired workouts, 2+ on each side, and a
    difference of at least 5%.

    Returns:
        Insights ordered by the size of the difference
    """
    sleep_by_date = snapshot.lookup(MetricKind.SLEEP)
    grouped: Dict[ActivityKind, _Samples] = {}

    for workout in snapshot.workouts_until(snapshot.as_of):
        if workout.kind not in PERFORMANCE_KINDS:
            continue
        sleep = sleep_by_date.get(workout.day - timedelta(days=1))
        performance = workout_performance(workout)
        if sleep is None or not performance or performance <= 0:
            continue

        samples = grouped.setdefault(workout.kind, _Samples())
        samples.factor_values.append(sleep)
        samples.performances.append(performance)
        (samples.favorable if sleep >= GOOD_SLEEP_HOURS else samples.other).append(performance)

    return _summarize(CorrelationFactor.SLEEP, grouped)


def analyze_hrv_vs_performance(snapshot: AnalysisSnapshot) -> List[ActivityCorrelation]:
    """
    Compare performance on days HRV is at or above its average with the rest.

    The average is taken over every HRV point up to the analysis day; each
    workout uses the same day's HRV.
    """
    hrv_points = snapshot.series(MetricKind.HRV)
    if not hrv_points:
        return []
    hrv_average = statistics.fmean(p.value for p in hrv_points)
    hrv_by_date = {p.date: p.value for p in hrv_points}
    grouped: Dict[ActivityKind, _Samples] = {}

    for workout in snapshot.workouts_until(snapshot.as_of):
        if workout.kind not in PERFORMANCE_KINDS:
            continue
        hrv = hrv_by_date.get(workout.day)
        performance = workout_performance(workout)
        if hrv is None or not performance or performance <= 0:
            continue

        samples = grouped.setdefault(workout.kind, _Samples())
        samples.factor_values.append(hrv)
        samples.performances.append(performance)
        (samples.favorable if hrv >= hrv_average else samples.other).append(performance)

    return _summarize(CorrelationFactor.HRV, grouped)


@dataclass
class ProteinRange:
    """Next-day recovery averages for one band of daily protein intake."""

    label: str
    min_protein: float
    max_protein: float
    avg_hrv: float
    avg_resting_hr: float
    sample_size: int

    @property
    def recovery_score(self) -> float:
        """Higher HRV and lower resting HR are better; resting HR counts half."""
        return self.avg_hrv - self.avg_resting_hr * 0.5

    def contains(self, protein: float) -> bool:
        return self.min_protein <= protein < self.max_protein

    def to_dict(self) -> dict:
        return {
            "range": self.label,
            "min_protein": self.min_protein,
            "max_protein": self.max_protein,
            "avg_hrv": round(self.avg_hrv, 1),
            "avg_resting_hr": round(self.avg_resting_hr, 1),
            "recovery_score": round(self.recovery_score, 2),
            "sample_size": self.sample_size,
        }


@dataclass
class ProteinRecoveryInsight:
    """How daily protein relates to the next day's recovery markers."""

    ranges: List[ProteinRange]
    optimal_range: Optional[ProteinRange]
    current_average: float
    hrv_r_squared: float
    recommendation: str
    confidence: CorrelationConfidence

    def to_dict(self) -> dict:
        return {
            "ranges": [r.to_dict() for r in self.ranges],
            "optimal_range": self.optimal_range.label if self.optimal_range else None,
            "current_average": round(self.current_average, 1),
            "hrv_r_squared": round(self.hrv_r_squared, 3),
            "recommendation": self.recommendation,
            "confidence": self.confidence.value,
        }


def _protein_band(protein: float) -> Tuple[str, float, float]:
    for band in PROTEIN_RANGES:
        if protein < band[2]:
            return band
    return PROTEIN_RANGES[-1]


def _protein_recommendation(
    optimal: Optional[ProteinRange],
    current_average: float,
    ranges: Sequence[ProteinRange],
) -> str:
    if optimal is None:
        return "Continue tracking to identify your optimal protein intake."

    current = next((r for r in ranges if r.contains(current_average)), None)
    if current is not None and current.label == optimal.label:
        return (
            f"Your current protein intake ({current_average:.0f}g) is in the optimal range "
            f"for recovery. Next-day HRV averages {optimal.avg_hrv:.1f}ms in this range."
        )

    target = f"{optimal.min_protein:.0f}-{optimal.max_protein:.0f}g"
    if current is not None:
        hrv_diff = optimal.avg_hrv - current.avg_hrv
        return (
            f"Consider targeting {target} protein daily. Next-day HRV is "
            f"{abs(hrv_diff):.1f}ms {'higher' if hrv_diff > 0 else 'lower'} in that range."
        )
    return (
        f"Your best recovery follows {target} protein days. "
        f"Current average: {current_average:.0f}g."
    )


def analyze_protein_vs_recovery(snapshot: AnalysisSnapshot) -> ProteinRecoveryInsight:
    """
    Group complete nutrition days by protein intake and compare recovery.

    Each complete day is paired with the next day's HRV and resting HR. The
    range with the best recovery score is the optimal one. Fewer than 10
    complete days yields an insufficient-confidence insight with no ranges.
    """
    complete_days = [
        day for day in snapshot.nutrition
        if day.is_complete and day.date <= snapshot.as_of
    ]
    if len(complete_days) < MIN_NUTRITION_DAYS:
        missing = MIN_NUTRITION_DAYS - len(complete_days)
        return ProteinRecoveryInsight(
            ranges=[],
            optimal_range=None,
            current_average=0.0,
            hrv_r_squared=0.0,
            recommendation=f"Log complete nutrition for {missing} more days to unlock protein insights.",
            confidence=CorrelationConfidence.INSUFFICIENT,
        )

    hrv_by_date = {p.date: p.value for p in snapshot.series(MetricKind.HRV)}
    rhr_by_date = {p.date: p.value for p in snapshot.series(MetricKind.RESTING_HR)}

    groups: Dict[str, Tuple[List[float], List[float]]] = {}
    proteins: List[float] = []
    next_day_hrv: List[float] = []
    for day in complete_days:
        next_day: date = day.date + timedelta(days=1)
        hrv = hrv_by_date.get(next_day)
        rhr = rhr_by_date.get(next_day)
        if hrv is None or rhr is None:
            continue
        label = _protein_band(day.total_protein_grams)[0]
        hrvs, rhrs = groups.setdefault(label, ([], []))
        hrvs.append(hrv)
        rhrs.append(rhr)
        proteins.append(day.total_protein_grams)
        next_day_hrv.append(hrv)

    ranges = [
        ProteinRange(
            label=label,
            min_protein=low,
            max_protein=high,
            avg_hrv=statistics.fmean(groups[label][0]),
            avg_resting_hr=statistics.fmean(groups[label][1]),
            sample_size=len(groups[label][0]),
        )
        for label, low, high in PROTEIN_RANGES
        if label in groups
    ]
    optimal = max(ranges, key=lambda r: r.recovery_score) if ranges else None
    current_average = statistics.fmean(day.total_protein_grams for day in complete_days)
    paired = sum(r.sample_size for r in ranges)

    return ProteinRecoveryInsight(
        ranges=ranges,
        optimal_range=optimal,
        current_average=current_average,
        hrv_r_squared=pearson_r_squared(proteins, next_day_hrv),
        recommendation=_protein_recommendation(optimal, current_average, ranges),
        confidence=confidence_for(paired),
    )
