"""
Readiness Score Calculation

Combines three capped sub-scores into a 0-100 readiness score:
- Recovery (max 40): HRV and resting HR against baseline, recent sleep
- Fitness (max 30): session consistency and volume over the last 14 days
- Fatigue (max 30): acute:chronic load ratio, nudged by recovery quality

Also classifies where readiness is heading and projects it 7 days forward.
"""

import logging
import statistics
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..metrics.fitness import LoadSummary
from ..models.inputs import DailyMetricPoint, WorkoutEvent


logger = logging.getLogger(__name__)

RECOVERY_CAP = 40
FITNESS_CAP = 30
FATIGUE_CAP = 30

FITNESS_WINDOW_DAYS = 14
RECENT_WORK_DAYS = 3
TRAJECTORY_DAYS = 7


class ReadinessTrend(str, Enum):
    IMPROVING = "improving"         # getting stronger / fresher
    MAINTAINING = "maintaining"
    DECLINING = "declining"
    PEAKING = "peaking"             # high score with recent hard work
    RECOVERING = "recovering"       # rest days paying off


class ReadinessConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"                     # still building a baseline


@dataclass
class ReadinessBreakdown:
    """Sub-scores and what drove them."""

    recovery: int
    fitness: int
    fatigue: int
    recovery_details: str = ""
    fitness_details: str = ""
    fatigue_details: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recovery": self.recovery,
            "fitness": self.fitness,
            "fatigue": self.fatigue,
            "recovery_details": self.recovery_details,
            "fitness_details": self.fitness_details,
            "fatigue_details": self.fatigue_details,
        }


@dataclass
class TrajectoryPoint:
    """Projected readiness for one future day."""

    day_offset: int
    date: date
    score: int
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day_offset": self.day_offset,
            "date": self.date.isoformat(),
            "score": self.score,
            "confidence": self.confidence,
        }


@dataclass
class ReadinessScore:
    """How ready the athlete is today."""

    date: date
    score: int
    trend: ReadinessTrend
    confidence: ReadinessConfidence
    breakdown: ReadinessBreakdown
    recommendation: str
    trajectory: List[TrajectoryPoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "date": self.date.isoformat(),
            "score": self.score,
            "trend": self.trend.value,
            "confidence": self.confidence.value,
            "breakdown": self.breakdown.to_dict(),
            "recommendation": self.recommendation,
            "trajectory": [p.to_dict() for p in self.trajectory],
        }


def _mean(values: Sequence[float]) -> float:
    return statistics.fmean(values) if values else 0.0


def _recent_vs_baseline(points: Sequence[DailyMetricPoint]) -> Tuple[float, float]:
    """Last 7 days against the up-to-28 days before them."""
    recent = [p.value for p in points[-7:]]
    baseline = [p.value for p in points[-35:-7]]
    recent_avg = _mean(recent)
    baseline_avg = _mean(baseline) if baseline else recent_avg
    return recent_avg, baseline_avg


def calculate_recovery_score(
    hrv: Sequence[DailyMetricPoint],
    resting_hr: Sequence[DailyMetricPoint],
    sleep: Sequence[DailyMetricPoint],
) -> Tuple[int, str]:
    """
    Recovery sub-score (0-40) from HRV, resting HR and sleep.

    Args:
        hrv: Date-sorted HRV points
        resting_hr: Date-sorted resting HR points
        sleep: Date-sorted sleep-hours points

    Returns:
        (score, details) tuple
    """
    score = 0
    factors = []

    if hrv:
        recent_avg, baseline_avg = _recent_vs_baseline(hrv)
        change = (recent_avg - baseline_avg) / baseline_avg * 100 if baseline_avg else 0.0
        if change >= 5:
            score += 15
            factors.append(f"HRV elevated +{change:.0f}% (excellent recovery)")
        elif change >= 0:
            score += 12
            factors.append("HRV stable (good recovery)")
        elif change >= -5:
            score += 8
            factors.append("HRV slightly down (monitoring)")
        else:
            score += 3
            factors.append("HRV suppressed (poor recovery)")

    if resting_hr:
        recent_avg, baseline_avg = _recent_vs_baseline(resting_hr)
        change = recent_avg - baseline_avg
        if change <= -2:
            score += 15
            factors.append(f"RHR down {abs(change):.0f}bpm (excellent)")
        elif change <= 0:
            score += 12
            factors.append("RHR stable (good)")
        elif change <= 3:
            score += 7
            factors.append(f"RHR up {change:.0f}bpm (watch)")
        else:
            score += 2
            factors.append(f"RHR elevated +{change:.0f}bpm (poor)")

    if sleep:
        avg_sleep = _mean([p.value for p in sleep[-7:]])
        if avg_sleep >= 8.0:
            score += 10
            factors.append(f"Sleep excellent ({avg_sleep:.1f}h)")
        elif avg_sleep >= 7.0:
            score += 7
            factors.append(f"Sleep adequate ({avg_sleep:.1f}h)")
        elif avg_sleep >= 6.0:
            score += 4
            factors.append(f"Sleep suboptimal ({avg_sleep:.1f}h)")
        else:
            score += 1
            factors.append(f"Sleep insufficient ({avg_sleep:.1f}h)")

    return min(score, RECOVERY_CAP), " • ".join(factors)


def _workouts_between(
    workouts: Sequence[WorkoutEvent],
    as_of: date,
    days: int,
) -> List[WorkoutEvent]:
    """Workouts on the last ``days`` calendar days, ``as_of`` included."""
    start = as_of - timedelta(days=days - 1)
    return [w for w in workouts if start <= w.day <= as_of]


def calculate_fitness_score(
    workouts: Sequence[WorkoutEvent],
    as_of: date,
) -> Tuple[int, str]:
    """Fitness sub-score (0-30) from the last 14 days of sessions."""
    recent = _workouts_between(workouts, as_of, FITNESS_WINDOW_DAYS)
    count = len(recent)
    avg_minutes = _mean([w.duration_minutes for w in recent])

    score = 0
    factors = []

    if count >= 8:
        score += 15
        factors.append(f"{count} sessions in 14 days (excellent consistency)")
    elif count >= 5:
        score += 12
        factors.append(f"{count} sessions in 14 days (good)")
    elif count >= 3:
        score += 8
        factors.append(f"{count} sessions in 14 days (moderate)")
    else:
        score += 4
        factors.append(f"{count} sessions in 14 days (building)")

    if avg_minutes >= 60:
        score += 15
        factors.append("Quality volume maintained")
    elif avg_minutes >= 40:
        score += 12
        factors.append("Good training volume")
    elif avg_minutes >= 30:
        score += 8
        factors.append("Moderate volume")
    elif avg_minutes > 0:
        score += 5
        factors.append("Building volume")

    return min(score, FITNESS_CAP), " • ".join(factors)


def calculate_fatigue_score(
    load_summary: Optional[LoadSummary],
    recovery_score: int,
) -> Tuple[int, str]:
    """Fatigue sub-score (0-30): starts full, loses points for load."""
    score = FATIGUE_CAP
    factors = []

    if load_summary is not None:
        ratio = load_summary.ewma_ratio
        if ratio < 0.8:
            factors.append("Training load low (fresh)")
        elif ratio <= 1.0:
            score -= 3
            factors.append("Training load optimal")
        elif ratio <= 1.3:
            score -= 7
            factors.append("Training load building")
        elif ratio <= 1.5:
            score -= 15
            factors.append(f"Elevated fatigue (ACR: {ratio:.2f})")
        else:
            score -= 25
            factors.append(f"High fatigue risk (ACR: {ratio:.2f})")

    if recovery_score < 20:
        score -= 5
        factors.append("Recovery not keeping pace")
    elif recovery_score >= 35:
        score += 5
        factors.append("Strong recovery response")

    return max(0, min(score, FATIGUE_CAP)), " • ".join(factors)


def _recovery_change(
    hrv: Sequence[DailyMetricPoint],
    resting_hr: Sequence[DailyMetricPoint],
) -> Optional[float]:
    """Percent change of the last 3 days against the previous 4.

    HRV is the primary series. Resting HR stands in with the sign inverted
    (a falling resting HR is an improvement).
    """
    if len(hrv) >= 7:
        series, sign = hrv, 1.0
    elif len(resting_hr) >= 7:
        series, sign = resting_hr, -1.0
    else:
        return None

    recent_avg = _mean([p.value for p in series[-3:]])
    previous_avg = _mean([p.value for p in series[-7:-3]])
    if previous_avg == 0:
        return 0.0
    return sign * (recent_avg - previous_avg) / previous_avg * 100


def determine_trend(
    hrv: Sequence[DailyMetricPoint],
    resting_hr: Sequence[DailyMetricPoint],
    workouts: Sequence[WorkoutEvent],
    score: int,
    as_of: date,
) -> ReadinessTrend:
    """Classify where readiness is heading."""
    change = _recovery_change(hrv, resting_hr)
    if change is None:
        return ReadinessTrend.MAINTAINING

    recent_work = _workouts_between(workouts, as_of, RECENT_WORK_DAYS)

    if score >= 75 and change > 3 and recent_work:
        return ReadinessTrend.PEAKING
    if not recent_work and change > 2:
        return ReadinessTrend.RECOVERING
    if change > 5:
        return ReadinessTrend.IMPROVING
    elif change < -5:
        return ReadinessTrend.DECLINING
    return ReadinessTrend.MAINTAINING


def _trajectory_delta(trend: ReadinessTrend, day_offset: int) -> int:
    if trend == ReadinessTrend.IMPROVING:
        return 2 * day_offset
    if trend == ReadinessTrend.DECLINING:
        return -2 * day_offset
    if trend == ReadinessTrend.PEAKING:
        return day_offset if day_offset <= 3 else -day_offset
    if trend == ReadinessTrend.RECOVERING:
        return 3 * day_offset
    return 0


def generate_trajectory(score: int, trend: ReadinessTrend, as_of: date) -> List[TrajectoryPoint]:
    """Project readiness over the next 7 days."""
    trajectory = []
    for day_offset in range(1, TRAJECTORY_DAYS + 1):
        predicted = max(0, min(100, score + _trajectory_delta(trend, day_offset)))
        trajectory.append(TrajectoryPoint(
            day_offset=day_offset,
            date=as_of + timedelta(days=day_offset),
            score=predicted,
            confidence=round(1.0 - 0.1 * day_offset, 2),
        ))
    return trajectory


def determine_confidence(
    hrv_days: int,
    resting_hr_days: int,
    sleep_days: int,
    workout_days: int,
) -> ReadinessConfidence:
    """Confidence tier from history length and metric coverage."""
    counts = (hrv_days, resting_hr_days, sleep_days, workout_days)
    total_days = max(counts)
    coverage = sum(1 for c in counts if c > 0)

    if total_days >= 14 and coverage >= 3:
        return ReadinessConfidence.HIGH
    elif total_days >= 7 and coverage >= 2:
        return ReadinessConfidence.MEDIUM
    return ReadinessConfidence.LOW


def get_readiness_recommendation(
    score: int,
    trend: ReadinessTrend,
    recovery_score: int,
    fatigue_score: int,
) -> str:
    """Training recommendation for a readiness score."""
    if score < 40 and recovery_score < 15:
        return "RECOVERY NEEDED: Your body needs rest. Take a complete rest day or very light active recovery only."
    if score < 50 and fatigue_score < 10:
        return "HIGH FATIGUE: Limit to easy aerobic work today. Hard sessions will dig a deeper hole."
    if score >= 80 and trend == ReadinessTrend.PEAKING:
        return "PRIME WINDOW: You're primed for a breakthrough session. Go after that PR or race hard!"
    if score >= 75 and recovery_score >= 30:
        return "READY FOR QUALITY: Great day for intervals, tempo, or other high-quality work."
    if score >= 65:
        return "GOOD TO GO: Normal training can proceed. Listen to your body on intensity."
    if score >= 55:
        return "MODERATE DAY: Stick to moderate efforts. Save hard work for when you're fresher."
    if score >= 45:
        return "EASY DAY: Focus on easy aerobic work and recovery. Your body is still adapting."
    return "REST OR RECOVERY: Prioritize recovery activities. Let your body catch up."


def calculate_readiness(
    hrv: Sequence[DailyMetricPoint],
    resting_hr: Sequence[DailyMetricPoint],
    sleep: Sequence[DailyMetricPoint],
    workouts: Sequence[WorkoutEvent],
    load_summary: Optional[LoadSummary],
    as_of: date,
) -> Optional[ReadinessScore]:
    """
    Calculate today's readiness score.

    Args:
        hrv: Date-sorted HRV points up to ``as_of``
        resting_hr: Date-sorted resting HR points up to ``as_of``
        sleep: Date-sorted sleep points up to ``as_of``
        workouts: Workouts up to ``as_of``
        load_summary: Current load snapshot, None while the baseline builds
        as_of: Day being scored

    Returns:
        ReadinessScore, or None without HRV/resting HR or without sleep
    """
    if (not hrv and not resting_hr) or not sleep:
        logger.debug("Insufficient data for readiness analysis")
        return None

    recovery, recovery_details = calculate_recovery_score(hrv, resting_hr, sleep)
    fitness, fitness_details = calculate_fitness_score(workouts, as_of)
    fatigue, fatigue_details = calculate_fatigue_score(load_summary, recovery)

    score = recovery + fitness + fatigue
    trend = determine_trend(hrv, resting_hr, workouts, score, as_of)
    confidence = determine_confidence(
        hrv_days=len(hrv),
        resting_hr_days=len(resting_hr),
        sleep_days=len(sleep),
        workout_days=len({w.day for w in workouts}),
    )

    logger.info(
        "Readiness %d (recovery %d, fitness %d, fatigue %d), trend %s",
        score, recovery, fitness, fatigue, trend.value,
    )

    return ReadinessScore(
        date=as_of,
        score=score,
        trend=trend,
        confidence=confidence,
        breakdown=ReadinessBreakdown(
            recovery=recovery,
            fitness=fitness,
            fatigue=fatigue,
            recovery_details=recovery_details,
            fitness_details=fitness_details,
            fatigue_details=fatigue_details,
        ),
        recommendation=get_readiness_recommendation(score, trend, recovery, fatigue),
        trajectory=generate_trajectory(score, trend, as_of),
    )
