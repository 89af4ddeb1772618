"""
Daily Coaching Instruction

Turns the day's load ratio and recovery signals into one instruction:
- Perform: load ratio 0.8-1.3 and no fatigue signal
- Recover: load ratio above 1.3, or any recovery metric fatigued
- Baseline: load ratio below 0.8

Adds the strongest sleep pattern as a tip, and a target when a
performance prediction is available.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from ..analysis.correlations import ActivityCorrelation
from ..analysis.recovery import RecoveryInsight, RecoveryStatus
from ..metrics.fitness import LoadSummary
from ..prediction.predictor import Prediction


logger = logging.getLogger(__name__)

PERFORM_MIN_RATIO = 0.8
PERFORM_MAX_RATIO = 1.3
TIP_MIN_DIFFERENCE_PCT = 5.0


class DailyStatus(str, Enum):
    PERFORM = "perform"
    BASELINE = "baseline"
    RECOVER = "recover"


HEADLINES = {
    DailyStatus.PERFORM: (
        "Ready to Perform",
        "Your training load and recovery are in sync. Today is a good day for intensity.",
    ),
    DailyStatus.RECOVER: (
        "Focus on Recovery",
        "Fatigue signals are elevated. Consider a rest day or very light activity.",
    ),
    DailyStatus.BASELINE: (
        "Building Base",
        "Your load is low. Focus on consistent, steady-state movement today.",
    ),
}


@dataclass
class DailyInstruction:
    """The day's coaching instruction."""

    status: DailyStatus
    headline: str
    subline: str
    load_ratio: float
    insight: Optional[str] = None
    target: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "headline": self.headline,
            "subline": self.subline,
            "load_ratio": round(self.load_ratio, 2),
            "insight": self.insight,
            "target": self.target,
        }


def determine_daily_status(load_ratio: float, recovery: Sequence[RecoveryInsight]) -> DailyStatus:
    fatigued = any(r.status == RecoveryStatus.FATIGUED for r in recovery)
    if load_ratio > PERFORM_MAX_RATIO or fatigued:
        return DailyStatus.RECOVER
    if load_ratio >= PERFORM_MIN_RATIO:
        return DailyStatus.PERFORM
    return DailyStatus.BASELINE


def _sleep_tip(sleep_performance: Sequence[ActivityCorrelation]) -> Optional[str]:
    for correlation in sleep_performance:
        if abs(correlation.percent_difference) > TIP_MIN_DIFFERENCE_PCT:
            return f"Coach's tip: {correlation.message}."
    return None


def _target(status: DailyStatus, prediction: Optional[Prediction]) -> Optional[str]:
    if status == DailyStatus.RECOVER:
        return "Keep heart rate below zone 2 or take a complete rest day."
    if status == DailyStatus.PERFORM and prediction is not None:
        return (
            f"Aim for an average of {prediction.predicted_value:.1f} {prediction.unit} "
            f"on your {prediction.activity.value}."
        )
    return None


def generate_daily_instruction(
    load_summary: Optional[LoadSummary],
    recovery: Sequence[RecoveryInsight],
    sleep_performance: Sequence[ActivityCorrelation] = (),
    prediction: Optional[Prediction] = None,
) -> DailyInstruction:
    """
    Build the day's instruction.

    Args:
        load_summary: Current load; without one the ratio counts as 0
        recovery: Recovery insights for the day
        sleep_performance: Sleep vs performance patterns, strongest first
        prediction: Today's predicted performance, if any

    Returns:
        DailyInstruction
    """
    load_ratio = load_summary.ewma_ratio if load_summary else 0.0
    status = determine_daily_status(load_ratio, recovery)
    headline, subline = HEADLINES[status]

    instruction = DailyInstruction(
        status=status,
        headline=headline,
        subline=subline,
        load_ratio=load_ratio,
        insight=_sleep_tip(sleep_performance),
        target=_target(status, prediction),
    )
    logger.debug("Daily instruction: %s (ratio %.2f)", status.value, load_ratio)
    return instruction
