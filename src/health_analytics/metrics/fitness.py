"""Acute:chronic workload model (rolling averages, EWMA, ACWR)."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .load import load_window
from .monotony import calculate_monotony_result


logger = logging.getLogger(__name__)

ACUTE_DAYS = 7
CHRONIC_DAYS = 28
EWMA_ACUTE_TIME_CONSTANT = 7
EWMA_CHRONIC_TIME_CONSTANT = 42


class LoadStatus(str, Enum):
    """ACWR bands."""
    FRESH = "fresh"                  # < 0.8, detraining
    OPTIMAL = "optimal"              # 0.8 - 1.3
    FATIGUED = "fatigued"            # 1.3 - 1.5, building
    OVERREACHING = "overreaching"    # > 1.5, danger


LOAD_STATUS_RECOMMENDATIONS: Dict[LoadStatus, str] = {
    LoadStatus.FRESH: "You're well-rested. Good time for hard training or racing.",
    LoadStatus.OPTIMAL: "Training load is in the optimal range. Keep up the good work!",
    LoadStatus.FATIGUED: "Training load is high. Consider adding recovery days.",
    LoadStatus.OVERREACHING: "High risk of overtraining. Prioritize rest and recovery.",
}


@dataclass
class LoadSummary:
    """Point-in-time fatigue/freshness snapshot."""

    as_of: date
    acute_load: float  # mean of the last 7 days
    chronic_load: float  # mean of the last 28 days
    ratio: float  # acute / chronic
    ewma_acute: float
    ewma_chronic: float
    ewma_ratio: float
    monotony: float
    strain: float
    weekly_load_change_pct: float
    status: LoadStatus  # from the EWMA ratio
    ratio_status: LoadStatus  # from the simple ratio
    recommendation: str

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "as_of": self.as_of.isoformat(),
            "acute_load": round(self.acute_load, 1),
            "chronic_load": round(self.chronic_load, 1),
            "ratio": round(self.ratio, 2),
            "ewma_acute": round(self.ewma_acute, 1),
            "ewma_chronic": round(self.ewma_chronic, 1),
            "ewma_ratio": round(self.ewma_ratio, 2),
            "monotony": round(self.monotony, 2),
            "strain": round(self.strain, 1),
            "weekly_load_change_pct": round(self.weekly_load_change_pct, 1),
            "status": self.status.value,
            "ratio_status": self.ratio_status.value,
            "recommendation": self.recommendation,
        }


@dataclass
class AcwrPoint:
    """EWMA ratio as it stood on one day."""

    date: date
    ratio: float

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "ratio": round(self.ratio, 2)}


def calculate_ewma(
    current_value: float,
    previous_ewma: float,
    time_constant: int,
) -> float:
    """
    Exponentially Weighted Moving Average.

    Uses the formula: EWMA_n = value * alpha + EWMA_{n-1} * (1 - alpha)
    where alpha = 2 / (time_constant + 1)

    Args:
        current_value: Today's training load
        previous_ewma: Yesterday's EWMA value
        time_constant: Nominal window in days (7 acute, 42 chronic)

    Returns:
        New EWMA value
    """
    alpha = 2 / (time_constant + 1)
    return current_value * alpha + previous_ewma * (1 - alpha)


def calculate_ewma_loads(
    daily_loads: Dict[date, float],
    as_of: date,
) -> Tuple[float, float]:
    """
    EWMA acute and chronic loads as of a day.

    Walks the trailing 42 days oldest first with both accumulators starting
    at 0. The chronic accumulator sees every day, the acute accumulator only
    the most recent 7.

    Args:
        daily_loads: Sparse date -> load mapping
        as_of: Last day included

    Returns:
        (ewma_acute, ewma_chronic)
    """
    window = load_window(daily_loads, as_of, EWMA_CHRONIC_TIME_CONSTANT)
    acute_start = len(window) - ACUTE_DAYS

    ewma_acute = 0.0
    ewma_chronic = 0.0
    for index, load in enumerate(window):
        ewma_chronic = calculate_ewma(load, ewma_chronic, EWMA_CHRONIC_TIME_CONSTANT)
        if index >= acute_start:
            ewma_acute = calculate_ewma(load, ewma_acute, EWMA_ACUTE_TIME_CONSTANT)

    return ewma_acute, ewma_chronic


def determine_load_status(ratio: float) -> LoadStatus:
    """
    Classify an acute:chronic ratio.

    Based on Gabbett (2016):
    - < 0.8: Fresh (detraining)
    - 0.8 - 1.3: Optimal (sweet spot for adaptation)
    - 1.3 - 1.5: Fatigued (building, elevated injury risk)
    - > 1.5: Overreaching (high injury risk)

    Args:
        ratio: Acute:Chronic Workload Ratio

    Returns:
        LoadStatus band
    """
    if ratio < 0.8:
        return LoadStatus.FRESH
    elif ratio <= 1.3:
        return LoadStatus.OPTIMAL
    elif ratio <= 1.5:
        return LoadStatus.FATIGUED
    else:
        return LoadStatus.OVERREACHING


def calculate_weekly_load_change(daily_loads: Dict[date, float], as_of: date) -> float:
    """
    Percent change of this week's total load against the previous week.

    Returns 0.0 when the previous week had no load.
    """
    window = load_window(daily_loads, as_of, 14)
    previous_week = sum(window[:7])
    this_week = sum(window[7:])
    if previous_week == 0:
        return 0.0
    return (this_week - previous_week) / previous_week * 100


def calculate_load_summary(
    daily_loads: Dict[date, float],
    as_of: date,
) -> Optional[LoadSummary]:
    """
    Build the fatigue/freshness snapshot for a day.

    Args:
        daily_loads: Sparse date -> load mapping
        as_of: Day the summary stands on (included in every window)

    Returns:
        LoadSummary, or None while the 28-day baseline is still empty
    """
    acute_load = sum(load_window(daily_loads, as_of, ACUTE_DAYS)) / ACUTE_DAYS
    chronic_load = sum(load_window(daily_loads, as_of, CHRONIC_DAYS)) / CHRONIC_DAYS

    if chronic_load == 0:
        logger.debug("No load in the last %d days, baseline still building", CHRONIC_DAYS)
        return None

    ratio = acute_load / chronic_load
    ewma_acute, ewma_chronic = calculate_ewma_loads(daily_loads, as_of)
    ewma_ratio = ewma_acute / ewma_chronic if ewma_chronic > 0 else ratio

    variety = calculate_monotony_result(daily_loads, as_of, acute_load)
    status = determine_load_status(ewma_ratio)

    summary = LoadSummary(
        as_of=as_of,
        acute_load=acute_load,
        chronic_load=chronic_load,
        ratio=ratio,
        ewma_acute=ewma_acute,
        ewma_chronic=ewma_chronic,
        ewma_ratio=ewma_ratio,
        monotony=variety.monotony,
        strain=variety.strain,
        weekly_load_change_pct=calculate_weekly_load_change(daily_loads, as_of),
        status=status,
        ratio_status=determine_load_status(ratio),
        recommendation=LOAD_STATUS_RECOMMENDATIONS[status],
    )
    logger.info(
        "Load summary %s: acute=%.1f chronic=%.1f ewma_ratio=%.2f status=%s",
        as_of, acute_load, chronic_load, ewma_ratio, status.value,
    )
    return summary


def calculate_acwr_history(
    daily_loads: Dict[date, float],
    as_of: date,
    days: int = 7,
) -> List[AcwrPoint]:
    """
    EWMA ratio for each of the last ``days`` days, oldest first.

    Days with an empty chronic accumulator report 0.0.
    """
    history = []
    for offset in range(days - 1, -1, -1):
        day = as_of - timedelta(days=offset)
        ewma_acute, ewma_chronic = calculate_ewma_loads(daily_loads, day)
        ratio = ewma_acute / ewma_chronic if ewma_chronic > 0 else 0.0
        history.append(AcwrPoint(date=day, ratio=ratio))
    return history


def calculate_acwr_as_of(daily_loads: Dict[date, float], as_of: date) -> float:
    """EWMA ratio on one day, 0.0 without chronic history."""
    ewma_acute, ewma_chronic = calculate_ewma_loads(daily_loads, as_of)
    if ewma_chronic <= 0:
        return 0.0
    return ewma_acute / ewma_chronic
