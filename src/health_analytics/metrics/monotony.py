"""Training monotony and strain (Foster, 1998)."""

import statistics
from dataclasses import dataclass
from datetime import date
from typing import Dict

from .load import load_window


HIGH_MONOTONY = 2.0
VERY_HIGH_MONOTONY = 2.5


@dataclass
class MonotonyResult:
    """Load variety over a trailing window."""

    monotony: float
    strain: float

    @property
    def is_high(self) -> bool:
        return self.monotony > HIGH_MONOTONY

    @property
    def is_very_high(self) -> bool:
        return self.monotony > VERY_HIGH_MONOTONY

    def to_dict(self) -> dict:
        return {
            "monotony": round(self.monotony, 2),
            "strain": round(self.strain, 1),
        }


def calculate_monotony(
    daily_loads: Dict[date, float],
    as_of: date,
    days: int = 7,
) -> float:
    """
    Mean daily load divided by its population standard deviation.

    Identical loads (stddev 0) or a window shorter than two days give 1.0.

    Args:
        daily_loads: Sparse date -> load mapping
        as_of: Last day of the window
        days: Window length

    Returns:
        Monotony value
    """
    window = load_window(daily_loads, as_of, days)
    if len(window) < 2:
        return 1.0

    std_dev = statistics.pstdev(window)
    if std_dev == 0:
        return 1.0
    return statistics.fmean(window) / std_dev


def calculate_strain(acute_load: float, monotony: float) -> float:
    """Strain = acute (weekly mean) load x monotony."""
    return acute_load * monotony


def calculate_monotony_result(
    daily_loads: Dict[date, float],
    as_of: date,
    acute_load: float,
    days: int = 7,
) -> MonotonyResult:
    """Monotony and strain for the window ending at ``as_of``."""
    monotony = calculate_monotony(daily_loads, as_of, days)
    return MonotonyResult(monotony=monotony, strain=calculate_strain(acute_load, monotony))
