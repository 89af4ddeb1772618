"""Training load metrics calculations."""

from .load import (
    BASE_LOAD_RATES,
    aggregate_daily_loads,
    calculate_workout_load,
    load_window,
)
from .fitness import (
    LoadStatus,
    LoadSummary,
    calculate_acwr_history,
    calculate_ewma,
    calculate_ewma_loads,
    calculate_load_summary,
    determine_load_status,
)
from .monotony import (
    HIGH_MONOTONY,
    VERY_HIGH_MONOTONY,
    calculate_monotony,
    calculate_strain,
)

__all__ = [
    # Load
    "BASE_LOAD_RATES",
    "aggregate_daily_loads",
    "calculate_workout_load",
    "load_window",
    # Fitness
    "LoadStatus",
    "LoadSummary",
    "calculate_acwr_history",
    "calculate_ewma",
    "calculate_ewma_loads",
    "calculate_load_summary",
    "determine_load_status",
    # Monotony
    "HIGH_MONOTONY",
    "VERY_HIGH_MONOTONY",
    "calculate_monotony",
    "calculate_strain",
]
