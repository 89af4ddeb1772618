"""Daily training load aggregation from workout events and step counts."""

from datetime import date, timedelta
from typing import Dict, Iterable, List

from ..models.inputs import ActivityKind, DailyMetricPoint, WorkoutEvent


# Load units per hour of activity
BASE_LOAD_RATES: Dict[ActivityKind, float] = {
    ActivityKind.RUN: 65.0,
    ActivityKind.RIDE: 75.0,
    ActivityKind.SWIM: 70.0,
    ActivityKind.WALK: 30.0,
    ActivityKind.HIKE: 30.0,
    ActivityKind.STRENGTH: 50.0,
    ActivityKind.OTHER: 50.0,
}

STEP_BONUS_THRESHOLD = 10_000
STEP_BONUS_DIVISOR = 5_000


def calculate_workout_load(workout: WorkoutEvent) -> float:
    """
    Estimate the training load of a single workout.

    A provider-supplied suffer score wins when present. Otherwise the load
    is the duration in hours times the activity's base rate.

    Args:
        workout: The workout event

    Returns:
        Load in arbitrary units
    """
    if workout.suffer_score is not None:
        return float(workout.suffer_score)
    return workout.duration_hours * BASE_LOAD_RATES[workout.kind]


def calculate_step_bonus(steps: float) -> float:
    """Light bonus load for a high-step day, 0 below the threshold."""
    if steps < STEP_BONUS_THRESHOLD:
        return 0.0
    return (steps - STEP_BONUS_THRESHOLD) / STEP_BONUS_DIVISOR


def aggregate_daily_loads(
    workouts: Iterable[WorkoutEvent],
    step_points: Iterable[DailyMetricPoint] = (),
) -> Dict[date, float]:
    """
    Collapse workouts into one load value per calendar day.

    Multiple workouts on the same day sum. A day without any workout but
    with at least 10,000 steps gets ``(steps - 10000) / 5000`` as load.
    Days missing from the result carry zero load.

    Args:
        workouts: Workout events, any order
        step_points: Daily step counts

    Returns:
        Sparse mapping of date to load
    """
    daily_loads: Dict[date, float] = {}
    for workout in workouts:
        day = workout.day
        daily_loads[day] = daily_loads.get(day, 0.0) + calculate_workout_load(workout)

    for point in step_points:
        if point.date in daily_loads:
            continue
        if point.value >= STEP_BONUS_THRESHOLD:
            daily_loads[point.date] = calculate_step_bonus(point.value)

    return daily_loads


def load_window(daily_loads: Dict[date, float], as_of: date, days: int) -> List[float]:
    """
    Dense list of the last ``days`` loads ending at ``as_of``.

    Oldest first; missing days are 0.0.
    """
    return [
        daily_loads.get(as_of - timedelta(days=offset), 0.0)
        for offset in range(days - 1, -1, -1)
    ]
