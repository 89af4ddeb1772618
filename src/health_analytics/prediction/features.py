"""Training rows for the performance predictor."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional

from ..metrics.fitness import calculate_acwr_as_of
from ..metrics.load import aggregate_daily_loads
from ..models.inputs import ActivityKind, AnalysisSnapshot, MetricKind, WorkoutEvent


logger = logging.getLogger(__name__)

FEATURE_NAMES = ("sleep_hours", "hrv", "resting_hr", "acwr", "carbs")

METERS_PER_SECOND_TO_MPH = 2.23694


@dataclass
class TrainingRow:
    """One supervised example: conditions going into a workout and the result."""

    workout_id: str
    date: date
    activity: ActivityKind
    sleep_hours: float      # previous night
    hrv: float              # same day
    resting_hr: float       # same day
    acwr: float             # as of the day before
    carbs: float            # previous day, grams
    performance: float      # watts for rides, mph otherwise

    def features(self) -> List[float]:
        return [self.sleep_hours, self.hrv, self.resting_hr, self.acwr, self.carbs]

    def to_dict(self) -> dict:
        return {
            "workout_id": self.workout_id,
            "date": self.date.isoformat(),
            "activity": self.activity.value,
            "sleep_hours": self.sleep_hours,
            "hrv": self.hrv,
            "resting_hr": self.resting_hr,
            "acwr": round(self.acwr, 3),
            "carbs": self.carbs,
            "performance": round(self.performance, 2),
        }


def workout_speed_mph(workout: WorkoutEvent) -> Optional[float]:
    """Average speed in mph, None without distance or duration."""
    if not workout.distance_meters or workout.duration_seconds <= 0:
        return None
    return workout.distance_meters / workout.duration_seconds * METERS_PER_SECOND_TO_MPH


def workout_performance(workout: WorkoutEvent, speed_only: bool = False) -> Optional[float]:
    """
    Realized performance of a workout.

    Rides are measured in average power (watts) and are unusable without a
    power reading. Everything else, and every kind when ``speed_only`` is
    set, is measured in average speed (mph).
    """
    if workout.kind == ActivityKind.RIDE and not speed_only:
        return workout.avg_power_watts
    return workout_speed_mph(workout)


def build_training_rows(
    snapshot: AnalysisSnapshot,
    speed_only: bool = False,
) -> List[TrainingRow]:
    """
    Join every workout to the conditions it was done under.

    A workout becomes a row only when the previous night's sleep, same-day
    HRV and resting HR, and the previous day's carbohydrates are all known
    and its performance is positive.

    Args:
        snapshot: Input batch
        speed_only: Measure rides by speed too (used by the combined model)

    Returns:
        Training rows in workout order
    """
    sleep_by_date = snapshot.lookup(MetricKind.SLEEP)
    hrv_by_date = snapshot.lookup(MetricKind.HRV)
    rhr_by_date = snapshot.lookup(MetricKind.RESTING_HR)
    carbs_by_date = snapshot.carbs_lookup()
    daily_loads = aggregate_daily_loads(
        snapshot.workouts, snapshot.series(MetricKind.STEPS)
    )

    rows: List[TrainingRow] = []
    rejected: Dict[str, int] = {"metrics": 0, "performance": 0}
    for workout in snapshot.workouts_until(snapshot.as_of):
        day = workout.day
        prev_day = day - timedelta(days=1)

        sleep = sleep_by_date.get(prev_day)
        hrv = hrv_by_date.get(day)
        rhr = rhr_by_date.get(day)
        carbs = carbs_by_date.get(prev_day)
        if sleep is None or hrv is None or rhr is None or carbs is None:
            rejected["metrics"] += 1
            continue

        performance = workout_performance(workout, speed_only=speed_only)
        if performance is None or performance <= 0:
            rejected["performance"] += 1
            continue

        rows.append(TrainingRow(
            workout_id=workout.id,
            date=day,
            activity=workout.kind,
            sleep_hours=sleep,
            hrv=hrv,
            resting_hr=rhr,
            acwr=calculate_acwr_as_of(daily_loads, prev_day),
            carbs=carbs,
            performance=float(performance),
        ))

    logger.debug(
        "Assembled %d training rows (rejected: %d missing metrics, %d no performance)",
        len(rows), rejected["metrics"], rejected["performance"],
    )
    return rows


def group_rows(rows: List[TrainingRow]) -> Dict[ActivityKind, List[TrainingRow]]:
    """Rows per activity kind, every kind present as a key."""
    grouped: Dict[ActivityKind, List[TrainingRow]] = {kind: [] for kind in ActivityKind}
    for row in rows:
        grouped[row.activity].append(row)
    return grouped
