"""Pytest configuration and fixtures."""

from datetime import date, datetime, time, timedelta
from itertools import count

import pytest

from health_analytics.config import Settings
from health_analytics.models.inputs import (
    ActivityKind,
    AnalysisSnapshot,
    DailyMetricPoint,
    MetricKind,
    NutritionDay,
    WorkoutEvent,
)


AS_OF = date(2024, 3, 31)
HISTORY_DAYS = 42


def _series(kind, values, end=AS_OF):
    start = end - timedelta(days=len(values) - 1)
    return [
        DailyMetricPoint(date=start + timedelta(days=i), value=float(v), kind=kind)
        for i, v in enumerate(values)
    ]


def _full_snapshot() -> AnalysisSnapshot:
    metrics = []
    workouts = []
    nutrition = []
    start = AS_OF - timedelta(days=HISTORY_DAYS - 1)
    for i in range(HISTORY_DAYS):
        day = start + timedelta(days=i)
        metrics.extend([
            DailyMetricPoint(day, 55.0 + (i % 5), MetricKind.HRV),
            DailyMetricPoint(day, 52.0 - (i % 3), MetricKind.RESTING_HR),
            DailyMetricPoint(day, 7.0 + (i % 4) * 0.25, MetricKind.SLEEP),
            DailyMetricPoint(day, 8000.0 + (i % 6) * 1000, MetricKind.STEPS),
            DailyMetricPoint(day, 165.0 - i * 0.02, MetricKind.WEIGHT),
        ])
        nutrition.append(NutritionDay(day, 250.0 + (i % 5) * 20, 120.0))
        if i % 2 == 0:
            workouts.append(WorkoutEvent(
                id=f"run-{i}",
                kind=ActivityKind.RUN,
                start_time=datetime.combine(day, time(7, 0)),
                duration_seconds=2700 + (i % 3) * 600,
                distance_meters=9000 + (i % 4) * 500 + (i % 5) * 100,
                avg_heart_rate_bpm=150,
            ))
        if i % 3 == 1:
            workouts.append(WorkoutEvent(
                id=f"ride-{i}",
                kind=ActivityKind.RIDE,
                start_time=datetime.combine(day, time(17, 30)),
                duration_seconds=3600,
                distance_meters=30000,
                avg_power_watts=180 + (i % 7) * 5 + (i % 4) * 3,
                avg_heart_rate_bpm=140,
            ))
    return AnalysisSnapshot(metrics=metrics, workouts=workouts, nutrition=nutrition)


@pytest.fixture
def as_of() -> date:
    """Reference analysis day."""
    return AS_OF


@pytest.fixture
def make_series():
    """Build daily points for one metric, oldest first, ending at ``end``."""
    return _series


@pytest.fixture
def make_workout():
    """Build a workout on a given day."""
    ids = count(1)

    def _make(day, kind=ActivityKind.RUN, minutes=60.0, **kwargs):
        return WorkoutEvent(
            id=kwargs.pop("id", f"w-{next(ids)}"),
            kind=kind,
            start_time=datetime.combine(day, time(8, 0)),
            duration_seconds=minutes * 60,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_loads():
    """Sparse date -> load mapping from a list of loads ending at ``end``."""

    def _make(values, end=AS_OF):
        start = end - timedelta(days=len(values) - 1)
        return {
            start + timedelta(days=i): float(v)
            for i, v in enumerate(values)
            if v
        }

    return _make


@pytest.fixture
def full_snapshot() -> AnalysisSnapshot:
    """Six weeks of every metric, runs every other day, rides every third."""
    return _full_snapshot()


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the environment."""
    return Settings(_env_file=None)
