"""Input records handed to the analysis core by the acquisition layer.

Everything here is already cleaned: one value per day for each daily
metric, one record per workout, one nutrition total per day.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class MetricKind(str, Enum):
    """Daily physiological metrics."""
    HRV = "hrv"                  # ms
    RESTING_HR = "resting_hr"    # bpm
    SLEEP = "sleep"              # hours
    STEPS = "steps"              # count
    WEIGHT = "weight"            # lbs


class ActivityKind(str, Enum):
    """Workout activity kinds."""
    RUN = "run"
    RIDE = "ride"
    SWIM = "swim"
    WALK = "walk"
    HIKE = "hike"
    STRENGTH = "strength"
    OTHER = "other"


def parse_date(value: Any) -> date:
    """Parse a date from a date, datetime or ISO string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value[:10]).date()
    raise ValueError(f"Cannot parse date from {value!r}")


def to_wall_clock(value: datetime) -> datetime:
    """
    Drop the UTC offset, keeping the local clock time.

    Feeds disagree on whether start times carry an offset. Every start time
    is held naive in the clock of the place it was recorded, so the
    calendar day is the athlete's day and mixed batches stay comparable.
    """
    if value.tzinfo is None:
        return value
    return value.replace(tzinfo=None)


def parse_datetime(value: Any) -> datetime:
    """Parse a naive wall-clock datetime from a datetime, date or ISO string."""
    if isinstance(value, datetime):
        return to_wall_clock(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return to_wall_clock(datetime.fromisoformat(value.replace("Z", "+00:00")))
    raise ValueError(f"Cannot parse datetime from {value!r}")


@dataclass
class DailyMetricPoint:
    """One physiological reading collapsed to a day."""

    date: date
    value: float
    kind: MetricKind

    def __post_init__(self):
        if isinstance(self.kind, str):
            self.kind = MetricKind(self.kind)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "value": self.value,
            "kind": self.kind.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DailyMetricPoint":
        return cls(
            date=parse_date(data["date"]),
            value=float(data["value"]),
            kind=MetricKind(data["kind"]),
        )


@dataclass
class WorkoutEvent:
    """A discrete exercise session."""

    id: str
    kind: ActivityKind
    start_time: datetime
    duration_seconds: float
    distance_meters: Optional[float] = None
    avg_power_watts: Optional[float] = None
    avg_heart_rate_bpm: Optional[float] = None
    suffer_score: Optional[float] = None  # provider-supplied load, overrides the estimate

    def __post_init__(self):
        if isinstance(self.kind, str):
            self.kind = ActivityKind(self.kind)
        self.start_time = to_wall_clock(self.start_time)

    @property
    def day(self) -> date:
        """Calendar day the workout started on."""
        return self.start_time.date()

    @property
    def duration_hours(self) -> float:
        return self.duration_seconds / 3600.0

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "start_time": self.start_time.isoformat(),
            "duration_seconds": self.duration_seconds,
            "distance_meters": self.distance_meters,
            "avg_power_watts": self.avg_power_watts,
            "avg_heart_rate_bpm": self.avg_heart_rate_bpm,
            "suffer_score": self.suffer_score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutEvent":
        return cls(
            id=str(data["id"]),
            kind=ActivityKind(data["kind"]),
            start_time=parse_datetime(data["start_time"]),
            duration_seconds=float(data["duration_seconds"]),
            distance_meters=data.get("distance_meters"),
            avg_power_watts=data.get("avg_power_watts"),
            avg_heart_rate_bpm=data.get("avg_heart_rate_bpm"),
            suffer_score=data.get("suffer_score"),
        )


@dataclass
class NutritionDay:
    """Daily nutrition totals."""

    date: date
    total_carbs_grams: float
    total_protein_grams: float = 0.0
    is_complete: bool = True

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "total_carbs_grams": self.total_carbs_grams,
            "total_protein_grams": self.total_protein_grams,
            "is_complete": self.is_complete,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NutritionDay":
        return cls(
            date=parse_date(data["date"]),
            total_carbs_grams=float(data["total_carbs_grams"]),
            total_protein_grams=float(data.get("total_protein_grams", 0.0)),
            is_complete=bool(data.get("is_complete", True)),
        )


@dataclass(frozen=True)
class DataFingerprint:
    """
    Cheap summary of an input batch.

    Two batches with the same record counts are treated as the same data,
    so cached results computed from one may be served for the other.
    """

    workout_count: int
    nutrition_count: int
    hrv_count: int
    resting_hr_count: int
    sleep_count: int
    steps_count: int
    weight_count: int

    def to_dict(self) -> dict:
        return {
            "workout_count": self.workout_count,
            "nutrition_count": self.nutrition_count,
            "hrv_count": self.hrv_count,
            "resting_hr_count": self.resting_hr_count,
            "sleep_count": self.sleep_count,
            "steps_count": self.steps_count,
            "weight_count": self.weight_count,
        }


@dataclass
class AnalysisSnapshot:
    """
    Immutable input batch for one analysis run.

    Daily metrics are deduplicated per (day, kind) on construction: a later
    point for the same day replaces an earlier one. ``as_of`` is the day the
    analysis stands on; it defaults to the latest date present in the batch
    so the same batch always yields the same results.
    """

    metrics: List[DailyMetricPoint] = field(default_factory=list)
    workouts: List[WorkoutEvent] = field(default_factory=list)
    nutrition: List[NutritionDay] = field(default_factory=list)
    as_of: Optional[date] = None
    _series: Dict[MetricKind, Dict[date, float]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _carbs: Dict[date, float] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        self._series = {kind: {} for kind in MetricKind}
        for point in self.metrics:
            self._series[point.kind][point.date] = point.value
        self._carbs = {day.date: day.total_carbs_grams for day in self.nutrition}
        self.workouts = sorted(self.workouts, key=lambda w: w.start_time)
        if self.as_of is None:
            self.as_of = self._latest_date()

    def _latest_date(self) -> date:
        candidates: List[date] = [p.date for p in self.metrics]
        candidates.extend(w.day for w in self.workouts)
        candidates.extend(n.date for n in self.nutrition)
        return max(candidates) if candidates else date.today()

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisSnapshot":
        """Build a snapshot from the JSON request shape."""
        as_of = data.get("as_of")
        return cls(
            metrics=[DailyMetricPoint.from_dict(m) for m in data.get("metrics", [])],
            workouts=[WorkoutEvent.from_dict(w) for w in data.get("workouts", [])],
            nutrition=[NutritionDay.from_dict(n) for n in data.get("nutrition", [])],
            as_of=parse_date(as_of) if as_of else None,
        )

    def lookup(self, kind: MetricKind) -> Dict[date, float]:
        """Day -> value mapping for one metric, all days."""
        return dict(self._series[kind])

    def series(self, kind: MetricKind) -> List[DailyMetricPoint]:
        """Deduplicated, date-sorted points of one metric up to ``as_of``."""
        values = self._series[kind]
        return [
            DailyMetricPoint(date=day, value=values[day], kind=kind)
            for day in sorted(values)
            if day <= self.as_of
        ]

    def carbs_lookup(self) -> Dict[date, float]:
        """Day -> total carbohydrate grams."""
        return dict(self._carbs)

    def workouts_until(self, day: date) -> List[WorkoutEvent]:
        """Workouts that started on or before ``day``."""
        return [w for w in self.workouts if w.day <= day]

    def fingerprint(self) -> DataFingerprint:
        counts = {kind: len(values) for kind, values in self._series.items()}
        return DataFingerprint(
            workout_count=len(self.workouts),
            nutrition_count=len(self.nutrition),
            hrv_count=counts[MetricKind.HRV],
            resting_hr_count=counts[MetricKind.RESTING_HR],
            sleep_count=counts[MetricKind.SLEEP],
            steps_count=counts[MetricKind.STEPS],
            weight_count=counts[MetricKind.WEIGHT],
        )

