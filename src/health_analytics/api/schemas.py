"""
API schemas for request validation.

The request bodies mirror the input records; responses are the
``to_dict()`` forms of the result dataclasses.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.inputs import (
    ActivityKind,
    AnalysisSnapshot,
    DailyMetricPoint,
    MetricKind,
    NutritionDay,
    WorkoutEvent,
)
from ..prediction.predictor import PredictionInputs


# ============================================================================
# Error Models
# ============================================================================

class ErrorDetail(BaseModel):
    """Error detail for API responses."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: ErrorDetail

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "code": "NO_TRAINED_MODEL",
                    "message": "No trained model available",
                }
            }
        }
    )


# ============================================================================
# Input Records
# ============================================================================

class MetricPointIn(BaseModel):
    """One daily metric value."""

    date: date
    value: float
    kind: MetricKind

    def to_record(self) -> DailyMetricPoint:
        return DailyMetricPoint(date=self.date, value=self.value, kind=self.kind)


class WorkoutIn(BaseModel):
    """One workout."""

    id: str
    kind: ActivityKind
    start_time: datetime
    duration_seconds: float = Field(..., ge=0)
    distance_meters: Optional[float] = Field(None, ge=0)
    avg_power_watts: Optional[float] = Field(None, ge=0)
    avg_heart_rate_bpm: Optional[float] = Field(None, ge=0)
    suffer_score: Optional[float] = Field(None, ge=0)

    def to_record(self) -> WorkoutEvent:
        return WorkoutEvent(
            id=self.id,
            kind=self.kind,
            start_time=self.start_time,
            duration_seconds=self.duration_seconds,
            distance_meters=self.distance_meters,
            avg_power_watts=self.avg_power_watts,
            avg_heart_rate_bpm=self.avg_heart_rate_bpm,
            suffer_score=self.suffer_score,
        )


class NutritionIn(BaseModel):
    """Daily nutrition totals."""

    date: date
    total_carbs_grams: float = Field(..., ge=0)
    total_protein_grams: float = Field(0.0, ge=0)
    is_complete: bool = True

    def to_record(self) -> NutritionDay:
        return NutritionDay(
            date=self.date,
            total_carbs_grams=self.total_carbs_grams,
            total_protein_grams=self.total_protein_grams,
            is_complete=self.is_complete,
        )


# ============================================================================
# Requests
# ============================================================================

class PredictRequest(BaseModel):
    """Today's conditions for a performance prediction."""

    activity: ActivityKind
    sleep_hours: float = Field(..., ge=0, le=24)
    hrv: float = Field(..., ge=0)
    resting_hr: float = Field(..., gt=0)
    acwr: float = Field(..., ge=0)
    carbs: float = Field(..., ge=0)
    with_interval: bool = False

    def to_inputs(self) -> PredictionInputs:
        return PredictionInputs(
            sleep_hours=self.sleep_hours,
            hrv=self.hrv,
            resting_hr=self.resting_hr,
            acwr=self.acwr,
            carbs=self.carbs,
        )


class SnapshotRequest(BaseModel):
    """One athlete's input batch."""

    metrics: List[MetricPointIn] = Field(default_factory=list)
    workouts: List[WorkoutIn] = Field(default_factory=list)
    nutrition: List[NutritionIn] = Field(default_factory=list)
    as_of: Optional[date] = None

    def to_snapshot(self) -> AnalysisSnapshot:
        return AnalysisSnapshot(
            metrics=[m.to_record() for m in self.metrics],
            workouts=[w.to_record() for w in self.workouts],
            nutrition=[n.to_record() for n in self.nutrition],
            as_of=self.as_of,
        )


class AnalyzeRequest(SnapshotRequest):
    """Input batch plus an optional prediction to serve alongside."""

    prediction: Optional[PredictRequest] = None
