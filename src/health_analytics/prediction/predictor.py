"""
Performance Predictor

Learns how sleep, HRV, resting HR, training load and carbohydrate intake
relate to workout performance, one model per activity kind, and predicts
today's performance with a 95% interval.
"""

import logging
import math
import statistics
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..config import Settings, get_settings
from ..exceptions import InsufficientDataError, NoTrainedModelError, TrainingFailedError
from ..models.inputs import ActivityKind, AnalysisSnapshot
from .features import FEATURE_NAMES, TrainingRow, build_training_rows, group_rows
from .regressors import FittedModel, ForestFamily, LinearFamily, ModelKind, pearson_r_squared


logger = logging.getLogger(__name__)

COMBINED_LABEL = "all"
INTERVAL_Z = 1.96


class PredictionConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RmseQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    POOR = "poor"


@dataclass
class FeatureWeights:
    """Normalized r-squared of each feature against performance (sums to 1)."""

    sleep_hours: float
    hrv: float
    resting_hr: float
    acwr: float
    carbs: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "sleep_hours": round(self.sleep_hours, 4),
            "hrv": round(self.hrv, 4),
            "resting_hr": round(self.resting_hr, 4),
            "acwr": round(self.acwr, 4),
            "carbs": round(self.carbs, 4),
        }

    def total(self) -> float:
        return self.sleep_hours + self.hrv + self.resting_hr + self.acwr + self.carbs


@dataclass
class TrainedModel:
    """A fitted regression for one activity kind (None = all kinds)."""

    activity: Optional[ActivityKind]
    model_kind: ModelKind
    fitted: FittedModel = field(repr=False)
    sample_count: int
    rmse: float
    feature_weights: FeatureWeights
    trained_at: datetime

    @property
    def label(self) -> str:
        return self.activity.value if self.activity else COMBINED_LABEL

    @property
    def unit(self) -> str:
        return "W" if self.activity == ActivityKind.RIDE else "mph"

    def to_dict(self) -> Dict[str, Any]:
        """Model metadata, without the estimator."""
        return {
            "activity": self.label,
            "model_kind": self.model_kind.value,
            "unit": self.unit,
            "sample_count": self.sample_count,
            "rmse": round(self.rmse, 3),
            "feature_weights": self.feature_weights.to_dict(),
            "trained_at": self.trained_at.isoformat(),
        }


@dataclass
class PredictionInputs:
    """Today's conditions."""

    sleep_hours: float
    hrv: float
    resting_hr: float
    acwr: float
    carbs: float

    def features(self) -> List[float]:
        return [self.sleep_hours, self.hrv, self.resting_hr, self.acwr, self.carbs]

    def to_dict(self) -> Dict[str, float]:
        return dict(zip(FEATURE_NAMES, self.features()))


@dataclass
class Prediction:
    """One inference."""

    predicted_value: float
    activity: ActivityKind
    model_activity: str
    unit: str
    confidence: PredictionConfidence
    inputs: PredictionInputs

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predicted_value": round(self.predicted_value, 2),
            "activity": self.activity.value,
            "model_activity": self.model_activity,
            "unit": self.unit,
            "confidence": self.confidence.value,
            "inputs": self.inputs.to_dict(),
        }


@dataclass
class PredictionWithUncertainty:
    """A prediction with its 95% interval."""

    prediction: Prediction
    lower: float
    upper: float
    rmse: float
    sample_count: int

    def to_dict(self) -> Dict[str, Any]:
        result = self.prediction.to_dict()
        result.update({
            "lower": round(self.lower, 2),
            "upper": round(self.upper, 2),
            "rmse": round(self.rmse, 3),
            "sample_count": self.sample_count,
        })
        return result


@dataclass
class ModelQualityReport:
    """Whether a model's error is small enough to act on."""

    activity: str
    rmse: float
    rmse_quality: RmseQuality
    sample_count: int
    should_trust: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activity": self.activity,
            "rmse": round(self.rmse, 3),
            "rmse_quality": self.rmse_quality.value,
            "sample_count": self.sample_count,
            "should_trust": self.should_trust,
        }


def compute_feature_weights(rows: Sequence[TrainingRow]) -> FeatureWeights:
    """
    Feature importance independent of the chosen model.

    Each feature's squared Pearson correlation with performance, scaled so
    the five weights sum to 1. Equal weights when nothing correlates.
    """
    target = [r.performance for r in rows]
    columns = list(zip(*(r.features() for r in rows))) if rows else [()] * len(FEATURE_NAMES)
    r_squared = [pearson_r_squared(column, target) for column in columns]

    total = sum(r_squared)
    if total == 0:
        return FeatureWeights(0.2, 0.2, 0.2, 0.2, 0.2)
    return FeatureWeights(*(value / total for value in r_squared))


def index_models(models: Iterable[TrainedModel]) -> Dict[Optional[ActivityKind], TrainedModel]:
    """Key models by activity kind, ``None`` for the combined model."""
    return {model.activity: model for model in models}


class PerformancePredictor:
    """Trains per-activity models and serves predictions from them."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def min_samples(self) -> int:
        return self.settings.min_training_samples

    def train(
        self,
        snapshot: AnalysisSnapshot,
        now: Optional[datetime] = None,
    ) -> List[TrainedModel]:
        """
        Train a model for every activity kind with enough rows.

        Kinds below the minimum are skipped rather than raised on. A kind
        whose fit fails is logged and left without a model while the other
        kinds still train.

        Args:
            snapshot: Input batch
            now: Training timestamp, defaults to the current time

        Returns:
            Trained models in ActivityKind order, then the combined model

        Raises:
            TrainingFailedError: Every attempted fit failed
        """
        now = now or datetime.now()
        models: List[TrainedModel] = []
        failures: List[TrainingFailedError] = []

        grouped = group_rows(build_training_rows(snapshot))
        for kind in ActivityKind:
            rows = grouped[kind]
            if not rows:
                continue
            if len(rows) < self.min_samples:
                logger.info(
                    "Skipping %s model: %d rows, need %d", kind.value, len(rows), self.min_samples
                )
                continue
            self._train_guarded(rows, kind, now, models, failures)

        if self.settings.train_combined_model:
            combined_rows = build_training_rows(snapshot, speed_only=True)
            if len(combined_rows) >= self.min_samples:
                self._train_guarded(combined_rows, None, now, models, failures)
            else:
                logger.info("Skipping combined model: %d rows", len(combined_rows))

        if failures and not models:
            if len(failures) == 1:
                raise failures[0]
            raise TrainingFailedError(
                f"all {len(failures)} model fits failed",
                details={"activities": [f.details.get("activity") for f in failures]},
            )
        if not models:
            logger.warning("No models trained. Check that sleep/HRV/RHR/carbs overlap workout dates.")
        return models

    def _train_guarded(
        self,
        rows: Sequence[TrainingRow],
        activity: Optional[ActivityKind],
        now: datetime,
        models: List[TrainedModel],
        failures: List[TrainingFailedError],
    ) -> None:
        try:
            models.append(self.train_model(rows, activity, now=now))
        except TrainingFailedError as e:
            logger.warning(
                "Training %s model failed: %s", activity.value if activity else COMBINED_LABEL, e.message
            )
            failures.append(e)

    def train_model(
        self,
        rows: Sequence[TrainingRow],
        activity: Optional[ActivityKind],
        now: Optional[datetime] = None,
    ) -> TrainedModel:
        """
        Fit one model, trying the forest when the linear fit is poor.

        Args:
            rows: Training rows for this activity
            activity: Activity kind, None for the combined model
            now: Training timestamp

        Returns:
            TrainedModel

        Raises:
            InsufficientDataError: Fewer rows than the minimum
            TrainingFailedError: The fit raised or produced no usable error
        """
        label = activity.value if activity else COMBINED_LABEL
        if len(rows) < self.min_samples:
            raise InsufficientDataError(len(rows), self.min_samples, activity=label)

        features = [r.features() for r in rows]
        target = [r.performance for r in rows]

        try:
            chosen = LinearFamily().fit(features, target)
            target_std = statistics.pstdev(target)
            if chosen.rmse > self.settings.linear_rmse_tolerance * target_std:
                forest = ForestFamily(
                    n_estimators=self.settings.forest_estimators,
                    random_state=self.settings.random_seed,
                ).fit(features, target)
                logger.debug(
                    "%s: linear RMSE %.3f vs forest RMSE %.3f", label, chosen.rmse, forest.rmse
                )
                if forest.rmse < chosen.rmse:
                    chosen = forest
        except Exception as e:
            raise TrainingFailedError(str(e), details={"activity": label}) from e

        if not math.isfinite(chosen.rmse):
            raise TrainingFailedError("model error is not finite", details={"activity": label})

        model = TrainedModel(
            activity=activity,
            model_kind=chosen.kind,
            fitted=chosen,
            sample_count=len(rows),
            rmse=chosen.rmse,
            feature_weights=compute_feature_weights(rows),
            trained_at=now or datetime.now(),
        )
        logger.info(
            "Trained %s model (%s) on %d rows, RMSE %.3f %s",
            label, chosen.kind.value, len(rows), chosen.rmse, model.unit,
        )
        return model

    @staticmethod
    def select_model(
        models: Mapping[Optional[ActivityKind], TrainedModel],
        activity: ActivityKind,
    ) -> TrainedModel:
        """Exact activity match, else the combined model."""
        model = models.get(activity) or models.get(None)
        if model is None:
            raise NoTrainedModelError(activity.value)
        return model

    def _confidence(self, sample_count: int) -> PredictionConfidence:
        if sample_count >= self.settings.high_confidence_samples:
            return PredictionConfidence.HIGH
        if sample_count >= self.settings.medium_confidence_samples:
            return PredictionConfidence.MEDIUM
        return PredictionConfidence.LOW

    def _predict_with(
        self,
        model: TrainedModel,
        activity: ActivityKind,
        inputs: PredictionInputs,
    ) -> Prediction:
        try:
            value = model.fitted.predict_one(inputs.features())
        except Exception as e:
            raise TrainingFailedError(f"prediction failed: {e}") from e

        if value is None or not math.isfinite(value):
            raise TrainingFailedError("prediction returned no value")

        return Prediction(
            predicted_value=max(0.0, value),  # power and speed are never negative
            activity=activity,
            model_activity=model.label,
            unit=model.unit,
            confidence=self._confidence(model.sample_count),
            inputs=inputs,
        )

    def predict(
        self,
        models: Mapping[Optional[ActivityKind], TrainedModel],
        activity: ActivityKind,
        inputs: PredictionInputs,
    ) -> Prediction:
        """
        Predict performance for an activity under today's conditions.

        Raises:
            NoTrainedModelError: No model for the activity and no combined model
            TrainingFailedError: Inference produced no value
        """
        model = self.select_model(models, activity)
        return self._predict_with(model, activity, inputs)

    def predict_with_uncertainty(
        self,
        models: Mapping[Optional[ActivityKind], TrainedModel],
        activity: ActivityKind,
        inputs: PredictionInputs,
    ) -> PredictionWithUncertainty:
        """Prediction plus ``point +/- 1.96 * RMSE``, lower bound clamped at 0."""
        model = self.select_model(models, activity)
        prediction = self._predict_with(model, activity, inputs)
        margin = INTERVAL_Z * model.rmse
        return PredictionWithUncertainty(
            prediction=prediction,
            lower=max(0.0, prediction.predicted_value - margin),
            upper=prediction.predicted_value + margin,
            rmse=model.rmse,
            sample_count=model.sample_count,
        )

    def validate_model_quality(self, model: TrainedModel) -> ModelQualityReport:
        """Grade a model's RMSE in its own unit."""
        if model.activity == ActivityKind.RIDE:
            excellent, good = 15.0, 25.0    # watts
        else:
            excellent, good = 0.4, 0.7      # mph

        if model.rmse < excellent:
            quality = RmseQuality.EXCELLENT
        elif model.rmse < good:
            quality = RmseQuality.GOOD
        else:
            quality = RmseQuality.POOR

        return ModelQualityReport(
            activity=model.label,
            rmse=model.rmse,
            rmse_quality=quality,
            sample_count=model.sample_count,
            should_trust=model.sample_count >= self.min_samples and quality != RmseQuality.POOR,
        )
