"""Process-scoped store for the trained model set."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional, Tuple

from ..models.inputs import ActivityKind, DataFingerprint
from .predictor import TrainedModel, index_models


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelSet:
    """
    An immutable published generation of trained models.

    ``by_activity`` is keyed by activity kind, with ``None`` for the
    combined model.
    """

    by_activity: Dict[Optional[ActivityKind], TrainedModel]
    fingerprint: DataFingerprint
    trained_at: datetime

    @property
    def models(self) -> Tuple[TrainedModel, ...]:
        return tuple(self.by_activity.values())


@dataclass(frozen=True)
class TrainingFailure:
    """The batch a failed training run was attempted on."""

    fingerprint: DataFingerprint
    failed_at: datetime
    reason: str


class ModelCache:
    """
    Holds the current trained models.

    Starts empty. A training run replaces the whole set in one step, so a
    reader sees either the old generation or the new one, never a mix.
    Retraining is gated by the data fingerprint and throttled by a
    wall-clock interval. A failed run is not retried on the same data.
    """

    def __init__(self, retrain_interval: timedelta = timedelta(days=7)):
        self.retrain_interval = retrain_interval
        self._lock = threading.Lock()
        self._current: Optional[ModelSet] = None
        self._last_failure: Optional[TrainingFailure] = None

    @property
    def current(self) -> Optional[ModelSet]:
        return self._current

    @property
    def last_failure(self) -> Optional[TrainingFailure]:
        return self._last_failure

    @property
    def models(self) -> Tuple[TrainedModel, ...]:
        current = self._current
        return current.models if current else ()

    @property
    def by_activity(self) -> Dict[Optional[ActivityKind], TrainedModel]:
        current = self._current
        return dict(current.by_activity) if current else {}

    def needs_retrain(self, fingerprint: DataFingerprint, now: Optional[datetime] = None) -> bool:
        """
        Whether a training run is due.

        False when the last run on this exact data failed. Otherwise true
        when nothing has been trained yet, or when the data changed and the
        retrain interval has passed since the last run.
        """
        failure = self._last_failure
        if failure is not None and failure.fingerprint == fingerprint:
            return False
        current = self._current
        if current is None:
            return True
        if current.fingerprint == fingerprint:
            return False
        now = now or datetime.now()
        return now - current.trained_at >= self.retrain_interval

    def publish(
        self,
        models: Iterable[TrainedModel],
        fingerprint: DataFingerprint,
        trained_at: Optional[datetime] = None,
    ) -> ModelSet:
        """Replace the model set."""
        model_set = ModelSet(
            by_activity=index_models(models),
            fingerprint=fingerprint,
            trained_at=trained_at or datetime.now(),
        )
        with self._lock:
            self._current = model_set
            self._last_failure = None
        logger.info("Published %d trained models", len(model_set.by_activity))
        return model_set

    def record_failure(
        self,
        fingerprint: DataFingerprint,
        reason: str,
        failed_at: Optional[datetime] = None,
    ) -> TrainingFailure:
        """Remember a failed run so the same data is not retrained."""
        failure = TrainingFailure(
            fingerprint=fingerprint,
            failed_at=failed_at or datetime.now(),
            reason=reason,
        )
        with self._lock:
            self._last_failure = failure
        logger.warning("Training failed, not retrying until the data changes: %s", reason)
        return failure

    def clear(self) -> None:
        with self._lock:
            self._current = None
            self._last_failure = None
