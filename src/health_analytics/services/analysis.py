"""
Analysis service.

Runs one full analysis pass over an input snapshot, caches the derived
result set by data fingerprint, and owns the model cache plus the worker
that trains models off the request path.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..analysis.correlations import (
    ActivityCorrelation,
    ProteinRecoveryInsight,
    analyze_hrv_vs_performance,
    analyze_protein_vs_recovery,
    analyze_sleep_vs_performance,
)
from ..analysis.recovery import RecoveryInsight, analyze_recovery_status
from ..analysis.trends import MetricTrend, detect_trends
from ..config import Settings, get_settings
from ..exceptions import TrainingFailedError
from ..metrics.fitness import (
    AcwrPoint,
    LoadSummary,
    calculate_acwr_history,
    calculate_load_summary,
)
from ..metrics.load import aggregate_daily_loads
from ..models.inputs import ActivityKind, AnalysisSnapshot, DataFingerprint, MetricKind
from ..prediction.cache import ModelCache, ModelSet
from ..prediction.predictor import (
    PerformancePredictor,
    Prediction,
    PredictionInputs,
    PredictionWithUncertainty,
    TrainedModel,
)
from ..recommendations.coaching import DailyInstruction, generate_daily_instruction
from ..recommendations.injury_risk import InjuryRiskAssessment, calculate_injury_risk
from ..recommendations.readiness import ReadinessScore, calculate_readiness


logger = logging.getLogger(__name__)

API_VERSION = "1"


@dataclass
class AnalysisResult:
    """Every output derived from one snapshot."""

    as_of: date
    fingerprint: DataFingerprint
    daily_loads: Dict[date, float] = field(default_factory=dict)
    load_summary: Optional[LoadSummary] = None
    injury_risk: Optional[InjuryRiskAssessment] = None
    readiness: Optional[ReadinessScore] = None
    trends: List[MetricTrend] = field(default_factory=list)
    recovery: List[RecoveryInsight] = field(default_factory=list)
    acwr_history: List[AcwrPoint] = field(default_factory=list)
    sleep_performance: List[ActivityCorrelation] = field(default_factory=list)
    hrv_performance: List[ActivityCorrelation] = field(default_factory=list)
    protein_recovery: Optional[ProteinRecoveryInsight] = None
    coaching: Optional[DailyInstruction] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "api_version": API_VERSION,
            "as_of": self.as_of.isoformat(),
            "fingerprint": self.fingerprint.to_dict(),
            "load_summary": self.load_summary.to_dict() if self.load_summary else None,
            "injury_risk": self.injury_risk.to_dict() if self.injury_risk else None,
            "readiness": self.readiness.to_dict() if self.readiness else None,
            "trends": [t.to_dict() for t in self.trends],
            "recovery": [r.to_dict() for r in self.recovery],
            "acwr_history": [p.to_dict() for p in self.acwr_history],
            "correlations": {
                "sleep_performance": [c.to_dict() for c in self.sleep_performance],
                "hrv_performance": [c.to_dict() for c in self.hrv_performance],
                "protein_recovery": (
                    self.protein_recovery.to_dict() if self.protein_recovery else None
                ),
            },
            "coaching": self.coaching.to_dict() if self.coaching else None,
        }


class AnalysisCache:
    """Last analysis result, reusable while fingerprint and day match."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entry: Optional[Tuple[DataFingerprint, date, AnalysisResult]] = None

    def get(self, fingerprint: DataFingerprint, as_of: date) -> Optional[AnalysisResult]:
        entry = self._entry
        if entry is None:
            return None
        cached_fingerprint, cached_as_of, result = entry
        if cached_fingerprint == fingerprint and cached_as_of == as_of:
            return result
        return None

    def publish(self, result: AnalysisResult) -> None:
        """Replace the cached result (last write wins)."""
        with self._lock:
            self._entry = (result.fingerprint, result.as_of, result)

    def clear(self) -> None:
        with self._lock:
            self._entry = None


def _isolated(name: str, func: Callable, *args, default=None):
    """Run one sub-analysis; a failure is logged and yields ``default``."""
    try:
        return func(*args)
    except Exception:
        logger.warning("Sub-analysis %s failed", name, exc_info=True)
        return default


class AnalysisService:
    """Runs analysis passes and manages the trained models."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        predictor: Optional[PerformancePredictor] = None,
        model_cache: Optional[ModelCache] = None,
        analysis_cache: Optional[AnalysisCache] = None,
    ):
        self.settings = settings or get_settings()
        self.predictor = predictor or PerformancePredictor(self.settings)
        self.model_cache = model_cache or ModelCache(
            retrain_interval=timedelta(days=self.settings.retrain_interval_days)
        )
        self.analysis_cache = analysis_cache or AnalysisCache()
        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.training_workers,
            thread_name_prefix="model-training",
        )
        self._pending_lock = threading.Lock()
        self._pending: Optional[Future] = None

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze(self, snapshot: AnalysisSnapshot, schedule_training: bool = True) -> AnalysisResult:
        """
        Derive every output for a snapshot.

        Reuses the cached result when the fingerprint and ``as_of`` are
        unchanged. Each sub-analysis is isolated: one failing leaves its
        output empty while the rest still compute.

        Args:
            snapshot: Input batch
            schedule_training: Start background training when models are stale

        Returns:
            AnalysisResult
        """
        fingerprint = snapshot.fingerprint()
        as_of = snapshot.as_of

        if schedule_training and self.model_cache.needs_retrain(fingerprint):
            self.train_in_background(snapshot)

        cached = self.analysis_cache.get(fingerprint, as_of)
        if cached is not None:
            logger.info("Reusing cached analysis for %s", as_of)
            return cached

        steps = snapshot.series(MetricKind.STEPS)
        daily_loads = _isolated(
            "daily_loads", aggregate_daily_loads,
            snapshot.workouts_until(as_of), steps, default={},
        )
        load_summary = _isolated("load_summary", calculate_load_summary, daily_loads, as_of)
        acwr_history = _isolated(
            "acwr_history", calculate_acwr_history, daily_loads, as_of, default=[]
        )
        trends = _isolated("trends", detect_trends, snapshot, default=[])
        recovery = _isolated("recovery", analyze_recovery_status, snapshot, default=[])
        injury_risk = _isolated(
            "injury_risk", calculate_injury_risk, load_summary, recovery, trends
        )
        readiness = _isolated(
            "readiness", calculate_readiness,
            snapshot.series(MetricKind.HRV),
            snapshot.series(MetricKind.RESTING_HR),
            snapshot.series(MetricKind.SLEEP),
            snapshot.workouts_until(as_of),
            load_summary,
            as_of,
        )
        sleep_performance = _isolated(
            "sleep_performance", analyze_sleep_vs_performance, snapshot, default=[]
        )
        hrv_performance = _isolated(
            "hrv_performance", analyze_hrv_vs_performance, snapshot, default=[]
        )
        protein_recovery = _isolated("protein_recovery", analyze_protein_vs_recovery, snapshot)
        coaching = _isolated(
            "coaching", generate_daily_instruction, load_summary, recovery or [], sleep_performance
        )

        result = AnalysisResult(
            as_of=as_of,
            fingerprint=fingerprint,
            daily_loads=daily_loads,
            load_summary=load_summary,
            injury_risk=injury_risk,
            readiness=readiness,
            trends=trends,
            recovery=recovery,
            acwr_history=acwr_history,
            sleep_performance=sleep_performance,
            hrv_performance=hrv_performance,
            protein_recovery=protein_recovery,
            coaching=coaching,
        )
        self.analysis_cache.publish(result)
        logger.info(
            "Analysis for %s: %d trends, risk=%s, readiness=%s",
            as_of,
            len(trends),
            injury_risk.level.value if injury_risk else None,
            readiness.score if readiness else None,
        )
        return result

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def train(self, snapshot: AnalysisSnapshot, now: Optional[datetime] = None) -> ModelSet:
        """
        Train on the snapshot and publish the new model set.

        A failed run keeps the previous model set and is recorded against
        the batch fingerprint, so analysis of the same data does not queue
        it again.

        Raises:
            TrainingFailedError: Every model fit failed
        """
        now = now or datetime.now()
        fingerprint = snapshot.fingerprint()
        try:
            models = self.predictor.train(snapshot, now=now)
        except TrainingFailedError as e:
            self.model_cache.record_failure(fingerprint, e.message, failed_at=now)
            raise
        return self.model_cache.publish(models, fingerprint, trained_at=now)

    def train_in_background(self, snapshot: AnalysisSnapshot, force: bool = False) -> Future:
        """
        Queue training on the worker.

        While a run is still in flight its future is returned instead of
        queueing another one, unless ``force`` is set.
        """
        with self._pending_lock:
            if not force and self._pending is not None and not self._pending.done():
                return self._pending
            future = self._executor.submit(self.train, snapshot)
            future.add_done_callback(self._log_training_outcome)
            self._pending = future
            return future

    def wait_for_training(self, timeout: Optional[float] = None) -> bool:
        """Block until the queued training run, if any, finishes. False on timeout."""
        with self._pending_lock:
            pending = self._pending
        if pending is None:
            return True
        _, not_done = wait([pending], timeout=timeout)
        return not not_done

    @staticmethod
    def _log_training_outcome(future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error("Background training failed: %s", error)

    @property
    def models(self) -> Tuple[TrainedModel, ...]:
        return self.model_cache.models

    def predict(
        self,
        activity: ActivityKind,
        inputs: PredictionInputs,
        with_interval: bool = False,
    ) -> Union[Prediction, PredictionWithUncertainty]:
        """
        Predict with the current models.

        Raises:
            NoTrainedModelError: No usable model yet
            TrainingFailedError: Inference produced no value
        """
        models = self.model_cache.by_activity
        if with_interval:
            return self.predictor.predict_with_uncertainty(models, activity, inputs)
        return self.predictor.predict(models, activity, inputs)

    def coach(self, result: AnalysisResult, prediction: Optional[Prediction] = None) -> DailyInstruction:
        """The day's instruction for a result, with a target when a prediction is served."""
        return generate_daily_instruction(
            result.load_summary, result.recovery, result.sleep_performance, prediction
        )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
