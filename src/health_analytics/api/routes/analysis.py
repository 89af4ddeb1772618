"""Analysis, training and prediction API routes."""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends

from ..deps import get_analysis_service
from ..schemas import AnalyzeRequest, PredictRequest, SnapshotRequest
from ...exceptions import PredictorError
from ...prediction.predictor import Prediction, PredictionWithUncertainty
from ...services.analysis import AnalysisService


logger = logging.getLogger(__name__)

router = APIRouter()


def _models_payload(service: AnalysisService) -> list:
    return [
        {
            **model.to_dict(),
            "quality": service.predictor.validate_model_quality(model).to_dict(),
        }
        for model in service.models
    ]


def _predict(
    service: AnalysisService,
    request: PredictRequest,
) -> Union[Prediction, PredictionWithUncertainty]:
    return service.predict(
        request.activity,
        request.to_inputs(),
        with_interval=request.with_interval,
    )


# Sync handlers: FastAPI runs them in its threadpool, keeping numeric work
# off the event loop.

@router.post("/analyze")
def analyze(
    request: AnalyzeRequest,
    service: AnalysisService = Depends(get_analysis_service),
):
    """
    Run a full analysis pass over an input batch.

    Returns the load summary, injury risk, readiness, trends, recovery
    status, ACWR history, personal correlations and the daily coaching
    instruction. Outputs without enough history are null. When
    the models are stale, training is queued in the background and the
    response uses the models currently available.
    """
    snapshot = request.to_snapshot()
    result = service.analyze(snapshot)

    prediction: Optional[Union[Prediction, PredictionWithUncertainty]] = None
    if request.prediction is not None:
        try:
            prediction = _predict(service, request.prediction)
        except PredictorError as e:
            logger.info("Prediction unavailable: %s", e.message)

    response = result.to_dict()
    response["prediction"] = None
    if prediction is not None:
        response["prediction"] = prediction.to_dict()
        if isinstance(prediction, PredictionWithUncertainty):
            prediction = prediction.prediction
        response["coaching"] = service.coach(result, prediction).to_dict()
    response["models"] = _models_payload(service)
    return response


@router.post("/models/train")
def train_models(
    request: SnapshotRequest,
    service: AnalysisService = Depends(get_analysis_service),
):
    """Train models on the batch and wait for the worker to finish."""
    future = service.train_in_background(request.to_snapshot(), force=True)
    model_set = future.result()
    return {
        "trained_at": model_set.trained_at.isoformat(),
        "fingerprint": model_set.fingerprint.to_dict(),
        "models": _models_payload(service),
    }


@router.get("/models")
def list_models(service: AnalysisService = Depends(get_analysis_service)):
    """Metadata of the currently published models."""
    current = service.model_cache.current
    return {
        "trained_at": current.trained_at.isoformat() if current else None,
        "fingerprint": current.fingerprint.to_dict() if current else None,
        "models": _models_payload(service),
    }


@router.post("/predict")
def predict(
    request: PredictRequest,
    service: AnalysisService = Depends(get_analysis_service),
):
    """
    Predict performance under today's conditions.

    Responds 404 when no model covers the activity.
    """
    return _predict(service, request).to_dict()
