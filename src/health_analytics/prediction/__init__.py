"""Performance prediction from recovery and load features."""

from .predictor import (
    PerformancePredictor,
    Prediction,
    PredictionInputs,
    PredictionWithUncertainty,
    TrainedModel,
)

__all__ = [
    "PerformancePredictor",
    "Prediction",
    "PredictionInputs",
    "PredictionWithUncertainty",
    "TrainedModel",
]
