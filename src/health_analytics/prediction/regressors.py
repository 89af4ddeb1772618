"""Candidate model families for the performance predictor.

Each family exposes the same ``fit`` call so the predictor can pick the
better one by residual error at runtime.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Sequence

import numpy as np
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import LinearRegression


class ModelKind(str, Enum):
    LINEAR = "linear"
    FOREST = "random_forest"


@dataclass
class FittedModel:
    """A fitted estimator and its RMSE on the training rows."""

    kind: ModelKind
    estimator: Any
    rmse: float

    def predict_one(self, features: Sequence[float]) -> float:
        """Predict a single row."""
        values = self.estimator.predict(np.asarray([features], dtype=float))
        return float(values[0])


class ModelFamily(Protocol):
    """Anything that can fit features -> target and report its RMSE."""

    kind: ModelKind

    def fit(self, features: Sequence[Sequence[float]], target: Sequence[float]) -> FittedModel:
        ...


def root_mean_squared_error(actual: Sequence[float], predicted: Sequence[float]) -> float:
    """RMSE between two equally long sequences."""
    residuals = np.asarray(actual, dtype=float) - np.asarray(predicted, dtype=float)
    return math.sqrt(float(np.mean(residuals ** 2)))


def _fit_and_score(kind: ModelKind, estimator: Any, features, target) -> FittedModel:
    x = np.asarray(features, dtype=float)
    y = np.asarray(target, dtype=float)
    estimator.fit(x, y)
    rmse = root_mean_squared_error(y, estimator.predict(x))
    return FittedModel(kind=kind, estimator=estimator, rmse=rmse)


class LinearFamily:
    """Ordinary least squares."""

    kind = ModelKind.LINEAR

    def fit(self, features: Sequence[Sequence[float]], target: Sequence[float]) -> FittedModel:
        return _fit_and_score(self.kind, LinearRegression(), features, target)


class ForestFamily:
    """Random forest, for relationships the linear model misses."""

    kind = ModelKind.FOREST

    def __init__(self, n_estimators: int = 100, random_state: int = 42):
        self.n_estimators = n_estimators
        self.random_state = random_state

    def fit(self, features: Sequence[Sequence[float]], target: Sequence[float]) -> FittedModel:
        estimator = RandomForestRegressor(
            n_estimators=self.n_estimators,
            random_state=self.random_state,
        )
        return _fit_and_score(self.kind, estimator, features, target)


def pearson_r_squared(x: Sequence[float], y: Sequence[float]) -> float:
    """Squared Pearson correlation, 0.0 when either side has no variance."""
    if len(x) < 2:
        return 0.0
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    dx = xs - xs.mean()
    dy = ys - ys.mean()
    denominator = math.sqrt(float(np.sum(dx ** 2)) * float(np.sum(dy ** 2)))
    if denominator == 0:
        return 0.0
    r = float(np.sum(dx * dy)) / denominator
    return r * r
