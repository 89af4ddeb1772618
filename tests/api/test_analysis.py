"""Tests for the analysis, training and prediction API endpoints."""

import pytest
from fastapi.testclient import TestClient

from health_analytics.api.deps import get_analysis_service
from health_analytics.exceptions import TrainingFailedError
from health_analytics.main import app
from health_analytics.services.analysis import AnalysisService


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def service(settings):
    """Fresh service per test, so no models or cached results leak."""
    service = AnalysisService(settings)
    app.dependency_overrides[get_analysis_service] = lambda: service
    yield service
    app.dependency_overrides.clear()
    service.shutdown()


@pytest.fixture
def client(service):
    """Create a test client."""
    return TestClient(app)


@pytest.fixture
def snapshot_payload(full_snapshot):
    """The full snapshot in its JSON request shape."""
    return {
        "metrics": [p.to_dict() for p in full_snapshot.metrics],
        "workouts": [w.to_dict() for w in full_snapshot.workouts],
        "nutrition": [n.to_dict() for n in full_snapshot.nutrition],
    }


PREDICT_BODY = {
    "activity": "run",
    "sleep_hours": 7.5,
    "hrv": 57,
    "resting_hr": 51,
    "acwr": 1.0,
    "carbs": 290,
}


# ============================================================================
# Service Endpoints
# ============================================================================

class TestServiceEndpoints:
    """Tests for root and health endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root(self, client):
        data = client.get("/").json()
        assert data["name"] == "Health Analytics API"
        assert data["status"] == "healthy"


# ============================================================================
# Analyze
# ============================================================================

class TestAnalyzeEndpoint:
    """Tests for POST /api/v1/analyze."""

    def test_full_analysis(self, client, snapshot_payload):
        response = client.post("/api/v1/analyze", json=snapshot_payload)

        assert response.status_code == 200
        data = response.json()
        assert data["api_version"] == "1"
        assert data["as_of"] == "2024-03-31"
        assert data["load_summary"]["status"] in {"fresh", "optimal", "fatigued", "overreaching"}
        assert 0 <= data["injury_risk"]["score"] <= 100
        assert 0 <= data["readiness"]["score"] <= 100
        assert len(data["trends"]) == 5
        assert data["prediction"] is None
        assert data["correlations"]["protein_recovery"]["optimal_range"] == "100-130g"
        assert data["coaching"]["headline"]

    def test_repeat_request_is_identical(self, client, snapshot_payload):
        first = client.post("/api/v1/analyze", json=snapshot_payload).json()
        second = client.post("/api/v1/analyze", json=snapshot_payload).json()
        first.pop("models")
        second.pop("models")
        assert first == second

    def test_empty_batch(self, client):
        data = client.post("/api/v1/analyze", json={}).json()
        assert data["load_summary"] is None
        assert data["readiness"] is None
        assert data["trends"] == []

    def test_prediction_without_models_is_null(self, client, snapshot_payload):
        payload = dict(snapshot_payload, prediction={**PREDICT_BODY, "activity": "swim"})
        response = client.post("/api/v1/analyze", json=payload)
        assert response.status_code == 200
        assert response.json()["prediction"] is None

    def test_mixed_offset_start_times(self, client):
        payload = {"workouts": [
            {"id": "w1", "kind": "run", "start_time": "2024-03-01T07:00:00Z",
             "duration_seconds": 1800, "distance_meters": 6000},
            {"id": "w2", "kind": "run", "start_time": "2024-03-02T07:00:00",
             "duration_seconds": 1800, "distance_meters": 6000},
        ]}
        response = client.post("/api/v1/analyze", json=payload)
        assert response.status_code == 200
        assert response.json()["as_of"] == "2024-03-02"

    def test_unknown_metric_kind(self, client):
        payload = {"metrics": [{"date": "2024-03-01", "value": 40, "kind": "vo2max"}]}
        response = client.post("/api/v1/analyze", json=payload)

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["errors"][0]["field"].startswith("body.metrics.0.kind")
        assert error["message"] == "Input batch has 1 invalid field(s)"

    def test_negative_duration(self, client):
        payload = {"workouts": [{
            "id": "w1",
            "kind": "run",
            "start_time": "2024-03-01T07:00:00",
            "duration_seconds": -60,
        }]}
        response = client.post("/api/v1/analyze", json=payload)
        assert response.status_code == 422


# ============================================================================
# Models and Prediction
# ============================================================================

class TestModelEndpoints:
    """Tests for training, listing and predicting."""

    def test_no_models_yet(self, client):
        data = client.get("/api/v1/models").json()
        assert data["trained_at"] is None
        assert data["models"] == []

    def test_predict_without_model(self, client):
        response = client.post("/api/v1/predict", json=PREDICT_BODY)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NO_TRAINED_MODEL"

    def test_train_then_predict(self, client, snapshot_payload):
        response = client.post("/api/v1/models/train", json=snapshot_payload)
        assert response.status_code == 200
        models = response.json()["models"]
        assert [m["activity"] for m in models] == ["run", "ride"]
        assert models[0]["quality"]["rmse_quality"] in {"excellent", "good", "poor"}

        response = client.post("/api/v1/predict", json={**PREDICT_BODY, "with_interval": True})
        assert response.status_code == 200
        data = response.json()
        assert data["unit"] == "mph"
        assert data["model_activity"] == "run"
        assert data["lower"] <= data["predicted_value"] <= data["upper"]

    def test_analyze_with_prediction(self, client, snapshot_payload):
        client.post("/api/v1/models/train", json=snapshot_payload)
        payload = dict(snapshot_payload, prediction=PREDICT_BODY)
        data = client.post("/api/v1/analyze", json=payload).json()

        assert data["prediction"]["model_activity"] == "run"
        coaching = data["coaching"]
        if coaching["status"] == "perform":
            assert coaching["target"].endswith("mph on your run.")
        elif coaching["status"] == "baseline":
            assert coaching["target"] is None
        else:
            assert coaching["target"].startswith("Keep heart rate below zone 2")

    def test_models_listed_after_training(self, client, snapshot_payload):
        client.post("/api/v1/models/train", json=snapshot_payload)
        data = client.get("/api/v1/models").json()
        assert data["fingerprint"]["workout_count"] == len(snapshot_payload["workouts"])
        assert len(data["models"]) == 2

    def test_predict_rejects_bad_inputs(self, client):
        response = client.post("/api/v1/predict", json={**PREDICT_BODY, "sleep_hours": 30})
        assert response.status_code == 422


# ============================================================================
# Error Envelope
# ============================================================================

class TestErrorEnvelope:
    """Tests for the shared error shape."""

    def test_unexpected_error_hides_internals(self, service, monkeypatch, snapshot_payload):
        def crash(snapshot, schedule_training=True):
            raise RuntimeError("secret internals")

        monkeypatch.setattr(service, "analyze", crash)
        client = TestClient(app, raise_server_exceptions=False)
        response = client.post("/api/v1/analyze", json=snapshot_payload)

        assert response.status_code == 500
        error = response.json()["error"]
        assert error == {"code": "INTERNAL_ERROR", "message": "Analysis service error"}

    def test_failed_training_is_reported(self, client, service, monkeypatch, snapshot_payload):
        def fail(snapshot, now=None):
            raise TrainingFailedError("fit diverged")

        monkeypatch.setattr(service.predictor, "train", fail)
        response = client.post("/api/v1/models/train", json=snapshot_payload)

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "TRAINING_FAILED"
        assert error["message"] == "Training failed: fit diverged"
