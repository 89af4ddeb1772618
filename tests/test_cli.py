"""Tests for the command line interface."""

import json
import sys

import pytest

from health_analytics import cli
from health_analytics.exceptions import ValidationError


@pytest.fixture
def snapshot_file(tmp_path, full_snapshot):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps({
        "metrics": [p.to_dict() for p in full_snapshot.metrics],
        "workouts": [w.to_dict() for w in full_snapshot.workouts],
        "nutrition": [n.to_dict() for n in full_snapshot.nutrition],
    }))
    return path


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["health-analytics", *argv])
    cli.main()


class TestCli:
    """Tests for the CLI commands."""

    def test_load_snapshot_overrides_day(self, snapshot_file):
        snapshot = cli.load_snapshot(str(snapshot_file), "2024-03-20")
        assert snapshot.as_of.isoformat() == "2024-03-20"

    def test_analyze(self, monkeypatch, capsys, snapshot_file):
        run_cli(monkeypatch, "analyze", str(snapshot_file))
        out = capsys.readouterr().out
        assert "Training Load" in out
        assert "Readiness:" in out
        assert "Your current protein intake" in out

    def test_train(self, monkeypatch, capsys, snapshot_file):
        run_cli(monkeypatch, "train", str(snapshot_file))
        assert "Trained Models" in capsys.readouterr().out

    def test_predict_without_model_exits(self, monkeypatch, capsys, snapshot_file):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(
                monkeypatch, "predict", str(snapshot_file), "--activity", "swim",
                "--sleep", "7.5", "--hrv", "57", "--rhr", "51", "--carbs", "290",
            )
        assert exc_info.value.code == 1
        assert "No trained model available" in capsys.readouterr().out

    def test_invalid_snapshot_exits(self, monkeypatch, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text('{"metrics": [{"date": "2024-03-01", "kind": "hrv"}]}')
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, "analyze", str(path))
        assert exc_info.value.code == 1

    def test_load_snapshot_missing_file(self, tmp_path):
        with pytest.raises(ValidationError):
            cli.load_snapshot(str(tmp_path / "missing.json"))

    @pytest.mark.parametrize("status,color", [
        ("optimal", "green"),
        ("very_high", "bold red"),
        ("unknown", "white"),
    ])
    def test_status_colors(self, status, color):
        assert cli.get_status_color(status) == color
