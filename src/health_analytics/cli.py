#!/usr/bin/env python3
"""
Health Analytics CLI.

Training load, injury risk, readiness and performance prediction from a
snapshot file (the same JSON shape as ``POST /api/v1/analyze``).

Usage:
    health-analytics analyze snapshot.json
    health-analytics analyze snapshot.json --as-of 2024-03-01
    health-analytics train snapshot.json
    health-analytics predict snapshot.json --activity ride --sleep 7.5 \
        --hrv 62 --rhr 51 --acwr 1.1 --carbs 320 --interval
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from .config import get_settings
from .exceptions import HealthAnalyticsError, ValidationError
from .models.inputs import ActivityKind, AnalysisSnapshot
from .prediction.predictor import PredictionInputs, PredictionWithUncertainty
from .services.analysis import AnalysisService

console = Console()


def get_status_color(status: str) -> str:
    """Get rich color for a load status or risk level."""
    colors = {
        "fresh": "blue",
        "optimal": "green",
        "fatigued": "yellow",
        "overreaching": "red",
        "low": "green",
        "moderate": "yellow",
        "high": "red",
        "very_high": "bold red",
        "perform": "green",
        "baseline": "blue",
        "recover": "yellow",
    }
    return colors.get(status, "white")


def get_trend_color(status: str) -> str:
    """Get rich color for a metric trend status."""
    colors = {
        "improving": "green",
        "stable": "white",
        "declining": "yellow",
        "warning": "red",
    }
    return colors.get(status, "white")


def load_snapshot(path: str, as_of: str = None) -> AnalysisSnapshot:
    """
    Read a snapshot file.

    Raises:
        ValidationError: The file is not a valid snapshot
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if as_of:
            data["as_of"] = as_of
        return AnalysisSnapshot.from_dict(data)
    except (OSError, KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid snapshot {path}: {e}", field="snapshot") from e


def cmd_analyze(args, service: AnalysisService):
    """Show the daily instruction, load, risk, readiness, trends and correlations."""
    snapshot = load_snapshot(args.snapshot, args.as_of)
    result = service.analyze(snapshot, schedule_training=False)

    console.print()
    console.print(Panel(f"[bold]Health Analytics - {result.as_of}[/bold]"))
    console.print()

    coaching = result.coaching
    if coaching is not None:
        color = get_status_color(coaching.status.value)
        console.print(f"[bold {color}]{coaching.headline}[/bold {color}]")
        console.print(f"  {coaching.subline}")
        for line in (coaching.insight, coaching.target):
            if line:
                console.print(f"  {line}")
        console.print()

    summary = result.load_summary
    if summary is None:
        console.print("[dim]Training load: building baseline (no load in the last 28 days)[/dim]")
    else:
        color = get_status_color(summary.status.value)
        load_text = f"""
[cyan]Acute load (7d):[/cyan]     {summary.acute_load:.1f}
[cyan]Chronic load (28d):[/cyan]  {summary.chronic_load:.1f}
[cyan]ACWR:[/cyan]                {summary.ratio:.2f}
[cyan]EWMA ACWR:[/cyan]           {summary.ewma_ratio:.2f}
[cyan]Monotony:[/cyan]            {summary.monotony:.2f}
[cyan]Strain:[/cyan]              {summary.strain:.0f}
[cyan]Weekly change:[/cyan]       {summary.weekly_load_change_pct:+.1f}%

[cyan]Status:[/cyan]              [{color}]{summary.status.value.upper()}[/{color}]
"""
        console.print(Panel(load_text, title="Training Load", box=box.ROUNDED))
        console.print(f"[{color}]{summary.recommendation}[/{color}]")
        console.print()

    risk = result.injury_risk
    if risk is not None:
        color = get_status_color(risk.level.value)
        console.print(
            f"[bold]Injury risk:[/bold] [{color}]{risk.score:.0f}/100 "
            f"({risk.level.value.replace('_', ' ')})[/{color}]"
        )
        for factor in risk.factors:
            console.print(f"  - {factor.description} [dim](+{factor.points})[/dim]")
        console.print(f"  {risk.recommendation}")
        console.print()

    readiness = result.readiness
    if readiness is None:
        console.print("[dim]Readiness: not enough HRV/resting HR and sleep data[/dim]")
    else:
        b = readiness.breakdown
        console.print(
            f"[bold]Readiness:[/bold] {readiness.score}/100 "
            f"(recovery {b.recovery}, fitness {b.fitness}, fatigue {b.fatigue}) "
            f"- {readiness.trend.value}, {readiness.confidence.value} confidence"
        )
        console.print(f"  {readiness.recommendation}")
        console.print(
            "  Next 7 days: " + " ".join(str(p.score) for p in readiness.trajectory)
        )
    console.print()

    if result.trends:
        table = Table(title="Metric Trends", box=box.SIMPLE)
        table.add_column("Metric", style="cyan")
        table.add_column("Baseline", justify="right")
        table.add_column("Recent", justify="right")
        table.add_column("Change", justify="right")
        table.add_column("Status")
        for trend in result.trends:
            color = get_trend_color(trend.status.value)
            table.add_row(
                trend.name,
                f"{trend.baseline_avg:.1f}",
                f"{trend.current_avg:.1f}",
                trend.context,
                f"[{color}]{trend.status.value}[/{color}]",
            )
        console.print(table)

    for insight in result.recovery:
        console.print(f"  {insight.message}")
    console.print()

    for correlation in result.sleep_performance + result.hrv_performance:
        console.print(f"  {correlation.message}")
    if result.protein_recovery is not None:
        console.print(f"  {result.protein_recovery.recommendation}")
    console.print()


def cmd_train(args, service: AnalysisService):
    """Train performance models on a snapshot."""
    snapshot = load_snapshot(args.snapshot)
    model_set = service.train(snapshot)

    if not model_set.models:
        console.print("No models trained. Each activity needs "
                      f"{service.settings.min_training_samples} workouts with full data.")
        return

    table = Table(title="Trained Models", box=box.ROUNDED)
    table.add_column("Activity", style="cyan")
    table.add_column("Model")
    table.add_column("Samples", justify="right")
    table.add_column("RMSE", justify="right")
    table.add_column("Quality")
    table.add_column("Top feature")
    for model in model_set.models:
        quality = service.predictor.validate_model_quality(model)
        weights = model.feature_weights.to_dict()
        top = max(weights, key=weights.get)
        table.add_row(
            model.label,
            model.model_kind.value,
            str(model.sample_count),
            f"{model.rmse:.2f} {model.unit}",
            quality.rmse_quality.value,
            f"{top} ({weights[top]:.0%})",
        )
    console.print(table)


def cmd_predict(args, service: AnalysisService):
    """Train on a snapshot, then predict today's performance."""
    snapshot = load_snapshot(args.snapshot)
    service.train(snapshot)

    inputs = PredictionInputs(
        sleep_hours=args.sleep,
        hrv=args.hrv,
        resting_hr=args.rhr,
        acwr=args.acwr,
        carbs=args.carbs,
    )
    result = service.predict(ActivityKind(args.activity), inputs, with_interval=args.interval)

    if isinstance(result, PredictionWithUncertainty):
        p = result.prediction
        console.print(
            f"[bold]{p.activity.value}:[/bold] {p.predicted_value:.1f} {p.unit} "
            f"(95% interval {result.lower:.1f} - {result.upper:.1f}), "
            f"{p.confidence.value} confidence"
        )
    else:
        console.print(
            f"[bold]{result.activity.value}:[/bold] {result.predicted_value:.1f} {result.unit}, "
            f"{result.confidence.value} confidence"
        )


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Health Analytics - training load, risk, readiness and prediction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  health-analytics analyze snapshot.json
  health-analytics train snapshot.json
  health-analytics predict snapshot.json --activity run --sleep 7.5 --hrv 60 --rhr 52 --acwr 1.0 --carbs 300
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Analyze command
    analyze_p = subparsers.add_parser("analyze", help="Analyze a snapshot")
    analyze_p.add_argument("snapshot", help="Snapshot JSON file")
    analyze_p.add_argument("--as-of", help="Analysis day (YYYY-MM-DD), defaults to the latest date")

    # Train command
    train_p = subparsers.add_parser("train", help="Train performance models")
    train_p.add_argument("snapshot", help="Snapshot JSON file")

    # Predict command
    predict_p = subparsers.add_parser("predict", help="Predict workout performance")
    predict_p.add_argument("snapshot", help="Snapshot JSON file to train on")
    predict_p.add_argument(
        "--activity", required=True, choices=[k.value for k in ActivityKind]
    )
    predict_p.add_argument("--sleep", type=float, required=True, help="Last night's sleep (hours)")
    predict_p.add_argument("--hrv", type=float, required=True, help="Today's HRV (ms)")
    predict_p.add_argument("--rhr", type=float, required=True, help="Today's resting HR (bpm)")
    predict_p.add_argument("--acwr", type=float, default=1.0, help="Current acute:chronic ratio")
    predict_p.add_argument("--carbs", type=float, required=True, help="Yesterday's carbs (g)")
    predict_p.add_argument("--interval", action="store_true", help="Include the 95%% interval")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "analyze": cmd_analyze,
        "train": cmd_train,
        "predict": cmd_predict,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return

    service = AnalysisService(settings=get_settings())
    try:
        command(args, service)
    except HealthAnalyticsError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)
    finally:
        service.shutdown()


if __name__ == "__main__":
    main()
