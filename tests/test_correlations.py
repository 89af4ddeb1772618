"""Tests for personal sleep, HRV and protein correlations."""

from datetime import date, timedelta

import pytest

from health_analytics.analysis.correlations import (
    ActivityCorrelation,
    CorrelationConfidence,
    CorrelationFactor,
    analyze_hrv_vs_performance,
    analyze_protein_vs_recovery,
    analyze_sleep_vs_performance,
    confidence_for,
    percent_difference,
)
from health_analytics.models.inputs import (
    ActivityKind,
    AnalysisSnapshot,
    DailyMetricPoint,
    MetricKind,
    NutritionDay,
)


START = date(2024, 3, 1)
FAST, SLOW = 10000, 9000  # meters in 50 minutes, 10% apart


def paired_snapshot(make_workout, kind, factor, pairs, distance=True):
    """One workout a day; ``pairs`` is (factor value, distance or watts) per workout."""
    metrics, workouts = [], []
    for i, (value, performance) in enumerate(pairs):
        day = START + timedelta(days=2 * i + 1)
        factor_day = day - timedelta(days=1) if factor == MetricKind.SLEEP else day
        metrics.append(DailyMetricPoint(factor_day, value, factor))
        if distance:
            workouts.append(make_workout(day, kind, minutes=50, distance_meters=performance))
        else:
            workouts.append(make_workout(day, kind, minutes=50, avg_power_watts=performance))
    return AnalysisSnapshot(metrics=metrics, workouts=workouts)


class TestHelpers:
    """Tests for shared scoring helpers."""

    @pytest.mark.parametrize("n,expected", [
        (4, CorrelationConfidence.INSUFFICIENT),
        (5, CorrelationConfidence.LOW),
        (10, CorrelationConfidence.MEDIUM),
        (20, CorrelationConfidence.HIGH),
    ])
    def test_confidence_tiers(self, n, expected):
        assert confidence_for(n) == expected

    def test_difference_relative_to_larger(self):
        assert percent_difference(100, 90) == pytest.approx(10.0)
        assert percent_difference(90, 100) == pytest.approx(-10.0)
        assert percent_difference(0, 0) == 0.0


class TestSleepVsPerformance:
    """Tests for performance after good vs poor sleep."""

    def test_faster_after_good_sleep(self, make_workout):
        pairs = [(8.0, FAST)] * 3 + [(6.0, SLOW)] * 3
        insights = analyze_sleep_vs_performance(
            paired_snapshot(make_workout, ActivityKind.RUN, MetricKind.SLEEP, pairs)
        )

        assert len(insights) == 1
        insight = insights[0]
        assert insight.factor == CorrelationFactor.SLEEP
        assert insight.activity == ActivityKind.RUN
        assert insight.percent_difference == pytest.approx(10.0)
        assert insight.r_squared == pytest.approx(1.0)
        assert insight.sample_size == 6
        assert insight.confidence == CorrelationConfidence.LOW
        assert insight.unit == "mph"
        assert "10.0% better on runs after 7+ hours of sleep" in insight.message

    def test_same_day_sleep_not_paired(self, make_workout):
        pairs = [(8.0, FAST)] * 3 + [(6.0, SLOW)] * 3
        snapshot = paired_snapshot(make_workout, ActivityKind.RUN, MetricKind.SLEEP, pairs)
        shifted = AnalysisSnapshot(
            metrics=[
                DailyMetricPoint(p.date + timedelta(days=1), p.value, p.kind)
                for p in snapshot.metrics
            ],
            workouts=snapshot.workouts,
        )
        assert analyze_sleep_vs_performance(shifted) == []

    def test_needs_two_on_each_side(self, make_workout):
        pairs = [(8.0, FAST)] * 5 + [(6.0, SLOW)]
        snapshot = paired_snapshot(make_workout, ActivityKind.RUN, MetricKind.SLEEP, pairs)
        assert analyze_sleep_vs_performance(snapshot) == []

    def test_small_difference_ignored(self, make_workout):
        pairs = [(8.0, 10000)] * 3 + [(6.0, 9700)] * 3
        snapshot = paired_snapshot(make_workout, ActivityKind.RUN, MetricKind.SLEEP, pairs)
        assert analyze_sleep_vs_performance(snapshot) == []

    def test_rides_use_power(self, make_workout):
        pairs = [(8.0, 200)] * 3 + [(6.0, 160)] * 3
        snapshot = paired_snapshot(
            make_workout, ActivityKind.RIDE, MetricKind.SLEEP, pairs, distance=False
        )
        insight = analyze_sleep_vs_performance(snapshot)[0]
        assert insight.unit == "W"
        assert insight.percent_difference == pytest.approx(20.0)
        assert insight.to_dict()["favorable_avg"] == 200

    def test_worse_after_good_sleep(self, make_workout):
        pairs = [(8.0, SLOW)] * 3 + [(6.0, FAST)] * 3
        snapshot = paired_snapshot(make_workout, ActivityKind.RUN, MetricKind.SLEEP, pairs)
        insight = analyze_sleep_vs_performance(snapshot)[0]
        assert insight.percent_difference == pytest.approx(-10.0)
        assert "worse" in insight.message

    def test_largest_difference_first(self, make_workout):
        runs = paired_snapshot(
            make_workout, ActivityKind.RUN, MetricKind.SLEEP,
            [(8.0, FAST)] * 3 + [(6.0, SLOW)] * 3,
        )
        # Same sleep nights, rides in the evening
        rides = [
            make_workout(w.day, ActivityKind.RIDE, minutes=60, avg_power_watts=watts)
            for w, watts in zip(runs.workouts, [200] * 3 + [160] * 3)
        ]
        snapshot = AnalysisSnapshot(metrics=runs.metrics, workouts=runs.workouts + rides)
        insights = analyze_sleep_vs_performance(snapshot)
        assert [i.activity for i in insights] == [ActivityKind.RIDE, ActivityKind.RUN]

    def test_full_snapshot_has_no_poor_sleep(self, full_snapshot):
        # Every night is 7+ hours, so there is nothing to compare against
        assert analyze_sleep_vs_performance(full_snapshot) == []


class TestHrvVsPerformance:
    """Tests for performance on high vs low HRV days."""

    def test_faster_on_high_hrv(self, make_workout):
        pairs = [(70.0, FAST)] * 3 + [(50.0, SLOW)] * 3
        insights = analyze_hrv_vs_performance(
            paired_snapshot(make_workout, ActivityKind.RUN, MetricKind.HRV, pairs)
        )

        assert len(insights) == 1
        insight = insights[0]
        assert insight.factor == CorrelationFactor.HRV
        assert insight.favorable_avg > insight.other_avg
        assert insight.r_squared == pytest.approx(1.0)
        assert "on days your HRV is above average" in insight.message

    def test_no_hrv(self, make_workout):
        snapshot = AnalysisSnapshot(workouts=[make_workout(START, minutes=50, distance_meters=FAST)])
        assert analyze_hrv_vs_performance(snapshot) == []

    def test_serializes(self, make_workout):
        pairs = [(70.0, FAST)] * 3 + [(50.0, SLOW)] * 3
        insight = analyze_hrv_vs_performance(
            paired_snapshot(make_workout, ActivityKind.RUN, MetricKind.HRV, pairs)
        )[0]
        data = insight.to_dict()
        assert data["factor"] == "hrv"
        assert data["activity"] == "run"
        assert data["percent_difference"] == 10.0
        assert data["confidence"] == "low"

    def test_full_snapshot(self, full_snapshot):
        insights = analyze_hrv_vs_performance(full_snapshot)
        assert all(isinstance(i, ActivityCorrelation) for i in insights)
        assert all(abs(i.percent_difference) >= 5 for i in insights)


def protein_snapshot(proteins, hrv_after, rhr=50.0, incomplete=()):
    """Nutrition on consecutive days; next-day HRV looked up from ``hrv_after``."""
    nutrition, metrics = [], []
    for i, protein in enumerate(proteins):
        day = START + timedelta(days=i)
        nutrition.append(NutritionDay(day, 250.0, protein))
        next_day = day + timedelta(days=1)
        metrics.append(DailyMetricPoint(next_day, hrv_after[protein], MetricKind.HRV))
        metrics.append(DailyMetricPoint(next_day, rhr, MetricKind.RESTING_HR))
    for offset, protein in incomplete:
        nutrition.append(NutritionDay(START + timedelta(days=offset), 250.0, protein, is_complete=False))
    return AnalysisSnapshot(metrics=metrics, nutrition=nutrition)


class TestProteinVsRecovery:
    """Tests for protein intake against next-day recovery."""

    def test_needs_ten_complete_days(self):
        snapshot = protein_snapshot([120.0] * 6, {120.0: 60.0}, incomplete=[(7, 120.0), (8, 120.0)])
        insight = analyze_protein_vs_recovery(snapshot)

        assert insight.confidence == CorrelationConfidence.INSUFFICIENT
        assert insight.ranges == []
        assert insight.optimal_range is None
        assert "4 more days" in insight.recommendation

    def test_recommends_better_range(self):
        proteins = [80.0] * 9 + [140.0] * 3
        insight = analyze_protein_vs_recovery(protein_snapshot(proteins, {80.0: 50.0, 140.0: 65.0}))

        assert [r.label for r in insight.ranges] == ["<100g", "130-160g"]
        assert insight.optimal_range.label == "130-160g"
        assert insight.current_average == pytest.approx(95.0)
        assert insight.hrv_r_squared == pytest.approx(1.0)
        assert insight.confidence == CorrelationConfidence.MEDIUM
        assert insight.recommendation == (
            "Consider targeting 130-160g protein daily. "
            "Next-day HRV is 15.0ms higher in that range."
        )

    def test_average_outside_any_observed_range(self):
        proteins = [90.0, 140.0] * 6
        insight = analyze_protein_vs_recovery(protein_snapshot(proteins, {90.0: 50.0, 140.0: 65.0}))
        assert insight.current_average == pytest.approx(115.0)
        assert insight.recommendation == (
            "Your best recovery follows 130-160g protein days. Current average: 115g."
        )

    def test_lower_resting_hr_counts(self):
        # Same HRV, resting HR 10 bpm lower after high-protein days
        snapshot = protein_snapshot([90.0, 140.0] * 6, {90.0: 60.0, 140.0: 60.0})
        low_rhr = AnalysisSnapshot(
            metrics=[
                DailyMetricPoint(p.date, 40.0, p.kind)
                if p.kind == MetricKind.RESTING_HR and (p.date - START).days % 2 == 0
                else p
                for p in snapshot.metrics
            ],
            nutrition=snapshot.nutrition,
        )
        insight = analyze_protein_vs_recovery(low_rhr)
        assert insight.optimal_range.label == "130-160g"

    def test_incomplete_days_ignored(self):
        proteins = [120.0] * 12
        snapshot = protein_snapshot(proteins, {120.0: 60.0}, incomplete=[(20, 200.0), (21, 200.0)])
        insight = analyze_protein_vs_recovery(snapshot)
        assert [r.label for r in insight.ranges] == ["100-130g"]
        assert insight.current_average == pytest.approx(120.0)

    def test_full_snapshot_in_optimal_range(self, full_snapshot):
        insight = analyze_protein_vs_recovery(full_snapshot)

        assert insight.optimal_range.label == "100-130g"
        assert insight.ranges[0].sample_size == 41
        assert insight.confidence == CorrelationConfidence.HIGH
        assert insight.recommendation.startswith(
            "Your current protein intake (120g) is in the optimal range"
        )
        data = insight.to_dict()
        assert data["optimal_range"] == "100-130g"
        assert data["ranges"][0]["min_protein"] == 100.0
