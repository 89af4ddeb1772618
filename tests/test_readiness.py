"""Tests for readiness score calculation."""

from datetime import date, timedelta

import pytest

from health_analytics.metrics.fitness import LoadStatus, LoadSummary
from health_analytics.models.inputs import ActivityKind, MetricKind
from health_analytics.recommendations.readiness import (
    ReadinessConfidence,
    ReadinessTrend,
    calculate_fatigue_score,
    calculate_fitness_score,
    calculate_readiness,
    calculate_recovery_score,
    determine_confidence,
    determine_trend,
    generate_trajectory,
    get_readiness_recommendation,
)


def load_summary(ewma_ratio):
    return LoadSummary(
        as_of=date(2024, 3, 31),
        acute_load=50.0,
        chronic_load=50.0,
        ratio=ewma_ratio,
        ewma_acute=50.0 * ewma_ratio,
        ewma_chronic=50.0,
        ewma_ratio=ewma_ratio,
        monotony=1.5,
        strain=75.0,
        weekly_load_change_pct=0.0,
        status=LoadStatus.OPTIMAL,
        ratio_status=LoadStatus.OPTIMAL,
        recommendation="",
    )


class TestRecoveryScore:
    """Tests for the recovery sub-score."""

    def test_elevated_hrv(self, make_series):
        """Recent HRV 10% above the earlier baseline earns full HRV points."""
        hrv = make_series(MetricKind.HRV, [50] * 13 + [55] * 7)
        score, details = calculate_recovery_score(hrv, [], [])
        assert score == 15
        assert "+10%" in details

    def test_short_history_uses_recent_as_baseline(self, make_series):
        hrv = make_series(MetricKind.HRV, [50] * 5)
        assert calculate_recovery_score(hrv, [], [])[0] == 12

    @pytest.mark.parametrize("recent,expected", [
        (57, 15),
        (60, 12),
        (62, 7),
        (65, 2),
    ])
    def test_resting_hr_tiers(self, make_series, recent, expected):
        rhr = make_series(MetricKind.RESTING_HR, [60] * 14 + [recent] * 7)
        assert calculate_recovery_score([], rhr, [])[0] == expected

    @pytest.mark.parametrize("hours,expected", [
        (8.5, 10),
        (7.2, 7),
        (6.5, 4),
        (5.0, 1),
    ])
    def test_sleep_tiers(self, make_series, hours, expected):
        sleep = make_series(MetricKind.SLEEP, [hours] * 7)
        assert calculate_recovery_score([], [], sleep)[0] == expected

    def test_best_case_is_forty(self, make_series):
        score, _ = calculate_recovery_score(
            make_series(MetricKind.HRV, [50] * 14 + [60] * 7),
            make_series(MetricKind.RESTING_HR, [60] * 14 + [55] * 7),
            make_series(MetricKind.SLEEP, [8.5] * 7),
        )
        assert score == 40


class TestFitnessScore:
    """Tests for the fitness sub-score."""

    def test_consistent_long_sessions(self, make_workout, as_of):
        workouts = [make_workout(as_of - timedelta(days=i), minutes=75) for i in range(8)]
        assert calculate_fitness_score(workouts, as_of)[0] == 30

    def test_window_is_fourteen_days(self, make_workout, as_of):
        """The window spans as_of and the 13 days before it."""
        workouts = [
            make_workout(as_of - timedelta(days=13), minutes=45),
            make_workout(as_of - timedelta(days=14), minutes=45),
        ]
        score, details = calculate_fitness_score(workouts, as_of)
        assert details.startswith("1 sessions")
        assert score == 4 + 12

    def test_no_workouts(self, as_of):
        assert calculate_fitness_score([], as_of)[0] == 4


class TestFatigueScore:
    """Tests for the fatigue sub-score."""

    @pytest.mark.parametrize("ratio,expected", [
        (0.7, 30),
        (0.9, 27),
        (1.2, 23),
        (1.4, 15),
        (1.8, 5),
    ])
    def test_ratio_tiers(self, ratio, expected):
        assert calculate_fatigue_score(load_summary(ratio), 25)[0] == expected

    def test_weak_recovery_penalty(self):
        assert calculate_fatigue_score(load_summary(1.8), 10)[0] == 0

    def test_strong_recovery_is_capped(self):
        assert calculate_fatigue_score(load_summary(0.7), 38)[0] == 30

    def test_without_summary(self):
        assert calculate_fatigue_score(None, 25)[0] == 30


class TestTrend:
    """Tests for trend classification."""

    def test_maintaining_without_history(self, make_series, as_of):
        hrv = make_series(MetricKind.HRV, [50] * 6)
        assert determine_trend(hrv, [], [], 60, as_of) == ReadinessTrend.MAINTAINING

    def test_recovering_on_rest(self, make_series, as_of):
        hrv = make_series(MetricKind.HRV, [50] * 4 + [53] * 3)
        assert determine_trend(hrv, [], [], 60, as_of) == ReadinessTrend.RECOVERING

    def test_peaking(self, make_series, make_workout, as_of):
        hrv = make_series(MetricKind.HRV, [50] * 4 + [53] * 3)
        workouts = [make_workout(as_of - timedelta(days=2))]
        assert determine_trend(hrv, [], workouts, 80, as_of) == ReadinessTrend.PEAKING

    def test_recent_work_is_three_days(self, make_series, make_workout, as_of):
        """Recent work covers as_of and the two days before it."""
        hrv = make_series(MetricKind.HRV, [50] * 4 + [53] * 3)
        workouts = [make_workout(as_of - timedelta(days=3))]
        assert determine_trend(hrv, [], workouts, 80, as_of) == ReadinessTrend.RECOVERING

    def test_improving_with_recent_work(self, make_series, make_workout, as_of):
        hrv = make_series(MetricKind.HRV, [50] * 4 + [55] * 3)
        workouts = [make_workout(as_of)]
        assert determine_trend(hrv, [], workouts, 60, as_of) == ReadinessTrend.IMPROVING

    def test_declining(self, make_series, make_workout, as_of):
        hrv = make_series(MetricKind.HRV, [50] * 4 + [45] * 3)
        workouts = [make_workout(as_of)]
        assert determine_trend(hrv, [], workouts, 60, as_of) == ReadinessTrend.DECLINING

    def test_resting_hr_fallback_is_inverted(self, make_series, make_workout, as_of):
        """A falling resting HR reads as improvement when HRV is missing."""
        rhr = make_series(MetricKind.RESTING_HR, [60] * 4 + [54] * 3)
        workouts = [make_workout(as_of)]
        assert determine_trend([], rhr, workouts, 60, as_of) == ReadinessTrend.IMPROVING


class TestTrajectory:
    """Tests for the 7-day projection."""

    def test_improving_projection(self, as_of):
        trajectory = generate_trajectory(70, ReadinessTrend.IMPROVING, as_of)
        assert [p.score for p in trajectory] == [72, 74, 76, 78, 80, 82, 84]
        assert trajectory[0].date == as_of + timedelta(days=1)
        assert [p.confidence for p in trajectory] == [0.9, 0.8, 0.7, 0.6, 0.5, 0.4, 0.3]

    def test_peaking_rises_then_falls(self, as_of):
        scores = [p.score for p in generate_trajectory(80, ReadinessTrend.PEAKING, as_of)]
        assert scores == [81, 82, 83, 76, 75, 74, 73]

    def test_clamped(self, as_of):
        assert all(p.score <= 100 for p in generate_trajectory(95, ReadinessTrend.RECOVERING, as_of))
        assert all(p.score >= 0 for p in generate_trajectory(5, ReadinessTrend.DECLINING, as_of))


class TestConfidence:
    """Tests for confidence tiers."""

    @pytest.mark.parametrize("counts,expected", [
        ((14, 14, 14, 0), ReadinessConfidence.HIGH),
        ((14, 0, 14, 0), ReadinessConfidence.MEDIUM),
        ((7, 7, 0, 0), ReadinessConfidence.MEDIUM),
        ((6, 6, 6, 6), ReadinessConfidence.LOW),
        ((30, 0, 0, 0), ReadinessConfidence.LOW),
    ])
    def test_tiers(self, counts, expected):
        assert determine_confidence(*counts) == expected


class TestRecommendation:
    """Tests for recommendation tiers."""

    def test_recovery_needed(self):
        text = get_readiness_recommendation(35, ReadinessTrend.DECLINING, 10, 20)
        assert text.startswith("RECOVERY NEEDED")

    def test_prime_window(self):
        text = get_readiness_recommendation(85, ReadinessTrend.PEAKING, 35, 28)
        assert text.startswith("PRIME WINDOW")

    def test_rest(self):
        assert get_readiness_recommendation(42, ReadinessTrend.MAINTAINING, 20, 15).startswith("REST")


class TestCalculateReadiness:
    """Tests for the full readiness score."""

    def test_requires_sleep(self, make_series, as_of):
        hrv = make_series(MetricKind.HRV, [50] * 10)
        assert calculate_readiness(hrv, [], [], [], None, as_of) is None

    def test_requires_hrv_or_resting_hr(self, make_series, as_of):
        sleep = make_series(MetricKind.SLEEP, [8] * 10)
        assert calculate_readiness([], [], sleep, [], None, as_of) is None

    def test_score_is_sum_of_components(self, full_snapshot, as_of):
        result = calculate_readiness(
            full_snapshot.series(MetricKind.HRV),
            full_snapshot.series(MetricKind.RESTING_HR),
            full_snapshot.series(MetricKind.SLEEP),
            full_snapshot.workouts_until(as_of),
            load_summary(1.0),
            as_of,
        )
        b = result.breakdown
        assert result.score == b.recovery + b.fitness + b.fatigue
        assert 0 <= result.score <= 100
        assert result.confidence == ReadinessConfidence.HIGH
        assert len(result.trajectory) == 7

    def test_workout_days_counted_once(self, make_series, make_workout, as_of):
        """Two sessions on one day are one workout day."""
        workouts = [
            make_workout(as_of, ActivityKind.RUN),
            make_workout(as_of, ActivityKind.STRENGTH),
        ]
        result = calculate_readiness(
            make_series(MetricKind.HRV, [50] * 3),
            [],
            make_series(MetricKind.SLEEP, [8] * 3),
            workouts,
            None,
            as_of,
        )
        assert result.confidence == ReadinessConfidence.LOW
