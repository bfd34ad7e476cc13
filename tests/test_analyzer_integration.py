"""
End-to-end tests for the analysis pipeline.

Sessions go in, a complete analysis comes out.  Each scenario checks the
pattern, metrics, score, summary and recommendation ids together.
"""

from datetime import datetime, timedelta, timezone

import pytest

from lift_insights.core.analyzer import (
    EMPTY_SUMMARY,
    GENERIC_SUMMARY,
    analyze_workouts,
    analyze_workouts_with_predictions,
)
from lift_insights.core.ascii_plot import create_weight_plot
from lift_insights.core.config import AnalysisOptions
from lift_insights.core.models import (
    EnhancedWorkoutAnalysis,
    ExerciseLog,
    ProgressMetrics,
    SetLog,
    WorkoutSession,
)
from lift_insights.core.predictor import ModelPredictor
from lift_insights.core.selection import (
    ChartPoint,
    ExerciseSelection,
    exercise_names,
    filter_exercise_data,
    weight_chart_points,
)

NOW = datetime(2026, 3, 1, 12, 0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _exercise_id(name: str) -> str:
    return name.lower().replace(" ", "_")


def _workout(
    days_ago: float,
    *lifts: tuple[str, float | None],
    reps: int = 5,
    rpe: float | None = None,
    status: str = "completed",
    now: datetime = NOW,
) -> WorkoutSession:
    """A session with two working sets per (name, weight) lift."""
    when = now - timedelta(days=days_ago)
    logs = [
        ExerciseLog(
            exercise_name=name,
            exercise_id=_exercise_id(name),
            sets=[SetLog(i, reps, weight=weight, rpe=rpe) for i in (1, 2)],
        )
        for name, weight in lifts
    ]
    return WorkoutSession(
        id=f"w-{days_ago}-{status}",
        started_at=when - timedelta(hours=1),
        completed_at=when if status == "completed" else None,
        status=status,
        exercise_logs=logs,
    )


def _bench_series(weights: list[float], rpe: float | None = None) -> list[WorkoutSession]:
    """One bench session every two days, newest two days ago."""
    n = len(weights)
    return [
        _workout(2 * (n - i), ("Bench Press", w), rpe=rpe)
        for i, w in enumerate(weights)
    ]


def _ids(analysis) -> list[str]:
    return [r.id for r in analysis.recommendations]


# ---------------------------------------------------------------------------
# Empty and degenerate inputs
# ---------------------------------------------------------------------------


class TestEmptyAnalysis:
    def test_no_sessions(self):
        analysis = analyze_workouts([], now=NOW)
        assert analysis.sessions_analyzed == 0
        assert analysis.overall_score == 0
        assert analysis.summary == EMPTY_SUMMARY
        assert analysis.exercise_patterns == []
        assert analysis.recommendations == []
        assert analysis.progress_metrics == ProgressMetrics(0.0, 0.0, 0, 0)
        assert analysis.time_range.start == NOW
        assert analysis.time_range.end == NOW
        assert analysis.analyzed_date == NOW

    def test_only_unfinished_sessions(self):
        sessions = [
            _workout(1, ("Bench Press", 100), status="active"),
            _workout(2, ("Bench Press", 100), status="paused"),
        ]
        analysis = analyze_workouts(sessions, now=NOW)
        assert analysis.sessions_analyzed == 0
        assert analysis.summary == EMPTY_SUMMARY

    def test_single_session_has_no_patterns(self):
        analysis = analyze_workouts([_workout(1, ("Bench Press", 100))], now=NOW)
        assert analysis.sessions_analyzed == 1
        assert analysis.exercise_patterns == []
        assert analysis.progress_metrics == ProgressMetrics(0.0, 0.0, 100, 75)
        # 50 + 15 + 11.25
        assert analysis.overall_score == 76
        assert analysis.summary == GENERIC_SUMMARY
        assert analysis.recommendations == []


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_plateau(self):
        analysis = analyze_workouts(_bench_series([100, 102, 101]), now=NOW)

        [pattern] = analysis.exercise_patterns
        assert pattern.pattern_type == "plateau"
        assert pattern.severity == "high"
        assert analysis.progress_metrics == ProgressMetrics(0.0, 0.0, 100, 85)
        assert analysis.overall_score == 68
        assert analysis.summary == (
            "You're experiencing plateaus on 1 exercise that may benefit from "
            "program adjustments."
        )
        assert _ids(analysis) == ["rep-range-bench_press"]

    def test_optimal(self):
        analysis = analyze_workouts(_bench_series([100, 105, 110], rpe=7.5), now=NOW)

        [pattern] = analysis.exercise_patterns
        assert pattern.pattern_type == "optimal"
        assert analysis.progress_metrics.strength_progress == 10.0
        assert analysis.overall_score == 100
        assert analysis.summary == (
            "You're making solid progress on 1 exercise. Overall strength has "
            "increased by 10.0% over the analyzed period."
        )
        assert _ids(analysis) == ["maintain-bench_press"]

    def test_decline(self):
        analysis = analyze_workouts(_bench_series([100, 100, 80]), now=NOW)

        [pattern] = analysis.exercise_patterns
        assert pattern.pattern_type == "decline"
        assert pattern.severity == "high"
        assert analysis.progress_metrics == ProgressMetrics(-5.0, 0.0, 100, 40)
        # 50 - 15 - 5 + 15 + 6
        assert analysis.overall_score == 51
        assert analysis.summary == (
            "1 exercise is declining, which may indicate overreaching or need for "
            "recovery. Strength has decreased by 5.0%, suggesting a need for "
            "recovery or program adjustment. Your recovery score is 40, indicating "
            "you may need more rest or reduced training intensity."
        )
        assert _ids(analysis) == [
            "deload-decline-bench_press",
            "rest-decline-bench_press",
            "overall-recovery",
        ]

    def test_multiple_exercises(self):
        sessions = [
            _workout(8, ("Bench Press", 100), ("Squat", 200)),
            _workout(6, ("Bench Press", 105), ("Squat", 200)),
            _workout(4, ("Bench Press", 110), ("Squat", 201)),
            _workout(2, ("Bench Press", 115), ("Squat", 200)),
        ]
        analysis = analyze_workouts(sessions, now=NOW)

        types = {p.exercise_id: p.pattern_type for p in analysis.exercise_patterns}
        assert types == {"bench_press": "progression", "squat": "plateau"}
        # (115 - 105) / 105 over bench's last three sessions
        assert analysis.progress_metrics.strength_progress == 9.5
        # mean(3110, 3150) vs mean(3000, 3050)
        assert analysis.progress_metrics.volume_progress == 3.5
        assert _ids(analysis) == ["rep-range-squat"]


# ---------------------------------------------------------------------------
# Pipeline properties
# ---------------------------------------------------------------------------


class TestPipelineProperties:
    def test_idempotent(self):
        sessions = _bench_series([100, 100, 80, 85, 90])
        assert analyze_workouts(sessions, now=NOW) == analyze_workouts(sessions, now=NOW)

    def test_unfinished_sessions_do_not_change_patterns(self):
        sessions = _bench_series([100, 105, 110])
        noisy = sessions + [_workout(4, ("Bench Press", 500), status="active")]
        assert (
            analyze_workouts(noisy, now=NOW).exercise_patterns
            == analyze_workouts(sessions, now=NOW).exercise_patterns
        )

    def test_recommendations_sorted_and_unique(self):
        sessions = [
            _workout(30, ("Bench Press", 100), ("Squat", 200), ("Row", 120)),
            _workout(20, ("Bench Press", 100), ("Squat", 210), ("Row", 110)),
            _workout(10, ("Bench Press", 80), ("Squat", 220), ("Row", 125)),
        ]
        analysis = analyze_workouts(sessions, now=NOW)
        ids = _ids(analysis)
        assert len(ids) == len(set(ids))
        ranks = [{"high": 3, "medium": 2, "low": 1}[r.priority] for r in analysis.recommendations]
        assert ranks == sorted(ranks, reverse=True)
        assert 0 <= analysis.overall_score <= 100

    def test_sessions_analyzed_counts_completed_outside_lookback(self):
        sessions = [_workout(40, ("Bench Press", 90))] + _bench_series([100, 105, 110])
        analysis = analyze_workouts(sessions, now=NOW)
        assert analysis.sessions_analyzed == 4
        assert analysis.time_range.start == NOW - timedelta(days=40)
        assert analysis.time_range.end == NOW - timedelta(days=2)
        # The 40-day-old session is outside the window
        assert analysis.exercise_patterns[0].data_points == 3

    def test_lookback_option(self):
        sessions = _bench_series([100, 105, 110])
        analysis = analyze_workouts(sessions, AnalysisOptions(lookback_days=3), now=NOW)
        assert analysis.exercise_patterns == []

    def test_name_fallback_warns(self):
        sessions = _bench_series([100, 105, 110])
        for s in sessions:
            s.exercise_logs[0].exercise_id = None
        with pytest.warns(UserWarning, match="Bench Press"):
            analysis = analyze_workouts(sessions, now=NOW)
        assert analysis.exercise_patterns[0].exercise_id == "Bench Press"

    def test_timezone_aware_sessions_without_now(self):
        now = datetime.now(timezone.utc)
        sessions = [
            _workout(d, ("Bench Press", w), now=now)
            for d, w in ((5, 100), (3, 105), (1, 110))
        ]
        analysis = analyze_workouts(sessions)
        assert analysis.sessions_analyzed == 3
        assert analysis.exercise_patterns[0].pattern_type == "progression"
        assert analysis.analyzed_date.tzinfo is not None

    def test_now_follows_session_timezone_kind(self):
        aware_now = NOW.astimezone()
        aware = [
            _workout(d, ("Bench Press", w), now=aware_now)
            for d, w in ((6, 100), (4, 105), (2, 110))
        ]
        naive = _bench_series([100, 105, 110])

        from_aware = analyze_workouts(aware, now=NOW)
        from_naive = analyze_workouts(naive, now=aware_now)
        assert from_aware.analyzed_date.tzinfo is not None
        assert from_naive.analyzed_date == NOW
        assert from_aware.exercise_patterns[0].pattern_type == "progression"
        assert [p.data_points for p in from_aware.exercise_patterns] == [3]
        assert [p.pattern_type for p in from_naive.exercise_patterns] == ["progression"]


# ---------------------------------------------------------------------------
# Predictions
# ---------------------------------------------------------------------------


class TestAnalysisWithPredictions:
    def test_trend_prediction_adds_recommendation(self):
        analysis = analyze_workouts_with_predictions(_bench_series([100, 102, 104]), now=NOW)

        assert isinstance(analysis, EnhancedWorkoutAnalysis)
        assert analysis.predictions_enabled
        pred = analysis.weight_predictions["bench_press"]
        assert pred.predicted_next_weight == 106
        assert pred.weight_increase == 2
        assert pred.confidence == 0.5
        assert _ids(analysis) == ["ml-progression-bench_press"]
        assert analysis.recommendations[0].priority == "medium"

    def test_base_fields_preserved(self):
        sessions = _bench_series([100, 102, 104])
        base = analyze_workouts(sessions, now=NOW)
        enhanced = analyze_workouts_with_predictions(sessions, now=NOW)
        assert enhanced.overall_score == base.overall_score
        assert enhanced.summary == base.summary
        assert enhanced.exercise_patterns == base.exercise_patterns
        assert enhanced.progress_metrics == base.progress_metrics

    def test_disabled(self):
        sessions = _bench_series([100, 102, 104])
        analysis = analyze_workouts_with_predictions(sessions, now=NOW, use_predictions=False)
        assert not analysis.predictions_enabled
        assert analysis.weight_predictions == {}
        assert analysis.recommendations == analyze_workouts(sessions, now=NOW).recommendations

    def test_needs_three_input_sessions(self):
        analysis = analyze_workouts_with_predictions(_bench_series([100, 105]), now=NOW)
        assert not analysis.predictions_enabled
        assert analysis.weight_predictions == {}

    def test_two_session_exercises_are_predicted(self):
        sessions = [
            _workout(6, ("Bench Press", 100)),
            _workout(4, ("Bench Press", 102), ("Squat", 200)),
            _workout(2, ("Bench Press", 104), ("Squat", 210)),
        ]
        analysis = analyze_workouts_with_predictions(sessions, now=NOW)

        assert set(analysis.weight_predictions) == {"bench_press", "squat"}
        assert analysis.weight_predictions["squat"].predicted_next_weight == 220
        # Squat has no pattern (3 sessions needed), so no recommendation for it
        assert [p.exercise_id for p in analysis.exercise_patterns] == ["bench_press"]
        assert "ml-progression-squat" not in _ids(analysis)

    def test_unavailable_model_falls_back_to_trend(self):
        analysis = analyze_workouts_with_predictions(
            _bench_series([100, 102, 104]), now=NOW, predictor=ModelPredictor()
        )
        assert analysis.weight_predictions["bench_press"].source == "trend"
        assert analysis.weight_predictions["bench_press"].predicted_next_weight == 106

    def test_crashing_predictor_keeps_analysis(self):
        class Crashing:
            available = True

            def predict(self, history):
                raise RuntimeError("model crashed")

        analysis = analyze_workouts_with_predictions(
            _bench_series([100, 102, 104]), now=NOW, predictor=Crashing()
        )
        assert analysis.predictions_enabled
        assert analysis.weight_predictions["bench_press"].predicted_next_weight == 106
        assert _ids(analysis) == ["ml-progression-bench_press"]

    def test_no_completed_sessions(self):
        sessions = [_workout(d, ("Bench Press", 100), status="active") for d in (1, 2, 3)]
        analysis = analyze_workouts_with_predictions(sessions, now=NOW)
        assert analysis.summary == EMPTY_SUMMARY
        assert not analysis.predictions_enabled


# ---------------------------------------------------------------------------
# Drill-down and chart data
# ---------------------------------------------------------------------------


class TestExerciseSelection:
    def test_no_analysis(self):
        assert filter_exercise_data(None, "Bench Press") == ExerciseSelection()

    def test_enhanced_selection(self):
        sessions = [
            _workout(6, ("Bench Press", 100), ("Squat", 200)),
            _workout(4, ("Bench Press", 102), ("Squat", 200)),
            _workout(2, ("Bench Press", 104), ("Squat", 201)),
        ]
        analysis = analyze_workouts_with_predictions(sessions, now=NOW)
        selection = filter_exercise_data(analysis, "Bench Press")

        assert selection.exercise_id == "bench_press"
        assert selection.prediction.predicted_next_weight == 106
        assert [p.exercise_name for p in selection.patterns] == ["Bench Press"]
        assert [r.id for r in selection.recommendations] == ["ml-progression-bench_press"]

    def test_base_analysis_has_no_prediction(self):
        analysis = analyze_workouts(_bench_series([100, 102, 104]), now=NOW)
        selection = filter_exercise_data(analysis, "Bench Press")
        assert selection.prediction is None
        assert len(selection.patterns) == 1

    def test_unknown_exercise(self):
        analysis = analyze_workouts(_bench_series([100, 102, 104]), now=NOW)
        selection = filter_exercise_data(analysis, "Deadlift")
        assert selection.patterns == []
        assert selection.recommendations == []


class TestChartPoints:
    def test_max_weight_per_session_sorted(self):
        padded = _workout(2, (" Bench Press ", 110))
        padded.exercise_logs[0].sets.append(SetLog(3, 1, weight=150, completed=False))
        sessions = [
            padded,
            _workout(6, ("Bench Press", 100)),
            _workout(4, ("Bench Press", None)),  # bodyweight only
            _workout(5, ("Squat", 200)),
        ]
        points = weight_chart_points(sessions, "Bench Press")
        assert points == [
            ChartPoint(NOW - timedelta(days=6), 100),
            ChartPoint(NOW - timedelta(days=2), 110),
        ]

    def test_empty_name(self):
        assert weight_chart_points(_bench_series([100]), "") == []

    def test_exercise_names(self):
        sessions = [
            _workout(3, ("Squat", 200), ("Bench Press", 100)),
            _workout(2, (" Bench Press", 100)),
            _workout(1, ("Deadlift", 300), status="active"),
        ]
        assert exercise_names(sessions) == ["Bench Press", "Squat"]


class TestWeightPlot:
    def test_no_points(self):
        assert "No weighted sets" in create_weight_plot([])

    def test_plot_with_prediction(self):
        points = [ChartPoint(NOW - timedelta(days=d), w) for d, w in ((6, 100), (4, 102), (2, 104))]
        plot = create_weight_plot(points, exercise_name="Bench Press", predicted_weight=106)
        lines = plot.splitlines()
        assert lines[0] == "Max Weight Progress (Bench Press)"
        assert plot.count("●") == 4  # three points plus the legend
        assert "○" in plot
        assert "suggested next (106 lbs)" in lines[-1]
        assert "Feb 23" in plot

    def test_single_point(self):
        plot = create_weight_plot([ChartPoint(NOW, 100)], weight_unit="kg")
        assert "●" in plot
        assert "(kg)" in plot
