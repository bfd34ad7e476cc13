"""
Per-exercise views over an analysis: drill-down filtering and chart data.
"""

from dataclasses import dataclass, field
from datetime import datetime

from .history import completed_sessions
from .models import (
    EnhancedWorkoutAnalysis,
    ExercisePattern,
    WeightProgressionPrediction,
    WorkoutAnalysis,
    WorkoutRecommendation,
    WorkoutSession,
)


@dataclass
class ExerciseSelection:
    """Everything an analysis says about one exercise."""

    exercise_id: str | None = None
    prediction: WeightProgressionPrediction | None = None
    patterns: list[ExercisePattern] = field(default_factory=list)
    recommendations: list[WorkoutRecommendation] = field(default_factory=list)


@dataclass
class ChartPoint:
    date: datetime
    max_weight: float


def filter_exercise_data(
    analysis: WorkoutAnalysis | None,
    exercise_name: str,
) -> ExerciseSelection:
    """
    Select the patterns, recommendations and prediction for one exercise.

    Matching is by exact display name.  The prediction is found through the
    pattern carrying the same exercise id.

    Args:
        analysis: Analysis result (predictions only on the enhanced variant)
        exercise_name: Exercise display name

    Returns:
        ExerciseSelection, empty when there is no analysis or name
    """
    if analysis is None or not exercise_name:
        return ExerciseSelection()

    patterns = [p for p in analysis.exercise_patterns if p.exercise_name == exercise_name]
    recommendations = [r for r in analysis.recommendations if r.exercise_name == exercise_name]

    selection = ExerciseSelection(patterns=patterns, recommendations=recommendations)

    if isinstance(analysis, EnhancedWorkoutAnalysis):
        ids = {p.exercise_id for p in patterns}
        for exercise_id, prediction in analysis.weight_predictions.items():
            if exercise_id in ids:
                selection.exercise_id = exercise_id
                selection.prediction = prediction
                break

    return selection


def weight_chart_points(
    sessions: list[WorkoutSession],
    exercise_name: str,
) -> list[ChartPoint]:
    """
    Max weight per session for one exercise, oldest first.

    Only completed sets with a recorded weight count; sessions without any
    are skipped.  Logged names are compared after trimming whitespace.
    """
    if not exercise_name:
        return []

    points: list[ChartPoint] = []
    for session in sessions:
        log = next(
            (l for l in session.exercise_logs if l.exercise_name.strip() == exercise_name),
            None,
        )
        if log is None:
            continue
        weights = [s.weight for s in log.sets if s.completed and s.weight is not None]
        if weights:
            points.append(ChartPoint(date=session.effective_date, max_weight=max(weights)))

    points.sort(key=lambda p: p.date)
    return points


def exercise_names(sessions: list[WorkoutSession]) -> list[str]:
    """Sorted unique exercise names logged in completed sessions."""
    return sorted(
        {
            log.exercise_name.strip()
            for session in completed_sessions(sessions)
            for log in session.exercise_logs
        }
    )
