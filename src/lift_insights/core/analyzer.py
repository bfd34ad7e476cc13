"""
Workout analysis orchestrator.

Runs history extraction, pattern detection, metrics, recommendations and
(optionally) weight prediction over a list of sessions and assembles the
final analysis.  Every call recomputes from scratch; nothing is cached.
"""

import logging
from dataclasses import fields, replace
from datetime import datetime

from .config import PREDICTION_MIN_SESSIONS, AnalysisOptions
from .history import completed_sessions, extract_exercise_history, resolve_now
from .metrics import calculate_overall_score, calculate_progress_metrics
from .models import (
    EnhancedWorkoutAnalysis,
    ExercisePattern,
    ProgressMetrics,
    TimeRange,
    WorkoutAnalysis,
    WorkoutSession,
)
from .patterns import detect_exercise_patterns
from .predictor import WeightPredictor, predict_weights
from .recommendations import generate_recommendations, generate_recommendations_with_predictions

logger = logging.getLogger(__name__)

EMPTY_SUMMARY = (
    "Insufficient workout data for analysis. "
    "Complete at least 3 workout sessions to receive insights."
)
GENERIC_SUMMARY = (
    "Analysis complete. Continue tracking your workouts to receive more detailed insights."
)


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def generate_summary(patterns: list[ExercisePattern], metrics: ProgressMetrics) -> str:
    """
    Compose the natural-language summary.

    Sentences, each optional and in this order: dominant trend (progress or
    plateaus), declining exercises, strength change, low recovery.

    Args:
        patterns: Detected patterns
        metrics: Progress metrics

    Returns:
        Summary text, or a generic message when nothing stands out
    """
    plateaus = sum(1 for p in patterns if p.pattern_type == "plateau")
    progressions = sum(1 for p in patterns if p.pattern_type in ("progression", "optimal"))
    declines = sum(1 for p in patterns if p.pattern_type == "decline")

    parts: list[str] = []

    if progressions > plateaus and progressions > declines:
        parts.append(
            f"You're making solid progress on {progressions} exercise{_plural(progressions)}."
        )
    elif plateaus > 0:
        parts.append(
            f"You're experiencing plateaus on {plateaus} exercise{_plural(plateaus)} "
            "that may benefit from program adjustments."
        )

    if declines > 0:
        verb = "is" if declines == 1 else "are"
        parts.append(
            f"{declines} exercise{_plural(declines)} {verb} declining, which may "
            "indicate overreaching or need for recovery."
        )

    if metrics.strength_progress > 0:
        parts.append(
            f"Overall strength has increased by {metrics.strength_progress:.1f}% "
            "over the analyzed period."
        )
    elif metrics.strength_progress < 0:
        parts.append(
            f"Strength has decreased by {abs(metrics.strength_progress):.1f}%, "
            "suggesting a need for recovery or program adjustment."
        )

    if metrics.recovery_score < 60:
        parts.append(
            f"Your recovery score is {metrics.recovery_score}, indicating you may "
            "need more rest or reduced training intensity."
        )

    if not parts:
        return GENERIC_SUMMARY
    return " ".join(parts)


def empty_analysis(now: datetime) -> WorkoutAnalysis:
    """Analysis returned when no session is eligible."""
    return WorkoutAnalysis(
        overall_score=0,
        summary=EMPTY_SUMMARY,
        exercise_patterns=[],
        recommendations=[],
        progress_metrics=ProgressMetrics(),
        analyzed_date=now,
        sessions_analyzed=0,
        time_range=TimeRange(start=now, end=now),
    )


def analyze_workouts(
    sessions: list[WorkoutSession],
    options: AnalysisOptions | None = None,
    now: datetime | None = None,
) -> WorkoutAnalysis:
    """
    Analyze workout sessions.

    Args:
        sessions: Raw sessions, any status and order
        options: Analysis options (defaults apply when None)
        now: Reference time for the lookback window and analyzed_date

    Returns:
        WorkoutAnalysis; the empty analysis when no session is completed
    """
    opts = options or AnalysisOptions()
    completed = completed_sessions(sessions)
    now = resolve_now(now, completed)

    if not completed:
        return empty_analysis(now)

    histories = extract_exercise_history(completed, opts, now)
    patterns = [detect_exercise_patterns(h, opts) for h in histories]
    metrics = calculate_progress_metrics(completed, patterns, all_sessions=sessions)
    recommendations = generate_recommendations(patterns, metrics, opts.weight_unit)

    return WorkoutAnalysis(
        overall_score=calculate_overall_score(patterns, metrics),
        summary=generate_summary(patterns, metrics),
        exercise_patterns=patterns,
        recommendations=recommendations,
        progress_metrics=metrics,
        analyzed_date=now,
        sessions_analyzed=len(completed),
        time_range=TimeRange(
            start=completed[0].effective_date,
            end=completed[-1].effective_date,
        ),
    )


def analyze_workouts_with_predictions(
    sessions: list[WorkoutSession],
    options: AnalysisOptions | None = None,
    now: datetime | None = None,
    predictor: WeightPredictor | None = None,
    use_predictions: bool = True,
) -> EnhancedWorkoutAnalysis:
    """
    Analyze sessions and add next-weight predictions.

    Predictions run only when enabled, with at least 3 input sessions and at
    least one exercise holding 2 or more qualifying sessions.  Histories for
    prediction are re-extracted with the lowered session minimum.

    Args:
        sessions: Raw sessions
        options: Analysis options
        now: Reference time
        predictor: Prediction strategy (trend predictor when None or unavailable)
        use_predictions: Disable to get the base analysis with an empty map

    Returns:
        EnhancedWorkoutAnalysis whose recommendations include prediction entries
    """
    opts = options or AnalysisOptions()
    now = resolve_now(now, completed_sessions(sessions))
    base = analyze_workouts(sessions, opts, now)
    enhanced = EnhancedWorkoutAnalysis(**_shallow_fields(base))

    if not use_predictions or len(sessions) < 3:
        return enhanced

    histories = extract_exercise_history(
        sessions, replace(opts, min_sessions=PREDICTION_MIN_SESSIONS), now
    )
    if not any(len(h.sessions) >= PREDICTION_MIN_SESSIONS for h in histories):
        return enhanced

    predictions = predict_weights(histories, predictor, opts.weight_unit)
    logger.debug("Predicted next weights for %d exercises", len(predictions))

    enhanced.weight_predictions = predictions
    enhanced.predictions_enabled = True
    enhanced.recommendations = generate_recommendations_with_predictions(
        base.exercise_patterns,
        base.progress_metrics,
        predictions,
        opts.weight_unit,
    )
    return enhanced


def _shallow_fields(analysis: WorkoutAnalysis) -> dict:
    return {f.name: getattr(analysis, f.name) for f in fields(analysis)}
