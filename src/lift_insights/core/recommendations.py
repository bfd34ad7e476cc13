"""
Recommendation engine.

Turns detected patterns, progress metrics and (optionally) weight
predictions into a deduplicated, priority-ordered list of actionable
recommendations.
"""

from .config import (
    LOW_CONSISTENCY_SCORE,
    LOW_INTENSITY_RPE,
    LOW_RECOVERY_SCORE,
    PLATEAU_LOW_REP_THRESHOLD,
    PREDICTION_HIGH_CONFIDENCE,
    PREDICTION_MIN_CONFIDENCE,
    PRIORITY_RANK,
)
from .metrics import round_half_up
from .models import (
    ExercisePattern,
    ProgressMetrics,
    WeightProgressionPrediction,
    WorkoutRecommendation,
)


def priority_rank(rec: WorkoutRecommendation) -> int:
    """Numeric rank of a recommendation's priority (high=3, medium=2, low=1)."""
    return PRIORITY_RANK[rec.priority]


def deduplicate_and_sort(recs: list[WorkoutRecommendation]) -> list[WorkoutRecommendation]:
    """
    Drop repeated ids (first occurrence wins) and sort by priority, high first.

    sorted() is stable, so insertion order is kept within a priority.
    """
    unique: dict[str, WorkoutRecommendation] = {}
    for rec in recs:
        unique.setdefault(rec.id, rec)
    return sorted(unique.values(), key=priority_rank, reverse=True)


# =============================================================================
# Per-pattern rules
# =============================================================================


def _plateau_recommendations(pattern: ExercisePattern) -> list[WorkoutRecommendation]:
    last = pattern.last_three_sessions[-1] if pattern.last_three_sessions else None
    if last is None or not last.average_reps or last.average_reps >= PLATEAU_LOW_REP_THRESHOLD:
        return []

    name = pattern.exercise_name
    return [
        WorkoutRecommendation(
            id=f"rep-range-{pattern.exercise_id}",
            type="rep_range_change",
            priority="medium",
            exercise_name=name,
            title=f"Switch to Higher Rep Range for {name}",
            description=(
                "You've been training in the strength range (1-5 reps). Switch to "
                "hypertrophy range (6-10 reps) for 4-6 weeks to build muscle mass "
                "and work capacity."
            ),
            action_items=[
                "Reduce weight by 15-20%",
                "Increase reps to 6-10 range",
                "Perform 3-4 sets",
                "Maintain for 4-6 weeks",
                "Then cycle back to strength range",
            ],
            reasoning=(
                "Periodization through different rep ranges prevents adaptation "
                "and can help break through plateaus."
            ),
            related_patterns=[pattern.pattern_type],
        )
    ]


def _decline_recommendations(pattern: ExercisePattern) -> list[WorkoutRecommendation]:
    name = pattern.exercise_name
    return [
        WorkoutRecommendation(
            id=f"deload-decline-{pattern.exercise_id}",
            type="deload",
            priority="high",
            exercise_name=name,
            title=f"Immediate Deload for {name}",
            description=(
                "Performance is declining. Implement a deload week: reduce volume "
                "by 50% and intensity by 20% for 1 week to allow recovery."
            ),
            action_items=[
                "Reduce working sets by 50%",
                "Reduce weight by 20%",
                "Focus on technique",
                "Increase rest days between sessions",
                "Prioritize sleep and nutrition",
            ],
            reasoning=(
                "Declining performance indicates overreaching or insufficient "
                "recovery. A deload week lets the body recover and adapt."
            ),
            related_patterns=[pattern.pattern_type],
        ),
        WorkoutRecommendation(
            id=f"rest-decline-{pattern.exercise_id}",
            type="rest",
            priority="high",
            exercise_name=name,
            title="Increase Recovery Time",
            description=(
                "Consider taking 2-3 full rest days or focusing on active recovery "
                "activities instead of intense training."
            ),
            action_items=[
                "Take 2-3 complete rest days",
                "Consider light walking or mobility work",
                "Focus on sleep quality (8+ hours)",
                "Ensure adequate nutrition and hydration",
            ],
            reasoning=(
                "Declining performance often signals inadequate recovery. "
                "Additional rest is crucial for long-term progress."
            ),
            related_patterns=[pattern.pattern_type],
        ),
    ]


def _progression_recommendations(
    pattern: ExercisePattern,
    weight_unit: str,
) -> list[WorkoutRecommendation]:
    if pattern.severity != "low" or pattern.trend != "up":
        return []

    last = pattern.last_three_sessions[-1] if pattern.last_three_sessions else None
    if last is None or last.average_rpe is None or last.average_rpe >= LOW_INTENSITY_RPE:
        return []

    name = pattern.exercise_name
    return [
        WorkoutRecommendation(
            id=f"volume-increase-{pattern.exercise_id}",
            type="volume_increase",
            priority="low",
            exercise_name=name,
            title=f"Increase Volume for {name}",
            description=(
                "You're progressing well but training at low intensity (RPE < 7). "
                "Consider adding 1-2 sets or increasing weight slightly to "
                "optimize growth."
            ),
            action_items=[
                "Add 1-2 working sets",
                f"Or increase weight by 2.5-5 {weight_unit}",
                "Keep RPE in 7-8 range",
                "Monitor recovery between sessions",
            ],
            reasoning=(
                "Low RPE suggests you can handle more volume or intensity. "
                "Progressive overload is key to continued growth."
            ),
            related_patterns=[pattern.pattern_type],
        )
    ]


def _optimal_recommendations(
    pattern: ExercisePattern,
    weight_unit: str,
) -> list[WorkoutRecommendation]:
    return [
        WorkoutRecommendation(
            id=f"maintain-{pattern.exercise_id}",
            type="progression_ready",
            priority="low",
            exercise_name=pattern.exercise_name,
            title="Continue Current Approach",
            description=(
                "Your training is optimal. Continue with current weights and "
                "gradually increase when you can complete all sets with 1-2 reps "
                "in reserve."
            ),
            action_items=[
                "Maintain current training parameters",
                f"Increase weight by 2.5-5 {weight_unit} when you hit top of rep range comfortably",
                "Keep RPE in 7-8.5 range",
                "Ensure adequate recovery between sessions",
            ],
            reasoning=(
                "Optimal progression indicates your current training is "
                "well-calibrated. Small, consistent increases beat large jumps."
            ),
            related_patterns=[pattern.pattern_type],
        )
    ]


def _inconsistent_recommendations(
    pattern: ExercisePattern,
    weight_unit: str,
) -> list[WorkoutRecommendation]:
    name = pattern.exercise_name
    return [
        WorkoutRecommendation(
            id=f"structure-{pattern.exercise_id}",
            type="rep_range_change",
            priority="medium",
            exercise_name=name,
            title=f"Implement Structured Progression for {name}",
            description=(
                "Inconsistent progression suggests a need for structured "
                "periodization. Follow a specific rep/set scheme with planned "
                "progression."
            ),
            action_items=[
                "Use a structured program (e.g., 5x5, 3x8, 4x6)",
                f"Plan weight increases: +2.5-5 {weight_unit} weekly or bi-weekly",
                "Track all sessions consistently",
                "Stick to the plan for 6-8 weeks before changing",
            ],
            reasoning=(
                "Structure helps ensure consistent progression and prevents "
                "random training that leads to plateaus."
            ),
            related_patterns=[pattern.pattern_type],
        )
    ]


def recommendations_for_pattern(
    pattern: ExercisePattern,
    weight_unit: str = "lbs",
) -> list[WorkoutRecommendation]:
    """
    Exercise-specific recommendations for one pattern.

    Args:
        pattern: Detected pattern
        weight_unit: Unit used in action items

    Returns:
        Zero or more recommendations, in rule order
    """
    if pattern.pattern_type == "plateau":
        return _plateau_recommendations(pattern)
    if pattern.pattern_type == "decline":
        return _decline_recommendations(pattern)
    if pattern.pattern_type == "progression":
        return _progression_recommendations(pattern, weight_unit)
    if pattern.pattern_type == "optimal":
        return _optimal_recommendations(pattern, weight_unit)
    return _inconsistent_recommendations(pattern, weight_unit)


# =============================================================================
# Overall rules
# =============================================================================


def overall_recommendations(metrics: ProgressMetrics | None) -> list[WorkoutRecommendation]:
    """Recommendations driven by aggregate recovery and consistency scores."""
    if metrics is None:
        return []

    recs: list[WorkoutRecommendation] = []

    if metrics.recovery_score < LOW_RECOVERY_SCORE:
        recs.append(
            WorkoutRecommendation(
                id="overall-recovery",
                type="rest",
                priority="high",
                title="Improve Recovery",
                description=(
                    "Your recovery score is below optimal. Focus on sleep, "
                    "nutrition, and stress management."
                ),
                action_items=[
                    "Aim for 8+ hours of quality sleep",
                    "Ensure adequate protein intake (0.8-1g per lb bodyweight)",
                    "Manage stress through meditation or relaxation",
                    "Consider deload week if recovery score < 50",
                ],
                reasoning="Inadequate recovery limits strength gains and increases injury risk.",
            )
        )

    if metrics.consistency_score < LOW_CONSISTENCY_SCORE:
        recs.append(
            WorkoutRecommendation(
                id="overall-consistency",
                type="consistency_improvement",
                priority="medium",
                title="Improve Workout Consistency",
                description=(
                    "More consistent training frequency would improve your "
                    "results. Aim for 3-4 sessions per week."
                ),
                action_items=[
                    "Schedule workouts at consistent times",
                    "Aim for 3-4 training sessions per week",
                    "Plan rest days in advance",
                    "Track your attendance rate",
                ],
                reasoning=(
                    "Consistent training frequency is crucial for progressive "
                    "overload and adaptation."
                ),
            )
        )

    return recs


def generate_recommendations(
    patterns: list[ExercisePattern],
    progress_metrics: ProgressMetrics | None = None,
    weight_unit: str = "lbs",
) -> list[WorkoutRecommendation]:
    """
    Build the recommendation list for an analysis run.

    Args:
        patterns: Detected patterns, one per exercise
        progress_metrics: Aggregate metrics; overall rules are skipped if None
        weight_unit: Unit used in action items

    Returns:
        Deduplicated recommendations, high priority first
    """
    recs: list[WorkoutRecommendation] = []
    for pattern in patterns:
        recs.extend(recommendations_for_pattern(pattern, weight_unit))
    recs.extend(overall_recommendations(progress_metrics))
    return deduplicate_and_sort(recs)


def prediction_recommendation(
    pattern: ExercisePattern,
    prediction: WeightProgressionPrediction,
    weight_unit: str = "lbs",
) -> WorkoutRecommendation | None:
    """
    A "ready to progress" recommendation backed by a weight prediction.

    Only predictions with a positive increase and confidence of at least 0.5
    qualify; confidence of 0.7 or more makes it high priority.
    """
    if prediction.weight_increase <= 0 or prediction.confidence < PREDICTION_MIN_CONFIDENCE:
        return None

    name = pattern.exercise_name
    increase = f"{prediction.weight_increase:g}"
    target = f"{prediction.predicted_next_weight:g}"
    confidence_pct = int(round_half_up(prediction.confidence * 100))

    return WorkoutRecommendation(
        id=f"ml-progression-{pattern.exercise_id}",
        type="progression_ready",
        priority="high" if prediction.confidence >= PREDICTION_HIGH_CONFIDENCE else "medium",
        exercise_name=name,
        title=f"Ready to Progress {name}",
        description=(
            f"Based on your recent trend, you're predicted to handle {target} "
            f"{weight_unit} next session (+{increase} {weight_unit}, "
            f"{confidence_pct}% confidence)."
        ),
        action_items=[
            f"Increase weight by {increase} {weight_unit}",
            f"Target {target} {weight_unit} for your working sets",
            "Keep RPE in 7-8.5 range",
            "Monitor performance and adjust if needed",
        ],
        reasoning=prediction.reasoning,
        related_patterns=[pattern.pattern_type],
    )


def generate_recommendations_with_predictions(
    patterns: list[ExercisePattern],
    progress_metrics: ProgressMetrics | None,
    weight_predictions: dict[str, WeightProgressionPrediction],
    weight_unit: str = "lbs",
) -> list[WorkoutRecommendation]:
    """
    Rule-based recommendations plus prediction-driven progression entries.

    A prediction entry is added only when the exercise (matched by name,
    case-insensitively) has no progression_ready recommendation yet.

    Args:
        patterns: Detected patterns
        progress_metrics: Aggregate metrics
        weight_predictions: Map of exercise id to prediction
        weight_unit: Unit used in text

    Returns:
        Deduplicated recommendations, high priority first
    """
    recs = generate_recommendations(patterns, progress_metrics, weight_unit)
    ready = {
        r.exercise_name.lower()
        for r in recs
        if r.exercise_name and r.type == "progression_ready"
    }

    by_id = {p.exercise_id: p for p in patterns}
    for exercise_id, prediction in weight_predictions.items():
        pattern = by_id.get(exercise_id)
        if pattern is None or pattern.exercise_name.lower() in ready:
            continue
        rec = prediction_recommendation(pattern, prediction, weight_unit)
        if rec is not None:
            recs.append(rec)
            ready.add(pattern.exercise_name.lower())

    return deduplicate_and_sort(recs)
