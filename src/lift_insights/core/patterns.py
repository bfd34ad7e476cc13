"""
Pattern detection: plateau, decline and progression signals.

Classifies the recent trend of one exercise history into
plateau / progression / decline / inconsistent / optimal.
"""

from dataclasses import dataclass

from .config import (
    DECLINE_DETECTION_PERCENT,
    DECLINE_HIGH_SEVERITY_PERCENT,
    OPTIMAL_RPE_HIGH,
    OPTIMAL_RPE_LOW,
    RECENT_WINDOW,
    AnalysisOptions,
)
from .metrics import recent_average_rpe, round_half_up
from .models import ExerciseHistory, ExercisePattern, ExerciseSessionData


@dataclass(frozen=True)
class PlateauSignal:
    detected: bool
    duration: int = 0
    average_weight: float = 0


@dataclass(frozen=True)
class DeclineSignal:
    severe: bool
    decrease: float = 0.0  # percent, one decimal


@dataclass(frozen=True)
class ProgressionSignal:
    detected: bool
    increase: float = 0.0
    sessions: int = 0


def detect_plateau(max_weights: list[float], threshold: float) -> PlateauSignal:
    """
    Detect a plateau in recent max weights.

    Plateau = at least two values, all within ``threshold`` of their mean.

    Args:
        max_weights: Recent max weights, nulls already removed
        threshold: Meaningful weight delta

    Returns:
        PlateauSignal with duration and rounded mean weight
    """
    if len(max_weights) < 2:
        return PlateauSignal(detected=False)

    recent = max_weights[-RECENT_WINDOW:]
    mean = sum(recent) / len(recent)

    if all(abs(w - mean) <= threshold for w in recent):
        return PlateauSignal(
            detected=True,
            duration=len(recent),
            average_weight=round_half_up(mean),
        )
    return PlateauSignal(detected=False)


def detect_decline(max_weights: list[float | None]) -> DeclineSignal:
    """
    Compare the last max weight against the mean of all earlier ones.

    decrease% = (mean_prior - last) / mean_prior * 100, severe above 5%.

    Args:
        max_weights: Max weight per session, oldest first (None allowed)

    Returns:
        DeclineSignal; decrease is 0 when the last value is not below the mean
    """
    valid = [w for w in max_weights if w is not None]
    if len(valid) < 2:
        return DeclineSignal(severe=False)

    last = valid[-1]
    prior_mean = sum(valid[:-1]) / len(valid[:-1])

    if prior_mean > 0 and last < prior_mean:
        decrease = (prior_mean - last) / prior_mean * 100
        return DeclineSignal(
            severe=decrease > DECLINE_DETECTION_PERCENT,
            decrease=round_half_up(decrease, 1),
        )
    return DeclineSignal(severe=False)


def detect_progression(
    sessions: list[ExerciseSessionData],
    threshold: float,
) -> ProgressionSignal:
    """
    First-vs-last max weight over the whole eligible history.

    Args:
        sessions: History data points, oldest first
        threshold: Minimum increase that counts as progression

    Returns:
        ProgressionSignal with the increase and number of sessions spanned
    """
    if len(sessions) < 2:
        return ProgressionSignal(detected=False)

    first = sessions[0].max_weight
    last = sessions[-1].max_weight
    if first is None or last is None:
        return ProgressionSignal(detected=False)

    increase = last - first
    if increase >= threshold:
        return ProgressionSignal(detected=True, increase=increase, sessions=len(sessions))
    return ProgressionSignal(detected=False)


def detect_exercise_patterns(
    history: ExerciseHistory,
    options: AnalysisOptions | None = None,
) -> ExercisePattern:
    """
    Classify the trend of one exercise.

    Precedence (first match wins):
    1. severe decline            -> decline (high if > 10%, else medium)
    2. plateau, no progression   -> plateau (high at 3 sessions, medium at 2)
    3. progression               -> progression, upgraded to optimal when
                                    recent RPE sits in [7, 8.5]
    4. otherwise                 -> inconsistent

    Args:
        history: Exercise history, oldest first
        options: Analysis options (threshold and unit)

    Returns:
        ExercisePattern for the exercise
    """
    opts = options or AnalysisOptions()
    sessions = history.sessions
    recent = sessions[-RECENT_WINDOW:]
    unit = opts.weight_unit

    if len(sessions) < 2:
        return ExercisePattern(
            exercise_name=history.exercise_name,
            exercise_id=history.exercise_id,
            pattern_type="inconsistent",
            description="Insufficient data for pattern analysis",
            severity="low",
            data_points=len(sessions),
            trend="flat",
            last_three_sessions=list(recent),
        )

    threshold = opts.weight_progression_threshold
    plateau = detect_plateau(
        [s.max_weight for s in recent if s.max_weight is not None], threshold
    )
    decline = detect_decline([s.max_weight for s in sessions])
    progression = detect_progression(sessions, threshold)

    if decline.severe:
        pattern_type = "decline"
        description = (
            f"Performance declining: Max weight decreased by {decline.decrease}% over "
            "recent sessions. May indicate overtraining or need for recovery."
        )
        severity = "high" if decline.decrease > DECLINE_HIGH_SEVERITY_PERCENT else "medium"
        trend = "down"
    elif plateau.detected and not progression.detected:
        pattern_type = "plateau"
        description = (
            f"Plateau detected: Max weight has remained at ~{plateau.average_weight:g} {unit} "
            f"for {plateau.duration} sessions without progression."
        )
        if plateau.duration >= 3:
            severity = "high"
        elif plateau.duration == 2:
            severity = "medium"
        else:
            severity = "low"
        trend = "flat"
    elif progression.detected:
        pattern_type = "progression"
        description = (
            f"Positive progression: Max weight increased by {progression.increase:.1f} {unit} "
            f"over {progression.sessions} sessions."
        )
        severity = "low"
        trend = "up"
    else:
        pattern_type = "inconsistent"
        description = (
            "Inconsistent progression pattern detected. "
            "May benefit from structured periodization."
        )
        severity = "low"
        trend = "flat"

    if pattern_type == "progression":
        rpe = recent_average_rpe(sessions)
        if rpe is not None and OPTIMAL_RPE_LOW <= rpe <= OPTIMAL_RPE_HIGH:
            pattern_type = "optimal"
            description = (
                f"Optimal progression: Max weight increased by {progression.increase:.1f} {unit} "
                f"with appropriate intensity (RPE {rpe:.1f}, target 7-8.5)."
            )

    return ExercisePattern(
        exercise_name=history.exercise_name,
        exercise_id=history.exercise_id,
        pattern_type=pattern_type,
        description=description,
        severity=severity,
        data_points=len(sessions),
        trend=trend,
        last_three_sessions=list(recent),
    )
