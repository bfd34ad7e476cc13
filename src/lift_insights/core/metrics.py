"""
Pure metric computation functions.

Progress metrics (strength, volume, consistency, recovery) and the overall
0-100 score.  All functions are pure and typed for testability.
"""

import math

from .config import (
    CONSISTENCY_CROWDED_SCORE,
    CONSISTENCY_DEFAULT,
    CONSISTENCY_IDEAL_SCORE,
    CONSISTENCY_MIN_SESSIONS,
    CONSISTENCY_MODERATE_DAYS,
    CONSISTENCY_MODERATE_SCORE,
    CONSISTENCY_SPARSE_DAYS,
    CONSISTENCY_SPARSE_SCORE,
    DECLINE_STRENGTH_PENALTY,
    HIGH_RPE,
    RECENT_WINDOW,
    RECOVERY_DEFAULT,
    RECOVERY_GOOD,
    RECOVERY_MODERATE,
    RECOVERY_MODERATE_DECLINE_RATIO,
    RECOVERY_MODERATE_HIGH_RPE_RATIO,
    RECOVERY_POOR,
    RECOVERY_POOR_DECLINE_RATIO,
    RECOVERY_POOR_HIGH_RPE_RATIO,
    SCORE_BASE,
    SCORE_DECLINE_PENALTY,
    SCORE_METRIC_WEIGHT,
    SCORE_OPTIMAL_BONUS,
    SCORE_PLATEAU_PENALTY,
    SCORE_PROGRESSION_BONUS,
    SCORE_STRENGTH_CAP,
    VOLUME_MIN_SESSIONS,
)
from .history import session_volume
from .models import ExercisePattern, ExerciseSessionData, ProgressMetrics, WorkoutSession


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round with ties going towards +inf (2.5 -> 3, -2.5 -> -2).

    Python's round() uses banker's rounding; scores and percentages here
    round .5 upwards, like JavaScript's Math.round.

    Args:
        value: Number to round
        digits: Decimal places to keep

    Returns:
        Rounded value
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def recent_average_rpe(sessions: list[ExerciseSessionData]) -> float | None:
    """Mean of the last three sessions' average RPE, ignoring missing values."""
    rpes = [s.average_rpe for s in sessions[-RECENT_WINDOW:] if s.average_rpe is not None]
    if not rpes:
        return None
    return sum(rpes) / len(rpes)


def strength_progress(patterns: list[ExercisePattern]) -> float:
    """
    Average percentage change in max weight across progressing exercises.

    For each progression/optimal pattern, change = (last - first) / first * 100
    over its last-three-sessions window; patterns whose first value is not
    positive add 0 but still count in the denominator.  Without progressing
    exercises, a majority of declining exercises yields a fixed -5.

    Args:
        patterns: Detected patterns

    Returns:
        Strength progress in percent (unrounded)
    """
    progressing = [p for p in patterns if p.pattern_type in ("progression", "optimal")]
    declining = [p for p in patterns if p.pattern_type == "decline"]

    if progressing:
        total = 0.0
        for pattern in progressing:
            recent = pattern.last_three_sessions
            if len(recent) < 2:
                continue
            first = recent[0].max_weight or 0
            last = recent[-1].max_weight or 0
            if first > 0:
                total += (last - first) / first * 100
        return total / len(progressing)

    if len(declining) > len(patterns) / 2:
        return DECLINE_STRENGTH_PENALTY

    return 0.0


def volume_progress(sessions: list[WorkoutSession]) -> float:
    """
    Percentage change of mean session volume, recent half vs older half.

    Needs at least 4 sessions.  With an odd count the middle session is
    left out of both halves.

    Args:
        sessions: Completed sessions, oldest first

    Returns:
        Volume progress in percent (unrounded), 0 if the older half has no volume
    """
    if len(sessions) < VOLUME_MIN_SESSIONS:
        return 0.0

    half = len(sessions) // 2
    older = sessions[:half]
    recent = sessions[-half:]

    older_volume = sum(session_volume(s) for s in older) / len(older)
    recent_volume = sum(session_volume(s) for s in recent) / len(recent)

    if older_volume <= 0:
        return 0.0
    return (recent_volume - older_volume) / older_volume * 100


def consistency_score(sessions: list[WorkoutSession]) -> int:
    """
    Score training frequency from the mean gap between session days.

    Gap (days)   Score
    > 5          40
    > 3          70
    >= 1         100
    < 1          60   (several sessions on the same day)

    Fewer than 3 sessions keeps the default of 100.

    Args:
        sessions: Sessions of any status

    Returns:
        Consistency score 0-100
    """
    if len(sessions) < CONSISTENCY_MIN_SESSIONS:
        return CONSISTENCY_DEFAULT

    days = sorted(s.effective_date.date() for s in sessions)
    gaps = [(b - a).days for a, b in zip(days, days[1:])]
    avg_gap = sum(gaps) / len(gaps)

    if avg_gap > CONSISTENCY_SPARSE_DAYS:
        return CONSISTENCY_SPARSE_SCORE
    if avg_gap > CONSISTENCY_MODERATE_DAYS:
        return CONSISTENCY_MODERATE_SCORE
    if avg_gap >= 1:
        return CONSISTENCY_IDEAL_SCORE
    return CONSISTENCY_CROWDED_SCORE


def recovery_score(patterns: list[ExercisePattern]) -> int:
    """
    Score recovery from the share of declining and high-RPE exercises.

    High-RPE = mean of the last three sessions' RPE is at least 9.

    Args:
        patterns: Detected patterns

    Returns:
        40 (poor), 60 (moderate), 85 (good), or 75 with no patterns
    """
    if not patterns:
        return RECOVERY_DEFAULT

    total = len(patterns)
    declines = sum(1 for p in patterns if p.pattern_type == "decline")
    high_rpe = 0
    for pattern in patterns:
        rpe = recent_average_rpe(pattern.last_three_sessions)
        if rpe is not None and rpe >= HIGH_RPE:
            high_rpe += 1

    decline_ratio = declines / total
    high_rpe_ratio = high_rpe / total

    if decline_ratio > RECOVERY_POOR_DECLINE_RATIO or high_rpe_ratio > RECOVERY_POOR_HIGH_RPE_RATIO:
        return RECOVERY_POOR
    if (
        decline_ratio > RECOVERY_MODERATE_DECLINE_RATIO
        or high_rpe_ratio > RECOVERY_MODERATE_HIGH_RPE_RATIO
    ):
        return RECOVERY_MODERATE
    return RECOVERY_GOOD


def calculate_progress_metrics(
    sessions: list[WorkoutSession],
    patterns: list[ExercisePattern],
    all_sessions: list[WorkoutSession] | None = None,
) -> ProgressMetrics:
    """
    Build progress metrics for an analysis run.

    Args:
        sessions: Completed sessions, oldest first (volume progress)
        patterns: Detected patterns (strength and recovery)
        all_sessions: Every input session regardless of status
            (consistency); defaults to ``sessions``

    Returns:
        ProgressMetrics with percentages to one decimal, scores as integers
    """
    return ProgressMetrics(
        strength_progress=round_half_up(strength_progress(patterns), 1),
        volume_progress=round_half_up(volume_progress(sessions), 1),
        consistency_score=consistency_score(all_sessions if all_sessions is not None else sessions),
        recovery_score=recovery_score(patterns),
    )


def calculate_overall_score(patterns: list[ExercisePattern], metrics: ProgressMetrics) -> int:
    """
    Overall fitness score in [0, 100].

    score = 50 + 15*optimal + 10*progression - 15*decline - 10*high_plateau
            +/- min(|strength|, 15) + 1.5*consistency/10 + 1.5*recovery/10

    Args:
        patterns: Detected patterns
        metrics: Progress metrics

    Returns:
        Clamped, rounded score
    """
    score = SCORE_BASE

    for pattern in patterns:
        if pattern.pattern_type == "optimal":
            score += SCORE_OPTIMAL_BONUS
        elif pattern.pattern_type == "progression":
            score += SCORE_PROGRESSION_BONUS
        elif pattern.pattern_type == "decline":
            score -= SCORE_DECLINE_PENALTY
        elif pattern.pattern_type == "plateau" and pattern.severity == "high":
            score -= SCORE_PLATEAU_PENALTY

    if metrics.strength_progress > 0:
        score += min(metrics.strength_progress, SCORE_STRENGTH_CAP)
    else:
        score -= min(abs(metrics.strength_progress), SCORE_STRENGTH_CAP)

    score += metrics.consistency_score / 10 * SCORE_METRIC_WEIGHT
    score += metrics.recovery_score / 10 * SCORE_METRIC_WEIGHT

    return int(max(0, min(100, round_half_up(score))))
