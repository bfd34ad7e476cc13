"""
Per-exercise history extraction.

Turns raw workout sessions into chronological per-exercise series of
session-level aggregates.  All functions are pure.
"""

import warnings
from datetime import datetime, timedelta

from .config import AnalysisOptions
from .models import ExerciseHistory, ExerciseLog, ExerciseSessionData, SetLog, WorkoutSession


def naive_local(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def resolve_now(now: datetime | None, sessions: list[WorkoutSession]) -> datetime:
    """
    Return the reference "now" for lookback filtering.

    When not given, the current time is taken in the timezone of the first
    session.  A given ``now`` is converted to match the sessions (aware or
    naive local) so the two are never compared across kinds.
    """
    if not sessions:
        return now if now is not None else datetime.now()

    aware = sessions[0].effective_date.tzinfo is not None
    if now is None:
        return datetime.now(sessions[0].effective_date.tzinfo)
    if aware and now.tzinfo is None:
        return now.astimezone()
    if not aware:
        return naive_local(now)
    return now


def completed_sessions(sessions: list[WorkoutSession]) -> list[WorkoutSession]:
    """
    Completed, timestamped sessions sorted oldest first.

    Args:
        sessions: Raw sessions in any order

    Returns:
        Analysable sessions by ascending effective date
    """
    eligible = [s for s in sessions if s.is_analyzable]
    eligible.sort(key=lambda s: s.effective_date)
    return eligible


def qualifying_sets(log: ExerciseLog, include_warmup_sets: bool = False) -> list[SetLog]:
    """Completed sets, minus warmups unless they are requested."""
    return [
        s for s in log.sets
        if s.completed and (include_warmup_sets or s.set_type != "warmup")
    ]


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def session_data_for_log(
    log: ExerciseLog,
    session: WorkoutSession,
    include_warmup_sets: bool = False,
) -> ExerciseSessionData | None:
    """
    Aggregate one exercise log into an ExerciseSessionData point.

    Missing weights are excluded from weight averages but contribute 0 to
    volume.  Missing RPE/RIR values are excluded from their averages.

    Args:
        log: Exercise log from the session
        session: Session the log belongs to
        include_warmup_sets: Count warmup sets as well

    Returns:
        Aggregated data point, or None if no sets qualify
    """
    sets = qualifying_sets(log, include_warmup_sets)
    if not sets:
        return None

    weights = [s.weight for s in sets if s.weight is not None]
    rpes = [s.rpe for s in sets if s.rpe is not None]
    rirs = [s.rir for s in sets if s.rir is not None]

    return ExerciseSessionData(
        session_id=session.id,
        date=session.effective_date,
        max_weight=max(weights) if weights else None,
        average_weight=_mean(weights),
        total_volume=sum((s.weight or 0) * s.reps for s in sets),
        average_reps=sum(s.reps for s in sets) / len(sets),
        average_rpe=_mean(rpes),
        average_rir=_mean(rirs),
        sets_completed=len(sets),
        completed_sets=sets,
    )


def extract_exercise_history(
    sessions: list[WorkoutSession],
    options: AnalysisOptions | None = None,
    now: datetime | None = None,
) -> list[ExerciseHistory]:
    """
    Build per-exercise histories from workout sessions.

    Only completed, timestamped sessions whose effective date falls within
    ``lookback_days`` of ``now`` (inclusive) are used.  Exercises are grouped
    by id; logs without an id fall back to their name, which merges or
    splits histories when names collide or change, so a warning is emitted.

    Args:
        sessions: Raw sessions
        options: Analysis options (defaults apply when None)
        now: Reference time for the lookback window

    Returns:
        Histories with at least ``min_sessions`` data points, in first-seen order
    """
    opts = options or AnalysisOptions()
    eligible = completed_sessions(sessions)
    cutoff = resolve_now(now, eligible) - timedelta(days=opts.lookback_days)
    relevant = [s for s in eligible if s.effective_date >= cutoff]

    by_key: dict[str, ExerciseHistory] = {}
    name_keyed: set[str] = set()

    for session in relevant:
        for log in session.exercise_logs:
            key = log.key
            if log.exercise_id is None:
                name_keyed.add(log.exercise_name)
            history = by_key.get(key)
            if history is None:
                history = ExerciseHistory(
                    exercise_name=log.exercise_name,
                    exercise_id=key,
                )
                by_key[key] = history

            data = session_data_for_log(log, session, opts.include_warmup_sets)
            if data is not None:
                history.sessions.append(data)

    if name_keyed:
        warnings.warn(
            "Exercise logs without a stable exercise_id were grouped by name: "
            f"{', '.join(sorted(name_keyed))}. Renamed or duplicate names can "
            "merge or split histories.",
            stacklevel=2,
        )

    return [h for h in by_key.values() if len(h.sessions) >= opts.min_sessions]


def session_volume(session: WorkoutSession) -> float:
    """
    Total volume of a session across all exercises.

    Counts completed sets that have a recorded weight and at least one rep;
    zero-weight sets are included and contribute nothing.
    """
    return sum(
        s.weight * s.reps
        for log in session.exercise_logs
        for s in log.sets
        if s.completed and s.weight is not None and s.reps > 0
    )
