"""
Data models for lift-insights.

Input records (sessions, exercise logs, sets) mirror what the persistence
layer hands over.  Derived records (histories, patterns, recommendations,
predictions, analyses) are rebuilt on every analysis run and never stored.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

SetType = Literal["warmup", "working"]
SessionStatus = Literal["active", "completed", "paused"]
PatternType = Literal["plateau", "progression", "decline", "inconsistent", "optimal"]
Severity = Literal["low", "medium", "high"]
Trend = Literal["up", "down", "flat"]
Priority = Literal["high", "medium", "low"]
PredictionSource = Literal["trend", "model"]

# One tag per semantic category.  "consistency_improvement" replaces the
# volume_increase tag that was previously reused for training-frequency advice.
RecommendationKind = Literal[
    "deload",
    "volume_increase",
    "volume_decrease",
    "rep_range_change",
    "isometric",
    "rest",
    "progression_ready",
    "consistency_improvement",
]


@dataclass
class SetLog:
    """
    A single logged set.

    ``weight`` is None for bodyweight or unrecorded sets.  Only completed
    sets take part in analysis.
    """

    set_number: int
    reps: int
    set_type: SetType = "working"
    weight: float | None = None
    rpe: float | None = None  # 1-10
    rir: float | None = None  # 0-10
    completed: bool = True
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.set_number < 1:
            raise ValueError("set_number must be at least 1")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.set_type not in ("warmup", "working"):
            raise ValueError(f"Invalid set_type: {self.set_type}")
        if self.weight is not None and self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.rpe is not None and not 1 <= self.rpe <= 10:
            raise ValueError("rpe must be between 1 and 10")
        if self.rir is not None and not 0 <= self.rir <= 10:
            raise ValueError("rir must be between 0 and 10")


@dataclass
class ExerciseLog:
    """
    All sets logged for one exercise within a session.

    ``exercise_id`` should be a stable identifier; when it is missing the
    display name is used as the grouping key.
    """

    exercise_name: str
    sets: list[SetLog] = field(default_factory=list)
    exercise_id: str | None = None
    notes: str | None = None

    @property
    def key(self) -> str:
        """Grouping key across sessions: the id, else the name."""
        return self.exercise_id or self.exercise_name


@dataclass
class WorkoutSession:
    """
    One workout instance, tied to a split day or freestyle.
    """

    id: str
    started_at: datetime
    split_id: str = ""
    split_name: str = ""
    day_id: str = ""
    day_name: str = ""
    completed_at: datetime | None = None
    status: SessionStatus = "active"
    exercise_logs: list[ExerciseLog] = field(default_factory=list)
    total_duration: float | None = None  # minutes
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate session data."""
        if not self.id:
            raise ValueError("session id must be non-empty")
        if self.status not in ("active", "completed", "paused"):
            raise ValueError(f"Invalid status: {self.status}")
        if self.total_duration is not None and self.total_duration < 0:
            raise ValueError("total_duration must be non-negative")

    @property
    def effective_date(self) -> datetime:
        """Completion timestamp, falling back to the start timestamp."""
        return self.completed_at or self.started_at

    @property
    def is_analyzable(self) -> bool:
        """True for completed sessions that carry a completion timestamp."""
        return self.status == "completed" and self.completed_at is not None


@dataclass
class ExerciseSessionData:
    """
    Per-session aggregates for one exercise, computed from qualifying sets.
    """

    session_id: str
    date: datetime
    max_weight: float | None
    average_weight: float | None
    total_volume: float
    average_reps: float
    average_rpe: float | None
    average_rir: float | None
    sets_completed: int
    completed_sets: list[SetLog] = field(default_factory=list)


@dataclass
class ExerciseHistory:
    """Chronological per-exercise series, oldest first."""

    exercise_name: str
    exercise_id: str
    sessions: list[ExerciseSessionData] = field(default_factory=list)


@dataclass
class ExercisePattern:
    """Classified recent trend for one exercise."""

    exercise_name: str
    exercise_id: str
    pattern_type: PatternType
    description: str
    severity: Severity
    data_points: int
    trend: Trend
    last_three_sessions: list[ExerciseSessionData] = field(default_factory=list)


@dataclass
class WorkoutRecommendation:
    """An actionable suggestion derived from patterns or overall metrics."""

    id: str
    type: RecommendationKind
    priority: Priority
    title: str
    description: str
    action_items: list[str] = field(default_factory=list)
    reasoning: str = ""
    related_patterns: list[str] = field(default_factory=list)
    exercise_name: str | None = None


@dataclass
class WeightProgressionPrediction:
    """
    Suggested next working weight for one exercise.

    ``confidence`` is a heuristic in [0, 1], not a probability.
    """

    current_weight: float
    predicted_next_weight: float
    weight_increase: float
    confidence: float
    reasoning: str
    source: PredictionSource = "trend"

    def __post_init__(self) -> None:
        if not 0 <= self.confidence <= 1:
            raise ValueError("confidence must be between 0 and 1")


@dataclass
class ProgressMetrics:
    """Aggregate progress indicators for an analysis run."""

    strength_progress: float = 0.0  # percent
    volume_progress: float = 0.0  # percent
    consistency_score: int = 0  # 0-100
    recovery_score: int = 0  # 0-100


@dataclass
class TimeRange:
    start: datetime
    end: datetime


@dataclass
class WorkoutAnalysis:
    """
    Top-level analysis result.  Recomputed from scratch on every call.
    """

    overall_score: int
    summary: str
    exercise_patterns: list[ExercisePattern]
    recommendations: list[WorkoutRecommendation]
    progress_metrics: ProgressMetrics
    analyzed_date: datetime
    sessions_analyzed: int
    time_range: TimeRange


@dataclass
class EnhancedWorkoutAnalysis(WorkoutAnalysis):
    """
    Analysis plus per-exercise weight predictions.

    ``recommendations`` already includes the prediction-driven entries.
    """

    weight_predictions: dict[str, WeightProgressionPrediction] = field(default_factory=dict)
    predictions_enabled: bool = False


# =============================================================================
# Split templates (produced by the workout-plan importer)
# =============================================================================

IntensityType = Literal["rpe", "rir", ""]


@dataclass
class IntensityMetric:
    type: IntensityType = ""
    value: float = 0

    def __post_init__(self) -> None:
        if self.type not in ("rpe", "rir", ""):
            raise ValueError(f"Invalid intensity metric type: {self.type}")


@dataclass
class PlannedExercise:
    """An exercise prescription inside a split day."""

    id: str
    name: str
    working_sets: int
    rep_range_min: int
    rep_range_max: int
    warmup_sets: int = 0
    intensity_metric: IntensityMetric = field(default_factory=IntensityMetric)
    rest_time: float = 2.0  # minutes
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate prescription data."""
        if self.working_sets < 1:
            raise ValueError("working_sets must be at least 1")
        if self.warmup_sets < 0:
            raise ValueError("warmup_sets must be non-negative")
        if self.rep_range_min < 1 or self.rep_range_max < 1:
            raise ValueError("rep range must be at least 1")
        if self.rep_range_min > self.rep_range_max:
            raise ValueError("rep_range_min cannot be greater than rep_range_max")
        if self.rest_time < 0:
            raise ValueError("rest_time must be non-negative")


@dataclass
class WorkoutDay:
    id: str
    name: str
    exercises: list[PlannedExercise] = field(default_factory=list)


@dataclass
class WorkoutSplit:
    """A named multi-day program."""

    id: str
    name: str
    days: list[WorkoutDay] = field(default_factory=list)
    description: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
