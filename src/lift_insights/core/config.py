"""
Configuration constants for the workout analysis model.

All adjustable parameters are centralized here for easy tuning.
Weights are expressed in the caller's unit (pounds in the default setup).
"""

from dataclasses import dataclass
from typing import Final

# =============================================================================
# HISTORY EXTRACTION
# =============================================================================

DEFAULT_LOOKBACK_DAYS: Final[int] = 30  # Trailing window for eligible sessions
DEFAULT_MIN_SESSIONS: Final[int] = 3  # Qualifying sessions needed per exercise
PREDICTION_MIN_SESSIONS: Final[int] = 2  # Lowered minimum for weight predictions
RECENT_WINDOW: Final[int] = 3  # "Last three sessions" window used throughout

# =============================================================================
# PATTERN DETECTION
# =============================================================================

DEFAULT_WEIGHT_PROGRESSION_THRESHOLD: Final[float] = 2.5  # Meaningful weight delta
DECLINE_DETECTION_PERCENT: Final[float] = 5.0  # Decline is "severe" above this
DECLINE_HIGH_SEVERITY_PERCENT: Final[float] = 10.0  # Strictly above -> high severity
OPTIMAL_RPE_LOW: Final[float] = 7.0  # Inclusive band for the optimal upgrade
OPTIMAL_RPE_HIGH: Final[float] = 8.5

# =============================================================================
# TREND PREDICTION
# =============================================================================

TREND_CONFIDENCE: Final[float] = 0.5  # Heuristic, not a fitted probability
PREDICTION_MIN_CONFIDENCE: Final[float] = 0.5  # Minimum to suggest progression
PREDICTION_HIGH_CONFIDENCE: Final[float] = 0.7  # At or above -> high priority

# =============================================================================
# RECOMMENDATIONS
# =============================================================================

PLATEAU_LOW_REP_THRESHOLD: Final[float] = 6.0  # Strength-range cutoff (avg reps)
LOW_INTENSITY_RPE: Final[float] = 7.0  # Below this, volume can go up
LOW_RECOVERY_SCORE: Final[int] = 60
LOW_CONSISTENCY_SCORE: Final[int] = 70

PRIORITY_RANK: Final[dict[str, int]] = {"high": 3, "medium": 2, "low": 1}

# =============================================================================
# PROGRESS METRICS
# =============================================================================

DECLINE_STRENGTH_PENALTY: Final[float] = -5.0  # Used when most patterns decline
VOLUME_MIN_SESSIONS: Final[int] = 4
CONSISTENCY_MIN_SESSIONS: Final[int] = 3

# (upper bound on mean days between sessions, score); first match wins
CONSISTENCY_DEFAULT: Final[int] = 100
CONSISTENCY_SPARSE_DAYS: Final[float] = 5.0
CONSISTENCY_SPARSE_SCORE: Final[int] = 40
CONSISTENCY_MODERATE_DAYS: Final[float] = 3.0
CONSISTENCY_MODERATE_SCORE: Final[int] = 70
CONSISTENCY_IDEAL_SCORE: Final[int] = 100
CONSISTENCY_CROWDED_SCORE: Final[int] = 60  # Several sessions on the same day

HIGH_RPE: Final[float] = 9.0
RECOVERY_DEFAULT: Final[int] = 75
RECOVERY_POOR: Final[int] = 40
RECOVERY_MODERATE: Final[int] = 60
RECOVERY_GOOD: Final[int] = 85
RECOVERY_POOR_DECLINE_RATIO: Final[float] = 0.3
RECOVERY_POOR_HIGH_RPE_RATIO: Final[float] = 0.4
RECOVERY_MODERATE_DECLINE_RATIO: Final[float] = 0.1
RECOVERY_MODERATE_HIGH_RPE_RATIO: Final[float] = 0.2

# =============================================================================
# OVERALL SCORE
# =============================================================================

SCORE_BASE: Final[float] = 50.0
SCORE_OPTIMAL_BONUS: Final[float] = 15.0
SCORE_PROGRESSION_BONUS: Final[float] = 10.0
SCORE_DECLINE_PENALTY: Final[float] = 15.0
SCORE_PLATEAU_PENALTY: Final[float] = 10.0  # Only for high-severity plateaus
SCORE_STRENGTH_CAP: Final[float] = 15.0
SCORE_METRIC_WEIGHT: Final[float] = 1.5  # Applied to consistency/10 and recovery/10


@dataclass(frozen=True)
class AnalysisOptions:
    """
    Options recognised by the analysis pipeline.

    ``weight_unit`` only affects human-readable text; all arithmetic is
    unit-agnostic.
    """

    lookback_days: int = DEFAULT_LOOKBACK_DAYS
    min_sessions: int = DEFAULT_MIN_SESSIONS
    include_warmup_sets: bool = False
    weight_progression_threshold: float = DEFAULT_WEIGHT_PROGRESSION_THRESHOLD
    weight_unit: str = "lbs"

    def __post_init__(self) -> None:
        """Validate option ranges."""
        if self.lookback_days < 0:
            raise ValueError("lookback_days must be non-negative")
        if self.min_sessions < 1:
            raise ValueError("min_sessions must be at least 1")
        if self.weight_progression_threshold < 0:
            raise ValueError("weight_progression_threshold must be non-negative")
        if not self.weight_unit.strip():
            raise ValueError("weight_unit must be a non-empty string")
