"""
Next-weight prediction.

The deterministic trend predictor is the only implemented strategy.  A
model-based strategy slot exists so callers can inject one later; until a
trained model is wired in it reports itself unavailable and every caller
falls back to the trend.
"""

import logging
from typing import Protocol

from .config import PREDICTION_MIN_SESSIONS, RECENT_WINDOW, TREND_CONFIDENCE
from .metrics import round_half_up
from .models import ExerciseHistory, WeightProgressionPrediction

logger = logging.getLogger(__name__)


class InsufficientHistoryError(ValueError):
    """Raised when a history is too short to extrapolate from."""


class PredictorUnavailableError(RuntimeError):
    """Raised by a predictor strategy that cannot make predictions."""


def predict_next_weight(
    history: ExerciseHistory,
    weight_unit: str = "lbs",
) -> WeightProgressionPrediction:
    """
    Extrapolate the next working weight from the recent linear trend.

    Uses the last three sessions' max weights (missing -> 0):

        slope = (last - first) / (len(window) - 1)
        predicted = max(0, current + slope), rounded to an integer

    Confidence is a fixed heuristic, not a fitted probability.

    Args:
        history: Exercise history, oldest first
        weight_unit: Unit used in the reasoning text

    Returns:
        WeightProgressionPrediction tagged with source "trend"

    Raises:
        InsufficientHistoryError: If fewer than two sessions are available
    """
    if len(history.sessions) < PREDICTION_MIN_SESSIONS:
        raise InsufficientHistoryError(
            f"{history.exercise_name}: need at least {PREDICTION_MIN_SESSIONS} "
            f"sessions, got {len(history.sessions)}"
        )

    window = [s.max_weight or 0 for s in history.sessions[-RECENT_WINDOW:]]
    current = window[-1]
    slope = (window[-1] - window[0]) / (len(window) - 1)

    predicted = round_half_up(max(0.0, current + slope))
    increase = predicted - current

    if slope > 0:
        direction = f"Upward trend of +{slope:.1f} {weight_unit} per session"
    elif slope < 0:
        direction = f"Downward trend of {slope:.1f} {weight_unit} per session"
    else:
        direction = "No change in max weight"
    reasoning = f"{direction} over the last {len(window)} sessions."

    return WeightProgressionPrediction(
        current_weight=current,
        predicted_next_weight=predicted,
        weight_increase=increase,
        confidence=TREND_CONFIDENCE,
        reasoning=reasoning,
        source="trend",
    )


class WeightPredictor(Protocol):
    """Strategy interface for next-weight prediction."""

    @property
    def available(self) -> bool: ...

    def predict(self, history: ExerciseHistory) -> WeightProgressionPrediction: ...


class TrendPredictor:
    """Deterministic linear-trend strategy.  Always available."""

    def __init__(self, weight_unit: str = "lbs") -> None:
        self.weight_unit = weight_unit

    @property
    def available(self) -> bool:
        return True

    def predict(self, history: ExerciseHistory) -> WeightProgressionPrediction:
        return predict_next_weight(history, self.weight_unit)


class ModelPredictor:
    """
    Placeholder for a trained-model strategy.

    No model ships with the package, so this strategy is never available.
    """

    @property
    def available(self) -> bool:
        return False

    def predict(self, history: ExerciseHistory) -> WeightProgressionPrediction:
        raise PredictorUnavailableError("No trained prediction model is loaded")


def predict_weights(
    histories: list[ExerciseHistory],
    predictor: WeightPredictor | None = None,
    weight_unit: str = "lbs",
) -> dict[str, WeightProgressionPrediction]:
    """
    Predict the next weight for every history with enough sessions.

    An unavailable predictor, or any exception it raises for one exercise,
    falls back to the trend predictor.
    Exercises that cannot be predicted at all are logged and skipped; one
    failure never aborts the others.

    Args:
        histories: Exercise histories
        predictor: Strategy to try first (trend predictor when None)
        weight_unit: Unit used by the fallback's reasoning text

    Returns:
        Map of exercise id to prediction
    """
    fallback = TrendPredictor(weight_unit)
    if predictor is None:
        predictor = fallback
    elif not predictor.available:
        logger.info(
            "%s unavailable, using trend predictor", type(predictor).__name__
        )
        predictor = fallback

    predictions: dict[str, WeightProgressionPrediction] = {}
    for history in histories:
        if len(history.sessions) < PREDICTION_MIN_SESSIONS:
            continue
        if predictor is not fallback:
            try:
                predictions[history.exercise_id] = predictor.predict(history)
                continue
            except Exception as e:
                # Injected strategies may fail in any way; the trend still applies
                logger.warning(
                    "Prediction failed for %s (%s), falling back to trend",
                    history.exercise_name,
                    e,
                    exc_info=True,
                )

        try:
            predictions[history.exercise_id] = fallback.predict(history)
        except ValueError as e:
            logger.warning("Skipping prediction for %s: %s", history.exercise_name, e)

    return predictions
