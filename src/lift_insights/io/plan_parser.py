"""
Import of text-generated workout plans.

A plan-generation service replies with a JSON document, sometimes wrapped in
a Markdown code fence.  This module cleans, validates and converts it into a
WorkoutSplit.  Keys may be camelCase (as generated) or snake_case.
"""

import json
import re
import uuid
from datetime import datetime
from typing import Any

from ..core.models import IntensityMetric, PlannedExercise, WorkoutDay, WorkoutSplit
from .serializers import ValidationError

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")

DEFAULT_REST_MINUTES = 2.0


def _generate_id() -> str:
    return uuid.uuid4().hex[:12]


def _get(data: dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _rep_range(exercise: dict[str, Any]) -> tuple[Any, Any]:
    """(min, max) from repRange / rep_range objects or flat rep_range_min/max keys."""
    nested = _get(exercise, "repRange", "rep_range")
    if isinstance(nested, dict):
        return nested.get("min"), nested.get("max")
    return (
        _get(exercise, "repRangeMin", "rep_range_min"),
        _get(exercise, "repRangeMax", "rep_range_max"),
    )


def strip_code_fence(text: str) -> str:
    """Return the body of the first Markdown code fence, or the trimmed text."""
    cleaned = text.strip()
    m = _FENCE_RE.search(cleaned)
    return m.group(1).strip() if m else cleaned


def validate_workout_plan(plan: Any) -> bool:
    """
    Strict structural check of a decoded plan.

    Requires non-blank plan/day/exercise names, at least one day, at least
    one exercise per day, working sets of at least 1, and both ends of the
    rep range.
    """
    if not isinstance(plan, dict):
        return False
    name = plan.get("name")
    if not isinstance(name, str) or not name.strip():
        return False
    days = plan.get("days")
    if not isinstance(days, list) or not days:
        return False

    for day in days:
        if not isinstance(day, dict):
            return False
        day_name = day.get("name")
        if not isinstance(day_name, str) or not day_name.strip():
            return False
        exercises = day.get("exercises")
        if not isinstance(exercises, list) or not exercises:
            return False

        for exercise in exercises:
            if not isinstance(exercise, dict):
                return False
            ex_name = exercise.get("name")
            if not isinstance(ex_name, str) or not ex_name.strip():
                return False
            working_sets = _get(exercise, "workingSets", "working_sets")
            if not isinstance(working_sets, (int, float)) or working_sets < 1:
                return False
            rep_min, rep_max = _rep_range(exercise)
            if not rep_min or not rep_max:
                return False

    return True


def _convert_exercise(data: dict[str, Any]) -> PlannedExercise:
    rep_min, rep_max = _rep_range(data)
    intensity = _get(data, "intensityMetric", "intensity_metric") or {}
    return PlannedExercise(
        id=_generate_id(),
        name=data["name"],
        warmup_sets=int(_get(data, "warmupSets", "warmup_sets") or 0),
        working_sets=int(_get(data, "workingSets", "working_sets")),
        rep_range_min=int(rep_min),
        rep_range_max=int(rep_max),
        intensity_metric=IntensityMetric(
            type=intensity.get("type", ""),
            value=float(intensity.get("value", 0)),
        ),
        rest_time=float(_get(data, "restTime", "rest_time") or DEFAULT_REST_MINUTES),
        notes=data.get("notes"),
    )


def parse_workout_plan(text: str) -> WorkoutSplit:
    """
    Parse a generated plan into a WorkoutSplit.

    Every split, day and exercise gets a fresh id.  Missing warmup sets
    default to 0, rest to 2 minutes and intensity to unspecified.

    Args:
        text: Raw service reply, optionally wrapped in a code fence

    Returns:
        WorkoutSplit ready to save

    Raises:
        ValidationError: If the text is not valid JSON or fails validation
    """
    try:
        plan = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Workout plan is not valid JSON: {e}") from e

    if not validate_workout_plan(plan):
        raise ValidationError(
            "Invalid workout plan structure: need a name and days, each day with "
            "a name and exercises, each exercise with a name, working sets and rep range"
        )

    try:
        days = [
            WorkoutDay(
                id=_generate_id(),
                name=day["name"],
                exercises=[_convert_exercise(e) for e in day["exercises"]],
            )
            for day in plan["days"]
        ]
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid workout plan: {e}") from e

    now = datetime.now()
    return WorkoutSplit(
        id=_generate_id(),
        name=plan["name"],
        description=plan.get("description") or "",
        days=days,
        created_at=now,
        updated_at=now,
    )
