"""
JSON serialization for workout data models.

Handles conversion between dataclasses and JSON-compatible dicts.  Dates are
kept as datetime objects inside the package and only become ISO strings at
this boundary.
"""

import json
import re
from dataclasses import asdict
from datetime import datetime
from typing import Any

from ..core.history import naive_local
from ..core.models import (
    ExerciseLog,
    IntensityMetric,
    PlannedExercise,
    SetLog,
    WorkoutAnalysis,
    WorkoutDay,
    WorkoutSession,
    WorkoutSplit,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_datetime(value: Any, name: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into naive local time.

    Offsets are converted to the local timezone and dropped, so stored
    sessions never mix aware and naive datetimes.

    Args:
        value: ISO string (or datetime)
        name: Field name for the error message

    Returns:
        Parsed naive datetime

    Raises:
        ValidationError: If the value is not a valid ISO timestamp
    """
    if isinstance(value, datetime):
        return naive_local(value)
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be an ISO timestamp, got {value!r}")
    try:
        return naive_local(datetime.fromisoformat(value))
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {value}") from e


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def _optional_float(data: dict[str, Any], key: str) -> float | None:
    value = data.get(key)
    return float(value) if value is not None else None


def _optional_datetime(data: dict[str, Any], key: str) -> datetime | None:
    value = data.get(key)
    return validate_datetime(value, key) if value is not None else None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


# =============================================================================
# Sessions
# =============================================================================


def set_log_to_dict(s: SetLog) -> dict[str, Any]:
    """Convert SetLog to a compact dict; absent optionals are omitted."""
    d: dict[str, Any] = {
        "set_number": s.set_number,
        "type": s.set_type,
        "reps": s.reps,
        "completed": s.completed,
    }
    if s.weight is not None:
        d["weight"] = s.weight
    if s.rpe is not None:
        d["rpe"] = s.rpe
    if s.rir is not None:
        d["rir"] = s.rir
    if s.completed_at is not None:
        d["completed_at"] = s.completed_at.isoformat()
    return d


def dict_to_set_log(data: dict[str, Any]) -> SetLog:
    """
    Convert dict to SetLog.

    Raises:
        ValidationError: If data is invalid
    """
    validate_non_negative(data.get("reps", 0), "reps")
    try:
        return SetLog(
            set_number=int(data["set_number"]),
            reps=int(data["reps"]),
            set_type=data.get("type", "working"),
            weight=_optional_float(data, "weight"),
            rpe=_optional_float(data, "rpe"),
            rir=_optional_float(data, "rir"),
            completed=bool(data.get("completed", True)),
            completed_at=_optional_datetime(data, "completed_at"),
        )
    except KeyError as e:
        raise ValidationError(f"Set is missing field {e}") from e
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid set: {e}") from e


def exercise_log_to_dict(log: ExerciseLog) -> dict[str, Any]:
    d: dict[str, Any] = {
        "exercise_id": log.exercise_id,
        "exercise_name": log.exercise_name,
        "sets": [set_log_to_dict(s) for s in log.sets],
    }
    if log.notes:
        d["notes"] = log.notes
    return d


def dict_to_exercise_log(data: dict[str, Any]) -> ExerciseLog:
    """
    Convert dict to ExerciseLog.

    Raises:
        ValidationError: If the name is missing or a set is invalid
    """
    name = data.get("exercise_name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"Invalid exercise_name: {name!r}. Must be a non-empty string.")
    return ExerciseLog(
        exercise_name=name,
        exercise_id=data.get("exercise_id") or None,
        sets=[dict_to_set_log(s) for s in data.get("sets", [])],
        notes=data.get("notes"),
    )


def session_to_dict(session: WorkoutSession) -> dict[str, Any]:
    """
    Convert WorkoutSession to JSON-compatible dict.

    Args:
        session: WorkoutSession to convert

    Returns:
        Dict representation
    """
    return {
        "id": session.id,
        "split_id": session.split_id,
        "split_name": session.split_name,
        "day_id": session.day_id,
        "day_name": session.day_name,
        "started_at": session.started_at.isoformat(),
        "completed_at": _iso(session.completed_at),
        "status": session.status,
        "total_duration": session.total_duration,
        "exercise_logs": [exercise_log_to_dict(log) for log in session.exercise_logs],
        "notes": session.notes,
    }


def dict_to_session(data: dict[str, Any]) -> WorkoutSession:
    """
    Convert dict to WorkoutSession.

    Args:
        data: Dict representation

    Returns:
        WorkoutSession instance

    Raises:
        ValidationError: If data is invalid
    """
    if "id" not in data:
        raise ValidationError("Session is missing field 'id'")
    if "started_at" not in data:
        raise ValidationError("Session is missing field 'started_at'")

    duration = data.get("total_duration")
    try:
        return WorkoutSession(
            id=str(data["id"]),
            split_id=data.get("split_id", ""),
            split_name=data.get("split_name", ""),
            day_id=data.get("day_id", ""),
            day_name=data.get("day_name", ""),
            started_at=validate_datetime(data["started_at"], "started_at"),
            completed_at=_optional_datetime(data, "completed_at"),
            status=data.get("status", "active"),
            total_duration=float(duration) if duration is not None else None,
            exercise_logs=[dict_to_exercise_log(e) for e in data.get("exercise_logs", [])],
            notes=data.get("notes"),
        )
    except ValueError as e:
        raise ValidationError(f"Invalid session: {e}") from e


def session_to_json_line(session: WorkoutSession) -> str:
    """
    Serialize a session to a single JSON line (no trailing newline).
    """
    return json.dumps(session_to_dict(session), separators=(",", ":"))


def json_line_to_session(line: str) -> WorkoutSession:
    """
    Deserialize a JSON line to a WorkoutSession.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Session record must be a JSON object")
    return dict_to_session(data)


# =============================================================================
# Splits
# =============================================================================


def split_to_dict(split: WorkoutSplit) -> dict[str, Any]:
    """Convert WorkoutSplit to JSON-compatible dict."""
    d = asdict(split)
    d["created_at"] = split.created_at.isoformat()
    d["updated_at"] = split.updated_at.isoformat()
    return d


def dict_to_planned_exercise(data: dict[str, Any]) -> PlannedExercise:
    """
    Convert dict to PlannedExercise.

    Raises:
        ValidationError: If data is invalid
    """
    intensity = data.get("intensity_metric") or {}
    try:
        return PlannedExercise(
            id=str(data["id"]),
            name=data["name"],
            working_sets=int(data["working_sets"]),
            rep_range_min=int(data["rep_range_min"]),
            rep_range_max=int(data["rep_range_max"]),
            warmup_sets=int(data.get("warmup_sets", 0)),
            intensity_metric=IntensityMetric(
                type=intensity.get("type", ""),
                value=float(intensity.get("value", 0)),
            ),
            rest_time=float(data.get("rest_time", 2.0)),
            notes=data.get("notes"),
        )
    except KeyError as e:
        raise ValidationError(f"Planned exercise is missing field {e}") from e
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid planned exercise: {e}") from e


def dict_to_split(data: dict[str, Any]) -> WorkoutSplit:
    """
    Convert dict to WorkoutSplit.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        days = [
            WorkoutDay(
                id=str(day["id"]),
                name=day["name"],
                exercises=[dict_to_planned_exercise(e) for e in day.get("exercises", [])],
            )
            for day in data.get("days", [])
        ]
        return WorkoutSplit(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description", ""),
            days=days,
            created_at=validate_datetime(data["created_at"], "created_at"),
            updated_at=validate_datetime(data["updated_at"], "updated_at"),
        )
    except KeyError as e:
        raise ValidationError(f"Split is missing field {e}") from e


# =============================================================================
# Analysis output
# =============================================================================


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def record_to_dict(record: Any) -> dict[str, Any]:
    """Convert any model dataclass to a dict with ISO-string datetimes."""
    return _jsonable(asdict(record))


def analysis_to_dict(analysis: WorkoutAnalysis) -> dict[str, Any]:
    """
    Convert an analysis (base or enhanced) to a JSON-compatible dict.

    Nested records become dicts and every datetime an ISO string.
    """
    return record_to_dict(analysis)


# =============================================================================
# Compact set notation
# =============================================================================

_SET_RE = re.compile(
    r"^(?P<warmup>w:)?"
    r"(?:(?P<weight>\d+(?:\.\d+)?)\s*[xX×]\s*)?"
    r"(?P<reps>\d+)"
    r"(?:\s*[xX×]\s*(?P<count>\d+))?"
    r"(?:\s*@\s*(?P<rpe>\d+(?:\.\d+)?))?$"
)


def parse_sets_string(sets_str: str) -> list[SetLog]:
    """
    Parse a compact sets string into SetLog entries.

    Comma-separated groups, each one of:
        WEIGHTxREPS[@RPE]         e.g. "225x5@8"   one weighted set
        WEIGHTxREPSxSETS[@RPE]    e.g. "225x5x3"   three identical sets
        REPS[@RPE]                e.g. "12"        one bodyweight set
    Prefix a group with "w:" to mark warmup sets ("w:135x8").

    Sets are numbered in order, starting at 1.  All sets are completed.

    Args:
        sets_str: Sets string to parse

    Returns:
        List of SetLog

    Raises:
        ValidationError: If the format or a value is invalid
    """
    if not sets_str or not sets_str.strip():
        raise ValidationError("Sets string cannot be empty")

    sets: list[SetLog] = []
    for part in (p.strip() for p in sets_str.split(",")):
        if not part:
            continue
        m = _SET_RE.match(part)
        if m is None:
            raise ValidationError(
                f"Invalid set format: '{part}'.\n"
                "Use: WEIGHTxREPS[@RPE] (e.g. 225x5@8), WEIGHTxREPSxSETS (e.g. 225x5x3),\n"
                "     REPS[@RPE] for bodyweight, and a w: prefix for warmups."
            )

        count = int(m.group("count")) if m.group("count") else 1
        if count < 1:
            raise ValidationError(f"Set count must be at least 1: '{part}'")

        weight = float(m.group("weight")) if m.group("weight") else None
        rpe = float(m.group("rpe")) if m.group("rpe") else None
        for _ in range(count):
            try:
                sets.append(
                    SetLog(
                        set_number=len(sets) + 1,
                        reps=int(m.group("reps")),
                        set_type="warmup" if m.group("warmup") else "working",
                        weight=weight,
                        rpe=rpe,
                    )
                )
            except ValueError as e:
                raise ValidationError(f"Invalid set '{part}': {e}") from e

    if not sets:
        raise ValidationError("No valid sets found in sets string")

    return sets
