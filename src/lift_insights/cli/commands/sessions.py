"""Session commands: log-session, show-history, delete-record."""

import json
import re
import uuid
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.models import ExerciseLog, WorkoutSession
from ...io.serializers import ValidationError, parse_sets_string, session_to_dict, validate_datetime
from .. import views
from ..app import HistoryPathOption, JsonOption, app, get_store


def _slug(name: str) -> str:
    """Stable exercise id derived from a display name."""
    return re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")


@app.command("log-session")
def log_session(
    exercise: Annotated[
        str,
        typer.Option("--exercise", "-e", help="Exercise name, e.g. 'Bench Press'"),
    ],
    sets: Annotated[
        str,
        typer.Option(
            "--sets",
            "-s",
            help="Sets: WEIGHTxREPS[@RPE], WEIGHTxREPSxSETS, REPS for bodyweight; w: prefix = warmup",
        ),
    ],
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Completion date/time (ISO, default: now)"),
    ] = None,
    exercise_id: Annotated[
        Optional[str],
        typer.Option("--exercise-id", help="Stable exercise id (default: derived from name)"),
    ] = None,
    session_id: Annotated[
        Optional[str],
        typer.Option("--session-id", help="Add the exercise to an existing session"),
    ] = None,
    day: Annotated[
        str,
        typer.Option("--day", help="Split day name"),
    ] = "",
    duration: Annotated[
        Optional[float],
        typer.Option("--duration", help="Session duration in minutes"),
    ] = None,
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", "-n", help="Free-text notes"),
    ] = None,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log a completed session (or add an exercise to one).
    """
    store = get_store(history_path)

    try:
        set_logs = parse_sets_string(sets)
        completed_at = validate_datetime(date, "date") if date else datetime.now()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    log = ExerciseLog(
        exercise_name=exercise.strip(),
        exercise_id=exercise_id or _slug(exercise),
        sets=set_logs,
    )

    try:
        store.init()
        existing = {s.id: s for s in store.load_sessions()}
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if session_id is not None and session_id in existing:
        session = existing[session_id]
        session.exercise_logs = [
            l for l in session.exercise_logs if l.key != log.key
        ] + [log]
        if notes:
            session.notes = notes
    else:
        session = WorkoutSession(
            id=session_id or uuid.uuid4().hex[:12],
            day_name=day,
            started_at=completed_at,
            completed_at=completed_at,
            status="completed",
            exercise_logs=[log],
            total_duration=duration,
            notes=notes,
        )

    store.append_session(session)

    if json_out:
        print(json.dumps(session_to_dict(session), indent=2))
        return

    n_working = sum(1 for s in set_logs if s.set_type == "working")
    views.print_success(
        f"Logged {exercise.strip()}: {n_working} working set(s) on "
        f"{session.effective_date:%Y-%m-%d} (session {session.id})"
    )


@app.command("show-history")
def show_history(
    history_path: HistoryPathOption = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-l", help="Limit number of sessions to show"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Display workout history as a table.
    """
    store = get_store(history_path)

    if not store.exists():
        views.print_error(f"Sessions file not found: {store.sessions_path}")
        views.print_info("Run 'log-session' first to record a workout.")
        raise typer.Exit(1)

    try:
        sessions = store.load_sessions()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if limit is not None:
        sessions = sessions[-limit:]

    if json_out:
        print(json.dumps([session_to_dict(s) for s in sessions], indent=2))
        return

    views.print_history(sessions)


@app.command("delete-record")
def delete_record(
    record_id: Annotated[
        int,
        typer.Argument(help="Session ID to delete (see # column in show-history)"),
    ],
    history_path: HistoryPathOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """
    Remove a session by its ID.

    Use 'show-history' to see session IDs in the # column.
    """
    store = get_store(history_path)

    try:
        sessions = store.load_sessions()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not sessions:
        views.print_error("No sessions in history.")
        raise typer.Exit(1)

    if record_id < 1 or record_id > len(sessions):
        views.print_error(f"Record ID must be between 1 and {len(sessions)}")
        raise typer.Exit(1)

    target = sessions[record_id - 1]
    label = f"{target.effective_date:%Y-%m-%d} ({', '.join(l.exercise_name for l in target.exercise_logs)})"
    views.console.print(f"Session to delete: [bold]{label}[/bold]")

    if not force and not views.confirm_action("Delete this session?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    store.delete_session_at(record_id - 1)
    views.print_success(f"Deleted session #{record_id}: {label}")
