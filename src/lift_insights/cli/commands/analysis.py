"""Analysis commands: analyze, exercise."""

import json
import warnings
from dataclasses import replace
from typing import Annotated, Optional

import typer

from ...core.analyzer import analyze_workouts_with_predictions
from ...core.config import AnalysisOptions
from ...core.engine.config_loader import load_analysis_options
from ...core.history import completed_sessions
from ...core.models import EnhancedWorkoutAnalysis, WorkoutSession
from ...core.selection import exercise_names, filter_exercise_data, weight_chart_points
from ...io.serializers import ValidationError, analysis_to_dict, record_to_dict, validate_datetime
from .. import views
from ..app import HistoryPathOption, JsonOption, app, get_store

LookbackOption = Annotated[
    Optional[int],
    typer.Option("--lookback-days", help="Only analyze sessions from the last N days"),
]
MinSessionsOption = Annotated[
    Optional[int],
    typer.Option("--min-sessions", help="Sessions needed before an exercise is analyzed"),
]
AsOfOption = Annotated[
    Optional[str],
    typer.Option("--as-of", help="Reference date for the lookback window (ISO, default: now)"),
]


def _load_sessions(history_path) -> list[WorkoutSession]:
    store = get_store(history_path)
    try:
        return store.load_sessions()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def _options(lookback_days: int | None, min_sessions: int | None) -> AnalysisOptions:
    """Config-file options with command-line overrides applied."""
    try:
        opts = load_analysis_options()
        overrides = {}
        if lookback_days is not None:
            overrides["lookback_days"] = lookback_days
        if min_sessions is not None:
            overrides["min_sessions"] = min_sessions
        return replace(opts, **overrides)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def _run_analysis(
    sessions: list[WorkoutSession],
    opts: AnalysisOptions,
    as_of: str | None,
    use_predictions: bool,
    quiet: bool,
) -> EnhancedWorkoutAnalysis:
    try:
        now = validate_datetime(as_of, "as-of") if as_of else None
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        analysis = analyze_workouts_with_predictions(
            sessions, opts, now=now, use_predictions=use_predictions
        )

    if not quiet:
        for w in dict.fromkeys(str(w.message) for w in caught):
            views.print_warning(w)
    return analysis


@app.command()
def analyze(
    history_path: HistoryPathOption = None,
    lookback_days: LookbackOption = None,
    min_sessions: MinSessionsOption = None,
    as_of: AsOfOption = None,
    no_predictions: Annotated[
        bool,
        typer.Option("--no-predictions", help="Skip next-weight predictions"),
    ] = False,
    json_out: JsonOption = False,
) -> None:
    """
    Analyze logged workouts: score, patterns, metrics and recommendations.
    """
    sessions = _load_sessions(history_path)
    opts = _options(lookback_days, min_sessions)
    analysis = _run_analysis(sessions, opts, as_of, not no_predictions, quiet=json_out)

    if json_out:
        print(json.dumps(analysis_to_dict(analysis), indent=2))
        return

    views.print_analysis(analysis, opts.weight_unit)


@app.command()
def exercise(
    name: Annotated[str, typer.Argument(help="Exercise name as logged")],
    history_path: HistoryPathOption = None,
    lookback_days: LookbackOption = None,
    min_sessions: MinSessionsOption = None,
    as_of: AsOfOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Drill down into one exercise: chart, pattern, prediction, recommendations.
    """
    sessions = _load_sessions(history_path)
    opts = _options(lookback_days, min_sessions)
    analysis = _run_analysis(sessions, opts, as_of, True, quiet=json_out)

    name = name.strip()
    points = weight_chart_points(completed_sessions(sessions), name)
    selection = filter_exercise_data(analysis, name)

    if not points and not selection.patterns:
        views.print_error(f"No data for exercise '{name}'")
        names = exercise_names(sessions)
        if names:
            views.print_info(f"Logged exercises: {', '.join(names)}")
        raise typer.Exit(1)

    if json_out:
        output = {
            "exercise": name,
            "chart": [{"date": p.date.isoformat(), "max_weight": p.max_weight} for p in points],
            "patterns": [record_to_dict(p) for p in selection.patterns],
            "recommendations": [record_to_dict(r) for r in selection.recommendations],
            "prediction": record_to_dict(selection.prediction) if selection.prediction else None,
        }
        print(json.dumps(output, indent=2))
        return

    predicted = selection.prediction.predicted_next_weight if selection.prediction else None
    views.print_weight_plot(points, name, opts.weight_unit, predicted)

    for pattern in selection.patterns:
        views.console.print(f"\n[bold]{pattern.pattern_type.title()}[/bold] ({pattern.severity}): {pattern.description}")
    if selection.prediction:
        views.console.print(f"[dim]{selection.prediction.reasoning}[/dim]")
    if not selection.patterns:
        views.print_info(
            f"Not enough recent sessions for pattern analysis (need {opts.min_sessions})."
        )

    views.print_recommendations(selection.recommendations)

