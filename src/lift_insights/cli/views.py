"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of sessions, analyses and splits.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.ascii_plot import create_weight_plot
from ..core.history import session_volume
from ..core.models import (
    EnhancedWorkoutAnalysis,
    ExercisePattern,
    WeightProgressionPrediction,
    WorkoutAnalysis,
    WorkoutRecommendation,
    WorkoutSession,
    WorkoutSplit,
)
from ..core.selection import ChartPoint

console = Console()

PRIORITY_STYLES = {"high": "red", "medium": "yellow", "low": "blue"}
PATTERN_STYLES = {
    "optimal": "green",
    "progression": "green",
    "plateau": "yellow",
    "decline": "red",
    "inconsistent": "dim",
}


def score_style(score: float) -> str:
    """Colour band for a 0-100 score."""
    if score >= 75:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


def format_session_table(sessions: list[WorkoutSession], weight_unit: str = "lbs") -> Table:
    """
    Create a Rich table displaying session history.

    Args:
        sessions: List of sessions to display
        weight_unit: Unit for the volume column header

    Returns:
        Rich Table object
    """
    table = Table(title="Workout History")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Date", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Day", style="green")
    table.add_column("Exercises")
    table.add_column("Sets", justify="right")
    table.add_column(f"Volume({weight_unit})", justify="right", style="bold")

    for i, session in enumerate(sessions, 1):
        n_sets = sum(1 for log in session.exercise_logs for s in log.sets if s.completed)
        volume = session_volume(session)
        table.add_row(
            str(i),
            session.effective_date.strftime("%Y-%m-%d"),
            session.status,
            session.day_name or "-",
            ", ".join(log.exercise_name for log in session.exercise_logs) or "-",
            str(n_sets),
            f"{volume:,.0f}" if volume > 0 else "-",
        )

    return table


def print_history(sessions: list[WorkoutSession], weight_unit: str = "lbs") -> None:
    """Print session history to console."""
    if not sessions:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return
    console.print(format_session_table(sessions, weight_unit))


def format_patterns_table(patterns: list[ExercisePattern]) -> Table:
    table = Table(title="Exercise Patterns")
    table.add_column("Exercise", style="cyan")
    table.add_column("Pattern")
    table.add_column("Severity")
    table.add_column("Trend", justify="center")
    table.add_column("Sessions", justify="right")
    table.add_column("Details")

    arrows = {"up": "↑", "down": "↓", "flat": "→"}
    for p in patterns:
        style = PATTERN_STYLES.get(p.pattern_type, "")
        table.add_row(
            p.exercise_name,
            f"[{style}]{p.pattern_type}[/{style}]" if style else p.pattern_type,
            p.severity,
            arrows[p.trend],
            str(p.data_points),
            p.description,
        )
    return table


def print_recommendations(recs: list[WorkoutRecommendation]) -> None:
    """Print recommendations grouped by priority, high first."""
    if not recs:
        console.print("[dim]No recommendations.[/dim]")
        return

    for priority in ("high", "medium", "low"):
        group = [r for r in recs if r.priority == priority]
        if not group:
            continue
        style = PRIORITY_STYLES[priority]
        console.print(f"\n[bold {style}]{priority.upper()} PRIORITY[/bold {style}]")
        for rec in group:
            console.print(f"[bold]{rec.title}[/bold]  [dim]({rec.type})[/dim]")
            console.print(f"  {rec.description}")
            for item in rec.action_items:
                console.print(f"  • {item}")
            if rec.reasoning:
                console.print(f"  [dim]{rec.reasoning}[/dim]")


def format_predictions_table(
    predictions: dict[str, WeightProgressionPrediction],
    names: dict[str, str],
    weight_unit: str = "lbs",
) -> Table:
    """
    Table of next-weight predictions.

    Args:
        predictions: Map of exercise id to prediction
        names: Map of exercise id to display name
        weight_unit: Unit shown in headers
    """
    table = Table(title="Next-Weight Suggestions")
    table.add_column("Exercise", style="cyan")
    table.add_column(f"Current({weight_unit})", justify="right")
    table.add_column(f"Next({weight_unit})", justify="right", style="bold")
    table.add_column("Change", justify="right")
    table.add_column("Conf.", justify="right")
    table.add_column("Reasoning")

    for exercise_id, pred in predictions.items():
        if pred.weight_increase > 0:
            change = f"[green]+{pred.weight_increase:g}[/green]"
        elif pred.weight_increase < 0:
            change = f"[red]{pred.weight_increase:g}[/red]"
        else:
            change = "0"
        table.add_row(
            names.get(exercise_id, exercise_id),
            f"{pred.current_weight:g}",
            f"{pred.predicted_next_weight:g}",
            change,
            f"{pred.confidence:.0%}",
            pred.reasoning,
        )
    return table


def print_analysis(analysis: WorkoutAnalysis, weight_unit: str = "lbs") -> None:
    """Print a full analysis: score, summary, metrics, patterns, recommendations."""
    style = score_style(analysis.overall_score)
    header = (
        f"[bold {style}]Score: {analysis.overall_score}/100[/bold {style}]\n\n"
        f"{analysis.summary}\n\n"
        f"[dim]{analysis.sessions_analyzed} sessions, "
        f"{analysis.time_range.start:%Y-%m-%d} to {analysis.time_range.end:%Y-%m-%d}[/dim]"
    )
    console.print(Panel(header, title="Workout Analysis"))

    if analysis.sessions_analyzed == 0:
        return

    m = analysis.progress_metrics
    metrics = Table(title="Progress Metrics", show_header=False)
    metrics.add_column("Metric", style="cyan")
    metrics.add_column("Value", justify="right")
    metrics.add_row("Strength progress", f"{m.strength_progress:+.1f}%")
    metrics.add_row("Volume progress", f"{m.volume_progress:+.1f}%")
    metrics.add_row(
        "Consistency",
        f"[{score_style(m.consistency_score)}]{m.consistency_score}[/{score_style(m.consistency_score)}]",
    )
    metrics.add_row(
        "Recovery",
        f"[{score_style(m.recovery_score)}]{m.recovery_score}[/{score_style(m.recovery_score)}]",
    )
    console.print(metrics)

    if analysis.exercise_patterns:
        console.print(format_patterns_table(analysis.exercise_patterns))

    if isinstance(analysis, EnhancedWorkoutAnalysis) and analysis.weight_predictions:
        names = {p.exercise_id: p.exercise_name for p in analysis.exercise_patterns}
        console.print(format_predictions_table(analysis.weight_predictions, names, weight_unit))

    print_recommendations(analysis.recommendations)


def print_weight_plot(
    points: list[ChartPoint],
    exercise_name: str,
    weight_unit: str = "lbs",
    predicted_weight: float | None = None,
) -> None:
    console.print(create_weight_plot(
        points,
        exercise_name=exercise_name,
        weight_unit=weight_unit,
        predicted_weight=predicted_weight,
    ))


def print_splits(splits: list[WorkoutSplit]) -> None:
    """Print saved splits with their days and exercises."""
    if not splits:
        console.print("[yellow]No splits saved yet.[/yellow]")
        return

    for split in splits:
        table = Table(title=f"{split.name}  [dim]({split.id})[/dim]")
        table.add_column("Day", style="cyan")
        table.add_column("Exercise")
        table.add_column("Sets", justify="right")
        table.add_column("Reps", justify="right")
        table.add_column("Intensity", justify="right")
        table.add_column("Rest(min)", justify="right")

        for day in split.days:
            for i, ex in enumerate(day.exercises):
                sets = f"{ex.warmup_sets}+{ex.working_sets}" if ex.warmup_sets else str(ex.working_sets)
                intensity = (
                    f"{ex.intensity_metric.type.upper()} {ex.intensity_metric.value:g}"
                    if ex.intensity_metric.type
                    else "-"
                )
                table.add_row(
                    day.name if i == 0 else "",
                    ex.name,
                    sets,
                    f"{ex.rep_range_min}-{ex.rep_range_max}",
                    intensity,
                    f"{ex.rest_time:g}",
                )
        if split.description:
            console.print(f"[dim]{split.description}[/dim]")
        console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
