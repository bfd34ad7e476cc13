"""
CLI entry point using Typer.

Provides commands for workout logging and analysis:
- log-session: Log a completed session
- show-history: Display workout history
- delete-record: Remove a session
- analyze: Full analysis with score, patterns and recommendations
- exercise: Drill down into one exercise
- import-plan: Save a generated workout plan as a split
- show-splits: List saved splits
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from . import views
from .app import app
from .commands import analysis, plans, sessions  # noqa: F401  (registers commands)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log analysis details to the console"),
    ] = False,
) -> None:
    """
    Workout log analysis: patterns, scores, recommendations and next-weight suggestions.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s: %(message)s",
            handlers=[RichHandler(console=views.console, show_time=False)],
        )


if __name__ == "__main__":
    app()
