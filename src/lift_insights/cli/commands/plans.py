"""Split commands: import-plan, show-splits."""

import json
from pathlib import Path
from typing import Annotated

import typer

from ...io.plan_parser import parse_workout_plan
from ...io.serializers import ValidationError, split_to_dict
from .. import views
from ..app import HistoryPathOption, JsonOption, app, get_store


@app.command("import-plan")
def import_plan(
    plan_file: Annotated[
        Path,
        typer.Argument(help="File holding the generated plan (JSON, optionally in a ``` fence)"),
    ],
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Import a generated workout plan and save it as a split.
    """
    try:
        text = plan_file.read_text(encoding="utf-8")
    except OSError as e:
        views.print_error(f"Cannot read {plan_file}: {e}")
        raise typer.Exit(1)

    try:
        split = parse_workout_plan(text)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store = get_store(history_path)
    try:
        store.save_split(split)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(split_to_dict(split), indent=2))
        return

    n_exercises = sum(len(d.exercises) for d in split.days)
    views.print_success(
        f"Imported '{split.name}': {len(split.days)} day(s), {n_exercises} exercise(s) "
        f"(id {split.id})"
    )


@app.command("show-splits")
def show_splits(
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    List saved workout splits.
    """
    store = get_store(history_path)
    try:
        splits = store.load_splits()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([split_to_dict(s) for s in splits], indent=2))
        return

    views.print_splits(splits)
