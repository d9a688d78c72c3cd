"""cadence CLI: config, confidence, review and mastery subgroups."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from cadence.application.config import AppConfig, resolve_config
from cadence.application.factory import get_default_anki_config, get_session_service
from cadence.domain.intervals import PRESET_LABELS, PRESETS
from cadence.domain.models import Rating
from cadence.infrastructure.catalog_loader import CatalogError, Workspace, load_workspace
from cadence.infrastructure.records import AnkiCardRecord, ConfidenceProgressRecord

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: adaptive review scheduling for study sets.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Register subgroups
# ---------------------------------------------------------------------------

config_app = typer.Typer(help="Manage cadence configuration.")
app.add_typer(config_app, name="config")

confidence_app = typer.Typer(help="Confidence-interval study sets.", no_args_is_help=True)
app.add_typer(confidence_app, name="confidence")

review_app = typer.Typer(help="Review-due decks.", no_args_is_help=True)
app.add_typer(review_app, name="review")

mastery_app = typer.Typer(help="Two-pass mastery drill.", no_args_is_help=True)
app.add_typer(mastery_app, name="mastery")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for cadence."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.getLogger("cadence").setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load(path: Path, config: AppConfig) -> Workspace:
    try:
        return load_workspace(path, get_default_anki_config(config))
    except CatalogError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from e


def _pick(progresses: dict, progress_id: str | None, kind: str):
    if progress_id is None:
        if not progresses:
            typer.secho(f"No {kind} found in workspace.", fg="red")
            raise typer.Exit(1)
        return next(iter(progresses.values()))
    if progress_id not in progresses:
        typer.secho(f"Unknown {kind} '{progress_id}'.", fg="red")
        raise typer.Exit(1)
    return progresses[progress_id]


def _echo_json(data) -> None:
    typer.echo(json.dumps(data, indent=2))


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    _echo_json(d)


# ---------------------------------------------------------------------------
# Confidence subgroup
# ---------------------------------------------------------------------------


@confidence_app.command("presets")
def confidence_presets():
    """List interval presets (slots moved forward per rating)."""
    ratings = Rating.graded()
    typer.echo(f"{'preset':<12}" + "".join(f"{r.value:>9}" for r in ratings))
    for preset_id, values in PRESETS.items():
        row = "".join(f"{values[r]:>9}" for r in ratings)
        typer.echo(f"{preset_id:<12}{row}   {PRESET_LABELS[preset_id]}")


@confidence_app.command("rate")
def confidence_rate(
    path: Annotated[Path, typer.Argument(help="Workspace YAML file.")],
    rating: Annotated[str, typer.Argument(help="Again, Hard, Good, Easy, Perfect or Superb.")],
    progress_id: Annotated[
        str | None, typer.Option("--progress", help="Study set id. Defaults to the first.")
    ] = None,
    write: Annotated[
        bool, typer.Option("--write", help="Queue the new snapshot in the outbox.")
    ] = False,
):
    """Rate the current item of a confidence study set and print the new state."""
    try:
        parsed = Rating(rating.strip().capitalize())
    except ValueError:
        parsed = None
    if parsed is None or parsed is Rating.NEW:
        typer.secho(f"Invalid rating '{rating}'.", fg="red")
        raise typer.Exit(1)

    config = resolve_config()
    workspace = _load(path, config)
    progress = _pick(workspace.confidence_progresses, progress_id, "confidence set")
    service = get_session_service(config)

    scheduler = service.start_confidence(progress, workspace.catalog)
    if scheduler is None:
        typer.secho("Nothing to study.", fg="yellow")
        return

    scheduler.apply_rating(parsed)
    _echo_json(ConfidenceProgressRecord.from_domain(scheduler.to_snapshot()).to_wire())

    if write:
        message_id = service.finish(scheduler)
        if message_id is None:
            typer.secho("Failed to queue snapshot.", fg="red")
            raise typer.Exit(1)
        typer.secho(f"Queued {message_id}", fg="green", err=True)


# ---------------------------------------------------------------------------
# Review subgroup
# ---------------------------------------------------------------------------


@review_app.command("plan")
def review_plan(
    path: Annotated[Path, typer.Argument(help="Workspace YAML file.")],
    progress_id: Annotated[
        str | None, typer.Option("--progress", help="Deck id. Defaults to the first.")
    ] = None,
):
    """Show today's tier counts and the first card of a review deck."""
    config = resolve_config()
    workspace = _load(path, config)
    progress = _pick(workspace.anki_progresses, progress_id, "deck")
    service = get_session_service(config)

    scheduler = service.start_review(progress, workspace.catalog)
    if scheduler is None:
        typer.secho("Nothing due.", fg="yellow")
        return

    current = scheduler.current
    _echo_json(
        {
            "deck": progress.id,
            "remaining": scheduler.counts,
            "current": AnkiCardRecord.from_domain(current).to_wire() if current else None,
        }
    )


# ---------------------------------------------------------------------------
# Mastery subgroup
# ---------------------------------------------------------------------------


@mastery_app.command("simulate")
def mastery_simulate(
    path: Annotated[Path, typer.Argument(help="Workspace YAML file.")],
    answers: Annotated[str, typer.Argument(help="Answers in order, e.g. 'yynyy' (y = correct).")],
    table: Annotated[
        list[str] | None, typer.Option("--table", help="Limit to these containers.")
    ] = None,
    reinsert: Annotated[
        int | None, typer.Option(help="Reinsert distance for misses (0, 2 or 5).")
    ] = None,
):
    """Replay a string of answers through the mastery drill and print the summary."""
    if any(a not in "yn" for a in answers.lower()):
        typer.secho("Answers must be a string of 'y' and 'n'.", fg="red")
        raise typer.Exit(1)

    try:
        config = resolve_config({"reinsert_distance": reinsert})
    except ValueError as e:
        typer.secho(f"Invalid configuration: {e}", fg="red")
        raise typer.Exit(1) from e

    workspace = _load(path, config)
    catalog = workspace.catalog
    containers = table or list(catalog.containers)
    item_ids = [item.id for item in catalog.select(containers)]

    service = get_session_service(config)
    scheduler = service.start_mastery(item_ids)
    if scheduler is None:
        typer.secho("Nothing to study.", fg="yellow")
        return

    used = 0
    for answer in answers.lower():
        if scheduler.is_finished:
            break
        scheduler.apply_rating(answer == "y")
        used += 1

    recorder = scheduler.recorder
    _echo_json(
        {
            "answers": used,
            "finished": scheduler.is_finished,
            "mastered": [i for i in scheduler.original_items if i in scheduler.mastered],
            "remaining": list(scheduler.active_queue),
            "xp": scheduler.xp,
            "accuracy": recorder.accuracy,
        }
    )
