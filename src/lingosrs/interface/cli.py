"""lingosrs CLI — enrollment, reviews, due queue and progress."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml

from lingosrs.application.catalogue import load_catalogue
from lingosrs.application.config import AppConfig, resolve_config
from lingosrs.application.factory import get_review_service
from lingosrs.application.quality import format_interval, quality_label
from lingosrs.domain.errors import LingoSrsError
from lingosrs.domain.review.models import CardRecord, ItemKind

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="lingosrs: spaced-repetition scheduling for grammar and vocabulary cards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage lingosrs configuration.")
app.add_typer(config_app, name="config")

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
# Helpers
# ---------------------------------------------------------------------------


def _resolve_with_overrides(ctx: typer.Context, **overrides: Any) -> AppConfig:
    obj = ctx.obj or {}
    config = resolve_config(
        {
            "store_path": obj.get("store_path"),
            "user_id": obj.get("user_id"),
            "verbose": obj.get("verbose"),
            **overrides,
        }
    )
    if config.verbose >= 2:
        level = logging.DEBUG
    elif config.verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.getLogger("lingosrs").setLevel(level)
    return config


def _run(coro) -> Any:
    """Run a command coroutine, turning domain errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except (LingoSrsError, yaml.YAMLError) as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _record_to_dict(record: CardRecord) -> dict[str, Any]:
    state = record.state
    return {
        "item_id": record.item_id,
        "kind": record.kind.value,
        "language": record.language,
        "ease_factor": state.ease_factor,
        "interval": state.interval,
        "repetitions": state.repetitions,
        "next_review_at": state.next_review_at.isoformat(),
        "last_reviewed_at": state.last_reviewed_at.isoformat() if state.last_reviewed_at else None,
        "version": record.version,
    }


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
    ] = 1,
    store: Annotated[
        Path | None, typer.Option("--store", help="SQLite card store path.")
    ] = None,
    user: Annotated[str | None, typer.Option("--user", help="Learner id.")] = None,
):
    """Global settings for lingosrs."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["store_path"] = store
    ctx.obj["user_id"] = user


# ---------------------------------------------------------------------------
# Enrollment
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Id of the grammar topic or vocabulary card.")],
    kind: Annotated[ItemKind, typer.Option(help="Item kind.")] = ItemKind.VOCABULARY,
    language: Annotated[str | None, typer.Option(help="Target language code.")] = None,
):
    """[bold green]Enroll[/bold green] an item. It becomes due immediately."""
    config = _resolve_with_overrides(ctx)
    service = get_review_service(config)

    record = _run(
        service.enroll(
            config.user_id, item_id, kind=kind, language=language or config.default_language
        )
    )
    typer.echo(f"Enrolled {record.kind.value} '{record.item_id}' ({record.language})")


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="YAML or JSON item list.", exists=True)],
    kind: Annotated[ItemKind, typer.Option(help="Default kind for bare ids.")] = ItemKind.VOCABULARY,
    language: Annotated[str | None, typer.Option(help="Default language for bare ids.")] = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="List items without enrolling them.")
    ] = False,
):
    """Enroll every item listed in a catalogue file."""
    config = _resolve_with_overrides(ctx)
    service = get_review_service(config)

    async def run() -> int:
        items = load_catalogue(
            path, default_kind=kind, default_language=language or config.default_language
        )
        if dry_run:
            for item in items:
                typer.echo(f"[DRY RUN] {item.kind.value} {item.item_id} ({item.language})")
            return len(items)
        for item in items:
            await service.enroll(
                config.user_id, item.item_id, kind=item.kind, language=item.language
            )
        return len(items)

    count = _run(run())
    if dry_run:
        typer.echo(f"Would import {count} items.")
    else:
        typer.secho(f"Imported {count} items.", fg="green")


@app.command()
def remove(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item to stop tracking.")],
):
    """Delete an item's schedule."""
    config = _resolve_with_overrides(ctx)
    service = get_review_service(config)

    if _run(service.remove(config.user_id, item_id)):
        typer.echo(f"Removed '{item_id}'.")
    else:
        typer.secho(f"'{item_id}' is not enrolled.", fg="yellow")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


@app.command()
def review(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Reviewed item.")],
    quality: Annotated[
        int | None, typer.Argument(help="Recall grade 0-5 (0=blackout, 5=perfect).")
    ] = None,
    correct: Annotated[
        bool | None,
        typer.Option(
            "--correct/--incorrect", help="Auto-grade instead of a 0-5 grade (4 or 0)."
        ),
    ] = None,
):
    """[bold green]Record[/bold green] a review and schedule the next one."""
    if (quality is None) == (correct is None):
        typer.secho("Give either a quality grade or --correct/--incorrect.", fg="red")
        raise typer.Exit(2)

    config = _resolve_with_overrides(ctx)
    service = get_review_service(config)

    if correct is not None:
        record = _run(service.complete_review_auto(config.user_id, item_id, correct))
    else:
        record = _run(service.complete_review(config.user_id, item_id, quality))

    state = record.state
    typer.echo(
        f"'{item_id}': next review {format_interval(state.interval)} "
        f"(interval={state.interval}, reps={state.repetitions}, ease={state.ease_factor:.2f})"
    )


@app.command()
def reset(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item whose schedule to restart.")],
):
    """Restart an item's schedule from scratch."""
    config = _resolve_with_overrides(ctx)
    service = get_review_service(config)

    _run(service.reset_item(config.user_id, item_id))
    typer.echo(f"Reset '{item_id}'. It is due now.")


@app.command()
def grades():
    """Show what each quality grade means."""
    for q in range(6):
        label = quality_label(q)
        typer.echo(f"{q}  {label.label:<6} {label.description}")


# ---------------------------------------------------------------------------
# Queues
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    language: Annotated[str | None, typer.Option(help="Only this language.")] = None,
    kind: Annotated[ItemKind | None, typer.Option(help="Only this kind.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List items due for review, most overdue first."""
    config = _resolve_with_overrides(ctx)
    service = get_review_service(config)

    plan = _run(
        service.build_session(config.user_id, language=language, kind=kind, new_limit=0)
    )

    if json_output:
        typer.echo(json.dumps(plan.due_queue, indent=2))
        return

    if not plan.due_queue:
        typer.secho("Nothing due.", fg="green")
        return
    for item_id in plan.due_queue:
        typer.echo(item_id)


@app.command()
def session(
    ctx: typer.Context,
    catalogue: Annotated[
        Path | None,
        typer.Option(help="Catalogue to draw new items from.", exists=True),
    ] = None,
    language: Annotated[str | None, typer.Option(help="Target language code.")] = None,
    kind: Annotated[ItemKind | None, typer.Option(help="Only this kind.")] = None,
    new_limit: Annotated[int | None, typer.Option(help="Max new items.")] = None,
    max_reviews: Annotated[int | None, typer.Option(help="Max due reviews.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Plan today's session: due reviews plus new items from a catalogue."""
    config = _resolve_with_overrides(
        ctx, new_cards_per_session=new_limit, max_reviews=max_reviews
    )
    service = get_review_service(config)
    language = (language or config.default_language).lower()

    async def run():
        candidates: list[str] = []
        if catalogue:
            candidates = [
                item.item_id
                for item in load_catalogue(catalogue, default_language=language)
                if item.language == language and (kind is None or item.kind == kind)
            ]
        return await service.build_session(
            config.user_id,
            language=language,
            kind=kind,
            candidate_item_ids=candidates,
            new_limit=config.new_cards_per_session,
            max_reviews=config.max_reviews,
        )

    plan = _run(run())

    if json_output:
        typer.echo(json.dumps(asdict(plan), indent=2))
        return

    typer.echo(f"Due: {len(plan.due_queue)}  New: {len(plan.new_items)}")
    if plan.deferred:
        typer.secho(f"Deferred (over limit): {len(plan.deferred)}", fg="yellow")
    for item_id in plan.due_queue:
        typer.echo(f"  review  {item_id}")
    for item_id in plan.new_items:
        typer.echo(f"  new     {item_id}")


@app.command()
def show(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item to inspect.")],
):
    """Print an item's stored review state as JSON."""
    config = _resolve_with_overrides(ctx)
    service = get_review_service(config)

    record = _run(service.get(config.user_id, item_id))
    typer.echo(json.dumps(_record_to_dict(record), indent=2))


@app.command()
def stats(
    ctx: typer.Context,
    language: Annotated[str | None, typer.Option(help="Only this language.")] = None,
    kind: Annotated[ItemKind | None, typer.Option(help="Only this kind.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Summarize learning progress."""
    config = _resolve_with_overrides(ctx)
    service = get_review_service(config)

    summary = _run(service.progress(config.user_id, language=language, kind=kind))

    if json_output:
        typer.echo(json.dumps(asdict(summary), indent=2))
        return

    ease = f"{summary.average_ease:.2f}" if summary.average_ease is not None else "-"
    typer.echo(
        f"Items: {summary.total}  Learned: {summary.learned}  Mature: {summary.mature}"
        f"  New: {summary.new}  Due: {summary.due}  Avg ease: {ease}"
    )


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
