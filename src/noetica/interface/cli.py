"""Noetica CLI — root commands and subgroup registration."""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Annotated

import typer

from noetica.application.config import AppConfig, resolve_config
from noetica.domain.errors import (
    CardNotFound,
    DeckNotFound,
    InvalidQuality,
    StorageError,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="noetica: spaced-repetition scheduling for flashcard decks.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

deck_app = typer.Typer(help="Manage decks.", no_args_is_help=True)
app.add_typer(deck_app, name="deck")

card_app = typer.Typer(help="Manage cards.", no_args_is_help=True)
app.add_typer(card_app, name="card")

config_app = typer.Typer(help="Manage noetica configuration.")
app.add_typer(config_app, name="config")

logger = logging.getLogger(__name__)


LOG_FILE_NAME = "noetica.log"


def _configure_logging(config: AppConfig) -> None:
    """Log to stderr and to config.log_dir, at a level set by config.verbose."""
    level = logging.WARNING
    if config.verbose >= 3:
        level = logging.DEBUG
    elif config.verbose >= 2:
        level = logging.INFO

    config.log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format="%(levelname)s:%(name)s:%(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(config.log_dir / LOG_FILE_NAME, encoding="utf-8", delay=True),
        ],
        force=True,
    )


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    store: Annotated[
        Path | None, typer.Option("--store", help="Path to the YAML card store.")
    ] = None,
    backend: Annotated[
        str | None, typer.Option(help="Storage backend: yaml or memory.")
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for noetica."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "store_path": store,
        "backend": backend,
        # Each -v adds one level on top of the default of 1
        "verbose": 1 + verbose if verbose else None,
    }


def _config(ctx: typer.Context) -> AppConfig:
    overrides = (ctx.obj or {}).get("overrides", {})
    config = resolve_config(overrides)
    _configure_logging(config)
    return config


def _run(coro):
    """Run a coroutine, mapping domain errors onto exit codes."""
    try:
        return asyncio.run(coro)
    except InvalidQuality as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(2) from e
    except (CardNotFound, DeckNotFound) as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from e
    except StorageError as e:
        typer.secho(f"Storage error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _format_due(card) -> str:
    return (
        f"{card.id}  due {card.state.next_review_date:%Y-%m-%d %H:%M}  "
        f"ease {card.state.easiness_factor:.2f}  {card.front}"
    )


# ---------------------------------------------------------------------------
# Deck subgroup
# ---------------------------------------------------------------------------


@deck_app.command("add")
def deck_add(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Deck name.")],
    subject: Annotated[str, typer.Option(help="Subject the deck belongs to.")] = "",
):
    """Create a new, empty deck."""
    from noetica.application.factory import get_card_repository
    from noetica.application.id_service import generate_deck_id
    from noetica.domain.models import Deck
    from noetica.infrastructure.clock import SystemClock

    config = _config(ctx)

    async def run():
        repo = get_card_repository(config)
        deck = Deck(
            id=generate_deck_id(),
            name=name,
            subject=subject,
            created_at=SystemClock().now(),
        )
        await repo.persist(deck)
        await repo.commit()
        return deck

    deck = _run(run())
    typer.echo(deck.id)


@deck_app.command("list")
def deck_list(ctx: typer.Context):
    """List decks with their mastery."""
    from noetica.application.factory import get_card_repository

    config = _config(ctx)

    async def run():
        repo = get_card_repository(config)
        return await repo.fetch_decks()

    decks = _run(run())
    if not decks:
        typer.secho("No decks found.", fg="yellow")
        return
    for deck in decks:
        typer.echo(f"{deck.id}  {deck.name}  {int(deck.mastery * 100)}%")


# ---------------------------------------------------------------------------
# Card subgroup
# ---------------------------------------------------------------------------


@card_app.command("add")
def card_add(
    ctx: typer.Context,
    deck_id: Annotated[str, typer.Argument(help="Deck the card belongs to.")],
    front: Annotated[str, typer.Argument(help="Question side.")],
    back: Annotated[str, typer.Argument(help="Answer side.")],
):
    """Create a new card, due immediately."""
    from noetica.application.factory import get_card_repository
    from noetica.application.id_service import generate_card_id
    from noetica.domain.models import Card
    from noetica.infrastructure.clock import SystemClock

    config = _config(ctx)

    async def run():
        repo = get_card_repository(config)
        if await repo.get_deck(deck_id) is None:
            raise DeckNotFound(deck_id)
        card = Card(
            id=generate_card_id(),
            deck_id=deck_id,
            front=front,
            back=back,
            created_at=SystemClock().now(),
        )
        await repo.persist(card)
        await repo.commit()
        return card

    card = _run(run())
    typer.echo(card.id)


# ---------------------------------------------------------------------------
# Study commands
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    deck: Annotated[str | None, typer.Option(help="Filter by deck ID.")] = None,
):
    """List cards due for review, most urgent first."""
    from noetica.application.factory import get_card_repository
    from noetica.application.selector import DueSetSelector
    from noetica.infrastructure.clock import SystemClock

    config = _config(ctx)

    async def run():
        selector = DueSetSelector(get_card_repository(config))
        return await selector.due_cards(deck, now=SystemClock().now())

    cards = _run(run())
    if not cards:
        typer.secho("No cards due.", fg="green")
        return
    for card in cards:
        typer.echo(_format_due(card))


@app.command("new")
def new_cards(
    ctx: typer.Context,
    deck: Annotated[str | None, typer.Option(help="Filter by deck ID.")] = None,
    limit: Annotated[int | None, typer.Option(help="Maximum cards to list.")] = None,
):
    """List never-reviewed cards, oldest first."""
    from noetica.application.factory import get_card_repository
    from noetica.application.selector import DueSetSelector

    config = _config(ctx)

    async def run():
        selector = DueSetSelector(get_card_repository(config))
        return await selector.new_cards(
            deck, limit=limit if limit is not None else config.new_card_limit
        )

    cards = _run(run())
    if not cards:
        typer.secho("No new cards.", fg="green")
        return
    for card in cards:
        typer.echo(f"{card.id}  {card.front}")


@app.command()
def review(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to grade.")],
    quality: Annotated[
        str, typer.Argument(help="Recall quality: again, hard, good, easy (or 0-3).")
    ],
):
    """[bold green]Review[/bold green] a card and reschedule it."""
    from noetica.application.factory import get_card_repository, get_review_service
    from noetica.application.scheduler import parse_quality
    from noetica.infrastructure.clock import SystemClock

    config = _config(ctx)

    async def run():
        grade = parse_quality(quality)
        service = get_review_service(config, get_card_repository(config), SystemClock())
        return await service.review(card_id, grade)

    outcome = _run(run())
    state = outcome.card.state
    typer.echo(
        f"Next review: {state.next_review_date:%Y-%m-%d %H:%M} "
        f"(interval {state.interval}d, ease {state.easiness_factor:.2f}, "
        f"streak {state.correct_streak})"
    )
    typer.echo(f"Deck mastery: {int(outcome.deck_mastery * 100)}%")


@app.command()
def stats(
    ctx: typer.Context,
    deck: Annotated[str | None, typer.Option(help="Filter by deck ID.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show due, new, total and reviewed-today counts."""
    from noetica.application.factory import get_card_repository, get_stats_service
    from noetica.infrastructure.clock import SystemClock

    config = _config(ctx)

    async def run():
        service = get_stats_service(config, get_card_repository(config))
        return await service.session_stats(deck, now=SystemClock().now())

    snapshot = _run(run())
    if json_output:
        typer.echo(
            json.dumps(
                {
                    "due_cards": snapshot.due_cards,
                    "new_cards": snapshot.new_cards,
                    "total_cards": snapshot.total_cards,
                    "reviewed_today": snapshot.reviewed_today,
                    "has_cards_to_review": snapshot.has_cards_to_review,
                },
                indent=2,
            )
        )
        return

    typer.echo(
        f"Due: {snapshot.due_cards}  New: {snapshot.new_cards}  "
        f"Total: {snapshot.total_cards}  Reviewed today: {snapshot.reviewed_today}"
    )
    if not snapshot.has_cards_to_review:
        typer.secho("Nothing to study right now.", fg="green")


@app.command()
def overview(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show deck and card totals with average mastery."""
    from noetica.application.factory import get_card_repository, get_stats_service

    config = _config(ctx)

    async def run():
        service = get_stats_service(config, get_card_repository(config))
        return await service.study_overview()

    result = _run(run())
    if json_output:
        typer.echo(
            json.dumps(
                {
                    "total_decks": result.total_decks,
                    "total_cards": result.total_cards,
                    "average_mastery": result.average_mastery,
                    "deck_mastery": result.deck_mastery,
                    "deck_card_counts": result.deck_card_counts,
                },
                indent=2,
            )
        )
        return

    typer.echo(
        f"Decks: {result.total_decks}  Cards: {result.total_cards}  "
        f"Average mastery: {int(result.average_mastery * 100)}%"
    )


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8787,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("noetica.server:app", host=host, port=port, reload=reload)


@app.command()
def logs(ctx: typer.Context):
    """Open the log directory."""
    import subprocess

    config = _config(ctx)

    if sys.platform == "darwin":
        subprocess.run(["open", str(config.log_dir)])
    elif sys.platform == "win32":
        os.startfile(str(config.log_dir))
    else:
        subprocess.run(["xdg-open", str(config.log_dir)])


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
