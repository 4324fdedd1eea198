"""CLI commands for flashcli."""

import logging
import sys
from dataclasses import replace

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Prompt
from rich.table import Table

from . import __version__
from .card_filters import SortBy, preview_session
from .config import CONFIG_KEYS, format_config_display, load_config, set_config_value
from .store import DeckStore, StoreError
from .study_session import SessionError

console = Console()


def get_store() -> DeckStore:
    """Get the deck store for the configured data directory."""
    return DeckStore()


def _fail(e: Exception) -> None:
    console.print(f"[red]✗ Error: {e}[/red]")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
def cli(verbose: bool) -> None:
    """Flashcards CLI - Study decks with SM-2 spaced repetition.

    Decks and settings are stored under ~/.flashcli (override with
    FLASHCLI_DATA_DIR).
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@cli.command()
def decks() -> None:
    """List all decks."""
    try:
        deck_list = get_store().list_decks()
    except StoreError as e:
        _fail(e)

    if not deck_list:
        console.print("[yellow]No decks found[/yellow]")
        return

    table = Table(title="Your Decks")
    table.add_column("ID", style="dim")
    table.add_column("Deck", style="cyan")
    table.add_column("Cards", justify="right")
    table.add_column("New", justify="right", style="blue")
    table.add_column("Due", justify="right", style="green")

    for deck in deck_list:
        table.add_row(
            deck.id,
            deck.title,
            str(deck.card_count),
            str(deck.new_count),
            str(deck.due_count()),
        )

    console.print(table)


@cli.command()
@click.argument("title")
@click.option("-d", "--description", default="", help="Deck description")
def create_deck(title: str, description: str) -> None:
    """Create a new deck."""
    try:
        deck = get_store().create_deck(title, description)
    except StoreError as e:
        _fail(e)
    console.print(f"[green]✓ Deck '{deck.title}' created (ID: {deck.id})[/green]")


@cli.command()
@click.argument("deck")
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation")
def delete_deck(deck: str, yes: bool) -> None:
    """Delete a deck and all of its cards."""
    store = get_store()
    try:
        target = store.get_deck(deck)
        if not yes and not click.confirm(
            f"Delete '{target.title}' and its {target.card_count} card(s)?"
        ):
            console.print("[dim]Cancelled[/dim]")
            return
        store.delete_deck(target.id)
    except StoreError as e:
        _fail(e)
    console.print(f"[green]✓ Deck '{target.title}' deleted[/green]")


@cli.command()
@click.argument("deck")
@click.option("-f", "--front", help="Card front content")
@click.option("-b", "--back", help="Card back content")
@click.option("-n", "--notes", help="Optional notes shown with the answer")
def add(deck: str, front: str | None, back: str | None, notes: str | None) -> None:
    """Add a card to a deck.

    If front/back are not provided, prompts interactively.
    """
    # Interactive mode if front/back not provided
    if not front:
        front = Prompt.ask("Front")
    if not back:
        back = Prompt.ask("Back")

    try:
        card = get_store().add_flashcard(deck, front, back, notes)
    except StoreError as e:
        _fail(e)

    console.print(f"[green]✓ Card added (ID: {card.id})[/green]")
    console.print()
    console.print(f"[dim]Front:[/dim] {front[:50]}{'...' if len(front) > 50 else ''}")
    console.print(f"[dim]Back:[/dim] {back[:50]}{'...' if len(back) > 50 else ''}")


@cli.command()
@click.argument("deck")
@click.option("-l", "--limit", default=50, help="Maximum cards to show")
def cards(deck: str, limit: int) -> None:
    """List cards in a deck with their schedule."""
    try:
        target = get_store().get_deck(deck)
    except StoreError as e:
        _fail(e)

    if not target.flashcards:
        console.print(f"[yellow]No cards found in '{target.title}'[/yellow]")
        return

    table = Table(title=f"Cards in '{target.title}'")
    table.add_column("ID", style="dim")
    table.add_column("Front", style="cyan", max_width=30)
    table.add_column("Back", style="green", max_width=30)
    table.add_column("Ease", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Next review", style="dim")
    table.add_column("Accuracy", justify="right")

    shown = target.flashcards[:limit]
    for card in shown:
        front_preview = card.front[:30] + "..." if len(card.front) > 30 else card.front
        back_preview = card.back[:30] + "..." if len(card.back) > 30 else card.back
        next_review = card.next_review.strftime("%Y-%m-%d %H:%M") if card.next_review else "new"
        accuracy = f"{card.accuracy:.0f}%" if card.total_reviews else "-"
        table.add_row(
            card.id,
            front_preview,
            back_preview,
            f"{card.ease_factor:.2f}",
            f"{card.interval:g}d",
            next_review,
            accuracy,
        )

    console.print(table)
    console.print(f"\n[dim]Showing {len(shown)} of {target.card_count} card(s)[/dim]")


@cli.command()
@click.argument("deck")
@click.argument("card_id")
def delete_card(deck: str, card_id: str) -> None:
    """Delete a card from a deck."""
    try:
        card = get_store().delete_flashcard(deck, card_id)
    except StoreError as e:
        _fail(e)
    console.print(f"[green]✓ Deleted card '{card.front[:40]}'[/green]")


@cli.command()
@click.argument("deck")
def due(deck: str) -> None:
    """Show due/new counts and what a session would contain."""
    try:
        target = get_store().get_deck(deck)
    except StoreError as e:
        _fail(e)

    preview = preview_session(target.flashcards, load_config().session_config())

    table = Table(title=f"'{target.title}'", show_header=False)
    table.add_column(style="dim")
    table.add_column(justify="right", style="bold")
    table.add_row("Total cards", str(preview.total))
    table.add_row("Due today", str(preview.due))
    table.add_row("New cards", str(preview.new))
    table.add_row("Session preview", f"{preview.estimated_total} cards")
    table.add_row("", f"{preview.estimated_new} new / {preview.estimated_review} review")
    console.print(table)


@cli.command()
@click.argument("deck")
@click.option("--max-cards", type=click.IntRange(min=0), help="Limit total cards (0 for no limit)")
@click.option("--max-new", type=click.IntRange(min=0), help="Limit new cards (0 for no limit)")
@click.option("--due-only/--all", default=None, help="Only study cards that are due")
@click.option("--shuffle/--no-shuffle", default=None, help="Randomize card order")
@click.option(
    "--sort",
    type=click.Choice([s.value for s in SortBy]),
    help="Card order",
)
def study(
    deck: str,
    max_cards: int | None,
    max_new: int | None,
    due_only: bool | None,
    shuffle: bool | None,
    sort: str | None,
) -> None:
    """Study a deck interactively.

    Defaults come from 'flashcli config'; options override them for this run.
    """
    from .study import run_study

    session_config = load_config().session_config()
    overrides = {}
    if max_cards is not None:
        overrides["max_cards"] = max_cards or None
    if max_new is not None:
        overrides["max_new_cards"] = max_new or None
    if due_only is not None:
        overrides["due_only"] = due_only
    if shuffle is not None:
        overrides["shuffled"] = shuffle
        overrides["sort_by"] = SortBy.RANDOM if shuffle else SortBy.DUE_DATE
    if sort is not None:
        overrides["sort_by"] = SortBy(sort)
    session_config = replace(session_config, **overrides)

    try:
        run_study(get_store(), deck, session_config, console=console)
    except (StoreError, SessionError) as e:
        _fail(e)


@cli.group(invoke_without_command=True)
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show or change study session defaults."""
    if ctx.invoked_subcommand is None:
        console.print(format_config_display(load_config()))


@config.command("set")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set a config value (limits accept 'none' for no limit)."""
    try:
        cfg = set_config_value(load_config(), key, value)
    except (KeyError, ValueError) as e:
        _fail(e)
    console.print(f"[green]✓ {key} = {getattr(cfg, key)}[/green]")


def main() -> None:
    """Entry point for the CLI."""
    cli()
