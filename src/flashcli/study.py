"""Terminal study UI."""

from __future__ import annotations

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from prompt_toolkit.styles import Style
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .card_filters import SessionConfig, is_card_new
from .models import Flashcard
from .paths import HISTORY_FILE, ensure_data_dir
from .sm2 import QUALITY_LABELS, RATING_BUTTONS, InvalidQualityError, quality_label, schedule
from .store import DeckStore, NotFoundError
from .study_session import PersistenceError, StudySession

PROMPT_STYLE = Style.from_dict({
    "prompt": "cyan bold",
})

# Number keys map onto the rating buttons in order
RATING_KEYS = {str(i): q for i, q in enumerate(RATING_BUTTONS.values(), 1)}

STREAK_MILESTONE = 5


def format_interval(days: float) -> str:
    """Format a day count as a human-readable interval string."""
    if days < 30:
        d = max(1, round(days))
        return f"{d} day{'s' if d != 1 else ''}"
    elif days < 365:
        m = max(1, round(days / 30))
        return f"{m} month{'s' if m != 1 else ''}"
    else:
        y = round(days / 365, 1)
        return f"{y} year{'s' if y != 1 else ''}"


def format_elapsed(seconds: int) -> str:
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


def parse_rating(text: str) -> int | None:
    """Turn user input into a quality rating.

    Accepts 1-4 for the rating buttons, their names (again/hard/good/easy),
    or q0-q5 for an exact quality. Returns None for anything else.
    """
    text = text.strip().lower()
    if text in RATING_KEYS:
        return RATING_KEYS[text]
    if text in RATING_BUTTONS:
        return RATING_BUTTONS[text]
    if len(text) == 2 and text[0] == "q" and text[1].isdigit():
        return int(text[1])
    return None


def create_progress_bar(percent: float, bar_width: int = 20) -> Text:
    filled = int(bar_width * percent / 100)
    bar = Text()
    bar.append("█" * filled, style="green")
    bar.append("░" * (bar_width - filled), style="dim")
    return bar


def create_card_panel(session: StudySession) -> Panel:
    """Show the current card, with the back once flipped."""
    state = session.state
    card = state.current_card
    content = Text()

    content.append(card.front, style="bold")
    content.append("\n")
    if state.show_back:
        content.append("\n")
        content.append(card.back, style="green")
        content.append("\n")
        if card.notes:
            content.append(f"\n{card.notes}\n", style="dim italic")

    tag = "NEW" if is_card_new(card) else f"ease {card.ease_factor:.2f}"
    title = f"[bold cyan]Card {state.current_index + 1}/{len(state.cards)}[/bold cyan] [dim]({tag})[/dim]"
    return Panel(content, title=title, border_style="cyan", padding=(1, 2))


def create_rating_panel(card: Flashcard) -> Panel:
    """Rating choices with the interval each one would schedule."""
    content = Text()
    for key, (name, quality) in zip(RATING_KEYS, RATING_BUTTONS.items()):
        result = schedule(quality, card.repetitions, card.interval, card.ease_factor)
        style = "red" if quality < 3 else "green"
        content.append(f"{key}", style="cyan")
        content.append(f" {name.capitalize()}", style=style)
        content.append(f" ({format_interval(result.interval)})  ", style="dim")
    return Panel(content, border_style="dim", box=box.ROUNDED, padding=(0, 1))


def create_study_commands_panel() -> Panel:
    """Create a small panel showing available study commands."""
    content = Text()
    content.append("Enter", style="cyan")
    content.append(" flip  ", style="dim")
    content.append("1-4", style="cyan")
    content.append(" rate  ", style="dim")
    content.append("q0-q5", style="cyan")
    content.append(" exact quality  ", style="dim")
    content.append("/stats", style="cyan")
    content.append(" progress  ", style="dim")
    content.append("/quit", style="cyan")
    content.append(" end session", style="dim")
    return Panel(content, border_style="dim", box=box.ROUNDED, padding=(0, 1))


def create_summary_panel(session: StudySession) -> Panel:
    """Create a session summary panel."""
    state = session.state
    content = Text()

    content.append("ACCURACY\n", style="bold")
    accuracy = state.accuracy
    if accuracy >= 80:
        color = "green"
    elif accuracy >= 60:
        color = "yellow"
    else:
        color = "red"
    content.append("  [", style="dim")
    content.append_text(create_progress_bar(accuracy, bar_width=30))
    content.append("] ", style="dim")
    content.append(f"{accuracy:.0f}%\n\n", style=f"bold {color}")

    content.append(f"  Reviewed: {state.completed_cards}/{len(state.cards)}")
    content.append(f"  ({state.progress:.0f}%)\n", style="dim")
    content.append(f"  Correct:  {state.correct_count}", style="green")
    content.append(f"  Wrong: {state.wrong_count}\n", style="red")
    content.append(f"  Best streak: {state.best_streak}\n", style="cyan")
    content.append(f"  Time: {format_elapsed(session.elapsed_time)}\n", style="dim")

    return Panel(
        content,
        title="[bold cyan]SESSION COMPLETE[/bold cyan]",
        border_style="cyan",
        box=box.DOUBLE,
        padding=(1, 2),
    )


def create_results_table(session: StudySession) -> Table | None:
    state = session.state
    if not state.card_results:
        return None
    fronts = {c.id: c.front for c in state.cards}

    table = Table(title="Reviewed cards", box=box.SIMPLE)
    table.add_column("Card", style="cyan", max_width=40)
    table.add_column("Rating")
    table.add_column("Time", justify="right", style="dim")
    for result in state.card_results:
        front = fronts.get(result.flashcard_id, result.flashcard_id)
        style = "green" if result.quality >= 3 else "red"
        table.add_row(
            front[:40] + "..." if len(front) > 40 else front,
            f"[{style}]{quality_label(result.quality)}[/{style}]",
            f"{result.time_spent / 1000:.1f}s",
        )
    return table


def run_study_loop(
    console: Console,
    session: StudySession,
    prompt_session: PromptSession,
) -> None:
    """Run the flip/rate cycle until the queue is exhausted or the user quits."""
    console.print()
    console.print(create_study_commands_panel())
    console.print()

    while session.state.is_active:
        card = session.current_card
        if card is None:
            break

        console.print(create_card_panel(session))
        if session.state.show_back:
            console.print(create_rating_panel(card))

        try:
            answer = prompt_session.prompt(
                [("class:prompt", "Rate: " if session.state.show_back else "Flip: ")],
            ).strip()
        except (KeyboardInterrupt, EOFError):
            answer = "/quit"

        command = answer.lower()
        if command == "/quit":
            console.print("[dim]Ending study session...[/dim]")
            session.end()
            break

        if command == "/stats":
            state = session.state
            console.print(
                f"[bold]Progress:[/bold] {state.completed_cards}/{len(state.cards)} "
                f"({state.progress:.0f}%)  accuracy {state.accuracy:.0f}%  "
                f"streak {state.current_streak}  time {format_elapsed(session.elapsed_time)}\n"
            )
            continue

        if not session.state.show_back:
            if command in ("", "f", "flip"):
                session.flip()
            else:
                console.print("[dim]Press Enter to show the answer first.[/dim]")
            continue

        if command in ("f", "flip"):
            session.flip()
            continue

        quality = parse_rating(command)
        if quality is None:
            console.print("[yellow]Enter 1-4, again/hard/good/easy, or q0-q5.[/yellow]")
            continue

        try:
            saved = session.rate(quality)
        except InvalidQualityError as e:
            console.print(f"[yellow]{e}[/yellow]")
            continue
        except PersistenceError as e:
            console.print(f"[red]✗ {e}[/red]\n[dim]The card was not advanced; rate it again to retry.[/dim]")
            continue
        except NotFoundError as e:
            console.print(f"[red]✗ {e}[/red]\n[dim]The card was removed from the deck. Ending study session...[/dim]")
            session.end()
            break

        console.print(
            f"[dim]{QUALITY_LABELS[quality]} - next review in {format_interval(saved.interval)}[/dim]"
        )
        if saved.streak > 0 and saved.streak % STREAK_MILESTONE == 0:
            console.print(f"[bold yellow]Streak: {saved.streak}![/bold yellow]")
        console.print()

    if session.state.is_completed:
        console.print(create_summary_panel(session))
        table = create_results_table(session)
        if table is not None:
            console.print(table)


def run_study(store: DeckStore, deck_ref: str, config: SessionConfig, console: Console | None = None) -> StudySession:
    """Start a study session on a deck and run it interactively.

    Raises:
        StoreError: the deck cannot be loaded.
        EmptySessionError: no cards match ``config``.
    """
    console = console or Console()
    deck = store.get_deck(deck_ref)
    session = StudySession(persist=store.save_review)
    session.start(deck.flashcards, config, deck_id=deck.id)

    console.print(Panel(
        Text(f"STUDY: {deck.title}", style="bold cyan", justify="center"),
        border_style="cyan",
        box=box.DOUBLE,
    ))
    console.print(f"[dim]{len(session.state.cards)} card(s) in this session[/dim]")

    try:
        ensure_data_dir()
        prompt_session: PromptSession = PromptSession(
            history=FileHistory(str(HISTORY_FILE)),
            style=PROMPT_STYLE,
        )
    except OSError:
        prompt_session = PromptSession(style=PROMPT_STYLE)

    run_study_loop(console, session, prompt_session)
    return session
