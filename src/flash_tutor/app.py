"""Interactive CLI application."""
import asyncio
import logging
import os

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from flash_tutor.catalog import browse, due_cards, select_batch
from flash_tutor.cards import create_card, delete_cards, edit_card
from flash_tutor.db import DEFAULT_DB_PATH, init_db
from flash_tutor.errors import FlashTutorError, StorageError
from flash_tutor.models import Direction, SortKey
from flash_tutor.reminders import LoggingNotifier, check_due_reminder
from flash_tutor.seed import is_seeded, seed_all
from flash_tutor.session import ReviewSession, SessionState
from flash_tutor.settings import (
    ReminderSettings, format_reminder_time, load_reminder_settings, next_reminder_at,
    parse_reminder_time, save_reminder_settings,
)
from flash_tutor.storage import SQLiteCardStore, utc_now

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """Raised when the user types q or menu during a review."""


def configure_logging() -> None:
    level = os.environ.get("FLASH_TUTOR_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def show_welcome():
    console.print(Panel(
        "[bold]Flash Tutor[/bold]\n[dim]Spaced repetition for vocabulary cards[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("review", "Review due cards"),
        ("cards", "Search and browse the catalog"),
        ("add", "Create a card"),
        ("edit", "Edit a card"),
        ("delete", "Delete cards"),
        ("reminders", "Daily reminder settings"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def render_card(session: ReviewSession) -> None:
    card = session.current_card
    title = f"Card {session.position + 1}/{session.total}"
    console.print(Panel(card.front, title=title, border_style="cyan"))
    if session.revealed:
        body = card.back
        if card.pronunciation:
            body += f"\n[dim]/{card.pronunciation}/[/dim]"
        if card.example:
            body += f"\n[italic]{card.example}[/italic]"
        if card.notes:
            body += f"\n[dim]{card.notes}[/dim]"
        console.print(Panel(body, border_style="green"))


def run_review_session(session: ReviewSession) -> None:
    if session.state is SessionState.IDLE:
        console.print("[yellow]No cards due right now![/yellow]")
        return
    console.print(f"\n[bold]Review Session[/bold] — {session.total} cards due\n")
    while session.state is SessionState.PRESENTING:
        render_card(session)
        if not session.revealed:
            action = session_prompt("[dim]Enter to reveal, < > to move, q to stop[/dim]", default="f")
        else:
            action = session_prompt("Remembered? (y/n, < > to move, f to hide)", default="f")
        action = action.strip().lower()
        if action == "f":
            session.flip()
        elif action == ">":
            session.advance(Direction.FORWARD)
        elif action == "<":
            session.advance(Direction.BACKWARD)
        elif action in ("y", "n") and session.revealed:
            try:
                updated = asyncio.run(session.rate(action == "y"))
            except StorageError as e:
                # Session keeps the card, so the rating can be retried
                console.print(f"[red]{e}[/red]")
                continue
            days = updated.interval_days
            console.print(f"[dim]Next review in {days} day{'s' if days != 1 else ''}[/dim]\n")
        else:
            console.print("[red]Unknown key.[/red]")
    console.print(f"[green]All done! {session.reviewed_count} cards reviewed.[/green]")


def cmd_review(db_path: str):
    store = SQLiteCardStore(db_path)
    session = ReviewSession(store, clock=utc_now)
    asyncio.run(session.reload())
    try:
        run_review_session(session)
    except SessionExitRequested:
        console.print(f"[dim]Stopped after {session.reviewed_count} ratings.[/dim]")


def show_cards(cards: list, selected: frozenset = frozenset()) -> None:
    table = Table(title=f"Cards ({len(cards)})")
    table.add_column("", width=1)
    table.add_column("ID", justify="right")
    table.add_column("Front", style="cyan")
    table.add_column("Back")
    table.add_column("Difficulty", justify="right")
    table.add_column("Due")
    for card in cards:
        table.add_row(
            "*" if card.id in selected else "",
            str(card.id),
            card.front,
            card.back,
            str(card.difficulty) if card.difficulty else "",
            card.due_at.strftime("%Y-%m-%d"),
        )
    console.print(table)


def cmd_cards(db_path: str):
    store = SQLiteCardStore(db_path)
    catalog = asyncio.run(store.get_all())
    query = Prompt.ask("Search", default="")
    sort = Prompt.ask("Sort by", choices=[k.value for k in SortKey], default=SortKey.RECENTLY_CREATED.value)
    show_cards(browse(catalog, query, SortKey(sort)))
    console.print(f"[dim]{len(due_cards(catalog, utc_now()))} due now[/dim]")


def ask_difficulty(default: int | None = None) -> int | None:
    raw = Prompt.ask("Difficulty 1-5 (blank for none)", default=str(default) if default else "")
    return int(raw) if raw.strip() else None


def cmd_add(db_path: str):
    store = SQLiteCardStore(db_path)
    front = Prompt.ask("Front")
    back = Prompt.ask("Back")
    pronunciation = Prompt.ask("Pronunciation", default="")
    example = Prompt.ask("Example", default="")
    notes = Prompt.ask("Notes", default="")
    card = asyncio.run(create_card(
        store, front, back, utc_now(),
        pronunciation=pronunciation, example=example, notes=notes,
        difficulty=ask_difficulty(),
    ))
    console.print(f"[green]Saved card {card.id}: {card.front} → {card.back}[/green]")


def cmd_edit(db_path: str):
    store = SQLiteCardStore(db_path)
    card_id = IntPrompt.ask("Card id")
    card = asyncio.run(store.get_by_id(card_id))
    if card is None:
        console.print(f"[red]No card with id {card_id}[/red]")
        return
    updated = asyncio.run(edit_card(
        store, card_id,
        front=Prompt.ask("Front", default=card.front),
        back=Prompt.ask("Back", default=card.back),
        pronunciation=Prompt.ask("Pronunciation", default=card.pronunciation or ""),
        example=Prompt.ask("Example", default=card.example or ""),
        notes=Prompt.ask("Notes", default=card.notes or ""),
        difficulty=ask_difficulty(card.difficulty),
    ))
    console.print(f"[green]Updated card {updated.id}[/green]")


def cmd_delete(db_path: str):
    store = SQLiteCardStore(db_path)
    catalog = asyncio.run(store.get_all())
    raw = Prompt.ask("Card ids to delete (space separated)")
    selected = select_batch(frozenset(), (int(tok) for tok in raw.split() if tok.isdecimal()))
    if not selected:
        return
    show_cards([c for c in catalog if c.id in selected], selected)
    if Confirm.ask(f"Delete {len(selected)} card(s)?", default=False):
        asyncio.run(delete_cards(store, sorted(selected)))
        console.print("[green]Deleted.[/green]")


def cmd_reminders(db_path: str):
    settings = load_reminder_settings(db_path)
    state = "[green]on[/green]" if settings.enabled else "[red]off[/red]"
    console.print(f"Daily reminders: {state} at {format_reminder_time(settings.hour, settings.minute)}")
    if settings.enabled:
        fire = next_reminder_at(utc_now().astimezone(), settings.hour, settings.minute)
        console.print(f"[dim]Next reminder: {fire.strftime('%Y-%m-%d %H:%M')}[/dim]")
    action = Prompt.ask("Action", choices=["toggle", "time", "check", "back"], default="back")
    if action == "toggle":
        save_reminder_settings(db_path, ReminderSettings(not settings.enabled, settings.hour, settings.minute))
    elif action == "time":
        hour, minute = parse_reminder_time(Prompt.ask("Reminder time (HH:MM)", default=settings.time_text))
        save_reminder_settings(db_path, ReminderSettings(settings.enabled, hour, minute))
    elif action == "check":
        count = asyncio.run(check_due_reminder(SQLiteCardStore(db_path), LoggingNotifier(), utc_now, settings))
        console.print(f"{count} card(s) due")


def main():
    configure_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up a starter deck...[/dim]")
        seed_all(db_path, utc_now())
        console.print("[green]Ready![/green]\n")

    show_welcome()

    commands = {
        "review": cmd_review,
        "cards": cmd_cards,
        "add": cmd_add,
        "edit": cmd_edit,
        "delete": cmd_delete,
        "reminders": cmd_reminders,
    }
    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="review").strip().lower()
        try:
            if choice in commands:
                commands[choice](db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]À bientôt![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except FlashTutorError as e:
            console.print(f"[red]{e}[/red]")
        except Exception as e:
            logger.exception("Command %s failed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
