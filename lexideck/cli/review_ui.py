"""
Command-line interface for reviewing due cards.
"""

import logging
from datetime import datetime, timezone

from rich.console import Console
from rich.panel import Panel

from lexideck.deck_manager import DeckManager
from lexideck.models import Card, Grade

logger = logging.getLogger(__name__)
console = Console()

GRADE_CHOICES = {
    "1": Grade.Again,
    "2": Grade.Hard,
    "3": Grade.Good,
    "4": Grade.Easy,
}


def _get_user_grade() -> Grade:
    """
    Prompt until the user enters a grade, either as 1-4 or as its name.
    """
    while True:
        answer = console.input(
            "[bold]Grade (1:Again, 2:Hard, 3:Good, 4:Easy): [/bold]"
        ).strip().lower()
        if answer in GRADE_CHOICES:
            return GRADE_CHOICES[answer]
        try:
            return Grade(answer)
        except ValueError:
            console.print(
                "[bold red]Invalid grade. Enter 1-4 or again/hard/good/easy.[/bold red]"
            )


def _display_card(card: Card) -> None:
    """Show the word, wait for Enter, then reveal the meaning."""
    console.print(Panel(card.word, title="Word", border_style="green"))
    console.input("[italic]Press Enter to see the meaning...[/italic]")
    back = card.definition or "(no definition saved)"
    if card.example:
        back += f"\n\n[dim]{card.example}[/dim]"
    elif card.sentence:
        back += f"\n\n[dim]{card.sentence}[/dim]"
    console.print(Panel(back, title="Meaning", border_style="blue"))


def _format_wait(next_review_at: datetime) -> str:
    hours = (next_review_at - datetime.now(timezone.utc)).total_seconds() / 3600
    if hours >= 48:
        return f"{hours / 24:.0f} days"
    return f"{max(hours, 0):.0f} hours"


def start_review_flow(manager: DeckManager) -> int:
    """
    Walk the user through every card that is due right now.

    Returns:
        Number of cards graded.
    """
    due = manager.due_cards()
    if not due:
        console.print("[bold yellow]No cards are due for review.[/bold yellow]")
        return 0

    console.print("[bold cyan]Starting review session...[/bold cyan]")
    for position, card in enumerate(due, start=1):
        console.rule(f"[bold]Card {position} of {len(due)}[/bold]")
        _display_card(card)
        grade = _get_user_grade()
        updated = manager.grade(card.word, grade)
        if updated is None or updated.next_review_at is None:
            console.print(
                f"[bold red]'{card.word}' is no longer in the deck.[/bold red]"
            )
            continue
        console.print(
            f"[green]Reviewed.[/green] Next review in "
            f"[bold]{_format_wait(updated.next_review_at)}[/bold]."
        )
        console.print("")

    console.print("[bold cyan]Review session finished. Well done![/bold cyan]")
    return len(due)
