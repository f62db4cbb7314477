"""
Command-line interface for rating a lesson.
"""

import logging

from rich.console import Console

from lexideck.constants import RATING_QUESTIONS, RATING_SCALE
from lexideck.ratings import LessonRating

logger = logging.getLogger(__name__)
console = Console()


def _ask_score(label: str) -> int:
    low, high = RATING_SCALE
    while True:
        answer = console.input(f"[bold]{label} ({low}-{high}): [/bold]").strip()
        if answer.isdigit() and low <= int(answer) <= high:
            return int(answer)
        console.print(
            f"[bold red]Please enter a number between {low} and {high}.[/bold red]"
        )


def start_rating_flow(rating: LessonRating) -> float:
    """
    Ask every rating question in order. The rating saves itself once the
    last answer is in.

    Returns:
        The average score.
    """
    console.print(f"[bold cyan]Rate lesson '{rating.lesson_id}'[/bold cyan]")
    for question_id, label in RATING_QUESTIONS:
        rating.answer(question_id, _ask_score(label))
    console.print(
        f"[green]Thanks for your feedback![/green] Average: [bold]{rating.average:.2f}[/bold]"
    )
    return rating.average
