"""
Command-line interface for the vocabulary test and lesson exercises.
"""

import logging
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel

from lexideck.exercises import exercise_score_message
from lexideck.models import QuizItem
from lexideck.quiz import QuizGate, QuizResult, QuizRun, QuizStatus

logger = logging.getLogger(__name__)
console = Console()


def _ask_option(count: int) -> int:
    while True:
        answer = console.input(f"[bold]Your answer (1-{count}): [/bold]").strip()
        if answer.isdigit() and 1 <= int(answer) <= count:
            return int(answer) - 1
        console.print(
            f"[bold red]Please enter a number between 1 and {count}.[/bold red]"
        )


def _ask_text() -> str:
    while True:
        answer = console.input("[bold]Type your answer: [/bold]").strip()
        if answer:
            return answer
        console.print("[bold red]Please type an answer.[/bold red]")


def _play_item(run: QuizRun, item: QuizItem) -> None:
    """Ask the current item until the run accepts an answer for it."""
    console.rule(f"[bold]Question {run.current_index + 1} of {run.total}[/bold]")
    if item.prompt_lead:
        console.print(item.prompt_lead)
    console.print(Panel(item.prompt, border_style="cyan"))

    if item.item_type == "fill_blank":
        while run.status == QuizStatus.InProgress:
            feedback = run.select(_ask_text())
            style = "green" if feedback.correct else "red"
            console.print(f"[{style}]{feedback.text}[/{style}]")
            if feedback.can_retry:
                console.print("[italic]Try again.[/italic]")
        return

    for number, option in enumerate(item.options, start=1):
        console.print(f"  {number}. {option}")
    feedback = run.select(item.options[_ask_option(len(item.options))])
    style = "green" if feedback.correct else "red"
    console.print(f"[{style}]{feedback.text}[/{style}]")


def _play(run: QuizRun, title: str) -> Optional[QuizResult]:
    while run.status == QuizStatus.InProgress:
        _play_item(run, run.current_item)
        run.advance()

    result = run.result
    if result is None:
        return None
    console.rule(f"[bold]{title}[/bold]")
    console.print(f"You got {result.score} of {result.total} correct.")
    console.print(f"Score: {result.percent}%")
    console.print(f"[bold]{result.message}[/bold]")
    return result


def start_quiz_flow(gate: QuizGate) -> Optional[QuizResult]:
    """Run one vocabulary test in the terminal."""
    if not gate.is_unlocked:
        console.print(
            f"[yellow]The vocabulary test unlocks when you save at least "
            f"{gate.min_cards} flashcards. Current: {gate.usable_count}/{gate.min_cards}.[/yellow]"
        )
        return None
    if not gate.start():
        console.print("[bold red]Could not build any questions.[/bold red]")
        return None
    return _play(gate.run, "Vocabulary Test Complete")


def start_exercise_flow(items: List[QuizItem]) -> Optional[QuizResult]:
    """
    Run lesson exercises in the terminal. Typed-answer items can be
    retried until correct; only first tries count.
    """
    run = QuizRun(message_fn=exercise_score_message)
    if not run.start(items):
        console.print("[yellow]This lesson has no exercises.[/yellow]")
        return None
    return _play(run, "Exercises Complete")
