"""
CLI entry point for lexideck.
"""

# Standard library imports
import asyncio
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

# Third-party imports
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Local application imports
from lexideck.config import get_settings
from lexideck.deck_manager import DeckManager
from lexideck.enrichment.dictionary import DictionaryClient
from lexideck.enrichment.translator import TranslationClient
from lexideck.exceptions import ExerciseFileError, StorageError
from lexideck.exercises import build_exercise_items, load_exercises
from lexideck.models import Card
from lexideck.quiz import QuizGate
from lexideck.ratings import LessonRating
from lexideck.scheduler import is_due_for_review
from lexideck.storage.store import DuckDBKeyValueStore
from lexideck.cli.quiz_ui import start_exercise_flow, start_quiz_flow
from lexideck.cli.rating_ui import start_rating_flow
from lexideck.cli.review_ui import start_review_flow


console = Console()

app = typer.Typer(
    name="lexideck",
    help="Lexideck: per-lesson vocabulary decks with spaced repetition.",
    add_completion=False,
    rich_markup_mode="markdown",
)


# Common typer options reused across commands
_db_option = typer.Option(  # noqa: B008
    None,
    "--db",
    help="Path to the DuckDB database file. Falls back to LEXIDECK_DB, "
    "then LEXIDECK_DB_PATH.",
    envvar="LEXIDECK_DB",
)

_lesson_option = typer.Option(  # noqa: B008
    ...,
    "--lesson",
    "-l",
    help="Lesson identifier the deck belongs to.",
)


@app.callback()
def main(
    verbose: bool = typer.Option(  # noqa: B008
        False, "--verbose", "-v", help="Enable debug logging."
    ),
):
    """Configure logging for every command."""
    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level, format="%(asctime)s %(name)s %(levelname)s: %(message)s"
    )


def _resolve_db_path(db: Optional[Path]) -> Path:
    """Resolve the db path from the CLI flag or the settings default."""
    return db if db is not None else get_settings().db_path


@contextmanager
def _open_deck(db: Optional[Path], lesson: str) -> Iterator[DeckManager]:
    """Open the store, load the lesson's deck and close the store afterwards."""
    settings = get_settings()
    store = DuckDBKeyValueStore(_resolve_db_path(db))
    try:
        manager = DeckManager(store, storage_prefix=settings.storage_prefix)
        manager.load(lesson)
        yield manager
    except StorageError as e:
        console.print(f"[bold red]Storage error: {e}[/bold red]")
        raise typer.Exit(code=1)
    finally:
        store.close()


def _warn_if_unsaved(manager: DeckManager) -> None:
    """Tell the user when the deck could not be written to the database."""
    if not manager.persist():
        console.print(
            "[bold yellow]Warning: the deck could not be saved to the database; "
            "this change will be lost.[/bold yellow]"
        )


# ---------------------------------------------------------------------------
# Deck editing
# ---------------------------------------------------------------------------


@app.command()
def add(
    word: str = typer.Argument(..., help="Word to save."),  # noqa: B008
    lesson: str = _lesson_option,
    sentence: str = typer.Option("", "--sentence", help="Lesson sentence."),  # noqa: B008
    definition: str = typer.Option("", "--definition", help="Meaning."),  # noqa: B008
    example: str = typer.Option("", "--example", help="Example sentence."),  # noqa: B008
    db: Optional[Path] = _db_option,
):
    """
    Save a word to the lesson's deck. Fails if the deck is full or the word
    is already saved.
    """
    try:
        card = Card(
            word=word, sentence=sentence, definition=definition, example=example
        )
    except ValidationError:
        console.print("[bold red]Error: the word must not be blank.[/bold red]")
        raise typer.Exit(code=1)

    with _open_deck(db, lesson) as manager:
        if manager.is_in_deck(word):
            console.print(f"[yellow]'{card.word}' is already in the deck.[/yellow]")
            raise typer.Exit(code=1)
        if not manager.add(card):
            console.print(
                f"[bold red]Deck is full ({manager.max_cards} cards). "
                "Remove a card first.[/bold red]"
            )
            raise typer.Exit(code=1)
        console.print(
            f"[green]Saved '{card.word}'.[/green] "
            f"Deck: {manager.size}/{manager.max_cards} cards."
        )
        _warn_if_unsaved(manager)


@app.command()
def remove(
    word: str = typer.Argument(..., help="Word to remove."),  # noqa: B008
    lesson: str = _lesson_option,
    db: Optional[Path] = _db_option,
):
    """Remove a word from the lesson's deck."""
    with _open_deck(db, lesson) as manager:
        if manager.remove(word):
            console.print(f"[green]Removed '{word}'.[/green]")
            _warn_if_unsaved(manager)
        else:
            console.print(f"[yellow]'{word}' is not in the deck.[/yellow]")


@app.command(name="list")
def list_cards(
    lesson: str = _lesson_option,
    db: Optional[Path] = _db_option,
):
    """Show every card in the lesson's deck with its review schedule."""
    with _open_deck(db, lesson) as manager:
        if not manager.cards:
            console.print(f"[yellow]No saved words for lesson '{lesson}'.[/yellow]")
            return

        table = Table(title=f"Deck for '{lesson}'")
        table.add_column("Word", style="cyan", no_wrap=True)
        table.add_column("Definition", style="magenta")
        table.add_column("Interval (h)", justify="right")
        table.add_column("Next review", style="green")
        table.add_column("Due", justify="center")

        for card in manager.cards:
            table.add_row(
                card.word,
                card.definition,
                f"{card.interval_hours:g}" if card.interval_hours else "-",
                card.next_review_at.strftime("%Y-%m-%d %H:%M")
                if card.next_review_at
                else "-",
                "yes" if is_due_for_review(card) else "",
            )
        console.print(table)


@app.command()
def due(
    lesson: str = _lesson_option,
    db: Optional[Path] = _db_option,
):
    """List the words that are due for review now."""
    with _open_deck(db, lesson) as manager:
        due_cards = manager.due_cards()
        if not due_cards:
            console.print("[green]Nothing is due. Come back later.[/green]")
            return
        console.print(f"[bold]{len(due_cards)} card(s) due:[/bold]")
        for card in due_cards:
            console.print(f"- {card.word}")


# ---------------------------------------------------------------------------
# Review and quiz
# ---------------------------------------------------------------------------


@app.command()
def review(
    lesson: str = _lesson_option,
    db: Optional[Path] = _db_option,
):
    """Grade every due card interactively."""
    with _open_deck(db, lesson) as manager:
        if start_review_flow(manager):
            _warn_if_unsaved(manager)


@app.command()
def quiz(
    lesson: str = _lesson_option,
    db: Optional[Path] = _db_option,
):
    """Take a multiple-choice vocabulary test built from the deck."""
    with _open_deck(db, lesson) as manager:
        gate = QuizGate(manager)
        try:
            start_quiz_flow(gate)
        finally:
            gate.close()


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


async def _lookup(word: str, lang: Optional[str]):
    settings = get_settings()
    async with DictionaryClient(settings) as dictionary:
        entry = await dictionary.lookup(word)
    translation = ""
    if entry is not None and entry.definition and lang:
        async with TranslationClient(settings) as translator:
            translation = await translator.translate(entry.definition, lang)
    return entry, translation


@app.command()
def lookup(
    word: str = typer.Argument(..., help="Word to look up."),  # noqa: B008
    lang: Optional[str] = typer.Option(  # noqa: B008
        None, "--lang", help="Also translate the meaning (ja or es)."
    ),
    save: bool = typer.Option(  # noqa: B008
        False, "--save", help="Save the word with its definition to the deck."
    ),
    lesson: Optional[str] = typer.Option(  # noqa: B008
        None, "--lesson", "-l", help="Lesson to save into (with --save)."
    ),
    sentence: str = typer.Option("", "--sentence", help="Lesson sentence."),  # noqa: B008
    db: Optional[Path] = _db_option,
):
    """Look a word up in the dictionary, optionally saving it."""
    if not word.strip():
        console.print("[bold red]Error: the word must not be blank.[/bold red]")
        raise typer.Exit(code=1)
    if save and not lesson:
        console.print("[bold red]Error: --save requires --lesson.[/bold red]")
        raise typer.Exit(code=1)

    entry, translation = asyncio.run(_lookup(word, lang))
    if entry is None:
        console.print(f"[yellow]No definition found for '{word}'.[/yellow]")
    else:
        header = entry.word
        if entry.phonetic:
            header += f"  {entry.phonetic}"
        if entry.part_of_speech:
            header += f"  ({entry.part_of_speech})"
        console.print(f"[bold cyan]{header}[/bold cyan]")
        console.print(entry.definition)
        if translation:
            console.print(f"[magenta]{translation}[/magenta]")
        if entry.example:
            console.print(f"[dim]Example: {entry.example}[/dim]")

    if save:
        fields = {"word": word, "sentence": sentence}
        if entry is not None:
            fields.update(
                definition=entry.definition,
                raw_definition=entry.raw_definition,
                example=entry.example,
                phonetic=entry.phonetic,
                part_of_speech=entry.part_of_speech,
            )
        try:
            card = Card(**fields)
        except ValidationError as e:
            console.print(f"[bold red]Error: cannot save '{word}': {escape(str(e))}[/bold red]")
            raise typer.Exit(code=1)
        with _open_deck(db, lesson) as manager:
            if manager.add(card):
                console.print(f"[green]Saved '{card.word}' to '{lesson}'.[/green]")
                _warn_if_unsaved(manager)
            else:
                console.print(
                    f"[bold red]Could not save '{word}': deck full or word already saved.[/bold red]"
                )
                raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Lesson exercises and rating
# ---------------------------------------------------------------------------


@app.command()
def exercises(
    file: Path = typer.Argument(  # noqa: B008
        ..., help="JSON file with the lesson's exercises.", dir_okay=False
    ),
):
    """Answer a lesson's comprehension exercises (first five)."""
    try:
        items = build_exercise_items(load_exercises(file))
    except ExerciseFileError as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/bold red]")
        raise typer.Exit(code=1)
    start_exercise_flow(items)


@app.command()
def rate(
    lesson: str = _lesson_option,
    edit: bool = typer.Option(  # noqa: B008
        False, "--edit", help="Answer again even if the lesson is already rated."
    ),
    db: Optional[Path] = _db_option,
):
    """Rate a lesson with five quick questions (1 to 5)."""
    store = DuckDBKeyValueStore(_resolve_db_path(db))
    try:
        saved = LessonRating(store, lesson)
        if saved.load() and not edit:
            console.print(
                f"[green]You already rated '{lesson}'[/green] "
                f"(average {saved.average:.2f}). Use --edit to change it."
            )
            return
        start_rating_flow(LessonRating(store, lesson))
    finally:
        store.close()


if __name__ == "__main__":
    app()
