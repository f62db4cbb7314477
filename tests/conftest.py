import random
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Generator, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from lexideck.deck_manager import DeckManager
from lexideck.models import Card
from lexideck.scheduler import IntervalScheduler
from lexideck.storage import DuckDBKeyValueStore, MemoryKeyValueStore


# each test runs on cwd to its temp dir
@pytest.fixture(autouse=True)
def go_to_tmpdir(request):
    """
    Temporarily change the working directory to the test's tmpdir, so a
    stray .env file or database never leaks between tests.
    """
    tmpdir = request.getfixturevalue("tmpdir")
    sys.path.insert(0, str(tmpdir))
    with tmpdir.as_cwd():
        yield


class FakeClock:
    """Settable clock for deterministic scheduling."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now: datetime) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def scheduler(clock: FakeClock) -> IntervalScheduler:
    return IntervalScheduler(clock=clock)


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def db_path_file(tmp_path: Path) -> Path:
    return tmp_path / "decks.duckdb"


@pytest.fixture(params=["memory", "duckdb"])
def any_store(request, db_path_file: Path) -> Generator:
    """Each test using this fixture runs against both store backends."""
    if request.param == "memory":
        yield MemoryKeyValueStore()
        return
    store = DuckDBKeyValueStore(db_path_file)
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def deck_manager(memory_store: MemoryKeyValueStore, scheduler: IntervalScheduler) -> DeckManager:
    """A DeckManager with lesson 'lesson-1' loaded (empty)."""
    manager = DeckManager(memory_store, scheduler=scheduler)
    manager.load("lesson-1")
    return manager


@pytest.fixture
def make_card() -> Callable[..., Card]:
    def _make(word: str, **fields) -> Card:
        return Card(word=word, **fields)

    return _make


@pytest.fixture
def vocabulary_cards() -> List[Card]:
    """Six cards with example or lesson sentences that contain their word."""
    return [
        Card(
            word="journey",
            sentence="Their journey across the desert took weeks.",
            definition="A trip from one place to another.",
        ),
        Card(
            word="harbor",
            example="The boats rested in the harbor overnight.",
            definition="A sheltered place for ships.",
        ),
        Card(
            word="lantern",
            sentence="She lit a Lantern before the storm.",
            definition="A lamp with a protective case.",
        ),
        Card(
            word="whisper",
            example="Don't whisper during the exam.",
            definition="To speak very softly.",
        ),
        Card(word="meadow", definition="A field of grass and flowers."),
        Card(word="glimmer"),
    ]


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def make_session() -> Callable[..., MagicMock]:
    """
    Build a stand-in for an aiohttp session whose `get` yields one response
    with the given status and JSON body.
    """

    def _make(payload: Any, status: int = 200) -> MagicMock:
        response = MagicMock()
        response.status = status
        response.json = AsyncMock(return_value=payload)
        request = MagicMock()
        request.__aenter__ = AsyncMock(return_value=response)
        request.__aexit__ = AsyncMock(return_value=False)
        session = MagicMock()
        session.get.return_value = request
        return session

    return _make
