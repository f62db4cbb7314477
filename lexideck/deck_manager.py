"""
This module defines the DeckManager class, which owns the vocabulary deck of
the active lesson. It enforces the deck's capacity and uniqueness rules,
applies scheduler results to graded cards, answers due-card queries and
persists a snapshot of the deck after every change.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .constants import DECK_STORAGE_PREFIX, MAX_CARDS
from .exceptions import StorageError
from .models import Card, DictionaryEntry, normalize_word
from .scheduler import (
    GradeLike,
    IntervalScheduler,
    coerce_grade,
    get_due_cards,
)
from .signals import (
    StateCell,
    card_added,
    card_enriched,
    card_removed,
    deck_loaded,
    review_graded,
)
from .storage.marshalling import cards_from_json, cards_to_json
from .storage.store import KeyValueStore

# Initialize logger
logger = logging.getLogger(__name__)

Deck = Tuple[Card, ...]

_ENRICHABLE_FIELDS = (
    "definition",
    "raw_definition",
    "example",
    "phonetic",
    "part_of_speech",
)


class DeckManager:
    """
    Manages the bounded deck of saved cards for one lesson at a time.

    This class is responsible for:
    - Loading the persisted deck when a lesson is opened.
    - Adding and removing cards without breaking capacity or uniqueness.
    - Grading cards through the scheduler, keeping deck order.
    - Persisting the deck after every mutation.

    The in-memory deck is authoritative: storage failures are logged and
    never undo or block a change.
    """

    def __init__(
        self,
        store: KeyValueStore,
        scheduler: Optional[IntervalScheduler] = None,
        storage_prefix: str = DECK_STORAGE_PREFIX,
        max_cards: int = MAX_CARDS,
    ):
        """
        Parameters:
            store (KeyValueStore): Where deck snapshots are loaded from and saved to.
            scheduler (IntervalScheduler): Computes intervals and due times; also supplies "now".
            storage_prefix (str): Prefix of the storage key; the lesson id is appended.
            max_cards (int): Deck capacity.
        """
        self.store = store
        self.scheduler = scheduler or IntervalScheduler()
        self.storage_prefix = storage_prefix
        self.max_cards = max_cards
        self._lesson_id: Optional[str] = None
        self._state: StateCell[Deck] = StateCell(())
        self._lock = threading.RLock()

    # --- State ---

    @property
    def lesson_id(self) -> Optional[str]:
        return self._lesson_id

    @property
    def cards(self) -> Deck:
        """Snapshot of the deck in order."""
        return self._state.value

    @property
    def size(self) -> int:
        return len(self._state.value)

    @property
    def is_full(self) -> bool:
        return self.size >= self.max_cards

    def storage_key(self, lesson_id: str) -> str:
        return f"{self.storage_prefix}{lesson_id}"

    def subscribe(self, callback: Callable[[Deck], None]) -> Callable[[], None]:
        """
        Call `callback` with the new deck after every change. Returns an
        unsubscribe function.
        """
        return self._state.subscribe(callback)

    def _find_index(self, word: str) -> int:
        key = normalize_word(word)
        for index, card in enumerate(self._state.value):
            if card.key == key:
                return index
        return -1

    # --- Loading and persistence ---

    def load(self, lesson_id: str) -> Deck:
        """
        Make `lesson_id` the active lesson and replace the deck with its
        persisted snapshot.

        Missing, unreadable or malformed snapshots give an empty deck. Extra
        cards beyond capacity and duplicate words are dropped, keeping the
        first occurrence.

        Returns:
            The loaded deck.
        """
        with self._lock:
            self._lesson_id = lesson_id
            cards = self._read_snapshot(self.storage_key(lesson_id))
            self._state.set(tuple(cards))
            logger.info(
                f"Loaded deck for lesson '{lesson_id}' with {len(cards)} cards."
            )
        deck_loaded.send(self, lesson_id=lesson_id, card_count=len(cards))
        return self.cards

    def _read_snapshot(self, key: str) -> List[Card]:
        try:
            payload = self.store.get(key)
        except StorageError as e:
            logger.warning(f"Could not read deck '{key}', starting empty: {e}")
            return []
        if not payload:
            return []
        try:
            loaded = cards_from_json(payload)
        except StorageError as e:
            logger.warning(f"Corrupt deck snapshot '{key}', starting empty: {e}")
            return []

        cards: List[Card] = []
        seen = set()
        for card in loaded:
            if card.key in seen:
                logger.warning(f"Dropping duplicate card '{card.word}' from '{key}'.")
                continue
            if len(cards) >= self.max_cards:
                logger.warning(
                    f"Deck '{key}' exceeds {self.max_cards} cards; truncating."
                )
                break
            seen.add(card.key)
            cards.append(card)
        return cards

    def persist(self) -> bool:
        """
        Overwrite the active lesson's snapshot with the current deck.

        Returns:
            True if the snapshot was written, False if there is no active
            lesson or the store failed.
        """
        with self._lock:
            if self._lesson_id is None:
                logger.debug("No active lesson; deck not persisted.")
                return False
            key = self.storage_key(self._lesson_id)
            try:
                self.store.set(key, cards_to_json(self._state.value))
            except (StorageError, OSError) as e:
                logger.warning(f"Failed to persist deck '{key}': {e}")
                return False
            return True

    # --- Mutations ---

    def add(self, card: Card) -> bool:
        """
        Append a card unless the deck is full or already holds the word.

        Returns:
            True on success, False if the deck was left unchanged.
        """
        with self._lock:
            if self.is_full:
                logger.info(
                    f"Deck is full ({self.max_cards} cards); '{card.word}' not added."
                )
                return False
            if self._find_index(card.word) != -1:
                logger.info(f"'{card.word}' is already in the deck.")
                return False
            self._state.set(self._state.value + (card,))
            self.persist()
            count = self.size
        card_added.send(
            self, lesson_id=self._lesson_id, word=card.word, card_count=count
        )
        return True

    def remove(self, word: str) -> bool:
        """
        Remove the first card whose normalised word matches `word`.

        Returns:
            True if a card was removed.
        """
        with self._lock:
            index = self._find_index(word)
            if index != -1:
                deck = self._state.value
                self._state.set(deck[:index] + deck[index + 1:])
            self.persist()
            count = self.size
        if index == -1:
            logger.debug(f"Remove: '{word}' not in deck.")
            return False
        card_removed.send(
            self, lesson_id=self._lesson_id, word=word, card_count=count
        )
        return True

    def grade(
        self,
        word: str,
        grade: GradeLike,
        now: Optional[datetime] = None,
    ) -> Optional[Card]:
        """
        Record a review of `word` and reschedule it.

        The card keeps its position and all non-scheduling fields.

        Parameters:
            word (str): Word to grade, matched ignoring case.
            grade (Grade | str): again, hard, good or easy.
            now (datetime): Grading timestamp; defaults to the scheduler clock.

        Returns:
            The updated card, or None if the word is not in the deck.

        Raises:
            ValueError: If the grade is invalid.
        """
        grade = coerce_grade(grade)
        with self._lock:
            index = self._find_index(word)
            if index == -1:
                logger.debug(f"Grade: card not found for '{word}'.")
                return None
            deck = self._state.value
            card = deck[index]
            output = self.scheduler.compute_next_state(card, grade, now)
            updated = card.model_copy(
                update={
                    "last_review_at": output.last_review_at,
                    "interval_hours": output.interval_hours,
                    "next_review_at": output.next_review_at,
                }
            )
            self._state.set(deck[:index] + (updated,) + deck[index + 1:])
            self.persist()
        review_graded.send(
            self,
            lesson_id=self._lesson_id,
            word=updated.word,
            grade=grade.value,
            interval_hours=output.interval_hours,
        )
        return updated

    def enrich(self, word: str, entry: DictionaryEntry) -> Optional[Card]:
        """
        Fill a card's empty display fields from a dictionary entry.

        Fields that already hold text and all scheduling fields are left
        unchanged.

        Returns:
            The updated card, or None if the word is not in the deck.
        """
        with self._lock:
            index = self._find_index(word)
            if index == -1:
                return None
            deck = self._state.value
            card = deck[index]
            update = {
                name: getattr(entry, name)
                for name in _ENRICHABLE_FIELDS
                if not getattr(card, name) and getattr(entry, name)
            }
            if not update:
                return card
            updated = card.model_copy(update=update)
            self._state.set(deck[:index] + (updated,) + deck[index + 1:])
            self.persist()
        card_enriched.send(self, lesson_id=self._lesson_id, word=updated.word)
        return updated

    # --- Queries ---

    def get(self, word: str) -> Optional[Card]:
        index = self._find_index(word)
        return self._state.value[index] if index != -1 else None

    def is_in_deck(self, word: str) -> bool:
        return self._find_index(word) != -1

    def due_cards(self, now: Optional[datetime] = None) -> List[Card]:
        """Cards due for review at `now`, in deck order."""
        if now is not None:
            return get_due_cards(self._state.value, now)
        return self.scheduler.due_cards(self._state.value)
