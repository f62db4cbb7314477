"""
Word lookup flow for a tapped word.

Opening a word starts a background dictionary lookup (plus a translation of
the definition when an assist language is chosen). Dismissing, or opening
another word, cancels whatever is still in flight so late results never
reach a card.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from ..deck_manager import DeckManager
from ..models import Card, DictionaryEntry
from .assist_language import AssistLanguagePreference
from .dictionary import DictionaryClient
from .speech import NullSpeechPlayer, SpeechPlayer
from .translator import TranslationClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupResult:
    word: str
    sentence: str
    entry: Optional[DictionaryEntry]
    translation: str = ""


class LookupController:
    """
    Runs lookups for the currently opened word and applies the results.

    Results only ever fill display fields on a saved card; scheduling is
    untouched.
    """

    def __init__(
        self,
        deck: DeckManager,
        dictionary: DictionaryClient,
        translator: Optional[TranslationClient] = None,
        language: Optional[AssistLanguagePreference] = None,
        speech: Optional[SpeechPlayer] = None,
    ):
        self.deck = deck
        self.dictionary = dictionary
        self.translator = translator
        self.language = language
        self.speech = speech or NullSpeechPlayer()
        self.word: Optional[str] = None
        self.sentence = ""
        self.current: Optional[LookupResult] = None
        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def is_open(self) -> bool:
        return self.word is not None

    def open(self, word: str, sentence: str = "") -> Optional["asyncio.Task"]:
        """
        Show `word` and start looking it up. Must be called from a running
        event loop.

        Returns:
            The lookup task; it resolves to a LookupResult, or None if the
            lookup was superseded. A blank word closes any open word and
            returns None without starting a lookup.
        """
        self.dismiss()
        if not word.strip():
            logger.debug("Ignoring lookup for a blank word.")
            return None
        self.word = word.strip()
        self.sentence = sentence.strip()
        self._task = asyncio.get_running_loop().create_task(
            self._lookup(self.word, self.sentence, self._generation)
        )
        return self._task

    def dismiss(self) -> None:
        """Close the current word and abandon its in-flight lookup."""
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug(f"Cancelled lookup for '{self.word}'.")
        self._task = None
        self.speech.cancel()
        self.word = None
        self.sentence = ""
        self.current = None

    async def _lookup(
        self, word: str, sentence: str, generation: int
    ) -> Optional[LookupResult]:
        entry = await self.dictionary.lookup(word)
        translation = ""
        if (
            entry is not None
            and entry.definition
            and self.translator is not None
            and self.language is not None
            and self.language.needs_translation
        ):
            translation = await self.translator.translate(
                entry.definition, self.language.language
            )

        if generation != self._generation:
            return None

        self.current = LookupResult(
            word=word, sentence=sentence, entry=entry, translation=translation
        )
        if entry is not None:
            self.deck.enrich(word, entry)
        return self.current

    def speak(self) -> None:
        if self.word:
            self.speech.speak(self.word)

    def save(self) -> bool:
        """
        Save the open word as a card, with whatever lookup data has arrived.

        Returns:
            False if nothing is open or the deck refused the card.
        """
        if not self.word:
            return False
        entry = self.current.entry if self.current else None
        fields = {"word": self.word, "sentence": self.sentence}
        if entry is not None:
            fields.update(
                definition=entry.definition,
                raw_definition=entry.raw_definition,
                example=entry.example,
                phonetic=entry.phonetic,
                part_of_speech=entry.part_of_speech,
            )
        return self.deck.add(Card(**fields))
