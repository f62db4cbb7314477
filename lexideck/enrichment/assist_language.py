"""Persisted choice of the learner's assist (helper) language."""

import logging
from typing import Optional

from ..constants import ASSIST_LANGUAGE_STORAGE_KEY, SOURCE_LANGUAGE, TRANSLATION_LANGUAGES
from ..exceptions import StorageError
from ..signals import StateCell, assist_language_updated
from ..storage.store import KeyValueStore

logger = logging.getLogger(__name__)

ALLOWED_LANGUAGES = (SOURCE_LANGUAGE, *TRANSLATION_LANGUAGES)


def normalize_language(value: Optional[str]) -> str:
    """Known language codes pass through; anything else becomes English."""
    lang = str(value or "").strip().lower()
    return lang if lang in ALLOWED_LANGUAGES else SOURCE_LANGUAGE


class AssistLanguagePreference:
    """Observable assist-language setting backed by a key-value store."""

    def __init__(self, store: KeyValueStore, key: str = ASSIST_LANGUAGE_STORAGE_KEY):
        self.store = store
        self.key = key
        self._state: StateCell[str] = StateCell(SOURCE_LANGUAGE)

    @property
    def language(self) -> str:
        return self._state.value

    @property
    def needs_translation(self) -> bool:
        return self.language != SOURCE_LANGUAGE

    def subscribe(self, callback):
        return self._state.subscribe(callback)

    def load(self) -> str:
        try:
            saved = self.store.get(self.key)
        except StorageError as e:
            logger.warning(f"Could not read assist language: {e}")
            saved = None
        self._state.set(normalize_language(saved))
        return self.language

    def set(self, language: str) -> str:
        normalized = normalize_language(language)
        self._state.set(normalized)
        try:
            self.store.set(self.key, normalized)
        except StorageError as e:
            logger.warning(f"Could not save assist language: {e}")
        assist_language_updated.send(self, language=normalized)
        return normalized
