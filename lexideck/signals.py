"""
Named event signals and the observable state cell.

Signals carry minimal keyword payloads (counts, identifiers) for analytics
or UI code living outside the engine:

    from lexideck.signals import card_added

    @card_added.connect
    def on_card_added(sender, **kwargs):
        ...

`StateCell` is the owned mutable value behind the deck: subscribers are
called with the new value after every change.
"""

import logging
from typing import Callable, Generic, List, TypeVar

from blinker import Namespace

logger = logging.getLogger(__name__)

deck_signals = Namespace()

# Payload: lesson_id, card_count
deck_loaded = deck_signals.signal("deck_loaded")

# Payload: lesson_id, word, card_count
card_added = deck_signals.signal("card_added")

# Payload: lesson_id, word, card_count
card_removed = deck_signals.signal("card_removed")

# Payload: lesson_id, word, grade, interval_hours
review_graded = deck_signals.signal("review_graded")

# Payload: lesson_id, word
card_enriched = deck_signals.signal("card_enriched")

quiz_signals = Namespace()

# Payload: lesson_id, question_count
quiz_started = quiz_signals.signal("quiz_started")

# Payload: lesson_id, score, total
quiz_completed = quiz_signals.signal("quiz_completed")

lesson_signals = Namespace()

# Payload: lesson_id, average
lesson_rated = lesson_signals.signal("lesson_rated")

# Payload: language
assist_language_updated = lesson_signals.signal("assist_language_updated")


T = TypeVar("T")


class StateCell(Generic[T]):
    """A mutable value that notifies subscribers whenever it is replaced."""

    def __init__(self, initial: T):
        self._value = initial
        self._subscribers: List[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        for callback in list(self._subscribers):
            try:
                callback(value)
            except Exception:
                logger.exception(f"State subscriber {callback!r} failed")

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """
        Register `callback` and return a function that unregisters it.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe
