"""
Lesson ratings: five quick questions answered on a 1 to 5 scale.

A rating is saved once every question has an answer. The average feeds the
"popular" ordering of lessons. Each save also writes the older flat
feedback record so readers of that format keep working.
"""

import json
import logging
import time
from typing import Dict, Optional

from .constants import (
    LEGACY_FEEDBACK_PREFIX,
    RATING_QUESTIONS,
    RATING_SCALE,
    RATING_STORAGE_PREFIX,
)
from .exceptions import StorageError
from .signals import lesson_rated
from .storage.store import KeyValueStore

logger = logging.getLogger(__name__)

QUESTION_IDS = tuple(question_id for question_id, _ in RATING_QUESTIONS)


def compute_average(responses: Dict[str, object]) -> float:
    """Mean of the valid answers, rounded to 2 places; 0 when there are none."""
    low, high = RATING_SCALE
    values = []
    for question_id in QUESTION_IDS:
        try:
            value = float(responses.get(question_id))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            continue
        if low <= value <= high:
            values.append(value)
    if not values:
        return 0.0
    return round(sum(values) / len(values), 2)


class LessonRating:
    """Collects and stores the rating for one lesson."""

    def __init__(self, store: KeyValueStore, lesson_id: str):
        self.store = store
        self.lesson_id = lesson_id
        self.responses: Dict[str, int] = {}
        self.average = 0.0
        self.submitted = False

    @property
    def storage_key(self) -> str:
        return f"{RATING_STORAGE_PREFIX}{self.lesson_id}"

    @property
    def legacy_key(self) -> str:
        return f"{LEGACY_FEEDBACK_PREFIX}{self.lesson_id}"

    def load(self) -> bool:
        """
        Restore a complete saved rating. Partial or unreadable records are
        ignored.

        Returns:
            True if a saved rating was restored.
        """
        try:
            raw = self.store.get(self.storage_key)
            parsed = json.loads(raw) if raw else None
        except (StorageError, ValueError) as e:
            logger.warning(f"Ignoring unreadable rating for '{self.lesson_id}': {e}")
            return False
        if not isinstance(parsed, dict):
            return False
        saved = parsed.get("responses")
        if not isinstance(saved, dict) or len(saved) != len(QUESTION_IDS):
            return False

        self.responses = dict(saved)
        try:
            self.average = float(parsed.get("average") or compute_average(saved))
        except (TypeError, ValueError):
            self.average = compute_average(saved)
        self.submitted = True
        return True

    def answer(self, question_id: str, value: int) -> bool:
        """
        Record one answer; saves automatically once all are in.

        Returns:
            True if this answer completed (and saved) the rating.

        Raises:
            ValueError: For an unknown question or out-of-range value.
        """
        if question_id not in QUESTION_IDS:
            raise ValueError(f"Unknown rating question: {question_id!r}")
        low, high = RATING_SCALE
        if not low <= int(value) <= high:
            raise ValueError(f"Rating must be between {low} and {high}, got {value}.")
        if self.submitted:
            return False

        self.responses = {**self.responses, question_id: int(value)}
        if len(self.responses) == len(QUESTION_IDS):
            self._save()
            return True
        return False

    def edit(self) -> None:
        """Reopen a submitted rating so answers can be changed."""
        self.submitted = False

    def _save(self, rated_at: Optional[int] = None) -> None:
        self.average = compute_average(self.responses)
        self.submitted = True
        rated_at = rated_at if rated_at is not None else int(time.time() * 1000)
        payload = {
            "responses": self.responses,
            "average": self.average,
            "count": len(QUESTION_IDS),
            "ratedAt": rated_at,
            "version": 1,
        }
        legacy = {**self.responses, "timestamp": rated_at}
        try:
            self.store.set(self.storage_key, json.dumps(payload))
            self.store.set(self.legacy_key, json.dumps(legacy))
        except StorageError as e:
            logger.warning(f"Failed to save rating for '{self.lesson_id}': {e}")
        lesson_rated.send(self, lesson_id=self.lesson_id, average=self.average)
