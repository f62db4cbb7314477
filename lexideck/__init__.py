"""Lexideck - per-lesson vocabulary decks with spaced-repetition review."""

from .models import Card, Grade, QuizItem, DictionaryEntry
from .constants import MAX_CARDS, MIN_CARDS_FOR_QUIZ, QUESTIONS_PER_RUN
from .scheduler import (
    IntervalScheduler,
    SchedulerConfig,
    compute_next_review_at,
    get_due_cards,
    is_due_for_review,
    next_interval_hours,
)
from .deck_manager import DeckManager
from .quiz import QuizGate, QuizRun, build_questions
from .exercises import Exercise, build_exercise_items, load_exercises
from .ratings import LessonRating
from .storage import DuckDBKeyValueStore, KeyValueStore, MemoryKeyValueStore

__all__ = [
    "Card",
    "Grade",
    "QuizItem",
    "DictionaryEntry",
    "MAX_CARDS",
    "MIN_CARDS_FOR_QUIZ",
    "QUESTIONS_PER_RUN",
    "IntervalScheduler",
    "SchedulerConfig",
    "compute_next_review_at",
    "get_due_cards",
    "is_due_for_review",
    "next_interval_hours",
    "DeckManager",
    "QuizGate",
    "QuizRun",
    "build_questions",
    "Exercise",
    "build_exercise_items",
    "load_exercises",
    "LessonRating",
    "DuckDBKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
]
