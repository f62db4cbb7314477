"""
Scheduling, deck and quiz constants.

Pure constants only. Runtime settings (paths, endpoints, timeouts) live in
lexideck.config.
"""
from typing import Dict, Tuple

# --- Interval function ---

# Interval assumed for a card that has never been graded.
DEFAULT_BASE_INTERVAL_HOURS: float = 8

MIN_INTERVAL_HOURS: int = 1
MAX_INTERVAL_HOURS: int = 24 * 45  # 45 days

# Keyed by Grade value. again < hard < good < easy must hold.
GRADE_MULTIPLIERS: Dict[str, float] = {
    "again": 0.35,
    "hard": 0.8,
    "good": 1.25,
    "easy": 1.8,
}

# --- Deck ---

MAX_CARDS: int = 10
DECK_STORAGE_PREFIX: str = "ovi-deck-"

# --- Vocabulary test ---

MIN_CARDS_FOR_QUIZ: int = 5
QUESTIONS_PER_RUN: int = 5
OPTIONS_PER_ITEM: int = 4
MASK_TOKEN: str = "____"

# Ratios of the total; compared against ceil(total * ratio).
SCORE_THRESHOLDS: Tuple[float, float] = (0.8, 0.6)

# Used only when a deck has fewer than three other words to offer.
GENERIC_WORD_POOL: Tuple[str, ...] = (
    "journey",
    "window",
    "promise",
    "harvest",
    "whisper",
    "market",
)

# --- Lesson exercises ---

EXERCISE_FALLBACK_DISTRACTORS: Tuple[str, ...] = (
    "It happened in a different city.",
    "The story does not say that.",
    "It was never mentioned in the lesson.",
    "That answer is not in today's lesson.",
    "This was not part of the story.",
)

# --- Assist language ---

SOURCE_LANGUAGE: str = "en"
TRANSLATION_LANGUAGES: Tuple[str, ...] = ("ja", "es")
ASSIST_LANGUAGE_STORAGE_KEY: str = "ovi-assist-language"
TRANSLATION_MAX_CHARS: int = 280

# --- Lesson ratings ---

RATING_STORAGE_PREFIX: str = "episode-rating-"
LEGACY_FEEDBACK_PREFIX: str = "feedback-"
RATING_SCALE: Tuple[int, int] = (1, 5)
RATING_QUESTIONS: Tuple[Tuple[str, str], ...] = (
    ("interest", "How interesting was this story?"),
    ("clarity", "How clear was the explanation?"),
    ("vocabulary", "How useful were the new words?"),
    ("culture", "Was the culture part interesting?"),
    ("recommend", "Would you recommend this lesson?"),
)
