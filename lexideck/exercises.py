"""
Lesson exercise items.

Lessons ship their own comprehension questions as question/answer pairs.
These become multiple-choice items whose distractors are the other
exercises' answers, topped up from a fixed pool of generic wrong answers.
Exercises marked ``fill_blank`` are kept as typed-answer items.
"""

import json
import logging
import random
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .constants import EXERCISE_FALLBACK_DISTRACTORS, OPTIONS_PER_ITEM, QUESTIONS_PER_RUN
from .exceptions import ExerciseFileError
from .models import QuizItem, normalize_word
from .quiz import shuffled, unique_by_word

logger = logging.getLogger(__name__)


class Exercise(BaseModel):
    """A lesson-authored question with its expected answer."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    hint: str = ""
    item_type: str = "multiple_choice"

    @field_validator("question", "answer")
    @classmethod
    def strip_text(cls, v: str) -> str:
        text = v.strip()
        if not text:
            raise ValueError("Exercise question and answer must not be blank.")
        return text

    @field_validator("item_type")
    @classmethod
    def check_item_type(cls, v: str) -> str:
        if v not in ("multiple_choice", "fill_blank"):
            raise ValueError(f"Unknown exercise type: '{v}'.")
        return v


def load_exercises(path: Union[str, Path]) -> List[Exercise]:
    """
    Read lesson exercises from a JSON file: either a list of
    `{question, answer, hint?, itemType?}` objects or an object holding that
    list under "exercises".

    Raises:
        ExerciseFileError: If the file cannot be read, is not JSON, or an
            exercise is invalid.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError, RecursionError) as e:
        raise ExerciseFileError(
            f"Cannot read exercises from {path}: {e}", original_exception=e
        ) from e

    if isinstance(data, dict):
        data = data.get("exercises")
    if not isinstance(data, list):
        raise ExerciseFileError(f"{path} does not contain a list of exercises.")

    exercises: List[Exercise] = []
    for index, record in enumerate(data):
        try:
            exercises.append(Exercise.model_validate(record))
        except ValidationError as e:
            raise ExerciseFileError(
                f"Invalid exercise #{index + 1} in {path}: {e}", original_exception=e
            ) from e
    logger.info(f"Loaded {len(exercises)} exercises from {path}.")
    return exercises


def build_exercise_items(
    exercises: Iterable[Exercise],
    rng: Optional[random.Random] = None,
    limit: int = QUESTIONS_PER_RUN,
) -> List[QuizItem]:
    """
    Turn the first `limit` exercises into quiz items, in lesson order.
    """
    selected = list(exercises)[:limit]
    items: List[QuizItem] = []
    for index, exercise in enumerate(selected):
        if exercise.item_type == "fill_blank":
            items.append(
                QuizItem(
                    prompt=exercise.question,
                    prompt_type="exercise",
                    answer=exercise.answer,
                    explanation=exercise.hint,
                    item_type="fill_blank",
                )
            )
            continue

        other_answers = [
            other.answer for i, other in enumerate(selected) if i != index
        ]
        distractors = _exercise_distractors(exercise.answer, other_answers)
        items.append(
            QuizItem(
                prompt=exercise.question,
                prompt_type="exercise",
                answer=exercise.answer,
                explanation=exercise.hint,
                options=tuple(shuffled([exercise.answer, *distractors], rng)),
            )
        )
    logger.debug(f"Built {len(items)} exercise items.")
    return items


def _exercise_distractors(answer: str, other_answers: List[str]) -> List[str]:
    # Other answers first, then the generic pool, in that order.
    answer_key = normalize_word(answer)
    pool = [
        candidate
        for candidate in unique_by_word([*other_answers, *EXERCISE_FALLBACK_DISTRACTORS])
        if normalize_word(candidate) != answer_key
    ]
    return pool[: OPTIONS_PER_ITEM - 1]


def exercise_score_message(score: int, total: int) -> str:
    """Summary for a lesson exercise run (five questions)."""
    if score == total:
        return "Perfect. You're a superstar."
    if score >= 4:
        return "Excellent work. You're making great progress."
    if score >= 3:
        return "Good effort. Keep practicing."
    return "You're learning. Try again tomorrow."
