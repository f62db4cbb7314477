"""
Pydantic models for saved vocabulary cards, generated quiz items and
dictionary lookups.

Cards serialise with camelCase keys so persisted decks keep the storage
format used by the reading app (``lastReviewAt``, ``intervalHours``...).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def normalize_word(word: Optional[str]) -> str:
    """Identity key for a word: surrounding whitespace removed, lowercased."""
    return str(word or "").strip().lower()


def ensure_utc(ts: datetime) -> datetime:
    """Ensures the given datetime is UTC. Assumes UTC if naive."""
    if ts.tzinfo is None or ts.tzinfo.utcoffset(ts) is None:
        return ts.replace(tzinfo=timezone.utc)
    if ts.tzinfo != timezone.utc:
        return ts.astimezone(timezone.utc)
    return ts


class Grade(str, Enum):
    """
    Learner's self-reported recall quality for a reviewed card.
    """

    Again = "again"
    Hard = "hard"
    Good = "good"
    Easy = "easy"


class Card(BaseModel):
    """
    One learner-saved vocabulary entry.

    ``word`` is the identity key within a deck. The three scheduling fields
    are absent until the card is first graded; a card without
    ``next_review_at`` is due immediately.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    word: str = Field(
        ...,
        description="The saved word. Non-empty, unique per deck ignoring case.",
    )
    sentence: str = Field(
        default="",
        description="Lesson sentence the word was tapped in.",
    )
    definition: str = Field(
        default="",
        description="Learner-friendly definition.",
    )
    raw_definition: str = Field(
        default="",
        description="Definition as returned by the dictionary service.",
    )
    example: str = Field(
        default="",
        description="Dictionary example sentence.",
    )
    phonetic: str = Field(default="", description="Display only.")
    part_of_speech: str = Field(default="", description="Display only.")

    last_review_at: Optional[datetime] = Field(
        default=None,
        description="UTC timestamp of the last grading (None if never reviewed).",
    )
    interval_hours: Optional[float] = Field(
        default=None,
        gt=0,
        description="Current review interval in hours.",
    )
    next_review_at: Optional[datetime] = Field(
        default=None,
        description="UTC timestamp when the card is next due (None means due now).",
    )

    @field_validator("word")
    @classmethod
    def strip_word(cls, v: str) -> str:
        """Reject blank words and drop surrounding whitespace."""
        word = v.strip()
        if not word:
            raise ValueError("Card word must not be blank.")
        return word

    @field_validator(
        "sentence",
        "definition",
        "raw_definition",
        "example",
        "phonetic",
        "part_of_speech",
        mode="before",
    )
    @classmethod
    def none_to_empty(cls, v: Optional[str]) -> str:
        return "" if v is None else v

    @field_validator("last_review_at", "next_review_at")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @property
    def key(self) -> str:
        """Normalised word used for duplicate detection and lookups."""
        return normalize_word(self.word)

    @property
    def is_usable(self) -> bool:
        return bool(self.word.strip())

    def to_record(self) -> dict:
        """JSON-ready dict in the persisted (camelCase) format."""
        return self.model_dump(mode="json", by_alias=True)


class DictionaryEntry(BaseModel):
    """Result of a dictionary lookup for a single word."""

    model_config = ConfigDict(frozen=True)

    word: str
    phonetic: str = ""
    part_of_speech: str = ""
    definition: str = ""
    raw_definition: str = ""
    example: str = ""


class QuizItem(BaseModel):
    """
    One generated multiple-choice (or fill-in-the-blank) assessment item.
    Ephemeral: built per quiz run and never persisted.
    """

    model_config = ConfigDict(frozen=True)

    prompt: str
    prompt_lead: str = ""
    prompt_type: str = Field(
        ...,
        description="example, context, meaning, fallback or exercise.",
    )
    answer: str
    options: Tuple[str, ...] = ()
    explanation: str = Field(
        default="",
        description="Definition or hint shown with feedback.",
    )
    item_type: str = "multiple_choice"

    @field_validator("item_type")
    @classmethod
    def check_item_type_is_allowed(cls, v: str) -> str:
        allowed = {"multiple_choice", "fill_blank"}
        if v not in allowed:
            raise ValueError(
                f"Invalid item_type: '{v}'. Allowed: {allowed}."
            )
        return v

    @model_validator(mode="after")
    def check_options(self) -> "QuizItem":
        """Options must be distinct ignoring case and include the answer."""
        if not self.options:
            return self
        keys = [normalize_word(option) for option in self.options]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate options in {self.options!r}.")
        if normalize_word(self.answer) not in keys:
            raise ValueError(
                f"Answer '{self.answer}' is not among the options."
            )
        return self

    def is_correct(self, response: str) -> bool:
        return normalize_word(response) == normalize_word(self.answer)
