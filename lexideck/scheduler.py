# lexideck/scheduler.py

"""
Interval function and review scheduler for saved vocabulary cards.

Intervals are kept in hours. Each grade scales the previous interval by a
fixed multiplier and the result is clamped to between one hour and 45 days.
"""

import datetime
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field, model_validator

from .constants import (
    DEFAULT_BASE_INTERVAL_HOURS,
    GRADE_MULTIPLIERS,
    MAX_INTERVAL_HOURS,
    MIN_INTERVAL_HOURS,
)
from .models import Card, Grade, ensure_utc

logger = logging.getLogger(__name__)

GradeLike = Union[Grade, str]
Clock = Callable[[], datetime.datetime]


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; intervals round .5 upwards.
    return int(math.floor(value + 0.5))


def coerce_grade(grade: GradeLike) -> Grade:
    """Maps a Grade or its string value to Grade and validates."""
    if isinstance(grade, Grade):
        return grade
    try:
        return Grade(str(grade).strip().lower())
    except ValueError:
        raise ValueError(
            f"Invalid grade: {grade!r}. Must be one of again, hard, good, easy."
        ) from None


class SchedulerConfig(BaseModel):
    """Configuration for the interval scheduler."""

    default_base_hours: float = Field(default=DEFAULT_BASE_INTERVAL_HOURS, gt=0)
    min_interval_hours: int = Field(default=MIN_INTERVAL_HOURS, ge=1)
    max_interval_hours: int = Field(default=MAX_INTERVAL_HOURS, ge=1)
    multipliers: Dict[Grade, float] = Field(
        default_factory=lambda: {
            Grade(name): value for name, value in GRADE_MULTIPLIERS.items()
        }
    )

    @model_validator(mode="after")
    def check_bounds(self) -> "SchedulerConfig":
        if self.min_interval_hours > self.max_interval_hours:
            raise ValueError("min_interval_hours exceeds max_interval_hours.")
        missing = set(Grade) - set(self.multipliers)
        if missing:
            raise ValueError(
                f"Missing multipliers for grades: {sorted(g.value for g in missing)}"
            )
        return self


DEFAULT_CONFIG = SchedulerConfig()


def next_interval_hours(
    previous_hours: Optional[float],
    grade: GradeLike,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> int:
    """
    Maps the previous interval and a grade to the next interval in hours.

    A missing (or zero) previous interval falls back to the default base
    interval. The result is always within the configured bounds.

    Raises:
        ValueError: If the grade is not one of again, hard, good, easy.
    """
    multiplier = config.multipliers[coerce_grade(grade)]
    base = max(previous_hours or config.default_base_hours, 1)
    hours = _round_half_up(base * multiplier)
    return min(max(hours, config.min_interval_hours), config.max_interval_hours)


def compute_next_review_at(
    last_review_at: Optional[datetime.datetime],
    previous_hours: Optional[float],
    grade: GradeLike,
    now: Optional[datetime.datetime] = None,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> datetime.datetime:
    """Returns when a card graded with `grade` becomes due again."""
    start = ensure_utc(last_review_at or now or utc_now())
    hours = next_interval_hours(previous_hours, grade, config)
    return start + datetime.timedelta(hours=hours)


def is_due_for_review(
    card: Card, now: Optional[datetime.datetime] = None
) -> bool:
    """A card is due when it was never scheduled or its due time has passed."""
    if card.next_review_at is None:
        return True
    return card.next_review_at <= ensure_utc(now or utc_now())


def get_due_cards(
    cards: Iterable[Card], now: Optional[datetime.datetime] = None
) -> List[Card]:
    """Due cards in their original order. Recomputed on every call."""
    moment = ensure_utc(now or utc_now())
    return [card for card in cards if is_due_for_review(card, moment)]


@dataclass
class SchedulerOutput:
    interval_hours: int
    last_review_at: datetime.datetime
    next_review_at: datetime.datetime


class IntervalScheduler:
    """
    Schedules card reviews with the multiplier interval function.

    The clock is injectable so callers (and tests) control "now".
    """

    def __init__(
        self,
        config: Optional[SchedulerConfig] = None,
        clock: Optional[Clock] = None,
    ):
        if config is None:
            config = SchedulerConfig()
        self.config = config
        self._clock = clock or utc_now

    def now(self) -> datetime.datetime:
        return ensure_utc(self._clock())

    def compute_next_state(
        self,
        card: Card,
        grade: GradeLike,
        review_ts: Optional[datetime.datetime] = None,
    ) -> SchedulerOutput:
        """
        Computes the scheduling fields of a card graded at `review_ts`.

        The new interval is derived from the card's current interval and
        the next due time is measured from the grading timestamp.

        Raises:
            ValueError: If the grade is invalid.
        """
        ts = ensure_utc(review_ts or self.now())
        interval = next_interval_hours(card.interval_hours, grade, self.config)
        next_review_at = compute_next_review_at(
            ts, card.interval_hours, grade, config=self.config
        )
        logger.debug(
            f"Scheduled '{card.word}' ({coerce_grade(grade).value}): "
            f"{card.interval_hours} -> {interval}h, due {next_review_at.isoformat()}"
        )
        return SchedulerOutput(
            interval_hours=interval,
            last_review_at=ts,
            next_review_at=next_review_at,
        )

    def is_due(self, card: Card) -> bool:
        return is_due_for_review(card, self.now())

    def due_cards(self, cards: Iterable[Card]) -> List[Card]:
        return get_due_cards(cards, self.now())
