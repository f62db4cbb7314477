"""
Vocabulary test generation and quiz run state.

`build_questions` turns a snapshot of saved cards into multiple-choice items:
each item asks for one saved word, prompted by a masked example or lesson
sentence (or its meaning), with three other words from the deck as
distractors. `QuizRun` tracks one pass through the items and `QuizGate`
ties a run to a live deck, keeping the test locked until the deck is big
enough.
"""

import logging
import math
import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .constants import (
    GENERIC_WORD_POOL,
    MASK_TOKEN,
    MIN_CARDS_FOR_QUIZ,
    OPTIONS_PER_ITEM,
    QUESTIONS_PER_RUN,
    SCORE_THRESHOLDS,
)
from .models import Card, QuizItem, normalize_word
from .signals import quiz_completed, quiz_started

logger = logging.getLogger(__name__)

T = TypeVar("T")


def shuffled(values: Iterable[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy (Fisher-Yates via Random.shuffle)."""
    copy = list(values)
    (rng or random).shuffle(copy)
    return copy


def unique_by_word(values: Iterable[str]) -> List[str]:
    """Drop blanks and case-insensitive repeats, keeping first occurrences."""
    seen = set()
    result = []
    for value in values:
        key = normalize_word(value)
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(value.strip())
    return result


def _word_pattern(word: str) -> "re.Pattern[str]":
    # Words may start or end with punctuation ("C++"), where \b never matches.
    return re.compile(rf"(?<!\w){re.escape(word.strip())}(?!\w)", re.IGNORECASE)


def mask_word(text: str, word: str) -> str:
    """
    Replace whole-word, case-insensitive occurrences of `word` in `text`
    with a blank. Partial-word matches ("cat" in "category") are kept.
    """
    safe_text = str(text or "").strip()
    if not safe_text or not str(word or "").strip():
        return safe_text
    return _word_pattern(word).sub(MASK_TOKEN, safe_text)


def contains_word(text: str, word: str) -> bool:
    if not str(word or "").strip():
        return False
    return bool(_word_pattern(word).search(str(text or "")))


@dataclass(frozen=True)
class Prompt:
    type: str
    lead: str
    text: str


def pick_prompt(card: Card) -> Prompt:
    """
    Choose how to ask for `card.word`.

    Priority: example sentence with the word blanked, lesson sentence with
    the word blanked, the definition, then a generic prompt. A sentence
    that does not contain the word as a whole word cannot be blanked and is
    skipped.
    """
    word = card.word
    example = card.example.strip()
    sentence = card.sentence.strip()
    definition = card.definition.strip()

    if example and contains_word(example, word):
        return Prompt(
            type="example",
            lead="Which word best completes this example sentence?",
            text=mask_word(example, word),
        )

    if sentence and contains_word(sentence, word):
        return Prompt(
            type="context",
            lead="Which word best completes this lesson sentence?",
            text=mask_word(sentence, word),
        )

    if definition:
        return Prompt(
            type="meaning",
            lead="Which word matches this meaning?",
            text=mask_word(definition, word),
        )

    return Prompt(
        type="fallback",
        lead="Which word are we testing?",
        text=mask_word("This word appears in your lesson deck.", word),
    )


def usable_cards(cards: Iterable[Card]) -> List[Card]:
    return [card for card in cards if card.is_usable]


def pick_distractors(
    answer: str,
    candidates: Iterable[str],
    rng: Optional[random.Random] = None,
    amount: int = OPTIONS_PER_ITEM - 1,
    fallback_pool: Sequence[str] = (),
) -> List[str]:
    """
    Pick up to `amount` distractors for `answer`.

    Candidates are deduplicated against each other and the answer (ignoring
    case) and shuffled. When they run short, words from `fallback_pool`
    fill the gap; with an empty pool fewer than `amount` are returned.
    """
    answer_key = normalize_word(answer)
    pool = [c for c in unique_by_word(candidates) if normalize_word(c) != answer_key]
    distractors = shuffled(pool, rng)[:amount]

    if len(distractors) < amount and fallback_pool:
        taken = {normalize_word(d) for d in distractors} | {answer_key}
        extras = [
            word
            for word in unique_by_word(shuffled(fallback_pool, rng))
            if normalize_word(word) not in taken
        ]
        distractors.extend(extras[: amount - len(distractors)])
    return distractors


def build_questions(
    cards: Iterable[Card],
    rng: Optional[random.Random] = None,
    questions_per_run: int = QUESTIONS_PER_RUN,
) -> List[QuizItem]:
    """
    Build a vocabulary test from a snapshot of cards.

    Returns `min(questions_per_run, usable cards)` items in random order.
    Each item has four distinct options including its answer, padded from a
    generic word pool when the deck has fewer than four words.
    """
    usable = usable_cards(cards)
    picked = shuffled(usable, rng)[:questions_per_run]
    words = [card.word for card in usable]

    items: List[QuizItem] = []
    for answer_card in picked:
        distractors = pick_distractors(
            answer_card.word,
            words,
            rng=rng,
            fallback_pool=GENERIC_WORD_POOL,
        )
        prompt = pick_prompt(answer_card)
        items.append(
            QuizItem(
                prompt=prompt.text,
                prompt_lead=prompt.lead,
                prompt_type=prompt.type,
                answer=answer_card.word,
                explanation=answer_card.definition,
                options=tuple(shuffled([answer_card.word, *distractors], rng)),
            )
        )
    logger.debug(f"Built {len(items)} vocabulary questions from {len(usable)} cards.")
    return items


def score_message(score: int, total: int) -> str:
    """Qualitative summary of a vocabulary test result."""
    high, mid = SCORE_THRESHOLDS
    if score == total:
        return "Excellent. You understood all your selected words."
    if score >= math.ceil(total * high):
        return "Very strong result. Keep these words in review."
    if score >= math.ceil(total * mid):
        return "Good progress. Review the missed words once more."
    return "You are still learning these words. Use flashcards and try again."


def feedback_text(correct: bool, item: QuizItem) -> str:
    if item.prompt_type == "exercise":
        if correct:
            return "Correct."
        return f"Incorrect. The answer is: {item.answer}"
    meaning = f" Meaning: {item.explanation}" if item.explanation else ""
    if correct:
        return f"Correct. {item.answer}.{meaning}"
    return f"Incorrect. Correct answer: {item.answer}.{meaning}"


class QuizStatus(str, Enum):
    Idle = "idle"
    InProgress = "in_progress"
    ItemAnswered = "item_answered"
    Finished = "finished"


@dataclass(frozen=True)
class AnswerFeedback:
    correct: bool
    selected: str
    text: str
    can_retry: bool = False


@dataclass(frozen=True)
class QuizResult:
    score: int
    total: int
    message: str

    @property
    def percent(self) -> int:
        return round(self.score / self.total * 100) if self.total else 0


class QuizRun:
    """
    State of one pass through a list of quiz items.

    idle -> in_progress -> item_answered -> (in_progress | finished)

    Multiple-choice answers lock once submitted. Fill-in-the-blank items
    stay open until answered correctly; only a first-try answer scores.
    """

    def __init__(
        self,
        message_fn: Callable[[int, int], str] = score_message,
        on_finished: Optional[Callable[["QuizResult"], None]] = None,
    ):
        self.message_fn = message_fn
        self.on_finished = on_finished
        self.reset()

    def reset(self) -> None:
        """Discard the current items and return to idle."""
        self.items: Tuple[QuizItem, ...] = ()
        self.status = QuizStatus.Idle
        self._begin()

    def _begin(self) -> None:
        self.current_index = 0
        self.score = 0
        self.attempts = 0
        self.selected = ""
        self.feedback: Optional[AnswerFeedback] = None
        self._reported = False

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def answered(self) -> bool:
        return self.status == QuizStatus.ItemAnswered

    @property
    def current_item(self) -> Optional[QuizItem]:
        if self.status in (QuizStatus.InProgress, QuizStatus.ItemAnswered):
            return self.items[self.current_index]
        return None

    def start(self, items: Sequence[QuizItem]) -> bool:
        """
        Begin a run over `items`. An empty list leaves the run idle.

        Returns:
            True if the run started.
        """
        if not items:
            logger.info("No quiz items to start a run with.")
            return False
        self.items = tuple(items)
        self._begin()
        self.status = QuizStatus.InProgress
        return True

    def restart(self) -> bool:
        """Replay the same items from the first one."""
        return self.start(self.items)

    def select(self, option: str) -> Optional[AnswerFeedback]:
        """
        Submit an answer for the current item.

        Returns:
            Feedback for the answer, or None if no answer is accepted right
            now (idle, finished, or the item is already answered).
        """
        item = self.current_item
        if item is None or self.status != QuizStatus.InProgress:
            return None

        correct = item.is_correct(option)
        self.attempts += 1
        self.selected = option
        retry = item.item_type == "fill_blank" and not correct
        if correct and self.attempts == 1:
            self.score += 1
        self.feedback = AnswerFeedback(
            correct=correct,
            selected=option,
            text=feedback_text(correct, item),
            can_retry=retry,
        )
        if not retry:
            self.status = QuizStatus.ItemAnswered
        return self.feedback

    def advance(self) -> QuizStatus:
        """Move past an answered item; finishes after the last one."""
        if self.status != QuizStatus.ItemAnswered:
            return self.status
        self.current_index += 1
        self.attempts = 0
        self.selected = ""
        self.feedback = None
        if self.current_index >= self.total:
            self.status = QuizStatus.Finished
            self._report()
        else:
            self.status = QuizStatus.InProgress
        return self.status

    @property
    def result(self) -> Optional[QuizResult]:
        if self.status != QuizStatus.Finished:
            return None
        return QuizResult(
            score=self.score,
            total=self.total,
            message=self.message_fn(self.score, self.total),
        )

    def _report(self) -> None:
        if self._reported or self.on_finished is None:
            return
        self._reported = True
        result = self.result
        if result is not None:
            self.on_finished(result)


class QuizGate:
    """
    Vocabulary test bound to a live deck.

    The test unlocks once the deck holds `min_cards` usable cards. The gate
    re-checks on every deck change and drops an active run if the deck
    shrinks below the threshold.
    """

    def __init__(
        self,
        deck_manager,
        rng: Optional[random.Random] = None,
        min_cards: int = MIN_CARDS_FOR_QUIZ,
        questions_per_run: int = QUESTIONS_PER_RUN,
    ):
        self.deck = deck_manager
        self.rng = rng
        self.min_cards = min_cards
        self.questions_per_run = questions_per_run
        self.run = QuizRun(on_finished=self._on_finished)
        self._unsubscribe = deck_manager.subscribe(self._on_deck_changed)

    @property
    def usable_count(self) -> int:
        return len(usable_cards(self.deck.cards))

    @property
    def is_unlocked(self) -> bool:
        return self.usable_count >= self.min_cards

    @property
    def question_count(self) -> int:
        return min(self.questions_per_run, self.usable_count)

    def _on_deck_changed(self, cards) -> None:
        if self.run.status != QuizStatus.Idle and not self.is_unlocked:
            logger.info(
                f"Deck dropped below {self.min_cards} cards; leaving the quiz."
            )
            self.run.reset()

    def _on_finished(self, result: QuizResult) -> None:
        quiz_completed.send(
            self,
            lesson_id=self.deck.lesson_id,
            score=result.score,
            total=result.total,
        )

    def start(self) -> bool:
        """
        Build fresh questions from the deck and start (or retake) the test.

        Returns:
            False if the test is locked or no questions could be built.
        """
        if not self.is_unlocked:
            return False
        items = build_questions(
            self.deck.cards, rng=self.rng, questions_per_run=self.questions_per_run
        )
        if not self.run.start(items):
            return False
        quiz_started.send(
            self, lesson_id=self.deck.lesson_id, question_count=len(items)
        )
        return True

    def close(self) -> None:
        self._unsubscribe()
