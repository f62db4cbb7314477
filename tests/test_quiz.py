"""
Tests for vocabulary test generation and the quiz run state machine.
"""

import random
from unittest.mock import MagicMock

import pytest

from lexideck.constants import GENERIC_WORD_POOL, MASK_TOKEN
from lexideck.models import Card, QuizItem
from lexideck.quiz import (
    QuizGate,
    QuizRun,
    QuizStatus,
    build_questions,
    contains_word,
    mask_word,
    pick_distractors,
    pick_prompt,
    score_message,
    shuffled,
)
from lexideck.signals import quiz_completed, quiz_started


def make_item(answer: str, options=None, item_type: str = "multiple_choice") -> QuizItem:
    if options is None and item_type == "multiple_choice":
        options = (answer, "window", "market", "promise")
    return QuizItem(
        prompt=f"Which word is {MASK_TOKEN}?",
        prompt_type="meaning" if item_type == "multiple_choice" else "exercise",
        answer=answer,
        options=tuple(options or ()),
        explanation="A meaning.",
        item_type=item_type,
    )


class TestMasking:
    def test_whole_word_only(self):
        assert mask_word("The cat sat in the category.", "cat") == "The ____ sat in the category."

    def test_case_insensitive_and_all_occurrences(self):
        assert mask_word("Whisper, whisper!", "whisper") == "____, ____!"

    def test_regex_characters_in_word(self):
        assert mask_word("Use C.O.D please", "c.o.d") == "Use ____ please"
        assert mask_word("Use CxOxD please", "c.o.d") == "Use CxOxD please"

    def test_blank_inputs(self):
        assert mask_word("  text ", "") == "text"
        assert mask_word("", "word") == ""

    def test_contains_word(self):
        assert contains_word("A Lantern glowed.", "lantern")
        assert not contains_word("Lanterns glowed.", "lantern")

    def test_words_with_edge_punctuation(self):
        assert mask_word("I write C++ daily; c++ is fun.", "C++") == "I write ____ daily; ____ is fun."
        assert mask_word("Ask Mr. Tanaka.", "Mr.") == "Ask ____ Tanaka."
        assert contains_word("Made in the U.S.", "U.S.")
        assert not contains_word("ABC++ compiler", "C++")


class TestPickPrompt:
    def test_example_first(self):
        card = Card(word="harbor", example="Ships in the harbor.", sentence="The harbor froze.")
        prompt = pick_prompt(card)
        assert prompt.type == "example"
        assert prompt.text == "Ships in the ____."

    def test_sentence_when_no_example(self):
        prompt = pick_prompt(Card(word="lantern", sentence="She lit a Lantern."))
        assert prompt.type == "context"
        assert prompt.text == "She lit a ____."

    def test_example_without_word_is_skipped(self):
        card = Card(word="run", example="He was running late.", definition="To move fast.")
        prompt = pick_prompt(card)
        assert prompt.type == "meaning"
        assert prompt.text == "To move fast."

    def test_definition_is_masked(self):
        prompt = pick_prompt(Card(word="meadow", definition="A meadow is a grassy field."))
        assert prompt.type == "meaning"
        assert "meadow" not in prompt.text.lower()

    def test_fallback(self):
        prompt = pick_prompt(Card(word="glimmer"))
        assert prompt.type == "fallback"
        assert prompt.lead == "Which word are we testing?"

    @pytest.mark.parametrize("word", ["deck", "Lesson", "word", "your"])
    def test_fallback_never_shows_the_word(self, word):
        prompt = pick_prompt(Card(word=word))
        assert prompt.type == "fallback"
        assert not contains_word(prompt.text, word)
        assert MASK_TOKEN in prompt.text

    def test_definition_with_punctuated_word_is_masked(self):
        prompt = pick_prompt(Card(word="C++", definition="C++ is a programming language."))
        assert prompt.type == "meaning"
        assert prompt.text == "____ is a programming language."


class TestDistractors:
    def test_excludes_answer_and_duplicates(self, rng):
        result = pick_distractors("Harbor", ["harbor", "window", "Window", "lamp", "field"], rng)
        assert sorted(result) == ["field", "lamp", "window"]

    def test_pads_from_fallback_pool(self, rng):
        result = pick_distractors("harbor", ["lamp"], rng, fallback_pool=GENERIC_WORD_POOL)
        assert len(result) == 3
        assert result[0] == "lamp"
        assert all(word in GENERIC_WORD_POOL for word in result[1:])

    def test_short_without_pool(self, rng):
        assert pick_distractors("harbor", ["lamp"], rng) == ["lamp"]

    def test_shuffled_does_not_mutate(self, rng):
        values = [1, 2, 3, 4]
        result = shuffled(values, rng)
        assert values == [1, 2, 3, 4]
        assert sorted(result) == values


class TestBuildQuestions:
    def test_six_cards_give_five_items(self, vocabulary_cards, rng):
        items = build_questions(vocabulary_cards, rng=rng)
        assert len(items) == 5
        answers = [item.answer for item in items]
        assert len(set(answers)) == 5
        deck_words = {card.word for card in vocabulary_cards}
        for item in items:
            assert len(item.options) == 4
            assert len({o.lower() for o in item.options}) == 4
            assert item.answer in item.options
            assert set(item.options) <= deck_words
            assert not contains_word(item.prompt, item.answer)

    def test_small_deck_pads_options(self, rng):
        cards = [Card(word="harbor"), Card(word="lantern")]
        items = build_questions(cards, rng=rng)
        assert len(items) == 2
        for item in items:
            assert len(item.options) == 4
            extras = set(item.options) - {"harbor", "lantern"}
            assert extras <= set(GENERIC_WORD_POOL)

    def test_pool_word_in_deck_not_repeated(self, rng):
        cards = [Card(word="Journey"), Card(word="window")]
        for item in build_questions(cards, rng=rng):
            assert len({o.lower() for o in item.options}) == 4

    def test_answer_never_in_prompt_for_bare_cards(self, rng):
        cards = [Card(word=w) for w in ["lesson", "deck", "apple", "river", "stone"]]
        items = build_questions(cards, rng=rng)
        assert len(items) == 5
        for item in items:
            assert not contains_word(item.prompt, item.answer)

    def test_punctuated_word_not_leaked(self, rng):
        cards = [
            Card(word="C++", definition="C++ is a programming language."),
            Card(word="U.S.", example="She moved to the U.S. last year."),
        ]
        for item in build_questions(cards, rng=rng):
            assert item.answer not in item.prompt

    def test_empty_deck(self, rng):
        assert build_questions([], rng=rng) == []

    def test_seeded_rng_is_reproducible(self, vocabulary_cards):
        first = build_questions(vocabulary_cards, rng=random.Random(7))
        second = build_questions(vocabulary_cards, rng=random.Random(7))
        assert first == second

    def test_explanation_is_definition(self, rng):
        cards = [Card(word="harbor", definition="A port.")]
        assert build_questions(cards, rng=rng)[0].explanation == "A port."


class TestScoreMessage:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (5, "Excellent."),
            (4, "Very strong result."),
            (3, "Good progress."),
            (2, "You are still learning"),
            (0, "You are still learning"),
        ],
    )
    def test_bands_for_five(self, score, expected):
        assert score_message(score, 5).startswith(expected)

    def test_small_totals(self):
        assert score_message(1, 1).startswith("Excellent.")
        assert score_message(1, 2).startswith("You are still learning")
        assert score_message(2, 3).startswith("Good progress.")


class TestQuizRun:
    def test_idle_until_started(self):
        run = QuizRun()
        assert run.status == QuizStatus.Idle
        assert run.select("anything") is None
        assert run.start([]) is False
        assert run.status == QuizStatus.Idle

    def test_full_run(self):
        on_finished = MagicMock()
        run = QuizRun(on_finished=on_finished)
        assert run.start([make_item("harbor"), make_item("lantern")])

        feedback = run.select("harbor")
        assert feedback.correct
        assert feedback.text.startswith("Correct. harbor.")
        assert run.status == QuizStatus.ItemAnswered
        assert run.select("window") is None
        assert run.advance() == QuizStatus.InProgress

        feedback = run.select("window")
        assert not feedback.correct
        assert "Correct answer: lantern." in feedback.text
        assert run.advance() == QuizStatus.Finished

        result = run.result
        assert (result.score, result.total, result.percent) == (1, 2, 50)
        on_finished.assert_called_once_with(result)
        assert run.advance() == QuizStatus.Finished
        on_finished.assert_called_once()

    def test_advance_requires_answer(self):
        run = QuizRun()
        run.start([make_item("harbor")])
        assert run.advance() == QuizStatus.InProgress
        assert run.current_index == 0

    def test_restart(self):
        run = QuizRun()
        run.start([make_item("harbor")])
        run.select("harbor")
        run.advance()
        assert run.restart()
        assert run.score == 0
        assert run.status == QuizStatus.InProgress

    def test_fill_blank_retry_scores_first_try_only(self):
        run = QuizRun()
        run.start([make_item("Tokyo", item_type="fill_blank"), make_item("Kyoto", item_type="fill_blank")])

        feedback = run.select("Osaka")
        assert feedback.can_retry
        assert run.status == QuizStatus.InProgress
        feedback = run.select(" tokyo ")
        assert feedback.correct
        assert run.status == QuizStatus.ItemAnswered
        run.advance()

        assert run.select("KYOTO").correct
        run.advance()
        assert run.result.score == 1


class TestQuizGate:
    def test_locked_below_threshold(self, deck_manager, rng):
        for word in ["a1", "b2", "c3", "d4"]:
            deck_manager.add(Card(word=word))
        gate = QuizGate(deck_manager, rng=rng)
        assert not gate.is_unlocked
        assert gate.start() is False
        deck_manager.add(Card(word="e5"))
        assert gate.is_unlocked
        assert gate.question_count == 5

    def test_start_and_complete(self, deck_manager, vocabulary_cards, rng):
        for card in vocabulary_cards:
            deck_manager.add(card)
        gate = QuizGate(deck_manager, rng=rng)
        started, completed = MagicMock(), MagicMock()
        with quiz_started.connected_to(started, sender=gate), \
                quiz_completed.connected_to(completed, sender=gate):
            assert gate.start()
            run = gate.run
            while run.status == QuizStatus.InProgress:
                run.select(run.current_item.answer)
                run.advance()

        started.assert_called_once_with(gate, lesson_id="lesson-1", question_count=5)
        completed.assert_called_once_with(gate, lesson_id="lesson-1", score=5, total=5)
        assert run.result.message.startswith("Excellent.")

    def test_shrinking_deck_ends_run(self, deck_manager, vocabulary_cards, rng):
        for card in vocabulary_cards[:5]:
            deck_manager.add(card)
        gate = QuizGate(deck_manager, rng=rng)
        assert gate.start()
        deck_manager.remove(vocabulary_cards[0].word)
        assert gate.run.status == QuizStatus.Idle
        assert gate.run.current_item is None

    def test_close_unsubscribes(self, deck_manager, vocabulary_cards, rng):
        for card in vocabulary_cards[:5]:
            deck_manager.add(card)
        gate = QuizGate(deck_manager, rng=rng)
        gate.start()
        gate.close()
        deck_manager.remove(vocabulary_cards[0].word)
        assert gate.run.status == QuizStatus.InProgress
