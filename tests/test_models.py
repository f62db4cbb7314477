import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from lexideck.models import Card, DictionaryEntry, Grade, QuizItem, ensure_utc, normalize_word


class TestNormalization:
    def test_normalize_word(self):
        assert normalize_word("  Journey ") == "journey"
        assert normalize_word(None) == ""

    def test_ensure_utc_naive(self):
        naive = datetime(2024, 1, 1, 12, 0)
        assert ensure_utc(naive).tzinfo == timezone.utc

    def test_ensure_utc_converts_offsets(self):
        tokyo = timezone(timedelta(hours=9))
        ts = datetime(2024, 1, 1, 9, 0, tzinfo=tokyo)
        assert ensure_utc(ts) == datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)


class TestCardModel:
    def test_minimal_card(self):
        card = Card(word="  lantern ")
        assert card.word == "lantern"
        assert card.key == "lantern"
        assert card.last_review_at is None
        assert card.interval_hours is None
        assert card.next_review_at is None
        assert card.is_usable

    @pytest.mark.parametrize("word", ["", "   "])
    def test_blank_word_rejected(self, word):
        with pytest.raises(ValidationError):
            Card(word=word)

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValidationError):
            Card(word="w", interval_hours=0)

    def test_frozen(self):
        card = Card(word="w")
        with pytest.raises(ValidationError):
            card.word = "other"

    def test_none_text_fields_become_empty(self):
        card = Card(word="w", definition=None, example=None)
        assert card.definition == ""
        assert card.example == ""

    def test_record_uses_camel_case(self):
        ts = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        card = Card(
            word="harbor",
            raw_definition="A place of shelter for ships.",
            part_of_speech="noun",
            last_review_at=ts,
            interval_hours=7,
            next_review_at=ts + timedelta(hours=7),
        )
        record = card.to_record()
        assert record["rawDefinition"] == "A place of shelter for ships."
        assert record["partOfSpeech"] == "noun"
        assert record["intervalHours"] == 7
        assert "lastReviewAt" in record and "nextReviewAt" in record
        json.dumps(record)

    def test_loads_camel_case_record_and_ignores_unknown_keys(self):
        card = Card.model_validate(
            {
                "word": "harbor",
                "intervalHours": 20,
                "nextReviewAt": "2024-01-01T10:00:00Z",
                "savedFrom": "reader",
            }
        )
        assert card.interval_hours == 20
        assert card.next_review_at == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_record_round_trip_preserves_schedule(self):
        ts = datetime(2024, 5, 2, 8, 30, tzinfo=timezone.utc)
        card = Card(word="meadow", last_review_at=ts, interval_hours=13, next_review_at=ts)
        assert Card.model_validate(card.to_record()) == card


class TestGrade:
    def test_values(self):
        assert [g.value for g in Grade] == ["again", "hard", "good", "easy"]


class TestDictionaryEntry:
    def test_defaults(self):
        entry = DictionaryEntry(word="harbor")
        assert entry.definition == ""
        assert entry.phonetic == ""


class TestQuizItem:
    def test_valid_item(self):
        item = QuizItem(
            prompt="The boats rested in the ____.",
            prompt_type="example",
            answer="harbor",
            options=("window", "harbor", "market", "promise"),
        )
        assert item.item_type == "multiple_choice"
        assert item.is_correct(" HARBOR ")
        assert not item.is_correct("window")

    def test_answer_must_be_an_option(self):
        with pytest.raises(ValidationError, match="not among the options"):
            QuizItem(
                prompt="p", prompt_type="meaning", answer="harbor",
                options=("window", "market", "promise", "journey"),
            )

    def test_options_distinct_ignoring_case(self):
        with pytest.raises(ValidationError, match="Duplicate options"):
            QuizItem(
                prompt="p", prompt_type="meaning", answer="harbor",
                options=("harbor", "Harbor", "market", "promise"),
            )

    def test_invalid_item_type(self):
        with pytest.raises(ValidationError, match="Invalid item_type"):
            QuizItem(prompt="p", prompt_type="exercise", answer="a", item_type="essay")

    def test_fill_blank_without_options(self):
        item = QuizItem(prompt="p", prompt_type="exercise", answer="Tokyo", item_type="fill_blank")
        assert item.options == ()
