import json
from pathlib import Path

import pytest

from lexideck.exceptions import MarshallingError, StorageConnectionError, StorageError
from lexideck.models import Card
from lexideck.storage import DuckDBKeyValueStore, MemoryKeyValueStore
from lexideck.storage.connection import ConnectionHandler
from lexideck.storage.marshalling import cards_from_json, cards_to_json, record_to_card


class TestKeyValueStores:
    def test_get_missing_key(self, any_store):
        assert any_store.get("ovi-deck-none") is None

    def test_set_overwrites(self, any_store):
        any_store.set("k", "one")
        any_store.set("k", "two")
        assert any_store.get("k") == "two"

    def test_delete(self, any_store):
        any_store.set("k", "v")
        any_store.delete("k")
        any_store.delete("never-there")
        assert any_store.get("k") is None

    def test_keys_by_prefix(self, any_store):
        for key in ["ovi-deck-b", "ovi-deck-a", "episode-rating-a"]:
            any_store.set(key, "[]")
        assert any_store.keys("ovi-deck-") == ["ovi-deck-a", "ovi-deck-b"]
        assert len(any_store.keys()) == 3

    def test_unicode_values(self, any_store):
        any_store.set("k", "旅 viaje")
        assert any_store.get("k") == "旅 viaje"


class TestDuckDBKeyValueStore:
    def test_in_memory(self):
        with DuckDBKeyValueStore(":memory:") as store:
            store.set("a", "1")
            assert store.get("a") == "1"

    def test_persists_across_connections(self, db_path_file: Path):
        with DuckDBKeyValueStore(db_path_file) as store:
            store.set("ovi-deck-lesson-1", '[{"word": "harbor"}]')
        assert db_path_file.exists()
        with DuckDBKeyValueStore(db_path_file) as store:
            assert store.get("ovi-deck-lesson-1") == '[{"word": "harbor"}]'

    def test_creates_parent_directory(self, tmp_path: Path):
        nested = tmp_path / "a" / "b" / "decks.duckdb"
        with DuckDBKeyValueStore(nested) as store:
            store.set("k", "v")
        assert nested.exists()

    def test_reopen_after_close(self, db_path_file: Path):
        store = DuckDBKeyValueStore(db_path_file)
        store.set("k", "v")
        store.close()
        assert store.get("k") == "v"
        store.close()

    def test_read_only_write_fails(self, db_path_file: Path):
        with DuckDBKeyValueStore(db_path_file) as store:
            store.set("k", "v")
        with DuckDBKeyValueStore(db_path_file, read_only=True) as store:
            assert store.get("k") == "v"
            with pytest.raises(StorageError):
                store.set("k", "w")

    def test_read_only_missing_file(self, tmp_path: Path):
        store = DuckDBKeyValueStore(tmp_path / "missing.duckdb", read_only=True)
        with pytest.raises(StorageConnectionError):
            store.get("k")


class TestConnectionHandler:
    def test_memory_path_any_case(self):
        handler = ConnectionHandler(":MEMORY:")
        assert handler.is_memory
        assert not handler.is_open
        handler.get_connection().execute("SELECT 1")
        assert handler.is_open
        handler.close_connection()
        assert not handler.is_open

    def test_connection_is_reused_until_closed(self, db_path_file: Path):
        handler = ConnectionHandler(db_path_file)
        first = handler.get_connection()
        assert handler.get_connection() is first
        handler.close_connection()
        second = handler.get_connection()
        assert second is not first
        handler.close_connection()

    def test_close_without_open_is_noop(self, db_path_file: Path):
        handler = ConnectionHandler(db_path_file)
        handler.close_connection()
        assert not handler.is_open
        assert not db_path_file.exists()

    def test_file_path_is_resolved(self, tmp_path: Path):
        handler = ConnectionHandler(tmp_path / "x" / ".." / "decks.duckdb")
        assert not handler.is_memory
        assert handler.db_path_resolved == (tmp_path / "decks.duckdb").resolve()

    def test_writable_creates_parent_directory(self, tmp_path: Path):
        nested = tmp_path / "one" / "two" / "decks.duckdb"
        handler = ConnectionHandler(nested)
        handler.get_connection()
        handler.close_connection()
        assert nested.parent.is_dir()

    def test_read_only_missing_file(self, tmp_path: Path):
        handler = ConnectionHandler(tmp_path / "nope" / "decks.duckdb", read_only=True)
        with pytest.raises(StorageConnectionError, match="not found"):
            handler.get_connection()
        assert not handler.is_open
        assert not (tmp_path / "nope").exists()


class TestMarshalling:
    def test_cards_to_json_keeps_order(self):
        cards = [Card(word="b"), Card(word="a"), Card(word="c")]
        data = json.loads(cards_to_json(cards))
        assert [record["word"] for record in data] == ["b", "a", "c"]

    def test_cards_from_json(self):
        payload = json.dumps([{"word": "harbor", "intervalHours": 7}, {"word": "meadow"}])
        cards = cards_from_json(payload)
        assert [c.word for c in cards] == ["harbor", "meadow"]
        assert cards[0].interval_hours == 7

    def test_invalid_records_are_skipped(self):
        payload = json.dumps([{"word": ""}, "junk", {"word": "ok"}, {"definition": "x"}])
        assert [c.word for c in cards_from_json(payload)] == ["ok"]

    @pytest.mark.parametrize(
        "payload", ["{not json", '{"word": "a"}', "42", "[" * 100000 + "]" * 100000]
    )
    def test_bad_payload_raises(self, payload):
        with pytest.raises(MarshallingError):
            cards_from_json(payload)

    def test_record_to_card_rejects_non_objects(self):
        with pytest.raises(MarshallingError):
            record_to_card(["word"])

    def test_memory_store_initial_data(self):
        store = MemoryKeyValueStore({"k": "v"})
        assert store.get("k") == "v"
