"""Tests for the persisted search history."""

import json

import pytest

from foliosearch.errors import HistoryError
from foliosearch.history import SearchHistory


@pytest.fixture
def history_path(tmp_path):
    return tmp_path / "search-history.json"


def read(path):
    return json.loads(path.read_text())


class TestRecord:
    def test_new_entry_persisted(self, history_path):
        history = SearchHistory(history_path)
        history.record("Sunset", embedding=[0.1, 0.2])

        data = read(history_path)
        assert len(data["searches"]) == 1
        entry = data["searches"][0]
        assert entry["query"] == "Sunset"
        assert entry["embedding"] == [0.1, 0.2]
        assert entry["count"] == 1
        assert entry["lastUsed"].endswith("Z")
        assert entry["created"].endswith("Z")

    def test_case_insensitive_dedup(self, history_path):
        history = SearchHistory(history_path)
        history.record("Sunset")
        history.record("sunset ")
        history.record("SUNSET")

        assert len(history) == 1
        entry = history.get("sunset")
        assert entry.count == 3
        assert entry.query == "Sunset"
        assert read(history_path)["searches"][0]["count"] == 3

    def test_repeat_keeps_embedding(self, history_path):
        history = SearchHistory(history_path)
        history.record("beach", embedding=[1.0, 0.0])
        history.record("Beach", embedding=[0.0, 1.0])
        assert history.get("beach").embedding == [1.0, 0.0]

    def test_blank_query_ignored(self, history_path):
        history = SearchHistory(history_path)
        assert history.record("   ") is None
        assert len(history) == 0
        assert not history_path.exists()

    def test_increment_unknown(self, history_path):
        assert SearchHistory(history_path).increment("nothing") is None

    def test_in_memory(self):
        history = SearchHistory()
        history.record("dog")
        assert "DOG" in history
        assert history.save() is True


class TestLoad:
    def test_missing_file(self, history_path):
        assert len(SearchHistory(history_path)) == 0

    def test_round_trip(self, history_path):
        history = SearchHistory(history_path)
        history.record("cat photo", embedding=[0.5, 0.5])
        history.record("cat photo")

        reloaded = SearchHistory(history_path)
        entry = reloaded.get("Cat Photo")
        assert entry.count == 2
        assert entry.embedding == [0.5, 0.5]

    def test_malformed_json(self, history_path, caplog):
        history_path.write_text("{not json")
        history = SearchHistory(history_path)
        assert len(history) == 0
        assert "Could not read search history" in caplog.text

    def test_wrong_structure(self, history_path):
        history_path.write_text(json.dumps([{"query": "dog"}]))
        assert len(SearchHistory(history_path)) == 0

    def test_invalid_entries_dropped_and_rewritten(self, history_path):
        history_path.write_text(json.dumps({"searches": [
            {"query": "dog", "embedding": [1, 0], "count": 2},
            {"query": ""},
            {"embedding": [1, 0]},
            "cat",
            {"query": "bird", "embedding": "oops"},
            {"query": "tree", "embedding": None},
        ]}))
        history = SearchHistory(history_path)

        assert [e.query for e in history.entries()] == ["dog", "tree"]
        assert history.get("dog").count == 2
        assert [e["query"] for e in read(history_path)["searches"]] == ["dog", "tree"]

    def test_typed_array_embedding(self, history_path):
        history_path.write_text(json.dumps({"searches": [
            {"query": "sky", "embedding": {"1": 0.25, "0": 0.5}},
        ]}))
        assert SearchHistory(history_path).get("sky").embedding == [0.5, 0.25]

    def test_sees_external_writes(self, history_path):
        first = SearchHistory(history_path)
        second = SearchHistory(history_path)
        second.record("forest")
        assert "forest" in [e.query for e in first.entries()]


class TestSave:
    def test_no_temp_files_left(self, history_path):
        history = SearchHistory(history_path)
        history.record("ocean")
        assert [p.name for p in history_path.parent.iterdir()] == [history_path.name]

    def test_write_failure_logged(self, tmp_path, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        history = SearchHistory(blocker / "history.json")
        entry = history.record("ocean")
        assert entry is not None
        assert len(history) == 1
        assert "Failed writing search history" in caplog.text

    def test_write_failure_strict(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        history = SearchHistory(blocker / "history.json", strict=True)
        with pytest.raises(HistoryError):
            history.record("ocean")


class TestEviction:
    def test_unbounded_by_default(self, history_path):
        history = SearchHistory(history_path)
        for i in range(30):
            history.record(f"query {i}")
        assert len(history) == 30

    def test_least_recently_used_evicted(self, history_path):
        history = SearchHistory(history_path, max_entries=2)
        history.record("one")
        history.record("two")
        history.get("one").last_used = "2999-01-01T00:00:00Z"
        history.record("three")

        assert sorted(e.query for e in history.entries()) == ["one", "three"]

    def test_invalid_cap(self, history_path):
        with pytest.raises(ValueError):
            SearchHistory(history_path, max_entries=0)
