"""Tests for the JSON file store."""

import pytest

from drive_analyzer.exceptions import StorageError
from drive_analyzer.storage.backend import JsonFileStore, default_data_dir


def test_get_missing_returns_default(tmp_path):
    store = JsonFileStore(tmp_path)
    assert store.get("nothing") is None
    assert store.get("nothing", []) == []


def test_set_get_remove(tmp_path):
    store = JsonFileStore(tmp_path / "data")
    store.set("greeting", {"text": "héllo"})

    assert store.has("greeting")
    assert store.get("greeting") == {"text": "héllo"}
    assert not (tmp_path / "data" / "greeting.json.tmp").exists()

    store.remove("greeting")
    assert not store.has("greeting")
    store.remove("greeting")


def test_malformed_json_returns_default(tmp_path):
    (tmp_path / "broken.json").write_text("{not json")
    store = JsonFileStore(tmp_path)
    assert store.get("broken", []) == []


def test_invalid_keys(tmp_path):
    store = JsonFileStore(tmp_path)
    for key in ("", "../escape", ".hidden", "a/b"):
        with pytest.raises(StorageError, match="Invalid storage key"):
            store.set(key, 1)


def test_unserializable_value(tmp_path):
    store = JsonFileStore(tmp_path)
    with pytest.raises(StorageError, match="Failed to write"):
        store.set("bad", object())


def test_subscribe_and_unsubscribe(tmp_path):
    store = JsonFileStore(tmp_path)
    events = []
    unsubscribe = store.subscribe("k", lambda key, value: events.append((key, value)))

    store.set("k", 1)
    store.set("other", 2)
    store.remove("k")
    unsubscribe()
    store.set("k", 3)

    assert events == [("k", 1), ("k", None)]


def test_default_data_dir_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("DRIVE_ANALYZER_DATA_DIR", str(tmp_path))
    assert default_data_dir() == tmp_path
    assert JsonFileStore().directory == tmp_path
