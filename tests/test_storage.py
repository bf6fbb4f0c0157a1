"""Local persistence and favorites tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cineflix.favorites import FavoritesController
from cineflix.storage import (
    FavoritesRepository,
    JsonFileStorage,
    MalformedLocalData,
    MemoryStorage,
    decode_favorites,
)


class FailingStorage(MemoryStorage):
    """Storage whose writes always fail."""

    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


def test_json_file_storage_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "storage.json"
    storage = JsonFileStorage(path)

    assert storage.get("cine_favs") is None

    storage.set("cine_favs", '["a"]')
    storage.set("other", "value")

    assert JsonFileStorage(path).get("cine_favs") == '["a"]'
    assert json.loads(path.read_text(encoding="utf-8")) == {
        "cine_favs": '["a"]',
        "other": "value",
    }
    assert [entry.name for entry in path.parent.iterdir()] == ["storage.json"]


def test_json_file_storage_treats_corrupt_file_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")

    storage = JsonFileStorage(path)

    assert storage.get("cine_favs") is None
    storage.set("cine_favs", "[]")
    assert storage.get("cine_favs") == "[]"


def test_json_file_storage_treats_undecodable_bytes_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    path.write_bytes(b'{"cine_favs": "\xff\xfe"}')
    repository = FavoritesRepository(JsonFileStorage(path))

    assert repository.load_favorites() == []

    path.write_bytes(b"\xff\xfe garbage")

    assert repository.save_favorites(["a"]) is True
    assert repository.load_favorites() == ["a"]


def test_decode_favorites_rejects_non_lists() -> None:
    assert decode_favorites('["a", "b"]') == ["a", "b"]

    with pytest.raises(MalformedLocalData):
        decode_favorites('{"a": 1}')
    with pytest.raises(MalformedLocalData):
        decode_favorites("not json")


def test_load_favorites_returns_empty_for_missing_or_malformed_data() -> None:
    assert FavoritesRepository(MemoryStorage()).load_favorites() == []

    malformed = MemoryStorage({"cine_favs": "[1, {]"})
    assert FavoritesRepository(malformed).load_favorites() == []


def test_load_favorites_drops_duplicates() -> None:
    storage = MemoryStorage({"cine_favs": '["a", "b", "a"]'})

    assert FavoritesRepository(storage).load_favorites() == ["a", "b"]


def test_save_favorites_reports_failures() -> None:
    assert FavoritesRepository(FailingStorage()).save_favorites(["a"]) is False

    storage = MemoryStorage()
    assert FavoritesRepository(storage, key="favs").save_favorites(["a", "b"]) is True
    assert json.loads(storage.get("favs") or "") == ["a", "b"]


def test_toggle_adds_and_removes_with_write_through() -> None:
    storage = MemoryStorage({"cine_favs": '["a", "b"]'})
    controller = FavoritesController(FavoritesRepository(storage))

    assert controller.load() == frozenset({"a", "b"})

    assert controller.toggle("a") is False
    assert controller.ids == frozenset({"b"})
    assert json.loads(storage.get("cine_favs") or "") == ["b"]

    assert controller.toggle("c") is True
    assert controller.ids == frozenset({"b", "c"})
    assert json.loads(storage.get("cine_favs") or "") == ["b", "c"]


def test_toggle_twice_restores_membership() -> None:
    controller = FavoritesController(FavoritesRepository(MemoryStorage()))
    controller.load()
    before = controller.ids

    controller.toggle("x")
    controller.toggle("x")

    assert controller.ids == before


def test_toggle_replaces_the_set_instead_of_mutating_it() -> None:
    controller = FavoritesController(FavoritesRepository(MemoryStorage()))
    controller.load()
    snapshot = controller.ids

    controller.toggle("x")

    assert snapshot == frozenset()
    assert controller.ids is not snapshot


def test_toggle_keeps_memory_state_when_persistence_fails(
    caplog: pytest.LogCaptureFixture,
) -> None:
    controller = FavoritesController(FavoritesRepository(FailingStorage()))
    controller.load()

    with caplog.at_level("WARNING"):
        assert controller.toggle("x") is True

    assert controller.is_favorite("x")
    assert "Unable to persist favorites" in caplog.text
