"""Catalog store snapshot tests."""

from __future__ import annotations

from cineflix.models import AppSettings, ContentItem
from cineflix.remote import TransientFetchError
from cineflix.seed import SEED_CATALOG
from cineflix.store import CatalogStore


def _item(identifier: str) -> ContentItem:
    return ContentItem.from_document(
        identifier,
        {
            "title": identifier.title(),
            "category": "Exclusive",
            "thumbnail": "https://example.com/t.jpg",
            "telegramCode": identifier,
        },
    )


def test_empty_snapshot_uses_seed_catalog() -> None:
    store = CatalogStore()

    store.apply_content_snapshot([])

    assert store.items == SEED_CATALOG
    assert store.using_seed is True


def test_non_empty_snapshot_replaces_seed_wholesale() -> None:
    store = CatalogStore()
    store.apply_content_snapshot([])

    store.apply_content_snapshot([_item("x")])

    assert [item.id for item in store.items] == ["x"]
    assert store.using_seed is False


def test_error_before_any_data_uses_seed() -> None:
    store = CatalogStore()

    store.apply_content_error(TransientFetchError("offline"))

    assert store.items == SEED_CATALOG
    assert store.using_seed is True


def test_error_after_data_keeps_current_items() -> None:
    store = CatalogStore()
    store.apply_content_snapshot([_item("x")])
    before = store.items

    store.apply_content_error(TransientFetchError("offline"))

    assert store.items is before


def test_settings_snapshot_merges_defaults() -> None:
    defaults = AppSettings(bot_username="LocalBot")
    store = CatalogStore(default_settings=defaults)

    store.apply_settings_snapshot({"channelLink": "https://t.me/remote"})

    assert store.settings.bot_username == "LocalBot"
    assert store.settings.channel_link == "https://t.me/remote"


def test_missing_settings_document_keeps_current_settings() -> None:
    store = CatalogStore()
    store.apply_settings_snapshot({"botUsername": "RemoteBot"})

    store.apply_settings_snapshot(None)

    assert store.settings.bot_username == "RemoteBot"


def test_listeners_are_notified_until_removed() -> None:
    store = CatalogStore()
    seen: list[int] = []
    remove = store.add_listener(lambda current: seen.append(len(current.items)))

    store.apply_content_snapshot([_item("x")])
    remove()
    store.apply_content_snapshot([_item("x"), _item("y")])

    assert seen == [1]
    assert store.get_item("y") is not None
    assert store.get_item("missing") is None
