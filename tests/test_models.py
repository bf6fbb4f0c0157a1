from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from cineflix.models import (
    DEFAULT_BOT_USERNAME,
    AppSettings,
    ContentItem,
    Episode,
    SeriesAsset,
    SingleAsset,
)


def make_document(**overrides: Any) -> dict[str, Any]:
    document: dict[str, Any] = {
        "title": "Sample Title",
        "category": "Exclusive",
        "thumbnail": "https://example.com/thumb.jpg",
        "telegramCode": "sample_code",
        "year": "2025",
        "rating": 7.0,
        "quality": "4K HDR",
        "description": "A sample description",
        "views": "1.2K",
    }
    document.update(overrides)
    return document


def test_document_with_access_code_becomes_single_asset() -> None:
    item = ContentItem.from_document("abc", make_document())

    assert item.id == "abc"
    assert isinstance(item.asset, SingleAsset)
    assert item.access_code == "sample_code"
    assert item.episodes == ()
    assert item.is_series is False


def test_document_with_episodes_becomes_series_asset() -> None:
    item = ContentItem.from_document(
        "show",
        make_document(
            telegramCode="",
            category="Korean Drama",
            episodes=[
                {"id": "e1", "number": 1, "title": "One", "telegramCode": "c1"},
                {"id": "e2", "season": 2, "number": 1, "title": "Two", "telegramCode": "c2"},
            ],
        ),
    )

    assert isinstance(item.asset, SeriesAsset)
    assert item.access_code is None
    assert [episode.season for episode in item.episodes] == [1, 2]
    assert item.episodes[0].duration == "N/A"
    assert item.is_series is True


def test_document_without_code_or_episodes_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ContentItem.from_document("broken", make_document(telegramCode="  ", episodes=None))


def test_series_category_without_episodes_is_still_series_mode() -> None:
    item = ContentItem.from_document("s", make_document(category="Series"))

    assert isinstance(item.asset, SingleAsset)
    assert item.is_series is True


def test_views_are_kept_verbatim_and_numbers_coerced_to_text() -> None:
    item = ContentItem.from_document("v", make_document(views="2.5K", year=2023, rating="8.1"))

    assert item.views == "2.5K"
    assert item.year == "2023"
    assert item.rating == pytest.approx(8.1)


def test_unknown_category_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ContentItem.from_document("x", make_document(category="Cartoons"))


def test_episode_defaults_missing_season_to_one() -> None:
    episode = Episode.model_validate(
        {"id": 17, "season": None, "number": 4, "title": "Late", "telegramCode": "late"}
    )

    assert episode.id == "17"
    assert episode.season == 1
    assert episode.to_document()["telegramCode"] == "late"


def test_to_document_writes_episode_collection() -> None:
    item = ContentItem.from_document(
        "show",
        make_document(
            episodes=[{"id": "e1", "season": 1, "number": 1, "title": "One", "telegramCode": "c1"}]
        ),
    )
    document = item.to_document()

    assert document["telegramCode"] == "sample_code"
    assert document["episodes"] == [
        {
            "id": "e1",
            "season": 1,
            "number": 1,
            "title": "One",
            "duration": "N/A",
            "telegramCode": "c1",
        }
    ]


def test_app_settings_fill_missing_fields_from_defaults() -> None:
    resolved = AppSettings.from_document({"channelLink": "https://t.me/other"})

    assert resolved.bot_username == DEFAULT_BOT_USERNAME
    assert resolved.channel_link == "https://t.me/other"
    assert resolved.auto_view_increment is True
    assert resolved.view_increment_interval == 60


def test_app_settings_prefer_document_over_fallback() -> None:
    fallback = AppSettings(bot_username="FallbackBot", channel_link="https://t.me/fallback")

    resolved = AppSettings.from_document(
        {"botUsername": "RemoteBot", "viewIncrementInterval": "120", "autoViewIncrement": False},
        fallback=fallback,
    )

    assert resolved.bot_username == "RemoteBot"
    assert resolved.channel_link == "https://t.me/fallback"
    assert resolved.view_increment_interval == 120
    assert resolved.auto_view_increment is False


def test_app_settings_discard_invalid_fields() -> None:
    resolved = AppSettings.from_document(
        {"botUsername": "RemoteBot", "viewIncrementInterval": "7"}
    )

    assert resolved.bot_username == "RemoteBot"
    assert resolved.view_increment_interval == 60


def test_app_settings_document_uses_wire_names() -> None:
    document = AppSettings(view_increment_interval=360).to_document()

    assert document["viewIncrementInterval"] == "360"
    assert set(document) == {
        "botUsername",
        "channelLink",
        "autoViewIncrement",
        "viewIncrementInterval",
    }
