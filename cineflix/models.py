"""Pydantic models describing catalog documents."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .categories import (
    DEFAULT_VIEW_INCREMENT_INTERVAL,
    SERIES_CATEGORIES,
    VIEW_INCREMENT_INTERVALS,
    Category,
)

logger = logging.getLogger(__name__)

DEFAULT_BOT_USERNAME = "CineflixRequestBot"
DEFAULT_CHANNEL_LINK = "https://t.me/cineflixrequestcontent"
UNKNOWN_DURATION = "N/A"


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class Episode(BaseModel):
    """One playable unit of a series, scoped to a season."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    season: int = Field(default=1, ge=1)
    number: int = Field(ge=1)
    title: str
    duration: str = UNKNOWN_DURATION
    access_code: str = Field(
        validation_alias=AliasChoices("access_code", "telegramCode", "accessCode"),
        serialization_alias="telegramCode",
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("season", mode="before")
    @classmethod
    def _default_season(cls, value: object) -> object:
        if value is None or value == "" or value == 0:
            return 1
        return value

    @field_validator("duration", mode="before")
    @classmethod
    def _default_duration(cls, value: object) -> object:
        value = _blank_to_none(value)
        return UNKNOWN_DURATION if value is None else value

    def to_document(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)


class SingleAsset(BaseModel):
    """A title delivered through one access code."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["single"] = "single"
    access_code: str = Field(min_length=1)


class SeriesAsset(BaseModel):
    """A title delivered episode by episode."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["series"] = "series"
    episodes: tuple[Episode, ...] = Field(min_length=1)
    access_code: str | None = None


ContentAsset = Annotated[Union[SingleAsset, SeriesAsset], Field(discriminator="kind")]


class ContentItem(BaseModel):
    """Represents one browsable catalog title."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str = Field(min_length=1)
    category: Category
    thumbnail: str
    rating: float = 0.0
    year: str = ""
    quality: str = ""
    description: str | None = None
    views: str = "0"
    created_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("created_at", "createdAt"),
    )
    updated_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("updated_at", "updatedAt"),
    )
    asset: ContentAsset

    @field_validator("rating", mode="before")
    @classmethod
    def _default_rating(cls, value: object) -> object:
        if value is None or value == "":
            return 0.0
        return value

    @field_validator("year", "views", "quality", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _strip_description(cls, value: object) -> object:
        return _blank_to_none(value)

    @classmethod
    def from_document(cls, document_id: str, data: Mapping[str, Any]) -> "ContentItem":
        """Build an item from a stored document, inferring its asset variant."""

        payload = {
            key: value
            for key, value in data.items()
            if key not in {"episodes", "telegramCode", "access_code", "accessCode", "asset", "id"}
        }
        access_code = _blank_to_none(
            data.get("telegramCode") or data.get("access_code") or data.get("accessCode")
        )
        raw_episodes = data.get("episodes") or []
        episodes = [entry for entry in raw_episodes if isinstance(entry, (Mapping, Episode))]
        if episodes:
            payload["asset"] = {
                "kind": "series",
                "episodes": episodes,
                "access_code": access_code,
            }
        else:
            payload["asset"] = {"kind": "single", "access_code": access_code}
        payload["id"] = document_id
        return cls.model_validate(payload)

    @property
    def episodes(self) -> tuple[Episode, ...]:
        if isinstance(self.asset, SeriesAsset):
            return self.asset.episodes
        return ()

    @property
    def access_code(self) -> str | None:
        return self.asset.access_code

    @property
    def is_series(self) -> bool:
        """Return whether the detail view should present episodes."""

        return bool(self.episodes) or self.category in SERIES_CATEGORIES

    def to_document(self) -> dict[str, object]:
        """Return the stored document shape, without store-managed fields."""

        episodes = [episode.to_document() for episode in self.episodes]
        return {
            "title": self.title,
            "category": self.category,
            "thumbnail": self.thumbnail,
            "telegramCode": self.access_code or "",
            "year": self.year,
            "rating": self.rating,
            "quality": self.quality,
            "description": self.description or "",
            "views": self.views,
            "episodes": episodes or None,
        }

    def to_payload(self) -> dict[str, object]:
        """Return the JSON payload served to presentation clients."""

        payload: dict[str, object] = {"id": self.id, **self.to_document()}
        payload["isSeries"] = self.is_series
        if self.created_at:
            payload["createdAt"] = self.created_at.isoformat()
        if self.updated_at:
            payload["updatedAt"] = self.updated_at.isoformat()
        return payload


class AppSettings(BaseModel):
    """Singleton configuration document shared by every client."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    bot_username: str = Field(
        default=DEFAULT_BOT_USERNAME,
        min_length=1,
        validation_alias=AliasChoices("botUsername", "bot_username"),
    )
    channel_link: str = Field(
        default=DEFAULT_CHANNEL_LINK,
        validation_alias=AliasChoices("channelLink", "channel_link"),
    )
    auto_view_increment: bool = Field(
        default=True,
        validation_alias=AliasChoices("autoViewIncrement", "auto_view_increment"),
    )
    view_increment_interval: int = Field(
        default=DEFAULT_VIEW_INCREMENT_INTERVAL,
        validation_alias=AliasChoices(
            "viewIncrementInterval", "view_increment_interval"
        ),
    )

    @field_validator("view_increment_interval")
    @classmethod
    def _known_interval(cls, value: int) -> int:
        if value not in VIEW_INCREMENT_INTERVALS:
            raise ValueError(
                f"View increment interval must be one of {VIEW_INCREMENT_INTERVALS}"
            )
        return value

    @classmethod
    def from_document(
        cls,
        data: Mapping[str, Any],
        *,
        fallback: "AppSettings | None" = None,
    ) -> "AppSettings":
        """Resolve a possibly partial document into a complete settings value.

        Missing, blank or invalid fields take their value from ``fallback``
        (or the built-in defaults), so the result is never partial.
        """

        base = fallback or cls()
        merged: dict[str, Any] = base.model_dump()
        # Camel-case aliases are listed first so supplied document keys win
        # over the snake-case fallback values merged beside them.
        supplied = {
            key: value
            for key, value in data.items()
            if value is not None and not (isinstance(value, str) and not value.strip())
        }
        candidate = {**merged, **supplied}
        try:
            return cls.model_validate(candidate)
        except ValidationError as exc:
            rejected = {str(error["loc"][0]) for error in exc.errors() if error["loc"]}
            logger.warning("Ignoring invalid settings fields: %s", sorted(rejected))
            cleaned = {
                key: value for key, value in supplied.items() if key not in rejected
            }
            try:
                return cls.model_validate({**merged, **cleaned})
            except ValidationError:
                return base

    def to_document(self) -> dict[str, object]:
        return {
            "botUsername": self.bot_username,
            "channelLink": self.channel_link,
            "autoViewIncrement": self.auto_view_increment,
            "viewIncrementInterval": str(self.view_increment_interval),
        }
