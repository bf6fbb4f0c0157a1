"""Operator workflow for creating and editing catalog content."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .categories import Category
from .models import AppSettings, ContentItem, Episode
from .remote import RemoteStore
from .seed import SEED_CATALOG
from .taxonomy import insert_episode, remove_episode, sort_episodes

logger = logging.getLogger(__name__)


class AuthoringValidationError(ValueError):
    """Raised when a draft is missing fields required for publishing."""

    def __init__(self, missing: list[str], message: str | None = None) -> None:
        self.missing = missing
        super().__init__(message or f"Missing required fields: {', '.join(missing)}")


class ContentDraft(BaseModel):
    """Editable copy of a catalog title before it is (re)published."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    title: str = ""
    category: Category = "Exclusive"
    thumbnail: str = ""
    access_code: str = Field(
        default="",
        validation_alias=AliasChoices("access_code", "telegramCode", "accessCode"),
    )
    year: str = "2025"
    rating: float = 9.0
    quality: str = "4K HDR"
    description: str = ""
    views: str = Field(
        default="0", validation_alias=AliasChoices("views", "initialViews")
    )
    episodes: tuple[Episode, ...] = ()

    @field_validator("title", "thumbnail", "access_code", "description", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("year", "views", "quality", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @classmethod
    def from_item(cls, item: ContentItem) -> "ContentDraft":
        """Load an existing title into a draft for editing."""

        return cls(
            title=item.title,
            category=item.category,
            thumbnail=item.thumbnail,
            access_code=item.access_code or "",
            year=item.year or "2025",
            rating=item.rating,
            quality=item.quality or "4K HDR",
            description=item.description or "",
            views=item.views or "0",
            episodes=item.episodes,
        )

    def add_episode(
        self,
        title: str,
        access_code: str,
        *,
        season: object = 1,
        duration: str | None = None,
    ) -> Episode:
        """Number the episode within its season and keep the list sorted."""

        title = (title or "").strip()
        access_code = (access_code or "").strip()
        missing = [
            name
            for name, value in (("title", title), ("access_code", access_code))
            if not value
        ]
        if missing:
            raise AuthoringValidationError(
                missing, "Episode title and access code are required"
            )
        before = {episode.id for episode in self.episodes}
        self.episodes = insert_episode(
            self.episodes,
            title=title,
            access_code=access_code,
            season=season,
            duration=duration,
        )
        return next(episode for episode in self.episodes if episode.id not in before)

    def remove_episode(self, episode_id: str) -> None:
        self.episodes = remove_episode(self.episodes, episode_id)

    def missing_fields(self) -> list[str]:
        missing = [
            name for name in ("title", "thumbnail") if not getattr(self, name)
        ]
        if not self.access_code and not self.episodes:
            missing.append("access_code_or_episodes")
        return missing

    def validate_for_publish(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise AuthoringValidationError(
                missing,
                "Title, thumbnail and at least one link (code or episode) are required",
            )

    def to_document(self) -> dict[str, Any]:
        """Return the fields written on publish; views are only set on create."""

        return {
            "title": self.title,
            "category": self.category,
            "thumbnail": self.thumbnail,
            "telegramCode": self.access_code,
            "year": self.year,
            "rating": self.rating,
            "quality": self.quality,
            "description": self.description,
            "episodes": [episode.to_document() for episode in self.episodes] or None,
        }


def draft_from_payload(payload: Mapping[str, Any]) -> ContentDraft:
    """Build a draft from a request body.

    Episodes that already carry an id and number are kept as-is; the rest
    are appended in order and numbered within their season.
    """

    raw_episodes = payload.get("episodes") or []
    if not isinstance(raw_episodes, list):
        raise AuthoringValidationError(["episodes"], "Episodes must be a list")
    draft = ContentDraft.model_validate(
        {key: value for key, value in payload.items() if key != "episodes"}
    )
    for entry in raw_episodes:
        if not isinstance(entry, Mapping):
            raise AuthoringValidationError(["episodes"], "Episodes must be objects")
        if entry.get("id") and entry.get("number"):
            draft.episodes = sort_episodes((*draft.episodes, Episode.model_validate(entry)))
            continue
        draft.add_episode(
            str(entry.get("title") or ""),
            str(
                entry.get("telegramCode")
                or entry.get("accessCode")
                or entry.get("access_code")
                or ""
            ),
            season=entry.get("season", 1),
            duration=entry.get("duration"),
        )
    return draft


class AuthoringService:
    """Write operator changes to the remote store.

    Browsing clients observe the results through their own subscriptions;
    nothing here touches a running engine directly.
    """

    def __init__(self, remote: RemoteStore, default_settings: AppSettings | None = None):
        self._remote = remote
        self._default_settings = default_settings or AppSettings()

    async def publish(self, draft: ContentDraft, item_id: str | None = None) -> str:
        """Create a new title, or update ``item_id`` in place."""

        draft.validate_for_publish()
        document = draft.to_document()
        if item_id:
            await self._remote.update_content(item_id, document)
            logger.info("Updated content %s (%s)", item_id, draft.title)
            return item_id
        document["views"] = draft.views or "0"
        created_id = await self._remote.add_content(document)
        logger.info("Added content %s (%s)", created_id, draft.title)
        return created_id

    async def load_draft(self, item_id: str) -> ContentDraft:
        item = await self._remote.get_content(item_id)
        if item is None:
            raise KeyError(f"Content {item_id} not found")
        return ContentDraft.from_item(item)

    async def delete(self, item_id: str) -> None:
        if not await self._remote.delete_content(item_id):
            raise KeyError(f"Content {item_id} not found")
        logger.info("Deleted content %s", item_id)

    async def library(self, search: str = "") -> list[ContentItem]:
        """Return every title newest first, filtered by title or category."""

        items = await self._remote.list_content()
        term = search.strip().lower()
        if not term:
            return items
        return [
            item
            for item in items
            if term in item.title.lower() or term in item.category.lower()
        ]

    async def seed_demo_data(self) -> list[str]:
        """Upload the built-in catalog as regular documents in one batch."""

        identifiers = await self._remote.add_many(
            item.to_document() for item in SEED_CATALOG
        )
        logger.info("Uploaded %s demo titles", len(identifiers))
        return identifiers

    async def load_settings(self) -> AppSettings:
        document = await self._remote.get_settings()
        if document is None:
            return self._default_settings
        return AppSettings.from_document(document, fallback=self._default_settings)

    async def save_settings(self, settings: AppSettings) -> None:
        await self._remote.set_settings(settings.to_document())
        logger.info("Saved app configuration")
