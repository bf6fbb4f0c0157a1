"""Pure view projections derived from the catalog snapshot."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Callable, Collection, Generic, Sequence, TypeVar

from .categories import ALL_CATEGORIES
from .models import ContentItem

FEATURED_CATEGORY = "Exclusive"
FEATURED_RATING_THRESHOLD = 8.5
FEATURED_LIMIT = 5
GRID_ALL_LIMIT = 12
LATEST_LIMIT = 4

T = TypeVar("T")


def trending(items: Sequence[ContentItem]) -> tuple[ContentItem, ...]:
    """Return items ordered by rating, highest first.

    ``sorted`` is stable, so equal ratings keep their store order.
    """

    return tuple(sorted(items, key=lambda item: item.rating, reverse=True))


def featured_candidates(items: Sequence[ContentItem]) -> tuple[ContentItem, ...]:
    """Return up to five banner candidates in store order."""

    candidates = [
        item
        for item in items
        if item.category == FEATURED_CATEGORY
        or item.rating > FEATURED_RATING_THRESHOLD
    ]
    return tuple(candidates[:FEATURED_LIMIT])


def clamp_banner_index(index: int, candidate_count: int) -> int:
    """Fold ``index`` into ``[0, candidate_count)``; 0 when there are none."""

    if candidate_count <= 0:
        return 0
    return index % candidate_count


def category_grid(
    items: Sequence[ContentItem], active_category: str
) -> tuple[ContentItem, ...]:
    """Return the grid for a category; only the unfiltered view is capped."""

    if active_category == ALL_CATEGORIES:
        return tuple(items[:GRID_ALL_LIMIT])
    return tuple(item for item in items if item.category == active_category)


def favorite_items(
    items: Sequence[ContentItem], favorites: Collection[str]
) -> tuple[ContentItem, ...]:
    """Return favorited items in store order."""

    return tuple(item for item in items if item.id in favorites)


def latest(items: Sequence[ContentItem]) -> tuple[ContentItem, ...]:
    return tuple(items[:LATEST_LIMIT])


def pick_random(
    items: Sequence[ContentItem], rng: random.Random | None = None
) -> ContentItem | None:
    """Return a random item, or ``None`` when the catalog is empty."""

    if not items:
        return None
    chooser = rng or random
    return items[chooser.randrange(len(items))]


@dataclass(frozen=True)
class CatalogView:
    """Every projection the presentation layer renders at once."""

    trending: tuple[ContentItem, ...]
    featured: tuple[ContentItem, ...]
    banner_index: int
    latest: tuple[ContentItem, ...]
    active_category: str
    grid: tuple[ContentItem, ...]
    favorites: tuple[ContentItem, ...]

    @property
    def active_banner(self) -> ContentItem | None:
        if not self.featured:
            return None
        return self.featured[self.banner_index]

    def to_payload(self, favorite_ids: Collection[str]) -> dict[str, Any]:
        def _serialise(entries: Sequence[ContentItem]) -> list[dict[str, object]]:
            payload = []
            for item in entries:
                data = item.to_payload()
                data["isFavorite"] = item.id in favorite_ids
                payload.append(data)
            return payload

        active = self.active_banner
        return {
            "trending": _serialise(self.trending),
            "banner": {
                "candidates": [item.id for item in self.featured],
                "index": self.banner_index,
                "active": _serialise([active])[0] if active else None,
            },
            "latest": _serialise(self.latest),
            "category": self.active_category,
            "grid": _serialise(self.grid),
            "favorites": [item.id for item in self.favorites],
        }


class LastCallCache(Generic[T]):
    """Memoize a pure function on the identity of its most recent arguments."""

    def __init__(self, func: Callable[..., T]):
        self._func = func
        self._arguments: tuple[Any, ...] | None = None
        self._result: T | None = None
        self.misses = 0

    def __call__(self, *arguments: Any) -> T:
        previous = self._arguments
        if previous is not None and len(previous) == len(arguments) and all(
            old is new for old, new in zip(previous, arguments)
        ):
            return self._result  # type: ignore[return-value]
        self.misses += 1
        self._result = self._func(*arguments)
        self._arguments = arguments
        return self._result

    def clear(self) -> None:
        self._arguments = None
        self._result = None


class ViewDeriver:
    """Recompute projections only for the inputs that actually changed."""

    def __init__(self) -> None:
        self.trending = LastCallCache(trending)
        self.featured = LastCallCache(featured_candidates)
        self.latest = LastCallCache(latest)
        self.grid = LastCallCache(category_grid)
        self.favorites = LastCallCache(favorite_items)

    def derive(
        self,
        items: tuple[ContentItem, ...],
        active_category: str,
        favorites: frozenset[str],
        banner_index: int,
    ) -> CatalogView:
        featured = self.featured(items)
        return CatalogView(
            trending=self.trending(items),
            featured=featured,
            banner_index=clamp_banner_index(banner_index, len(featured)),
            latest=self.latest(items),
            active_category=active_category,
            grid=self.grid(items, active_category),
            favorites=self.favorites(items, favorites),
        )
