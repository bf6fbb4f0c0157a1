"""Engine instance owning the catalog state and its live subscriptions."""

from __future__ import annotations

import logging
import random
from typing import Callable, Iterable

from .categories import ALL_CATEGORIES, normalise_category_filter
from .config import Settings
from .favorites import FavoritesController
from .models import AppSettings, ContentItem, Episode
from .projections import CatalogView, ViewDeriver, clamp_banner_index, pick_random
from .remote import DEFAULT_CONTENT_LIMIT, RemoteStore, Unsubscribe
from .scheduler import DEFAULT_BANNER_PERIOD_SECONDS, BannerRotationScheduler
from .seed import SEED_CATALOG
from .storage import FavoritesRepository, KeyValueStorage
from .store import CatalogStore
from .taxonomy import available_seasons, group_by_season
from .utils import build_deep_link

logger = logging.getLogger(__name__)

ViewListener = Callable[[], None]


class CatalogEngine:
    """Keep a render-ready catalog in sync with the remote store.

    One instance is constructed per session. ``start`` loads favorites and
    opens the subscriptions; ``shutdown`` closes them and stops the banner
    timer. All state changes happen on the event loop thread.
    """

    def __init__(
        self,
        remote: RemoteStore,
        storage: KeyValueStorage,
        *,
        content_limit: int = DEFAULT_CONTENT_LIMIT,
        banner_period_seconds: float = DEFAULT_BANNER_PERIOD_SECONDS,
        favorites_key: str = "cine_favs",
        default_settings: AppSettings | None = None,
        seed: Iterable[ContentItem] = SEED_CATALOG,
        rng: random.Random | None = None,
    ) -> None:
        if content_limit < 1:
            raise ValueError("Content limit must be at least 1")
        self._remote = remote
        self._content_limit = content_limit
        self._store = CatalogStore(default_settings=default_settings, seed=seed)
        self._favorites = FavoritesController(FavoritesRepository(storage, favorites_key))
        self._scheduler = BannerRotationScheduler(
            self._advance_banner, period_seconds=banner_period_seconds
        )
        self._deriver = ViewDeriver()
        self._rng = rng
        self._active_category = ALL_CATEGORIES
        self._banner_index = 0
        self._candidate_ids: tuple[str, ...] = ()
        self._subscriptions: list[Unsubscribe] = []
        self._remove_store_listener: Callable[[], None] | None = None
        self._listeners: list[ViewListener] = []
        self._started = False

    @classmethod
    def from_settings(
        cls, settings: Settings, remote: RemoteStore, storage: KeyValueStorage
    ) -> "CatalogEngine":
        return cls(
            remote,
            storage,
            content_limit=settings.content_limit,
            banner_period_seconds=settings.banner_interval_seconds,
            favorites_key=settings.favorites_key,
            default_settings=settings.default_app_settings(),
        )

    @property
    def remote(self) -> RemoteStore:
        return self._remote

    @property
    def store(self) -> CatalogStore:
        return self._store

    @property
    def scheduler(self) -> BannerRotationScheduler:
        return self._scheduler

    @property
    def started(self) -> bool:
        return self._started

    @property
    def items(self) -> tuple[ContentItem, ...]:
        return self._store.items

    @property
    def settings(self) -> AppSettings:
        return self._store.settings

    @property
    def active_category(self) -> str:
        return self._active_category

    @property
    def banner_index(self) -> int:
        return self._banner_index

    @property
    def favorite_ids(self) -> frozenset[str]:
        return self._favorites.ids

    async def start(self) -> None:
        """Load favorites and subscribe to content and settings."""

        if self._started:
            return
        self._started = True
        self._favorites.load()
        self._remove_store_listener = self._store.add_listener(self._on_store_change)
        self._subscriptions = [
            self._remote.subscribe_content(
                self._content_limit,
                self._store.apply_content_snapshot,
                self._store.apply_content_error,
            ),
            self._remote.subscribe_settings(
                self._store.apply_settings_snapshot,
                self._store.apply_settings_error,
            ),
        ]
        logger.info(
            "Catalog engine started (limit=%s, banner every %ss)",
            self._content_limit,
            self._scheduler.period_seconds,
        )

    async def shutdown(self) -> None:
        """Unsubscribe and cancel timers; safe to call more than once."""

        subscriptions, self._subscriptions = self._subscriptions, []
        for unsubscribe in subscriptions:
            unsubscribe()
        if self._remove_store_listener is not None:
            self._remove_store_listener()
            self._remove_store_listener = None
        await self._scheduler.stop()
        self._candidate_ids = ()
        self._banner_index = 0
        if self._started:
            logger.info("Catalog engine stopped")
        self._started = False

    def add_listener(self, listener: ViewListener) -> Callable[[], None]:
        """Call ``listener`` whenever any projection input changes."""

        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def select_category(self, category: object) -> str:
        """Set the grid filter; unknown categories raise ``ValueError``."""

        normalised = normalise_category_filter(category)
        if normalised != self._active_category:
            self._active_category = normalised
            self._notify()
        return normalised

    def toggle_favorite(self, item_id: str) -> bool:
        added = self._favorites.toggle(item_id)
        self._notify()
        return added

    def is_favorite(self, item_id: str) -> bool:
        return self._favorites.is_favorite(item_id)

    def view(self, category: str | None = None) -> CatalogView:
        """Return every projection for the current inputs.

        ``category`` overrides the selected filter for this call only.
        """

        active = (
            normalise_category_filter(category)
            if category is not None
            else self._active_category
        )
        return self._deriver.derive(
            self._store.items, active, self._favorites.ids, self._banner_index
        )

    def get_item(self, item_id: str) -> ContentItem | None:
        return self._store.get_item(item_id)

    def seasons_for(self, item_id: str) -> dict[int, tuple[Episode, ...]]:
        item = self._store.get_item(item_id)
        if item is None:
            raise KeyError(f"Content {item_id} not found")
        return group_by_season(item.episodes)

    def season_numbers_for(self, item_id: str) -> tuple[int, ...]:
        item = self._store.get_item(item_id)
        if item is None:
            raise KeyError(f"Content {item_id} not found")
        return available_seasons(item.episodes)

    def deep_link(self, access_code: str) -> str:
        return build_deep_link(self._store.settings.bot_username, access_code)

    def surprise_me(self) -> ContentItem | None:
        """Pick a random title from the current catalog without changing state."""

        return pick_random(self._store.items, self._rng)

    async def save_settings(self, settings: AppSettings) -> None:
        """Overwrite the remote settings document; the subscription applies it."""

        await self._remote.set_settings(settings.to_document())

    def _on_store_change(self, store: CatalogStore) -> None:
        candidates = self._deriver.featured(store.items)
        candidate_ids = tuple(item.id for item in candidates)
        if candidate_ids != self._candidate_ids:
            self._candidate_ids = candidate_ids
            self._banner_index = clamp_banner_index(self._banner_index, len(candidate_ids))
            if candidate_ids:
                self._scheduler.arm()
            else:
                self._scheduler.disarm()
        self._notify()

    def _advance_banner(self) -> None:
        count = len(self._candidate_ids)
        if count == 0:
            return
        self._banner_index = (self._banner_index + 1) % count
        self._notify()

    def _notify(self) -> None:
        for listener in tuple(self._listeners):
            try:
                listener()
            except Exception:  # pragma: no cover - listener safety net
                logger.exception("Catalog view listener failed")
