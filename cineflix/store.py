"""In-memory snapshot of remote content and settings."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from .models import AppSettings, ContentItem
from .seed import SEED_CATALOG

logger = logging.getLogger(__name__)

ChangeListener = Callable[["CatalogStore"], None]


class CatalogStore:
    """Hold the authoritative items and settings, swapped wholesale."""

    def __init__(
        self,
        default_settings: AppSettings | None = None,
        seed: Iterable[ContentItem] = SEED_CATALOG,
    ) -> None:
        self._seed: tuple[ContentItem, ...] = tuple(seed)
        self._default_settings = default_settings or AppSettings()
        self._items: tuple[ContentItem, ...] = ()
        self._settings = self._default_settings
        self._using_seed = False
        self._listeners: list[ChangeListener] = []

    @property
    def items(self) -> tuple[ContentItem, ...]:
        return self._items

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def using_seed(self) -> bool:
        """Whether ``items`` currently holds the built-in fallback catalog."""

        return self._using_seed

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener and return a callable removing it."""

        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def get_item(self, item_id: str) -> ContentItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def apply_content_snapshot(self, items: Iterable[ContentItem]) -> None:
        snapshot = tuple(items)
        if snapshot:
            self._swap_items(snapshot, using_seed=False)
        else:
            logger.info("Remote catalog is empty; showing the built-in catalog")
            self._swap_items(self._seed, using_seed=True)

    def apply_content_error(self, error: Exception) -> None:
        logger.warning("Content subscription failed (using offline catalog): %s", error)
        if not self._items:
            self._swap_items(self._seed, using_seed=True)

    def apply_settings_snapshot(
        self, document: AppSettings | Mapping[str, Any] | None
    ) -> None:
        if document is None:
            return
        if isinstance(document, AppSettings):
            self._settings = document
        else:
            self._settings = AppSettings.from_document(
                document, fallback=self._default_settings
            )
        self._notify()

    def apply_settings_error(self, error: Exception) -> None:
        logger.warning("Settings subscription failed: %s", error)

    def _swap_items(self, items: tuple[ContentItem, ...], *, using_seed: bool) -> None:
        self._items = items
        self._using_seed = using_seed
        self._notify()

    def _notify(self) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(self)
            except Exception:  # pragma: no cover - listener safety net
                logger.exception("Catalog change listener failed")
