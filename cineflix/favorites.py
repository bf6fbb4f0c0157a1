"""Local favorites membership with write-through persistence."""

from __future__ import annotations

import logging

from .storage import FavoritesRepository

logger = logging.getLogger(__name__)


class FavoritesController:
    """Own the favorites set; every toggle is persisted before returning."""

    def __init__(self, repository: FavoritesRepository) -> None:
        self._repository = repository
        self._ordered: tuple[str, ...] = ()
        self._ids: frozenset[str] = frozenset()

    def load(self) -> frozenset[str]:
        self._ordered = tuple(self._repository.load_favorites())
        self._ids = frozenset(self._ordered)
        return self._ids

    @property
    def ids(self) -> frozenset[str]:
        """The current set; replaced, never mutated, on every toggle."""

        return self._ids

    def is_favorite(self, item_id: str) -> bool:
        return item_id in self._ids

    def toggle(self, item_id: str) -> bool:
        """Flip membership of ``item_id`` and return the new membership."""

        if item_id in self._ids:
            ordered = tuple(entry for entry in self._ordered if entry != item_id)
            added = False
        else:
            ordered = (*self._ordered, item_id)
            added = True
        self._ordered = ordered
        self._ids = frozenset(ordered)
        if not self._repository.save_favorites(ordered):
            logger.warning(
                "Favorite %s %s in memory only", item_id, "added" if added else "removed"
            )
        return added
