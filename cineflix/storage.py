"""Local key-value persistence for device scoped state."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Protocol

from pydantic import TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

_FAVORITES_ADAPTER: TypeAdapter[list[str]] = TypeAdapter(list[str])


class MalformedLocalData(ValueError):
    """Raised when locally stored data cannot be decoded."""


class KeyValueStorage(Protocol):
    """Synchronous string storage keyed by name."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """Process-local storage used by tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileStorage:
    """Store every key in one JSON object file, replaced atomically on write."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        try:
            contents = self._path.read_bytes()
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(contents.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("Local storage file %s is corrupt; starting empty", self._path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Local storage file %s has an unexpected shape", self._path)
            return {}
        return {str(key): value for key, value in data.items() if isinstance(value, str)}

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._read_all()
        values[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", dir=self._path.parent
        )
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as temp_file:
                json.dump(values, temp_file, ensure_ascii=False)
            os.replace(temp_name, self._path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise


def decode_favorites(raw: str) -> list[str]:
    """Decode the serialized favorites list, rejecting anything malformed."""

    try:
        return _FAVORITES_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        raise MalformedLocalData("Stored favorites are not a list of ids") from exc


class FavoritesRepository:
    """Load and save the favorites set under a single storage key."""

    def __init__(self, storage: KeyValueStorage, key: str = "cine_favs") -> None:
        self._storage = storage
        self._key = key

    def load_favorites(self) -> list[str]:
        """Return stored ids in stored order, or an empty list on bad data."""

        try:
            raw = self._storage.get(self._key)
        except OSError as exc:
            logger.warning("Favorites storage unreadable: %s", exc)
            return []
        if raw is None:
            return []
        try:
            decoded = decode_favorites(raw)
        except MalformedLocalData as exc:
            logger.warning("Ignoring malformed favorites: %s", exc)
            return []
        return list(dict.fromkeys(decoded))

    def save_favorites(self, ids: Iterable[str]) -> bool:
        """Persist the full set, returning whether the write succeeded."""

        payload = json.dumps(list(ids))
        try:
            self._storage.set(self._key, payload)
        except OSError as exc:
            logger.warning("Unable to persist favorites: %s", exc)
            return False
        return True
