"""Live subscriptions to the remote content collection and settings document."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Mapping, Protocol

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .db_models import ContentDocument, SettingsDocument
from .models import ContentItem
from .utils import fingerprint, new_document_id, utc_now

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_LIMIT = 50
SETTINGS_DOCUMENT_KEY = "config"
STORE_MANAGED_FIELDS = frozenset({"id", "createdAt", "updatedAt"})

ContentListener = Callable[[list[ContentItem]], None]
SettingsListener = Callable[[dict[str, Any] | None], None]
ErrorListener = Callable[[Exception], None]


class TransientFetchError(RuntimeError):
    """A subscription could not read from the backing store."""


class Unsubscribe:
    """Idempotent handle cancelling one live subscription."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel: Callable[[], None] | None = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def __call__(self) -> None:
        cancel, self._cancel = self._cancel, None
        if cancel is not None:
            cancel()


class RemoteStore(Protocol):
    """Capabilities the engine and authoring workflow need from the store."""

    def subscribe_content(
        self, limit: int, on_snapshot: ContentListener, on_error: ErrorListener
    ) -> Unsubscribe: ...

    def subscribe_settings(
        self, on_snapshot: SettingsListener, on_error: ErrorListener
    ) -> Unsubscribe: ...

    async def list_content(self) -> list[ContentItem]: ...

    async def get_content(self, document_id: str) -> ContentItem | None: ...

    async def add_content(self, document: Mapping[str, Any]) -> str: ...

    async def add_many(self, documents: Iterable[Mapping[str, Any]]) -> list[str]: ...

    async def update_content(self, document_id: str, document: Mapping[str, Any]) -> None: ...

    async def delete_content(self, document_id: str) -> bool: ...

    async def get_settings(self) -> dict[str, Any] | None: ...

    async def set_settings(self, document: Mapping[str, Any]) -> None: ...


def items_from_documents(
    documents: Iterable[tuple[str, Mapping[str, Any]]],
) -> list[ContentItem]:
    """Convert stored documents to items, skipping any that fail validation."""

    items: list[ContentItem] = []
    for document_id, data in documents:
        try:
            items.append(ContentItem.from_document(document_id, data))
        except ValidationError as exc:
            logger.warning(
                "Skipping malformed content document %s: %s",
                document_id,
                exc.errors(include_url=False),
            )
    return items


def _writable(document: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: value for key, value in document.items() if key not in STORE_MANAGED_FIELDS
    }


def _deliver(callback: Callable[..., None], *arguments: Any) -> None:
    try:
        callback(*arguments)
    except Exception:  # pragma: no cover - subscriber safety net
        logger.exception("Subscription callback failed")


@dataclass
class _Document:
    id: str
    sequence: int
    created_at: datetime
    data: dict[str, Any]
    updated_at: datetime | None = None

    def merged(self) -> dict[str, Any]:
        return {**self.data, "createdAt": self.created_at, "updatedAt": self.updated_at}


@dataclass
class _ContentSubscription:
    limit: int
    on_snapshot: ContentListener
    on_error: ErrorListener


@dataclass
class _SettingsSubscription:
    on_snapshot: SettingsListener
    on_error: ErrorListener


@dataclass
class _Outage:
    error: Exception
    content: bool = True
    settings: bool = True


class InMemoryRemoteStore:
    """Process-local document store delivering snapshots synchronously.

    Every subscriber receives the current snapshot on subscription and a
    fresh one after each write, mirroring a live query.
    """

    def __init__(
        self,
        documents: Iterable[Mapping[str, Any]] = (),
        settings_document: Mapping[str, Any] | None = None,
    ) -> None:
        self._documents: dict[str, _Document] = {}
        self._sequence = 0
        self._settings: dict[str, Any] | None = (
            dict(settings_document) if settings_document is not None else None
        )
        self._content_subscribers: dict[int, _ContentSubscription] = {}
        self._settings_subscribers: dict[int, _SettingsSubscription] = {}
        self._next_subscriber = 0
        self._outage: _Outage | None = None
        # Initial documents share a timestamp and keep the given order, newest first.
        created_at = utc_now()
        for document in reversed(list(documents)):
            document_id = str(document.get("id") or new_document_id())
            self._insert(document_id, _writable(document), created_at)

    def subscribe_content(
        self,
        limit: int,
        on_snapshot: ContentListener,
        on_error: ErrorListener,
    ) -> Unsubscribe:
        key = self._register()
        self._content_subscribers[key] = _ContentSubscription(limit, on_snapshot, on_error)
        self._emit_content(self._content_subscribers[key])
        return Unsubscribe(lambda: self._content_subscribers.pop(key, None))

    def subscribe_settings(
        self, on_snapshot: SettingsListener, on_error: ErrorListener
    ) -> Unsubscribe:
        key = self._register()
        self._settings_subscribers[key] = _SettingsSubscription(on_snapshot, on_error)
        self._emit_settings(self._settings_subscribers[key])
        return Unsubscribe(lambda: self._settings_subscribers.pop(key, None))

    @property
    def subscriber_count(self) -> int:
        return len(self._content_subscribers) + len(self._settings_subscribers)

    def fail(
        self, error: Exception, *, content: bool = True, settings: bool = True
    ) -> None:
        """Simulate an outage: subscribers receive errors until ``recover``."""

        self._outage = _Outage(error, content=content, settings=settings)
        self._broadcast()

    def recover(self) -> None:
        self._outage = None
        self._broadcast()

    async def list_content(self) -> list[ContentItem]:
        return items_from_documents(
            (document.id, document.merged()) for document in self._ordered()
        )

    async def get_content(self, document_id: str) -> ContentItem | None:
        document = self._documents.get(document_id)
        if document is None:
            return None
        items = items_from_documents([(document.id, document.merged())])
        return items[0] if items else None

    async def add_content(self, document: Mapping[str, Any]) -> str:
        document_id = new_document_id()
        self._insert(document_id, _writable(document), utc_now())
        self._broadcast_content()
        return document_id

    async def add_many(self, documents: Iterable[Mapping[str, Any]]) -> list[str]:
        created_at = utc_now()
        identifiers = []
        for document in documents:
            document_id = new_document_id()
            self._insert(document_id, _writable(document), created_at)
            identifiers.append(document_id)
        self._broadcast_content()
        return identifiers

    async def update_content(self, document_id: str, document: Mapping[str, Any]) -> None:
        existing = self._documents.get(document_id)
        if existing is None:
            raise KeyError(f"Content {document_id} not found")
        existing.data = {**existing.data, **_writable(document)}
        existing.updated_at = utc_now()
        self._broadcast_content()

    async def delete_content(self, document_id: str) -> bool:
        removed = self._documents.pop(document_id, None)
        if removed is not None:
            self._broadcast_content()
        return removed is not None

    async def get_settings(self) -> dict[str, Any] | None:
        return dict(self._settings) if self._settings is not None else None

    async def set_settings(self, document: Mapping[str, Any]) -> None:
        self._settings = dict(document)
        for subscription in tuple(self._settings_subscribers.values()):
            self._emit_settings(subscription)

    def _register(self) -> int:
        self._next_subscriber += 1
        return self._next_subscriber

    def _insert(self, document_id: str, data: dict[str, Any], created_at: datetime) -> None:
        self._sequence += 1
        self._documents[document_id] = _Document(
            id=document_id, sequence=self._sequence, created_at=created_at, data=data
        )

    def _ordered(self) -> list[_Document]:
        return sorted(
            self._documents.values(),
            key=lambda document: (document.created_at, document.sequence),
            reverse=True,
        )

    def _emit_content(self, subscription: _ContentSubscription) -> None:
        if self._outage is not None and self._outage.content:
            _deliver(subscription.on_error, TransientFetchError(str(self._outage.error)))
            return
        window = self._ordered()[: subscription.limit]
        items = items_from_documents(
            (document.id, document.merged()) for document in window
        )
        _deliver(subscription.on_snapshot, items)

    def _emit_settings(self, subscription: _SettingsSubscription) -> None:
        if self._outage is not None and self._outage.settings:
            _deliver(subscription.on_error, TransientFetchError(str(self._outage.error)))
            return
        payload = dict(self._settings) if self._settings is not None else None
        _deliver(subscription.on_snapshot, payload)

    def _broadcast_content(self) -> None:
        for subscription in tuple(self._content_subscribers.values()):
            self._emit_content(subscription)

    def _broadcast(self) -> None:
        self._broadcast_content()
        for subscription in tuple(self._settings_subscribers.values()):
            self._emit_settings(subscription)


@dataclass
class _PollingSubscription:
    task: asyncio.Task[None]
    wake: asyncio.Event


class SqlRemoteStore:
    """Document store persisted through SQLAlchemy with polled live queries."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        poll_seconds: float = 5.0,
        settings_key: str = SETTINGS_DOCUMENT_KEY,
    ) -> None:
        self._session_factory = session_factory
        self._poll_seconds = poll_seconds
        self._settings_key = settings_key
        self._subscriptions: dict[int, _PollingSubscription] = {}
        self._cancelled: set[asyncio.Task[None]] = set()
        self._next_subscriber = 0

    def subscribe_content(
        self,
        limit: int,
        on_snapshot: ContentListener,
        on_error: ErrorListener,
    ) -> Unsubscribe:
        async def _fetch() -> list[tuple[str, dict[str, Any]]]:
            return await self._fetch_content(limit)

        def _emit(documents: list[tuple[str, dict[str, Any]]]) -> None:
            on_snapshot(items_from_documents(documents))

        return self._start_polling("content", _fetch, _emit, on_error)

    def subscribe_settings(
        self, on_snapshot: SettingsListener, on_error: ErrorListener
    ) -> Unsubscribe:
        return self._start_polling("settings", self.get_settings, on_snapshot, on_error)

    async def aclose(self) -> None:
        """Cancel every polling task and wait for them to finish."""

        tasks = [subscription.task for subscription in self._subscriptions.values()]
        tasks.extend(self._cancelled)
        self._subscriptions.clear()
        self._cancelled.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task

    async def list_content(self) -> list[ContentItem]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ContentDocument).order_by(
                    ContentDocument.created_at.desc(), ContentDocument.sequence.desc()
                )
            )
            documents = [self._merged(row) for row in result.scalars().all()]
        return items_from_documents(documents)

    async def get_content(self, document_id: str) -> ContentItem | None:
        async with self._session_factory() as session:
            row = await self._find(session, document_id)
            if row is None:
                return None
            document = self._merged(row)
        items = items_from_documents([document])
        return items[0] if items else None

    async def add_content(self, document: Mapping[str, Any]) -> str:
        identifiers = await self.add_many([document])
        return identifiers[0]

    async def add_many(self, documents: Iterable[Mapping[str, Any]]) -> list[str]:
        created_at = utc_now()
        identifiers: list[str] = []
        async with self._session_factory() as session:
            for document in documents:
                document_id = new_document_id()
                session.add(
                    ContentDocument(
                        document_id=document_id,
                        payload=_writable(document),
                        created_at=created_at,
                    )
                )
                identifiers.append(document_id)
            await session.commit()
        self._wake_all()
        return identifiers

    async def update_content(self, document_id: str, document: Mapping[str, Any]) -> None:
        async with self._session_factory() as session:
            row = await self._find(session, document_id)
            if row is None:
                raise KeyError(f"Content {document_id} not found")
            row.payload = {**row.payload, **_writable(document)}
            row.updated_at = utc_now()
            await session.commit()
        self._wake_all()

    async def delete_content(self, document_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(ContentDocument).where(ContentDocument.document_id == document_id)
            )
            await session.commit()
        self._wake_all()
        return bool(result.rowcount)

    async def get_settings(self) -> dict[str, Any] | None:
        async with self._session_factory() as session:
            row = await session.get(SettingsDocument, self._settings_key)
            return dict(row.payload) if row is not None else None

    async def set_settings(self, document: Mapping[str, Any]) -> None:
        async with self._session_factory() as session:
            row = await session.get(SettingsDocument, self._settings_key)
            if row is None:
                session.add(
                    SettingsDocument(
                        key=self._settings_key,
                        payload=dict(document),
                        updated_at=utc_now(),
                    )
                )
            else:
                row.payload = dict(document)
                row.updated_at = utc_now()
            await session.commit()
        self._wake_all()

    async def _fetch_content(self, limit: int) -> list[tuple[str, dict[str, Any]]]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ContentDocument)
                .order_by(ContentDocument.created_at.desc(), ContentDocument.sequence.desc())
                .limit(limit)
            )
            return [self._merged(row) for row in result.scalars().all()]

    @staticmethod
    async def _find(session: AsyncSession, document_id: str) -> ContentDocument | None:
        result = await session.execute(
            select(ContentDocument).where(ContentDocument.document_id == document_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _merged(row: ContentDocument) -> tuple[str, dict[str, Any]]:
        data = {
            **(row.payload or {}),
            "createdAt": row.created_at,
            "updatedAt": row.updated_at,
        }
        return row.document_id, data

    def _start_polling(
        self,
        resource: str,
        fetch: Callable[[], Awaitable[Any]],
        emit: Callable[[Any], None],
        on_error: ErrorListener,
    ) -> Unsubscribe:
        loop = asyncio.get_running_loop()
        self._next_subscriber += 1
        key = self._next_subscriber
        wake = asyncio.Event()
        task = loop.create_task(self._poll(resource, fetch, emit, on_error, wake))
        self._subscriptions[key] = _PollingSubscription(task=task, wake=wake)

        def _cancel() -> None:
            subscription = self._subscriptions.pop(key, None)
            if subscription is not None:
                subscription.task.cancel()
                # aclose awaits tasks that are still unwinding.
                self._cancelled.add(subscription.task)
                subscription.task.add_done_callback(self._cancelled.discard)

        return Unsubscribe(_cancel)

    async def _poll(
        self,
        resource: str,
        fetch: Callable[[], Awaitable[Any]],
        emit: Callable[[Any], None],
        on_error: ErrorListener,
        wake: asyncio.Event,
    ) -> None:
        last_fingerprint: str | None = None
        failing = False
        while True:
            wake.clear()
            try:
                payload = await fetch()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                last_fingerprint = None
                if not failing:
                    failing = True
                    _deliver(
                        on_error,
                        TransientFetchError(f"Reading {resource} failed: {exc}"),
                    )
            else:
                failing = False
                current = fingerprint(payload)
                if current != last_fingerprint:
                    last_fingerprint = current
                    _deliver(emit, payload)
            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(wake.wait(), timeout=self._poll_seconds)

    def _wake_all(self) -> None:
        for subscription in self._subscriptions.values():
            subscription.wake.set()
