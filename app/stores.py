"""Catalog and watch-history stores.

Both stores hand out whole snapshots and replace them wholesale on save. There
is no locking between writers; the last save wins.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol, Sequence

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .db_models import Document
from .models import Title, WatchHistoryEntry

logger = logging.getLogger(__name__)

CATALOG_KEY = "animeData"
HISTORY_KEY = "watchHistory"


class LedgerCorrupt(ValueError):
    """The stored watch history could not be read."""


class CatalogStore(Protocol):
    async def get_all_titles(self) -> list[Title]:
        ...

    async def save_titles(self, titles: Sequence[Title]) -> None:
        ...


class HistoryStore(Protocol):
    async def get_history(self) -> list[WatchHistoryEntry]:
        ...

    async def save_history(self, entries: Sequence[WatchHistoryEntry]) -> None:
        ...


def parse_titles(payload: Any) -> list[Title]:
    """Validate a stored catalog, skipping entries that are not titles."""

    if not isinstance(payload, list):
        if payload is not None:
            logger.warning("Ignoring catalog document of type %s", type(payload).__name__)
        return []
    titles: list[Title] = []
    for raw in payload:
        if not isinstance(raw, dict):
            continue
        try:
            titles.append(Title.model_validate(raw))
        except ValidationError as exc:
            logger.warning("Skipping invalid catalog entry %r: %s", raw.get("id"), exc)
    return titles


def parse_history(payload: Any) -> list[WatchHistoryEntry]:
    """Validate a stored ledger; raises :class:`LedgerCorrupt` on bad data."""

    if payload is None:
        return []
    if not isinstance(payload, list):
        raise LedgerCorrupt("Watch history must be a list")
    try:
        return [WatchHistoryEntry.model_validate(raw) for raw in payload]
    except ValidationError as exc:
        raise LedgerCorrupt("Watch history contains invalid entries") from exc


def _load_history(payload: Any) -> list[WatchHistoryEntry]:
    try:
        return parse_history(payload)
    except LedgerCorrupt as exc:
        logger.warning("Discarding corrupt watch history: %s", exc)
        return []


class InMemoryCatalogStore:
    """Catalog held in process memory."""

    def __init__(self, titles: Sequence[Title | dict[str, Any]] | None = None):
        self._payload: list[dict[str, Any]] = [
            title.to_payload() if isinstance(title, Title) else dict(title)
            for title in titles or []
        ]

    async def get_all_titles(self) -> list[Title]:
        return parse_titles(self._payload)

    async def save_titles(self, titles: Sequence[Title]) -> None:
        self._payload = [title.to_payload() for title in titles]


class InMemoryHistoryStore:
    """Watch history held in process memory."""

    def __init__(self, payload: Any = None):
        self._payload = payload

    async def get_history(self) -> list[WatchHistoryEntry]:
        return _load_history(self._payload)

    async def save_history(self, entries: Sequence[WatchHistoryEntry]) -> None:
        self._payload = [entry.to_payload() for entry in entries]


class DocumentStore:
    """Reads and writes whole JSON documents in the ``documents`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def load(self, key: str) -> Any:
        async with self._session_factory() as session:
            document = await session.get(Document, key)
            if document is None:
                return None
            return document.payload

    async def save(self, key: str, payload: Any) -> None:
        now = datetime.utcnow()
        async with self._session_factory() as session:
            document = await session.get(Document, key)
            if document is None:
                session.add(
                    Document(key=key, payload=payload, created_at=now, updated_at=now)
                )
            else:
                document.payload = payload
                document.updated_at = now
            await session.commit()


class DocumentCatalogStore:
    """Catalog persisted as a single document."""

    def __init__(self, documents: DocumentStore, key: str = CATALOG_KEY):
        self._documents = documents
        self._key = key

    async def get_all_titles(self) -> list[Title]:
        return parse_titles(await self._documents.load(self._key))

    async def save_titles(self, titles: Sequence[Title]) -> None:
        await self._documents.save(self._key, [title.to_payload() for title in titles])


class DocumentHistoryStore:
    """Watch history persisted as a single document."""

    def __init__(self, documents: DocumentStore, key: str = HISTORY_KEY):
        self._documents = documents
        self._key = key

    async def get_history(self) -> list[WatchHistoryEntry]:
        return _load_history(await self._documents.load(self._key))

    async def save_history(self, entries: Sequence[WatchHistoryEntry]) -> None:
        await self._documents.save(self._key, [entry.to_payload() for entry in entries])
