"""Durable storage backends and the adapter used by the client."""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Any, Awaitable, Protocol, TypeVar, Union

import structlog
from pydantic import ValidationError

from .models import PersistedSessions

logger = structlog.get_logger(__name__)

T = TypeVar("T")
MaybeAwaitable = Union[T, Awaitable[T]]


class SupportedStorage(Protocol):
    """Key-value store over strings. Methods may be sync or async."""

    def get_item(self, key: str) -> MaybeAwaitable[str | None]: ...

    def set_item(self, key: str, value: str) -> MaybeAwaitable[None]: ...

    def remove_item(self, key: str) -> MaybeAwaitable[None]: ...


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class InMemoryStorage:
    """Synchronous in-process storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        """Return the stored value or None."""
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        """Delete ``key`` if present."""
        self._items.pop(key, None)


class AsyncInMemoryStorage:
    """In-process storage that only offers asynchronous access."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        """Return the stored value or None."""
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        """Delete ``key`` if present."""
        self._items.pop(key, None)


class FileStorage:
    """Synchronous storage keeping one file per key under a directory."""

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        """Return the stored value or None."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def remove_item(self, key: str) -> None:
        """Delete ``key`` if present."""
        self._path(key).unlink(missing_ok=True)


class StorageAdapter:
    """Reads and writes the PersistedSessions document under one key.

    Every failure (backend error, malformed JSON, schema mismatch) is
    logged and reported as absence. With no backend every call is a no-op.
    """

    def __init__(self, storage: SupportedStorage | None, key: str) -> None:
        self._storage = storage
        self._key = key

    @property
    def available(self) -> bool:
        """True when a storage backend is configured."""
        return self._storage is not None

    async def load(self) -> PersistedSessions | None:
        """Read the document, or None when absent or unreadable."""
        if self._storage is None:
            return None
        try:
            raw = await _resolve(self._storage.get_item(self._key))
        except Exception as e:
            logger.error("storage_read_failed", key=self._key, error=str(e))
            return None
        return self._decode(raw)

    def load_sync(self) -> PersistedSessions | None:
        """Read the document without awaiting.

        Returns None when the backend can only answer asynchronously.
        """
        if self._storage is None:
            return None
        try:
            raw = self._storage.get_item(self._key)
        except Exception as e:
            logger.error("storage_read_failed", key=self._key, error=str(e))
            return None
        if inspect.isawaitable(raw):
            if inspect.iscoroutine(raw):
                raw.close()
            logger.debug("storage_sync_read_unsupported", key=self._key)
            return None
        return self._decode(raw)

    async def save(self, store: PersistedSessions) -> None:
        """Write the whole document back."""
        if self._storage is None:
            return
        try:
            raw = store.to_json()
        except (TypeError, ValueError) as e:
            logger.error("storage_encode_failed", key=self._key, error=str(e))
            return
        try:
            await _resolve(self._storage.set_item(self._key, raw))
        except Exception as e:
            logger.error("storage_write_failed", key=self._key, error=str(e))

    async def remove(self) -> None:
        """Erase the document."""
        if self._storage is None:
            return
        try:
            await _resolve(self._storage.remove_item(self._key))
        except Exception as e:
            logger.error("storage_remove_failed", key=self._key, error=str(e))

    def _decode(self, raw: Any) -> PersistedSessions | None:
        if not raw or not isinstance(raw, str):
            return None
        try:
            return PersistedSessions.from_json(raw)
        except ValidationError as e:
            logger.warning(
                "storage_document_invalid",
                key=self._key,
                errors=e.error_count(),
            )
            return None
