from __future__ import annotations

from typing import TYPE_CHECKING

from scan_reader.config import settings
from scan_reader.storage.base import JobStatusStore, PageTextStore, StorageError
from scan_reader.storage.file_store import FileStore
from scan_reader.storage.memory import InMemoryStore

if TYPE_CHECKING:
    from scan_reader.storage.redis_store import RedisStore

    Store = FileStore | InMemoryStore | RedisStore

__all__ = [
    "FileStore",
    "InMemoryStore",
    "JobStatusStore",
    "PageTextStore",
    "StorageError",
    "close_store",
    "create_store",
    "get_store",
]

_store: Store | None = None


def create_store(backend: str | None = None) -> Store:
    """Build a new store for *backend* (default ``settings.storage_backend``).

    The caller owns the result and must ``await store.close()``.
    """
    backend = backend or settings.storage_backend
    if backend == "redis":
        from scan_reader.storage.redis_store import RedisStore
        return RedisStore.from_url(settings.redis_url, prefix=settings.redis_key_prefix)
    if backend == "file":
        return FileStore(settings.data_dir)
    return InMemoryStore()


def get_store() -> Store:
    """Return the process-wide store shared by API sessions.

    One instance per process: sessions reopened for the same document see
    earlier results even on the memory backend, and every upload shares one
    Redis connection pool. Released by ``close_store()``.
    """
    global _store  # noqa: PLW0603

    if _store is None:
        _store = create_store()
    return _store


async def close_store() -> None:
    """Close the shared store, if one was created."""
    global _store  # noqa: PLW0603

    store, _store = _store, None
    if store is not None:
        await store.close()
