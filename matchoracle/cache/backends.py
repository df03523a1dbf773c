"""String key/value surfaces the cache store can sit on."""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from matchoracle.models import CacheEntry


class CacheBackendError(RuntimeError):
    pass


class KeyValueBackend(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryBackend:
    """Per-process dict. ``max_entries`` mimics a storage quota."""

    def __init__(self, max_entries: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._max_entries = max_entries

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if (
            self._max_entries is not None
            and key not in self._data
            and len(self._data) >= self._max_entries
        ):
            raise CacheBackendError(f"quota exceeded ({self._max_entries} entries)")
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class SqlBackend:
    """Rows in ``cache_entries``; one short session per call."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get_item(self, key: str) -> Optional[str]:
        try:
            with self._session_factory() as db:
                entry = db.query(CacheEntry).filter(CacheEntry.key == key).one_or_none()
                return entry.payload if entry else None
        except SQLAlchemyError as exc:
            raise CacheBackendError(f"cache read failed: {exc}") from exc

    def set_item(self, key: str, value: str) -> None:
        try:
            with self._session_factory() as db:
                entry = db.query(CacheEntry).filter(CacheEntry.key == key).one_or_none()
                if entry is None:
                    entry = CacheEntry(key=key)
                    db.add(entry)
                entry.payload = value
                db.commit()
        except SQLAlchemyError as exc:
            raise CacheBackendError(f"cache write failed: {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            with self._session_factory() as db:
                db.query(CacheEntry).filter(CacheEntry.key == key).delete()
                db.commit()
        except SQLAlchemyError as exc:
            raise CacheBackendError(f"cache delete failed: {exc}") from exc
