"""Session-scoped cache with per-read max age and lazy expiry.

Caching is an optimization only: every storage or serialization problem turns
into a miss on read and a no-op on write.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Optional

from matchoracle.cache.backends import CacheBackendError, KeyValueBackend, MemoryBackend

logger = logging.getLogger(__name__)

CACHE_PREFIX = "mo_cache_"


class CacheStore:
    def __init__(
        self,
        backend: KeyValueBackend | None = None,
        *,
        namespace: str = CACHE_PREFIX,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._backend = backend if backend is not None else MemoryBackend()
        self._namespace = namespace
        self._clock = clock

    def _full_key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    def get(self, key: str, max_age_seconds: float) -> Optional[Any]:
        full_key = self._full_key(key)
        try:
            raw = self._backend.get_item(full_key)
            if raw is None:
                return None
            envelope = json.loads(raw)
            stored_at = float(envelope["timestamp"])
            data = envelope["data"]
        except (CacheBackendError, ValueError, TypeError, KeyError) as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            self._discard(full_key)
            return None

        age = self._clock() - stored_at
        if age < max_age_seconds:
            logger.debug("Cache hit %s (age=%.1fs max=%ss)", key, age, max_age_seconds)
            return data
        logger.debug("Cache expired %s (age=%.1fs max=%ss)", key, age, max_age_seconds)
        self._discard(full_key)
        return None

    def set(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps({"data": value, "timestamp": self._clock()}, ensure_ascii=False)
            self._backend.set_item(self._full_key(key), payload)
        except (CacheBackendError, ValueError, TypeError) as exc:
            logger.warning("Cache write skipped for %s: %s", key, exc)

    def delete(self, key: str) -> None:
        self._discard(self._full_key(key))

    def _discard(self, full_key: str) -> None:
        try:
            self._backend.remove_item(full_key)
        except CacheBackendError as exc:
            logger.warning("Cache eviction failed for %s: %s", full_key, exc)
