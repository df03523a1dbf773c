from matchoracle.cache.backends import CacheBackendError, MemoryBackend, SqlBackend
from matchoracle.cache.store import CacheStore

__all__ = ["CacheBackendError", "CacheStore", "MemoryBackend", "SqlBackend"]
