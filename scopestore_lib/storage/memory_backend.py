"""Simple memory-backed storage backend

Keeps one `{key: text}` dict per scope for the lifetime of the process.
Used for tests and for ephemeral sessions; nothing is ever persisted, so
partitions are never reported as new and migration is not supported.
"""
from threading import RLock
from typing import Dict, Optional

from .base import StorageBackend
from .scopes import StorageScope


class MemoryStorageBackend(StorageBackend):
    def __init__(self):
        self._lock = RLock()
        self._global: Dict[str, str] = {}
        self._workspace: Dict[str, str] = {}

    def _cache(self, scope: StorageScope) -> Dict[str, str]:
        return self._global if scope == StorageScope.GLOBAL else self._workspace

    def get(self, key: str, scope: StorageScope) -> Optional[str]:
        with self._lock:
            return self._cache(scope).get(key)

    def store(self, key: str, value: str, scope: StorageScope) -> bool:
        with self._lock:
            cache = self._cache(scope)
            if cache.get(key) == value:
                return False
            cache[key] = value
            return True

    def remove(self, key: str, scope: StorageScope) -> bool:
        with self._lock:
            cache = self._cache(scope)
            if key not in cache:
                return False
            del cache[key]
            return True

    def items(self, scope: StorageScope) -> Dict[str, str]:
        with self._lock:
            return dict(self._cache(scope))

    def describe(self, scope: StorageScope) -> str:
        return "inMemory"

    async def flush(self) -> None:
        # Nothing to flush to
        return
