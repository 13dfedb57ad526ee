"""File-backed storage backend.

The global partition lives in `<data_dir>/global.<ext>` and each workspace
in `<data_dir>/workspaces/<workspace_id>.<ext>`. Both partitions are read
into memory on open; writes only touch the cache and are persisted by
`flush`, which writes to a temporary file then renames it.

A partition whose file did not exist when opened reads as new for this
session through `IS_NEW_KEY`. The marker is never written to disk.
"""
from __future__ import annotations
import asyncio
import logging
import os
from pathlib import Path
from threading import RLock
from typing import Dict, Optional

from .base import StorageBackend
from .scopes import IS_NEW_KEY, StorageScope, WorkspaceInitializationPayload
from .serializer import JSONSerializer, Serializer

logger = logging.getLogger(__name__)

WORKSPACES_DIR = "workspaces"


class FileStorageBackend(StorageBackend):
    def __init__(
        self,
        data_dir: str | Path = "./data",
        workspace_id: Optional[str] = None,
        serializer: Optional[Serializer] = None,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.serializer = serializer or JSONSerializer()
        self.workspace_id = workspace_id
        self._lock = RLock()
        self._dirty: set[StorageScope] = set()
        self._global = self._open(self._path_for(StorageScope.GLOBAL))
        self._workspace = self._open(self._path_for(StorageScope.WORKSPACE))
        # New partitions get their file on the first flush
        for scope in StorageScope:
            if IS_NEW_KEY in self._cache(scope):
                self._dirty.add(scope)

    def _path_for(self, scope: StorageScope, workspace_id: Optional[str] = None) -> Optional[Path]:
        ext = self.serializer.extension
        if scope == StorageScope.GLOBAL:
            return self.data_dir / f"global.{ext}"
        ident = workspace_id or self.workspace_id
        if not ident:
            return None
        safe_id = ident.replace("/", "_")
        return self.data_dir / WORKSPACES_DIR / f"{safe_id}.{ext}"

    def _open(self, path: Optional[Path]) -> Dict[str, str]:
        if path is None:
            return {}
        if not path.exists():
            logger.debug("Storage %s does not exist yet, starting empty", path)
            return {IS_NEW_KEY: "true"}
        with open(path, "rb") as f:
            data = f.read()
        try:
            items = self.serializer.load(data)
        except ValueError as e:
            raise ValueError(f"Corrupt storage file {path}: {e}") from e
        items.pop(IS_NEW_KEY, None)
        logger.debug("Loaded %d entries from %s", len(items), path)
        return items

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
            self._dirty.add(scope)
            return True

    def remove(self, key: str, scope: StorageScope) -> bool:
        with self._lock:
            cache = self._cache(scope)
            if key not in cache:
                return False
            del cache[key]
            self._dirty.add(scope)
            return True

    def items(self, scope: StorageScope) -> Dict[str, str]:
        with self._lock:
            return dict(self._cache(scope))

    def describe(self, scope: StorageScope) -> str:
        path = self._path_for(scope)
        return str(path) if path is not None else "inMemory"

    def _snapshot(self, scope: StorageScope) -> bytes:
        with self._lock:
            items = {k: v for k, v in self._cache(scope).items() if k != IS_NEW_KEY}
        return self.serializer.dump(items)

    def _write(self, path: Path, payload: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(path)

    async def flush(self) -> None:
        with self._lock:
            pending = sorted(self._dirty)
        for scope in pending:
            with self._lock:
                path = self._path_for(scope)
                self._dirty.discard(scope)
                if path is None:
                    # Workspace without identity stays in memory
                    continue
                payload = self._snapshot(scope)
            try:
                await asyncio.to_thread(self._write, path, payload)
            except BaseException:
                # Still unsaved; the next flush retries
                with self._lock:
                    self._dirty.add(scope)
                raise
            logger.debug("Flushed %s storage to %s", scope.name, path)

    @property
    def supports_migration(self) -> bool:
        return True

    async def migrate(self, to_workspace: WorkspaceInitializationPayload) -> None:
        if to_workspace.id == self.workspace_id:
            return
        target = self._path_for(StorageScope.WORKSPACE, to_workspace.id)
        # Switch identity before suspending so writes made meanwhile are
        # marked dirty against the new workspace
        with self._lock:
            payload = self._snapshot(StorageScope.WORKSPACE)
            previous = self.workspace_id
            was_new = self._workspace.pop(IS_NEW_KEY, None)
            was_dirty = StorageScope.WORKSPACE in self._dirty
            self.workspace_id = to_workspace.id
            self._dirty.discard(StorageScope.WORKSPACE)
        try:
            await asyncio.to_thread(self._write, target, payload)
        except BaseException:
            with self._lock:
                self.workspace_id = previous
                if was_new is not None:
                    self._workspace[IS_NEW_KEY] = was_new
                if was_dirty:
                    self._dirty.add(StorageScope.WORKSPACE)
            raise
        logger.info("Migrated workspace storage from %s to %s", previous or "<none>", to_workspace.id)

    async def close(self) -> None:
        await self.flush()
