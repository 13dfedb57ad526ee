"""Storage abstraction package for scopestore."""
from __future__ import annotations
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .base import StorageBackend
from .events import (
    Emitter,
    StorageChangeEvent,
    StorageTargetChangeEvent,
    Subscription,
    WillSaveStateEvent,
)
from .file_backend import FileStorageBackend
from .memory_backend import MemoryStorageBackend
from .scopes import (
    IS_NEW_KEY,
    TARGET_KEY,
    StorageScope,
    StorageTarget,
    WillSaveStateReason,
    WorkspaceInitializationPayload,
)
from .serializer import get_serializer
from .service import StorageService

if TYPE_CHECKING:
    from scopestore_lib.config import StorageConfig


def create_storage(
    backend: str = "memory",
    serializer: str = "json",
    data_dir: str | Path = "./data",
    workspace: Optional[str] = None,
) -> StorageService:
    """Build a `StorageService` over the named backend ('memory' or 'file')."""
    kind = backend.lower()
    if kind == "memory":
        return StorageService(MemoryStorageBackend())
    if kind == "file":
        return StorageService(
            FileStorageBackend(data_dir=data_dir, workspace_id=workspace, serializer=get_serializer(serializer))
        )
    raise ValueError(f"Unknown storage backend: {backend!r}")


def create_storage_from_config(config: "StorageConfig") -> StorageService:
    return create_storage(
        backend=config.backend,
        serializer=config.serializer,
        data_dir=config.data_dir,
        workspace=config.workspace_id,
    )


__all__ = [
    "IS_NEW_KEY",
    "TARGET_KEY",
    "Emitter",
    "FileStorageBackend",
    "MemoryStorageBackend",
    "StorageBackend",
    "StorageChangeEvent",
    "StorageScope",
    "StorageService",
    "StorageTarget",
    "StorageTargetChangeEvent",
    "Subscription",
    "WillSaveStateEvent",
    "WillSaveStateReason",
    "WorkspaceInitializationPayload",
    "create_storage",
    "create_storage_from_config",
]
