"""Storage backend interface definitions.

Defines the StorageBackend abstract class the storage service composes.
A backend holds two partitions (global and workspace) of key -> text
entries and knows nothing about targets or events; it only reports whether
a write actually changed anything.
"""
from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from .scopes import StorageScope, WorkspaceInitializationPayload

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """Abstract storage backend.

    Values are always text; conversion from and to booleans/numbers is the
    service's job.
    """

    @abstractmethod
    def get(self, key: str, scope: StorageScope) -> Optional[str]:
        """Return the stored text for `key` or None when absent."""

    @abstractmethod
    def store(self, key: str, value: str, scope: StorageScope) -> bool:
        """Store `value` under `key`.

        Return False without touching anything if `value` equals the
        current text, True otherwise.
        """

    @abstractmethod
    def remove(self, key: str, scope: StorageScope) -> bool:
        """Delete `key`. Return False if it was not present."""

    @abstractmethod
    async def flush(self) -> None:
        """Commit pending writes to the underlying medium."""

    @abstractmethod
    def items(self, scope: StorageScope) -> Dict[str, str]:
        """Return a snapshot copy of the partition."""

    def describe(self, scope: StorageScope) -> str:
        """Path or identifier of the partition, for diagnostics."""
        return type(self).__name__

    @property
    def supports_migration(self) -> bool:
        return False

    async def migrate(self, to_workspace: WorkspaceInitializationPayload) -> None:
        # Not supported: completes without doing anything
        logger.debug("%s does not support migration to %s", type(self).__name__, to_workspace.id)

    async def close(self) -> None:
        return
