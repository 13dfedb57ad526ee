from typing import Protocol, Any, Dict, List, Optional, Callable, runtime_checkable

from .scopes import StorageScope, StorageTarget, WorkspaceInitializationPayload


@runtime_checkable
class StorageBackendProtocol(Protocol):
    """Backend protocol mirroring `scopestore_lib.storage.base.StorageBackend`.

    Implementations should follow the semantics documented on the abstract
    base class (None for missing keys, False from `store`/`remove` when
    nothing changed).
    """

    def get(self, key: str, scope: StorageScope) -> Optional[str]: ...

    def store(self, key: str, value: str, scope: StorageScope) -> bool: ...

    def remove(self, key: str, scope: StorageScope) -> bool: ...

    async def flush(self) -> None: ...

    def items(self, scope: StorageScope) -> Dict[str, str]: ...

    def describe(self, scope: StorageScope) -> str: ...

    @property
    def supports_migration(self) -> bool: ...

    async def migrate(self, to_workspace: WorkspaceInitializationPayload) -> None: ...

    async def close(self) -> None: ...


@runtime_checkable
class StorageServiceProtocol(Protocol):
    """Public surface of `scopestore_lib.storage.service.StorageService`."""

    def get(self, key: str, scope: StorageScope, fallback: Optional[str] = None) -> Optional[str]: ...

    def get_boolean(self, key: str, scope: StorageScope, fallback: Optional[bool] = None) -> Optional[bool]: ...

    def get_number(self, key: str, scope: StorageScope, fallback: Optional[float] = None) -> Optional[float]: ...

    def store(self, key: str, value: Any, scope: StorageScope) -> None: ...

    def store2(self, key: str, value: Any, scope: StorageScope, target: StorageTarget) -> None: ...

    def remove(self, key: str, scope: StorageScope) -> None: ...

    def keys(self, scope: StorageScope, target: StorageTarget) -> List[str]: ...

    def is_new(self, scope: StorageScope) -> bool: ...

    def log_storage(self) -> Any: ...

    async def migrate(self, to_workspace: WorkspaceInitializationPayload) -> None: ...

    async def flush(self) -> None: ...

    def on_did_change_storage(self, listener: Callable[[Any], None]) -> Any: ...

    def on_did_change_target(self, listener: Callable[[Any], None]) -> Any: ...

    def on_will_save_state(self, listener: Callable[[Any], None]) -> Any: ...
