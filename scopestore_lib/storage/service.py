"""Storage service: typed access, key targets, change events and flushing.

The service composes any `StorageBackend`. It converts values to and from
text, keeps a per-scope map of key -> target under the reserved
`TARGET_KEY`, turns backend changes into events and runs the flush
protocol (broadcast `WillSaveState`, then await the backend).
"""
from __future__ import annotations
import json
import logging
import math
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .base import StorageBackend
from .diagnostics import StorageReport, log_storage
from .events import (
    Emitter,
    Listener,
    StorageChangeEvent,
    StorageTargetChangeEvent,
    Subscription,
    WillSaveStateEvent,
)
from .scopes import (
    IS_NEW_KEY,
    TARGET_KEY,
    StorageScope,
    StorageTarget,
    WillSaveStateReason,
    WorkspaceInitializationPayload,
    is_reserved_key,
)

logger = logging.getLogger(__name__)

_INT_PREFIX = re.compile(r"\s*([+-]?[0-9]+)")


def parse_int(text: str) -> float | int:
    """Parse the leading base-10 integer of `text`.

    Leading whitespace and a sign are accepted and trailing garbage is
    ignored ("12px" -> 12). Text without leading digits gives `nan`.
    """
    m = _INT_PREFIX.match(text)
    if not m:
        return math.nan
    return int(m.group(1))


def _float_text(value: float) -> str:
    # Positional between 1e-6 and 1e21, "1e+21"/"1e-7" style outside
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    magnitude = abs(value)
    if 1e-6 <= magnitude < 1e21:
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    mantissa, _, exponent = repr(value).partition("e")
    if not exponent:
        return repr(value)
    exp = int(exponent)
    if mantissa.endswith(".0"):
        mantissa = mantissa[:-2]
    return f"{mantissa}e{'+' if exp >= 0 else '-'}{abs(exp)}"


def to_text(value: Any) -> str:
    """Render a stored value the way it is written to the backend.

    Booleans become "true"/"false"; floats follow the JavaScript number
    to string rules ("2", "0.00001", "1e+21", "1e-7").
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _float_text(value)
    return str(value)


def _is_target(value: Any) -> bool:
    # json turns true/false into bools, which are ints in Python
    return isinstance(value, int) and not isinstance(value, bool)


class StorageService:
    """Scoped key-value storage on top of a `StorageBackend`."""

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend
        self._on_did_change_storage: Emitter[StorageChangeEvent] = Emitter("onDidChangeStorage")
        self._on_did_change_target: Emitter[StorageTargetChangeEvent] = Emitter("onDidChangeTarget")
        self._on_will_save_state: Emitter[WillSaveStateEvent] = Emitter("onWillSaveState")
        self._closed = False

        # Changes to the key-target map surface as their own event
        self._target_subscription = self._on_did_change_storage.event(self._on_storage_changed)

    # --- events

    def on_did_change_storage(self, listener: Listener) -> Subscription:
        return self._on_did_change_storage.event(listener)

    def on_did_change_target(self, listener: Listener) -> Subscription:
        return self._on_did_change_target.event(listener)

    def on_will_save_state(self, listener: Listener) -> Subscription:
        return self._on_will_save_state.event(listener)

    def _on_storage_changed(self, event: StorageChangeEvent) -> None:
        if event.key == TARGET_KEY:
            self._on_did_change_target.fire(StorageTargetChangeEvent(scope=event.scope))

    # --- typed reads

    def get(self, key: str, scope: StorageScope, fallback: Optional[str] = None) -> Optional[str]:
        value = self.backend.get(key, scope)
        if value is None:
            return fallback
        return value

    def get_boolean(self, key: str, scope: StorageScope, fallback: Optional[bool] = None) -> Optional[bool]:
        value = self.backend.get(key, scope)
        if value is None:
            return fallback
        return value == "true"

    def get_number(self, key: str, scope: StorageScope, fallback: Optional[float] = None) -> Optional[float]:
        value = self.backend.get(key, scope)
        if value is None:
            return fallback
        return parse_int(value)

    # --- writes

    def store2(self, key: str, value: Any, scope: StorageScope, target: StorageTarget) -> None:
        self._check_key(key)
        scope = StorageScope(scope)
        target = StorageTarget(target)

        # None removes the entry
        if value is None:
            self.remove(key, scope)
            return

        self._do_store(key, to_text(value), scope)
        self._update_key_target(key, scope, target)

    def store(self, key: str, value: Any, scope: StorageScope) -> None:
        """Deprecated: use `store2` and pass an explicit target."""
        self.store2(key, value, scope, StorageTarget.MACHINE)

    def remove(self, key: str, scope: StorageScope) -> None:
        self._check_key(key)
        scope = StorageScope(scope)
        self._do_remove(key, scope)
        self._update_key_target(key, scope, None)

    def keys(self, scope: StorageScope, target: StorageTarget) -> List[str]:
        return [
            key for key, key_target in self._get_key_targets(scope).items()
            if _is_target(key_target) and key_target == int(target)
        ]

    def is_new(self, scope: StorageScope) -> bool:
        return self.get_boolean(IS_NEW_KEY, scope) is True

    def _check_key(self, key: str) -> None:
        if is_reserved_key(key):
            raise ValueError(f"{key!r} is a reserved storage key")

    def _do_store(self, key: str, text: str, scope: StorageScope) -> None:
        if not self.backend.store(key, text, scope):
            return
        logger.debug("Stored %s (%s)", key, scope.name)
        self._on_did_change_storage.fire(StorageChangeEvent(key=key, scope=scope))

    def _do_remove(self, key: str, scope: StorageScope) -> None:
        if not self.backend.remove(key, scope):
            return
        logger.debug("Removed %s (%s)", key, scope.name)
        self._on_did_change_storage.fire(StorageChangeEvent(key=key, scope=scope))

    # --- key targets

    def _get_key_targets(self, scope: StorageScope) -> Dict[str, Any]:
        raw = self.backend.get(TARGET_KEY, scope)
        if raw:
            try:
                parsed = json.loads(raw)
            except (ValueError, RecursionError):
                logger.debug("Ignoring unreadable key targets in %s storage", StorageScope(scope).name)
            else:
                if isinstance(parsed, dict):
                    return parsed
        return {}

    def _update_key_target(self, key: str, scope: StorageScope, target: Optional[StorageTarget]) -> None:
        key_targets = self._get_key_targets(scope)
        if target is not None:
            current = key_targets.get(key)
            if _is_target(current) and current == int(target):
                return
            key_targets[key] = int(target)
        else:
            if not _is_target(key_targets.get(key)):
                return
            del key_targets[key]
        self._do_store(TARGET_KEY, json.dumps(key_targets, separators=(",", ":"), ensure_ascii=False), scope)

    # --- lifecycle

    async def flush(self) -> None:
        """Ask listeners for their latest state, then flush the backend.

        Listeners run synchronously before the backend flush starts, so any
        value they store is part of this flush.
        """
        self._on_will_save_state.fire(WillSaveStateEvent(reason=WillSaveStateReason.NONE))
        await self.backend.flush()

    @property
    def supports_migration(self) -> bool:
        return self.backend.supports_migration

    async def migrate(self, to_workspace: WorkspaceInitializationPayload) -> None:
        await self.backend.migrate(to_workspace)

    def log_storage(self) -> StorageReport:
        return log_storage(
            self.backend.items(StorageScope.GLOBAL),
            self.backend.items(StorageScope.WORKSPACE),
            self.backend.describe(StorageScope.GLOBAL),
            self.backend.describe(StorageScope.WORKSPACE),
        )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._on_will_save_state.fire(WillSaveStateEvent(reason=WillSaveStateReason.SHUTDOWN))
        await self.backend.flush()
        await self.backend.close()
        self.dispose()

    def dispose(self) -> None:
        self._target_subscription.dispose()
        self._on_did_change_storage.dispose()
        self._on_did_change_target.dispose()
        self._on_will_save_state.dispose()
