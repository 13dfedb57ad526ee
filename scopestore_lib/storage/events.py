"""Storage notifications and the emitter that delivers them.

Delivery is synchronous and in registration order. A listener that raises
is logged and skipped; the remaining listeners still receive the event.
"""
from __future__ import annotations
import logging
from typing import Callable, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from .scopes import StorageScope, WillSaveStateReason

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class StorageChangeEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    scope: StorageScope


class StorageTargetChangeEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    scope: StorageScope


class WillSaveStateEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: WillSaveStateReason = WillSaveStateReason.NONE


class Subscription:
    """Handle returned by `Emitter.event`; `dispose` unregisters the listener."""

    def __init__(self, emitter: Optional["Emitter"] = None, listener: Optional[Callable] = None) -> None:
        self._emitter = emitter
        self._listener = listener

    @property
    def listener(self) -> Optional[Callable]:
        return self._listener

    @property
    def disposed(self) -> bool:
        return self._emitter is None

    def dispose(self) -> None:
        if self._emitter is None:
            return
        self._emitter._remove(self)
        self._emitter = None

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()


class Emitter(Generic[T]):
    def __init__(self, name: str = "") -> None:
        self.name = name
        self._subscriptions: List[Subscription] = []
        self._disposed = False

    def event(self, listener: Listener) -> Subscription:
        """Register `listener` and return a subscription handle."""
        if self._disposed:
            return Subscription()
        subscription = Subscription(self, listener)
        self._subscriptions.append(subscription)
        return subscription

    def fire(self, event: T) -> None:
        if self._disposed:
            return
        for subscription in list(self._subscriptions):
            if subscription.disposed:
                continue
            try:
                subscription.listener(event)
            except Exception:
                logger.exception("Listener for %s failed on %r", self.name or "event", event)

    def dispose(self) -> None:
        self._subscriptions.clear()
        self._disposed = True

    def _remove(self, subscription: Subscription) -> None:
        # Only the registration owned by this subscription, even when the
        # same callable was registered more than once
        self._subscriptions = [s for s in self._subscriptions if s is not subscription]
