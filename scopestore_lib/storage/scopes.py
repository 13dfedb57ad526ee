"""Scope and target classifications applied to every stored key.

*Scope* selects the partition a key lives in (global vs. the current
workspace). *Target* is metadata about portability (user vs. machine) and
is recorded separately from the value. Ordinal values are persisted and
must not change.
"""
from __future__ import annotations
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, field_validator

IS_NEW_KEY = "__$__isNewStorageMarker"
TARGET_KEY = "__$__targetStorageMarker"

RESERVED_KEYS = frozenset({IS_NEW_KEY, TARGET_KEY})


def is_reserved_key(key: str) -> bool:
    return key in RESERVED_KEYS


class StorageScope(IntEnum):
    # Data shared by all workspaces
    GLOBAL = 0
    # Data private to the current workspace
    WORKSPACE = 1


class StorageTarget(IntEnum):
    USER = 0
    MACHINE = 1


class WillSaveStateReason(IntEnum):
    NONE = 0
    SHUTDOWN = 1


class WorkspaceInitializationPayload(BaseModel):
    """Opaque identity of a workspace, as handed over by the host."""

    model_config = ConfigDict(frozen=True)

    id: str

    @field_validator("id")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        ident = value.strip()
        if not ident:
            raise ValueError("workspace id must be non-empty")
        return ident
