"""State change notifications and connection status."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ChangeKind(StrEnum):
    MERGE = "merge"
    UPSERT = "upsert"
    SNAPSHOT = "snapshot"
    REMOVE = "remove"


class StoreChange(BaseModel):
    """One notification emitted per store mutation.

    ``keys`` lists every flight whose record was written, replaced or
    dropped by the mutation.
    """

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    keys: frozenset[str] = Field(default_factory=frozenset)

    def touches(self, key: str | None) -> bool:
        return key is not None and key in self.keys


class ActivityLogEntry(BaseModel):
    """Immutable activity log line."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    subject_key: str
    label: str
    message: str
