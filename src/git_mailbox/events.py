"""Storage notifications published by the message store.

The event bus itself lives outside this package. The store only needs a
fire-and-forget sink; when none is supplied it publishes into
NullEventPublisher and nothing happens.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Protocol, runtime_checkable


class EventType(str, Enum):
    """Notifications emitted by the message store."""

    MESSAGE_STORED = "message.stored"
    MESSAGE_STATUS_CHANGED = "message.status_changed"
    MESSAGE_PUSH_FAILED = "message.push_failed"


@dataclass(frozen=True)
class StorageEvent:
    """Immutable notification about a store write or replication attempt."""

    event_type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> dict:
        """Serialize to a plain dict (for JSON)."""
        return {
            "event_type": self.event_type.value,
            "payload": dict(self.payload),
            "timestamp": self.timestamp,
        }


@runtime_checkable
class EventPublisher(Protocol):
    """Protocol for anything that accepts store notifications."""

    def publish(self, event: StorageEvent) -> None: ...


class NullEventPublisher:
    """Publisher that drops every event."""

    def publish(self, event: StorageEvent) -> None:
        return None
