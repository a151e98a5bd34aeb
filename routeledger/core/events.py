"""
Activity event model.

Events arrive already normalized from the upstream observation layer.
They are immutable records; the router never re-derives raw data.
"""

import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping

from .canonical import canonical_json_bytes
from .errors import InvalidEvent

EVENT_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class ActivityEvent:
    """
    Immutable normalized activity event.

    Fields:
        event_id: Unique identifier
        timestamp: Monotonic-normalized integer timestamp
        source: Node the activity starts at
        destination: Node the activity must reach
        volume: Unsigned fixed-point integer amount (no floats)
        metadata: Opaque JSON-compatible mapping
    """
    event_id: str
    timestamp: int
    source: str
    destination: str
    volume: int
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Own a read-only deep copy so the caller cannot change a routed event
        if isinstance(self.metadata, Mapping):
            object.__setattr__(self, "metadata", MappingProxyType(copy.deepcopy(dict(self.metadata))))

    def validate(self) -> "ActivityEvent":
        """
        Check required fields.

        Raises:
            InvalidEvent: If any field is missing or malformed
        """
        for name in ("event_id", "source", "destination"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise InvalidEvent(f"event.{name} must be a non-empty string", reason=name, stage="received")
        if not _is_uint(self.timestamp):
            raise InvalidEvent("event.timestamp must be a non-negative integer", reason="timestamp", stage="received")
        if not _is_uint(self.volume):
            raise InvalidEvent("event.volume must be a non-negative integer", reason="volume", stage="received")
        if self.source == self.destination:
            raise InvalidEvent("event.source and event.destination must differ", reason="destination", stage="received")
        if not isinstance(self.metadata, Mapping):
            raise InvalidEvent("event.metadata must be a mapping", reason="metadata", stage="received")
        try:
            canonical_json_bytes(self.metadata)
        except (TypeError, ValueError) as ex:
            raise InvalidEvent(f"event.metadata is not canonically encodable: {ex}", reason="metadata", stage="received") from ex
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "timestamp": self.timestamp,
            "source": self.source,
            "destination": self.destination,
            "volume": self.volume,
            "metadata": copy.deepcopy(dict(self.metadata)),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ActivityEvent":
        """
        Build an event from a decoded mapping.

        Raises:
            InvalidEvent: If a required field is absent
        """
        missing = [k for k in ("event_id", "timestamp", "source", "destination", "volume") if k not in data]
        if missing:
            raise InvalidEvent(f"event missing fields: {', '.join(missing)}", reason=missing[0], stage="received")
        return cls(
            event_id=data["event_id"],
            timestamp=data["timestamp"],
            source=data["source"],
            destination=data["destination"],
            volume=data["volume"],
            metadata=dict(data.get("metadata") or {}),
        )

    def canonical_bytes(self) -> bytes:
        """Versioned canonical encoding used in selection seeds and payload hashes."""
        return canonical_json_bytes({"v": EVENT_SCHEMA_VERSION, "event": self.to_dict()})


def _is_uint(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
