"""
Historical context window.

A bounded, ordered record of the last N accepted routing decisions. It is
tie-break entropy for path selection and input to constraints that look at
recent activity (rate limits). The window is immutable: append() returns a
new window, evicting the oldest record once capacity is exceeded.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Tuple

from .canonical import canonical_json_bytes

DEFAULT_CONTEXT_CAPACITY = 64


@dataclass(frozen=True)
class ContextRecord:
    """
    One accepted routing decision as seen by later decisions.
    """
    event_id: str
    source: str
    destination: str
    volume: int
    timestamp: int
    path: Tuple[str, ...]
    payload_hash: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "source": self.source,
            "destination": self.destination,
            "volume": self.volume,
            "timestamp": self.timestamp,
            "path": list(self.path),
            "payload_hash": self.payload_hash,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "ContextRecord":
        return ContextRecord(
            event_id=data["event_id"],
            source=data["source"],
            destination=data["destination"],
            volume=data["volume"],
            timestamp=data["timestamp"],
            path=tuple(data.get("path", ())),
            payload_hash=data.get("payload_hash", ""),
        )


@dataclass(frozen=True)
class HistoricalContext:
    """
    Immutable ring buffer of ContextRecords, oldest first.
    """
    capacity: int = DEFAULT_CONTEXT_CAPACITY
    records: Tuple[ContextRecord, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int) or self.capacity <= 0:
            raise ValueError(f"context capacity must be a positive integer, got {self.capacity!r}")
        records = tuple(self.records)
        if len(records) > self.capacity:
            records = records[-self.capacity:]
        object.__setattr__(self, "records", records)

    def append(self, record: ContextRecord) -> "HistoricalContext":
        """Return a new window with record appended and the oldest evicted if full."""
        return HistoricalContext(self.capacity, (self.records + (record,))[-self.capacity:])

    def extend(self, records) -> "HistoricalContext":
        ctx = self
        for record in records:
            ctx = ctx.append(record)
        return ctx

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ContextRecord]:
        return iter(self.records)

    def count_from_source(self, source: str) -> int:
        return sum(1 for r in self.records if r.source == source)

    def canonical_bytes(self) -> bytes:
        """
        Canonical encoding of the window contents.

        Capacity is excluded: two windows holding the same records seed
        selection identically.
        """
        return canonical_json_bytes([r.to_dict() for r in self.records])
