"""
SessionRecord model for persisted detection sessions.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class SessionRecord:
    """
    Summary of one completed detection session.

    Attributes:
        id: Store-assigned identifier, increasing with insertion order.
        timestamp: ISO-8601 time the session was saved (at stop).
        duration: Whole seconds between start and stop.
        counts: Counts displayed at the moment of stop (last frame only).
        people: counts["person"], 0 if absent.
        cars: counts["car"], 0 if absent.
        trucks: counts["truck"], 0 if absent.
        buses: counts["bus"], 0 if absent.
        total: Sum of every value in counts, untracked labels included.
    """
    id: int
    timestamp: str
    duration: int
    counts: Mapping[str, int] = field(default_factory=dict)
    people: int = 0
    cars: int = 0
    trucks: int = 0
    buses: int = 0
    total: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "counts", MappingProxyType(dict(self.counts)))

    @staticmethod
    def derive_fields(counts: Mapping[str, int]) -> Dict[str, int]:
        """Compute people/cars/trucks/buses/total from a counts mapping."""
        return {
            "people": int(counts.get("person") or 0),
            "cars": int(counts.get("car") or 0),
            "trucks": int(counts.get("truck") or 0),
            "buses": int(counts.get("bus") or 0),
            "total": sum(int(v or 0) for v in counts.values()),
        }

    @classmethod
    def from_counts(
        cls,
        id: int,
        timestamp: str,
        duration: int,
        counts: Mapping[str, int],
    ) -> "SessionRecord":
        return cls(
            id=id,
            timestamp=timestamp,
            duration=duration,
            counts=counts,
            **cls.derive_fields(counts),
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SessionRecord":
        """Adapter: Build from a detection_sessions database row."""
        counts = row["counts"]
        if isinstance(counts, str):
            counts = json.loads(counts)
        return cls(
            id=int(row["id"]),
            timestamp=row["timestamp"],
            duration=int(row["duration"]),
            counts=counts,
            people=int(row["people"]),
            cars=int(row["cars"]),
            trucks=int(row["trucks"]),
            buses=int(row["buses"]),
            total=int(row["total"]),
        )

    @property
    def saved_at(self) -> datetime:
        """Parsed timestamp (timezone-aware)."""
        return datetime.fromisoformat(self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "duration": self.duration,
            "counts": dict(self.counts),
            "people": self.people,
            "cars": self.cars,
            "trucks": self.trucks,
            "buses": self.buses,
            "total": self.total,
        }
