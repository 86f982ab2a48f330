"""
Async history store for completed detection sessions.

Wraps the synchronous SQLite Database. Every operation is serialized by one
asyncio.Lock and runs in a worker thread, so there is a single writer at a
time and readers never observe a half-applied insert or clear.
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Callable, List, Mapping, Optional

from models.session_record import SessionRecord
from ops.errors import StoreUnavailableError

from .database import Database

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(when: datetime) -> str:
    """ISO-8601 with millisecond precision."""
    return when.isoformat(timespec="milliseconds")


class HistoryStore:
    """
    Append-only store of SessionRecords.

    Example:
        store = HistoryStore(Database("data/object_counter.sqlite"))
        await store.initialize()
        record_id = await store.insert({"person": 2, "car": 1}, 10)
        records = await store.list_for_display()
    """

    def __init__(self, db: Database, clock: Clock = utc_now):
        self._db = db
        self._clock = clock
        self._lock = asyncio.Lock()
        self._available = False

    @classmethod
    def from_path(cls, local_database_path: str, clock: Clock = utc_now) -> "HistoryStore":
        return cls(Database(local_database_path), clock=clock)

    @property
    def available(self) -> bool:
        return self._available

    async def initialize(self) -> None:
        """
        Open the database and create the schema.

        Raises:
            StorageError: If SQLite could not be opened; the store stays unavailable.
        """
        async with self._lock:
            await asyncio.to_thread(self._db.initialize)
            self._available = True

    def _require_available(self) -> None:
        if not self._available:
            raise StoreUnavailableError("History store not initialized")

    async def insert(self, counts: Mapping[str, int], duration: float) -> int:
        """
        Persist one finished session and return its new id.

        The timestamp is taken now (save time), the duration is rounded to
        whole seconds and clamped at zero.
        """
        self._require_available()
        # Halves round up: 2.5 s is stored as 3.
        seconds = max(0, math.floor(duration + 0.5))
        snapshot = {str(k): int(v or 0) for k, v in counts.items()}
        async with self._lock:
            timestamp = iso_timestamp(self._clock())
            record = await asyncio.to_thread(self._db.insert_session, snapshot, seconds, timestamp)
        logging.info(f"Session saved to history: id={record.id}, total={record.total}")
        return record.id

    async def list_all(self) -> List[SessionRecord]:
        """All records in insertion order (trend charts)."""
        self._require_available()
        async with self._lock:
            return await asyncio.to_thread(self._db.list_sessions)

    async def list_for_display(self, limit: Optional[int] = None) -> List[SessionRecord]:
        """All records, newest timestamp first (history table)."""
        self._require_available()
        async with self._lock:
            return await asyncio.to_thread(self._db.list_sessions, True, limit)

    async def recent(self, limit: int = 10) -> List[SessionRecord]:
        """The last `limit` records, still in insertion order."""
        records = await self.list_all()
        return records[-limit:] if limit > 0 else []

    async def clear_all(self) -> int:
        """Delete every record. Irreversible."""
        self._require_available()
        async with self._lock:
            return await asyncio.to_thread(self._db.clear_sessions)

    async def close(self) -> None:
        async with self._lock:
            self._available = False
            await asyncio.to_thread(self._db.close)
