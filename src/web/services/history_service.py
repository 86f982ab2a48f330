from __future__ import annotations

import logging
from typing import Dict, List, Optional

from export import to_table, trend_series
from models.session_record import SessionRecord
from ops.errors import StorageError, StoreUnavailableError
from storage.history import HistoryStore


class HistoryService:
    """
    Read/clear/export access to session history for the web API.

    Reads degrade instead of failing: if the store is unavailable the history
    looks empty and the export is the header row only.
    """

    def __init__(self, store: Optional[HistoryStore]):
        self.store = store

    async def list_for_display(self, limit: Optional[int] = None) -> List[SessionRecord]:
        if self.store is None:
            return []
        try:
            return await self.store.list_for_display(limit)
        except (StoreUnavailableError, StorageError) as e:
            logging.warning(f"History unavailable: {e}")
            return []

    async def trend(self, limit: int = 10) -> Dict[str, list]:
        records: List[SessionRecord] = []
        if self.store is not None:
            try:
                records = await self.store.recent(limit)
            except (StoreUnavailableError, StorageError) as e:
                logging.warning(f"History unavailable: {e}")
        return trend_series(records)

    async def export_csv(self) -> str:
        """CSV text, one row per session in the order they were saved."""
        records: List[SessionRecord] = []
        if self.store is not None:
            try:
                records = await self.store.list_all()
            except (StoreUnavailableError, StorageError) as e:
                logging.warning(f"History unavailable: {e}")
        return to_table(records)

    async def clear(self) -> int:
        """
        Raises:
            StoreUnavailableError: If there is no usable store.
            StorageError: If the delete failed.
        """
        if self.store is None:
            raise StoreUnavailableError("History store not configured")
        deleted = await self.store.clear_all()
        logging.info(f"History cleared: {deleted} sessions deleted")
        return deleted
