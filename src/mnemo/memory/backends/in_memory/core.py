"""
In-Memory Memory Store

This module provides the dictionary-backed store used by default. Records are
kept in insertion order keyed by ``record_id``; every read hands out a deep
copy so callers and matchers never hold references into the store.
"""

import logging
from typing import Dict, Iterable, Optional, Tuple

from mnemo.memory.backends.base import MemoryStoreBackend
from mnemo.memory.models.memory_record import MemoryRecord

logger = logging.getLogger(__name__)


class InMemoryMemoryStore(MemoryStoreBackend):
    """
    In-memory implementation of the memory store.

    Features:
    - Constant-time lookup by record identifier
    - Point-in-time snapshots for lock-free matcher scans
    - Optional seeding from an iterable of records
    """

    def __init__(self, records: Optional[Iterable[MemoryRecord]] = None):
        """
        Initialize the store.

        Args:
            records: Optional records to insert immediately
        """
        super().__init__()
        self._data: Dict[str, MemoryRecord] = {}

        for record in records or ():
            self.insert(record)

        logger.debug("Initialized in-memory store with %d records", len(self._data))

    def _contains(self, record_id: str) -> bool:
        return record_id in self._data

    def _fetch(self, record_id: str) -> Optional[MemoryRecord]:
        record = self._data.get(record_id)
        return record.model_copy(deep=True) if record is not None else None

    def _put(self, record: MemoryRecord) -> MemoryRecord:
        self._data[record.record_id] = record
        return record.model_copy(deep=True)

    def _delete(self, record_id: str) -> bool:
        return self._data.pop(record_id, None) is not None

    def _all(self) -> Tuple[MemoryRecord, ...]:
        return tuple(record.model_copy(deep=True) for record in self._data.values())

    def _size(self) -> int:
        return len(self._data)

    def _close_backend(self) -> None:
        self._data.clear()
