"""
Base Memory Store Module

This module provides the MemoryStoreBackend class, the single synchronization
boundary around the authoritative record collection. It implements the public
store operations (availability checks, locking, error translation, logging)
and delegates the actual storage primitives to subclasses.

Locking model:

- Every operation runs under one re-entrant lock, so mutations of the same
  record are mutually exclusive.
- ``snapshot`` holds the lock only long enough to copy the records; matchers
  then iterate over the copy while writers proceed.
- ``exclusive()`` lets the consolidation engine hold the lock for a whole pass
  so that no record is touched, promoted or removed behind its back.
"""

from __future__ import annotations

import abc
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, TypeVar

from mnemo.core.exceptions import (
    DuplicateRecordError,
    MnemoError,
    RecordNotFoundError,
    StoreUnavailableError,
)
from mnemo.memory.models.memory_record import MemoryRecord, ensure_utc

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")


class MemoryStoreBackend(abc.ABC):
    """
    Base class for all memory stores.

    Subclasses implement the underscored primitives; they are always called
    with the store lock held and must return copies, never live references.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._closed = False

    @property
    def available(self) -> bool:
        return not self._closed

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def insert(self, record: MemoryRecord) -> MemoryRecord:
        """
        Insert a new record.

        Raises:
            DuplicateRecordError: If the identifier is already in use
            StoreUnavailableError: If the store cannot be written
        """

        def _call() -> MemoryRecord:
            if self._contains(record.record_id):
                raise DuplicateRecordError(record.record_id)
            stored = self._put(record.model_copy(deep=True))
            logger.info(
                "Stored memory record '%s' with importance %.2f",
                record.record_id,
                record.importance,
            )
            return stored

        return self._execute("insert", _call)

    def get(self, record_id: str) -> Optional[MemoryRecord]:
        """Return a copy of the record, or ``None`` when it does not exist."""
        return self._execute("get", lambda: self._fetch(record_id))

    def snapshot(self) -> Tuple[MemoryRecord, ...]:
        """Return a point-in-time copy of every record."""
        return self._execute("snapshot", self._all)

    def count(self) -> int:
        return self._execute("count", self._size)

    def touch(self, record_id: str, at: datetime) -> Optional[MemoryRecord]:
        """
        Record one access: increment ``access_count`` and advance ``last_accessed_at``.

        Returns:
            The updated copy, or ``None`` if the record was removed in the meantime
        """

        def _call() -> Optional[MemoryRecord]:
            current = self._fetch(record_id)
            if current is None:
                logger.debug("Skipping touch of vanished record '%s'", record_id)
                return None
            updated = self._put(current.accessed(ensure_utc(at)))
            logger.debug("Touched record '%s' (access_count=%d)", record_id, updated.access_count)
            return updated

        return self._execute("touch", _call)

    def touch_many(self, record_ids: Iterable[str], at: datetime) -> List[MemoryRecord]:
        """
        Record one access on each record as a single unit.

        Records removed in the meantime are skipped. If a write fails, the
        records already written are restored before the error propagates, so
        a failed call leaves every ``access_count`` as it was.

        Returns:
            Updated copies in the order of ``record_ids``
        """
        at = ensure_utc(at)
        requested = list(record_ids)

        def _call() -> List[MemoryRecord]:
            pending: List[Tuple[MemoryRecord, MemoryRecord]] = []
            for record_id in requested:
                current = self._fetch(record_id)
                if current is None:
                    logger.debug("Skipping touch of vanished record '%s'", record_id)
                    continue
                pending.append((current, current.accessed(at)))

            written: List[MemoryRecord] = []
            try:
                for _, updated in pending:
                    written.append(self._put(updated))
            except Exception:
                self._restore(previous for previous, _ in pending[: len(written)])
                raise

            logger.debug("Touched %d records", len(written))
            return written

        return self._execute("touch", _call)

    def set_importance(self, record_id: str, importance: float) -> MemoryRecord:
        """
        Replace the importance of a record.

        Raises:
            RecordNotFoundError: If the record does not exist
            ValueError: If ``importance`` lies outside ``[0, 1]``
        """
        value = float(importance)
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"importance must lie in [0, 1], got {importance!r}")

        def _call() -> MemoryRecord:
            current = self._require(record_id)
            updated = self._put(current.model_copy(update={"importance": value}, deep=True))
            logger.debug("Set importance of '%s' to %.2f", record_id, value)
            return updated

        return self._execute("set_importance", _call)

    def mark_consolidated(self, record_id: str) -> MemoryRecord:
        """
        Promote a record to consolidated status. Already-consolidated records are returned unchanged.

        Raises:
            RecordNotFoundError: If the record does not exist
        """

        def _call() -> MemoryRecord:
            current = self._require(record_id)
            if current.consolidated:
                return current
            updated = self._put(current.model_copy(update={"consolidated": True}, deep=True))
            logger.debug("Marked record '%s' as consolidated", record_id)
            return updated

        return self._execute("mark_consolidated", _call)

    def remove(self, record_id: str) -> bool:
        """Remove a record. Returns ``False`` when it did not exist."""

        def _call() -> bool:
            removed = self._delete(record_id)
            if removed:
                logger.info("Deleted memory record '%s'", record_id)
            return removed

        return self._execute("remove", _call)

    @contextmanager
    def exclusive(self) -> Iterator["MemoryStoreBackend"]:
        """Hold the store lock for a multi-step pass such as consolidation."""
        self._ensure_available("exclusive")
        with self._lock:
            yield self

    def close(self) -> None:
        """Release resources; every later operation raises ``StoreUnavailableError``."""
        with self._lock:
            if self._closed:
                return
            self._close_backend()
            self._closed = True
        logger.info("%s closed", self.__class__.__name__)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require(self, record_id: str) -> MemoryRecord:
        current = self._fetch(record_id)
        if current is None:
            raise RecordNotFoundError(record_id)
        return current

    def _restore(self, records: Iterable[MemoryRecord]) -> None:
        for record in records:
            try:
                self._put(record)
            except Exception:
                logger.exception("Failed to restore memory record '%s'", record.record_id)

    def _ensure_available(self, operation: str) -> None:
        if self._closed:
            raise StoreUnavailableError(operation, message=f"Memory store is closed (operation '{operation}')")

    def _execute(self, operation: str, call: Callable[[], _ResultT]) -> _ResultT:
        """Run ``call`` under the store lock, translating backend faults."""
        self._ensure_available(operation)
        with self._lock:
            self._ensure_available(operation)
            try:
                return call()
            except (MnemoError, ValueError):
                raise
            except Exception as exc:
                logger.exception("Memory store operation '%s' failed", operation)
                raise StoreUnavailableError(operation, cause=exc) from exc

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def _contains(self, record_id: str) -> bool:
        """Return ``True`` when a record with this identifier exists."""

    @abc.abstractmethod
    def _fetch(self, record_id: str) -> Optional[MemoryRecord]:
        """Return a copy of the stored record or ``None``."""

    @abc.abstractmethod
    def _put(self, record: MemoryRecord) -> MemoryRecord:
        """Insert or replace a record and return a copy of what was stored."""

    @abc.abstractmethod
    def _delete(self, record_id: str) -> bool:
        """Delete a record, returning whether it existed."""

    @abc.abstractmethod
    def _all(self) -> Tuple[MemoryRecord, ...]:
        """Return copies of every stored record."""

    @abc.abstractmethod
    def _size(self) -> int:
        """Return the number of stored records."""

    def _close_backend(self) -> None:
        """Backend-specific shutdown hook."""
