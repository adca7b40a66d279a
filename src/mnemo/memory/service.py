"""
Episodic Memory Service

The in-process entry point. ``EpisodicMemoryService`` wires a memory store,
the recall and consolidation engines, the strategy performance tracker and
the telemetry publisher together, and exposes the operations callers use:

- store / get / update_importance / delete
- recall / recall_by_tags / recall_recent
- consolidate
- get_statistics, record_performance, get_best_strategy

Example:
    service = EpisodicMemoryService()
    service.store("Customer asked about Q3 invoice", tags=["billing", "q3"])
    result = service.recall(RecallQuery(strategy="exact_match", tags=["billing"]))
"""

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Sequence, Union

from mnemo.memory.backends.base import MemoryStoreBackend
from mnemo.memory.backends.in_memory import InMemoryMemoryStore
from mnemo.memory.config.settings import EngineConfig
from mnemo.memory.manager.consolidation import ConsolidationEngine
from mnemo.memory.manager.metrics import MemoryMetricsPublisher
from mnemo.memory.manager.performance import StrategyPerformanceTracker
from mnemo.memory.manager.recall import RecallEngine
from mnemo.memory.models import (
    ConsolidationResult,
    MemoryRecord,
    MemoryStatistics,
    RecallQuery,
    RecallResult,
    RecallStrategy,
    RecencyField,
    StrategyPerformance,
    ensure_utc,
    utc_now,
)
from mnemo.monitoring.metrics.exporters import MetricExporter

# Configure logger
logger = logging.getLogger(__name__)


class EpisodicMemoryService:
    """
    Facade over the episodic memory engines.

    The service owns no records itself; the store is the single owner. It is
    safe to call from multiple threads.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        store: Optional[MemoryStoreBackend] = None,
        clock: Optional[Callable[[], datetime]] = None,
        exporter: Optional[MetricExporter] = None,
    ):
        """
        Initialize the service.

        Args:
            config: Engine configuration. Defaults to built-in defaults.
            store: Memory store. Defaults to an empty in-memory store.
            clock: Returns the current UTC time. Defaults to the system clock.
            exporter: Metric exporter overriding the configured one.
        """
        self.config = config or EngineConfig()
        self._store = store if store is not None else InMemoryMemoryStore()
        self._clock = clock or utc_now
        self._tracker = StrategyPerformanceTracker()
        self._metrics = MemoryMetricsPublisher(self.config.metrics, exporter=exporter)

        self._recall = RecallEngine(
            self._store,
            self._tracker,
            self.config.recall,
            clock=self._clock,
            metrics=self._metrics,
        )
        self._consolidation = ConsolidationEngine(
            self._store,
            self.config.consolidation,
            clock=self._clock,
            metrics=self._metrics,
        )

        logger.debug("Initialized EpisodicMemoryService with %s", self._store.__class__.__name__)

    @property
    def memory_store(self) -> MemoryStoreBackend:
        return self._store

    @property
    def tracker(self) -> StrategyPerformanceTracker:
        return self._tracker

    @property
    def metrics(self) -> MemoryMetricsPublisher:
        return self._metrics

    # ------------------------------------------------------------------
    # Record lifecycle
    # ------------------------------------------------------------------

    def store(
        self,
        content: str,
        *,
        embedding: Optional[Sequence[float]] = None,
        tags: Iterable[str] = (),
        importance: float = 0.5,
        record_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> MemoryRecord:
        """
        Create and insert a new record.

        Raises:
            DuplicateRecordError: If ``record_id`` is already in use
            pydantic.ValidationError: If a field is out of range
        """
        created = ensure_utc(created_at) if created_at is not None else ensure_utc(self._clock())
        fields: dict[str, Any] = {
            "content": content,
            "embedding": embedding,
            "tags": tags,
            "importance": importance,
            "created_at": created,
        }
        if record_id is not None:
            fields["record_id"] = record_id

        stored = self._store.insert(MemoryRecord(**fields))
        self._metrics.update_store_size(self._store.count())
        return stored

    def get(self, record_id: str) -> Optional[MemoryRecord]:
        """Return a copy of the record without recording an access."""
        return self._store.get(record_id)

    def update_importance(self, record_id: str, importance: float) -> MemoryRecord:
        """
        Replace a record's importance.

        Raises:
            RecordNotFoundError: If the record does not exist
            ValueError: If ``importance`` lies outside ``[0, 1]``
        """
        return self._store.set_importance(record_id, importance)

    def delete(self, record_id: str) -> bool:
        removed = self._store.remove(record_id)
        if removed:
            self._metrics.update_store_size(self._store.count())
        return removed

    # ------------------------------------------------------------------
    # Recall
    # ------------------------------------------------------------------

    def recall(self, query: Union[RecallQuery, dict]) -> RecallResult:
        """Run a recall query. A plain mapping is validated into a ``RecallQuery``."""
        if not isinstance(query, RecallQuery):
            query = RecallQuery.model_validate(query)
        return self._recall.recall(query)

    def recall_by_tags(self, tags: Iterable[str], max_results: Optional[int] = None) -> List[MemoryRecord]:
        return self._recall.recall_by_tags(tags, max_results)

    def recall_recent(
        self,
        count: Optional[int] = None,
        order_by: RecencyField = RecencyField.LAST_ACCESSED,
    ) -> List[MemoryRecord]:
        return self._recall.recall_recent(count, order_by)

    # ------------------------------------------------------------------
    # Consolidation
    # ------------------------------------------------------------------

    def consolidate(
        self,
        *,
        promotion_access_threshold: Optional[int] = None,
        promotion_importance_threshold: Optional[float] = None,
        pruning_importance_threshold: Optional[float] = None,
        pruning_staleness_days: Optional[float] = None,
    ) -> ConsolidationResult:
        """Run a consolidation pass, optionally overriding configured thresholds."""
        return self._consolidation.consolidate(
            promotion_access_threshold=promotion_access_threshold,
            promotion_importance_threshold=promotion_importance_threshold,
            pruning_importance_threshold=pruning_importance_threshold,
            pruning_staleness_days=pruning_staleness_days,
        )

    # ------------------------------------------------------------------
    # Statistics and strategy adaptation
    # ------------------------------------------------------------------

    def get_statistics(self) -> MemoryStatistics:
        """Combine tracker aggregates with store-wide counts."""
        records = self._store.snapshot()
        total = len(records)
        consolidated = sum(1 for record in records if record.consolidated)
        avg_importance = sum(record.importance for record in records) / total if total else 0.0

        return MemoryStatistics(
            total_records=total,
            consolidated_count=consolidated,
            avg_importance=min(1.0, max(0.0, avg_importance)),
            strategy_performance=self._tracker.snapshot(),
        )

    def record_performance(
        self,
        strategy: RecallStrategy,
        relevance: float,
        latency_ms: float,
        was_hit: bool,
    ) -> StrategyPerformance:
        """Feed an externally measured sample into the tracker."""
        if not isinstance(strategy, RecallStrategy):
            strategy = RecallStrategy.from_string(strategy)
        return self._tracker.record(strategy, relevance, latency_ms, was_hit)

    def get_best_strategy(self) -> RecallStrategy:
        """Return the best tracked strategy, or hybrid when there is no history."""
        return self._tracker.best_strategy() or RecallStrategy.HYBRID

    def close(self) -> None:
        """Flush telemetry and close the store."""
        self._metrics.close()
        self._store.close()

    def __enter__(self) -> "EpisodicMemoryService":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
