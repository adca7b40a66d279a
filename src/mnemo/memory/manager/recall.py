"""
Memory Manager Recall

This module implements the recall engine. One call moves through
``Received -> StrategySelected -> Matched -> Ranked -> BookkeepingApplied ->
Returned``; any matcher failure aborts the whole call so that a faulting
strategy is never mistaken for "no match".

Matchers only ever see a store snapshot. Access bookkeeping is applied
afterwards through ``MemoryStore.touch_many`` as one unit, and the records
handed back are the post-touch copies. A failed recall records no access.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from mnemo.core.exceptions import InvalidQueryError, MnemoError
from mnemo.memory.backends.base import MemoryStoreBackend
from mnemo.memory.config.settings import RecallSettings
from mnemo.memory.manager.metrics import MemoryMetricsPublisher
from mnemo.memory.manager.performance import StrategyPerformanceTracker
from mnemo.memory.models.memory_record import MemoryRecord, ensure_utc, utc_now
from mnemo.memory.models.recall import (
    AUTO_STRATEGY,
    RecallQuery,
    RecallResult,
    RecallStrategy,
    RecencyField,
)
from mnemo.memory.strategies import Match, MatchContext, run_matcher

# Configure logger
logger = logging.getLogger(__name__)


class RecallEngine:
    """
    Selects a strategy, runs the matcher and applies access bookkeeping.

    The engine holds no record state of its own: only a handle to the store,
    the performance tracker and the telemetry publisher.
    """

    def __init__(
        self,
        store: MemoryStoreBackend,
        tracker: StrategyPerformanceTracker,
        settings: Optional[RecallSettings] = None,
        *,
        clock: Callable[[], datetime] = utc_now,
        metrics: Optional[MemoryMetricsPublisher] = None,
    ):
        self._store = store
        self._tracker = tracker
        self._settings = settings or RecallSettings()
        self._clock = clock
        self._metrics = metrics

    @property
    def settings(self) -> RecallSettings:
        return self._settings

    def recall(self, query: RecallQuery) -> RecallResult:
        """
        Run a recall query.

        Args:
            query: The recall request

        Returns:
            Ranked result holding post-bookkeeping copies of the returned records

        Raises:
            InvalidQueryError: If the query violates a recall constraint
            MatcherFailureError: If the selected matcher faults
            StoreUnavailableError: If the store cannot be read or written
        """
        started = time.perf_counter()
        requested = AUTO_STRATEGY if query.is_auto else query.strategy.value

        try:
            self._validate(query)
            strategy = self._select_strategy(query)
            requested = strategy.value
            now = self._now()
            candidates = self._scope(self._store.snapshot(), query, now)
            matches = run_matcher(strategy, query, candidates, self._context(now))
            ranked = self._rank(matches, query)
            records = self._apply_bookkeeping(record_id for record_id, _ in ranked)
        except MnemoError:
            if self._metrics is not None:
                self._metrics.record_recall_error(strategy=requested)
            raise

        scores = dict(ranked)
        relevance_scores = {record.record_id: scores[record.record_id] for record in records}
        duration_ms = (time.perf_counter() - started) * 1000.0

        result = RecallResult(
            records=records,
            strategy_used=strategy,
            query_duration_ms=duration_ms,
            total_candidates=len(candidates),
            relevance_scores=relevance_scores,
        )

        self._tracker.record(strategy, result.top_score, duration_ms, result.is_hit)
        if self._metrics is not None:
            self._metrics.record_recall(
                strategy=strategy.value,
                duration_ms=duration_ms,
                candidates=len(candidates),
                hit=result.is_hit,
            )

        logger.info(
            "Recall via %s returned %d of %d candidates in %.2fms",
            strategy.value,
            len(records),
            len(candidates),
            duration_ms,
        )
        return result

    def recall_by_tags(self, tags: Iterable[str], max_results: Optional[int] = None) -> List[MemoryRecord]:
        """
        Return records sharing tags with ``tags``, best overlap first.

        Equivalent to ExactMatch with a tag filter and no query text. Scores
        are not exposed and no performance sample is recorded.
        """
        limit = self._settings.default_max_results if max_results is None else max_results
        query = RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags=tags, max_results=limit)
        self._validate(query)

        now = self._now()
        matches = run_matcher(RecallStrategy.EXACT_MATCH, query, self._store.snapshot(), self._context(now))
        selected = [record_id for record_id, _ in matches[:limit]]
        records = self._auxiliary_result(selected)

        logger.info("Recall by tags %s returned %d records", sorted(query.tags), len(records))
        return records

    def recall_recent(
        self,
        count: Optional[int] = None,
        order_by: RecencyField = RecencyField.LAST_ACCESSED,
    ) -> List[MemoryRecord]:
        """
        Return the ``count`` most recent records.

        Records are ordered by ``order_by`` descending, ties broken by
        ``record_id``.
        """
        limit = self._settings.default_max_results if count is None else count
        if limit <= 0:
            raise InvalidQueryError(f"count must be positive, got {limit}", count=limit)
        field = RecencyField(order_by).value

        ordered = sorted(
            self._store.snapshot(),
            key=lambda record: (-getattr(record, field).timestamp(), record.record_id),
        )
        records = self._auxiliary_result([record.record_id for record in ordered[:limit]])

        logger.info("Recall of %d most recent records by %s returned %d", limit, field, len(records))
        return records

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _validate(self, query: RecallQuery) -> None:
        requested = AUTO_STRATEGY if query.is_auto else query.strategy.value
        if query.max_results <= 0:
            raise InvalidQueryError(
                f"max_results must be positive, got {query.max_results}",
                strategy=requested,
                max_results=query.max_results,
            )
        if query.strategy is RecallStrategy.SEMANTIC_SIMILARITY and query.query_embedding is None:
            raise InvalidQueryError(
                "semantic_similarity requires a query embedding",
                strategy=requested,
            )
        if query.time_window is not None and query.time_window.total_seconds() <= 0:
            raise InvalidQueryError(
                "time_window must be a positive duration",
                strategy=requested,
                time_window=str(query.time_window),
            )

    def _select_strategy(self, query: RecallQuery) -> RecallStrategy:
        if not query.is_auto:
            return query.strategy

        best = self._tracker.best_strategy()
        if best is None:
            logger.debug("No recall history; auto strategy defaults to hybrid")
            return RecallStrategy.HYBRID
        if best is RecallStrategy.SEMANTIC_SIMILARITY and query.query_embedding is None:
            logger.debug("Auto strategy chose semantic_similarity without an embedding; using hybrid")
            return RecallStrategy.HYBRID
        logger.debug("Auto strategy resolved to %s", best.value)
        return best

    @staticmethod
    def _scope(
        snapshot: Sequence[MemoryRecord], query: RecallQuery, now: datetime
    ) -> Tuple[MemoryRecord, ...]:
        if query.time_window is None:
            return tuple(snapshot)
        cutoff = now - query.time_window
        return tuple(record for record in snapshot if record.created_at >= cutoff)

    def _context(self, now: datetime) -> MatchContext:
        if self._settings.adaptive_hybrid_weights:
            weights = self._tracker.hybrid_weights()
        else:
            weights = self._settings.hybrid_weights
        return MatchContext(
            now=now,
            fuzzy_min_similarity=self._settings.fuzzy_min_similarity,
            temporal_half_life=self._settings.temporal_half_life,
            hybrid_weights=weights,
        )

    @staticmethod
    def _rank(matches: Sequence[Match], query: RecallQuery) -> List[Tuple[str, float]]:
        kept = [(m.record_id, m.score) for m in matches if m.score >= query.min_relevance]
        # sorted() is stable, so the matcher's tie-break order survives
        kept = sorted(kept, key=lambda item: -item[1])
        return kept[: query.max_results]

    def _apply_bookkeeping(self, record_ids: Iterable[str]) -> List[MemoryRecord]:
        # records pruned between snapshot and touch are left out
        return self._store.touch_many(record_ids, self._now())

    def _auxiliary_result(self, record_ids: List[str]) -> List[MemoryRecord]:
        if self._settings.track_access_on_auxiliary_recall:
            return self._apply_bookkeeping(record_ids)
        found: Dict[str, MemoryRecord] = {}
        for record_id in record_ids:
            record = self._store.get(record_id)
            if record is not None:
                found[record_id] = record
        return [found[record_id] for record_id in record_ids if record_id in found]

    def _now(self) -> datetime:
        return ensure_utc(self._clock())
