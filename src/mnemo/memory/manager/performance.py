"""
Strategy Performance Tracking

Keeps a running aggregate of recall samples per strategy. Aggregates are
updated incrementally with the streaming mean
``new_avg = old_avg + (sample - old_avg) / new_count``; no history is kept.

The tracker feeds two consumers: "auto" strategy selection in the recall
engine, and adaptive hybrid weighting when it is enabled in configuration.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from mnemo.memory.config.settings import HYBRID_COMPONENTS, uniform_hybrid_weights
from mnemo.memory.models.recall import RecallStrategy
from mnemo.memory.models.statistics import StrategyPerformance

logger = logging.getLogger(__name__)


@dataclass
class _RunningAggregate:
    sample_count: int = 0
    avg_relevance_score: float = 0.0
    avg_latency_ms: float = 0.0
    hit_rate: float = 0.0

    def add(self, relevance: float, latency_ms: float, was_hit: bool) -> None:
        self.sample_count += 1
        n = self.sample_count
        self.avg_relevance_score += (relevance - self.avg_relevance_score) / n
        self.avg_latency_ms += (latency_ms - self.avg_latency_ms) / n
        self.hit_rate += ((1.0 if was_hit else 0.0) - self.hit_rate) / n


class StrategyPerformanceTracker:
    """Thread-safe per-strategy relevance, latency and hit-rate aggregates."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._aggregates: Dict[RecallStrategy, _RunningAggregate] = {}

    def record(
        self,
        strategy: RecallStrategy,
        relevance: float,
        latency_ms: float,
        was_hit: bool,
    ) -> StrategyPerformance:
        """
        Add one sample and return the updated aggregate.

        Args:
            strategy: Strategy that served the recall
            relevance: Score of the top result, 0.0 when nothing was returned
            latency_ms: Wall time of the recall
            was_hit: Whether at least one record was returned

        Raises:
            ValueError: If ``relevance`` is outside ``[0, 1]`` or latency is negative
        """
        strategy = RecallStrategy(strategy)
        relevance = float(relevance)
        latency_ms = float(latency_ms)
        if not 0.0 <= relevance <= 1.0:
            raise ValueError(f"relevance must lie in [0, 1], got {relevance!r}")
        if latency_ms < 0.0:
            raise ValueError(f"latency_ms must be non-negative, got {latency_ms!r}")

        with self._lock:
            aggregate = self._aggregates.setdefault(strategy, _RunningAggregate())
            aggregate.add(relevance, latency_ms, bool(was_hit))
            view = self._view(strategy, aggregate)

        logger.debug(
            "Recorded %s sample: relevance=%.3f latency=%.2fms hit=%s (n=%d)",
            strategy.value,
            relevance,
            latency_ms,
            was_hit,
            view.sample_count,
        )
        return view

    def performance(self, strategy: RecallStrategy) -> Optional[StrategyPerformance]:
        with self._lock:
            aggregate = self._aggregates.get(strategy)
            return self._view(strategy, aggregate) if aggregate else None

    def snapshot(self) -> Dict[RecallStrategy, StrategyPerformance]:
        """Return immutable views of every strategy with at least one sample."""
        with self._lock:
            return {
                strategy: self._view(strategy, aggregate)
                for strategy, aggregate in self._aggregates.items()
            }

    def best_strategy(
        self, candidates: Optional[Iterable[RecallStrategy]] = None
    ) -> Optional[RecallStrategy]:
        """
        Return the strategy with the highest average relevance.

        Ties are broken by the lowest average latency, then by declaration
        order. ``None`` when no strategy has been sampled.
        """
        allowed = set(candidates) if candidates is not None else set(RecallStrategy)
        order = {strategy: index for index, strategy in enumerate(RecallStrategy)}
        sampled = [view for view in self.snapshot().values() if view.strategy in allowed]
        if not sampled:
            return None
        best = min(
            sampled,
            key=lambda view: (-view.avg_relevance_score, view.avg_latency_ms, order[view.strategy]),
        )
        return best.strategy

    def hybrid_weights(self) -> Dict[RecallStrategy, float]:
        """
        Derive hybrid weights proportional to each component's average relevance.

        Unsampled components get the mean of the sampled ones. Falls back to
        uniform weights when nothing is sampled or every average is zero.
        """
        views = self.snapshot()
        sampled = {
            strategy: views[strategy].avg_relevance_score
            for strategy in HYBRID_COMPONENTS
            if strategy in views
        }
        if not sampled:
            return uniform_hybrid_weights()

        fill = sum(sampled.values()) / len(sampled)
        raw = {strategy: sampled.get(strategy, fill) for strategy in HYBRID_COMPONENTS}
        total = sum(raw.values())
        if total <= 0.0:
            return uniform_hybrid_weights()
        return {strategy: weight / total for strategy, weight in raw.items()}

    def reset(self) -> None:
        with self._lock:
            self._aggregates.clear()

    @staticmethod
    def _view(strategy: RecallStrategy, aggregate: _RunningAggregate) -> StrategyPerformance:
        return StrategyPerformance(
            strategy=strategy,
            sample_count=aggregate.sample_count,
            avg_relevance_score=aggregate.avg_relevance_score,
            avg_latency_ms=aggregate.avg_latency_ms,
            hit_rate=min(1.0, max(0.0, aggregate.hit_rate)),
        )
