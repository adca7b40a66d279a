"""
Memory Manager Consolidation

This module promotes important, frequently recalled records to consolidated
status and prunes stale, low-value provisional records.

A pass holds the store's exclusive lock from snapshot to the last write, so
no record can be touched, promoted or removed while it is being classified.
Thresholds are idempotent: re-running a pass after a mid-pass backend failure
never double-promotes or double-prunes.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from mnemo.core.exceptions import ConfigurationError, ConsolidationError
from mnemo.memory.backends.base import MemoryStoreBackend
from mnemo.memory.config.settings import ConsolidationSettings
from mnemo.memory.manager.metrics import MemoryMetricsPublisher
from mnemo.memory.models.consolidation import ConsolidationResult
from mnemo.memory.models.memory_record import MemoryRecord, ensure_utc, utc_now

# Configure logger
logger = logging.getLogger(__name__)


@dataclass
class ConsolidationPlan:
    """Classification of one snapshot; built before any write is applied."""

    promote: List[str] = field(default_factory=list)
    prune: List[str] = field(default_factory=list)
    retained: int = 0


class ConsolidationEngine:
    """
    Standard promotion and pruning policy.

    A record is promoted when ``access_count >= promotion_access_threshold``
    and ``importance >= promotion_importance_threshold``. A provisional record
    is pruned only when all of the following hold:

    - ``importance < pruning_importance_threshold``
    - ``last_accessed_at`` is older than the staleness window
    - ``access_count == 0``

    Consolidated records are always retained.
    """

    def __init__(
        self,
        store: MemoryStoreBackend,
        settings: Optional[ConsolidationSettings] = None,
        *,
        clock: Callable[[], datetime] = utc_now,
        metrics: Optional[MemoryMetricsPublisher] = None,
    ):
        self._store = store
        self._settings = settings or ConsolidationSettings()
        self._clock = clock
        self._metrics = metrics

    @property
    def settings(self) -> ConsolidationSettings:
        return self._settings

    def consolidate(self, **overrides: Any) -> ConsolidationResult:
        """
        Run one consolidation pass to completion.

        Args:
            **overrides: Per-call replacements for any ``ConsolidationSettings``
                field, e.g. ``promotion_access_threshold=5``. ``None`` values
                fall back to configuration.

        Returns:
            Counts of promoted, pruned and retained records

        Raises:
            ConfigurationError: If an override is unknown or invalid
            ConsolidationError: If the store fails while changes are applied
        """
        settings = self._resolve_settings(overrides)
        started = time.perf_counter()

        with self._store.exclusive():
            now = ensure_utc(self._clock())
            plan = self.plan(self._store.snapshot(), settings, now)
            self._apply(plan)
            remaining = self._store.count()

        result = ConsolidationResult(
            promoted_count=len(plan.promote),
            pruned_count=len(plan.prune),
            retained_count=plan.retained,
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )

        logger.info(
            "Consolidation promoted %d, pruned %d, retained %d records in %.2fms",
            result.promoted_count,
            result.pruned_count,
            result.retained_count,
            result.duration_ms,
        )
        if self._metrics is not None:
            self._metrics.record_consolidation(result)
            self._metrics.update_store_size(remaining)
        return result

    @staticmethod
    def plan(
        records: Sequence[MemoryRecord],
        settings: ConsolidationSettings,
        now: datetime,
    ) -> ConsolidationPlan:
        """Classify each record without touching the store."""
        plan = ConsolidationPlan()
        stale_cutoff = ensure_utc(now) - settings.pruning_staleness_window

        for record in records:
            if record.consolidated:
                plan.retained += 1
            elif (
                record.access_count >= settings.promotion_access_threshold
                and record.importance >= settings.promotion_importance_threshold
            ):
                plan.promote.append(record.record_id)
            elif (
                record.importance < settings.pruning_importance_threshold
                and record.is_stale(stale_cutoff)
                and record.access_count == 0
            ):
                plan.prune.append(record.record_id)
            else:
                plan.retained += 1

        return plan

    def _apply(self, plan: ConsolidationPlan) -> None:
        promoted = pruned = 0
        try:
            for record_id in plan.promote:
                self._store.mark_consolidated(record_id)
                promoted += 1
                logger.debug("Promoted record '%s'", record_id)
            for record_id in plan.prune:
                self._store.remove(record_id)
                pruned += 1
                logger.debug("Pruned record '%s'", record_id)
        except Exception as exc:
            logger.error(
                "Consolidation failed after %d/%d promotions and %d/%d prunes: %s",
                promoted,
                len(plan.promote),
                pruned,
                len(plan.prune),
                exc,
            )
            raise ConsolidationError(
                f"Consolidation pass failed: {exc}",
                promoted=len(plan.promote),
                pruned=len(plan.prune),
                retained=plan.retained,
                cause=exc,
            ) from exc

    def _resolve_settings(self, overrides: Dict[str, Any]) -> ConsolidationSettings:
        supplied = {key: value for key, value in overrides.items() if value is not None}
        if not supplied:
            return self._settings

        unknown = set(supplied) - set(ConsolidationSettings.model_fields)
        if unknown:
            raise ConfigurationError(f"Unknown consolidation override(s): {sorted(unknown)}")
        try:
            return ConsolidationSettings.model_validate({**self._settings.model_dump(), **supplied})
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid consolidation override: {exc}") from exc
