"""Metrics publication helpers for the recall and consolidation engines."""

from __future__ import annotations

import logging
from typing import MutableMapping

from mnemo.memory.config.settings import MetricsSettings
from mnemo.memory.models.consolidation import ConsolidationResult
from mnemo.monitoring.metrics.exporters import (
    ExporterError,
    MetricExporter,
    MetricType,
    create_exporter,
)


class MemoryMetricsPublisher:
    """Publish engine telemetry through a metric exporter.

    Export failures are logged and dropped; telemetry never changes the
    outcome of the call that produced it.
    """

    def __init__(
        self,
        settings: MetricsSettings | None = None,
        *,
        log: logging.Logger | None = None,
        exporter: MetricExporter | None = None,
    ) -> None:
        self._log = log or logging.getLogger(__name__)
        self._settings = settings or MetricsSettings()
        self._enabled = self._settings.enabled
        self._exporter: MetricExporter | None = exporter

        if not self._enabled:
            self._exporter = None
            return

        if self._exporter is None:
            try:
                self._exporter = create_exporter(self._settings)
            except ExporterError as exc:
                self._log.warning("Disabling memory metrics exporter: %s", exc)
                self._enabled = False
                self._exporter = None

    @property
    def enabled(self) -> bool:
        """Return ``True`` when metrics emission is active."""

        return self._enabled and self._exporter is not None

    @property
    def exporter(self) -> MetricExporter | None:
        return self._exporter

    # ------------------------------------------------------------------
    # Recall metrics
    # ------------------------------------------------------------------

    def record_recall(
        self,
        *,
        strategy: str,
        duration_ms: float,
        candidates: int,
        hit: bool,
    ) -> None:
        """Record a completed recall."""

        if not self.enabled:
            return

        labels = {"strategy": strategy}
        self._emit(
            "memory_recall_latency_ms",
            max(0.0, float(duration_ms)),
            labels=labels,
            metric_type=MetricType.HISTOGRAM,
        )
        self._emit("memory_recall_candidates", candidates, labels=labels, metric_type=MetricType.GAUGE)
        self._emit(
            "memory_recall_total",
            1.0,
            labels={"strategy": strategy, "outcome": "hit" if hit else "miss"},
            metric_type=MetricType.COUNTER,
        )

    def record_recall_error(self, *, strategy: str) -> None:
        if not self.enabled:
            return
        self._emit(
            "memory_recall_total",
            1.0,
            labels={"strategy": strategy, "outcome": "error"},
            metric_type=MetricType.COUNTER,
        )

    # ------------------------------------------------------------------
    # Consolidation metrics
    # ------------------------------------------------------------------

    def record_consolidation(self, result: ConsolidationResult) -> None:
        """Record the counts and latency of a consolidation pass."""

        if not self.enabled:
            return

        for action, count in (
            ("promoted", result.promoted_count),
            ("pruned", result.pruned_count),
            ("retained", result.retained_count),
        ):
            self._emit(
                "memory_consolidation_total",
                count,
                labels={"action": action},
                metric_type=MetricType.COUNTER,
            )
        self._emit(
            "memory_consolidation_latency_ms",
            result.duration_ms,
            metric_type=MetricType.HISTOGRAM,
        )

    def update_store_size(self, total_records: int) -> None:
        if not self.enabled:
            return
        self._emit("memory_store_records", total_records, metric_type=MetricType.GAUGE)

    def flush(self) -> None:
        if not self.enabled or self._exporter is None:
            return
        try:
            self._exporter.flush()
        except Exception:  # noqa: BLE001 - metrics must never break control flow
            self._log.warning("Failed to flush memory metrics", exc_info=True)

    def close(self) -> None:
        if self._exporter is None:
            return
        try:
            self._exporter.close()
        except Exception:  # noqa: BLE001 - metrics must never break control flow
            self._log.warning("Failed to close memory metrics exporter", exc_info=True)

    def _emit(
        self,
        name: str,
        value: float,
        *,
        labels: MutableMapping[str, str] | None = None,
        metric_type: MetricType = MetricType.GAUGE,
    ) -> None:
        if not self.enabled or self._exporter is None:
            return

        try:
            self._exporter.export_metric(
                name,
                float(value),
                labels=dict(labels or {}),
                metric_type=metric_type,
            )
        except Exception:  # noqa: BLE001 - metrics must never break control flow
            self._log.warning("Failed to export metric %s", name, exc_info=True)
