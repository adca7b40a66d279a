"""
Prometheus exporter backed by a private registry.

No HTTP server is started; callers embed the exposition text returned by
:meth:`PrometheusExporter.render` in whatever endpoint they already serve.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Tuple

import prometheus_client

from .base import MetricExporter, Sample
from .errors import ExportError
from .metric_type import MetricType

__all__ = ["PrometheusExporter"]

logger = logging.getLogger(__name__)


class PrometheusExporter(MetricExporter):
    """Translate buffered samples into Prometheus collectors."""

    def __init__(self, name: str = "prometheus", namespace: str = "", **kwargs: Any) -> None:
        super().__init__(name=name, **kwargs)
        self.namespace = namespace
        self.registry = prometheus_client.CollectorRegistry()
        self._collectors: Dict[Tuple[str, MetricType, Tuple[str, ...]], Any] = {}
        self._registry_lock = threading.Lock()

    def render(self) -> bytes:
        """Flush pending samples and return the text exposition format."""
        self.flush()
        return prometheus_client.generate_latest(self.registry)

    def sample_value(self, name: str, labels: Dict[str, str] | None = None) -> float | None:
        """Return the current value of one sample, flushing first."""
        self.flush()
        return self.registry.get_sample_value(self._full_name(name), labels or {})

    def _full_name(self, name: str) -> str:
        return f"{self.namespace}_{name}" if self.namespace else name

    def _collector(self, sample: Sample) -> Any:
        key = (sample.name, sample.metric_type, sample.label_names)
        if key not in self._collectors:
            self._collectors[key] = self._create_collector(sample.name, sample.metric_type, sample.label_names)
        collector = self._collectors[key]
        return collector.labels(*sample.label_values) if sample.label_names else collector

    def _create_collector(self, name: str, metric_type: MetricType, label_names: Tuple[str, ...]) -> Any:
        full_name = self._full_name(name)
        if metric_type is MetricType.COUNTER:
            return prometheus_client.Counter(full_name, f"{name} counter", label_names, registry=self.registry)
        if metric_type is MetricType.GAUGE:
            return prometheus_client.Gauge(full_name, f"{name} gauge", label_names, registry=self.registry)
        if metric_type is MetricType.HISTOGRAM:
            return prometheus_client.Histogram(full_name, f"{name} histogram", label_names, registry=self.registry)
        raise ValueError(f"Unsupported metric type: {metric_type}")

    def _send(self, samples: List[Sample]) -> None:
        try:
            with self._registry_lock:
                for sample in samples:
                    self._apply(sample, self._collector(sample))
        except Exception as exc:
            logger.error("Failed to record samples in the Prometheus registry: %s", exc)
            raise ExportError(f"Failed to export metrics to Prometheus: {exc}") from exc

    @staticmethod
    def _apply(sample: Sample, target: Any) -> None:
        if sample.metric_type is MetricType.COUNTER:
            target.inc(sample.value)
        elif sample.metric_type is MetricType.GAUGE:
            target.set(sample.value)
        else:
            target.observe(sample.value)
