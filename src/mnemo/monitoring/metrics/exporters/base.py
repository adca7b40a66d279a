"""
Buffered metric export.

Engine telemetry is queued as :class:`Sample` values and handed to the
concrete exporter in batches. A batch is sent once ``batch_size`` samples are
waiting or ``flush_interval`` seconds have passed since the last send. If a
send fails the batch goes back to the front of the queue, so ordering is kept
and nothing is lost before the next flush.
"""

from __future__ import annotations

import abc
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import ExporterConfigurationError, ExportError
from .metric_type import MetricType

__all__ = ["MetricExporter", "Sample"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sample:
    """One measurement waiting to be exported."""

    name: str
    value: float
    metric_type: MetricType = MetricType.GAUGE
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def label_names(self) -> Tuple[str, ...]:
        return tuple(sorted(self.labels))

    @property
    def label_values(self) -> Tuple[str, ...]:
        return tuple(self.labels[name] for name in self.label_names)


class MetricExporter(abc.ABC):
    """Thread-safe sample queue; subclasses implement ``_send``."""

    def __init__(self, name: str, batch_size: int = 50, flush_interval: float = 15) -> None:
        if batch_size <= 0:
            raise ExporterConfigurationError("batch_size must be a positive integer")
        if flush_interval <= 0:
            raise ExporterConfigurationError("flush_interval must be positive")

        self.name = name
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.pending: List[Sample] = []
        self._last_sent = time.monotonic()
        self._pending_lock = threading.Lock()

        logger.debug("Created %s '%s' (batch_size=%d)", self.__class__.__name__, name, batch_size)

    @abc.abstractmethod
    def _send(self, samples: List[Sample]) -> None:
        """Deliver one batch to the monitoring backend."""

    def export_metric(
        self,
        name: str,
        value: float,
        labels: Optional[Mapping[str, object]] = None,
        metric_type: MetricType = MetricType.GAUGE,
    ) -> None:
        """
        Queue a sample, flushing when the batch is full or the interval elapsed.

        Raises:
            ValueError: If the name is empty or the value is not a number
        """
        if not name or not isinstance(name, str):
            raise ValueError("Metric name must be a non-empty string")
        # bool is an int subclass but never a meaningful sample
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Metric value must be numeric, got {type(value).__name__}")

        sample = Sample(
            name=name,
            value=float(value),
            metric_type=MetricType(metric_type),
            labels={str(key): str(val) for key, val in (labels or {}).items()},
        )
        with self._pending_lock:
            self.pending.append(sample)
            due = len(self.pending) >= self.batch_size or self._interval_elapsed()

        if due:
            self.flush()

    def flush(self) -> None:
        """
        Send every queued sample.

        Raises:
            ExportError: If the backend rejects the batch; the samples stay queued
        """
        with self._pending_lock:
            batch, self.pending = self.pending, []
        if not batch:
            return

        try:
            self._send(batch)
        except Exception as exc:
            with self._pending_lock:
                self.pending[:0] = batch
            logger.error("%s '%s' failed to send %d samples: %s", self.__class__.__name__, self.name, len(batch), exc)
            raise ExportError(f"Failed to export metrics: {exc}") from exc

        self._last_sent = time.monotonic()
        logger.debug("Sent %d samples via '%s'", len(batch), self.name)

    def close(self) -> None:
        """Send whatever is still queued; a failure is logged, not raised."""
        try:
            self.flush()
        except ExportError as exc:
            logger.error("Dropping %d unsent samples on close: %s", len(self.pending), exc)
        logger.info("Closed %s '%s'", self.__class__.__name__, self.name)

    def _interval_elapsed(self) -> bool:
        return time.monotonic() - self._last_sent >= self.flush_interval
