"""Logging-based metrics exporter, the engine default."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from .base import MetricExporter, Sample

__all__ = ["LoggingExporter"]

logger = logging.getLogger(__name__)


class LoggingExporter(MetricExporter):
    """Export metrics by writing one log entry per sample."""

    def __init__(
        self,
        name: str = "logging",
        logger_name: Optional[str] = None,
        log_level: int = logging.DEBUG,
        **kwargs: Any,
    ) -> None:
        super().__init__(name=name, **kwargs)
        self.log_level = log_level
        self.metrics_logger = logging.getLogger(logger_name or __name__)

    def _send(self, samples: List[Sample]) -> None:
        for sample in samples:
            self.metrics_logger.log(self.log_level, self._format_message(sample))

    @staticmethod
    def _format_message(sample: Sample) -> str:
        labels_str = ", ".join(f"{key}={value}" for key, value in zip(sample.label_names, sample.label_values))
        base = f"METRIC: {sample.name}={sample.value:g} ({sample.metric_type.value})"
        return f"{base} [{labels_str}]" if labels_str else base
