"""Construct a metric exporter from :class:`MetricsSettings`."""

from __future__ import annotations

from mnemo.memory.config.settings import MetricsSettings

from .base import MetricExporter
from .errors import ExporterConfigurationError
from .logging_exporter import LoggingExporter
from .prometheus import PrometheusExporter

__all__ = ["create_exporter"]


def create_exporter(settings: MetricsSettings) -> MetricExporter:
    if settings.exporter == "prometheus":
        return PrometheusExporter(
            name=settings.name,
            namespace=settings.name,
            batch_size=settings.batch_size,
            flush_interval=settings.flush_interval,
        )
    if settings.exporter == "logging":
        return LoggingExporter(
            name=settings.name,
            logger_name=f"{settings.name}.metrics",
            batch_size=settings.batch_size,
            flush_interval=settings.flush_interval,
        )
    raise ExporterConfigurationError(f"Unknown exporter type: {settings.exporter}")
