"""Metrics exporter package exposing public exporter implementations."""

from .metric_type import MetricType
from .errors import ExportError, ExporterConfigurationError, ExporterError
from .base import MetricExporter, Sample
from .logging_exporter import LoggingExporter
from .prometheus import PrometheusExporter
from .factory import create_exporter

__all__ = [
    "MetricType",
    "ExporterError",
    "ExporterConfigurationError",
    "ExportError",
    "MetricExporter",
    "Sample",
    "LoggingExporter",
    "PrometheusExporter",
    "create_exporter",
]
