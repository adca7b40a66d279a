"""Exceptions raised by metric exporters.

These never reach engine callers: the telemetry publisher logs and drops them.
"""

from __future__ import annotations

__all__ = ["ExporterError", "ExporterConfigurationError", "ExportError"]


class ExporterError(Exception):
    """Base exception class for all exporter-related errors."""


class ExporterConfigurationError(ExporterError):
    """Raised when an exporter is constructed with invalid settings."""


class ExportError(ExporterError):
    """Raised when an exporter cannot deliver metrics to its backend."""
