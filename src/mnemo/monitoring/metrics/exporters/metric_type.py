"""Enumerations describing the metric kinds exporters can emit."""

from __future__ import annotations

from enum import Enum

__all__ = ["MetricType"]


class MetricType(Enum):
    """Kinds of metric the engine publishes."""

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
