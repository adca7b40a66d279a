"""
Memory Manager

Engines that operate over a memory store: recall, consolidation, strategy
performance tracking and telemetry publication.
"""

from mnemo.memory.manager.consolidation import ConsolidationEngine, ConsolidationPlan
from mnemo.memory.manager.metrics import MemoryMetricsPublisher
from mnemo.memory.manager.performance import StrategyPerformanceTracker
from mnemo.memory.manager.recall import RecallEngine

__all__ = [
    "ConsolidationEngine",
    "ConsolidationPlan",
    "MemoryMetricsPublisher",
    "RecallEngine",
    "StrategyPerformanceTracker",
]
