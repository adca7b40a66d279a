"""
Memory Data Models

This package contains the Pydantic models passed between the memory store,
the matchers and the engines, and returned to callers.

Core Models:
- MemoryRecord: The basic unit of episodic memory
- RecallQuery / RecallResult: Recall request and ranked answer
- ConsolidationResult: Counts produced by a consolidation pass
- StrategyPerformance / MemoryStatistics: Derived, read-only aggregates
"""

from mnemo.memory.models.consolidation import ConsolidationResult
from mnemo.memory.models.memory_record import MemoryRecord, ensure_utc, utc_now
from mnemo.memory.models.recall import (
    AUTO_STRATEGY,
    RecallQuery,
    RecallResult,
    RecallStrategy,
    RecencyField,
)
from mnemo.memory.models.statistics import MemoryStatistics, StrategyPerformance

__all__ = [
    # Record
    "MemoryRecord",
    "ensure_utc",
    "utc_now",

    # Recall
    "AUTO_STRATEGY",
    "RecallQuery",
    "RecallResult",
    "RecallStrategy",
    "RecencyField",

    # Consolidation
    "ConsolidationResult",

    # Statistics
    "MemoryStatistics",
    "StrategyPerformance",
]
