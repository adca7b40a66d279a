"""
Mnemo - episodic memory recall and consolidation.

Mnemo stores short-lived interaction records, retrieves them under five
matching strategies and periodically promotes important records to durable
status while pruning stale, low-value ones.

Typical usage::

    from mnemo import EpisodicMemoryService, RecallQuery, RecallStrategy

    service = EpisodicMemoryService()
    service.store("Invoice #42 was disputed", tags={"billing"}, importance=0.8)
    result = service.recall(RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags={"billing"}))
"""

__version__ = "0.1.0"

from mnemo.memory.models import (
    AUTO_STRATEGY,
    ConsolidationResult,
    MemoryRecord,
    MemoryStatistics,
    RecallQuery,
    RecallResult,
    RecallStrategy,
    RecencyField,
    StrategyPerformance,
)
from mnemo.memory.service import EpisodicMemoryService

__all__ = [
    "__version__",
    "AUTO_STRATEGY",
    "ConsolidationResult",
    "EpisodicMemoryService",
    "MemoryRecord",
    "MemoryStatistics",
    "RecallQuery",
    "RecallResult",
    "RecallStrategy",
    "RecencyField",
    "StrategyPerformance",
]
