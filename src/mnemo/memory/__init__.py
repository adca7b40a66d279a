"""
Episodic memory: records, the memory store, recall matchers, and the recall
and consolidation engines.
"""

from mnemo.memory.service import EpisodicMemoryService

__all__ = ["EpisodicMemoryService"]
