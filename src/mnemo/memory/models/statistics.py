"""Read-only aggregate views over recall history and the current store."""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from mnemo.memory.models.recall import RecallStrategy


class StrategyPerformance(BaseModel):
    """Running aggregate of recall samples for one strategy."""

    model_config = ConfigDict(frozen=True)

    strategy: RecallStrategy
    sample_count: int = Field(default=0, ge=0)
    avg_relevance_score: float = 0.0
    avg_latency_ms: float = 0.0
    hit_rate: float = Field(default=0.0, ge=0.0, le=1.0)


class MemoryStatistics(BaseModel):
    """Per-strategy aggregates combined with store-wide counts."""

    model_config = ConfigDict(frozen=True)

    total_records: int = Field(default=0, ge=0)
    consolidated_count: int = Field(default=0, ge=0)
    avg_importance: float = Field(default=0.0, ge=0.0, le=1.0)
    strategy_performance: Dict[RecallStrategy, StrategyPerformance] = Field(default_factory=dict)

    @property
    def provisional_count(self) -> int:
        return self.total_records - self.consolidated_count

    def performance_for(self, strategy: RecallStrategy) -> Optional[StrategyPerformance]:
        return self.strategy_performance.get(strategy)
