"""Consolidation outcome model."""

from pydantic import BaseModel, ConfigDict, Field


class ConsolidationResult(BaseModel):
    """
    Counts produced by a consolidation pass.

    Purely informational: no record identifiers are returned because pruned
    records no longer exist by the time the caller reads the result.
    """

    model_config = ConfigDict(frozen=True)

    promoted_count: int = Field(default=0, ge=0)
    pruned_count: int = Field(default=0, ge=0)
    retained_count: int = Field(default=0, ge=0)
    duration_ms: float = Field(default=0.0, ge=0.0)

    @property
    def inspected_count(self) -> int:
        """Total number of records the pass looked at."""
        return self.promoted_count + self.pruned_count + self.retained_count

    @property
    def changed(self) -> bool:
        return bool(self.promoted_count or self.pruned_count)
