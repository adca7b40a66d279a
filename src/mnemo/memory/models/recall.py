"""Recall request and response models.

A :class:`RecallQuery` selects a strategy (or ``"auto"``) and carries the
signals the matchers consume; a :class:`RecallResult` is the ranked answer.
Both are frozen so results handed to callers can never alias store state.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mnemo.memory.models.memory_record import MemoryRecord, ensure_utc


AUTO_STRATEGY = "auto"


class RecallStrategy(str, Enum):
    """The closed set of matching algorithms."""

    EXACT_MATCH = "exact_match"
    FUZZY_MATCH = "fuzzy_match"
    SEMANTIC_SIMILARITY = "semantic_similarity"
    TEMPORAL_PROXIMITY = "temporal_proximity"
    HYBRID = "hybrid"

    @classmethod
    def from_string(cls, value: str) -> "RecallStrategy":
        """Resolve ``"ExactMatch"``, ``"exact-match"`` or ``"exact_match"`` to a member."""
        normalized = str(value).strip().replace("-", "_")
        for member in cls:
            if normalized.lower() in (member.value, member.name.lower()):
                return member
        # CamelCase -> snake_case
        snake = "".join(
            f"_{ch.lower()}" if ch.isupper() and i > 0 and normalized[i - 1] != "_" else ch.lower()
            for i, ch in enumerate(normalized)
        )
        for member in cls:
            if member.value == snake or member.name.lower() == snake:
                return member
        raise ValueError(f"Unknown recall strategy: {value!r}. Valid strategies: {[m.value for m in cls]}")


class RecencyField(str, Enum):
    """Timestamp used to order ``recall_recent`` results."""

    LAST_ACCESSED = "last_accessed_at"
    CREATED = "created_at"


class RecallQuery(BaseModel):
    """
    A recall request.

    ``max_results`` is validated by the recall engine, which raises
    ``InvalidQueryError`` for non-positive caps.
    """

    model_config = ConfigDict(frozen=True)

    strategy: Union[RecallStrategy, Literal["auto"]] = RecallStrategy.HYBRID
    query_text: Optional[str] = None
    query_embedding: Optional[List[float]] = None
    tags: FrozenSet[str] = Field(default_factory=frozenset)
    temporal_anchor: Optional[datetime] = None
    max_results: int = 10

    min_relevance: float = Field(default=0.0, ge=0.0, le=1.0)
    time_window: Optional[timedelta] = None

    @field_validator("strategy", mode="before")
    @classmethod
    def validate_strategy(cls, v: Any) -> Any:
        if isinstance(v, RecallStrategy):
            return v
        if isinstance(v, str) and v.strip().lower() == AUTO_STRATEGY:
            return AUTO_STRATEGY
        if isinstance(v, str):
            return RecallStrategy.from_string(v)
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> FrozenSet[str]:
        if v is None:
            return frozenset()
        if isinstance(v, str):
            return frozenset({v})
        return frozenset(str(tag) for tag in v)

    @field_validator("query_embedding", mode="before")
    @classmethod
    def validate_embedding(cls, v: Any) -> Optional[List[float]]:
        if v is None:
            return None
        values = [float(x) for x in v]
        return values or None

    @field_validator("temporal_anchor", mode="after")
    @classmethod
    def validate_anchor(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @property
    def is_auto(self) -> bool:
        return self.strategy == AUTO_STRATEGY


class RecallResult(BaseModel):
    """
    Result of a recall operation.

    ``records`` hold copies taken after access bookkeeping was applied, most
    relevant first. ``relevance_scores`` covers the returned records only.
    """

    model_config = ConfigDict(frozen=True)

    records: List[MemoryRecord] = Field(default_factory=list)
    strategy_used: RecallStrategy
    query_duration_ms: float = Field(default=0.0, ge=0.0)
    total_candidates: int = Field(default=0, ge=0)
    relevance_scores: Dict[str, float] = Field(default_factory=dict)

    @property
    def record_ids(self) -> List[str]:
        return [record.record_id for record in self.records]

    @property
    def top_score(self) -> float:
        """Score of the best result, ``0.0`` when nothing matched."""
        if not self.records:
            return 0.0
        return self.relevance_scores.get(self.records[0].record_id, 0.0)

    @property
    def is_hit(self) -> bool:
        return bool(self.records)
