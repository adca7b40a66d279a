"""
Memory Record Model

This module defines the episodic memory record, the single unit of storage
owned by the memory store. Records are created by ``store`` calls, mutated in
place only through the store (access bookkeeping, importance, consolidation
flag) and destroyed only by consolidation pruning.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, FrozenSet, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MemoryRecord(BaseModel):
    """
    A stored unit of episodic memory.

    Invariants enforced at construction:

    - ``last_accessed_at >= created_at``
    - ``access_count == 0`` implies ``last_accessed_at == created_at``
    """

    # Identity
    record_id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1)

    # Payload
    content: str
    embedding: Optional[List[float]] = None
    tags: FrozenSet[str] = Field(default_factory=frozenset)

    # Value and usage
    importance: float = Field(default=0.5, ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=utc_now)
    last_accessed_at: Optional[datetime] = None
    access_count: int = Field(default=0, ge=0)

    # Promotion is one-directional
    consolidated: bool = False

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> FrozenSet[str]:
        """Accept any iterable of labels (or a single label) as a tag set."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            return frozenset({v})
        return frozenset(str(tag) for tag in v)

    @field_validator("embedding", mode="before")
    @classmethod
    def validate_embedding(cls, v: Any) -> Optional[List[float]]:
        """Treat an empty vector as an absent embedding."""
        if v is None:
            return None
        values = [float(x) for x in v]
        return values or None

    @field_validator("created_at", "last_accessed_at", mode="after")
    @classmethod
    def validate_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_access_bookkeeping(self) -> "MemoryRecord":
        if self.last_accessed_at is None:
            self.last_accessed_at = self.created_at
        if self.last_accessed_at < self.created_at:
            raise ValueError("last_accessed_at must not precede created_at")
        if self.access_count == 0 and self.last_accessed_at != self.created_at:
            raise ValueError("a record that was never accessed must have last_accessed_at == created_at")
        return self

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    def accessed(self, at: datetime) -> "MemoryRecord":
        """
        Return a copy with one more access recorded.

        The new ``last_accessed_at`` is strictly later than the previous one even
        when the clock has not advanced, so every recall is observable.

        Args:
            at: Timestamp of the access

        Returns:
            Updated copy of this record
        """
        at = ensure_utc(at)
        previous = self.last_accessed_at or self.created_at
        if at <= previous:
            at = previous + timedelta(microseconds=1)
        return self.model_copy(
            update={"access_count": self.access_count + 1, "last_accessed_at": at},
            deep=True,
        )

    def is_stale(self, cutoff: datetime) -> bool:
        """Return ``True`` when the record has not been accessed since ``cutoff``."""
        return self.last_accessed_at < ensure_utc(cutoff)

    def summary(self, width: int = 60) -> str:
        """Return a truncated version of the content for display."""
        if len(self.content) > width:
            return self.content[: width - 3] + "..."
        return self.content
