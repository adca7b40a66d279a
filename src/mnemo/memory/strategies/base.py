"""Shared contract and ranking helpers for the recall matchers.

Every matcher is a plain function ``match(query, candidates, context)`` that
returns ``Match`` tuples ordered by score (descending), then by most recent
``last_accessed_at``, then by ``record_id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Mapping, NamedTuple, Sequence

from mnemo.memory.config.settings import uniform_hybrid_weights
from mnemo.memory.models.memory_record import MemoryRecord
from mnemo.memory.models.recall import RecallQuery, RecallStrategy


class Match(NamedTuple):
    """A scored candidate."""

    record_id: str
    score: float


@dataclass(frozen=True, slots=True)
class MatchContext:
    """Per-call parameters shared by all matchers."""

    now: datetime
    fuzzy_min_similarity: float = 0.5
    temporal_half_life: timedelta = timedelta(hours=24)
    hybrid_weights: Mapping[RecallStrategy, float] = field(default_factory=uniform_hybrid_weights)


Matcher = Callable[[RecallQuery, Sequence[MemoryRecord], MatchContext], List[Match]]


def clamp_score(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def rank(scores: Mapping[str, float], candidates: Sequence[MemoryRecord]) -> List[Match]:
    """Order scored record ids with the deterministic tie-break rules."""

    by_id: Dict[str, MemoryRecord] = {record.record_id: record for record in candidates}

    def _key(item: tuple[str, float]) -> tuple[float, float, str]:
        record_id, score = item
        record = by_id.get(record_id)
        accessed = record.last_accessed_at.timestamp() if record is not None else float("-inf")
        return (-score, -accessed, record_id)

    return [Match(record_id, score) for record_id, score in sorted(scores.items(), key=_key)]
