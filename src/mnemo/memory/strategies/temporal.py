"""Temporal proximity: exponential decay around an anchor time."""

from __future__ import annotations

import math
from typing import Dict, List, Sequence

from mnemo.memory.models.memory_record import MemoryRecord
from mnemo.memory.models.recall import RecallQuery
from mnemo.memory.strategies.base import Match, MatchContext, clamp_score, rank


def match(query: RecallQuery, candidates: Sequence[MemoryRecord], context: MatchContext) -> List[Match]:
    anchor = query.temporal_anchor or context.now
    half_life = context.temporal_half_life.total_seconds()
    if half_life <= 0:
        raise ValueError("temporal half-life must be positive")

    scores: Dict[str, float] = {}
    for record in candidates:
        delta = abs((anchor - record.last_accessed_at).total_seconds())
        # no exclusion: distant records still get a (tiny) score
        scores[record.record_id] = clamp_score(math.exp(-delta / half_life))
    return rank(scores, candidates)
