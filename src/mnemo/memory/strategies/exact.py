"""Exact matching on verbatim content or tag overlap."""

from __future__ import annotations

from typing import Dict, List, Sequence

from mnemo.memory.models.memory_record import MemoryRecord
from mnemo.memory.models.recall import RecallQuery
from mnemo.memory.strategies.base import Match, MatchContext, rank


def score_record(record: MemoryRecord, query: RecallQuery) -> float:
    """
    Score one record.

    1.0 when the content equals the query text verbatim, otherwise the share of
    query tags carried by the record. 0.0 when neither signal applies.
    """
    if query.query_text and record.content == query.query_text:
        return 1.0
    if not query.tags:
        return 0.0
    return len(record.tags & query.tags) / len(query.tags)


def match(query: RecallQuery, candidates: Sequence[MemoryRecord], context: MatchContext) -> List[Match]:
    scores: Dict[str, float] = {}
    for record in candidates:
        score = score_record(record, query)
        # zero-score candidates are excluded, not ranked last
        if score > 0.0:
            scores[record.record_id] = score
    return rank(scores, candidates)
