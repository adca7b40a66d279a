"""Fuzzy matching via normalised Levenshtein similarity.

Both strings are case-folded and whitespace-collapsed before the distance is
computed, then ``1 - distance / max(len(query), len(content))`` is compared
against the configured similarity floor.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from rapidfuzz.distance import Levenshtein

from mnemo.memory.models.memory_record import MemoryRecord
from mnemo.memory.models.recall import RecallQuery
from mnemo.memory.strategies.base import Match, MatchContext, clamp_score, rank


def normalize_text(text: str) -> str:
    return " ".join(text.casefold().split())


def similarity(query_text: str, content: str) -> float:
    """Return the normalised edit-distance similarity of two already-normalised strings."""
    longest = max(len(query_text), len(content))
    if longest == 0:
        return 1.0
    distance = Levenshtein.distance(query_text, content)
    return clamp_score(1.0 - distance / longest)


def match(query: RecallQuery, candidates: Sequence[MemoryRecord], context: MatchContext) -> List[Match]:
    if not query.query_text:
        return []
    normalized_query = normalize_text(query.query_text)
    if not normalized_query:
        return []

    scores: Dict[str, float] = {}
    for record in candidates:
        score = similarity(normalized_query, normalize_text(record.content))
        if score >= context.fuzzy_min_similarity:
            scores[record.record_id] = score
    return rank(scores, candidates)
