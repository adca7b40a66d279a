"""
Hybrid recall: a weighted sum of the four primary matchers.

Every component runs, whatever its weight, and the union of their results
is eligible. A record missing from a component's result contributes 0 for
that component, and a component with weight 0 adds nothing to any score. The
semantic component is skipped when the query carries no embedding; its weight
still counts, so such queries score lower overall.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence

from mnemo.core.exceptions import MatcherFailureError
from mnemo.memory.models.memory_record import MemoryRecord
from mnemo.memory.models.recall import RecallQuery, RecallStrategy
from mnemo.memory.strategies import exact, fuzzy, semantic, temporal
from mnemo.memory.strategies.base import Match, MatchContext, Matcher, clamp_score, rank

logger = logging.getLogger(__name__)

COMPONENT_MATCHERS: Mapping[RecallStrategy, Matcher] = {
    RecallStrategy.EXACT_MATCH: exact.match,
    RecallStrategy.FUZZY_MATCH: fuzzy.match,
    RecallStrategy.SEMANTIC_SIMILARITY: semantic.match,
    RecallStrategy.TEMPORAL_PROXIMITY: temporal.match,
}


def component_scores(
    query: RecallQuery, candidates: Sequence[MemoryRecord], context: MatchContext
) -> Dict[RecallStrategy, Dict[str, float]]:
    """Run each component and return its scores by record id."""
    results: Dict[RecallStrategy, Dict[str, float]] = {}
    for strategy, matcher in COMPONENT_MATCHERS.items():
        if strategy is RecallStrategy.SEMANTIC_SIMILARITY and query.query_embedding is None:
            continue
        try:
            matches = matcher(query, candidates, context)
        except MatcherFailureError:
            raise
        except Exception as exc:
            raise MatcherFailureError(
                strategy.value,
                message=f"Hybrid component '{strategy.value}' failed: {exc}",
                cause=exc,
                component_of=RecallStrategy.HYBRID.value,
            ) from exc
        results[strategy] = {m.record_id: m.score for m in matches}
    return results


def match(query: RecallQuery, candidates: Sequence[MemoryRecord], context: MatchContext) -> List[Match]:
    components = component_scores(query, candidates, context)

    union = set()
    for scores in components.values():
        union.update(scores)

    combined: Dict[str, float] = {}
    for record_id in union:
        total = 0.0
        for strategy, scores in components.items():
            weight = context.hybrid_weights.get(strategy, 0.0)
            if weight > 0.0:
                total += weight * scores.get(record_id, 0.0)
        combined[record_id] = clamp_score(total)

    logger.debug(
        "Hybrid combined %d components over %d records",
        len(components),
        len(combined),
    )
    return rank(combined, candidates)
