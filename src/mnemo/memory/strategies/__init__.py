"""
Recall matchers.

The strategy set is closed: ``MATCHERS`` maps every :class:`RecallStrategy`
to its matcher function and import fails if a member is left without one.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from mnemo.core.exceptions import MatcherFailureError
from mnemo.memory.models.memory_record import MemoryRecord
from mnemo.memory.models.recall import RecallQuery, RecallStrategy
from mnemo.memory.strategies import exact, fuzzy, semantic, temporal
from mnemo.memory.strategies import hybrid
from mnemo.memory.strategies.base import Match, MatchContext, Matcher, rank

MATCHERS: Dict[RecallStrategy, Matcher] = {
    RecallStrategy.EXACT_MATCH: exact.match,
    RecallStrategy.FUZZY_MATCH: fuzzy.match,
    RecallStrategy.SEMANTIC_SIMILARITY: semantic.match,
    RecallStrategy.TEMPORAL_PROXIMITY: temporal.match,
    RecallStrategy.HYBRID: hybrid.match,
}

_missing = set(RecallStrategy) - set(MATCHERS)
if _missing:
    raise ImportError(f"No matcher registered for: {sorted(s.value for s in _missing)}")


def run_matcher(
    strategy: RecallStrategy,
    query: RecallQuery,
    candidates: Sequence[MemoryRecord],
    context: MatchContext,
) -> List[Match]:
    """
    Dispatch to the matcher for ``strategy``.

    Raises:
        MatcherFailureError: If the matcher raises for any reason
    """
    matcher = MATCHERS[strategy]
    try:
        return matcher(query, candidates, context)
    except MatcherFailureError:
        raise
    except Exception as exc:
        raise MatcherFailureError(
            strategy.value,
            message=f"Matcher '{strategy.value}' failed: {exc}",
            cause=exc,
            candidate_count=len(candidates),
        ) from exc


__all__ = ["MATCHERS", "Match", "MatchContext", "Matcher", "rank", "run_matcher"]
