"""
Semantic similarity over stored embeddings.

Cosine similarity is rescaled from ``[-1, 1]`` to ``[0, 1]`` via
``(cos + 1) / 2``. Records without an embedding are skipped. A zero-norm
vector on either side has cosine 0, i.e. a score of 0.5.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np

from mnemo.core.exceptions import MatcherFailureError
from mnemo.memory.models.memory_record import MemoryRecord
from mnemo.memory.models.recall import RecallQuery, RecallStrategy
from mnemo.memory.strategies.base import Match, MatchContext, rank


def _as_vector(values: Sequence[float], *, label: str) -> np.ndarray:
    vector = np.asarray(values, dtype=np.float64)
    if not np.all(np.isfinite(vector)):
        raise MatcherFailureError(
            RecallStrategy.SEMANTIC_SIMILARITY.value,
            message=f"Non-finite value in {label} embedding",
            embedding=label,
        )
    return vector


def cosine_scores(query_vector: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Return rescaled cosine scores of each row of ``matrix`` against ``query_vector``."""
    query_norm = np.linalg.norm(query_vector)
    row_norms = np.linalg.norm(matrix, axis=1)
    denominators = row_norms * query_norm
    dots = matrix @ query_vector
    cosines = np.zeros_like(dots)
    nonzero = denominators > 0.0
    cosines[nonzero] = dots[nonzero] / denominators[nonzero]
    cosines = np.clip(cosines, -1.0, 1.0)
    return np.clip((cosines + 1.0) / 2.0, 0.0, 1.0)


def match(query: RecallQuery, candidates: Sequence[MemoryRecord], context: MatchContext) -> List[Match]:
    if query.query_embedding is None:
        return []
    query_vector = _as_vector(query.query_embedding, label="query")
    dimension = query_vector.shape[0]

    embedded = [record for record in candidates if record.embedding is not None]
    if not embedded:
        return []

    rows = []
    for record in embedded:
        if len(record.embedding) != dimension:
            raise MatcherFailureError(
                RecallStrategy.SEMANTIC_SIMILARITY.value,
                message=(
                    f"Embedding dimension mismatch for record '{record.record_id}': "
                    f"expected {dimension}, got {len(record.embedding)}"
                ),
                record_id=record.record_id,
            )
        rows.append(_as_vector(record.embedding, label=f"record '{record.record_id}'"))

    scores_array = cosine_scores(query_vector, np.vstack(rows))
    scores: Dict[str, float] = {
        record.record_id: float(score) for record, score in zip(embedded, scores_array)
    }
    return rank(scores, candidates)
