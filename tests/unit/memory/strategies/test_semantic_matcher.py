from __future__ import annotations

import math

import numpy as np
import pytest

from mnemo.core.exceptions import MatcherFailureError
from mnemo.memory.models import RecallQuery, RecallStrategy
from mnemo.memory.strategies import MatchContext, run_matcher, semantic


def _query(embedding):
    return RecallQuery(strategy=RecallStrategy.SEMANTIC_SIMILARITY, query_embedding=embedding)


@pytest.fixture
def context(clock) -> MatchContext:
    return MatchContext(now=clock.now)


def test_cosine_is_rescaled_to_unit_interval(make_record, context) -> None:
    records = [
        make_record("same", embedding=[1.0, 0.0]),
        make_record("orthogonal", embedding=[0.0, 2.0]),
        make_record("opposite", embedding=[-3.0, 0.0]),
    ]

    scores = dict(semantic.match(_query([1.0, 0.0]), records, context))

    assert scores["same"] == pytest.approx(1.0)
    assert scores["orthogonal"] == pytest.approx(0.5)
    assert scores["opposite"] == pytest.approx(0.0)


def test_records_without_embedding_are_invisible(make_record, context) -> None:
    records = [make_record("with", embedding=[1.0, 1.0]), make_record("without")]

    matches = semantic.match(_query([1.0, 1.0]), records, context)

    assert [m.record_id for m in matches] == ["with"]


def test_zero_norm_vector_scores_half(make_record, context) -> None:
    records = [make_record("zero", embedding=[0.0, 0.0])]

    assert semantic.match(_query([1.0, 0.0]), records, context)[0].score == pytest.approx(0.5)


def test_scores_stay_in_bounds_for_arbitrary_vectors(make_record, context) -> None:
    rng = np.random.default_rng(7)
    records = [
        make_record(f"r{i}", embedding=rng.normal(scale=100.0, size=16).tolist())
        for i in range(50)
    ]

    matches = semantic.match(_query(rng.normal(size=16).tolist()), records, context)

    assert len(matches) == 50
    assert all(0.0 <= m.score <= 1.0 for m in matches)
    assert [m.score for m in matches] == sorted((m.score for m in matches), reverse=True)


def test_dimension_mismatch_raises_matcher_failure(make_record, context) -> None:
    records = [make_record("r1", embedding=[1.0, 0.0, 0.0])]

    with pytest.raises(MatcherFailureError) as excinfo:
        run_matcher(RecallStrategy.SEMANTIC_SIMILARITY, _query([1.0, 0.0]), records, context)

    assert excinfo.value.strategy == "semantic_similarity"
    assert excinfo.value.context["record_id"] == "r1"


def test_non_finite_values_raise_matcher_failure(make_record, context) -> None:
    records = [make_record("r1", embedding=[math.nan, 0.0])]

    with pytest.raises(MatcherFailureError):
        semantic.match(_query([1.0, 0.0]), records, context)


def test_missing_query_embedding_matches_nothing(make_record, context) -> None:
    query = RecallQuery(strategy=RecallStrategy.HYBRID)

    assert semantic.match(query, [make_record("r1", embedding=[1.0])], context) == []
