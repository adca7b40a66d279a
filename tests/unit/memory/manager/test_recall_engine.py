from __future__ import annotations

from datetime import timedelta
from unittest import mock

import pytest

from mnemo.core.exceptions import InvalidQueryError, MatcherFailureError, StoreUnavailableError
from mnemo.memory.backends.in_memory import InMemoryMemoryStore
from mnemo.memory.config.settings import RecallSettings
from mnemo.memory.manager.metrics import MemoryMetricsPublisher
from mnemo.memory.manager.performance import StrategyPerformanceTracker
from mnemo.memory.manager.recall import RecallEngine
from mnemo.memory.models import RecallQuery, RecallStrategy, RecencyField
from mnemo.memory.strategies import MATCHERS


@pytest.fixture
def tracker() -> StrategyPerformanceTracker:
    return StrategyPerformanceTracker()


@pytest.fixture
def engine(store, tracker, clock) -> RecallEngine:
    return RecallEngine(store, tracker, RecallSettings(), clock=clock)


def test_empty_store_returns_empty_result(engine) -> None:
    result = engine.recall(RecallQuery(strategy=RecallStrategy.HYBRID, query_text="anything"))

    assert result.records == []
    assert result.total_candidates == 0
    assert result.strategy_used is RecallStrategy.HYBRID


@pytest.mark.parametrize("max_results", [0, -3])
def test_non_positive_cap_is_invalid(engine, max_results) -> None:
    with pytest.raises(InvalidQueryError) as excinfo:
        engine.recall(RecallQuery(max_results=max_results))

    assert excinfo.value.error_code == "INVALID_QUERY"


def test_explicit_semantic_requires_embedding(engine, store, make_record) -> None:
    store.insert(make_record("r1", embedding=[1.0]))

    with pytest.raises(InvalidQueryError) as excinfo:
        engine.recall(RecallQuery(strategy=RecallStrategy.SEMANTIC_SIMILARITY))

    assert excinfo.value.strategy == "semantic_similarity"


def test_exact_tag_scenario(engine, store, make_record) -> None:
    store.insert(make_record("billing", tags=["billing", "q3"]))
    store.insert(make_record("support", tags=["support"]))

    result = engine.recall(RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags=["billing"]))

    assert result.record_ids == ["billing"]
    assert result.relevance_scores == {"billing": 1.0}
    assert result.total_candidates == 2


def test_bookkeeping_round_trip(engine, store, make_record, clock) -> None:
    for index in range(3):
        store.insert(make_record(f"r{index}", tags=["t"], days_ago=index))
    before = {record.record_id: record for record in store.snapshot()}

    result = engine.recall(RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags=["t"], max_results=2))
    after = {record.record_id: record for record in store.snapshot()}

    assert len(result.records) == 2
    for record in result.records:
        assert record.access_count == before[record.record_id].access_count + 1
        assert after[record.record_id].last_accessed_at > before[record.record_id].last_accessed_at
        assert after[record.record_id] == record
    untouched = set(before) - set(result.record_ids)
    for record_id in untouched:
        assert after[record_id] == before[record_id]


def test_results_are_truncated_highest_score_first(engine, store, make_record) -> None:
    store.insert(make_record("one", tags=["a"]))
    store.insert(make_record("two", tags=["a", "b"]))
    store.insert(make_record("three", tags=["a", "b", "c"]))

    result = engine.recall(
        RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags=["a", "b", "c"], max_results=2)
    )

    assert result.record_ids == ["three", "two"]
    assert list(result.relevance_scores) == ["three", "two"]


def test_min_relevance_filters_before_truncation(engine, store, make_record) -> None:
    store.insert(make_record("full", tags=["a", "b"]))
    store.insert(make_record("half", tags=["a"]))

    result = engine.recall(
        RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags=["a", "b"], min_relevance=0.75)
    )

    assert result.record_ids == ["full"]


def test_time_window_scopes_candidates(engine, store, make_record) -> None:
    store.insert(make_record("fresh", tags=["t"], days_ago=1))
    store.insert(make_record("old", tags=["t"], days_ago=10))

    result = engine.recall(
        RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags=["t"], time_window=timedelta(days=2))
    )

    assert result.record_ids == ["fresh"]
    assert result.total_candidates == 1


def test_non_positive_time_window_is_invalid(engine) -> None:
    with pytest.raises(InvalidQueryError):
        engine.recall(RecallQuery(time_window=timedelta(0)))


def test_auto_without_history_uses_hybrid(engine, store, make_record) -> None:
    store.insert(make_record("r1"))

    result = engine.recall(RecallQuery(strategy="auto"))

    assert result.strategy_used is RecallStrategy.HYBRID


def test_auto_uses_best_tracked_strategy(engine, tracker, store, make_record) -> None:
    store.insert(make_record("r1", "needle"))
    tracker.record(RecallStrategy.FUZZY_MATCH, 0.95, 3.0, True)
    tracker.record(RecallStrategy.EXACT_MATCH, 0.5, 1.0, True)

    result = engine.recall(RecallQuery(strategy="auto", query_text="needle"))

    assert result.strategy_used is RecallStrategy.FUZZY_MATCH


def test_auto_falls_back_to_hybrid_when_semantic_lacks_embedding(engine, tracker) -> None:
    tracker.record(RecallStrategy.SEMANTIC_SIMILARITY, 1.0, 1.0, True)

    assert engine.recall(RecallQuery(strategy="auto")).strategy_used is RecallStrategy.HYBRID
    with_embedding = engine.recall(RecallQuery(strategy="auto", query_embedding=[1.0]))
    assert with_embedding.strategy_used is RecallStrategy.SEMANTIC_SIMILARITY


def test_each_recall_records_a_sample(engine, tracker, store, make_record) -> None:
    store.insert(make_record("r1", tags=["t"]))

    engine.recall(RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags=["t"]))
    engine.recall(RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags=["missing"]))

    view = tracker.performance(RecallStrategy.EXACT_MATCH)
    assert view.sample_count == 2
    assert view.hit_rate == pytest.approx(0.5)
    assert view.avg_relevance_score == pytest.approx(0.5)


def test_matcher_failure_aborts_the_call(engine, tracker, store, make_record) -> None:
    store.insert(make_record("r1", embedding=[1.0, 0.0, 0.0]))

    with pytest.raises(MatcherFailureError):
        engine.recall(
            RecallQuery(strategy=RecallStrategy.SEMANTIC_SIMILARITY, query_embedding=[1.0, 0.0])
        )

    assert store.get("r1").access_count == 0
    assert tracker.performance(RecallStrategy.SEMANTIC_SIMILARITY) is None


def test_unavailable_store_is_surfaced(engine, store) -> None:
    store.close()

    with pytest.raises(StoreUnavailableError):
        engine.recall(RecallQuery())


def test_record_pruned_before_touch_is_skipped(engine, store, make_record, monkeypatch) -> None:
    store.insert(make_record("keep", tags=["t"]))
    store.insert(make_record("gone", tags=["t"]))
    original = MATCHERS[RecallStrategy.EXACT_MATCH]

    def _match_then_prune(query, candidates, context):
        matches = original(query, candidates, context)
        store.remove("gone")
        return matches

    monkeypatch.setitem(MATCHERS, RecallStrategy.EXACT_MATCH, _match_then_prune)

    result = engine.recall(RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags=["t"]))

    assert result.record_ids == ["keep"]
    assert set(result.relevance_scores) == {"keep"}


def test_adaptive_weights_come_from_tracker(store, tracker, clock, make_record) -> None:
    engine = RecallEngine(store, tracker, RecallSettings(adaptive_hybrid_weights=True), clock=clock)
    store.insert(make_record("r1", tags=["t"]))

    with mock.patch.object(tracker, "hybrid_weights", wraps=tracker.hybrid_weights) as weights:
        engine.recall(RecallQuery(strategy=RecallStrategy.HYBRID, tags=["t"]))

    weights.assert_called_once()


def test_recall_by_tags_applies_bookkeeping_without_samples(engine, tracker, store, make_record) -> None:
    store.insert(make_record("both", tags=["a", "b"]))
    store.insert(make_record("one", tags=["a"]))
    store.insert(make_record("none", tags=["z"]))

    records = engine.recall_by_tags(["a", "b"], max_results=5)

    assert [record.record_id for record in records] == ["both", "one"]
    assert all(record.access_count == 1 for record in records)
    assert tracker.snapshot() == {}


def test_recall_by_tags_can_skip_bookkeeping(store, tracker, clock, make_record) -> None:
    engine = RecallEngine(
        store,
        tracker,
        RecallSettings(track_access_on_auxiliary_recall=False),
        clock=clock,
    )
    store.insert(make_record("r1", tags=["a"]))

    records = engine.recall_by_tags(["a"])

    assert records[0].access_count == 0
    assert store.get("r1").access_count == 0


def test_recall_by_tags_rejects_non_positive_cap(engine) -> None:
    with pytest.raises(InvalidQueryError):
        engine.recall_by_tags(["a"], max_results=0)


def test_recall_recent_orders_by_selected_field(engine, store, make_record) -> None:
    store.insert(make_record("old-but-used", days_ago=9, accessed_days_ago=0, access_count=2))
    store.insert(make_record("new", days_ago=1))
    store.insert(make_record("a-new", days_ago=1))
    store.insert(make_record("oldest", days_ago=20))

    by_access = engine.recall_recent(3)
    by_creation = engine.recall_recent(2, order_by=RecencyField.CREATED)

    assert [record.record_id for record in by_access] == ["old-but-used", "a-new", "new"]
    assert [record.record_id for record in by_creation] == ["a-new", "new"]


def test_recall_recent_rejects_non_positive_count(engine) -> None:
    with pytest.raises(InvalidQueryError):
        engine.recall_recent(0)


def test_metrics_are_published(store, tracker, clock, make_record) -> None:
    metrics = mock.create_autospec(MemoryMetricsPublisher, instance=True)
    engine = RecallEngine(store, tracker, RecallSettings(), clock=clock, metrics=metrics)
    store.insert(make_record("r1", tags=["t"]))

    engine.recall(RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags=["t"]))

    metrics.record_recall.assert_called_once()
    kwargs = metrics.record_recall.call_args.kwargs
    assert kwargs["strategy"] == "exact_match"
    assert kwargs["candidates"] == 1
    assert kwargs["hit"] is True


def test_metrics_count_errors(store, tracker, clock, make_record) -> None:
    metrics = mock.create_autospec(MemoryMetricsPublisher, instance=True)
    engine = RecallEngine(store, tracker, RecallSettings(), clock=clock, metrics=metrics)
    store.insert(make_record("r1", embedding=[1.0, 2.0]))

    with pytest.raises(MatcherFailureError):
        engine.recall(RecallQuery(strategy=RecallStrategy.SEMANTIC_SIMILARITY, query_embedding=[1.0]))

    metrics.record_recall_error.assert_called_once_with(strategy="semantic_similarity")


def test_failed_bookkeeping_records_no_access(engine, store, tracker, make_record) -> None:
    store.insert(make_record("r0", tags=["t"]))
    store.insert(make_record("r1", tags=["t"]))
    original_put = InMemoryMemoryStore._put
    calls = {"n": 0}

    def _flaky_put(self, record):
        calls["n"] += 1
        if calls["n"] == 2:
            raise OSError("write failed")
        return original_put(self, record)

    with mock.patch.object(InMemoryMemoryStore, "_put", _flaky_put):
        with pytest.raises(StoreUnavailableError):
            engine.recall(RecallQuery(strategy=RecallStrategy.EXACT_MATCH, tags=["t"]))

    assert {r.record_id: r.access_count for r in store.snapshot()} == {"r0": 0, "r1": 0}
    assert tracker.performance(RecallStrategy.EXACT_MATCH) is None


def test_invalid_query_counts_as_recall_error(store, tracker, clock) -> None:
    metrics = mock.create_autospec(MemoryMetricsPublisher, instance=True)
    engine = RecallEngine(store, tracker, RecallSettings(), clock=clock, metrics=metrics)

    with pytest.raises(InvalidQueryError):
        engine.recall(RecallQuery(strategy="auto", max_results=0))
    with pytest.raises(InvalidQueryError):
        engine.recall(RecallQuery(strategy=RecallStrategy.SEMANTIC_SIMILARITY))

    assert metrics.record_recall_error.call_args_list == [
        mock.call(strategy="auto"),
        mock.call(strategy="semantic_similarity"),
    ]
    metrics.record_recall.assert_not_called()
