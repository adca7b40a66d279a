from __future__ import annotations

from unittest import mock

import pytest

from mnemo.core.exceptions import ConfigurationError, ConsolidationError
from mnemo.memory.backends.in_memory import InMemoryMemoryStore
from mnemo.memory.config.settings import ConsolidationSettings
from mnemo.memory.manager.consolidation import ConsolidationEngine
from mnemo.memory.manager.metrics import MemoryMetricsPublisher


@pytest.fixture
def engine(store, clock) -> ConsolidationEngine:
    return ConsolidationEngine(store, ConsolidationSettings(), clock=clock)


@pytest.fixture
def scenario(store, make_record):
    """Five records from the reference scenario, ids r1..r5."""
    importance = [0.9, 0.1, 0.7, 0.05, 0.65]
    access = [3, 0, 3, 0, 4]
    for index, (imp, count) in enumerate(zip(importance, access), start=1):
        days = 1 if index == 2 else 60
        store.insert(make_record(f"r{index}", importance=imp, access_count=count, days_ago=days))
    return store


def test_reference_scenario(engine, scenario) -> None:
    result = engine.consolidate()

    assert result.promoted_count == 3
    assert result.pruned_count == 1
    assert result.retained_count == 1
    assert {record.record_id for record in scenario.snapshot() if record.consolidated} == {"r1", "r3", "r5"}
    assert scenario.get("r4") is None
    assert scenario.get("r2") is not None
    assert not scenario.get("r2").consolidated


def test_second_pass_changes_nothing(engine, scenario) -> None:
    engine.consolidate()
    second = engine.consolidate()

    assert second.promoted_count == 0
    assert second.pruned_count == 0
    assert second.retained_count == 4
    assert not second.changed


def test_consolidated_records_are_never_pruned(engine, store, make_record, clock) -> None:
    store.insert(make_record("keeper", importance=0.05, days_ago=90, consolidated=True))
    store.insert(make_record("promoted", importance=0.9, access_count=5, days_ago=1))
    engine.consolidate()
    store.set_importance("promoted", 0.0)

    clock.advance(days=365)
    result = engine.consolidate()

    assert result.pruned_count == 0
    assert store.get("keeper").consolidated
    assert store.get("promoted").consolidated


def test_pruning_requires_all_three_conditions(engine, store, make_record) -> None:
    # each record fails exactly one pruning condition
    store.insert(make_record("important", importance=0.5, days_ago=60))
    store.insert(make_record("recent", importance=0.1, days_ago=5))
    store.insert(make_record("accessed", importance=0.1, access_count=1, days_ago=60))
    store.insert(make_record("doomed", importance=0.1, days_ago=60))

    result = engine.consolidate()

    assert result.pruned_count == 1
    assert store.get("doomed") is None
    assert store.count() == 3


def test_promotion_requires_both_thresholds(engine, store, make_record) -> None:
    store.insert(make_record("popular", importance=0.3, access_count=10))
    store.insert(make_record("valuable", importance=0.95, access_count=2))
    store.insert(make_record("both", importance=0.6, access_count=3))

    result = engine.consolidate()

    assert result.promoted_count == 1
    assert store.get("both").consolidated


def test_overrides_replace_configured_thresholds(engine, store, make_record) -> None:
    store.insert(make_record("r1", importance=0.7, access_count=1))

    assert engine.consolidate().promoted_count == 0
    assert engine.consolidate(promotion_access_threshold=1).promoted_count == 1
    assert engine.settings.promotion_access_threshold == 3


def test_none_overrides_fall_back_to_configuration(engine, scenario) -> None:
    result = engine.consolidate(promotion_access_threshold=None, pruning_staleness_days=None)

    assert result.promoted_count == 3


def test_invalid_overrides_raise_configuration_error(engine) -> None:
    with pytest.raises(ConfigurationError):
        engine.consolidate(promotion_importance_threshold=1.5)
    with pytest.raises(ConfigurationError):
        engine.consolidate(promote_everything=True)


def test_empty_store(engine) -> None:
    result = engine.consolidate()

    assert result.inspected_count == 0


def test_plan_is_pure(scenario, clock) -> None:
    records = scenario.snapshot()

    plan = ConsolidationEngine.plan(records, ConsolidationSettings(), clock.now)

    assert plan.promote == ["r1", "r3", "r5"]
    assert plan.prune == ["r4"]
    assert plan.retained == 1
    assert scenario.count() == 5


def test_backend_failure_raises_consolidation_error_and_rerun_is_safe(scenario, clock) -> None:
    engine = ConsolidationEngine(scenario, clock=clock)
    original_put = InMemoryMemoryStore._put
    calls = {"n": 0}

    def _flaky_put(self, record):
        calls["n"] += 1
        if calls["n"] == 2:
            raise OSError("write failed")
        return original_put(self, record)

    with mock.patch.object(InMemoryMemoryStore, "_put", _flaky_put):
        with pytest.raises(ConsolidationError) as excinfo:
            engine.consolidate()

    assert excinfo.value.context["promoted"] == 3
    assert excinfo.value.context["pruned"] == 1

    rerun = engine.consolidate()

    assert rerun.promoted_count == 2
    assert rerun.pruned_count == 1
    assert {r.record_id for r in scenario.snapshot() if r.consolidated} == {"r1", "r3", "r5"}


def test_metrics_are_published(store, clock, make_record) -> None:
    metrics = mock.create_autospec(MemoryMetricsPublisher, instance=True)
    engine = ConsolidationEngine(store, clock=clock, metrics=metrics)
    store.insert(make_record("r1"))

    result = engine.consolidate()

    metrics.record_consolidation.assert_called_once_with(result)
    metrics.update_store_size.assert_called_once_with(1)
