from __future__ import annotations

import pytest

from mnemo.core.exceptions import (
    ConfigurationError,
    ConsolidationError,
    DuplicateRecordError,
    InvalidQueryError,
    MatcherFailureError,
    MnemoError,
    RecordNotFoundError,
    StoreUnavailableError,
)


@pytest.mark.parametrize(
    "error, code",
    [
        (InvalidQueryError("bad", strategy="hybrid"), "INVALID_QUERY"),
        (StoreUnavailableError("snapshot"), "STORE_UNAVAILABLE"),
        (RecordNotFoundError("r1"), "RECORD_NOT_FOUND"),
        (DuplicateRecordError("r1"), "DUPLICATE_RECORD"),
        (MatcherFailureError("fuzzy_match"), "MATCHER_FAILURE"),
        (ConsolidationError("failed"), "CONSOLIDATION_FAILED"),
        (ConfigurationError("broken"), "CONFIGURATION_ERROR"),
    ],
)
def test_every_error_is_a_mnemo_error_with_code(error: MnemoError, code: str) -> None:
    assert isinstance(error, MnemoError)
    assert error.error_code == code


def test_context_carries_diagnostics() -> None:
    cause = OSError("disk")
    store_error = StoreUnavailableError("touch", cause=cause)
    matcher_error = MatcherFailureError("semantic_similarity", cause=cause, record_id="r9")
    query_error = InvalidQueryError("cap", strategy="auto", max_results=0)
    consolidation_error = ConsolidationError("x", promoted=2, pruned=1, retained=4, cause=cause)

    assert "touch" in store_error.message and "disk" in store_error.message
    assert matcher_error.context == {"strategy": "semantic_similarity", "cause": "disk", "record_id": "r9"}
    assert query_error.context == {"strategy": "auto", "max_results": 0}
    assert consolidation_error.context["promoted"] == 2
    assert consolidation_error.context["retained"] == 4


def test_not_found_message_names_the_record() -> None:
    assert str(RecordNotFoundError("abc")) == "Memory record 'abc' not found"
