"""
Core Exceptions for Mnemo.

This module defines the exception classes raised by the memory store, the
recall and consolidation engines and the configuration layer. Every error
carries a machine-readable ``error_code`` and a ``context`` dictionary with
enough detail (strategy, record identifiers, record counts) for the caller to
log and diagnose the failure.

The exceptions are organized into categories:
- Query Exceptions
- Store Exceptions
- Engine Exceptions
- Configuration Exceptions

None of them are retried or swallowed inside the engine; retry policy belongs
to the caller.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class MnemoError(Exception):
    """Base exception class for all Mnemo errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize a Mnemo error.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional context information for debugging
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

        logger.debug("MnemoError: %s", message, extra={
            "error_code": error_code,
            "error_context": self.context,
        })


# Query Exceptions

class InvalidQueryError(MnemoError):
    """Raised when a recall request is malformed or under-specified."""

    def __init__(self, message: str, *, strategy: Optional[str] = None, **context: Any):
        """
        Initialize an invalid query error.

        Args:
            message: Description of the violated constraint
            strategy: The strategy the caller requested, if any
            **context: Additional diagnostic values
        """
        self.strategy = strategy
        super().__init__(
            message,
            error_code="INVALID_QUERY",
            context={"strategy": strategy, **context},
        )


# Store Exceptions

class StoreUnavailableError(MnemoError):
    """Raised when the backing memory store cannot be read or written."""

    def __init__(self, operation: str, message: Optional[str] = None, cause: Optional[Exception] = None):
        """
        Initialize a store unavailable error.

        Args:
            operation: The store operation that failed
            message: Optional custom message
            cause: Optional underlying exception that caused this error
        """
        self.operation = operation
        self.cause = cause
        default_message = f"Memory store unavailable during '{operation}'"
        if cause:
            default_message += f": {cause}"

        super().__init__(
            message or default_message,
            error_code="STORE_UNAVAILABLE",
            context={"operation": operation, "cause": str(cause) if cause else None},
        )


class RecordNotFoundError(MnemoError):
    """Raised when a requested memory record does not exist."""

    def __init__(self, record_id: str, message: Optional[str] = None):
        self.record_id = record_id
        super().__init__(
            message or f"Memory record '{record_id}' not found",
            error_code="RECORD_NOT_FOUND",
            context={"record_id": record_id},
        )


class DuplicateRecordError(MnemoError):
    """Raised when inserting a record whose identifier is already in use."""

    def __init__(self, record_id: str, message: Optional[str] = None):
        self.record_id = record_id
        super().__init__(
            message or f"Memory record '{record_id}' already exists",
            error_code="DUPLICATE_RECORD",
            context={"record_id": record_id},
        )


# Engine Exceptions

class MatcherFailureError(MnemoError):
    """Raised when a matching strategy faults while scoring candidates."""

    def __init__(
        self,
        strategy: str,
        message: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Initialize a matcher failure.

        Args:
            strategy: Name of the strategy whose computation failed
            message: Optional custom message
            cause: Optional underlying exception
            **context: Additional diagnostic values (e.g. candidate count)
        """
        self.strategy = strategy
        self.cause = cause
        default_message = f"Matcher '{strategy}' failed"
        if cause:
            default_message += f": {cause}"
        super().__init__(
            message or default_message,
            error_code="MATCHER_FAILURE",
            context={"strategy": strategy, "cause": str(cause) if cause else None, **context},
        )


class ConsolidationError(MnemoError):
    """Raised when a consolidation pass cannot be applied to the store."""

    def __init__(
        self,
        message: str,
        *,
        promoted: int = 0,
        pruned: int = 0,
        retained: int = 0,
        cause: Optional[Exception] = None,
    ):
        self.cause = cause
        super().__init__(
            message,
            error_code="CONSOLIDATION_FAILED",
            context={
                "promoted": promoted,
                "pruned": pruned,
                "retained": retained,
                "cause": str(cause) if cause else None,
            },
        )


# Configuration Exceptions

class ConfigurationError(MnemoError):
    """Raised when engine configuration is missing or invalid."""

    def __init__(self, message: str, *, source: Optional[str] = None):
        self.source = source
        super().__init__(
            message,
            error_code="CONFIGURATION_ERROR",
            context={"source": source},
        )


__all__ = [
    "MnemoError",
    "InvalidQueryError",
    "StoreUnavailableError",
    "RecordNotFoundError",
    "DuplicateRecordError",
    "MatcherFailureError",
    "ConsolidationError",
    "ConfigurationError",
]
