"""Logging helpers for Mnemo components.

Purpose:
    Provide a single helper for configuring named loggers with a consistent
    formatter and level so library modules never attach handlers themselves.
External Dependencies:
    Uses only the Python standard library `logging` module.
Fallback Semantics:
    Loggers that already carry handlers are returned untouched, which keeps the
    helper idempotent when called repeatedly by embedding applications.
"""

from __future__ import annotations

import logging

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logger(name: str, level: int | None = None) -> logging.Logger:
    """Summary: Return a logger configured with the standard Mnemo formatter.
    Parameters:
        name: Name of the logger to retrieve.
        level: Optional logging level override. Defaults to ``logging.INFO`` when
            no handlers are configured on the logger.
    Returns:
        logging.Logger: Configured logger instance.
    Side Effects:
        Adds a ``StreamHandler`` when the logger does not already have handlers
        attached.
    """

    logger = logging.getLogger(name)
    effective_level = level if level is not None else logging.INFO

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(effective_level)
    elif level is not None:
        logger.setLevel(level)

    return logger


def parse_log_level(value: str | int | None, default: int = logging.INFO) -> int:
    """Translate ``"debug"``/``"INFO"``/``10`` style values into a logging level."""

    if value is None:
        return default
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value).strip().upper())
    return resolved if isinstance(resolved, int) else default


__all__ = ["DEFAULT_FORMAT", "configure_logger", "parse_log_level"]
