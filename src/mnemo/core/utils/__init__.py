"""Small shared utilities."""

from mnemo.core.utils.logging import configure_logger

__all__ = ["configure_logger"]
