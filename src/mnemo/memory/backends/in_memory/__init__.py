"""In-memory store implementation."""

from mnemo.memory.backends.in_memory.core import InMemoryMemoryStore

__all__ = ["InMemoryMemoryStore"]
