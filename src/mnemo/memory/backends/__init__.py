"""
Memory Store Backends

The memory store is pluggable: every backend derives from
:class:`MemoryStoreBackend`, which owns locking and error translation.
"""

from mnemo.memory.backends.base import MemoryStoreBackend
from mnemo.memory.backends.in_memory import InMemoryMemoryStore

__all__ = ["MemoryStoreBackend", "InMemoryMemoryStore"]
