"""
Cache Backends
==============

Key-value backends that ``CompressedStore`` wraps.

Built-in backends:
- MemoryStore: Thread-safe in-process dictionary

Any object implementing ``CacheBackend`` can be wrapped; pass the instance
straight to ``CompressedStore`` or ``get_cache_store``.
"""

from .base import CacheBackend
from .memory import MemoryStore

__all__ = [
    "CacheBackend",
    "MemoryStore",
]
