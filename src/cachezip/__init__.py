"""
cachezip - Transparent compression layer for key-value caches.

Wraps an existing cache backend, serializing and conditionally compressing
values on write and reversing the transformation on read, while keeping the
backend's key and multi-key semantics intact.

Key Features:
- Size-threshold compression that is kept only when it actually shrinks the value
- One-byte marker distinguishing compressed from raw payloads
- Integers stored verbatim so backend counters keep working
- Prefixed storage keys, never leaked back to callers
- Pluggable blosc2 codecs (zstd, lz4, zlib, ...)

Quick Start:
    >>> from cachezip import CompressedStore, MemoryStore
    >>>
    >>> store = CompressedStore(MemoryStore())
    >>> store.write("greeting", "hello " * 1000)
    True
    >>> store.read("greeting")[:5]
    'hello'
"""

from .backends import CacheBackend, MemoryStore
from .compressors import (
    Blosc2Compressor,
    Compressor,
    LZ4Compressor,
    ZlibCompressor,
    ZstdCompressor,
    is_compressor,
    list_available_codecs,
)
from .config import CallOptions, StoreConfig
from .error_handling import (
    CacheConfigurationError,
    CacheError,
    CacheSerializationError,
    CacheStorageError,
    CompressionError,
    CorruptPayloadError,
    DecompressionError,
    MissingProducerError,
)
from .payload import MARK_COMPRESSED
from .serialization import CacheKeyable, canonicalize
from .store import CompressedStore, get_cache_store

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "CompressedStore",
    "StoreConfig",
    "CallOptions",
    "get_cache_store",
    # Backends
    "CacheBackend",
    "MemoryStore",
    # Compressors
    "Compressor",
    "Blosc2Compressor",
    "ZstdCompressor",
    "LZ4Compressor",
    "ZlibCompressor",
    "is_compressor",
    "list_available_codecs",
    # Keys and payloads
    "CacheKeyable",
    "canonicalize",
    "MARK_COMPRESSED",
    # Errors
    "CacheError",
    "CacheConfigurationError",
    "CacheStorageError",
    "CacheSerializationError",
    "CorruptPayloadError",
    "CompressionError",
    "DecompressionError",
    "MissingProducerError",
    # Version info
    "__version__",
]
