"""
In-Memory Cache Backend
=======================

Dictionary-backed implementation of ``CacheBackend``. Useful for testing,
single-process applications and as a reference for the backend contract.

Keys are canonicalized with ``cachezip.serialization.canonicalize``, the same
rule ``CompressedStore`` uses, so a bare ``MemoryStore`` and a wrapped one store
``post/1`` and ``br-post/1`` for the same caller key.

There is no eviction and no expiry: ``expires_in`` and other unknown options
are accepted and ignored.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..error_handling import CacheStorageError
from ..serialization import canonicalize
from .base import CacheBackend

logger = logging.getLogger(__name__)


class MemoryStore(CacheBackend):
    """
    Thread-safe in-process cache backend.

    Entries are kept as ``(value, version)`` pairs. A read that passes a
    ``version`` misses when the entry was written with a different one.
    """

    def __init__(self):
        """Initialize an empty in-memory store."""
        self._entries: Dict[str, Tuple[Any, Optional[str]]] = {}
        self._lock = threading.RLock()
        logger.debug("MemoryStore initialized")

    @staticmethod
    def _normalize_version(options: Mapping[str, Any]) -> Optional[str]:
        version = options.get("version")
        if version is None:
            return None
        return canonicalize(version)

    def _read_entry(self, key: str, version: Optional[str]) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_version = entry
        if version is not None and stored_version is not None and version != stored_version:
            logger.debug(f"Version mismatch for {key}: {stored_version} != {version}")
            return None
        return value

    def read(self, key: Any, **options) -> Any:
        """Read a value from memory."""
        with self._lock:
            return self._read_entry(canonicalize(key), self._normalize_version(options))

    def write(self, key: Any, value: Any, **options) -> bool:
        """Write a value to memory."""
        normalized = canonicalize(key)
        with self._lock:
            self._entries[normalized] = (value, self._normalize_version(options))
        logger.debug(f"Wrote {normalized} to memory")
        return True

    def read_multi(self, *keys: Any, **options) -> Dict[str, Any]:
        """Read several values, omitting misses."""
        version = self._normalize_version(options)
        result = {}
        with self._lock:
            for key in keys:
                normalized = canonicalize(key)
                value = self._read_entry(normalized, version)
                if value is not None:
                    result[normalized] = value
        return result

    def write_multi(self, mapping: Mapping[Any, Any], **options) -> bool:
        """Write several values under one lock acquisition."""
        version = self._normalize_version(options)
        with self._lock:
            for key, value in mapping.items():
                self._entries[canonicalize(key)] = (value, version)
        logger.debug(f"Wrote {len(mapping)} entries to memory")
        return True

    def fetch_multi(
        self, *keys: Any, producer: Callable[[str], Any], **options
    ) -> Dict[str, Any]:
        """Read several values, producing and writing the missing ones."""
        version = self._normalize_version(options)
        result = {}
        with self._lock:
            for key in keys:
                normalized = canonicalize(key)
                value = self._read_entry(normalized, version)
                if value is None:
                    value = producer(normalized)
                    self._entries[normalized] = (value, version)
                result[normalized] = value
        return result

    def exists(self, key: Any, **options) -> bool:
        """Check if a key is present in memory."""
        with self._lock:
            return (
                self._read_entry(canonicalize(key), self._normalize_version(options))
                is not None
            )

    def delete(self, key: Any, **options) -> bool:
        """Delete a key from memory."""
        normalized = canonicalize(key)
        with self._lock:
            if normalized in self._entries:
                del self._entries[normalized]
                logger.debug(f"Deleted {normalized} from memory")
                return True
        return False

    def clear(self, **options) -> None:
        """Clear all entries from memory."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.debug(f"Cleared {count} entries from memory")

    def increment(self, key: Any, amount: int = 1, **options) -> Optional[int]:
        """
        Add ``amount`` to an integer entry.

        A missing key is created with ``amount`` as its value.

        Raises:
            CacheStorageError: If the entry holds a non-integer value
        """
        normalized = canonicalize(key)
        with self._lock:
            entry = self._entries.get(normalized)
            if entry is None:
                value, version = 0, self._normalize_version(options)
            else:
                value, version = entry
            if not isinstance(value, int) or isinstance(value, bool):
                raise CacheStorageError(
                    f"Cannot increment non-integer value for {normalized}",
                    {"key": normalized, "value_type": type(value).__name__},
                )
            value += amount
            self._entries[normalized] = (value, version)
        return value

    def decrement(self, key: Any, amount: int = 1, **options) -> Optional[int]:
        """Subtract ``amount`` from an integer entry."""
        return self.increment(key, -amount, **options)

    @classmethod
    def supports_cache_versioning(cls) -> bool:
        return True

    def raw_keys(self) -> List[str]:
        """List the stored keys exactly as written."""
        with self._lock:
            return list(self._entries)

    def raw_read(self, key: str) -> Any:
        """Read a stored value by its exact key, bypassing canonicalization and versions."""
        with self._lock:
            entry = self._entries.get(key)
        return None if entry is None else entry[0]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
