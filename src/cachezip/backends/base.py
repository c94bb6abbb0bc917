"""
Abstract Base Class for Cache Backends
======================================

Defines the interface a key-value cache must implement to be wrapped by
``CompressedStore``.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional


class CacheBackend(ABC):
    """
    Abstract base class for cache backends.

    A backend owns storage, eviction, expiry and any network protocol.
    Implementations can use various storage mechanisms:
    - In-memory dictionaries (fast, ephemeral)
    - Redis/Memcached servers (distributed)
    - Databases or files

    Writes accept a ``compress`` keyword; ``CompressedStore`` always passes
    ``compress=False`` because it compresses values itself. Any other keyword
    options (``expires_in``, ``version``, ...) are backend specific.

    All implementations must be thread-safe.
    """

    @abstractmethod
    def read(self, key: Any, **options) -> Any:
        """
        Read a value.

        Args:
            key: Cache key

        Returns:
            The stored value, or None if the key is absent.
        """
        pass

    @abstractmethod
    def write(self, key: Any, value: Any, **options) -> bool:
        """
        Store a value.

        Args:
            key: Cache key
            value: Value to store, integers must stay integers

        Returns:
            True if the value was stored.
        """
        pass

    @abstractmethod
    def read_multi(self, *keys: Any, **options) -> Dict[str, Any]:
        """
        Read several values in one round trip.

        Returns:
            Mapping of key to value for the keys that were found.
        """
        pass

    @abstractmethod
    def write_multi(self, mapping: Mapping[Any, Any], **options) -> bool:
        """Store several values in one round trip."""
        pass

    @abstractmethod
    def fetch_multi(
        self, *keys: Any, producer: Callable[[str], Any], **options
    ) -> Dict[str, Any]:
        """
        Read several values, producing and storing the missing ones.

        Args:
            *keys: Cache keys
            producer: Called with each missing key, its result is written back

        Returns:
            Mapping of key to value in the order the keys were given.
        """
        pass

    @abstractmethod
    def exists(self, key: Any, **options) -> bool:
        """Check if a key is present."""
        pass

    @abstractmethod
    def delete(self, key: Any, **options) -> bool:
        """
        Delete a key.

        Returns:
            True if the key was deleted, False if it didn't exist.
        """
        pass

    @abstractmethod
    def clear(self, **options) -> None:
        """Remove every entry."""
        pass

    @abstractmethod
    def increment(self, key: Any, amount: int = 1, **options) -> Optional[int]:
        """Atomically add ``amount`` to an integer entry and return the new value."""
        pass

    @abstractmethod
    def decrement(self, key: Any, amount: int = 1, **options) -> Optional[int]:
        """Atomically subtract ``amount`` from an integer entry and return the new value."""
        pass

    @classmethod
    def supports_cache_versioning(cls) -> bool:
        """Whether the backend accepts a ``version`` option on reads and writes."""
        return False

    def close(self):
        """
        Close and clean up any resources.

        Default implementation does nothing. Override in backends that hold
        resources like connections.
        """
        pass

    def __enter__(self):
        """Support context manager protocol."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Ensure resources are cleaned up."""
        self.close()
        return False
