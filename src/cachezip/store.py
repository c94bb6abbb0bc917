"""
Compressed Cache Store
======================

``CompressedStore`` wraps an existing cache backend and transparently
serializes and compresses values on their way in, reversing the transformation
on the way out. Keys are canonicalized and prefixed so the wrapped store can
share a backend with an unwrapped one without collisions.

Usage:
    >>> from cachezip import CompressedStore, MemoryStore
    >>>
    >>> store = CompressedStore(MemoryStore())
    >>> store.write("report", {"rows": list(range(1000))})
    True
    >>> store.read("report")["rows"][:3]
    [0, 1, 2]
    >>> store.fetch(["views", "dashboard"], lambda: "<html>...</html>")
    '<html>...</html>'

This layer holds no state besides its configuration. Locking, expiry and
retries are the backend's concern.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .backends import CacheBackend, MemoryStore
from .compressors import Compressor, get_compressor_class, resolve_compressor
from .config import CallOptions, StoreConfig
from .error_handling import MissingProducerError, log_cache_performance
from .payload import StoredPayload, decode, encode, to_backend_value
from .serialization import canonicalize, truncate_key

logger = logging.getLogger(__name__)


class CompressedStore:
    """
    Compression decorator around a cache backend.

    Args:
        backend: The wrapped cache backend
        config: Store configuration, defaults to ``StoreConfig()``
        **overrides: StoreConfig fields applied on top of ``config``
    """

    def __init__(
        self,
        backend: CacheBackend,
        config: Optional[StoreConfig] = None,
        **overrides,
    ):
        config = config or StoreConfig()
        if overrides:
            config = config.replace(**overrides)

        self._backend = backend
        self._config = config

        compressor_class = config.compressor_class or get_compressor_class(config.codec)
        self._compressor = resolve_compressor(
            compressor_class, config.compress_level, config.codec
        )

        logger.debug(
            f"CompressedStore wrapping {type(backend).__name__} with {self._compressor!r}"
        )

    @property
    def backend(self) -> CacheBackend:
        """The wrapped backend."""
        return self._backend

    @property
    def config(self) -> StoreConfig:
        return self._config

    @classmethod
    def supports_cache_versioning(cls) -> bool:
        return True

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def _storage_key(self, key: Any) -> str:
        return self._prefixed(canonicalize(key))

    def _prefixed(self, canonical: str) -> str:
        prefix = self._config.prefix
        limit = self._config.max_key_length
        if limit is not None:
            canonical = truncate_key(canonical, limit - len(prefix))
        return f"{prefix}{canonical}"

    def _source_key(self, storage_key: str) -> str:
        prefix = self._config.prefix
        if prefix and storage_key.startswith(prefix):
            return storage_key[len(prefix):]
        return storage_key

    def _key_map(self, keys) -> Dict[str, str]:
        """Storage key to caller key, in caller order."""
        mapping = {}
        for key in keys:
            canonical = canonicalize(key)
            mapping[self._prefixed(canonical)] = canonical
        return mapping

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def _compressor_for(self, call: CallOptions) -> Compressor:
        if call.compressor_class is None:
            return self._compressor
        return resolve_compressor(
            call.compressor_class, self._config.compress_level, codec=self._config.codec
        )

    def _encode(self, value: Any, call: CallOptions) -> StoredPayload:
        return encode(
            value,
            self._compressor_for(call),
            self._config.compress_threshold,
            compress=call.compress,
            serializer=self._config.serializer,
        )

    def _decode(self, raw: Any, call: CallOptions) -> Any:
        return decode(raw, self._compressor_for(call), self._config.serializer)

    # ------------------------------------------------------------------
    # Single-key operations
    # ------------------------------------------------------------------

    @log_cache_performance
    def fetch(self, key: Any, producer: Optional[Callable[[], Any]] = None, **options) -> Any:
        """
        Read a value, producing and storing it on a miss.

        Args:
            key: Cache key
            producer: Called without arguments on a miss (or when forced)
            **options: ``force=True`` skips the read and always calls ``producer``

        Returns:
            The cached or freshly produced value, None on a miss without producer.
            Only None counts as a miss: cached falsy values such as 0, "" or
            False are returned as hits.

        Raises:
            MissingProducerError: If ``force`` is set and no producer is given
        """
        call = CallOptions.from_kwargs(options)

        if call.force and producer is None:
            raise MissingProducerError(
                "Missing producer: calling fetch with force=True requires a producer",
                {"key": canonicalize(key)},
            )

        value = None
        if not call.force:
            value = self._read(key, call)
            if value is not None:
                return value

        if producer is None:
            return value

        value = producer()
        self._write(key, value, call)
        return value

    @log_cache_performance
    def read(self, key: Any, **options) -> Any:
        """Read and decode a value, None if the backend has no entry."""
        return self._read(key, CallOptions.from_kwargs(options))

    def _read(self, key: Any, call: CallOptions) -> Any:
        storage_key = self._storage_key(key)
        raw = self._backend.read(storage_key, **call.backend_kwargs())
        logger.debug(f"Read {storage_key}: {'miss' if raw is None else 'hit'}")
        return self._decode(raw, call)

    @log_cache_performance
    def write(self, key: Any, value: Any, **options) -> bool:
        """
        Encode and store a value.

        Integers are stored verbatim so backend counters keep working. Other
        values are serialized and, above the size threshold, compressed.

        Args:
            key: Cache key
            value: Value to store
            **options: ``compress=False`` disables compression for this call,
                ``compressor_class`` overrides the compressor, everything else
                goes to the backend
        """
        return self._write(key, value, CallOptions.from_kwargs(options))

    def _write(self, key: Any, value: Any, call: CallOptions) -> bool:
        storage_key = self._storage_key(key)
        payload = to_backend_value(self._encode(value, call))
        logger.debug(f"Write {storage_key}")
        return self._backend.write(
            storage_key, payload, **call.backend_kwargs(compress=False)
        )

    def exists(self, key: Any, **options) -> bool:
        return self._backend.exists(self._storage_key(key), **options)

    def delete(self, key: Any, **options) -> bool:
        return self._backend.delete(self._storage_key(key), **options)

    def clear(self, **options) -> None:
        """Clear the whole backend; options are ignored."""
        logger.debug(f"Clearing {type(self._backend).__name__}")
        return self._backend.clear()

    def increment(self, key: Any, *args, **options) -> Optional[int]:
        return self._backend.increment(self._storage_key(key), *args, **options)

    def decrement(self, key: Any, *args, **options) -> Optional[int]:
        return self._backend.decrement(self._storage_key(key), *args, **options)

    # ------------------------------------------------------------------
    # Multi-key operations
    # ------------------------------------------------------------------

    @log_cache_performance
    def read_multi(self, *keys: Any, **options) -> Dict[str, Any]:
        """
        Read several values in one backend call.

        Returns:
            Mapping of canonical caller key (never prefixed) to value, for hits only
        """
        call = CallOptions.from_kwargs(options)
        key_map = self._key_map(keys)
        raw = self._backend.read_multi(*key_map, **call.backend_kwargs())

        result = {}
        for storage_key, caller_key in key_map.items():
            if storage_key not in raw:
                continue
            value = self._decode(raw[storage_key], call)
            if value is not None:
                result[caller_key] = value
        return result

    @log_cache_performance
    def write_multi(self, mapping: Mapping[Any, Any], **options) -> bool:
        """Encode and store several values in one backend call."""
        call = CallOptions.from_kwargs(options)
        payloads = {
            self._storage_key(key): to_backend_value(self._encode(value, call))
            for key, value in mapping.items()
        }
        return self._backend.write_multi(
            payloads, **call.backend_kwargs(compress=False)
        )

    @log_cache_performance
    def fetch_multi(
        self, *keys: Any, producer: Optional[Callable[[str], Any]] = None, **options
    ) -> Dict[str, Any]:
        """
        Read several values, producing the missing ones, in one backend call.

        Args:
            *keys: Cache keys
            producer: Called with the canonical caller key of each miss

        Returns:
            Mapping of canonical caller key to value, in the order given

        Raises:
            MissingProducerError: If no producer is given
        """
        if producer is None:
            raise MissingProducerError("Missing producer: fetch_multi requires a producer")

        call = CallOptions.from_kwargs(options)
        key_map = self._key_map(keys)
        produced: Dict[str, Any] = {}

        def produce(storage_key: str):
            caller_key = key_map.get(storage_key, self._source_key(storage_key))
            value = producer(caller_key)
            produced[storage_key] = value
            return to_backend_value(self._encode(value, call))

        raw = self._backend.fetch_multi(
            *key_map, producer=produce, **call.backend_kwargs(compress=False)
        )

        result = {}
        for storage_key, caller_key in key_map.items():
            if storage_key in produced:
                result[caller_key] = produced[storage_key]
            elif storage_key in raw:
                result[caller_key] = self._decode(raw[storage_key], call)
        return result

    def close(self):
        self._backend.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(backend={type(self._backend).__name__}, "
            f"prefix={self._config.prefix!r}, compressor={self._compressor!r})"
        )


def get_cache_store(
    backend: Optional[CacheBackend] = None,
    config: Optional[StoreConfig] = None,
    **overrides,
) -> CompressedStore:
    """
    Build a ``CompressedStore``, wrapping a fresh ``MemoryStore`` by default.

    Args:
        backend: Backend to wrap
        config: Store configuration
        **overrides: StoreConfig fields applied on top of ``config``

    Returns:
        A ready CompressedStore
    """
    if backend is None:
        backend = MemoryStore()
    return CompressedStore(backend, config, **overrides)
