"""
Cache Key Canonicalization
==========================

Turns caller-supplied keys of any shape into the string keys stored in a
backend. Both ``CompressedStore`` and the bundled backends use ``canonicalize``,
so a wrapped and an unwrapped store agree on key shape apart from the prefix.

Rules, in order:
1. Objects implementing ``to_cache_key()`` (or exposing ``cache_key``) use it
2. Strings pass through, bytes decode as UTF-8
3. None becomes an empty string, booleans become "true"/"false"
4. Enum members canonicalize their value
5. Mappings become sorted "k=v" items joined with "/"
6. Sequences join their canonicalized elements with "/"
7. Anything else uses ``str()``
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

import xxhash

KEY_SEPARATOR = "/"
HASH_MARKER = ":hash:"
# Marker plus a 16 character xxh3_64 hex digest
MIN_TRUNCATED_LENGTH = len(HASH_MARKER) + 16


@runtime_checkable
class CacheKeyable(Protocol):
    """Domain objects that know their own cache key."""

    def to_cache_key(self) -> str: ...


def _object_key(obj: Any) -> Optional[str]:
    if isinstance(obj, type):
        return None

    if isinstance(obj, CacheKeyable):
        return str(obj.to_cache_key())

    cache_key = getattr(obj, "cache_key", None)
    if cache_key is None:
        return None
    if callable(cache_key):
        cache_key = cache_key()
    return str(cache_key)


def canonicalize(key: Any) -> str:
    """
    Canonicalize a cache key.

    Args:
        key: A string, number, domain object, mapping or sequence of those

    Returns:
        Deterministic string form of the key

    Examples:
        >>> canonicalize(["views", "controller/action", 42])
        'views/controller/action/42'
        >>> canonicalize({"b": 2, "a": 1})
        'a=1/b=2'
    """
    if isinstance(key, str):
        return key

    object_key = _object_key(key)
    if object_key is not None:
        return object_key

    if key is None:
        return ""

    if isinstance(key, bool):
        return "true" if key else "false"

    if isinstance(key, (bytes, bytearray)):
        return bytes(key).decode("utf-8")

    if isinstance(key, Enum):
        return canonicalize(key.value)

    if isinstance(key, Mapping):
        items = sorted(f"{canonicalize(k)}={canonicalize(v)}" for k, v in key.items())
        return KEY_SEPARATOR.join(items)

    if isinstance(key, (list, tuple)):
        if len(key) == 1:
            return canonicalize(key[0])
        return KEY_SEPARATOR.join(canonicalize(element) for element in key)

    return str(key)


def truncate_key(key: str, max_length: Optional[int]) -> str:
    """
    Shorten keys that exceed ``max_length`` characters.

    The key is cut and suffixed with the xxh3 digest of the full key, so two
    long keys sharing a head still map to different storage keys.
    """
    if max_length is None or len(key) <= max_length:
        return key

    digest = xxhash.xxh3_64(key.encode("utf-8")).hexdigest()
    suffix = f"{HASH_MARKER}{digest}"
    head_length = max(max_length - len(suffix), 0)
    return f"{key[:head_length]}{suffix}"
