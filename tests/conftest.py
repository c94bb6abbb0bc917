"""
Shared fixtures for the cachezip test suite.
"""

from dataclasses import dataclass

import pytest

from cachezip import CompressedStore, MemoryStore, StoreConfig


@dataclass(unsafe_hash=True)
class Post:
    """Domain object that supplies its own cache key."""

    id: int
    title: str = ""

    def to_cache_key(self) -> str:
        return f"post/{self.id}"


@pytest.fixture
def backend():
    """A fresh in-memory backend."""
    return MemoryStore()


@pytest.fixture
def store(backend):
    """A compressed store with default configuration."""
    return CompressedStore(backend)


@pytest.fixture
def unprefixed_store(backend):
    """A compressed store that doesn't prefix keys."""
    return CompressedStore(backend, StoreConfig(prefix=""))


@pytest.fixture
def compressible_text():
    """A 2000-character string that compresses well."""
    return ("lorem ipsum dolor sit amet " * 100)[:2000]


@pytest.fixture
def post():
    return Post(id=1, title="First")
