"""
Generated storage keys match an unwrapped backend's keys, modulo the prefix.

A plain MemoryStore and a CompressedStore share one backend here, the way an
application would run both against the same cache server.
"""

import pytest

from cachezip import CompressedStore, MemoryStore
from conftest import Post


@pytest.fixture
def shared_backend():
    return MemoryStore()


@pytest.fixture
def compressed_store(shared_backend):
    return CompressedStore(shared_backend)


class TestCacheKeyCompatibility:
    """Generated cache keys are identical to the standard backend's."""

    def test_string_keys(self, shared_backend, compressed_store):
        shared_backend.fetch_multi("string-key", producer=lambda key: 123)
        compressed_store.fetch("string-key", lambda: 123)

        assert shared_backend.raw_read("string-key") is not None
        assert shared_backend.raw_read("br-string-key") is not None

    def test_domain_object_keys(self, shared_backend, compressed_store):
        post_1 = Post(id=1)
        shared_backend.fetch_multi(post_1, producer=lambda key: 123)
        compressed_store.fetch(post_1, lambda: 123)

        assert shared_backend.raw_read("post/1") is not None
        assert shared_backend.raw_read("br-post/1") is not None

    def test_domain_object_collection_keys(self, shared_backend, compressed_store):
        collection = [Post(id=1), Post(id=2)]
        key = ["views", "controller/action", collection]

        shared_backend.write(key, 123)
        compressed_store.fetch(key, lambda: 123)

        assert shared_backend.raw_read("views/controller/action/post/1/post/2") is not None
        assert shared_backend.raw_read("br-views/controller/action/post/1/post/2") is not None

    def test_both_stores_coexist(self, shared_backend, compressed_store):
        shared_backend.write("shared", "plain value")
        compressed_store.write("shared", "compressed value")

        assert shared_backend.read("shared") == "plain value"
        assert compressed_store.read("shared") == "compressed value"

    def test_counters_interoperate(self, shared_backend, compressed_store):
        compressed_store.write("hits", 1)
        shared_backend.increment("br-hits", 2)

        assert compressed_store.read("hits") == 3
