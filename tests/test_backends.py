"""
Tests for the backend contract and MemoryStore.
"""

import threading

import pytest

from cachezip.backends import CacheBackend, MemoryStore
from cachezip.error_handling import CacheStorageError
from conftest import Post


# =============================================================================
# MemoryStore
# =============================================================================


class TestMemoryStore:
    """Test the in-memory reference backend."""

    def test_is_cache_backend(self, backend):
        assert isinstance(backend, CacheBackend)

    def test_write_and_read(self, backend):
        assert backend.write("key", b"value") is True
        assert backend.read("key") == b"value"

    def test_read_missing(self, backend):
        assert backend.read("missing") is None

    def test_canonicalizes_keys(self, backend, post):
        backend.write(["views", post], "html")

        assert backend.raw_keys() == ["views/post/1"]
        assert backend.read("views/post/1") == "html"

    def test_compress_option_accepted(self, backend):
        backend.write("key", b"value", compress=False, expires_in=60)
        assert backend.read("key") == b"value"

    def test_read_multi_omits_misses(self, backend):
        backend.write("a", 1)
        backend.write("b", 2)

        assert backend.read_multi("a", "b", "c") == {"a": 1, "b": 2}

    def test_write_multi(self, backend):
        backend.write_multi({"a": 1, Post(id=4): "post"})

        assert backend.read("a") == 1
        assert backend.read("post/4") == "post"

    def test_fetch_multi_produces_missing(self, backend):
        backend.write("a", "cached")
        produced = []

        def producer(key):
            produced.append(key)
            return f"made-{key}"

        result = backend.fetch_multi("a", "b", producer=producer)

        assert result == {"a": "cached", "b": "made-b"}
        assert produced == ["b"]
        assert backend.read("b") == "made-b"

    def test_exists_and_delete(self, backend):
        backend.write("key", "value")

        assert backend.exists("key")
        assert backend.delete("key") is True
        assert not backend.exists("key")
        assert backend.delete("key") is False

    def test_clear(self, backend):
        backend.write_multi({"a": 1, "b": 2})
        backend.clear()
        assert len(backend) == 0

    def test_increment_existing(self, backend):
        backend.write("counter", 123)
        assert backend.increment("counter") == 124
        assert backend.increment("counter", 10) == 134

    def test_increment_missing_starts_from_amount(self, backend):
        assert backend.increment("fresh", 5) == 5

    def test_decrement(self, backend):
        backend.write("counter", 10)
        assert backend.decrement("counter", 3) == 7

    def test_increment_non_integer_raises(self, backend):
        backend.write("text", b"abc")
        with pytest.raises(CacheStorageError):
            backend.increment("text")

    def test_versioned_read_mismatch(self, backend):
        backend.write("key", "v1 value", version="v1")

        assert backend.read("key", version="v1") == "v1 value"
        assert backend.read("key", version="v2") is None
        assert backend.read("key") == "v1 value"

    def test_supports_cache_versioning(self):
        assert MemoryStore.supports_cache_versioning() is True

    def test_raw_read(self, backend):
        backend.write("key", b"\x02abc", version="v1")
        assert backend.raw_read("key") == b"\x02abc"

    def test_context_manager(self):
        with MemoryStore() as store:
            store.write("key", 1)
            assert store.read("key") == 1

    def test_concurrent_increments(self, backend):
        backend.write("counter", 0)

        def worker():
            for _ in range(500):
                backend.increment("counter")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert backend.read("counter") == 4000
