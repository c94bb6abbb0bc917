"""
Property-Based Tests for Cachezip
=================================

Uses Hypothesis to generate random inputs and verify invariants:
1. Round-trip: write(v) then read() returns v for every configuration
2. Marker: compressed payloads carry the marker exactly when compression helped
3. Small values never carry the marker
4. Integers are stored verbatim
5. read_multi reports caller keys, never storage keys
"""

import pickle

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from cachezip import CompressedStore, MemoryStore
from cachezip.compressors import ZstdCompressor
from cachezip.payload import MARK_COMPRESSED


# =============================================================================
# Hypothesis Strategies
# =============================================================================

scalars = st.one_of(
    st.text(max_size=200),
    st.binary(max_size=200),
    st.integers(),
    st.floats(allow_nan=False),
    st.booleans(),
    st.none(),
)

values = st.recursive(
    scalars,
    lambda children: st.one_of(
        st.lists(children, max_size=8),
        st.dictionaries(st.text(max_size=10), children, max_size=8),
        st.tuples(children, children),
    ),
    max_leaves=40,
)

# Repetitive text that is large enough to cross small thresholds
repetitive_text = st.builds(
    lambda chunk, times: chunk * times,
    st.text(min_size=1, max_size=20),
    st.integers(min_value=50, max_value=400),
)

thresholds = st.sampled_from([0, 1, 64, 1024, 4096])

cache_keys = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",)), min_size=1, max_size=30
)


def _store(threshold: int) -> CompressedStore:
    return CompressedStore(MemoryStore(), compress_threshold=threshold)


# =============================================================================
# Properties
# =============================================================================


class TestRoundTrip:
    @given(value=values, threshold=thresholds, compress=st.booleans())
    @settings(max_examples=150, suppress_health_check=[HealthCheck.too_slow])
    def test_write_then_read(self, value, threshold, compress):
        store = _store(threshold)
        store.write("key", value, compress=compress)
        assert store.read("key") == value

    @given(value=repetitive_text, threshold=thresholds)
    @settings(max_examples=50)
    def test_large_text_round_trip(self, value, threshold):
        store = _store(threshold)
        store.write("key", value)
        assert store.read("key") == value


class TestMarkerInvariants:
    @given(value=st.one_of(values, repetitive_text), threshold=thresholds)
    @settings(max_examples=100, suppress_health_check=[HealthCheck.too_slow])
    def test_marker_iff_compression_helped(self, value, threshold):
        if isinstance(value, int) and not isinstance(value, bool):
            return

        store = _store(threshold)
        store.write("key", value)
        payload = store.backend.raw_read("br-key")

        serialized = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        helped = (
            len(serialized) >= threshold
            and len(ZstdCompressor().deflate(serialized)) < len(serialized)
        )
        assert payload.startswith(MARK_COMPRESSED) == helped

    @given(value=values)
    @settings(max_examples=100)
    def test_small_values_never_marked(self, value):
        serialized = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        store = _store(len(serialized) + 1)

        store.write("key", value)

        payload = store.backend.raw_read("br-key")
        if isinstance(payload, bytes):
            assert not payload.startswith(MARK_COMPRESSED)
            assert payload == serialized


class TestCounters:
    @given(n=st.integers())
    def test_integers_stored_verbatim(self, n):
        store = _store(0)
        store.write("counter", n)

        assert store.backend.raw_read("br-counter") == n
        assert store.read("counter") == n


class TestKeys:
    @given(keys=st.lists(cache_keys, min_size=1, max_size=5, unique=True))
    def test_read_multi_reports_caller_keys(self, keys):
        store = _store(1024)
        for index, key in enumerate(keys):
            store.write(key, f"value-{index}")

        result = store.read_multi(*keys)

        assert list(result) == keys
        assert store.backend.raw_keys() == [f"br-{key}" for key in keys]

    @pytest.mark.parametrize("prefix", ["", "br-", "app:v2:"])
    def test_prefix_variants(self, prefix):
        store = CompressedStore(MemoryStore(), prefix=prefix)
        store.write("A", 1)
        store.write("B", "b")

        assert store.read_multi("A", "B") == {"A": 1, "B": "b"}
        assert set(store.backend.raw_keys()) == {f"{prefix}A", f"{prefix}B"}
