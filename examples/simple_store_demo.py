#!/usr/bin/env python3
"""
Simple Compressed Store Example
===============================

Wraps an in-memory backend, stores a small and a large value and shows
which one ended up compressed.

Usage:
    python simple_store_demo.py
"""

from cachezip import MARK_COMPRESSED, CompressedStore, MemoryStore, StoreConfig


def build_report(rows):
    """Simulate an expensive report."""
    print(f"📊 Building report with {rows} rows")
    return [{"row": i, "status": "ok", "note": "nothing to see here"} for i in range(rows)]


def main():
    print("=== Simple Compressed Store Demo ===\n")

    backend = MemoryStore()
    store = CompressedStore(backend, StoreConfig.from_env())

    store.write("greeting", "hello")
    report = store.fetch(["reports", "daily"], lambda: build_report(500))
    store.fetch(["reports", "daily"], lambda: build_report(500))  # cache hit

    for key in backend.raw_keys():
        payload = backend.raw_read(key)
        compressed = isinstance(payload, bytes) and payload.startswith(MARK_COMPRESSED)
        print(f"   {key}: {len(payload)} bytes, compressed={compressed}")

    print(f"\n✅ Report has {len(store.read(['reports', 'daily']))} rows (built {len(report)})")

    store.write("page_views", 41)
    print(f"🔢 page_views after increment: {store.increment('page_views')}")


if __name__ == "__main__":
    main()
