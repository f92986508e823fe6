#!/usr/bin/env python3
"""
Tests for the TTL cache store and cache key derivation.
"""

import asyncio

from src.gateway import CacheStore, make_cache_key

from conftest import FakeClock


def test_get_returns_value_until_ttl_elapses():
    clock = FakeClock()
    cache = CacheStore(clock=clock)
    cache.set("k", {"rows": [1, 2]}, ttl=10)

    clock.advance(9.999)
    assert cache.get("k") == {"rows": [1, 2]}

    clock.advance(0.001)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_expired_entry_behaves_like_missing():
    clock = FakeClock()
    cache = CacheStore(clock=clock)
    cache.set("k", None, ttl=5)

    assert cache.lookup("k") == (True, None)
    clock.advance(5)
    assert cache.lookup("k") == (False, None)
    assert cache.get("k", "absent") == "absent"


def test_set_overwrites_and_restarts_ttl():
    clock = FakeClock()
    cache = CacheStore(clock=clock)
    cache.set("k", "old", ttl=10)
    clock.advance(8)
    cache.set("k", "new", ttl=10)
    clock.advance(8)

    assert cache.get("k") == "new"


def test_invalidate_removes_entry_and_is_idempotent():
    cache = CacheStore(clock=FakeClock())
    cache.set("k", "v", ttl=10)

    assert cache.invalidate("k") is True
    assert cache.get("k") is None
    assert cache.invalidate("k") is False


def test_set_rejects_non_positive_ttl():
    cache = CacheStore(clock=FakeClock())
    try:
        cache.set("k", "v", ttl=0)
    except ValueError:
        pass
    else:
        raise AssertionError("ttl=0 should be rejected")


def test_cleanup_expired_only_removes_expired_entries():
    clock = FakeClock()
    cache = CacheStore(clock=clock)
    cache.set("short", 1, ttl=5)
    cache.set("long", 2, ttl=50)
    clock.advance(10)

    assert cache.cleanup_expired() == 1
    assert cache.get("long") == 2
    stats = cache.stats()
    assert stats["size"] == 1
    assert stats["entries"][0]["key"] == "long"
    assert stats["entries"][0]["age"] == 10


def test_hit_and_miss_counters():
    cache = CacheStore(clock=FakeClock())
    cache.get("missing")
    cache.set("k", "v", ttl=10)
    cache.get("k")

    assert (cache.hits, cache.misses) == (1, 1)


def test_cache_key_ignores_argument_order():
    first = make_cache_key("get_schema", {"projectUuid": "p", "exploreId": "orders"})
    second = make_cache_key("get_schema", {"exploreId": "orders", "projectUuid": "p"})
    assert first == second


def test_cache_key_normalizes_nested_maps_and_none_values():
    first = make_cache_key("search", {"filters": {"a": 1, "b": {"y": 2, "x": 1}}, "page": None})
    second = make_cache_key("search", {"filters": {"b": {"x": 1, "y": 2}, "a": 1}})
    assert first == second


def test_cache_key_distinguishes_operations_and_values():
    base = make_cache_key("get_schema", {"exploreId": "orders"})
    assert base != make_cache_key("get_explores_summary", {"exploreId": "orders"})
    assert base != make_cache_key("get_schema", {"exploreId": "customers"})
    # list order is meaningful
    assert make_cache_key("q", {"dims": ["a", "b"]}) != make_cache_key("q", {"dims": ["b", "a"]})


def test_background_cleanup_removes_expired_entries():
    async def scenario():
        clock = FakeClock()
        cache = CacheStore(clock=clock)
        cache.set("stale", 1, ttl=1)
        cache.set("fresh", 2, ttl=100)
        clock.advance(5)
        cache.start_cleanup(interval=0.01)
        await asyncio.sleep(0.05)
        await cache.stop_cleanup()
        return len(cache)

    assert asyncio.run(scenario()) == 1


def test_mutating_returned_values_does_not_change_the_entry():
    cache = CacheStore(clock=FakeClock())
    stored = {"tables": {"orders": {"dimensions": ["status"]}}}
    cache.set("k", stored, ttl=10)

    stored["tables"]["injected"] = True
    first = cache.get("k")
    first["tables"]["orders"]["dimensions"].append("total")

    assert cache.get("k") == {"tables": {"orders": {"dimensions": ["status"]}}}
