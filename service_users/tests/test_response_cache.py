"""
Unit tests for the response cache.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_users.app.caching.response_cache import ResponseCache
from service_users.app.caching.sweeper import CacheSweeper


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class DummyMetrics:
    """Minimal metrics collector stub."""

    def __init__(self):
        self.counters = []

    def increment_counter(self, metric_name: str, amount: float = 1, **labels):
        self.counters.append((metric_name, labels))


class TestResponseCache:
    """Test cases for ResponseCache."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return ResponseCache(ttl_millis=300_000, clock=clock)

    def test_get_missing_key_returns_none(self, cache):
        assert cache.get("/users/1") is None

    def test_put_then_get_returns_value(self, cache):
        cache.put("/users/1", {"user": {"id": 1}, "cached": False})
        assert cache.get("/users/1") == {"user": {"id": 1}, "cached": False}

    def test_value_served_until_ttl_elapses(self, cache, clock):
        cache.put("/users/1", {"user": {"id": 1}})

        clock.advance(299.5)
        assert cache.get("/users/1") == {"user": {"id": 1}}

        # Exactly at the TTL the entry is still fresh
        clock.advance(0.5)
        assert cache.get("/users/1") == {"user": {"id": 1}}

    def test_value_absent_after_ttl(self, cache, clock):
        cache.put("/users/1", {"user": {"id": 1}})
        clock.advance(300.5)

        assert cache.get("/users/1") is None
        # Expired entries are evicted on access
        assert "/users/1" not in cache

    def test_put_overwrites_and_refreshes_timestamp(self, cache, clock):
        cache.put("/users/1", "old")
        clock.advance(200)
        cache.put("/users/1", "new")
        clock.advance(200)

        assert cache.get("/users/1") == "new"

    def test_put_stores_a_copy(self, cache):
        payload = {"user": {"id": 1, "name": "Alice"}}
        cache.put("/users/1", payload)
        payload["user"]["name"] = "Mallory"

        assert cache.get("/users/1")["user"]["name"] == "Alice"

    def test_get_returns_a_copy(self, cache):
        cache.put("/users", {"users": [{"id": 1, "name": "Alice"}]})
        served = cache.get("/users")
        served["users"][0]["name"] = "Mallory"
        served["users"].append({"id": 2})

        assert cache.get("/users") == {"users": [{"id": 1, "name": "Alice"}]}

    def test_invalidate_prefix_scope(self, cache):
        cache.put("/users/1", "a")
        cache.put('/users?{"page":1}', "b")
        cache.put("/posts/1", "c")

        cache.invalidate_prefix("/users")

        assert cache.get("/users/1") is None
        assert cache.get('/users?{"page":1}') is None
        assert cache.get("/posts/1") == "c"

    def test_invalidate_empty_namespace_is_noop(self, cache):
        cache.put("/posts/1", "c")

        cache.invalidate_prefix("/users")
        cache.invalidate_prefix("/users")

        assert len(cache) == 1

    def test_sweep_expired_drops_only_stale_entries(self, cache, clock):
        cache.put("/users/1", "stale")
        clock.advance(250)
        cache.put("/users/2", "fresh")
        clock.advance(100)

        removed = cache.sweep_expired()

        assert removed == 1
        assert "/users/1" not in cache
        assert cache.get("/users/2") == "fresh"

    def test_stats_counts_hits_misses_invalidations(self, cache):
        cache.get("/users/1")
        cache.put("/users/1", "a")
        cache.get("/users/1")
        cache.invalidate_prefix("/users")

        stats = cache.stats()

        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["invalidations"] == 1
        assert stats["entries"] == 0
        assert stats["ttl_millis"] == 300_000

    def test_metrics_recorded(self, clock):
        metrics = DummyMetrics()
        cache = ResponseCache(ttl_millis=1000, clock=clock, metrics=metrics)

        cache.get("k")
        cache.put("k", 1)
        cache.get("k")
        cache.invalidate_prefix("k")

        names = [name for name, _ in metrics.counters]
        assert names == ["cache_misses_total", "cache_hits_total", "cache_invalidations_total"]
        assert all(labels == {"cache_type": "response"} for _, labels in metrics.counters)

    def test_custom_ttl(self, clock):
        cache = ResponseCache(ttl_millis=50, clock=clock)
        cache.put("k", 1)

        clock.advance(0.049)
        assert cache.get("k") == 1
        clock.advance(0.002)
        assert cache.get("k") is None

    def test_falsy_values_are_hits(self, cache):
        cache.put("k", [])
        assert cache.get("k") == []


class TestCacheSweeper:
    """Test cases for CacheSweeper."""

    @pytest.mark.asyncio
    async def test_disabled_with_non_positive_interval(self):
        sweeper = CacheSweeper(ResponseCache(), interval_seconds=0)

        await sweeper.start()

        assert sweeper.running is False
        await sweeper.stop()

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        sweeper = CacheSweeper(ResponseCache(), interval_seconds=3600)

        await sweeper.start()
        assert sweeper.running is True

        await sweeper.stop()
        assert sweeper.running is False
