"""Tests for cache.py."""

import asyncio

import pytest

from docbuddy.cache import TTLCache, calculate_cache_ttl, generate_cache_key
from docbuddy.core.errors import InvalidInputError


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestTTLCache:
    def test_set_and_get(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("k", {"v": 1})

        assert cache.get("k") == {"v": 1}

    def test_entry_visible_until_ttl_elapses(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("k", "v", ttl=30)

        clock.now += 30
        assert cache.get("k") == "v"

        clock.now += 0.001
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_default_ttl(self, clock):
        cache = TTLCache(default_ttl=10, clock=clock)
        cache.set("k", "v")

        clock.now += 11
        assert cache.get("k") is None

    def test_evicts_oldest_on_overflow(self, clock):
        cache = TTLCache(max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)

        assert cache.get("a") is None
        assert cache.get("b") == 2
        assert cache.get("c") == 3
        assert cache.stats()["evictions"] == 1

    def test_access_moves_entry_to_back(self, clock):
        cache = TTLCache(max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert cache.get("a") == 1
        assert cache.get("b") is None

    def test_sweep_removes_expired_without_access(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("short", 1, ttl=5)
        cache.set("long", 2, ttl=500)

        clock.now += 10

        assert cache.sweep() == 1
        assert len(cache) == 1

    def test_delete_and_clear(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)

        cache.delete("a")
        cache.delete("missing")
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0

    def test_stats_counts_hits_and_misses(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("a", 1)
        cache.get("a")
        cache.get("b")

        assert cache.stats() == {"entries": 1, "hits": 1, "misses": 1, "evictions": 0}

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            TTLCache(max_entries=0)

    @pytest.mark.asyncio
    async def test_background_sweeper(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("a", 1, ttl=1)
        clock.now += 5

        cache.start_sweeper(0.01)
        cache.start_sweeper(0.01)
        await asyncio.sleep(0.05)
        await cache.aclose()

        assert len(cache) == 0


class TestCacheKeys:
    def test_key_is_independent_of_param_order(self):
        a = generate_cache_key("apm-metrics", {"service": "checkout", "metric": "latency"})
        b = generate_cache_key("apm-metrics", {"metric": "latency", "service": "checkout"})

        assert a == b
        assert a.startswith("apm-metrics:")

    def test_none_values_are_dropped(self):
        a = generate_cache_key("logs", {"service": "checkout", "environment": None})
        b = generate_cache_key("logs", {"service": "checkout"})

        assert a == b

    def test_different_values_differ(self):
        assert generate_cache_key("x", {"env": "prod"}) != generate_cache_key("x", {"env": "dev"})


class TestCalculateCacheTTL:
    @pytest.mark.parametrize(
        "time_range,expected",
        [
            ("30m", 30.0),
            ("59m", 30.0),
            ("1h", 300.0),
            ("12h", 300.0),
            ("24h", 900.0),
            ("7d", 900.0),
        ],
    )
    def test_ttl_by_range(self, time_range, expected):
        assert calculate_cache_ttl(time_range) == expected

    def test_invalid_range(self):
        with pytest.raises(InvalidInputError):
            calculate_cache_ttl("yesterday")
