"""Tests for the gateway's parsed-response cache."""
import pytest

from gateway.app.cache import Cache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestCacheKey:
    def test_key_is_deterministic(self):
        a = Cache.generate_key({"pdfImages": ["abc"], "dimensions": [{"width": 1, "height": 2}], "scale": 2})
        b = Cache.generate_key({"scale": 2, "dimensions": [{"height": 2, "width": 1}], "pdfImages": ["abc"]})
        assert a == b

    def test_key_changes_with_input(self):
        a = Cache.generate_key({"pdfImages": ["abc"], "scale": 2})
        b = Cache.generate_key({"pdfImages": ["abd"], "scale": 2})
        assert a != b


class TestCacheBounds:
    def test_hit_before_ttl(self, clock):
        cache = Cache(ttl_seconds=60, max_entries=4, clock=clock)
        cache.set("k", {"fields": []})
        clock.now += 59
        assert cache.get("k") == {"fields": []}

    def test_miss_after_ttl(self, clock):
        cache = Cache(ttl_seconds=60, max_entries=4, clock=clock)
        cache.set("k", {"fields": []})
        clock.now += 60
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_evicts_least_recently_used(self, clock):
        cache = Cache(ttl_seconds=60, max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.get("a") == 1  # "b" is now the least recently used
        cache.set("c", 3)
        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3

    def test_disabled_when_bounds_are_zero(self, clock):
        cache = Cache(ttl_seconds=60, max_entries=0, clock=clock)
        cache.set("a", 1)
        assert cache.get("a") is None
        assert not cache.cache_enabled

    def test_stats_and_clear(self, clock):
        cache = Cache(ttl_seconds=30, max_entries=8, clock=clock)
        cache.set("a", 1)
        assert cache.stats() == {"entries": 1, "max_entries": 8, "ttl_seconds": 30}
        cache.clear()
        assert len(cache) == 0
