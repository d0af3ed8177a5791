"""
Tests for survey_spine.core.cache module.

Covers:
- CacheBackend protocol compliance
- InMemoryCache: get/set/delete/exists/clear, LRU eviction, TTL expiry
"""

import time

from survey_spine.core.cache import CacheBackend, InMemoryCache


class TestInMemoryCache:
    """Test InMemoryCache backend."""

    def test_basic_get_set(self):
        cache = InMemoryCache(max_size=100, default_ttl_seconds=None)
        cache.set("key1", [{"editionId": "js2024"}])
        assert cache.get("key1") == [{"editionId": "js2024"}]

    def test_get_missing_key(self):
        assert InMemoryCache().get("missing") is None

    def test_delete(self):
        cache = InMemoryCache()
        cache.set("key1", "value1")
        cache.delete("key1")
        assert not cache.exists("key1")

    def test_clear(self):
        cache = InMemoryCache()
        cache.set("k1", 1)
        cache.set("k2", 2)
        cache.clear()
        assert cache.size() == 0

    def test_lru_eviction(self):
        """The least recently used key goes first when full."""
        cache = InMemoryCache(max_size=2, default_ttl_seconds=None)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert cache.exists("a")
        assert not cache.exists("b")
        assert cache.exists("c")

    def test_ttl_expiry(self):
        cache = InMemoryCache(default_ttl_seconds=None)
        cache.set("short", "v", ttl_seconds=0.05)
        assert cache.get("short") == "v"
        time.sleep(0.1)
        assert cache.get("short") is None

    def test_protocol_compliance(self):
        assert isinstance(InMemoryCache(), CacheBackend)
