"""Tests for in-memory cache service."""

from fund_valuation.services.cache import CacheService, QuoteCache
from fund_valuation.services.valuation_types import StockQuote


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _quote(code: str) -> StockQuote:
    return StockQuote(code=code, price=10.0, change=0.1, change_percent=1.0, prev_close=9.9, open=9.95)


def test_set_and_get():
    cache = CacheService(default_ttl=60)
    cache.set("key1", {"price": 100.5})
    assert cache.get("key1") == {"price": 100.5}


def test_get_missing_key():
    cache = CacheService(default_ttl=60)
    assert cache.get("nonexistent") is None


def test_ttl_expiry():
    clock = FakeClock()
    cache = CacheService(default_ttl=1, clock=clock)
    cache.set("key1", "value1")
    assert cache.get("key1") == "value1"
    clock.now = 1.1
    assert cache.get("key1") is None


def test_custom_ttl():
    clock = FakeClock()
    cache = CacheService(default_ttl=60, clock=clock)
    cache.set("key1", "value1", ttl=1)
    clock.now = 0.5
    assert cache.get("key1") == "value1"
    clock.now = 1.1
    assert cache.get("key1") is None


def test_delete_and_clear():
    cache = CacheService(default_ttl=60)
    cache.set("key1", "v1")
    cache.set("key2", "v2")
    cache.delete("key1")
    assert cache.get("key1") is None
    cache.clear()
    assert cache.get("key2") is None


def test_quote_cache_hits_and_misses():
    cache = QuoteCache(default_ttl=60)
    cache.put_quotes([_quote("600519"), _quote("000858")])
    hits, misses = cache.get_quotes(["600519", "300750", "000858", "600519"])
    assert [q.code for q in hits] == ["600519", "000858"]
    assert misses == ["300750"]


def test_quote_cache_expiry():
    clock = FakeClock()
    cache = QuoteCache(default_ttl=60, clock=clock)
    cache.put_quotes([_quote("600519")])
    clock.now = 61
    hits, misses = cache.get_quotes(["600519"])
    assert hits == []
    assert misses == ["600519"]
