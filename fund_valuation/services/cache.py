"""In-memory TTL cache for stock quotes and slow-changing lookup tables."""

import threading
import time
from typing import Any, Callable, Iterable

from fund_valuation.config import STOCK_CACHE_TTL
from fund_valuation.services.valuation_types import StockQuote


class CacheService:
    """Thread-safe in-memory cache with TTL support."""

    def __init__(self, default_ttl: float = 60, clock: Callable[[], float] = time.monotonic):
        self._store: dict[str, tuple[Any, float]] = {}
        self._default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() > expires_at:
                del self._store[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        ttl = ttl if ttl is not None else self._default_ttl
        with self._lock:
            self._store[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


class QuoteCache(CacheService):
    """Caches StockQuote snapshots keyed by stock code."""

    @staticmethod
    def _key(code: str) -> str:
        return f"stock:{code}"

    def get_quotes(self, codes: Iterable[str]) -> tuple[list[StockQuote], list[str]]:
        """Return (cached quotes, codes that missed the cache)."""
        hits, misses = [], []
        for code in dict.fromkeys(codes):
            quote = self.get(self._key(code))
            if quote is None:
                misses.append(code)
            else:
                hits.append(quote)
        return hits, misses

    def put_quotes(self, quotes: Iterable[StockQuote]) -> None:
        for quote in quotes:
            self.set(self._key(quote.code), quote)


# Global cache instance
quote_cache = QuoteCache(default_ttl=STOCK_CACHE_TTL)
