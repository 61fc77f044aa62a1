# quotebot/cache.py
"""
TTL Quote Cache
In-memory, process-local. Staleness is enforced on read only: an expired
entry stays in the map until the next put() for its key replaces it.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from quotebot.config import PRICE_CACHE_TTL_MS
from quotebot.models import QuoteResult


@dataclass(frozen=True)
class CacheEntry:
    result: QuoteResult
    inserted_at_ms: int


@dataclass(frozen=True)
class CacheStats:
    size: int
    entries: List[str]


class QuoteCache:
    def __init__(
        self,
        ttl_ms: int = PRICE_CACHE_TTL_MS,
        clock: Callable[[], float] = time.time,
    ):
        if ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be > 0, got {ttl_ms}")
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, key: str) -> Optional[QuoteResult]:
        """Cached result, or None if absent or at/after its TTL"""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        if self._now_ms() - entry.inserted_at_ms >= self.ttl_ms:
            return None
        return entry.result

    def put(self, key: str, result: QuoteResult) -> None:
        entry = CacheEntry(result=result, inserted_at_ms=self._now_ms())
        with self._lock:
            self._entries[key] = entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            keys = list(self._entries)
        return CacheStats(size=len(keys), entries=keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
