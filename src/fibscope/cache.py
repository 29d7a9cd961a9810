"""
Result Cache

Bounded, TTL-expiring store of analysis results keyed by series
fingerprint. Instances are owned by the caller and are safe to share between
threads; every operation holds a single lock for O(1) dictionary work.

Expired entries are never returned by ``get``, even while they still occupy
a slot. When the cache is full the least recently used entry is evicted.
"""

import hashlib
import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional, Sequence

from .config import AnalysisConfig
from .exceptions import CacheError
from .logger import get_logger
from .models.market_data import PricePoint
from .models.results import CacheEntry

logger = get_logger(__name__)


def fingerprint(
    prices: Sequence[PricePoint],
    config: Optional[AnalysisConfig] = None,
    window: int = 100
) -> str:
    """
    SHA-256 identity of a series and the options that affect detection.

    Covers the last ``window`` (timestamp, price, volume) triples, the series
    length, the first timestamp and the detection settings of ``config``.
    """
    config = config or AnalysisConfig()
    digest = hashlib.sha256()

    digest.update(f"n={len(prices)};".encode())
    if prices:
        digest.update(f"t0={prices[0].timestamp};".encode())
    for point in prices[-window:] if window > 0 else []:
        digest.update(f"{point.timestamp},{point.price!r},{point.volume!r};".encode())

    digest.update(
        (
            f"tol={config.tolerance!r};w={config.window_size};phi={config.golden_ratio!r};"
            f"strict={config.enforce_template_tolerance};retr={config.detect_retracements};"
            f"ordered={config.require_ordered_timestamps}"
        ).encode()
    )
    return digest.hexdigest()


class ResultCache:
    """Thread-safe LRU cache with lazy TTL expiry."""

    def __init__(
        self,
        max_entries: int = 256,
        ttl_seconds: float = 5.0,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize cache.

        Args:
            max_entries: Capacity before the least recently used entry is evicted
            ttl_seconds: Age after which an entry is unreachable
            clock: Time source in seconds, injectable for tests
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, key: str) -> Optional[CacheEntry]:
        """Entry for ``key`` when present and younger than the TTL."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._is_expired(entry):
                del self._entries[key]
                self._misses += 1
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            return entry

    def set(self, key: str, entry: CacheEntry) -> None:
        """
        Store ``entry`` under ``key``, replacing any previous entry.

        Raises:
            CacheError: The entry could not be stored
        """
        with self._lock:
            try:
                if key in self._entries:
                    del self._entries[key]
                while len(self._entries) >= self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    self._evictions += 1
                    logger.debug(f"Evicted cache entry {evicted[:12]}")
                self._entries[key] = entry
            except MemoryError as e:
                raise CacheError(f"Could not store cache entry {key[:12]}: {e}") from e

    def cleanup(self) -> int:
        """Physically remove expired entries; returns how many were removed."""
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Removed {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                'hits': self._hits,
                'misses': self._misses,
                'evictions': self._evictions,
                'size': len(self._entries),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._is_expired(entry)

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self.now_ms() - entry.created_at >= self.ttl_seconds * 1000
