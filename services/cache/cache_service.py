import time
import logging
from typing import Any, Callable, Dict, Optional

from config.settings import activity_config

logger = logging.getLogger(__name__)

class SummaryCache:
    """Address-keyed in-memory cache with a fixed time-to-live.

    Entries expire lazily: an expired entry is evicted when it is read.
    There is no lock; all access happens on the single event loop thread.
    """

    def __init__(self, ttl_seconds: float = 120, max_entries: int = 500,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._cache: Dict[str, Dict[str, Any]] = {}

        self._metrics = {
            "total_requests": 0,
            "cache_hits": 0,
            "cache_misses": 0,
            "expired": 0,
            "evicted": 0
        }

    @staticmethod
    def _key(key: str) -> str:
        return key.lower()

    def get(self, key: str) -> Optional[Any]:
        key = self._key(key)
        self._metrics["total_requests"] += 1

        entry = self._cache.get(key)
        if entry is None:
            self._metrics["cache_misses"] += 1
            return None

        if self._clock() > entry["expires_at"]:
            del self._cache[key]
            self._metrics["expired"] += 1
            self._metrics["cache_misses"] += 1
            logger.debug(f"⏰ Cache expired: {key}")
            return None

        self._metrics["cache_hits"] += 1
        logger.debug(f"✅ Cache hit: {key}")
        return entry["value"]

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        key = self._key(key)
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        now = self._clock()

        self._cache[key] = {"value": value, "expires_at": now + ttl, "created_at": now}
        self._cleanup_if_needed()
        logger.debug(f"💾 Cached: {key} (ttl: {ttl}s)")

    def delete(self, key: str) -> bool:
        return self._cache.pop(self._key(key), None) is not None

    def clear(self, pattern: Optional[str] = None) -> int:
        if pattern:
            to_delete = [k for k in self._cache if pattern.lower() in k]
            for key in to_delete:
                del self._cache[key]
            logger.info(f"🧹 Cleared {len(to_delete)} cache entries matching '{pattern}'")
            return len(to_delete)

        count = len(self._cache)
        self._cache.clear()
        logger.info(f"🧹 Cleared all {count} cache entries")
        return count

    def get_status(self) -> Dict[str, Any]:
        total = max(self._metrics["total_requests"], 1)
        return {
            "cache_entries": len(self._cache),
            "ttl_seconds": self.ttl_seconds,
            "hit_rate_percentage": round(self._metrics["cache_hits"] / total * 100, 1),
            "metrics": self._metrics.copy()
        }

    def _cleanup_if_needed(self) -> None:
        """Drop expired entries, then the oldest ones, when over capacity"""
        if len(self._cache) <= self.max_entries:
            return

        now = self._clock()
        for key in [k for k, e in self._cache.items() if now > e["expires_at"]]:
            del self._cache[key]
            self._metrics["expired"] += 1

        overflow = len(self._cache) - self.max_entries
        if overflow > 0:
            oldest = sorted(self._cache.items(), key=lambda item: item[1]["created_at"])[:overflow]
            for key, _ in oldest:
                del self._cache[key]
            self._metrics["evicted"] += overflow
            logger.debug(f"🧹 Evicted {overflow} old cache entries")

# Process-wide wallet summary cache
_wallet_cache: Optional[SummaryCache] = None

def get_wallet_cache() -> SummaryCache:
    """Get wallet summary cache instance"""
    global _wallet_cache
    if _wallet_cache is None:
        _wallet_cache = SummaryCache(ttl_seconds=activity_config.cache_ttl_seconds)
        logger.info(f"🚀 Wallet cache initialized (ttl {activity_config.cache_ttl_seconds}s)")
    return _wallet_cache
