import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

# Local
from .config import settings

logger = logging.getLogger("gateway.cache")


class Cache:
    """In-memory cache of parsed extraction results.

    Entries expire ``ttl_seconds`` after they are written and the least
    recently used entry is evicted once ``max_entries`` is exceeded.  Stored
    values are never mutated; a hit returns the same object that was stored.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = settings.cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.max_entries = settings.cache_max_entries if max_entries is None else max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, tuple[float, Any]]" = OrderedDict()
        self._lock = threading.Lock()
        self.cache_enabled = self.max_entries > 0 and self.ttl_seconds > 0

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def generate_key(cache_data: dict) -> str:
        """Generate a deterministic key from request parameters."""
        key_str = json.dumps(cache_data, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(key_str.encode()).hexdigest()

    def _expired(self, stored_at: float) -> bool:
        return self._clock() - stored_at >= self.ttl_seconds

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        if not self.cache_enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._expired(stored_at):
                del self._entries[key]
                logger.debug("Cache entry %s expired", key[:16])
                return None
            self._entries.move_to_end(key)
            return value

    def set(self, key: str, value: Any) -> None:
        if not self.cache_enabled:
            return
        with self._lock:
            self._entries[key] = (self._clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cache entry %s", evicted[:16])
        logger.info("Cached response under key %s", key[:16])

    def stats(self) -> dict:
        return {
            "entries": len(self._entries),
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl_seconds,
        }

    # ------------------------------------------------------------------
    # Maintenance helpers
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Remove all cache entries (used by test suites)."""
        with self._lock:
            self._entries.clear()


# Global cache instance
cache = Cache()
