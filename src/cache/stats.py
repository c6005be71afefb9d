"""Process-wide cache statistics."""

import threading
import time
from datetime import datetime, timezone
from typing import Dict, Any


class CacheStats:
    """
    Hit/miss/error counters with derived hit rate and uptime.

    One instance is built by the application and handed to every component
    that records or reports statistics. Counters only grow; they reset when
    the process restarts.
    """

    def __init__(self, start_time: datetime = None):
        """
        Initialize statistics.

        Args:
            start_time: Process start time (defaults to now, UTC)
        """
        self._lock = threading.Lock()
        self._start_time = start_time or datetime.now(timezone.utc)
        # uptime is measured on the monotonic clock, anchored at start_time
        already_elapsed = (datetime.now(self._start_time.tzinfo) - self._start_time).total_seconds()
        self._start_monotonic = time.monotonic() - max(0.0, already_elapsed)
        self.hits = 0
        self.misses = 0
        self.errors = 0

    @property
    def start_time(self) -> datetime:
        return self._start_time

    def record_hit(self) -> None:
        with self._lock:
            self.hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self.misses += 1

    def record_error(self) -> None:
        with self._lock:
            self.errors += 1

    def hit_rate(self) -> str:
        """
        Percentage of lookups served from cache.

        Returns:
            Rate with one decimal digit, e.g. "50.0%" ("0.0%" with no lookups)
        """
        with self._lock:
            total = self.hits + self.misses
            if total == 0:
                return "0.0%"
            return f"{self.hits / total * 100:.1f}%"

    def uptime(self) -> str:
        """
        Time since start as "{hours}h {minutes}m".

        Hours are not rolled over into days and seconds are dropped.
        """
        elapsed_seconds = max(0, int(time.monotonic() - self._start_monotonic))
        hours = elapsed_seconds // 3600
        minutes = (elapsed_seconds % 3600) // 60
        return f"{hours}h {minutes}m"

    def snapshot(self, total_keys: int, cache_connected: bool) -> Dict[str, Any]:
        """
        Build the stats document served by the stats endpoint.

        Args:
            total_keys: Number of keys currently in the cache backend
            cache_connected: Whether the cache backend is reachable

        Returns:
            Dictionary with cacheHits, cacheMisses, hitRate, totalKeys,
            uptime, cacheConnected, errors and timestamp
        """
        hit_rate = self.hit_rate()
        with self._lock:
            hits, misses, errors = self.hits, self.misses, self.errors
        return {
            'cacheHits': hits,
            'cacheMisses': misses,
            'hitRate': hit_rate,
            'totalKeys': total_keys,
            'uptime': self.uptime(),
            'cacheConnected': cache_connected,
            'errors': errors,
            'timestamp': datetime.now(timezone.utc).isoformat()
        }
