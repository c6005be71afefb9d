"""Per-client request rate limiting for the HTTP API."""

import asyncio
import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Tuple

from aiohttp import web


logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding window rate limiter keyed by client identifier."""

    def __init__(self, max_requests: int = 100, window_seconds: float = 15 * 60,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize rate limiter.

        Args:
            max_requests: Maximum requests allowed per window
            window_seconds: Window length in seconds
            clock: Time source (monotonic seconds)
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self.buckets: Dict[str, Deque[float]] = defaultdict(deque)
        self.lock = asyncio.Lock()
        self._last_sweep = self._clock()

    async def check(self, identifier: str) -> Tuple[bool, float]:
        """
        Record a request and check it against the limit.

        Identifiers idle for a full window are evicted at most once per window.

        Args:
            identifier: Client identifier (e.g., remote IP)

        Returns:
            Tuple of (allowed, retry_after_seconds)
        """
        async with self.lock:
            now = self._clock()
            cutoff = now - self.window_seconds
            if now - self._last_sweep >= self.window_seconds:
                removed = self._evict_idle(cutoff)
                self._last_sweep = now
                if removed:
                    logger.debug(f"Evicted {removed} idle rate limit buckets")

            bucket = self.buckets[identifier]

            while bucket and bucket[0] <= cutoff:
                bucket.popleft()

            if len(bucket) >= self.max_requests:
                retry_after = bucket[0] + self.window_seconds - now
                return False, max(0.0, retry_after)

            bucket.append(now)
            return True, 0.0

    async def cleanup(self) -> int:
        """Drop identifiers with no requests in the current window."""
        async with self.lock:
            now = self._clock()
            self._last_sweep = now
            return self._evict_idle(now - self.window_seconds)

    def _evict_idle(self, cutoff: float) -> int:
        # caller holds self.lock
        stale = [k for k, bucket in self.buckets.items() if not bucket or bucket[-1] <= cutoff]
        for key in stale:
            del self.buckets[key]
        return len(stale)


def create_rate_limit_middleware(limiter: RateLimiter):
    """Build an aiohttp middleware that rejects clients over the limit with 429."""

    @web.middleware
    async def rate_limit_middleware(request: web.Request, handler):
        identifier = request.remote or 'unknown'
        allowed, retry_after = await limiter.check(identifier)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {identifier} on {request.path}")
            return web.json_response(
                {'error': 'Too many requests, please try again later.'},
                status=429,
                headers={'Retry-After': str(int(retry_after) + 1)}
            )
        return await handler(request)

    return rate_limit_middleware
