"""Failure-absorbing facade over the cache backend."""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from src.cache.backend import CacheBackend, CacheFailure
from src.cache.connection_supervisor import ConnectionSupervisor
from src.cache.stats import CacheStats


logger = logging.getLogger(__name__)


@dataclass
class CacheResult:
    """Outcome of one cache operation."""
    value: Any
    ok: bool = True
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


class SafeCache:
    """
    Cache facade whose operations never raise.

    Each operation is skipped when the backend is not ready and recovers from
    any backend failure. In both cases the error counter is incremented and a
    fallback result is returned, so callers can always proceed as if the cache
    were simply empty.
    """

    def __init__(self, backend: CacheBackend, supervisor: ConnectionSupervisor, stats: CacheStats):
        """
        Initialize the facade.

        Args:
            backend: Underlying cache backend
            supervisor: Connection state for the backend
            stats: Shared statistics (errors are recorded here)
        """
        self.backend = backend
        self.supervisor = supervisor
        self.stats = stats

    def _fallback(self, operation: str, key: Optional[str], fallback: Any, error: str) -> CacheResult:
        self.stats.record_error()
        target = f" key={key!r}" if key is not None else ""
        logger.warning(f"Cache {operation}{target} skipped: {error}")
        return CacheResult(value=fallback, ok=False, error=error)

    async def _run(self, operation: str, key: Optional[str], fallback: Any, call) -> CacheResult:
        if not self.supervisor.is_ready():
            return self._fallback(operation, key, fallback, "cache backend not connected")

        try:
            return CacheResult(value=await call())
        except CacheFailure as e:
            if e.connection_lost:
                self.supervisor.mark_disconnected(str(e))
            return self._fallback(operation, key, fallback, str(e))
        except Exception as e:
            logger.exception(f"Unexpected cache {operation} error")
            return self._fallback(operation, key, fallback, f"{type(e).__name__}: {e}")

    async def get(self, key: str) -> CacheResult:
        """Read a key. value is None when absent or on fallback."""
        return await self._run("get", key, None, lambda: self.backend.get(key))

    async def set(self, key: str, value: Union[str, bytes], ttl_seconds: int) -> CacheResult:
        """Write a key with expiry. value is True on success, False on fallback."""
        async def call():
            await self.backend.set(key, value, ttl_seconds)
            return True
        return await self._run("set", key, False, call)

    async def delete(self, key: str) -> CacheResult:
        """Delete a key. value is True on success, False on fallback."""
        async def call():
            await self.backend.delete(key)
            return True
        return await self._run("delete", key, False, call)

    async def size(self) -> CacheResult:
        """Number of keys in the backend. value is 0 on fallback."""
        return await self._run("size", None, 0, self.backend.size)
