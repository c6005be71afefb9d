"""Background reconnect and liveness loop for the cache backend."""

import asyncio
import logging
from typing import Optional

from src.cache.backend import CacheBackend, CacheFailure
from src.cache.connection_supervisor import ConnectionSupervisor


logger = logging.getLogger(__name__)


class CacheConnectionMonitor:
    """
    Keeps the connection supervisor in sync with the backend.

    While disconnected, reconnects are attempted with exponential backoff.
    While connected, the backend is pinged every check interval and a failed
    ping marks the supervisor disconnected.
    """

    def __init__(
        self,
        backend: CacheBackend,
        supervisor: ConnectionSupervisor,
        check_interval_seconds: float = 30.0,
        retry_interval_seconds: float = 5.0,
        max_retry_interval_seconds: float = 300.0
    ):
        """
        Initialize the monitor.

        Args:
            backend: Cache backend to watch
            supervisor: Supervisor to update
            check_interval_seconds: Ping interval while connected
            retry_interval_seconds: Initial delay between reconnect attempts
            max_retry_interval_seconds: Maximum backoff delay
        """
        self.backend = backend
        self.supervisor = supervisor
        self.check_interval_seconds = check_interval_seconds
        self.retry_interval_seconds = retry_interval_seconds
        self.max_retry_interval_seconds = max_retry_interval_seconds
        self.current_retry_interval = retry_interval_seconds
        self._task: Optional[asyncio.Task] = None

    def get_next_check_interval_seconds(self) -> float:
        if self.supervisor.is_ready():
            return self.check_interval_seconds
        return self.current_retry_interval

    def update_retry_interval(self) -> None:
        """Double the retry interval, up to the maximum."""
        self.current_retry_interval = min(
            self.current_retry_interval * 2,
            self.max_retry_interval_seconds
        )
        logger.info(f"Updated cache reconnect interval to {self.current_retry_interval:.0f} seconds")

    async def check_once(self) -> bool:
        """
        Run one monitor step.

        Returns:
            True if the backend is connected after the step
        """
        if self.supervisor.is_ready():
            try:
                await self.backend.ping()
                return True
            except CacheFailure as e:
                self.supervisor.mark_disconnected(str(e))
                return False

        logger.info("Attempting to reconnect cache backend...")
        if await self.supervisor.connect(self.backend):
            logger.info("Cache backend reconnected")
            self.current_retry_interval = self.retry_interval_seconds
            return True

        self.update_retry_interval()
        return False

    async def run(self) -> None:
        """Loop until cancelled."""
        logger.info("Cache connection monitor started")
        try:
            while True:
                await asyncio.sleep(self.get_next_check_interval_seconds())
                try:
                    await self.check_once()
                except Exception as e:
                    logger.error(f"Error in cache connection monitor: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.info("Cache connection monitor stopped")
            raise

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="cache-connection-monitor")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
