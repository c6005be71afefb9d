"""Connection state tracking for the cache backend."""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from src.cache.backend import CacheBackend, CacheFailure


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection states for the cache backend."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionSupervisor:
    """
    Explicit state machine for cache backend reachability.

    Transitions:
    - DISCONNECTED -> CONNECTING -> CONNECTED when a connect attempt succeeds
    - any state -> DISCONNECTED when a connect attempt fails
    - CONNECTED -> DISCONNECTED on a backend error/disconnect event

    The supervisor never schedules reconnects; that is done by
    CacheConnectionMonitor in the composition root.
    """

    def __init__(self):
        self.state = ConnectionState.DISCONNECTED
        self.last_error: Optional[str] = None
        self.last_change_at: datetime = datetime.now()

    def is_ready(self) -> bool:
        """True only while the backend is connected."""
        return self.state == ConnectionState.CONNECTED

    def _transition(self, new_state: ConnectionState) -> None:
        old_state = self.state
        if old_state == new_state:
            return
        self.state = new_state
        self.last_change_at = datetime.now()
        if new_state == ConnectionState.DISCONNECTED:
            logger.warning(f"Cache connection state changed: {old_state.value} -> {new_state.value}")
        else:
            logger.info(f"Cache connection state changed: {old_state.value} -> {new_state.value}")

    async def connect(self, backend: CacheBackend) -> bool:
        """
        Attempt to connect the backend.

        Args:
            backend: Cache backend to connect

        Returns:
            True if connected, False if the attempt failed
        """
        self._transition(ConnectionState.CONNECTING)
        try:
            await backend.connect()
        except CacheFailure as e:
            self.last_error = str(e)
            logger.error(f"Cache connect failed: {e}")
            self._transition(ConnectionState.DISCONNECTED)
            return False
        except Exception as e:
            self.last_error = f"{type(e).__name__}: {e}"
            logger.error(f"Unexpected error connecting cache backend: {type(e).__name__}: {e}")
            self._transition(ConnectionState.DISCONNECTED)
            return False

        self.last_error = None
        self._transition(ConnectionState.CONNECTED)
        return True

    def mark_disconnected(self, reason: str) -> None:
        """Record a backend error/disconnect event."""
        self.last_error = reason
        if self.state != ConnectionState.DISCONNECTED:
            logger.warning(f"Cache backend reported disconnect: {reason}")
        self._transition(ConnectionState.DISCONNECTED)

    async def disconnect(self, backend: CacheBackend) -> None:
        """Close the backend connection."""
        try:
            await backend.disconnect()
        finally:
            self._transition(ConnectionState.DISCONNECTED)

    def get_state_info(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'ready': self.is_ready(),
            'last_error': self.last_error,
            'last_change_at': self.last_change_at.isoformat()
        }
