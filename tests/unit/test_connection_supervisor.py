"""Unit tests for the cache connection state machine."""

import unittest
from unittest.mock import AsyncMock, Mock

from src.cache.backend import CacheFailure
from src.cache.connection_supervisor import ConnectionSupervisor, ConnectionState


class TestConnectionSupervisor(unittest.IsolatedAsyncioTestCase):
    """Test ConnectionSupervisor transitions."""

    def setUp(self):
        self.supervisor = ConnectionSupervisor()
        self.backend = Mock()
        self.backend.connect = AsyncMock()
        self.backend.disconnect = AsyncMock()

    def test_initial_state_is_disconnected(self):
        self.assertEqual(self.supervisor.state, ConnectionState.DISCONNECTED)
        self.assertFalse(self.supervisor.is_ready())

    async def test_successful_connect(self):
        """Connect success moves to CONNECTED."""
        result = await self.supervisor.connect(self.backend)

        self.assertTrue(result)
        self.assertEqual(self.supervisor.state, ConnectionState.CONNECTED)
        self.assertTrue(self.supervisor.is_ready())
        self.assertIsNone(self.supervisor.last_error)

    async def test_failed_connect(self):
        """Connect failure moves to DISCONNECTED without raising."""
        self.backend.connect = AsyncMock(side_effect=CacheFailure("connection refused"))

        result = await self.supervisor.connect(self.backend)

        self.assertFalse(result)
        self.assertEqual(self.supervisor.state, ConnectionState.DISCONNECTED)
        self.assertIn("connection refused", self.supervisor.last_error)

    async def test_unexpected_connect_error_is_contained(self):
        self.backend.connect = AsyncMock(side_effect=RuntimeError("boom"))

        result = await self.supervisor.connect(self.backend)

        self.assertFalse(result)
        self.assertFalse(self.supervisor.is_ready())

    async def test_failed_reconnect_from_connected(self):
        """A failing connect attempt from any state ends DISCONNECTED."""
        await self.supervisor.connect(self.backend)
        self.backend.connect = AsyncMock(side_effect=CacheFailure("gone"))

        await self.supervisor.connect(self.backend)

        self.assertEqual(self.supervisor.state, ConnectionState.DISCONNECTED)

    async def test_state_is_connecting_during_attempt(self):
        seen = []

        async def observe():
            seen.append(self.supervisor.state)

        self.backend.connect = AsyncMock(side_effect=observe)
        await self.supervisor.connect(self.backend)

        self.assertEqual(seen, [ConnectionState.CONNECTING])

    async def test_disconnect_event(self):
        """Backend error event moves CONNECTED to DISCONNECTED."""
        await self.supervisor.connect(self.backend)

        self.supervisor.mark_disconnected("socket closed")

        self.assertFalse(self.supervisor.is_ready())
        self.assertEqual(self.supervisor.last_error, "socket closed")

    async def test_orderly_disconnect(self):
        await self.supervisor.connect(self.backend)

        await self.supervisor.disconnect(self.backend)

        self.backend.disconnect.assert_awaited_once()
        self.assertEqual(self.supervisor.state, ConnectionState.DISCONNECTED)

    async def test_state_info(self):
        await self.supervisor.connect(self.backend)
        info = self.supervisor.get_state_info()

        self.assertEqual(info['state'], 'connected')
        self.assertTrue(info['ready'])
        self.assertIn('last_change_at', info)
