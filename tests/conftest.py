"""Pytest fixtures and fakes for testing the weather cache service."""

import asyncio
import time
from typing import Any, Dict, List, Optional, Tuple, Union

import pytest

from src.cache.backend import CacheBackend, CacheFailure
from src.cache.connection_supervisor import ConnectionSupervisor
from src.cache.safe_cache import SafeCache
from src.cache.stats import CacheStats
from src.weather.retrieval_service import WeatherRetrievalService
from src.weather.weather_openweathermap import ProviderNotFoundError


# ============================================================================
# Fakes
# ============================================================================

class FakeCacheBackend(CacheBackend):
    """In-memory backend with expiry and switchable failures."""

    def __init__(self):
        self.entries: Dict[str, Tuple[Union[str, bytes], float]] = {}
        self.reachable = True
        self.fail_operations = False
        self.connected = False
        self.connect_calls = 0
        self.set_calls: List[Tuple[str, Any, int]] = []

    def _check(self, operation: str) -> None:
        if not self.reachable:
            raise CacheFailure(f"{operation}: connection refused", connection_lost=True)
        if self.fail_operations:
            raise CacheFailure(f"{operation}: protocol error")

    def _purge(self) -> None:
        now = time.monotonic()
        for key in [k for k, (_, expires) in self.entries.items() if expires <= now]:
            del self.entries[key]

    async def connect(self) -> None:
        self.connect_calls += 1
        if not self.reachable:
            raise CacheFailure("connect: connection refused", connection_lost=True)
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def ping(self) -> None:
        self._check("ping")

    async def get(self, key: str) -> Optional[str]:
        self._check("get")
        self._purge()
        entry = self.entries.get(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: Union[str, bytes], ttl_seconds: int) -> None:
        self._check("set")
        self.set_calls.append((key, value, ttl_seconds))
        # Yield so concurrent writers interleave like real network I/O
        await asyncio.sleep(0)
        self.entries[key] = (value, time.monotonic() + ttl_seconds)

    async def delete(self, key: str) -> bool:
        self._check("delete")
        return self.entries.pop(key, None) is not None

    async def size(self) -> int:
        self._check("size")
        self._purge()
        return len(self.entries)


class FakeWeatherProvider:
    """Provider returning canned payloads, raising for unknown locations."""

    def __init__(self, known: Optional[Dict[str, Any]] = None):
        self.known = known if known is not None else {}
        self.calls: List[str] = []
        self.error: Optional[Exception] = None

    async def fetch(self, location: str) -> Dict[str, Any]:
        self.calls.append(location)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        payload = self.known.get(location.strip().lower())
        if payload is None:
            raise ProviderNotFoundError(f'City "{location}" not found', status=404)
        return payload


def make_payload(city: str, temp: float) -> Dict[str, Any]:
    """Minimal OpenWeatherMap-shaped current weather document."""
    return {
        'name': city,
        'main': {'temp': temp, 'humidity': 70},
        'weather': [{'main': 'Clouds', 'description': 'overcast clouds'}],
        'cod': 200
    }


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def stats():
    return CacheStats()


@pytest.fixture
def backend():
    return FakeCacheBackend()


@pytest.fixture
def supervisor():
    return ConnectionSupervisor()


@pytest.fixture
def safe_cache(backend, supervisor, stats):
    return SafeCache(backend, supervisor, stats)


@pytest.fixture
def provider():
    return FakeWeatherProvider({
        'london': make_payload('London', 11.2),
        'paris': make_payload('Paris', 14.8),
        'berlin': make_payload('Berlin', 9.5),
        'madrid': make_payload('Madrid', 21.0),
    })


@pytest.fixture
def service(provider, safe_cache, stats):
    return WeatherRetrievalService(provider, safe_cache, stats)


@pytest.fixture
async def connected(backend, supervisor):
    """Connect the fake backend through the supervisor."""
    assert await supervisor.connect(backend)
    return supervisor
