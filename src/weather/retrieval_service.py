"""Cache-aside weather retrieval."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from src.cache.safe_cache import SafeCache
from src.cache.stats import CacheStats
from src.weather.errors import ConfigurationError, NotFoundError, UpstreamError, ValidationError
from src.weather.weather_openweathermap import (
    ProviderNotFoundError,
    ProviderUnauthorizedError,
    WeatherProviderError,
)


logger = logging.getLogger(__name__)


# Cache entries expire one hour after they are written
CACHE_TTL_SECONDS = 3600

SOURCE_CACHE = "cache"
SOURCE_API = "api"


@dataclass
class WeatherResult:
    """Weather payload together with where it came from."""
    data: Any
    source: str
    cached: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'data': self.data,
            'source': self.source,
            'cached': self.cached
        }


def normalize_location(location: str) -> str:
    """Cache key for a location: trimmed and lower-cased."""
    return location.strip().lower()


class WeatherRetrievalService:
    """
    Serves weather from cache when possible, otherwise from the provider.

    Every call records exactly one hit or miss. Provider results are written
    back with a fixed TTL; a failed write is logged and the request still
    succeeds. Concurrent misses for the same key are not coalesced, so each
    may reach the provider and the last write wins.
    """

    def __init__(self, provider: Any, cache: SafeCache, stats: CacheStats,
                 ttl_seconds: int = CACHE_TTL_SECONDS):
        """
        Initialize retrieval service.

        Args:
            provider: Object with an async fetch(location) method
            cache: Failure-absorbing cache facade
            stats: Shared statistics
            ttl_seconds: Expiry for written entries
        """
        self.provider = provider
        self.cache = cache
        self.stats = stats
        self.ttl_seconds = ttl_seconds

    async def _read_cached(self, key: str) -> Optional[Any]:
        result = await self.cache.get(key)
        if result.value is None:
            return None
        try:
            return json.loads(result.value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Cache Read Error: undecodable entry for {key!r}: {e}")
            return None

    async def _write_cached(self, key: str, data: Any) -> bool:
        try:
            payload = json.dumps(data)
        except (TypeError, ValueError) as e:
            logger.error(f"Cache Write Error: payload for {key!r} is not serializable: {e}")
            return False

        result = await self.cache.set(key, payload, self.ttl_seconds)
        if not result:
            logger.warning(f"Cache Write Error for {key!r}: {result.error}")
            return False
        return True

    async def _fetch_from_provider(self, location: str) -> Any:
        try:
            return await self.provider.fetch(location)
        except ProviderUnauthorizedError as e:
            raise ConfigurationError(str(e)) from e
        except ProviderNotFoundError as e:
            raise NotFoundError(str(e)) from e
        except WeatherProviderError as e:
            raise UpstreamError(str(e)) from e
        except Exception as e:
            logger.exception(f"Unexpected provider error for {location!r}")
            raise UpstreamError("Failed to fetch weather data from API") from e

    async def get_weather(self, location: str) -> WeatherResult:
        """
        Get weather for a location.

        Args:
            location: Location as supplied by the caller

        Returns:
            WeatherResult with source "cache" or "api"

        Raises:
            ValidationError: Location is empty
            ConfigurationError: Provider credentials missing or invalid
            NotFoundError: Provider does not know the location
            UpstreamError: Any other provider failure
        """
        if not location or not location.strip():
            raise ValidationError("you must specify a city")

        key = normalize_location(location)

        data = await self._read_cached(key)
        if data is not None:
            self.stats.record_hit()
            logger.info(f"Cache HIT for {location}")
            return WeatherResult(data=data, source=SOURCE_CACHE, cached=True)

        self.stats.record_miss()
        logger.info(f"Cache MISS for {location} - fetching from API")

        try:
            data = await self._fetch_from_provider(location)
        except (ConfigurationError, NotFoundError, UpstreamError) as e:
            logger.error(f"Get Weather Error for {location}: {e.message}")
            raise

        if await self._write_cached(key, data):
            logger.info(f"Data for {location} cached successfully")

        return WeatherResult(data=data, source=SOURCE_API, cached=False)
