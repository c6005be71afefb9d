"""Weather provider using the OpenWeatherMap current weather API."""

import aiohttp
import asyncio
import logging
from typing import Any, Dict, Optional

from src.config.credential_validator import is_valid_api_key


logger = logging.getLogger(__name__)


class WeatherProviderError(Exception):
    """OpenWeatherMap API error exception."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class ProviderUnauthorizedError(WeatherProviderError):
    """API key missing or rejected by the provider."""
    pass


class ProviderNotFoundError(WeatherProviderError):
    """Provider does not know the requested location."""
    pass


class OpenWeatherMapProvider:
    """Fetches current weather for a named location from OpenWeatherMap."""

    DEFAULT_API_URL = "https://api.openweathermap.org/data/2.5"

    def __init__(self, api_key: Optional[str], api_url: str = None,
                 units: str = "metric", timeout_seconds: float = 30.0):
        """
        Initialize OpenWeatherMap provider.

        The API key is checked on every fetch rather than here, so the
        service can start without one and report the problem per request.

        Args:
            api_key: OpenWeatherMap API key
            api_url: Optional custom API URL (defaults to official API)
            units: Unit system passed to the API
            timeout_seconds: Total request timeout
        """
        self.api_key = api_key
        self.api_url = (api_url or self.DEFAULT_API_URL).rstrip('/')
        self.units = units
        self.timeout_seconds = timeout_seconds

    async def fetch(self, location: str) -> Dict[str, Any]:
        """
        Get current weather for a location.

        Args:
            location: Location name as given by the caller (e.g. "London")

        Returns:
            Provider JSON document, unmodified

        Raises:
            ProviderUnauthorizedError: API key missing or rejected (401)
            ProviderNotFoundError: Unknown location (404)
            WeatherProviderError: Any other failure
        """
        valid, reason = is_valid_api_key(self.api_key)
        if not valid:
            logger.error(f"OpenWeatherMap API key unusable: {reason}")
            raise ProviderUnauthorizedError(f"WEATHER_API_KEY not configured: {reason}")

        endpoint = f"{self.api_url}/weather"
        params = {
            'q': location,
            'appid': self.api_key,
            'units': self.units
        }

        logger.info(f"Fetching weather for {location} from OpenWeatherMap API...")
        logger.debug(f"API request URL: {endpoint} (q={location}, units={self.units})")

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(endpoint, params=params,
                                       timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)) as response:
                    logger.debug(f"Received HTTP response with status: {response.status}")

                    if response.status == 401:
                        logger.error("OpenWeatherMap rejected the API key (401)")
                        raise ProviderUnauthorizedError(
                            "Invalid API key. Check your WEATHER_API_KEY", status=401
                        )

                    if response.status == 404:
                        logger.warning(f"OpenWeatherMap has no data for {location!r} (404)")
                        raise ProviderNotFoundError(f'City "{location}" not found', status=404)

                    if response.status != 200:
                        error_text = await response.text()
                        logger.error(f"API request failed with status {response.status}: {error_text}")
                        raise WeatherProviderError(
                            f"API request failed with status {response.status}",
                            status=response.status
                        )

                    data = await response.json()
                    if not data:
                        logger.error("Received empty response from OpenWeatherMap API")
                        raise WeatherProviderError("Empty response from weather API")

                    logger.info(f"Successfully retrieved weather data for {location}")
                    return data

        except WeatherProviderError:
            raise
        except aiohttp.ClientError as e:
            logger.error(f"HTTP client error while fetching weather data: {type(e).__name__}: {e}")
            raise WeatherProviderError(f"Failed to fetch weather data: {e}")
        except asyncio.TimeoutError:
            logger.error(f"Timeout while connecting to OpenWeatherMap API")
            raise WeatherProviderError(
                f"Weather API request timed out after {self.timeout_seconds:g} seconds"
            )
