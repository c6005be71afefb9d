"""Weather retrieval package."""

from .errors import (
    RetrievalError,
    ValidationError,
    ConfigurationError,
    NotFoundError,
    UpstreamError,
)
from .weather_openweathermap import (
    OpenWeatherMapProvider,
    WeatherProviderError,
    ProviderUnauthorizedError,
    ProviderNotFoundError,
)
from .retrieval_service import (
    WeatherRetrievalService,
    WeatherResult,
    normalize_location,
    CACHE_TTL_SECONDS,
)

__all__ = [
    'RetrievalError',
    'ValidationError',
    'ConfigurationError',
    'NotFoundError',
    'UpstreamError',
    'OpenWeatherMapProvider',
    'WeatherProviderError',
    'ProviderUnauthorizedError',
    'ProviderNotFoundError',
    'WeatherRetrievalService',
    'WeatherResult',
    'normalize_location',
    'CACHE_TTL_SECONDS',
]
