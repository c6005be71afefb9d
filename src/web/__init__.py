"""HTTP API package."""

from .api_server import WeatherApiServer
from .rate_limiter import RateLimiter, create_rate_limit_middleware

__all__ = [
    'WeatherApiServer',
    'RateLimiter',
    'create_rate_limit_middleware',
]
