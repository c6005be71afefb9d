"""HTTP API for weather lookups and cache statistics."""

import logging
from datetime import datetime
from typing import Optional

from aiohttp import web

from src.cache.connection_supervisor import ConnectionSupervisor
from src.cache.safe_cache import SafeCache
from src.cache.stats import CacheStats
from src.weather.errors import RetrievalError, ValidationError
from src.weather.retrieval_service import WeatherRetrievalService
from src.web.rate_limiter import RateLimiter, create_rate_limit_middleware


logger = logging.getLogger(__name__)


class WeatherApiServer:
    """HTTP server exposing /health, /stats and /{city}."""

    def __init__(
        self,
        service: WeatherRetrievalService,
        cache: SafeCache,
        supervisor: ConnectionSupervisor,
        stats: CacheStats,
        host: str = '0.0.0.0',
        port: int = 3000,
        rate_limiter: Optional[RateLimiter] = None
    ):
        """
        Initialize API server.

        Args:
            service: Weather retrieval service
            cache: Cache facade (used for the key count)
            supervisor: Cache connection supervisor
            stats: Shared statistics
            host: Host to bind to
            port: Port to bind to
            rate_limiter: Optional per-client rate limiter
        """
        self.service = service
        self.cache = cache
        self.supervisor = supervisor
        self.stats = stats
        self.host = host
        self.port = port
        self.rate_limiter = rate_limiter

        middlewares = []
        if rate_limiter is not None:
            middlewares.append(create_rate_limit_middleware(rate_limiter))

        self.app = web.Application(middlewares=middlewares)
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

        # /stats and /health must be registered before the catch-all city route
        self.app.router.add_get('/health', self.handle_health)
        self.app.router.add_get('/stats', self.handle_stats)
        self.app.router.add_get('/{city}', self.handle_weather)

        logger.info(f"API server initialized on {host}:{port}")

    async def handle_health(self, request: web.Request) -> web.Response:
        """Liveness endpoint. Always 200 while the process serves requests."""
        return web.json_response({
            'status': 'ok',
            'timestamp': datetime.now().isoformat(),
            'service': 'weather_cache',
            'cache_state': self.supervisor.state.value
        }, status=200)

    async def handle_stats(self, request: web.Request) -> web.Response:
        """
        Cache statistics endpoint.

        Args:
            request: HTTP request

        Returns:
            JSON response with hit/miss counters, hit rate, key count, uptime,
            connection status and error count
        """
        try:
            size = await self.cache.size()
            body = self.stats.snapshot(
                total_keys=size.value,
                cache_connected=self.supervisor.is_ready()
            )
            logger.debug(f"Stats request: {body}")
            return web.json_response(body, status=200)
        except Exception as e:
            logger.exception("Error in stats endpoint")
            return web.json_response({'error': str(e)}, status=500)

    async def handle_weather(self, request: web.Request) -> web.Response:
        """
        Weather lookup endpoint.

        Args:
            request: HTTP request with a {city} path segment

        Returns:
            JSON response {data, source, cached} or {error}
        """
        city = request.match_info.get('city', '')
        try:
            if not city or not city.strip():
                raise ValidationError("you must specify a city")

            result = await self.service.get_weather(city)
            return web.json_response(result.to_dict(), status=200)

        except RetrievalError as e:
            logger.warning(f"Weather request for {city!r} failed ({type(e).__name__}): {e.message}")
            return web.json_response({'error': e.message}, status=e.status)
        except Exception as e:
            logger.exception(f"Unexpected error handling weather request for {city!r}")
            return web.json_response({'error': str(e) or "Failed to get weather data"}, status=500)

    async def start(self):
        """Start the API server."""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            self.site = web.TCPSite(self.runner, self.host, self.port)
            await self.site.start()
            logger.info(f"API server listening on http://{self.host}:{self.port}")
            logger.info(f"  - Stats: http://{self.host}:{self.port}/stats")
            logger.info(f"  - Weather: http://{self.host}:{self.port}/<city>")
        except Exception as e:
            logger.error(f"Failed to start API server: {e}")
            raise

    async def stop(self):
        """Stop the API server."""
        try:
            if self.site:
                await self.site.stop()
            if self.runner:
                await self.runner.cleanup()
            logger.info("API server stopped")
        except Exception as e:
            logger.error(f"Error stopping API server: {e}")
