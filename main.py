"""Main application for the weather cache service."""

import asyncio
import logging
import signal
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from src.cache import (
    CacheConnectionMonitor,
    CacheStats,
    ConnectionSupervisor,
    RedisCacheBackend,
    SafeCache,
)
from src.config import Config, ConfigError
from src.weather import OpenWeatherMapProvider, WeatherRetrievalService
from src.web import RateLimiter, WeatherApiServer
from version import __version__


def setup_logging(config: Config):
    """Set up console and rotating file logging."""
    log_config = config.logging_config
    log_level = getattr(logging, str(log_config.get('level', 'INFO')).upper())

    log_dir = Path('logs')
    log_dir.mkdir(exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    max_bytes = log_config.get('max_file_size_mb', 10) * 1024 * 1024
    backup_count = log_config.get('backup_count', 5)

    file_handler = RotatingFileHandler(
        log_dir / 'weather_cache.log',
        maxBytes=max_bytes,
        backupCount=backup_count
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logging.info("Logging initialized")


def build_application(config: Config):
    """
    Wire the service components together.

    Args:
        config: Loaded configuration

    Returns:
        Tuple of (backend, supervisor, monitor, api_server)
    """
    stats = CacheStats()

    redis_config = config.redis
    backend = RedisCacheBackend(
        host=redis_config['host'],
        port=int(redis_config['port']),
        username=redis_config.get('username'),
        password=redis_config.get('password'),
        db=int(redis_config.get('db', 0))
    )
    supervisor = ConnectionSupervisor()
    cache = SafeCache(backend, supervisor, stats)

    weather_config = config.weather_api
    provider = OpenWeatherMapProvider(
        api_key=weather_config.get('api_key'),
        api_url=weather_config.get('api_url'),
        units=weather_config.get('units', 'metric'),
        timeout_seconds=float(weather_config.get('timeout_seconds', 30.0))
    )
    service = WeatherRetrievalService(provider, cache, stats)

    monitor_config = config.cache_monitor
    monitor = CacheConnectionMonitor(
        backend,
        supervisor,
        check_interval_seconds=float(monitor_config['check_interval_seconds']),
        retry_interval_seconds=float(monitor_config['retry_interval_seconds']),
        max_retry_interval_seconds=float(monitor_config['max_retry_interval_seconds'])
    )

    rate_limiter = None
    rate_config = config.rate_limit
    if rate_config.get('enabled', True):
        rate_limiter = RateLimiter(
            max_requests=int(rate_config['max_requests']),
            window_seconds=float(rate_config['window_minutes']) * 60
        )

    server_config = config.server
    api_server = WeatherApiServer(
        service=service,
        cache=cache,
        supervisor=supervisor,
        stats=stats,
        host=server_config['host'],
        port=int(server_config['port']),
        rate_limiter=rate_limiter
    )

    return backend, supervisor, monitor, api_server


async def main():
    """Main entry point for the application."""
    try:
        config = Config()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)
    logger = logging.getLogger(__name__)
    logger.info("=" * 60)
    logger.info(f"Weather Cache Service v{__version__}")
    logger.info("=" * 60)
    config.log_api_key_state()

    backend, supervisor, monitor, api_server = build_application(config)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except NotImplementedError:
            signal.signal(sig, lambda signum, frame: shutdown_event.set())

    # A failed initial connect leaves the service in degraded mode; the
    # monitor keeps retrying in the background.
    if not await supervisor.connect(backend):
        logger.warning("Starting without cache backend (degraded mode)")

    monitor.start()
    try:
        await api_server.start()
        await shutdown_event.wait()
        logger.info("Shutdown signal received, stopping...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise
    finally:
        await api_server.stop()
        await monitor.stop()
        await supervisor.disconnect(backend)
        logger.info("Shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
