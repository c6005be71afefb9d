"""Configuration loader and validator for the weather cache service."""

import os
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional

from .credential_validator import log_api_key_state


logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def _to_bool(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes', 'on')


# Environment variable to config key mapping
ENV_VAR_MAPPING = {
    # Redis settings
    'REDIS_HOST': ('redis', 'host', str),
    'REDIS_PORT': ('redis', 'port', int),
    'REDIS_USERNAME': ('redis', 'username', str),
    'REDIS_PASSWORD': ('redis', 'password', str),
    'REDIS_DB': ('redis', 'db', int),

    # Weather provider settings
    'WEATHER_API_KEY': ('weather_api', 'api_key', str),
    'WEATHER_API_URL': ('weather_api', 'api_url', str),
    'WEATHER_API_UNITS': ('weather_api', 'units', str),
    'WEATHER_API_TIMEOUT_SECONDS': ('weather_api', 'timeout_seconds', float),

    # HTTP server settings
    'PORT': ('server', 'port', int),
    'WEATHERCACHE_HOST': ('server', 'host', str),

    # Rate limit settings
    'WEATHERCACHE_RATE_LIMIT_ENABLED': ('rate_limit', 'enabled', _to_bool),
    'WEATHERCACHE_RATE_LIMIT_MAX_REQUESTS': ('rate_limit', 'max_requests', int),
    'WEATHERCACHE_RATE_LIMIT_WINDOW_MINUTES': ('rate_limit', 'window_minutes', float),

    # Cache connection monitor settings
    'WEATHERCACHE_CHECK_INTERVAL_SECONDS': ('cache_monitor', 'check_interval_seconds', float),
    'WEATHERCACHE_RECONNECT_INTERVAL_SECONDS': ('cache_monitor', 'retry_interval_seconds', float),
    'WEATHERCACHE_MAX_RECONNECT_INTERVAL_SECONDS': ('cache_monitor', 'max_retry_interval_seconds', float),

    # Logging settings
    'WEATHERCACHE_LOG_LEVEL': ('logging', 'level', str),
}


DEFAULTS = {
    'redis': {
        'host': 'localhost',
        'port': 6379,
        'username': None,
        'password': None,
        'db': 0,
    },
    'weather_api': {
        'api_key': None,
        'api_url': None,
        'units': 'metric',
        'timeout_seconds': 30.0,
    },
    'server': {
        'host': '0.0.0.0',
        'port': 3000,
    },
    'rate_limit': {
        'enabled': True,
        'max_requests': 100,
        'window_minutes': 15,
    },
    'cache_monitor': {
        'check_interval_seconds': 30.0,
        'retry_interval_seconds': 5.0,
        'max_retry_interval_seconds': 300.0,
    },
    'logging': {
        'level': 'INFO',
        'max_file_size_mb': 10,
        'backup_count': 5,
    },
}


def get_env_var(env_var: str, convert_type: type) -> Optional[Any]:
    """
    Get environment variable and convert to specified type.

    Args:
        env_var: Environment variable name
        convert_type: Type conversion function (int, float, str, or callable)

    Returns:
        Converted value or None if not set
    """
    value = os.environ.get(env_var)
    if value is None:
        return None

    try:
        return convert_type(value)
    except (ValueError, TypeError) as e:
        logger.warning(f"Failed to convert environment variable {env_var}={value}: {e}")
        return None


def apply_env_overrides(config: Dict[str, Any]) -> tuple[Dict[str, Any], Dict[str, str]]:
    """
    Apply environment variable overrides to configuration and track which fields were overridden.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (config with overrides applied, dict mapping config paths to env var names)
    """
    logger.debug("Checking for environment variable overrides...")

    env_overridden_paths = {}

    for env_var, mapping_tuple in ENV_VAR_MAPPING.items():
        value = get_env_var(env_var, mapping_tuple[-1])  # Last element is the convert function

        if value is not None:
            sections = mapping_tuple[:-1]

            current = config
            for section in sections[:-1]:
                if not isinstance(current.get(section), dict):
                    current[section] = {}
                current = current[section]

            current[sections[-1]] = value

            path = '.'.join(sections)
            env_overridden_paths[path] = env_var
            if 'password' in path or 'api_key' in path:
                logger.info(f"Environment variable override: {env_var} -> {path} = ****")
            else:
                logger.info(f"Environment variable override: {env_var} -> {path} = {value}")

    return config, env_overridden_paths


class Config:
    """Configuration manager for the application."""

    def __init__(self, config_path: str = None):
        """
        Initialize configuration from YAML file with environment variable overrides.

        Args:
            config_path: Path to the configuration file (defaults to WEATHERCACHE_CONFIG_PATH env var or "config.yaml")
        """
        if config_path is None:
            config_path = os.environ.get('WEATHERCACHE_CONFIG_PATH', 'config.yaml')

        logger.info(f"Loading configuration from: {config_path}")
        self.config_path = Path(config_path)
        self._config = self._load_config()

        self._config, self._env_overridden_paths = apply_env_overrides(self._config)

        self._validate_config()
        logger.info("Configuration loaded and validated successfully")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file, or an empty structure if the file doesn't exist."""
        if not self.config_path.exists():
            logger.warning(f"Configuration file not found: {self.config_path}")
            logger.info("Will use defaults and environment variables for configuration")
            return {}

        try:
            logger.debug(f"Reading configuration file: {self.config_path}")
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f)

            if config is None:
                logger.warning("Configuration file is empty, using defaults")
                return {}

            if not isinstance(config, dict):
                logger.error(f"Configuration must be a dictionary, got: {type(config)}")
                raise ConfigError(f"Invalid configuration format: expected dictionary, got {type(config)}")

            logger.info(f"Successfully parsed configuration with {len(config)} top-level sections")
            return config

        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file: {e}")
            raise ConfigError(f"Error parsing configuration file: {e}")
        except OSError as e:
            logger.error(f"Error reading configuration file: {type(e).__name__}: {e}")
            raise ConfigError(f"Error loading configuration: {e}")

    def _section(self, name: str) -> Dict[str, Any]:
        """Section merged over its defaults."""
        merged = dict(DEFAULTS.get(name, {}))
        merged.update(self._config.get(name) or {})
        return merged

    def _require_positive(self, section: str, field: str) -> None:
        value = self._section(section).get(field)
        try:
            number = float(value)
        except (ValueError, TypeError):
            logger.error(f"Invalid value for {section}.{field}: {value}")
            raise ConfigError(f"{section}.{field} must be a valid number, got: {value}")
        if number <= 0:
            logger.error(f"Invalid {section}.{field}: {number} (must be positive)")
            raise ConfigError(f"{section}.{field} must be positive, got: {number}")

    def _validate_port(self, section: str) -> None:
        port = self._section(section).get('port')
        try:
            port = int(port)
        except (ValueError, TypeError):
            raise ConfigError(f"{section}.port must be an integer, got: {port}")
        if not (1 <= port <= 65535):
            logger.error(f"Invalid {section}.port: {port} (must be between 1 and 65535)")
            raise ConfigError(f"Invalid {section}.port: {port} (must be between 1 and 65535)")

    def _validate_config(self):
        """Validate configuration sections."""
        logger.info("Validating configuration...")

        for section in DEFAULTS:
            if section in self._config and self._config[section] is not None \
                    and not isinstance(self._config[section], dict):
                logger.error(f"{section} must be a dictionary, got: {type(self._config[section])}")
                raise ConfigError(f"{section} configuration must be a dictionary")

        self._validate_port('redis')
        self._validate_port('server')

        self._require_positive('weather_api', 'timeout_seconds')
        self._require_positive('rate_limit', 'max_requests')
        self._require_positive('rate_limit', 'window_minutes')
        self._require_positive('cache_monitor', 'check_interval_seconds')
        self._require_positive('cache_monitor', 'retry_interval_seconds')
        self._require_positive('cache_monitor', 'max_retry_interval_seconds')

        level = str(self._section('logging').get('level', 'INFO')).upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ConfigError(f"Invalid logging level: {level}")

        logger.info("Configuration validation completed successfully")

    @property
    def redis(self) -> Dict[str, Any]:
        """Get Redis connection configuration."""
        return self._section('redis')

    @property
    def weather_api(self) -> Dict[str, Any]:
        """Get weather API configuration."""
        return self._section('weather_api')

    @property
    def server(self) -> Dict[str, Any]:
        """Get HTTP server configuration."""
        return self._section('server')

    @property
    def rate_limit(self) -> Dict[str, Any]:
        """Get rate limit configuration."""
        return self._section('rate_limit')

    @property
    def cache_monitor(self) -> Dict[str, Any]:
        """Get cache connection monitor configuration."""
        return self._section('cache_monitor')

    @property
    def logging_config(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self._section('logging')

    @property
    def env_overridden_paths(self) -> Dict[str, str]:
        """
        Get mapping of config paths to environment variable names that override them.

        Returns:
            Dictionary mapping config paths (e.g., 'redis.host') to env var names (e.g., 'REDIS_HOST')
        """
        return self._env_overridden_paths

    @property
    def api_key_source(self) -> str:
        """Where the weather API key came from ("environment" or "config")."""
        return "environment" if 'weather_api.api_key' in self._env_overridden_paths else "config"

    def log_api_key_state(self) -> None:
        """Log the weather API key state. Call after logging is set up."""
        log_api_key_state(self.weather_api.get('api_key'), source=self.api_key_source)
