"""Validation of the weather provider API key."""

import logging
from typing import Tuple, Optional

logger = logging.getLogger(__name__)


# Known placeholder values that should be treated as a missing key
PLACEHOLDER_API_KEYS = {
    'your_api_key',
    'your_openweathermap_api_key',
    'your_weather_api_key',
    'changeme',
    'api_key',
}


def is_valid_api_key(api_key: Optional[str]) -> Tuple[bool, str]:
    """
    Check whether an API key is usable for provider requests.

    A key is invalid if it is None, empty, whitespace-only or a known
    placeholder (case-insensitive).

    Args:
        api_key: OpenWeatherMap API key

    Returns:
        Tuple of (is_valid, reason)
    """
    if not api_key or not api_key.strip():
        return False, "API key is missing or empty"

    if api_key.strip().lower() in PLACEHOLDER_API_KEYS:
        return False, f"API key '{api_key}' is a placeholder value"

    return True, "API key present"


def mask_api_key(api_key: Optional[str]) -> str:
    """Mask all but the last four characters of a key for logging."""
    if not api_key:
        return '(empty)'
    if len(api_key) <= 4:
        return '*' * len(api_key)
    return '*' * (len(api_key) - 4) + api_key[-4:]


def log_api_key_state(api_key: Optional[str], source: str = "config") -> None:
    """
    Log the current API key state with appropriate level.

    Args:
        api_key: OpenWeatherMap API key
        source: Source of the key (e.g., "config", "environment")
    """
    is_valid, reason = is_valid_api_key(api_key)

    if is_valid:
        logger.info(f"Weather API key ({source}): {reason} [{mask_api_key(api_key)}]")
    else:
        logger.warning(f"Weather API key ({source}): {reason}")
        logger.warning("Weather requests that miss the cache will fail until a valid key is provided")
