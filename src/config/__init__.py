"""Configuration management package."""

from .config_loader import Config, ConfigError
from .credential_validator import (
    is_valid_api_key,
    log_api_key_state,
    mask_api_key,
    PLACEHOLDER_API_KEYS
)

__all__ = [
    'Config',
    'ConfigError',
    'is_valid_api_key',
    'log_api_key_state',
    'mask_api_key',
    'PLACEHOLDER_API_KEYS',
]
