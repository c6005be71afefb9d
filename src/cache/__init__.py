"""Cache backend, connection supervision and statistics package."""

from .backend import CacheBackend, CacheFailure, RedisCacheBackend
from .connection_supervisor import ConnectionSupervisor, ConnectionState
from .connection_monitor import CacheConnectionMonitor
from .safe_cache import SafeCache, CacheResult
from .stats import CacheStats

__all__ = [
    'CacheBackend',
    'CacheFailure',
    'RedisCacheBackend',
    'ConnectionSupervisor',
    'ConnectionState',
    'CacheConnectionMonitor',
    'SafeCache',
    'CacheResult',
    'CacheStats',
]
