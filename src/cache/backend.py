"""Cache backends for storing serialized weather payloads with expiry."""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

import redis.asyncio as redis
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError


logger = logging.getLogger(__name__)


class CacheFailure(Exception):
    """Cache backend operation failed."""

    def __init__(self, message: str, connection_lost: bool = False):
        self.connection_lost = connection_lost
        super().__init__(message)


class CacheBackend(ABC):
    """Key/value store with natively expiring entries, reached over a connection."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection. Raises CacheFailure if the backend is unreachable."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection."""

    @abstractmethod
    async def ping(self) -> None:
        """Round-trip to the backend. Raises CacheFailure on failure."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value or None if absent/expired."""

    @abstractmethod
    async def set(self, key: str, value: Union[str, bytes], ttl_seconds: int) -> None:
        """Store a value that expires after ttl_seconds."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key. Returns True if a key was removed."""

    @abstractmethod
    async def size(self) -> int:
        """Count of all keys in the store."""


class RedisCacheBackend(CacheBackend):
    """Cache backend on top of redis.asyncio."""

    def __init__(
        self,
        host: str = 'localhost',
        port: int = 6379,
        username: Optional[str] = None,
        password: Optional[str] = None,
        db: int = 0,
        socket_timeout: float = 5.0
    ):
        """
        Initialize Redis backend. No connection is made until connect().

        Args:
            host: Redis host
            port: Redis port
            username: Optional ACL username
            password: Optional password
            db: Database index
            socket_timeout: Socket connect/read timeout in seconds
        """
        self.host = host
        self.port = port
        self.username = username or None
        self.password = password or None
        self.db = db
        self.socket_timeout = socket_timeout
        self.client: Optional[redis.Redis] = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}/{self.db}"

    def _require_client(self) -> redis.Redis:
        if self.client is None:
            raise CacheFailure("Redis client is not connected", connection_lost=True)
        return self.client

    @staticmethod
    def _wrap(operation: str, e: Exception) -> CacheFailure:
        connection_lost = isinstance(e, (RedisConnectionError, RedisTimeoutError, OSError))
        return CacheFailure(f"Redis {operation} failed: {type(e).__name__}: {e}", connection_lost=connection_lost)

    async def connect(self) -> None:
        if self.client is not None:
            await self.disconnect()

        logger.info(f"Connecting to Redis at {self.address}")
        client = redis.Redis(
            host=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            db=self.db,
            decode_responses=True,
            socket_timeout=self.socket_timeout,
            socket_connect_timeout=self.socket_timeout
        )
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            await client.aclose()
            raise self._wrap("connect", e)

        self.client = client
        logger.info(f"Connected to Redis at {self.address}")

    async def disconnect(self) -> None:
        if self.client is None:
            return
        client, self.client = self.client, None
        try:
            await client.aclose()
            logger.info("Disconnected from Redis")
        except (RedisError, OSError) as e:
            logger.warning(f"Error while closing Redis connection: {e}")

    async def ping(self) -> None:
        client = self._require_client()
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            raise self._wrap("ping", e)

    async def get(self, key: str) -> Optional[str]:
        client = self._require_client()
        try:
            return await client.get(key)
        except (RedisError, OSError) as e:
            raise self._wrap("GET", e)

    async def set(self, key: str, value: Union[str, bytes], ttl_seconds: int) -> None:
        client = self._require_client()
        try:
            await client.set(key, value, ex=ttl_seconds)
        except (RedisError, OSError) as e:
            raise self._wrap("SET", e)

    async def delete(self, key: str) -> bool:
        client = self._require_client()
        try:
            return bool(await client.delete(key))
        except (RedisError, OSError) as e:
            raise self._wrap("DEL", e)

    async def size(self) -> int:
        client = self._require_client()
        try:
            return int(await client.dbsize())
        except (RedisError, OSError) as e:
            raise self._wrap("DBSIZE", e)
