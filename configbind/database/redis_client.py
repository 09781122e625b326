"""Redis client for the Redis-backed store."""

import asyncio
from typing import TYPE_CHECKING

import redis.asyncio as redis_async
from redis.asyncio.client import Redis

from configbind.logger.logger import get_logger
from configbind.logger.types import Category, param

if TYPE_CHECKING:
    from configbind.config.settings import RedisConfig


class RedisClient:
    """Redis client holding one multiplexed asyncio connection pool."""

    def __init__(self, config: "RedisConfig") -> None:
        """
        Initialize Redis client.

        Args:
            config: Redis configuration with host, port, db or url
        """
        self.config = config
        self.redis: Redis | None = None
        self._lock = asyncio.Lock()

    async def connect(self, max_retries: int = 1, initial_delay: float = 1.0) -> None:
        """
        Connect to Redis, optionally retrying the initial handshake.

        Args:
            max_retries: Maximum connection attempts (default 1, no retry)
            initial_delay: Initial delay between retries in seconds

        Raises:
            ConnectionError: If unable to connect after max_retries
        """
        logger = get_logger().with_category(Category.REDIS)
        delay = initial_delay
        last_error: Exception | None = None

        for attempt in range(1, max_retries + 1):
            try:
                client = self._create()
                await client.ping()  # type: ignore[misc]
                self.redis = client
                return
            except Exception as e:
                last_error = e
                if attempt < max_retries:
                    logger.warn(
                        f"Redis connection attempt {attempt}/{max_retries} failed, retrying...",
                        param("host", self.config.host),
                        param("port", self.config.port),
                        param("delay", delay),
                        param("error", str(e)),
                    )
                    await asyncio.sleep(delay)
                    delay = min(delay * 2, 30.0)

        logger.error(
            f"Failed to connect to Redis after {max_retries} attempts",
            last_error,
            param("host", self.config.host),
            param("port", self.config.port),
        )
        raise ConnectionError(
            f"Failed to connect to Redis at {self.config.host}:{self.config.port} "
            f"after {max_retries} attempts"
        ) from last_error

    def _create(self) -> Redis:
        if self.config.url:
            return redis_async.Redis.from_url(self.config.url, decode_responses=True)
        return redis_async.Redis(
            host=self.config.host,
            port=self.config.port,
            db=self.config.db,
            password=self.config.password,
            decode_responses=True,
            socket_keepalive=True,
            socket_connect_timeout=5,
        )

    async def close(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def get_redis(self) -> Redis:
        """
        Get the Redis client, connecting on first use.

        Returns:
            Redis client
        """
        if self.redis is None:
            async with self._lock:
                if self.redis is None:
                    await self.connect()
        assert self.redis is not None
        return self.redis
