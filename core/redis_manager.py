import logging
import os
from typing import Optional

import redis.asyncio as redis


class RedisManager:
    """
    Redis connection manager used by the Redis queue driver.
    Owns the connection pool and hands out the shared client.
    """

    def __init__(self, client: Optional[redis.Redis] = None):
        """
        Initialize Redis manager from environment configuration.

        Args:
            client: Pre-built client to use instead of connecting (mainly for tests)
        """
        self.logger = logging.getLogger("Herald.RedisManager")
        self.enabled = os.getenv("ENABLE_REDIS", "false").lower() == "true" or client is not None
        self.host = os.getenv("REDIS_HOST", "localhost")
        self.port = int(os.getenv("REDIS_PORT", "6379"))
        self.db = int(os.getenv("REDIS_DB", "0"))
        self.password = os.getenv("REDIS_PASSWORD", None)
        self.username = os.getenv("REDIS_USERNAME", None)
        self.max_connections = int(os.getenv("REDIS_MAX_CONNECTIONS", "10"))
        # Must stay above QUEUE_BLOCK_TIMEOUT or blocking pops time out on the socket
        self.socket_timeout = float(os.getenv("REDIS_SOCKET_TIMEOUT", "10.0"))
        self.socket_connect_timeout = float(os.getenv("REDIS_SOCKET_CONNECT_TIMEOUT", "5.0"))

        self._redis_pool: Optional[redis.ConnectionPool] = None
        self._redis_client: Optional[redis.Redis] = client

        if self.enabled:
            self.logger.info(f"Redis integration enabled - connecting to {self.host}:{self.port}")
        else:
            self.logger.info("Redis integration is disabled")

    async def initialize(self) -> bool:
        """
        Initialize Redis connection pool.

        Returns:
            bool: True if connection successful, False otherwise
        """
        if not self.enabled:
            return False
        if self._redis_client is not None:
            return True

        try:
            self._redis_pool = redis.ConnectionPool(
                host=self.host,
                port=self.port,
                db=self.db,
                password=self.password,
                username=self.username,
                max_connections=self.max_connections,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_connect_timeout,
                decode_responses=True,
                health_check_interval=30
            )

            self._redis_client = redis.Redis(connection_pool=self._redis_pool)

            await self._redis_client.ping()
            self.logger.info("Successfully connected to Redis")
            return True

        except redis.RedisError as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            self._redis_client = None
            return False

    async def disconnect(self):
        """Close Redis connections."""
        if self._redis_client:
            await self._redis_client.aclose()
            self._redis_client = None

        if self._redis_pool:
            await self._redis_pool.aclose()
            self._redis_pool = None

        self.logger.info("Redis connections closed")

    def get_client(self) -> Optional[redis.Redis]:
        """
        Get Redis client instance.

        Returns:
            Redis client instance or None if not enabled/connected
        """
        if not self.enabled:
            return None
        return self._redis_client

    def is_enabled(self) -> bool:
        """Check if Redis is enabled and connected."""
        return self.enabled and self._redis_client is not None
