import logging

import redis
import redis.asyncio as aioredis

from magic_link_engine.core.config import settings

logger = logging.getLogger(__name__)


class RedisConnection:
    """Process-wide Redis connection backing auth sessions, codes and the replay guard."""

    def __init__(self) -> None:
        self.client: aioredis.Redis | None = None

    async def connect(self, url: str | None = None) -> aioredis.Redis:
        if self.client is not None:
            return self.client

        self.client = aioredis.from_url(
            url or str(settings.REDIS_URL),
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            decode_responses=True,
            socket_connect_timeout=10,
            socket_timeout=10,
            retry_on_timeout=True,
            retry_on_error=[redis.exceptions.ConnectionError, redis.exceptions.TimeoutError],
            health_check_interval=30,
        )
        logger.info("Redis connection pool ready for sessions and replay markers.")
        return self.client

    def require(self) -> aioredis.Redis:
        if self.client is None:
            raise RuntimeError("Redis client is not initialized")
        return self.client

    async def disconnect(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None


redis_client = RedisConnection()
